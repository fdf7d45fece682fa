"""Initial schema: accounts, audit trail, catalogs and the operational logs.

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-19
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "0001_initial"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # ---------- accounts ----------
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.UniqueConstraint("email"),
    )
    op.create_table(
        "roles",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("key", sa.String(64), nullable=False),
        sa.Column("name", sa.String(128), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.UniqueConstraint("key"),
    )
    op.create_table(
        "permissions",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("key", sa.String(128), nullable=False),
        sa.Column("name", sa.String(128), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.UniqueConstraint("key"),
    )
    op.create_table(
        "user_roles",
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("role_id", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["role_id"], ["roles.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("user_id", "role_id"),
    )
    op.create_table(
        "role_permissions",
        sa.Column("role_id", sa.Integer(), nullable=False),
        sa.Column("permission_id", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["role_id"], ["roles.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["permission_id"], ["permissions.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("role_id", "permission_id"),
    )
    op.create_table(
        "audit_events",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("request_id", sa.String(64), nullable=True),
        sa.Column("client_ip", sa.String(64), nullable=True),
        sa.Column("actor_user_id", sa.Integer(), nullable=True),
        sa.Column("actor_user_email", sa.String(320), nullable=True),
        sa.Column("action", sa.String(128), nullable=False),
        sa.Column("entity_type", sa.String(128), nullable=True),
        sa.Column("entity_id", sa.String(128), nullable=True),
        sa.Column("reason", sa.String(512), nullable=True),
        sa.Column("metadata_json", sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(["actor_user_id"], ["users.id"], ondelete="SET NULL"),
    )
    op.create_index("idx_audit_events_created_at", "audit_events", ["created_at"])
    op.create_index("idx_audit_events_entity", "audit_events", ["entity_type", "entity_id"])

    # ---------- catalogs ----------
    op.create_table(
        "sector",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("nombre_sector", sa.String(128), nullable=False),
        sa.Column("descripcion", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.UniqueConstraint("nombre_sector"),
    )
    op.create_table(
        "turno",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("nombre_turno", sa.String(64), nullable=False),
        sa.Column("hora_inicio", sa.Time(), nullable=True),
        sa.Column("hora_fin", sa.Time(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.UniqueConstraint("nombre_turno"),
    )
    op.create_table(
        "anexo",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("nombre_anexo", sa.String(128), nullable=False),
        sa.Column("sector_id", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["sector_id"], ["sector.id"], ondelete="SET NULL"),
    )
    op.create_table(
        "vehiculo",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("placa", sa.String(16), nullable=False),
        sa.Column("tipo_vehiculo", sa.String(64), nullable=True),
        sa.Column("estado", sa.String(32), nullable=False, server_default="operativo"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.UniqueConstraint("placa"),
    )
    op.create_table(
        "cabina",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("nombre_cabina", sa.String(128), nullable=False),
        sa.Column("ubicacion", sa.String(255), nullable=True),
        sa.Column("numero_camaras", sa.Integer(), nullable=True),
        sa.Column("anexo_id", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["anexo_id"], ["anexo.id"], ondelete="SET NULL"),
    )

    # ---------- personnel ----------
    op.create_table(
        "personal",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("dni", sa.String(8), nullable=False),
        sa.Column("nombres", sa.String(128), nullable=False),
        sa.Column("apellidos", sa.String(128), nullable=False),
        sa.Column("cargo", sa.String(64), nullable=True),
        sa.Column("estado", sa.String(16), nullable=False, server_default="activo"),
        sa.Column("sector_id", sa.Integer(), nullable=True),
        sa.Column("turno_id", sa.Integer(), nullable=True),
        sa.Column("user_id", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["sector_id"], ["sector.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["turno_id"], ["turno.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="SET NULL"),
        sa.UniqueConstraint("dni"),
    )
    op.create_index("idx_personal_estado", "personal", ["estado"])
    op.create_index("idx_personal_sector", "personal", ["sector_id"])

    op.create_table(
        "supervisor",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("personal_id", sa.Integer(), nullable=False),
        sa.Column("sector_id", sa.Integer(), nullable=True),
        sa.Column("turno_id", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["personal_id"], ["personal.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["sector_id"], ["sector.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["turno_id"], ["turno.id"], ondelete="SET NULL"),
    )

    # ---------- operational logs ----------
    op.create_table(
        "patrullaje",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("fecha", sa.Date(), nullable=False),
        sa.Column("turno_id", sa.Integer(), nullable=True),
        sa.Column("sector_id", sa.Integer(), nullable=True),
        sa.Column("personal_id", sa.Integer(), nullable=False),
        sa.Column("hora_inicio", sa.Time(), nullable=False),
        sa.Column("hora_fin", sa.Time(), nullable=True),
        sa.Column("ruta_patrullaje", sa.Text(), nullable=False),
        sa.Column("observaciones", sa.Text(), nullable=True),
        sa.Column("incidencias_encontradas", sa.Text(), nullable=True),
        sa.Column("estado_patrullaje", sa.String(32), nullable=False, server_default="en_curso"),
        sa.Column("supervisor_id", sa.Integer(), nullable=True),
        sa.Column("imagen_url", sa.String(512), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["turno_id"], ["turno.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["sector_id"], ["sector.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["personal_id"], ["personal.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["supervisor_id"], ["personal.id"], ondelete="SET NULL"),
    )
    op.create_index("idx_patrullaje_fecha", "patrullaje", ["fecha"])

    op.create_table(
        "incidencia",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("fecha", sa.Date(), nullable=False),
        sa.Column("hora", sa.Time(), nullable=False),
        sa.Column("tipo_incidencia", sa.String(64), nullable=False),
        sa.Column("descripcion", sa.Text(), nullable=False),
        sa.Column("sector_id", sa.Integer(), nullable=False),
        sa.Column("anexo_id", sa.Integer(), nullable=True),
        sa.Column("reportado_por", sa.String(64), nullable=True),
        sa.Column("estado", sa.String(32), nullable=False, server_default="pendiente"),
        sa.Column("patrullaje_id", sa.Integer(), nullable=True),
        sa.Column("personal_reporta_id", sa.Integer(), nullable=True),
        sa.Column("parte_fisico_entregado", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("imagen_url", sa.String(512), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["sector_id"], ["sector.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(["anexo_id"], ["anexo.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["patrullaje_id"], ["patrullaje.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["personal_reporta_id"], ["personal.id"], ondelete="SET NULL"),
    )
    op.create_index("idx_incidencia_fecha", "incidencia", ["fecha"])
    op.create_index("idx_incidencia_estado", "incidencia", ["estado"])

    op.create_table(
        "movilidad",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("fecha", sa.Date(), nullable=False),
        sa.Column("turno_id", sa.Integer(), nullable=True),
        sa.Column("sector_id", sa.Integer(), nullable=True),
        sa.Column("personal_id", sa.Integer(), nullable=True),
        sa.Column("vehiculo_placa", sa.String(16), nullable=False),
        sa.Column("kilometraje_inicial", sa.Integer(), nullable=True),
        sa.Column("kilometraje_final", sa.Integer(), nullable=True),
        sa.Column("combustible_inicial", sa.Numeric(8, 2), nullable=True),
        sa.Column("combustible_final", sa.Numeric(8, 2), nullable=True),
        sa.Column("destino", sa.String(255), nullable=False),
        sa.Column("motivo_traslado", sa.Text(), nullable=True),
        sa.Column("hora_salida", sa.Time(), nullable=False),
        sa.Column("hora_retorno", sa.Time(), nullable=True),
        sa.Column("observaciones", sa.Text(), nullable=True),
        sa.Column("estado_vehiculo_salida", sa.String(32), nullable=True),
        sa.Column("estado_vehiculo_retorno", sa.String(32), nullable=True),
        sa.Column("supervisor_id", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["turno_id"], ["turno.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["sector_id"], ["sector.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["personal_id"], ["personal.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["supervisor_id"], ["personal.id"], ondelete="SET NULL"),
    )
    op.create_index("idx_movilidad_fecha", "movilidad", ["fecha"])
    op.create_index("idx_movilidad_placa", "movilidad", ["vehiculo_placa"])

    op.create_table(
        "bitacora_cabina",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("fecha", sa.Date(), nullable=False),
        sa.Column("turno_id", sa.Integer(), nullable=True),
        sa.Column("cabina_id", sa.Integer(), nullable=True),
        sa.Column("personal_id", sa.Integer(), nullable=False),
        sa.Column("hora_revision", sa.Time(), nullable=False),
        sa.Column("estado_camara", sa.String(32), nullable=False, server_default="operativo"),
        sa.Column("estado_monitor", sa.String(32), nullable=False, server_default="operativo"),
        sa.Column("estado_grabacion", sa.String(32), nullable=False, server_default="grabando"),
        sa.Column("observaciones", sa.Text(), nullable=True),
        sa.Column("incidencias_detectadas", sa.Text(), nullable=True),
        sa.Column("acciones_tomadas", sa.Text(), nullable=True),
        sa.Column("supervisor_id", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["turno_id"], ["turno.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["cabina_id"], ["cabina.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["personal_id"], ["personal.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["supervisor_id"], ["personal.id"], ondelete="SET NULL"),
    )
    op.create_index("idx_bitacora_cabina_fecha", "bitacora_cabina", ["fecha"])

    op.create_table(
        "asistencia",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("fecha", sa.Date(), nullable=False),
        sa.Column("turno_id", sa.Integer(), nullable=True),
        sa.Column("sector_id", sa.Integer(), nullable=True),
        sa.Column("personal_id", sa.Integer(), nullable=False),
        sa.Column("estado_asistencia", sa.String(32), nullable=False, server_default="asistio_firmo"),
        sa.Column("observaciones", sa.Text(), nullable=True),
        sa.Column("supervisor_id", sa.Integer(), nullable=True),
        sa.Column("parte_fisico_entregado", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["turno_id"], ["turno.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["sector_id"], ["sector.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["personal_id"], ["personal.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["supervisor_id"], ["personal.id"], ondelete="SET NULL"),
    )
    op.create_index("idx_asistencia_fecha", "asistencia", ["fecha"])

    op.create_table(
        "voucher",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("numero_voucher", sa.String(32), nullable=False),
        sa.Column("fecha_emision", sa.Date(), nullable=False),
        sa.Column("fecha_vencimiento", sa.Date(), nullable=True),
        sa.Column("tipo_voucher", sa.String(32), nullable=False, server_default="otros"),
        sa.Column("concepto", sa.Text(), nullable=False),
        sa.Column("monto", sa.Numeric(12, 2), nullable=False),
        sa.Column("moneda", sa.String(3), nullable=False, server_default="PEN"),
        sa.Column("personal_solicitante_id", sa.Integer(), nullable=False),
        sa.Column("personal_autoriza_id", sa.Integer(), nullable=True),
        sa.Column("estado", sa.String(16), nullable=False, server_default="pendiente"),
        sa.Column("observaciones", sa.Text(), nullable=True),
        sa.Column("metodo_pago", sa.String(32), nullable=True),
        sa.Column("numero_comprobante", sa.String(64), nullable=True),
        sa.Column("fecha_pago", sa.Date(), nullable=True),
        sa.Column("archivo_adjunto", sa.String(512), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["personal_solicitante_id"], ["personal.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(["personal_autoriza_id"], ["personal.id"], ondelete="SET NULL"),
        sa.UniqueConstraint("numero_voucher"),
    )
    op.create_index("idx_voucher_fecha_emision", "voucher", ["fecha_emision"])
    op.create_index("idx_voucher_estado", "voucher", ["estado"])


def downgrade() -> None:
    op.drop_index("idx_voucher_estado", table_name="voucher")
    op.drop_index("idx_voucher_fecha_emision", table_name="voucher")
    op.drop_table("voucher")
    op.drop_index("idx_asistencia_fecha", table_name="asistencia")
    op.drop_table("asistencia")
    op.drop_index("idx_bitacora_cabina_fecha", table_name="bitacora_cabina")
    op.drop_table("bitacora_cabina")
    op.drop_index("idx_movilidad_placa", table_name="movilidad")
    op.drop_index("idx_movilidad_fecha", table_name="movilidad")
    op.drop_table("movilidad")
    op.drop_index("idx_incidencia_estado", table_name="incidencia")
    op.drop_index("idx_incidencia_fecha", table_name="incidencia")
    op.drop_table("incidencia")
    op.drop_index("idx_patrullaje_fecha", table_name="patrullaje")
    op.drop_table("patrullaje")
    op.drop_table("supervisor")
    op.drop_index("idx_personal_sector", table_name="personal")
    op.drop_index("idx_personal_estado", table_name="personal")
    op.drop_table("personal")
    op.drop_table("cabina")
    op.drop_table("vehiculo")
    op.drop_table("anexo")
    op.drop_table("turno")
    op.drop_table("sector")
    op.drop_index("idx_audit_events_entity", table_name="audit_events")
    op.drop_index("idx_audit_events_created_at", table_name="audit_events")
    op.drop_table("audit_events")
    op.drop_table("role_permissions")
    op.drop_table("user_roles")
    op.drop_table("permissions")
    op.drop_table("roles")
    op.drop_table("users")
