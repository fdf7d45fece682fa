from __future__ import annotations

from datetime import date, datetime, time

from sqlalchemy import Boolean, Date, DateTime, ForeignKey, Index, Integer, String, Text, Time
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.sgsc.models import Base
from app.sgsc.modules.catalogs.models import Annex, Sector
from app.sgsc.modules.patrols.models import Patrol
from app.sgsc.modules.personnel.models import Personnel


class Incident(Base):
    __tablename__ = "incidencia"
    __table_args__ = (
        Index("idx_incidencia_fecha", "fecha"),
        Index("idx_incidencia_estado", "estado"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    date: Mapped[date] = mapped_column("fecha", Date, nullable=False, default=date.today)
    incident_time: Mapped[time] = mapped_column("hora", Time, nullable=False)
    incident_type: Mapped[str] = mapped_column("tipo_incidencia", String(64), nullable=False)
    description: Mapped[str] = mapped_column("descripcion", Text, nullable=False)
    sector_id: Mapped[int] = mapped_column(ForeignKey("sector.id", ondelete="RESTRICT"), nullable=False)
    annex_id: Mapped[int | None] = mapped_column("anexo_id", ForeignKey("anexo.id", ondelete="SET NULL"), nullable=True)
    reported_by: Mapped[str | None] = mapped_column("reportado_por", String(64), nullable=True)
    status: Mapped[str] = mapped_column("estado", String(32), nullable=False, default="pendiente")
    patrol_id: Mapped[int | None] = mapped_column("patrullaje_id", ForeignKey("patrullaje.id", ondelete="SET NULL"), nullable=True)
    reporting_personnel_id: Mapped[int | None] = mapped_column(
        "personal_reporta_id", ForeignKey("personal.id", ondelete="SET NULL"), nullable=True
    )
    physical_report_delivered: Mapped[bool] = mapped_column("parte_fisico_entregado", Boolean, nullable=False, default=False)
    image_key: Mapped[str | None] = mapped_column("imagen_url", String(512), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)

    sector: Mapped[Sector] = relationship(lazy="joined")
    annex: Mapped[Annex | None] = relationship(lazy="joined")
    patrol: Mapped[Patrol | None] = relationship(lazy="select")
    reporting_personnel: Mapped[Personnel | None] = relationship(lazy="joined")
