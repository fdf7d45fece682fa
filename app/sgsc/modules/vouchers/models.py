from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import Date, DateTime, ForeignKey, Index, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.sgsc.models import Base
from app.sgsc.modules.personnel.models import Personnel


class Voucher(Base):
    """Expense voucher requested by a staff member and optionally approved by another."""

    __tablename__ = "voucher"
    __table_args__ = (
        Index("idx_voucher_fecha_emision", "fecha_emision"),
        Index("idx_voucher_estado", "estado"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    number: Mapped[str] = mapped_column("numero_voucher", String(32), nullable=False, unique=True)
    issue_date: Mapped[date] = mapped_column("fecha_emision", Date, nullable=False, default=date.today)
    due_date: Mapped[date | None] = mapped_column("fecha_vencimiento", Date, nullable=True)
    voucher_type: Mapped[str] = mapped_column("tipo_voucher", String(32), nullable=False, default="otros")
    concept: Mapped[str] = mapped_column("concepto", Text, nullable=False)
    amount: Mapped[Decimal] = mapped_column("monto", Numeric(12, 2), nullable=False)
    currency: Mapped[str] = mapped_column("moneda", String(3), nullable=False, default="PEN")
    requester_id: Mapped[int] = mapped_column(
        "personal_solicitante_id", ForeignKey("personal.id", ondelete="RESTRICT"), nullable=False
    )
    approver_id: Mapped[int | None] = mapped_column(
        "personal_autoriza_id", ForeignKey("personal.id", ondelete="SET NULL"), nullable=True
    )
    status: Mapped[str] = mapped_column("estado", String(16), nullable=False, default="pendiente")
    observations: Mapped[str | None] = mapped_column("observaciones", Text, nullable=True)
    payment_method: Mapped[str | None] = mapped_column("metodo_pago", String(32), nullable=True)
    receipt_number: Mapped[str | None] = mapped_column("numero_comprobante", String(64), nullable=True)
    payment_date: Mapped[date | None] = mapped_column("fecha_pago", Date, nullable=True)
    attachment_key: Mapped[str | None] = mapped_column("archivo_adjunto", String(512), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)

    requester: Mapped[Personnel] = relationship(foreign_keys=[requester_id], lazy="joined")
    approver: Mapped[Personnel | None] = relationship(foreign_keys=[approver_id], lazy="joined")
