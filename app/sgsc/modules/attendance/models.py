from __future__ import annotations

from datetime import date, datetime

from sqlalchemy import Boolean, Date, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.sgsc.models import Base
from app.sgsc.modules.catalogs.models import Sector, Shift
from app.sgsc.modules.personnel.models import Personnel


class Attendance(Base):
    __tablename__ = "asistencia"
    __table_args__ = (Index("idx_asistencia_fecha", "fecha"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    date: Mapped[date] = mapped_column("fecha", Date, nullable=False, default=date.today)
    shift_id: Mapped[int | None] = mapped_column("turno_id", ForeignKey("turno.id", ondelete="SET NULL"), nullable=True)
    sector_id: Mapped[int | None] = mapped_column(ForeignKey("sector.id", ondelete="SET NULL"), nullable=True)
    personnel_id: Mapped[int] = mapped_column("personal_id", ForeignKey("personal.id", ondelete="CASCADE"), nullable=False)
    status: Mapped[str] = mapped_column("estado_asistencia", String(32), nullable=False, default="asistio_firmo")
    observations: Mapped[str | None] = mapped_column("observaciones", Text, nullable=True)
    supervisor_id: Mapped[int | None] = mapped_column(ForeignKey("personal.id", ondelete="SET NULL"), nullable=True)
    physical_report_delivered: Mapped[bool] = mapped_column("parte_fisico_entregado", Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)

    shift: Mapped[Shift | None] = relationship(lazy="joined")
    sector: Mapped[Sector | None] = relationship(lazy="joined")
    personnel: Mapped[Personnel] = relationship(foreign_keys=[personnel_id], lazy="joined")
    supervisor: Mapped[Personnel | None] = relationship(foreign_keys=[supervisor_id], lazy="joined")
