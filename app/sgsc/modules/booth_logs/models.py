from __future__ import annotations

from datetime import date, datetime, time

from sqlalchemy import Date, DateTime, ForeignKey, Index, Integer, String, Text, Time
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.sgsc.models import Base
from app.sgsc.modules.catalogs.models import CameraBooth, Shift
from app.sgsc.modules.personnel.models import Personnel


class BoothLog(Base):
    __tablename__ = "bitacora_cabina"
    __table_args__ = (Index("idx_bitacora_cabina_fecha", "fecha"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    date: Mapped[date] = mapped_column("fecha", Date, nullable=False, default=date.today)
    shift_id: Mapped[int | None] = mapped_column("turno_id", ForeignKey("turno.id", ondelete="SET NULL"), nullable=True)
    booth_id: Mapped[int | None] = mapped_column("cabina_id", ForeignKey("cabina.id", ondelete="SET NULL"), nullable=True)
    personnel_id: Mapped[int] = mapped_column("personal_id", ForeignKey("personal.id", ondelete="CASCADE"), nullable=False)
    check_time: Mapped[time] = mapped_column("hora_revision", Time, nullable=False)
    camera_status: Mapped[str] = mapped_column("estado_camara", String(32), nullable=False, default="operativo")
    monitor_status: Mapped[str] = mapped_column("estado_monitor", String(32), nullable=False, default="operativo")
    recording_status: Mapped[str] = mapped_column("estado_grabacion", String(32), nullable=False, default="grabando")
    observations: Mapped[str | None] = mapped_column("observaciones", Text, nullable=True)
    detected_incidents: Mapped[str | None] = mapped_column("incidencias_detectadas", Text, nullable=True)
    actions_taken: Mapped[str | None] = mapped_column("acciones_tomadas", Text, nullable=True)
    supervisor_id: Mapped[int | None] = mapped_column(ForeignKey("personal.id", ondelete="SET NULL"), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)

    shift: Mapped[Shift | None] = relationship(lazy="joined")
    booth: Mapped[CameraBooth | None] = relationship(lazy="joined")
    personnel: Mapped[Personnel] = relationship(foreign_keys=[personnel_id], lazy="joined")
    supervisor: Mapped[Personnel | None] = relationship(foreign_keys=[supervisor_id], lazy="joined")
