from __future__ import annotations

from datetime import date, datetime, time

from sqlalchemy import Date, DateTime, ForeignKey, Index, Integer, String, Text, Time
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.sgsc.models import Base
from app.sgsc.modules.catalogs.models import Sector, Shift
from app.sgsc.modules.personnel.models import Personnel


class Patrol(Base):
    __tablename__ = "patrullaje"
    __table_args__ = (Index("idx_patrullaje_fecha", "fecha"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    date: Mapped[date] = mapped_column("fecha", Date, nullable=False, default=date.today)
    shift_id: Mapped[int | None] = mapped_column("turno_id", ForeignKey("turno.id", ondelete="SET NULL"), nullable=True)
    sector_id: Mapped[int | None] = mapped_column(ForeignKey("sector.id", ondelete="SET NULL"), nullable=True)
    personnel_id: Mapped[int] = mapped_column("personal_id", ForeignKey("personal.id", ondelete="CASCADE"), nullable=False)
    start_time: Mapped[time] = mapped_column("hora_inicio", Time, nullable=False)
    end_time: Mapped[time | None] = mapped_column("hora_fin", Time, nullable=True)
    route: Mapped[str] = mapped_column("ruta_patrullaje", Text, nullable=False)
    observations: Mapped[str | None] = mapped_column("observaciones", Text, nullable=True)
    findings: Mapped[str | None] = mapped_column("incidencias_encontradas", Text, nullable=True)
    status: Mapped[str] = mapped_column("estado_patrullaje", String(32), nullable=False, default="en_curso")
    supervisor_id: Mapped[int | None] = mapped_column(ForeignKey("personal.id", ondelete="SET NULL"), nullable=True)
    image_key: Mapped[str | None] = mapped_column("imagen_url", String(512), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)

    shift: Mapped[Shift | None] = relationship(lazy="joined")
    sector: Mapped[Sector | None] = relationship(lazy="joined")
    personnel: Mapped[Personnel] = relationship(foreign_keys=[personnel_id], lazy="joined")
    supervisor: Mapped[Personnel | None] = relationship(foreign_keys=[supervisor_id], lazy="joined")
