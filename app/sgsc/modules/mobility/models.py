from __future__ import annotations

from datetime import date, datetime, time
from decimal import Decimal

from sqlalchemy import Date, DateTime, ForeignKey, Index, Integer, Numeric, String, Text, Time
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.sgsc.models import Base
from app.sgsc.modules.catalogs.models import Sector, Shift
from app.sgsc.modules.personnel.models import Personnel


class MobilityLog(Base):
    """One vehicle departure/return, with odometer and fuel readings."""

    __tablename__ = "movilidad"
    __table_args__ = (
        Index("idx_movilidad_fecha", "fecha"),
        Index("idx_movilidad_placa", "vehiculo_placa"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    date: Mapped[date] = mapped_column("fecha", Date, nullable=False, default=date.today)
    shift_id: Mapped[int | None] = mapped_column("turno_id", ForeignKey("turno.id", ondelete="SET NULL"), nullable=True)
    sector_id: Mapped[int | None] = mapped_column(ForeignKey("sector.id", ondelete="SET NULL"), nullable=True)
    personnel_id: Mapped[int | None] = mapped_column("personal_id", ForeignKey("personal.id", ondelete="SET NULL"), nullable=True)
    vehicle_plate: Mapped[str] = mapped_column("vehiculo_placa", String(16), nullable=False)
    odometer_start: Mapped[int | None] = mapped_column("kilometraje_inicial", Integer, nullable=True)
    odometer_end: Mapped[int | None] = mapped_column("kilometraje_final", Integer, nullable=True)
    fuel_start: Mapped[Decimal | None] = mapped_column("combustible_inicial", Numeric(8, 2), nullable=True)
    fuel_end: Mapped[Decimal | None] = mapped_column("combustible_final", Numeric(8, 2), nullable=True)
    destination: Mapped[str] = mapped_column("destino", String(255), nullable=False)
    reason: Mapped[str | None] = mapped_column("motivo_traslado", Text, nullable=True)
    departure_time: Mapped[time] = mapped_column("hora_salida", Time, nullable=False)
    return_time: Mapped[time | None] = mapped_column("hora_retorno", Time, nullable=True)
    observations: Mapped[str | None] = mapped_column("observaciones", Text, nullable=True)
    vehicle_condition_out: Mapped[str | None] = mapped_column("estado_vehiculo_salida", String(32), nullable=True)
    vehicle_condition_in: Mapped[str | None] = mapped_column("estado_vehiculo_retorno", String(32), nullable=True)
    supervisor_id: Mapped[int | None] = mapped_column(ForeignKey("personal.id", ondelete="SET NULL"), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)

    shift: Mapped[Shift | None] = relationship(lazy="joined")
    sector: Mapped[Sector | None] = relationship(lazy="joined")
    personnel: Mapped[Personnel | None] = relationship(foreign_keys=[personnel_id], lazy="joined")
    supervisor: Mapped[Personnel | None] = relationship(foreign_keys=[supervisor_id], lazy="joined")
