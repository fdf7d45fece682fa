from __future__ import annotations

from datetime import datetime, time

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text, Time
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.sgsc.models import Base


class Sector(Base):
    __tablename__ = "sector"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column("nombre_sector", String(128), nullable=False, unique=True)
    description: Mapped[str | None] = mapped_column("descripcion", Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)


class Shift(Base):
    __tablename__ = "turno"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column("nombre_turno", String(64), nullable=False, unique=True)
    start_time: Mapped[time | None] = mapped_column("hora_inicio", Time, nullable=True)
    end_time: Mapped[time | None] = mapped_column("hora_fin", Time, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)


class Annex(Base):
    __tablename__ = "anexo"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column("nombre_anexo", String(128), nullable=False)
    sector_id: Mapped[int | None] = mapped_column(ForeignKey("sector.id", ondelete="SET NULL"), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)

    sector: Mapped[Sector | None] = relationship(lazy="joined")


class Vehicle(Base):
    __tablename__ = "vehiculo"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    plate: Mapped[str] = mapped_column("placa", String(16), nullable=False, unique=True)
    vehicle_type: Mapped[str | None] = mapped_column("tipo_vehiculo", String(64), nullable=True)
    status: Mapped[str] = mapped_column("estado", String(32), nullable=False, default="operativo")
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)


class CameraBooth(Base):
    __tablename__ = "cabina"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column("nombre_cabina", String(128), nullable=False)
    location: Mapped[str | None] = mapped_column("ubicacion", String(255), nullable=True)
    camera_count: Mapped[int | None] = mapped_column("numero_camaras", Integer, nullable=True)
    annex_id: Mapped[int | None] = mapped_column("anexo_id", ForeignKey("anexo.id", ondelete="SET NULL"), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)

    annex: Mapped[Annex | None] = relationship(lazy="joined")


class SupervisorAssignment(Base):
    """A staff member assigned to supervise a sector during a shift."""

    __tablename__ = "supervisor"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    personnel_id: Mapped[int] = mapped_column("personal_id", ForeignKey("personal.id", ondelete="CASCADE"), nullable=False)
    sector_id: Mapped[int | None] = mapped_column(ForeignKey("sector.id", ondelete="SET NULL"), nullable=True)
    shift_id: Mapped[int | None] = mapped_column("turno_id", ForeignKey("turno.id", ondelete="SET NULL"), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)

    personnel: Mapped["Personnel"] = relationship(lazy="joined")  # noqa: F821
    sector: Mapped[Sector | None] = relationship(lazy="joined")
    shift: Mapped[Shift | None] = relationship(lazy="joined")
