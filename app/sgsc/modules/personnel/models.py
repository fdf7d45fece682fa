from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.sgsc.models import Base
from app.sgsc.modules.catalogs.models import Sector, Shift


class Personnel(Base):
    __tablename__ = "personal"
    __table_args__ = (
        Index("idx_personal_estado", "estado"),
        Index("idx_personal_sector", "sector_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    dni: Mapped[str] = mapped_column(String(8), nullable=False, unique=True)
    first_names: Mapped[str] = mapped_column("nombres", String(128), nullable=False)
    last_names: Mapped[str] = mapped_column("apellidos", String(128), nullable=False)
    position: Mapped[str | None] = mapped_column("cargo", String(64), nullable=True)
    status: Mapped[str] = mapped_column("estado", String(16), nullable=False, default="activo")
    sector_id: Mapped[int | None] = mapped_column(ForeignKey("sector.id", ondelete="SET NULL"), nullable=True)
    shift_id: Mapped[int | None] = mapped_column("turno_id", ForeignKey("turno.id", ondelete="SET NULL"), nullable=True)
    user_id: Mapped[int | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)

    sector: Mapped[Sector | None] = relationship(lazy="joined")
    shift: Mapped[Shift | None] = relationship(lazy="joined")

    @property
    def full_name(self) -> str:
        return f"{self.first_names} {self.last_names}".strip()
