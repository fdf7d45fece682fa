"""
Cached reference-data fetchers.

Each fetcher checks the application's reference cache first; on a miss it
queries the database, stores plain dicts (never ORM instances, which die
with the request session) and returns them. A failed query is logged and
yields an empty list; nothing is cached in that case, so the next call
tries again.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import joinedload

from app.sgsc.cache import (
    KEY_BOOTHS,
    KEY_PERSONNEL,
    KEY_SECTORS,
    KEY_SHIFTS,
    KEY_SUPERVISORS,
    KEY_VEHICLES,
    TTL_BOOTHS,
    TTL_PERSONNEL,
    TTL_SECTORS,
    TTL_SHIFTS,
    TTL_SUPERVISORS,
    TTL_VEHICLES,
    DataCache,
    get_cache,
)
from app.sgsc.constants import SUPERVISOR_POSITIONS

if TYPE_CHECKING:
    from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)


def _cached(
    s: "Session",
    key: str,
    ttl: float,
    load: Callable[["Session"], list[dict[str, Any]]],
    cache: DataCache | None,
) -> list[dict[str, Any]]:
    cache = cache or get_cache()
    hit = cache.get(key)
    if hit is not None:
        return hit
    logger.debug("Reference cache miss: %s", key)
    try:
        rows = load(s)
    except SQLAlchemyError:
        s.rollback()
        logger.exception("Error fetching %s", key)
        return []
    cache.set(key, rows, ttl)
    return rows


def _fmt_time(t) -> str:
    return t.strftime("%H:%M") if t else ""


def _personnel_dict(p) -> dict[str, Any]:
    return {
        "id": p.id,
        "dni": p.dni,
        "first_names": p.first_names,
        "last_names": p.last_names,
        "full_name": p.full_name,
        "position": p.position,
        "status": p.status,
        "sector_id": p.sector_id,
        "shift_id": p.shift_id,
        "sector_name": p.sector.name if p.sector else None,
        "shift_name": p.shift.name if p.shift else None,
    }


def _load_sectors(s: "Session") -> list[dict[str, Any]]:
    from app.sgsc.modules.catalogs.models import Sector

    return [
        {"id": r.id, "name": r.name, "description": r.description}
        for r in s.query(Sector).order_by(Sector.name.asc()).all()
    ]


def _load_shifts(s: "Session") -> list[dict[str, Any]]:
    from app.sgsc.modules.catalogs.models import Shift

    return [
        {"id": r.id, "name": r.name, "start_time": _fmt_time(r.start_time), "end_time": _fmt_time(r.end_time)}
        for r in s.query(Shift).order_by(Shift.name.asc()).all()
    ]


def _load_personnel(s: "Session") -> list[dict[str, Any]]:
    from app.sgsc.modules.personnel.models import Personnel

    return [_personnel_dict(p) for p in s.query(Personnel).order_by(Personnel.first_names.asc()).all()]


def _load_vehicles(s: "Session") -> list[dict[str, Any]]:
    from app.sgsc.modules.catalogs.models import Vehicle

    return [
        {"id": r.id, "plate": r.plate, "vehicle_type": r.vehicle_type, "status": r.status}
        for r in s.query(Vehicle).order_by(Vehicle.plate.asc()).all()
    ]


def _load_booths(s: "Session") -> list[dict[str, Any]]:
    from app.sgsc.modules.catalogs.models import CameraBooth

    return [
        {"id": r.id, "name": r.name, "location": r.location, "camera_count": r.camera_count, "annex_id": r.annex_id}
        for r in s.query(CameraBooth).order_by(CameraBooth.name.asc()).all()
    ]


def _load_supervisors(s: "Session") -> list[dict[str, Any]]:
    from app.sgsc.modules.personnel.models import Personnel

    q = (
        s.query(Personnel)
        .filter(Personnel.position.in_(SUPERVISOR_POSITIONS))
        .filter(Personnel.status == "activo")
        .order_by(Personnel.first_names.asc())
    )
    return [
        {"id": p.id, "first_names": p.first_names, "last_names": p.last_names, "full_name": p.full_name, "position": p.position}
        for p in q.all()
    ]


def get_sectors(s: "Session", cache: DataCache | None = None) -> list[dict[str, Any]]:
    return _cached(s, KEY_SECTORS, TTL_SECTORS, _load_sectors, cache)


def get_shifts(s: "Session", cache: DataCache | None = None) -> list[dict[str, Any]]:
    return _cached(s, KEY_SHIFTS, TTL_SHIFTS, _load_shifts, cache)


def get_personnel(s: "Session", cache: DataCache | None = None) -> list[dict[str, Any]]:
    return _cached(s, KEY_PERSONNEL, TTL_PERSONNEL, _load_personnel, cache)


def get_vehicles(s: "Session", cache: DataCache | None = None) -> list[dict[str, Any]]:
    return _cached(s, KEY_VEHICLES, TTL_VEHICLES, _load_vehicles, cache)


def get_booths(s: "Session", cache: DataCache | None = None) -> list[dict[str, Any]]:
    return _cached(s, KEY_BOOTHS, TTL_BOOTHS, _load_booths, cache)


def get_supervisors(s: "Session", cache: DataCache | None = None) -> list[dict[str, Any]]:
    return _cached(s, KEY_SUPERVISORS, TTL_SUPERVISORS, _load_supervisors, cache)


def preload_common_data(s: "Session", cache: DataCache | None = None) -> None:
    """Warm sectors, shifts and personnel. Fetch failures are already logged by the fetchers."""
    try:
        get_sectors(s, cache)
        get_shifts(s, cache)
        get_personnel(s, cache)
    except Exception:
        logger.exception("Error preloading common data")


# ---------- Select options ----------
def _uncached_options(
    s: "Session", what: str, load: Callable[["Session"], list[tuple[str, str]]]
) -> list[tuple[str, str]]:
    try:
        return load(s)
    except SQLAlchemyError:
        s.rollback()
        logger.exception("Error fetching %s", what)
        return []


def _load_annex_options(s: "Session") -> list[tuple[str, str]]:
    from app.sgsc.modules.catalogs.models import Annex

    return [(str(a.id), a.name) for a in s.query(Annex).order_by(Annex.name.asc()).all()]


def _load_patrol_options(s: "Session") -> list[tuple[str, str]]:
    from app.sgsc.modules.patrols.models import Patrol

    recent = (
        s.query(Patrol)
        .options(joinedload(Patrol.personnel))
        .order_by(Patrol.date.desc(), Patrol.id.desc())
        .limit(200)
        .all()
    )
    return [(str(p.id), f"#{p.id} {p.date.isoformat()} {p.personnel.full_name}") for p in recent]


def form_options(s: "Session", cache: DataCache | None = None) -> dict[str, list[tuple[str, str]]]:
    """
    (value, label) pairs for every lookup-backed select on the screens.
    """
    return {
        "sectors": [(str(r["id"]), r["name"]) for r in get_sectors(s, cache)],
        "shifts": [(str(r["id"]), r["name"]) for r in get_shifts(s, cache)],
        "personnel": [
            (str(r["id"]), f"{r['full_name']} ({r['dni']})") for r in get_personnel(s, cache)
        ],
        "supervisors": [(str(r["id"]), r["full_name"]) for r in get_supervisors(s, cache)],
        "vehicles": [(r["plate"], r["plate"]) for r in get_vehicles(s, cache)],
        "booths": [(str(r["id"]), r["name"]) for r in get_booths(s, cache)],
        "annexes": _uncached_options(s, "annexes", _load_annex_options),
        "patrols": _uncached_options(s, "patrols", _load_patrol_options),
    }
