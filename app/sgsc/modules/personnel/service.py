from __future__ import annotations

import re
from typing import TYPE_CHECKING, Any

from sqlalchemy import or_

from app.sgsc.audit import record_event
from app.sgsc.cache import on_personnel_change
from app.sgsc.constants import PERSONNEL_STATUSES, POSITIONS
from app.sgsc.forms import REF, SELECT, Field, apply_payload, clean_str, filter_id, validate_fields
from app.sgsc.reports import Column, format_date, format_status

if TYPE_CHECKING:
    from sqlalchemy.orm import Query, Session
    from app.sgsc.models import User
    from app.sgsc.modules.personnel.models import Personnel


DNI_RE = re.compile(r"^\d{8}$")

FIELDS = (
    Field("dni", "DNI", required=True, help="8 digits"),
    Field("first_names", "First names", required=True),
    Field("last_names", "Last names", required=True),
    Field("position", "Position", SELECT, choices=POSITIONS),
    Field("status", "Status", SELECT, required=True, choices=PERSONNEL_STATUSES),
    Field("sector_id", "Sector", REF, options="sectors"),
    Field("shift_id", "Shift", REF, options="shifts"),
)

FILTERS = (
    Field("q", "Search"),
    Field("status", "Status", SELECT, choices=PERSONNEL_STATUSES),
    Field("sector_id", "Sector", REF, options="sectors"),
    Field("shift_id", "Shift", REF, options="shifts"),
)

COLUMNS = (
    Column("dni", "DNI"),
    Column("full_name", "Full name"),
    Column("position", "Position"),
    Column("sector", "Sector"),
    Column("shift", "Shift"),
    Column("status", "Status", format=format_status),
    Column("created_at", "Registered", format=format_date),
)

REPORT_TITLE = "Personnel Report"


def validate_personnel_payload(s: "Session", payload: dict, *, personnel_id: int | None = None) -> list[str]:
    from app.sgsc.modules.personnel.models import Personnel

    errors = validate_fields(FIELDS, payload)
    dni = clean_str(payload.get("dni"))
    if dni and not DNI_RE.match(dni):
        errors.append("DNI must be exactly 8 digits.")
    elif dni:
        q = s.query(Personnel).filter(Personnel.dni == dni)
        if personnel_id is not None:
            q = q.filter(Personnel.id != personnel_id)
        if q.first() is not None:
            errors.append("A staff member with this DNI already exists.")
    return errors


def create_personnel(s: "Session", payload: dict, user: "User | None", *, user_id: int | None = None) -> "Personnel":
    from app.sgsc.modules.personnel.models import Personnel

    p = Personnel(status="activo", user_id=user_id)
    apply_payload(p, FIELDS, payload)
    s.add(p)
    s.flush()
    record_event(
        s,
        actor=user,
        action="personnel.create",
        entity_type="Personnel",
        entity_id=str(p.id),
        metadata={"dni": p.dni, "name": p.full_name, "position": p.position},
    )
    on_personnel_change()
    return p


def update_personnel(s: "Session", p: "Personnel", payload: dict, user: "User") -> "Personnel":
    changes = apply_payload(p, FIELDS, payload)
    if changes:
        record_event(
            s,
            actor=user,
            action="personnel.update",
            entity_type="Personnel",
            entity_id=str(p.id),
            metadata={"changes": changes},
        )
        on_personnel_change()
    return p


def delete_personnel(s: "Session", p: "Personnel", user: "User") -> None:
    record_event(
        s,
        actor=user,
        action="personnel.delete",
        entity_type="Personnel",
        entity_id=str(p.id),
        metadata={"dni": p.dni, "name": p.full_name},
    )
    s.delete(p)
    s.flush()
    on_personnel_change()


def filtered_query(s: "Session", filters: dict[str, str]) -> "Query":
    from app.sgsc.modules.personnel.models import Personnel

    q = s.query(Personnel)
    search = filters.get("q") or ""
    if search:
        like = f"%{search}%"
        q = q.filter(
            or_(
                Personnel.dni.ilike(like),
                Personnel.first_names.ilike(like),
                Personnel.last_names.ilike(like),
                Personnel.position.ilike(like),
            )
        )
    if filters.get("status"):
        q = q.filter(Personnel.status == filters["status"])
    if filter_id(filters.get("sector_id")):
        q = q.filter(Personnel.sector_id == filter_id(filters["sector_id"]))
    if filter_id(filters.get("shift_id")):
        q = q.filter(Personnel.shift_id == filter_id(filters["shift_id"]))
    return q.order_by(Personnel.created_at.desc(), Personnel.id.desc())


def personnel_row(p: "Personnel") -> dict[str, Any]:
    return {
        "id": p.id,
        "dni": p.dni,
        "full_name": p.full_name,
        "position": p.position,
        "sector": p.sector.name if p.sector else "",
        "shift": p.shift.name if p.shift else "",
        "status": p.status,
        "created_at": p.created_at,
    }
