from __future__ import annotations

from typing import TYPE_CHECKING, Any

from app.sgsc.audit import record_event
from app.sgsc.cache import on_personnel_change
from app.sgsc.constants import PATROL_STATUSES, label_for
from app.sgsc.forms import DATE, FILE, REF, SELECT, TEXTAREA, TIME, Field, apply_payload, filter_date, filter_id, validate_fields
from app.sgsc.reports import Column, format_date

if TYPE_CHECKING:
    from sqlalchemy.orm import Query, Session
    from app.sgsc.models import User
    from app.sgsc.modules.patrols.models import Patrol


FIELDS = (
    Field("date", "Date", DATE, required=True),
    Field("shift_id", "Shift", REF, options="shifts"),
    Field("sector_id", "Sector", REF, options="sectors"),
    Field("personnel_id", "Staff member", REF, required=True, options="personnel"),
    Field("start_time", "Start time", TIME, required=True),
    Field("end_time", "End time", TIME),
    Field("route", "Patrol route", TEXTAREA, required=True),
    Field("observations", "Observations", TEXTAREA),
    Field("findings", "Incidents found", TEXTAREA),
    Field("status", "Status", SELECT, required=True, choices=PATROL_STATUSES),
    Field("supervisor_id", "Supervisor", REF, options="supervisors"),
    Field("image", "Photo", FILE),
)

FILTERS = (
    Field("date", "Date", DATE),
    Field("shift_id", "Shift", REF, options="shifts"),
    Field("sector_id", "Sector", REF, options="sectors"),
    Field("status", "Status", SELECT, choices=PATROL_STATUSES),
)

COLUMNS = (
    Column("date", "Date", format=format_date),
    Column("shift", "Shift"),
    Column("sector", "Sector"),
    Column("personnel", "Staff member"),
    Column("start_time", "Start"),
    Column("end_time", "End"),
    Column("route", "Route"),
    Column("status", "Status", format=lambda v: label_for(PATROL_STATUSES, v)),
    Column("supervisor", "Supervisor"),
)

REPORT_TITLE = "Patrol Report"


def validate_patrol_payload(payload: dict) -> list[str]:
    return validate_fields(FIELDS, payload)


def create_patrol(s: "Session", payload: dict, user: "User", *, image_key: str | None = None) -> "Patrol":
    from app.sgsc.modules.patrols.models import Patrol

    patrol = Patrol(image_key=image_key)
    apply_payload(patrol, FIELDS, payload)
    s.add(patrol)
    s.flush()
    record_event(
        s,
        actor=user,
        action="patrol.create",
        entity_type="Patrol",
        entity_id=str(patrol.id),
        metadata={"date": patrol.date, "personnel_id": patrol.personnel_id, "status": patrol.status},
    )
    on_personnel_change()
    return patrol


def update_patrol(s: "Session", patrol: "Patrol", payload: dict, user: "User", *, image_key: str | None = None) -> "Patrol":
    changes = apply_payload(patrol, FIELDS, payload)
    if image_key:
        changes["image"] = {"old": patrol.image_key, "new": image_key}
        patrol.image_key = image_key
    if changes:
        record_event(
            s,
            actor=user,
            action="patrol.update",
            entity_type="Patrol",
            entity_id=str(patrol.id),
            metadata={"changes": changes},
        )
        on_personnel_change()
    return patrol


def delete_patrol(s: "Session", patrol: "Patrol", user: "User") -> None:
    record_event(
        s,
        actor=user,
        action="patrol.delete",
        entity_type="Patrol",
        entity_id=str(patrol.id),
        metadata={"date": patrol.date, "personnel_id": patrol.personnel_id},
    )
    s.delete(patrol)
    s.flush()
    on_personnel_change()


def filtered_query(s: "Session", filters: dict[str, str]) -> "Query":
    from app.sgsc.modules.patrols.models import Patrol

    q = s.query(Patrol)
    day = filter_date(filters.get("date"))
    if day:
        q = q.filter(Patrol.date == day)
    if filter_id(filters.get("shift_id")):
        q = q.filter(Patrol.shift_id == filter_id(filters["shift_id"]))
    if filter_id(filters.get("sector_id")):
        q = q.filter(Patrol.sector_id == filter_id(filters["sector_id"]))
    if filters.get("status"):
        q = q.filter(Patrol.status == filters["status"])
    return q.order_by(Patrol.date.desc(), Patrol.created_at.desc(), Patrol.id.desc())


def patrol_row(p: "Patrol") -> dict[str, Any]:
    return {
        "id": p.id,
        "date": p.date,
        "shift": p.shift.name if p.shift else "",
        "sector": p.sector.name if p.sector else "",
        "personnel": p.personnel.full_name if p.personnel else "",
        "start_time": p.start_time.strftime("%H:%M") if p.start_time else "",
        "end_time": p.end_time.strftime("%H:%M") if p.end_time else "",
        "route": p.route,
        "status": p.status,
        "supervisor": p.supervisor.full_name if p.supervisor else "",
    }
