from __future__ import annotations

from typing import TYPE_CHECKING, Any

from app.sgsc.audit import record_event
from app.sgsc.constants import INCIDENT_REPORTERS, INCIDENT_STATUSES, INCIDENT_TYPES, label_for
from app.sgsc.forms import (
    CHECKBOX,
    DATE,
    FILE,
    REF,
    SELECT,
    TEXTAREA,
    TIME,
    Field,
    apply_payload,
    filter_date,
    filter_id,
    validate_fields,
)
from app.sgsc.reports import Column, format_boolean, format_date

if TYPE_CHECKING:
    from sqlalchemy.orm import Query, Session
    from app.sgsc.models import User
    from app.sgsc.modules.incidents.models import Incident


FIELDS = (
    Field("date", "Date", DATE, required=True),
    Field("incident_time", "Time", TIME, required=True),
    Field("incident_type", "Incident type", SELECT, required=True, choices=INCIDENT_TYPES),
    Field("description", "Description", TEXTAREA, required=True),
    Field("sector_id", "Sector", REF, required=True, options="sectors"),
    Field("annex_id", "Annex", REF, options="annexes"),
    Field("reported_by", "Reported by", SELECT, choices=INCIDENT_REPORTERS),
    Field("status", "Status", SELECT, required=True, choices=INCIDENT_STATUSES),
    Field("patrol_id", "Related patrol", REF, options="patrols"),
    Field("reporting_personnel_id", "Reporting staff member", REF, options="personnel"),
    Field("physical_report_delivered", "Physical report delivered", CHECKBOX),
    Field("image", "Report scan / photo", FILE),
)

FILTERS = (
    Field("date", "Date", DATE),
    Field("incident_type", "Incident type", SELECT, choices=INCIDENT_TYPES),
    Field("sector_id", "Sector", REF, options="sectors"),
    Field("status", "Status", SELECT, choices=INCIDENT_STATUSES),
)

COLUMNS = (
    Column("date", "Date", format=format_date),
    Column("time", "Time"),
    Column("incident_type", "Type", format=lambda v: label_for(INCIDENT_TYPES, v)),
    Column("description", "Description"),
    Column("sector", "Sector"),
    Column("annex", "Annex"),
    Column("reported_by", "Reported by", format=lambda v: label_for(INCIDENT_REPORTERS, v)),
    Column("status", "Status", format=lambda v: label_for(INCIDENT_STATUSES, v)),
    Column("physical_report_delivered", "Physical report", format=format_boolean),
)

REPORT_TITLE = "Incident Report"


def validate_incident_payload(payload: dict) -> list[str]:
    return validate_fields(FIELDS, payload)


def create_incident(s: "Session", payload: dict, user: "User", *, image_key: str | None = None) -> "Incident":
    from app.sgsc.modules.incidents.models import Incident

    incident = Incident(image_key=image_key)
    apply_payload(incident, FIELDS, payload)
    s.add(incident)
    s.flush()
    record_event(
        s,
        actor=user,
        action="incident.create",
        entity_type="Incident",
        entity_id=str(incident.id),
        metadata={"type": incident.incident_type, "sector_id": incident.sector_id, "status": incident.status},
    )
    return incident


def update_incident(
    s: "Session", incident: "Incident", payload: dict, user: "User", *, image_key: str | None = None
) -> "Incident":
    changes = apply_payload(incident, FIELDS, payload)
    if image_key:
        changes["image"] = {"old": incident.image_key, "new": image_key}
        incident.image_key = image_key
    if changes:
        record_event(
            s,
            actor=user,
            action="incident.update",
            entity_type="Incident",
            entity_id=str(incident.id),
            metadata={"changes": changes},
        )
    return incident


def delete_incident(s: "Session", incident: "Incident", user: "User") -> None:
    record_event(
        s,
        actor=user,
        action="incident.delete",
        entity_type="Incident",
        entity_id=str(incident.id),
        metadata={"type": incident.incident_type, "date": incident.date},
    )
    s.delete(incident)
    s.flush()


def filtered_query(s: "Session", filters: dict[str, str]) -> "Query":
    from app.sgsc.modules.incidents.models import Incident

    q = s.query(Incident)
    day = filter_date(filters.get("date"))
    if day:
        q = q.filter(Incident.date == day)
    if filters.get("incident_type"):
        q = q.filter(Incident.incident_type == filters["incident_type"])
    if filter_id(filters.get("sector_id")):
        q = q.filter(Incident.sector_id == filter_id(filters["sector_id"]))
    if filters.get("status"):
        q = q.filter(Incident.status == filters["status"])
    return q.order_by(Incident.date.desc(), Incident.incident_time.desc(), Incident.id.desc())


def incident_row(i: "Incident") -> dict[str, Any]:
    return {
        "id": i.id,
        "date": i.date,
        "time": i.incident_time.strftime("%H:%M") if i.incident_time else "",
        "incident_type": i.incident_type,
        "description": i.description,
        "sector": i.sector.name if i.sector else "",
        "annex": i.annex.name if i.annex else "",
        "reported_by": i.reported_by,
        "status": i.status,
        "physical_report_delivered": i.physical_report_delivered,
    }


def incident_detail(i: "Incident") -> list[tuple[str, Any]]:
    """Label/value pairs for the read-only detail view."""
    row = incident_row(i)
    return [
        ("Date", format_date(row["date"])),
        ("Time", row["time"]),
        ("Incident type", label_for(INCIDENT_TYPES, i.incident_type)),
        ("Description", i.description),
        ("Sector", row["sector"]),
        ("Annex", row["annex"]),
        ("Reported by", label_for(INCIDENT_REPORTERS, i.reported_by)),
        ("Status", label_for(INCIDENT_STATUSES, i.status)),
        ("Related patrol", f"#{i.patrol_id}" if i.patrol_id else ""),
        ("Reporting staff member", i.reporting_personnel.full_name if i.reporting_personnel else ""),
        ("Physical report delivered", format_boolean(i.physical_report_delivered)),
        ("Registered", i.created_at.strftime("%d/%m/%Y %H:%M") if i.created_at else ""),
    ]
