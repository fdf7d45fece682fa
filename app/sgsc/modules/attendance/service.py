from __future__ import annotations

from typing import TYPE_CHECKING, Any

from app.sgsc.audit import record_event
from app.sgsc.constants import ATTENDANCE_STATUSES, label_for
from app.sgsc.forms import CHECKBOX, DATE, REF, SELECT, TEXTAREA, Field, apply_payload, filter_date, filter_id, validate_fields
from app.sgsc.reports import Column, format_boolean, format_date

if TYPE_CHECKING:
    from sqlalchemy.orm import Query, Session
    from app.sgsc.models import User
    from app.sgsc.modules.attendance.models import Attendance


FIELDS = (
    Field("date", "Date", DATE, required=True),
    Field("shift_id", "Shift", REF, options="shifts"),
    Field("sector_id", "Sector", REF, options="sectors"),
    Field("personnel_id", "Staff member", REF, required=True, options="personnel"),
    Field("status", "Attendance", SELECT, required=True, choices=ATTENDANCE_STATUSES),
    Field("observations", "Observations", TEXTAREA),
    Field("supervisor_id", "Supervisor", REF, options="supervisors"),
    Field("physical_report_delivered", "Physical report delivered", CHECKBOX),
)

FILTERS = (
    Field("date", "Date", DATE),
    Field("shift_id", "Shift", REF, options="shifts"),
    Field("sector_id", "Sector", REF, options="sectors"),
    Field("status", "Attendance", SELECT, choices=ATTENDANCE_STATUSES),
)

COLUMNS = (
    Column("date", "Date", format=format_date),
    Column("personnel", "Staff member"),
    Column("dni", "DNI"),
    Column("shift", "Shift"),
    Column("sector", "Sector"),
    Column("status", "Attendance", format=lambda v: label_for(ATTENDANCE_STATUSES, v)),
    Column("supervisor", "Supervisor"),
    Column("physical_report_delivered", "Physical report", format=format_boolean),
)

REPORT_TITLE = "Attendance Report"


def validate_attendance_payload(payload: dict) -> list[str]:
    return validate_fields(FIELDS, payload)


def create_attendance(s: "Session", payload: dict, user: "User") -> "Attendance":
    from app.sgsc.modules.attendance.models import Attendance

    record = Attendance()
    apply_payload(record, FIELDS, payload)
    s.add(record)
    s.flush()
    record_event(
        s,
        actor=user,
        action="attendance.create",
        entity_type="Attendance",
        entity_id=str(record.id),
        metadata={"personnel_id": record.personnel_id, "date": record.date, "status": record.status},
    )
    return record


def update_attendance(s: "Session", record: "Attendance", payload: dict, user: "User") -> "Attendance":
    changes = apply_payload(record, FIELDS, payload)
    if changes:
        record_event(
            s,
            actor=user,
            action="attendance.update",
            entity_type="Attendance",
            entity_id=str(record.id),
            metadata={"changes": changes},
        )
    return record


def delete_attendance(s: "Session", record: "Attendance", user: "User") -> None:
    record_event(
        s,
        actor=user,
        action="attendance.delete",
        entity_type="Attendance",
        entity_id=str(record.id),
        metadata={"personnel_id": record.personnel_id, "date": record.date},
    )
    s.delete(record)
    s.flush()


def filtered_query(s: "Session", filters: dict[str, str]) -> "Query":
    from app.sgsc.modules.attendance.models import Attendance

    q = s.query(Attendance)
    day = filter_date(filters.get("date"))
    if day:
        q = q.filter(Attendance.date == day)
    if filter_id(filters.get("shift_id")):
        q = q.filter(Attendance.shift_id == filter_id(filters["shift_id"]))
    if filter_id(filters.get("sector_id")):
        q = q.filter(Attendance.sector_id == filter_id(filters["sector_id"]))
    if filters.get("status"):
        q = q.filter(Attendance.status == filters["status"])
    return q.order_by(Attendance.date.desc(), Attendance.created_at.desc(), Attendance.id.desc())


def attendance_row(record: "Attendance") -> dict[str, Any]:
    return {
        "id": record.id,
        "date": record.date,
        "personnel": record.personnel.full_name if record.personnel else "",
        "dni": record.personnel.dni if record.personnel else "",
        "shift": record.shift.name if record.shift else "",
        "sector": record.sector.name if record.sector else "",
        "status": record.status,
        "supervisor": record.supervisor.full_name if record.supervisor else "",
        "physical_report_delivered": record.physical_report_delivered,
    }
