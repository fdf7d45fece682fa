from __future__ import annotations

from typing import TYPE_CHECKING, Any

from app.sgsc.audit import record_event
from app.sgsc.cache import on_booth_change
from app.sgsc.constants import EQUIPMENT_STATUSES, RECORDING_STATUSES, label_for
from app.sgsc.forms import DATE, REF, SELECT, TEXTAREA, TIME, Field, apply_payload, filter_date, filter_id, validate_fields
from app.sgsc.reports import Column, format_date

if TYPE_CHECKING:
    from sqlalchemy.orm import Query, Session
    from app.sgsc.models import User
    from app.sgsc.modules.booth_logs.models import BoothLog


CONDITION_CRITICAL = "critical"
CONDITION_FAULTS = "faults"
CONDITION_MAINTENANCE = "maintenance"
CONDITION_OPERATIONAL = "operational"

CONDITION_LABELS = {
    CONDITION_CRITICAL: "Critical",
    CONDITION_FAULTS: "Faults",
    CONDITION_MAINTENANCE: "Maintenance",
    CONDITION_OPERATIONAL: "Operational",
}

FIELDS = (
    Field("date", "Date", DATE, required=True),
    Field("shift_id", "Shift", REF, options="shifts"),
    Field("booth_id", "Camera booth", REF, options="booths"),
    Field("personnel_id", "Operator", REF, required=True, options="personnel"),
    Field("check_time", "Check time", TIME, required=True),
    Field("camera_status", "Cameras", SELECT, required=True, choices=EQUIPMENT_STATUSES),
    Field("monitor_status", "Monitors", SELECT, required=True, choices=EQUIPMENT_STATUSES),
    Field("recording_status", "Recording", SELECT, required=True, choices=RECORDING_STATUSES),
    Field("observations", "Observations", TEXTAREA),
    Field("detected_incidents", "Detected incidents", TEXTAREA),
    Field("actions_taken", "Actions taken", TEXTAREA),
    Field("supervisor_id", "Supervisor", REF, options="supervisors"),
)

FILTERS = (
    Field("date", "Date", DATE),
    Field("shift_id", "Shift", REF, options="shifts"),
    Field("booth_id", "Camera booth", REF, options="booths"),
)

COLUMNS = (
    Column("date", "Date", format=format_date),
    Column("check_time", "Time"),
    Column("booth", "Booth"),
    Column("shift", "Shift"),
    Column("operator", "Operator"),
    Column("camera_status", "Cameras", format=lambda v: label_for(EQUIPMENT_STATUSES, v)),
    Column("monitor_status", "Monitors", format=lambda v: label_for(EQUIPMENT_STATUSES, v)),
    Column("recording_status", "Recording", format=lambda v: label_for(RECORDING_STATUSES, v)),
    Column("overall", "Overall", format=lambda v: CONDITION_LABELS.get(v, v or "")),
)

REPORT_TITLE = "Camera Booth Log Report"


def overall_condition(camera_status: str | None, monitor_status: str | None, recording_status: str | None) -> str:
    """
    Summarize one check. Out-of-service equipment or a recording error is
    critical, faults or a paused recording come next, then maintenance.
    """
    equipment = (camera_status, monitor_status)
    if "fuera_servicio" in equipment or recording_status == "error":
        return CONDITION_CRITICAL
    if "con_fallas" in equipment or recording_status == "pausado":
        return CONDITION_FAULTS
    if "mantenimiento" in equipment:
        return CONDITION_MAINTENANCE
    return CONDITION_OPERATIONAL


def validate_booth_log_payload(payload: dict) -> list[str]:
    return validate_fields(FIELDS, payload)


def create_booth_log(s: "Session", payload: dict, user: "User") -> "BoothLog":
    from app.sgsc.modules.booth_logs.models import BoothLog

    log = BoothLog()
    apply_payload(log, FIELDS, payload)
    s.add(log)
    s.flush()
    record_event(
        s,
        actor=user,
        action="booth_log.create",
        entity_type="BoothLog",
        entity_id=str(log.id),
        metadata={
            "booth_id": log.booth_id,
            "date": log.date,
            "overall": overall_condition(log.camera_status, log.monitor_status, log.recording_status),
        },
    )
    on_booth_change()
    return log


def update_booth_log(s: "Session", log: "BoothLog", payload: dict, user: "User") -> "BoothLog":
    changes = apply_payload(log, FIELDS, payload)
    if changes:
        record_event(
            s,
            actor=user,
            action="booth_log.update",
            entity_type="BoothLog",
            entity_id=str(log.id),
            metadata={"changes": changes},
        )
        on_booth_change()
    return log


def delete_booth_log(s: "Session", log: "BoothLog", user: "User") -> None:
    record_event(
        s,
        actor=user,
        action="booth_log.delete",
        entity_type="BoothLog",
        entity_id=str(log.id),
        metadata={"booth_id": log.booth_id, "date": log.date},
    )
    s.delete(log)
    s.flush()
    on_booth_change()


def filtered_query(s: "Session", filters: dict[str, str]) -> "Query":
    from app.sgsc.modules.booth_logs.models import BoothLog

    q = s.query(BoothLog)
    day = filter_date(filters.get("date"))
    if day:
        q = q.filter(BoothLog.date == day)
    if filter_id(filters.get("shift_id")):
        q = q.filter(BoothLog.shift_id == filter_id(filters["shift_id"]))
    if filter_id(filters.get("booth_id")):
        q = q.filter(BoothLog.booth_id == filter_id(filters["booth_id"]))
    return q.order_by(BoothLog.date.desc(), BoothLog.check_time.desc(), BoothLog.id.desc())


def booth_log_row(log: "BoothLog") -> dict[str, Any]:
    return {
        "id": log.id,
        "date": log.date,
        "check_time": log.check_time.strftime("%H:%M") if log.check_time else "",
        "booth": log.booth.name if log.booth else "",
        "shift": log.shift.name if log.shift else "",
        "operator": log.personnel.full_name if log.personnel else "",
        "camera_status": log.camera_status,
        "monitor_status": log.monitor_status,
        "recording_status": log.recording_status,
        "overall": overall_condition(log.camera_status, log.monitor_status, log.recording_status),
    }
