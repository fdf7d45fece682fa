from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING, Any

from app.sgsc.audit import record_event
from app.sgsc.cache import on_vehicle_change
from app.sgsc.constants import VEHICLE_CONDITIONS, label_for
from app.sgsc.forms import (
    DATE,
    DECIMAL,
    INT,
    REF,
    SELECT,
    TEXT,
    TEXTAREA,
    TIME,
    Field,
    apply_payload,
    clean_str,
    filter_date,
    filter_id,
    validate_fields,
)
from app.sgsc.reports import Column, format_date

if TYPE_CHECKING:
    from sqlalchemy.orm import Query, Session
    from app.sgsc.models import User
    from app.sgsc.modules.mobility.models import MobilityLog


IN_PROGRESS = "In progress"

FIELDS = (
    Field("date", "Date", DATE, required=True),
    Field("shift_id", "Shift", REF, options="shifts"),
    Field("sector_id", "Sector", REF, options="sectors"),
    Field("personnel_id", "Driver", REF, options="personnel"),
    Field("vehicle_plate", "Vehicle plate", TEXT, required=True, options="vehicles"),
    Field("odometer_start", "Odometer at departure (km)", INT),
    Field("odometer_end", "Odometer at return (km)", INT),
    Field("fuel_start", "Fuel at departure (gal)", DECIMAL),
    Field("fuel_end", "Fuel at return (gal)", DECIMAL),
    Field("destination", "Destination", required=True),
    Field("reason", "Reason for trip", TEXTAREA),
    Field("departure_time", "Departure time", TIME, required=True),
    Field("return_time", "Return time", TIME),
    Field("vehicle_condition_out", "Vehicle condition at departure", SELECT, choices=VEHICLE_CONDITIONS),
    Field("vehicle_condition_in", "Vehicle condition at return", SELECT, choices=VEHICLE_CONDITIONS),
    Field("observations", "Observations", TEXTAREA),
    Field("supervisor_id", "Supervisor", REF, options="supervisors"),
)

FILTERS = (
    Field("date", "Date", DATE),
    Field("vehicle_plate", "Vehicle plate", TEXT, options="vehicles"),
    Field("sector_id", "Sector", REF, options="sectors"),
)

COLUMNS = (
    Column("date", "Date", format=format_date),
    Column("vehicle_plate", "Plate"),
    Column("driver", "Driver"),
    Column("sector", "Sector"),
    Column("destination", "Destination"),
    Column("departure_time", "Departure"),
    Column("return_time", "Return"),
    Column("distance", "Distance (km)"),
    Column("fuel_consumed", "Fuel used (gal)"),
    Column("vehicle_condition_in", "Condition at return", format=lambda v: label_for(VEHICLE_CONDITIONS, v)),
)

REPORT_TITLE = "Mobility Report"


def distance_travelled(log: "MobilityLog") -> int | str:
    """Kilometres driven, or "In progress" while the return reading is missing."""
    if log.odometer_end is None:
        return IN_PROGRESS
    return log.odometer_end - (log.odometer_start or 0)


def fuel_consumed(log: "MobilityLog") -> str:
    if log.fuel_end is None:
        return IN_PROGRESS
    used = Decimal(log.fuel_start or 0) - Decimal(log.fuel_end)
    return f"{used:.1f}"


def _normalize(payload: dict) -> dict:
    plate = clean_str(payload.get("vehicle_plate"))
    return {**payload, "vehicle_plate": plate.upper() if plate else plate}


def validate_mobility_payload(payload: dict) -> list[str]:
    return validate_fields(FIELDS, payload)


def create_mobility_log(s: "Session", payload: dict, user: "User") -> "MobilityLog":
    from app.sgsc.modules.mobility.models import MobilityLog

    log = MobilityLog()
    apply_payload(log, FIELDS, _normalize(payload))
    s.add(log)
    s.flush()
    record_event(
        s,
        actor=user,
        action="mobility.create",
        entity_type="MobilityLog",
        entity_id=str(log.id),
        metadata={"plate": log.vehicle_plate, "destination": log.destination, "date": log.date},
    )
    on_vehicle_change()
    return log


def update_mobility_log(s: "Session", log: "MobilityLog", payload: dict, user: "User") -> "MobilityLog":
    changes = apply_payload(log, FIELDS, _normalize(payload))
    if changes:
        record_event(
            s,
            actor=user,
            action="mobility.update",
            entity_type="MobilityLog",
            entity_id=str(log.id),
            metadata={"changes": changes},
        )
        on_vehicle_change()
    return log


def delete_mobility_log(s: "Session", log: "MobilityLog", user: "User") -> None:
    record_event(
        s,
        actor=user,
        action="mobility.delete",
        entity_type="MobilityLog",
        entity_id=str(log.id),
        metadata={"plate": log.vehicle_plate, "date": log.date},
    )
    s.delete(log)
    s.flush()
    on_vehicle_change()


def filtered_query(s: "Session", filters: dict[str, str]) -> "Query":
    from app.sgsc.modules.mobility.models import MobilityLog

    q = s.query(MobilityLog)
    day = filter_date(filters.get("date"))
    if day:
        q = q.filter(MobilityLog.date == day)
    if filters.get("vehicle_plate"):
        q = q.filter(MobilityLog.vehicle_plate.ilike(f"%{filters['vehicle_plate']}%"))
    if filter_id(filters.get("sector_id")):
        q = q.filter(MobilityLog.sector_id == filter_id(filters["sector_id"]))
    return q.order_by(MobilityLog.date.desc(), MobilityLog.departure_time.desc(), MobilityLog.id.desc())


def mobility_row(log: "MobilityLog") -> dict[str, Any]:
    return {
        "id": log.id,
        "date": log.date,
        "vehicle_plate": log.vehicle_plate,
        "driver": log.personnel.full_name if log.personnel else "",
        "sector": log.sector.name if log.sector else "",
        "destination": log.destination,
        "departure_time": log.departure_time.strftime("%H:%M") if log.departure_time else "",
        "return_time": log.return_time.strftime("%H:%M") if log.return_time else "",
        "distance": distance_travelled(log),
        "fuel_consumed": fuel_consumed(log),
        "vehicle_condition_in": log.vehicle_condition_in,
    }
