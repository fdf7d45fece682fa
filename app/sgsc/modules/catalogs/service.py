"""
Reference catalogs: sectors, shifts, annexes, vehicles, camera booths and
supervisor assignments. All six share one set of routes; `KINDS` describes
each one's model, form, list columns and the cache entries a change to it
invalidates.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from app.sgsc.audit import record_event
from app.sgsc.cache import on_booth_change, on_sector_change, on_shift_change, on_vehicle_change
from app.sgsc.constants import VEHICLE_STATUSES, label_for
from app.sgsc.forms import INT, REF, SELECT, TEXTAREA, TIME, Field, apply_payload, clean_str, validate_fields
from app.sgsc.modules.catalogs.models import Annex, CameraBooth, Sector, Shift, SupervisorAssignment, Vehicle
from app.sgsc.reports import Column

if TYPE_CHECKING:
    from sqlalchemy.orm import Query, Session
    from app.sgsc.models import User


@dataclass(frozen=True)
class CatalogKind:
    key: str
    title: str
    singular: str
    model: type
    fields: tuple[Field, ...]
    columns: tuple[Column, ...]
    to_row: Callable[[Any], dict[str, Any]]
    order_by: Callable[[], Any]
    on_change: Callable[[], None] | None = None
    unique_field: str | None = None
    perm_prefix: str = "catalogs"

    def perm(self, action: str) -> str:
        return f"{self.perm_prefix}.{action}"


def _hhmm(t) -> str:
    return t.strftime("%H:%M") if t else ""


KINDS: dict[str, CatalogKind] = {
    k.key: k
    for k in (
        CatalogKind(
            key="sectors",
            title="Sectors",
            singular="sector",
            model=Sector,
            fields=(
                Field("name", "Name", required=True),
                Field("description", "Description", TEXTAREA),
            ),
            columns=(Column("name", "Name"), Column("description", "Description")),
            to_row=lambda r: {"id": r.id, "name": r.name, "description": r.description},
            order_by=lambda: Sector.name.asc(),
            on_change=on_sector_change,
            unique_field="name",
        ),
        CatalogKind(
            key="shifts",
            title="Shifts",
            singular="shift",
            model=Shift,
            fields=(
                Field("name", "Name", required=True),
                Field("start_time", "Start time", TIME),
                Field("end_time", "End time", TIME),
            ),
            columns=(Column("name", "Name"), Column("start_time", "Start"), Column("end_time", "End")),
            to_row=lambda r: {
                "id": r.id,
                "name": r.name,
                "start_time": _hhmm(r.start_time),
                "end_time": _hhmm(r.end_time),
            },
            order_by=lambda: Shift.name.asc(),
            on_change=on_shift_change,
            unique_field="name",
        ),
        CatalogKind(
            key="annexes",
            title="Annexes",
            singular="annex",
            model=Annex,
            fields=(
                Field("name", "Name", required=True),
                Field("sector_id", "Sector", REF, options="sectors"),
            ),
            columns=(Column("name", "Name"), Column("sector", "Sector")),
            to_row=lambda r: {"id": r.id, "name": r.name, "sector": r.sector.name if r.sector else ""},
            order_by=lambda: Annex.name.asc(),
        ),
        CatalogKind(
            key="vehicles",
            title="Vehicles",
            singular="vehicle",
            model=Vehicle,
            fields=(
                Field("plate", "Plate", required=True),
                Field("vehicle_type", "Type"),
                Field("status", "Status", SELECT, required=True, choices=VEHICLE_STATUSES),
            ),
            columns=(
                Column("plate", "Plate"),
                Column("vehicle_type", "Type"),
                Column("status", "Status", format=lambda v: label_for(VEHICLE_STATUSES, v)),
            ),
            to_row=lambda r: {"id": r.id, "plate": r.plate, "vehicle_type": r.vehicle_type, "status": r.status},
            order_by=lambda: Vehicle.plate.asc(),
            on_change=on_vehicle_change,
            unique_field="plate",
        ),
        CatalogKind(
            key="booths",
            title="Camera booths",
            singular="camera booth",
            model=CameraBooth,
            fields=(
                Field("name", "Name", required=True),
                Field("location", "Location"),
                Field("camera_count", "Number of cameras", INT),
                Field("annex_id", "Annex", REF, options="annexes"),
            ),
            columns=(
                Column("name", "Name"),
                Column("location", "Location"),
                Column("camera_count", "Cameras"),
                Column("annex", "Annex"),
            ),
            to_row=lambda r: {
                "id": r.id,
                "name": r.name,
                "location": r.location,
                "camera_count": r.camera_count,
                "annex": r.annex.name if r.annex else "",
            },
            order_by=lambda: CameraBooth.name.asc(),
            on_change=on_booth_change,
        ),
        CatalogKind(
            key="supervisors",
            title="Supervisors",
            singular="supervisor assignment",
            model=SupervisorAssignment,
            fields=(
                Field("personnel_id", "Supervisor", REF, required=True, options="supervisors"),
                Field("sector_id", "Sector", REF, options="sectors"),
                Field("shift_id", "Shift", REF, options="shifts"),
            ),
            columns=(
                Column("supervisor", "Supervisor"),
                Column("position", "Position"),
                Column("sector", "Sector"),
                Column("shift", "Shift"),
            ),
            to_row=lambda r: {
                "id": r.id,
                "supervisor": r.personnel.full_name if r.personnel else "",
                "position": r.personnel.position if r.personnel else "",
                "sector": r.sector.name if r.sector else "",
                "shift": r.shift.name if r.shift else "",
            },
            order_by=lambda: SupervisorAssignment.created_at.desc(),
            perm_prefix="supervisors",
        ),
    )
}


def get_kind(key: str) -> CatalogKind | None:
    return KINDS.get(key)


def _normalize(kind: CatalogKind, payload: dict) -> dict:
    if kind.key == "vehicles" and clean_str(payload.get("plate")):
        return {**payload, "plate": clean_str(payload["plate"]).upper()}
    return payload


def validate_catalog_payload(s: "Session", kind: CatalogKind, payload: dict, *, record_id: int | None = None) -> list[str]:
    payload = _normalize(kind, payload)
    errors = validate_fields(kind.fields, payload)
    if kind.unique_field and not errors:
        value = clean_str(payload.get(kind.unique_field))
        column = getattr(kind.model, kind.unique_field)
        q = s.query(kind.model).filter(column == value)
        if record_id is not None:
            q = q.filter(kind.model.id != record_id)
        if q.first() is not None:
            errors.append(f"A {kind.singular} with this {kind.unique_field} already exists.")
    return errors


def create_entry(s: "Session", kind: CatalogKind, payload: dict, user: "User"):
    entry = kind.model()
    apply_payload(entry, kind.fields, _normalize(kind, payload))
    s.add(entry)
    s.flush()
    record_event(
        s,
        actor=user,
        action=f"catalog.{kind.key}.create",
        entity_type=kind.model.__name__,
        entity_id=str(entry.id),
        metadata=kind.to_row(entry),
    )
    if kind.on_change:
        kind.on_change()
    return entry


def update_entry(s: "Session", kind: CatalogKind, entry, payload: dict, user: "User"):
    changes = apply_payload(entry, kind.fields, _normalize(kind, payload))
    if changes:
        record_event(
            s,
            actor=user,
            action=f"catalog.{kind.key}.update",
            entity_type=kind.model.__name__,
            entity_id=str(entry.id),
            metadata={"changes": changes},
        )
        if kind.on_change:
            kind.on_change()
    return entry


def delete_entry(s: "Session", kind: CatalogKind, entry, user: "User") -> None:
    record_event(
        s,
        actor=user,
        action=f"catalog.{kind.key}.delete",
        entity_type=kind.model.__name__,
        entity_id=str(entry.id),
        metadata=kind.to_row(entry),
    )
    s.delete(entry)
    s.flush()
    if kind.on_change:
        kind.on_change()


def list_query(s: "Session", kind: CatalogKind) -> "Query":
    return s.query(kind.model).order_by(kind.order_by())
