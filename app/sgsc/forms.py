from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time
from decimal import Decimal, InvalidOperation
from typing import Any

# Field kinds understood by records/form.html.
TEXT = "text"
TEXTAREA = "textarea"
DATE = "date"
TIME = "time"
INT = "int"
DECIMAL = "decimal"
SELECT = "select"  # stored as the option's code string
REF = "ref"  # stored as an integer id of another record
CHECKBOX = "checkbox"
FILE = "file"


@dataclass(frozen=True)
class Field:
    """
    A form input (or list filter). `choices` is a static tuple of
    (code, label) pairs; `options` names a lookup from `lookups.form_options`.
    """

    name: str
    label: str
    kind: str = TEXT
    required: bool = False
    choices: tuple[tuple[str, str], ...] | None = None
    options: str | None = None
    help: str | None = None


def clean_str(v: Any) -> str | None:
    if v is None:
        return None
    v = str(v).strip()
    return v or None


def parse_date(s: str | None) -> date | None:
    """Parse YYYY-MM-DD date string."""
    s = clean_str(s)
    if not s:
        return None
    return date.fromisoformat(s)


def parse_time(s: str | None) -> time | None:
    """Parse HH:MM or HH:MM:SS."""
    s = clean_str(s)
    if not s:
        return None
    return time.fromisoformat(s)


def parse_int(s: str | None) -> int | None:
    s = clean_str(s)
    if not s:
        return None
    return int(s)


def parse_decimal(s: str | None) -> Decimal | None:
    s = clean_str(s)
    if not s:
        return None
    try:
        d = Decimal(s.replace(",", ""))
    except InvalidOperation as e:
        raise ValueError(f"Invalid number: {s}") from e
    if not d.is_finite():
        raise ValueError(f"Invalid number: {s}")
    return d


def parse_bool(s: Any) -> bool:
    if isinstance(s, bool):
        return s
    return (clean_str(s) or "").lower() in ("1", "true", "on", "yes", "y")


_PARSERS = {
    DATE: (parse_date, "a valid date (YYYY-MM-DD)"),
    TIME: (parse_time, "a valid time (HH:MM)"),
    INT: (parse_int, "a whole number"),
    REF: (parse_int, "a valid selection"),
    DECIMAL: (parse_decimal, "a number"),
}


def form_payload(fields: list[Field] | tuple[Field, ...], form) -> dict[str, str | None]:
    """Raw string values for `fields` from a request form (files excluded)."""
    payload: dict[str, str | None] = {}
    for f in fields:
        if f.kind == FILE:
            continue
        if f.kind == CHECKBOX:
            payload[f.name] = "1" if form.get(f.name) else ""
        else:
            payload[f.name] = form.get(f.name)
    return payload


def validate_fields(fields: list[Field] | tuple[Field, ...], payload: dict) -> list[str]:
    """Presence, type and enumeration checks shared by every screen."""
    errors: list[str] = []
    for f in fields:
        if f.kind in (FILE, CHECKBOX):
            continue
        raw = clean_str(payload.get(f.name))
        if raw is None:
            if f.required:
                errors.append(f"{f.label} is required.")
            continue
        parser = _PARSERS.get(f.kind)
        if parser is not None:
            fn, expected = parser
            try:
                fn(raw)
            except ValueError:
                errors.append(f"{f.label} must be {expected}.")
                continue
        if f.choices and raw not in {code for code, _ in f.choices}:
            errors.append(f"Invalid {f.label.lower()}. Must be one of: {', '.join(code for code, _ in f.choices)}")
    return errors


def coerce(f: Field, raw: Any) -> Any:
    """Convert a validated raw form value into the column's Python type."""
    if f.kind == CHECKBOX:
        return parse_bool(raw)
    if f.kind == DATE:
        return parse_date(raw)
    if f.kind == TIME:
        return parse_time(raw)
    if f.kind in (INT, REF):
        return parse_int(raw)
    if f.kind == DECIMAL:
        return parse_decimal(raw)
    return clean_str(raw)


def apply_payload(obj: Any, fields: list[Field] | tuple[Field, ...], payload: dict) -> dict[str, dict[str, str]]:
    """
    Set each field's attribute on `obj` and return the changed ones as
    {name: {"old": ..., "new": ...}} for the audit trail.
    """
    changes: dict[str, dict[str, str]] = {}
    for f in fields:
        if f.kind == FILE or f.name not in payload:
            continue
        new = coerce(f, payload.get(f.name))
        old = getattr(obj, f.name, None)
        if new != old:
            changes[f.name] = {"old": _audit_str(old), "new": _audit_str(new)}
            setattr(obj, f.name, new)
    return changes


def _audit_str(v: Any) -> str | None:
    if v is None:
        return None
    if isinstance(v, (date, datetime, time)):
        return v.isoformat()
    return str(v)


def form_value(obj: Any, f: Field) -> str:
    """String value to pre-fill an input with when editing `obj`."""
    v = getattr(obj, f.name, None) if obj is not None else None
    if v is None:
        return ""
    if f.kind == TIME and isinstance(v, time):
        return v.strftime("%H:%M")
    if isinstance(v, (date, datetime)):
        return v.isoformat()
    if isinstance(v, bool):
        return "1" if v else ""
    return str(v)


def form_values(obj: Any, fields: list[Field] | tuple[Field, ...]) -> dict[str, str]:
    return {f.name: form_value(obj, f) for f in fields if f.kind != FILE}


def filter_date(s: str | None) -> date | None:
    """Lenient date parse for list filters; a malformed value means no filter."""
    try:
        return parse_date(s)
    except ValueError:
        return None


def filter_id(s: str | None) -> int | None:
    s = clean_str(s)
    return int(s) if s and s.isdigit() else None
