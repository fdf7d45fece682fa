#!/usr/bin/env python3
"""
Bulk import of staff members from an Excel roster.

Usage:
    python scripts/import_personnel.py "Padron Serenazgo.xlsx"

The first row is the header; columns are matched by name (DNI, Nombres,
Apellidos, Cargo, Estado, Sector, Turno). Sectors are created on first
sight; shifts must already exist. Rows whose DNI is already registered are
skipped, so the import is safe to re-run.
"""
from __future__ import annotations

import os
import re
import sys
from pathlib import Path

# Ensure repo root is on sys.path
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from openpyxl import load_workbook
from sqlalchemy.orm import Session

from app.sgsc.audit import record_event
from app.sgsc.constants import PERSONNEL_STATUSES, POSITIONS
from app.sgsc.models import Personnel, Sector, Shift, User
from app.sgsc.db import url_session_scope

DNI_RE = re.compile(r"^\d{8}$")

HEADER_MAPPINGS = {
    "dni": ["dni", "documento", "doc"],
    "first_names": ["nombres", "nombre", "first names", "first_names"],
    "last_names": ["apellidos", "apellido", "last names", "last_names"],
    "position": ["cargo", "position", "puesto"],
    "status": ["estado", "status"],
    "sector": ["sector"],
    "shift": ["turno", "shift"],
}


def _normalize_text(s) -> str:
    return ("" if s is None else str(s)).strip()


def _normalize_dni(val) -> str:
    # Excel stores DNIs typed as numbers without leading zeros.
    if isinstance(val, (int, float)):
        return str(int(val)).zfill(8)
    return _normalize_text(val)


def _match_code(choices, raw: str) -> str | None:
    raw = raw.strip().lower()
    if not raw:
        return None
    for code, label in choices:
        if raw in (code.lower(), label.lower()):
            return code
    return None


def map_headers(headers: list) -> dict[str, int]:
    col_map: dict[str, int] = {}
    for idx, h in enumerate(headers):
        name = _normalize_text(h).lower()
        for field, aliases in HEADER_MAPPINGS.items():
            if name in aliases and field not in col_map:
                col_map[field] = idx
    return col_map


def read_personnel_sheet(filepath: str) -> list[dict[str, str]]:
    wb = load_workbook(filepath, read_only=True, data_only=True)
    ws = wb.active
    rows = ws.iter_rows(values_only=True)
    headers = list(next(rows, []) or [])
    col_map = map_headers(headers)

    out: list[dict[str, str]] = []
    for row in rows:
        if not row or all(v is None for v in row):
            continue
        record: dict[str, str] = {}
        for field, idx in col_map.items():
            val = row[idx] if idx < len(row) else None
            record[field] = _normalize_dni(val) if field == "dni" else _normalize_text(val)
        out.append(record)
    wb.close()
    return out


def import_personnel_rows(s: Session, rows: list[dict[str, str]], user: User | None) -> dict:
    created = 0
    skipped = 0
    errors: list[str] = []
    sectors = {sec.name.lower(): sec for sec in s.query(Sector).all()}
    shifts = {sh.name.lower(): sh for sh in s.query(Shift).all()}
    seen: set[str] = set()

    for line, r in enumerate(rows, start=2):
        dni = r.get("dni") or ""
        if not DNI_RE.match(dni):
            errors.append(f"Row {line}: invalid DNI '{dni}'")
            continue
        if not r.get("first_names") or not r.get("last_names"):
            errors.append(f"Row {line}: names are required")
            continue
        if dni in seen or s.query(Personnel).filter(Personnel.dni == dni).one_or_none():
            skipped += 1
            continue
        seen.add(dni)

        sector = None
        sector_name = r.get("sector") or ""
        if sector_name:
            sector = sectors.get(sector_name.lower())
            if sector is None:
                sector = Sector(name=sector_name)
                s.add(sector)
                sectors[sector_name.lower()] = sector

        shift = shifts.get((r.get("shift") or "").lower())
        if r.get("shift") and shift is None:
            errors.append(f"Row {line}: unknown shift '{r['shift']}' (left empty)")

        p = Personnel(
            dni=dni,
            first_names=r["first_names"],
            last_names=r["last_names"],
            position=_match_code(POSITIONS, r.get("position") or ""),
            status=_match_code(PERSONNEL_STATUSES, r.get("status") or "") or "activo",
            sector=sector,
            shift=shift,
        )
        s.add(p)
        created += 1

    s.flush()
    record_event(
        s,
        actor=user,
        action="personnel.import",
        entity_type="Personnel",
        metadata={"created": created, "skipped": skipped, "errors": len(errors)},
    )
    return {"created": created, "skipped": skipped, "errors": errors}


def main() -> None:
    if len(sys.argv) < 2:
        print("Usage: python scripts/import_personnel.py <roster.xlsx>")
        sys.exit(2)
    filepath = sys.argv[1]
    if not os.path.exists(filepath):
        print(f"ERROR: File not found: {filepath}")
        sys.exit(1)

    database_url = os.environ.get("DATABASE_URL") or "sqlite:///sgsc.db"
    admin_email = (os.environ.get("ADMIN_EMAIL") or "admin@sgsc.local").strip().lower()

    rows = read_personnel_sheet(filepath)
    print(f"Read {len(rows)} row(s) from {filepath}")
    with url_session_scope(database_url) as s:
        admin_user = s.query(User).filter(User.email == admin_email).one_or_none()
        result = import_personnel_rows(s, rows, admin_user)

    print(f"Personnel: created={result['created']}, skipped={result['skipped']}")
    for err in result["errors"][:20]:
        print(f"  {err}")


if __name__ == "__main__":
    main()
