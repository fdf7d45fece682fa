"""
Helpers shared by the screen blueprints: current user, list filters,
pagination, exports, attachments and save-failure handling.
"""

from __future__ import annotations

import logging
import mimetypes
from typing import Any

from flask import abort, current_app, flash, g, request, send_file
from sqlalchemy.orm import Query, Session

from app.sgsc.audit import record_event
from app.sgsc.forms import Field
from app.sgsc.models import User
from app.sgsc.reports import Column, generate_filtered_report, send_report
from app.sgsc.storage import save_attachment, storage_from_config

logger = logging.getLogger(__name__)

PER_PAGE = 50


def current_user() -> User:
    u = getattr(g, "current_user", None)
    if not u:
        raise RuntimeError("No current user")
    return u


def read_filters(fields: tuple[Field, ...]) -> dict[str, str]:
    return {f.name: (request.args.get(f.name) or "").strip() for f in fields}


def describe_for_export(
    fields: tuple[Field, ...], values: dict[str, str], options: dict[str, list[tuple[str, str]]] | None = None
) -> dict[str, str]:
    """Filter values keyed by label, with codes and ids replaced by their display text."""
    out: dict[str, str] = {}
    for f in fields:
        v = values.get(f.name) or ""
        if not v:
            continue
        pairs = f.choices or (options or {}).get(f.options or "", [])
        out[f.label] = dict(pairs).get(v, v)
    return out


def paginate(q: Query, page: int, per_page: int = PER_PAGE) -> tuple[list[Any], int, int]:
    page = max(page, 1)
    total = q.count()
    items = q.offset((page - 1) * per_page).limit(per_page).all()
    total_pages = max((total + per_page - 1) // per_page, 1)
    return items, total, total_pages


def export_response(
    s: Session,
    *,
    title: str,
    rows: list[dict[str, Any]],
    columns: tuple[Column, ...],
    filters: dict[str, str],
    entity_type: str,
):
    fmt = (request.args.get("format") or "pdf").strip().lower()
    user = current_user()
    generated_by = user.email or current_app.config.get("REPORT_GENERATED_BY") or "SGSC System"
    try:
        report = generate_filtered_report(title, rows, columns, filters, fmt, generated_by=generated_by)
    except ValueError as e:
        abort(400, description=str(e))
    record_event(
        s,
        actor=user,
        action="report.export",
        entity_type=entity_type,
        metadata={"format": fmt, "filename": report.filename, "rows": len(rows), "filters": report.metadata["filters"]},
    )
    s.commit()
    return send_report(report)


def save_failed(s: Session, what: str, exc: Exception, *, discard_key: str | None = None) -> None:
    """
    Roll back a failed write and show the error to the user.
    `discard_key` is an attachment stored for the failed write; it is removed.
    """
    s.rollback()
    logger.exception("Error saving %s", what)
    if discard_key:
        try:
            storage_from_config(current_app.config).delete(discard_key)
        except Exception:
            logger.exception("Could not remove orphaned attachment %s", discard_key)
    flash(f"Could not save {what}: {exc.__class__.__name__}. No changes were made.", "danger")


def store_upload(field_name: str, prefix: str) -> str | None:
    """
    Save the uploaded file in `field_name` (if any) and return its storage key.
    Raises ValueError for a disallowed or empty file.
    """
    f = request.files.get(field_name)
    if not f or not f.filename:
        return None
    storage = storage_from_config(current_app.config)
    return save_attachment(storage, f, prefix)


def send_attachment(key: str | None):
    if not key:
        abort(404)
    storage = storage_from_config(current_app.config)
    if not storage.exists(key):
        abort(404)
    filename = key.rsplit("/", 1)[-1].split("-", 1)[-1]
    mimetype = mimetypes.guess_type(filename)[0] or "application/octet-stream"
    return send_file(storage.open(key), mimetype=mimetype, as_attachment=False, download_name=filename)
