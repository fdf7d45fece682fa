from __future__ import annotations

from datetime import date

from flask import Blueprint, abort, flash, redirect, render_template, request, url_for
from sqlalchemy.exc import SQLAlchemyError

from app.sgsc.db import db_session
from app.sgsc.forms import form_payload, form_values
from app.sgsc.lookups import form_options
from app.sgsc.modules.booth_logs.models import BoothLog
from app.sgsc.modules.booth_logs.service import (
    COLUMNS,
    FIELDS,
    FILTERS,
    REPORT_TITLE,
    create_booth_log,
    delete_booth_log,
    filtered_query,
    booth_log_row,
    update_booth_log,
    validate_booth_log_payload,
)
from app.sgsc.rbac import require_permission
from app.sgsc.reports import format_rows_for_report
from app.sgsc.utils import current_user, describe_for_export, export_response, paginate, read_filters, save_failed

bp = Blueprint("booth_logs", __name__)

SCREEN = {"title": "Camera booth logs", "bp": "booth_logs", "perm": "booth_logs", "url_args": {}}


@bp.get("/booth-logs")
@require_permission("booth_logs.view")
def list_view():
    s = db_session()
    filters = read_filters(FILTERS)
    page = request.args.get("page", 1, type=int)
    items, total, total_pages = paginate(filtered_query(s, filters), page)
    headers, data = format_rows_for_report([booth_log_row(r) for r in items], COLUMNS)

    def build_url(p):
        args = dict(request.args)
        args["page"] = p
        return url_for("booth_logs.list_view", **args)

    return render_template(
        "records/list.html",
        screen=SCREEN,
        filter_fields=FILTERS,
        filters=filters,
        options=form_options(s),
        headers=headers,
        rows=list(zip([r.id for r in items], data)),
        page=page,
        total=total,
        total_pages=total_pages,
        build_url=build_url,
    )


@bp.get("/booth-logs/export")
@require_permission("booth_logs.export")
def export():
    s = db_session()
    filters = read_filters(FILTERS)
    rows = [booth_log_row(r) for r in filtered_query(s, filters).all()]
    return export_response(
        s,
        title=REPORT_TITLE,
        rows=rows,
        columns=COLUMNS,
        filters=describe_for_export(FILTERS, filters, form_options(s)),
        entity_type="BoothLog",
    )


@bp.get("/booth-logs/new")
@require_permission("booth_logs.create")
def new_get():
    s = db_session()
    return render_template(
        "records/form.html",
        screen=SCREEN,
        fields=FIELDS,
        values={
            "date": date.today().isoformat(),
            "camera_status": "operativo",
            "monitor_status": "operativo",
            "recording_status": "grabando",
        },
        options=form_options(s),
        record_id=None,
    )


@bp.post("/booth-logs/new")
@require_permission("booth_logs.create")
def new_post():
    s = db_session()
    payload = form_payload(FIELDS, request.form)
    errors = validate_booth_log_payload(payload)
    if errors:
        for e in errors:
            flash(e, "danger")
        return redirect(url_for("booth_logs.new_get"))

    try:
        create_booth_log(s, payload, current_user())
        s.commit()
    except SQLAlchemyError as e:
        save_failed(s, "booth log", e)
        return redirect(url_for("booth_logs.new_get"))

    flash("Booth log registered.", "success")
    return redirect(url_for("booth_logs.list_view"))


@bp.get("/booth-logs/<int:record_id>/edit")
@require_permission("booth_logs.edit")
def edit_get(record_id: int):
    s = db_session()
    booth_log = s.get(BoothLog, record_id)
    if not booth_log:
        abort(404)
    return render_template(
        "records/form.html",
        screen=SCREEN,
        fields=FIELDS,
        values=form_values(booth_log, FIELDS),
        options=form_options(s),
        record_id=booth_log.id,
    )


@bp.post("/booth-logs/<int:record_id>/edit")
@require_permission("booth_logs.edit")
def edit_post(record_id: int):
    s = db_session()
    booth_log = s.get(BoothLog, record_id)
    if not booth_log:
        abort(404)

    payload = form_payload(FIELDS, request.form)
    errors = validate_booth_log_payload(payload)
    if errors:
        for e in errors:
            flash(e, "danger")
        return redirect(url_for("booth_logs.edit_get", record_id=record_id))

    try:
        update_booth_log(s, booth_log, payload, current_user())
        s.commit()
    except SQLAlchemyError as e:
        save_failed(s, "booth log", e)
        return redirect(url_for("booth_logs.edit_get", record_id=record_id))

    flash("Booth log updated.", "success")
    return redirect(url_for("booth_logs.list_view"))


@bp.post("/booth-logs/<int:record_id>/delete")
@require_permission("booth_logs.delete")
def delete_post(record_id: int):
    s = db_session()
    booth_log = s.get(BoothLog, record_id)
    if not booth_log:
        abort(404)
    try:
        delete_booth_log(s, booth_log, current_user())
        s.commit()
    except SQLAlchemyError as e:
        save_failed(s, "booth log", e)
        return redirect(url_for("booth_logs.list_view"))
    flash("Booth log deleted.", "success")
    return redirect(url_for("booth_logs.list_view"))
