from __future__ import annotations

from datetime import date

from flask import Blueprint, abort, flash, redirect, render_template, request, url_for
from sqlalchemy.exc import SQLAlchemyError

from app.sgsc.db import db_session
from app.sgsc.forms import form_payload, form_values
from app.sgsc.lookups import form_options
from app.sgsc.modules.attendance.models import Attendance
from app.sgsc.modules.attendance.service import (
    COLUMNS,
    FIELDS,
    FILTERS,
    REPORT_TITLE,
    create_attendance,
    delete_attendance,
    filtered_query,
    attendance_row,
    update_attendance,
    validate_attendance_payload,
)
from app.sgsc.rbac import require_permission
from app.sgsc.reports import format_rows_for_report
from app.sgsc.utils import current_user, describe_for_export, export_response, paginate, read_filters, save_failed

bp = Blueprint("attendance", __name__)

SCREEN = {"title": "Attendance", "bp": "attendance", "perm": "attendance", "url_args": {}}


@bp.get("/attendance")
@require_permission("attendance.view")
def list_view():
    s = db_session()
    filters = read_filters(FILTERS)
    page = request.args.get("page", 1, type=int)
    items, total, total_pages = paginate(filtered_query(s, filters), page)
    headers, data = format_rows_for_report([attendance_row(r) for r in items], COLUMNS)

    def build_url(p):
        args = dict(request.args)
        args["page"] = p
        return url_for("attendance.list_view", **args)

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


@bp.get("/attendance/export")
@require_permission("attendance.export")
def export():
    s = db_session()
    filters = read_filters(FILTERS)
    rows = [attendance_row(r) for r in filtered_query(s, filters).all()]
    return export_response(
        s,
        title=REPORT_TITLE,
        rows=rows,
        columns=COLUMNS,
        filters=describe_for_export(FILTERS, filters, form_options(s)),
        entity_type="Attendance",
    )


@bp.get("/attendance/new")
@require_permission("attendance.create")
def new_get():
    s = db_session()
    return render_template(
        "records/form.html",
        screen=SCREEN,
        fields=FIELDS,
        values={"date": date.today().isoformat(), "status": "asistio_firmo"},
        options=form_options(s),
        record_id=None,
    )


@bp.post("/attendance/new")
@require_permission("attendance.create")
def new_post():
    s = db_session()
    payload = form_payload(FIELDS, request.form)
    errors = validate_attendance_payload(payload)
    if errors:
        for e in errors:
            flash(e, "danger")
        return redirect(url_for("attendance.new_get"))

    try:
        create_attendance(s, payload, current_user())
        s.commit()
    except SQLAlchemyError as e:
        save_failed(s, "attendance record", e)
        return redirect(url_for("attendance.new_get"))

    flash("Attendance record registered.", "success")
    return redirect(url_for("attendance.list_view"))


@bp.get("/attendance/<int:record_id>/edit")
@require_permission("attendance.edit")
def edit_get(record_id: int):
    s = db_session()
    attendance = s.get(Attendance, record_id)
    if not attendance:
        abort(404)
    return render_template(
        "records/form.html",
        screen=SCREEN,
        fields=FIELDS,
        values=form_values(attendance, FIELDS),
        options=form_options(s),
        record_id=attendance.id,
    )


@bp.post("/attendance/<int:record_id>/edit")
@require_permission("attendance.edit")
def edit_post(record_id: int):
    s = db_session()
    attendance = s.get(Attendance, record_id)
    if not attendance:
        abort(404)

    payload = form_payload(FIELDS, request.form)
    errors = validate_attendance_payload(payload)
    if errors:
        for e in errors:
            flash(e, "danger")
        return redirect(url_for("attendance.edit_get", record_id=record_id))

    try:
        update_attendance(s, attendance, payload, current_user())
        s.commit()
    except SQLAlchemyError as e:
        save_failed(s, "attendance record", e)
        return redirect(url_for("attendance.edit_get", record_id=record_id))

    flash("Attendance record updated.", "success")
    return redirect(url_for("attendance.list_view"))


@bp.post("/attendance/<int:record_id>/delete")
@require_permission("attendance.delete")
def delete_post(record_id: int):
    s = db_session()
    attendance = s.get(Attendance, record_id)
    if not attendance:
        abort(404)
    try:
        delete_attendance(s, attendance, current_user())
        s.commit()
    except SQLAlchemyError as e:
        save_failed(s, "attendance record", e)
        return redirect(url_for("attendance.list_view"))
    flash("Attendance record deleted.", "success")
    return redirect(url_for("attendance.list_view"))
