from __future__ import annotations

from datetime import date

from flask import Blueprint, abort, flash, redirect, render_template, request, url_for
from sqlalchemy.exc import SQLAlchemyError

from app.sgsc.db import db_session
from app.sgsc.forms import form_payload, form_values
from app.sgsc.lookups import form_options
from app.sgsc.modules.mobility.models import MobilityLog
from app.sgsc.modules.mobility.service import (
    COLUMNS,
    FIELDS,
    FILTERS,
    REPORT_TITLE,
    create_mobility_log,
    delete_mobility_log,
    filtered_query,
    mobility_row,
    update_mobility_log,
    validate_mobility_payload,
)
from app.sgsc.rbac import require_permission
from app.sgsc.reports import format_rows_for_report
from app.sgsc.utils import current_user, describe_for_export, export_response, paginate, read_filters, save_failed

bp = Blueprint("mobility", __name__)

SCREEN = {"title": "Mobility", "bp": "mobility", "perm": "mobility", "url_args": {}}


@bp.get("/mobility")
@require_permission("mobility.view")
def list_view():
    s = db_session()
    filters = read_filters(FILTERS)
    page = request.args.get("page", 1, type=int)
    items, total, total_pages = paginate(filtered_query(s, filters), page)
    headers, data = format_rows_for_report([mobility_row(r) for r in items], COLUMNS)

    def build_url(p):
        args = dict(request.args)
        args["page"] = p
        return url_for("mobility.list_view", **args)

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


@bp.get("/mobility/export")
@require_permission("mobility.export")
def export():
    s = db_session()
    filters = read_filters(FILTERS)
    rows = [mobility_row(r) for r in filtered_query(s, filters).all()]
    return export_response(
        s,
        title=REPORT_TITLE,
        rows=rows,
        columns=COLUMNS,
        filters=describe_for_export(FILTERS, filters, form_options(s)),
        entity_type="MobilityLog",
    )


@bp.get("/mobility/new")
@require_permission("mobility.create")
def new_get():
    s = db_session()
    return render_template(
        "records/form.html",
        screen=SCREEN,
        fields=FIELDS,
        values={"date": date.today().isoformat(), "vehicle_condition_out": "bueno"},
        options=form_options(s),
        record_id=None,
    )


@bp.post("/mobility/new")
@require_permission("mobility.create")
def new_post():
    s = db_session()
    payload = form_payload(FIELDS, request.form)
    errors = validate_mobility_payload(payload)
    if errors:
        for e in errors:
            flash(e, "danger")
        return redirect(url_for("mobility.new_get"))

    try:
        create_mobility_log(s, payload, current_user())
        s.commit()
    except SQLAlchemyError as e:
        save_failed(s, "mobility log", e)
        return redirect(url_for("mobility.new_get"))

    flash("Mobility log registered.", "success")
    return redirect(url_for("mobility.list_view"))


@bp.get("/mobility/<int:record_id>/edit")
@require_permission("mobility.edit")
def edit_get(record_id: int):
    s = db_session()
    log = s.get(MobilityLog, record_id)
    if not log:
        abort(404)
    return render_template(
        "records/form.html",
        screen=SCREEN,
        fields=FIELDS,
        values=form_values(log, FIELDS),
        options=form_options(s),
        record_id=log.id,
    )


@bp.post("/mobility/<int:record_id>/edit")
@require_permission("mobility.edit")
def edit_post(record_id: int):
    s = db_session()
    log = s.get(MobilityLog, record_id)
    if not log:
        abort(404)

    payload = form_payload(FIELDS, request.form)
    errors = validate_mobility_payload(payload)
    if errors:
        for e in errors:
            flash(e, "danger")
        return redirect(url_for("mobility.edit_get", record_id=record_id))

    try:
        update_mobility_log(s, log, payload, current_user())
        s.commit()
    except SQLAlchemyError as e:
        save_failed(s, "mobility log", e)
        return redirect(url_for("mobility.edit_get", record_id=record_id))

    flash("Mobility log updated.", "success")
    return redirect(url_for("mobility.list_view"))


@bp.post("/mobility/<int:record_id>/delete")
@require_permission("mobility.delete")
def delete_post(record_id: int):
    s = db_session()
    log = s.get(MobilityLog, record_id)
    if not log:
        abort(404)
    try:
        delete_mobility_log(s, log, current_user())
        s.commit()
    except SQLAlchemyError as e:
        save_failed(s, "mobility log", e)
        return redirect(url_for("mobility.list_view"))
    flash("Mobility log deleted.", "success")
    return redirect(url_for("mobility.list_view"))
