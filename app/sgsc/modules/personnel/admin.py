from __future__ import annotations

from flask import Blueprint, abort, flash, redirect, render_template, request, url_for
from sqlalchemy.exc import SQLAlchemyError

from app.sgsc.db import db_session
from app.sgsc.forms import form_payload, form_values
from app.sgsc.lookups import form_options
from app.sgsc.modules.personnel.models import Personnel
from app.sgsc.modules.personnel.service import (
    COLUMNS,
    FIELDS,
    FILTERS,
    REPORT_TITLE,
    create_personnel,
    delete_personnel,
    filtered_query,
    personnel_row,
    update_personnel,
    validate_personnel_payload,
)
from app.sgsc.rbac import require_permission
from app.sgsc.reports import format_rows_for_report
from app.sgsc.utils import current_user, describe_for_export, export_response, paginate, read_filters, save_failed

bp = Blueprint("personnel", __name__)

SCREEN = {"title": "Personnel", "bp": "personnel", "perm": "personnel", "url_args": {}}


# ---------- List ----------
@bp.get("/personnel")
@require_permission("personnel.view")
def list_view():
    s = db_session()
    filters = read_filters(FILTERS)
    page = request.args.get("page", 1, type=int)
    items, total, total_pages = paginate(filtered_query(s, filters), page)
    headers, data = format_rows_for_report([personnel_row(p) for p in items], COLUMNS)

    def build_url(p):
        args = dict(request.args)
        args["page"] = p
        return url_for("personnel.list_view", **args)

    return render_template(
        "records/list.html",
        screen=SCREEN,
        filter_fields=FILTERS,
        filters=filters,
        options=form_options(s),
        headers=headers,
        rows=list(zip([p.id for p in items], data)),
        page=page,
        total=total,
        total_pages=total_pages,
        build_url=build_url,
    )


@bp.get("/personnel/export")
@require_permission("personnel.export")
def export():
    s = db_session()
    filters = read_filters(FILTERS)
    rows = [personnel_row(p) for p in filtered_query(s, filters).all()]
    return export_response(
        s,
        title=REPORT_TITLE,
        rows=rows,
        columns=COLUMNS,
        filters=describe_for_export(FILTERS, filters, form_options(s)),
        entity_type="Personnel",
    )


# ---------- New ----------
@bp.get("/personnel/new")
@require_permission("personnel.create")
def new_get():
    s = db_session()
    return render_template(
        "records/form.html",
        screen=SCREEN,
        fields=FIELDS,
        values={"status": "activo"},
        options=form_options(s),
        record_id=None,
    )


@bp.post("/personnel/new")
@require_permission("personnel.create")
def new_post():
    s = db_session()
    payload = form_payload(FIELDS, request.form)
    errors = validate_personnel_payload(s, payload)
    if errors:
        for e in errors:
            flash(e, "danger")
        return redirect(url_for("personnel.new_get"))

    try:
        p = create_personnel(s, payload, current_user())
        s.commit()
    except SQLAlchemyError as e:
        save_failed(s, "staff member", e)
        return redirect(url_for("personnel.new_get"))

    flash(f"Staff member {p.full_name} registered.", "success")
    return redirect(url_for("personnel.list_view"))


# ---------- Edit ----------
@bp.get("/personnel/<int:record_id>/edit")
@require_permission("personnel.edit")
def edit_get(record_id: int):
    s = db_session()
    p = s.get(Personnel, record_id)
    if not p:
        abort(404)
    return render_template(
        "records/form.html",
        screen=SCREEN,
        fields=FIELDS,
        values=form_values(p, FIELDS),
        options=form_options(s),
        record_id=p.id,
    )


@bp.post("/personnel/<int:record_id>/edit")
@require_permission("personnel.edit")
def edit_post(record_id: int):
    s = db_session()
    p = s.get(Personnel, record_id)
    if not p:
        abort(404)

    payload = form_payload(FIELDS, request.form)
    errors = validate_personnel_payload(s, payload, personnel_id=p.id)
    if errors:
        for e in errors:
            flash(e, "danger")
        return redirect(url_for("personnel.edit_get", record_id=p.id))

    try:
        update_personnel(s, p, payload, current_user())
        s.commit()
    except SQLAlchemyError as e:
        save_failed(s, "staff member", e)
        return redirect(url_for("personnel.edit_get", record_id=record_id))

    flash("Staff member updated.", "success")
    return redirect(url_for("personnel.list_view"))


# ---------- Delete ----------
@bp.post("/personnel/<int:record_id>/delete")
@require_permission("personnel.delete")
def delete_post(record_id: int):
    s = db_session()
    p = s.get(Personnel, record_id)
    if not p:
        abort(404)
    try:
        delete_personnel(s, p, current_user())
        s.commit()
    except SQLAlchemyError as e:
        save_failed(s, "staff member", e)
        return redirect(url_for("personnel.list_view"))
    flash("Staff member deleted.", "success")
    return redirect(url_for("personnel.list_view"))
