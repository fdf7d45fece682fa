from __future__ import annotations

from datetime import date

from flask import Blueprint, abort, flash, redirect, render_template, request, url_for
from sqlalchemy.exc import SQLAlchemyError

from app.sgsc.db import db_session
from app.sgsc.forms import form_payload, form_values
from app.sgsc.lookups import form_options
from app.sgsc.modules.patrols.models import Patrol
from app.sgsc.modules.patrols.service import (
    COLUMNS,
    FIELDS,
    FILTERS,
    REPORT_TITLE,
    create_patrol,
    delete_patrol,
    filtered_query,
    patrol_row,
    update_patrol,
    validate_patrol_payload,
)
from app.sgsc.rbac import require_permission
from app.sgsc.reports import format_rows_for_report
from app.sgsc.utils import (
    current_user,
    describe_for_export,
    export_response,
    paginate,
    read_filters,
    save_failed,
    send_attachment,
    store_upload,
)

bp = Blueprint("patrols", __name__)

SCREEN = {"title": "Patrols", "bp": "patrols", "perm": "patrols", "url_args": {}}


@bp.get("/patrols")
@require_permission("patrols.view")
def list_view():
    s = db_session()
    filters = read_filters(FILTERS)
    page = request.args.get("page", 1, type=int)
    items, total, total_pages = paginate(filtered_query(s, filters), page)
    headers, data = format_rows_for_report([patrol_row(p) for p in items], COLUMNS)

    def build_url(p):
        args = dict(request.args)
        args["page"] = p
        return url_for("patrols.list_view", **args)

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


@bp.get("/patrols/export")
@require_permission("patrols.export")
def export():
    s = db_session()
    filters = read_filters(FILTERS)
    rows = [patrol_row(p) for p in filtered_query(s, filters).all()]
    return export_response(
        s,
        title=REPORT_TITLE,
        rows=rows,
        columns=COLUMNS,
        filters=describe_for_export(FILTERS, filters, form_options(s)),
        entity_type="Patrol",
    )


@bp.get("/patrols/new")
@require_permission("patrols.create")
def new_get():
    s = db_session()
    return render_template(
        "records/form.html",
        screen=SCREEN,
        fields=FIELDS,
        values={"date": date.today().isoformat(), "status": "en_curso"},
        options=form_options(s),
        record_id=None,
    )


@bp.post("/patrols/new")
@require_permission("patrols.create")
def new_post():
    s = db_session()
    payload = form_payload(FIELDS, request.form)
    errors = validate_patrol_payload(payload)
    if errors:
        for e in errors:
            flash(e, "danger")
        return redirect(url_for("patrols.new_get"))

    try:
        image_key = store_upload("image", "patrols")
    except ValueError as e:
        flash(str(e), "danger")
        return redirect(url_for("patrols.new_get"))

    try:
        create_patrol(s, payload, current_user(), image_key=image_key)
        s.commit()
    except SQLAlchemyError as e:
        save_failed(s, "patrol", e, discard_key=image_key)
        return redirect(url_for("patrols.new_get"))

    flash("Patrol registered.", "success")
    return redirect(url_for("patrols.list_view"))


@bp.get("/patrols/<int:record_id>/edit")
@require_permission("patrols.edit")
def edit_get(record_id: int):
    s = db_session()
    patrol = s.get(Patrol, record_id)
    if not patrol:
        abort(404)
    attachment_url = url_for("patrols.image", record_id=patrol.id) if patrol.image_key else None
    return render_template(
        "records/form.html",
        screen=SCREEN,
        fields=FIELDS,
        values=form_values(patrol, FIELDS),
        options=form_options(s),
        record_id=patrol.id,
        attachment_url=attachment_url,
    )


@bp.post("/patrols/<int:record_id>/edit")
@require_permission("patrols.edit")
def edit_post(record_id: int):
    s = db_session()
    patrol = s.get(Patrol, record_id)
    if not patrol:
        abort(404)

    payload = form_payload(FIELDS, request.form)
    errors = validate_patrol_payload(payload)
    if errors:
        for e in errors:
            flash(e, "danger")
        return redirect(url_for("patrols.edit_get", record_id=patrol.id))

    try:
        image_key = store_upload("image", "patrols")
    except ValueError as e:
        flash(str(e), "danger")
        return redirect(url_for("patrols.edit_get", record_id=patrol.id))

    try:
        update_patrol(s, patrol, payload, current_user(), image_key=image_key)
        s.commit()
    except SQLAlchemyError as e:
        save_failed(s, "patrol", e, discard_key=image_key)
        return redirect(url_for("patrols.edit_get", record_id=record_id))

    flash("Patrol updated.", "success")
    return redirect(url_for("patrols.list_view"))


@bp.post("/patrols/<int:record_id>/delete")
@require_permission("patrols.delete")
def delete_post(record_id: int):
    s = db_session()
    patrol = s.get(Patrol, record_id)
    if not patrol:
        abort(404)
    try:
        delete_patrol(s, patrol, current_user())
        s.commit()
    except SQLAlchemyError as e:
        save_failed(s, "patrol", e)
        return redirect(url_for("patrols.list_view"))
    flash("Patrol deleted.", "success")
    return redirect(url_for("patrols.list_view"))


@bp.get("/patrols/<int:record_id>/image")
@require_permission("patrols.view")
def image(record_id: int):
    s = db_session()
    patrol = s.get(Patrol, record_id)
    if not patrol:
        abort(404)
    return send_attachment(patrol.image_key)
