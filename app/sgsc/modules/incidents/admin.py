from __future__ import annotations

from datetime import date, datetime

from flask import Blueprint, abort, flash, redirect, render_template, request, url_for
from sqlalchemy.exc import SQLAlchemyError

from app.sgsc.db import db_session
from app.sgsc.forms import form_payload, form_values
from app.sgsc.lookups import form_options
from app.sgsc.modules.incidents.models import Incident
from app.sgsc.modules.incidents.service import (
    COLUMNS,
    FIELDS,
    FILTERS,
    REPORT_TITLE,
    create_incident,
    delete_incident,
    filtered_query,
    incident_detail,
    incident_row,
    update_incident,
    validate_incident_payload,
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

bp = Blueprint("incidents", __name__)

SCREEN = {"title": "Incidents", "bp": "incidents", "perm": "incidents", "url_args": {}, "has_detail": True}


# ---------- List ----------
@bp.get("/incidents")
@require_permission("incidents.view")
def list_view():
    s = db_session()
    filters = read_filters(FILTERS)
    page = request.args.get("page", 1, type=int)
    items, total, total_pages = paginate(filtered_query(s, filters), page)
    headers, data = format_rows_for_report([incident_row(i) for i in items], COLUMNS)

    def build_url(p):
        args = dict(request.args)
        args["page"] = p
        return url_for("incidents.list_view", **args)

    return render_template(
        "records/list.html",
        screen=SCREEN,
        filter_fields=FILTERS,
        filters=filters,
        options=form_options(s),
        headers=headers,
        rows=list(zip([i.id for i in items], data)),
        page=page,
        total=total,
        total_pages=total_pages,
        build_url=build_url,
    )


@bp.get("/incidents/export")
@require_permission("incidents.export")
def export():
    s = db_session()
    filters = read_filters(FILTERS)
    rows = [incident_row(i) for i in filtered_query(s, filters).all()]
    return export_response(
        s,
        title=REPORT_TITLE,
        rows=rows,
        columns=COLUMNS,
        filters=describe_for_export(FILTERS, filters, form_options(s)),
        entity_type="Incident",
    )


# ---------- Detail ----------
@bp.get("/incidents/<int:record_id>")
@require_permission("incidents.view")
def detail(record_id: int):
    s = db_session()
    incident = s.get(Incident, record_id)
    if not incident:
        abort(404)
    return render_template(
        "records/detail.html",
        screen=SCREEN,
        record_id=incident.id,
        heading=f"Incident #{incident.id}",
        items=incident_detail(incident),
        attachment_url=url_for("incidents.image", record_id=incident.id) if incident.image_key else None,
    )


# ---------- New ----------
@bp.get("/incidents/new")
@require_permission("incidents.create")
def new_get():
    s = db_session()
    return render_template(
        "records/form.html",
        screen=SCREEN,
        fields=FIELDS,
        values={
            "date": date.today().isoformat(),
            "incident_time": datetime.now().strftime("%H:%M"),
            "status": "pendiente",
        },
        options=form_options(s),
        record_id=None,
    )


@bp.post("/incidents/new")
@require_permission("incidents.create")
def new_post():
    s = db_session()
    payload = form_payload(FIELDS, request.form)
    errors = validate_incident_payload(payload)
    if errors:
        for e in errors:
            flash(e, "danger")
        return redirect(url_for("incidents.new_get"))

    try:
        image_key = store_upload("image", "incidents")
    except ValueError as e:
        flash(str(e), "danger")
        return redirect(url_for("incidents.new_get"))

    try:
        incident = create_incident(s, payload, current_user(), image_key=image_key)
        s.commit()
    except SQLAlchemyError as e:
        save_failed(s, "incident", e, discard_key=image_key)
        return redirect(url_for("incidents.new_get"))

    flash("Incident registered.", "success")
    return redirect(url_for("incidents.detail", record_id=incident.id))


# ---------- Edit ----------
@bp.get("/incidents/<int:record_id>/edit")
@require_permission("incidents.edit")
def edit_get(record_id: int):
    s = db_session()
    incident = s.get(Incident, record_id)
    if not incident:
        abort(404)
    return render_template(
        "records/form.html",
        screen=SCREEN,
        fields=FIELDS,
        values=form_values(incident, FIELDS),
        options=form_options(s),
        record_id=incident.id,
        attachment_url=url_for("incidents.image", record_id=incident.id) if incident.image_key else None,
    )


@bp.post("/incidents/<int:record_id>/edit")
@require_permission("incidents.edit")
def edit_post(record_id: int):
    s = db_session()
    incident = s.get(Incident, record_id)
    if not incident:
        abort(404)

    payload = form_payload(FIELDS, request.form)
    errors = validate_incident_payload(payload)
    if errors:
        for e in errors:
            flash(e, "danger")
        return redirect(url_for("incidents.edit_get", record_id=incident.id))

    try:
        image_key = store_upload("image", "incidents")
    except ValueError as e:
        flash(str(e), "danger")
        return redirect(url_for("incidents.edit_get", record_id=incident.id))

    try:
        update_incident(s, incident, payload, current_user(), image_key=image_key)
        s.commit()
    except SQLAlchemyError as e:
        save_failed(s, "incident", e, discard_key=image_key)
        return redirect(url_for("incidents.edit_get", record_id=record_id))

    flash("Incident updated.", "success")
    return redirect(url_for("incidents.detail", record_id=record_id))


# ---------- Delete ----------
@bp.post("/incidents/<int:record_id>/delete")
@require_permission("incidents.delete")
def delete_post(record_id: int):
    s = db_session()
    incident = s.get(Incident, record_id)
    if not incident:
        abort(404)
    try:
        delete_incident(s, incident, current_user())
        s.commit()
    except SQLAlchemyError as e:
        save_failed(s, "incident", e)
        return redirect(url_for("incidents.list_view"))
    flash("Incident deleted.", "success")
    return redirect(url_for("incidents.list_view"))


@bp.get("/incidents/<int:record_id>/image")
@require_permission("incidents.view")
def image(record_id: int):
    s = db_session()
    incident = s.get(Incident, record_id)
    if not incident:
        abort(404)
    return send_attachment(incident.image_key)
