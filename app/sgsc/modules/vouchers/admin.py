from __future__ import annotations

from datetime import date

from flask import Blueprint, abort, flash, redirect, render_template, request, url_for
from sqlalchemy.exc import SQLAlchemyError

from app.sgsc.db import db_session
from app.sgsc.forms import form_payload, form_values
from app.sgsc.lookups import form_options
from app.sgsc.modules.vouchers.models import Voucher
from app.sgsc.modules.vouchers.service import (
    COLUMNS,
    FIELDS,
    FILTERS,
    REPORT_TITLE,
    create_voucher,
    delete_voucher,
    filtered_query,
    totals_summary,
    update_voucher,
    validate_voucher_payload,
    voucher_detail,
    voucher_row,
    voucher_totals,
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

bp = Blueprint("vouchers", __name__)

SCREEN = {"title": "Vouchers", "bp": "vouchers", "perm": "vouchers", "url_args": {}, "has_detail": True}


# ---------- List ----------
@bp.get("/vouchers")
@require_permission("vouchers.view")
def list_view():
    s = db_session()
    filters = read_filters(FILTERS)
    page = request.args.get("page", 1, type=int)
    q = filtered_query(s, filters)
    items, total, total_pages = paginate(q, page)
    headers, data = format_rows_for_report([voucher_row(v) for v in items], COLUMNS)

    def build_url(p):
        args = dict(request.args)
        args["page"] = p
        return url_for("vouchers.list_view", **args)

    return render_template(
        "records/list.html",
        screen=SCREEN,
        filter_fields=FILTERS,
        filters=filters,
        options=form_options(s),
        headers=headers,
        rows=list(zip([v.id for v in items], data)),
        summary=totals_summary(voucher_totals(q.all())),
        page=page,
        total=total,
        total_pages=total_pages,
        build_url=build_url,
    )


@bp.get("/vouchers/export")
@require_permission("vouchers.export")
def export():
    s = db_session()
    filters = read_filters(FILTERS)
    rows = [voucher_row(v) for v in filtered_query(s, filters).all()]
    return export_response(
        s,
        title=REPORT_TITLE,
        rows=rows,
        columns=COLUMNS,
        filters=describe_for_export(FILTERS, filters, form_options(s)),
        entity_type="Voucher",
    )


# ---------- Detail ----------
@bp.get("/vouchers/<int:record_id>")
@require_permission("vouchers.view")
def detail(record_id: int):
    s = db_session()
    voucher = s.get(Voucher, record_id)
    if not voucher:
        abort(404)
    return render_template(
        "records/detail.html",
        screen=SCREEN,
        record_id=voucher.id,
        heading=f"Voucher {voucher.number}",
        items=voucher_detail(voucher),
        attachment_url=url_for("vouchers.attachment", record_id=voucher.id) if voucher.attachment_key else None,
    )


# ---------- New ----------
@bp.get("/vouchers/new")
@require_permission("vouchers.create")
def new_get():
    s = db_session()
    return render_template(
        "records/form.html",
        screen=SCREEN,
        fields=FIELDS,
        values={"issue_date": date.today().isoformat(), "currency": "PEN", "status": "pendiente", "voucher_type": "otros"},
        options=form_options(s),
        record_id=None,
    )


@bp.post("/vouchers/new")
@require_permission("vouchers.create")
def new_post():
    s = db_session()
    payload = form_payload(FIELDS, request.form)
    errors = validate_voucher_payload(s, payload)
    if errors:
        for e in errors:
            flash(e, "danger")
        return redirect(url_for("vouchers.new_get"))

    try:
        attachment_key = store_upload("attachment", "vouchers")
    except ValueError as e:
        flash(str(e), "danger")
        return redirect(url_for("vouchers.new_get"))

    try:
        voucher = create_voucher(s, payload, current_user(), attachment_key=attachment_key)
        s.commit()
    except SQLAlchemyError as e:
        save_failed(s, "voucher", e, discard_key=attachment_key)
        return redirect(url_for("vouchers.new_get"))

    flash(f"Voucher {voucher.number} registered.", "success")
    return redirect(url_for("vouchers.detail", record_id=voucher.id))


# ---------- Edit ----------
@bp.get("/vouchers/<int:record_id>/edit")
@require_permission("vouchers.edit")
def edit_get(record_id: int):
    s = db_session()
    voucher = s.get(Voucher, record_id)
    if not voucher:
        abort(404)
    return render_template(
        "records/form.html",
        screen=SCREEN,
        fields=FIELDS,
        values=form_values(voucher, FIELDS),
        options=form_options(s),
        record_id=voucher.id,
        attachment_url=url_for("vouchers.attachment", record_id=voucher.id) if voucher.attachment_key else None,
    )


@bp.post("/vouchers/<int:record_id>/edit")
@require_permission("vouchers.edit")
def edit_post(record_id: int):
    s = db_session()
    voucher = s.get(Voucher, record_id)
    if not voucher:
        abort(404)

    payload = form_payload(FIELDS, request.form)
    errors = validate_voucher_payload(s, payload, voucher_id=voucher.id)
    if errors:
        for e in errors:
            flash(e, "danger")
        return redirect(url_for("vouchers.edit_get", record_id=voucher.id))

    try:
        attachment_key = store_upload("attachment", "vouchers")
    except ValueError as e:
        flash(str(e), "danger")
        return redirect(url_for("vouchers.edit_get", record_id=voucher.id))

    try:
        update_voucher(s, voucher, payload, current_user(), attachment_key=attachment_key)
        s.commit()
    except SQLAlchemyError as e:
        save_failed(s, "voucher", e, discard_key=attachment_key)
        return redirect(url_for("vouchers.edit_get", record_id=record_id))

    flash("Voucher updated.", "success")
    return redirect(url_for("vouchers.detail", record_id=record_id))


# ---------- Delete ----------
@bp.post("/vouchers/<int:record_id>/delete")
@require_permission("vouchers.delete")
def delete_post(record_id: int):
    s = db_session()
    voucher = s.get(Voucher, record_id)
    if not voucher:
        abort(404)
    try:
        delete_voucher(s, voucher, current_user())
        s.commit()
    except SQLAlchemyError as e:
        save_failed(s, "voucher", e)
        return redirect(url_for("vouchers.list_view"))
    flash("Voucher deleted.", "success")
    return redirect(url_for("vouchers.list_view"))


@bp.get("/vouchers/<int:record_id>/attachment")
@require_permission("vouchers.view")
def attachment(record_id: int):
    s = db_session()
    voucher = s.get(Voucher, record_id)
    if not voucher:
        abort(404)
    return send_attachment(voucher.attachment_key)
