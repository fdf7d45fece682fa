from __future__ import annotations

from flask import Blueprint, abort, flash, g, redirect, render_template, request, url_for
from sqlalchemy.exc import SQLAlchemyError

from app.sgsc.db import db_session
from app.sgsc.forms import form_payload, form_values
from app.sgsc.lookups import form_options
from app.sgsc.modules.catalogs.service import (
    KINDS,
    CatalogKind,
    create_entry,
    delete_entry,
    get_kind,
    list_query,
    update_entry,
    validate_catalog_payload,
)
from app.sgsc.rbac import check_permission, require_login, user_has_permission
from app.sgsc.reports import format_rows_for_report
from app.sgsc.utils import current_user, export_response, paginate, save_failed

bp = Blueprint("catalogs", __name__)


def _kind_or_404(kind_key: str, action: str) -> CatalogKind:
    kind = get_kind(kind_key)
    if kind is None:
        abort(404)
    check_permission(kind.perm(action))
    return kind


def _screen(kind: CatalogKind) -> dict:
    return {"title": kind.title, "bp": "catalogs", "perm": kind.perm_prefix, "url_args": {"kind": kind.key}}


@bp.get("/catalogs")
@require_login
def index():
    visible = [k for k in KINDS.values() if user_has_permission(g.current_user, k.perm("view"))]
    if not visible:
        check_permission("catalogs.view")
    return redirect(url_for("catalogs.list_view", kind=visible[0].key))


# ---------- List ----------
@bp.get("/catalogs/<kind>")
@require_login
def list_view(kind: str):
    k = _kind_or_404(kind, "view")
    s = db_session()
    page = request.args.get("page", 1, type=int)
    items, total, total_pages = paginate(list_query(s, k), page)
    headers, data = format_rows_for_report([k.to_row(r) for r in items], k.columns)

    def build_url(p):
        args = dict(request.args)
        args["page"] = p
        return url_for("catalogs.list_view", kind=k.key, **args)

    return render_template(
        "records/list.html",
        screen=_screen(k),
        catalog_kinds=KINDS.values(),
        filter_fields=(),
        filters={},
        options={},
        headers=headers,
        rows=list(zip([r.id for r in items], data)),
        page=page,
        total=total,
        total_pages=total_pages,
        build_url=build_url,
    )


@bp.get("/catalogs/<kind>/export")
@require_login
def export(kind: str):
    k = _kind_or_404(kind, "export")
    s = db_session()
    rows = [k.to_row(r) for r in list_query(s, k).all()]
    return export_response(
        s,
        title=k.title,
        rows=rows,
        columns=k.columns,
        filters={},
        entity_type=k.model.__name__,
    )


# ---------- New ----------
@bp.get("/catalogs/<kind>/new")
@require_login
def new_get(kind: str):
    k = _kind_or_404(kind, "create")
    s = db_session()
    return render_template(
        "records/form.html",
        screen=_screen(k),
        fields=k.fields,
        values={"status": "operativo"} if k.key == "vehicles" else {},
        options=form_options(s),
        record_id=None,
    )


@bp.post("/catalogs/<kind>/new")
@require_login
def new_post(kind: str):
    k = _kind_or_404(kind, "create")
    s = db_session()
    payload = form_payload(k.fields, request.form)
    errors = validate_catalog_payload(s, k, payload)
    if errors:
        for e in errors:
            flash(e, "danger")
        return redirect(url_for("catalogs.new_get", kind=k.key))

    try:
        create_entry(s, k, payload, current_user())
        s.commit()
    except SQLAlchemyError as e:
        save_failed(s, k.singular, e)
        return redirect(url_for("catalogs.new_get", kind=k.key))

    flash(f"{k.singular.capitalize()} created.", "success")
    return redirect(url_for("catalogs.list_view", kind=k.key))


# ---------- Edit ----------
@bp.get("/catalogs/<kind>/<int:record_id>/edit")
@require_login
def edit_get(kind: str, record_id: int):
    k = _kind_or_404(kind, "edit")
    s = db_session()
    entry = s.get(k.model, record_id)
    if not entry:
        abort(404)
    return render_template(
        "records/form.html",
        screen=_screen(k),
        fields=k.fields,
        values=form_values(entry, k.fields),
        options=form_options(s),
        record_id=entry.id,
    )


@bp.post("/catalogs/<kind>/<int:record_id>/edit")
@require_login
def edit_post(kind: str, record_id: int):
    k = _kind_or_404(kind, "edit")
    s = db_session()
    entry = s.get(k.model, record_id)
    if not entry:
        abort(404)

    payload = form_payload(k.fields, request.form)
    errors = validate_catalog_payload(s, k, payload, record_id=entry.id)
    if errors:
        for e in errors:
            flash(e, "danger")
        return redirect(url_for("catalogs.edit_get", kind=k.key, record_id=record_id))

    try:
        update_entry(s, k, entry, payload, current_user())
        s.commit()
    except SQLAlchemyError as e:
        save_failed(s, k.singular, e)
        return redirect(url_for("catalogs.edit_get", kind=k.key, record_id=record_id))

    flash(f"{k.singular.capitalize()} updated.", "success")
    return redirect(url_for("catalogs.list_view", kind=k.key))


# ---------- Delete ----------
@bp.post("/catalogs/<kind>/<int:record_id>/delete")
@require_login
def delete_post(kind: str, record_id: int):
    k = _kind_or_404(kind, "delete")
    s = db_session()
    entry = s.get(k.model, record_id)
    if not entry:
        abort(404)
    try:
        delete_entry(s, k, entry, current_user())
        s.commit()
    except SQLAlchemyError as e:
        save_failed(s, k.singular, e)
        return redirect(url_for("catalogs.list_view", kind=k.key))
    flash(f"{k.singular.capitalize()} deleted.", "success")
    return redirect(url_for("catalogs.list_view", kind=k.key))
