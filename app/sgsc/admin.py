import re
from datetime import date, datetime, time, timedelta

from flask import Blueprint, abort, current_app, flash, redirect, render_template, request, url_for
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.security import generate_password_hash

from app.sgsc.audit import record_event
from app.sgsc.constants import INCIDENT_TYPES, POSITIONS, ROLES
from app.sgsc.db import db_session
from app.sgsc.lookups import form_options, preload_common_data
from app.sgsc.models import AuditEvent, CameraBooth, Incident, MobilityLog, Patrol, Personnel, Role, User
from app.sgsc.rbac import require_permission
from app.sgsc.utils import current_user, save_failed

bp = Blueprint("admin", __name__)

DNI_RE = re.compile(r"^\d{8}$")
MIN_PASSWORD_LENGTH = 6


def _parse_date(s: str) -> date | None:
    s = (s or "").strip()
    if not s:
        return None
    try:
        return date.fromisoformat(s)
    except ValueError:
        return None


def _is_valid_email(email: str) -> bool:
    pattern = r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$"
    return bool(re.match(pattern, email))


# ---------- Dashboard ----------
def dashboard_stats(s, today: date | None = None) -> dict[str, int]:
    today = today or date.today()
    return {
        "active_personnel": s.query(Personnel).filter(Personnel.status == "activo").count(),
        "patrols_today": s.query(Patrol).filter(Patrol.date == today).count(),
        "incidents_today": s.query(Incident).filter(Incident.date == today).count(),
        "vehicles_out": s.query(MobilityLog).filter(MobilityLog.return_time.is_(None)).count(),
        "camera_booths": s.query(CameraBooth).count(),
    }


@bp.get("/")
@require_permission("dashboard.view")
def index():
    s = db_session()
    try:
        stats = dashboard_stats(s)
        preload_common_data(s)
        latest_incidents = s.query(Incident).order_by(Incident.date.desc(), Incident.id.desc()).limit(5).all()
        latest_patrols = s.query(Patrol).order_by(Patrol.date.desc(), Patrol.id.desc()).limit(5).all()
    except SQLAlchemyError:
        s.rollback()
        current_app.logger.exception("Dashboard query failed")
        flash("Could not load dashboard statistics.", "danger")
        stats, latest_incidents, latest_patrols = {}, [], []

    return render_template(
        "admin/index.html",
        stats=stats,
        latest_incidents=latest_incidents,
        latest_patrols=latest_patrols,
        today=date.today(),
        incident_types=dict(INCIDENT_TYPES),
    )


# ---------- Users ----------
@bp.get("/users")
@require_permission("users.view")
def users_list():
    s = db_session()
    users = s.query(User).order_by(User.email.asc()).all()
    staff_by_user = {p.user_id: p for p in s.query(Personnel).filter(Personnel.user_id.isnot(None)).all()}
    roles = s.query(Role).order_by(Role.name.asc()).all()
    return render_template("admin/users/list.html", users=users, roles=roles, staff_by_user=staff_by_user)


@bp.get("/users/new")
@require_permission("users.create")
def users_new_get():
    s = db_session()
    roles = s.query(Role).order_by(Role.name.asc()).all()
    return render_template(
        "admin/users/new.html",
        roles=roles,
        positions=POSITIONS,
        options=form_options(s),
    )


def validate_registration(s, form: dict) -> list[str]:
    email = (form.get("email") or "").strip().lower()
    password = form.get("password") or ""
    password_confirm = form.get("password_confirm") or ""
    dni = (form.get("dni") or "").strip()

    errors: list[str] = []
    if not email:
        errors.append("Email is required.")
    elif not _is_valid_email(email):
        errors.append("Invalid email format.")
    elif s.query(User).filter(User.email == email).one_or_none():
        errors.append("An account with this email already exists.")

    if not password:
        errors.append("Password is required.")
    elif len(password) < MIN_PASSWORD_LENGTH:
        errors.append(f"Password must be at least {MIN_PASSWORD_LENGTH} characters.")
    elif password != password_confirm:
        errors.append("Passwords do not match.")

    if not dni:
        errors.append("DNI is required.")
    elif not DNI_RE.match(dni):
        errors.append("DNI must be exactly 8 digits.")
    elif s.query(Personnel).filter(Personnel.dni == dni).first() is not None:
        errors.append("A staff member with this DNI already exists.")
    if not (form.get("first_names") or "").strip():
        errors.append("First names are required.")
    if not (form.get("last_names") or "").strip():
        errors.append("Last names are required.")

    role_key = (form.get("role") or "").strip()
    if role_key and role_key not in {k for k, _ in ROLES}:
        errors.append("Invalid role.")
    return errors


def register_user(s, form: dict, actor: User | None) -> User:
    """
    Create the login account, give it the selected role and create the
    linked active personnel record.
    """
    from app.sgsc.modules.personnel.service import create_personnel

    email = (form.get("email") or "").strip().lower()
    new_user = User(email=email, password_hash=generate_password_hash(form.get("password") or ""), is_active=True)
    s.add(new_user)
    s.flush()

    role_key = (form.get("role") or "").strip()
    if role_key:
        role = s.query(Role).filter(Role.key == role_key).one_or_none()
        if role:
            new_user.roles.append(role)

    create_personnel(
        s,
        {
            "dni": form.get("dni"),
            "first_names": form.get("first_names"),
            "last_names": form.get("last_names"),
            "position": form.get("position"),
            "status": "activo",
            "sector_id": form.get("sector_id"),
            "shift_id": form.get("shift_id"),
        },
        actor,
        user_id=new_user.id,
    )
    record_event(
        s,
        actor=actor,
        action="user.create",
        entity_type="User",
        entity_id=str(new_user.id),
        metadata={"email": email, "roles": new_user.role_keys},
    )
    return new_user


@bp.post("/users/new")
@require_permission("users.create")
def users_new_post():
    s = db_session()
    errors = validate_registration(s, request.form)
    if errors:
        for e in errors:
            flash(e, "danger")
        return redirect(url_for("admin.users_new_get"))

    try:
        new_user = register_user(s, request.form, current_user())
        s.commit()
    except SQLAlchemyError as e:
        save_failed(s, "user", e)
        return redirect(url_for("admin.users_new_get"))

    flash(f"User {new_user.email} registered.", "success")
    return redirect(url_for("admin.users_list"))


@bp.post("/users/<int:user_id>/update")
@require_permission("users.edit")
def users_update(user_id: int):
    s = db_session()
    u = current_user()
    user = s.get(User, user_id)
    if not user:
        abort(404)

    if user.id == u.id:
        flash("You cannot modify your own account from this page.", "danger")
        return redirect(url_for("admin.users_list"))

    before = {"is_active": user.is_active, "roles": user.role_keys}
    user.is_active = request.form.get("is_active") == "1"
    role_ids = [int(r) for r in request.form.getlist("role_ids") if r.isdigit()]
    user.roles.clear()
    if role_ids:
        for role in s.query(Role).filter(Role.id.in_(role_ids)).all():
            user.roles.append(role)

    record_event(
        s,
        actor=u,
        action="user.update",
        entity_type="User",
        entity_id=str(user.id),
        metadata={"before": before, "after": {"is_active": user.is_active, "roles": user.role_keys}},
    )
    s.commit()
    flash(f"Account updated for {user.email}.", "success")
    return redirect(url_for("admin.users_list"))


# ---------- Audit trail ----------
@bp.get("/audit")
@require_permission("audit.view")
def audit_list():
    """
    Last 200 audit events, filterable by action, actor email and date range.
    """
    s = db_session()
    action = (request.args.get("action") or "").strip()
    actor_email = (request.args.get("actor_email") or "").strip()
    date_from = _parse_date(request.args.get("date_from") or "")
    date_to = _parse_date(request.args.get("date_to") or "")

    if (request.args.get("date_from") or "").strip() and not date_from:
        flash("date_from must be YYYY-MM-DD", "danger")
    if (request.args.get("date_to") or "").strip() and not date_to:
        flash("date_to must be YYYY-MM-DD", "danger")

    q = s.query(AuditEvent)
    if action:
        q = q.filter(AuditEvent.action.like(f"%{action}%"))
    if actor_email:
        q = q.filter(AuditEvent.actor_user_email.like(f"%{actor_email.lower()}%"))
    if date_from:
        q = q.filter(AuditEvent.created_at >= datetime.combine(date_from, time.min))
    if date_to:
        # inclusive end date
        q = q.filter(AuditEvent.created_at < datetime.combine(date_to + timedelta(days=1), time.min))

    events = q.order_by(AuditEvent.created_at.desc(), AuditEvent.id.desc()).limit(200).all()
    return render_template(
        "admin/audit/list.html",
        events=events,
        action=action,
        actor_email=actor_email,
        date_from=(request.args.get("date_from") or "").strip(),
        date_to=(request.args.get("date_to") or "").strip(),
    )
