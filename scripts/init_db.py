import sys
from datetime import time
from pathlib import Path
import os

from werkzeug.security import generate_password_hash

# Ensure repo root is on sys.path when running as a script (Windows-friendly).
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from app.sgsc.models import Permission, Role, Shift, User
from app.sgsc.db import url_session_scope

CRUD_ACTIONS = ("view", "create", "edit", "delete", "export")

# Screens with the full view/create/edit/delete/export set.
SCREENS = {
    "personnel": "Personnel",
    "patrols": "Patrols",
    "incidents": "Incidents",
    "mobility": "Mobility",
    "booth_logs": "Camera booth logs",
    "attendance": "Attendance",
    "vouchers": "Vouchers",
    "catalogs": "Catalogs",
    "supervisors": "Supervisors",
}

EXTRA_PERMISSIONS = {
    "dashboard.view": "Dashboard: view",
    "users.view": "Users: view",
    "users.create": "Users: register",
    "users.edit": "Users: edit roles/status",
    "audit.view": "Audit trail: view",
}

ROLE_NAMES = {
    "admin": "Administrator",
    "obseciu": "OBSECIU",
    "coe": "COE",
    "supervisor": "Supervisor",
    "camaras": "Cameras",
}

# Screen prefixes each role may use; "*" grants everything.
ROLE_SCOPES: dict[str, tuple[str, ...]] = {
    "admin": ("*",),
    "obseciu": ("*",),
    "coe": ("dashboard", "incidents", "patrols"),
    "supervisor": ("dashboard", "personnel", "patrols", "supervisors"),
    "camaras": ("dashboard", "booth_logs"),
}

DEFAULT_SHIFTS = (
    ("Mañana", time(6, 0), time(14, 0)),
    ("Tarde", time(14, 0), time(22, 0)),
    ("Noche", time(22, 0), time(6, 0)),
)


def permission_catalog() -> dict[str, str]:
    perms: dict[str, str] = {}
    for prefix, title in SCREENS.items():
        for action in CRUD_ACTIONS:
            perms[f"{prefix}.{action}"] = f"{title}: {action}"
    perms.update(EXTRA_PERMISSIONS)
    return perms


def role_grants(role_key: str, perm_keys) -> list[str]:
    scopes = ROLE_SCOPES.get(role_key, ())
    if "*" in scopes:
        return sorted(perm_keys)
    return sorted(k for k in perm_keys if k.split(".", 1)[0] in scopes)


def seed_only(*, database_url: str | None = None) -> None:
    """
    Seed permissions/roles/admin user/default shifts in an idempotent way.
    Does NOT overwrite an existing admin user's password.
    """
    admin_email = (os.environ.get("ADMIN_EMAIL") or "admin@sgsc.local").strip().lower()
    admin_password = os.environ.get("ADMIN_PASSWORD") or "change-me"

    db_url = (database_url or os.environ.get("DATABASE_URL") or "sqlite:///sgsc.db").strip()

    # Direct engine/session so this can run in release without importing app.wsgi.
    with url_session_scope(db_url) as s:
        seed_permissions_and_roles(s)

        role_admin = s.query(Role).filter(Role.key == "admin").one()
        user = s.query(User).filter(User.email == admin_email).one_or_none()
        if not user:
            user = User(email=admin_email, password_hash=generate_password_hash(admin_password), is_active=True)
            s.add(user)
        if role_admin not in user.roles:
            user.roles.append(role_admin)

        for name, start, end in DEFAULT_SHIFTS:
            if not s.query(Shift).filter(Shift.name == name).one_or_none():
                s.add(Shift(name=name, start_time=start, end_time=end))

    print("Initialized database (seed_only).")
    print(f"Admin email: {admin_email}")
    print("Admin password: (from ADMIN_PASSWORD)")


def seed_permissions_and_roles(s) -> None:
    perms: dict[str, Permission] = {}
    for key, name in permission_catalog().items():
        p = s.query(Permission).filter(Permission.key == key).one_or_none()
        if not p:
            p = Permission(key=key, name=name)
            s.add(p)
        perms[key] = p

    for role_key, role_name in ROLE_NAMES.items():
        role = s.query(Role).filter(Role.key == role_key).one_or_none()
        if not role:
            role = Role(key=role_key, name=role_name)
            s.add(role)
        for key in role_grants(role_key, perms):
            if perms[key] not in role.permissions:
                role.permissions.append(perms[key])
    s.flush()


def main() -> None:
    seed_only(database_url=None)


if __name__ == "__main__":
    main()
