"""Tests for user registration, account management and the audit trail screen."""
from app.sgsc.cache import KEY_PERSONNEL, get_cache
from app.sgsc.db import session_scope
from app.sgsc.models import AuditEvent, Personnel, Role, User

from tests.conftest import add_user, login


def _registration(csrf, **overrides):
    data = {
        "csrf_token": csrf,
        "email": "Operador@SGSC.local",
        "password": "secret1",
        "password_confirm": "secret1",
        "dni": "01234567",
        "first_names": "Miguel",
        "last_names": "Torres",
        "position": "Operador de camaras",
        "role": "camaras",
    }
    data.update(overrides)
    return data


def test_register_creates_account_and_staff_member(app, client):
    csrf = login(client)
    get_cache(app).set(KEY_PERSONNEL, [], 1000)

    r = client.get("/admin/users/new")
    assert r.status_code == 200

    r = client.post("/admin/users/new", data=_registration(csrf))
    assert r.status_code == 302
    assert r.headers["Location"].endswith("/admin/users")
    assert get_cache(app).get(KEY_PERSONNEL) is None

    with session_scope(app) as s:
        u = s.query(User).filter(User.email == "operador@sgsc.local").one()
        assert u.role_keys == ["camaras"]
        p = s.query(Personnel).filter(Personnel.user_id == u.id).one()
        assert p.dni == "01234567"
        assert p.status == "activo"
        assert p.position == "Operador de camaras"
        assert s.query(AuditEvent).filter(AuditEvent.action == "user.create").count() == 1

    client.get("/auth/logout")
    r = client.post("/auth/login", data={"email": "operador@sgsc.local", "password": "secret1"})
    assert r.status_code == 302
    assert client.get("/admin/booth-logs").status_code == 200


def test_register_validation(app, client):
    csrf = login(client)
    r = client.post(
        "/admin/users/new",
        data=_registration(csrf, email="not-an-email", password="abc", password_confirm="abc", dni="12ab"),
        follow_redirects=True,
    )
    assert b"Invalid email format." in r.data
    assert b"Password must be at least 6 characters." in r.data
    assert b"DNI must be exactly 8 digits." in r.data

    r = client.post("/admin/users/new", data=_registration(csrf, password_confirm="other1"), follow_redirects=True)
    assert b"Passwords do not match." in r.data

    r = client.post("/admin/users/new", data=_registration(csrf, email="admin@example.com"), follow_redirects=True)
    assert b"An account with this email already exists." in r.data

    with session_scope(app) as s:
        assert s.query(User).count() == 1
        assert s.query(Personnel).count() == 0


def test_register_rejects_taken_dni(app, client):
    with session_scope(app) as s:
        s.add(Personnel(dni="01234567", first_names="Otro", last_names="Sereno"))
    csrf = login(client)
    r = client.post("/admin/users/new", data=_registration(csrf), follow_redirects=True)
    assert b"A staff member with this DNI already exists." in r.data
    with session_scope(app) as s:
        assert s.query(User).count() == 1


def test_update_roles_and_deactivate(app, client):
    add_user(app, "coe@example.com", "coe")
    csrf = login(client)
    with session_scope(app) as s:
        u = s.query(User).filter(User.email == "coe@example.com").one()
        user_id = u.id
        supervisor_role_id = s.query(Role).filter(Role.key == "supervisor").one().id

    r = client.post(
        f"/admin/users/{user_id}/update",
        data={"csrf_token": csrf, "is_active": "1", "role_ids": [str(supervisor_role_id)]},
    )
    assert r.status_code == 302
    with session_scope(app) as s:
        u = s.get(User, user_id)
        assert u.role_keys == ["supervisor"]
        assert u.is_active is True

    client.post(f"/admin/users/{user_id}/update", data={"csrf_token": csrf})
    with session_scope(app) as s:
        u = s.get(User, user_id)
        assert u.is_active is False
        assert u.role_keys == []
        assert s.query(AuditEvent).filter(AuditEvent.action == "user.update").count() == 2


def test_cannot_edit_own_account(app, client):
    csrf = login(client)
    with session_scope(app) as s:
        admin_id = s.query(User).filter(User.email == "admin@example.com").one().id
    r = client.post(f"/admin/users/{admin_id}/update", data={"csrf_token": csrf}, follow_redirects=True)
    assert b"You cannot modify your own account" in r.data
    with session_scope(app) as s:
        assert s.get(User, admin_id).is_active is True


def test_users_list_and_audit_trail(client):
    login(client)
    r = client.get("/admin/users")
    assert r.status_code == 200
    assert b"admin@example.com" in r.data

    r = client.get("/admin/audit?action=auth.login")
    assert r.status_code == 200
    assert b"auth.login" in r.data

    r = client.get("/admin/audit?date_from=yesterday")
    assert b"date_from must be YYYY-MM-DD" in r.data

    r = client.get("/admin/audit?date_from=2000-01-01&date_to=2000-01-02")
    assert b"auth.login" not in r.data.split(b"<tbody>", 1)[-1]


def test_user_admin_requires_permission(app, client):
    add_user(app, "sup@example.com", "supervisor")
    login(client, "sup@example.com")
    assert client.get("/admin/users").status_code == 403
    assert client.get("/admin/audit").status_code == 403
