from datetime import date, time

from app.sgsc.admin import dashboard_stats
from app.sgsc.db import session_scope
from app.sgsc.models import AuditEvent, MobilityLog, Patrol, Personnel

from tests.conftest import login


def test_health_ok(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json["ok"] is True
    assert client.get("/healthz").data == b"ok"


def test_root_redirects_to_login(client):
    r = client.get("/")
    assert r.status_code == 302
    assert "/auth/login" in r.headers["Location"]


def test_login_and_dashboard_access(client):
    r = client.get("/admin/")
    assert r.status_code == 302
    assert "/auth/login" in r.headers["Location"]

    login(client)
    r = client.get("/admin/")
    assert r.status_code == 200
    assert b"Dashboard" in r.data

    r = client.get("/")
    assert r.status_code == 302
    assert r.headers["Location"].endswith("/admin/")


def test_bad_password_is_rejected_and_audited(app, client):
    r = client.post("/auth/login", data={"email": "admin@example.com", "password": "nope"})
    assert r.status_code == 302
    assert "/auth/login" in r.headers["Location"]
    assert client.get("/admin/").status_code == 302

    with session_scope(app) as s:
        ev = s.query(AuditEvent).filter(AuditEvent.action == "auth.login_failed").one()
        assert ev.entity_id == "admin@example.com"


def test_login_honours_local_next_only(client):
    r = client.post("/auth/login", data={"email": "admin@example.com", "password": "pw", "next": "/admin/personnel"})
    assert r.headers["Location"].endswith("/admin/personnel")
    client.get("/auth/logout")

    r = client.post("/auth/login", data={"email": "admin@example.com", "password": "pw", "next": "//evil.example"})
    assert r.headers["Location"].endswith("/admin/")


def test_post_without_csrf_token_is_rejected(client):
    login(client)
    r = client.post("/admin/personnel/new", data={"dni": "12345678"})
    assert r.status_code == 400


def test_unknown_route_is_404(client):
    login(client)
    assert client.get("/admin/nowhere").status_code == 404


def test_dashboard_stats(app):
    today = date(2024, 5, 1)
    with session_scope(app) as s:
        p = Personnel(dni="12345678", first_names="Juan", last_names="Perez")
        s.add_all([p, Personnel(dni="87654321", first_names="Ana", last_names="Diaz", status="inactivo")])
        s.flush()
        s.add(Patrol(date=today, personnel_id=p.id, start_time=time(8, 0), route="Av. Central", status="en_curso"))
        s.add(MobilityLog(date=today, vehicle_plate="ABC-123", destination="Base", departure_time=time(9, 0)))
        s.flush()
        stats = dashboard_stats(s, today=today)

    assert stats == {
        "active_personnel": 1,
        "patrols_today": 1,
        "incidents_today": 0,
        "vehicles_out": 1,
        "camera_booths": 0,
    }
