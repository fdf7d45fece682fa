"""Tests for the Personnel screen."""
from app.sgsc.cache import KEY_PERSONNEL, get_cache
from app.sgsc.db import session_scope
from app.sgsc.models import AuditEvent, Personnel, Sector

from tests.conftest import add_user, login


def _payload(csrf, **overrides):
    data = {
        "csrf_token": csrf,
        "dni": "12345678",
        "first_names": "Juan",
        "last_names": "Perez",
        "position": "Sereno",
        "status": "activo",
        "sector_id": "",
        "shift_id": "",
    }
    data.update(overrides)
    return data


def test_personnel_list_requires_auth(client):
    r = client.get("/admin/personnel")
    assert r.status_code == 302
    assert "/auth/login" in r.headers["Location"]


def test_personnel_create_and_list(app, client):
    csrf = login(client)
    with session_scope(app) as s:
        s.add(Sector(name="Norte"))
    with session_scope(app) as s:
        sector_id = s.query(Sector).one().id

    r = client.post("/admin/personnel/new", data=_payload(csrf, sector_id=str(sector_id)), follow_redirects=False)
    assert r.status_code == 302
    assert r.headers["Location"].endswith("/admin/personnel")

    with session_scope(app) as s:
        p = s.query(Personnel).one()
        assert p.full_name == "Juan Perez"
        assert p.sector.name == "Norte"
        assert s.query(AuditEvent).filter(AuditEvent.action == "personnel.create").count() == 1

    r = client.get("/admin/personnel")
    assert r.status_code == 200
    assert b"Juan Perez" in r.data

    r = client.get("/admin/personnel?q=nobody")
    assert b"Juan Perez" not in r.data


def test_personnel_rejects_bad_dni_and_duplicates(app, client):
    csrf = login(client)
    client.post("/admin/personnel/new", data=_payload(csrf, dni="1234"), follow_redirects=True)
    with session_scope(app) as s:
        assert s.query(Personnel).count() == 0

    client.post("/admin/personnel/new", data=_payload(csrf), follow_redirects=True)
    r = client.post("/admin/personnel/new", data=_payload(csrf, first_names="Other"), follow_redirects=True)
    assert b"already exists" in r.data
    with session_scope(app) as s:
        assert s.query(Personnel).count() == 1


def test_personnel_rejects_unknown_status(app, client):
    csrf = login(client)
    r = client.post("/admin/personnel/new", data=_payload(csrf, status="retired"), follow_redirects=True)
    assert b"Invalid status" in r.data
    with session_scope(app) as s:
        assert s.query(Personnel).count() == 0


def test_personnel_edit_and_delete(app, client):
    csrf = login(client)
    client.post("/admin/personnel/new", data=_payload(csrf))
    with session_scope(app) as s:
        pid = s.query(Personnel).one().id

    r = client.get(f"/admin/personnel/{pid}/edit")
    assert r.status_code == 200
    assert b"12345678" in r.data

    r = client.post(f"/admin/personnel/{pid}/edit", data=_payload(csrf, status="inactivo"))
    assert r.status_code == 302
    with session_scope(app) as s:
        assert s.get(Personnel, pid).status == "inactivo"
        ev = s.query(AuditEvent).filter(AuditEvent.action == "personnel.update").one()
        assert "inactivo" in ev.metadata_json

    r = client.post(f"/admin/personnel/{pid}/delete", data={"csrf_token": csrf})
    assert r.status_code == 302
    with session_scope(app) as s:
        assert s.query(Personnel).count() == 0

    assert client.get(f"/admin/personnel/{pid}/edit").status_code == 404


def test_personnel_change_invalidates_lookup_cache(app, client):
    csrf = login(client)
    cache = get_cache(app)
    cache.set(KEY_PERSONNEL, [{"id": 999}], 1000)
    client.post("/admin/personnel/new", data=_payload(csrf))
    assert cache.get(KEY_PERSONNEL) != [{"id": 999}]


def test_personnel_export(client):
    csrf = login(client)
    client.post("/admin/personnel/new", data=_payload(csrf))

    r = client.get("/admin/personnel/export?format=pdf")
    assert r.status_code == 200
    assert r.mimetype == "application/pdf"
    assert r.data.startswith(b"%PDF")
    assert "Personnel_Report_" in r.headers["Content-Disposition"]

    r = client.get("/admin/personnel/export?format=excel&status=activo")
    assert r.status_code == 200
    assert r.mimetype == "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

    assert client.get("/admin/personnel/export?format=csv").status_code == 400


def test_personnel_forbidden_without_permission(app, client):
    add_user(app, "cam@example.com", "camaras")
    login(client, "cam@example.com")
    assert client.get("/admin/personnel").status_code == 403
    assert client.get("/admin/personnel/export").status_code == 403
