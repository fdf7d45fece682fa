"""Tests for the Patrols screen."""
import io

from app.sgsc.cache import KEY_PERSONNEL, KEY_SUPERVISORS, get_cache
from app.sgsc.db import session_scope
from app.sgsc.models import Patrol, Personnel

from tests.conftest import add_user, login


def _seed_personnel(app) -> int:
    with session_scope(app) as s:
        p = Personnel(dni="12345678", first_names="Juan", last_names="Perez", position="Sereno")
        s.add(p)
        s.flush()
        return p.id


def _payload(csrf, personnel_id, **overrides):
    data = {
        "csrf_token": csrf,
        "date": "2024-05-01",
        "personnel_id": str(personnel_id),
        "start_time": "08:00",
        "end_time": "",
        "route": "Av. Central - Parque Norte",
        "status": "en_curso",
    }
    data.update(overrides)
    return data


def test_patrols_create_list_and_filter(app, client):
    pid = _seed_personnel(app)
    csrf = login(client)

    r = client.get("/admin/patrols/new")
    assert r.status_code == 200

    r = client.post("/admin/patrols/new", data=_payload(csrf, pid))
    assert r.status_code == 302
    assert r.headers["Location"].endswith("/admin/patrols")

    r = client.get("/admin/patrols")
    assert r.status_code == 200
    assert b"Av. Central - Parque Norte" in r.data

    r = client.get("/admin/patrols?date=2024-05-02")
    assert b"Av. Central - Parque Norte" not in r.data

    r = client.get("/admin/patrols?status=en_curso")
    assert b"Av. Central - Parque Norte" in r.data


def test_patrols_require_route_and_start_time(app, client):
    pid = _seed_personnel(app)
    csrf = login(client)
    r = client.post("/admin/patrols/new", data=_payload(csrf, pid, route="", start_time=""), follow_redirects=True)
    assert b"Patrol route is required." in r.data
    assert b"Start time is required." in r.data
    with session_scope(app) as s:
        assert s.query(Patrol).count() == 0


def test_patrols_image_upload(app, client):
    pid = _seed_personnel(app)
    csrf = login(client)
    data = _payload(csrf, pid)
    data["image"] = (io.BytesIO(b"\x89PNG fake image"), "route.png")
    r = client.post("/admin/patrols/new", data=data, content_type="multipart/form-data")
    assert r.status_code == 302

    with session_scope(app) as s:
        patrol = s.query(Patrol).one()
        assert patrol.image_key.startswith("patrols/")
        assert patrol.image_key.endswith("-route.png")
        patrol_id = patrol.id

    r = client.get(f"/admin/patrols/{patrol_id}/image")
    assert r.status_code == 200
    assert r.data == b"\x89PNG fake image"


def test_patrols_reject_disallowed_upload(app, client):
    pid = _seed_personnel(app)
    csrf = login(client)
    data = _payload(csrf, pid)
    data["image"] = (io.BytesIO(b"MZ"), "tool.exe")
    r = client.post("/admin/patrols/new", data=data, content_type="multipart/form-data", follow_redirects=True)
    assert b"Attachment type not allowed" in r.data
    with session_scope(app) as s:
        assert s.query(Patrol).count() == 0


def test_patrols_edit_delete_and_export(app, client):
    pid = _seed_personnel(app)
    csrf = login(client)
    client.post("/admin/patrols/new", data=_payload(csrf, pid))
    with session_scope(app) as s:
        patrol_id = s.query(Patrol).one().id

    assert client.get(f"/admin/patrols/{patrol_id}/image").status_code == 404

    r = client.post(f"/admin/patrols/{patrol_id}/edit", data=_payload(csrf, pid, status="completado", end_time="12:30"))
    assert r.status_code == 302
    with session_scope(app) as s:
        patrol = s.get(Patrol, patrol_id)
        assert patrol.status == "completado"
        assert patrol.end_time.strftime("%H:%M") == "12:30"

    r = client.get("/admin/patrols/export?format=excel")
    assert r.status_code == 200
    assert "Patrol_Report_" in r.headers["Content-Disposition"]

    r = client.post(f"/admin/patrols/{patrol_id}/delete", data={"csrf_token": csrf})
    assert r.status_code == 302
    with session_scope(app) as s:
        assert s.query(Patrol).count() == 0


def test_patrols_allowed_for_coe_but_not_cameras(app, client):
    add_user(app, "coe@example.com", "coe")
    add_user(app, "cam@example.com", "camaras")

    login(client, "coe@example.com")
    assert client.get("/admin/patrols").status_code == 200
    client.get("/auth/logout")

    login(client, "cam@example.com")
    assert client.get("/admin/patrols").status_code == 403


def test_patrol_changes_refresh_personnel_lookups(app, client):
    pid = _seed_personnel(app)
    csrf = login(client)
    cache = get_cache(app)

    cache.set(KEY_PERSONNEL, [{"id": 999}], 1000)
    cache.set(KEY_SUPERVISORS, [{"id": 999}], 1000)
    client.post("/admin/patrols/new", data=_payload(csrf, pid))
    assert not cache.has(KEY_PERSONNEL)
    assert not cache.has(KEY_SUPERVISORS)
    with session_scope(app) as s:
        patrol_id = s.query(Patrol).one().id

    cache.set(KEY_PERSONNEL, [{"id": 999}], 1000)
    client.post(f"/admin/patrols/{patrol_id}/edit", data=_payload(csrf, pid, status="completado", end_time="12:30"))
    assert not cache.has(KEY_PERSONNEL)

    cache.set(KEY_PERSONNEL, [{"id": 999}], 1000)
    client.post(f"/admin/patrols/{patrol_id}/delete", data={"csrf_token": csrf})
    assert not cache.has(KEY_PERSONNEL)
