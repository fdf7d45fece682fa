"""Tests for the Attendance screen."""
from app.sgsc.db import session_scope
from app.sgsc.models import Attendance, Personnel

from tests.conftest import add_user, login


def _seed_personnel(app) -> int:
    with session_scope(app) as s:
        p = Personnel(dni="55556666", first_names="Carlos", last_names="Huaman", position="Sereno")
        s.add(p)
        s.flush()
        return p.id


def _payload(csrf, personnel_id, **overrides):
    data = {
        "csrf_token": csrf,
        "date": "2024-05-01",
        "personnel_id": str(personnel_id),
        "status": "asistio_firmo",
    }
    data.update(overrides)
    return data


def test_attendance_create_and_list(app, client):
    pid = _seed_personnel(app)
    csrf = login(client)

    r = client.post("/admin/attendance/new", data=_payload(csrf, pid, physical_report_delivered="on"))
    assert r.status_code == 302

    with session_scope(app) as s:
        record = s.query(Attendance).one()
        assert record.status == "asistio_firmo"
        assert record.physical_report_delivered is True

    r = client.get("/admin/attendance")
    assert r.status_code == 200
    assert b"Carlos Huaman" in r.data
    assert b"Attended and signed" in r.data


def test_attendance_filter_by_status(app, client):
    pid = _seed_personnel(app)
    csrf = login(client)
    client.post("/admin/attendance/new", data=_payload(csrf, pid))

    r = client.get("/admin/attendance?status=falta")
    assert b"Carlos Huaman" not in r.data
    r = client.get("/admin/attendance?status=asistio_firmo&date=2024-05-01")
    assert b"Carlos Huaman" in r.data


def test_attendance_requires_staff_member(app, client):
    _seed_personnel(app)
    csrf = login(client)
    r = client.post("/admin/attendance/new", data=_payload(csrf, ""), follow_redirects=True)
    assert b"Staff member is required." in r.data
    with session_scope(app) as s:
        assert s.query(Attendance).count() == 0


def test_attendance_edit_delete_and_export(app, client):
    pid = _seed_personnel(app)
    csrf = login(client)
    client.post("/admin/attendance/new", data=_payload(csrf, pid))
    with session_scope(app) as s:
        record_id = s.query(Attendance).one().id

    r = client.post(f"/admin/attendance/{record_id}/edit", data=_payload(csrf, pid, status="permiso_medico"))
    assert r.status_code == 302
    with session_scope(app) as s:
        assert s.get(Attendance, record_id).status == "permiso_medico"

    r = client.get("/admin/attendance/export?format=xlsx")
    assert r.status_code == 200
    assert "Attendance_Report_" in r.headers["Content-Disposition"]

    r = client.post(f"/admin/attendance/{record_id}/delete", data={"csrf_token": csrf})
    assert r.status_code == 302
    with session_scope(app) as s:
        assert s.query(Attendance).count() == 0


def test_attendance_forbidden_for_coe(app, client):
    add_user(app, "coe@example.com", "coe")
    login(client, "coe@example.com")
    assert client.get("/admin/attendance").status_code == 403
