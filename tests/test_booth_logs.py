"""Tests for the camera booth log screen."""
import pytest

from app.sgsc.cache import KEY_BOOTHS, get_cache
from app.sgsc.db import session_scope
from app.sgsc.models import BoothLog, CameraBooth, Personnel
from app.sgsc.modules.booth_logs.service import overall_condition

from tests.conftest import add_user, login


@pytest.mark.parametrize(
    "camera,monitor,recording,expected",
    [
        ("operativo", "operativo", "grabando", "operational"),
        ("mantenimiento", "operativo", "grabando", "maintenance"),
        ("con_fallas", "mantenimiento", "grabando", "faults"),
        ("operativo", "operativo", "pausado", "faults"),
        ("operativo", "fuera_servicio", "grabando", "critical"),
        ("con_fallas", "operativo", "error", "critical"),
    ],
)
def test_overall_condition(camera, monitor, recording, expected):
    assert overall_condition(camera, monitor, recording) == expected


def _seed(app) -> tuple[int, int]:
    with session_scope(app) as s:
        booth = CameraBooth(name="Cabina Plaza", location="Plaza de Armas", camera_count=8)
        op = Personnel(dni="44445555", first_names="Rosa", last_names="Quispe", position="Operador de camaras")
        s.add_all([booth, op])
        s.flush()
        return booth.id, op.id


def _payload(csrf, booth_id, personnel_id, **overrides):
    data = {
        "csrf_token": csrf,
        "date": "2024-05-01",
        "booth_id": str(booth_id),
        "personnel_id": str(personnel_id),
        "check_time": "07:00",
        "camera_status": "operativo",
        "monitor_status": "con_fallas",
        "recording_status": "grabando",
    }
    data.update(overrides)
    return data


def test_camera_operator_can_log_checks(app, client):
    booth_id, op_id = _seed(app)
    add_user(app, "cam@example.com", "camaras")
    csrf = login(client, "cam@example.com")

    r = client.post("/admin/booth-logs/new", data=_payload(csrf, booth_id, op_id))
    assert r.status_code == 302

    with session_scope(app) as s:
        log = s.query(BoothLog).one()
        assert log.booth.name == "Cabina Plaza"
        assert log.monitor_status == "con_fallas"

    r = client.get("/admin/booth-logs")
    assert r.status_code == 200
    assert b"Cabina Plaza" in r.data
    assert b"Faults" in r.data


def test_booth_log_rejects_unknown_recording_status(app, client):
    booth_id, op_id = _seed(app)
    csrf = login(client)
    r = client.post(
        "/admin/booth-logs/new", data=_payload(csrf, booth_id, op_id, recording_status="streaming"), follow_redirects=True
    )
    assert b"Invalid recording" in r.data
    with session_scope(app) as s:
        assert s.query(BoothLog).count() == 0


def test_booth_log_edit_delete_and_export(app, client):
    booth_id, op_id = _seed(app)
    csrf = login(client)
    client.post("/admin/booth-logs/new", data=_payload(csrf, booth_id, op_id))
    with session_scope(app) as s:
        log_id = s.query(BoothLog).one().id

    r = client.post(f"/admin/booth-logs/{log_id}/edit", data=_payload(csrf, booth_id, op_id, recording_status="error"))
    assert r.status_code == 302
    with session_scope(app) as s:
        assert s.get(BoothLog, log_id).recording_status == "error"

    r = client.get(f"/admin/booth-logs/export?format=pdf&booth_id={booth_id}")
    assert r.status_code == 200
    assert "Camera_Booth_Log_Report_" in r.headers["Content-Disposition"]

    r = client.post(f"/admin/booth-logs/{log_id}/delete", data={"csrf_token": csrf})
    assert r.status_code == 302
    with session_scope(app) as s:
        assert s.query(BoothLog).count() == 0


def test_booth_logs_forbidden_for_coe(app, client):
    add_user(app, "coe@example.com", "coe")
    login(client, "coe@example.com")
    assert client.get("/admin/booth-logs").status_code == 403


def test_booth_log_changes_refresh_booth_lookups(app, client):
    booth_id, op_id = _seed(app)
    csrf = login(client)
    cache = get_cache(app)

    cache.set(KEY_BOOTHS, [{"id": 999}], 1000)
    client.post("/admin/booth-logs/new", data=_payload(csrf, booth_id, op_id))
    assert not cache.has(KEY_BOOTHS)
    with session_scope(app) as s:
        log_id = s.query(BoothLog).one().id

    cache.set(KEY_BOOTHS, [{"id": 999}], 1000)
    client.post(f"/admin/booth-logs/{log_id}/edit", data=_payload(csrf, booth_id, op_id, recording_status="error"))
    assert not cache.has(KEY_BOOTHS)

    cache.set(KEY_BOOTHS, [{"id": 999}], 1000)
    client.post(f"/admin/booth-logs/{log_id}/delete", data={"csrf_token": csrf})
    assert not cache.has(KEY_BOOTHS)
