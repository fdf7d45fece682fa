"""Tests for the Incidents screen."""
import io

from app.sgsc.db import session_scope
from app.sgsc.models import AuditEvent, Incident, Sector

from tests.conftest import add_user, login


def _seed_sector(app) -> int:
    with session_scope(app) as s:
        sector = Sector(name="Centro")
        s.add(sector)
        s.flush()
        return sector.id


def _payload(csrf, sector_id, /, **overrides):
    data = {
        "csrf_token": csrf,
        "date": "2024-05-01",
        "incident_time": "21:15",
        "incident_type": "Robo",
        "description": "Cell phone snatched near the market",
        "sector_id": str(sector_id),
        "status": "pendiente",
        "reported_by": "Camaras",
    }
    data.update(overrides)
    return data


def test_incidents_create_detail_and_list(app, client):
    sector_id = _seed_sector(app)
    csrf = login(client)

    r = client.post("/admin/incidents/new", data=_payload(csrf, sector_id, physical_report_delivered="on"))
    assert r.status_code == 302

    with session_scope(app) as s:
        incident = s.query(Incident).one()
        assert incident.physical_report_delivered is True
        assert incident.sector.name == "Centro"
        incident_id = incident.id

    r = client.get("/admin/incidents")
    assert r.status_code == 200
    assert b"Cell phone snatched near the market" in r.data
    assert b"Robbery" in r.data

    r = client.get(f"/admin/incidents/{incident_id}")
    assert r.status_code == 200
    assert b"Centro" in r.data
    assert client.get("/admin/incidents/9999").status_code == 404


def test_incidents_require_sector_and_known_type(app, client):
    sector_id = _seed_sector(app)
    csrf = login(client)
    r = client.post("/admin/incidents/new", data=_payload(csrf, sector_id, sector_id=""), follow_redirects=True)
    assert b"Sector is required." in r.data

    r = client.post("/admin/incidents/new", data=_payload(csrf, sector_id, incident_type="Alien"), follow_redirects=True)
    assert b"Invalid incident type" in r.data
    with session_scope(app) as s:
        assert s.query(Incident).count() == 0


def test_incidents_filter_by_type(app, client):
    sector_id = _seed_sector(app)
    csrf = login(client)
    client.post("/admin/incidents/new", data=_payload(csrf, sector_id))
    client.post(
        "/admin/incidents/new",
        data=_payload(csrf, sector_id, incident_type="Accidente", description="Motorcycle crash at the roundabout"),
    )

    r = client.get("/admin/incidents?incident_type=Accidente")
    assert b"Motorcycle crash at the roundabout" in r.data
    assert b"Cell phone snatched near the market" not in r.data


def test_incidents_edit_with_scan_and_delete(app, client):
    sector_id = _seed_sector(app)
    csrf = login(client)
    client.post("/admin/incidents/new", data=_payload(csrf, sector_id))
    with session_scope(app) as s:
        incident_id = s.query(Incident).one().id

    data = _payload(csrf, sector_id, status="resuelto")
    data["image"] = (io.BytesIO(b"%PDF-1.4 scan"), "report.pdf")
    r = client.post(f"/admin/incidents/{incident_id}/edit", data=data, content_type="multipart/form-data")
    assert r.status_code == 302

    with session_scope(app) as s:
        incident = s.get(Incident, incident_id)
        assert incident.status == "resuelto"
        assert incident.image_key.startswith("incidents/")
        ev = s.query(AuditEvent).filter(AuditEvent.action == "incident.update").one()
        assert "resuelto" in ev.metadata_json

    r = client.get(f"/admin/incidents/{incident_id}/image")
    assert r.status_code == 200
    assert r.data == b"%PDF-1.4 scan"

    r = client.post(f"/admin/incidents/{incident_id}/delete", data={"csrf_token": csrf})
    assert r.status_code == 302
    with session_scope(app) as s:
        assert s.query(Incident).count() == 0


def test_incidents_export(app, client):
    sector_id = _seed_sector(app)
    csrf = login(client)
    client.post("/admin/incidents/new", data=_payload(csrf, sector_id))

    r = client.get(f"/admin/incidents/export?format=pdf&sector_id={sector_id}")
    assert r.status_code == 200
    assert r.data.startswith(b"%PDF")
    assert "Incident_Report_" in r.headers["Content-Disposition"]

    with session_scope(app) as s:
        ev = s.query(AuditEvent).filter(AuditEvent.action == "report.export").one()
        assert ev.entity_type == "Incident"
        assert "Sector: Centro" in ev.metadata_json


def test_incidents_forbidden_for_cameras(app, client):
    add_user(app, "cam@example.com", "camaras")
    login(client, "cam@example.com")
    assert client.get("/admin/incidents").status_code == 403
