"""Tests for the reference catalogs (sectors, shifts, annexes, vehicles, booths, supervisors)."""
from app.sgsc.cache import KEY_SECTORS, KEY_VEHICLES, get_cache
from app.sgsc.db import session_scope
from app.sgsc.models import AuditEvent, CameraBooth, Personnel, Sector, Shift, SupervisorAssignment, Vehicle

from tests.conftest import add_user, login


def test_catalog_index_redirects_to_first_visible_kind(client):
    login(client)
    r = client.get("/admin/catalogs")
    assert r.status_code == 302
    assert r.headers["Location"].endswith("/admin/catalogs/sectors")


def test_unknown_catalog_is_404(client):
    login(client)
    assert client.get("/admin/catalogs/planets").status_code == 404


def test_sector_create_invalidates_cache_and_rejects_duplicates(app, client):
    csrf = login(client)
    cache = get_cache(app)
    cache.set(KEY_SECTORS, [], 1000)

    r = client.post("/admin/catalogs/sectors/new", data={"csrf_token": csrf, "name": "Norte", "description": "Zona norte"})
    assert r.status_code == 302
    assert r.headers["Location"].endswith("/admin/catalogs/sectors")
    assert cache.get(KEY_SECTORS) is None

    r = client.post("/admin/catalogs/sectors/new", data={"csrf_token": csrf, "name": "Norte"}, follow_redirects=True)
    assert b"A sector with this name already exists." in r.data

    with session_scope(app) as s:
        assert s.query(Sector).count() == 1
        assert s.query(AuditEvent).filter(AuditEvent.action == "catalog.sectors.create").count() == 1

    r = client.get("/admin/catalogs/sectors")
    assert r.status_code == 200
    assert b"Zona norte" in r.data


def test_shift_times_round_trip_through_the_form(app, client):
    csrf = login(client)
    client.post(
        "/admin/catalogs/shifts/new",
        data={"csrf_token": csrf, "name": "Madrugada", "start_time": "00:00", "end_time": "06:00"},
    )
    with session_scope(app) as s:
        shift_id = s.query(Shift).filter(Shift.name == "Madrugada").one().id

    r = client.get(f"/admin/catalogs/shifts/{shift_id}/edit")
    assert r.status_code == 200
    assert b'value="06:00"' in r.data


def test_vehicle_plate_is_upper_cased_and_unique(app, client):
    csrf = login(client)
    cache = get_cache(app)
    cache.set(KEY_VEHICLES, [], 1000)

    client.post("/admin/catalogs/vehicles/new", data={"csrf_token": csrf, "plate": "eg-1234", "status": "operativo"})
    assert cache.get(KEY_VEHICLES) is None
    r = client.post(
        "/admin/catalogs/vehicles/new", data={"csrf_token": csrf, "plate": "EG-1234", "status": "operativo"}, follow_redirects=True
    )
    assert b"already exists" in r.data

    with session_scope(app) as s:
        v = s.query(Vehicle).one()
        assert v.plate == "EG-1234"
        vehicle_id = v.id

    r = client.post(
        f"/admin/catalogs/vehicles/{vehicle_id}/edit",
        data={"csrf_token": csrf, "plate": "EG-1234", "vehicle_type": "Camioneta", "status": "mantenimiento"},
    )
    assert r.status_code == 302
    with session_scope(app) as s:
        assert s.get(Vehicle, vehicle_id).status == "mantenimiento"


def test_booth_delete_and_export(app, client):
    csrf = login(client)
    client.post("/admin/catalogs/booths/new", data={"csrf_token": csrf, "name": "Cabina 1", "camera_count": "4"})
    with session_scope(app) as s:
        booth = s.query(CameraBooth).one()
        assert booth.camera_count == 4
        booth_id = booth.id

    r = client.get("/admin/catalogs/booths/export?format=excel")
    assert r.status_code == 200
    assert "Camera_booths_" in r.headers["Content-Disposition"]

    r = client.post(f"/admin/catalogs/booths/{booth_id}/delete", data={"csrf_token": csrf})
    assert r.status_code == 302
    with session_scope(app) as s:
        assert s.query(CameraBooth).count() == 0


def test_supervisor_role_manages_assignments_but_not_other_catalogs(app, client):
    with session_scope(app) as s:
        sup = Personnel(dni="77778888", first_names="Pedro", last_names="Salas", position="Supervisor")
        s.add(sup)
        s.flush()
        sup_id = sup.id
    add_user(app, "sup@example.com", "supervisor")
    csrf = login(client, "sup@example.com")

    r = client.get("/admin/catalogs")
    assert r.headers["Location"].endswith("/admin/catalogs/supervisors")

    r = client.post("/admin/catalogs/supervisors/new", data={"csrf_token": csrf, "personnel_id": str(sup_id)})
    assert r.status_code == 302
    with session_scope(app) as s:
        assignment = s.query(SupervisorAssignment).one()
        assert assignment.personnel.full_name == "Pedro Salas"

    assert client.get("/admin/catalogs/sectors").status_code == 403
    r = client.post("/admin/catalogs/sectors/new", data={"csrf_token": csrf, "name": "Sur"})
    assert r.status_code == 403


def test_catalogs_forbidden_for_cameras(app, client):
    add_user(app, "cam@example.com", "camaras")
    login(client, "cam@example.com")
    assert client.get("/admin/catalogs").status_code == 403
