"""Tests for the reference-data cache and the cached lookups."""
import pytest
from sqlalchemy.exc import OperationalError

from app.sgsc import create_app
from app.sgsc.cache import (
    KEY_PERSONNEL,
    KEY_SECTORS,
    KEY_SHIFTS,
    KEY_SUPERVISORS,
    KEY_VEHICLES,
    TTL_PERSONNEL,
    DataCache,
    clear_all,
    on_booth_change,
    on_personnel_change,
    on_sector_change,
    on_shift_change,
    on_vehicle_change,
)
from app.sgsc.db import session_scope
from app.sgsc.lookups import form_options, get_personnel, get_sectors, get_supervisors, preload_common_data
from app.sgsc.models import Base, Personnel, Sector, Shift


class FakeClock:
    def __init__(self, now: float = 0.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def cache(clock):
    return DataCache(clock=clock)


def test_value_present_until_ttl_elapses(cache, clock):
    cache.set(KEY_PERSONNEL, [{"id": 1}], TTL_PERSONNEL)

    clock.now = 119.999
    assert cache.get(KEY_PERSONNEL) == [{"id": 1}]

    clock.now = 120.001
    assert cache.get(KEY_PERSONNEL) is None


def test_value_absent_exactly_at_ttl(cache, clock):
    cache.set("k", "v", 10)
    clock.now = 10
    assert cache.get("k") is None
    # expired entries are dropped on read
    assert cache.stats() == {"size": 0, "keys": []}


def test_default_ttl_is_ten_minutes(cache, clock):
    cache.set("k", "v")
    clock.now = 599
    assert cache.has("k")
    clock.now = 600
    assert not cache.has("k")


def test_get_returns_stored_value_unchanged(cache):
    value = [{"id": 1, "name": "Sector 1"}]
    cache.set(KEY_SECTORS, value, 300)
    assert cache.get(KEY_SECTORS) is value


def test_unknown_key_is_none(cache):
    assert cache.get("missing") is None
    assert cache.has("missing") is False


def test_has_sees_stored_none_until_expiry(cache, clock):
    cache.set("k", None, 10)
    assert cache.has("k") is True
    assert cache.get("k") is None
    clock.now = 10
    assert cache.has("k") is False
    assert cache.stats()["size"] == 0


def test_clear_removes_immediately(cache):
    cache.set("a", 1, 1000)
    cache.set("b", 2, 1000)
    cache.clear("a")
    assert cache.get("a") is None
    assert cache.get("b") == 2
    cache.clear_all()
    assert cache.stats()["size"] == 0


def test_stats_lists_keys(cache):
    cache.set("a", 1)
    cache.set("b", 2)
    stats = cache.stats()
    assert stats["size"] == 2
    assert sorted(stats["keys"]) == ["a", "b"]


def _fill(cache):
    for key in (KEY_SECTORS, KEY_SHIFTS, KEY_PERSONNEL, KEY_SUPERVISORS, KEY_VEHICLES, "booths"):
        cache.set(key, ["x"], 1000)


def test_sector_change_drops_sectors_and_personnel(cache):
    _fill(cache)
    on_sector_change(cache)
    assert cache.get(KEY_SECTORS) is None
    assert cache.get(KEY_PERSONNEL) is None
    assert cache.get(KEY_SHIFTS) == ["x"]


def test_shift_change_drops_shifts_and_personnel(cache):
    _fill(cache)
    on_shift_change(cache)
    assert cache.get(KEY_SHIFTS) is None
    assert cache.get(KEY_PERSONNEL) is None
    assert cache.get(KEY_SECTORS) == ["x"]


def test_personnel_change_drops_personnel_and_supervisors(cache):
    _fill(cache)
    on_personnel_change(cache)
    assert cache.get(KEY_PERSONNEL) is None
    assert cache.get(KEY_SUPERVISORS) is None
    assert cache.get(KEY_VEHICLES) == ["x"]


def test_vehicle_and_booth_changes(cache):
    _fill(cache)
    on_vehicle_change(cache)
    on_booth_change(cache)
    assert cache.get(KEY_VEHICLES) is None
    assert cache.get("booths") is None
    assert cache.get(KEY_SECTORS) == ["x"]


# ---------- cached lookups ----------
@pytest.fixture()
def app(tmp_path, monkeypatch):
    monkeypatch.setenv("SECRET_KEY", "test-secret")
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path/'test.db'}")
    monkeypatch.setenv("ENV", "test")
    monkeypatch.setenv("STORAGE_BACKEND", "local")
    app = create_app()
    Base.metadata.create_all(bind=app.extensions["sqlalchemy_engine"])
    with session_scope(app) as s:
        north = Sector(name="Norte")
        morning = Shift(name="Mañana")
        s.add_all([north, morning])
        s.flush()
        s.add_all(
            [
                Personnel(dni="12345678", first_names="Juan", last_names="Perez", position="Sereno", sector_id=north.id),
                Personnel(dni="87654321", first_names="Maria", last_names="Lopez", position="Supervisor"),
                Personnel(dni="11112222", first_names="Ana", last_names="Diaz", position="Supervisor", status="inactivo"),
            ]
        )
    return app


def test_lookup_hits_database_once_then_cache(app, cache):
    with session_scope(app) as s:
        first = get_sectors(s, cache)
        assert [r["name"] for r in first] == ["Norte"]

        s.add(Sector(name="Sur"))
        s.flush()
        # still served from the cache
        assert [r["name"] for r in get_sectors(s, cache)] == ["Norte"]

        on_sector_change(cache)
        assert [r["name"] for r in get_sectors(s, cache)] == ["Norte", "Sur"]


def test_lookup_refetches_after_ttl(app, cache, clock):
    with session_scope(app) as s:
        assert len(get_personnel(s, cache)) == 3
        s.add(Personnel(dni="33334444", first_names="Luis", last_names="Ramos"))
        s.flush()
        clock.now = TTL_PERSONNEL - 1
        assert len(get_personnel(s, cache)) == 3
        clock.now = TTL_PERSONNEL
        assert len(get_personnel(s, cache)) == 4


def test_personnel_rows_carry_sector_name(app, cache):
    with session_scope(app) as s:
        rows = {r["dni"]: r for r in get_personnel(s, cache)}
    assert rows["12345678"]["sector_name"] == "Norte"
    assert rows["12345678"]["full_name"] == "Juan Perez"
    assert rows["87654321"]["sector_name"] is None


def test_supervisors_are_active_supervisory_positions(app, cache):
    with session_scope(app) as s:
        rows = get_supervisors(s, cache)
    assert [r["full_name"] for r in rows] == ["Maria Lopez"]


def test_preload_warms_common_keys(app, cache):
    with session_scope(app) as s:
        preload_common_data(s, cache)
    assert set(cache.stats()["keys"]) == {KEY_SECTORS, KEY_SHIFTS, KEY_PERSONNEL}


def test_form_options_pairs(app, cache):
    with session_scope(app) as s:
        options = form_options(s, cache)
    assert options["sectors"][0][1] == "Norte"
    assert ("Juan Perez (12345678)") in [label for _, label in options["personnel"]]
    assert options["shifts"][0][1] == "Mañana"


class BrokenSession:
    def __init__(self):
        self.rolled_back = False

    def query(self, *args, **kwargs):
        raise OperationalError("SELECT 1", {}, Exception("database is down"))

    def rollback(self):
        self.rolled_back = True


def test_failed_fetch_returns_empty_and_is_not_cached(cache, caplog):
    s = BrokenSession()
    with caplog.at_level("ERROR"):
        assert get_sectors(s, cache) == []
    assert s.rolled_back
    assert cache.get(KEY_SECTORS) is None
    assert "Error fetching sectors" in caplog.text


def test_form_options_degrade_to_empty_lists(cache, caplog):
    s = BrokenSession()
    with caplog.at_level("ERROR"):
        options = form_options(s, cache)
    assert set(options) == {"sectors", "shifts", "personnel", "supervisors", "vehicles", "booths", "annexes", "patrols"}
    assert all(v == [] for v in options.values())
    assert "Error fetching annexes" in caplog.text
    assert "Error fetching patrols" in caplog.text
    assert cache.stats()["size"] == 0


def test_clear_all_hook(cache):
    _fill(cache)
    clear_all(cache)
    assert cache.stats() == {"size": 0, "keys": []}
