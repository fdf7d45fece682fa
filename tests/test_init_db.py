"""Tests for the seed script and the script-level database session."""
import pytest

from app.sgsc.db import create_db_engine, url_session_scope
from app.sgsc.models import Base, Role, Shift, User
from scripts.init_db import DEFAULT_SHIFTS, seed_only


@pytest.fixture()
def db_url(tmp_path):
    url = f"sqlite:///{tmp_path/'seed.db'}"
    engine = create_db_engine(url)
    Base.metadata.create_all(engine)
    engine.dispose()
    return url


def test_seed_only_is_idempotent(db_url, monkeypatch):
    monkeypatch.setenv("ADMIN_EMAIL", "Boss@SGSC.local")
    monkeypatch.setenv("ADMIN_PASSWORD", "pw")
    seed_only(database_url=db_url)
    seed_only(database_url=db_url)

    with url_session_scope(db_url) as s:
        users = s.query(User).all()
        assert [u.email for u in users] == ["boss@sgsc.local"]
        assert users[0].role_keys == ["admin"]
        assert s.query(Shift).count() == len(DEFAULT_SHIFTS)
        assert s.query(Role).filter(Role.key == "camaras").count() == 1


def test_url_session_scope_rolls_back_on_error(db_url):
    with pytest.raises(RuntimeError):
        with url_session_scope(db_url) as s:
            s.add(Shift(name="Noche"))
            s.flush()
            raise RuntimeError("abort import")

    with url_session_scope(db_url) as s:
        assert s.query(Shift).count() == 0
