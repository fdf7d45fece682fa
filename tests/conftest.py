import pytest
from werkzeug.security import generate_password_hash

from app.sgsc import auth, create_app
from app.sgsc.db import session_scope
from app.sgsc.models import Base, Role, User
from scripts.init_db import seed_permissions_and_roles

ADMIN_EMAIL = "admin@example.com"


@pytest.fixture(autouse=True)
def _reset_login_rate_limit():
    auth._login_attempts.clear()
    yield
    auth._login_attempts.clear()


@pytest.fixture()
def app(tmp_path, monkeypatch):
    monkeypatch.setenv("SECRET_KEY", "test-secret")
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path/'test.db'}")
    monkeypatch.setenv("ENV", "test")
    monkeypatch.setenv("STORAGE_BACKEND", "local")
    monkeypatch.setenv("STORAGE_LOCAL_ROOT", str(tmp_path / "storage"))
    for k in ("S3_ENDPOINT", "S3_REGION", "S3_BUCKET", "S3_ACCESS_KEY_ID", "S3_SECRET_ACCESS_KEY"):
        monkeypatch.delenv(k, raising=False)

    app = create_app()
    Base.metadata.create_all(bind=app.extensions["sqlalchemy_engine"])

    with session_scope(app) as s:
        seed_permissions_and_roles(s)
        _add_user(s, ADMIN_EMAIL, "admin")
    return app


@pytest.fixture()
def client(app):
    return app.test_client()


def _add_user(s, email: str, role_key: str) -> User:
    role = s.query(Role).filter(Role.key == role_key).one()
    u = User(email=email, password_hash=generate_password_hash("pw"), is_active=True)
    u.roles.append(role)
    s.add(u)
    return u


def add_user(app, email: str, role_key: str) -> None:
    with session_scope(app) as s:
        _add_user(s, email, role_key)


def login(client, email: str = ADMIN_EMAIL) -> str:
    """Log in and return the session's CSRF token."""
    r = client.post("/auth/login", data={"email": email, "password": "pw"}, follow_redirects=False)
    assert r.status_code == 302
    with client.session_transaction() as sess:
        return sess["csrf_token"]
