import pytest
from werkzeug.security import generate_password_hash

from app.crm import create_app
from app.crm.admin import _last_log_poll
from app.crm.auth import _login_attempts
from app.crm.db import session_scope
from app.crm.models import Base, User
from scripts.init_db import seed_role_permissions

PASSWORD = "pw-secret-1"

USERS = (
    ("admin@example.com", "Admin User", "ADMIN"),
    ("office@example.com", "Kancelář", "ADMINISTRATION"),
    ("rep@example.com", "Jan Novák", "INTERNAL"),
    ("rep2@example.com", "Petr Svoboda", "INTERNAL"),
    ("ext@example.com", "Eva Dvořáková", "EXTERNAL"),
)


@pytest.fixture(autouse=True)
def _reset_throttles():
    _login_attempts.clear()
    _last_log_poll.clear()
    yield
    _login_attempts.clear()
    _last_log_poll.clear()


@pytest.fixture()
def app(tmp_path, monkeypatch):
    monkeypatch.setenv("SECRET_KEY", "test-secret")
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path/'test.db'}")
    monkeypatch.setenv("ENV", "test")
    monkeypatch.setenv("LOG_LEVEL", "WARNING")

    app = create_app()
    engine = app.extensions["sqlalchemy_engine"]
    Base.metadata.create_all(bind=engine)

    with session_scope(app) as s:
        seed_role_permissions(s)
        for email, name, role in USERS:
            s.add(User(email=email, name=name, role=role, password_hash=generate_password_hash(PASSWORD), is_active=True))

    return app


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def login(client):
    def _login(email: str, password: str = PASSWORD):
        r = client.post("/api/auth/login", json={"email": email, "password": password})
        assert r.status_code == 200, r.json
        return r

    return _login


@pytest.fixture()
def user_id(app):
    def _user_id(email: str) -> int:
        with session_scope(app) as s:
            return s.query(User).filter(User.email == email).one().id

    return _user_id
