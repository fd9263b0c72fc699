import pytest
from werkzeug.security import check_password_hash

from app.crm.db import normalize_database_url, session_scope
from app.crm.models import RolePermission, User
from scripts._db_utils import script_session
from scripts.create_user import create_or_update_user
from scripts.init_db import ensure_admin_user, seed_only, seed_role_permissions
from scripts.start import validated_port


def test_seed_is_idempotent_and_keeps_admin_edits(app):
    with session_scope(app) as s:
        assert seed_role_permissions(s) == 0
        s.get(RolePermission, ("INTERNAL", "view_clients")).allowed = False

    with session_scope(app) as s:
        assert seed_role_permissions(s) == 0
        assert s.get(RolePermission, ("INTERNAL", "view_clients")).allowed is False
        assert s.get(RolePermission, ("ADMIN", "view_clients")) is None


def test_ensure_admin_user_never_resets_password(app):
    with session_scope(app) as s:
        u = ensure_admin_user(s, email="rep@example.com", password="ignored-pw", name="X")
        assert u.role == "ADMIN"
        assert check_password_hash(u.password_hash, "pw-secret-1")


def test_seed_only_creates_schema_and_admin(tmp_path, monkeypatch):
    db_url = f"sqlite:///{tmp_path/'seed.db'}"
    monkeypatch.setenv("ADMIN_EMAIL", "Boss@Example.com")
    monkeypatch.setenv("ADMIN_PASSWORD", "boss-password")
    seed_only(database_url=db_url)
    seed_only(database_url=db_url)

    with script_session(db_url) as s:
        admins = s.query(User).filter(User.role == "ADMIN").all()
        assert [a.email for a in admins] == ["boss@example.com"]
        assert s.query(RolePermission).filter(RolePermission.role == "EXTERNAL").count() > 0


def test_create_or_update_user(tmp_path):
    db_url = f"sqlite:///{tmp_path/'users.db'}"
    assert create_or_update_user(db_url, email="Pilot@Example.com", name="Pilot", role="EXTERNAL", password="pilot-pw-1") == "created"
    assert create_or_update_user(db_url, email="pilot@example.com", name=None, role="INTERNAL", password=None) == "updated"

    with script_session(db_url) as s:
        u = s.query(User).filter(User.email == "pilot@example.com").one()
        assert u.role == "INTERNAL"
        assert u.name == "Pilot"
        assert check_password_hash(u.password_hash, "pilot-pw-1")

    with pytest.raises(ValueError):
        create_or_update_user(db_url, email="new@example.com", name=None, role="INTERNAL", password=None)
    with pytest.raises(ValueError):
        create_or_update_user(db_url, email="bad", name=None, role="INTERNAL", password="long-enough")


def test_validated_port():
    assert validated_port(None) == "8080"
    assert validated_port(" 5000 ") == "5000"
    with pytest.raises(ValueError):
        validated_port("http")
    with pytest.raises(ValueError):
        validated_port("70000")


def test_normalize_database_url():
    assert normalize_database_url("postgres://u:p@db/crm") == "postgresql://u:p@db/crm"
    assert normalize_database_url("sqlite:///crm.db") == "sqlite:///crm.db"
