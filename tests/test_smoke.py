import io

import pytest

from app.crm import create_app
from app.crm.config import load_config


def test_health_ok(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json["ok"] is True


def test_healthz_ok(client):
    r = client.get("/healthz")
    assert r.status_code == 200
    assert r.data == b"ok"


def test_anonymous_gets_json_401(client):
    r = client.get("/api/clients")
    assert r.status_code == 401
    assert r.json == {"error": "Unauthorized"}


def test_unknown_route_is_json_404(client):
    r = client.get("/api/nope")
    assert r.status_code == 404
    assert "error" in r.json


def test_missing_permission_is_reported(client, login):
    login("ext@example.com")
    r = client.post("/api/clients", json={"company_name": "X", "ico": "12345678"})
    assert r.status_code == 403
    assert r.json["missing_permission"] == "add_client"


def test_users_directory_sorted_by_name(client, login):
    login("ext@example.com")
    r = client.get("/api/users")
    assert r.status_code == 200
    names = [u["name"] for u in r.json["users"]]
    assert names == sorted(names)
    assert set(r.json["users"][0]) == {"id", "name", "email"}


def test_upload_too_large_is_json_413(app, client, login):
    app.config["MAX_CONTENT_LENGTH"] = 1024
    login("admin@example.com")
    r = client.post(
        "/api/clients/import",
        data={"file": (io.BytesIO(b"x" * 4096), "big.csv")},
        content_type="multipart/form-data",
    )
    assert r.status_code == 413
    assert r.json == {"error": "File too large."}


def test_production_requires_postgres_and_secret(monkeypatch):
    monkeypatch.setenv("ENV", "production")
    monkeypatch.setenv("DATABASE_URL", "sqlite:///prod.db")
    monkeypatch.setenv("SECRET_KEY", "strong-secret")
    with pytest.raises(RuntimeError, match="Postgres"):
        create_app()

    monkeypatch.setenv("DATABASE_URL", "postgresql://u:p@db/crm")
    monkeypatch.setenv("SECRET_KEY", "change-me")
    with pytest.raises(RuntimeError, match="SECRET_KEY"):
        create_app()


def test_load_config_defaults(monkeypatch):
    for name in ("SECRET_KEY", "ENV", "SESSION_HOURS", "MAX_UPLOAD_MB", "LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("SESSION_HOURS", "not-a-number")
    cfg = load_config()
    assert cfg["SESSION_HOURS"] == 8
    assert cfg["MAX_CONTENT_LENGTH"] == 25 * 1024 * 1024
    assert cfg["SESSION_COOKIE_HTTPONLY"] is True
    assert cfg["SESSION_COOKIE_SECURE"] is False
