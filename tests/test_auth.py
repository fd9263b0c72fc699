from app.crm.db import session_scope
from app.crm.models import Log, User


def test_login_requires_fields(client):
    r = client.post("/api/auth/login", json={"email": "admin@example.com"})
    assert r.status_code == 400
    assert r.json["error"] == "Email and password are required."


def test_login_bad_credentials_is_audited(client, app):
    r = client.post("/api/auth/login", json={"email": "admin@example.com", "password": "wrong"})
    assert r.status_code == 401
    assert r.json["error"] == "Invalid credentials."
    with session_scope(app) as s:
        log = s.query(Log).filter(Log.action == "auth.login_failed").one()
        assert log.level == "warning"
        assert log.user_id is None


def test_login_sets_http_only_cookie(client, login):
    r = login("Admin@Example.com")
    assert r.json["user"]["email"] == "admin@example.com"
    cookie = r.headers["Set-Cookie"]
    assert "crm_session=" in cookie
    assert "HttpOnly" in cookie
    assert "SameSite=Lax" in cookie


def test_inactive_user_cannot_login(client, app):
    with session_scope(app) as s:
        s.query(User).filter(User.email == "ext@example.com").one().is_active = False
    r = client.post("/api/auth/login", json={"email": "ext@example.com", "password": "pw-secret-1"})
    assert r.status_code == 401


def test_me_role_and_logout(client, login):
    assert client.get("/api/auth/me").status_code == 401
    login("rep@example.com")
    r = client.get("/api/auth/me")
    assert r.json["user"]["name"] == "Jan Novák"
    assert client.get("/api/auth/check-role").json == {"role": "INTERNAL"}

    assert client.post("/api/auth/logout").status_code == 200
    assert client.get("/api/auth/me").status_code == 401


def test_check_permission_requires_key(client, login):
    login("rep@example.com")
    r = client.post("/api/auth/check-permission", json={})
    assert r.status_code == 400


def test_update_profile(client, login):
    login("rep@example.com")
    r = client.put("/api/auth/profile", json={"name": "Jan Novák ml.", "email": "jan@example.com"})
    assert r.status_code == 200
    assert r.json["user"]["email"] == "jan@example.com"

    assert client.put("/api/auth/profile", json={"name": "", "email": "a@b.cz"}).status_code == 400
    assert client.put("/api/auth/profile", json={"name": "J", "email": "not-an-email"}).status_code == 400
    r = client.put("/api/auth/profile", json={"name": "J", "email": "rep2@example.com"})
    assert r.status_code == 400
    assert r.json["error"] == "Email is already in use."


def test_change_password(client, login):
    login("rep@example.com")
    r = client.put("/api/auth/password", json={"currentPassword": "wrong", "newPassword": "another-pw"})
    assert r.status_code == 400
    r = client.put("/api/auth/password", json={"current_password": "pw-secret-1", "new_password": "short"})
    assert r.status_code == 400
    r = client.put("/api/auth/password", json={"current_password": "pw-secret-1", "new_password": "another-pw"})
    assert r.status_code == 200

    client.post("/api/auth/logout")
    login("rep@example.com", "another-pw")


def test_login_rate_limit(client):
    for _ in range(5):
        r = client.post("/api/auth/login", json={"email": "rep@example.com", "password": "wrong"})
        assert r.status_code == 401
    r = client.post("/api/auth/login", json={"email": "rep@example.com", "password": "pw-secret-1"})
    assert r.status_code == 429
