from app.crm.admin import LOG_POLL_COOLDOWN, fetch_logs_with_cooldown
from app.crm.db import session_scope
from app.crm.models import Log, RolePermission, User
from app.crm.modules.clients.models import Client


def test_admin_endpoints_require_admin_role(client, login):
    login("office@example.com")
    assert client.get("/api/admin/users").status_code == 403
    assert client.get("/api/admin/permissions").status_code == 403


def test_list_and_create_users(client, login):
    login("admin@example.com")
    r = client.get("/api/admin/users")
    assert r.status_code == 200
    assert len(r.json["users"]) == 5
    assert "password_hash" not in r.json["users"][0]

    r = client.post(
        "/api/admin/users",
        json={"name": "Nový Pilot", "email": "Pilot@Example.com", "password": "long-enough", "role": "external"},
    )
    assert r.status_code == 201, r.json
    assert r.json["user"]["email"] == "pilot@example.com"
    assert r.json["user"]["role"] == "EXTERNAL"

    r = client.post(
        "/api/admin/users",
        json={"name": "Dup", "email": "pilot@example.com", "password": "long-enough", "role": "INTERNAL"},
    )
    assert r.status_code == 400
    assert "already exists" in r.json["error"]

    r = client.post("/api/admin/users", json={"name": "X", "email": "x@example.com", "password": "short", "role": "INTERNAL"})
    assert r.status_code == 400

    r = client.post("/api/admin/users", json={"name": "X", "email": "x@example.com", "password": "long-enough", "role": "BOSS"})
    assert r.status_code == 400

    login("pilot@example.com", "long-enough")


def test_change_role_and_last_admin_guard(client, login, user_id):
    login("admin@example.com")
    rep = user_id("rep@example.com")
    r = client.put(f"/api/admin/users/{rep}/role", json={"role": "ADMINISTRATION"})
    assert r.status_code == 200
    assert r.json["user"]["role"] == "ADMINISTRATION"

    admin = user_id("admin@example.com")
    r = client.put(f"/api/admin/users/{admin}/role", json={"role": "INTERNAL"})
    assert r.status_code == 400
    assert r.json["error"] == "Cannot remove the last administrator."


def test_delete_user_detaches_records(client, login, app, user_id):
    login("rep@example.com")
    r = client.post("/api/clients", json={"company_name": "Owned", "ico": "60000001"})
    client_id = r.json["id"]

    login("admin@example.com")
    rep = user_id("rep@example.com")
    assert client.delete(f"/api/admin/users/{user_id('admin@example.com')}").status_code == 400
    r = client.delete(f"/api/admin/users/{rep}")
    assert r.status_code == 200
    assert client.delete("/api/admin/users/9999").status_code == 404

    with session_scope(app) as s:
        assert s.get(User, rep) is None
        assert s.get(Client, client_id).sales_rep_id is None
        kept = s.query(Log).filter(Log.user_email == "rep@example.com").all()
        assert kept
        assert all(l.user_id is None for l in kept)


def test_permission_matrix(client, login):
    login("admin@example.com")
    r = client.get("/api/admin/permissions")
    assert r.status_code == 200
    body = r.json
    assert body["roles"] == ["ADMIN", "ADMINISTRATION", "INTERNAL", "EXTERNAL"]
    assert {"key": "view_clients", "name": "Clients: view"} in body["permissions"]
    assert body["matrix"]["delete_clients"] == {
        "ADMIN": True,
        "ADMINISTRATION": True,
        "INTERNAL": False,
        "EXTERNAL": False,
    }


def test_update_role_permissions(client, login, app):
    login("admin@example.com")
    r = client.put("/api/admin/permissions/EXTERNAL", json={"export_clients": True, "view_drone_sales": False})
    assert r.status_code == 200
    assert r.json["matrix"]["export_clients"]["EXTERNAL"] is True
    assert r.json["matrix"]["view_drone_sales"]["EXTERNAL"] is False

    with session_scope(app) as s:
        assert s.get(RolePermission, ("EXTERNAL", "export_clients")).allowed is True
        assert s.query(Log).filter(Log.action == "permissions.update").count() == 1

    assert client.put("/api/admin/permissions/ADMIN", json={"view_clients": False}).status_code == 400
    assert client.put("/api/admin/permissions/EXTERNAL", json={"fly": True}).status_code == 400
    assert client.put("/api/admin/permissions/EXTERNAL", json={"view_clients": "yes"}).status_code == 400

    login("ext@example.com")
    assert client.get("/api/clients/export").status_code == 200
    assert client.get("/api/drone-sales").status_code == 403


def test_logs_list_and_filters(client, login):
    login("admin@example.com")
    client.post("/api/clients", json={"company_name": "Logged", "ico": "70000001"})

    r = client.get("/api/logs")
    assert r.status_code == 200
    actions = [l["action"] for l in r.json["logs"]]
    assert actions[0] == "client.create"
    assert "auth.login" in actions

    r = client.get("/api/logs?action=client.create")
    assert [l["action"] for l in r.json["logs"]] == ["client.create"]
    log_id = r.json["logs"][0]["id"]
    assert client.get(f"/api/logs/{log_id}").json["entity_type"] == "Client"
    assert client.get("/api/logs/999999").status_code == 404
    assert client.get("/api/logs?level=loud").status_code == 400


def test_logs_require_permission(client, login):
    login("rep@example.com")
    r = client.get("/api/logs")
    assert r.status_code == 403
    assert r.json["missing_permission"] == "view_logs"


def test_logs_poll_cooldown(client, login):
    login("admin@example.com")
    assert client.get("/api/logs?poll=1").status_code == 200
    r = client.get("/api/logs?poll=1")
    assert r.status_code == 429
    assert r.json["retry_after"] > 0
    assert int(r.headers["Retry-After"]) >= 1
    assert client.get("/api/logs").status_code == 200


def test_fetch_logs_with_cooldown():
    assert fetch_logs_with_cooldown(1, now=100.0) == 0.0
    assert fetch_logs_with_cooldown(1, now=102.0) == LOG_POLL_COOLDOWN - 2.0
    assert fetch_logs_with_cooldown(2, now=102.0) == 0.0
    assert fetch_logs_with_cooldown(1, now=100.0 + LOG_POLL_COOLDOWN) == 0.0
