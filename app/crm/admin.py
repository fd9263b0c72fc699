from __future__ import annotations

import time

from flask import Blueprint, abort, jsonify, request
from werkzeug.security import generate_password_hash

from app.crm.audit import record_event
from app.crm.constants import LOG_LEVELS, PERMISSIONS, ROLE_ADMIN, ROLES, VIEW_LOGS
from app.crm.db import db_session
from app.crm.models import Log, RolePermission, User
from app.crm.modules.clients.models import Client
from app.crm.modules.drone_sales.models import DroneSale
from app.crm.rbac import current_user, require_admin, require_permission
from app.crm.utils import is_valid_email, json_body

bp = Blueprint("admin", __name__)
logs_bp = Blueprint("logs", __name__)

LOG_PAGE_SIZE = 100
LOG_POLL_COOLDOWN = 5.0  # seconds
_last_log_poll: dict[int, float] = {}


def _user_or_404(user_id: int) -> User:
    u = db_session().get(User, user_id)
    if u is None:
        abort(404, description="User not found.")
    return u


def _validate_role(role: str) -> str:
    role = (role or "").strip().upper()
    if role not in ROLES:
        abort(400, description=f"Invalid role. Expected one of: {', '.join(ROLES)}.")
    return role


@bp.get("/users")
@require_admin
def users_list():
    s = db_session()
    users = s.query(User).order_by(User.created_at.desc(), User.id.desc()).all()
    return jsonify({"users": [u.to_dict() for u in users]})


@bp.post("/users")
@require_admin
def users_create():
    s = db_session()
    data = json_body()
    name = str(data.get("name") or "").strip()
    email = str(data.get("email") or "").strip().lower()
    password = str(data.get("password") or "")
    role = _validate_role(str(data.get("role") or ""))

    errors: list[str] = []
    if not name:
        errors.append("Name is required.")
    if not email:
        errors.append("Email is required.")
    elif not is_valid_email(email):
        errors.append("Invalid email format.")
    elif s.query(User).filter(User.email == email).one_or_none():
        errors.append("An account with this email already exists.")
    if len(password) < 8:
        errors.append("Password must be at least 8 characters.")
    if errors:
        abort(400, description=" ".join(errors))

    u = User(name=name, email=email, password_hash=generate_password_hash(password), role=role, is_active=True)
    s.add(u)
    s.flush()
    record_event(
        s,
        actor=current_user(),
        action="user.create",
        message=f"Created user {email}",
        entity_type="User",
        entity_id=u.id,
        metadata={"email": email, "role": role},
    )
    s.commit()
    return jsonify({"user": u.to_dict()}), 201


@bp.delete("/users/<int:user_id>")
@require_admin
def users_delete(user_id: int):
    s = db_session()
    actor = current_user()
    u = _user_or_404(user_id)
    if u.id == actor.id:
        abort(400, description="You cannot delete your own account.")

    # Detach owned records; logs keep the e-mail snapshot.
    s.query(Client).filter(Client.sales_rep_id == u.id).update({Client.sales_rep_id: None}, synchronize_session=False)
    s.query(DroneSale).filter(DroneSale.sales_rep_id == u.id).update(
        {DroneSale.sales_rep_id: None}, synchronize_session=False
    )
    s.query(Log).filter(Log.user_id == u.id).update({Log.user_id: None}, synchronize_session=False)
    record_event(
        s,
        actor=actor,
        action="user.delete",
        message=f"Deleted user {u.email}",
        entity_type="User",
        entity_id=u.id,
        level="warning",
        metadata={"email": u.email, "role": u.role},
    )
    s.delete(u)
    s.commit()
    return jsonify({"success": True})


@bp.put("/users/<int:user_id>/role")
@require_admin
def users_set_role(user_id: int):
    s = db_session()
    u = _user_or_404(user_id)
    role = _validate_role(str(json_body().get("role") or ""))
    if u.role == ROLE_ADMIN and role != ROLE_ADMIN:
        admins = s.query(User).filter(User.role == ROLE_ADMIN, User.is_active.is_(True)).count()
        if admins <= 1:
            abort(400, description="Cannot remove the last administrator.")

    old = u.role
    u.role = role
    record_event(
        s,
        actor=current_user(),
        action="user.role_change",
        message=f"Changed role of {u.email} from {old} to {role}",
        entity_type="User",
        entity_id=u.id,
        metadata={"from": old, "to": role},
    )
    s.commit()
    return jsonify({"user": u.to_dict()})


def _permission_matrix(s) -> dict[str, dict[str, bool]]:
    matrix = {p: {r: r == ROLE_ADMIN for r in ROLES} for p in PERMISSIONS}
    for row in s.query(RolePermission).all():
        if row.role == ROLE_ADMIN or row.role not in ROLES:
            continue
        matrix.setdefault(row.permission, {r: r == ROLE_ADMIN for r in ROLES})[row.role] = bool(row.allowed)
    return matrix


@bp.get("/permissions")
@require_admin
def permissions_get():
    s = db_session()
    return jsonify(
        {
            "roles": list(ROLES),
            "permissions": [{"key": k, "name": v} for k, v in PERMISSIONS.items()],
            "matrix": _permission_matrix(s),
        }
    )


@bp.put("/permissions/<role>")
@require_admin
def permissions_update(role: str):
    s = db_session()
    role = _validate_role(role)
    if role == ROLE_ADMIN:
        abort(400, description="ADMIN permissions cannot be changed.")
    data = json_body()
    unknown = sorted(k for k in data if k not in PERMISSIONS)
    if unknown:
        abort(400, description=f"Unknown permissions: {', '.join(unknown)}")
    bad = sorted(k for k, v in data.items() if not isinstance(v, bool))
    if bad:
        abort(400, description=f"Permission values must be true/false: {', '.join(bad)}")

    changes: dict[str, bool] = {}
    for perm, allowed in data.items():
        row = s.get(RolePermission, (role, perm))
        if row is None:
            s.add(RolePermission(role=role, permission=perm, allowed=allowed))
            changes[perm] = allowed
        elif row.allowed != allowed:
            row.allowed = allowed
            changes[perm] = allowed
    s.flush()
    record_event(
        s,
        actor=current_user(),
        action="permissions.update",
        message=f"Updated permissions for {role}",
        entity_type="RolePermission",
        entity_id=role,
        metadata={"changes": changes},
    )
    s.commit()
    return jsonify({"role": role, "matrix": _permission_matrix(s)})


def fetch_logs_with_cooldown(user_id: int, now: float | None = None) -> float:
    """
    Poll throttle for the log viewer. Returns seconds left to wait (0 when the
    caller may fetch, in which case the poll is recorded).
    """
    now = time.monotonic() if now is None else now
    last = _last_log_poll.get(user_id)
    if last is not None and now - last < LOG_POLL_COOLDOWN:
        return LOG_POLL_COOLDOWN - (now - last)
    _last_log_poll[user_id] = now
    return 0.0


@logs_bp.get("")
@require_permission(VIEW_LOGS)
def logs_list():
    s = db_session()
    u = current_user()
    if request.args.get("poll") == "1":
        wait = fetch_logs_with_cooldown(u.id)
        if wait > 0:
            resp = jsonify({"error": "Too many requests.", "retry_after": round(wait, 1)})
            resp.status_code = 429
            resp.headers["Retry-After"] = str(max(1, int(wait + 0.999)))
            return resp

    q = s.query(Log)
    action = (request.args.get("action") or "").strip()
    if action:
        q = q.filter(Log.action == action)
    entity_type = (request.args.get("entity_type") or "").strip()
    if entity_type:
        q = q.filter(Log.entity_type == entity_type)
    level = (request.args.get("level") or "").strip().lower()
    if level:
        if level not in LOG_LEVELS:
            abort(400, description="Invalid log level.")
        q = q.filter(Log.level == level)
    logs = q.order_by(Log.created_at.desc(), Log.id.desc()).limit(LOG_PAGE_SIZE).all()
    return jsonify({"logs": [l.to_dict() for l in logs]})


@logs_bp.get("/<int:log_id>")
@require_permission(VIEW_LOGS)
def logs_get(log_id: int):
    log = db_session().get(Log, log_id)
    if log is None:
        abort(404, description="Log entry not found.")
    return jsonify(log.to_dict())
