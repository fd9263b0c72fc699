from __future__ import annotations

import uuid
from collections import defaultdict
from datetime import datetime, timedelta

from flask import Blueprint, abort, current_app, g, jsonify, request, session
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.security import check_password_hash, generate_password_hash

from app.crm.audit import record_event
from app.crm.db import db_session
from app.crm.models import User
from app.crm.rbac import current_user, login_required, user_has_permission
from app.crm.utils import is_valid_email, json_body

bp = Blueprint("auth", __name__)
_login_attempts: dict[str, list[datetime]] = defaultdict(list)
_LOGIN_RATE_LIMIT = 5
_LOGIN_RATE_WINDOW = 300  # seconds
MIN_PASSWORD_LENGTH = 8


def _check_rate_limit(ip: str) -> bool:
    now = datetime.utcnow()
    cutoff = now - timedelta(seconds=_LOGIN_RATE_WINDOW)
    _login_attempts[ip] = [t for t in _login_attempts[ip] if t > cutoff]
    return len(_login_attempts[ip]) >= _LOGIN_RATE_LIMIT


def _record_attempt(ip: str) -> None:
    _login_attempts[ip].append(datetime.utcnow())


def load_current_user() -> None:
    """
    Loads g.current_user from the signed session cookie.
    Also assigns a per-request request_id (for audit/log correlation).
    """
    if not getattr(g, "request_id", None):
        g.request_id = uuid.uuid4().hex
    if request.path.startswith(("/health", "/healthz")):
        g.current_user = None
        return

    user_id = session.get("user_id")
    if not user_id:
        g.current_user = None
        return

    try:
        s = db_session()
        user = s.get(User, int(user_id))
    except (SQLAlchemyError, ValueError) as e:
        current_app.logger.error("load_current_user failed (clearing session): %s", e)
        session.pop("user_id", None)
        g.current_user = None
        return
    if not user or not user.is_active:
        session.pop("user_id", None)
        g.current_user = None
        return
    g.current_user = user


@bp.post("/login")
def login():
    data = request.get_json(silent=True) or {}
    email = str(data.get("email") or "").strip().lower()
    password = str(data.get("password") or "")
    ip = request.remote_addr or "unknown"

    if not email or not password:
        abort(400, description="Email and password are required.")
    if _check_rate_limit(ip):
        abort(429, description="Too many login attempts. Please wait 5 minutes.")
    _record_attempt(ip)

    s = db_session()
    user = s.query(User).filter(User.email == email).one_or_none()
    if not user or not user.is_active or not check_password_hash(user.password_hash, password):
        record_event(
            s,
            actor=None,
            action="auth.login_failed",
            message="Invalid credentials",
            entity_type="User",
            entity_id=email,
            level="warning",
            metadata={"email": email, "ip": ip},
        )
        s.commit()
        abort(401, description="Invalid credentials.")

    session.clear()
    session["user_id"] = user.id
    session.permanent = True
    _login_attempts[ip].clear()
    record_event(s, actor=user, action="auth.login", message="Logged in", entity_type="User", entity_id=user.id)
    s.commit()
    return jsonify({"user": user.to_dict()})


@bp.post("/logout")
def logout():
    user = getattr(g, "current_user", None)
    if user:
        s = db_session()
        record_event(s, actor=user, action="auth.logout", message="Logged out", entity_type="User", entity_id=user.id)
        s.commit()
    session.clear()
    return jsonify({"success": True})


@bp.get("/me")
@login_required
def me():
    return jsonify({"user": current_user().to_dict()})


@bp.get("/check-role")
@login_required
def check_role():
    return jsonify({"role": current_user().role})


@bp.post("/check-permission")
@login_required
def check_permission():
    permission = str(json_body().get("permission") or "").strip()
    if not permission:
        abort(400, description="Permission is required.")
    return jsonify({"permission": permission, "allowed": user_has_permission(db_session(), current_user(), permission)})


@bp.put("/profile")
@login_required
def update_profile():
    s = db_session()
    u = current_user()
    data = json_body()
    name = str(data.get("name") or "").strip()
    email = str(data.get("email") or "").strip().lower()
    if not name or not email:
        abort(400, description="Name and email are required.")
    if not is_valid_email(email):
        abort(400, description="Invalid email format.")
    existing = s.query(User).filter(User.email == email, User.id != u.id).one_or_none()
    if existing:
        abort(400, description="Email is already in use.")

    changed = {k: v for k, v in (("name", name), ("email", email)) if getattr(u, k) != v}
    u.name = name
    u.email = email
    record_event(
        s,
        actor=u,
        action="user.profile_update",
        message="Updated profile",
        entity_type="User",
        entity_id=u.id,
        metadata={"fields": sorted(changed)},
    )
    s.commit()
    return jsonify({"user": u.to_dict()})


@bp.put("/password")
@login_required
def change_password():
    s = db_session()
    u = current_user()
    data = json_body()
    current_password = str(data.get("current_password") or data.get("currentPassword") or "")
    new_password = str(data.get("new_password") or data.get("newPassword") or "")
    if not current_password or not new_password:
        abort(400, description="Current and new password are required.")
    if not check_password_hash(u.password_hash, current_password):
        abort(400, description="Current password is incorrect.")
    if len(new_password) < MIN_PASSWORD_LENGTH:
        abort(400, description=f"New password must be at least {MIN_PASSWORD_LENGTH} characters.")

    u.password_hash = generate_password_hash(new_password)
    record_event(s, actor=u, action="user.password_change", message="Changed password", entity_type="User", entity_id=u.id)
    s.commit()
    return jsonify({"success": True})
