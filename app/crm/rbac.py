from __future__ import annotations

import logging
from collections.abc import Callable
from functools import wraps
from typing import Any

from flask import abort, g
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.crm.constants import ROLE_ADMIN
from app.crm.db import db_session
from app.crm.models import RolePermission, User

logger = logging.getLogger(__name__)


def has_permission(s: Session, role: str | None, permission: str) -> bool:
    """
    ADMIN is always allowed. Every other role needs an explicit allowed row;
    a missing row, an empty role or a failing lookup all mean "denied".
    """
    if role == ROLE_ADMIN:
        return True
    if not role or not permission:
        return False
    try:
        row = s.get(RolePermission, (role, permission))
    except SQLAlchemyError as e:
        logger.error("Permission lookup failed (role=%s permission=%s): %s", role, permission, e)
        return False
    return bool(row and row.allowed)


def user_has_permission(s: Session, user: User | None, permission: str) -> bool:
    if not user or not user.is_active:
        return False
    return has_permission(s, user.role, permission)


def current_user() -> User:
    u = getattr(g, "current_user", None)
    if not u:
        abort(401)
    return u


def login_required(fn: Callable[..., Any]) -> Callable[..., Any]:
    @wraps(fn)
    def wrapped(*args: Any, **kwargs: Any):
        user: User | None = getattr(g, "current_user", None)
        if not user or not user.is_active:
            abort(401)
        return fn(*args, **kwargs)

    return wrapped


def require_permission(permission: str) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    def decorator(fn: Callable[..., Any]) -> Callable[..., Any]:
        @wraps(fn)
        def wrapped(*args: Any, **kwargs: Any):
            user: User | None = getattr(g, "current_user", None)
            if not user or not user.is_active:
                abort(401)
            if not user_has_permission(db_session(), user, permission):
                g.missing_permission = permission
                abort(403)
            return fn(*args, **kwargs)

        return wrapped

    return decorator


def require_role(*roles: str) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    allowed = frozenset(roles)

    def decorator(fn: Callable[..., Any]) -> Callable[..., Any]:
        @wraps(fn)
        def wrapped(*args: Any, **kwargs: Any):
            user: User | None = getattr(g, "current_user", None)
            if not user or not user.is_active:
                abort(401)
            if user.role not in allowed:
                abort(403)
            return fn(*args, **kwargs)

        return wrapped

    return decorator


def require_admin(fn: Callable[..., Any]) -> Callable[..., Any]:
    return require_role(ROLE_ADMIN)(fn)
