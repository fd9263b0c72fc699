"""
Sales-rep visibility for clients and drone sales.

A record without a sales rep is visible to anyone holding the entity's view
permission. A record with a rep is visible only to that rep and to privileged
users (ADMIN/ADMINISTRATION role, or the entity's "view all" permission).
Routes, exports and dashboard counts all go through these helpers.
"""
from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Any, TypeVar

from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.crm.constants import (
    PRIVILEGED_ROLES,
    VIEW_ALL_CLIENTS,
    VIEW_ALL_DRONE_SALES,
    VIEW_CLIENTS,
    VIEW_DRONE_SALES,
)
from app.crm.models import User
from app.crm.rbac import user_has_permission

T = TypeVar("T")


@dataclass(frozen=True)
class VisibilityRule:
    view_permission: str
    view_all_permission: str


CLIENT_VISIBILITY = VisibilityRule(VIEW_CLIENTS, VIEW_ALL_CLIENTS)
DRONE_SALE_VISIBILITY = VisibilityRule(VIEW_DRONE_SALES, VIEW_ALL_DRONE_SALES)


def can_view_all(s: Session, user: User | None, rule: VisibilityRule) -> bool:
    if not user or not user.is_active:
        return False
    if user.role in PRIVILEGED_ROLES:
        return True
    return user_has_permission(s, user, rule.view_all_permission)


def can_view(s: Session, user: User | None, sales_rep_id: int | None, rule: VisibilityRule) -> bool:
    if not user_has_permission(s, user, rule.view_permission):
        return False
    if can_view_all(s, user, rule):
        return True
    return sales_rep_id is None or sales_rep_id == user.id  # type: ignore[union-attr]


def visibility_filter(s: Session, user: User, model: Any, rule: VisibilityRule):
    """
    SQL clause restricting `model` to rows the user may see; None when unrestricted.
    """
    if can_view_all(s, user, rule):
        return None
    return or_(model.sales_rep_id == user.id, model.sales_rep_id.is_(None))


def apply_visibility(query, s: Session, user: User, model: Any, rule: VisibilityRule):
    clause = visibility_filter(s, user, model, rule)
    if clause is not None:
        query = query.filter(clause)
    return query


def filter_visible(s: Session, user: User, records: Iterable[T], rule: VisibilityRule) -> Sequence[T]:
    records = list(records)
    if can_view_all(s, user, rule):
        return records
    return [r for r in records if getattr(r, "sales_rep_id", None) in (None, user.id)]
