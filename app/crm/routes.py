from __future__ import annotations

from datetime import datetime

from flask import Blueprint, jsonify
from sqlalchemy import func

from app.crm.constants import (
    CLIENT_STATUS_DONE,
    CLIENT_STATUS_OFFER_SENT,
    CZECH_MONTH_ABBR,
    VIEW_CLIENTS,
)
from app.crm.db import db_session
from app.crm.models import User
from app.crm.modules.clients.models import Client
from app.crm.rbac import current_user, login_required, require_permission
from app.crm.visibility import CLIENT_VISIBILITY, apply_visibility

bp = Blueprint("routes", __name__)


@bp.get("/health")
def health():
    """Health check endpoint. Returns JSON."""
    return {"ok": True}


@bp.get("/healthz")
def healthz():
    """
    Fast health check for container probes. No DB access.
    """
    return "ok", 200


@bp.get("/api/users")
@login_required
def users_directory():
    """Active users for sales-rep pickers."""
    s = db_session()
    users = s.query(User).filter(User.is_active.is_(True)).order_by(User.name.asc(), User.email.asc()).all()
    return jsonify({"users": [{"id": u.id, "name": u.name, "email": u.email} for u in users]})


def _month_starts(now: datetime, count: int) -> list[datetime]:
    starts = []
    year, month = now.year, now.month
    for _ in range(count):
        starts.append(datetime(year, month, 1))
        month -= 1
        if month == 0:
            year, month = year - 1, 12
    return list(reversed(starts))


def _next_month(d: datetime) -> datetime:
    return datetime(d.year + 1, 1, 1) if d.month == 12 else datetime(d.year, d.month + 1, 1)


@bp.get("/api/dashboard/stats")
@require_permission(VIEW_CLIENTS)
def dashboard_stats():
    s = db_session()
    u = current_user()

    def visible(q):
        return apply_visibility(q, s, u, Client, CLIENT_VISIBILITY)

    now = datetime.utcnow()
    months = _month_starts(now, 6)
    this_month = months[-1]

    total = visible(s.query(Client)).count()
    new_this_month = visible(s.query(Client).filter(Client.created_at >= this_month)).count()
    pending_offers = visible(s.query(Client).filter(Client.status == CLIENT_STATUS_OFFER_SENT)).count()
    completed = visible(s.query(Client).filter(Client.status == CLIENT_STATUS_DONE)).count()

    grouped = visible(s.query(Client.status, func.count(Client.id))).group_by(Client.status).all()
    status_distribution = [{"name": status or "Neuvedeno", "value": count} for status, count in grouped]

    monthly = []
    for start in months:
        count = visible(
            s.query(Client).filter(Client.created_at >= start, Client.created_at < _next_month(start))
        ).count()
        monthly.append({"name": CZECH_MONTH_ABBR[start.month - 1], "clients": count})

    return jsonify(
        {
            "total_clients": total,
            "new_clients_this_month": new_this_month,
            "pending_offers": pending_offers,
            "completed_projects": completed,
            "status_distribution": status_distribution,
            "monthly_acquisitions": monthly,
        }
    )
