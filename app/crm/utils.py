from __future__ import annotations

import math
import re
from datetime import date, datetime
from typing import Any

from flask import abort, request

_EMAIL_RE = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")


def is_valid_email(email: str) -> bool:
    return bool(_EMAIL_RE.match(email or ""))


def json_body() -> dict[str, Any]:
    """Request JSON object or 400."""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        abort(400, description="Request body must be a JSON object.")
    return data


def clean_str(value: Any) -> str | None:
    if value is None:
        return None
    s = str(value).strip()
    return s or None


def page_args(default_limit: int = 50, max_limit: int = 500) -> tuple[int, int]:
    try:
        page = int(request.args.get("page") or "1")
    except ValueError:
        page = 1
    try:
        limit = int(request.args.get("limit") or default_limit)
    except ValueError:
        limit = default_limit
    return max(page, 1), min(max(limit, 1), max_limit)


def paginate(query, page: int, limit: int) -> tuple[list, dict[str, int]]:
    total = query.order_by(None).count()
    items = query.offset((page - 1) * limit).limit(limit).all()
    return items, {
        "page": page,
        "limit": limit,
        "total_count": total,
        "total_pages": math.ceil(total / limit) if total else 0,
    }


def to_json_value(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value


def rep_summary(user) -> dict[str, Any] | None:
    if user is None:
        return None
    return {"id": user.id, "name": user.name, "email": user.email}
