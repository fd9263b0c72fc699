from __future__ import annotations

import json
import logging
from typing import Any

from flask import g, has_request_context
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.crm.constants import LOG_LEVELS
from app.crm.models import Log, User

logger = logging.getLogger(__name__)


def record_event(
    s: Session,
    *,
    actor: User | None,
    action: str,
    message: str | None = None,
    entity_type: str | None = None,
    entity_id: str | int | None = None,
    level: str = "info",
    metadata: dict[str, Any] | None = None,
    request_id: str | None = None,
) -> Log | None:
    """
    Append-only audit log helper.

    Best-effort: the row is written inside a SAVEPOINT, so a failing insert is
    rolled back on its own and the caller's transaction carries on.
    """
    if level not in LOG_LEVELS:
        level = "info"
    rid = request_id or (getattr(g, "request_id", None) if has_request_context() else None)
    ev = Log(
        request_id=rid,
        user_id=actor.id if actor else None,
        user_email=actor.email if actor else None,
        action=action,
        message=(message or "")[:512] or None,
        entity_type=entity_type,
        entity_id=str(entity_id) if entity_id is not None else None,
        level=level,
        metadata_json=json.dumps(metadata, sort_keys=True, default=str) if metadata else None,
    )
    try:
        with s.begin_nested():
            s.add(ev)
    except SQLAlchemyError as e:
        logger.warning("Audit write failed (action=%s request_id=%s): %s", action, rid, e)
        return None
    return ev
