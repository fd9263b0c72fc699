"""
Client import: upsert by IČO with per-row error collection.

Each row runs inside its own SAVEPOINT so one bad row never aborts the batch.
The caller commits once at the end.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.crm.audit import record_event
from app.crm.constants import CLIENT_STATUS_NEW
from app.crm.models import User
from app.crm.modules.clients.fields import FIELD_BY_NAME
from app.crm.modules.clients.models import Client
from app.crm.modules.clients.service import find_by_ico
from app.crm.modules.imports.coerce import coerce, is_blank, normalize_ico, parse_text
from app.crm.modules.imports.headers import SALES_REP
from app.crm.modules.imports.parsers import SheetRow
from app.crm.utils import to_json_value

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ImportRowError:
    row: int
    error: str
    data: dict[str, Any]

    def to_dict(self) -> dict[str, Any]:
        return {"row": self.row, "error": self.error, "data": self.data}


@dataclass
class ImportResult:
    total: int = 0
    created: int = 0
    updated: int = 0
    errors: list[ImportRowError] = field(default_factory=list)

    @property
    def imported(self) -> int:
        return self.created + self.updated

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": True,
            "imported": self.imported,
            "created": self.created,
            "updated": self.updated,
            "total": self.total,
            "errors": [e.to_dict() for e in self.errors],
            "summary": {
                "total_rows": self.total,
                "new_clients": self.created,
                "updated_clients": self.updated,
                "failed_rows": len(self.errors),
            },
        }


def resolve_sales_rep(name: str | None, users: list[User], fallback: User) -> User:
    """
    Match a free-text rep name against users: exact name (case-insensitive),
    then substring in either direction, then e-mail. Falls back to `fallback`.
    """
    needle = (name or "").strip().lower()
    if not needle:
        return fallback

    for u in users:
        if (u.name or "").strip().lower() == needle:
            return u
    for u in users:
        uname = (u.name or "").strip().lower()
        if uname and (needle in uname or uname in needle):
            return u
    for u in users:
        if (u.email or "").strip().lower() == needle:
            return u
    return fallback


def _row_values(rec: SheetRow) -> dict[str, Any]:
    values: dict[str, Any] = {}
    for name, raw in rec.values.items():
        if name in (SALES_REP, "company_name", "ico") or is_blank(raw):
            continue
        field_def = FIELD_BY_NAME.get(name)
        if field_def is None:
            continue
        value = coerce(field_def.kind, raw)
        if value is not None:
            values[name] = value
    return values


def _json_safe(raw: dict[str, Any]) -> dict[str, Any]:
    return {k: to_json_value(v) for k, v in raw.items() if not is_blank(v)}


def import_client_rows(s: Session, rows: list[SheetRow], *, user: User, source: str | None = None) -> ImportResult:
    result = ImportResult(total=len(rows))
    users = s.query(User).filter(User.is_active.is_(True)).all()

    for rec in rows:
        company_name = parse_text(rec.values.get("company_name"))
        ico = normalize_ico(rec.values.get("ico"))
        if not company_name or not ico:
            result.errors.append(
                ImportRowError(rec.row_number, f"Missing required fields in row {rec.row_number}", _json_safe(rec.raw))
            )
            continue

        rep = resolve_sales_rep(parse_text(rec.values.get(SALES_REP)), users, user)
        values = _row_values(rec)

        try:
            with s.begin_nested():
                client = find_by_ico(s, ico)
                if client is not None:
                    client.company_name = company_name
                    for name, value in values.items():
                        setattr(client, name, value)
                    client.sales_rep_id = rep.id
                    action = "client.import_update"
                else:
                    values.setdefault("status", CLIENT_STATUS_NEW)
                    client = Client(company_name=company_name, ico=ico, sales_rep_id=rep.id, **values)
                    s.add(client)
                    action = "client.import_create"
                s.flush()
        except (SQLAlchemyError, ValueError, TypeError) as e:
            logger.warning("Import row %s failed (ico=%s): %s", rec.row_number, ico, e)
            result.errors.append(ImportRowError(rec.row_number, str(e), _json_safe(rec.raw)))
            continue

        if action == "client.import_update":
            result.updated += 1
        else:
            result.created += 1
        record_event(
            s,
            actor=user,
            action=action,
            message=f"Imported client {company_name}",
            entity_type="Client",
            entity_id=client.id,
            metadata={"ico": ico, "row": rec.row_number, "sales_rep_id": rep.id},
        )

    record_event(
        s,
        actor=user,
        action="client.import",
        message=f"Imported {result.imported} of {result.total} rows",
        entity_type="Client",
        entity_id="import",
        level="warning" if result.errors else "info",
        metadata={
            "source": source,
            "created": result.created,
            "updated": result.updated,
            "failed": len(result.errors),
        },
    )
    logger.info(
        "Client import done (source=%s): %s created, %s updated, %s failed",
        source,
        result.created,
        result.updated,
        len(result.errors),
    )
    return result
