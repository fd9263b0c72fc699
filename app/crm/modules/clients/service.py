from __future__ import annotations

from typing import Any

from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.crm.audit import record_event
from app.crm.constants import ADMIN, CLIENT_STATUS_NEW, UNASSIGNED_REP_LABEL
from app.crm.models import User
from app.crm.modules.clients.fields import (
    BASIC_INFO_FIELDS,
    CATEGORIES,
    FIELD_BY_NAME,
    FIELDS,
    camel_case,
    edit_permission_for,
)
from app.crm.modules.clients.models import Client
from app.crm.modules.imports.coerce import coerce, is_blank, normalize_ico
from app.crm.rbac import user_has_permission
from app.crm.utils import clean_str, to_json_value
from app.crm.visibility import CLIENT_VISIBILITY, can_view_all

READ_ONLY_KEYS = frozenset({"id", "created_at", "updated_at", "createdAt", "updatedAt", "sales_rep", "salesRep"})

_KEY_TO_FIELD: dict[str, str] = {}
for _f in FIELDS:
    _KEY_TO_FIELD[_f.name] = _f.name
    _KEY_TO_FIELD[camel_case(_f.name)] = _f.name


def get_client(s: Session, client_id: int) -> Client | None:
    return s.get(Client, client_id)


def find_by_ico(s: Session, ico: str) -> Client | None:
    return s.query(Client).filter(Client.ico == ico).one_or_none()


def sales_rep_payload(client: Any) -> dict[str, Any]:
    rep = getattr(client, "sales_rep", None)
    if rep is None:
        return {"id": None, "name": UNASSIGNED_REP_LABEL, "email": None}
    return {"id": rep.id, "name": rep.name or rep.email, "email": rep.email}


def client_to_dict(c: Client, *, only: tuple[str, ...] | None = None) -> dict[str, Any]:
    names = only if only is not None else tuple(f.name for f in FIELDS)
    out: dict[str, Any] = {"id": c.id}
    for name in names:
        out[name] = to_json_value(getattr(c, name))
    out["sales_rep"] = sales_rep_payload(c)
    if only is None:
        out["created_at"] = to_json_value(c.created_at)
        out["updated_at"] = to_json_value(c.updated_at)
    return out


def can_see_full_detail(s: Session, user: User, c: Client) -> bool:
    """
    A record assigned to somebody else shows basic info only, unless the
    viewer holds the "admin" permission.
    """
    if c.sales_rep_id is None or c.sales_rep_id == user.id:
        return True
    return user_has_permission(s, user, ADMIN)


def client_detail(s: Session, user: User, c: Client) -> dict[str, Any]:
    if can_see_full_detail(s, user, c):
        data = client_to_dict(c)
        data["restricted"] = False
        return data
    data = client_to_dict(c, only=BASIC_INFO_FIELDS)
    data["restricted"] = True
    return data


def client_categorized(s: Session, user: User, c: Client) -> dict[str, Any]:
    full = can_see_full_detail(s, user, c)
    categories: dict[str, dict[str, Any]] = {}
    for f in FIELDS:
        if not full and f.name not in BASIC_INFO_FIELDS:
            continue
        bucket = categories.setdefault(f.category, {"title": CATEGORIES[f.category], "fields": []})
        bucket["fields"].append({"name": f.name, "label": f.label, "value": to_json_value(getattr(c, f.name))})
    return {
        "id": c.id,
        "company_name": c.company_name,
        "sales_rep": sales_rep_payload(c),
        "restricted": not full,
        "categories": categories,
    }


def list_clients_query(s: Session, *, search: str | None = None, status: str | None = None):
    q = s.query(Client)
    if search:
        like = f"%{search.strip()}%"
        q = q.filter(
            or_(
                Client.company_name.ilike(like),
                Client.ico.ilike(like),
                Client.fve_name.ilike(like),
                Client.contact_person.ilike(like),
                Client.email.ilike(like),
                Client.phone.ilike(like),
            )
        )
    if status:
        q = q.filter(Client.status == status)
    return q.order_by(Client.updated_at.desc(), Client.id.desc())


def normalize_payload(payload: dict[str, Any]) -> dict[str, Any]:
    """
    Map snake_case/camelCase keys onto field names.
    Raises ValueError listing keys that are not client fields.
    """
    out: dict[str, Any] = {}
    unknown: list[str] = []
    for key, value in payload.items():
        if key in READ_ONLY_KEYS:
            continue
        name = _KEY_TO_FIELD.get(key)
        if not name:
            unknown.append(key)
            continue
        out[name] = value
    if unknown:
        raise ValueError(f"Unknown fields: {', '.join(sorted(unknown))}")
    return out


def check_field_permissions(s: Session, user: User, field_names: list[str]) -> tuple[list[str], list[str]]:
    """Returns (allowed, denied) field names."""
    allowed: list[str] = []
    denied: list[str] = []
    cache: dict[str, bool] = {}
    for name in field_names:
        perm = edit_permission_for(name)
        if perm not in cache:
            cache[perm] = user_has_permission(s, user, perm)
        (allowed if cache[perm] else denied).append(name)
    return allowed, denied


def can_edit_assigned(s: Session, user: User, c: Client) -> bool:
    if c.sales_rep_id is None or c.sales_rep_id == user.id:
        return True
    return can_view_all(s, user, CLIENT_VISIBILITY)


def _coerce_field(s: Session, name: str, value: Any) -> Any:
    if name == "ico":
        return normalize_ico(value)
    if name == "sales_rep_id":
        if value in (None, ""):
            return None
        rep_id = coerce("int", value)
        if rep_id is None or s.get(User, rep_id) is None:
            raise ValueError(f"Unknown sales rep: {value}")
        return rep_id
    field_def = FIELD_BY_NAME[name]
    if field_def.kind == "text":
        return clean_str(value)
    coerced = coerce(field_def.kind, value)
    if coerced is None and not is_blank(value):
        raise ValueError(f"Invalid value for {name}: {value}")
    return coerced


def _ensure_unique_ico(s: Session, ico: str | None, exclude_id: int | None = None) -> None:
    if not ico:
        return
    existing = find_by_ico(s, ico)
    if existing and existing.id != exclude_id:
        raise ValueError(f"A client with IČO {ico} already exists.")


def create_client(s: Session, data: dict[str, Any], *, user: User) -> Client:
    values = {name: _coerce_field(s, name, v) for name, v in data.items()}
    if not values.get("company_name"):
        raise ValueError("Company name is required.")
    if not values.get("ico"):
        raise ValueError("IČO is required.")
    _ensure_unique_ico(s, values["ico"])

    if "sales_rep_id" not in data:
        values["sales_rep_id"] = user.id
    values["status"] = values.get("status") or CLIENT_STATUS_NEW
    values["client_type"] = values.get("client_type") or "fve"

    c = Client(**values)
    s.add(c)
    s.flush()
    record_event(
        s,
        actor=user,
        action="client.create",
        message=f"Created client {c.company_name}",
        entity_type="Client",
        entity_id=c.id,
        metadata={"ico": c.ico, "sales_rep_id": c.sales_rep_id},
    )
    return c


def update_client(s: Session, c: Client, data: dict[str, Any], *, user: User) -> list[str]:
    """Applies already-authorized changes; returns the names of fields that changed."""
    changed: list[str] = []
    for name, raw in data.items():
        value = _coerce_field(s, name, raw)
        if name == "company_name" and not value:
            raise ValueError("Company name cannot be empty.")
        if name == "ico":
            if not value:
                raise ValueError("IČO cannot be empty.")
            _ensure_unique_ico(s, value, exclude_id=c.id)
        if name in ("status", "client_type") and not value:
            continue
        if getattr(c, name) != value:
            setattr(c, name, value)
            changed.append(name)
    if changed:
        s.flush()
        if "sales_rep_id" in changed:
            s.expire(c, ["sales_rep"])
        record_event(
            s,
            actor=user,
            action="client.update",
            message=f"Updated client {c.company_name}",
            entity_type="Client",
            entity_id=c.id,
            metadata={"fields": changed},
        )
    return changed


def delete_client(s: Session, c: Client, *, user: User) -> None:
    record_event(
        s,
        actor=user,
        action="client.delete",
        message=f"Deleted client {c.company_name}",
        entity_type="Client",
        entity_id=c.id,
        level="warning",
        metadata={"ico": c.ico},
    )
    s.delete(c)
