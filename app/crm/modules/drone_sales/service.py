from __future__ import annotations

from typing import Any

from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.crm.audit import record_event
from app.crm.constants import (
    DRONE_SALE_STATUSES,
    EDIT_DRONE_SALE_CONTACT,
    EDIT_DRONE_SALE_NAME,
    EDIT_DRONE_SALE_STATUS,
)
from app.crm.models import User
from app.crm.modules.drone_sales.models import DroneSale
from app.crm.modules.imports.coerce import parse_date, parse_int
from app.crm.utils import clean_str, rep_summary, to_json_value

TEXT_FIELDS = ("company_name", "contact_person", "phone", "email", "address", "drone_model", "drone_type", "notes")
DATE_FIELDS = (
    "offer_sent_date",
    "offer_approved_date",
    "contract_signed_date",
    "invoice_date",
    "invoice_due_date",
    "delivery_date",
    "training_date",
)
EDITABLE_FIELDS = TEXT_FIELDS + DATE_FIELDS + ("status", "sales_rep_id")

# Fields guarded by a dedicated permission; the rest only need the record to be editable.
FIELD_PERMISSIONS: dict[str, str] = {
    "company_name": EDIT_DRONE_SALE_NAME,
    "contact_person": EDIT_DRONE_SALE_CONTACT,
    "phone": EDIT_DRONE_SALE_CONTACT,
    "email": EDIT_DRONE_SALE_CONTACT,
    "sales_rep_id": EDIT_DRONE_SALE_CONTACT,
    "status": EDIT_DRONE_SALE_STATUS,
}

_CAMEL = {
    "companyName": "company_name",
    "contactPerson": "contact_person",
    "droneModel": "drone_model",
    "droneType": "drone_type",
    "offerSentDate": "offer_sent_date",
    "offerApprovedDate": "offer_approved_date",
    "contractSignedDate": "contract_signed_date",
    "invoiceDate": "invoice_date",
    "invoiceDueDate": "invoice_due_date",
    "deliveryDate": "delivery_date",
    "trainingDate": "training_date",
    "salesRepId": "sales_rep_id",
}
_READ_ONLY = frozenset({"id", "created_at", "updated_at", "createdAt", "updatedAt", "sales_rep", "salesRep"})


def get_drone_sale(s: Session, sale_id: int) -> DroneSale | None:
    return s.get(DroneSale, sale_id)


def drone_sale_to_dict(d: DroneSale) -> dict[str, Any]:
    out: dict[str, Any] = {"id": d.id}
    for name in EDITABLE_FIELDS:
        out[name] = to_json_value(getattr(d, name))
    out["status_label"] = DRONE_SALE_STATUSES.get(d.status, d.status)
    out["sales_rep"] = rep_summary(d.sales_rep)
    out["created_at"] = to_json_value(d.created_at)
    out["updated_at"] = to_json_value(d.updated_at)
    return out


def list_drone_sales_query(s: Session, *, search: str | None = None, status: str | None = None):
    q = s.query(DroneSale)
    if search:
        like = f"%{search.strip()}%"
        q = q.filter(
            or_(
                DroneSale.company_name.ilike(like),
                DroneSale.contact_person.ilike(like),
                DroneSale.email.ilike(like),
                DroneSale.phone.ilike(like),
            )
        )
    if status:
        q = q.filter(DroneSale.status == status)
    return q.order_by(DroneSale.updated_at.desc(), DroneSale.id.desc())


def normalize_payload(payload: dict[str, Any]) -> dict[str, Any]:
    out: dict[str, Any] = {}
    unknown: list[str] = []
    for key, value in payload.items():
        if key in _READ_ONLY:
            continue
        name = _CAMEL.get(key, key)
        if name not in EDITABLE_FIELDS:
            unknown.append(key)
            continue
        out[name] = value
    if unknown:
        raise ValueError(f"Unknown fields: {', '.join(sorted(unknown))}")
    return out


def required_permissions(field_names: list[str]) -> set[str]:
    return {FIELD_PERMISSIONS[n] for n in field_names if n in FIELD_PERMISSIONS}


def _coerce(s: Session, name: str, value: Any) -> Any:
    if name in DATE_FIELDS:
        if value in (None, ""):
            return None
        d = parse_date(value)
        if d is None:
            raise ValueError(f"Invalid date for {name}: {value}")
        return d
    if name == "status":
        status = clean_str(value)
        if status not in DRONE_SALE_STATUSES:
            raise ValueError(f"Invalid status: {value}")
        return status
    if name == "sales_rep_id":
        if value in (None, ""):
            return None
        rep_id = parse_int(value)
        if rep_id is None or s.get(User, rep_id) is None:
            raise ValueError(f"Unknown sales rep: {value}")
        return rep_id
    return clean_str(value)


def create_drone_sale(s: Session, data: dict[str, Any], *, user: User) -> DroneSale:
    values = {name: _coerce(s, name, v) for name, v in data.items()}
    if not values.get("company_name"):
        raise ValueError("Company name is required.")
    values["status"] = values.get("status") or "new"
    if "sales_rep_id" not in data:
        values["sales_rep_id"] = user.id

    d = DroneSale(**values)
    s.add(d)
    s.flush()
    record_event(
        s,
        actor=user,
        action="drone_sale.create",
        message=f"Created drone sale {d.company_name}",
        entity_type="DroneSale",
        entity_id=d.id,
        metadata={"status": d.status, "sales_rep_id": d.sales_rep_id},
    )
    return d


def update_drone_sale(s: Session, d: DroneSale, data: dict[str, Any], *, user: User) -> list[str]:
    changed: list[str] = []
    for name, raw in data.items():
        value = _coerce(s, name, raw)
        if name == "company_name" and not value:
            raise ValueError("Company name cannot be empty.")
        if getattr(d, name) != value:
            setattr(d, name, value)
            changed.append(name)
    if changed:
        s.flush()
        if "sales_rep_id" in changed:
            s.expire(d, ["sales_rep"])
        record_event(
            s,
            actor=user,
            action="drone_sale.update",
            message=f"Updated drone sale {d.company_name}",
            entity_type="DroneSale",
            entity_id=d.id,
            metadata={"fields": changed},
        )
    return changed


def delete_drone_sale(s: Session, d: DroneSale, *, user: User) -> None:
    record_event(
        s,
        actor=user,
        action="drone_sale.delete",
        message=f"Deleted drone sale {d.company_name}",
        entity_type="DroneSale",
        entity_id=d.id,
        level="warning",
    )
    s.delete(d)
