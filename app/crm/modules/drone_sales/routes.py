from __future__ import annotations

from flask import Blueprint, abort, g, jsonify, request

from app.crm.audit import record_event
from app.crm.constants import (
    CREATE_DRONE_SALE,
    DELETE_DRONE_SALE,
    EXPORT_DRONE_SALES,
    VIEW_DRONE_SALES,
)
from app.crm.db import db_session
from app.crm.exports import DRONE_SALE_COLUMNS, build_workbook, xlsx_response
from app.crm.modules.drone_sales.models import DroneSale
from app.crm.modules.drone_sales.service import (
    create_drone_sale,
    delete_drone_sale,
    drone_sale_to_dict,
    get_drone_sale,
    list_drone_sales_query,
    normalize_payload,
    required_permissions,
    update_drone_sale,
)
from app.crm.rbac import current_user, user_has_permission, require_permission
from app.crm.utils import json_body, page_args, paginate
from app.crm.visibility import DRONE_SALE_VISIBILITY, apply_visibility, can_view

bp = Blueprint("drone_sales", __name__)


def _visible_sale_or_abort(sale_id: int) -> DroneSale:
    s = db_session()
    d = get_drone_sale(s, sale_id)
    if d is None:
        abort(404, description="Drone sale not found.")
    if not can_view(s, current_user(), d.sales_rep_id, DRONE_SALE_VISIBILITY):
        abort(403, description="You do not have access to this drone sale.")
    return d


def _filtered_query():
    s = db_session()
    q = list_drone_sales_query(
        s,
        search=(request.args.get("search") or "").strip() or None,
        status=(request.args.get("status") or "").strip() or None,
    )
    return apply_visibility(q, s, current_user(), DroneSale, DRONE_SALE_VISIBILITY)


@bp.get("")
@require_permission(VIEW_DRONE_SALES)
def drone_sales_list():
    page, limit = page_args(default_limit=10)
    items, pagination = paginate(_filtered_query(), page, limit)
    return jsonify({"data": [drone_sale_to_dict(d) for d in items], "pagination": pagination})


@bp.post("")
@require_permission(CREATE_DRONE_SALE)
def drone_sales_create():
    s = db_session()
    try:
        d = create_drone_sale(s, normalize_payload(json_body()), user=current_user())
    except ValueError as e:
        s.rollback()
        abort(400, description=str(e))
    s.commit()
    return jsonify(drone_sale_to_dict(d)), 201


@bp.get("/<int:sale_id>")
@require_permission(VIEW_DRONE_SALES)
def drone_sale_get(sale_id: int):
    return jsonify(drone_sale_to_dict(_visible_sale_or_abort(sale_id)))


@bp.put("/<int:sale_id>")
@require_permission(VIEW_DRONE_SALES)
def drone_sale_update(sale_id: int):
    s = db_session()
    u = current_user()
    d = _visible_sale_or_abort(sale_id)
    try:
        data = normalize_payload(json_body())
    except ValueError as e:
        abort(400, description=str(e))

    for perm in sorted(required_permissions(list(data))):
        if not user_has_permission(s, u, perm):
            g.missing_permission = perm
            abort(403)

    try:
        update_drone_sale(s, d, data, user=u)
    except ValueError as e:
        s.rollback()
        abort(400, description=str(e))
    s.commit()
    return jsonify(drone_sale_to_dict(d))


@bp.delete("/<int:sale_id>")
@require_permission(DELETE_DRONE_SALE)
def drone_sale_delete(sale_id: int):
    s = db_session()
    d = _visible_sale_or_abort(sale_id)
    delete_drone_sale(s, d, user=current_user())
    s.commit()
    return jsonify({"success": True})


@bp.get("/export")
@require_permission(EXPORT_DRONE_SALES)
def drone_sales_export():
    s = db_session()
    sales = _filtered_query().all()
    data = build_workbook("Drone Sales", DRONE_SALE_COLUMNS, sales)
    record_event(
        s,
        actor=current_user(),
        action="drone_sale.export",
        message=f"Exported {len(sales)} drone sales",
        entity_type="DroneSale",
        entity_id="export",
        metadata={"row_count": len(sales)},
    )
    s.commit()
    return xlsx_response(data, "drone-sales-export")
