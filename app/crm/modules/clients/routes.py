from __future__ import annotations

from flask import Blueprint, abort, current_app, g, jsonify, request

from app.crm.audit import record_event
from app.crm.constants import DELETE_CLIENTS, EXPORT_CLIENTS, IMPORT_CLIENTS, ADD_CLIENT, VIEW_CLIENTS
from app.crm.db import db_session
from app.crm.exports import CLIENT_BASIC_COLUMNS, CLIENT_COLUMNS, build_workbook, xlsx_response
from app.crm.modules.clients.models import Client
from app.crm.modules.clients.service import (
    can_edit_assigned,
    can_see_full_detail,
    check_field_permissions,
    client_categorized,
    client_detail,
    create_client,
    delete_client,
    get_client,
    list_clients_query,
    normalize_payload,
    update_client,
)
from app.crm.modules.imports.parsers import SUPPORTED_EXTENSIONS, parse_sheet, read_rows
from app.crm.modules.imports.service import import_client_rows
from app.crm.rbac import current_user, require_permission
from app.crm.utils import json_body, page_args, paginate
from app.crm.visibility import CLIENT_VISIBILITY, apply_visibility, can_view

bp = Blueprint("clients", __name__)


def _visible_client_or_abort(client_id: int) -> Client:
    s = db_session()
    c = get_client(s, client_id)
    if c is None:
        abort(404, description="Client not found.")
    if not can_view(s, current_user(), c.sales_rep_id, CLIENT_VISIBILITY):
        abort(403, description="You do not have access to this client.")
    return c


@bp.get("")
@require_permission(VIEW_CLIENTS)
def clients_list():
    s = db_session()
    u = current_user()
    q = list_clients_query(
        s,
        search=(request.args.get("search") or "").strip() or None,
        status=(request.args.get("status") or "").strip() or None,
    )
    q = apply_visibility(q, s, u, Client, CLIENT_VISIBILITY)
    page, limit = page_args()
    items, pagination = paginate(q, page, limit)
    return jsonify({"data": [client_detail(s, u, c) for c in items], "pagination": pagination})


@bp.post("")
@require_permission(ADD_CLIENT)
def clients_create():
    s = db_session()
    u = current_user()
    try:
        c = create_client(s, normalize_payload(json_body()), user=u)
    except ValueError as e:
        s.rollback()
        abort(400, description=str(e))
    s.commit()
    return jsonify(client_detail(s, u, c)), 201


@bp.get("/<int:client_id>")
@require_permission(VIEW_CLIENTS)
def client_get(client_id: int):
    c = _visible_client_or_abort(client_id)
    return jsonify(client_detail(db_session(), current_user(), c))


@bp.get("/<int:client_id>/categorized")
@require_permission(VIEW_CLIENTS)
def client_get_categorized(client_id: int):
    c = _visible_client_or_abort(client_id)
    return jsonify(client_categorized(db_session(), current_user(), c))


@bp.put("/<int:client_id>")
@require_permission(VIEW_CLIENTS)
def client_update(client_id: int):
    s = db_session()
    u = current_user()
    c = _visible_client_or_abort(client_id)
    if not can_edit_assigned(s, u, c):
        abort(403, description="Only the assigned sales representative can edit this client.")

    try:
        data = normalize_payload(json_body())
    except ValueError as e:
        abort(400, description=str(e))

    allowed, denied = check_field_permissions(s, u, list(data))
    if denied:
        current_app.logger.warning(
            "Client edit denied (client_id=%s user_id=%s fields=%s request_id=%s)",
            c.id,
            u.id,
            ",".join(denied),
            getattr(g, "request_id", None),
        )
        return (
            jsonify(
                {
                    "error": "You do not have permission to edit some of these fields.",
                    "denied_fields": denied,
                    "allowed_fields": allowed,
                }
            ),
            403,
        )

    try:
        update_client(s, c, data, user=u)
    except ValueError as e:
        s.rollback()
        abort(400, description=str(e))
    s.commit()
    return jsonify(client_detail(s, u, c))


@bp.delete("/<int:client_id>")
@require_permission(DELETE_CLIENTS)
def client_delete(client_id: int):
    s = db_session()
    c = _visible_client_or_abort(client_id)
    delete_client(s, c, user=current_user())
    s.commit()
    return jsonify({"success": True})


@bp.get("/export")
@require_permission(EXPORT_CLIENTS)
def clients_export():
    s = db_session()
    u = current_user()
    q = list_clients_query(
        s,
        search=(request.args.get("search") or "").strip() or None,
        status=(request.args.get("status") or "").strip() or None,
    )
    clients = apply_visibility(q, s, u, Client, CLIENT_VISIBILITY).all()
    data = build_workbook(
        "Klienti",
        CLIENT_COLUMNS,
        clients,
        redact=lambda c: not can_see_full_detail(s, u, c),
        keep=CLIENT_BASIC_COLUMNS,
    )

    record_event(
        s,
        actor=u,
        action="client.export",
        message=f"Exported {len(clients)} clients",
        entity_type="Client",
        entity_id="export",
        metadata={"row_count": len(clients)},
    )
    s.commit()
    return xlsx_response(data, "clients-export")


@bp.post("/import")
@require_permission(IMPORT_CLIENTS)
def clients_import():
    s = db_session()
    u = current_user()
    f = request.files.get("file")
    if not f or not f.filename:
        abort(400, description="No file provided.")
    if not f.filename.lower().endswith(SUPPORTED_EXTENSIONS):
        abort(400, description="Unsupported file type. Upload an .xlsx or .csv file.")

    try:
        rows = parse_sheet(read_rows(f.filename, f.read()))
    except ValueError as e:
        current_app.logger.warning("Import file unreadable (%s): %s", f.filename, e)
        abort(400, description="The uploaded file could not be read.")
    if not rows:
        abort(400, description="No data found in the file.")

    result = import_client_rows(s, rows, user=u, source=f.filename)
    s.commit()
    return jsonify(result.to_dict())
