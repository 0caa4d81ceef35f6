# Overview: Flask API routes for staff; parses input and returns JSON responses.

from flask import Blueprint, g

from ..decorators import json_body, with_actor
from ..services import get_services
from ..services.bulk_service import KIND_STAFF
from .files import export_response, uploaded_rows

staff_bp = Blueprint("staff", __name__, url_prefix="/api/staff")


@staff_bp.get("")
def list_staff():
    return {"rows": get_services().staff.list()}


@staff_bp.post("/upsert")
@with_actor
def upsert_staff():
    """id absent or 0 creates; otherwise the existing staff member is updated."""
    staff_id, created = get_services().staff.upsert(json_body(), actor=g.actor)
    return {"ok": True, "id": staff_id, "created": created}


@staff_bp.post("/delete")
@with_actor
def delete_staff():
    removed = get_services().staff.delete(json_body().get("id"), actor=g.actor)
    return {"ok": True, "removed": removed}


@staff_bp.post("/bulkUpsert")
@with_actor
def bulk_upsert_staff():
    data = json_body()
    result = get_services().bulk.apply_batch(
        KIND_STAFF, data.get("rows"), data.get("source") or "bulkUpsert", actor=g.actor,
    )
    return {"ok": True, **result.to_dict()}


@staff_bp.post("/import")
@with_actor
def import_staff():
    rows, filename = uploaded_rows()
    result = get_services().bulk.apply_batch(KIND_STAFF, rows, filename, actor=g.actor)
    return {"ok": True, **result.to_dict()}


@staff_bp.get("/export")
def export_staff():
    return export_response(KIND_STAFF, get_services().staff.list(), "staff")
