# Overview: Flask API routes for customers; parses input and returns JSON responses.

from flask import Blueprint, g

from ..decorators import json_body, with_actor
from ..services import get_services
from ..services.bulk_service import KIND_CUSTOMER
from .files import export_response, uploaded_rows

customers_bp = Blueprint("customers", __name__, url_prefix="/api/customers")


@customers_bp.get("")
def list_customers():
    return {"rows": get_services().customers.list()}


@customers_bp.post("/upsert")
@with_actor
def upsert_customer():
    """id absent or 0 creates; otherwise the existing customer is updated."""
    customer_id, created = get_services().customers.upsert(json_body(), actor=g.actor)
    return {"ok": True, "id": customer_id, "created": created}


@customers_bp.post("/delete")
@with_actor
def delete_customer():
    removed = get_services().customers.delete(json_body().get("id"), actor=g.actor)
    return {"ok": True, "removed": removed}


@customers_bp.post("/bulkUpsert")
@with_actor
def bulk_upsert_customers():
    data = json_body()
    result = get_services().bulk.apply_batch(
        KIND_CUSTOMER, data.get("rows"), data.get("source") or "bulkUpsert", actor=g.actor,
    )
    return {"ok": True, **result.to_dict()}


@customers_bp.post("/import")
@with_actor
def import_customers():
    rows, filename = uploaded_rows()
    result = get_services().bulk.apply_batch(KIND_CUSTOMER, rows, filename, actor=g.actor)
    return {"ok": True, **result.to_dict()}


@customers_bp.get("/export")
def export_customers():
    return export_response(KIND_CUSTOMER, get_services().customers.list(), "customers")
