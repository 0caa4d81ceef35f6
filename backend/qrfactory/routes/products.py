# Overview: Flask API routes for the product registry; parses input and returns JSON responses.

from flask import Blueprint, g, request

from ..decorators import json_body, request_base, with_actor
from ..services import get_services
from ..services.bulk_service import KIND_PRODUCT
from .files import export_response, uploaded_rows

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


@products_bp.get("")
def list_products():
    """
    Query params:
    - q: substring over code / product_name / batch_serial (newest 2000)
    - since: ISO-8601; only rows updated strictly after it (newest 5000), wins over q
    """
    rows = get_services().products.list(q=request.args.get("q"), since=request.args.get("since"))
    return {"rows": rows}


@products_bp.get("/export")
def export_products():
    rows = get_services().products.list()
    return export_response(KIND_PRODUCT, rows, "products")


@products_bp.get("/<code>")
def get_product(code: str):
    services = get_services()
    row = services.products.get(code)
    return {"row": row, "scan_url": services.links.scan_url(row["code"], request_base())}


@products_bp.post("")
@with_actor
def upsert_product():
    """Create or fully replace a product. A code is generated when omitted."""
    services = get_services()
    code, created = services.products.upsert(json_body(), actor=g.actor)
    return {
        "code": code,
        "created": created,
        "scan_url": services.links.scan_url(code, request_base()),
    }, 201 if created else 200


@products_bp.post("/bulkUpsert")
@with_actor
def bulk_upsert_products():
    data = json_body()
    result = get_services().bulk.apply_batch(
        KIND_PRODUCT,
        data.get("rows"),
        data.get("source") or "bulkUpsert",
        actor=g.actor,
        public_base_url=data.get("publicBaseUrl") or data.get("public_base_url"),
    )
    return {"ok": True, **result.to_dict()}


@products_bp.post("/import")
@with_actor
def import_products():
    rows, filename = uploaded_rows()
    result = get_services().bulk.apply_batch(KIND_PRODUCT, rows, filename, actor=g.actor)
    return {"ok": True, **result.to_dict()}
