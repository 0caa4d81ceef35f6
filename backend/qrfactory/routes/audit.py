# Overview: Flask API routes for reading the audit ledger.

from flask import Blueprint, request

from ..services import get_services

audit_bp = Blueprint("audit", __name__, url_prefix="/api/audit")


@audit_bp.get("")
def list_audit_entries():
    """
    Query params:
    - code: exact correlation key (product code, entity id, "staff:customer")
    - limit: default 100, clamped to [1, 500]
    """
    limit = request.args.get("limit", default=100, type=int)
    rows = get_services().audit.query(code=request.args.get("code"), limit=limit)
    return {"rows": rows}
