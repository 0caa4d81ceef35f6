# Overview: Flask API routes for staff-customer assignments.

from flask import Blueprint, g

from ..decorators import json_body, with_actor
from ..errors import InvalidArgument
from ..services import get_services

assignments_bp = Blueprint("assignments", __name__, url_prefix="/api/assignments")


def _as_bool(value) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"1", "true", "yes", "on"}:
            return True
        if lowered in {"0", "false", "no", "off", ""}:
            return False
    raise InvalidArgument("on must be a boolean")


@assignments_bp.get("")
def list_assignments():
    """Staff name + customer name per pair, ordered by staff then customer."""
    return {"rows": get_services().assignments.list()}


@assignments_bp.post("/set")
@with_actor
def set_assignment():
    data = json_body()
    on = get_services().assignments.set(
        data.get("staff_id"),
        data.get("customer_id"),
        _as_bool(data.get("on", True)),
        actor=g.actor,
    )
    return {"ok": True, "on": on}
