# Overview: Flask API routes for the token authority; parses input and returns JSON responses.

"""
Admin-code gated settings plus single-use login/logout tokens.

The admin code travels in the JSON body as "admin_code"; surrounding
whitespace is ignored and it is never echoed back.
"""

from flask import Blueprint, g

from ..decorators import json_body, request_base, with_actor
from ..services import get_services

auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


@auth_bp.get("/public")
def public_info():
    """Whether an admin code exists and the install URL. Never the secret."""
    return get_services().tokens.public_info()


@auth_bp.post("/setAdminCode")
@with_actor
def set_admin_code():
    data = json_body()
    get_services().tokens.rotate_admin_code(
        data.get("admin_code"),
        data.get("new_admin_code"),
        actor=g.actor,
    )
    return {"ok": True}


@auth_bp.post("/setInstallUrl")
@with_actor
def set_install_url():
    data = json_body()
    url = get_services().tokens.set_install_url(data.get("admin_code"), data.get("url"), actor=g.actor)
    return {"ok": True, "app_install_url": url}


@auth_bp.post("/issue")
@with_actor
def issue_token():
    """
    Body: admin_code, type ("login" | "logout"), ttl_minutes (1..1440, default 10).
    Returns the token plus the path/URL to render as a QR code.
    """
    data = json_body()
    issued = get_services().tokens.issue(
        data.get("admin_code"),
        data.get("type"),
        data.get("ttl_minutes"),
        actor=g.actor,
        request_base=request_base(),
    )
    return {"ok": True, **issued}, 201


@auth_bp.post("/consume")
@with_actor
def consume_token():
    """Body: token, device_id. Returns {"ok": true, "action": "login" | "logout"}."""
    data = json_body()
    return get_services().tokens.consume(data.get("token"), data.get("device_id"), actor=g.actor)
