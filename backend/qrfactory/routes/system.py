# backend/qrfactory/routes/system.py
"""
System health and version endpoints.
"""

import sys
import time

from flask import Blueprint, current_app
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..models import AuthToken, Product
from ..time_utils import to_utc_z, utcnow

system_bp = Blueprint("system", __name__)

API_VERSION = "3.0.0"


def check_database_health() -> dict:
    start_time = time.time()
    try:
        product_count = db.session.query(Product).count()
        open_tokens = db.session.query(AuthToken).filter(
            AuthToken.used_at.is_(None),
            AuthToken.expires_at > utcnow(),
        ).count()
        elapsed_ms = (time.time() - start_time) * 1000
        return {
            "status": "healthy",
            "latency_ms": round(elapsed_ms, 2),
            "details": {
                "products": product_count,
                "open_tokens": open_tokens,
            },
        }
    except SQLAlchemyError:
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Database health check failed")
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Database error",
        }


@system_bp.get("/health")
def health():
    """200 when the store answers, 503 otherwise."""
    database_health = check_database_health()
    ok = database_health["status"] == "healthy"
    return {
        "ok": ok,
        "status": database_health["status"],
        "timestamp": to_utc_z(utcnow()),
        "checks": {"database": database_health},
    }, 200 if ok else 503


@system_bp.get("/version")
def version():
    """Non-sensitive deployment info. Never exposes paths or secrets."""
    env = "production" if not current_app.debug else "development"
    return {
        "api_version": API_VERSION,
        "environment": env,
        "python_version": sys.version.split()[0],
        "server_time": to_utc_z(utcnow()),
    }
