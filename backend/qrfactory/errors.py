# Overview: Service error taxonomy and the Flask handlers that render it as JSON.

from __future__ import annotations

from flask import Flask, current_app, jsonify
from werkzeug.exceptions import HTTPException


class ServiceError(ValueError):
    """Base for every failure a caller is expected to handle."""

    kind = "ServiceError"
    http_status = 500

    def to_dict(self) -> dict:
        return {"error": str(self), "kind": self.kind}


class InvalidArgument(ServiceError):
    """400-level input problem (missing or malformed field)."""

    kind = "InvalidArgument"
    http_status = 400


class Forbidden(ServiceError):
    """403-level admin secret mismatch."""

    kind = "Forbidden"
    http_status = 403


class NotFound(ServiceError):
    kind = "NotFound"
    http_status = 404


class Conflict(ServiceError):
    """409-level conflict (token already used, uniqueness violation)."""

    kind = "Conflict"
    http_status = 409


class Gone(ServiceError):
    """410-level expiry (token past expires_at)."""

    kind = "Gone"
    http_status = 410


class StorageFailure(ServiceError):
    """Underlying store error. Message is generic; details go to the log."""

    kind = "StorageFailure"
    http_status = 500


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(ServiceError)
    def handle_service_error(e: ServiceError):
        return jsonify(e.to_dict()), e.http_status

    @app.errorhandler(HTTPException)
    def handle_http_error(e: HTTPException):
        if e.code == 404:
            kind = NotFound.kind
        elif e.code is not None and e.code >= 500:
            kind = StorageFailure.kind
        else:
            kind = InvalidArgument.kind
        return jsonify({"error": e.description, "kind": kind}), e.code

    @app.errorhandler(Exception)
    def handle_unexpected(e: Exception):
        current_app.logger.exception("Unhandled error")
        return jsonify({"error": "Internal server error", "kind": StorageFailure.kind}), 500
