# backend/qrfactory/config.py
from __future__ import annotations
import os


def _default_database_url() -> str:
    # QR_DB is a plain file path kept for the desktop shell
    qr_db = os.environ.get("QR_DB")
    if qr_db:
        return f"sqlite:///{qr_db}"
    return "sqlite:///qr-factory.db"


class Config:
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    SQLALCHEMY_DATABASE_URI = os.environ.get("DATABASE_URL") or _default_database_url()
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Create tables and default settings on startup (embedded use)
    AUTO_CREATE_DB = os.environ.get("AUTO_CREATE_DB", "1").lower() not in {"0", "false", "no"}

    # Scan-link base; empty means "use the inbound request host"
    PUBLIC_BASE_URL = os.environ.get("PUBLIC_BASE_URL", "")
    DEFAULT_INSTALL_URL = os.environ.get("DEFAULT_INSTALL_URL", "https://example.com/install")

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()

    HOST = os.environ.get("HOST", "127.0.0.1")
    PORT = int(os.environ.get("PORT", "3131"))
