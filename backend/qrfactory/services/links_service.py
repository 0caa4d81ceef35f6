# Overview: Builds the externally visible links embedded in rendered QR codes.

from __future__ import annotations

from urllib.parse import quote

from .settings_service import PUBLIC_BASE_URL, SettingsStore


SCAN_PAGE = "/qr.html"
AUTH_PAGE = "/auth.html"


def scan_path(code: str) -> str:
    return f"{SCAN_PAGE}?token={quote(code, safe='')}"


def auth_path(token: str) -> str:
    return f"{AUTH_PAGE}?token={quote(token, safe='')}"


class LinkBuilder:
    """
    Base URL precedence: stored public_base_url setting, then the configured
    PUBLIC_BASE_URL, then the inbound request's own host.
    """

    def __init__(self, settings: SettingsStore, *, configured_base: str = ""):
        self.settings = settings
        self.configured_base = configured_base

    def base_url(self, request_base: str = "") -> str:
        base = self.settings.get(PUBLIC_BASE_URL) or self.configured_base or request_base
        return base.rstrip("/")

    def scan_url(self, code: str, request_base: str = "") -> str:
        return self.base_url(request_base) + scan_path(code)

    def auth_url(self, token: str, request_base: str = "") -> str:
        return self.base_url(request_base) + auth_path(token)
