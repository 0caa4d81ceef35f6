# Overview: Service-layer operations for single-use auth tokens and the admin-code gate.

"""
Token Authority

Tokens are short-lived, single-use credentials for two intents (login,
logout) delivered as scannable links.

STATE MACHINE (per token):
- ISSUED -> CONSUMED (terminal): used_at stamped exactly once
- ISSUED -> EXPIRED (terminal): not stored, derived from expires_at at consume time

SINGLE-USE: the used-check and the stamp are one conditional UPDATE
(... WHERE used_at IS NULL AND expires_at > now). Of two concurrent
consumers exactly one sees rowcount == 1.

The admin code is trimmed when stored and when supplied, compared in
constant time, and is never returned or written to the audit ledger.
"""

from __future__ import annotations

import hmac
import secrets
import time
from datetime import timedelta

from sqlalchemy import update

from ..errors import Conflict, Forbidden, Gone, InvalidArgument, NotFound
from ..models import AuthToken
from ..time_utils import to_utc_z, utcnow
from . import audit_service
from .concurrency import commit_or_fail, run_with_retry
from .links_service import LinkBuilder, auth_path
from .products_service import to_base36
from .settings_service import ADMIN_CODE, APP_INSTALL_URL, SettingsStore


TOKEN_TYPES = ("login", "logout")

DEFAULT_TTL_MINUTES = 10
MIN_TTL_MINUTES = 1
MAX_TTL_MINUTES = 1440

MIN_ADMIN_CODE_LENGTH = 6


def generate_token() -> str:
    """Two random base-36 fragments plus a base-36 ms timestamp."""
    return (
        to_base36(secrets.randbits(52)).lower()
        + to_base36(secrets.randbits(52)).lower()
        + to_base36(int(time.time() * 1000)).lower()
    )


def redact_token(token: str) -> str:
    return f"{token[:4]}***" if token else ""


def clamp_ttl(ttl_minutes) -> int:
    if ttl_minutes is None or ttl_minutes == "":
        return DEFAULT_TTL_MINUTES
    try:
        ttl = int(float(ttl_minutes))
    except (TypeError, ValueError):
        return DEFAULT_TTL_MINUTES
    return max(MIN_TTL_MINUTES, min(ttl, MAX_TTL_MINUTES))


class TokenAuthority:
    def __init__(self, db, settings: SettingsStore, audit: audit_service.AuditLedger, links: LinkBuilder, logger):
        self.db = db
        self.settings = settings
        self.audit = audit
        self.links = links
        self.logger = logger

    def _require_admin(self, admin_code) -> None:
        stored = self.settings.get(ADMIN_CODE)
        supplied = "" if admin_code is None else str(admin_code).strip()
        if not stored or not hmac.compare_digest(supplied.encode("utf-8"), stored.encode("utf-8")):
            self.logger.warning("Admin code mismatch")
            raise Forbidden("Invalid admin code")

    def issue(self, admin_code, token_type, ttl_minutes=None, *, actor: str = "", request_base: str = "") -> dict:
        """
        Issue a single-use token.

        Raises:
            Forbidden: admin code mismatch (checked before anything else)
            InvalidArgument: type is not login/logout
        """
        self._require_admin(admin_code)

        token_type = (token_type or "").strip().lower()
        if token_type not in TOKEN_TYPES:
            raise InvalidArgument("type must be 'login' or 'logout'")
        ttl = clamp_ttl(ttl_minutes)

        now = utcnow()
        row = AuthToken(
            token=generate_token(),
            type=token_type,
            expires_at=now + timedelta(minutes=ttl),
            created_by=(actor or "").strip(),
            created_at=now,
        )
        self.db.session.add(row)
        commit_or_fail(self.db.session, self.logger, "issue token")

        self.logger.info("Issued %s token expiring %s", token_type, to_utc_z(row.expires_at))
        self.audit.append(
            actor,
            audit_service.ISSUE_TOKEN,
            redact_token(row.token),
            {"type": token_type, "ttl_minutes": ttl},
        )
        return {
            "token": row.token,
            "type": row.type,
            "ttl_minutes": ttl,
            "expires_at": to_utc_z(row.expires_at),
            "path": auth_path(row.token),
            "url": self.links.auth_url(row.token, request_base),
        }

    def consume(self, token, device_id=None, *, actor: str = "") -> dict:
        """
        Consume a token exactly once.

        Raises:
            InvalidArgument: token missing
            NotFound: unknown token
            Conflict: already used
            Gone: past expires_at
        """
        token = (token or "").strip() if isinstance(token, str) else ""
        if not token:
            raise InvalidArgument("token is required")
        device_id = (str(device_id).strip() if device_id is not None else "")
        session = self.db.session

        def _stamp() -> int:
            now = utcnow()
            result = session.execute(
                update(AuthToken)
                .where(
                    AuthToken.token == token,
                    AuthToken.used_at.is_(None),
                    AuthToken.expires_at > now,
                )
                .values(used_at=now, used_by=device_id)
            )
            count = result.rowcount
            session.commit()
            return count

        stamped = run_with_retry(session, _stamp)
        row = session.query(AuthToken).filter_by(token=token).first()

        if not stamped:
            if row is None:
                raise NotFound("Token not found")
            if row.used_at is not None:
                self.logger.warning("Rejected reuse of token %s", redact_token(token))
                raise Conflict("Token already used")
            raise Gone("Token expired")

        self.logger.info("Consumed %s token %s", row.type, redact_token(token))
        self.audit.append(
            actor or device_id,
            audit_service.CONSUME_TOKEN,
            redact_token(token),
            {"type": row.type, "device_id": device_id},
        )
        return {"ok": True, "action": row.type}

    def rotate_admin_code(self, current_code, new_code, *, actor: str = "") -> None:
        self._require_admin(current_code)
        new_code = "" if new_code is None else str(new_code).strip()
        if len(new_code) < MIN_ADMIN_CODE_LENGTH:
            raise InvalidArgument(f"new admin code must be at least {MIN_ADMIN_CODE_LENGTH} characters")

        self.settings.set(ADMIN_CODE, new_code)
        self.logger.info("Admin code rotated")
        self.audit.append(actor, audit_service.ROTATE_ADMIN_CODE, ADMIN_CODE, {})

    def set_install_url(self, admin_code, url, *, actor: str = "") -> str:
        self._require_admin(admin_code)
        url = "" if url is None else str(url).strip()
        if not url:
            raise InvalidArgument("url is required")

        self.settings.set(APP_INSTALL_URL, url)
        self.audit.append(actor, audit_service.SET_INSTALL_URL, APP_INSTALL_URL, {"url": url})
        return url

    def public_info(self) -> dict:
        return {
            "has_admin_code": self.settings.has(ADMIN_CODE),
            "app_install_url": self.settings.get(APP_INSTALL_URL, ""),
        }
