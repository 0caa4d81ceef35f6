# Overview: Durable key/value settings shared by the token authority and link builder.

from __future__ import annotations

import secrets
import string

from sqlalchemy.exc import SQLAlchemyError

from ..errors import StorageFailure
from ..models import Setting
from ..time_utils import utcnow


ADMIN_CODE = "admin_code"
APP_INSTALL_URL = "app_install_url"
PUBLIC_BASE_URL = "public_base_url"

ADMIN_CODE_LENGTH = 8
ADMIN_CODE_ALPHABET = string.ascii_uppercase + string.digits


def generate_admin_code() -> str:
    return "".join(secrets.choice(ADMIN_CODE_ALPHABET) for _ in range(ADMIN_CODE_LENGTH))


class SettingsStore:
    """
    Settings are loaded (or generated) once at startup by ensure_defaults().
    After that the only writers are the Token Authority's gated setters and
    the bulk synchronizer's base-URL override.
    """

    def __init__(self, db, logger, *, default_install_url: str):
        self.db = db
        self.logger = logger
        self.default_install_url = default_install_url

    def get(self, key: str, default: str | None = None) -> str | None:
        row = self.db.session.get(Setting, key)
        if row is None or row.value is None:
            return default
        return row.value

    def has(self, key: str) -> bool:
        return bool(self.get(key))

    def stage(self, key: str, value: str) -> Setting:
        """Set a value in the current session without committing."""
        row = self.db.session.get(Setting, key)
        if row is None:
            row = Setting(key=key, value=value, updated_at=utcnow())
            self.db.session.add(row)
        else:
            row.value = value
            row.updated_at = utcnow()
        return row

    def set(self, key: str, value: str) -> None:
        self.stage(key, value)
        self.commit()

    def commit(self) -> None:
        try:
            self.db.session.commit()
        except SQLAlchemyError:
            self.db.session.rollback()
            self.logger.exception("Failed to persist settings")
            raise StorageFailure("Failed to persist settings")

    def ensure_defaults(self) -> None:
        """Load-or-generate: admin_code and app_install_url always exist afterwards."""
        changed = False
        if not self.has(ADMIN_CODE):
            self.stage(ADMIN_CODE, generate_admin_code())
            self.logger.info("Generated initial admin code")
            changed = True
        if not self.has(APP_INSTALL_URL):
            self.stage(APP_INSTALL_URL, self.default_install_url)
            changed = True
        if changed:
            self.commit()
