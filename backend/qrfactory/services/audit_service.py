# Overview: Service-layer operations for the audit ledger; append-only action history.

from __future__ import annotations

from typing import Any

from sqlalchemy.exc import SQLAlchemyError

from ..models import AuditEntry
from ..time_utils import utcnow

"""
Audit Ledger Invariants

- Append-only: entries are never updated or deleted.
- Entries are written after the mutation they describe has committed.
- Appending is best-effort. A failed append is logged and reported through
  the return value; it never aborts the operation that triggered it.
"""

UPSERT_PRODUCT = "UPSERT_PRODUCT"
CREATE_CUSTOMER = "CREATE_CUSTOMER"
UPSERT_CUSTOMER = "UPSERT_CUSTOMER"
DELETE_CUSTOMER = "DELETE_CUSTOMER"
CREATE_STAFF = "CREATE_STAFF"
UPSERT_STAFF = "UPSERT_STAFF"
DELETE_STAFF = "DELETE_STAFF"
SET_ASSIGNMENT = "SET_ASSIGNMENT"
BULK_IMPORT_EXCEL = "BULK_IMPORT_EXCEL"
ISSUE_TOKEN = "ISSUE_TOKEN"
CONSUME_TOKEN = "CONSUME_TOKEN"
ROTATE_ADMIN_CODE = "ROTATE_ADMIN_CODE"
SET_INSTALL_URL = "SET_INSTALL_URL"

ACTIONS = frozenset({
    UPSERT_PRODUCT,
    CREATE_CUSTOMER,
    UPSERT_CUSTOMER,
    DELETE_CUSTOMER,
    CREATE_STAFF,
    UPSERT_STAFF,
    DELETE_STAFF,
    SET_ASSIGNMENT,
    BULK_IMPORT_EXCEL,
    ISSUE_TOKEN,
    CONSUME_TOKEN,
    ROTATE_ADMIN_CODE,
    SET_INSTALL_URL,
})

DEFAULT_QUERY_LIMIT = 100
MAX_QUERY_LIMIT = 500


class AuditLedger:
    """
    Best-effort audit sink.

    Contract: append() never raises for storage problems. It returns True
    when the entry was committed and False when it was dropped.
    """

    def __init__(self, db, logger):
        self.db = db
        self.logger = logger

    def append(self, actor: str | None, action: str, code: Any = "", detail: dict | None = None) -> bool:
        if action not in ACTIONS:
            raise ValueError(f"Unknown audit action: {action}")

        session = self.db.session
        entry = AuditEntry(
            ts=utcnow(),
            actor=(actor or "").strip(),
            action=action,
            code="" if code is None else str(code),
            detail=detail or {},
        )
        try:
            session.add(entry)
            session.commit()
        except SQLAlchemyError:
            session.rollback()
            self.logger.warning("Audit entry dropped: action=%s code=%s", action, code, exc_info=True)
            return False
        return True

    def query(self, code: str | None = None, limit: int | None = None) -> list[dict]:
        """Newest first. limit defaults to 100 and is clamped to [1, 500]."""
        if limit is None:
            limit = DEFAULT_QUERY_LIMIT
        limit = max(1, min(int(limit), MAX_QUERY_LIMIT))

        q = self.db.session.query(AuditEntry)
        if code:
            q = q.filter(AuditEntry.code == code)
        rows = q.order_by(AuditEntry.ts.desc(), AuditEntry.id.desc()).limit(limit).all()
        return [r.to_dict() for r in rows]
