# Overview: Service-layer operations for bulk synchronization; one transaction per batch.

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable

from sqlalchemy.exc import SQLAlchemyError

from ..errors import InvalidArgument, StorageFailure
from ..models import Customer, Staff
from ..validation import clean_customer, clean_product, clean_staff, clean_str, parse_entity_id
from . import audit_service
from .crm_service import stage_entity
from .products_service import stage_product
from .settings_service import PUBLIC_BASE_URL, SettingsStore

"""
Bulk Synchronizer Invariants

- Rows go through the same cleaners and staging helpers as the single-row
  upserts, so validation semantics are identical.
- Rows missing their required key fields are skipped, not fatal.
- Accepted rows are applied in ONE transaction: all commit or none do.
  Readers never observe a half-applied batch.
- One BULK_IMPORT_EXCEL audit entry per batch, never one per row.
"""

KIND_PRODUCT = "product"
KIND_CUSTOMER = "customer"
KIND_STAFF = "staff"

CONFIG_KEYS = ("publicBaseUrl", "public_base_url")


@dataclass
class BatchResult:
    kind: str
    source: str
    received: int
    imported: int

    @property
    def skipped(self) -> int:
        return self.received - self.imported

    def to_dict(self) -> dict:
        return {
            "kind": self.kind,
            "source": self.source,
            "received": self.received,
            "imported": self.imported,
            "skipped": self.skipped,
        }


def _apply_product(row: dict) -> bool:
    patch = clean_product(row)
    if not patch["code"] or not patch["product_name"]:
        return False
    stage_product(patch)
    return True


def _surrogate_applier(model, cleaner) -> Callable[[dict], bool]:
    def apply(row: dict) -> bool:
        patch = cleaner(row)
        if not patch["name"]:
            return False
        try:
            entity_id = parse_entity_id(row.get("id"))
        except InvalidArgument:
            entity_id = 0
        stage_entity(model, entity_id, patch, create_missing=True)
        return True
    return apply


APPLIERS: dict[str, Callable[[dict], bool]] = {
    KIND_PRODUCT: _apply_product,
    KIND_CUSTOMER: _surrogate_applier(Customer, clean_customer),
    KIND_STAFF: _surrogate_applier(Staff, clean_staff),
}


def split_config_record(rows: list[Any]) -> tuple[str | None, list[Any]]:
    """
    A leading record carrying only a base-URL override is configuration,
    not data. Returns (public_base_url, remaining_rows).
    """
    if not rows or not isinstance(rows[0], dict):
        return None, rows
    first = rows[0]
    keys = {k for k, v in first.items() if clean_str(v)}
    if keys and keys <= set(CONFIG_KEYS):
        for key in CONFIG_KEYS:
            value = clean_str(first.get(key))
            if value:
                return value, rows[1:]
    return None, rows


class BulkSynchronizer:
    def __init__(self, db, settings: SettingsStore, audit: audit_service.AuditLedger, logger):
        self.db = db
        self.settings = settings
        self.audit = audit
        self.logger = logger

    def apply_batch(
        self,
        kind: str,
        rows: list[Any],
        source_label: str = "",
        *,
        actor: str = "",
        public_base_url: str | None = None,
    ) -> BatchResult:
        """
        Apply a batch of rows for one entity kind atomically.

        Raises:
            InvalidArgument: unknown kind or rows not a list
            StorageFailure: any store error; nothing from the batch persists
        """
        applier = APPLIERS.get(kind)
        if applier is None:
            raise InvalidArgument(f"Unsupported kind: {kind}")
        if not isinstance(rows, list):
            raise InvalidArgument("rows must be a list")

        config_url, rows = split_config_record(rows)
        public_base_url = clean_str(public_base_url) or config_url
        source_label = clean_str(source_label)

        session = self.db.session
        imported = 0
        try:
            if public_base_url:
                self.settings.stage(PUBLIC_BASE_URL, public_base_url)
            for row in rows:
                if not isinstance(row, dict):
                    continue
                if applier(row):
                    imported += 1
            session.commit()
        except SQLAlchemyError:
            session.rollback()
            self.logger.exception("Bulk import of %s rows from %r failed", kind, source_label)
            raise StorageFailure("Bulk import failed; no rows were applied")

        result = BatchResult(kind=kind, source=source_label, received=len(rows), imported=imported)
        self.logger.info(
            "Bulk import %s from %r: %d of %d rows applied",
            kind, source_label, result.imported, result.received,
        )

        detail = result.to_dict()
        if public_base_url:
            detail["public_base_url"] = public_base_url
        self.audit.append(actor, audit_service.BULK_IMPORT_EXCEL, source_label or kind, detail)
        return result
