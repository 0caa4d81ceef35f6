# backend/qrfactory/services/products_service.py
"""
Product registry (natural key).

Products are keyed by `code`. An upsert either creates the row or replaces
every mutable field of the existing one; `created_at` survives, `updated_at`
is always refreshed. The unique constraint on `code` is the authority on
uniqueness; generated codes are only best-effort unique.
"""
from __future__ import annotations

import secrets
import string
import time

from ..errors import InvalidArgument, NotFound
from ..extensions import db
from ..models import Product
from ..time_utils import parse_iso_datetime, utcnow
from ..validation import clean_product, require_fields
from . import audit_service
from .concurrency import commit_or_fail

PRODUCT_MUTABLE_FIELDS = ("product_name", "batch_serial", "mfg_date", "exp_date", "note_extra", "status")

LIST_LIMIT = 5000
SEARCH_LIMIT = 2000

_CODE_ALPHABET = string.ascii_uppercase + string.digits
_BASE36 = string.digits + string.ascii_uppercase


def to_base36(n: int) -> str:
    if n == 0:
        return "0"
    out = []
    while n:
        n, rem = divmod(n, 36)
        out.append(_BASE36[rem])
    return "".join(reversed(out))


def make_code() -> str:
    """Readable random code: XXXX-XXXX-<base36 ms timestamp>."""
    def part() -> str:
        return "".join(secrets.choice(_CODE_ALPHABET) for _ in range(4))
    return f"{part()}-{part()}-{to_base36(int(time.time() * 1000))}"


def stage_product(patch: dict) -> tuple[Product, bool]:
    """
    Insert-or-replace by code inside the current session (no commit).

    Shared by the interactive upsert and the bulk synchronizer so both
    paths apply identical semantics. Returns (product, created).
    """
    now = utcnow()
    product = db.session.query(Product).filter_by(code=patch["code"]).first()
    created = product is None
    if created:
        product = Product(code=patch["code"], created_at=now)
        db.session.add(product)
    for field in PRODUCT_MUTABLE_FIELDS:
        setattr(product, field, patch[field])
    product.updated_at = now
    return product, created


class ProductRegistry:
    def __init__(self, db, audit: audit_service.AuditLedger, logger):
        self.db = db
        self.audit = audit
        self.logger = logger

    def upsert(self, payload: dict, *, actor: str = "") -> tuple[str, bool]:
        """
        Create or fully replace a product. Generates a code when none is
        given. Returns (code, created).

        Raises:
            InvalidArgument: product_name missing
            Conflict: code collision at commit time
        """
        patch = clean_product(payload or {})
        require_fields(patch, "product_name")
        if not patch["code"]:
            patch["code"] = make_code()

        product, created = stage_product(patch)
        commit_or_fail(self.db.session, self.logger, "save product")

        self.audit.append(
            actor,
            audit_service.UPSERT_PRODUCT,
            product.code,
            {"product_name": product.product_name, "status": product.status, "created": created},
        )
        return product.code, created

    def list(self, *, q: str | None = None, since: str | None = None) -> list[dict]:
        """
        Newest first by updated_at.

        - since: rows strictly newer than the timestamp (max 5000); wins over q
        - q: substring match on code / product_name / batch_serial (max 2000)
        - neither: newest 5000
        """
        query = self.db.session.query(Product)
        limit = LIST_LIMIT

        since = (since or "").strip()
        q = (q or "").strip()
        if since:
            try:
                since_dt = parse_iso_datetime(since)
            except ValueError:
                raise InvalidArgument("since must be an ISO-8601 datetime")
            query = query.filter(Product.updated_at > since_dt)
        elif q:
            like = f"%{q}%"
            query = query.filter(self.db.or_(
                Product.code.like(like),
                Product.product_name.like(like),
                Product.batch_serial.like(like),
            ))
            limit = SEARCH_LIMIT

        rows = query.order_by(Product.updated_at.desc(), Product.id.desc()).limit(limit).all()
        return [r.to_dict() for r in rows]

    def get(self, code: str) -> dict:
        code = (code or "").strip()
        product = self.db.session.query(Product).filter_by(code=code).first() if code else None
        if product is None:
            raise NotFound("Not found")
        return product.to_dict()
