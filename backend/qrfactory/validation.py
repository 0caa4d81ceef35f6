from __future__ import annotations

import math
import re
from typing import Any

from .errors import InvalidArgument

"""
Field cleaners shared by the interactive upsert routes and the bulk
synchronizer. Both paths go through the same functions so a row accepted
from a spreadsheet is stored exactly as the same row typed in by hand.
"""

DMY_RE = re.compile(r"^(\d{2})-(\d{2})-(\d{4})$")

PRODUCT_FIELDS = ("code", "product_name", "batch_serial", "mfg_date", "exp_date", "note_extra", "status")
CUSTOMER_FIELDS = ("name", "contract_start", "contract_end", "product_type", "contract_value", "status", "note")
STAFF_FIELDS = ("name", "email", "phone", "note")


def clean_str(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def normalize_dmy(value: Any) -> str:
    """
    Dates are expected as DD-MM-YYYY. Anything else is kept as trimmed
    input; malformed dates are stored, not rejected.
    """
    s = clean_str(value)
    if not s:
        return ""
    m = DMY_RE.match(s)
    return m.group(0) if m else s


def clean_status(value: Any) -> str:
    return clean_str(value).lower() or "active"


def non_negative_number(value: Any, default: float = 0) -> float:
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, str):
        value = value.strip().replace(",", "")
        if not value:
            return default
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    if math.isnan(number) or math.isinf(number) or number < 0:
        return default
    return number


def parse_entity_id(value: Any) -> int:
    """Surrogate ids: absent, blank or unparsable means 0 (create path)."""
    if value is None or isinstance(value, bool):
        return 0
    try:
        entity_id = int(str(value).strip() or 0)
    except ValueError:
        raise InvalidArgument("id must be an integer")
    if entity_id < 0:
        raise InvalidArgument("id must be >= 0")
    return entity_id


def clean_product(payload: dict) -> dict:
    """Cleaned product fields. Does not enforce required keys."""
    return {
        "code": clean_str(payload.get("code")),
        "product_name": clean_str(payload.get("product_name")),
        "batch_serial": clean_str(payload.get("batch_serial")),
        "mfg_date": normalize_dmy(payload.get("mfg_date")),
        "exp_date": normalize_dmy(payload.get("exp_date")),
        "note_extra": clean_str(payload.get("note_extra")),
        "status": clean_status(payload.get("status")),
    }


def clean_customer(payload: dict) -> dict:
    return {
        "name": clean_str(payload.get("name")),
        "contract_start": normalize_dmy(payload.get("contract_start")),
        "contract_end": normalize_dmy(payload.get("contract_end")),
        "product_type": clean_str(payload.get("product_type")),
        "contract_value": non_negative_number(payload.get("contract_value")),
        "status": clean_status(payload.get("status")),
        "note": clean_str(payload.get("note")),
    }


def clean_staff(payload: dict) -> dict:
    return {
        "name": clean_str(payload.get("name")),
        "email": clean_str(payload.get("email")),
        "phone": clean_str(payload.get("phone")),
        "note": clean_str(payload.get("note")),
    }


def require_fields(patch: dict, *names: str) -> None:
    missing = [n for n in names if not patch.get(n)]
    if missing:
        raise InvalidArgument(f"{', '.join(missing)} is required")
