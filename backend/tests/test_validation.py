import pytest

from qrfactory.errors import InvalidArgument
from qrfactory.services.links_service import auth_path, scan_path
from qrfactory.services.products_service import make_code, to_base36
from qrfactory.services.settings_service import generate_admin_code
from qrfactory.time_utils import parse_iso_datetime, to_utc_z
from qrfactory.validation import (
    clean_customer,
    clean_product,
    clean_status,
    non_negative_number,
    normalize_dmy,
    parse_entity_id,
    require_fields,
)


@pytest.mark.parametrize("raw,expected", [
    ("01-02-2026", "01-02-2026"),
    ("  31-12-2025 ", "31-12-2025"),
    ("2026-02-01", "2026-02-01"),
    ("1-2-2026", "1-2-2026"),
    ("", ""),
    (None, ""),
])
def test_normalize_dmy_is_permissive(raw, expected):
    assert normalize_dmy(raw) == expected


def test_clean_status_defaults_and_lowercases():
    assert clean_status(None) == "active"
    assert clean_status("   ") == "active"
    assert clean_status(" Recalled ") == "recalled"


@pytest.mark.parametrize("raw,expected", [
    (12, 12.0),
    ("3.5", 3.5),
    ("1,200", 1200.0),
    (-1, 0),
    ("abc", 0),
    (None, 0),
    (True, 0),
    (float("nan"), 0),
])
def test_non_negative_number(raw, expected):
    assert non_negative_number(raw) == expected


def test_parse_entity_id():
    assert parse_entity_id(None) == 0
    assert parse_entity_id("") == 0
    assert parse_entity_id(" 7 ") == 7
    assert parse_entity_id(3) == 3
    with pytest.raises(InvalidArgument):
        parse_entity_id("seven")
    with pytest.raises(InvalidArgument):
        parse_entity_id(-2)


def test_clean_product_trims_every_field():
    patch = clean_product({"code": " P-1 ", "product_name": " Tea ", "note_extra": None})
    assert patch == {
        "code": "P-1",
        "product_name": "Tea",
        "batch_serial": "",
        "mfg_date": "",
        "exp_date": "",
        "note_extra": "",
        "status": "active",
    }


def test_clean_customer_numbers_and_dates():
    patch = clean_customer({"name": "Acme", "contract_value": "-5", "contract_start": "01-01-2026"})
    assert patch["contract_value"] == 0
    assert patch["contract_start"] == "01-01-2026"


def test_require_fields():
    require_fields({"name": "x"}, "name")
    with pytest.raises(InvalidArgument, match="name is required"):
        require_fields({"name": ""}, "name")


def test_make_code_shape():
    code = make_code()
    first, second, stamp = code.split("-")
    assert len(first) == 4 and len(second) == 4
    assert stamp.isalnum() and stamp == stamp.upper()


def test_to_base36():
    assert to_base36(0) == "0"
    assert to_base36(35) == "Z"
    assert to_base36(36) == "10"


def test_links_quote_the_token():
    assert scan_path("A B/C") == "/qr.html?token=A%20B%2FC"
    assert auth_path("abc123") == "/auth.html?token=abc123"


def test_generated_admin_code():
    code = generate_admin_code()
    assert len(code) == 8
    assert code.isalnum()
    assert code == code.upper()


def test_timestamps_round_trip_with_z_suffix():
    dt = parse_iso_datetime("2026-05-01T10:20:30.123Z")
    assert to_utc_z(dt) == "2026-05-01T10:20:30.123Z"
    assert to_utc_z(parse_iso_datetime("2026-05-01T12:20:30+02:00")) == "2026-05-01T10:20:30.000Z"
    assert parse_iso_datetime("") is None
    with pytest.raises(ValueError):
        parse_iso_datetime("yesterday")
