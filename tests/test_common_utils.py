from datetime import datetime, timezone
import uuid
import pytest
from goryl.categories.utils import slugify
from goryl.chat.routes import _newer_than
from goryl.common.csv_export import build_csv, export_filename
from goryl.common.cursor import decode_cursor, encode_cursor
from goryl.common.money import format_currency, format_date, format_datetime
from goryl.common.utils import as_utc, mask_tail, parse_uuid
from goryl.db.utils import _normalize_db_url


@pytest.mark.parametrize("cents,text", [
    (0, "$0.00"),
    (5, "$0.05"),
    (123456, "$1,234.56"),
    (100_000_000, "$1,000,000.00"),
    (-100, "-$1.00"),
])
def test_format_currency(cents, text):
    assert format_currency(cents) == text


def test_format_currency_other_codes():
    assert format_currency(2500, "PKR") == "Rs25.00"
    assert format_currency(2500, "chf") == "CHF 25.00"


def test_date_formats():
    at = datetime(2026, 1, 5, 9, 30)
    assert format_datetime(at) == "Jan 5, 2026, 09:30 AM"
    assert format_date(at) == "Jan 5, 2026"
    assert format_date(None) == "Never"
    assert format_date(None, missing="") == ""
    assert format_datetime(None) == ""


def test_as_utc_treats_naive_as_utc():
    assert as_utc(datetime(2026, 1, 1, 12)).tzinfo == timezone.utc
    assert as_utc(None) is None


def test_parse_uuid():
    raw = uuid.uuid4()
    assert parse_uuid(str(raw)) == raw
    assert parse_uuid(raw) is raw
    assert parse_uuid("not-a-uuid") is None
    assert parse_uuid(None) is None


def test_mask_tail():
    assert mask_tail("PK36MEZN0001") == "********0001"
    assert mask_tail("123") == "123"
    assert mask_tail("") == ""
    assert mask_tail(None) is None


def test_cursor_rejects_tampering():
    token = encode_cursor(datetime(2026, 2, 1, 8, 0, tzinfo=timezone.utc), 42)
    created_at, last_id = decode_cursor(token, max_age=60)
    assert last_id == "42"
    assert created_at == datetime(2026, 2, 1, 8, 0, tzinfo=timezone.utc)

    body, sig = token.split(".")
    with pytest.raises(ValueError):
        decode_cursor(f"{body}.{'A' * len(sig)}")
    with pytest.raises(ValueError):
        decode_cursor("no-dot-here")


def test_slugify():
    assert slugify("  Home & Decor ") == "home-decor"
    assert slugify("Toys, Games!") == "toys-games"
    assert slugify("!!!") == ""


def test_build_csv():
    rows = [["Name", "Amount"], ["Sana, Seller", "$1,234.56"], ["Bilal", None]]
    assert build_csv(rows) == 'Name,Amount\n"Sana, Seller","$1,234.56"\nBilal,\n'
    assert build_csv([["a", "b"]], quote_all=True) == '"a","b"\n'


def test_export_filename():
    assert export_filename("payments", datetime(2026, 4, 2, 23, 59, tzinfo=timezone.utc)) == "payments-2026-04-02.csv"


@pytest.mark.parametrize("url,expected", [
    ("postgres://u:p@db/goryl", "postgresql+asyncpg://u:p@db/goryl"),
    ("postgresql://u:p@db/goryl", "postgresql+asyncpg://u:p@db/goryl"),
    ("sqlite:///./goryl.db", "sqlite+aiosqlite:///./goryl.db"),
    ("sqlite+aiosqlite:///./goryl.db", "sqlite+aiosqlite:///./goryl.db"),
    ("", None),
])
def test_normalize_db_url(url, expected):
    assert _normalize_db_url(url) == expected


def test_newer_than():
    messages = [{"id": "a"}, {"id": "b"}, {"id": "c"}]
    assert _newer_than(messages, None) == messages
    assert _newer_than(messages, "b") == [{"id": "c"}]
    assert _newer_than(messages, "c") == []
    assert _newer_than(messages, "gone") == messages
