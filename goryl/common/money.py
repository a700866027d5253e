from datetime import datetime
from decimal import Decimal
from typing import Optional
from goryl.config.settings import config_settings
from goryl.common.utils import as_utc

CURRENCY_SYMBOLS = {
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
    "PKR": "Rs",
    "INR": "₹",
}


def cents_to_decimal(cents: int) -> Decimal:
    return (Decimal(int(cents or 0)) / 100).quantize(Decimal("0.01"))


def format_currency(cents: int, currency: Optional[str] = None) -> str:
    """en-US style currency text, e.g. 123456 -> "$1,234.56" and -100 -> "-$1.00"."""
    currency = (currency or config_settings.DEFAULT_CURRENCY).upper()
    symbol = CURRENCY_SYMBOLS.get(currency, f"{currency} ")
    amount = cents_to_decimal(cents)
    sign = "-" if amount < 0 else ""
    return f"{sign}{symbol}{abs(amount):,.2f}"


def format_datetime(value: Optional[datetime]) -> str:
    # "Jan 5, 2026, 09:30 AM"
    value = as_utc(value)
    if value is None:
        return ""
    return f"{value:%b} {value.day}, {value:%Y}, {value:%I:%M %p}"


def format_date(value: Optional[datetime], missing: str = "Never") -> str:
    value = as_utc(value)
    if value is None:
        return missing
    return f"{value:%b} {value.day}, {value:%Y}"
