"""
DigitalHub - Shared Helpers
============================
Pure utility functions with NO database or module dependencies.
"""

from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Optional

from config.settings import CURRENCY_MINOR_UNITS


def now_utc() -> datetime:
    """Returns current UTC datetime (timezone-aware)."""
    return datetime.now(timezone.utc)


def safe_int(value: Optional[str]) -> Optional[int]:
    """Safely convert a string to int. Returns None on failure."""
    if value is None:
        return None
    try:
        return int(str(value).strip())
    except (ValueError, TypeError):
        return None


def safe_decimal(value) -> Optional[Decimal]:
    """Safely convert a value to Decimal. Returns None on failure or empty input."""
    if value is None or str(value).strip() == "":
        return None
    try:
        return Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None


def to_minor_units(amount) -> int:
    """Convert a major-unit price (e.g. 10.99 dollars) to integer minor units (1099 cents)."""
    if amount is None:
        return 0
    minor = Decimal(str(amount)) * CURRENCY_MINOR_UNITS
    return int(minor.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def from_minor_units(amount) -> Decimal:
    """Convert integer minor units back to a 2-decimal major-unit amount."""
    return (Decimal(int(amount or 0)) / CURRENCY_MINOR_UNITS).quantize(Decimal("0.01"))


def get_real_ip(request) -> str:
    """Extract real client IP from request (handles X-Forwarded-For proxy header)."""
    x_forwarded = request.headers.get("X-Forwarded-For")
    if x_forwarded:
        return x_forwarded.split(",")[0].strip()
    return request.client.host if request.client else ""


def total_pages(total: int, per_page: int) -> int:
    return max(1, (total + per_page - 1) // per_page)
