"""Shared utility functions."""

from __future__ import annotations

from datetime import date, datetime, timezone
from decimal import ROUND_HALF_UP, Decimal


def utc_now() -> datetime:
    """Return aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime) -> datetime:
    """Normalize datetime to UTC timezone."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def to_minor_units(amount: Decimal) -> int:
    """Convert a major-unit amount (pounds) to minor units (pence)."""
    return int((Decimal(amount) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def from_minor_units(amount: int | None) -> Decimal:
    """Convert minor units back to a two-decimal major-unit amount."""
    return (Decimal(amount or 0) / Decimal(100)).quantize(Decimal("0.01"))


def date_from_timestamp(value: int | None) -> date | None:
    """Convert a unix timestamp to a UTC calendar date."""
    if value is None:
        return None
    return datetime.fromtimestamp(int(value), tz=timezone.utc).date()
