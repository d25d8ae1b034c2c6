"""
Date and pricing helpers shared by the availability checker and the
reservation lifecycle.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal

from django.utils import timezone

ONE_DAY = timedelta(days=1)
CENTS = Decimal("0.01")


def ensure_aware(value: datetime) -> datetime:
    """Interpret naive datetimes in the current time zone."""
    if timezone.is_naive(value):
        return timezone.make_aware(value)
    return value


def calendar_date(value: date | datetime) -> date:
    """Calendar day of ``value`` in the current time zone."""
    if isinstance(value, datetime):
        return timezone.localdate(ensure_aware(value))
    return value


def overlaps(start_a, end_a, start_b, end_b) -> bool:
    """
    Closed-interval overlap on calendar days.

    Ranges that only touch at a boundary day still overlap.
    """
    return calendar_date(start_a) <= calendar_date(end_b) and calendar_date(end_a) >= calendar_date(start_b)


def rental_days(start: datetime, end: datetime) -> int:
    """Whole days between ``start`` and ``end``; any started day counts."""
    days, remainder = divmod(end - start, ONE_DAY)
    if remainder:
        days += 1
    return max(1, days)


def rental_amount(days: int, price_per_day: Decimal) -> Decimal:
    return (Decimal(days) * Decimal(price_per_day)).quantize(CENTS, rounding=ROUND_HALF_UP)


def max_model_year(today: date | None = None) -> int:
    """Newest model year accepted in the catalog: next year."""
    today = today or timezone.localdate()
    return today.year + 1
