"""
Availability checks for a single car over a date range.

Two ranges conflict when they share at least one calendar day. Which
reservation statuses hold a car depends on the booking pathway: members
are blocked by confirmed and active reservations, guests additionally by
pending ones so provisional guest requests never stack.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime

from django.db import DatabaseError

from .exceptions import InfrastructureError, NotFound, ReservationError
from .models import Car, Reservation
from .results import Result

logger = logging.getLogger(__name__)

MEMBER_BLOCKING_STATUSES = Reservation.MEMBER_BLOCKING_STATUSES
GUEST_BLOCKING_STATUSES = Reservation.GUEST_BLOCKING_STATUSES


@dataclass(frozen=True)
class DateRange:
    start_date: datetime
    end_date: datetime

    def as_dict(self) -> dict:
        return {"start_date": self.start_date.isoformat(), "end_date": self.end_date.isoformat()}


@dataclass(frozen=True)
class Availability:
    available: bool
    conflicts: list[DateRange] = field(default_factory=list)


def find_conflicts(car: Car, start_date: datetime, end_date: datetime, blocking_statuses) -> list[DateRange]:
    """Ranges of blocking reservations on ``car`` overlapping the request, in store order."""
    rows = Reservation.objects.overlapping(car, start_date, end_date, blocking_statuses).values_list(
        "start_date", "end_date"
    )
    return [DateRange(start, end) for start, end in rows]


def evaluate(car: Car, start_date: datetime, end_date: datetime, blocking_statuses) -> Availability:
    conflicts = find_conflicts(car, start_date, end_date, blocking_statuses)
    return Availability(available=not conflicts and car.is_available, conflicts=conflicts)


def check_availability(
    car_id: int,
    start_date: datetime,
    end_date: datetime,
    blocking_statuses=MEMBER_BLOCKING_STATUSES,
) -> Result:
    """Read-only availability query; returns ``Result[Availability]``."""
    try:
        car = Car.objects.filter(pk=car_id).first()
        if car is None:
            raise NotFound("Car not found.")
        return Result.success(evaluate(car, start_date, end_date, blocking_statuses))
    except ReservationError as exc:
        return Result.failure(exc)
    except DatabaseError as exc:
        logger.exception("Availability check failed for car %s", car_id)
        return Result.failure(InfrastructureError(detail=str(exc)))
