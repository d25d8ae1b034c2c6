"""
rentals.services

Reservation lifecycle: creation of member and guest bookings, status
changes and cancellation. Every public function returns a ``Result`` and
never lets a business error escape to the caller.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from functools import wraps
from typing import Any

from django.conf import settings
from django.db import DatabaseError, transaction
from django.utils import timezone

from .availability import GUEST_BLOCKING_STATUSES, MEMBER_BLOCKING_STATUSES, find_conflicts
from .exceptions import (
    Conflict,
    InfrastructureError,
    InvalidDateRange,
    InvalidStatus,
    NotFound,
    ReservationError,
    Unavailable,
)
from .models import Car, Customer, Reservation
from .results import Result
from .utils import ensure_aware

logger = logging.getLogger(__name__)

STATUSES = frozenset(choice for choice, _ in Reservation.STATUS_CHOICES)

# Only consulted when RENTALS_ENFORCE_STATUS_TRANSITIONS is on.
ALLOWED_TRANSITIONS = {
    Reservation.STATUS_PENDING: {Reservation.STATUS_CONFIRMED, Reservation.STATUS_CANCELLED},
    Reservation.STATUS_CONFIRMED: {Reservation.STATUS_ACTIVE, Reservation.STATUS_CANCELLED},
    Reservation.STATUS_ACTIVE: {Reservation.STATUS_COMPLETED, Reservation.STATUS_CANCELLED},
    Reservation.STATUS_COMPLETED: set(),
    Reservation.STATUS_CANCELLED: set(),
}

CANCELLABLE_STATUSES = frozenset({Reservation.STATUS_PENDING, Reservation.STATUS_CONFIRMED})


@dataclass(frozen=True)
class GuestInfo:
    name: str
    email: str
    phone: str


@dataclass(frozen=True)
class ReservationRequest:
    """A booking request from a signed-in ``user`` or a ``guest``."""

    car_id: int
    start_date: datetime
    end_date: datetime
    pickup_location: str
    return_location: str
    special_requests: str = ""
    user: Any = None
    guest: GuestInfo | None = None

    def __post_init__(self) -> None:
        if (self.user is None) == (self.guest is None):
            raise ValueError("A reservation request needs exactly one of user or guest.")

    @property
    def is_guest(self) -> bool:
        return self.guest is not None

    @property
    def blocking_statuses(self) -> frozenset:
        return GUEST_BLOCKING_STATUSES if self.is_guest else MEMBER_BLOCKING_STATUSES


def returns_result(func):
    """Wrap ``func`` so its return value or error comes back as a ``Result``."""

    @wraps(func)
    def wrapper(*args, **kwargs) -> Result:
        try:
            value = func(*args, **kwargs)
        except ReservationError as exc:
            logger.info("%s rejected: %s (%s)", func.__name__, exc.code, exc)
            return Result.failure(exc)
        except DatabaseError as exc:
            logger.exception("%s failed on the database", func.__name__)
            return Result.failure(InfrastructureError(detail=str(exc)))
        return Result.success(value)

    return wrapper


def validate_date_range(start_date: datetime, end_date: datetime, now: datetime) -> None:
    if start_date <= now:
        raise InvalidDateRange("Start date must be in the future.")
    if end_date <= start_date:
        raise InvalidDateRange("End date must be after start date.")


def _lock_car(car_id: int) -> Car:
    car = Car.objects.select_for_update().filter(pk=car_id).first()
    if car is None:
        raise NotFound("Car not found.")
    return car


@returns_result
def create_reservation(request: ReservationRequest, *, now: datetime | None = None) -> Reservation:
    """
    Validate ``request`` and store it as a pending reservation.

    The car row stays locked from the conflict check until the insert
    commits, so two overlapping requests for one car cannot both pass.
    """
    now = ensure_aware(now) if now else timezone.now()
    start_date = ensure_aware(request.start_date)
    end_date = ensure_aware(request.end_date)
    validate_date_range(start_date, end_date, now)

    with transaction.atomic():
        car = _lock_car(request.car_id)
        if not car.is_available:
            raise Unavailable()

        conflicts = find_conflicts(car, start_date, end_date, request.blocking_statuses)
        if conflicts:
            raise Conflict(conflicts=conflicts)

        fields = {
            "car": car,
            "start_date": start_date,
            "end_date": end_date,
            "daily_rate": car.price_per_day,
            "status": Reservation.STATUS_PENDING,
            "pickup_location": request.pickup_location,
            "return_location": request.return_location,
            "special_requests": request.special_requests or "",
            "is_guest_booking": request.is_guest,
        }
        if request.is_guest:
            guest = request.guest
            fields["customer"] = Customer.objects.find_or_create_guest(
                email=guest.email, name=guest.name, phone=guest.phone
            )
            fields.update(guest_name=guest.name, guest_email=guest.email, guest_phone=guest.phone)
        else:
            fields["user"] = request.user

        reservation = Reservation.objects.create(**fields)

    logger.info(
        "Reservation %s created for car %s (%s days, %s)%s",
        reservation.pk,
        car.pk,
        reservation.total_days,
        reservation.total_amount,
        " as guest" if request.is_guest else "",
    )
    return reservation


def assert_transition(current: str, target: str) -> None:
    if current == target:
        return
    if target not in ALLOWED_TRANSITIONS.get(current, set()):
        raise InvalidStatus(f"Invalid status transition: {current} -> {target}.")


@returns_result
def set_status(reservation_id: int, new_status: str) -> Reservation:
    """Overwrite the status of a reservation (staff action)."""
    if new_status not in STATUSES:
        raise InvalidStatus(f"Invalid status: {new_status}.")

    with transaction.atomic():
        reservation = Reservation.objects.select_for_update().filter(pk=reservation_id).first()
        if reservation is None:
            raise NotFound("Reservation not found.")
        if settings.RENTALS_ENFORCE_STATUS_TRANSITIONS:
            assert_transition(reservation.status, new_status)
        previous = reservation.status
        reservation.status = new_status
        reservation.save(update_fields=["status", "updated_at"])

    logger.info("Reservation %s status %s -> %s", reservation.pk, previous, new_status)
    return reservation


def _visible_to(reservation: Reservation, user) -> bool:
    if user is None or not user.is_authenticated:
        return False
    return user.is_staff or reservation.user_id == user.pk


@returns_result
def get_reservation(reservation_id: int, user) -> Reservation:
    reservation = (
        Reservation.objects.select_related("car", "user", "customer").filter(pk=reservation_id).first()
    )
    if reservation is None or not _visible_to(reservation, user):
        raise NotFound("Reservation not found.")
    return reservation


@returns_result
def cancel_reservation(reservation_id: int, user) -> Reservation:
    """Let the owner (or staff) cancel a booking that has not started."""
    with transaction.atomic():
        reservation = Reservation.objects.select_for_update().filter(pk=reservation_id).first()
        if reservation is None or not _visible_to(reservation, user):
            raise NotFound("Reservation not found.")
        if reservation.status not in CANCELLABLE_STATUSES:
            raise InvalidStatus(f"A {reservation.status} reservation cannot be cancelled.")
        reservation.status = Reservation.STATUS_CANCELLED
        reservation.save(update_fields=["status", "updated_at"])

    logger.info("Reservation %s cancelled by user %s", reservation.pk, user.pk)
    return reservation
