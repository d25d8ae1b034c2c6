"""
Data models for the car rental backend.

This module defines the catalog of cars, the guest identities created by
bookings made without an account, and the reservations themselves. A
reservation always derives its rental length and total from its dates and
the daily rate locked in when it was created.
"""

from __future__ import annotations

from datetime import datetime

from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.db.models import F, Q

from .utils import calendar_date, max_model_year, rental_amount, rental_days


def validate_model_year(value: int) -> None:
    """Reject model years newer than next year, evaluated at call time."""
    if value > max_model_year():
        raise ValidationError("Invalid year")


class Car(models.Model):
    """A vehicle in the rental catalog."""

    CATEGORY_CHOICES = [
        ("economy", "Economy"),
        ("compact", "Compact"),
        ("midsize", "Midsize"),
        ("fullsize", "Full size"),
        ("premium", "Premium"),
        ("luxury", "Luxury"),
        ("suv", "SUV"),
        ("van", "Van"),
        ("sports", "Sports"),
        ("electric", "Electric"),
    ]
    TRANSMISSION_CHOICES = [
        ("manual", "Manual"),
        ("automatic", "Automatic"),
        ("cvt", "CVT"),
    ]
    FUEL_CHOICES = [
        ("gasoline", "Gasoline"),
        ("diesel", "Diesel"),
        ("electric", "Electric"),
        ("hybrid", "Hybrid"),
    ]

    name = models.CharField(max_length=100, verbose_name="Name")
    brand = models.CharField(max_length=50, verbose_name="Brand")
    model = models.CharField(max_length=50, verbose_name="Model")
    year = models.PositiveIntegerField(
        validators=[MinValueValidator(1900), validate_model_year], verbose_name="Year"
    )
    category = models.CharField(max_length=12, choices=CATEGORY_CHOICES, verbose_name="Category")
    price_per_day = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(0)],
        verbose_name="Price per day",
    )
    seats = models.PositiveSmallIntegerField(
        validators=[MinValueValidator(1), MaxValueValidator(15)], verbose_name="Seats"
    )
    transmission = models.CharField(max_length=10, choices=TRANSMISSION_CHOICES, verbose_name="Transmission")
    fuel_type = models.CharField(max_length=10, choices=FUEL_CHOICES, verbose_name="Fuel type")
    mileage = models.PositiveIntegerField(default=0, verbose_name="Mileage")
    features = models.JSONField(default=list, blank=True, verbose_name="Features")
    images = models.JSONField(default=list, blank=True, verbose_name="Images", help_text="Image URLs")
    description = models.CharField(max_length=500, blank=True, verbose_name="Description")
    location = models.CharField(max_length=120, verbose_name="Location")
    # Toggled by staff; independent of the bookings held on the car.
    is_available = models.BooleanField(default=True, verbose_name="Available")
    rating_average = models.DecimalField(
        max_digits=3,
        decimal_places=2,
        default=0,
        validators=[MinValueValidator(0), MaxValueValidator(5)],
        verbose_name="Average rating",
    )
    rating_count = models.PositiveIntegerField(default=0, verbose_name="Ratings")
    created_at = models.DateTimeField(auto_now_add=True, verbose_name="Created")
    updated_at = models.DateTimeField(auto_now=True, verbose_name="Updated")

    class Meta:
        verbose_name = "Car"
        verbose_name_plural = "Cars"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["category", "price_per_day"], name="rentals_car_categor_5c1f0e_idx"),
            models.Index(fields=["location", "is_available"], name="rentals_car_locatio_8d2b41_idx"),
        ]
        constraints = [
            models.CheckConstraint(condition=Q(price_per_day__gte=0), name="car_price_non_negative"),
        ]

    def __str__(self) -> str:
        return f"{self.brand} {self.model} {self.year} - {self.name}"


class CustomerQuerySet(models.QuerySet):
    def find_or_create_guest(self, *, email: str, name: str, phone: str) -> "Customer":
        """
        Upsert the guest identity keyed by email.

        An existing guest keeps its id and gets the latest name and phone.
        """
        email = email.strip().lower()
        guest, created = self.get_or_create(
            email=email,
            is_guest=True,
            defaults={"name": name, "phone": phone},
        )
        if not created and (guest.name != name or guest.phone != phone):
            guest.name = name
            guest.phone = phone
            guest.save(update_fields=["name", "phone", "updated_at"])
        return guest


class Customer(models.Model):
    """A renter without an account, created by a guest booking."""

    name = models.CharField(max_length=100, verbose_name="Name")
    email = models.EmailField(verbose_name="Email")
    phone = models.CharField(max_length=30, verbose_name="Phone")
    is_guest = models.BooleanField(default=True, verbose_name="Guest")
    created_at = models.DateTimeField(auto_now_add=True, verbose_name="Created")
    updated_at = models.DateTimeField(auto_now=True, verbose_name="Updated")

    objects = CustomerQuerySet.as_manager()

    class Meta:
        verbose_name = "Customer"
        verbose_name_plural = "Customers"
        ordering = ["name"]
        constraints = [
            models.UniqueConstraint(
                fields=["email"],
                condition=Q(is_guest=True),
                name="unique_guest_email",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.name} <{self.email}>"


class ReservationQuerySet(models.QuerySet):
    def overlapping(self, car, start_date: datetime, end_date: datetime, statuses):
        """
        Reservations of ``car`` in one of ``statuses`` sharing at least one
        calendar day with ``start_date``..``end_date``.
        """
        return self.filter(
            car=car,
            status__in=list(statuses),
            start_date__date__lte=calendar_date(end_date),
            end_date__date__gte=calendar_date(start_date),
        )

    def for_user(self, user):
        return self.filter(user=user)


class Reservation(models.Model):
    """A booking of a car, made by a registered user or a guest."""

    STATUS_PENDING = "pending"
    STATUS_CONFIRMED = "confirmed"
    STATUS_ACTIVE = "active"
    STATUS_COMPLETED = "completed"
    STATUS_CANCELLED = "cancelled"

    STATUS_CHOICES = [
        (STATUS_PENDING, "Pending"),
        (STATUS_CONFIRMED, "Confirmed"),
        (STATUS_ACTIVE, "Active"),
        (STATUS_COMPLETED, "Completed"),
        (STATUS_CANCELLED, "Cancelled"),
    ]
    PAYMENT_STATUS_CHOICES = [
        ("pending", "Pending"),
        ("paid", "Paid"),
        ("failed", "Failed"),
        ("refunded", "Refunded"),
    ]
    PAYMENT_METHOD_CHOICES = [
        ("card", "Card"),
        ("cash", "Cash"),
        ("bank_transfer", "Bank transfer"),
    ]

    # Statuses that hold the car for each booking pathway.
    MEMBER_BLOCKING_STATUSES = frozenset({STATUS_CONFIRMED, STATUS_ACTIVE})
    GUEST_BLOCKING_STATUSES = MEMBER_BLOCKING_STATUSES | {STATUS_PENDING}
    RELEASED_STATUSES = frozenset({STATUS_COMPLETED, STATUS_CANCELLED})

    car = models.ForeignKey(Car, on_delete=models.PROTECT, related_name="reservations", verbose_name="Car")
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="reservations",
        verbose_name="User",
    )
    customer = models.ForeignKey(
        Customer,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="reservations",
        verbose_name="Guest",
    )
    start_date = models.DateTimeField(verbose_name="Start date")
    end_date = models.DateTimeField(verbose_name="End date")
    daily_rate = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        editable=False,
        verbose_name="Daily rate",
        help_text="Car price per day when the booking was made",
    )
    total_days = models.PositiveIntegerField(editable=False, verbose_name="Days")
    total_amount = models.DecimalField(max_digits=12, decimal_places=2, editable=False, verbose_name="Total amount")
    status = models.CharField(
        max_length=10, choices=STATUS_CHOICES, default=STATUS_PENDING, verbose_name="Status"
    )
    # Written by the payment collaborator only.
    payment_status = models.CharField(
        max_length=10, choices=PAYMENT_STATUS_CHOICES, default="pending", verbose_name="Payment status"
    )
    payment_method = models.CharField(
        max_length=15, choices=PAYMENT_METHOD_CHOICES, blank=True, verbose_name="Payment method"
    )
    pickup_location = models.CharField(max_length=255, verbose_name="Pickup location")
    return_location = models.CharField(max_length=255, verbose_name="Return location")
    special_requests = models.TextField(blank=True, verbose_name="Special requests")
    is_guest_booking = models.BooleanField(default=False, verbose_name="Guest booking")
    guest_name = models.CharField(max_length=100, blank=True, verbose_name="Guest name")
    guest_email = models.EmailField(blank=True, verbose_name="Guest email")
    guest_phone = models.CharField(max_length=30, blank=True, verbose_name="Guest phone")
    created_at = models.DateTimeField(auto_now_add=True, verbose_name="Created")
    updated_at = models.DateTimeField(auto_now=True, verbose_name="Updated")

    objects = ReservationQuerySet.as_manager()

    class Meta:
        verbose_name = "Reservation"
        verbose_name_plural = "Reservations"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["user", "-created_at"], name="rentals_res_user_id_3a7c2e_idx"),
            models.Index(fields=["car", "start_date", "end_date"], name="rentals_res_car_id_9f4d10_idx"),
            models.Index(fields=["status", "-created_at"], name="rentals_res_status_b62e8a_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(end_date__gt=F("start_date")),
                name="reservation_end_after_start",
            ),
            models.CheckConstraint(
                condition=Q(total_amount__gte=0),
                name="reservation_amount_non_negative",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.renter_name} - {self.car} ({self.start_date:%Y-%m-%d} - {self.end_date:%Y-%m-%d})"

    @property
    def renter_name(self) -> str:
        if self.is_guest_booking:
            return self.guest_name
        return self.user.get_username() if self.user_id else ""

    @property
    def blocking_statuses(self) -> frozenset:
        return self.GUEST_BLOCKING_STATUSES if self.is_guest_booking else self.MEMBER_BLOCKING_STATUSES

    @staticmethod
    def validate_dates(start_date: datetime, end_date: datetime) -> None:
        if start_date >= end_date:
            raise ValidationError("End date must be after start date.")

    @classmethod
    def validate_availability(
        cls,
        *,
        car: Car,
        start_date: datetime,
        end_date: datetime,
        statuses,
        exclude_pk: int | None = None,
    ) -> None:
        conflict = (
            cls.objects.overlapping(car, start_date, end_date, statuses)
            .exclude(pk=exclude_pk)
            .exists()
        )
        if conflict:
            raise ValidationError("Car is not available for the selected dates.")

    def clean(self) -> None:
        """Any edit of the dates is re-validated, including against other bookings."""
        if not (self.start_date and self.end_date):
            return
        Reservation.validate_dates(self.start_date, self.end_date)
        if self.car_id and self.status not in self.RELEASED_STATUSES:
            Reservation.validate_availability(
                car=self.car,
                start_date=self.start_date,
                end_date=self.end_date,
                statuses=self.blocking_statuses,
                exclude_pk=self.pk,
            )

    def save(self, *args, **kwargs) -> None:
        """Keep length and total in step with the dates and the locked daily rate."""
        self.total_days = rental_days(self.start_date, self.end_date)
        self.total_amount = rental_amount(self.total_days, self.daily_rate)
        update_fields = kwargs.get("update_fields")
        if update_fields is not None and {"start_date", "end_date", "daily_rate"} & set(update_fields):
            kwargs["update_fields"] = set(update_fields) | {"total_days", "total_amount"}
        super().save(*args, **kwargs)
