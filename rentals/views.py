"""
rentals.views

JSON API over the catalog and the reservation lifecycle. Views only parse
input and shape output; every decision is taken in ``rentals.services``.
"""

from __future__ import annotations

import json
import logging
from decimal import Decimal

from django.conf import settings
from django.contrib.auth import get_user_model
from django.contrib.auth.mixins import AccessMixin, LoginRequiredMixin, UserPassesTestMixin
from django.core.paginator import EmptyPage, Paginator
from django.db import DatabaseError
from django.db.models import DecimalField, Q, Sum
from django.db.models.functions import Coalesce
from django.http import JsonResponse
from django.views import View

from . import services
from .availability import MEMBER_BLOCKING_STATUSES, check_availability
from .exceptions import ReservationError
from .forms import (
    AvailabilityQueryForm,
    CarFilterForm,
    CarForm,
    GuestReservationForm,
    ListFilterForm,
    PageForm,
    ReservationForm,
    StatusForm,
)
from .models import Car, Reservation

logger = logging.getLogger(__name__)

ERROR_STATUS = {
    "invalid_date_range": 400,
    "invalid_status": 400,
    "unavailable": 400,
    "not_found": 404,
    "conflict": 409,
    "infrastructure_error": 503,
}

CAR_ORDERING = {
    "newest": ("-created_at",),
    "price_low": ("price_per_day", "-created_at"),
    "price_high": ("-price_per_day", "-created_at"),
    "rating": ("-rating_average", "-created_at"),
}


# -----------------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------------


def _ok(data=None, message: str | None = None, status: int = 200, **extra) -> JsonResponse:
    payload = {"success": True}
    if data is not None:
        payload["data"] = data
    if message:
        payload["message"] = message
    payload.update(extra)
    return JsonResponse(payload, status=status)


def _fail(message: str, status: int = 400, **extra) -> JsonResponse:
    payload = {"success": False, "message": message}
    payload.update(extra)
    return JsonResponse(payload, status=status)


def _form_errors(form) -> JsonResponse:
    errors = [
        {"field": field, "message": message}
        for field, messages in form.errors.items()
        for message in messages
    ]
    return _fail("Validation failed", status=400, errors=errors)


def _error_response(error: ReservationError) -> JsonResponse:
    extra = {"code": error.code, "retryable": error.retryable}
    conflicts = getattr(error, "conflicts", None)
    if conflicts:
        extra["conflicting_dates"] = [conflict.as_dict() for conflict in conflicts]
    return _fail(error.message, status=ERROR_STATUS.get(error.code, 400), **extra)


def _json_body(request) -> dict | None:
    if not request.body:
        return {}
    try:
        payload = json.loads(request.body.decode("utf-8"))
    except (UnicodeDecodeError, ValueError):
        return None
    return payload if isinstance(payload, dict) else None


def _paginate(queryset, page: int | None, limit: int) -> tuple[list, dict]:
    """Slice ``queryset``; a page past the end is returned empty, not clamped."""
    page = page or 1
    paginator = Paginator(queryset, limit)
    try:
        items = list(paginator.page(page).object_list)
    except EmptyPage:
        items = []
    pagination = {
        "page": page,
        "limit": limit,
        "total": paginator.count,
        "pages": paginator.num_pages if paginator.count else 0,
    }
    return items, pagination


def serialize_car(car: Car) -> dict:
    return {
        "id": car.id,
        "name": car.name,
        "brand": car.brand,
        "model": car.model,
        "year": car.year,
        "category": car.category,
        "price_per_day": str(car.price_per_day),
        "seats": car.seats,
        "transmission": car.transmission,
        "fuel_type": car.fuel_type,
        "mileage": car.mileage,
        "features": car.features,
        "images": car.images,
        "description": car.description,
        "location": car.location,
        "is_available": car.is_available,
        "rating": {"average": str(car.rating_average), "count": car.rating_count},
    }


def serialize_reservation(reservation: Reservation) -> dict:
    data = {
        "id": reservation.id,
        "car": {
            "id": reservation.car_id,
            "name": reservation.car.name,
            "brand": reservation.car.brand,
            "model": reservation.car.model,
            "price_per_day": str(reservation.car.price_per_day),
        },
        "user": reservation.user_id,
        "start_date": reservation.start_date.isoformat(),
        "end_date": reservation.end_date.isoformat(),
        "daily_rate": str(reservation.daily_rate),
        "total_days": reservation.total_days,
        "total_amount": str(reservation.total_amount),
        "status": reservation.status,
        "payment_status": reservation.payment_status,
        "payment_method": reservation.payment_method,
        "pickup_location": reservation.pickup_location,
        "return_location": reservation.return_location,
        "special_requests": reservation.special_requests,
        "is_guest_booking": reservation.is_guest_booking,
        "created_at": reservation.created_at.isoformat(),
    }
    if reservation.is_guest_booking:
        data["guest_info"] = {
            "name": reservation.guest_name,
            "email": reservation.guest_email,
            "phone": reservation.guest_phone,
        }
    return data


def serialize_user(user) -> dict:
    return {
        "id": user.pk,
        "username": user.get_username(),
        "email": user.email,
        "first_name": user.first_name,
        "last_name": user.last_name,
        "is_active": user.is_active,
        "date_joined": user.date_joined.isoformat(),
    }


class JsonAccessMixin(AccessMixin):
    """Answer refused requests with the JSON envelope instead of a redirect."""

    def handle_no_permission(self):
        if not self.request.user.is_authenticated:
            return _fail("Authentication required", status=401)
        return _fail("Admin access required", status=403)


class MemberRequiredMixin(JsonAccessMixin, LoginRequiredMixin):
    pass


class StaffRequiredMixin(JsonAccessMixin, LoginRequiredMixin, UserPassesTestMixin):
    def test_func(self) -> bool:
        return bool(self.request.user and self.request.user.is_staff)


# -----------------------------------------------------------------------------
# Catalog
# -----------------------------------------------------------------------------


class CarListView(StaffRequiredMixin, View):
    """Public catalog listing; adding a car is a staff action."""

    public_methods = ("get", "head", "options")

    def dispatch(self, request, *args, **kwargs):
        if request.method.lower() in self.public_methods:
            return View.dispatch(self, request, *args, **kwargs)
        return super().dispatch(request, *args, **kwargs)

    def get(self, request):
        form = CarFilterForm(request.GET)
        if not form.is_valid():
            return _form_errors(form)
        data = form.cleaned_data

        queryset = Car.objects.filter(is_available=True)
        for field in ("category", "transmission", "fuel_type"):
            if data.get(field):
                queryset = queryset.filter(**{field: data[field]})
        if data.get("location"):
            queryset = queryset.filter(location__icontains=data["location"])
        if data.get("min_price") is not None:
            queryset = queryset.filter(price_per_day__gte=data["min_price"])
        if data.get("max_price") is not None:
            queryset = queryset.filter(price_per_day__lte=data["max_price"])
        if data.get("seats"):
            queryset = queryset.filter(seats__gte=data["seats"])
        query = (data.get("search") or "").strip()
        if query:
            queryset = queryset.filter(
                Q(name__icontains=query)
                | Q(brand__icontains=query)
                | Q(model__icontains=query)
                | Q(category__icontains=query)
            )
        queryset = queryset.order_by(*CAR_ORDERING[data.get("sort_by") or "newest"])

        cars, pagination = _paginate(queryset, data.get("page"), data.get("limit") or settings.RENTALS_PAGE_SIZE)
        return _ok([serialize_car(car) for car in cars], pagination=pagination)

    def post(self, request):
        payload = _json_body(request)
        if payload is None:
            return _fail("Invalid JSON", status=400)
        form = CarForm(payload)
        if not form.is_valid():
            return _form_errors(form)
        try:
            car = form.save()
        except DatabaseError:
            logger.exception("Saving a new car failed")
            return _fail("Storage is temporarily unavailable, please retry.", status=503)
        logger.info("Car %s added to the catalog by user %s", car.pk, request.user.pk)
        return _ok(serialize_car(car), message="Car created successfully", status=201)


class CarDetailView(View):
    def get(self, request, pk):
        car = Car.objects.filter(pk=pk).first()
        if car is None:
            return _fail("Car not found", status=404)
        return _ok(serialize_car(car))


class CarAvailabilityView(View):
    def get(self, request, pk):
        form = AvailabilityQueryForm(request.GET)
        if not form.is_valid():
            return _form_errors(form)
        result = check_availability(
            pk,
            form.cleaned_data["start_date"],
            form.cleaned_data["end_date"],
            MEMBER_BLOCKING_STATUSES,
        )
        if not result.ok:
            return _error_response(result.error)
        availability = result.value
        return _ok(
            available=availability.available,
            conflicting_dates=[conflict.as_dict() for conflict in availability.conflicts],
        )


# -----------------------------------------------------------------------------
# Bookings
# -----------------------------------------------------------------------------


class BookingCollectionView(MemberRequiredMixin, View):
    def get(self, request):
        form = ListFilterForm(request.GET)
        if not form.is_valid():
            return _form_errors(form)
        queryset = Reservation.objects.for_user(request.user).select_related("car")
        if form.cleaned_data.get("status"):
            queryset = queryset.filter(status=form.cleaned_data["status"])
        limit = form.cleaned_data.get("limit") or settings.RENTALS_PAGE_SIZE
        reservations, pagination = _paginate(queryset, form.cleaned_data.get("page"), limit)
        return _ok([serialize_reservation(r) for r in reservations], pagination=pagination)

    def post(self, request):
        payload = _json_body(request)
        if payload is None:
            return _fail("Invalid JSON", status=400)
        form = ReservationForm(payload)
        if not form.is_valid():
            return _form_errors(form)
        result = services.create_reservation(form.to_request(request.user))
        if not result.ok:
            return _error_response(result.error)
        return _ok(serialize_reservation(result.value), message="Booking created successfully", status=201)


class GuestBookingView(View):
    def post(self, request):
        payload = _json_body(request)
        if payload is None:
            return _fail("Invalid JSON", status=400)
        form = GuestReservationForm(payload)
        if not form.is_valid():
            return _form_errors(form)
        result = services.create_reservation(form.to_request())
        if not result.ok:
            return _error_response(result.error)
        return _ok(
            serialize_reservation(result.value),
            message="Guest booking created successfully! We will contact you shortly to confirm your reservation.",
            status=201,
        )


class BookingDetailView(MemberRequiredMixin, View):
    def get(self, request, pk):
        result = services.get_reservation(pk, request.user)
        if not result.ok:
            return _error_response(result.error)
        return _ok(serialize_reservation(result.value))


class BookingCancelView(MemberRequiredMixin, View):
    def post(self, request, pk):
        result = services.cancel_reservation(pk, request.user)
        if not result.ok:
            return _error_response(result.error)
        return _ok(serialize_reservation(result.value), message="Booking cancelled successfully")

    put = post


# -----------------------------------------------------------------------------
# Staff
# -----------------------------------------------------------------------------


class DashboardView(StaffRequiredMixin, View):
    def get(self, request):
        try:
            revenue = Reservation.objects.filter(
                status=Reservation.STATUS_COMPLETED, payment_status="paid"
            ).aggregate(
                total=Coalesce(
                    Sum("total_amount"),
                    Decimal("0.00"),
                    output_field=DecimalField(max_digits=12, decimal_places=2),
                )
            )["total"]
            stats = {
                "total_cars": Car.objects.count(),
                "available_cars": Car.objects.filter(is_available=True).count(),
                "total_bookings": Reservation.objects.count(),
                "active_bookings": Reservation.objects.filter(status=Reservation.STATUS_ACTIVE).count(),
                "total_users": get_user_model().objects.filter(is_staff=False).count(),
                "total_revenue": str(revenue),
            }
            recent = Reservation.objects.select_related("car", "user").order_by("-created_at")[:10]
            recent_bookings = [serialize_reservation(r) for r in recent]
        except DatabaseError:
            logger.exception("Dashboard query failed")
            return _fail("Storage is temporarily unavailable, please retry.", status=503)
        return _ok({"stats": stats, "recent_bookings": recent_bookings})


class AdminBookingListView(StaffRequiredMixin, View):
    def get(self, request):
        form = ListFilterForm(request.GET)
        if not form.is_valid():
            return _form_errors(form)
        queryset = Reservation.objects.select_related("car", "user")
        if form.cleaned_data.get("status"):
            queryset = queryset.filter(status=form.cleaned_data["status"])
        limit = form.cleaned_data.get("limit") or settings.RENTALS_ADMIN_PAGE_SIZE
        reservations, pagination = _paginate(queryset, form.cleaned_data.get("page"), limit)
        return _ok([serialize_reservation(r) for r in reservations], pagination=pagination)


class AdminBookingStatusView(StaffRequiredMixin, View):
    def post(self, request, pk):
        payload = _json_body(request)
        if payload is None:
            return _fail("Invalid JSON", status=400)
        form = StatusForm(payload)
        if not form.is_valid():
            return _form_errors(form)
        result = services.set_status(pk, form.cleaned_data["status"])
        if not result.ok:
            return _error_response(result.error)
        return _ok(serialize_reservation(result.value), message="Booking status updated successfully")

    put = post


class AdminUserListView(StaffRequiredMixin, View):
    def get(self, request):
        form = PageForm(request.GET)
        if not form.is_valid():
            return _form_errors(form)
        queryset = get_user_model().objects.filter(is_staff=False).order_by("-date_joined", "-pk")
        limit = form.cleaned_data.get("limit") or settings.RENTALS_ADMIN_PAGE_SIZE
        users, pagination = _paginate(queryset, form.cleaned_data.get("page"), limit)
        return _ok([serialize_user(user) for user in users], pagination=pagination)
