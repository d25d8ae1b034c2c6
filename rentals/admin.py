"""
Django admin customizations for the rentals app.

Reservations are read-only here apart from status changes, which go
through the same lifecycle function as the staff API.
"""

from __future__ import annotations

from django.contrib import admin, messages

from . import services
from .models import Car, Customer, Reservation


class ReservationInline(admin.TabularInline):
    model = Reservation
    extra = 0
    fields = ("start_date", "end_date", "status", "daily_rate", "total_days", "total_amount")
    readonly_fields = fields
    can_delete = False
    show_change_link = True

    def has_add_permission(self, request, obj=None) -> bool:
        return False


@admin.register(Car)
class CarAdmin(admin.ModelAdmin):
    list_display = ("name", "brand", "model", "year", "category", "price_per_day", "is_available", "updated_at")
    search_fields = ("name", "brand", "model", "location")
    list_filter = ("is_available", "category", "transmission", "fuel_type")
    list_editable = ("is_available",)
    inlines = (ReservationInline,)


@admin.register(Customer)
class CustomerAdmin(admin.ModelAdmin):
    list_display = ("name", "email", "phone", "is_guest", "updated_at")
    search_fields = ("name", "email", "phone")
    inlines = (ReservationInline,)


def _status_action(status: str):
    def action(modeladmin, request, queryset):
        changed = 0
        for reservation_id in queryset.values_list("pk", flat=True):
            result = services.set_status(reservation_id, status)
            if result.ok:
                changed += 1
            else:
                modeladmin.message_user(
                    request, f"Reservation {reservation_id}: {result.error}", level=messages.ERROR
                )
        modeladmin.message_user(request, f"{changed} reservation(s) marked as {status}.")

    action.__name__ = f"mark_{status}"
    action.short_description = f"Mark selected reservations as {status}"
    return action


@admin.register(Reservation)
class ReservationAdmin(admin.ModelAdmin):
    list_display = (
        "id",
        "car",
        "renter_name",
        "start_date",
        "end_date",
        "total_days",
        "total_amount",
        "status",
        "payment_status",
        "is_guest_booking",
    )
    list_filter = ("status", "payment_status", "is_guest_booking", "start_date")
    search_fields = ("guest_name", "guest_email", "user__username", "user__email", "car__name")
    # Car and dates are fixed once booked.
    readonly_fields = (
        "car",
        "start_date",
        "end_date",
        "daily_rate",
        "total_days",
        "total_amount",
        "status",
        "created_at",
        "updated_at",
    )
    actions = [_status_action(status) for status, _ in Reservation.STATUS_CHOICES]

    def has_add_permission(self, request) -> bool:
        return False
