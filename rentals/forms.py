"""
Forms for the rentals API.

The JSON views bind request payloads to these forms so field validation
stays declarative; the business rules live in ``rentals.services``.
"""

from __future__ import annotations

from django import forms
from django.conf import settings

from .models import Car, Reservation
from .services import GuestInfo, ReservationRequest


class ReservationForm(forms.Form):
    car = forms.IntegerField(min_value=1, error_messages={"required": "Car ID is required"})
    start_date = forms.DateTimeField(error_messages={"invalid": "Start date must be a valid date"})
    end_date = forms.DateTimeField(error_messages={"invalid": "End date must be a valid date"})
    pickup_location = forms.CharField(max_length=255, error_messages={"required": "Pickup location is required"})
    return_location = forms.CharField(max_length=255, error_messages={"required": "Return location is required"})
    special_requests = forms.CharField(required=False, widget=forms.Textarea)

    def to_request(self, user) -> ReservationRequest:
        data = self.cleaned_data
        return ReservationRequest(
            car_id=data["car"],
            start_date=data["start_date"],
            end_date=data["end_date"],
            pickup_location=data["pickup_location"],
            return_location=data["return_location"],
            special_requests=data.get("special_requests") or "",
            user=user,
        )


class GuestReservationForm(ReservationForm):
    """Booking form for visitors without an account."""

    name = forms.CharField(max_length=100, error_messages={"required": "Guest name is required"})
    email = forms.EmailField(error_messages={"invalid": "Valid email is required", "required": "Valid email is required"})
    phone = forms.CharField(max_length=30, error_messages={"required": "Phone number is required"})

    def __init__(self, data=None, *args, **kwargs) -> None:
        # Accept the nested {"guest_info": {...}} payload as well as flat fields.
        if data is not None and isinstance(data.get("guest_info"), dict):
            data = {**data, **data["guest_info"]}
        super().__init__(data, *args, **kwargs)

    def to_request(self, user=None) -> ReservationRequest:
        data = self.cleaned_data
        return ReservationRequest(
            car_id=data["car"],
            start_date=data["start_date"],
            end_date=data["end_date"],
            pickup_location=data["pickup_location"],
            return_location=data["return_location"],
            special_requests=data.get("special_requests") or "",
            guest=GuestInfo(name=data["name"], email=data["email"], phone=data["phone"]),
        )


class StatusForm(forms.Form):
    status = forms.ChoiceField(
        choices=Reservation.STATUS_CHOICES,
        error_messages={"invalid_choice": "Invalid status", "required": "Invalid status"},
    )


class AvailabilityQueryForm(forms.Form):
    start_date = forms.DateTimeField(error_messages={"invalid": "Start date must be a valid date"})
    end_date = forms.DateTimeField(error_messages={"invalid": "End date must be a valid date"})


def limit_field() -> forms.IntegerField:
    upper = settings.RENTALS_MAX_PAGE_SIZE
    message = f"Limit must be between 1 and {upper}"
    return forms.IntegerField(
        min_value=1,
        max_value=upper,
        required=False,
        error_messages={"min_value": message, "max_value": message},
    )


class CarForm(forms.ModelForm):
    """Staff form for adding a car to the catalog."""

    class Meta:
        model = Car
        fields = [
            "name",
            "brand",
            "model",
            "year",
            "category",
            "price_per_day",
            "seats",
            "transmission",
            "fuel_type",
            "mileage",
            "features",
            "images",
            "description",
            "location",
        ]
        error_messages = {
            "name": {"required": "Car name is required"},
            "brand": {"required": "Brand is required"},
            "model": {"required": "Model is required"},
            "year": {
                "required": "Invalid year",
                "invalid": "Invalid year",
                "min_value": "Invalid year",
            },
            "category": {"required": "Invalid category", "invalid_choice": "Invalid category"},
            "price_per_day": {
                "required": "Price per day must be positive",
                "invalid": "Price per day must be positive",
                "min_value": "Price per day must be positive",
            },
            "seats": {
                "required": "Seats must be between 1 and 15",
                "invalid": "Seats must be between 1 and 15",
                "min_value": "Seats must be between 1 and 15",
                "max_value": "Seats must be between 1 and 15",
            },
            "transmission": {"required": "Invalid transmission type", "invalid_choice": "Invalid transmission type"},
            "fuel_type": {"required": "Invalid fuel type", "invalid_choice": "Invalid fuel type"},
            "location": {"required": "Location is required"},
        }

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.fields["mileage"].required = False

    def clean_mileage(self):
        return self.cleaned_data.get("mileage") or 0

    def _clean_string_list(self, field: str, message: str) -> list:
        value = self.cleaned_data.get(field) or []
        if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
            raise forms.ValidationError(message)
        return value

    def clean_features(self):
        return self._clean_string_list("features", "Features must be a list of strings")

    def clean_images(self):
        return self._clean_string_list("images", "Images must be a list of URLs")


class CarFilterForm(forms.Form):
    SORT_CHOICES = [
        ("newest", "Newest"),
        ("price_low", "Price: low to high"),
        ("price_high", "Price: high to low"),
        ("rating", "Rating"),
    ]

    page = forms.IntegerField(min_value=1, required=False, error_messages={"min_value": "Page must be a positive integer"})
    limit = limit_field()
    category = forms.ChoiceField(choices=Car.CATEGORY_CHOICES, required=False)
    transmission = forms.ChoiceField(choices=Car.TRANSMISSION_CHOICES, required=False)
    fuel_type = forms.ChoiceField(choices=Car.FUEL_CHOICES, required=False)
    location = forms.CharField(required=False)
    min_price = forms.DecimalField(min_value=0, required=False, error_messages={"min_value": "Min price must be positive"})
    max_price = forms.DecimalField(min_value=0, required=False, error_messages={"min_value": "Max price must be positive"})
    seats = forms.IntegerField(min_value=1, required=False)
    search = forms.CharField(required=False)
    sort_by = forms.ChoiceField(choices=SORT_CHOICES, required=False)


class PageForm(forms.Form):
    page = forms.IntegerField(min_value=1, required=False)
    limit = limit_field()


class ListFilterForm(PageForm):
    status = forms.ChoiceField(choices=Reservation.STATUS_CHOICES, required=False)
