from datetime import datetime, timezone as dt_timezone
from decimal import Decimal

from rentals.models import Car

NOW = datetime(2026, 1, 1, 12, 0, tzinfo=dt_timezone.utc)


def at(year, month, day, hour=0, minute=0):
    return datetime(year, month, day, hour, minute, tzinfo=dt_timezone.utc)


def make_car(**overrides) -> Car:
    fields = {
        "name": "Yaris Hatchback",
        "brand": "Toyota",
        "model": "Yaris",
        "year": 2023,
        "category": "economy",
        "price_per_day": Decimal("50.00"),
        "seats": 5,
        "transmission": "automatic",
        "fuel_type": "gasoline",
        "location": "Airport",
    }
    fields.update(overrides)
    return Car.objects.create(**fields)
