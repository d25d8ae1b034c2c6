import django.core.validators
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models

import rentals.models


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Car",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=100, verbose_name="Name")),
                ("brand", models.CharField(max_length=50, verbose_name="Brand")),
                ("model", models.CharField(max_length=50, verbose_name="Model")),
                (
                    "year",
                    models.PositiveIntegerField(
                        validators=[
                            django.core.validators.MinValueValidator(1900),
                            rentals.models.validate_model_year,
                        ],
                        verbose_name="Year",
                    ),
                ),
                (
                    "category",
                    models.CharField(
                        choices=[
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
                        ],
                        max_length=12,
                        verbose_name="Category",
                    ),
                ),
                (
                    "price_per_day",
                    models.DecimalField(
                        decimal_places=2,
                        max_digits=10,
                        validators=[django.core.validators.MinValueValidator(0)],
                        verbose_name="Price per day",
                    ),
                ),
                (
                    "seats",
                    models.PositiveSmallIntegerField(
                        validators=[
                            django.core.validators.MinValueValidator(1),
                            django.core.validators.MaxValueValidator(15),
                        ],
                        verbose_name="Seats",
                    ),
                ),
                (
                    "transmission",
                    models.CharField(
                        choices=[("manual", "Manual"), ("automatic", "Automatic"), ("cvt", "CVT")],
                        max_length=10,
                        verbose_name="Transmission",
                    ),
                ),
                (
                    "fuel_type",
                    models.CharField(
                        choices=[
                            ("gasoline", "Gasoline"),
                            ("diesel", "Diesel"),
                            ("electric", "Electric"),
                            ("hybrid", "Hybrid"),
                        ],
                        max_length=10,
                        verbose_name="Fuel type",
                    ),
                ),
                ("mileage", models.PositiveIntegerField(default=0, verbose_name="Mileage")),
                ("features", models.JSONField(blank=True, default=list, verbose_name="Features")),
                ("images", models.JSONField(blank=True, default=list, help_text="Image URLs", verbose_name="Images")),
                ("description", models.CharField(blank=True, max_length=500, verbose_name="Description")),
                ("location", models.CharField(max_length=120, verbose_name="Location")),
                ("is_available", models.BooleanField(default=True, verbose_name="Available")),
                (
                    "rating_average",
                    models.DecimalField(
                        decimal_places=2,
                        default=0,
                        max_digits=3,
                        validators=[
                            django.core.validators.MinValueValidator(0),
                            django.core.validators.MaxValueValidator(5),
                        ],
                        verbose_name="Average rating",
                    ),
                ),
                ("rating_count", models.PositiveIntegerField(default=0, verbose_name="Ratings")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="Created")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="Updated")),
            ],
            options={
                "verbose_name": "Car",
                "verbose_name_plural": "Cars",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["category", "price_per_day"], name="rentals_car_categor_5c1f0e_idx"),
                    models.Index(fields=["location", "is_available"], name="rentals_car_locatio_8d2b41_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("price_per_day__gte", 0)),
                        name="car_price_non_negative",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="Customer",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=100, verbose_name="Name")),
                ("email", models.EmailField(max_length=254, verbose_name="Email")),
                ("phone", models.CharField(max_length=30, verbose_name="Phone")),
                ("is_guest", models.BooleanField(default=True, verbose_name="Guest")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="Created")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="Updated")),
            ],
            options={
                "verbose_name": "Customer",
                "verbose_name_plural": "Customers",
                "ordering": ["name"],
                "constraints": [
                    models.UniqueConstraint(
                        condition=models.Q(("is_guest", True)),
                        fields=("email",),
                        name="unique_guest_email",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="Reservation",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("start_date", models.DateTimeField(verbose_name="Start date")),
                ("end_date", models.DateTimeField(verbose_name="End date")),
                (
                    "daily_rate",
                    models.DecimalField(
                        decimal_places=2,
                        editable=False,
                        help_text="Car price per day when the booking was made",
                        max_digits=10,
                        verbose_name="Daily rate",
                    ),
                ),
                ("total_days", models.PositiveIntegerField(editable=False, verbose_name="Days")),
                (
                    "total_amount",
                    models.DecimalField(decimal_places=2, editable=False, max_digits=12, verbose_name="Total amount"),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("pending", "Pending"),
                            ("confirmed", "Confirmed"),
                            ("active", "Active"),
                            ("completed", "Completed"),
                            ("cancelled", "Cancelled"),
                        ],
                        default="pending",
                        max_length=10,
                        verbose_name="Status",
                    ),
                ),
                (
                    "payment_status",
                    models.CharField(
                        choices=[
                            ("pending", "Pending"),
                            ("paid", "Paid"),
                            ("failed", "Failed"),
                            ("refunded", "Refunded"),
                        ],
                        default="pending",
                        max_length=10,
                        verbose_name="Payment status",
                    ),
                ),
                (
                    "payment_method",
                    models.CharField(
                        blank=True,
                        choices=[("card", "Card"), ("cash", "Cash"), ("bank_transfer", "Bank transfer")],
                        max_length=15,
                        verbose_name="Payment method",
                    ),
                ),
                ("pickup_location", models.CharField(max_length=255, verbose_name="Pickup location")),
                ("return_location", models.CharField(max_length=255, verbose_name="Return location")),
                ("special_requests", models.TextField(blank=True, verbose_name="Special requests")),
                ("is_guest_booking", models.BooleanField(default=False, verbose_name="Guest booking")),
                ("guest_name", models.CharField(blank=True, max_length=100, verbose_name="Guest name")),
                ("guest_email", models.EmailField(blank=True, max_length=254, verbose_name="Guest email")),
                ("guest_phone", models.CharField(blank=True, max_length=30, verbose_name="Guest phone")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="Created")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="Updated")),
                (
                    "car",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="reservations",
                        to="rentals.car",
                        verbose_name="Car",
                    ),
                ),
                (
                    "customer",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="reservations",
                        to="rentals.customer",
                        verbose_name="Guest",
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="reservations",
                        to=settings.AUTH_USER_MODEL,
                        verbose_name="User",
                    ),
                ),
            ],
            options={
                "verbose_name": "Reservation",
                "verbose_name_plural": "Reservations",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["user", "-created_at"], name="rentals_res_user_id_3a7c2e_idx"),
                    models.Index(fields=["car", "start_date", "end_date"], name="rentals_res_car_id_9f4d10_idx"),
                    models.Index(fields=["status", "-created_at"], name="rentals_res_status_b62e8a_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("end_date__gt", models.F("start_date"))),
                        name="reservation_end_after_start",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("total_amount__gte", 0)),
                        name="reservation_amount_non_negative",
                    ),
                ],
            },
        ),
    ]
