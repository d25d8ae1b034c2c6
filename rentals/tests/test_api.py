import json
from decimal import Decimal

from django.conf import settings
from django.contrib.auth import get_user_model
from django.test import TestCase
from django.urls import reverse

from rentals.models import Car, Customer, Reservation

from .helpers import make_car


class ApiTestCase(TestCase):
    def setUp(self):
        self.user_model = get_user_model()
        self.car = make_car(price_per_day=Decimal("50.00"))
        self.user = self.user_model.objects.create_user(
            username="agent", email="agent@example.com", password="testpass123"
        )

    def post_json(self, url, payload):
        return self.client.post(url, data=json.dumps(payload), content_type="application/json")

    def booking_payload(self, **overrides):
        payload = {
            "car": self.car.id,
            "start_date": "2099-01-10",
            "end_date": "2099-01-13",
            "pickup_location": "Airport",
            "return_location": "Downtown",
        }
        payload.update(overrides)
        return payload


class BookingApiTests(ApiTestCase):
    def test_booking_requires_login(self):
        response = self.post_json(reverse("rentals:booking_list"), self.booking_payload())
        self.assertEqual(response.status_code, 401)

    def test_member_booking_is_created(self):
        self.client.force_login(self.user)
        response = self.post_json(reverse("rentals:booking_list"), self.booking_payload())
        self.assertEqual(response.status_code, 201)
        data = response.json()["data"]
        self.assertEqual(data["total_days"], 3)
        self.assertEqual(data["total_amount"], "150.00")
        self.assertEqual(data["status"], "pending")
        self.assertEqual(data["user"], self.user.id)

    def test_missing_fields_fail_validation(self):
        self.client.force_login(self.user)
        response = self.post_json(reverse("rentals:booking_list"), {"car": self.car.id})
        self.assertEqual(response.status_code, 400)
        fields = {error["field"] for error in response.json()["errors"]}
        self.assertIn("pickup_location", fields)
        self.assertIn("start_date", fields)

    def test_past_start_is_rejected(self):
        self.client.force_login(self.user)
        response = self.post_json(
            reverse("rentals:booking_list"),
            self.booking_payload(start_date="2000-01-10", end_date="2000-01-13"),
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["code"], "invalid_date_range")

    def test_unknown_car_is_404(self):
        self.client.force_login(self.user)
        response = self.post_json(reverse("rentals:booking_list"), self.booking_payload(car=999999))
        self.assertEqual(response.status_code, 404)

    def test_own_bookings_are_listed(self):
        self.client.force_login(self.user)
        self.post_json(reverse("rentals:booking_list"), self.booking_payload())
        response = self.client.get(reverse("rentals:booking_list"), {"status": "pending"})
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(len(body["data"]), 1)
        self.assertEqual(body["pagination"]["total"], 1)

    def test_owner_cancels_booking(self):
        self.client.force_login(self.user)
        booking_id = self.post_json(reverse("rentals:booking_list"), self.booking_payload()).json()["data"]["id"]
        response = self.client.post(reverse("rentals:booking_cancel", args=[booking_id]))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(Reservation.objects.get(pk=booking_id).status, "cancelled")


class GuestBookingApiTests(ApiTestCase):
    def guest_payload(self, **overrides):
        payload = self.booking_payload(
            guest_info={"name": "Luis Gomez", "email": "luis@example.com", "phone": "555-0202"}
        )
        payload.update(overrides)
        return payload

    def test_guest_booking_is_pending_and_flagged(self):
        response = self.post_json(reverse("rentals:guest_booking"), self.guest_payload())
        self.assertEqual(response.status_code, 201)
        data = response.json()["data"]
        self.assertTrue(data["is_guest_booking"])
        self.assertEqual(data["status"], "pending")
        self.assertEqual(data["guest_info"]["email"], "luis@example.com")

    def test_second_guest_booking_for_same_dates_conflicts(self):
        self.post_json(reverse("rentals:guest_booking"), self.guest_payload())
        response = self.post_json(reverse("rentals:guest_booking"), self.guest_payload())
        self.assertEqual(response.status_code, 409)
        body = response.json()
        self.assertEqual(body["code"], "conflict")
        self.assertEqual(len(body["conflicting_dates"]), 1)
        self.assertEqual(Customer.objects.count(), 1)

    def test_guest_requires_valid_email(self):
        payload = self.guest_payload(guest_info={"name": "Luis", "email": "nope", "phone": "1"})
        response = self.post_json(reverse("rentals:guest_booking"), payload)
        self.assertEqual(response.status_code, 400)

    def test_invalid_json_is_rejected(self):
        response = self.client.post(reverse("rentals:guest_booking"), data="{", content_type="application/json")
        self.assertEqual(response.status_code, 400)


class CatalogApiTests(ApiTestCase):
    def test_list_only_shows_available_cars(self):
        make_car(name="Hidden", is_available=False)
        response = self.client.get(reverse("rentals:car_list"))
        self.assertEqual(response.status_code, 200)
        names = [car["name"] for car in response.json()["data"]]
        self.assertEqual(names, [self.car.name])

    def test_filters_and_sorting(self):
        make_car(name="Luxury Sedan", category="luxury", price_per_day=Decimal("200.00"))
        response = self.client.get(reverse("rentals:car_list"), {"min_price": "100", "sort_by": "price_high"})
        names = [car["name"] for car in response.json()["data"]]
        self.assertEqual(names, ["Luxury Sedan"])

    def test_limit_is_bounded(self):
        upper = settings.RENTALS_MAX_PAGE_SIZE
        self.assertEqual(self.client.get(reverse("rentals:car_list"), {"limit": upper}).status_code, 200)
        response = self.client.get(reverse("rentals:car_list"), {"limit": upper + 1})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["errors"][0]["message"], f"Limit must be between 1 and {upper}")

    def test_page_past_the_end_is_empty(self):
        response = self.client.get(reverse("rentals:car_list"), {"page": 99})
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["data"], [])
        self.assertEqual(body["pagination"], {"page": 99, "limit": 10, "total": 1, "pages": 1})

    def test_car_detail(self):
        response = self.client.get(reverse("rentals:car_detail", args=[self.car.id]))
        self.assertEqual(response.json()["data"]["price_per_day"], "50.00")
        self.assertEqual(self.client.get(reverse("rentals:car_detail", args=[999999])).status_code, 404)

    def test_availability_reports_conflicts(self):
        self.client.force_login(self.user)
        booking_id = self.post_json(reverse("rentals:booking_list"), self.booking_payload()).json()["data"]["id"]
        url = reverse("rentals:car_availability", args=[self.car.id])
        query = {"start_date": "2099-01-12", "end_date": "2099-01-14"}

        self.assertTrue(self.client.get(url, query).json()["available"])
        Reservation.objects.filter(pk=booking_id).update(status="confirmed")
        body = self.client.get(url, query).json()
        self.assertFalse(body["available"])
        self.assertEqual(len(body["conflicting_dates"]), 1)


class AdminApiTests(ApiTestCase):
    def setUp(self):
        super().setUp()
        self.staff = self.user_model.objects.create_user(
            username="staff", email="staff@example.com", password="testpass123", is_staff=True
        )
        self.client.force_login(self.user)
        self.booking_id = self.post_json(
            reverse("rentals:booking_list"), self.booking_payload()
        ).json()["data"]["id"]

    def test_status_update_denies_non_staff(self):
        response = self.post_json(
            reverse("rentals:admin_booking_status", args=[self.booking_id]), {"status": "confirmed"}
        )
        self.assertEqual(response.status_code, 403)

    def test_staff_updates_status(self):
        self.client.force_login(self.staff)
        response = self.post_json(
            reverse("rentals:admin_booking_status", args=[self.booking_id]), {"status": "confirmed"}
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(Reservation.objects.get(pk=self.booking_id).status, "confirmed")

    def test_status_update_validates_input(self):
        self.client.force_login(self.staff)
        url = reverse("rentals:admin_booking_status", args=[self.booking_id])
        self.assertEqual(self.post_json(url, {"status": "archived"}).status_code, 400)
        missing = reverse("rentals:admin_booking_status", args=[999999])
        self.assertEqual(self.post_json(missing, {"status": "confirmed"}).status_code, 404)

    def test_dashboard_counts(self):
        Reservation.objects.filter(pk=self.booking_id).update(status="completed", payment_status="paid")
        self.client.force_login(self.staff)
        response = self.client.get(reverse("rentals:admin_dashboard"))
        self.assertEqual(response.status_code, 200)
        stats = response.json()["data"]["stats"]
        self.assertEqual(stats["total_cars"], 1)
        self.assertEqual(stats["total_bookings"], 1)
        self.assertEqual(stats["total_users"], 1)
        self.assertEqual(Decimal(stats["total_revenue"]), Decimal("150.00"))

    def test_admin_booking_list(self):
        self.client.force_login(self.staff)
        response = self.client.get(reverse("rentals:admin_booking_list"))
        self.assertEqual(response.json()["pagination"]["total"], 1)

    def test_admin_pages_require_login(self):
        self.client.logout()
        self.assertEqual(self.client.get(reverse("rentals:admin_booking_list")).status_code, 401)

    def test_refusals_use_the_json_envelope(self):
        url = reverse("rentals:admin_dashboard")
        denied = self.client.get(url)
        self.assertEqual(denied.status_code, 403)
        self.assertEqual(denied.json(), {"success": False, "message": "Admin access required"})
        self.client.logout()
        anonymous = self.client.get(url)
        self.assertEqual(anonymous.status_code, 401)
        self.assertEqual(anonymous.json(), {"success": False, "message": "Authentication required"})

    def test_user_list_shows_customers_only(self):
        for index in range(3):
            self.user_model.objects.create_user(username=f"customer{index}", password="testpass123")
        self.client.force_login(self.staff)
        response = self.client.get(reverse("rentals:admin_user_list"))
        self.assertEqual(response.status_code, 200)
        body = response.json()
        usernames = {user["username"] for user in body["data"]}
        self.assertNotIn("staff", usernames)
        self.assertIn("agent", usernames)
        self.assertEqual(body["pagination"], {"page": 1, "limit": 20, "total": 4, "pages": 1})
        self.assertNotIn("password", body["data"][0])

    def test_user_list_pages(self):
        for index in range(3):
            self.user_model.objects.create_user(username=f"customer{index}", password="testpass123")
        self.client.force_login(self.staff)
        response = self.client.get(reverse("rentals:admin_user_list"), {"page": 2, "limit": 3})
        body = response.json()
        self.assertEqual(len(body["data"]), 1)
        self.assertEqual(body["pagination"]["pages"], 2)

    def test_user_list_denies_non_staff(self):
        self.assertEqual(self.client.get(reverse("rentals:admin_user_list")).status_code, 403)


class CarCreationApiTests(ApiTestCase):
    def setUp(self):
        super().setUp()
        self.staff = self.user_model.objects.create_user(
            username="staff", email="staff@example.com", password="testpass123", is_staff=True
        )

    def car_payload(self, **overrides):
        payload = {
            "name": "Corolla Sedan",
            "brand": "Toyota",
            "model": "Corolla",
            "year": 2024,
            "category": "compact",
            "price_per_day": "65.00",
            "seats": 5,
            "transmission": "automatic",
            "fuel_type": "hybrid",
            "features": ["GPS", "Bluetooth"],
            "images": ["https://cdn.example.com/corolla-front.jpg"],
            "location": "Downtown",
        }
        payload.update(overrides)
        return payload

    def error_messages(self, response):
        return {error["field"]: error["message"] for error in response.json()["errors"]}

    def test_staff_adds_a_car(self):
        self.client.force_login(self.staff)
        response = self.post_json(reverse("rentals:car_list"), self.car_payload())
        self.assertEqual(response.status_code, 201)
        body = response.json()
        self.assertEqual(body["message"], "Car created successfully")
        self.assertEqual(body["data"]["images"], ["https://cdn.example.com/corolla-front.jpg"])
        car = Car.objects.get(pk=body["data"]["id"])
        self.assertEqual(car.price_per_day, Decimal("65.00"))
        self.assertEqual(car.mileage, 0)
        self.assertTrue(car.is_available)

    def test_members_cannot_add_cars(self):
        self.client.force_login(self.user)
        response = self.post_json(reverse("rentals:car_list"), self.car_payload())
        self.assertEqual(response.status_code, 403)
        self.assertEqual(Car.objects.count(), 1)

    def test_anonymous_can_browse_but_not_add(self):
        self.assertEqual(self.client.get(reverse("rentals:car_list")).status_code, 200)
        self.assertEqual(self.post_json(reverse("rentals:car_list"), self.car_payload()).status_code, 401)

    def test_model_year_is_bounded(self):
        self.client.force_login(self.staff)
        response = self.post_json(reverse("rentals:car_list"), self.car_payload(year=3000))
        self.assertEqual(response.status_code, 400)
        self.assertEqual(self.error_messages(response)["year"], "Invalid year")

    def test_catalog_fields_are_validated(self):
        self.client.force_login(self.staff)
        response = self.post_json(
            reverse("rentals:car_list"),
            self.car_payload(category="spaceship", seats=20, transmission="warp", fuel_type="steam", name=""),
        )
        self.assertEqual(response.status_code, 400)
        messages = self.error_messages(response)
        self.assertEqual(messages["category"], "Invalid category")
        self.assertEqual(messages["seats"], "Seats must be between 1 and 15")
        self.assertEqual(messages["transmission"], "Invalid transmission type")
        self.assertEqual(messages["fuel_type"], "Invalid fuel type")
        self.assertEqual(messages["name"], "Car name is required")
        self.assertEqual(Car.objects.count(), 1)

    def test_negative_price_is_rejected(self):
        self.client.force_login(self.staff)
        response = self.post_json(reverse("rentals:car_list"), self.car_payload(price_per_day="-5"))
        self.assertEqual(self.error_messages(response)["price_per_day"], "Price per day must be positive")
