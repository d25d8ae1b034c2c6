from __future__ import annotations

from django.urls import path

from . import views

app_name = "rentals"

urlpatterns = [
    path("cars/", views.CarListView.as_view(), name="car_list"),
    path("cars/<int:pk>/", views.CarDetailView.as_view(), name="car_detail"),
    path("cars/<int:pk>/availability/", views.CarAvailabilityView.as_view(), name="car_availability"),

    path("bookings/", views.BookingCollectionView.as_view(), name="booking_list"),
    path("bookings/guest/", views.GuestBookingView.as_view(), name="guest_booking"),
    path("bookings/<int:pk>/", views.BookingDetailView.as_view(), name="booking_detail"),
    path("bookings/<int:pk>/cancel/", views.BookingCancelView.as_view(), name="booking_cancel"),

    path("admin/dashboard/", views.DashboardView.as_view(), name="admin_dashboard"),
    path("admin/bookings/", views.AdminBookingListView.as_view(), name="admin_booking_list"),
    path("admin/bookings/<int:pk>/status/", views.AdminBookingStatusView.as_view(), name="admin_booking_status"),
    path("admin/users/", views.AdminUserListView.as_view(), name="admin_user_list"),
]
