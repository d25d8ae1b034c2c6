"""
Error types for the reservation core.

The lifecycle functions raise these internally; the public service
functions catch them and hand them back inside a ``Result`` so the views
can map each ``code`` to an HTTP response.
"""

from __future__ import annotations


class ReservationError(Exception):
    """Base class for every reservation failure."""

    code = "reservation_error"
    default_message = "Reservation request failed."
    retryable = False

    def __init__(self, message: str | None = None, **details) -> None:
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message


class InvalidDateRange(ReservationError):
    """Start is not before end, or start is not in the future."""

    code = "invalid_date_range"
    default_message = "End date must be after start date."


class NotFound(ReservationError):
    code = "not_found"
    default_message = "Resource not found."


class Unavailable(ReservationError):
    """The car is switched off in the catalog."""

    code = "unavailable"
    default_message = "Car is not available."


class Conflict(ReservationError):
    """A blocking reservation overlaps the requested range."""

    code = "conflict"
    default_message = "Car is not available for the selected dates."

    def __init__(self, message: str | None = None, conflicts=None, **details) -> None:
        super().__init__(message, **details)
        self.conflicts = list(conflicts or [])


class InvalidStatus(ReservationError):
    code = "invalid_status"
    default_message = "Invalid status."


class InfrastructureError(ReservationError):
    """A store call failed or timed out. Safe to retry."""

    code = "infrastructure_error"
    default_message = "Storage is temporarily unavailable, please retry."
    retryable = True
