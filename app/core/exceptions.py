"""Booking error taxonomy.

Every error here is decided synchronously by the booking engine and returned to
the immediate caller. None of them is ever retried.
"""


class BookingError(Exception):
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(BookingError):
    """Bad input shape: missing field, bad date/time format, non-positive duration."""
    status_code = 400


class SchedulingConflict(BookingError):
    """The requested slot overlaps an active appointment."""
    status_code = 400

    def __init__(self, message: str, window: str | None = None):
        super().__init__(message)
        self.window = window


class NotFound(BookingError):
    status_code = 404
