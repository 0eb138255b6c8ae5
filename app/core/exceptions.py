# app/core/exceptions.py
"""
Booking error taxonomy.

Services raise these; the API layer turns them into HTTP responses. Every
error carries a stable machine-readable ``code`` and the HTTP status the
API should answer with.
"""
from typing import Optional, Dict, Any


class BookingError(Exception):
    """Base class for all booking business-rule and store errors"""

    code = "BOOKING_ERROR"
    status_code = 400

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.field = field

    def to_dict(self) -> Dict[str, Any]:
        data = {"error": self.message, "code": self.code}
        if self.field:
            data["field"] = self.field
        return data


class BookingValidationError(BookingError, ValueError):
    """
    Malformed or missing input. Raised before the store is touched.

    Also a ValueError so pydantic validators can reuse the same checks.
    """

    code = "VALIDATION_ERROR"
    status_code = 400


class ConflictError(BookingError):
    """The requested slot overlaps a non-cancelled appointment at commit time"""

    code = "BOOKING_CONFLICT"
    status_code = 409

    def __init__(self, message: str = "This time is no longer available. Please pick another time."):
        super().__init__(message)


class NotFoundError(BookingError):
    """
    Appointment id and access token do not jointly match a record.

    Unknown ids and wrong tokens raise the same error with the same message.
    """

    code = "NOT_FOUND"
    status_code = 404

    def __init__(self, message: str = "Booking not found or invalid token"):
        super().__init__(message)


class InvalidStateError(BookingError):
    """Requested transition is not allowed from the appointment's current status"""

    code = "INVALID_STATE"
    status_code = 409


class StoreUnavailableError(BookingError):
    """Persistence layer failed. The only error a caller may retry (with backoff)."""

    code = "STORE_UNAVAILABLE"
    status_code = 503

    def __init__(self, message: str = "Booking store is temporarily unavailable. Please try again."):
        super().__init__(message)
