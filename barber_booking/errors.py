"""
Error taxonomy for booking operations.

Validation errors abort a request before anything is written and carry
enough structured detail for the caller to render a precise message.
``PersistenceError`` is an internal failure and is surfaced generically.
``CalendarSyncFailure`` never leaves the scheduler; it is only logged.
"""

from datetime import datetime
from typing import Any, Optional


def _jsonable(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    return value


class BookingError(Exception):
    """Base class for every failure a booking operation can return."""

    code: str = "booking_error"
    status_code: int = 400

    def __init__(self, message: str, **details: Any) -> None:
        super().__init__(message)
        self.message = message
        self.details = {key: _jsonable(value) for key, value in details.items()}

    @property
    def public_message(self) -> str:
        return self.message

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "message": self.public_message, "details": dict(self.details)}


class ServiceNotFound(BookingError):
    code = "service_not_found"
    status_code = 404


class InvalidTimestamp(BookingError):
    code = "invalid_timestamp"
    status_code = 422


class InvalidDuration(BookingError):
    code = "invalid_duration"
    status_code = 422


class OutsideBusinessHours(BookingError):
    code = "outside_business_hours"
    status_code = 422


class BookingConflict(BookingError):
    """The requested slot overlaps an existing booking's occupied window."""

    code = "booking_conflict"
    status_code = 409

    def __init__(
        self,
        message: str,
        conflicting_booking_id: str,
        conflicting_start: datetime,
        conflicting_end: datetime,
        **details: Any,
    ) -> None:
        super().__init__(
            message,
            conflicting_booking_id=conflicting_booking_id,
            conflicting_start=conflicting_start,
            conflicting_end=conflicting_end,
            **details,
        )
        self.conflicting_booking_id = conflicting_booking_id
        self.conflicting_start = conflicting_start
        self.conflicting_end = conflicting_end


class BookingNotFound(BookingError):
    code = "booking_not_found"
    status_code = 404


class PersistenceError(BookingError):
    """The store failed to commit. Nothing from the operation is visible."""

    code = "internal_error"
    status_code = 500

    @property
    def public_message(self) -> str:
        return "The booking could not be saved. Please try again later."

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "message": self.public_message, "details": {}}


class CalendarSyncFailure(Exception):
    """A calendar mirror call gave up. Logged, never returned to the caller."""

    def __init__(self, booking_id: str, operation: str, reason: Optional[str] = None) -> None:
        self.booking_id = booking_id
        self.operation = operation
        self.reason = reason
        super().__init__(
            f"Calendar {operation} failed for booking {booking_id}"
            + (f": {reason}" if reason else "")
        )
