"""Booking, service and request/response data models."""

from datetime import datetime, timedelta, timezone
from typing import Annotated, Any, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, model_validator

from barber_booking.utils import is_valid_phone, normalize_phone


def _clean_name(value: Any) -> Any:
    if isinstance(value, str):
        return value.strip()
    return value


def _clean_phone(value: Any) -> Any:
    if not isinstance(value, str):
        return value
    cleaned = normalize_phone(value)
    if not is_valid_phone(cleaned):
        raise ValueError("phone number must be 7 to 15 digits with an optional leading +")
    return cleaned


CustomerName = Annotated[str, BeforeValidator(_clean_name), Field(min_length=1)]
PhoneNumber = Annotated[str, BeforeValidator(_clean_phone)]


class Service(BaseModel):
    """A named offering with a fixed duration and a post-service buffer."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    duration_minutes: int = Field(ge=1)
    buffer_minutes: int = Field(default=0, ge=0)


class Booking(BaseModel):
    """Booking record as owned by the store.

    ``end_time`` and ``buffer_minutes`` are snapshots of the service taken
    when the booking was created, or when its service or start time last
    changed.
    """

    id: str
    customer_name: str
    customer_phone: str
    service_id: str
    start_time: datetime
    end_time: datetime
    buffer_minutes: int = Field(default=0, ge=0)
    external_event_ref: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    @model_validator(mode="after")
    def _check_times(self) -> "Booking":
        if self.start_time.tzinfo is None or self.end_time.tzinfo is None:
            raise ValueError("start_time and end_time must be timezone-aware")
        if self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        return self

    @property
    def occupied_until(self) -> datetime:
        """End of the booking's occupied window (end time plus buffer)."""
        end = self.end_time.astimezone(timezone.utc) + timedelta(minutes=self.buffer_minutes)
        return end.astimezone(self.end_time.tzinfo)


class CreateBookingRequest(BaseModel):
    """Validated booking creation request."""

    customer_name: CustomerName
    customer_phone: PhoneNumber
    service_id: str = Field(min_length=1)
    start_time: str


class UpdateBookingRequest(BaseModel):
    """Partial booking update. Omitted fields keep their stored values."""

    customer_name: Optional[CustomerName] = None
    customer_phone: Optional[PhoneNumber] = None
    service_id: Optional[str] = Field(default=None, min_length=1)
    start_time: Optional[str] = None


class BookingView(BaseModel):
    """Booking as returned to callers, joined with its service snapshot."""

    id: str
    customer_name: str
    customer_phone: str
    service_id: str
    start_time: datetime
    end_time: datetime
    external_event_ref: Optional[str] = None
    service: Optional[Service] = None

    @classmethod
    def from_booking(cls, booking: Booking, service: Optional[Service]) -> "BookingView":
        return cls(
            id=booking.id,
            customer_name=booking.customer_name,
            customer_phone=booking.customer_phone,
            service_id=booking.service_id,
            start_time=booking.start_time,
            end_time=booking.end_time,
            external_event_ref=booking.external_event_ref,
            service=service,
        )


class AvailableSlot(BaseModel):
    """A start time that would currently be accepted for a service."""
    start_time: datetime
    end_time: datetime


class ErrorResponse(BaseModel):
    """Protocol-agnostic error outcome."""
    status_code: int
    code: str
    message: str
    details: dict[str, Any] = Field(default_factory=dict)
