"""Open-slot search for a service on a given day."""

import logging
from datetime import date, datetime, timedelta
from typing import Iterable, Optional

from barber_booking.schemas.booking_schema import AvailableSlot, Booking, Service
from barber_booking.scheduling.business_hours import (
    BusinessHoursPolicy,
    is_within_business_hours,
    opening_window,
)
from barber_booking.scheduling.conflicts import find_conflict
from barber_booking.scheduling.intervals import compute_end_time

logger = logging.getLogger(__name__)


def find_available_slots(
    day: date,
    service: Service,
    bookings: Iterable[Booking],
    policy: BusinessHoursPolicy,
    step_minutes: int = 15,
    not_before: Optional[datetime] = None,
) -> list[AvailableSlot]:
    """
    Start times on ``day`` that would pass both the hours and conflict checks.

    Candidates are generated from opening time in ``step_minutes`` steps.
    ``not_before`` drops candidates earlier than the given instant (e.g. now).
    """
    if step_minutes < 1:
        raise ValueError(f"step_minutes must be >= 1, got {step_minutes}")
    window = opening_window(day, policy)
    if window is None:
        return []

    existing = list(bookings)
    open_at, close_at = window
    step = timedelta(minutes=step_minutes)
    slots: list[AvailableSlot] = []

    candidate = open_at
    while candidate < close_at:
        end = compute_end_time(candidate, service.duration_minutes)
        if end > close_at:
            break
        if (
            (not_before is None or candidate >= not_before)
            and is_within_business_hours(candidate, end, policy)
            and find_conflict(candidate, end, service.buffer_minutes, existing) is None
        ):
            slots.append(AvailableSlot(start_time=candidate, end_time=end))
        candidate += step

    logger.debug("%d open slot(s) for %s on %s", len(slots), service.id, day.isoformat())
    return slots
