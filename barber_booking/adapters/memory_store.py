"""
In-memory booking store.

In production, this would be a transactional database table (PostgreSQL,
SQLite) behind the same BookingStore protocol.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import ValidationError

from barber_booking.errors import PersistenceError
from barber_booking.schemas.booking_schema import Booking

logger = logging.getLogger(__name__)

IMMUTABLE_FIELDS = frozenset({"id", "created_at"})


class InMemoryBookingStore:
    """Dict-backed BookingStore. Returns copies so callers can't mutate stored state."""

    def __init__(self) -> None:
        self._bookings: dict[str, Booking] = {}

    async def find_by_date_range(self, start: datetime, end: datetime) -> list[Booking]:
        found = [
            b.model_copy(deep=True)
            for b in self._bookings.values()
            if start <= b.start_time < end
        ]
        found.sort(key=lambda b: (b.start_time, b.id))
        return found

    async def find_by_id(self, booking_id: str) -> Optional[Booking]:
        booking = self._bookings.get(booking_id)
        return booking.model_copy(deep=True) if booking else None

    async def create(self, booking: Booking) -> Booking:
        if booking.id in self._bookings:
            raise PersistenceError(f"Booking {booking.id} already exists.", booking_id=booking.id)
        self._bookings[booking.id] = booking.model_copy(deep=True)
        logger.info("Booking stored: %s at %s", booking.id, booking.start_time.isoformat())
        return booking.model_copy(deep=True)

    async def update(self, booking_id: str, patch: dict[str, Any]) -> Booking:
        current = self._bookings.get(booking_id)
        if current is None:
            raise PersistenceError(f"Booking {booking_id} does not exist.", booking_id=booking_id)
        illegal = IMMUTABLE_FIELDS.intersection(patch)
        if illegal:
            raise PersistenceError(
                f"Cannot change {sorted(illegal)} of booking {booking_id}.", booking_id=booking_id
            )
        data = current.model_dump()
        data.update(patch)
        data["updated_at"] = patch.get("updated_at", datetime.now(timezone.utc))
        try:
            updated = Booking.model_validate(data)
        except ValidationError as exc:
            raise PersistenceError(
                f"Invalid update for booking {booking_id}: {exc}", booking_id=booking_id
            ) from exc
        self._bookings[booking_id] = updated
        logger.info("Booking updated: %s (%s)", booking_id, ", ".join(sorted(patch)))
        return updated.model_copy(deep=True)

    async def delete(self, booking_id: str) -> None:
        if self._bookings.pop(booking_id, None) is None:
            raise PersistenceError(f"Booking {booking_id} does not exist.", booking_id=booking_id)
        logger.info("Booking deleted: %s", booking_id)

    def __len__(self) -> int:
        return len(self._bookings)

    def reset(self) -> None:
        """Clear all bookings. Used by test fixtures for isolation."""
        self._bookings.clear()
