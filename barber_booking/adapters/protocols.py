"""
Contracts for the scheduler's external collaborators.

Only the protocols live here so the store, the service catalog and the
calendar provider can be swapped without touching the scheduling core.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any, Optional, Protocol, runtime_checkable

if TYPE_CHECKING:
    from barber_booking.schemas.booking_schema import Booking, Service


@runtime_checkable
class BookingStore(Protocol):
    """Authoritative owner of booking records."""

    async def find_by_date_range(self, start: datetime, end: datetime) -> list[Booking]:
        """Bookings whose start time falls in ``[start, end)``."""
        ...

    async def find_by_id(self, booking_id: str) -> Optional[Booking]:
        ...

    async def create(self, booking: Booking) -> Booking:
        """Persist a new booking. Raises PersistenceError on failure."""
        ...

    async def update(self, booking_id: str, patch: dict[str, Any]) -> Booking:
        """Apply ``patch`` to a stored booking. Raises PersistenceError on failure."""
        ...

    async def delete(self, booking_id: str) -> None:
        ...


@runtime_checkable
class ServiceCatalog(Protocol):
    """Read-only lookup of service durations and buffers."""

    async def find_by_id(self, service_id: str) -> Optional[Service]:
        ...


@runtime_checkable
class CalendarSyncAdapter(Protocol):
    """External calendar mirror. Any call may raise; callers must not rely on it."""

    async def create_event(self, booking: Booking, service: Service) -> str:
        """Create an event and return its opaque reference."""
        ...

    async def update_event(self, event_ref: str, booking: Booking, service: Service) -> None:
        ...

    async def delete_event(self, event_ref: str) -> None:
        ...
