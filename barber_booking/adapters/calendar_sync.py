"""
Mock calendar provider.

In production, this would call Google Calendar, Outlook or a similar API
behind the CalendarSyncAdapter protocol. This in-memory version records the
events it would have created so the demo and tests can inspect them.
"""

import logging
import uuid
from typing import TypedDict

from barber_booking.schemas.booking_schema import Booking, Service

logger = logging.getLogger(__name__)


class CalendarEvent(TypedDict):
    """Event as the mock provider stores it."""

    event_ref: str
    booking_id: str
    summary: str
    start: str
    end: str


class InMemoryCalendarSync:
    """CalendarSyncAdapter that keeps events in a dict."""

    def __init__(self) -> None:
        self.events: dict[str, CalendarEvent] = {}

    @staticmethod
    def _event_body(event_ref: str, booking: Booking, service: Service) -> CalendarEvent:
        return {
            "event_ref": event_ref,
            "booking_id": booking.id,
            "summary": f"{booking.customer_name} - {service.name}",
            "start": booking.start_time.isoformat(),
            "end": booking.end_time.isoformat(),
        }

    async def create_event(self, booking: Booking, service: Service) -> str:
        ref = f"EVT-{uuid.uuid4().hex[:10]}"
        self.events[ref] = self._event_body(ref, booking, service)
        logger.info("Calendar event created: %s for booking %s", ref, booking.id)
        return ref

    async def update_event(self, event_ref: str, booking: Booking, service: Service) -> None:
        if event_ref not in self.events:
            raise KeyError(f"Calendar event {event_ref} not found")
        self.events[event_ref] = self._event_body(event_ref, booking, service)
        logger.info("Calendar event updated: %s", event_ref)

    async def delete_event(self, event_ref: str) -> None:
        if self.events.pop(event_ref, None) is None:
            raise KeyError(f"Calendar event {event_ref} not found")
        logger.info("Calendar event deleted: %s", event_ref)

    def reset(self) -> None:
        """Drop all events. Used by test fixtures for isolation."""
        self.events.clear()
