"""Shared test fixtures and helpers."""

import asyncio
from datetime import date, datetime, timedelta, timezone
from typing import Optional

import pytest

from barber_booking.adapters.calendar_sync import InMemoryCalendarSync
from barber_booking.adapters.memory_store import InMemoryBookingStore
from barber_booking.adapters.service_catalog import InMemoryServiceCatalog
from barber_booking.schemas.booking_schema import Booking, CreateBookingRequest, Service
from barber_booking.scheduling.business_hours import BusinessHoursPolicy
from barber_booking.scheduling.calendar_sync import CalendarSyncRunner
from barber_booking.scheduling.scheduler import BookingScheduler

UTC = timezone.utc
DAY = date(2025, 3, 18)  # a Tuesday

HAIRCUT = Service(id="S1", name="Classic Haircut", duration_minutes=30, buffer_minutes=10)
BEARD = Service(id="S2", name="Beard Trim", duration_minutes=20, buffer_minutes=5)
LINE_UP = Service(id="S0", name="Line-up", duration_minutes=15, buffer_minutes=0)


def at(hour: int, minute: int = 0, day: date = DAY) -> datetime:
    """Aware UTC datetime on the test day."""
    return datetime(day.year, day.month, day.day, hour, minute, tzinfo=UTC)


def iso(hour: int, minute: int = 0, day: date = DAY) -> str:
    return at(hour, minute, day).isoformat()


def make_booking(
    booking_id: str,
    start: datetime,
    duration_minutes: int = 30,
    buffer_minutes: int = 0,
    service_id: str = "S1",
    external_event_ref: Optional[str] = None,
) -> Booking:
    """Helper to create a stored Booking without going through the scheduler."""
    return Booking(
        id=booking_id,
        customer_name="Test Customer",
        customer_phone="0400000000",
        service_id=service_id,
        start_time=start,
        end_time=start + timedelta(minutes=duration_minutes),
        buffer_minutes=buffer_minutes,
        external_event_ref=external_event_ref,
        created_at=datetime(2025, 3, 1, tzinfo=UTC),
        updated_at=datetime(2025, 3, 1, tzinfo=UTC),
    )


def make_request(
    hour: int,
    minute: int = 0,
    service_id: str = "S1",
    name: str = "Sam Carter",
    phone: str = "0412 345 678",
    day: date = DAY,
) -> CreateBookingRequest:
    """Helper to create a CreateBookingRequest on the test day."""
    return CreateBookingRequest(
        customer_name=name,
        customer_phone=phone,
        service_id=service_id,
        start_time=iso(hour, minute, day),
    )


class FailingCalendar(InMemoryCalendarSync):
    """Calendar provider that is down for every call."""

    def __init__(self) -> None:
        super().__init__()
        self.calls: list[str] = []

    async def create_event(self, booking, service):
        self.calls.append("create")
        raise ConnectionError("provider unreachable")

    async def update_event(self, event_ref, booking, service):
        self.calls.append("update")
        raise ConnectionError("provider unreachable")

    async def delete_event(self, event_ref):
        self.calls.append("delete")
        raise ConnectionError("provider unreachable")


class HangingCalendar(InMemoryCalendarSync):
    """Calendar provider that never answers."""

    async def create_event(self, booking, service):
        await asyncio.sleep(60)
        return "EVT-never"


@pytest.fixture
def policy():
    return BusinessHoursPolicy(open_minutes=9 * 60, close_minutes=18 * 60, timezone=UTC)


@pytest.fixture
def catalog():
    return InMemoryServiceCatalog([HAIRCUT, BEARD, LINE_UP])


@pytest.fixture
def store():
    return InMemoryBookingStore()


@pytest.fixture
def calendar():
    return InMemoryCalendarSync()


@pytest.fixture
def make_scheduler(store, catalog, policy, calendar):
    """Factory building a scheduler with fast, sleep-free calendar retries."""

    def _make(calendar_adapter=calendar, max_attempts: int = 2, timeout_sec: float = 0.2, **kwargs):
        runner = CalendarSyncRunner(
            calendar_adapter, max_attempts=max_attempts, timeout_sec=timeout_sec, backoff_sec=0
        )
        return BookingScheduler(
            store=kwargs.pop("store", store),
            catalog=kwargs.pop("catalog", catalog),
            policy=kwargs.pop("policy", policy),
            calendar=runner,
            **kwargs,
        )

    return _make


@pytest.fixture
def scheduler(make_scheduler):
    return make_scheduler()
