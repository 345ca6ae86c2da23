"""
Booking scheduler: the orchestrator behind create, update, delete and list.

Pipeline per write request:
    resolve service -> parse start -> compute end -> business hours
    -> (day lock) fetch same-day bookings -> conflict check -> persist
    -> (lock released) best-effort calendar sync

The store is authoritative and the calendar mirror is not: a booking never
depends on the calendar provider being reachable. Validation failures abort
before anything is written, and calendar calls never run while a day lock
is held.
"""

import uuid
from collections import deque
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Awaitable, Callable, Optional, TypeVar, Union

from barber_booking.adapters.protocols import BookingStore, CalendarSyncAdapter, ServiceCatalog
from barber_booking.config import AppConfig, settings
from barber_booking.errors import (
    BookingError,
    BookingNotFound,
    OutsideBusinessHours,
    PersistenceError,
    ServiceNotFound,
)
from barber_booking.logging_context import get_request_logger, new_request_id
from barber_booking.schemas.booking_schema import (
    AvailableSlot,
    Booking,
    BookingView,
    CreateBookingRequest,
    Service,
    UpdateBookingRequest,
)
from barber_booking.scheduling.availability import find_available_slots
from barber_booking.scheduling.business_hours import (
    BusinessHoursPolicy,
    is_within_business_hours,
    local_date,
    local_day_bounds,
)
from barber_booking.scheduling.calendar_sync import CalendarSyncRunner
from barber_booking.scheduling.conflicts import find_conflict
from barber_booking.scheduling.intervals import compute_end_time
from barber_booking.scheduling.locks import DayLocks
from barber_booking.scheduling.state_machine import BookingRequestStateMachine, BookingTrigger
from barber_booking.utils import parse_day, parse_timestamp

logger = get_request_logger(__name__)

T = TypeVar("T")

DayLike = Union[date, str]


def new_booking_id() -> str:
    return f"BK-{uuid.uuid4().hex[:8].upper()}"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class OperationTrace:
    """What happened to one request, kept for diagnostics."""
    request_id: str
    operation: str
    booking_id: Optional[str]
    states: list[str]
    outcome: str
    error_code: Optional[str] = None
    calendar_synced: Optional[bool] = None
    finished_at: datetime = field(default_factory=_utc_now)


class BookingScheduler:
    """Validates and applies booking changes against a store and a calendar mirror."""

    def __init__(
        self,
        store: BookingStore,
        catalog: ServiceCatalog,
        policy: BusinessHoursPolicy,
        calendar: Optional[CalendarSyncRunner] = None,
        day_locks: Optional[DayLocks] = None,
        slot_interval_minutes: int = 15,
        history_size: int = 100,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._store = store
        self._catalog = catalog
        self.policy = policy
        self._calendar = calendar or CalendarSyncRunner(None)
        self._day_locks = day_locks or DayLocks()
        self.slot_interval_minutes = slot_interval_minutes
        self._history: deque[OperationTrace] = deque(maxlen=history_size)
        self._clock = clock

    @property
    def recent_operations(self) -> list[OperationTrace]:
        """Most recent operation traces, oldest first."""
        return list(self._history)

    # ------------------------------------------------------------------ #
    # Public operations
    # ------------------------------------------------------------------ #

    async def create_booking(self, request: CreateBookingRequest) -> BookingView:
        """Validate and persist a new booking, then mirror it to the calendar.

        Raises:
            ServiceNotFound, InvalidTimestamp, InvalidDuration,
            OutsideBusinessHours, BookingConflict: request rejected, nothing written.
            PersistenceError: the store failed, nothing written.
        """
        request_id = new_request_id()
        sm = BookingRequestStateMachine(operation="create")
        logger.info("Create booking requested: service=%s start=%s",
                    request.service_id, request.start_time)
        try:
            service = await self._resolve_service(request.service_id, sm)
            start = parse_timestamp(request.start_time, self.policy.timezone)
            end = compute_end_time(start, service.duration_minutes)
            sm.transition(BookingTrigger.TIMES_COMPUTED)
            self._check_hours(start, end, sm)

            now = self._clock()
            candidate = Booking(
                id=new_booking_id(),
                customer_name=request.customer_name,
                customer_phone=request.customer_phone,
                service_id=service.id,
                start_time=start,
                end_time=end,
                buffer_minutes=service.buffer_minutes,
                created_at=now,
                updated_at=now,
            )
            sm.booking_id = candidate.id
            day = local_date(start, self.policy)
            async with self._day_locks.hold(day):
                existing = await self._bookings_on(day)
                self._check_conflicts(candidate, existing, sm)
                saved = await self._store_call("create booking", lambda: self._store.create(candidate))
                sm.transition(BookingTrigger.PERSISTED)
        except BookingError as exc:
            self._abort(sm, request_id, exc)
            raise

        logger.info("Booking %s created for %s at %s", saved.id, saved.customer_name,
                    saved.start_time.isoformat())
        saved, synced = await self._mirror_new(saved, service)
        self._finish(sm, request_id, synced)
        return BookingView.from_booking(saved, service)

    async def update_booking(self, booking_id: str, request: UpdateBookingRequest) -> BookingView:
        """Re-validate and apply changes to an existing booking.

        Omitted request fields keep their stored values. The end time and
        buffer are re-derived only when the service or the start time
        changes. The booking's own interval is excluded from the conflict
        check. Everything is derived from the record as read under the day
        lock, so concurrent partial updates do not overwrite each other.
        """
        request_id = new_request_id()
        sm = BookingRequestStateMachine(operation="update", booking_id=booking_id)
        logger.info("Update booking requested: %s (%s)", booking_id,
                    ", ".join(sorted(request.model_dump(exclude_none=True))) or "no changes")
        try:
            new_start = None
            if request.start_time is not None:
                new_start = parse_timestamp(request.start_time, self.policy.timezone)
            while True:
                current = await self._find(booking_id)
                old_day = local_date(current.start_time, self.policy)
                new_day = local_date(new_start, self.policy) if new_start is not None else old_day
                async with self._day_locks.hold(old_day, new_day):
                    locked = await self._find(booking_id)
                    if local_date(locked.start_time, self.policy) != old_day:
                        logger.info("Booking %s moved to another day meanwhile; retrying", booking_id)
                        continue
                    saved, service = await self._apply_update(locked, new_start, request, sm)
                    break
        except BookingError as exc:
            self._abort(sm, request_id, exc)
            raise

        logger.info("Booking %s updated: %s - %s", saved.id,
                    saved.start_time.isoformat(), saved.end_time.isoformat())
        if saved.external_event_ref:
            outcome = await self._calendar.update_event(saved.external_event_ref, saved, service)
            synced = outcome.succeeded
        else:
            saved, synced = await self._mirror_new(saved, service)
        self._finish(sm, request_id, synced)
        return BookingView.from_booking(saved, service)

    async def delete_booking(self, booking_id: str) -> None:
        """Delete a booking and, best-effort, its calendar event.

        Raises:
            BookingNotFound: No such booking; the store is not modified.
            PersistenceError: The store failed to delete.
        """
        request_id = new_request_id()
        sm = BookingRequestStateMachine(operation="delete", booking_id=booking_id)
        logger.info("Delete booking requested: %s", booking_id)
        try:
            while True:
                current = await self._find(booking_id)
                day = local_date(current.start_time, self.policy)
                async with self._day_locks.hold(day):
                    locked = await self._find(booking_id)
                    if local_date(locked.start_time, self.policy) != day:
                        continue
                    await self._store_call("delete booking", lambda: self._store.delete(booking_id))
                    sm.transition(BookingTrigger.PERSISTED)
                    break
        except BookingError as exc:
            self._abort(sm, request_id, exc)
            raise

        logger.info("Booking %s deleted", booking_id)
        synced = None
        if locked.external_event_ref:
            outcome = await self._calendar.delete_event(locked.external_event_ref, booking_id)
            synced = outcome.succeeded
        self._finish(sm, request_id, synced)

    async def list_bookings_for_date(self, day: DayLike) -> list[BookingView]:
        """All bookings starting on the shop-local ``day``, earliest first."""
        target = parse_day(day)
        bookings = await self._bookings_on(target)
        services: dict[str, Optional[Service]] = {}
        views = []
        for booking in bookings:
            if booking.service_id not in services:
                services[booking.service_id] = await self._catalog.find_by_id(booking.service_id)
                if services[booking.service_id] is None:
                    logger.warning("Booking %s references unknown service %s",
                                   booking.id, booking.service_id)
            views.append(BookingView.from_booking(booking, services[booking.service_id]))
        return views

    async def get_booking(self, booking_id: str) -> BookingView:
        booking = await self._find(booking_id)
        service = await self._catalog.find_by_id(booking.service_id)
        return BookingView.from_booking(booking, service)

    async def list_available_slots(
        self, day: DayLike, service_id: str, not_before: Optional[datetime] = None
    ) -> list[AvailableSlot]:
        """Start times on ``day`` a new booking for ``service_id`` would get."""
        target = parse_day(day)
        service = await self._catalog.find_by_id(service_id)
        if service is None:
            raise ServiceNotFound(f"Service {service_id!r} does not exist.", service_id=service_id)
        bookings = await self._bookings_on(target)
        return find_available_slots(
            target, service, bookings, self.policy,
            step_minutes=self.slot_interval_minutes, not_before=not_before,
        )

    # ------------------------------------------------------------------ #
    # Pipeline steps
    # ------------------------------------------------------------------ #

    async def _resolve_service(self, service_id: str, sm: BookingRequestStateMachine) -> Service:
        service = await self._catalog.find_by_id(service_id)
        if service is None:
            raise ServiceNotFound(f"Service {service_id!r} does not exist.", service_id=service_id)
        sm.transition(BookingTrigger.SERVICE_RESOLVED)
        return service

    async def _apply_update(
        self,
        current: Booking,
        new_start: Optional[datetime],
        request: UpdateBookingRequest,
        sm: BookingRequestStateMachine,
    ) -> tuple[Booking, Service]:
        """Validate and write an update. Caller holds the day locks for ``current``."""
        service = await self._resolve_service(request.service_id or current.service_id, sm)
        start = new_start if new_start is not None else current.start_time
        if service.id != current.service_id or start != current.start_time:
            end = compute_end_time(start, service.duration_minutes)
            buffer_minutes = service.buffer_minutes
        else:
            end = current.end_time
            buffer_minutes = current.buffer_minutes
        sm.transition(BookingTrigger.TIMES_COMPUTED)
        self._check_hours(start, end, sm)

        patch = {
            "customer_name": request.customer_name or current.customer_name,
            "customer_phone": request.customer_phone or current.customer_phone,
            "service_id": service.id,
            "start_time": start,
            "end_time": end,
            "buffer_minutes": buffer_minutes,
        }
        candidate = current.model_copy(update=patch)
        existing = await self._bookings_on(local_date(start, self.policy))
        self._check_conflicts(candidate, existing, sm)
        patch["updated_at"] = self._clock()
        saved = await self._store_call(
            "update booking", lambda: self._store.update(current.id, patch)
        )
        sm.transition(BookingTrigger.PERSISTED)
        return saved, service

    def _check_hours(self, start: datetime, end: datetime, sm: BookingRequestStateMachine) -> None:
        if not is_within_business_hours(start, end, self.policy):
            raise OutsideBusinessHours(
                f"{start.isoformat()} - {end.isoformat()} is outside business hours "
                f"({self.policy.describe()}).",
                start=start,
                end=end,
                business_hours=self.policy.describe(),
            )
        sm.transition(BookingTrigger.HOURS_VALIDATED)

    def _check_conflicts(
        self, candidate: Booking, existing: list[Booking], sm: BookingRequestStateMachine
    ) -> None:
        conflict = find_conflict(
            candidate.start_time,
            candidate.end_time,
            candidate.buffer_minutes,
            existing,
            exclude_booking_id=candidate.id,
        )
        if conflict is not None:
            raise conflict.to_error()
        sm.transition(BookingTrigger.NO_CONFLICT)

    async def _find(self, booking_id: str) -> Booking:
        booking = await self._store_call("load booking", lambda: self._store.find_by_id(booking_id))
        if booking is None:
            raise BookingNotFound(f"Booking {booking_id} does not exist.", booking_id=booking_id)
        return booking

    async def _bookings_on(self, day: date) -> list[Booking]:
        start, end = local_day_bounds(day, self.policy)
        bookings = await self._store_call(
            "load bookings", lambda: self._store.find_by_date_range(start, end)
        )
        return sorted(
            (b for b in bookings if start <= b.start_time < end),
            key=lambda b: (b.start_time, b.id),
        )

    async def _store_call(self, action: str, call: Callable[[], Awaitable[T]]) -> T:
        """Run a store call, translating unexpected failures to PersistenceError."""
        try:
            return await call()
        except BookingError:
            raise
        except Exception as exc:
            logger.exception("Store failed to %s", action)
            raise PersistenceError(f"Store failed to {action}: {exc}") from exc

    async def _mirror_new(self, saved: Booking, service: Service) -> tuple[Booking, Optional[bool]]:
        """Create the calendar event for ``saved`` and record its reference."""
        if not self._calendar.enabled:
            return saved, None
        outcome = await self._calendar.create_event(saved, service)
        if not outcome.succeeded or not outcome.result:
            return saved, False
        event_ref = outcome.result
        try:
            saved = await self._store_call(
                "save event reference",
                lambda: self._store.update(saved.id, {"external_event_ref": event_ref}),
            )
        except PersistenceError as exc:
            logger.error("Could not store calendar event %s on booking %s: %s",
                         event_ref, saved.id, exc)
            await self._calendar.delete_event(event_ref, saved.id)
            return saved, False
        return saved, True

    def _abort(self, sm: BookingRequestStateMachine, request_id: str, exc: BookingError) -> None:
        state = sm.current_state.value
        if sm.can_abort():
            sm.abort(exc.code)
        logger.info("%s request aborted at %s: %s (%s)", sm.operation, state, exc.code, exc.message)
        self._history.append(OperationTrace(
            request_id=request_id,
            operation=sm.operation,
            booking_id=sm.booking_id,
            states=sm.get_state_trace(),
            outcome="aborted",
            error_code=exc.code,
        ))

    def _finish(
        self, sm: BookingRequestStateMachine, request_id: str, synced: Optional[bool]
    ) -> None:
        sm.transition(BookingTrigger.SYNC_ATTEMPTED)
        sm.transition(BookingTrigger.COMPLETED)
        self._history.append(OperationTrace(
            request_id=request_id,
            operation=sm.operation,
            booking_id=sm.booking_id,
            states=sm.get_state_trace(),
            outcome="done",
            calendar_synced=synced,
        ))


def create_scheduler(
    store: Optional[BookingStore] = None,
    catalog: Optional[ServiceCatalog] = None,
    calendar: Optional[CalendarSyncAdapter] = None,
    config: AppConfig = settings,
) -> BookingScheduler:
    """Build a scheduler from configuration, defaulting to in-memory collaborators."""
    from barber_booking.adapters.calendar_sync import InMemoryCalendarSync
    from barber_booking.adapters.memory_store import InMemoryBookingStore
    from barber_booking.adapters.service_catalog import InMemoryServiceCatalog

    return BookingScheduler(
        store=store if store is not None else InMemoryBookingStore(),
        catalog=catalog if catalog is not None else InMemoryServiceCatalog(),
        policy=BusinessHoursPolicy.from_config(config.business),
        calendar=CalendarSyncRunner.from_config(
            calendar if calendar is not None else InMemoryCalendarSync(), config.calendar_sync
        ),
        slot_interval_minutes=config.business.slot_interval_minutes,
        history_size=config.operation_history_size,
    )
