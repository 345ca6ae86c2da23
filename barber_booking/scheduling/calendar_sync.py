"""
Best-effort calendar mirroring with a bounded retry policy.

Every adapter call is limited by a timeout and a fixed number of attempts
with exponential backoff. When the last attempt fails the runner logs a
CalendarSyncFailure and reports a failed outcome; it never raises, so a
slow or broken provider can't fail or roll back a committed booking.
"""

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Generic, Optional, TypeVar

from barber_booking.adapters.protocols import CalendarSyncAdapter
from barber_booking.config import CalendarSyncConfig
from barber_booking.errors import CalendarSyncFailure
from barber_booking.logging_context import get_request_logger
from barber_booking.schemas.booking_schema import Booking, Service

logger = get_request_logger(__name__)

T = TypeVar("T")


class SyncOperation(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


@dataclass
class SyncOutcome(Generic[T]):
    """Result of one mirrored operation, including how many attempts it took."""
    operation: SyncOperation
    booking_id: str
    succeeded: bool
    attempts: int
    result: Optional[T] = None
    failure: Optional[CalendarSyncFailure] = None
    skipped: bool = False


class CalendarSyncRunner:
    """Wraps a CalendarSyncAdapter with timeout, retry and logging."""

    def __init__(
        self,
        adapter: Optional[CalendarSyncAdapter],
        max_attempts: int = 2,
        timeout_sec: float = 5.0,
        backoff_sec: float = 0.5,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        if max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got {max_attempts}")
        if timeout_sec <= 0:
            raise ValueError(f"timeout_sec must be > 0, got {timeout_sec}")
        self._adapter = adapter
        self.max_attempts = max_attempts
        self.timeout_sec = timeout_sec
        self.backoff_sec = backoff_sec
        self._sleep = sleep

    @classmethod
    def from_config(
        cls, adapter: Optional[CalendarSyncAdapter], config: CalendarSyncConfig
    ) -> "CalendarSyncRunner":
        return cls(
            adapter if config.enabled else None,
            max_attempts=config.max_attempts,
            timeout_sec=config.timeout_sec,
            backoff_sec=config.backoff_sec,
        )

    @property
    def enabled(self) -> bool:
        return self._adapter is not None

    async def run(
        self,
        operation: SyncOperation,
        booking_id: str,
        call: Callable[[], Awaitable[T]],
    ) -> SyncOutcome[T]:
        """Run ``call`` under the retry policy. Never raises."""
        if self._adapter is None:
            logger.debug("Calendar sync disabled; skipping %s for %s", operation.value, booking_id)
            return SyncOutcome(operation, booking_id, succeeded=False, attempts=0, skipped=True)

        reason = None
        for attempt in range(1, self.max_attempts + 1):
            try:
                result = await asyncio.wait_for(call(), timeout=self.timeout_sec)
            except asyncio.TimeoutError:
                reason = f"timed out after {self.timeout_sec}s"
            except Exception as exc:
                reason = f"{type(exc).__name__}: {exc}"
            else:
                logger.info(
                    "Calendar %s for booking %s succeeded (attempt %d)",
                    operation.value, booking_id, attempt,
                )
                return SyncOutcome(operation, booking_id, succeeded=True, attempts=attempt, result=result)

            logger.warning(
                "Calendar %s for booking %s failed (attempt %d/%d): %s",
                operation.value, booking_id, attempt, self.max_attempts, reason,
            )
            if attempt < self.max_attempts and self.backoff_sec > 0:
                await self._sleep(self.backoff_sec * 2 ** (attempt - 1))

        failure = CalendarSyncFailure(booking_id, operation.value, reason)
        logger.error("%s; booking kept without calendar mirror", failure)
        return SyncOutcome(
            operation, booking_id, succeeded=False, attempts=self.max_attempts, failure=failure
        )

    async def create_event(self, booking: Booking, service: Service) -> SyncOutcome[str]:
        return await self.run(
            SyncOperation.CREATE, booking.id,
            lambda: self._adapter.create_event(booking, service),
        )

    async def update_event(
        self, event_ref: str, booking: Booking, service: Service
    ) -> SyncOutcome[None]:
        return await self.run(
            SyncOperation.UPDATE, booking.id,
            lambda: self._adapter.update_event(event_ref, booking, service),
        )

    async def delete_event(self, event_ref: str, booking_id: str) -> SyncOutcome[None]:
        return await self.run(
            SyncOperation.DELETE, booking_id,
            lambda: self._adapter.delete_event(event_ref),
        )
