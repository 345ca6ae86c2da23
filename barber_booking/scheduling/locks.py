"""Per-day write locks serializing read-check-write on a day's bookings."""

import asyncio
import logging
import weakref
from contextlib import asynccontextmanager
from datetime import date
from typing import AsyncIterator

logger = logging.getLogger(__name__)


class DayLocks:
    """
    One asyncio.Lock per local calendar day.

    Operations on different days never contend. A request touching several
    days (an update that moves a booking) takes their locks in date order,
    so two such requests cannot deadlock. A day's lock is only kept while
    some request holds or waits on it.
    """

    def __init__(self) -> None:
        self._locks: weakref.WeakValueDictionary[date, asyncio.Lock] = weakref.WeakValueDictionary()

    def _lock_for(self, day: date) -> asyncio.Lock:
        lock = self._locks.get(day)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[day] = lock
        return lock

    @asynccontextmanager
    async def hold(self, *days: date) -> AsyncIterator[None]:
        """Hold the locks for every given day; released on all exit paths."""
        ordered = sorted(set(days))
        acquired: list[asyncio.Lock] = []
        try:
            for day in ordered:
                lock = self._lock_for(day)
                await lock.acquire()
                acquired.append(lock)
            logger.debug("Holding day locks: %s", [d.isoformat() for d in ordered])
            yield
        finally:
            for lock in reversed(acquired):
                lock.release()

    def is_locked(self, day: date) -> bool:
        lock = self._locks.get(day)
        return lock is not None and lock.locked()
