"""
Booking conflict detection.

Each booking occupies ``[start, end + buffer)``. A candidate conflicts with
an existing booking iff their occupied windows overlap. Since both sides
carry their own buffer, spacing is enforced in both directions without
counting a buffer twice.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Optional

from barber_booking.errors import BookingConflict
from barber_booking.schemas.booking_schema import Booking
from barber_booking.scheduling.intervals import intervals_overlap, occupied_window

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConflictResult:
    """The existing booking a candidate collides with."""
    booking_id: str
    start_time: datetime
    end_time: datetime
    occupied_until: datetime

    def to_error(self) -> BookingConflict:
        return BookingConflict(
            f"Requested time overlaps booking {self.booking_id} "
            f"({self.start_time.isoformat()} - {self.end_time.isoformat()}, "
            f"chair busy until {self.occupied_until.isoformat()}).",
            conflicting_booking_id=self.booking_id,
            conflicting_start=self.start_time,
            conflicting_end=self.end_time,
            occupied_until=self.occupied_until,
        )


def find_all_conflicts(
    start: datetime,
    end: datetime,
    buffer_minutes: int,
    existing: Iterable[Booking],
    exclude_booking_id: Optional[str] = None,
) -> list[ConflictResult]:
    """Return every conflicting booking, earliest start first (ties by id)."""
    cand_start, cand_end = occupied_window(start, end, buffer_minutes)
    conflicts = []
    for booking in existing:
        if exclude_booking_id is not None and booking.id == exclude_booking_id:
            continue
        b_start, b_end = occupied_window(booking.start_time, booking.end_time, booking.buffer_minutes)
        if intervals_overlap(cand_start, cand_end, b_start, b_end):
            conflicts.append(
                ConflictResult(
                    booking_id=booking.id,
                    start_time=booking.start_time,
                    end_time=booking.end_time,
                    occupied_until=b_end,
                )
            )
    conflicts.sort(key=lambda c: (c.start_time, c.booking_id))
    return conflicts


def find_conflict(
    start: datetime,
    end: datetime,
    buffer_minutes: int,
    existing: Iterable[Booking],
    exclude_booking_id: Optional[str] = None,
) -> Optional[ConflictResult]:
    """Return the earliest-starting conflicting booking, or None."""
    conflicts = find_all_conflicts(start, end, buffer_minutes, existing, exclude_booking_id)
    if not conflicts:
        return None
    first = conflicts[0]
    logger.debug(
        "Candidate %s-%s conflicts with %d booking(s); reporting %s",
        start.isoformat(), end.isoformat(), len(conflicts), first.booking_id,
    )
    return first
