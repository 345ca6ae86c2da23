"""
Pure interval helpers for appointment times.

All intervals are half-open ``[start, end)``: an appointment ending exactly
when another starts does not overlap it.
"""

from datetime import datetime, timedelta, timezone

from barber_booking.errors import InvalidDuration


def _utc(value: datetime) -> datetime:
    # Same-tzinfo comparisons use wall time and ignore fold.
    return value.astimezone(timezone.utc)


def compute_end_time(start: datetime, duration_minutes: int) -> datetime:
    """Return ``start + duration_minutes`` of elapsed time, keeping ``start``'s tzinfo.

    The addition is done in UTC so a DST change inside the interval does not
    stretch or shrink it.

    Raises:
        InvalidDuration: If the duration is less than one minute.
    """
    if isinstance(duration_minutes, bool) or not isinstance(duration_minutes, int):
        raise InvalidDuration(
            f"Duration must be a whole number of minutes, got {duration_minutes!r}.",
            duration_minutes=duration_minutes,
        )
    if duration_minutes < 1:
        raise InvalidDuration(
            f"Duration must be at least 1 minute, got {duration_minutes}.",
            duration_minutes=duration_minutes,
        )
    end = start.astimezone(timezone.utc) + timedelta(minutes=duration_minutes)
    return end.astimezone(start.tzinfo)


def intervals_overlap(
    a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime
) -> bool:
    """True if ``[a_start, a_end)`` and ``[b_start, b_end)`` share any instant."""
    a_start, a_end, b_start, b_end = map(_utc, (a_start, a_end, b_start, b_end))
    return a_start < b_end and b_start < a_end


def interval_contains(
    outer_start: datetime, outer_end: datetime, inner_start: datetime, inner_end: datetime
) -> bool:
    """True if ``[inner_start, inner_end)`` lies entirely inside the outer interval."""
    outer_start, outer_end, inner_start, inner_end = map(
        _utc, (outer_start, outer_end, inner_start, inner_end)
    )
    return outer_start <= inner_start and inner_end <= outer_end


def occupied_window(
    start: datetime, end: datetime, buffer_minutes: int
) -> tuple[datetime, datetime]:
    """Return ``(start, end + buffer)``, the span a booking keeps the chair busy."""
    if buffer_minutes < 0:
        raise InvalidDuration(
            f"Buffer cannot be negative, got {buffer_minutes}.",
            buffer_minutes=buffer_minutes,
        )
    return start, (_utc(end) + timedelta(minutes=buffer_minutes)).astimezone(end.tzinfo)
