"""Operating-hours policy for the shop's local timezone."""

from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, tzinfo
from typing import Optional
from zoneinfo import ZoneInfo

from barber_booking.config import MINUTES_PER_DAY, BusinessConfig
from barber_booking.errors import InvalidTimestamp

WEEKDAY_NAMES = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]


@dataclass(frozen=True)
class BusinessHoursPolicy:
    """Daily opening window, in minutes since local midnight."""

    open_minutes: int
    close_minutes: int
    timezone: tzinfo = field(default_factory=lambda: ZoneInfo("UTC"))
    closed_weekdays: frozenset[int] = frozenset()

    def __post_init__(self) -> None:
        if not 0 <= self.open_minutes < self.close_minutes <= MINUTES_PER_DAY:
            raise ValueError(
                f"Opening hours must satisfy 0 <= open < close <= {MINUTES_PER_DAY}, "
                f"got {self.open_minutes}-{self.close_minutes}"
            )

    @classmethod
    def from_config(cls, config: BusinessConfig) -> "BusinessHoursPolicy":
        return cls(
            open_minutes=config.open_minutes,
            close_minutes=config.close_minutes,
            timezone=ZoneInfo(config.timezone),
            closed_weekdays=frozenset(config.closed_weekdays),
        )

    def is_open_on(self, day: date) -> bool:
        return day.weekday() not in self.closed_weekdays

    def describe(self) -> str:
        """Human-readable summary, e.g. ``09:00-18:00 (closed Sunday)``."""
        text = f"{_clock(self.open_minutes)}-{_clock(self.close_minutes)}"
        if self.closed_weekdays:
            closed = ", ".join(WEEKDAY_NAMES[d] for d in sorted(self.closed_weekdays))
            text += f" (closed {closed})"
        return text


def _clock(minutes: int) -> str:
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def _require_aware(value: datetime, label: str) -> None:
    if not isinstance(value, datetime):
        raise InvalidTimestamp(f"{label} must be a datetime, got {type(value).__name__}.")
    if value.tzinfo is None or value.utcoffset() is None:
        raise InvalidTimestamp(f"{label} must be timezone-aware.", value=value.isoformat())


def _wall_offset(local: datetime, day: date) -> timedelta:
    """Wall-clock distance from local midnight of ``day`` to ``local``."""
    return local.replace(tzinfo=None) - datetime.combine(day, time())


def is_within_business_hours(start: datetime, end: datetime, policy: BusinessHoursPolicy) -> bool:
    """
    Check that ``[start, end)`` lies inside one day's opening window.

    Both ends are converted to the shop's local time. An end of exactly
    local midnight counts as the last minute of the start's day; anything
    later crosses midnight and fails.

    Raises:
        InvalidTimestamp: On naive datetimes or ``end <= start``.
    """
    _require_aware(start, "start")
    _require_aware(end, "end")
    if end <= start:
        raise InvalidTimestamp(
            "end must be after start.", start=start.isoformat(), end=end.isoformat()
        )

    local_start = start.astimezone(policy.timezone)
    local_end = end.astimezone(policy.timezone)
    day = local_start.date()
    if not policy.is_open_on(day):
        return False

    start_offset = _wall_offset(local_start, day)
    end_offset = _wall_offset(local_end, day)
    if end_offset > timedelta(minutes=MINUTES_PER_DAY):
        return False

    return (
        timedelta(minutes=policy.open_minutes) <= start_offset
        and end_offset <= timedelta(minutes=policy.close_minutes)
    )


def local_day_bounds(day: date, policy: BusinessHoursPolicy) -> tuple[datetime, datetime]:
    """Half-open ``[00:00, next 00:00)`` range of a local calendar day."""
    start = datetime.combine(day, time(), tzinfo=policy.timezone)
    end = datetime.combine(day + timedelta(days=1), time(), tzinfo=policy.timezone)
    return start, end


def opening_window(day: date, policy: BusinessHoursPolicy) -> Optional[tuple[datetime, datetime]]:
    """Local open and close instants for ``day``, or None when closed."""
    if not policy.is_open_on(day):
        return None
    midnight = datetime.combine(day, time(), tzinfo=policy.timezone)
    return (
        midnight + timedelta(minutes=policy.open_minutes),
        midnight + timedelta(minutes=policy.close_minutes),
    )


def local_date(moment: datetime, policy: BusinessHoursPolicy) -> date:
    """The shop-local calendar date an instant falls on."""
    _require_aware(moment, "timestamp")
    return moment.astimezone(policy.timezone).date()
