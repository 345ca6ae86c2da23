"""Shared utilities used across the booking scheduler."""

import re
from datetime import date, datetime, timezone, tzinfo

from barber_booking.errors import InvalidTimestamp

PHONE_PATTERN = re.compile(r"^\+?\d{7,15}$")


def normalize_phone(value: str) -> str:
    """Normalize a phone number by stripping everything except digits and a leading +.

    Examples:
        >>> normalize_phone("0412 345 678")
        '0412345678'
        >>> normalize_phone("+61 (412) 345-678")
        '+61412345678'
    """
    value = value.strip()
    if value.startswith("+"):
        return "+" + re.sub(r"[^\d]", "", value[1:])
    return re.sub(r"[^\d]", "", value)


def is_valid_phone(value: str) -> bool:
    """True for an E.164-like number: optional leading + and 7 to 15 digits."""
    return bool(PHONE_PATTERN.match(value))


def parse_timestamp(value: str, default_tz: tzinfo) -> datetime:
    """Parse an ISO-8601 timestamp into an aware datetime.

    A trailing ``Z`` is accepted as UTC. Timestamps without an offset are
    taken to be wall-clock time in ``default_tz`` (the shop's timezone) and
    are returned with that zone's fixed UTC offset at that instant, so later
    arithmetic on them is absolute.

    Raises:
        InvalidTimestamp: If the value is empty or not ISO-8601.
    """
    if not isinstance(value, str) or not value.strip():
        raise InvalidTimestamp(f"Start time must be an ISO-8601 string, got {value!r}.", value=value)
    raw = value.strip()
    if raw.endswith(("Z", "z")):
        raw = raw[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(raw)
    except ValueError:
        raise InvalidTimestamp(
            f"Could not parse {value!r} as an ISO-8601 timestamp.", value=value
        ) from None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=default_tz)
        parsed = parsed.astimezone(timezone(parsed.utcoffset()))
    return parsed


def parse_day(value) -> date:
    """Accept a ``date`` or a ``YYYY-MM-DD`` string."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return datetime.strptime(str(value).strip(), "%Y-%m-%d").date()
    except ValueError:
        raise InvalidTimestamp(f"Expected a YYYY-MM-DD date, got {value!r}.", value=value) from None
