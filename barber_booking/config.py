"""
Centralized configuration with environment variable overrides.

Business hours, the shop timezone and the calendar sync retry policy are
configurable here. Nothing is hardcoded in scheduling or adapter logic.
"""

import logging
import os
from dataclasses import dataclass, field
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv

from barber_booking.logging_context import RequestIdFilter

load_dotenv()

logger = logging.getLogger(__name__)

MINUTES_PER_DAY = 24 * 60


def _safe_int(env_var: str, default: str) -> int:
    """Parse an integer from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return int(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid integer for {env_var}: {raw!r}"
        ) from None


def _safe_float(env_var: str, default: str) -> float:
    """Parse a float from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return float(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid float for {env_var}: {raw!r}"
        ) from None


def _safe_bool(env_var: str, default: str) -> bool:
    raw = os.getenv(env_var, default).strip().lower()
    if raw in ("1", "true", "yes", "on"):
        return True
    if raw in ("0", "false", "no", "off"):
        return False
    raise ValueError(f"Invalid boolean for {env_var}: {raw!r}")


def _safe_clock(env_var: str, default: str) -> int:
    """Parse an ``HH:MM`` env var into minutes since midnight.

    ``24:00`` is allowed so a shop can close at midnight.
    """
    raw = os.getenv(env_var, default)
    try:
        hours, minutes = raw.strip().split(":")
        total = int(hours) * 60 + int(minutes)
    except (ValueError, AttributeError):
        raise ValueError(
            f"Invalid HH:MM time for {env_var}: {raw!r}"
        ) from None
    if not 0 <= int(minutes) < 60 or not 0 <= total <= MINUTES_PER_DAY:
        raise ValueError(f"Invalid HH:MM time for {env_var}: {raw!r}")
    return total


def _safe_weekdays(env_var: str, default: str) -> frozenset[int]:
    """Parse a comma list of weekday numbers (Monday=0 .. Sunday=6)."""
    raw = os.getenv(env_var, default)
    try:
        return frozenset(int(part) for part in raw.split(",") if part.strip())
    except ValueError:
        raise ValueError(
            f"Invalid weekday list for {env_var}: {raw!r}"
        ) from None


@dataclass(frozen=True)
class BusinessConfig:
    """Shop-specific settings loaded from environment or defaults."""

    name: str = os.getenv("BUSINESS_NAME", "Sharp Cuts Barbershop")
    timezone: str = os.getenv("BUSINESS_TIMEZONE", "Australia/Melbourne")
    open_minutes: int = _safe_clock("BUSINESS_OPEN", "09:00")
    close_minutes: int = _safe_clock("BUSINESS_CLOSE", "18:00")
    closed_weekdays: frozenset[int] = _safe_weekdays("BUSINESS_CLOSED_DAYS", "")
    slot_interval_minutes: int = _safe_int("SLOT_INTERVAL_MINUTES", "15")


@dataclass(frozen=True)
class CalendarSyncConfig:
    """Retry policy for mirroring bookings into the external calendar."""

    enabled: bool = _safe_bool("CALENDAR_SYNC_ENABLED", "true")
    max_attempts: int = _safe_int("CALENDAR_SYNC_MAX_ATTEMPTS", "2")
    timeout_sec: float = _safe_float("CALENDAR_SYNC_TIMEOUT", "5.0")
    backoff_sec: float = _safe_float("CALENDAR_SYNC_BACKOFF", "0.5")


@dataclass(frozen=True)
class AppConfig:
    """Root configuration aggregating all sub-configs."""

    business: BusinessConfig = field(default_factory=BusinessConfig)
    calendar_sync: CalendarSyncConfig = field(default_factory=CalendarSyncConfig)
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    operation_history_size: int = _safe_int("OPERATION_HISTORY_SIZE", "100")


def _validate_config(config: AppConfig) -> None:
    """Validate configuration values are within acceptable ranges."""
    business = config.business
    if not 0 <= business.open_minutes < business.close_minutes <= MINUTES_PER_DAY:
        raise ValueError(
            "BUSINESS_OPEN must be before BUSINESS_CLOSE within one day, "
            f"got {business.open_minutes} and {business.close_minutes} minutes"
        )
    try:
        ZoneInfo(business.timezone)
    except (ZoneInfoNotFoundError, ValueError):
        raise ValueError(f"BUSINESS_TIMEZONE is not a known zone: {business.timezone!r}") from None
    bad_days = sorted(day for day in business.closed_weekdays if not 0 <= day <= 6)
    if bad_days:
        raise ValueError(f"BUSINESS_CLOSED_DAYS must be weekday numbers 0-6, got {bad_days}")
    if len(business.closed_weekdays) == 7:
        raise ValueError("BUSINESS_CLOSED_DAYS cannot close every day of the week")
    if business.slot_interval_minutes < 1:
        raise ValueError(
            f"SLOT_INTERVAL_MINUTES must be >= 1, got {business.slot_interval_minutes}"
        )

    sync = config.calendar_sync
    if sync.max_attempts < 1:
        raise ValueError(
            f"CALENDAR_SYNC_MAX_ATTEMPTS must be >= 1, got {sync.max_attempts}"
        )
    if sync.timeout_sec <= 0:
        raise ValueError(f"CALENDAR_SYNC_TIMEOUT must be > 0, got {sync.timeout_sec}")
    if sync.backoff_sec < 0:
        raise ValueError(f"CALENDAR_SYNC_BACKOFF must be >= 0, got {sync.backoff_sec}")

    if config.operation_history_size < 1:
        raise ValueError(
            f"OPERATION_HISTORY_SIZE must be >= 1, got {config.operation_history_size}"
        )


def load_config() -> AppConfig:
    """Load and validate application configuration."""
    config = AppConfig()
    _validate_config(config)
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(name)s] %(levelname)s [%(request_id)s]: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    for handler in logging.getLogger().handlers:
        if not any(isinstance(f, RequestIdFilter) for f in handler.filters):
            handler.addFilter(RequestIdFilter())
    logger.info("Configuration loaded for '%s'", config.business.name)
    return config


# Singleton instance
settings = load_config()
