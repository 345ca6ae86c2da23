"""
Booking scheduler entry point.

Builds a scheduler from configuration and runs the console front end.
An HTTP layer (routing, auth) would wrap ``create_scheduler()`` the same
way; it lives outside this package.

Usage:
    Interactive console: python main.py console
    Scripted scenario:   python main.py scenario walkthrough
    Show config:         python main.py config
"""

import logging
import sys

from barber_booking.config import settings

logger = logging.getLogger(__name__)


def _show_config() -> None:
    """Print the effective business hours and sync policy."""
    from barber_booking.scheduling.business_hours import BusinessHoursPolicy

    policy = BusinessHoursPolicy.from_config(settings.business)
    sync = settings.calendar_sync
    print(f"Shop:           {settings.business.name}")
    print(f"Timezone:       {settings.business.timezone}")
    print(f"Hours:          {policy.describe()}")
    print(f"Slot interval:  {settings.business.slot_interval_minutes} min")
    print(
        f"Calendar sync:  {'on' if sync.enabled else 'off'}, "
        f"{sync.max_attempts} attempt(s), {sync.timeout_sec}s timeout"
    )


def _run_console_mode() -> None:
    from console_demo import ConsoleSession

    session = ConsoleSession()
    session.run()


def _run_scenario(name: str) -> None:
    from console_demo import ConsoleSession, UnreachableCalendar

    if name == "calendar-outage":
        session = ConsoleSession(calendar=UnreachableCalendar())
    else:
        session = ConsoleSession()
    session.run_scenario(name)


if __name__ == "__main__":
    command = sys.argv[1] if len(sys.argv) > 1 else "console"
    if command == "config":
        _show_config()
    elif command == "scenario" and len(sys.argv) > 2:
        _run_scenario(sys.argv[2])
    elif command == "console":
        _run_console_mode()
    else:
        logger.error("Unknown command: %s", " ".join(sys.argv[1:]))
        sys.exit(2)
