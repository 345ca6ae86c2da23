"""
Offline console demo: drives the booking scheduler from the terminal.

Uses the real scheduler, business-hours policy, conflict detector and
calendar sync runner over the in-memory store, catalog and calendar.
No database, no calendar provider, no network calls.

Usage:
    python console_demo.py
    python console_demo.py --scenario walkthrough
    python console_demo.py --scenario calendar-outage

Commands:
    services
    book <name> | <phone> | <service id> | <start ISO-8601>
    move <booking id> | <start ISO-8601> [| <service id>]
    cancel <booking id>
    day <YYYY-MM-DD>
    slots <YYYY-MM-DD> <service id>
    quit
"""

import argparse
import asyncio
import sys
from datetime import date, timedelta
from typing import Optional

from pydantic import ValidationError

from barber_booking.adapters.calendar_sync import InMemoryCalendarSync
from barber_booking.adapters.service_catalog import InMemoryServiceCatalog
from barber_booking.config import settings
from barber_booking.errors import BookingError
from barber_booking.responses import to_error_response
from barber_booking.schemas.booking_schema import (
    BookingView,
    CreateBookingRequest,
    UpdateBookingRequest,
)
from barber_booking.scheduling.scheduler import create_scheduler

BLUE = "\033[94m"
GREEN = "\033[92m"
YELLOW = "\033[93m"
RED = "\033[91m"
DIM = "\033[2m"
RESET = "\033[0m"
BOLD = "\033[1m"


class UnreachableCalendar(InMemoryCalendarSync):
    """Calendar that is always down, to show bookings surviving an outage."""

    async def create_event(self, booking, service):
        raise ConnectionError("calendar provider unreachable")


def _next_weekday(start: date) -> date:
    day = start + timedelta(days=1)
    while day.weekday() in settings.business.closed_weekdays or day.weekday() >= 5:
        day += timedelta(days=1)
    return day


class ConsoleSession:
    """Parses console commands and runs them against a scheduler."""

    def __init__(self, calendar: Optional[InMemoryCalendarSync] = None) -> None:
        self.catalog = InMemoryServiceCatalog()
        self.calendar = calendar or InMemoryCalendarSync()
        self.scheduler = create_scheduler(catalog=self.catalog, calendar=self.calendar)
        self.demo_day = _next_weekday(date.today())

    def say(self, text: str) -> None:
        print(f"{GREEN}{text}{RESET}")

    def system_log(self, text: str) -> None:
        print(f"{DIM}  >> {text}{RESET}")

    def error(self, exc: Exception) -> None:
        response = to_error_response(exc)
        print(f"{RED}[{response.status_code} {response.code}] {response.message}{RESET}")

    def _show_booking(self, view: BookingView) -> None:
        service = view.service.name if view.service else view.service_id
        mirror = view.external_event_ref or "not mirrored"
        self.say(
            f"{view.id}  {view.start_time:%Y-%m-%d %H:%M}-{view.end_time:%H:%M}  "
            f"{view.customer_name} ({view.customer_phone})  {service}  [{mirror}]"
        )

    def _scenario_steps(self, scenario: str) -> list[str]:
        d = self.demo_day.isoformat()
        if scenario == "walkthrough":
            return [
                "services",
                f"book Sam Carter | 0412 345 678 | haircut | {d}T10:00",
                f"book Alex Brown | 0498 765 432 | haircut | {d}T10:35",
                f"book Alex Brown | 0498 765 432 | haircut | {d}T10:40",
                f"book Late Larry | 0400 111 222 | haircut | {d}T17:50",
                f"slots {d} beard-trim",
                f"day {d}",
            ]
        if scenario == "calendar-outage":
            return [
                f"book Sam Carter | 0412 345 678 | haircut | {d}T11:00",
                f"day {d}",
            ]
        return []

    SCENARIOS = ("walkthrough", "calendar-outage")

    def run_scenario(self, scenario: str) -> None:
        """Auto-play a pre-scripted scenario for demo purposes."""
        steps = self._scenario_steps(scenario)
        if not steps:
            print(f"{RED}Unknown scenario: {scenario}{RESET}")
            return

        self._banner(f"Scenario: {scenario}")
        asyncio.run(self._play(steps))

        print(f"\n{BOLD}{'=' * 60}{RESET}")
        print(f"{BOLD}  Scenario '{scenario}' complete.{RESET}")
        for trace in self.scheduler.recent_operations:
            print(f"{DIM}  {trace.operation} {trace.booking_id}: "
                  f"{' -> '.join(trace.states)}{RESET}")
        print(f"{BOLD}{'=' * 60}{RESET}")

    async def _play(self, steps: list[str]) -> None:
        for step in steps:
            print(f"\n{BLUE}> {RESET}{step}")
            await self.handle(step)

    def _banner(self, title: str) -> None:
        print()
        print(f"{BOLD}{'=' * 60}{RESET}")
        print(f"{BOLD}  BARBER BOOKING - {title}{RESET}")
        print(f"{BOLD}  Shop: {settings.business.name}, open "
              f"{self.scheduler.policy.describe()}{RESET}")
        print(f"{BOLD}{'=' * 60}{RESET}")

    def run(self) -> None:
        self._banner("Console Demo (type 'quit' to exit)")
        while True:
            line = input(f"\n{BLUE}> {RESET}").strip()
            if not line:
                continue
            if line.lower() in ("quit", "exit", "q"):
                print(f"\n{DIM}Session ended.{RESET}")
                return
            asyncio.run(self.handle(line))

    async def handle(self, line: str) -> None:
        command, _, rest = line.partition(" ")
        args = [part.strip() for part in rest.split("|")] if rest else []
        try:
            if command == "services":
                for service in self.catalog.all_services():
                    self.say(f"{service.id:<16} {service.name:<18} "
                             f"{service.duration_minutes} min + {service.buffer_minutes} min buffer")
            elif command == "book" and len(args) == 4:
                request = CreateBookingRequest(
                    customer_name=args[0], customer_phone=args[1],
                    service_id=args[2], start_time=args[3],
                )
                self._show_booking(await self.scheduler.create_booking(request))
            elif command == "move" and len(args) in (2, 3):
                request = UpdateBookingRequest(
                    start_time=args[1], service_id=args[2] if len(args) == 3 else None
                )
                self._show_booking(await self.scheduler.update_booking(args[0], request))
            elif command == "cancel" and len(args) == 1:
                await self.scheduler.delete_booking(args[0])
                self.say(f"{args[0]} cancelled.")
            elif command == "day" and len(args) == 1:
                views = await self.scheduler.list_bookings_for_date(args[0])
                if not views:
                    self.say("No bookings.")
                for view in views:
                    self._show_booking(view)
            elif command == "slots" and rest:
                day, _, service_id = rest.partition(" ")
                slots = await self.scheduler.list_available_slots(day, service_id.strip())
                self.say(", ".join(f"{s.start_time:%H:%M}" for s in slots) or "Fully booked.")
            else:
                print(f"{YELLOW}Unknown command. See the module docstring for usage.{RESET}")
                return
        except (BookingError, ValidationError) as exc:
            self.error(exc)
            return
        self.system_log(f"calendar events: {len(self.calendar.events)}")


def main() -> None:
    parser = argparse.ArgumentParser(description="Barber booking console demo.")
    parser.add_argument(
        "--scenario",
        choices=ConsoleSession.SCENARIOS,
        default=None,
        help="Auto-play a pre-scripted scenario instead of interactive mode.",
    )
    args = parser.parse_args()

    if args.scenario == "calendar-outage":
        session = ConsoleSession(calendar=UnreachableCalendar())
    else:
        session = ConsoleSession()

    if args.scenario:
        session.run_scenario(args.scenario)
    else:
        try:
            session.run()
        except (KeyboardInterrupt, EOFError):
            print(f"\n{DIM}Session ended.{RESET}")
            sys.exit(0)


if __name__ == "__main__":
    main()
