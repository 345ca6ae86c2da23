"""
Finite state machine for a single booking request.

Every create/update/delete walks a deterministic path through the state
graph. Nothing is written before PERSISTED, so ABORTED is only reachable
from the validation states; once the store has committed, the request can
only move forward through the best-effort calendar sync to DONE.

Usage:
    sm = BookingRequestStateMachine(operation="create")
    sm.transition(BookingTrigger.SERVICE_RESOLVED)
    assert sm.current_state == BookingState.SERVICE_RESOLVED
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

logger = logging.getLogger(__name__)


class BookingState(str, Enum):
    """All possible states of a booking request."""
    RECEIVED = "received"
    SERVICE_RESOLVED = "service_resolved"
    TIMES_COMPUTED = "times_computed"
    HOURS_VALIDATED = "hours_validated"
    CONFLICT_CHECKED = "conflict_checked"
    PERSISTED = "persisted"
    SYNC_ATTEMPTED = "sync_attempted"
    DONE = "done"
    ABORTED = "aborted"


class BookingTrigger(str, Enum):
    """Events that cause state transitions."""
    SERVICE_RESOLVED = "service_resolved"
    TIMES_COMPUTED = "times_computed"
    HOURS_VALIDATED = "hours_validated"
    NO_CONFLICT = "no_conflict"
    PERSISTED = "persisted"
    SYNC_ATTEMPTED = "sync_attempted"
    COMPLETED = "completed"
    ABORT = "abort"


@dataclass
class Transition:
    """A single valid state transition."""
    from_state: BookingState
    to_state: BookingState
    trigger: BookingTrigger


@dataclass
class StateEntry:
    """Recorded history entry for a state visit."""
    state: BookingState
    entered_at: datetime
    trigger: Optional[BookingTrigger] = None


class InvalidTransitionError(Exception):
    """Raised when a transition is not valid from the current state."""


_PRE_COMMIT_STATES = [
    BookingState.RECEIVED,
    BookingState.SERVICE_RESOLVED,
    BookingState.TIMES_COMPUTED,
    BookingState.HOURS_VALIDATED,
    BookingState.CONFLICT_CHECKED,
]


class BookingRequestStateMachine:
    """
    Tracks one booking request from receipt to completion.

    The scheduler drives it step by step; an out-of-order step is a
    programming error and raises InvalidTransitionError listing the
    triggers that would have been accepted.
    """

    TRANSITIONS: list[Transition] = [
        # --- Validation pipeline ---
        Transition(BookingState.RECEIVED, BookingState.SERVICE_RESOLVED,
                   BookingTrigger.SERVICE_RESOLVED),
        Transition(BookingState.SERVICE_RESOLVED, BookingState.TIMES_COMPUTED,
                   BookingTrigger.TIMES_COMPUTED),
        Transition(BookingState.TIMES_COMPUTED, BookingState.HOURS_VALIDATED,
                   BookingTrigger.HOURS_VALIDATED),
        Transition(BookingState.HOURS_VALIDATED, BookingState.CONFLICT_CHECKED,
                   BookingTrigger.NO_CONFLICT),

        # --- Commit ---
        Transition(BookingState.CONFLICT_CHECKED, BookingState.PERSISTED,
                   BookingTrigger.PERSISTED),
        # Deletes have nothing to validate
        Transition(BookingState.RECEIVED, BookingState.PERSISTED,
                   BookingTrigger.PERSISTED),

        # --- Best-effort calendar mirror ---
        Transition(BookingState.PERSISTED, BookingState.SYNC_ATTEMPTED,
                   BookingTrigger.SYNC_ATTEMPTED),
        Transition(BookingState.SYNC_ATTEMPTED, BookingState.DONE,
                   BookingTrigger.COMPLETED),
    ] + [
        # --- Abort before anything is written ---
        Transition(state, BookingState.ABORTED, BookingTrigger.ABORT)
        for state in _PRE_COMMIT_STATES
    ]

    def __init__(self, operation: str = "create", booking_id: Optional[str] = None) -> None:
        self.operation = operation
        self.booking_id = booking_id
        self._current_state = BookingState.RECEIVED
        self._history: list[StateEntry] = [
            StateEntry(state=BookingState.RECEIVED, entered_at=datetime.now(timezone.utc))
        ]

    @property
    def current_state(self) -> BookingState:
        return self._current_state

    def transition(self, trigger: BookingTrigger) -> BookingState:
        """
        Execute a state transition.

        Args:
            trigger: The event triggering the transition.

        Returns:
            The new request state.

        Raises:
            InvalidTransitionError: If no valid transition exists.
        """
        for t in self.TRANSITIONS:
            if t.from_state == self._current_state and t.trigger == trigger:
                old_state = self._current_state
                self._current_state = t.to_state

                self._history.append(StateEntry(
                    state=self._current_state,
                    entered_at=datetime.now(timezone.utc),
                    trigger=trigger,
                ))

                logger.debug(
                    "%s request %s: %s -> %s",
                    self.operation, self.booking_id or "(new)",
                    old_state.value, self._current_state.value,
                )
                return self._current_state

        valid = [t.value for t in self.get_valid_triggers()]
        raise InvalidTransitionError(
            f"No valid transition from '{self._current_state.value}' "
            f"with trigger '{trigger.value}'. Valid triggers: {valid}"
        )

    def abort(self, reason: str) -> BookingState:
        """Move to ABORTED, logging why."""
        self.transition(BookingTrigger.ABORT)
        logger.debug("%s request %s aborted: %s", self.operation, self.booking_id or "(new)", reason)
        return self._current_state

    def can_abort(self) -> bool:
        return self._current_state in _PRE_COMMIT_STATES

    def get_valid_triggers(self) -> list[BookingTrigger]:
        """Return all triggers valid from the current state."""
        return [t.trigger for t in self.TRANSITIONS if t.from_state == self._current_state]

    def get_state_trace(self) -> list[str]:
        """Return ordered list of state names visited."""
        return [entry.state.value for entry in self._history]
