"""Tests for the booking request state machine."""

import pytest

from barber_booking.scheduling.state_machine import (
    BookingRequestStateMachine,
    BookingState,
    BookingTrigger,
    InvalidTransitionError,
)

VALIDATION_PATH = [
    BookingTrigger.SERVICE_RESOLVED,
    BookingTrigger.TIMES_COMPUTED,
    BookingTrigger.HOURS_VALIDATED,
    BookingTrigger.NO_CONFLICT,
]


@pytest.fixture
def state_machine():
    return BookingRequestStateMachine(operation="create")


def _advance(sm, triggers):
    for trigger in triggers:
        sm.transition(trigger)


class TestInitialState:
    def test_starts_received(self, state_machine):
        assert state_machine.current_state == BookingState.RECEIVED

    def test_initial_trace_has_one_entry(self, state_machine):
        assert state_machine.get_state_trace() == ["received"]

    def test_can_abort_at_start(self, state_machine):
        assert state_machine.can_abort()


class TestValidationPipeline:
    def test_full_happy_path(self, state_machine):
        _advance(state_machine, VALIDATION_PATH)
        state_machine.transition(BookingTrigger.PERSISTED)
        state_machine.transition(BookingTrigger.SYNC_ATTEMPTED)
        new = state_machine.transition(BookingTrigger.COMPLETED)
        assert new == BookingState.DONE
        assert state_machine.get_valid_triggers() == []

    def test_trace_lists_states_in_order(self, state_machine):
        _advance(state_machine, VALIDATION_PATH)
        assert state_machine.get_state_trace() == [
            "received", "service_resolved", "times_computed",
            "hours_validated", "conflict_checked",
        ]

    def test_cannot_skip_hours_check(self, state_machine):
        _advance(state_machine, VALIDATION_PATH[:2])
        with pytest.raises(InvalidTransitionError):
            state_machine.transition(BookingTrigger.NO_CONFLICT)

    def test_cannot_persist_before_conflict_check(self, state_machine):
        _advance(state_machine, VALIDATION_PATH[:3])
        with pytest.raises(InvalidTransitionError):
            state_machine.transition(BookingTrigger.PERSISTED)

    def test_delete_goes_straight_to_persisted(self):
        sm = BookingRequestStateMachine(operation="delete", booking_id="BK-1")
        assert sm.transition(BookingTrigger.PERSISTED) == BookingState.PERSISTED

    def test_error_lists_valid_triggers(self, state_machine):
        with pytest.raises(InvalidTransitionError, match="service_resolved"):
            state_machine.transition(BookingTrigger.COMPLETED)


class TestAbort:
    @pytest.mark.parametrize("steps", range(len(VALIDATION_PATH) + 1))
    def test_abort_from_any_validation_state(self, state_machine, steps):
        _advance(state_machine, VALIDATION_PATH[:steps])
        assert state_machine.can_abort()
        assert state_machine.abort("booking_conflict") == BookingState.ABORTED
        assert state_machine.current_state == BookingState.ABORTED
        assert state_machine.get_state_trace()[-1] == "aborted"

    def test_cannot_abort_after_persisted(self, state_machine):
        _advance(state_machine, VALIDATION_PATH)
        state_machine.transition(BookingTrigger.PERSISTED)
        assert not state_machine.can_abort()
        with pytest.raises(InvalidTransitionError):
            state_machine.abort("too late")

    def test_aborted_is_final(self, state_machine):
        state_machine.abort("service_not_found")
        assert state_machine.get_valid_triggers() == []


class TestTrace:
    def test_trace_is_a_copy(self, state_machine):
        state_machine.get_state_trace().clear()
        assert state_machine.get_state_trace() == ["received"]
