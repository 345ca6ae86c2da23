"""Tests for mapping exceptions to error responses."""

import pytest
from pydantic import ValidationError

from barber_booking.errors import (
    BookingConflict,
    BookingNotFound,
    CalendarSyncFailure,
    InvalidTimestamp,
    OutsideBusinessHours,
    PersistenceError,
    ServiceNotFound,
)
from barber_booking.responses import GENERIC_ERROR_MESSAGE, to_error_response
from barber_booking.schemas.booking_schema import CreateBookingRequest
from tests.conftest import at


class TestBookingErrors:
    @pytest.mark.parametrize(
        "exc,status,code",
        [
            (ServiceNotFound("no such service", service_id="S9"), 404, "service_not_found"),
            (InvalidTimestamp("bad time", value="x"), 422, "invalid_timestamp"),
            (OutsideBusinessHours("closed"), 422, "outside_business_hours"),
            (BookingNotFound("gone", booking_id="BK-1"), 404, "booking_not_found"),
        ],
    )
    def test_status_and_code(self, exc, status, code):
        response = to_error_response(exc)
        assert response.status_code == status
        assert response.code == code
        assert response.message == exc.message

    def test_conflict_carries_details(self):
        exc = BookingConflict("taken", "BK-1", at(10), at(10, 30))
        response = to_error_response(exc)
        assert response.status_code == 409
        assert response.details == {
            "conflicting_booking_id": "BK-1",
            "conflicting_start": at(10).isoformat(),
            "conflicting_end": at(10, 30).isoformat(),
        }

    def test_persistence_error_is_generic(self):
        response = to_error_response(PersistenceError("disk full on db-3", booking_id="BK-1"))
        assert response.status_code == 500
        assert response.code == "internal_error"
        assert "db-3" not in response.message
        assert response.details == {}


class TestOtherErrors:
    def test_validation_error_is_422(self):
        with pytest.raises(ValidationError) as info:
            CreateBookingRequest(customer_name="", customer_phone="1", service_id="S1", start_time="x")
        response = to_error_response(info.value)
        assert response.status_code == 422
        assert response.code == "invalid_request"
        assert response.details["fields"] == ["customer_name", "customer_phone"]

    def test_unexpected_error_is_generic_500(self):
        response = to_error_response(RuntimeError("secret stack detail"))
        assert response.status_code == 500
        assert response.message == GENERIC_ERROR_MESSAGE

    def test_calendar_failure_is_internal(self):
        response = to_error_response(CalendarSyncFailure("BK-1", "create", "timeout"))
        assert response.status_code == 500
        assert "BK-1" not in response.message
