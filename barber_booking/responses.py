"""Map exceptions to protocol-agnostic error responses.

Rule violations keep their code and details so callers can correct the
request. Internal failures become a generic 500 without leaking detail.
"""

import logging

from pydantic import ValidationError

from barber_booking.errors import BookingError
from barber_booking.schemas.booking_schema import ErrorResponse

logger = logging.getLogger(__name__)

GENERIC_ERROR_MESSAGE = "Something went wrong on our side. Please try again later."


def to_error_response(exc: Exception) -> ErrorResponse:
    if isinstance(exc, BookingError):
        body = exc.to_dict()
        return ErrorResponse(status_code=exc.status_code, **body)

    if isinstance(exc, ValidationError):
        fields = sorted({".".join(str(p) for p in err["loc"]) for err in exc.errors()})
        return ErrorResponse(
            status_code=422,
            code="invalid_request",
            message=f"Invalid booking request: check {', '.join(fields)}.",
            details={"fields": fields},
        )

    logger.error("Unhandled error mapped to 500: %r", exc)
    return ErrorResponse(status_code=500, code="internal_error", message=GENERIC_ERROR_MESSAGE)
