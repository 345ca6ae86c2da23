from barber_booking.scheduling.business_hours import BusinessHoursPolicy, is_within_business_hours
from barber_booking.scheduling.conflicts import ConflictResult, find_conflict
from barber_booking.scheduling.intervals import compute_end_time, intervals_overlap
from barber_booking.scheduling.scheduler import BookingScheduler, create_scheduler
from barber_booking.scheduling.state_machine import (
    BookingRequestStateMachine,
    BookingState,
    BookingTrigger,
)

__all__ = [
    "BookingScheduler",
    "create_scheduler",
    "BusinessHoursPolicy",
    "is_within_business_hours",
    "ConflictResult",
    "find_conflict",
    "compute_end_time",
    "intervals_overlap",
    "BookingRequestStateMachine",
    "BookingState",
    "BookingTrigger",
]
