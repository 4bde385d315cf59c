"""Common application-wide constants."""

from datetime import timedelta

# Every bookable slot lasts one hour
SLOT_DURATION = timedelta(hours=1)

# A therapist offers at most this many sessions per day
MAX_ACTIVATED_TIMES = 10

# Working days for slots and recurring bookings (Monday=0 ... Friday=4)
WORKING_WEEKDAYS = frozenset(range(5))

# Yearly leave allowances per type; optional leave is limited per month
LEAVE_ALLOWANCES = {
    "casual": 5,
    "sick": 5,
    "festive": 5,
}
OPTIONAL_LEAVES_PER_MONTH = 1

# Metadata for booking cancellations
THERAPIST_LEAVE_REASON = "therapist_leave"
RECURRING_CANCELED_REASON = "recurring_booking_canceled"

SLOT_CONFLICT_MESSAGE = "Slot already booked"
THERAPIST_ON_LEAVE_MESSAGE = "Therapist is on leave on this date"

# Free introductory calls: at most this many call times per weekday
MAX_DEMO_TIMES = 8
DEMO_SLOT_CONFLICT_MESSAGE = "This time slot is already booked"


__all__ = [
    "SLOT_DURATION",
    "MAX_ACTIVATED_TIMES",
    "WORKING_WEEKDAYS",
    "LEAVE_ALLOWANCES",
    "OPTIONAL_LEAVES_PER_MONTH",
    "THERAPIST_LEAVE_REASON",
    "RECURRING_CANCELED_REASON",
    "SLOT_CONFLICT_MESSAGE",
    "THERAPIST_ON_LEAVE_MESSAGE",
    "MAX_DEMO_TIMES",
    "DEMO_SLOT_CONFLICT_MESSAGE",
]
