from datetime import date, datetime
from pydantic import BaseModel

from .slot import SlotTime, TimeSlot


class BookingCreate(BaseModel):
    child_id: int
    therapist_id: int
    date: date
    time: str


class BookingCancel(BaseModel):
    reason: str | None = None


class Booking(BaseModel):
    id: int
    parent_id: int
    child_id: int
    therapist_id: int
    recurring_booking_id: int | None = None
    status: str
    created_at: datetime
    canceled_at: datetime | None = None
    canceled_by: str | None = None
    cancellation_reason: str | None = None
    completed_at: datetime | None = None
    time_slot: TimeSlot

    class Config:
        from_attributes = True


class RecurringBookingCreate(BaseModel):
    child_id: int
    therapist_id: int
    time: str
    start_date: date


class RecurringBooking(BaseModel):
    id: int
    parent_id: int
    child_id: int
    therapist_id: int
    slot_time: SlotTime
    start_date: date
    end_date: date
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True


class SkippedDate(BaseModel):
    date: date
    reason: str

    class Config:
        from_attributes = True


class RecurringBookingResult(BaseModel):
    start_date: date
    end_date: date
    slot_time: SlotTime
    recurring_booking: RecurringBooking | None = None
    created: list[Booking]
    skipped: list[SkippedDate]

    class Config:
        from_attributes = True


class RecurringBookingSummary(BaseModel):
    recurring_booking: RecurringBooking
    total_sessions: int
    completed_sessions: int
    upcoming_sessions: int
    next_session_at: datetime | None = None

    class Config:
        from_attributes = True


class RecurringPreviewDay(BaseModel):
    date: date
    is_available: bool


class RecurringCancelResult(BaseModel):
    recurring_booking: RecurringBooking
    canceled_sessions: int


class VideoCredentials(BaseModel):
    sdk_key: str
    session_name: str
    signature: str
    user_name: str
    role: int
    expires_at: datetime

    class Config:
        from_attributes = True
