from datetime import date, datetime, time
from typing import Annotated

from pydantic import BaseModel, PlainSerializer

SlotTime = Annotated[time, PlainSerializer(lambda value: value.strftime("%H:%M"), return_type=str)]


class TimeSlot(BaseModel):
    id: int
    therapist_id: int
    slot_date: date
    start_time: SlotTime
    starts_at: datetime
    ends_at: datetime
    is_booked: bool

    class Config:
        from_attributes = True


class SlotView(BaseModel):
    time: SlotTime
    starts_at: datetime
    ends_at: datetime
    is_available: bool

    class Config:
        from_attributes = True


class DaySlots(BaseModel):
    therapist_id: int
    date: date
    slots: list[SlotView]


class Availability(BaseModel):
    therapist_id: int
    date: date
    time: str
    is_available: bool
