from datetime import date, datetime

from pydantic import BaseModel, Field

from ..models import DemoBookingStatus
from .slot import SlotTime


class DemoSlotView(BaseModel):
    id: int
    date: date
    time: SlotTime
    starts_at: datetime
    local_time: SlotTime

    class Config:
        from_attributes = True


class DemoDay(BaseModel):
    date: date
    slots: list[DemoSlotView]

    class Config:
        from_attributes = True


class AdminDemoSlot(BaseModel):
    id: int
    date: date
    time: SlotTime
    is_active: bool
    active_bookings: int

    class Config:
        from_attributes = True


class DemoMonthSlots(BaseModel):
    year: int
    month: int = Field(ge=1, le=12)
    times: list[str] = Field(min_length=1)


class DemoSlot(BaseModel):
    id: int
    slot_date: date
    start_time: SlotTime
    starts_at: datetime

    class Config:
        from_attributes = True


class DemoBookingCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    mobile: str = Field(min_length=5, max_length=32)
    email: str = Field(min_length=3, max_length=255)
    reason: str | None = None
    date: date
    time: str


class DemoBookingUpdate(BaseModel):
    status: DemoBookingStatus | None = None
    user_query: str | None = None
    converted: bool | None = None
    additional_notes: str | None = None


class DemoBooking(BaseModel):
    id: int
    name: str
    mobile: str
    email: str
    reason: str | None = None
    status: str
    user_query: str | None = None
    converted: bool
    additional_notes: str | None = None
    created_at: datetime
    demo_slot: DemoSlot

    class Config:
        from_attributes = True
