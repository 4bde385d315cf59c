from datetime import datetime
from pydantic import BaseModel, Field

from .slot import SlotTime


class Therapist(BaseModel):
    id: int
    name: str
    phone: str | None = None
    specialization: str
    experience_years: int
    base_cost_per_session: float
    status: str
    average_rating: float | None = None
    activated_times: list[SlotTime] = []
    created_at: datetime

    class Config:
        from_attributes = True


class TherapistUpdate(BaseModel):
    name: str | None = None
    phone: str | None = None
    specialization: str | None = None
    experience_years: int | None = Field(default=None, ge=0)
    base_cost_per_session: float | None = Field(default=None, ge=0)


class ActiveTimesUpdate(BaseModel):
    times: list[str] = Field(min_length=1, description="Daily start times, HH:MM")


class TherapistStatusUpdate(BaseModel):
    status: str
