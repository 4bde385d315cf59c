from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel

from ..models import LeaveType


class LeaveCreate(BaseModel):
    leave_date: date
    type: LeaveType = LeaveType.casual
    reason: str | None = None


class LeaveDecision(BaseModel):
    action: Literal["APPROVE", "REJECT"]
    admin_notes: str | None = None


class Leave(BaseModel):
    id: int
    therapist_id: int
    therapist_name: str | None = None
    leave_date: date
    type: str
    reason: str | None = None
    status: str
    admin_notes: str | None = None
    decided_at: datetime | None = None
    created_at: datetime

    class Config:
        from_attributes = True


class LeaveBalance(BaseModel):
    casual_remaining: int
    sick_remaining: int
    festive_remaining: int
    optional_remaining: int

    class Config:
        from_attributes = True
