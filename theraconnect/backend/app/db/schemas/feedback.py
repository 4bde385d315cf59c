from datetime import datetime
from pydantic import BaseModel, Field


class FeedbackCreate(BaseModel):
    rating: int = Field(ge=1, le=5)
    comment: str | None = None
    is_anonymous: bool = False


class Feedback(FeedbackCreate):
    id: int
    booking_id: int
    created_at: datetime

    class Config:
        from_attributes = True


class SessionReportCreate(BaseModel):
    session_experience: str = Field(min_length=1)
    child_performance: str | None = None
    improvements: str | None = None
    recommendations: str | None = None
    next_steps: str | None = None


class SessionReport(SessionReportCreate):
    id: int
    booking_id: int
    therapist_id: int
    created_at: datetime

    class Config:
        from_attributes = True
