from pydantic import BaseModel


class AdminAnalytics(BaseModel):
    parents: int
    children: int
    therapists: dict[str, int]
    bookings: dict[str, int]
    sessions_today: int
    pending_leaves: int
    completion_rate: float
    average_rating: float | None = None


class TherapistAnalytics(BaseModel):
    total_sessions: int
    completed_sessions: int
    cancelled_sessions: int
    upcoming_sessions: int
    average_rating: float | None = None
    approved_leave_days: int
