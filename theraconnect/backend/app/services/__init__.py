from . import (
    account_service,
    demo_service,
    analytics_service,
    availability_service,
    booking_service,
    feedback_service,
    leave_service,
    notification_service,
    parent_service,
    recurring_service,
    therapist_service,
    video_service,
)
__all__ = [
    "account_service",
    "demo_service",
    "analytics_service",
    "availability_service",
    "booking_service",
    "feedback_service",
    "leave_service",
    "notification_service",
    "parent_service",
    "recurring_service",
    "therapist_service",
    "video_service",
]
