from datetime import datetime
from enum import Enum as PyEnum
from sqlalchemy import Boolean, DateTime, Enum, ForeignKey, Integer, Text, func
from sqlalchemy.orm import Mapped, mapped_column
from ..session import Base


class NotificationType(str, PyEnum):
    booking_confirmed = "booking_confirmed"
    booking_cancelled = "booking_cancelled"
    session_cancelled_by_leave = "session_cancelled_by_leave"
    session_completed = "session_completed"
    session_reminder = "session_reminder"
    session_report_ready = "session_report_ready"
    leave_request_submitted = "leave_request_submitted"
    leave_decided = "leave_decided"
    therapist_account_approved = "therapist_account_approved"
    demo_booked = "demo_booked"


class NotificationStatus(str, PyEnum):
    pending = "pending"
    sent = "sent"
    failed = "failed"


class Notification(Base):
    __tablename__ = "notifications"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)
    type: Mapped[NotificationType] = mapped_column(Enum(NotificationType))
    message: Mapped[str] = mapped_column(Text, nullable=False)
    send_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), index=True)
    status: Mapped[NotificationStatus] = mapped_column(
        Enum(NotificationStatus), default=NotificationStatus.pending
    )
    sent_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    is_read: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
