from datetime import date, datetime, time
from enum import Enum as PyEnum
from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Time,
    func,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from ..session import Base


class BookingStatus(str, PyEnum):
    scheduled = "scheduled"
    completed = "completed"
    cancelled = "cancelled"


_ACTIVE_BOOKING = text("status != 'cancelled'")


class Booking(Base):
    __tablename__ = "bookings"
    __table_args__ = (
        Index(
            "uq_booking_active_slot",
            "time_slot_id",
            unique=True,
            postgresql_where=_ACTIVE_BOOKING,
            sqlite_where=_ACTIVE_BOOKING,
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    parent_id: Mapped[int] = mapped_column(ForeignKey("parents.id", ondelete="CASCADE"), index=True)
    child_id: Mapped[int] = mapped_column(ForeignKey("children.id", ondelete="CASCADE"))
    therapist_id: Mapped[int] = mapped_column(ForeignKey("therapists.id", ondelete="CASCADE"), index=True)
    time_slot_id: Mapped[int] = mapped_column(ForeignKey("time_slots.id", ondelete="CASCADE"))
    recurring_booking_id: Mapped[int | None] = mapped_column(
        ForeignKey("recurring_bookings.id", ondelete="SET NULL"), index=True
    )
    status: Mapped[BookingStatus] = mapped_column(Enum(BookingStatus), default=BookingStatus.scheduled)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    canceled_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    canceled_by: Mapped[str | None] = mapped_column(String(64))
    cancellation_reason: Mapped[str | None] = mapped_column(String(255))
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    reminder_sent_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    parent = relationship("Parent")
    child = relationship("Child")
    therapist = relationship("Therapist")
    time_slot = relationship("TimeSlot", back_populates="bookings")
    recurring_booking = relationship("RecurringBooking", back_populates="bookings")
    feedback = relationship("SessionFeedback", back_populates="booking", uselist=False)
    report = relationship("SessionReport", back_populates="booking", uselist=False)


class RecurringBooking(Base):
    __tablename__ = "recurring_bookings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    parent_id: Mapped[int] = mapped_column(ForeignKey("parents.id", ondelete="CASCADE"), index=True)
    child_id: Mapped[int] = mapped_column(ForeignKey("children.id", ondelete="CASCADE"))
    therapist_id: Mapped[int] = mapped_column(ForeignKey("therapists.id", ondelete="CASCADE"))
    slot_time: Mapped[time] = mapped_column(Time, nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    child = relationship("Child")
    therapist = relationship("Therapist")
    bookings = relationship("Booking", back_populates="recurring_booking")
