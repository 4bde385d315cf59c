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
    Text,
    Time,
    UniqueConstraint,
    func,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from ..session import Base


class DemoBookingStatus(str, PyEnum):
    scheduled = "scheduled"
    completed = "completed"
    cancelled = "cancelled"


_ACTIVE_DEMO = text("status != 'cancelled'")


class DemoSlot(Base):
    __tablename__ = "demo_slots"
    __table_args__ = (
        UniqueConstraint("slot_date", "start_time", name="uq_demo_slot_date_time"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    slot_date: Mapped[date] = mapped_column(Date, index=True)
    start_time: Mapped[time] = mapped_column(Time, nullable=False)
    starts_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    bookings = relationship("DemoBooking", back_populates="demo_slot")


class DemoBooking(Base):
    __tablename__ = "demo_bookings"
    __table_args__ = (
        Index(
            "uq_demo_booking_active_slot",
            "demo_slot_id",
            unique=True,
            postgresql_where=_ACTIVE_DEMO,
            sqlite_where=_ACTIVE_DEMO,
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    demo_slot_id: Mapped[int] = mapped_column(ForeignKey("demo_slots.id", ondelete="RESTRICT"))
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    mobile: Mapped[str] = mapped_column(String(32), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    reason: Mapped[str | None] = mapped_column(Text)
    status: Mapped[DemoBookingStatus] = mapped_column(
        Enum(DemoBookingStatus), default=DemoBookingStatus.scheduled
    )
    user_query: Mapped[str | None] = mapped_column(Text)
    converted: Mapped[bool] = mapped_column(Boolean, default=False)
    additional_notes: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    demo_slot = relationship("DemoSlot", back_populates="bookings")
