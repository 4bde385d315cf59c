from datetime import datetime, time
from enum import Enum as PyEnum
from sqlalchemy import (
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Time,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from ..session import Base


class TherapistStatus(str, PyEnum):
    pending = "pending"
    active = "active"
    inactive = "inactive"
    suspended = "suspended"


class Therapist(Base):
    __tablename__ = "therapists"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), unique=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[str | None] = mapped_column(String(32))
    specialization: Mapped[str] = mapped_column(String(128), nullable=False)
    experience_years: Mapped[int] = mapped_column(Integer, default=0)
    base_cost_per_session: Mapped[float] = mapped_column(Numeric(10, 2), default=0)
    status: Mapped[TherapistStatus] = mapped_column(
        Enum(TherapistStatus), default=TherapistStatus.pending
    )
    average_rating: Mapped[float | None] = mapped_column(Float)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    user = relationship("User", back_populates="therapist_profile")
    active_times = relationship(
        "TherapistActiveTime",
        back_populates="therapist",
        order_by="TherapistActiveTime.start_time",
        cascade="all, delete-orphan",
    )

    @property
    def activated_times(self) -> list[time]:
        return [entry.start_time for entry in self.active_times]


class TherapistActiveTime(Base):
    __tablename__ = "therapist_active_times"
    __table_args__ = (
        UniqueConstraint("therapist_id", "start_time", name="uq_therapist_active_time"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    therapist_id: Mapped[int] = mapped_column(ForeignKey("therapists.id", ondelete="CASCADE"))
    start_time: Mapped[time] = mapped_column(Time, nullable=False)

    therapist = relationship("Therapist", back_populates="active_times")
