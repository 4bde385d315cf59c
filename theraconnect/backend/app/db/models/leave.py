from datetime import date, datetime
from enum import Enum as PyEnum
from sqlalchemy import Date, DateTime, Enum, ForeignKey, Integer, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship
from ..session import Base


class LeaveType(str, PyEnum):
    casual = "casual"
    sick = "sick"
    festive = "festive"
    optional = "optional"


class LeaveStatus(str, PyEnum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"


class TherapistLeave(Base):
    __tablename__ = "therapist_leaves"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    therapist_id: Mapped[int] = mapped_column(ForeignKey("therapists.id", ondelete="CASCADE"), index=True)
    leave_date: Mapped[date] = mapped_column(Date, index=True)
    type: Mapped[LeaveType] = mapped_column(Enum(LeaveType), default=LeaveType.casual)
    reason: Mapped[str | None] = mapped_column(Text)
    status: Mapped[LeaveStatus] = mapped_column(Enum(LeaveStatus), default=LeaveStatus.pending)
    admin_notes: Mapped[str | None] = mapped_column(Text)
    decided_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    decided_by: Mapped[int | None] = mapped_column(Integer)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    therapist = relationship("Therapist")

    @property
    def therapist_name(self) -> str | None:
        return self.therapist.name if self.therapist else None
