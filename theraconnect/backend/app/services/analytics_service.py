from __future__ import annotations

from datetime import datetime, timedelta, timezone

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from ..core import dates
from ..db import models


def _count(db: Session, stmt) -> int:
    return int(db.scalar(stmt) or 0)


def _by_status(db: Session, column, enum_cls, *filters) -> dict[str, int]:
    rows = db.execute(select(column, func.count()).where(*filters).group_by(column)).all()
    counts = {member.value: 0 for member in enum_cls}
    for status, total in rows:
        counts[status.value] = int(total)
    return counts


def admin_summary(db: Session) -> dict:
    today = dates.local_today()
    bookings = _by_status(db, models.Booking.status, models.BookingStatus)
    finished = bookings["completed"] + bookings["cancelled"]
    completion_rate = (bookings["completed"] / finished) * 100 if finished else 0.0
    average_rating = db.scalar(select(func.avg(models.SessionFeedback.rating)))
    return {
        "parents": _count(db, select(func.count(models.Parent.id))),
        "children": _count(db, select(func.count(models.Child.id))),
        "therapists": _by_status(db, models.Therapist.status, models.TherapistStatus),
        "bookings": bookings,
        "sessions_today": _count(
            db,
            select(func.count(models.Booking.id))
            .join(models.TimeSlot, models.Booking.time_slot_id == models.TimeSlot.id)
            .where(
                models.TimeSlot.slot_date == today,
                models.Booking.status != models.BookingStatus.cancelled,
            ),
        ),
        "pending_leaves": _count(
            db,
            select(func.count(models.TherapistLeave.id)).where(
                models.TherapistLeave.status == models.LeaveStatus.pending
            ),
        ),
        "completion_rate": completion_rate,
        "average_rating": round(float(average_rating), 2) if average_rating is not None else None,
    }


def therapist_summary(db: Session, therapist: models.Therapist) -> dict:
    now = dates.utc_now()
    bookings = _by_status(
        db,
        models.Booking.status,
        models.BookingStatus,
        models.Booking.therapist_id == therapist.id,
    )
    upcoming = _count(
        db,
        select(func.count(models.Booking.id))
        .join(models.TimeSlot, models.Booking.time_slot_id == models.TimeSlot.id)
        .where(
            models.Booking.therapist_id == therapist.id,
            models.Booking.status == models.BookingStatus.scheduled,
            models.TimeSlot.starts_at > now,
        ),
    )
    year_start = datetime(now.year, 1, 1, tzinfo=timezone.utc).date()
    leave_days = _count(
        db,
        select(func.count(models.TherapistLeave.id)).where(
            models.TherapistLeave.therapist_id == therapist.id,
            models.TherapistLeave.status == models.LeaveStatus.approved,
            models.TherapistLeave.leave_date >= year_start,
            models.TherapistLeave.leave_date < year_start + timedelta(days=366),
        ),
    )
    return {
        "total_sessions": sum(bookings.values()),
        "completed_sessions": bookings["completed"],
        "cancelled_sessions": bookings["cancelled"],
        "upcoming_sessions": upcoming,
        "average_rating": therapist.average_rating,
        "approved_leave_days": leave_days,
    }


__all__ = ["admin_summary", "therapist_summary"]
