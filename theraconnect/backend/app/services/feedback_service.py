from __future__ import annotations

import logging

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..db import models
from . import notification_service
from .booking_service import get_booking
from .errors import InvalidStateError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)


def _completed_booking(booking: models.Booking) -> models.Booking:
    if booking.status != models.BookingStatus.completed:
        raise InvalidStateError("Session has not been completed yet")
    return booking


def refresh_therapist_rating(db: Session, therapist_id: int) -> float | None:
    average = db.scalar(
        select(func.avg(models.SessionFeedback.rating))
        .join(models.Booking, models.SessionFeedback.booking_id == models.Booking.id)
        .where(models.Booking.therapist_id == therapist_id)
    )
    therapist = db.get(models.Therapist, therapist_id)
    therapist.average_rating = round(float(average), 2) if average is not None else None
    return therapist.average_rating


def submit_feedback(
    db: Session,
    parent: models.Parent,
    booking_id: int,
    *,
    rating: int,
    comment: str | None = None,
    is_anonymous: bool = False,
) -> models.SessionFeedback:
    if not 1 <= rating <= 5:
        raise ValidationError("Rating must be between 1 and 5")
    booking = get_booking(db, booking_id)
    if booking.parent_id != parent.id:
        raise NotFoundError("Booking not found")
    _completed_booking(booking)
    if booking.feedback is not None:
        raise InvalidStateError("Feedback already submitted for this session")

    feedback = models.SessionFeedback(
        booking_id=booking.id,
        parent_id=parent.id,
        rating=rating,
        comment=comment,
        is_anonymous=is_anonymous,
    )
    db.add(feedback)
    try:
        db.flush()
        refresh_therapist_rating(db, booking.therapist_id)
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise InvalidStateError("Feedback already submitted for this session") from exc
    db.refresh(feedback)
    logger.info("Feedback submitted", extra={"booking_id": booking.id, "rating": rating})
    return feedback


def submit_session_report(
    db: Session,
    therapist: models.Therapist,
    booking_id: int,
    *,
    session_experience: str,
    child_performance: str | None = None,
    improvements: str | None = None,
    recommendations: str | None = None,
    next_steps: str | None = None,
) -> models.SessionReport:
    booking = get_booking(db, booking_id)
    if booking.therapist_id != therapist.id:
        raise NotFoundError("Booking not found")
    _completed_booking(booking)
    if booking.report is not None:
        raise InvalidStateError("Session report already exists for this session")

    report = models.SessionReport(
        booking_id=booking.id,
        therapist_id=therapist.id,
        session_experience=session_experience,
        child_performance=child_performance,
        improvements=improvements,
        recommendations=recommendations,
        next_steps=next_steps,
    )
    db.add(report)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise InvalidStateError("Session report already exists for this session") from exc
    db.refresh(report)

    notification_service.notify(
        db,
        user_id=booking.parent.user_id,
        message=(
            f"{therapist.name} has shared a session report for {booking.child.name}."
        ),
        type=models.NotificationType.session_report_ready,
    )
    return report


__all__ = ["refresh_therapist_rating", "submit_feedback", "submit_session_report"]
