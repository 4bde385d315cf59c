"""Monthly recurring bookings.

A recurring request books the same daily time on every weekday of a
one-month window. Each date is reserved in its own transaction, so a taken
slot on one date never prevents the others from being booked.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, time

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from ..core import dates
from ..core.constants import RECURRING_CANCELED_REASON
from ..db import models
from . import availability_service, booking_service, notification_service
from .errors import InvalidStateError, NotFoundError, SlotConflictError, ValidationError

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class SkippedDate:
    date: date
    reason: str


@dataclass(slots=True)
class RecurringBookingResult:
    start_date: date
    end_date: date
    slot_time: time
    recurring_booking: models.RecurringBooking | None
    created: list[models.Booking] = field(default_factory=list)
    skipped: list[SkippedDate] = field(default_factory=list)


@dataclass(slots=True)
class RecurringBookingSummary:
    recurring_booking: models.RecurringBooking
    total_sessions: int
    completed_sessions: int
    upcoming_sessions: int
    next_session_at: datetime | None


def _validate_start(start_date: date) -> None:
    if not dates.is_weekday(start_date):
        raise ValidationError("Recurring bookings must start on a weekday (Mon-Fri)")
    if start_date < dates.local_today():
        raise ValidationError("Start date cannot be in the past")


def _discard_group(db: Session, recurring_id: int) -> None:
    group = db.get(models.RecurringBooking, recurring_id)
    if group is not None:
        db.delete(group)
        db.commit()


def preview_monthly_availability(
    db: Session, therapist_id: int, start: str | time, start_date: date
) -> list[tuple[date, bool]]:
    _validate_start(start_date)
    end_date = dates.recurring_end_date(start_date)
    return availability_service.preview_range(
        db, therapist_id, start, dates.iter_weekdays(start_date, end_date)
    )


def create_recurring_bookings(
    db: Session,
    parent: models.Parent,
    child_id: int,
    therapist_id: int,
    start: str | time,
    start_date: date,
) -> RecurringBookingResult:
    child = booking_service.get_parent_child(db, parent, child_id)
    therapist = availability_service.get_bookable_therapist(db, therapist_id)
    slot_time = availability_service.coerce_time(start)
    availability_service.ensure_activated(therapist, slot_time)
    _validate_start(start_date)
    end_date = dates.recurring_end_date(start_date)

    recurring = models.RecurringBooking(
        parent_id=parent.id,
        child_id=child.id,
        therapist_id=therapist.id,
        slot_time=slot_time,
        start_date=start_date,
        end_date=end_date,
        is_active=True,
    )
    db.add(recurring)
    db.commit()
    recurring_id = recurring.id

    result = RecurringBookingResult(
        start_date=start_date,
        end_date=end_date,
        slot_time=slot_time,
        recurring_booking=recurring,
    )
    now = dates.utc_now()
    try:
        for day in dates.iter_weekdays(start_date, end_date):
            starts_at, _ = dates.slot_bounds(day, slot_time)
            if starts_at <= now:
                result.skipped.append(
                    SkippedDate(date=day, reason="Slot start time is in the past")
                )
                continue
            try:
                booking = booking_service.reserve_slot(
                    db,
                    parent=parent,
                    child=child,
                    therapist=therapist,
                    day=day,
                    slot_time=slot_time,
                    recurring_booking_id=recurring_id,
                )
            except SlotConflictError as exc:
                result.skipped.append(SkippedDate(date=day, reason=str(exc)))
                continue
            result.created.append(booking)
    except Exception:
        db.rollback()
        if not result.created:
            _discard_group(db, recurring_id)
        logger.exception(
            "Recurring booking interrupted",
            extra={"recurring_booking_id": recurring_id, "created": len(result.created)},
        )
        raise

    if not result.created:
        _discard_group(db, recurring_id)
        result.recurring_booking = None
        logger.info(
            "Recurring booking produced no sessions",
            extra={"therapist_id": therapist.id, "skipped": len(result.skipped)},
        )
        return result

    db.refresh(recurring)
    logger.info(
        "Recurring booking created",
        extra={
            "recurring_booking_id": recurring_id,
            "created": len(result.created),
            "skipped": len(result.skipped),
        },
    )
    window = (
        f"{notification_service.format_day(start_date)} - "
        f"{notification_service.format_day(end_date)}"
    )
    notification_service.notify(
        db,
        user_id=parent.user_id,
        message=(
            f"{len(result.created)} sessions for {child.name} at "
            f"{dates.format_slot_time(slot_time)} are confirmed for {window}."
        ),
        type=models.NotificationType.booking_confirmed,
    )
    notification_service.notify(
        db,
        user_id=therapist.user_id,
        message=(
            f"You have {len(result.created)} new sessions with {child.name} at "
            f"{dates.format_slot_time(slot_time)} for {window}."
        ),
        type=models.NotificationType.booking_confirmed,
    )
    return result


def _get_owned_recurring(
    db: Session, parent: models.Parent, recurring_booking_id: int
) -> models.RecurringBooking:
    recurring = db.execute(
        select(models.RecurringBooking)
        .options(
            selectinload(models.RecurringBooking.bookings).selectinload(models.Booking.time_slot)
        )
        .where(models.RecurringBooking.id == recurring_booking_id)
    ).scalar_one_or_none()
    if recurring is None or recurring.parent_id != parent.id:
        raise NotFoundError("Recurring booking not found")
    return recurring


def list_recurring_bookings(db: Session, parent: models.Parent) -> list[RecurringBookingSummary]:
    groups = (
        db.execute(
            select(models.RecurringBooking)
            .options(
                selectinload(models.RecurringBooking.bookings).selectinload(
                    models.Booking.time_slot
                ),
                selectinload(models.RecurringBooking.child),
                selectinload(models.RecurringBooking.therapist),
            )
            .where(models.RecurringBooking.parent_id == parent.id)
            .order_by(models.RecurringBooking.created_at.desc(), models.RecurringBooking.id.desc())
        )
        .scalars()
        .all()
    )
    now = dates.utc_now()
    summaries = []
    for group in groups:
        upcoming = sorted(
            dates.as_utc(booking.time_slot.starts_at)
            for booking in group.bookings
            if booking.status == models.BookingStatus.scheduled
            and dates.as_utc(booking.time_slot.starts_at) > now
        )
        summaries.append(
            RecurringBookingSummary(
                recurring_booking=group,
                total_sessions=len(group.bookings),
                completed_sessions=sum(
                    1 for booking in group.bookings
                    if booking.status == models.BookingStatus.completed
                ),
                upcoming_sessions=len(upcoming),
                next_session_at=upcoming[0] if upcoming else None,
            )
        )
    return summaries


def cancel_recurring_booking(
    db: Session, parent: models.Parent, recurring_booking_id: int
) -> tuple[models.RecurringBooking, int]:
    """Cancel every future session of the group; return the group and the count."""

    recurring = _get_owned_recurring(db, parent, recurring_booking_id)
    if not recurring.is_active:
        raise InvalidStateError("This recurring booking is already cancelled")
    now = dates.utc_now()
    canceled = 0
    for booking in recurring.bookings:
        if booking.status != models.BookingStatus.scheduled:
            continue
        if dates.as_utc(booking.time_slot.starts_at) <= now:
            continue
        booking.status = models.BookingStatus.cancelled
        booking.canceled_at = now
        booking.canceled_by = models.UserRole.parent.value
        booking.cancellation_reason = RECURRING_CANCELED_REASON
        booking.time_slot.is_booked = False
        canceled += 1
    recurring.is_active = False
    db.commit()
    db.refresh(recurring)
    logger.info(
        "Recurring booking cancelled",
        extra={"recurring_booking_id": recurring.id, "canceled": canceled},
    )
    if canceled:
        notification_service.notify(
            db,
            user_id=recurring.therapist.user_id,
            message=(
                f"{canceled} upcoming sessions with {recurring.child.name} at "
                f"{dates.format_slot_time(recurring.slot_time)} have been cancelled by the parent."
            ),
            type=models.NotificationType.booking_cancelled,
        )
    return recurring, canceled


__all__ = [
    "SkippedDate",
    "RecurringBookingResult",
    "RecurringBookingSummary",
    "preview_monthly_availability",
    "create_recurring_bookings",
    "list_recurring_bookings",
    "cancel_recurring_booking",
]
