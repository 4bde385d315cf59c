from __future__ import annotations

import logging
from datetime import date, time

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from ..core import dates
from ..core.constants import SLOT_CONFLICT_MESSAGE, THERAPIST_ON_LEAVE_MESSAGE
from ..db import models
from . import availability_service, notification_service
from .errors import InvalidStateError, NotFoundError, SlotConflictError, ValidationError

logger = logging.getLogger(__name__)


def get_parent_child(db: Session, parent: models.Parent, child_id: int) -> models.Child:
    child = db.execute(
        select(models.Child).where(
            models.Child.id == child_id,
            models.Child.parent_id == parent.id,
        )
    ).scalar_one_or_none()
    if child is None:
        raise NotFoundError("Child not found or does not belong to this parent")
    return child


def _check_bookable_day(therapist: models.Therapist, day: date, slot_time: time) -> None:
    availability_service.ensure_not_past(day)
    if not dates.is_weekday(day):
        raise ValidationError("Sessions can only be booked on weekdays")
    availability_service.ensure_activated(therapist, slot_time)
    starts_at, _ = dates.slot_bounds(day, slot_time)
    if starts_at <= dates.utc_now():
        raise ValidationError("Slot start time is in the past")


def reserve_slot(
    db: Session,
    *,
    parent: models.Parent,
    child: models.Child,
    therapist: models.Therapist,
    day: date,
    slot_time: time,
    recurring_booking_id: int | None = None,
) -> models.Booking:
    """Reserve one slot as a single transaction; raise ``SlotConflictError`` on a lost race.

    The caller has already validated ownership, the date and the time.
    """

    slot = availability_service.get_or_create_slot(db, therapist.id, day, slot_time)
    try:
        # held until commit so a concurrent leave approval sees this booking
        availability_service.lock_therapist(db, therapist.id)
        claimed = db.execute(
            update(models.TimeSlot)
            .where(models.TimeSlot.id == slot.id, models.TimeSlot.is_booked.is_(False))
            .values(is_booked=True)
            .execution_options(synchronize_session=False)
        )
        if claimed.rowcount != 1:
            raise SlotConflictError(SLOT_CONFLICT_MESSAGE)
        if availability_service.has_approved_leave(db, therapist.id, day):
            raise SlotConflictError(THERAPIST_ON_LEAVE_MESSAGE)
        booking = models.Booking(
            parent_id=parent.id,
            child_id=child.id,
            therapist_id=therapist.id,
            time_slot_id=slot.id,
            recurring_booking_id=recurring_booking_id,
            status=models.BookingStatus.scheduled,
        )
        db.add(booking)
        db.commit()
    except SlotConflictError:
        db.rollback()
        raise
    except IntegrityError as exc:
        db.rollback()
        constraint = getattr(getattr(exc.orig, "diag", None), "constraint_name", "")
        if constraint in ("", "uq_booking_active_slot"):
            raise SlotConflictError(SLOT_CONFLICT_MESSAGE) from exc
        raise
    db.refresh(slot)
    logger.info(
        "Slot reserved",
        extra={"booking_id": booking.id, "therapist_id": therapist.id, "slot_id": slot.id},
    )
    return booking


def book_slot(
    db: Session,
    parent: models.Parent,
    child_id: int,
    therapist_id: int,
    day: date,
    start: str | time,
) -> models.Booking:
    child = get_parent_child(db, parent, child_id)
    therapist = availability_service.get_bookable_therapist(db, therapist_id)
    slot_time = availability_service.coerce_time(start)
    _check_bookable_day(therapist, day, slot_time)

    booking = reserve_slot(
        db,
        parent=parent,
        child=child,
        therapist=therapist,
        day=day,
        slot_time=slot_time,
    )

    when = notification_service.format_session(booking.time_slot.starts_at)
    notification_service.notify(
        db,
        user_id=therapist.user_id,
        message=f"You have a new booking with {child.name} on {when}.",
        type=models.NotificationType.booking_confirmed,
    )
    notification_service.notify(
        db,
        user_id=parent.user_id,
        message=f"Your booking for {child.name} is confirmed for {when}.",
        type=models.NotificationType.booking_confirmed,
    )
    return booking


def get_booking(db: Session, booking_id: int) -> models.Booking:
    booking = db.execute(
        select(models.Booking)
        .options(
            selectinload(models.Booking.time_slot),
            selectinload(models.Booking.child),
            selectinload(models.Booking.parent),
            selectinload(models.Booking.therapist),
        )
        .where(models.Booking.id == booking_id)
    ).scalar_one_or_none()
    if booking is None:
        raise NotFoundError("Booking not found")
    return booking


def get_booking_for_user(db: Session, booking_id: int, user: models.User) -> models.Booking:
    booking = get_booking(db, booking_id)
    if user.role == models.UserRole.admin:
        return booking
    if user.role == models.UserRole.parent and booking.parent.user_id == user.id:
        return booking
    if user.role == models.UserRole.therapist and booking.therapist.user_id == user.id:
        return booking
    raise NotFoundError("Booking not found")


def _release(booking: models.Booking, *, actor: str, reason: str | None) -> None:
    booking.status = models.BookingStatus.cancelled
    booking.canceled_at = dates.utc_now()
    booking.canceled_by = actor
    booking.cancellation_reason = reason
    booking.time_slot.is_booked = False


def cancel_booking(
    db: Session,
    booking: models.Booking,
    *,
    actor: models.User,
    reason: str | None = None,
) -> models.Booking:
    if booking.status != models.BookingStatus.scheduled:
        raise InvalidStateError("Only scheduled bookings can be cancelled")
    _release(booking, actor=actor.role.value, reason=reason)
    db.commit()
    db.refresh(booking)
    logger.info("Booking cancelled", extra={"booking_id": booking.id, "actor": actor.id})

    when = notification_service.format_session(booking.time_slot.starts_at)
    recipients = {booking.parent.user_id, booking.therapist.user_id} - {actor.id}
    for user_id in recipients:
        notification_service.notify(
            db,
            user_id=user_id,
            message=f"The session for {booking.child.name} on {when} has been cancelled.",
            type=models.NotificationType.booking_cancelled,
        )
    return booking


def complete_session(db: Session, booking: models.Booking) -> models.Booking:
    if booking.status != models.BookingStatus.scheduled:
        raise InvalidStateError("Session can only be completed if it was scheduled")
    booking.status = models.BookingStatus.completed
    booking.completed_at = dates.utc_now()
    db.commit()
    db.refresh(booking)

    notification_service.notify(
        db,
        user_id=booking.parent.user_id,
        message=(
            f"Session with {booking.therapist.name} for {booking.child.name} has been "
            "completed. Please provide your feedback."
        ),
        type=models.NotificationType.session_completed,
    )
    notification_service.notify(
        db,
        user_id=booking.therapist.user_id,
        message=(
            f"Session with {booking.child.name} has been completed. "
            "Please create a session report."
        ),
        type=models.NotificationType.session_completed,
    )
    return booking


def list_bookings_for_user(
    db: Session,
    user: models.User,
    *,
    status: models.BookingStatus | None = None,
) -> list[models.Booking]:
    stmt = (
        select(models.Booking)
        .join(models.TimeSlot, models.Booking.time_slot_id == models.TimeSlot.id)
        .options(
            selectinload(models.Booking.time_slot),
            selectinload(models.Booking.child),
            selectinload(models.Booking.therapist),
        )
    )
    if user.role == models.UserRole.parent:
        stmt = stmt.join(models.Parent, models.Booking.parent_id == models.Parent.id).where(
            models.Parent.user_id == user.id
        )
    elif user.role == models.UserRole.therapist:
        stmt = stmt.join(
            models.Therapist, models.Booking.therapist_id == models.Therapist.id
        ).where(models.Therapist.user_id == user.id)
    if status is not None:
        stmt = stmt.where(models.Booking.status == status)
    stmt = stmt.order_by(models.TimeSlot.starts_at.desc())
    return list(db.execute(stmt).scalars().all())


__all__ = [
    "get_parent_child",
    "reserve_slot",
    "book_slot",
    "get_booking",
    "get_booking_for_user",
    "cancel_booking",
    "complete_session",
    "list_bookings_for_user",
]
