"""Slot catalog and availability checks for therapist sessions.

A therapist activates a fixed set of daily start times once; every weekday
then carries one one-hour slot per activated time. Slot rows are only
materialized when a booking first references them.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Iterable

from sqlalchemy import exists, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from ..core import dates
from ..core.constants import MAX_ACTIVATED_TIMES, SLOT_DURATION
from ..db import models
from .errors import InvalidStateError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class SlotView:
    time: time
    starts_at: datetime
    ends_at: datetime
    is_available: bool


def coerce_time(value: str | time) -> time:
    try:
        return dates.parse_slot_time(value)
    except ValueError as exc:
        raise ValidationError(str(exc)) from exc


def get_bookable_therapist(db: Session, therapist_id: int) -> models.Therapist:
    therapist = db.execute(
        select(models.Therapist)
        .options(selectinload(models.Therapist.active_times))
        .where(models.Therapist.id == therapist_id)
    ).scalar_one_or_none()
    if therapist is None or therapist.status != models.TherapistStatus.active:
        raise NotFoundError("Therapist not found")
    if not therapist.active_times:
        raise NotFoundError("Therapist has no activated times")
    return therapist


def ensure_not_past(day: date) -> None:
    if day < dates.local_today():
        raise ValidationError("Date cannot be in the past")


def ensure_activated(therapist: models.Therapist, start: time) -> None:
    if start not in therapist.activated_times:
        raise ValidationError(
            f"Time {dates.format_slot_time(start)} is not one of the therapist's activated times"
        )


def activate_times(
    db: Session, therapist: models.Therapist, values: Iterable[str | time]
) -> list[time]:
    if therapist.active_times:
        raise InvalidStateError("Activated times are already set and cannot be changed")
    requested = sorted({coerce_time(value) for value in values})
    if not requested:
        raise ValidationError("At least one time must be activated")
    if len(requested) > MAX_ACTIVATED_TIMES:
        raise ValidationError(f"You can activate at most {MAX_ACTIVATED_TIMES} times")
    last_start = time(23, 0)
    for current in requested:
        if current > last_start:
            raise ValidationError(
                f"Time {dates.format_slot_time(current)} does not leave room for a one-hour session"
            )
    for previous, current in zip(requested, requested[1:]):
        gap = datetime.combine(date.min, current) - datetime.combine(date.min, previous)
        if gap < SLOT_DURATION:
            raise ValidationError(
                f"Times {dates.format_slot_time(previous)} and "
                f"{dates.format_slot_time(current)} overlap"
            )
    for value in requested:
        db.add(models.TherapistActiveTime(therapist_id=therapist.id, start_time=value))
    db.commit()
    db.expire(therapist, ["active_times"])
    logger.info(
        "Activated therapist times",
        extra={"therapist_id": therapist.id, "count": len(requested)},
    )
    return therapist.activated_times


def lock_therapist(db: Session, therapist_id: int) -> None:
    """Take the row lock that orders bookings against leave decisions.

    Both paths lock the therapist row first and the slot, leave and booking
    rows after it.
    """
    db.execute(
        select(models.Therapist.id)
        .where(models.Therapist.id == therapist_id)
        .with_for_update()
    )


def has_approved_leave(db: Session, therapist_id: int, day: date) -> bool:
    return bool(
        db.scalar(
            select(
                exists().where(
                    models.TherapistLeave.therapist_id == therapist_id,
                    models.TherapistLeave.leave_date == day,
                    models.TherapistLeave.status == models.LeaveStatus.approved,
                )
            )
        )
    )


def _booked_times(db: Session, therapist_id: int, day: date) -> set[time]:
    rows = db.execute(
        select(models.TimeSlot.start_time)
        .join(models.Booking, models.Booking.time_slot_id == models.TimeSlot.id)
        .where(
            models.TimeSlot.therapist_id == therapist_id,
            models.TimeSlot.slot_date == day,
            models.Booking.status != models.BookingStatus.cancelled,
        )
    ).scalars()
    return set(rows)


def is_available(db: Session, therapist_id: int, day: date, start: str | time) -> bool:
    therapist = get_bookable_therapist(db, therapist_id)
    slot_time = coerce_time(start)
    ensure_not_past(day)
    ensure_activated(therapist, slot_time)
    if not dates.is_weekday(day):
        return False
    starts_at, _ = dates.slot_bounds(day, slot_time)
    if starts_at <= dates.utc_now():
        return False
    if has_approved_leave(db, therapist.id, day):
        return False
    return slot_time not in _booked_times(db, therapist.id, day)


def get_day_slots(db: Session, therapist_id: int, day: date) -> list[SlotView]:
    therapist = get_bookable_therapist(db, therapist_id)
    ensure_not_past(day)
    if not dates.is_weekday(day):
        return []
    on_leave = has_approved_leave(db, therapist.id, day)
    taken = _booked_times(db, therapist.id, day)
    now = dates.utc_now()
    views = []
    for slot_time in therapist.activated_times:
        starts_at, ends_at = dates.slot_bounds(day, slot_time)
        views.append(
            SlotView(
                time=slot_time,
                starts_at=starts_at,
                ends_at=ends_at,
                is_available=not on_leave and slot_time not in taken and starts_at > now,
            )
        )
    return views


def get_or_create_slot(db: Session, therapist_id: int, day: date, start: time) -> models.TimeSlot:
    stmt = select(models.TimeSlot).where(
        models.TimeSlot.therapist_id == therapist_id,
        models.TimeSlot.slot_date == day,
        models.TimeSlot.start_time == start,
    )
    slot = db.execute(stmt).scalar_one_or_none()
    if slot is not None:
        return slot
    starts_at, ends_at = dates.slot_bounds(day, start)
    slot = models.TimeSlot(
        therapist_id=therapist_id,
        slot_date=day,
        start_time=start,
        starts_at=starts_at,
        ends_at=ends_at,
        is_booked=False,
    )
    db.add(slot)
    try:
        db.commit()
    except IntegrityError:
        # Another request materialized the same slot first.
        db.rollback()
        return db.execute(stmt).scalar_one()
    return slot


def preview_range(
    db: Session, therapist_id: int, start: str | time, days: Iterable[date]
) -> list[tuple[date, bool]]:
    """Advisory availability for several dates; booking stays authoritative."""

    therapist = get_bookable_therapist(db, therapist_id)
    slot_time = coerce_time(start)
    ensure_activated(therapist, slot_time)
    days = list(days)
    if not days:
        return []
    taken_days = set(
        db.execute(
            select(models.TimeSlot.slot_date)
            .join(models.Booking, models.Booking.time_slot_id == models.TimeSlot.id)
            .where(
                models.TimeSlot.therapist_id == therapist.id,
                models.TimeSlot.start_time == slot_time,
                models.TimeSlot.slot_date.between(min(days), max(days)),
                models.Booking.status != models.BookingStatus.cancelled,
            )
        ).scalars()
    )
    leave_days = set(
        db.execute(
            select(models.TherapistLeave.leave_date).where(
                models.TherapistLeave.therapist_id == therapist.id,
                models.TherapistLeave.status == models.LeaveStatus.approved,
                models.TherapistLeave.leave_date.between(min(days), max(days)),
            )
        ).scalars()
    )
    return [(day, day not in taken_days and day not in leave_days) for day in days]


__all__ = [
    "SlotView",
    "coerce_time",
    "get_bookable_therapist",
    "ensure_not_past",
    "ensure_activated",
    "activate_times",
    "has_approved_leave",
    "is_available",
    "get_day_slots",
    "get_or_create_slot",
    "preview_range",
]
