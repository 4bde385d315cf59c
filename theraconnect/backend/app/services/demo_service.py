"""Free introductory calls.

Admins publish the daily call times for a month; prospective families pick
one of the remaining weekday slots without creating an account.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from typing import Iterable
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from sqlalchemy import and_, exists, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from ..core import dates
from ..core.constants import DEMO_SLOT_CONFLICT_MESSAGE, MAX_DEMO_TIMES
from ..db import models
from . import notification_service
from .availability_service import coerce_time
from .errors import InvalidStateError, NotFoundError, SlotConflictError, ValidationError

logger = logging.getLogger(__name__)

_ACTIVE_DEMO = models.DemoBooking.status != models.DemoBookingStatus.cancelled


@dataclass(slots=True)
class DemoSlotView:
    id: int
    date: date
    time: time
    starts_at: datetime
    local_time: time


@dataclass(slots=True)
class DemoDay:
    date: date
    slots: list[DemoSlotView] = field(default_factory=list)


@dataclass(slots=True)
class AdminDemoSlot:
    id: int
    date: date
    time: time
    is_active: bool
    active_bookings: int


def _month(year: int | None, month: int | None) -> tuple[date, date]:
    today = dates.local_today()
    year = year or today.year
    month = month or today.month
    if not 1 <= month <= 12:
        raise ValidationError("Month must be between 1 and 12")
    return dates.month_bounds(year, month)


def _viewer_timezone(name: str | None) -> ZoneInfo:
    if not name:
        return dates.service_timezone()
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ValidationError(f"Unknown time zone {name!r}") from exc


def list_month_slots(
    db: Session, year: int | None = None, month: int | None = None
) -> list[AdminDemoSlot]:
    first, last = _month(year, month)
    rows = db.execute(
        select(models.DemoSlot, func.count(models.DemoBooking.id))
        .outerjoin(
            models.DemoBooking,
            and_(models.DemoBooking.demo_slot_id == models.DemoSlot.id, _ACTIVE_DEMO),
        )
        .where(models.DemoSlot.slot_date.between(first, last))
        .group_by(models.DemoSlot.id)
        .order_by(models.DemoSlot.slot_date, models.DemoSlot.start_time)
    ).all()
    return [
        AdminDemoSlot(
            id=slot.id,
            date=slot.slot_date,
            time=slot.start_time,
            is_active=slot.is_active,
            active_bookings=int(count),
        )
        for slot, count in rows
    ]


def set_month_slots(
    db: Session, year: int, month: int, times: Iterable[str | time]
) -> list[AdminDemoSlot]:
    """Publish ``times`` on every weekday of the month.

    Slots for times no longer offered are removed, or only deactivated when
    a call has ever been booked on them.
    """

    first, last = _month(year, month)
    offered = sorted({coerce_time(value) for value in times})
    if not offered:
        raise ValidationError("At least one call time is required")
    if len(offered) > MAX_DEMO_TIMES:
        raise ValidationError(f"At most {MAX_DEMO_TIMES} call times per day")

    existing = db.execute(
        select(models.DemoSlot).where(models.DemoSlot.slot_date.between(first, last))
    ).scalars().all()
    booked_ids = set(
        db.execute(
            select(models.DemoBooking.demo_slot_id).where(
                models.DemoBooking.demo_slot_id.in_([slot.id for slot in existing])
            )
        ).scalars()
    )

    kept: set[tuple[date, time]] = set()
    removed = 0
    for slot in existing:
        if slot.start_time in offered:
            slot.is_active = True
            kept.add((slot.slot_date, slot.start_time))
        elif slot.id in booked_ids:
            slot.is_active = False
            kept.add((slot.slot_date, slot.start_time))
        else:
            db.delete(slot)
            removed += 1

    created = 0
    for day in dates.iter_weekdays(first, last + timedelta(days=1)):
        for slot_time in offered:
            if (day, slot_time) in kept:
                continue
            starts_at, _ = dates.slot_bounds(day, slot_time)
            db.add(
                models.DemoSlot(
                    slot_date=day, start_time=slot_time, starts_at=starts_at, is_active=True
                )
            )
            created += 1
    db.commit()
    logger.info(
        "Demo slots published",
        extra={"month": first.isoformat(), "created": created, "removed": removed},
    )
    return list_month_slots(db, first.year, first.month)


def available_slots(db: Session, timezone_name: str | None = None) -> list[DemoDay]:
    """Open call slots from today to the end of the current month, grouped by day."""

    viewer_tz = _viewer_timezone(timezone_name)
    today = dates.local_today()
    _, last = dates.month_bounds(today.year, today.month)
    now = dates.utc_now()
    taken = exists().where(
        models.DemoBooking.demo_slot_id == models.DemoSlot.id, _ACTIVE_DEMO
    )
    slots = db.execute(
        select(models.DemoSlot)
        .where(
            models.DemoSlot.is_active.is_(True),
            models.DemoSlot.slot_date.between(today, last),
            ~taken,
        )
        .order_by(models.DemoSlot.slot_date, models.DemoSlot.start_time)
    ).scalars().all()

    days: dict[date, DemoDay] = {}
    for slot in slots:
        starts_at = dates.as_utc(slot.starts_at)
        if not dates.is_weekday(slot.slot_date) or starts_at <= now:
            continue
        day = days.setdefault(slot.slot_date, DemoDay(date=slot.slot_date))
        day.slots.append(
            DemoSlotView(
                id=slot.id,
                date=slot.slot_date,
                time=slot.start_time,
                starts_at=starts_at,
                local_time=starts_at.astimezone(viewer_tz).time(),
            )
        )
    return list(days.values())


def book_demo(
    db: Session,
    *,
    name: str,
    mobile: str,
    email: str,
    slot_date: date,
    start: str | time,
    reason: str | None = None,
) -> models.DemoBooking:
    slot_time = coerce_time(start)
    slot = db.execute(
        select(models.DemoSlot).where(
            models.DemoSlot.slot_date == slot_date,
            models.DemoSlot.start_time == slot_time,
            models.DemoSlot.is_active.is_(True),
        )
    ).scalar_one_or_none()
    if slot is None:
        raise NotFoundError("Demo slot not found")
    if dates.as_utc(slot.starts_at) <= dates.utc_now():
        raise ValidationError("Slot start time is in the past")
    already_taken = db.scalar(
        select(
            exists().where(models.DemoBooking.demo_slot_id == slot.id, _ACTIVE_DEMO)
        )
    )
    if already_taken:
        raise SlotConflictError(DEMO_SLOT_CONFLICT_MESSAGE)

    booking = models.DemoBooking(
        demo_slot_id=slot.id,
        name=name,
        mobile=mobile,
        email=email,
        reason=reason,
        status=models.DemoBookingStatus.scheduled,
    )
    db.add(booking)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise SlotConflictError(DEMO_SLOT_CONFLICT_MESSAGE) from exc
    db.refresh(booking)
    logger.info("Demo call booked", extra={"demo_booking_id": booking.id, "slot_id": slot.id})

    notification_service.notify_admins(
        db,
        message=(
            f"New demo call with {name} on "
            f"{notification_service.format_session(slot.starts_at)}."
        ),
        type=models.NotificationType.demo_booked,
    )
    return booking


def get_demo_booking(db: Session, demo_booking_id: int) -> models.DemoBooking:
    booking = db.execute(
        select(models.DemoBooking)
        .options(selectinload(models.DemoBooking.demo_slot))
        .where(models.DemoBooking.id == demo_booking_id)
    ).scalar_one_or_none()
    if booking is None:
        raise NotFoundError("Demo booking not found")
    return booking


def list_demo_bookings(
    db: Session,
    status: models.DemoBookingStatus | None = None,
    *,
    by_slot: bool = False,
) -> list[models.DemoBooking]:
    stmt = select(models.DemoBooking).options(selectinload(models.DemoBooking.demo_slot))
    if status is not None:
        stmt = stmt.where(models.DemoBooking.status == status)
    if by_slot:
        stmt = stmt.join(models.DemoSlot).order_by(
            models.DemoSlot.slot_date.desc(), models.DemoSlot.start_time.desc()
        )
    else:
        stmt = stmt.order_by(models.DemoBooking.created_at.desc(), models.DemoBooking.id.desc())
    return list(db.execute(stmt).scalars().all())


def update_demo_booking(
    db: Session,
    demo_booking_id: int,
    *,
    status: models.DemoBookingStatus | None = None,
    user_query: str | None = None,
    converted: bool | None = None,
    additional_notes: str | None = None,
) -> models.DemoBooking:
    booking = get_demo_booking(db, demo_booking_id)
    if status is not None and status != booking.status:
        if booking.status != models.DemoBookingStatus.scheduled:
            raise InvalidStateError(f"Demo call is already {booking.status.value}")
        booking.status = status
    if user_query is not None:
        booking.user_query = user_query
    if converted is not None:
        booking.converted = converted
    if additional_notes is not None:
        booking.additional_notes = additional_notes
    db.commit()
    db.refresh(booking)
    return booking


__all__ = [
    "DemoSlotView",
    "DemoDay",
    "AdminDemoSlot",
    "list_month_slots",
    "set_month_slots",
    "available_slots",
    "book_demo",
    "get_demo_booking",
    "list_demo_bookings",
    "update_demo_booking",
]
