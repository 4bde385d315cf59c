from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from enum import Enum as PyEnum

from sqlalchemy import extract, func, select, update
from sqlalchemy.orm import Session, selectinload

from ..core import dates
from ..core.constants import (
    LEAVE_ALLOWANCES,
    OPTIONAL_LEAVES_PER_MONTH,
    THERAPIST_LEAVE_REASON,
)
from ..db import models
from . import availability_service, notification_service
from .errors import InvalidStateError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)


class LeaveAction(str, PyEnum):
    approve = "APPROVE"
    reject = "REJECT"


@dataclass(slots=True)
class LeaveBalance:
    casual_remaining: int
    sick_remaining: int
    festive_remaining: int
    optional_remaining: int


def _approved_count(
    db: Session,
    therapist_id: int,
    leave_type: models.LeaveType,
    *,
    year: int,
    month: int | None = None,
) -> int:
    stmt = select(func.count(models.TherapistLeave.id)).where(
        models.TherapistLeave.therapist_id == therapist_id,
        models.TherapistLeave.type == leave_type,
        models.TherapistLeave.status == models.LeaveStatus.approved,
        extract("year", models.TherapistLeave.leave_date) == year,
    )
    if month is not None:
        stmt = stmt.where(extract("month", models.TherapistLeave.leave_date) == month)
    return db.scalar(stmt) or 0


def leave_balance(db: Session, therapist: models.Therapist, on: date | None = None) -> LeaveBalance:
    on = on or dates.local_today()
    remaining = {
        leave_type: max(
            allowance
            - _approved_count(db, therapist.id, models.LeaveType(leave_type), year=on.year),
            0,
        )
        for leave_type, allowance in LEAVE_ALLOWANCES.items()
    }
    optional_used = _approved_count(
        db, therapist.id, models.LeaveType.optional, year=on.year, month=on.month
    )
    return LeaveBalance(
        casual_remaining=remaining["casual"],
        sick_remaining=remaining["sick"],
        festive_remaining=remaining["festive"],
        optional_remaining=max(OPTIONAL_LEAVES_PER_MONTH - optional_used, 0),
    )


def _remaining_for(balance: LeaveBalance, leave_type: models.LeaveType) -> int:
    return getattr(balance, f"{leave_type.value}_remaining")


def request_leave(
    db: Session,
    therapist: models.Therapist,
    leave_date: date,
    leave_type: models.LeaveType = models.LeaveType.casual,
    reason: str | None = None,
) -> models.TherapistLeave:
    if leave_date < dates.local_today():
        raise ValidationError("Cannot request leave for past dates")
    existing = db.execute(
        select(models.TherapistLeave.id).where(
            models.TherapistLeave.therapist_id == therapist.id,
            models.TherapistLeave.leave_date == leave_date,
            models.TherapistLeave.status.in_(
                [models.LeaveStatus.pending, models.LeaveStatus.approved]
            ),
        )
    ).first()
    if existing:
        raise InvalidStateError("Leave request already exists for this date")
    balance = leave_balance(db, therapist, leave_date)
    if _remaining_for(balance, leave_type) <= 0:
        raise ValidationError(f"No {leave_type.value} leaves remaining")

    leave = models.TherapistLeave(
        therapist_id=therapist.id,
        leave_date=leave_date,
        type=leave_type,
        reason=reason,
        status=models.LeaveStatus.pending,
    )
    db.add(leave)
    db.commit()
    db.refresh(leave)
    logger.info(
        "Leave requested",
        extra={"leave_id": leave.id, "therapist_id": therapist.id, "date": leave_date.isoformat()},
    )

    notification_service.notify_admins(
        db,
        message=(
            f"New leave request from {therapist.name} for "
            f"{notification_service.format_day(leave_date)} - {leave_type.value}"
        ),
        type=models.NotificationType.leave_request_submitted,
    )
    return leave


def get_leave(db: Session, leave_id: int) -> models.TherapistLeave:
    leave = db.execute(
        select(models.TherapistLeave)
        .options(selectinload(models.TherapistLeave.therapist))
        .where(models.TherapistLeave.id == leave_id)
    ).scalar_one_or_none()
    if leave is None:
        raise NotFoundError("Leave request not found")
    return leave


def list_leaves(db: Session, status: models.LeaveStatus | None = None) -> list[models.TherapistLeave]:
    stmt = select(models.TherapistLeave).options(selectinload(models.TherapistLeave.therapist))
    if status is not None:
        stmt = stmt.where(models.TherapistLeave.status == status)
    stmt = stmt.order_by(models.TherapistLeave.created_at.desc(), models.TherapistLeave.id.desc())
    return list(db.execute(stmt).scalars().all())


def list_therapist_leaves(db: Session, therapist: models.Therapist) -> list[models.TherapistLeave]:
    return list(
        db.execute(
            select(models.TherapistLeave)
            .where(models.TherapistLeave.therapist_id == therapist.id)
            .order_by(models.TherapistLeave.leave_date.desc())
        )
        .scalars()
        .all()
    )


def process_leave(
    db: Session,
    leave_id: int,
    action: LeaveAction,
    *,
    admin: models.User,
    admin_notes: str | None = None,
) -> models.TherapistLeave:
    """Approve or reject a pending leave.

    Approval cancels the therapist's scheduled bookings for that day in the
    same transaction as the status change.
    """

    leave = get_leave(db, leave_id)
    if leave.status != models.LeaveStatus.pending:
        raise InvalidStateError("Leave request has already been processed")

    approved = action == LeaveAction.approve
    new_status = models.LeaveStatus.approved if approved else models.LeaveStatus.rejected
    now = dates.utc_now()
    affected: list[models.Booking] = []
    try:
        # same lock as reserve_slot; a booking committed before it is cancelled below
        availability_service.lock_therapist(db, leave.therapist_id)
        decided = db.execute(
            update(models.TherapistLeave)
            .where(
                models.TherapistLeave.id == leave.id,
                models.TherapistLeave.status == models.LeaveStatus.pending,
            )
            .values(status=new_status, admin_notes=admin_notes, decided_at=now, decided_by=admin.id)
            .execution_options(synchronize_session=False)
        )
        if decided.rowcount != 1:
            raise InvalidStateError("Leave request has already been processed")

        if approved:
            affected = list(
                db.execute(
                    select(models.Booking)
                    .join(models.TimeSlot, models.Booking.time_slot_id == models.TimeSlot.id)
                    .options(
                        selectinload(models.Booking.time_slot),
                        selectinload(models.Booking.parent),
                        selectinload(models.Booking.child),
                    )
                    .where(
                        models.Booking.therapist_id == leave.therapist_id,
                        models.Booking.status == models.BookingStatus.scheduled,
                        models.TimeSlot.slot_date == leave.leave_date,
                    )
                    .with_for_update(of=models.Booking)
                )
                .scalars()
                .all()
            )
            for booking in affected:
                booking.status = models.BookingStatus.cancelled
                booking.canceled_at = now
                booking.canceled_by = models.UserRole.admin.value
                booking.cancellation_reason = THERAPIST_LEAVE_REASON
                booking.time_slot.is_booked = False

        db.add(
            models.AuditLog(
                actor_type=models.ActorType.admin,
                actor_id=admin.id,
                action=f"leave_{new_status.value}",
                payload={
                    "leave_id": leave.id,
                    "therapist_id": leave.therapist_id,
                    "leave_date": leave.leave_date.isoformat(),
                    "canceled_booking_ids": [booking.id for booking in affected],
                    "admin_notes": admin_notes,
                },
            )
        )
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(leave)
    logger.info(
        "Leave processed",
        extra={"leave_id": leave.id, "status": new_status.value, "canceled": len(affected)},
    )

    day = notification_service.format_day(leave.leave_date)
    therapist = leave.therapist
    if approved:
        therapist_message = (
            f"Your leave request for {day} has been approved. All your sessions for this "
            "date have been cancelled and affected parents have been notified."
        )
    else:
        therapist_message = f"Your leave request for {day} has been rejected."
        if admin_notes:
            therapist_message += f" Admin notes: {admin_notes}"
    notification_service.notify(
        db,
        user_id=therapist.user_id,
        message=therapist_message,
        type=models.NotificationType.leave_decided,
    )
    for booking in affected:
        notification_service.notify(
            db,
            user_id=booking.parent.user_id,
            message=(
                f"Your session on {day} with {therapist.name} has been cancelled "
                "due to therapist leave. Please book another available slot."
            ),
            type=models.NotificationType.session_cancelled_by_leave,
        )
    return leave


__all__ = [
    "LeaveAction",
    "LeaveBalance",
    "leave_balance",
    "request_leave",
    "get_leave",
    "list_leaves",
    "list_therapist_leaves",
    "process_leave",
]
