from __future__ import annotations

from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..core import dates
from ..db import models
from .booking_service import get_parent_child
from .errors import InvalidStateError


def list_children(db: Session, parent: models.Parent) -> list[models.Child]:
    return list(
        db.execute(
            select(models.Child)
            .where(models.Child.parent_id == parent.id)
            .order_by(models.Child.name)
        )
        .scalars()
        .all()
    )


def add_child(db: Session, parent: models.Parent, data: dict[str, Any]) -> models.Child:
    child = models.Child(parent_id=parent.id, **data)
    db.add(child)
    db.commit()
    db.refresh(child)
    return child


def update_child(
    db: Session, parent: models.Parent, child_id: int, data: dict[str, Any]
) -> models.Child:
    child = get_parent_child(db, parent, child_id)
    for key, value in data.items():
        setattr(child, key, value)
    db.commit()
    db.refresh(child)
    return child


def delete_child(db: Session, parent: models.Parent, child_id: int) -> None:
    child = get_parent_child(db, parent, child_id)
    upcoming = db.execute(
        select(models.Booking.id)
        .join(models.TimeSlot, models.Booking.time_slot_id == models.TimeSlot.id)
        .where(
            models.Booking.child_id == child.id,
            models.Booking.status == models.BookingStatus.scheduled,
            models.TimeSlot.starts_at > dates.utc_now(),
        )
    ).first()
    if upcoming:
        raise InvalidStateError("Cancel the child's upcoming sessions before removing the profile")
    db.delete(child)
    db.commit()


def list_active_therapists(
    db: Session, specialization: str | None = None
) -> list[models.Therapist]:
    stmt = select(models.Therapist).where(
        models.Therapist.status == models.TherapistStatus.active
    )
    if specialization:
        stmt = stmt.where(models.Therapist.specialization.ilike(f"%{specialization.strip()}%"))
    return list(db.execute(stmt.order_by(models.Therapist.name)).scalars().all())


__all__ = [
    "list_children",
    "add_child",
    "update_child",
    "delete_child",
    "list_active_therapists",
]
