from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from ..db import models
from . import notification_service
from .errors import NotFoundError

logger = logging.getLogger(__name__)


def get_therapist(db: Session, therapist_id: int) -> models.Therapist:
    therapist = db.execute(
        select(models.Therapist)
        .options(selectinload(models.Therapist.active_times))
        .where(models.Therapist.id == therapist_id)
    ).scalar_one_or_none()
    if therapist is None:
        raise NotFoundError("Therapist not found")
    return therapist


def get_active_therapist(db: Session, therapist_id: int) -> models.Therapist:
    therapist = get_therapist(db, therapist_id)
    if therapist.status != models.TherapistStatus.active:
        raise NotFoundError("Therapist not found")
    return therapist


def list_therapists(
    db: Session, status: models.TherapistStatus | None = None
) -> list[models.Therapist]:
    stmt = select(models.Therapist).options(selectinload(models.Therapist.active_times))
    if status is not None:
        stmt = stmt.where(models.Therapist.status == status)
    return list(db.execute(stmt.order_by(models.Therapist.created_at.desc())).scalars().all())


def update_therapist_status(
    db: Session,
    therapist_id: int,
    status: models.TherapistStatus,
    *,
    admin: models.User,
) -> models.Therapist:
    therapist = get_therapist(db, therapist_id)
    previous = therapist.status
    therapist.status = status
    db.add(
        models.AuditLog(
            actor_type=models.ActorType.admin,
            actor_id=admin.id,
            action="therapist_status_changed",
            payload={
                "therapist_id": therapist.id,
                "from": previous.value,
                "to": status.value,
            },
        )
    )
    db.commit()
    db.refresh(therapist)
    logger.info(
        "Therapist status changed",
        extra={"therapist_id": therapist.id, "status": status.value},
    )
    if status == models.TherapistStatus.active and previous != status:
        notification_service.notify(
            db,
            user_id=therapist.user_id,
            message="Congratulations! Your profile has been approved by the admin.",
            type=models.NotificationType.therapist_account_approved,
        )
    return therapist


__all__ = [
    "get_therapist",
    "get_active_therapist",
    "list_therapists",
    "update_therapist_status",
]
