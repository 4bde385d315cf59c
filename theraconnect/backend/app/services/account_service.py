from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..core import security
from ..db import models
from .errors import InvalidStateError

logger = logging.getLogger(__name__)


def _create_user(db: Session, email: str, password: str, role: models.UserRole) -> models.User:
    email = email.strip().lower()
    exists = db.execute(select(models.User.id).where(models.User.email == email)).first()
    if exists:
        raise InvalidStateError("An account with this email already exists")
    user = models.User(
        email=email,
        password_hash=security.get_password_hash(password),
        role=role,
    )
    db.add(user)
    db.flush()
    return user


def register_parent(
    db: Session, *, email: str, password: str, name: str, phone: str | None = None
) -> models.Parent:
    try:
        user = _create_user(db, email, password, models.UserRole.parent)
        parent = models.Parent(user_id=user.id, name=name, phone=phone)
        db.add(parent)
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise InvalidStateError("An account with this email already exists") from exc
    db.refresh(parent)
    logger.info("Registered parent", extra={"parent_id": parent.id})
    return parent


def register_therapist(
    db: Session,
    *,
    email: str,
    password: str,
    name: str,
    specialization: str,
    phone: str | None = None,
    experience_years: int = 0,
    base_cost_per_session: float = 0,
) -> models.Therapist:
    try:
        user = _create_user(db, email, password, models.UserRole.therapist)
        therapist = models.Therapist(
            user_id=user.id,
            name=name,
            phone=phone,
            specialization=specialization,
            experience_years=experience_years,
            base_cost_per_session=base_cost_per_session,
            status=models.TherapistStatus.pending,
        )
        db.add(therapist)
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise InvalidStateError("An account with this email already exists") from exc
    db.refresh(therapist)
    logger.info("Registered therapist", extra={"therapist_id": therapist.id})
    return therapist


__all__ = ["register_parent", "register_therapist"]
