from __future__ import annotations

import logging
from datetime import date, datetime

import httpx
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..config import get_settings
from ..core import dates
from ..db import models

logger = logging.getLogger(__name__)


def format_session(starts_at: datetime) -> str:
    local_dt = dates.as_utc(starts_at).astimezone(dates.service_timezone())
    return local_dt.strftime("%d.%m.%Y %H:%M")


def format_day(day: date) -> str:
    return day.strftime("%B %d, %Y")


def notify(
    db: Session,
    *,
    user_id: int,
    message: str,
    type: models.NotificationType,
    send_at: datetime | None = None,
) -> models.Notification | None:
    """Queue a notification for ``user_id``.

    Runs after the caller's transaction has been committed; a failure here is
    logged and never propagates to the booking flow that triggered it.
    """

    notification = models.Notification(
        user_id=user_id,
        message=message,
        type=type,
        send_at=send_at or dates.utc_now(),
        status=models.NotificationStatus.pending,
    )
    try:
        db.add(notification)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception(
            "Failed to queue notification",
            extra={"user_id": user_id, "type": type.value},
        )
        return None
    return notification


def notify_admins(db: Session, *, message: str, type: models.NotificationType) -> int:
    admin_ids = db.execute(
        select(models.User.id).where(
            models.User.role == models.UserRole.admin,
            models.User.is_active.is_(True),
        )
    ).scalars().all()
    for admin_id in admin_ids:
        notify(db, user_id=admin_id, message=message, type=type)
    return len(admin_ids)


def list_for_user(db: Session, user_id: int, *, unread_only: bool = False) -> list[models.Notification]:
    stmt = select(models.Notification).where(models.Notification.user_id == user_id)
    if unread_only:
        stmt = stmt.where(models.Notification.is_read.is_(False))
    stmt = stmt.order_by(models.Notification.created_at.desc(), models.Notification.id.desc())
    return list(db.execute(stmt).scalars().all())


def mark_read(db: Session, notification: models.Notification) -> models.Notification:
    notification.is_read = True
    db.commit()
    db.refresh(notification)
    return notification


def deliver_pending(db: Session, *, limit: int = 100) -> int:
    """Push due notifications to the outbound webhook; return how many were sent."""

    settings = get_settings()
    url = settings.notification_webhook_url
    if not url:
        logger.warning("Notification webhook is not configured; skipping delivery")
        return 0

    due = (
        db.execute(
            select(models.Notification)
            .where(models.Notification.status == models.NotificationStatus.pending)
            .where(models.Notification.send_at <= dates.utc_now())
            .order_by(models.Notification.send_at)
            .limit(limit)
        )
        .scalars()
        .all()
    )
    if not due:
        return 0

    sent = 0
    with httpx.Client(timeout=settings.notification_timeout_sec) as client:
        for notification in due:
            try:
                response = client.post(
                    url,
                    json={
                        "user_id": notification.user_id,
                        "type": notification.type.value,
                        "message": notification.message,
                    },
                )
                response.raise_for_status()
            except httpx.HTTPError:
                logger.exception(
                    "Failed to deliver notification",
                    extra={"notification_id": notification.id},
                )
                notification.status = models.NotificationStatus.failed
                continue
            notification.status = models.NotificationStatus.sent
            notification.sent_at = dates.utc_now()
            sent += 1
    db.commit()
    return sent


__all__ = [
    "format_session",
    "format_day",
    "notify",
    "notify_admins",
    "list_for_user",
    "mark_read",
    "deliver_pending",
]
