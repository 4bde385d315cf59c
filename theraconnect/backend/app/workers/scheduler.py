from datetime import timedelta
import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from sqlalchemy.orm import selectinload

from ..config import get_settings
from ..core import dates
from ..db import models
from ..db.session import SessionLocal
from ..services import notification_service

logger = logging.getLogger(__name__)


def send_session_reminders() -> int:
    settings = get_settings()
    now = dates.utc_now()
    horizon = now + timedelta(hours=settings.reminder_lead_hours)
    with SessionLocal() as db:
        upcoming = (
            db.query(models.Booking)
            .join(models.TimeSlot, models.Booking.time_slot_id == models.TimeSlot.id)
            .options(
                selectinload(models.Booking.time_slot),
                selectinload(models.Booking.parent),
                selectinload(models.Booking.child),
                selectinload(models.Booking.therapist),
            )
            .filter(models.Booking.status == models.BookingStatus.scheduled)
            .filter(models.Booking.reminder_sent_at.is_(None))
            .filter(models.TimeSlot.starts_at > now)
            .filter(models.TimeSlot.starts_at <= horizon)
            .all()
        )
        for booking in upcoming:
            booking.reminder_sent_at = now
        db.commit()
        for booking in upcoming:
            when = notification_service.format_session(booking.time_slot.starts_at)
            notification_service.notify(
                db,
                user_id=booking.parent.user_id,
                message=(
                    f"Reminder: {booking.child.name} has a session with "
                    f"{booking.therapist.name} on {when}."
                ),
                type=models.NotificationType.session_reminder,
            )
            notification_service.notify(
                db,
                user_id=booking.therapist.user_id,
                message=f"Reminder: session with {booking.child.name} on {when}.",
                type=models.NotificationType.session_reminder,
            )
        if upcoming:
            logger.info("Session reminders queued", extra={"count": len(upcoming)})
        return len(upcoming)


def deliver_notifications() -> int:
    with SessionLocal() as db:
        return notification_service.deliver_pending(db)


def get_scheduler() -> AsyncIOScheduler:
    scheduler = AsyncIOScheduler()
    scheduler.add_job(send_session_reminders, "interval", hours=1)
    scheduler.add_job(deliver_notifications, "interval", minutes=1)
    return scheduler
