from datetime import datetime, timedelta
from zoneinfo import ZoneInfo
import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from sqlalchemy.orm import sessionmaker

from ..config import get_settings
from ..db import models
from ..db.session import SessionLocal
from ..services import booking_service
from ..services.notification_service import NotificationDispatcher

logger = logging.getLogger(__name__)


def send_reminders(
    session_factory: sessionmaker = SessionLocal,
    notifier: NotificationDispatcher | None = None,
    today=None,
) -> int:
    """Remind users about confirmed bookings happening tomorrow."""
    notifier = notifier or NotificationDispatcher(session_factory)
    # "Tomorrow" is the venue-local day
    today = today or datetime.now(ZoneInfo(get_settings().timezone)).date()
    with session_factory() as db:
        upcoming = booking_service.bookings_on(db, today + timedelta(days=1))
        reminders = [
            (
                booking.user_id,
                booking.id,
                booking.venue.name,
                booking.time_slots[0].start_time if booking.time_slots else None,
            )
            for booking in upcoming
        ]
    for user_id, booking_id, venue_name, starts_at in reminders:
        body = f"Your booking at {venue_name} is tomorrow"
        if starts_at:
            body += f" at {starts_at}"
        notifier.notify(
            user_id,
            "Booking Reminder",
            body + ".",
            {"type": "reminder", "booking_id": booking_id},
            models.NotificationType.reminder,
        )
    logger.info("Sent booking reminders", extra={"count": len(reminders)})
    return len(reminders)


def _run(job, session_factory: sessionmaker) -> int:
    with session_factory() as db:
        return job(db)


def expire_pending(session_factory: sessionmaker = SessionLocal) -> int:
    return _run(booking_service.expire_pending_bookings, session_factory)


def complete_past(session_factory: sessionmaker = SessionLocal) -> int:
    return _run(booking_service.complete_past_bookings, session_factory)


def reconcile_counts(session_factory: sessionmaker = SessionLocal) -> int:
    return _run(booking_service.reconcile_booking_counts, session_factory)


def get_scheduler() -> AsyncIOScheduler:
    scheduler = AsyncIOScheduler()
    scheduler.add_job(expire_pending, "interval", minutes=1)
    scheduler.add_job(complete_past, "interval", hours=1)
    scheduler.add_job(reconcile_counts, "cron", hour=3)
    scheduler.add_job(send_reminders, "cron", hour=18)
    return scheduler
