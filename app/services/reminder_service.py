"""Calendar-expiry reminders for bookings whose date-selection window is closing"""

import logging
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.orm import Session

from ..models import Booking, EmailLog
from . import notification_service

logger = logging.getLogger(__name__)

REMINDER_STATUSES = ("deposit_paid", "dates_selected")
REMINDER_WINDOW_DAYS = (29, 31)
REMINDER_EMAIL_TYPE = "calendar_expiring"


def bookings_expiring_soon(db: Session, now: Optional[datetime] = None) -> list[Booking]:
    """Bookings whose calendar access ends between 29 and 31 days from now"""
    now = now or datetime.utcnow()
    start = now + timedelta(days=REMINDER_WINDOW_DAYS[0])
    end = now + timedelta(days=REMINDER_WINDOW_DAYS[1])
    return (
        db.query(Booking)
        .filter(
            Booking.status.in_(REMINDER_STATUSES),
            Booking.calendar_unlocked_until.isnot(None),
            Booking.calendar_unlocked_until >= start,
            Booking.calendar_unlocked_until <= end,
        )
        .order_by(Booking.calendar_unlocked_until.asc())
        .all()
    )


def already_reminded(db: Session, booking: Booking) -> bool:
    # The window spans several daily runs; one delivered reminder per booking
    return (
        db.query(EmailLog.id)
        .filter(
            EmailLog.email_type == REMINDER_EMAIL_TYPE,
            EmailLog.status == "sent",
            EmailLog.user_id == booking.user_id,
            EmailLog.subject.contains(booking.booking_reference),
        )
        .first()
        is not None
    )


async def send_calendar_expiry_reminders(db: Session, now: Optional[datetime] = None) -> dict:
    bookings = bookings_expiring_soon(db, now)
    sent = failed = skipped = 0
    for booking in bookings:
        if already_reminded(db, booking):
            skipped += 1
            continue
        if await notification_service.send_calendar_expiry_reminder(db, booking):
            sent += 1
        else:
            failed += 1
    logger.info(f"⏰ Calendar expiry reminders: {sent} sent, {failed} failed, {skipped} skipped")
    return {"checked": len(bookings), "sent": sent, "failed": failed, "skipped": skipped}
