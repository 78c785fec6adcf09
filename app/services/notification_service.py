"""
Booking Notification Service
Translates booking lifecycle events into transactional emails
"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from ..config import FRONTEND_URL
from ..email_service import send_email
from ..email_templates import (
    activity_inquiry_receipt_template,
    activity_inquiry_template,
    admin_dates_selected_template,
    booking_confirmed_template,
    booking_rejected_template,
    calendar_expiry_template,
    dates_selected_template,
    deposit_confirmation_template,
    email_verification_template,
    invitation_template,
    password_reset_template,
)
from ..models import ActivityInquiry, Booking, Invitation, User

logger = logging.getLogger(__name__)


def destination_name(booking: Booking) -> str:
    name = booking.destination.name if booking.destination else None
    return (name or {}).get("en", "your destination")


async def notify_deposit_paid(db: Session, booking: Booking) -> bool:
    user = booking.user
    if not user:
        logger.error(f"❌ User not found for deposit confirmation: booking {booking.id}")
        return False
    return await send_email(
        db,
        to=user.email,
        subject=f"Deposit Confirmed - {booking.booking_reference}",
        mjml_content=deposit_confirmation_template(
            user.first_name,
            booking.booking_reference,
            destination_name(booking),
            booking.deposit_amount,
            booking.deposit_currency,
        ),
        email_type="deposit_confirmation",
        user_id=user.id,
    )


async def notify_booking_confirmed(db: Session, booking: Booking) -> bool:
    if not booking.travel_start_date or not booking.travel_end_date:
        logger.error(f"❌ Travel dates not set for booking {booking.id}")
        return False
    user = booking.user
    return await send_email(
        db,
        to=user.email,
        subject=f"Booking Confirmed - {booking.booking_reference}",
        mjml_content=booking_confirmed_template(
            user.first_name,
            booking.booking_reference,
            destination_name(booking),
            booking.travel_start_date,
            booking.travel_end_date,
        ),
        email_type="booking_confirmed",
        user_id=user.id,
    )


async def notify_booking_rejected(db: Session, booking: Booking, reason: str) -> bool:
    user = booking.user
    return await send_email(
        db,
        to=user.email,
        subject=f"Booking Update - {booking.booking_reference}",
        mjml_content=booking_rejected_template(user.first_name, booking.booking_reference, reason),
        email_type="booking_rejected",
        user_id=user.id,
    )


async def notify_dates_selected(db: Session, booking: Booking, notify_admins: bool = True) -> None:
    """Tell the customer their dates arrived and, unless an admin set them, every admin"""
    if not booking.travel_start_date or not booking.travel_end_date:
        logger.error(f"❌ Travel dates not set for booking {booking.id}")
        return

    user = booking.user
    await send_email(
        db,
        to=user.email,
        subject=f"Travel Dates Selected - {booking.booking_reference}",
        mjml_content=dates_selected_template(
            user.first_name,
            booking.booking_reference,
            destination_name(booking),
            booking.travel_start_date,
            booking.travel_end_date,
        ),
        email_type="dates_selected",
        user_id=user.id,
    )

    if not notify_admins:
        return

    admins = db.query(User).filter(User.role == "admin").all()
    for admin in admins:
        logger.info(
            f"📧 Notifying admin {admin.email} about dates for booking {booking.booking_reference}"
        )
        await send_email(
            db,
            to=admin.email,
            subject=f"Dates Selected - {booking.booking_reference}",
            mjml_content=admin_dates_selected_template(
                user.full_name,
                booking.booking_reference,
                destination_name(booking),
                booking.travel_start_date,
                booking.travel_end_date,
            ),
            email_type="dates_selected",
            user_id=admin.id,
        )


async def send_verification_email(db: Session, user: User, token: str) -> bool:
    return await send_email(
        db,
        to=user.email,
        subject="Verify Your Email - TRIPLY",
        mjml_content=email_verification_template(
            user.first_name, f"{FRONTEND_URL}/verify-email/{token}"
        ),
        email_type="email_verification",
        user_id=user.id,
    )


async def send_password_reset(db: Session, user: User, token: str) -> bool:
    return await send_email(
        db,
        to=user.email,
        subject="Reset Your Password - TRIPLY",
        mjml_content=password_reset_template(
            user.first_name, f"{FRONTEND_URL}/reset-password/{token}"
        ),
        email_type="password_reset",
        user_id=user.id,
    )


async def send_calendar_expiry_reminder(db: Session, booking: Booking) -> bool:
    user = booking.user
    return await send_email(
        db,
        to=user.email,
        subject=f"⏰ Calendar Access Expiring Soon - {booking.booking_reference}",
        mjml_content=calendar_expiry_template(
            user.first_name,
            booking.booking_reference,
            destination_name(booking),
            booking.calendar_unlocked_until,
        ),
        email_type="calendar_expiring",
        user_id=user.id,
    )


async def send_invitation(db: Session, invitation: Invitation, inviter: User) -> bool:
    return await send_email(
        db,
        to=invitation.email,
        subject=f"Invitation to Join TRIPLY as {invitation.role.capitalize()}",
        mjml_content=invitation_template(
            invitation.role,
            inviter.full_name,
            f"{FRONTEND_URL}/accept-invitation/{invitation.token}",
            invitation.expires_at,
        ),
        email_type="invitation",
    )


async def notify_activity_inquiry(
    db: Session, inquiry: ActivityInquiry, merchant: Optional[User]
) -> dict:
    """Email the merchant and every admin, then send the customer a receipt"""
    activity = inquiry.activity
    body = activity_inquiry_template(
        activity.title,
        inquiry.customer_name,
        inquiry.customer_email,
        inquiry.customer_phone,
        inquiry.preferred_date,
        inquiry.message,
    )
    result = {"merchantNotified": False, "adminsNotified": 0, "customerNotified": False}

    if merchant:
        result["merchantNotified"] = await send_email(
            db,
            to=merchant.email,
            subject=f"New Inquiry - {activity.title}",
            mjml_content=body,
            email_type="activity_inquiry",
            user_id=merchant.id,
        )

    for admin in db.query(User).filter(User.role == "admin").all():
        if await send_email(
            db,
            to=admin.email,
            subject=f"New Inquiry - {activity.title}",
            mjml_content=body,
            email_type="activity_inquiry",
            user_id=admin.id,
        ):
            result["adminsNotified"] += 1

    result["customerNotified"] = await send_email(
        db,
        to=inquiry.customer_email,
        subject=f"We received your inquiry - {activity.title}",
        mjml_content=activity_inquiry_receipt_template(inquiry.customer_name, activity.title),
        email_type="activity_inquiry",
    )
    return result
