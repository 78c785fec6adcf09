"""Activity service - Public catalogue, inquiries and stand-alone bookings"""

import logging
from datetime import date, timedelta
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...config import ACTIVITY_COMMISSION_RATE
from ...models import Activity, ActivityAvailability, ActivityBooking, User
from ...security_utils import generate_booking_reference
from ...services import notification_service
from .repository import ActivityRepository
from .schemas import ActivityBookRequest, InquiryRequest

logger = logging.getLogger(__name__)

AVAILABILITY_WINDOW_DAYS = 90


def split_amount(total: float) -> tuple[float, float]:
    """(platform commission, merchant share), each rounded to 2 decimals"""
    commission = round(total * ACTIVITY_COMMISSION_RATE, 2)
    merchant_amount = round(total * (1 - ACTIVITY_COMMISSION_RATE), 2)
    return commission, merchant_amount


def price_for(activity: Activity, day: ActivityAvailability, participants: int) -> float:
    unit = day.price if day.price else activity.price
    return unit * participants


def stage_activity_booking(
    db: Session,
    activity: Activity,
    day: ActivityAvailability,
    user: User,
    participants: int,
    customer_name: Optional[str] = None,
    customer_email: Optional[str] = None,
    customer_phone: Optional[str] = None,
    special_requests: Optional[str] = None,
    linked_booking_id: Optional[int] = None,
) -> ActivityBooking:
    """Add an unpaid activity booking to the session with the 20/80 split applied"""
    amount = price_for(activity, day, participants)
    commission, merchant_amount = split_amount(amount)
    return ActivityRepository.add_booking(
        db,
        user_id=user.id,
        activity_id=activity.id,
        availability_id=day.id,
        booking_reference=generate_booking_reference("ACT"),
        status="pending_payment",
        amount=amount,
        currency=activity.currency,
        triply_commission=commission,
        merchant_amount=merchant_amount,
        payment_status="pending",
        merchant_payout_status="pending",
        selected_date=day.date,
        number_of_participants=participants,
        customer_name=customer_name or user.full_name,
        customer_email=customer_email or user.email,
        customer_phone=customer_phone or user.phone_number,
        special_requests=special_requests,
        linked_destination_booking_id=linked_booking_id,
        is_add_on=linked_booking_id is not None,
    )


class ActivityService:
    """Service layer for public activity business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = ActivityRepository()

    def list_activities(
        self, page: int, limit: int, location: Optional[str] = None, search: Optional[str] = None
    ) -> tuple[list[Activity], int]:
        return self.repo.list_approved(self.db, (page - 1) * limit, limit, location, search)

    def get_activity(self, activity_id: int) -> Activity:
        activity = self.repo.get_approved(self.db, activity_id)
        if not activity:
            raise HTTPException(status_code=404, detail="Activity not found")
        return activity

    def get_bookable_activity(self, activity_id: int) -> Activity:
        activity = self.repo.get_approved(self.db, activity_id)
        if not activity:
            raise HTTPException(status_code=404, detail="Activity not found or not available")
        return activity

    def get_availability(
        self, activity_id: int, start: Optional[date], end: Optional[date]
    ) -> tuple[list[ActivityAvailability], date, date]:
        self.get_bookable_activity(activity_id)
        start = start or date.today()
        end = end or date.today() + timedelta(days=AVAILABILITY_WINDOW_DAYS)
        return self.repo.get_availability_range(self.db, activity_id, start, end), start, end

    async def submit_inquiry(self, activity_id: int, data: InquiryRequest) -> tuple:
        activity = self.get_bookable_activity(activity_id)
        inquiry = self.repo.create_inquiry(
            self.db,
            activity_id=activity.id,
            customer_name=data.customerName,
            customer_email=data.customerEmail,
            customer_phone=data.customerPhone,
            preferred_date=data.preferredDate,
            message=data.message,
        )
        logger.info(f"📨 Inquiry {inquiry.id} received for activity {activity.id}")
        notified = await notification_service.notify_activity_inquiry(
            self.db, inquiry, activity.merchant
        )
        return inquiry, notified

    def book_activity(self, activity_id: int, data: ActivityBookRequest, user: User) -> ActivityBooking:
        activity = self.get_bookable_activity(activity_id)

        if data.selectedDate < date.today():
            raise HTTPException(status_code=400, detail="Cannot book activities in the past")

        day = self.repo.find_or_create_day(self.db, activity.id, data.selectedDate)
        if not day.is_available:
            raise HTTPException(status_code=400, detail="This date is not available for booking")

        remaining = day.remaining_slots
        if data.numberOfParticipants > remaining:
            raise HTTPException(
                status_code=400,
                detail=(
                    f"Only {remaining} slot(s) available. "
                    f"You requested {data.numberOfParticipants}."
                ),
            )

        booking = stage_activity_booking(
            self.db,
            activity,
            day,
            user,
            data.numberOfParticipants,
            customer_name=data.customerName,
            customer_email=data.customerEmail,
            customer_phone=data.customerPhone,
            special_requests=data.specialRequests,
        )
        # Reserved now, released if the payment fails
        day.booked_slots = (day.booked_slots or 0) + data.numberOfParticipants
        self.db.commit()
        self.db.refresh(booking)

        logger.info(
            f"🎟️ Activity booking {booking.booking_reference} created for user {user.id} "
            f"({booking.amount} {booking.currency})"
        )
        return booking

    def get_booking(self, booking_id: int, user: User) -> ActivityBooking:
        owner_filter = None if user.role == "admin" else user.id
        booking = self.repo.get_booking(self.db, booking_id, owner_filter)
        if not booking:
            raise HTTPException(status_code=404, detail="Activity booking not found")
        return booking
