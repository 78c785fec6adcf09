"""Booking service - Deposit bookings, date selection and admin review"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...config import DEFAULT_CURRENCY, DEFAULT_DEPOSIT_AMOUNT, MINIMUM_CHARGE_AMOUNT
from ...models import ActivityBooking, Booking, User
from ...security_utils import generate_booking_reference
from ...services import notification_service
from ...services.report_service import BOOKING_REPORT_COLUMNS, booking_report_rows, to_csv
from ...shared.validators import iter_days
from ..activities.repository import ActivityRepository
from ..activities.service import stage_activity_booking
from ..payments.stripe_service import PaymentGatewayError, StripePaymentsService
from .repository import BookingRepository
from .schemas import AdminDatesRequest, BookingCreate, SelectDatesRequest

logger = logging.getLogger(__name__)

CANCELLABLE_STATUSES = ("pending_deposit", "deposit_paid", "dates_selected")


def unavailable_dates_message(blocked: int, fully_booked: int) -> str:
    message = "Selected dates are not fully available. "
    if blocked and fully_booked:
        message += f"{blocked} date(s) are blocked and {fully_booked} date(s) are fully booked. "
    elif blocked:
        message += f"{blocked} date(s) are blocked. "
    else:
        message += f"{fully_booked} date(s) are fully booked. "
    return message + "Please choose different dates or enable flexible dates."


class BookingService:
    """Service layer for booking business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = BookingRepository()

    # ------------------------------------------------------------------
    # Customer operations
    # ------------------------------------------------------------------

    async def create_booking(
        self, data: BookingCreate, user: User, gateway: StripePaymentsService
    ) -> dict:
        logger.info(f"📥 Creating booking for user {user.id}, destination {data.destinationId}")

        destination = self.repo.get_active_destination(self.db, data.destinationId)
        if not destination:
            raise HTTPException(status_code=404, detail="Destination not found or not available")

        affiliate_id = None
        if data.affiliateCode:
            code = self.repo.get_active_code(self.db, data.affiliateCode)
            if not code:
                raise HTTPException(status_code=400, detail="Invalid affiliate code")
            if code.affiliate_id == user.id:
                raise HTTPException(
                    status_code=400, detail="You cannot use your own affiliate code"
                )
            affiliate_id = code.affiliate_id

        deposit = destination.deposit_amount or DEFAULT_DEPOSIT_AMOUNT
        if user.discount_amount:
            deposit = max(0, deposit - user.discount_amount)
        if deposit < MINIMUM_CHARGE_AMOUNT:
            raise HTTPException(
                status_code=400,
                detail=(
                    "Deposit amount is too small after discount. "
                    f"Minimum amount is {MINIMUM_CHARGE_AMOUNT:.2f} {DEFAULT_CURRENCY}."
                ),
            )

        booking = self.repo.add_booking(
            self.db,
            user_id=user.id,
            destination_id=destination.id,
            booking_reference=generate_booking_reference(),
            status="pending_deposit",
            number_of_travellers=data.numberOfTravellers,
            special_requests=data.specialRequests,
            affiliate_code=data.affiliateCode,
            affiliate_id=affiliate_id,
            deposit_amount=deposit,
            deposit_currency=destination.currency or DEFAULT_CURRENCY,
            payment_status="pending",
        )

        add_ons: list[ActivityBooking] = []
        for item in data.activities:
            activity = ActivityRepository.get_approved(self.db, item.activityId)
            if not activity:
                self.db.rollback()
                raise HTTPException(
                    status_code=404,
                    detail=f"Activity {item.activityId} not found or not approved",
                )
            day = ActivityRepository.find_or_create_day(self.db, activity.id, item.selectedDate)
            add_ons.append(
                stage_activity_booking(
                    self.db,
                    activity,
                    day,
                    user,
                    item.participants,
                    customer_name=item.customerName,
                    customer_email=item.customerEmail,
                    customer_phone=item.customerPhone,
                    special_requests=item.specialRequests,
                    linked_booking_id=booking.id,
                )
            )

        activity_total = round(sum(ab.amount for ab in add_ons), 2)
        total = round(deposit + activity_total, 2)

        try:
            intent = await gateway.create_payment_intent(
                total,
                booking.deposit_currency,
                {
                    "bookingId": booking.id,
                    "bookingReference": booking.booking_reference,
                    "userId": user.id,
                    "hasActivities": bool(add_ons),
                    "activityCount": len(add_ons),
                },
            )
        except PaymentGatewayError as e:
            self.db.rollback()
            logger.error(f"❌ Payment intent failed for new booking: {e}")
            raise HTTPException(
                status_code=500, detail="Failed to create payment. Please try again."
            ) from e

        booking.transaction_id = intent["paymentIntentId"]
        self.db.commit()
        self.db.refresh(booking)

        logger.info(
            f"✅ Booking {booking.booking_reference} created (deposit {deposit}, "
            f"{len(add_ons)} activities, total {total})"
        )
        return {
            "booking": {
                "id": booking.id,
                "bookingReference": booking.booking_reference,
                "status": booking.status,
                "depositAmount": booking.deposit_amount,
                "currency": booking.deposit_currency,
                "totalAmount": total,
                "activityAmount": activity_total,
                "hasActivities": bool(add_ons),
            },
            "payment": {
                "clientSecret": intent["clientSecret"],
                "paymentIntentId": intent["paymentIntentId"],
            },
            "activities": [
                {"id": ab.id, "bookingReference": ab.booking_reference, "amount": ab.amount}
                for ab in add_ons
            ],
        }

    def list_my_bookings(
        self, user: User, page: int, limit: int, status: Optional[str] = None
    ) -> tuple[list[Booking], int]:
        return self.repo.list_bookings(
            self.db, (page - 1) * limit, limit, status=status, user_id=user.id
        )

    def get_booking(self, booking_id: int, user: User) -> Booking:
        owner_filter = None if user.role == "admin" else user.id
        booking = self.repo.get_by_id(self.db, booking_id, owner_filter)
        if not booking:
            raise HTTPException(status_code=404, detail="Booking not found")
        return booking

    def get_own_booking(self, booking_id: int, user: User) -> Booking:
        booking = self.repo.get_by_id(self.db, booking_id, user.id)
        if not booking:
            raise HTTPException(status_code=404, detail="Booking not found")
        return booking

    async def select_dates(self, booking_id: int, data: SelectDatesRequest, user: User) -> Booking:
        booking = self.get_own_booking(booking_id, user)

        if booking.status != "deposit_paid":
            raise HTTPException(
                status_code=400,
                detail="Cannot select dates for this booking. Deposit must be paid first.",
            )
        if booking.calendar_unlocked_until and booking.calendar_unlocked_until < datetime.utcnow():
            raise HTTPException(
                status_code=400, detail="Calendar access has expired. Please contact support."
            )

        days = self.repo.days_in_range(self.db, booking.destination_id, data.startDate, data.endDate)
        blocked = sum(1 for d in days if d.is_blocked)
        fully_booked = sum(
            1 for d in days if not d.is_blocked and (d.booked_slots or 0) >= d.available_slots
        )

        if blocked or fully_booked:
            if not data.isFlexible:
                raise HTTPException(
                    status_code=400, detail=unavailable_dates_message(blocked, fully_booked)
                )
            logger.info(
                f"📅 Flexible dates for {booking.booking_reference} include unavailable days; "
                f"left for admin review"
            )

        booking.travel_start_date = data.startDate
        booking.travel_end_date = data.endDate
        booking.is_flexible = data.isFlexible
        booking.status = "dates_selected"
        booking = self.repo.save(self.db, booking)

        await notification_service.notify_dates_selected(self.db, booking)
        return booking

    def cancel_booking(self, booking_id: int, user: User) -> Booking:
        booking = self.get_own_booking(booking_id, user)
        if booking.status not in CANCELLABLE_STATUSES:
            raise HTTPException(status_code=400, detail="This booking cannot be cancelled")

        booking.status = "cancelled"
        logger.info(f"🚫 Booking {booking.booking_reference} cancelled by user {user.id}")
        return self.repo.save(self.db, booking)

    # ------------------------------------------------------------------
    # Admin operations
    # ------------------------------------------------------------------

    def get_any_booking(self, booking_id: int) -> Booking:
        booking = self.repo.get_by_id(self.db, booking_id)
        if not booking:
            raise HTTPException(status_code=404, detail="Booking not found")
        return booking

    def list_all_bookings(self, page: int, limit: int, **filters) -> tuple[list[Booking], int]:
        return self.repo.list_bookings(self.db, (page - 1) * limit, limit, **filters)

    async def confirm_booking(self, booking_id: int) -> Booking:
        booking = self.get_any_booking(booking_id)
        if booking.status != "dates_selected":
            raise HTTPException(
                status_code=400, detail="Booking must have dates selected before confirmation"
            )

        if booking.travel_start_date and booking.travel_end_date:
            days = self.repo.days_in_range(
                self.db, booking.destination_id, booking.travel_start_date, booking.travel_end_date
            )
            for day in days:
                day.booked_slots = (day.booked_slots or 0) + 1

        booking.status = "confirmed"
        booking = self.repo.save(self.db, booking)
        logger.info(f"✅ Booking {booking.booking_reference} confirmed")

        await notification_service.notify_booking_confirmed(self.db, booking)
        return booking

    async def reject_booking(self, booking_id: int, reason: str) -> Booking:
        booking = self.get_any_booking(booking_id)
        if booking.status in ("confirmed", "cancelled"):
            raise HTTPException(status_code=400, detail="This booking cannot be rejected")

        booking.status = "rejected"
        booking.rejection_reason = reason
        booking = self.repo.save(self.db, booking)
        logger.info(f"❌ Booking {booking.booking_reference} rejected: {reason}")

        await notification_service.notify_booking_rejected(self.db, booking, reason)
        return booking

    async def update_dates(self, booking_id: int, data: AdminDatesRequest) -> Booking:
        booking = self.get_any_booking(booking_id)

        days = self.repo.days_in_range(self.db, booking.destination_id, data.startDate, data.endDate)
        open_days = {d.date for d in days if d.is_available}
        if any(day not in open_days for day in iter_days(data.startDate, data.endDate)):
            raise HTTPException(
                status_code=400,
                detail="Selected dates are not fully available. Please choose different dates.",
            )

        booking.travel_start_date = data.startDate
        booking.travel_end_date = data.endDate
        booking.is_flexible = data.isFlexible
        if booking.status == "deposit_paid":
            booking.status = "dates_selected"
        booking = self.repo.save(self.db, booking)

        await notification_service.notify_dates_selected(self.db, booking, notify_admins=False)
        return booking

    def update_notes(self, booking_id: int, notes: str) -> Booking:
        booking = self.get_any_booking(booking_id)
        booking.admin_notes = notes
        return self.repo.save(self.db, booking)

    def export_bookings(self, **filters) -> tuple[list[dict], str]:
        """Report rows plus their CSV rendering"""
        rows = booking_report_rows(self.repo.all_bookings(self.db, **filters))
        return rows, to_csv(rows, BOOKING_REPORT_COLUMNS)
