"""Payment service - Deposit and activity payments, commissions and refunds"""

import logging
from datetime import datetime, timedelta
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...config import CALENDAR_UNLOCK_DURATION_DAYS
from ...models import ActivityBooking, AffiliateCode, Booking, User
from ...services import notification_service
from .repository import PaymentRepository
from .stripe_service import PaymentGatewayError, StripePaymentsService, to_minor_units

logger = logging.getLogger(__name__)


def commission_for(code: AffiliateCode, amount: float) -> float:
    """Fixed codes pay a flat amount, percentage codes a share of the deposit"""
    if code.commission_type == "fixed":
        return code.fixed_amount or 0
    return round(amount * code.commission_rate / 100, 2)


class PaymentService:
    """Service layer for payment business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = PaymentRepository()

    # ------------------------------------------------------------------
    # Destination deposits
    # ------------------------------------------------------------------

    def get_booking(self, booking_id: int, user: User) -> Booking:
        owner_filter = None if user.role == "admin" else user.id
        booking = self.repo.get_booking(self.db, booking_id, owner_filter)
        if not booking:
            raise HTTPException(status_code=404, detail="Booking not found")
        return booking

    async def create_intent(
        self, booking_id: int, user: User, gateway: StripePaymentsService
    ) -> dict:
        booking = self.repo.get_booking(self.db, booking_id, user.id)
        if not booking:
            raise HTTPException(status_code=404, detail="Booking not found")
        if booking.status != "pending_deposit":
            raise HTTPException(
                status_code=400, detail="Payment has already been processed for this booking"
            )

        amount = self.amount_due(booking)

        try:
            intent = await gateway.create_payment_intent(
                amount,
                booking.deposit_currency,
                {
                    "bookingId": booking.id,
                    "bookingReference": booking.booking_reference,
                    "userId": user.id,
                },
            )
        except PaymentGatewayError as e:
            raise HTTPException(
                status_code=500, detail="Failed to create payment. Please try again."
            ) from e

        booking.transaction_id = intent["paymentIntentId"]
        self.db.commit()
        return {
            "clientSecret": intent["clientSecret"],
            "paymentIntentId": intent["paymentIntentId"],
            "amount": amount,
            "currency": booking.deposit_currency,
        }

    async def confirm_payment(
        self, booking_id: int, payment_intent_id: str, user: User, gateway: StripePaymentsService
    ) -> Booking:
        booking = self.repo.get_booking(self.db, booking_id, user.id)
        if not booking:
            raise HTTPException(status_code=404, detail="Booking not found")

        intent = await self._retrieve(gateway, payment_intent_id)
        self._check_intent(intent, "bookingId", booking.id, self.amount_due(booking))

        if self.handle_success(payment_intent_id, booking):
            await notification_service.notify_deposit_paid(self.db, booking)
        return booking

    @staticmethod
    def amount_due(booking: Booking) -> float:
        """Deposit plus the add-on activities still awaiting payment"""
        pending_add_ons = [ab for ab in booking.activity_bookings if ab.payment_status == "pending"]
        return round(booking.deposit_amount + sum(ab.amount for ab in pending_add_ons), 2)

    @staticmethod
    def _check_intent(intent: dict, metadata_key: str, booking_id: int, amount: float) -> None:
        """The intent must be ours for this booking, paid in full"""
        owner = (intent.get("metadata") or {}).get(metadata_key)
        if owner is None or str(owner) != str(booking_id):
            raise HTTPException(status_code=400, detail="Payment does not belong to this booking")
        if intent.get("status") != "succeeded":
            raise HTTPException(status_code=400, detail="Payment has not been completed")
        if (intent.get("amount") or 0) < to_minor_units(amount):
            raise HTTPException(status_code=400, detail="Payment amount does not match booking")

    async def _retrieve(self, gateway: StripePaymentsService, payment_intent_id: str) -> dict:
        try:
            return await gateway.retrieve_payment_intent(payment_intent_id)
        except PaymentGatewayError as e:
            raise HTTPException(
                status_code=500, detail="Failed to verify payment. Please try again."
            ) from e

    def handle_success(self, payment_intent_id: str, booking: Booking) -> bool:
        """
        Mark the deposit paid, unlock the calendar for a year and settle add-ons
        and commissions. Returns False when the deposit was already recorded.
        """
        if booking.payment_status == "completed":
            logger.info(f"ℹ️ Deposit for {booking.booking_reference} already recorded")
            return False

        now = datetime.utcnow()
        booking.status = "deposit_paid"
        booking.payment_status = "completed"
        booking.transaction_id = payment_intent_id
        booking.paid_at = now
        booking.calendar_unlocked_until = now + timedelta(days=CALENDAR_UNLOCK_DURATION_DAYS)

        for add_on in booking.activity_bookings:
            if add_on.payment_status == "pending":
                add_on.status = "payment_completed"
                add_on.payment_status = "completed"
                add_on.transaction_id = payment_intent_id
                add_on.paid_at = now

        self.db.commit()
        self.db.refresh(booking)
        logger.info(f"✅ Payment successful for booking {booking.booking_reference}")

        try:
            if booking.affiliate_code and booking.affiliate_id:
                self._affiliate_commission(booking)
            else:
                self._referral_commission(booking)
        except Exception as e:
            # Commission problems never undo a paid deposit
            self.db.rollback()
            logger.error(f"❌ Failed to process commission for {booking.booking_reference}: {e}")
        return True

    def _affiliate_commission(self, booking: Booking) -> None:
        code = self.repo.get_active_code(self.db, booking.affiliate_code)
        if not code:
            logger.warning(f"⚠️ Affiliate code {booking.affiliate_code} not found or inactive")
            return
        self._record_commission(code, booking, kind="affiliate")

    def _referral_commission(self, booking: Booking) -> None:
        user = booking.user
        if not user or not user.referred_by or not user.referral_code:
            return
        if user.referred_by == user.id:
            return
        code = self.repo.get_active_code(self.db, user.referral_code)
        if not code:
            logger.warning(f"⚠️ Referral code {user.referral_code} not found or inactive")
            return
        self._record_commission(code, booking, kind="referral", referred_user_id=user.id)

    def _record_commission(
        self,
        code: AffiliateCode,
        booking: Booking,
        kind: str,
        referred_user_id: Optional[int] = None,
    ) -> None:
        if self.repo.commission_exists(self.db, booking.id):
            return
        amount = commission_for(code, booking.deposit_amount)
        code.usage_count = (code.usage_count or 0) + 1
        code.total_earnings = round((code.total_earnings or 0) + amount, 2)
        self.repo.create_commission(
            self.db,
            affiliate_id=code.affiliate_id,
            booking_id=booking.id,
            affiliate_code=code.code,
            booking_amount=booking.deposit_amount,
            commission_amount=amount,
            commission_rate=code.commission_rate,
            status="pending",
            kind=kind,
            referred_user_id=referred_user_id,
        )
        logger.info(f"💰 {kind.capitalize()} commission {amount} created for code {code.code}")

    def handle_failure(
        self, payment_intent_id: str, booking: Booking, error_message: Optional[str] = None
    ) -> None:
        if self._stale_failure(payment_intent_id, booking):
            logger.info(f"ℹ️ Ignoring failure of {payment_intent_id} for {booking.booking_reference}")
            return
        booking.payment_status = "failed"
        booking.transaction_id = payment_intent_id
        self.db.commit()
        logger.warning(f"⚠️ Payment failed for booking {booking.booking_reference}: {error_message}")

    @staticmethod
    def _stale_failure(payment_intent_id: str, booking) -> bool:
        """Failures after payment, or for a superseded intent, change nothing"""
        if booking.payment_status == "completed":
            return True
        return bool(booking.transaction_id) and booking.transaction_id != payment_intent_id

    async def process_refund(
        self, booking_id: int, reason: Optional[str], gateway: StripePaymentsService
    ) -> Booking:
        booking = self.repo.get_booking(self.db, booking_id)
        if not booking:
            raise HTTPException(status_code=404, detail="Booking not found")
        if booking.payment_status != "completed" or not booking.transaction_id:
            raise HTTPException(status_code=400, detail="No payment found to refund")

        try:
            refund = await gateway.create_refund(
                booking.transaction_id,
                {"bookingId": booking.id, "reason": reason or "Booking cancelled"},
            )
        except PaymentGatewayError as e:
            raise HTTPException(
                status_code=500, detail="Failed to process refund. Please contact support."
            ) from e

        if refund.get("status") not in ("succeeded", "pending"):
            raise HTTPException(
                status_code=500, detail="Failed to process refund. Please contact support."
            )

        booking.payment_status = "refunded"
        booking.status = "cancelled"
        self.db.commit()
        self.db.refresh(booking)
        logger.info(f"↩️ Refund processed for booking {booking.booking_reference}")
        return booking

    # ------------------------------------------------------------------
    # Stand-alone activity bookings
    # ------------------------------------------------------------------

    def _own_activity_booking(self, booking_id: int, user: User) -> ActivityBooking:
        booking = self.repo.get_activity_booking(self.db, booking_id, user.id)
        if not booking:
            raise HTTPException(status_code=404, detail="Activity booking not found")
        return booking

    async def create_activity_intent(
        self, booking_id: int, user: User, gateway: StripePaymentsService
    ) -> dict:
        booking = self._own_activity_booking(booking_id, user)
        if booking.status != "pending_payment":
            raise HTTPException(
                status_code=400, detail="Payment has already been processed for this booking"
            )

        try:
            intent = await gateway.create_payment_intent(
                booking.amount,
                booking.currency,
                {
                    "activityBookingId": booking.id,
                    "bookingReference": booking.booking_reference,
                    "userId": user.id,
                },
            )
        except PaymentGatewayError as e:
            raise HTTPException(
                status_code=500, detail="Failed to create payment. Please try again."
            ) from e

        booking.transaction_id = intent["paymentIntentId"]
        self.db.commit()
        return {
            "clientSecret": intent["clientSecret"],
            "paymentIntentId": intent["paymentIntentId"],
            "amount": booking.amount,
            "currency": booking.currency,
        }

    async def confirm_activity_payment(
        self, booking_id: int, payment_intent_id: str, user: User, gateway: StripePaymentsService
    ) -> ActivityBooking:
        booking = self._own_activity_booking(booking_id, user)
        intent = await self._retrieve(gateway, payment_intent_id)
        self._check_intent(intent, "activityBookingId", booking.id, booking.amount)

        self.handle_activity_success(payment_intent_id, booking)
        return booking

    def handle_activity_success(self, payment_intent_id: str, booking: ActivityBooking) -> None:
        if booking.payment_status == "completed":
            return
        booking.status = "payment_completed"
        booking.payment_status = "completed"
        booking.transaction_id = payment_intent_id
        booking.paid_at = datetime.utcnow()
        self.db.commit()
        self.db.refresh(booking)
        logger.info(f"✅ Payment successful for activity booking {booking.booking_reference}")

    def handle_activity_failure(self, payment_intent_id: str, booking: ActivityBooking) -> None:
        """Record the failure and hand a stand-alone booking's slots back"""
        if booking.status == "cancelled" or self._stale_failure(payment_intent_id, booking):
            logger.info(f"ℹ️ Ignoring failure of {payment_intent_id} for {booking.booking_reference}")
            return
        booking.payment_status = "failed"
        booking.transaction_id = payment_intent_id
        if not booking.is_add_on:
            booking.status = "cancelled"
            day = booking.availability
            if day is not None:
                day.booked_slots = max(0, (day.booked_slots or 0) - booking.number_of_participants)
        self.db.commit()
        logger.warning(f"⚠️ Payment failed for activity booking {booking.booking_reference}")

    # ------------------------------------------------------------------
    # Webhooks
    # ------------------------------------------------------------------

    @staticmethod
    def _metadata_id(value) -> Optional[int]:
        try:
            return int(value)
        except (TypeError, ValueError):
            logger.warning(f"⚠️ Webhook carries a malformed booking id: {value!r}")
            return None

    async def handle_webhook_event(self, event: dict) -> None:
        event_type = event.get("type")
        intent = (event.get("data") or {}).get("object") or {}
        metadata = intent.get("metadata") or {}
        intent_id = intent.get("id")
        logger.info(f"📨 Received webhook event: {event_type}")

        if event_type not in ("payment_intent.succeeded", "payment_intent.payment_failed"):
            logger.info(f"ℹ️ Unhandled event type: {event_type}")
            return

        succeeded = event_type == "payment_intent.succeeded"

        if metadata.get("bookingId"):
            booking_id = self._metadata_id(metadata["bookingId"])
            booking = self.repo.get_booking(self.db, booking_id) if booking_id else None
            if not booking:
                logger.warning(f"⚠️ Webhook references unknown booking {metadata['bookingId']}")
                return
            if succeeded:
                if self.handle_success(intent_id, booking):
                    await notification_service.notify_deposit_paid(self.db, booking)
            else:
                error = (intent.get("last_payment_error") or {}).get("message")
                self.handle_failure(intent_id, booking, error)
        elif metadata.get("activityBookingId"):
            booking_id = self._metadata_id(metadata["activityBookingId"])
            booking = self.repo.get_activity_booking(self.db, booking_id) if booking_id else None
            if not booking:
                logger.warning(
                    f"⚠️ Webhook references unknown activity booking {metadata['activityBookingId']}"
                )
                return
            if succeeded:
                self.handle_activity_success(intent_id, booking)
            else:
                self.handle_activity_failure(intent_id, booking)
