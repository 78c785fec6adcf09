"""Payment router - Payment intents, confirmations, refunds and Stripe webhooks"""

import json
import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from ...auth import admin_only, get_current_user
from ...config import STRIPE_WEBHOOK_SECRET
from ...database import get_db
from ...models import User
from ...serializers import serialize_activity_booking
from ...shared.responses import success_response
from ...webhook_security import WebhookSignatureError, verify_stripe_signature
from .schemas import (
    ConfirmActivityPaymentRequest,
    ConfirmPaymentRequest,
    CreateIntentRequest,
    RefundRequest,
)
from .service import PaymentService
from .stripe_service import StripePaymentsService, get_payment_gateway

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/payments", tags=["Payments"])


def get_payment_service(db: Session = Depends(get_db)) -> PaymentService:
    """Dependency injection for PaymentService"""
    return PaymentService(db)


# ============================================================================
# DESTINATION DEPOSITS
# ============================================================================


@router.post("/create-intent")
async def create_intent(
    data: CreateIntentRequest,
    current_user: User = Depends(get_current_user),
    service: PaymentService = Depends(get_payment_service),
    gateway: StripePaymentsService = Depends(get_payment_gateway),
):
    result = await service.create_intent(data.bookingId, current_user, gateway)
    return success_response("Payment intent created", result)


@router.post("/confirm")
async def confirm_payment(
    data: ConfirmPaymentRequest,
    current_user: User = Depends(get_current_user),
    service: PaymentService = Depends(get_payment_service),
    gateway: StripePaymentsService = Depends(get_payment_gateway),
):
    booking = await service.confirm_payment(
        data.bookingId, data.paymentIntentId, current_user, gateway
    )
    return success_response(
        "Payment confirmed successfully",
        {"bookingReference": booking.booking_reference, "status": booking.status},
    )


@router.get("/booking/{booking_id}")
async def get_payment_details(
    booking_id: int,
    current_user: User = Depends(get_current_user),
    service: PaymentService = Depends(get_payment_service),
):
    booking = service.get_booking(booking_id, current_user)
    return success_response(
        "Payment details retrieved",
        {
            "bookingReference": booking.booking_reference,
            "depositPayment": {
                "amount": booking.deposit_amount,
                "currency": booking.deposit_currency,
                "paymentMethod": booking.payment_method,
                "transactionId": booking.transaction_id,
                "paidAt": booking.paid_at,
                "paymentStatus": booking.payment_status,
            },
            "status": booking.status,
        },
    )


@router.post("/booking/{booking_id}/refund")
async def refund_booking(
    booking_id: int,
    data: RefundRequest,
    current_user: User = Depends(admin_only),
    service: PaymentService = Depends(get_payment_service),
    gateway: StripePaymentsService = Depends(get_payment_gateway),
):
    booking = await service.process_refund(booking_id, data.reason, gateway)
    return success_response(
        "Refund processed successfully",
        {
            "bookingReference": booking.booking_reference,
            "status": booking.status,
            "paymentStatus": booking.payment_status,
        },
    )


# ============================================================================
# ACTIVITY BOOKINGS
# ============================================================================


@router.post("/activity-bookings/{booking_id}/create-intent")
async def create_activity_intent(
    booking_id: int,
    current_user: User = Depends(get_current_user),
    service: PaymentService = Depends(get_payment_service),
    gateway: StripePaymentsService = Depends(get_payment_gateway),
):
    result = await service.create_activity_intent(booking_id, current_user, gateway)
    return success_response("Payment intent created", result)


@router.post("/activity-bookings/{booking_id}/confirm")
async def confirm_activity_payment(
    booking_id: int,
    data: ConfirmActivityPaymentRequest,
    current_user: User = Depends(get_current_user),
    service: PaymentService = Depends(get_payment_service),
    gateway: StripePaymentsService = Depends(get_payment_gateway),
):
    booking = await service.confirm_activity_payment(
        booking_id, data.paymentIntentId, current_user, gateway
    )
    return success_response("Payment confirmed successfully", serialize_activity_booking(booking))


# ============================================================================
# STRIPE WEBHOOK
# ============================================================================


@router.post("/webhook")
async def stripe_webhook(request: Request, service: PaymentService = Depends(get_payment_service)):
    """Raw body is verified against Stripe-Signature before it is parsed"""
    payload = await request.body()
    try:
        verify_stripe_signature(
            payload, request.headers.get("stripe-signature"), STRIPE_WEBHOOK_SECRET
        )
    except WebhookSignatureError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e

    try:
        event = json.loads(payload)
    except ValueError as e:
        raise HTTPException(status_code=400, detail="Invalid webhook payload") from e

    await service.handle_webhook_event(event)
    return {"received": True}
