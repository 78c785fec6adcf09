"""Merchant router - FastAPI endpoints for activity providers"""

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_user, merchant_only
from ...database import get_db
from ...models import User
from ...serializers import serialize_activity, serialize_activity_availability
from ...shared.responses import (
    created_response,
    normalize_pagination,
    pagination_meta,
    success_response,
)
from .schemas import ActivitySubmit, DatesBlockRequest, DatesSlotsRequest
from .service import MerchantService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/merchant", tags=["Merchant"])


def get_merchant_service(db: Session = Depends(get_db)) -> MerchantService:
    """Dependency injection for MerchantService"""
    return MerchantService(db)


def _merchant_booking(booking) -> dict:
    activity = booking.activity
    return {
        "id": booking.id,
        "bookingReference": booking.booking_reference,
        "activity": {
            "id": activity.id if activity else booking.activity_id,
            "title": activity.title if activity else None,
            "photos": (activity.photos or []) if activity else [],
        },
        "customer": {
            "name": booking.customer_name,
            "email": booking.customer_email,
            "phone": booking.customer_phone,
        },
        "selectedDate": booking.selected_date,
        "numberOfParticipants": booking.number_of_participants,
        "payment": {
            "amount": booking.amount,
            "merchantAmount": booking.merchant_amount,
            "triplyCommission": booking.triply_commission,
            "currency": booking.currency,
            "paymentStatus": booking.payment_status,
            "merchantPayoutStatus": booking.merchant_payout_status,
            "merchantPayoutDate": booking.merchant_payout_date,
        },
        "status": booking.status,
        "createdAt": booking.created_at,
        "updatedAt": booking.updated_at,
    }


@router.post("/register")
async def register_merchant(
    current_user: User = Depends(get_current_user),
    service: MerchantService = Depends(get_merchant_service),
):
    service.register(current_user)
    return created_response(
        "Successfully registered as merchant. You can now submit activities.",
        {"role": "merchant"},
    )


# ============================================================================
# ACTIVITIES
# ============================================================================


@router.post("/activities")
async def submit_activity(
    data: ActivitySubmit,
    current_user: User = Depends(merchant_only),
    service: MerchantService = Depends(get_merchant_service),
):
    activity = service.submit_activity(current_user, data)
    return created_response(
        "Activity submitted successfully. Waiting for admin approval.",
        serialize_activity(activity, include_merchant=False),
    )


@router.get("/activities")
async def list_activities(
    current_user: User = Depends(merchant_only),
    service: MerchantService = Depends(get_merchant_service),
):
    activities = service.list_activities(current_user)
    return success_response(
        "Activities retrieved successfully",
        [serialize_activity(a, include_merchant=False) for a in activities],
    )


@router.get("/dashboard")
async def dashboard(
    current_user: User = Depends(merchant_only),
    service: MerchantService = Depends(get_merchant_service),
):
    data = service.dashboard(current_user)
    data["recentBookings"] = [
        {
            "id": b.id,
            "bookingReference": b.booking_reference,
            "activityTitle": b.activity.title if b.activity else "Unknown",
            "customerName": b.customer_name,
            "selectedDate": b.selected_date,
            "numberOfParticipants": b.number_of_participants,
            "amount": b.amount,
            "merchantAmount": b.merchant_amount,
            "currency": b.currency,
            "status": b.status,
            "paymentStatus": b.payment_status,
            "payoutStatus": b.merchant_payout_status,
            "createdAt": b.created_at,
        }
        for b in data["recentBookings"]
    ]
    return success_response("Dashboard data retrieved successfully", data)


@router.get("/bookings")
async def list_bookings(
    page: int = Query(1),
    limit: int = Query(10),
    status: Optional[str] = Query(None),
    current_user: User = Depends(merchant_only),
    service: MerchantService = Depends(get_merchant_service),
):
    page, limit = normalize_pagination(page, limit)
    bookings, total = service.bookings(current_user, page, limit, status)
    return success_response(
        "Bookings retrieved successfully",
        [_merchant_booking(b) for b in bookings],
        pagination_meta(page, limit, total),
    )


# ============================================================================
# AVAILABILITY
# ============================================================================


@router.get("/activities/{activity_id}/availability")
async def activity_availability(
    activity_id: int,
    startDate: Optional[date] = Query(None),
    endDate: Optional[date] = Query(None),
    current_user: User = Depends(merchant_only),
    service: MerchantService = Depends(get_merchant_service),
):
    rows = service.availability(activity_id, current_user, startDate, endDate)
    data = {
        "activityId": activity_id,
        "availability": [serialize_activity_availability(r) for r in rows],
    }
    if startDate and endDate:
        data["dateRange"] = {"start": startDate, "end": endDate}
    return success_response("Availability retrieved successfully", data)


@router.put("/activities/{activity_id}/availability/block")
async def block_dates(
    activity_id: int,
    data: DatesBlockRequest,
    current_user: User = Depends(merchant_only),
    service: MerchantService = Depends(get_merchant_service),
):
    result = service.block_dates(activity_id, current_user, data.dates, data.isBlocked)
    action = "Blocked" if data.isBlocked else "Unblocked"
    return success_response(f"{action} {len(data.dates)} date(s) successfully", result)


@router.put("/activities/{activity_id}/availability/slots")
async def update_slots(
    activity_id: int,
    data: DatesSlotsRequest,
    current_user: User = Depends(merchant_only),
    service: MerchantService = Depends(get_merchant_service),
):
    result = service.update_slots(activity_id, current_user, data)
    return success_response(f"Updated slots for {len(data.dates)} date(s) successfully", result)
