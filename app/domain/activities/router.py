"""Activity router - Public activity catalogue and bookings"""

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_user
from ...database import get_db
from ...models import User
from ...serializers import (
    serialize_activity,
    serialize_activity_availability,
    serialize_activity_booking,
)
from ...shared.responses import (
    created_response,
    normalize_pagination,
    pagination_meta,
    success_response,
)
from .schemas import ActivityBookRequest, InquiryRequest
from .service import ActivityService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/activities", tags=["Activities"])


def get_activity_service(db: Session = Depends(get_db)) -> ActivityService:
    """Dependency injection for ActivityService"""
    return ActivityService(db)


@router.get("")
async def list_activities(
    page: Optional[int] = Query(None),
    limit: Optional[int] = Query(None),
    location: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    service: ActivityService = Depends(get_activity_service),
):
    page, limit = normalize_pagination(page, limit, default_limit=12, max_limit=50)
    rows, total = service.list_activities(page, limit, location, search)
    return success_response(
        "Activities retrieved successfully",
        [serialize_activity(a) for a in rows],
        pagination_meta(page, limit, total),
    )


@router.get("/bookings/{booking_id}")
async def get_activity_booking(
    booking_id: int,
    current_user: User = Depends(get_current_user),
    service: ActivityService = Depends(get_activity_service),
):
    booking = service.get_booking(booking_id, current_user)
    return success_response(
        "Activity booking retrieved successfully", serialize_activity_booking(booking)
    )


@router.get("/{activity_id}")
async def get_activity(activity_id: int, service: ActivityService = Depends(get_activity_service)):
    activity = service.get_activity(activity_id)
    return success_response("Activity retrieved successfully", serialize_activity(activity))


@router.get("/{activity_id}/availability")
async def get_activity_availability(
    activity_id: int,
    startDate: Optional[date] = Query(None),
    endDate: Optional[date] = Query(None),
    service: ActivityService = Depends(get_activity_service),
):
    rows, start, end = service.get_availability(activity_id, startDate, endDate)
    return success_response(
        "Availability retrieved successfully",
        {
            "activityId": activity_id,
            "availability": [serialize_activity_availability(r) for r in rows],
            "dateRange": {"start": start, "end": end},
        },
    )


@router.post("/{activity_id}/inquire")
async def submit_inquiry(
    activity_id: int,
    data: InquiryRequest,
    service: ActivityService = Depends(get_activity_service),
):
    inquiry, notified = await service.submit_inquiry(activity_id, data)
    return created_response(
        "Inquiry submitted successfully. You will be contacted shortly.",
        {
            "id": inquiry.id,
            "activityId": inquiry.activity_id,
            "customerName": inquiry.customer_name,
            "customerEmail": inquiry.customer_email,
            "customerPhone": inquiry.customer_phone,
            "preferredDate": inquiry.preferred_date,
            "message": inquiry.message,
            "notifications": notified,
            "createdAt": inquiry.created_at,
        },
    )


@router.post("/{activity_id}/book")
async def book_activity(
    activity_id: int,
    data: ActivityBookRequest,
    current_user: User = Depends(get_current_user),
    service: ActivityService = Depends(get_activity_service),
):
    booking = service.book_activity(activity_id, data, current_user)
    return created_response(
        "Booking created successfully. Please proceed to payment.",
        serialize_activity_booking(booking),
    )
