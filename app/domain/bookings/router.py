"""Booking router - FastAPI endpoints for destination bookings"""

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import admin_only, get_current_user
from ...database import get_db
from ...models import User
from ...serializers import serialize_booking
from ...services.report_service import csv_download
from ...shared.responses import (
    created_response,
    normalize_pagination,
    pagination_meta,
    success_response,
)
from ..payments.stripe_service import StripePaymentsService, get_payment_gateway
from .schemas import (
    AdminDatesRequest,
    AdminNotesRequest,
    BookingCreate,
    RejectBookingRequest,
    SelectDatesRequest,
)
from .service import BookingService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/bookings", tags=["Bookings"])


def get_booking_service(db: Session = Depends(get_db)) -> BookingService:
    """Dependency injection for BookingService"""
    return BookingService(db)


def _travel_dates(booking) -> dict:
    return {
        "startDate": booking.travel_start_date,
        "endDate": booking.travel_end_date,
        "isFlexible": booking.is_flexible,
    }


# ============================================================================
# CUSTOMER ENDPOINTS
# ============================================================================


@router.post("")
async def create_booking(
    data: BookingCreate,
    current_user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
    gateway: StripePaymentsService = Depends(get_payment_gateway),
):
    result = await service.create_booking(data, current_user, gateway)
    return created_response("Booking created successfully", result)


@router.get("/my-bookings")
async def get_my_bookings(
    page: Optional[int] = Query(None),
    limit: Optional[int] = Query(None),
    status: Optional[str] = Query(None),
    current_user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    page, limit = normalize_pagination(page, limit)
    rows, total = service.list_my_bookings(current_user, page, limit, status)
    return success_response(
        "Bookings retrieved successfully",
        [serialize_booking(b, include_admin_notes=False) for b in rows],
        pagination_meta(page, limit, total),
    )


# ============================================================================
# ADMIN ENDPOINTS
# ============================================================================


@router.get("/admin/all")
async def get_all_bookings(
    page: Optional[int] = Query(None),
    limit: Optional[int] = Query(None),
    status: Optional[str] = Query(None),
    destinationId: Optional[int] = Query(None),
    userId: Optional[int] = Query(None),
    dateFrom: Optional[date] = Query(None),
    dateTo: Optional[date] = Query(None),
    affiliateCode: Optional[str] = Query(None),
    current_user: User = Depends(admin_only),
    service: BookingService = Depends(get_booking_service),
):
    page, limit = normalize_pagination(page, limit)
    rows, total = service.list_all_bookings(
        page,
        limit,
        status=status,
        destination_id=destinationId,
        user_id=userId,
        date_from=dateFrom,
        date_to=dateTo,
        affiliate_code=affiliateCode,
    )
    return success_response(
        "Bookings retrieved successfully",
        [serialize_booking(b) for b in rows],
        pagination_meta(page, limit, total),
    )


@router.get("/admin/export")
async def export_bookings(
    format: str = Query("csv"),
    status: Optional[str] = Query(None),
    destinationId: Optional[int] = Query(None),
    startDate: Optional[date] = Query(None),
    endDate: Optional[date] = Query(None),
    current_user: User = Depends(admin_only),
    service: BookingService = Depends(get_booking_service),
):
    """Export bookings as CSV (default) or as JSON rows"""
    rows, csv_content = service.export_bookings(
        status=status, destination_id=destinationId, date_from=startDate, date_to=endDate
    )
    if format == "csv":
        return csv_download(csv_content, "bookings-report")
    return success_response("Bookings report generated", rows)


@router.put("/admin/{booking_id}/confirm")
async def confirm_booking(
    booking_id: int,
    current_user: User = Depends(admin_only),
    service: BookingService = Depends(get_booking_service),
):
    booking = await service.confirm_booking(booking_id)
    return success_response(
        "Booking confirmed successfully",
        {"bookingReference": booking.booking_reference, "status": booking.status},
    )


@router.put("/admin/{booking_id}/reject")
async def reject_booking(
    booking_id: int,
    data: RejectBookingRequest,
    current_user: User = Depends(admin_only),
    service: BookingService = Depends(get_booking_service),
):
    booking = await service.reject_booking(booking_id, data.rejectionReason)
    return success_response(
        "Booking rejected",
        {"bookingReference": booking.booking_reference, "status": booking.status},
    )


@router.put("/admin/{booking_id}/update-dates")
async def update_booking_dates(
    booking_id: int,
    data: AdminDatesRequest,
    current_user: User = Depends(admin_only),
    service: BookingService = Depends(get_booking_service),
):
    booking = await service.update_dates(booking_id, data)
    return success_response(
        "Booking dates updated successfully",
        {
            "bookingReference": booking.booking_reference,
            "travelDates": _travel_dates(booking),
            "status": booking.status,
        },
    )


@router.put("/admin/{booking_id}/notes")
async def update_admin_notes(
    booking_id: int,
    data: AdminNotesRequest,
    current_user: User = Depends(admin_only),
    service: BookingService = Depends(get_booking_service),
):
    booking = service.update_notes(booking_id, data.adminNotes)
    return success_response(
        "Admin notes updated",
        {"bookingReference": booking.booking_reference, "adminNotes": booking.admin_notes},
    )


# ============================================================================
# SINGLE BOOKING
# ============================================================================


@router.get("/{booking_id}")
async def get_booking(
    booking_id: int,
    current_user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    booking = service.get_booking(booking_id, current_user)
    return success_response(
        "Booking retrieved successfully",
        serialize_booking(booking, include_admin_notes=current_user.role == "admin"),
    )


@router.put("/{booking_id}/select-dates")
async def select_dates(
    booking_id: int,
    data: SelectDatesRequest,
    current_user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    booking = await service.select_dates(booking_id, data, current_user)
    return success_response(
        "Travel dates selected successfully. Awaiting confirmation.",
        {
            "bookingReference": booking.booking_reference,
            "status": booking.status,
            "travelDates": _travel_dates(booking),
        },
    )


@router.put("/{booking_id}/cancel")
async def cancel_booking(
    booking_id: int,
    current_user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    booking = service.cancel_booking(booking_id, current_user)
    return success_response(
        "Booking cancelled successfully",
        {"bookingReference": booking.booking_reference, "status": booking.status},
    )
