"""Availability router - FastAPI endpoints for destination calendars"""

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import admin_only
from ...database import get_db
from ...models import User
from ...serializers import serialize_availability
from ...shared.responses import created_response, success_response
from .schemas import AvailabilityUpsert, BlockRequest, BulkSlotsRequest, BulkUpdateRequest
from .service import AvailabilityService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/availability", tags=["Availability"])


def get_availability_service(db: Session = Depends(get_db)) -> AvailabilityService:
    """Dependency injection for AvailabilityService"""
    return AvailabilityService(db)


# ============================================================================
# PUBLIC CALENDAR
# ============================================================================


@router.get("/destination/{destination_id}")
async def get_availability(
    destination_id: int,
    startDate: Optional[date] = Query(None),
    endDate: Optional[date] = Query(None),
    service: AvailabilityService = Depends(get_availability_service),
):
    rows = service.get_calendar(destination_id, startDate, endDate)
    return success_response(
        "Availability retrieved successfully", [serialize_availability(r) for r in rows]
    )


@router.get("/{destination_id}")
async def get_availability_short(
    destination_id: int,
    startDate: Optional[date] = Query(None),
    endDate: Optional[date] = Query(None),
    service: AvailabilityService = Depends(get_availability_service),
):
    """Same calendar as /destination/{id}; the admin calendar page uses this path"""
    rows = service.get_calendar(destination_id, startDate, endDate)
    return success_response(
        "Availability retrieved successfully", [serialize_availability(r) for r in rows]
    )


# ============================================================================
# ADMIN MANAGEMENT
# ============================================================================


@router.post("")
async def upsert_availability(
    data: AvailabilityUpsert,
    current_user: User = Depends(admin_only),
    service: AvailabilityService = Depends(get_availability_service),
):
    row = service.upsert(data)
    return created_response("Availability updated successfully", serialize_availability(row))


@router.post("/bulk-update")
async def bulk_update_availability(
    data: BulkUpdateRequest,
    current_user: User = Depends(admin_only),
    service: AvailabilityService = Depends(get_availability_service),
):
    result = service.bulk_update(data)
    return success_response(f"Availability updated for {result['updatedCount']} dates", result)


@router.put("/{target_id}/block")
async def block_dates(
    target_id: int,
    data: BlockRequest,
    current_user: User = Depends(admin_only),
    service: AvailabilityService = Depends(get_availability_service),
):
    """
    With {blockReason}: block one availability row (target_id is its id).
    With {dates, isBlocked}: block/unblock many days (target_id is a destination id).
    """
    kind, result = service.block_request(target_id, data)
    if kind == "bulk":
        verb = "Blocked" if result["isBlocked"] else "Unblocked"
        return success_response(f"{verb} {result['datesUpdated']} date(s) successfully", result)
    return success_response("Date blocked successfully", serialize_availability(result))


@router.put("/{availability_id}/unblock")
async def unblock_date(
    availability_id: int,
    current_user: User = Depends(admin_only),
    service: AvailabilityService = Depends(get_availability_service),
):
    row = service.unblock(availability_id)
    return success_response("Date unblocked successfully", serialize_availability(row))


@router.put("/{destination_id}/bulk")
async def bulk_update_slots(
    destination_id: int,
    data: BulkSlotsRequest,
    current_user: User = Depends(admin_only),
    service: AvailabilityService = Depends(get_availability_service),
):
    result = service.bulk_slots(destination_id, data)
    return success_response(
        f"Updated slots for {result['datesUpdated']} date(s) successfully", result
    )
