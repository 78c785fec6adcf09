"""Destination router - FastAPI endpoints for the destination catalogue"""

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import admin_only
from ...database import get_db
from ...models import User
from ...serializers import serialize_availability, serialize_destination
from ...shared.responses import (
    created_response,
    normalize_pagination,
    pagination_meta,
    success_response,
)
from .schemas import DestinationCreate, DestinationUpdate
from .service import DestinationService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/destinations", tags=["Destinations"])


def get_destination_service(db: Session = Depends(get_db)) -> DestinationService:
    """Dependency injection for DestinationService"""
    return DestinationService(db)


@router.get("")
async def list_destinations(
    page: Optional[int] = Query(None),
    limit: Optional[int] = Query(None),
    country: Optional[str] = Query(None),
    region: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    service: DestinationService = Depends(get_destination_service),
):
    page, limit = normalize_pagination(page, limit)
    rows, total = service.list_destinations(page, limit, country, region, search)
    return success_response(
        "Destinations retrieved successfully",
        [serialize_destination(d) for d in rows],
        pagination_meta(page, limit, total),
    )


@router.get("/{slug}")
async def get_destination(slug: str, service: DestinationService = Depends(get_destination_service)):
    destination = service.get_by_slug(slug)
    return success_response("Destination retrieved successfully", serialize_destination(destination))


@router.get("/{destination_id}/availability")
async def get_destination_availability(
    destination_id: int,
    startDate: Optional[date] = Query(None),
    endDate: Optional[date] = Query(None),
    service: DestinationService = Depends(get_destination_service),
):
    rows = service.get_availability(destination_id, startDate, endDate)
    return success_response(
        "Availability retrieved successfully", [serialize_availability(r) for r in rows]
    )


# ============================================================================
# ADMIN
# ============================================================================


@router.post("")
async def create_destination(
    data: DestinationCreate,
    current_user: User = Depends(admin_only),
    service: DestinationService = Depends(get_destination_service),
):
    destination = service.create_destination(data)
    return created_response("Destination created successfully", serialize_destination(destination))


@router.put("/{destination_id}")
async def update_destination(
    destination_id: int,
    data: DestinationUpdate,
    current_user: User = Depends(admin_only),
    service: DestinationService = Depends(get_destination_service),
):
    destination = service.update_destination(destination_id, data)
    return success_response("Destination updated successfully", serialize_destination(destination))


@router.delete("/{destination_id}")
async def delete_destination(
    destination_id: int,
    current_user: User = Depends(admin_only),
    service: DestinationService = Depends(get_destination_service),
):
    service.deactivate_destination(destination_id)
    return success_response("Destination deactivated successfully")
