"""Destination service - Business logic for the destination catalogue"""

import logging
from datetime import date
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...config import DEFAULT_CURRENCY, DEFAULT_DEPOSIT_AMOUNT
from ...models import Availability, Destination
from ...shared.validators import slugify
from ..availability.repository import AvailabilityRepository
from ..availability.service import default_range
from .repository import DestinationRepository
from .schemas import DestinationCreate, DestinationUpdate

logger = logging.getLogger(__name__)


def _localized(value) -> Optional[dict]:
    return value.model_dump(exclude_none=True) if value is not None else None


def _localized_list(values) -> Optional[list[dict]]:
    return [v.model_dump(exclude_none=True) for v in values] if values is not None else None


class DestinationService:
    """Service layer for destination business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = DestinationRepository()

    def list_destinations(
        self,
        page: int,
        limit: int,
        country: Optional[str] = None,
        region: Optional[str] = None,
        search: Optional[str] = None,
    ) -> tuple[list[Destination], int]:
        return self.repo.list_active(
            self.db, (page - 1) * limit, limit, country=country, region=region, search=search
        )

    def get_by_slug(self, slug: str) -> Destination:
        destination = self.repo.get_active_by_slug(self.db, slug)
        if not destination:
            raise HTTPException(status_code=404, detail="Destination not found")
        return destination

    def get_destination(self, destination_id: int) -> Destination:
        destination = self.repo.get_by_id(self.db, destination_id)
        if not destination:
            raise HTTPException(status_code=404, detail="Destination not found")
        return destination

    def get_availability(
        self, destination_id: int, start: Optional[date], end: Optional[date]
    ) -> list[Availability]:
        self.get_destination(destination_id)
        start, end = default_range(start, end)
        return AvailabilityRepository.get_range(self.db, destination_id, start, end)

    def create_destination(self, data: DestinationCreate) -> Destination:
        slug = slugify(data.slug or data.name.en)
        if not slug:
            raise HTTPException(status_code=400, detail="Invalid slug format")

        destination = self.repo.create(
            self.db,
            name=_localized(data.name),
            description=_localized(data.description),
            short_description=_localized(data.shortDescription),
            slug=slug,
            images=data.images,
            thumbnail_image=data.thumbnailImage,
            country=data.country,
            region=data.region,
            deposit_amount=(
                data.depositAmount if data.depositAmount is not None else DEFAULT_DEPOSIT_AMOUNT
            ),
            currency=(data.currency or DEFAULT_CURRENCY).upper(),
            highlights=_localized_list(data.highlights),
            inclusions=_localized_list(data.inclusions),
            exclusions=_localized_list(data.exclusions),
            duration_days=data.duration.days,
            duration_nights=data.duration.nights,
            is_active=data.isActive,
        )
        logger.info(f"🗺️ Destination {destination.id} ({destination.slug}) created")
        return destination

    def update_destination(self, destination_id: int, data: DestinationUpdate) -> Destination:
        destination = self.get_destination(destination_id)

        updates = {
            "name": _localized(data.name),
            "description": _localized(data.description),
            "short_description": _localized(data.shortDescription),
            "slug": slugify(data.slug) if data.slug else None,
            "images": data.images,
            "thumbnail_image": data.thumbnailImage,
            "country": data.country,
            "region": data.region,
            "deposit_amount": data.depositAmount,
            "currency": data.currency.upper() if data.currency else None,
            "highlights": _localized_list(data.highlights),
            "inclusions": _localized_list(data.inclusions),
            "exclusions": _localized_list(data.exclusions),
            "is_active": data.isActive,
        }
        if data.duration is not None:
            updates["duration_days"] = data.duration.days
            updates["duration_nights"] = data.duration.nights

        return self.repo.update(self.db, destination, **updates)

    def deactivate_destination(self, destination_id: int) -> Destination:
        destination = self.get_destination(destination_id)
        logger.info(f"🗑️ Deactivating destination {destination_id}")
        destination.is_active = False
        self.db.commit()
        return destination
