"""Availability service - Business logic for destination calendars"""

import logging
from datetime import date
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import Availability, Destination
from ...shared.validators import add_months, iter_days
from .repository import BLOCK_DEFAULT_SLOTS, AvailabilityRepository
from .schemas import AvailabilityUpsert, BlockRequest, BulkSlotsRequest, BulkUpdateRequest

logger = logging.getLogger(__name__)

DEFAULT_WINDOW_MONTHS = 6


def default_range(start: Optional[date], end: Optional[date]) -> tuple[date, date]:
    """Missing bounds default to today and six months from today"""
    today = date.today()
    return start or today, end or add_months(today, DEFAULT_WINDOW_MONTHS)


class AvailabilityService:
    """Service layer for availability business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = AvailabilityRepository()

    def get_destination(self, destination_id: int) -> Destination:
        destination = self.repo.get_destination(self.db, destination_id)
        if not destination:
            raise HTTPException(status_code=404, detail="Destination not found")
        return destination

    def get_row(self, availability_id: int) -> Availability:
        row = self.repo.get_by_id(self.db, availability_id)
        if not row:
            raise HTTPException(status_code=404, detail="Availability record not found")
        return row

    def get_calendar(
        self, destination_id: int, start: Optional[date] = None, end: Optional[date] = None
    ) -> list[Availability]:
        self.get_destination(destination_id)
        start, end = default_range(start, end)
        return self.repo.get_range(self.db, destination_id, start, end)

    def upsert(self, data: AvailabilityUpsert) -> Availability:
        self.get_destination(data.destinationId)
        row = self.repo.upsert_day(
            self.db,
            data.destinationId,
            data.date,
            {"available_slots": data.availableSlots, "price_override": data.priceOverride},
        )
        logger.info(f"📅 Availability for destination {data.destinationId} on {data.date} set")
        return self.repo.save(self.db, row)

    def block(self, availability_id: int, reason: Optional[str]) -> Availability:
        row = self.get_row(availability_id)
        row.is_blocked = True
        row.block_reason = reason
        return self.repo.save(self.db, row)

    def unblock(self, availability_id: int) -> Availability:
        row = self.get_row(availability_id)
        row.is_blocked = False
        row.block_reason = None
        return self.repo.save(self.db, row)

    def bulk_update(self, data: BulkUpdateRequest) -> dict:
        self.get_destination(data.destinationId)
        start, end = data.dateRange.startDate, data.dateRange.endDate
        if start > end:
            raise HTTPException(status_code=400, detail="Start date must be before end date")

        count = 0
        for day in iter_days(start, end):
            self.repo.upsert_day(
                self.db,
                data.destinationId,
                day,
                {
                    "available_slots": data.availableSlots,
                    "is_blocked": data.isBlocked,
                    "price_override": data.priceOverride,
                },
            )
            count += 1
        self.db.commit()

        logger.info(f"📅 Bulk-updated {count} days for destination {data.destinationId}")
        return {
            "destinationId": data.destinationId,
            "updatedCount": count,
            "dateRange": {"startDate": start, "endDate": end},
        }

    def bulk_slots(self, destination_id: int, data: BulkSlotsRequest) -> dict:
        if not data.dates:
            raise HTTPException(status_code=400, detail="Dates array is required")
        if data.totalSlots <= 0:
            raise HTTPException(status_code=400, detail="Total slots must be a positive number")
        self.get_destination(destination_id)

        for day in data.dates:
            self.repo.upsert_day(
                self.db,
                destination_id,
                day,
                {"available_slots": data.totalSlots},
                on_insert={"is_blocked": False},
            )
        self.db.commit()
        return {
            "destinationId": destination_id,
            "datesUpdated": len(data.dates),
            "totalSlots": data.totalSlots,
        }

    def bulk_block(self, destination_id: int, dates: list[date], is_blocked: bool) -> dict:
        if not dates:
            raise HTTPException(status_code=400, detail="Dates array is required")
        self.get_destination(destination_id)

        for day in dates:
            self.repo.upsert_day(
                self.db,
                destination_id,
                day,
                {"is_blocked": is_blocked},
                on_insert={"available_slots": BLOCK_DEFAULT_SLOTS},
            )
        self.db.commit()
        logger.info(
            f"🚧 {'Blocked' if is_blocked else 'Unblocked'} {len(dates)} days "
            f"for destination {destination_id}"
        )
        return {"destinationId": destination_id, "datesUpdated": len(dates), "isBlocked": is_blocked}

    def block_request(self, target_id: int, data: BlockRequest):
        """Route a PUT /{id}/block body to the single-row or bulk handler"""
        if data.dates is not None:
            return "bulk", self.bulk_block(target_id, data.dates, data.isBlocked)
        return "single", self.block(target_id, data.blockReason)
