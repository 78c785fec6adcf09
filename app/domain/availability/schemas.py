"""Availability domain schemas - Pydantic models for validation"""

from datetime import date
from typing import Optional

from pydantic import BaseModel, Field


class AvailabilityUpsert(BaseModel):
    destinationId: int
    date: date
    availableSlots: int = Field(..., ge=0)
    priceOverride: Optional[float] = Field(None, ge=0)


class DateRange(BaseModel):
    startDate: date
    endDate: date


class BulkUpdateRequest(BaseModel):
    """Apply one slot/block/price setting to every day of a range"""

    destinationId: int
    dateRange: DateRange
    availableSlots: int = Field(..., ge=0)
    isBlocked: bool = False
    priceOverride: Optional[float] = Field(None, ge=0)


class BulkSlotsRequest(BaseModel):
    dates: list[date] = []
    totalSlots: int = 0


class BlockRequest(BaseModel):
    """
    Either a single-row block ({blockReason}) addressed by availability id,
    or a bulk block ({dates, isBlocked}) addressed by destination id.
    """

    blockReason: Optional[str] = Field(None, max_length=255)
    dates: Optional[list[date]] = None
    isBlocked: bool = False
