"""Merchant domain schemas - Pydantic models for validation"""

from datetime import date
from typing import Optional

from pydantic import AliasChoices, BaseModel, Field, field_validator


class ActivitySubmit(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1, max_length=2000)
    location: str = Field(..., min_length=1, max_length=200)
    price: float = Field(..., gt=0)
    currency: str = Field("AED", min_length=3, max_length=3)
    photos: list[str] = Field(..., min_length=1, max_length=3)

    @field_validator("photos")
    @classmethod
    def photo_urls(cls, v: list[str]) -> list[str]:
        urls = [url.strip() for url in v if url and url.strip()]
        if not urls:
            raise ValueError("At least one photo is required")
        for url in urls:
            if not url.startswith(("http://", "https://")):
                raise ValueError("Photos must be image URLs")
        return urls

    @field_validator("currency")
    @classmethod
    def upper_currency(cls, v: str) -> str:
        return v.upper()


class DatesBlockRequest(BaseModel):
    dates: list[date] = []
    isBlocked: bool = True


class DatesSlotsRequest(BaseModel):
    dates: list[date] = []
    totalSlots: int = Field(0, validation_alias=AliasChoices("totalSlots", "slots"))
    price: Optional[float] = Field(None, ge=0)
