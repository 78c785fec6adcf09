"""Booking domain schemas - Pydantic models for validation"""

from datetime import date
from typing import Optional

from pydantic import AliasChoices, BaseModel, Field, field_validator, model_validator


class AddOnActivity(BaseModel):
    """Activity booked together with a destination deposit"""

    activityId: int
    selectedDate: date = Field(..., validation_alias=AliasChoices("selectedDate", "date"))
    participants: int = Field(
        1, ge=1, le=100, validation_alias=AliasChoices("participants", "numberOfParticipants")
    )
    customerName: Optional[str] = Field(None, max_length=255)
    customerEmail: Optional[str] = None
    customerPhone: Optional[str] = None
    specialRequests: Optional[str] = Field(None, max_length=1000)


class BookingCreate(BaseModel):
    destinationId: int
    numberOfTravellers: int = Field(1, ge=1, le=50)
    specialRequests: Optional[str] = Field(None, max_length=1000)
    affiliateCode: Optional[str] = None
    activities: list[AddOnActivity] = []

    @field_validator("affiliateCode")
    @classmethod
    def normalize_code(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v = v.strip().upper()
        return v or None


class SelectDatesRequest(BaseModel):
    startDate: date
    endDate: date
    isFlexible: bool = False

    @field_validator("startDate")
    @classmethod
    def not_in_past(cls, v: date) -> date:
        if v < date.today():
            raise ValueError("Start date cannot be in the past")
        return v

    @model_validator(mode="after")
    def end_after_start(self):
        if self.endDate <= self.startDate:
            raise ValueError("End date must be after start date")
        return self


class AdminDatesRequest(BaseModel):
    startDate: date
    endDate: date
    isFlexible: bool = False

    @model_validator(mode="after")
    def end_not_before_start(self):
        if self.endDate < self.startDate:
            raise ValueError("End date must be after start date")
        return self


class RejectBookingRequest(BaseModel):
    rejectionReason: str = Field(
        ...,
        min_length=1,
        max_length=500,
        validation_alias=AliasChoices("rejectionReason", "reason"),
    )

    @field_validator("rejectionReason")
    @classmethod
    def strip_reason(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Rejection reason is required")
        return v


class AdminNotesRequest(BaseModel):
    adminNotes: str = Field("", max_length=2000)
