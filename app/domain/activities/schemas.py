"""Activity domain schemas - Pydantic models for validation"""

from datetime import date
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ...shared.validators import validate_email, validate_phone


class InquiryRequest(BaseModel):
    customerName: str = Field(..., min_length=1, max_length=255)
    customerEmail: str
    customerPhone: Optional[str] = None
    preferredDate: Optional[date] = None
    message: str = Field(..., min_length=1, max_length=2000)

    @field_validator("customerEmail")
    @classmethod
    def check_email(cls, v: str) -> str:
        return validate_email(v)

    @field_validator("customerPhone")
    @classmethod
    def check_phone(cls, v: Optional[str]) -> Optional[str]:
        return validate_phone(v)


class ActivityBookRequest(BaseModel):
    """Stand-alone activity booking; payment follows via /payments"""

    selectedDate: date
    numberOfParticipants: int = Field(..., ge=1, le=100)
    customerName: str = Field(..., min_length=1, max_length=255)
    customerEmail: str
    customerPhone: Optional[str] = None
    specialRequests: Optional[str] = Field(None, max_length=1000)

    @field_validator("customerEmail")
    @classmethod
    def check_email(cls, v: str) -> str:
        return validate_email(v)
