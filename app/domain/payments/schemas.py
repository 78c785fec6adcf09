"""Payment domain schemas - Pydantic models for validation"""

from typing import Optional

from pydantic import BaseModel, Field


class CreateIntentRequest(BaseModel):
    bookingId: int


class ConfirmPaymentRequest(BaseModel):
    bookingId: int
    paymentIntentId: str = Field(..., min_length=1)


class ConfirmActivityPaymentRequest(BaseModel):
    paymentIntentId: str = Field(..., min_length=1)


class RefundRequest(BaseModel):
    reason: Optional[str] = Field(None, max_length=500)
