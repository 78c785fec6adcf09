"""Admin domain schemas - Pydantic models for validation"""

from typing import Literal, Optional

from pydantic import AliasChoices, BaseModel, Field, field_validator

from ...shared.validators import validate_email


class InvitationCreate(BaseModel):
    email: str
    role: Literal["admin", "affiliate"]

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return validate_email(v)


class CommissionPaymentRequest(BaseModel):
    paymentReference: Optional[str] = Field(None, max_length=255)


class CommissionStatusRequest(BaseModel):
    status: Literal["pending", "approved", "paid"]
    paymentReference: Optional[str] = Field(None, max_length=255)


class WithdrawalProcessRequest(BaseModel):
    status: Literal["processing", "completed"] = "completed"
    paymentReference: Optional[str] = Field(None, max_length=255)
    adminNotes: Optional[str] = Field(None, max_length=2000)


class WithdrawalRejectRequest(BaseModel):
    rejectionReason: str = Field(
        ...,
        min_length=1,
        max_length=500,
        validation_alias=AliasChoices("rejectionReason", "reason"),
    )
    adminNotes: Optional[str] = Field(None, max_length=2000)


class ActivityRejectRequest(BaseModel):
    rejectionReason: Optional[str] = Field(
        None, max_length=500, validation_alias=AliasChoices("rejectionReason", "reason")
    )
