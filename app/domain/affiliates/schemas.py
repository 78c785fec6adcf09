"""Affiliate domain schemas - Pydantic models for validation"""

from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator


class GenerateCodeRequest(BaseModel):
    prefix: Optional[str] = Field(None, max_length=10)

    @field_validator("prefix")
    @classmethod
    def alphanumeric_prefix(cls, v: Optional[str]) -> Optional[str]:
        if not v:
            return None
        v = v.strip()
        if not v.isalnum():
            raise ValueError("Prefix may only contain letters and numbers")
        return v.upper()


class CommissionSettingsUpdate(BaseModel):
    commissionRate: Optional[float] = Field(None, ge=0, le=100)
    commissionType: Optional[Literal["percentage", "fixed"]] = None
    fixedAmount: Optional[float] = Field(None, ge=0)
    canShareReferral: Optional[bool] = None
    discountPercentage: Optional[float] = Field(None, ge=0, le=100)
    discountAmount: Optional[float] = Field(None, ge=0)


class ActivateCodeRequest(BaseModel):
    isActive: bool


class ReferralSharingRequest(BaseModel):
    canShareReferral: bool
    discountPercentage: Optional[float] = Field(None, ge=0, le=100)
    discountAmount: Optional[float] = Field(None, ge=0)


class PaymentDetails(BaseModel):
    accountName: Optional[str] = None
    accountNumber: Optional[str] = None
    bankName: Optional[str] = None
    iban: Optional[str] = None
    swiftCode: Optional[str] = None
    paypalEmail: Optional[str] = None
    stripeAccountId: Optional[str] = None
    otherDetails: Optional[str] = None


class WithdrawalCreate(BaseModel):
    """Covering commissions are chosen server-side; client-sent ids are ignored"""

    amount: float = Field(..., gt=0)
    currency: str = Field("AED", min_length=3, max_length=3)
    paymentMethod: Literal["bank_transfer", "paypal", "stripe", "other"]
    paymentDetails: PaymentDetails = PaymentDetails()
    commissionIds: Optional[list] = None
