"""Affiliate service - Codes, commissions, referrals and withdrawals"""

import logging
from datetime import date
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import AffiliateCode, User, Withdrawal
from ...security_utils import generate_affiliate_code
from ...serializers import serialize_affiliate_code
from ...services.report_service import AFFILIATE_REPORT_COLUMNS, affiliate_report_rows, to_csv
from ..auth.service import PERSONAL_CODE_DISCOUNT, PERSONAL_CODE_RATE, referral_discount
from .repository import AffiliateRepository
from .schemas import CommissionSettingsUpdate, ReferralSharingRequest, WithdrawalCreate

logger = logging.getLogger(__name__)

MAX_CODES_PER_AFFILIATE = 5
DEFAULT_COMMISSION_RATE = 10


def earnings_summary(totals: dict[str, tuple[int, float]]) -> dict:
    """Collapse {status: (count, amount)} into the dashboard earnings shape"""
    pending = totals.get("pending", (0, 0.0))[1] + totals.get("approved", (0, 0.0))[1]
    return {
        "totalEarnings": round(sum(total for _, total in totals.values()), 2),
        "pendingEarnings": round(pending, 2),
        "paidEarnings": round(totals.get("paid", (0, 0.0))[1], 2),
    }


class AffiliateService:
    """Service layer for affiliate business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = AffiliateRepository()

    def unique_code(self, prefix: Optional[str]) -> str:
        code = generate_affiliate_code(prefix)
        while self.repo.code_exists(self.db, code):
            code = generate_affiliate_code(prefix)
        return code

    def _code_or_404(self, code_id: int) -> AffiliateCode:
        code = self.repo.get_code_by_id(self.db, code_id)
        if not code:
            raise HTTPException(status_code=404, detail="Affiliate code not found")
        return code

    # ------------------------------------------------------------------
    # Public
    # ------------------------------------------------------------------

    def validate_code(self, raw_code: str) -> dict:
        code = self.repo.get_active_code(self.db, raw_code)
        if not code:
            raise HTTPException(status_code=404, detail="Invalid or inactive affiliate code")
        return {
            "code": code.code,
            "affiliateName": code.affiliate.first_name if code.affiliate else None,
            "isValid": True,
            "canUseForReferral": bool(code.can_share_referral),
            "discountAmount": referral_discount(code) if code.can_share_referral else 0,
        }

    # ------------------------------------------------------------------
    # Affiliate accounts
    # ------------------------------------------------------------------

    def register(self, user: User) -> AffiliateCode:
        if user.role == "affiliate":
            raise HTTPException(status_code=400, detail="You are already registered as an affiliate")
        if user.role == "admin":
            raise HTTPException(status_code=400, detail="Admins cannot register as affiliates")

        user.role = "affiliate"
        code = self.repo.create_code(
            self.db,
            affiliate_id=user.id,
            code=self.unique_code(user.first_name),
            commission_rate=DEFAULT_COMMISSION_RATE,
            commission_type="percentage",
            is_active=True,
        )
        logger.info(f"🤝 User {user.id} registered as affiliate with code {code.code}")
        return code

    def dashboard(self, user: User) -> dict:
        totals = self.repo.commission_totals_by_status(self.db, user.id)
        codes = self.repo.codes_for(self.db, user.id)
        recent, _ = self.repo.bookings_for_affiliate(self.db, user.id, 0, 5)
        return {
            "stats": {
                "totalBookings": sum(count for count, _ in totals.values()),
                **earnings_summary(totals),
            },
            "codes": [
                {
                    "code": c.code,
                    "commissionRate": c.commission_rate,
                    "usageCount": c.usage_count,
                    "totalEarnings": c.total_earnings,
                    "isActive": c.is_active,
                }
                for c in codes
            ],
            "recentBookings": recent,
        }

    def my_codes(self, user: User) -> list[AffiliateCode]:
        return self.repo.codes_for(self.db, user.id)

    def generate_code(self, user: User, prefix: Optional[str]) -> AffiliateCode:
        if self.repo.count_codes(self.db, user.id) >= MAX_CODES_PER_AFFILIATE:
            raise HTTPException(
                status_code=400,
                detail=f"Maximum number of affiliate codes reached ({MAX_CODES_PER_AFFILIATE})",
            )
        code = self.repo.create_code(
            self.db,
            affiliate_id=user.id,
            code=self.unique_code(prefix or user.first_name),
            commission_rate=DEFAULT_COMMISSION_RATE,
            commission_type="percentage",
            is_active=True,
        )
        logger.info(f"🏷️ Affiliate {user.id} generated code {code.code}")
        return code

    def bookings(self, user: User, page: int, limit: int):
        return self.repo.bookings_for_affiliate(self.db, user.id, (page - 1) * limit, limit)

    def commissions(self, user: User, page: int, limit: int, status: Optional[str] = None):
        return self.repo.commissions_for(self.db, user.id, (page - 1) * limit, limit, status=status)

    def referral_bookings(self, user: User, page: int, limit: int, status: Optional[str] = None):
        return self.repo.bookings_of_referred_users(
            self.db, user.id, (page - 1) * limit, limit, status=status
        )

    # ------------------------------------------------------------------
    # Withdrawals
    # ------------------------------------------------------------------

    def available_balance(self, user: User) -> tuple[float, list]:
        """
        Approved commission balance not yet claimed, plus the unclaimed commissions.

        Completing a withdrawal moves its commissions from approved to paid, so
        those are added back before every withdrawn amount is subtracted.
        """
        claimed_ids = set()
        claimed_amount = 0.0
        settled_ids = []
        for withdrawal in self.repo.active_withdrawals(self.db, user.id):
            claimed_ids.update(withdrawal.commission_ids or [])
            claimed_amount += withdrawal.amount
            if withdrawal.status == "completed":
                settled_ids.extend(withdrawal.commission_ids or [])

        approved = self.repo.approved_commissions(self.db, user.id)
        earned = sum(c.commission_amount for c in approved)
        earned += self.repo.paid_commission_total(self.db, settled_ids)
        balance = round(earned - claimed_amount, 2)
        unclaimed = [c for c in approved if c.id not in claimed_ids]
        return max(balance, 0.0), unclaimed

    def request_withdrawal(self, user: User, data: WithdrawalCreate) -> Withdrawal:
        balance, unclaimed = self.available_balance(user)
        if data.amount > balance:
            raise HTTPException(
                status_code=400,
                detail=f"Insufficient balance. Available: {balance:.2f} {data.currency}",
            )

        covering = []
        covered = 0.0
        for commission in unclaimed:
            if covered >= data.amount:
                break
            covering.append(commission.id)
            covered += commission.commission_amount

        withdrawal = self.repo.create_withdrawal(
            self.db,
            affiliate_id=user.id,
            amount=round(data.amount, 2),
            currency=data.currency.upper(),
            status="pending",
            payment_method=data.paymentMethod,
            payment_details=data.paymentDetails.model_dump(exclude_none=True),
            commission_ids=covering,
        )
        logger.info(f"💸 Withdrawal {withdrawal.id} of {withdrawal.amount} requested by {user.id}")
        return withdrawal

    def withdrawals(self, user: User, page: int, limit: int, status: Optional[str] = None):
        return self.repo.withdrawals(
            self.db, (page - 1) * limit, limit, affiliate_id=user.id, status=status
        )

    # ------------------------------------------------------------------
    # Personal referrals
    # ------------------------------------------------------------------

    def personal_code(self, user: User) -> AffiliateCode:
        """The caller's shareable code, created on first use for older accounts"""
        code = self.repo.shareable_code_for(self.db, user.id)
        if code:
            return code
        code = self.repo.create_code(
            self.db,
            affiliate_id=user.id,
            code=self.unique_code(user.first_name[:3]),
            commission_rate=PERSONAL_CODE_RATE,
            commission_type="percentage",
            is_active=True,
            can_share_referral=True,
            discount_percentage=PERSONAL_CODE_DISCOUNT,
        )
        logger.info(f"🏷️ Created personal referral code {code.code} for user {user.id}")
        return code

    def my_referral(self, user: User) -> dict:
        code = self.personal_code(user)
        totals = self.repo.commission_totals_by_status(self.db, user.id, kind="referral")
        return {
            "code": code.code,
            "discountPercentage": code.discount_percentage,
            "stats": {
                "totalReferrals": self.repo.count_referred_users(self.db, user.id),
                **earnings_summary(totals),
            },
        }

    def my_referrals(self, user: User, page: int, limit: int):
        return self.repo.referred_users(self.db, user.id, (page - 1) * limit, limit)

    def my_referral_commissions(
        self, user: User, page: int, limit: int, status: Optional[str] = None
    ):
        return self.repo.commissions_for(
            self.db, user.id, (page - 1) * limit, limit, status=status, kind="referral"
        )

    # ------------------------------------------------------------------
    # Admin
    # ------------------------------------------------------------------

    def list_affiliates(self, page: int, limit: int) -> tuple[list[dict], int]:
        users, total = self.repo.affiliates(self.db, (page - 1) * limit, limit)
        rows = []
        for affiliate in users:
            codes = self.repo.codes_for(self.db, affiliate.id)
            rows.append(
                {
                    "id": affiliate.id,
                    "email": affiliate.email,
                    "firstName": affiliate.first_name,
                    "lastName": affiliate.last_name,
                    "createdAt": affiliate.created_at,
                    "codes": [serialize_affiliate_code(c) for c in codes],
                    "totalEarnings": round(sum(c.total_earnings or 0 for c in codes), 2),
                    "totalUsage": sum(c.usage_count or 0 for c in codes),
                }
            )
        return rows, total

    def update_commission_settings(
        self, code_id: int, data: CommissionSettingsUpdate
    ) -> AffiliateCode:
        code = self._code_or_404(code_id)
        code = self.repo.update_code(
            self.db,
            code,
            commission_rate=data.commissionRate,
            commission_type=data.commissionType,
            fixed_amount=data.fixedAmount,
            can_share_referral=data.canShareReferral,
            discount_percentage=data.discountPercentage,
            discount_amount=data.discountAmount,
        )
        logger.info(f"⚙️ Commission settings updated for code {code.code}")
        return code

    def set_active(self, code_id: int, is_active: bool) -> AffiliateCode:
        code = self._code_or_404(code_id)
        code.is_active = is_active
        self.db.commit()
        self.db.refresh(code)
        logger.info(f"⚙️ Code {code.code} {'activated' if is_active else 'deactivated'}")
        return code

    def set_referral_sharing(self, code_id: int, data: ReferralSharingRequest) -> AffiliateCode:
        code = self._code_or_404(code_id)
        return self.repo.update_code(
            self.db,
            code,
            can_share_referral=data.canShareReferral,
            discount_percentage=data.discountPercentage,
            discount_amount=data.discountAmount,
        )

    def export_report(
        self,
        start: Optional[date] = None,
        end: Optional[date] = None,
        affiliate_id: Optional[int] = None,
        status: Optional[str] = None,
    ) -> tuple[list[dict], str]:
        commissions = self.repo.commissions_for_report(
            self.db, start=start, end=end, affiliate_id=affiliate_id, status=status
        )
        rows = affiliate_report_rows(commissions)
        return rows, to_csv(rows, AFFILIATE_REPORT_COLUMNS)
