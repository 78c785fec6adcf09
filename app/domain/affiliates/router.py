"""Affiliate router - FastAPI endpoints for affiliate codes, referrals and payouts"""

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import admin_only, affiliate_only, get_current_user
from ...database import get_db
from ...models import User
from ...serializers import (
    serialize_affiliate_code,
    serialize_booking,
    serialize_commission,
    serialize_user_summary,
    serialize_withdrawal,
)
from ...services.report_service import csv_download
from ...shared.responses import (
    created_response,
    normalize_pagination,
    pagination_meta,
    success_response,
)
from .schemas import (
    ActivateCodeRequest,
    CommissionSettingsUpdate,
    GenerateCodeRequest,
    ReferralSharingRequest,
    WithdrawalCreate,
)
from .service import AffiliateService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/affiliates", tags=["Affiliates"])


def get_affiliate_service(db: Session = Depends(get_db)) -> AffiliateService:
    """Dependency injection for AffiliateService"""
    return AffiliateService(db)


# ============================================================================
# PUBLIC
# ============================================================================


@router.get("/validate/{code}")
async def validate_code(code: str, service: AffiliateService = Depends(get_affiliate_service)):
    return success_response("Affiliate code is valid", service.validate_code(code))


# ============================================================================
# PERSONAL REFERRALS (any signed-in user)
# ============================================================================


@router.get("/my-referral")
async def my_referral(
    current_user: User = Depends(get_current_user),
    service: AffiliateService = Depends(get_affiliate_service),
):
    return success_response("Referral details retrieved", service.my_referral(current_user))


@router.get("/my-referrals")
async def my_referrals(
    page: int = Query(1),
    limit: int = Query(10),
    current_user: User = Depends(get_current_user),
    service: AffiliateService = Depends(get_affiliate_service),
):
    page, limit = normalize_pagination(page, limit)
    users, total = service.my_referrals(current_user, page, limit)
    return success_response(
        "Referrals retrieved",
        [{**serialize_user_summary(u), "createdAt": u.created_at} for u in users],
        pagination_meta(page, limit, total),
    )


@router.get("/my-referral-commissions")
async def my_referral_commissions(
    page: int = Query(1),
    limit: int = Query(10),
    status: Optional[str] = Query(None),
    current_user: User = Depends(get_current_user),
    service: AffiliateService = Depends(get_affiliate_service),
):
    page, limit = normalize_pagination(page, limit)
    commissions, total = service.my_referral_commissions(current_user, page, limit, status)
    return success_response(
        "Referral commissions retrieved",
        [serialize_commission(c) for c in commissions],
        pagination_meta(page, limit, total),
    )


@router.post("/register")
async def register_affiliate(
    current_user: User = Depends(get_current_user),
    service: AffiliateService = Depends(get_affiliate_service),
):
    code = service.register(current_user)
    return created_response(
        "Successfully registered as affiliate",
        {"affiliateCode": code.code, "commissionRate": code.commission_rate},
    )


# ============================================================================
# AFFILIATE ENDPOINTS
# ============================================================================


@router.get("/dashboard")
async def dashboard(
    current_user: User = Depends(affiliate_only),
    service: AffiliateService = Depends(get_affiliate_service),
):
    data = service.dashboard(current_user)
    data["recentBookings"] = [
        serialize_booking(b, include_admin_notes=False) for b in data["recentBookings"]
    ]
    return success_response("Dashboard data retrieved", data)


@router.get("/my-codes")
async def my_codes(
    current_user: User = Depends(affiliate_only),
    service: AffiliateService = Depends(get_affiliate_service),
):
    codes = service.my_codes(current_user)
    return success_response("Affiliate codes retrieved", [serialize_affiliate_code(c) for c in codes])


@router.post("/generate-code")
async def generate_code(
    data: GenerateCodeRequest,
    current_user: User = Depends(affiliate_only),
    service: AffiliateService = Depends(get_affiliate_service),
):
    code = service.generate_code(current_user, data.prefix)
    return created_response("Affiliate code generated", serialize_affiliate_code(code))


@router.get("/bookings")
async def affiliate_bookings(
    page: int = Query(1),
    limit: int = Query(10),
    current_user: User = Depends(affiliate_only),
    service: AffiliateService = Depends(get_affiliate_service),
):
    page, limit = normalize_pagination(page, limit)
    bookings, total = service.bookings(current_user, page, limit)
    return success_response(
        "Bookings retrieved",
        [serialize_booking(b, include_admin_notes=False) for b in bookings],
        pagination_meta(page, limit, total),
    )


@router.get("/referral-bookings")
async def referral_bookings(
    page: int = Query(1),
    limit: int = Query(10),
    status: Optional[str] = Query(None),
    current_user: User = Depends(affiliate_only),
    service: AffiliateService = Depends(get_affiliate_service),
):
    page, limit = normalize_pagination(page, limit)
    bookings, total = service.referral_bookings(current_user, page, limit, status)
    return success_response(
        "Referral bookings retrieved",
        [serialize_booking(b, include_admin_notes=False) for b in bookings],
        pagination_meta(page, limit, total),
    )


@router.get("/commissions")
async def affiliate_commissions(
    page: int = Query(1),
    limit: int = Query(10),
    status: Optional[str] = Query(None),
    current_user: User = Depends(affiliate_only),
    service: AffiliateService = Depends(get_affiliate_service),
):
    page, limit = normalize_pagination(page, limit)
    commissions, total = service.commissions(current_user, page, limit, status)
    return success_response(
        "Commissions retrieved",
        [serialize_commission(c) for c in commissions],
        pagination_meta(page, limit, total),
    )


@router.post("/withdrawals")
async def request_withdrawal(
    data: WithdrawalCreate,
    current_user: User = Depends(affiliate_only),
    service: AffiliateService = Depends(get_affiliate_service),
):
    withdrawal = service.request_withdrawal(current_user, data)
    return created_response("Withdrawal request submitted", serialize_withdrawal(withdrawal))


@router.get("/withdrawals")
async def list_withdrawals(
    page: int = Query(1),
    limit: int = Query(10),
    status: Optional[str] = Query(None),
    current_user: User = Depends(affiliate_only),
    service: AffiliateService = Depends(get_affiliate_service),
):
    page, limit = normalize_pagination(page, limit)
    withdrawals, total = service.withdrawals(current_user, page, limit, status)
    balance, _ = service.available_balance(current_user)
    meta = pagination_meta(page, limit, total)
    meta["availableBalance"] = balance
    return success_response(
        "Withdrawals retrieved", [serialize_withdrawal(w) for w in withdrawals], meta
    )


# ============================================================================
# ADMIN ENDPOINTS
# ============================================================================


@router.get("/admin/all")
async def all_affiliates(
    page: int = Query(1),
    limit: int = Query(10),
    current_user: User = Depends(admin_only),
    service: AffiliateService = Depends(get_affiliate_service),
):
    page, limit = normalize_pagination(page, limit)
    rows, total = service.list_affiliates(page, limit)
    return success_response("Affiliates retrieved", rows, pagination_meta(page, limit, total))


@router.put("/admin/{code_id}/commission-rate")
async def update_commission_rate(
    code_id: int,
    data: CommissionSettingsUpdate,
    current_user: User = Depends(admin_only),
    service: AffiliateService = Depends(get_affiliate_service),
):
    code = service.update_commission_settings(code_id, data)
    return success_response("Commission rate updated", serialize_affiliate_code(code))


@router.put("/admin/{code_id}/activate")
async def activate_code(
    code_id: int,
    data: ActivateCodeRequest,
    current_user: User = Depends(admin_only),
    service: AffiliateService = Depends(get_affiliate_service),
):
    code = service.set_active(code_id, data.isActive)
    state = "activated" if code.is_active else "deactivated"
    return success_response(f"Affiliate code {state}", serialize_affiliate_code(code))


@router.put("/admin/{code_id}/enable-referral")
async def enable_referral(
    code_id: int,
    data: ReferralSharingRequest,
    current_user: User = Depends(admin_only),
    service: AffiliateService = Depends(get_affiliate_service),
):
    code = service.set_referral_sharing(code_id, data)
    state = "enabled" if code.can_share_referral else "disabled"
    return success_response(f"Referral sharing {state}", serialize_affiliate_code(code))


@router.get("/admin/export")
async def export_affiliate_report(
    format: str = Query("csv"),
    startDate: Optional[date] = Query(None),
    endDate: Optional[date] = Query(None),
    affiliateId: Optional[int] = Query(None),
    status: Optional[str] = Query(None),
    current_user: User = Depends(admin_only),
    service: AffiliateService = Depends(get_affiliate_service),
):
    rows, csv_content = service.export_report(
        start=startDate, end=endDate, affiliate_id=affiliateId, status=status
    )
    if format == "csv":
        return csv_download(csv_content, "affiliate-report")
    return success_response("Affiliate report generated", rows)
