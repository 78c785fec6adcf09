"""Admin router - Dashboard analytics, payouts, invitations and moderation"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import admin_only
from ...database import get_db
from ...models import User
from ...serializers import (
    serialize_activity,
    serialize_commission,
    serialize_invitation,
    serialize_user_summary,
    serialize_withdrawal,
)
from ...shared.responses import (
    created_response,
    normalize_pagination,
    pagination_meta,
    success_response,
)
from ..affiliates.service import AffiliateService
from .schemas import (
    ActivityRejectRequest,
    CommissionPaymentRequest,
    CommissionStatusRequest,
    InvitationCreate,
    WithdrawalProcessRequest,
    WithdrawalRejectRequest,
)
from .service import AdminService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["Admin"], dependencies=[Depends(admin_only)])


def get_admin_service(db: Session = Depends(get_db)) -> AdminService:
    """Dependency injection for AdminService"""
    return AdminService(db)


def get_affiliate_service(db: Session = Depends(get_db)) -> AffiliateService:
    return AffiliateService(db)


# ============================================================================
# DASHBOARD & ANALYTICS
# ============================================================================


@router.get("/stats")
async def dashboard_stats(service: AdminService = Depends(get_admin_service)):
    return success_response("Dashboard statistics retrieved", service.dashboard_stats())


@router.get("/recent-bookings")
async def recent_bookings(
    limit: int = Query(10), service: AdminService = Depends(get_admin_service)
):
    _, limit = normalize_pagination(1, limit, default_limit=10, max_limit=50)
    bookings = service.recent_bookings(limit)
    return success_response(
        "Recent bookings retrieved",
        [
            {
                "id": b.id,
                "bookingReference": b.booking_reference,
                "status": b.status,
                "user": serialize_user_summary(b.user),
                "destination": {
                    "id": b.destination.id,
                    "name": b.destination.name,
                    "thumbnailImage": b.destination.thumbnail_image,
                }
                if b.destination
                else None,
                "depositPayment": {
                    "amount": b.deposit_amount,
                    "currency": b.deposit_currency,
                    "paymentStatus": b.payment_status,
                },
                "travelDates": {"startDate": b.travel_start_date, "endDate": b.travel_end_date},
                "createdAt": b.created_at,
            }
            for b in bookings
        ],
    )


@router.get("/revenue")
async def revenue(period: str = Query("month"), service: AdminService = Depends(get_admin_service)):
    return success_response("Revenue analytics retrieved", service.revenue(period))


@router.get("/popular-destinations")
async def popular_destinations(
    limit: int = Query(10), service: AdminService = Depends(get_admin_service)
):
    _, limit = normalize_pagination(1, limit, default_limit=10, max_limit=20)
    return success_response(
        "Popular destinations retrieved", service.popular_destinations(limit)
    )


@router.get("/user-growth")
async def user_growth(
    period: str = Query("month"), service: AdminService = Depends(get_admin_service)
):
    return success_response("User growth data retrieved", service.user_growth(period))


# ============================================================================
# AFFILIATES & COMMISSIONS
# ============================================================================


@router.get("/affiliates")
async def list_affiliates(
    page: int = Query(1),
    limit: int = Query(10),
    service: AffiliateService = Depends(get_affiliate_service),
):
    page, limit = normalize_pagination(page, limit)
    rows, total = service.list_affiliates(page, limit)
    return success_response("Affiliates retrieved", rows, pagination_meta(page, limit, total))


@router.get("/commissions")
@router.get("/commissions/{status}")
async def list_commissions(
    status: Optional[str] = None,
    page: int = Query(1),
    limit: int = Query(10),
    service: AdminService = Depends(get_admin_service),
):
    page, limit = normalize_pagination(page, limit)
    commissions, total = service.list_commissions(page, limit, status)
    return success_response(
        "Commissions retrieved",
        [serialize_commission(c) for c in commissions],
        pagination_meta(page, limit, total),
    )


@router.put("/commissions/{commission_id}/approve")
async def approve_commission(
    commission_id: int, service: AdminService = Depends(get_admin_service)
):
    commission = service.approve_commission(commission_id)
    return success_response("Commission approved", serialize_commission(commission))


@router.put("/commissions/{commission_id}/pay")
async def pay_commission(
    commission_id: int,
    data: CommissionPaymentRequest,
    service: AdminService = Depends(get_admin_service),
):
    commission = service.pay_commission(commission_id, data.paymentReference)
    return success_response("Commission marked as paid", serialize_commission(commission))


@router.put("/commissions/{commission_id}/status")
async def update_commission_status(
    commission_id: int,
    data: CommissionStatusRequest,
    service: AdminService = Depends(get_admin_service),
):
    commission = service.update_commission_status(
        commission_id, data.status, data.paymentReference
    )
    return success_response("Commission status updated", serialize_commission(commission))


# ============================================================================
# WITHDRAWALS
# ============================================================================


@router.get("/withdrawals")
async def list_withdrawals(
    page: int = Query(1),
    limit: int = Query(10),
    status: Optional[str] = Query(None),
    service: AdminService = Depends(get_admin_service),
):
    page, limit = normalize_pagination(page, limit)
    withdrawals, total = service.list_withdrawals(page, limit, status)
    return success_response(
        "Withdrawals retrieved",
        [serialize_withdrawal(w) for w in withdrawals],
        pagination_meta(page, limit, total),
    )


@router.put("/withdrawals/{withdrawal_id}/process")
async def process_withdrawal(
    withdrawal_id: int,
    data: WithdrawalProcessRequest,
    current_user: User = Depends(admin_only),
    service: AdminService = Depends(get_admin_service),
):
    withdrawal = service.process_withdrawal(withdrawal_id, data, current_user)
    return success_response("Withdrawal processed", serialize_withdrawal(withdrawal))


@router.put("/withdrawals/{withdrawal_id}/reject")
async def reject_withdrawal(
    withdrawal_id: int,
    data: WithdrawalRejectRequest,
    current_user: User = Depends(admin_only),
    service: AdminService = Depends(get_admin_service),
):
    withdrawal = service.reject_withdrawal(
        withdrawal_id, data.rejectionReason, current_user, data.adminNotes
    )
    return success_response("Withdrawal rejected", serialize_withdrawal(withdrawal))


# ============================================================================
# INVITATIONS
# ============================================================================


@router.post("/invitations")
async def create_invitation(
    data: InvitationCreate,
    current_user: User = Depends(admin_only),
    service: AdminService = Depends(get_admin_service),
):
    invitation = await service.create_invitation(data, current_user)
    return created_response("Invitation sent successfully", serialize_invitation(invitation))


@router.get("/invitations")
async def list_invitations(
    page: int = Query(1),
    limit: int = Query(10),
    status: Optional[str] = Query(None),
    service: AdminService = Depends(get_admin_service),
):
    page, limit = normalize_pagination(page, limit)
    invitations, total = service.list_invitations(page, limit, status)
    return success_response(
        "Invitations retrieved successfully",
        [serialize_invitation(i) for i in invitations],
        pagination_meta(page, limit, total),
    )


@router.post("/invitations/{invitation_id}/resend")
async def resend_invitation(
    invitation_id: int,
    current_user: User = Depends(admin_only),
    service: AdminService = Depends(get_admin_service),
):
    invitation = await service.resend_invitation(invitation_id, current_user)
    return success_response("Invitation resent successfully", serialize_invitation(invitation))


@router.delete("/invitations/{invitation_id}")
async def cancel_invitation(
    invitation_id: int, service: AdminService = Depends(get_admin_service)
):
    service.cancel_invitation(invitation_id)
    return success_response("Invitation cancelled successfully")


# ============================================================================
# ACTIVITY MODERATION
# ============================================================================


@router.get("/activities/pending")
async def pending_activities(service: AdminService = Depends(get_admin_service)):
    activities = service.list_activities("pending")
    return success_response(
        "Pending activities retrieved successfully", [serialize_activity(a) for a in activities]
    )


@router.get("/activities/all")
async def all_activities(
    status: Optional[str] = Query(None), service: AdminService = Depends(get_admin_service)
):
    activities = service.list_activities(status)
    return success_response(
        "Activities retrieved successfully", [serialize_activity(a) for a in activities]
    )


@router.put("/activities/{activity_id}/approve")
async def approve_activity(
    activity_id: int,
    current_user: User = Depends(admin_only),
    service: AdminService = Depends(get_admin_service),
):
    activity = service.approve_activity(activity_id, current_user)
    return success_response("Activity approved successfully", serialize_activity(activity))


@router.put("/activities/{activity_id}/reject")
async def reject_activity(
    activity_id: int,
    data: ActivityRejectRequest,
    service: AdminService = Depends(get_admin_service),
):
    activity = service.reject_activity(activity_id, data.rejectionReason)
    return success_response("Activity rejected successfully", serialize_activity(activity))
