"""Admin service - Dashboard analytics and back-office workflows"""

import logging
from datetime import datetime, timedelta
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import (
    Activity,
    Commission,
    Invitation,
    User,
    Withdrawal,
    generate_invitation_token,
)
from ...services import notification_service
from ...shared.validators import add_months
from ..affiliates.repository import AffiliateRepository
from .repository import AdminRepository
from .schemas import InvitationCreate, WithdrawalProcessRequest

logger = logging.getLogger(__name__)

INVITATION_TTL_DAYS = 7
OPEN_WITHDRAWAL_STATUSES = ("pending", "processing")


def period_window(period: str, now: Optional[datetime] = None) -> tuple[datetime, str]:
    """Start of the reporting window and the strftime bucket format for a period"""
    now = now or datetime.utcnow()
    if period == "week":
        return now - timedelta(days=7), "%Y-%m-%d"
    if period == "year":
        return datetime.combine(add_months(now.date(), -12), now.time()), "%Y-%m"
    return datetime.combine(add_months(now.date(), -1), now.time()), "%Y-%m-%d"


class AdminService:
    """Service layer for admin business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = AdminRepository()
        self.affiliates = AffiliateRepository()

    # ------------------------------------------------------------------
    # Analytics
    # ------------------------------------------------------------------

    def dashboard_stats(self) -> dict:
        total_bookings = self.repo.count_bookings(self.db)
        status_counts = self.repo.bookings_by_status(self.db)
        commission_totals = self.repo.commission_totals(self.db)

        pending = commission_totals.get("pending", 0) + commission_totals.get("approved", 0)
        paid = commission_totals.get("paid", 0)

        return {
            "overview": {
                "totalBookings": total_bookings,
                "totalRevenue": self.repo.completed_revenue(self.db),
                "totalUsers": self.repo.count_users(self.db, "user"),
                "totalAffiliates": self.repo.count_users(self.db, "affiliate"),
            },
            "bookings": {
                "total": total_bookings,
                "pending": status_counts.get("pending_deposit", 0),
                "depositPaid": status_counts.get("deposit_paid", 0),
                "datesSelected": status_counts.get("dates_selected", 0),
                "confirmed": status_counts.get("confirmed", 0),
                "rejected": status_counts.get("rejected", 0),
                "cancelled": status_counts.get("cancelled", 0),
            },
            "commissions": {
                "pending": round(pending, 2),
                "paid": round(paid, 2),
                "total": round(pending + paid, 2),
            },
        }

    def recent_bookings(self, limit: int):
        return self.repo.recent_bookings(self.db, limit)

    def revenue(self, period: str) -> dict:
        since, bucket = period_window(period)
        grouped: dict[str, dict] = {}
        for booking in self.repo.paid_bookings_since(self.db, since):
            key = booking.paid_at.strftime(bucket)
            entry = grouped.setdefault(key, {"date": key, "revenue": 0.0, "count": 0})
            entry["revenue"] = round(entry["revenue"] + booking.deposit_amount, 2)
            entry["count"] += 1

        data = list(grouped.values())
        total_revenue = round(sum(item["revenue"] for item in data), 2)
        total_bookings = sum(item["count"] for item in data)
        return {
            "period": period,
            "data": data,
            "summary": {
                "totalRevenue": total_revenue,
                "totalBookings": total_bookings,
                "averagePerBooking": (
                    round(total_revenue / total_bookings, 2) if total_bookings else 0
                ),
            },
        }

    def popular_destinations(self, limit: int) -> list[dict]:
        return [
            {
                "destinationId": destination.id,
                "name": destination.name,
                "thumbnailImage": destination.thumbnail_image,
                "country": destination.country,
                "bookingCount": count,
                "revenue": round(float(revenue or 0), 2),
            }
            for destination, count, revenue in self.repo.popular_destinations(self.db, limit)
        ]

    def user_growth(self, period: str) -> dict:
        since, bucket = period_window(period)
        grouped: dict[tuple, int] = {}
        for user in self.repo.users_since(self.db, since):
            key = (user.created_at.strftime(bucket), user.role)
            grouped[key] = grouped.get(key, 0) + 1
        return {
            "period": period,
            "data": [
                {"date": day, "role": role, "count": count}
                for (day, role), count in grouped.items()
            ],
        }

    # ------------------------------------------------------------------
    # Commissions
    # ------------------------------------------------------------------

    def list_commissions(self, page: int, limit: int, status: Optional[str] = None):
        return self.repo.commissions(self.db, (page - 1) * limit, limit, status=status)

    def _commission_or_404(self, commission_id: int) -> Commission:
        commission = self.repo.get_commission(self.db, commission_id)
        if not commission:
            raise HTTPException(status_code=404, detail="Commission not found")
        return commission

    def approve_commission(self, commission_id: int) -> Commission:
        commission = self._commission_or_404(commission_id)
        if commission.status != "pending":
            raise HTTPException(status_code=400, detail="Only pending commissions can be approved")
        commission.status = "approved"
        self.db.commit()
        self.db.refresh(commission)
        logger.info(f"✅ Commission {commission.id} approved")
        return commission

    def pay_commission(self, commission_id: int, payment_reference: Optional[str]) -> Commission:
        commission = self._commission_or_404(commission_id)
        if commission.status == "paid":
            raise HTTPException(status_code=400, detail="Commission has already been paid")
        self._mark_paid(commission, payment_reference)
        self.db.commit()
        self.db.refresh(commission)
        logger.info(f"💰 Commission {commission.id} marked as paid")
        return commission

    def update_commission_status(
        self, commission_id: int, status: str, payment_reference: Optional[str] = None
    ) -> Commission:
        commission = self._commission_or_404(commission_id)
        if status == "paid":
            self._mark_paid(commission, payment_reference)
        else:
            commission.status = status
            commission.paid_at = None
        self.db.commit()
        self.db.refresh(commission)
        logger.info(f"⚙️ Commission {commission.id} status set to {status}")
        return commission

    @staticmethod
    def _mark_paid(commission: Commission, payment_reference: Optional[str]) -> None:
        commission.status = "paid"
        commission.paid_at = commission.paid_at or datetime.utcnow()
        if payment_reference:
            commission.payment_reference = payment_reference

    # ------------------------------------------------------------------
    # Withdrawals
    # ------------------------------------------------------------------

    def list_withdrawals(self, page: int, limit: int, status: Optional[str] = None):
        return self.affiliates.withdrawals(self.db, (page - 1) * limit, limit, status=status)

    def _open_withdrawal(self, withdrawal_id: int) -> Withdrawal:
        withdrawal = self.affiliates.get_withdrawal(self.db, withdrawal_id)
        if not withdrawal:
            raise HTTPException(status_code=404, detail="Withdrawal not found")
        if withdrawal.status not in OPEN_WITHDRAWAL_STATUSES:
            raise HTTPException(status_code=400, detail="Withdrawal has already been processed")
        return withdrawal

    def process_withdrawal(
        self, withdrawal_id: int, data: WithdrawalProcessRequest, admin: User
    ) -> Withdrawal:
        withdrawal = self._open_withdrawal(withdrawal_id)
        withdrawal.status = data.status
        withdrawal.processed_by = admin.id
        withdrawal.processed_at = datetime.utcnow()
        if data.paymentReference:
            withdrawal.payment_reference = data.paymentReference
        if data.adminNotes:
            withdrawal.admin_notes = data.adminNotes

        if data.status == "completed":
            for commission in self.repo.commissions_by_ids(self.db, withdrawal.commission_ids or []):
                self._mark_paid(commission, withdrawal.payment_reference)

        self.db.commit()
        self.db.refresh(withdrawal)
        logger.info(f"💸 Withdrawal {withdrawal.id} {data.status} by admin {admin.id}")
        return withdrawal

    def reject_withdrawal(
        self, withdrawal_id: int, reason: str, admin: User, admin_notes: Optional[str] = None
    ) -> Withdrawal:
        withdrawal = self._open_withdrawal(withdrawal_id)
        withdrawal.status = "rejected"
        withdrawal.rejection_reason = reason
        withdrawal.processed_by = admin.id
        withdrawal.processed_at = datetime.utcnow()
        if admin_notes:
            withdrawal.admin_notes = admin_notes
        self.db.commit()
        self.db.refresh(withdrawal)
        logger.info(f"🚫 Withdrawal {withdrawal.id} rejected by admin {admin.id}")
        return withdrawal

    # ------------------------------------------------------------------
    # Invitations
    # ------------------------------------------------------------------

    async def create_invitation(self, data: InvitationCreate, admin: User) -> Invitation:
        if self.repo.get_user_by_email(self.db, data.email):
            raise HTTPException(status_code=400, detail="User with this email already exists")

        existing = self.repo.get_pending_invitation(self.db, data.email)
        if existing and existing.expires_at > datetime.utcnow():
            raise HTTPException(
                status_code=400, detail="An invitation has already been sent to this email"
            )

        invitation = self.repo.create_invitation(
            self.db,
            email=data.email,
            role=data.role,
            invited_by=admin.id,
            expires_at=datetime.utcnow() + timedelta(days=INVITATION_TTL_DAYS),
            status="pending",
        )
        await notification_service.send_invitation(self.db, invitation, admin)
        logger.info(f"✉️ Invitation {invitation.id} sent to {invitation.email} as {invitation.role}")
        return invitation

    def list_invitations(self, page: int, limit: int, status: Optional[str] = None):
        invitations, total = self.repo.invitations(
            self.db, (page - 1) * limit, limit, status=status
        )
        now = datetime.utcnow()
        expired = [i for i in invitations if i.status == "pending" and i.expires_at < now]
        for invitation in expired:
            invitation.status = "expired"
        if expired:
            self.db.commit()
        return invitations, total

    def _invitation_or_404(self, invitation_id: int) -> Invitation:
        invitation = self.repo.get_invitation(self.db, invitation_id)
        if not invitation:
            raise HTTPException(status_code=404, detail="Invitation not found")
        return invitation

    async def resend_invitation(self, invitation_id: int, admin: User) -> Invitation:
        invitation = self._invitation_or_404(invitation_id)
        if invitation.status == "accepted":
            raise HTTPException(status_code=400, detail="Invitation has already been accepted")

        invitation.token = generate_invitation_token()
        invitation.expires_at = datetime.utcnow() + timedelta(days=INVITATION_TTL_DAYS)
        invitation.status = "pending"
        self.db.commit()
        self.db.refresh(invitation)

        await notification_service.send_invitation(self.db, invitation, invitation.inviter or admin)
        logger.info(f"✉️ Invitation {invitation.id} resent to {invitation.email}")
        return invitation

    def cancel_invitation(self, invitation_id: int) -> None:
        invitation = self._invitation_or_404(invitation_id)
        self.repo.delete(self.db, invitation)
        logger.info(f"🗑️ Invitation {invitation_id} cancelled")

    # ------------------------------------------------------------------
    # Activity moderation
    # ------------------------------------------------------------------

    def list_activities(self, status: Optional[str] = None) -> list[Activity]:
        return self.repo.activities(self.db, status)

    def _pending_activity(self, activity_id: int) -> Activity:
        activity = self.repo.get_activity(self.db, activity_id)
        if not activity:
            raise HTTPException(status_code=404, detail="Activity not found")
        if activity.status != "pending":
            raise HTTPException(status_code=400, detail="Activity is not pending approval")
        return activity

    def approve_activity(self, activity_id: int, admin: User) -> Activity:
        activity = self._pending_activity(activity_id)
        activity.status = "approved"
        activity.rejection_reason = None
        activity.approved_at = datetime.utcnow()
        activity.approved_by = admin.id
        self.db.commit()
        self.db.refresh(activity)
        logger.info(f"✅ Activity {activity.id} approved by admin {admin.id}")
        return activity

    def reject_activity(self, activity_id: int, reason: Optional[str]) -> Activity:
        if not reason or not reason.strip():
            raise HTTPException(status_code=400, detail="Rejection reason is required")
        activity = self._pending_activity(activity_id)
        activity.status = "rejected"
        activity.rejection_reason = reason.strip()
        self.db.commit()
        self.db.refresh(activity)
        logger.info(f"🚫 Activity {activity.id} rejected")
        return activity
