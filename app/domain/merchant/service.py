"""Merchant service - Activity submission, earnings and availability management"""

import logging
from datetime import date
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import Activity, User
from ..activities.repository import ActivityRepository
from .repository import MerchantRepository
from .schemas import ActivitySubmit, DatesSlotsRequest

logger = logging.getLogger(__name__)

COMPLETED_BOOKING_STATUSES = ("payment_completed", "confirmed")


class MerchantService:
    """Service layer for merchant business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = MerchantRepository()

    def register(self, user: User) -> User:
        if user.role == "merchant":
            raise HTTPException(status_code=400, detail="You are already registered as a merchant")
        if user.role == "admin":
            raise HTTPException(status_code=400, detail="Admins cannot register as merchants")
        user.role = "merchant"
        self.db.commit()
        self.db.refresh(user)
        logger.info(f"🏪 User {user.id} registered as merchant")
        return user

    def submit_activity(self, merchant: User, data: ActivitySubmit) -> Activity:
        activity = self.repo.create_activity(
            self.db,
            merchant_id=merchant.id,
            title=data.title,
            description=data.description,
            location=data.location,
            price=data.price,
            currency=data.currency,
            photos=data.photos,
            status="pending",
        )
        logger.info(f"📝 Activity {activity.id} submitted by merchant {merchant.id}")
        return activity

    def list_activities(self, merchant: User) -> list[Activity]:
        return self.repo.activities_for(self.db, merchant.id)

    def own_activity(self, activity_id: int, merchant: User) -> Activity:
        activity = self.repo.get_own_activity(self.db, activity_id, merchant.id)
        if not activity:
            raise HTTPException(status_code=404, detail="Activity not found or access denied")
        return activity

    def dashboard(self, merchant: User) -> dict:
        activities = self.repo.activities_for(self.db, merchant.id)
        bookings = self.repo.all_bookings_for(self.db, merchant.id)

        total_earnings = pending_payouts = paid_out = 0.0
        total_bookings = completed_bookings = 0
        per_activity: dict[int, dict] = {}
        for booking in bookings:
            if booking.payment_status != "completed":
                continue
            total_earnings += booking.merchant_amount
            total_bookings += 1
            if booking.merchant_payout_status == "pending":
                pending_payouts += booking.merchant_amount
            elif booking.merchant_payout_status == "paid":
                paid_out += booking.merchant_amount
            if booking.status in COMPLETED_BOOKING_STATUSES:
                completed_bookings += 1
            stats = per_activity.setdefault(booking.activity_id, {"count": 0, "revenue": 0.0})
            stats["count"] += 1
            stats["revenue"] += booking.merchant_amount

        return {
            "stats": {
                "totalEarnings": round(total_earnings, 2),
                "pendingPayouts": round(pending_payouts, 2),
                "paidOut": round(paid_out, 2),
                "totalBookings": total_bookings,
                "completedBookings": completed_bookings,
                "totalActivities": len(activities),
                "approvedActivities": sum(1 for a in activities if a.status == "approved"),
            },
            "activitiesWithStats": [
                {
                    "id": a.id,
                    "title": a.title,
                    "status": a.status,
                    "bookingsCount": per_activity.get(a.id, {}).get("count", 0),
                    "revenue": round(per_activity.get(a.id, {}).get("revenue", 0.0), 2),
                }
                for a in activities
            ],
            "recentBookings": bookings[:5],
        }

    def bookings(self, merchant: User, page: int, limit: int, status: Optional[str] = None):
        return self.repo.bookings_for(self.db, merchant.id, (page - 1) * limit, limit, status)

    # ------------------------------------------------------------------
    # Availability
    # ------------------------------------------------------------------

    def availability(
        self,
        activity_id: int,
        merchant: User,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ):
        self.own_activity(activity_id, merchant)
        return self.repo.availability(self.db, activity_id, start, end)

    def block_dates(
        self, activity_id: int, merchant: User, dates: list[date], is_blocked: bool
    ) -> dict:
        if not dates:
            raise HTTPException(status_code=400, detail="Dates array is required")
        self.own_activity(activity_id, merchant)

        for day in dates:
            row = ActivityRepository.find_or_create_day(self.db, activity_id, day)
            row.is_available = not is_blocked
        self.db.commit()
        logger.info(
            f"📅 {'Blocked' if is_blocked else 'Unblocked'} {len(dates)} date(s) for activity {activity_id}"
        )
        return {"activityId": activity_id, "datesUpdated": len(dates), "isBlocked": is_blocked}

    def update_slots(self, activity_id: int, merchant: User, data: DatesSlotsRequest) -> dict:
        if not data.dates:
            raise HTTPException(status_code=400, detail="Dates array is required")
        if data.totalSlots <= 0:
            raise HTTPException(status_code=400, detail="Total slots must be a positive number")
        self.own_activity(activity_id, merchant)

        for day in data.dates:
            row = ActivityRepository.find_or_create_day(self.db, activity_id, day)
            row.available_slots = data.totalSlots
            if data.price is not None:
                row.price = data.price
        self.db.commit()
        logger.info(f"📅 Set {data.totalSlots} slots on {len(data.dates)} date(s) for activity {activity_id}")
        return {
            "activityId": activity_id,
            "datesUpdated": len(data.dates),
            "totalSlots": data.totalSlots,
        }
