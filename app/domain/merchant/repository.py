"""Merchant repository - Database operations for merchant-owned activities"""

from datetime import date
from typing import Optional

from sqlalchemy.orm import Session

from ...models import Activity, ActivityAvailability, ActivityBooking


class MerchantRepository:
    """Repository for merchant database operations"""

    @staticmethod
    def create_activity(db: Session, **data) -> Activity:
        activity = Activity(**data)
        db.add(activity)
        db.commit()
        db.refresh(activity)
        return activity

    @staticmethod
    def activities_for(db: Session, merchant_id: int) -> list[Activity]:
        return (
            db.query(Activity)
            .filter(Activity.merchant_id == merchant_id)
            .order_by(Activity.created_at.desc(), Activity.id.desc())
            .all()
        )

    @staticmethod
    def get_own_activity(db: Session, activity_id: int, merchant_id: int) -> Optional[Activity]:
        return (
            db.query(Activity)
            .filter(Activity.id == activity_id, Activity.merchant_id == merchant_id)
            .first()
        )

    @staticmethod
    def all_bookings_for(db: Session, merchant_id: int) -> list[ActivityBooking]:
        return (
            db.query(ActivityBooking)
            .join(Activity, ActivityBooking.activity_id == Activity.id)
            .filter(Activity.merchant_id == merchant_id)
            .order_by(ActivityBooking.created_at.desc(), ActivityBooking.id.desc())
            .all()
        )

    @staticmethod
    def bookings_for(
        db: Session, merchant_id: int, offset: int, limit: int, status: Optional[str] = None
    ) -> tuple[list[ActivityBooking], int]:
        query = (
            db.query(ActivityBooking)
            .join(Activity, ActivityBooking.activity_id == Activity.id)
            .filter(Activity.merchant_id == merchant_id)
        )
        if status:
            query = query.filter(ActivityBooking.status == status)
        total = query.count()
        rows = (
            query.order_by(ActivityBooking.created_at.desc(), ActivityBooking.id.desc())
            .offset(offset)
            .limit(limit)
            .all()
        )
        return rows, total

    @staticmethod
    def availability(
        db: Session, activity_id: int, start: Optional[date] = None, end: Optional[date] = None
    ) -> list[ActivityAvailability]:
        query = db.query(ActivityAvailability).filter(ActivityAvailability.activity_id == activity_id)
        if start and end:
            query = query.filter(ActivityAvailability.date >= start, ActivityAvailability.date <= end)
        return query.order_by(ActivityAvailability.date.asc()).all()
