"""Activity repository - Database operations for the public activity catalogue"""

from datetime import date
from typing import Optional

from sqlalchemy import and_, or_
from sqlalchemy.orm import Session

from ...models import Activity, ActivityAvailability, ActivityBooking, ActivityInquiry

OPEN_AVAILABILITY_SLOTS = 999

# A country filter also matches activities listed under one of its cities
COUNTRY_CITIES = {
    "UAE": [
        "Dubai",
        "Abu Dhabi",
        "Sharjah",
        "Ajman",
        "Fujairah",
        "Ras Al Khaimah",
        "Umm Al Quwain",
    ],
}
COUNTRY_CITIES["United Arab Emirates"] = COUNTRY_CITIES["UAE"]


class ActivityRepository:
    """Repository for activity database operations"""

    @staticmethod
    def list_approved(
        db: Session,
        offset: int,
        limit: int,
        location: Optional[str] = None,
        search: Optional[str] = None,
    ) -> tuple[list[Activity], int]:
        query = db.query(Activity).filter(Activity.status == "approved")

        conditions = []
        if location:
            terms = [location, *COUNTRY_CITIES.get(location, [])]
            conditions.append(or_(*[Activity.location.ilike(f"%{t}%") for t in terms]))
        if search:
            pattern = f"%{search}%"
            conditions.append(
                or_(
                    Activity.title.ilike(pattern),
                    Activity.description.ilike(pattern),
                    Activity.location.ilike(pattern),
                )
            )
        if conditions:
            query = query.filter(and_(*conditions))

        total = query.count()
        rows = (
            query.order_by(Activity.created_at.desc(), Activity.id.desc())
            .offset(offset)
            .limit(limit)
            .all()
        )
        return rows, total

    @staticmethod
    def get_approved(db: Session, activity_id: int) -> Optional[Activity]:
        return (
            db.query(Activity)
            .filter(Activity.id == activity_id, Activity.status == "approved")
            .first()
        )

    @staticmethod
    def get_availability_range(
        db: Session, activity_id: int, start: date, end: date
    ) -> list[ActivityAvailability]:
        return (
            db.query(ActivityAvailability)
            .filter(
                ActivityAvailability.activity_id == activity_id,
                ActivityAvailability.date >= start,
                ActivityAvailability.date <= end,
            )
            .order_by(ActivityAvailability.date.asc())
            .all()
        )

    @staticmethod
    def get_day(db: Session, activity_id: int, day: date) -> Optional[ActivityAvailability]:
        return (
            db.query(ActivityAvailability)
            .filter(ActivityAvailability.activity_id == activity_id, ActivityAvailability.date == day)
            .first()
        )

    @staticmethod
    def find_or_create_day(db: Session, activity_id: int, day: date) -> ActivityAvailability:
        """Days nobody configured are open with effectively unlimited slots. Does not commit."""
        row = ActivityRepository.get_day(db, activity_id, day)
        if row is None:
            row = ActivityAvailability(
                activity_id=activity_id,
                date=day,
                available_slots=OPEN_AVAILABILITY_SLOTS,
                booked_slots=0,
                is_available=True,
            )
            db.add(row)
            db.flush()
        return row

    @staticmethod
    def add_booking(db: Session, **data) -> ActivityBooking:
        """Stage an activity booking; the caller commits"""
        booking = ActivityBooking(**data)
        db.add(booking)
        db.flush()
        return booking

    @staticmethod
    def get_booking(
        db: Session, booking_id: int, user_id: Optional[int] = None
    ) -> Optional[ActivityBooking]:
        query = db.query(ActivityBooking).filter(ActivityBooking.id == booking_id)
        if user_id is not None:
            query = query.filter(ActivityBooking.user_id == user_id)
        return query.first()

    @staticmethod
    def create_inquiry(db: Session, **data) -> ActivityInquiry:
        inquiry = ActivityInquiry(**data)
        db.add(inquiry)
        db.commit()
        db.refresh(inquiry)
        return inquiry
