"""Booking repository - Database operations for destination bookings"""

from datetime import date, datetime, time
from typing import Optional

from sqlalchemy.orm import Session

from ...models import AffiliateCode, Availability, Booking, Destination


class BookingRepository:
    """Repository for booking database operations"""

    @staticmethod
    def get_active_destination(db: Session, destination_id: int) -> Optional[Destination]:
        return (
            db.query(Destination)
            .filter(Destination.id == destination_id, Destination.is_active.is_(True))
            .first()
        )

    @staticmethod
    def get_active_code(db: Session, code: str) -> Optional[AffiliateCode]:
        return (
            db.query(AffiliateCode)
            .filter(AffiliateCode.code == code.upper(), AffiliateCode.is_active.is_(True))
            .first()
        )

    @staticmethod
    def add_booking(db: Session, **data) -> Booking:
        """Stage a booking; the caller commits"""
        booking = Booking(**data)
        db.add(booking)
        db.flush()
        return booking

    @staticmethod
    def get_by_id(db: Session, booking_id: int, user_id: Optional[int] = None) -> Optional[Booking]:
        query = db.query(Booking).filter(Booking.id == booking_id)
        if user_id is not None:
            query = query.filter(Booking.user_id == user_id)
        return query.first()

    @staticmethod
    def _filtered(
        db: Session,
        status: Optional[str] = None,
        destination_id: Optional[int] = None,
        user_id: Optional[int] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        affiliate_code: Optional[str] = None,
    ):
        query = db.query(Booking)
        if status:
            query = query.filter(Booking.status == status)
        if destination_id:
            query = query.filter(Booking.destination_id == destination_id)
        if user_id:
            query = query.filter(Booking.user_id == user_id)
        if affiliate_code:
            query = query.filter(Booking.affiliate_code == affiliate_code.upper())
        if date_from:
            query = query.filter(Booking.created_at >= datetime.combine(date_from, time.min))
        if date_to:
            query = query.filter(Booking.created_at <= datetime.combine(date_to, time.max))
        return query.order_by(Booking.created_at.desc(), Booking.id.desc())

    @staticmethod
    def list_bookings(db: Session, offset: int, limit: int, **filters) -> tuple[list[Booking], int]:
        query = BookingRepository._filtered(db, **filters)
        total = query.count()
        return query.offset(offset).limit(limit).all(), total

    @staticmethod
    def all_bookings(db: Session, **filters) -> list[Booking]:
        return BookingRepository._filtered(db, **filters).all()

    @staticmethod
    def days_in_range(db: Session, destination_id: int, start: date, end: date) -> list[Availability]:
        return (
            db.query(Availability)
            .filter(
                Availability.destination_id == destination_id,
                Availability.date >= start,
                Availability.date <= end,
            )
            .all()
        )

    @staticmethod
    def save(db: Session, booking: Booking) -> Booking:
        db.commit()
        db.refresh(booking)
        return booking
