"""Payment repository - Database operations around deposits and commissions"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import ActivityBooking, AffiliateCode, Booking, Commission


class PaymentRepository:
    """Repository for payment database operations"""

    @staticmethod
    def get_booking(db: Session, booking_id: int, user_id: Optional[int] = None) -> Optional[Booking]:
        query = db.query(Booking).filter(Booking.id == booking_id)
        if user_id is not None:
            query = query.filter(Booking.user_id == user_id)
        return query.first()

    @staticmethod
    def get_activity_booking(
        db: Session, booking_id: int, user_id: Optional[int] = None
    ) -> Optional[ActivityBooking]:
        query = db.query(ActivityBooking).filter(ActivityBooking.id == booking_id)
        if user_id is not None:
            query = query.filter(ActivityBooking.user_id == user_id)
        return query.first()

    @staticmethod
    def get_active_code(db: Session, code: str) -> Optional[AffiliateCode]:
        return (
            db.query(AffiliateCode)
            .filter(AffiliateCode.code == code, AffiliateCode.is_active.is_(True))
            .first()
        )

    @staticmethod
    def commission_exists(db: Session, booking_id: int) -> bool:
        return (
            db.query(Commission.id).filter(Commission.booking_id == booking_id).first() is not None
        )

    @staticmethod
    def create_commission(db: Session, **data) -> Commission:
        commission = Commission(**data)
        db.add(commission)
        db.commit()
        db.refresh(commission)
        return commission
