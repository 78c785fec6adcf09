"""Admin repository - Aggregates and back-office queries"""

from datetime import datetime
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from ...models import Activity, Booking, Commission, Destination, Invitation, User

POPULAR_BOOKING_STATUSES = ("deposit_paid", "dates_selected", "confirmed")


class AdminRepository:
    """Repository for admin database operations"""

    # ------------------------------------------------------------------
    # Dashboard aggregates
    # ------------------------------------------------------------------

    @staticmethod
    def count_bookings(db: Session) -> int:
        return db.query(Booking).count()

    @staticmethod
    def bookings_by_status(db: Session) -> dict[str, int]:
        rows = db.query(Booking.status, func.count(Booking.id)).group_by(Booking.status).all()
        return {status: count for status, count in rows}

    @staticmethod
    def count_users(db: Session, role: str) -> int:
        return db.query(User).filter(User.role == role).count()

    @staticmethod
    def commission_totals(db: Session) -> dict[str, float]:
        rows = (
            db.query(Commission.status, func.sum(Commission.commission_amount))
            .group_by(Commission.status)
            .all()
        )
        return {status: float(total or 0) for status, total in rows}

    @staticmethod
    def completed_revenue(db: Session) -> float:
        total = (
            db.query(func.sum(Booking.deposit_amount))
            .filter(Booking.payment_status == "completed")
            .scalar()
        )
        return float(total or 0)

    @staticmethod
    def recent_bookings(db: Session, limit: int) -> list[Booking]:
        return (
            db.query(Booking)
            .order_by(Booking.created_at.desc(), Booking.id.desc())
            .limit(limit)
            .all()
        )

    @staticmethod
    def paid_bookings_since(db: Session, since: datetime) -> list[Booking]:
        return (
            db.query(Booking)
            .filter(Booking.payment_status == "completed", Booking.paid_at >= since)
            .order_by(Booking.paid_at.asc())
            .all()
        )

    @staticmethod
    def popular_destinations(db: Session, limit: int) -> list[tuple]:
        """(destination, booking_count, revenue) ordered by booking count"""
        booking_count = func.count(Booking.id).label("booking_count")
        return (
            db.query(Destination, booking_count, func.sum(Booking.deposit_amount))
            .join(Booking, Booking.destination_id == Destination.id)
            .filter(Booking.status.in_(POPULAR_BOOKING_STATUSES))
            .group_by(Destination.id)
            .order_by(booking_count.desc(), Destination.id.asc())
            .limit(limit)
            .all()
        )

    @staticmethod
    def users_since(db: Session, since: datetime) -> list[User]:
        return (
            db.query(User)
            .filter(User.created_at >= since)
            .order_by(User.created_at.asc())
            .all()
        )

    # ------------------------------------------------------------------
    # Commissions
    # ------------------------------------------------------------------

    @staticmethod
    def commissions(
        db: Session, offset: int, limit: int, status: Optional[str] = None
    ) -> tuple[list[Commission], int]:
        query = db.query(Commission)
        if status:
            query = query.filter(Commission.status == status)
        total = query.count()
        rows = (
            query.order_by(Commission.created_at.desc(), Commission.id.desc())
            .offset(offset)
            .limit(limit)
            .all()
        )
        return rows, total

    @staticmethod
    def get_commission(db: Session, commission_id: int) -> Optional[Commission]:
        return db.query(Commission).filter(Commission.id == commission_id).first()

    @staticmethod
    def commissions_by_ids(db: Session, ids: list[int]) -> list[Commission]:
        if not ids:
            return []
        return db.query(Commission).filter(Commission.id.in_(ids)).all()

    # ------------------------------------------------------------------
    # Invitations
    # ------------------------------------------------------------------

    @staticmethod
    def get_user_by_email(db: Session, email: str) -> Optional[User]:
        return db.query(User).filter(User.email == email).first()

    @staticmethod
    def get_pending_invitation(db: Session, email: str) -> Optional[Invitation]:
        return (
            db.query(Invitation)
            .filter(Invitation.email == email, Invitation.status == "pending")
            .order_by(Invitation.expires_at.desc())
            .first()
        )

    @staticmethod
    def invitations(
        db: Session, offset: int, limit: int, status: Optional[str] = None
    ) -> tuple[list[Invitation], int]:
        query = db.query(Invitation)
        if status:
            query = query.filter(Invitation.status == status)
        total = query.count()
        rows = (
            query.order_by(Invitation.created_at.desc(), Invitation.id.desc())
            .offset(offset)
            .limit(limit)
            .all()
        )
        return rows, total

    @staticmethod
    def get_invitation(db: Session, invitation_id: int) -> Optional[Invitation]:
        return db.query(Invitation).filter(Invitation.id == invitation_id).first()

    @staticmethod
    def create_invitation(db: Session, **data) -> Invitation:
        invitation = Invitation(**data)
        db.add(invitation)
        db.commit()
        db.refresh(invitation)
        return invitation

    @staticmethod
    def delete(db: Session, obj) -> None:
        db.delete(obj)
        db.commit()

    # ------------------------------------------------------------------
    # Activities
    # ------------------------------------------------------------------

    @staticmethod
    def activities(db: Session, status: Optional[str] = None) -> list[Activity]:
        query = db.query(Activity)
        if status:
            query = query.filter(Activity.status == status)
        return query.order_by(Activity.created_at.desc(), Activity.id.desc()).all()

    @staticmethod
    def get_activity(db: Session, activity_id: int) -> Optional[Activity]:
        return db.query(Activity).filter(Activity.id == activity_id).first()
