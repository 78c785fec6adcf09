"""Affiliate repository - Database operations for codes, commissions and withdrawals"""

from datetime import date, datetime, time
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from ...models import AffiliateCode, Booking, Commission, User, Withdrawal

ACTIVE_WITHDRAWAL_STATUSES = ("pending", "processing", "completed")


class AffiliateRepository:
    """Repository for affiliate database operations"""

    # ------------------------------------------------------------------
    # Codes
    # ------------------------------------------------------------------

    @staticmethod
    def get_code_by_id(db: Session, code_id: int) -> Optional[AffiliateCode]:
        return db.query(AffiliateCode).filter(AffiliateCode.id == code_id).first()

    @staticmethod
    def get_active_code(db: Session, code: str) -> Optional[AffiliateCode]:
        return (
            db.query(AffiliateCode)
            .filter(AffiliateCode.code == code.upper(), AffiliateCode.is_active.is_(True))
            .first()
        )

    @staticmethod
    def code_exists(db: Session, code: str) -> bool:
        return db.query(AffiliateCode.id).filter(AffiliateCode.code == code).first() is not None

    @staticmethod
    def codes_for(db: Session, affiliate_id: int) -> list[AffiliateCode]:
        return (
            db.query(AffiliateCode)
            .filter(AffiliateCode.affiliate_id == affiliate_id)
            .order_by(AffiliateCode.created_at.desc(), AffiliateCode.id.desc())
            .all()
        )

    @staticmethod
    def count_codes(db: Session, affiliate_id: int) -> int:
        return db.query(AffiliateCode).filter(AffiliateCode.affiliate_id == affiliate_id).count()

    @staticmethod
    def shareable_code_for(db: Session, user_id: int) -> Optional[AffiliateCode]:
        return (
            db.query(AffiliateCode)
            .filter(
                AffiliateCode.affiliate_id == user_id,
                AffiliateCode.can_share_referral.is_(True),
            )
            .order_by(AffiliateCode.id.asc())
            .first()
        )

    @staticmethod
    def create_code(db: Session, **data) -> AffiliateCode:
        code = AffiliateCode(**data)
        db.add(code)
        db.commit()
        db.refresh(code)
        return code

    @staticmethod
    def update_code(db: Session, code: AffiliateCode, **updates) -> AffiliateCode:
        for key, value in updates.items():
            if value is not None and hasattr(code, key):
                setattr(code, key, value)
        db.commit()
        db.refresh(code)
        return code

    # ------------------------------------------------------------------
    # Bookings & referrals
    # ------------------------------------------------------------------

    @staticmethod
    def bookings_for_affiliate(
        db: Session, affiliate_id: int, offset: int, limit: int
    ) -> tuple[list[Booking], int]:
        query = db.query(Booking).filter(Booking.affiliate_id == affiliate_id)
        total = query.count()
        rows = (
            query.order_by(Booking.created_at.desc(), Booking.id.desc())
            .offset(offset)
            .limit(limit)
            .all()
        )
        return rows, total

    @staticmethod
    def bookings_of_referred_users(
        db: Session, referrer_id: int, offset: int, limit: int, status: Optional[str] = None
    ) -> tuple[list[Booking], int]:
        query = db.query(Booking).join(User, Booking.user_id == User.id).filter(
            User.referred_by == referrer_id
        )
        if status:
            query = query.filter(Booking.status == status)
        total = query.count()
        rows = (
            query.order_by(Booking.created_at.desc(), Booking.id.desc())
            .offset(offset)
            .limit(limit)
            .all()
        )
        return rows, total

    @staticmethod
    def referred_users(db: Session, referrer_id: int, offset: int, limit: int) -> tuple[list[User], int]:
        query = db.query(User).filter(User.referred_by == referrer_id)
        total = query.count()
        rows = query.order_by(User.created_at.desc(), User.id.desc()).offset(offset).limit(limit).all()
        return rows, total

    @staticmethod
    def count_referred_users(db: Session, referrer_id: int) -> int:
        return db.query(User).filter(User.referred_by == referrer_id).count()

    # ------------------------------------------------------------------
    # Commissions
    # ------------------------------------------------------------------

    @staticmethod
    def commissions_for(
        db: Session,
        affiliate_id: int,
        offset: int,
        limit: int,
        status: Optional[str] = None,
        kind: Optional[str] = None,
    ) -> tuple[list[Commission], int]:
        query = db.query(Commission).filter(Commission.affiliate_id == affiliate_id)
        if status:
            query = query.filter(Commission.status == status)
        if kind:
            query = query.filter(Commission.kind == kind)
        total = query.count()
        rows = (
            query.order_by(Commission.created_at.desc(), Commission.id.desc())
            .offset(offset)
            .limit(limit)
            .all()
        )
        return rows, total

    @staticmethod
    def commission_totals_by_status(
        db: Session, affiliate_id: int, kind: Optional[str] = None
    ) -> dict[str, tuple[int, float]]:
        """{status: (count, total amount)}"""
        query = db.query(
            Commission.status, func.count(Commission.id), func.sum(Commission.commission_amount)
        ).filter(Commission.affiliate_id == affiliate_id)
        if kind:
            query = query.filter(Commission.kind == kind)
        rows = query.group_by(Commission.status).all()
        return {status: (count, float(total or 0)) for status, count, total in rows}

    @staticmethod
    def approved_commissions(db: Session, affiliate_id: int) -> list[Commission]:
        return (
            db.query(Commission)
            .filter(Commission.affiliate_id == affiliate_id, Commission.status == "approved")
            .order_by(Commission.created_at.asc(), Commission.id.asc())
            .all()
        )

    @staticmethod
    def commissions_for_report(
        db: Session,
        start: Optional[date] = None,
        end: Optional[date] = None,
        affiliate_id: Optional[int] = None,
        status: Optional[str] = None,
    ) -> list[Commission]:
        query = db.query(Commission)
        if start:
            query = query.filter(Commission.created_at >= datetime.combine(start, time.min))
        if end:
            query = query.filter(Commission.created_at <= datetime.combine(end, time.max))
        if affiliate_id:
            query = query.filter(Commission.affiliate_id == affiliate_id)
        if status:
            query = query.filter(Commission.status == status)
        return query.order_by(Commission.created_at.desc(), Commission.id.desc()).all()

    # ------------------------------------------------------------------
    # Withdrawals
    # ------------------------------------------------------------------

    @staticmethod
    def paid_commission_total(db: Session, ids: list[int]) -> float:
        if not ids:
            return 0.0
        total = (
            db.query(func.sum(Commission.commission_amount))
            .filter(Commission.id.in_(ids), Commission.status == "paid")
            .scalar()
        )
        return float(total or 0)

    @staticmethod
    def active_withdrawals(db: Session, affiliate_id: int) -> list[Withdrawal]:
        return (
            db.query(Withdrawal)
            .filter(
                Withdrawal.affiliate_id == affiliate_id,
                Withdrawal.status.in_(ACTIVE_WITHDRAWAL_STATUSES),
            )
            .all()
        )

    @staticmethod
    def withdrawals(
        db: Session,
        offset: int,
        limit: int,
        affiliate_id: Optional[int] = None,
        status: Optional[str] = None,
    ) -> tuple[list[Withdrawal], int]:
        query = db.query(Withdrawal)
        if affiliate_id is not None:
            query = query.filter(Withdrawal.affiliate_id == affiliate_id)
        if status:
            query = query.filter(Withdrawal.status == status)
        total = query.count()
        rows = (
            query.order_by(Withdrawal.created_at.desc(), Withdrawal.id.desc())
            .offset(offset)
            .limit(limit)
            .all()
        )
        return rows, total

    @staticmethod
    def get_withdrawal(db: Session, withdrawal_id: int) -> Optional[Withdrawal]:
        return db.query(Withdrawal).filter(Withdrawal.id == withdrawal_id).first()

    @staticmethod
    def create_withdrawal(db: Session, **data) -> Withdrawal:
        withdrawal = Withdrawal(**data)
        db.add(withdrawal)
        db.commit()
        db.refresh(withdrawal)
        return withdrawal

    # ------------------------------------------------------------------
    # Affiliates (admin)
    # ------------------------------------------------------------------

    @staticmethod
    def affiliates(db: Session, offset: int, limit: int) -> tuple[list[User], int]:
        query = db.query(User).filter(User.role == "affiliate")
        total = query.count()
        rows = query.order_by(User.created_at.desc(), User.id.desc()).offset(offset).limit(limit).all()
        return rows, total
