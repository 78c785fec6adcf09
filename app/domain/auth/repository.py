"""Auth repository - Database operations for accounts and referral codes"""

from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from ...models import AffiliateCode, User


class AuthRepository:
    """Repository for user account database operations"""

    @staticmethod
    def get_user_by_id(db: Session, user_id: int) -> Optional[User]:
        return db.query(User).filter(User.id == user_id).first()

    @staticmethod
    def get_user_by_email(db: Session, email: str) -> Optional[User]:
        return db.query(User).filter(User.email == email.lower()).first()

    @staticmethod
    def get_shareable_code(db: Session, code: str) -> Optional[AffiliateCode]:
        """Active code that regular customers may hand out for a signup discount"""
        return (
            db.query(AffiliateCode)
            .filter(
                AffiliateCode.code == code.upper(),
                AffiliateCode.is_active.is_(True),
                AffiliateCode.can_share_referral.is_(True),
            )
            .first()
        )

    @staticmethod
    def code_exists(db: Session, code: str) -> bool:
        return db.query(AffiliateCode.id).filter(AffiliateCode.code == code).first() is not None

    @staticmethod
    def create_user(db: Session, **user_data) -> User:
        user = User(**user_data)
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    @staticmethod
    def create_code(db: Session, **code_data) -> AffiliateCode:
        code = AffiliateCode(**code_data)
        db.add(code)
        db.commit()
        db.refresh(code)
        return code

    @staticmethod
    def update_user(db: Session, user: User, **updates) -> User:
        for key, value in updates.items():
            if value is not None and hasattr(user, key):
                setattr(user, key, value)
        db.commit()
        db.refresh(user)
        return user

    @staticmethod
    def touch_last_login(db: Session, user: User) -> None:
        user.last_login = datetime.utcnow()
        db.commit()
