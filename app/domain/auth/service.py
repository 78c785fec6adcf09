"""Auth service - Registration, login, tokens and profile management"""

import logging
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...config import DEFAULT_DEPOSIT_AMOUNT
from ...models import User
from ...security_utils import (
    TokenError,
    create_access_token,
    create_refresh_token,
    generate_affiliate_code,
    generate_email_verification_token,
    generate_password_reset_token,
    hash_password,
    verify_email_verification_token,
    verify_password,
    verify_password_reset_token,
    verify_refresh_token,
)
from ...services import notification_service
from .repository import AuthRepository
from .schemas import RegisterRequest, UpdateProfileRequest

logger = logging.getLogger(__name__)

PERSONAL_CODE_RATE = 10
PERSONAL_CODE_DISCOUNT = 10


def referral_discount(code) -> float:
    """Signup discount a shareable code grants, taken off the standard deposit"""
    if code.discount_percentage:
        return round(DEFAULT_DEPOSIT_AMOUNT * code.discount_percentage / 100, 2)
    return code.discount_amount or 0


class AuthService:
    """Service layer for account business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = AuthRepository()

    def unique_code(self, prefix: Optional[str]) -> str:
        code = generate_affiliate_code(prefix)
        while self.repo.code_exists(self.db, code):
            code = generate_affiliate_code(prefix)
        return code

    async def register(self, data: RegisterRequest) -> dict:
        logger.info(f"📥 Registration attempt for {data.email}")

        if self.repo.get_user_by_email(self.db, data.email):
            raise HTTPException(status_code=400, detail="Email already registered")

        referrer_id = None
        referral_code = None
        discount = 0
        if data.referralCode:
            code = self.repo.get_shareable_code(self.db, data.referralCode)
            if not code:
                raise HTTPException(status_code=400, detail="Invalid or inactive referral code")
            referrer_id = code.affiliate_id
            referral_code = code.code
            discount = referral_discount(code)
            code.referral_count = (code.referral_count or 0) + 1

        user = self.repo.create_user(
            self.db,
            email=data.email,
            password_hash=hash_password(data.password),
            first_name=data.firstName,
            last_name=data.lastName,
            phone_number=data.phoneNumber,
            role="user",
            referred_by=referrer_id,
            referral_code=referral_code,
            discount_amount=discount,
        )

        # Every account gets its own shareable code
        try:
            self.repo.create_code(
                self.db,
                affiliate_id=user.id,
                code=self.unique_code(data.firstName[:3]),
                commission_rate=PERSONAL_CODE_RATE,
                commission_type="percentage",
                is_active=True,
                can_share_referral=True,
                discount_percentage=PERSONAL_CODE_DISCOUNT,
            )
        except Exception as e:
            self.db.rollback()
            logger.error(f"❌ Failed to create referral code for user {user.id}: {e}")

        token = generate_email_verification_token(user.id)
        await notification_service.send_verification_email(self.db, user, token)

        logger.info(f"✅ Registered user {user.id} (referred_by={referrer_id})")
        return {
            "userId": user.id,
            "email": user.email,
            "discountApplied": discount > 0,
            "discountAmount": discount,
        }

    def login(self, email: str, password: str) -> tuple[User, str, str]:
        """Returns (user, access_token, refresh_token)"""
        user = self.repo.get_user_by_email(self.db, email)
        if not user or not verify_password(password, user.password_hash):
            logger.warning(f"🚫 Failed login for {email}")
            raise HTTPException(status_code=401, detail="Invalid email or password")

        self.repo.touch_last_login(self.db, user)
        logger.info(f"🔐 User {user.id} logged in")
        return user, create_access_token(user), create_refresh_token(user)

    def refresh(self, refresh_token: Optional[str]) -> str:
        if not refresh_token:
            raise HTTPException(status_code=401, detail="No refresh token provided")
        try:
            payload = verify_refresh_token(refresh_token)
        except TokenError as e:
            raise HTTPException(status_code=401, detail=e.message) from e

        user = self.repo.get_user_by_id(self.db, payload["userId"])
        if not user:
            raise HTTPException(status_code=401, detail="User no longer exists")
        return create_access_token(user)

    def verify_email(self, token: str) -> User:
        user_id = verify_email_verification_token(token)
        if not user_id:
            raise HTTPException(status_code=400, detail="Invalid or expired verification token")

        user = self.repo.get_user_by_id(self.db, user_id)
        if not user:
            raise HTTPException(status_code=404, detail="User not found")
        return self.repo.update_user(self.db, user, is_email_verified=True)

    async def forgot_password(self, email: str) -> None:
        user = self.repo.get_user_by_email(self.db, email)
        if not user:
            # Same answer either way, so emails cannot be enumerated
            logger.info(f"🔍 Password reset requested for unknown email {email}")
            return
        token = generate_password_reset_token(user.id)
        await notification_service.send_password_reset(self.db, user, token)

    def reset_password(self, token: str, password: str) -> None:
        user_id = verify_password_reset_token(token)
        user = self.repo.get_user_by_id(self.db, user_id) if user_id else None
        if not user:
            raise HTTPException(status_code=400, detail="Invalid or expired token")
        self.repo.update_user(self.db, user, password_hash=hash_password(password))
        logger.info(f"🔑 Password reset for user {user.id}")

    def update_profile(self, user: User, data: UpdateProfileRequest) -> User:
        updates = {
            "first_name": data.firstName or None,
            "last_name": data.lastName or None,
            "phone_number": data.phoneNumber or None,
            "profile_image": data.profileImage or None,
        }
        return self.repo.update_user(self.db, user, **updates)
