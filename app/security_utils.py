"""
Security Utilities
Password hashing, JWT issuing/verification and signed one-time tokens
"""

import logging
import secrets
import string
from datetime import datetime, timedelta
from typing import Any, Optional

# Token generation and validation
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer
from jose import ExpiredSignatureError, JWTError
from jose import jwt as jose_jwt

# Password hashing
from passlib.context import CryptContext

from .config import (
    JWT_ALGORITHM,
    JWT_EXPIRE_MINUTES,
    JWT_REFRESH_EXPIRE_DAYS,
    JWT_REFRESH_SECRET,
    JWT_SECRET,
    SECRET_KEY,
)

logger = logging.getLogger(__name__)

# Password hashing context
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

EMAIL_VERIFICATION_SALT = "email-verification"
PASSWORD_RESET_SALT = "password-reset"
EMAIL_VERIFICATION_MAX_AGE = 24 * 3600
PASSWORD_RESET_MAX_AGE = 3600

REFERENCE_ALPHABET = string.ascii_uppercase + string.digits


class TokenError(Exception):
    """Raised when a JWT cannot be verified"""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


# ============================================================================
# PASSWORD SECURITY
# ============================================================================


def hash_password(password: str) -> str:
    """Hash password using bcrypt"""
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify password against bcrypt hash"""
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except Exception as e:
        logger.error(f"Password verification error: {e}")
        return False


# ============================================================================
# JWT ACCESS / REFRESH TOKENS
# ============================================================================


def _token_payload(user) -> dict[str, Any]:
    return {"userId": user.id, "email": user.email, "role": user.role}


def create_access_token(user, expires_delta: Optional[timedelta] = None) -> str:
    """Create a short-lived access token (15 minutes by default)"""
    to_encode = _token_payload(user)
    expire = datetime.utcnow() + (expires_delta or timedelta(minutes=JWT_EXPIRE_MINUTES))
    to_encode.update({"exp": expire, "type": "access"})
    return jose_jwt.encode(to_encode, JWT_SECRET, algorithm=JWT_ALGORITHM)


def create_refresh_token(user) -> str:
    """Create a long-lived refresh token (7 days by default)"""
    to_encode = _token_payload(user)
    expire = datetime.utcnow() + timedelta(days=JWT_REFRESH_EXPIRE_DAYS)
    to_encode.update({"exp": expire, "type": "refresh"})
    return jose_jwt.encode(to_encode, JWT_REFRESH_SECRET, algorithm=JWT_ALGORITHM)


def _decode(token: str, secret: str, expected_type: str) -> dict[str, Any]:
    try:
        payload = jose_jwt.decode(token, secret, algorithms=[JWT_ALGORITHM])
    except ExpiredSignatureError as e:
        raise TokenError("Token expired. Please log in again.") from e
    except JWTError as e:
        raise TokenError("Invalid token. Please log in again.") from e

    if payload.get("type") != expected_type or "userId" not in payload:
        raise TokenError("Invalid token. Please log in again.")
    return payload


def verify_access_token(token: str) -> dict[str, Any]:
    """Decode an access token, raising TokenError when invalid or expired"""
    return _decode(token, JWT_SECRET, "access")


def verify_refresh_token(token: str) -> dict[str, Any]:
    """Decode a refresh token, raising TokenError when invalid or expired"""
    return _decode(token, JWT_REFRESH_SECRET, "refresh")


# ============================================================================
# SIGNED ONE-TIME TOKENS (email verification, password reset)
# ============================================================================


def generate_timed_token(data: dict[str, Any], salt: str) -> str:
    """
    Generate a time-limited token using itsdangerous.
    The salt binds the token to one purpose so a verification link
    cannot be replayed as a password reset link.
    """
    serializer = URLSafeTimedSerializer(SECRET_KEY)
    return serializer.dumps(data, salt=salt)


def verify_timed_token(token: str, salt: str, max_age: int) -> Optional[dict[str, Any]]:
    """
    Verify and decode a timed token

    Returns:
        Decoded data if valid, None if invalid or expired
    """
    serializer = URLSafeTimedSerializer(SECRET_KEY)
    try:
        return serializer.loads(token, salt=salt, max_age=max_age)
    except SignatureExpired:
        logger.warning("Token expired")
        return None
    except BadSignature:
        logger.warning("Invalid token signature")
        return None


def generate_email_verification_token(user_id: int) -> str:
    return generate_timed_token({"userId": user_id}, EMAIL_VERIFICATION_SALT)


def verify_email_verification_token(token: str) -> Optional[int]:
    data = verify_timed_token(token, EMAIL_VERIFICATION_SALT, EMAIL_VERIFICATION_MAX_AGE)
    return data.get("userId") if data else None


def generate_password_reset_token(user_id: int) -> str:
    return generate_timed_token(
        {"userId": user_id, "purpose": "password_reset"}, PASSWORD_RESET_SALT
    )


def verify_password_reset_token(token: str) -> Optional[int]:
    data = verify_timed_token(token, PASSWORD_RESET_SALT, PASSWORD_RESET_MAX_AGE)
    if not data or data.get("purpose") != "password_reset":
        return None
    return data.get("userId")


# ============================================================================
# REFERENCE GENERATION
# ============================================================================


def _random_part(length: int) -> str:
    return "".join(secrets.choice(REFERENCE_ALPHABET) for _ in range(length))


def generate_booking_reference(prefix: str = "TRP") -> str:
    """Booking reference in the form TRP-YYYYMMDD-XXXXX"""
    return f"{prefix}-{datetime.utcnow().strftime('%Y%m%d')}-{_random_part(5)}"


def generate_affiliate_code(prefix: Optional[str] = None) -> str:
    """Affiliate code such as JOH-4K2Q9Z, or AFF-4K2Q9Z without a prefix"""
    head = prefix.upper() if prefix else "AFF"
    return f"{head}-{_random_part(6)}"
