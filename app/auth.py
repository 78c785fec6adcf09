import logging
from typing import Optional

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from .database import get_db
from .models import User
from .security_utils import TokenError, verify_access_token

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


def _resolve_user(token: str, db: Session) -> User:
    try:
        payload = verify_access_token(token)
    except TokenError as e:
        logger.warning(f"⚠️ Rejected access token: {e.message}")
        raise HTTPException(status_code=401, detail=e.message) from e

    user = db.query(User).filter(User.id == payload["userId"]).first()
    if not user:
        logger.error(f"❌ Token references missing user {payload['userId']}")
        raise HTTPException(status_code=401, detail="User no longer exists")
    return user


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    """Resolve the authenticated user from the Bearer access token"""
    if not credentials or not credentials.credentials:
        raise HTTPException(status_code=401, detail="Authentication required. Please log in.")
    return _resolve_user(credentials.credentials, db)


async def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> Optional[User]:
    """Like get_current_user, but anonymous or invalid tokens yield None"""
    if not credentials or not credentials.credentials:
        return None
    try:
        return _resolve_user(credentials.credentials, db)
    except HTTPException:
        return None


def require_roles(*roles: str):
    """
    Build a dependency that only lets the given roles through.
    Anything else gets 403.
    """

    async def dependency(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in roles:
            logger.warning(
                f"🔒 User {current_user.id} with role {current_user.role} denied, needs {roles}"
            )
            raise HTTPException(
                status_code=403, detail="You do not have permission to perform this action"
            )
        return current_user

    return dependency


admin_only = require_roles("admin")
affiliate_only = require_roles("affiliate")
admin_or_affiliate = require_roles("admin", "affiliate")
merchant_only = require_roles("merchant")
