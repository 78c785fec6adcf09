"""Auth router - FastAPI endpoints for accounts and sessions"""

import logging

from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.orm import Session

from ...auth import get_current_user
from ...config import IS_PRODUCTION, JWT_REFRESH_EXPIRE_DAYS, REFRESH_COOKIE_NAME
from ...database import get_db
from ...models import User
from ...rate_limiter import login_limiter, password_reset_limiter
from ...serializers import serialize_user
from ...shared.responses import created_response, success_response
from .schemas import (
    ForgotPasswordRequest,
    LoginRequest,
    RegisterRequest,
    ResetPasswordRequest,
    UpdateProfileRequest,
)
from .service import AuthService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])


def get_auth_service(db: Session = Depends(get_db)) -> AuthService:
    """Dependency injection for AuthService"""
    return AuthService(db)


def set_refresh_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        REFRESH_COOKIE_NAME,
        token,
        httponly=True,
        secure=IS_PRODUCTION,
        samesite="strict",
        max_age=JWT_REFRESH_EXPIRE_DAYS * 24 * 3600,
    )


# ============================================================================
# REGISTRATION & SESSIONS
# ============================================================================


@router.post("/register")
async def register(data: RegisterRequest, service: AuthService = Depends(get_auth_service)):
    result = await service.register(data)
    return created_response(
        "Registration successful. Please check your email to verify your account.", result
    )


@router.post("/login", dependencies=[Depends(login_limiter)])
async def login(
    data: LoginRequest, response: Response, service: AuthService = Depends(get_auth_service)
):
    user, access_token, refresh_token = service.login(data.email, data.password)
    set_refresh_cookie(response, refresh_token)
    return success_response(
        "Login successful",
        {
            "accessToken": access_token,
            "user": {
                "id": user.id,
                "email": user.email,
                "firstName": user.first_name,
                "lastName": user.last_name,
                "role": user.role,
                "isEmailVerified": user.is_email_verified,
            },
        },
    )


@router.post("/logout")
async def logout(response: Response, current_user: User = Depends(get_current_user)):
    response.delete_cookie(REFRESH_COOKIE_NAME)
    logger.info(f"👋 User {current_user.id} logged out")
    return success_response("Logged out successfully")


@router.post("/refresh")
async def refresh(request: Request, service: AuthService = Depends(get_auth_service)):
    access_token = service.refresh(request.cookies.get(REFRESH_COOKIE_NAME))
    return success_response("Token refreshed", {"accessToken": access_token})


# ============================================================================
# EMAIL VERIFICATION & PASSWORD RESET
# ============================================================================


@router.get("/verify-email/{token}")
async def verify_email(token: str, service: AuthService = Depends(get_auth_service)):
    service.verify_email(token)
    return success_response("Email verified successfully")


@router.post("/forgot-password", dependencies=[Depends(password_reset_limiter)])
async def forgot_password(
    data: ForgotPasswordRequest, service: AuthService = Depends(get_auth_service)
):
    await service.forgot_password(data.email)
    return success_response("If an account exists, you will receive a password reset email")


@router.post("/reset-password/{token}")
async def reset_password(
    token: str, data: ResetPasswordRequest, service: AuthService = Depends(get_auth_service)
):
    service.reset_password(token, data.password)
    return success_response("Password reset successful. Please log in with your new password.")


# ============================================================================
# PROFILE
# ============================================================================


@router.get("/me")
async def get_me(current_user: User = Depends(get_current_user)):
    return success_response("User profile retrieved", serialize_user(current_user))


@router.put("/update-profile")
async def update_profile(
    data: UpdateProfileRequest,
    current_user: User = Depends(get_current_user),
    service: AuthService = Depends(get_auth_service),
):
    user = service.update_profile(current_user, data)
    return success_response("Profile updated successfully", serialize_user(user))
