"""
Authentication endpoints: login, email verification and password reset.
Login and reset requests are rate limited per client IP.
"""

from fastapi import APIRouter, Depends, Query, Response

from dealership.api.deps import get_auth_service
from dealership.core.config import get_settings
from dealership.core.rate_limiter import rate_limit_auth
from dealership.schemas.account import (
    LoginRequest,
    LoginResult,
    MessageResponse,
    RequestPasswordReset,
    ResetPassword,
    VerifyResult,
)
from dealership.services.auth_service import AuthService

router = APIRouter(tags=["Authentication"])
settings = get_settings()


# ── Login ────────────────────────────────────────────────────────────────────
@router.post("/login", response_model=LoginResult, dependencies=[Depends(rate_limit_auth)])
async def login(
    data: LoginRequest,
    response: Response,
    auth: AuthService = Depends(get_auth_service),
):
    """Exchange email and password for a session token (also set as a cookie)."""
    result = await auth.login(data.email, data.password)
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=result.token,
        max_age=settings.SESSION_TOKEN_EXPIRE_DAYS * 24 * 3600,
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
    )
    return result


# ── Email verification ───────────────────────────────────────────────────────
@router.get("/auth/verify", response_model=VerifyResult)
async def verify_email(
    token: str = Query(..., min_length=1),
    auth: AuthService = Depends(get_auth_service),
):
    """Confirm the email address from the link and return a session token."""
    return await auth.verify_email(token)


@router.get("/auth/onboarding/verify")
async def verify_onboarding(
    token: str = Query(..., min_length=1),
    auth: AuthService = Depends(get_auth_service),
):
    """Decode an onboarding link into its email and company name."""
    claims = auth.verify_onboarding(token)
    return {"email": claims.email, "company_name": claims.company_name}


# ── Password reset ───────────────────────────────────────────────────────────
@router.post(
    "/auth/password/request-reset",
    response_model=MessageResponse,
    dependencies=[Depends(rate_limit_auth)],
)
async def request_password_reset(
    data: RequestPasswordReset,
    auth: AuthService = Depends(get_auth_service),
):
    """Always answers the same way, whether or not the email is registered."""
    await auth.request_password_reset(data.email)
    return MessageResponse(
        message="If an account exists with this email, a reset link has been sent."
    )


@router.post(
    "/auth/password/reset",
    response_model=MessageResponse,
    dependencies=[Depends(rate_limit_auth)],
)
async def reset_password(
    data: ResetPassword,
    auth: AuthService = Depends(get_auth_service),
):
    await auth.reset_password(data.token, data.new_password)
    return MessageResponse(message="Password has been reset successfully.")
