"""Authentication route registration: registration, login and password reset."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Response

from ..services import AuthResult
from .deps import TOKEN_COOKIE, RouteDeps
from .helpers import _ok
from .rate_limit import rate_limit
from .schemas import EmailRequest, LoginRequest, RegisterRequest, ResetPasswordRequest, VerifyOtpRequest


def register_auth_routes(router: APIRouter, deps: RouteDeps) -> None:
    """Register ``/auth/*`` routes, each throttled by its own named policy."""

    def _limit(policy: str) -> Any:
        return Depends(
            rate_limit(deps.rate_limiter, policy, enabled=deps.rate_limits_enabled, trust_proxy=deps.trust_proxy)
        )

    def _signed_in(response: Response, result: AuthResult, message: str) -> dict[str, Any]:
        response.set_cookie(
            TOKEN_COOKIE,
            result.token,
            max_age=deps.tokens.ttl_seconds,
            httponly=True,
            secure=deps.secure_cookies,
            samesite="strict" if deps.secure_cookies else "lax",
        )
        return _ok({"user": result.user, "token": result.token}, message=message)

    @router.post("/auth/register", status_code=201, dependencies=[_limit("register")])
    async def register(body: RegisterRequest) -> dict[str, Any]:
        user = deps.auth.register(name=body.name, email=body.email, password=body.password)
        return _ok(user, message="Registration successful. Please check your email for verification OTP.")

    @router.post("/auth/verify-otp", dependencies=[_limit("verify-otp")])
    async def verify_otp(body: VerifyOtpRequest, response: Response) -> dict[str, Any]:
        result = deps.auth.verify_otp(email=body.email, code=body.otp)
        return _signed_in(response, result, "Email verified successfully")

    @router.post("/auth/resend-otp", dependencies=[_limit("resend-otp")])
    async def resend_otp(body: EmailRequest) -> dict[str, Any]:
        deps.auth.resend_otp(email=body.email)
        return _ok(message="OTP sent successfully")

    @router.post("/auth/login", dependencies=[_limit("login")])
    async def login(body: LoginRequest, response: Response) -> dict[str, Any]:
        result = deps.auth.login(email=body.email, password=body.password)
        return _signed_in(response, result, "Login successful")

    @router.post("/auth/forgot-password", dependencies=[_limit("forgot-password")])
    async def forgot_password(body: EmailRequest) -> dict[str, Any]:
        return _ok(message=deps.auth.forgot_password(email=body.email))

    @router.post("/auth/reset-password", dependencies=[_limit("reset-password")])
    async def reset_password(body: ResetPasswordRequest) -> dict[str, Any]:
        deps.auth.reset_password(email=body.email, code=body.otp, new_password=body.new_password)
        return _ok(message="Password reset successfully")

    @router.post("/auth/logout")
    async def logout(response: Response) -> dict[str, Any]:
        response.delete_cookie(TOKEN_COOKIE)
        return _ok(message="Logged out successfully")
