"""Authentication API router."""

from __future__ import annotations

from fastapi import APIRouter, Header, Query, Request

from karnataka_api.api.contracts import (
    ApiErrorResponse,
    LoginResponse,
    LogoutResponse,
    MeResponse,
    RefreshTokenResponse,
    SignupResponse,
    UserExistsResponse,
)
from karnataka_api.auth.errors import AuthError
from karnataka_api.auth.middleware import extract_bearer_token
from karnataka_api.auth.models import (
    PHONE_PATTERN,
    LoginRequest,
    LogoutRequest,
    RefreshRequest,
    SignupRequest,
)
from karnataka_api.auth.rate_limiter import LoginRateLimiter
from karnataka_api.auth.service import AuthService


def create_auth_router(
    service: AuthService, rate_limiter: LoginRateLimiter
) -> APIRouter:
    """Build authentication router with signup/login/refresh/logout/me endpoints."""
    router = APIRouter(tags=["auth"])

    @router.post(
        "/Signup",
        response_model=SignupResponse,
        responses={409: {"model": ApiErrorResponse}},
    )
    def signup(req: SignupRequest) -> SignupResponse:
        """Register a new account."""
        service.signup(req.name, req.phone, req.password)
        return SignupResponse()

    @router.post(
        "/Login",
        response_model=LoginResponse,
        responses={
            401: {"model": ApiErrorResponse},
            404: {"model": ApiErrorResponse},
            429: {"model": ApiErrorResponse},
        },
    )
    def login(req: LoginRequest, request: Request) -> LoginResponse:
        """Authenticate by phone and password and return a token pair."""
        client_ip = (request.client.host if request.client else "") or "unknown"
        rate_limiter.assert_allowed(phone=req.phone, client_ip=client_ip)
        try:
            session = service.login(req.phone, req.password)
        except AuthError:
            rate_limiter.record_failure(phone=req.phone, client_ip=client_ip)
            raise
        rate_limiter.record_success(phone=req.phone, client_ip=client_ip)
        return LoginResponse(
            role=session.role,
            name=session.name,
            phone=session.phone,
            token=session.access_token,
            refresh_token=session.refresh_token,
            expires_in=session.expires_in,
        )

    @router.post(
        "/RefreshToken",
        response_model=RefreshTokenResponse,
        responses={401: {"model": ApiErrorResponse}, 403: {"model": ApiErrorResponse}},
    )
    def refresh(req: RefreshRequest) -> RefreshTokenResponse:
        """Exchange a refresh token for a new access token."""
        session = service.refresh(req.refresh_token)
        return RefreshTokenResponse(
            token=session.access_token,
            refresh_token=session.refresh_token,
            expires_in=session.expires_in,
        )

    @router.post("/Logout", response_model=LogoutResponse)
    def logout(req: LogoutRequest) -> LogoutResponse:
        """Invalidate supplied refresh token."""
        service.logout(req.refresh_token)
        return LogoutResponse(status="ok")

    @router.get("/checkUserExist", response_model=UserExistsResponse)
    def check_user_exist(
        phone: str = Query(pattern=PHONE_PATTERN),
    ) -> UserExistsResponse:
        """Report whether a phone number is already registered."""
        return UserExistsResponse(exists=service.account_exists(phone))

    @router.get(
        "/me",
        response_model=MeResponse,
        responses={401: {"model": ApiErrorResponse}, 403: {"model": ApiErrorResponse}},
    )
    def me(authorization: str | None = Header(default=None)) -> MeResponse:
        """Return current authenticated user claims from access token."""
        claims = service.authorize(extract_bearer_token(authorization))
        return MeResponse(user_id=claims.user_id, role=claims.role)

    return router
