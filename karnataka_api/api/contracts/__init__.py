"""Public API response contracts."""

from karnataka_api.api.contracts.models import (
    ApiErrorResponse,
    BookingDeletedResponse,
    FeedbackCreatedResponse,
    FeedbackDeletedResponse,
    HealthResponse,
    LoginResponse,
    LogoutResponse,
    MeResponse,
    PlaceCreatedResponse,
    PlaceDeletedResponse,
    PlaceUpdatedResponse,
    RefreshTokenResponse,
    SignupResponse,
    UserExistsResponse,
)

__all__ = [
    "ApiErrorResponse",
    "BookingDeletedResponse",
    "FeedbackCreatedResponse",
    "FeedbackDeletedResponse",
    "HealthResponse",
    "LoginResponse",
    "LogoutResponse",
    "MeResponse",
    "PlaceCreatedResponse",
    "PlaceDeletedResponse",
    "PlaceUpdatedResponse",
    "RefreshTokenResponse",
    "SignupResponse",
    "UserExistsResponse",
]
