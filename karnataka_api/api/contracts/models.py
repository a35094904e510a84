"""Pydantic API response models used in OpenAPI contracts."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from karnataka_api.catalog.models import Feedback, Place


class ApiErrorResponse(BaseModel):
    """Standard error envelope."""

    error_code: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error message")


class HealthResponse(BaseModel):
    """Health endpoint response."""

    status: Literal["ok"]


class SignupResponse(BaseModel):
    """Account created."""

    status: Literal["OK"] = "OK"


class LoginResponse(BaseModel):
    """Login response with account details and token pair."""

    model_config = ConfigDict(populate_by_name=True)

    status: Literal["Success"] = Field(default="Success", alias="Status")
    role: str
    name: str
    phone: str
    token: str = Field(description="Access token (Bearer)")
    refresh_token: str = Field(alias="refreshToken")
    expires_in: int = Field(alias="expiresIn", description="Access token lifetime, seconds")


class RefreshTokenResponse(BaseModel):
    """New access token; ``refreshToken`` is present when the old one was rotated."""

    model_config = ConfigDict(populate_by_name=True)

    token: str
    refresh_token: str | None = Field(default=None, alias="refreshToken")
    expires_in: int = Field(alias="expiresIn")


class LogoutResponse(BaseModel):
    """Logout response."""

    status: Literal["ok"]


class UserExistsResponse(BaseModel):
    """Whether a phone number is registered."""

    exists: bool


class MeResponse(BaseModel):
    """Claims of the presented access token."""

    model_config = ConfigDict(populate_by_name=True)

    user_id: str = Field(alias="userId")
    role: str


class PlaceCreatedResponse(BaseModel):
    status: Literal["OK"] = "OK"
    place: Place


class PlaceUpdatedResponse(BaseModel):
    status: Literal["OK"] = "OK"
    updatedPlace: Place


class PlaceDeletedResponse(BaseModel):
    message: str
    deletedPlace: Place


class FeedbackCreatedResponse(BaseModel):
    status: Literal["OK"] = "OK"
    feedback: Feedback


class FeedbackDeletedResponse(BaseModel):
    message: str
    deletedFeedback: Feedback


class BookingDeletedResponse(BaseModel):
    message: str
