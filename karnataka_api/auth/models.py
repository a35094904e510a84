"""Pydantic models for the authentication domain."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator

PHONE_PATTERN = r"^\d{10,15}$"


class Account(BaseModel):
    """Persisted account (credential store record)."""

    user_id: str
    name: str = ""
    phone: str
    password_hash: str
    role: str = "User"

    @field_validator("phone", mode="before")
    @classmethod
    def _phone_as_text(cls, value: object) -> str:
        # Legacy records store the phone as a number.
        if isinstance(value, float) and value.is_integer():
            value = int(value)
        return str(value if value is not None else "").strip()


class TokenClaims(BaseModel):
    """Identity payload embedded in access and refresh tokens."""

    user_id: str
    role: str


class SignupRequest(BaseModel):
    """Signup request payload."""

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    name: str = Field(min_length=1, max_length=100)
    phone: str = Field(pattern=PHONE_PATTERN)
    password: str = Field(min_length=1, max_length=128)


class LoginRequest(BaseModel):
    """Login request payload."""

    model_config = ConfigDict(extra="forbid")

    phone: str = Field(pattern=PHONE_PATTERN)
    password: str = Field(min_length=1, max_length=128)

    @field_validator("phone", mode="before")
    @classmethod
    def _strip_phone(cls, value: object) -> object:
        return value.strip() if isinstance(value, str) else value


class RefreshRequest(BaseModel):
    """Refresh request payload.

    ``token`` is the stale access token some clients still send alongside
    the refresh token; it is accepted and ignored.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    refresh_token: str | None = Field(default=None, alias="refreshToken")
    token: str | None = None


class LogoutRequest(BaseModel):
    """Logout request payload."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    refresh_token: str | None = Field(default=None, alias="refreshToken")


class AuthSession(BaseModel):
    """Successful login outcome."""

    role: str
    name: str
    phone: str
    access_token: str
    refresh_token: str
    expires_in: int


class RefreshedSession(BaseModel):
    """Successful refresh outcome; ``refresh_token`` is set when rotated."""

    access_token: str
    refresh_token: str | None = None
    expires_in: int


class RefreshTokenRecord(BaseModel):
    """Refresh token persistence record used for rotation and revocation."""

    jti: str
    user_id: str
    token_hash: str
    expires_at: int = 0
    revoked: bool = False
