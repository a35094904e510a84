"""Authentication failure taxonomy shared by service, middleware and router."""

from __future__ import annotations

from enum import StrEnum

from karnataka_api.api.errors import ApiError, ApiErrorCode


class AuthFailure(StrEnum):
    """Expected, user-facing outcomes of an auth operation."""

    ACCOUNT_NOT_FOUND = "AccountNotFound"
    ACCOUNT_EXISTS = "AccountExists"
    BAD_CREDENTIAL = "BadCredential"
    MISSING_CREDENTIAL = "MissingCredential"
    INVALID_CREDENTIAL = "InvalidCredential"
    INVALID_REFRESH_TOKEN = "InvalidRefreshToken"
    INSUFFICIENT_PRIVILEGE = "InsufficientPrivilege"


# failure -> (status code, error code, client message)
FAILURE_RESPONSES: dict[AuthFailure, tuple[int, ApiErrorCode, str]] = {
    AuthFailure.ACCOUNT_NOT_FOUND: (
        404,
        ApiErrorCode.AUTH_ACCOUNT_NOT_FOUND,
        "User not found",
    ),
    AuthFailure.ACCOUNT_EXISTS: (
        409,
        ApiErrorCode.AUTH_ACCOUNT_EXISTS,
        "An account with this phone number already exists",
    ),
    AuthFailure.BAD_CREDENTIAL: (
        401,
        ApiErrorCode.AUTH_INVALID_CREDENTIALS,
        "Incorrect Password",
    ),
    AuthFailure.MISSING_CREDENTIAL: (
        401,
        ApiErrorCode.AUTH_MISSING_TOKEN,
        "Missing bearer token",
    ),
    AuthFailure.INVALID_CREDENTIAL: (
        403,
        ApiErrorCode.AUTH_TOKEN_INVALID,
        "Invalid or expired token",
    ),
    AuthFailure.INVALID_REFRESH_TOKEN: (
        403,
        ApiErrorCode.AUTH_REFRESH_INVALID,
        "Invalid or expired refresh token",
    ),
    AuthFailure.INSUFFICIENT_PRIVILEGE: (
        403,
        ApiErrorCode.AUTH_INSUFFICIENT_PRIVILEGE,
        "Insufficient privileges",
    ),
}


class AuthError(ApiError):
    """Auth operation failed with one of the :class:`AuthFailure` outcomes."""

    def __init__(self, failure: AuthFailure) -> None:
        status_code, error_code, message = FAILURE_RESPONSES[failure]
        super().__init__(
            status_code=status_code,
            error_code=error_code,
            message=message,
            headers={"WWW-Authenticate": "Bearer"} if status_code == 401 else None,
        )
        self.failure = failure
