from __future__ import annotations

import pytest

from karnataka_api.api.errors import to_error_payload
from karnataka_api.auth.errors import FAILURE_RESPONSES, AuthError, AuthFailure


def test_to_error_payload_preserves_structured_detail() -> None:
    payload = to_error_payload(
        {"error_code": "AUTH_TOKEN_INVALID", "message": "Invalid"},
        403,
    )

    assert payload == {"error_code": "AUTH_TOKEN_INVALID", "message": "Invalid"}


def test_to_error_payload_normalizes_plain_string() -> None:
    payload = to_error_payload("boom", 500)

    assert payload == {"error_code": "HTTP_500", "message": "boom"}


@pytest.mark.parametrize(
    ("failure", "status_code"),
    [
        (AuthFailure.ACCOUNT_NOT_FOUND, 404),
        (AuthFailure.ACCOUNT_EXISTS, 409),
        (AuthFailure.BAD_CREDENTIAL, 401),
        (AuthFailure.MISSING_CREDENTIAL, 401),
        (AuthFailure.INVALID_CREDENTIAL, 403),
        (AuthFailure.INVALID_REFRESH_TOKEN, 403),
        (AuthFailure.INSUFFICIENT_PRIVILEGE, 403),
    ],
)
def test_auth_error_maps_failure_to_status(failure: AuthFailure, status_code: int) -> None:
    error = AuthError(failure)

    assert error.status_code == status_code
    assert error.failure is failure
    assert error.detail["error_code"] == str(FAILURE_RESPONSES[failure][1])


def test_auth_error_messages_match_legacy_clients() -> None:
    assert AuthError(AuthFailure.ACCOUNT_NOT_FOUND).detail["message"] == "User not found"
    assert AuthError(AuthFailure.BAD_CREDENTIAL).detail["message"] == "Incorrect Password"
