from __future__ import annotations

import pytest

from karnataka_api.auth.errors import AuthError, AuthFailure
from karnataka_api.auth.models import Account
from karnataka_api.auth.service import AuthService
from karnataka_api.core.security import hash_password
from tests.factories import FakeClock, InMemoryAccounts, auth_config


def _build_service(**overrides: object) -> tuple[AuthService, InMemoryAccounts, FakeClock]:
    repo = InMemoryAccounts()
    clock = FakeClock()
    service = AuthService(repo=repo, config=auth_config(**overrides), clock=clock)
    return service, repo, clock


def _failure(call, *args) -> AuthFailure:
    with pytest.raises(AuthError) as exc:
        call(*args)
    return exc.value.failure


def test_signup_then_login_returns_distinct_tokens_with_default_role() -> None:
    service, _, _ = _build_service()

    service.signup("A", "9999999999", "pw1")
    session = service.login("9999999999", "pw1")

    assert session.role == "User"
    assert session.name == "A"
    assert session.phone == "9999999999"
    assert session.access_token != session.refresh_token
    assert session.expires_in == 900


def test_signup_stores_only_a_bcrypt_hash() -> None:
    service, repo, _ = _build_service()

    service.signup("A", "9999999999", "pw1")
    stored = repo.accounts["9999999999"]

    assert stored.password_hash != "pw1"
    assert stored.password_hash.startswith("$2b$")
    assert stored.role == "User"


def test_signup_duplicate_phone_is_account_exists() -> None:
    service, _, _ = _build_service()
    service.signup("A", "9999999999", "pw1")

    failure = _failure(service.signup, "B", "9999999999", "pw2")

    assert failure is AuthFailure.ACCOUNT_EXISTS


def test_login_wrong_password_is_bad_credential_with_401() -> None:
    service, _, _ = _build_service()
    service.signup("A", "9999999999", "pw1")

    with pytest.raises(AuthError) as exc:
        service.login("9999999999", "wrong")

    assert exc.value.failure is AuthFailure.BAD_CREDENTIAL
    assert exc.value.status_code == 401


def test_login_unknown_phone_is_account_not_found_with_404() -> None:
    service, _, _ = _build_service()

    with pytest.raises(AuthError) as exc:
        service.login("8888888888", "pw1")

    assert exc.value.failure is AuthFailure.ACCOUNT_NOT_FOUND
    assert exc.value.status_code == 404


def test_login_with_corrupt_stored_hash_is_bad_credential() -> None:
    service, repo, _ = _build_service()
    repo.accounts["7777777777"] = Account(
        user_id="legacy", phone="7777777777", password_hash="not-a-hash"
    )

    assert _failure(service.login, "7777777777", "pw") is AuthFailure.BAD_CREDENTIAL


def test_access_token_round_trips_to_account_identity() -> None:
    service, _, _ = _build_service()
    account = service.signup("A", "9999999999", "pw1")
    session = service.login("9999999999", "pw1")

    claims = service.verify_access_token(session.access_token)

    assert claims.user_id == account.user_id
    assert claims.role == "User"


def test_expired_access_token_is_invalid_credential() -> None:
    service, _, clock = _build_service(access_token_ttl_seconds=60)
    service.signup("A", "9999999999", "pw1")
    session = service.login("9999999999", "pw1")

    clock.advance(61)

    assert _failure(service.verify_access_token, session.access_token) is AuthFailure.INVALID_CREDENTIAL


def test_refresh_token_is_not_an_access_token() -> None:
    service, _, _ = _build_service()
    service.signup("A", "9999999999", "pw1")
    session = service.login("9999999999", "pw1")

    failure = _failure(service.verify_access_token, session.refresh_token)

    assert failure is AuthFailure.INVALID_CREDENTIAL


def test_authorize_without_token_is_missing_credential() -> None:
    service, _, _ = _build_service()

    with pytest.raises(AuthError) as exc:
        service.authorize("")

    assert exc.value.failure is AuthFailure.MISSING_CREDENTIAL
    assert exc.value.status_code == 401


def test_authorize_checks_role_after_token() -> None:
    service, repo, _ = _build_service()
    repo.create(
        name="Root",
        phone="1111111111",
        password_hash=hash_password("admin", rounds=4),
        role="Admin",
    )
    service.signup("A", "9999999999", "pw1")
    admin = service.login("1111111111", "admin")
    user = service.login("9999999999", "pw1")

    assert service.authorize(admin.access_token, "Admin").role == "Admin"
    assert service.authorize(user.access_token).role == "User"
    assert _failure(service.authorize, user.access_token, "Admin") is AuthFailure.INSUFFICIENT_PRIVILEGE
    # Garbage with a role requirement reports the token, not the role.
    assert _failure(service.authorize, "garbage", "Admin") is AuthFailure.INVALID_CREDENTIAL


def test_refresh_with_rotation_issues_new_pair_and_revokes_old() -> None:
    service, _, _ = _build_service()
    account = service.signup("A", "9999999999", "pw1")
    session = service.login("9999999999", "pw1")

    refreshed = service.refresh(session.refresh_token)

    assert refreshed.refresh_token is not None
    assert refreshed.refresh_token != session.refresh_token
    claims = service.verify_access_token(refreshed.access_token)
    assert claims.user_id == account.user_id
    assert claims.role == "User"
    assert _failure(service.refresh, session.refresh_token) is AuthFailure.INVALID_REFRESH_TOKEN
    assert service.refresh(refreshed.refresh_token).access_token


def test_refresh_without_rotation_keeps_token_reusable() -> None:
    service, _, _ = _build_service(rotate_refresh_tokens=False)
    service.signup("A", "9999999999", "pw1")
    session = service.login("9999999999", "pw1")

    first = service.refresh(session.refresh_token)
    second = service.refresh(session.refresh_token)

    assert first.refresh_token is None
    assert second.access_token


def test_refresh_rejects_missing_and_invalid_tokens() -> None:
    service, _, _ = _build_service()
    service.signup("A", "9999999999", "pw1")
    session = service.login("9999999999", "pw1")

    assert _failure(service.refresh, None) is AuthFailure.MISSING_CREDENTIAL
    assert _failure(service.refresh, "") is AuthFailure.MISSING_CREDENTIAL
    assert _failure(service.refresh, "garbage") is AuthFailure.INVALID_REFRESH_TOKEN
    assert _failure(service.refresh, session.access_token) is AuthFailure.INVALID_REFRESH_TOKEN


def test_refresh_rejects_expired_refresh_token() -> None:
    service, _, clock = _build_service(refresh_token_ttl_seconds=120)
    service.signup("A", "9999999999", "pw1")
    session = service.login("9999999999", "pw1")

    clock.advance(121)

    assert _failure(service.refresh, session.refresh_token) is AuthFailure.INVALID_REFRESH_TOKEN


def test_refresh_rejects_token_unknown_to_store() -> None:
    service, repo, _ = _build_service()
    service.signup("A", "9999999999", "pw1")
    session = service.login("9999999999", "pw1")
    repo.refresh_tokens.clear()

    assert _failure(service.refresh, session.refresh_token) is AuthFailure.INVALID_REFRESH_TOKEN


def test_logout_revokes_refresh_token() -> None:
    service, _, _ = _build_service(rotate_refresh_tokens=False)
    service.signup("A", "9999999999", "pw1")
    session = service.login("9999999999", "pw1")

    service.logout(session.refresh_token)

    assert _failure(service.refresh, session.refresh_token) is AuthFailure.INVALID_REFRESH_TOKEN


def test_logout_ignores_missing_or_garbage_tokens() -> None:
    service, _, _ = _build_service()

    service.logout(None)
    service.logout("garbage")


def test_account_exists_reports_registered_phone() -> None:
    service, _, _ = _build_service()
    service.signup("A", "9999999999", "pw1")

    assert service.account_exists("9999999999") is True
    assert service.account_exists("8888888888") is False


def test_bootstrap_admin_user_creates_admin_once() -> None:
    service, repo, _ = _build_service(
        admin_name="Root", admin_phone="1111111111", admin_password="admin-pass"
    )

    service.bootstrap_admin_user()
    service.bootstrap_admin_user()

    assert len(repo.accounts) == 1
    assert repo.accounts["1111111111"].role == "Admin"
    assert service.login("1111111111", "admin-pass").role == "Admin"


def test_bootstrap_admin_user_skipped_without_credentials() -> None:
    service, repo, _ = _build_service()

    service.bootstrap_admin_user()

    assert repo.accounts == {}
