"""Authentication service for signup, login, refresh and access checks."""

from __future__ import annotations

import hashlib
import logging
from typing import Protocol

from karnataka_api.auth.errors import AuthError, AuthFailure
from karnataka_api.auth.models import (
    Account,
    AuthSession,
    RefreshedSession,
    RefreshTokenRecord,
    TokenClaims,
)
from karnataka_api.auth.repository import DuplicateAccountError
from karnataka_api.auth.tokens import (
    Clock,
    TokenIssuer,
    TokenRejected,
    TokenVerifier,
    system_clock,
)
from karnataka_api.core.config import AuthConfig
from karnataka_api.core.logging import mask_phone
from karnataka_api.core.security import PasswordHashError, hash_password, verify_password

LOGGER = logging.getLogger(__name__)

ADMIN_ROLE = "Admin"


class CredentialStore(Protocol):
    """Storage operations the auth service needs."""

    def find_by_phone(self, phone: str) -> Account | None: ...

    def create(
        self, *, name: str, phone: str, password_hash: str, role: str
    ) -> Account: ...

    def save_refresh_token(self, record: RefreshTokenRecord) -> None: ...

    def get_refresh_token(self, jti: str) -> RefreshTokenRecord | None: ...

    def revoke_refresh_token(self, jti: str) -> bool: ...


class AuthService:
    """Authentication domain service.

    Access tokens are trusted on signature and expiry alone; neither access
    checks nor refreshes re-read the account, so a role change takes effect
    once the outstanding tokens expire.
    """

    def __init__(
        self,
        repo: CredentialStore,
        config: AuthConfig,
        clock: Clock = system_clock,
    ) -> None:
        """Initialize service dependencies."""
        self._repo = repo
        self._config = config
        self._clock = clock
        self._issuer = TokenIssuer(config, clock=clock)
        self._access_verifier = TokenVerifier.for_access(config, clock=clock)
        self._refresh_verifier = TokenVerifier.for_refresh(config, clock=clock)

    def bootstrap_admin_user(self) -> None:
        """Ensure the configured admin account exists."""
        phone = self._config.admin_phone
        if not phone or not self._config.admin_password:
            return
        if self._repo.find_by_phone(phone) is not None:
            return
        try:
            self._repo.create(
                name=self._config.admin_name or "Administrator",
                phone=phone,
                password_hash=hash_password(
                    self._config.admin_password, self._config.bcrypt_rounds
                ),
                role=ADMIN_ROLE,
            )
        except DuplicateAccountError:
            return
        LOGGER.info("admin_bootstrapped", extra={"phone": mask_phone(phone)})

    def account_exists(self, phone: str) -> bool:
        """Return whether an account is registered for ``phone``."""
        return self._repo.find_by_phone(phone) is not None

    def signup(self, name: str, phone: str, password: str) -> Account:
        """Register a new account with the default role."""
        try:
            account = self._repo.create(
                name=name,
                phone=phone,
                password_hash=hash_password(password, self._config.bcrypt_rounds),
                role=self._config.default_role,
            )
        except DuplicateAccountError as exc:
            raise AuthError(AuthFailure.ACCOUNT_EXISTS) from exc
        LOGGER.info(
            "account_created",
            extra={"user_id": account.user_id, "phone": mask_phone(phone)},
        )
        return account

    def login(self, phone: str, password: str) -> AuthSession:
        """Authenticate credentials and issue access/refresh token pair."""
        account = self._repo.find_by_phone(phone)
        if account is None:
            LOGGER.info("login_unknown_phone", extra={"phone": mask_phone(phone)})
            raise AuthError(AuthFailure.ACCOUNT_NOT_FOUND)

        try:
            matched = verify_password(password, account.password_hash)
        except PasswordHashError:
            LOGGER.error(
                "stored_hash_invalid",
                extra={"user_id": account.user_id, "phone": mask_phone(phone)},
            )
            raise AuthError(AuthFailure.BAD_CREDENTIAL) from None
        if not matched:
            LOGGER.info(
                "login_failed",
                extra={"user_id": account.user_id, "phone": mask_phone(phone)},
            )
            raise AuthError(AuthFailure.BAD_CREDENTIAL)

        access_token = self._issuer.issue_access(account.user_id, account.role)
        refresh_token = self._issue_refresh(account.user_id, account.role)
        return AuthSession(
            role=account.role,
            name=account.name,
            phone=account.phone,
            access_token=access_token,
            refresh_token=refresh_token,
            expires_in=self._issuer.access_ttl_seconds,
        )

    def refresh(self, refresh_token: str | None) -> RefreshedSession:
        """Exchange a refresh token for a new access token.

        With rotation enabled the presented refresh token is revoked and a
        new one is returned; otherwise it stays valid until it expires or is
        logged out.
        """
        if not refresh_token:
            raise AuthError(AuthFailure.MISSING_CREDENTIAL)

        try:
            payload = self._refresh_verifier.decode(refresh_token)
        except TokenRejected as exc:
            LOGGER.info("refresh_token_rejected", extra={"reason": str(exc.reason)})
            raise AuthError(AuthFailure.INVALID_REFRESH_TOKEN) from exc

        jti = str(payload.get("jti") or "")
        record = self._repo.get_refresh_token(jti) if jti else None
        if record is None or record.token_hash != self._hash_token(refresh_token):
            raise AuthError(AuthFailure.INVALID_REFRESH_TOKEN)
        if record.revoked:
            LOGGER.warning("refresh_token_reuse", extra={"user_id": record.user_id})
            raise AuthError(AuthFailure.INVALID_REFRESH_TOKEN)
        if record.expires_at and record.expires_at < self._clock():
            raise AuthError(AuthFailure.INVALID_REFRESH_TOKEN)

        claims = TokenClaims(user_id=str(payload["sub"]), role=str(payload["role"]))
        rotated: str | None = None
        if self._config.rotate_refresh_tokens:
            if not self._repo.revoke_refresh_token(jti):
                # Another request redeemed this token first.
                LOGGER.warning("refresh_token_reuse", extra={"user_id": claims.user_id})
                raise AuthError(AuthFailure.INVALID_REFRESH_TOKEN)
            rotated = self._issue_refresh(claims.user_id, claims.role)

        return RefreshedSession(
            access_token=self._issuer.issue_access(claims.user_id, claims.role),
            refresh_token=rotated,
            expires_in=self._issuer.access_ttl_seconds,
        )

    def logout(self, refresh_token: str | None) -> None:
        """Revoke provided refresh token when it is valid."""
        if not refresh_token:
            return
        try:
            payload = self._refresh_verifier.decode(refresh_token)
        except TokenRejected:
            return
        jti = str(payload.get("jti") or "")
        if jti:
            self._repo.revoke_refresh_token(jti)

    def verify_access_token(self, token: str) -> TokenClaims:
        """Validate access token and return its claims."""
        try:
            return self._access_verifier.verify(token)
        except TokenRejected as exc:
            LOGGER.info("access_token_rejected", extra={"reason": str(exc.reason)})
            raise AuthError(AuthFailure.INVALID_CREDENTIAL) from exc

    def authorize(self, token: str, required_role: str | None = None) -> TokenClaims:
        """Role gate: valid access token first, then the role requirement."""
        if not token:
            raise AuthError(AuthFailure.MISSING_CREDENTIAL)
        claims = self.verify_access_token(token)
        if required_role is not None and claims.role != required_role:
            LOGGER.info(
                "insufficient_privilege",
                extra={"user_id": claims.user_id, "role": claims.role},
            )
            raise AuthError(AuthFailure.INSUFFICIENT_PRIVILEGE)
        return claims

    def _issue_refresh(self, user_id: str, role: str) -> str:
        issued = self._issuer.issue_refresh(user_id, role)
        self._repo.save_refresh_token(
            RefreshTokenRecord(
                jti=issued.jti,
                user_id=user_id,
                token_hash=self._hash_token(issued.token),
                expires_at=issued.expires_at,
                revoked=False,
            )
        )
        return issued.token

    @staticmethod
    def _hash_token(token: str) -> str:
        """Hash raw token for storage/comparison."""
        return hashlib.sha256(token.encode("utf-8")).hexdigest()
