"""Signed JWT issuance and verification for access and refresh tokens."""

from __future__ import annotations

import time
import uuid
from dataclasses import dataclass
from enum import StrEnum
from typing import Any, Callable

import jwt

from karnataka_api.auth.models import TokenClaims
from karnataka_api.core.config import AuthConfig

JWT_ALGORITHM = "HS256"

Clock = Callable[[], int]


def system_clock() -> int:
    """Return current unix time in whole seconds."""
    return int(time.time())


class TokenKind(StrEnum):
    """Value of the ``type`` claim."""

    ACCESS = "access"
    REFRESH = "refresh"


class Rejection(StrEnum):
    """Why a presented token was not accepted."""

    MALFORMED = "malformed"
    BAD_SIGNATURE = "bad_signature"
    EXPIRED = "expired"


class TokenRejected(Exception):
    """Presented token failed verification."""

    def __init__(self, reason: Rejection) -> None:
        super().__init__(f"Token rejected: {reason}")
        self.reason = reason


@dataclass(frozen=True)
class IssuedRefreshToken:
    """Refresh token text plus the bookkeeping needed to persist it."""

    token: str
    jti: str
    expires_at: int


class TokenIssuer:
    """Mint access and refresh tokens signed with separate secrets."""

    def __init__(self, config: AuthConfig, clock: Clock = system_clock) -> None:
        self._config = config
        self._clock = clock

    @property
    def access_ttl_seconds(self) -> int:
        return self._config.access_token_ttl_seconds

    def issue_access(self, user_id: str, role: str, ttl: int | None = None) -> str:
        """Return an access token for ``user_id`` expiring ``ttl`` seconds from now."""
        now_ts = self._clock()
        lifetime = self._config.access_token_ttl_seconds if ttl is None else ttl
        payload = {
            "iss": self._config.issuer,
            "sub": str(user_id),
            "role": role,
            "type": str(TokenKind.ACCESS),
            "iat": now_ts,
            "exp": now_ts + lifetime,
            "jti": uuid.uuid4().hex,
        }
        return jwt.encode(payload, self._config.secret_key, algorithm=JWT_ALGORITHM)

    def issue_refresh(self, user_id: str, role: str) -> IssuedRefreshToken:
        """Return a refresh token; it carries ``exp`` only when a refresh TTL is set."""
        now_ts = self._clock()
        jti = uuid.uuid4().hex
        payload: dict[str, Any] = {
            "iss": self._config.issuer,
            "sub": str(user_id),
            "role": role,
            "type": str(TokenKind.REFRESH),
            "iat": now_ts,
            "jti": jti,
        }
        expires_at = 0
        if self._config.refresh_token_ttl_seconds > 0:
            expires_at = now_ts + self._config.refresh_token_ttl_seconds
            payload["exp"] = expires_at
        token = jwt.encode(
            payload, self._config.refresh_secret_key, algorithm=JWT_ALGORITHM
        )
        return IssuedRefreshToken(token=token, jti=jti, expires_at=expires_at)


class TokenVerifier:
    """Check signature, type, issuer and expiry of one kind of token."""

    def __init__(
        self,
        *,
        secret_key: str,
        kind: TokenKind,
        issuer: str,
        clock: Clock = system_clock,
        require_expiry: bool = True,
    ) -> None:
        self._secret_key = secret_key
        self._kind = kind
        self._issuer = issuer
        self._clock = clock
        self._require_expiry = require_expiry

    @classmethod
    def for_access(cls, config: AuthConfig, clock: Clock = system_clock) -> "TokenVerifier":
        return cls(
            secret_key=config.secret_key,
            kind=TokenKind.ACCESS,
            issuer=config.issuer,
            clock=clock,
        )

    @classmethod
    def for_refresh(
        cls, config: AuthConfig, clock: Clock = system_clock
    ) -> "TokenVerifier":
        return cls(
            secret_key=config.refresh_secret_key,
            kind=TokenKind.REFRESH,
            issuer=config.issuer,
            clock=clock,
            require_expiry=config.refresh_token_ttl_seconds > 0,
        )

    def decode(self, token: str) -> dict[str, Any]:
        """Return the verified payload or raise :class:`TokenRejected`."""
        if not token or not isinstance(token, str):
            raise TokenRejected(Rejection.MALFORMED)

        # Expiry is checked below against the injected clock.
        try:
            payload = jwt.decode(
                token,
                self._secret_key,
                algorithms=[JWT_ALGORITHM],
                options={
                    "verify_exp": False,
                    "verify_iat": False,
                    "verify_nbf": False,
                    "verify_iss": False,
                    "require": ["sub", "role", "type"],
                },
            )
        except jwt.InvalidSignatureError as exc:
            raise TokenRejected(Rejection.BAD_SIGNATURE) from exc
        except jwt.InvalidTokenError as exc:
            raise TokenRejected(Rejection.MALFORMED) from exc

        if payload.get("type") != str(self._kind):
            raise TokenRejected(Rejection.MALFORMED)
        if payload.get("iss") != self._issuer:
            raise TokenRejected(Rejection.MALFORMED)

        exp = payload.get("exp")
        if exp is None:
            if self._require_expiry:
                raise TokenRejected(Rejection.MALFORMED)
        elif not isinstance(exp, int):
            raise TokenRejected(Rejection.MALFORMED)
        elif self._clock() > exp:
            raise TokenRejected(Rejection.EXPIRED)

        return payload

    def verify(self, token: str) -> TokenClaims:
        """Return ``{user_id, role}`` exactly as embedded at issuance."""
        payload = self.decode(token)
        return TokenClaims(user_id=str(payload["sub"]), role=str(payload["role"]))
