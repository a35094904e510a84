"""Application configuration loaded from environment variables."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


def _env_list(name: str, default: str) -> list[str]:
    return [item.strip() for item in os.getenv(name, default).split(",") if item.strip()]


@dataclass(frozen=True)
class AuthConfig:
    """Authentication-related configuration."""

    secret_key: str
    refresh_secret_key: str
    access_token_ttl_seconds: int
    refresh_token_ttl_seconds: int
    rotate_refresh_tokens: bool
    issuer: str
    default_role: str
    bcrypt_rounds: int
    admin_name: str = ""
    admin_phone: str = ""
    admin_password: str = ""

    def __post_init__(self) -> None:
        if not self.secret_key or not self.refresh_secret_key:
            raise ValueError("Access and refresh token secrets must be non-empty")
        if self.secret_key == self.refresh_secret_key:
            raise ValueError("Access and refresh token secrets must differ")
        if self.access_token_ttl_seconds < 1:
            raise ValueError("AUTH_ACCESS_TOKEN_TTL_SECONDS must be positive")
        if self.refresh_token_ttl_seconds < 0:
            raise ValueError("AUTH_REFRESH_TOKEN_TTL_SECONDS must not be negative")


@dataclass(frozen=True)
class StoreConfig:
    """Document store connection settings."""

    mongo_uri: str
    mongo_db: str
    state_sqlite_path: str


@dataclass(frozen=True)
class LoggingConfig:
    """Structured logging configuration."""

    level: str


@dataclass(frozen=True)
class SecurityConfig:
    """API perimeter security settings."""

    cors_allowed_origins: list[str]
    referer_check_enabled: bool
    request_max_bytes: int
    login_rate_limit_max_attempts: int
    login_rate_limit_window_seconds: int
    login_rate_limit_lock_seconds: int
    route_policy_overrides: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class AppConfig:
    """Top-level application configuration."""

    auth: AuthConfig
    store: StoreConfig
    logging: LoggingConfig
    security: SecurityConfig

    @staticmethod
    def from_env() -> "AppConfig":
        """Build app config from process environment."""
        secret_key = (
            os.getenv("AUTH_SECRET_KEY", "").strip() or "dev-insecure-access-secret-change-me"
        )
        refresh_secret_key = (
            os.getenv("AUTH_REFRESH_SECRET_KEY", "").strip()
            or "dev-insecure-refresh-secret-change-me"
        )
        access_ttl = int(os.getenv("AUTH_ACCESS_TOKEN_TTL_SECONDS", "900"))
        refresh_ttl = int(os.getenv("AUTH_REFRESH_TOKEN_TTL_SECONDS", "604800"))
        rotate_refresh = _env_flag("AUTH_ROTATE_REFRESH_TOKENS", "1")
        issuer = os.getenv("AUTH_ISSUER", "visit-karnataka").strip() or "visit-karnataka"
        default_role = os.getenv("AUTH_DEFAULT_ROLE", "User").strip() or "User"
        bcrypt_rounds = int(os.getenv("AUTH_BCRYPT_ROUNDS", "12"))
        admin_name = os.getenv("AUTH_ADMIN_NAME", "Administrator").strip()
        admin_phone = os.getenv("AUTH_ADMIN_PHONE", "").strip()
        admin_password = os.getenv("AUTH_ADMIN_PASSWORD", "").strip()

        mongo_uri = os.getenv("MONGODB_URI", "").strip()
        mongo_db = os.getenv("MONGODB_DB", "visit_karnataka").strip() or "visit_karnataka"
        state_sqlite_path = (
            os.getenv("STATE_SQLITE_PATH", "runtime/app_state.db").strip()
            or "runtime/app_state.db"
        )
        log_level = os.getenv("LOG_LEVEL", "INFO").strip() or "INFO"

        cors_allowed_origins = _env_list(
            "CORS_ALLOWED_ORIGINS",
            "https://visit-karnataka-frontend.vercel.app,http://localhost:3000",
        )
        referer_check_enabled = _env_flag("REFERER_CHECK_ENABLED", "0")
        request_max_bytes = int(os.getenv("REQUEST_MAX_BYTES", str(100 * 1024)))
        login_rate_limit_max_attempts = int(
            os.getenv("LOGIN_RATE_LIMIT_MAX_ATTEMPTS", "5")
        )
        login_rate_limit_window_seconds = int(
            os.getenv("LOGIN_RATE_LIMIT_WINDOW_SECONDS", "300")
        )
        login_rate_limit_lock_seconds = int(
            os.getenv("LOGIN_RATE_LIMIT_LOCK_SECONDS", "600")
        )
        raw_overrides = os.getenv("ROUTE_POLICY_OVERRIDES", "").strip()
        route_policy_overrides = json.loads(raw_overrides) if raw_overrides else {}
        if not isinstance(route_policy_overrides, dict):
            raise ValueError("ROUTE_POLICY_OVERRIDES must be a JSON object")

        return AppConfig(
            auth=AuthConfig(
                secret_key=secret_key,
                refresh_secret_key=refresh_secret_key,
                access_token_ttl_seconds=access_ttl,
                refresh_token_ttl_seconds=refresh_ttl,
                rotate_refresh_tokens=rotate_refresh,
                issuer=issuer,
                default_role=default_role,
                bcrypt_rounds=bcrypt_rounds,
                admin_name=admin_name,
                admin_phone=admin_phone,
                admin_password=admin_password,
            ),
            store=StoreConfig(
                mongo_uri=mongo_uri,
                mongo_db=mongo_db,
                state_sqlite_path=state_sqlite_path,
            ),
            logging=LoggingConfig(level=log_level),
            security=SecurityConfig(
                cors_allowed_origins=cors_allowed_origins,
                referer_check_enabled=referer_check_enabled,
                request_max_bytes=request_max_bytes,
                login_rate_limit_max_attempts=login_rate_limit_max_attempts,
                login_rate_limit_window_seconds=login_rate_limit_window_seconds,
                login_rate_limit_lock_seconds=login_rate_limit_lock_seconds,
                route_policy_overrides={
                    str(key): str(value) for key, value in route_policy_overrides.items()
                },
            ),
        )
