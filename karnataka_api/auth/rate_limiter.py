"""Login brute-force protection backed by SQLite runtime state."""

from __future__ import annotations

import logging
import sqlite3
from dataclasses import dataclass
from pathlib import Path
from threading import Lock

from karnataka_api.api.errors import ApiError, ApiErrorCode
from karnataka_api.auth.tokens import Clock, system_clock
from karnataka_api.core.logging import mask_phone
from karnataka_api.core.migrations import apply_migrations

LOGGER = logging.getLogger(__name__)

AttemptKey = tuple[str, str]


@dataclass(frozen=True)
class AttemptWindow:
    """Failed logins counted for one (phone, client ip) pair."""

    failed_attempts: int
    first_failed_at: int
    locked_until: int = 0

    def locked_at(self, now: int) -> bool:
        return self.locked_until > now

    def stale_at(self, now: int, window_seconds: int) -> bool:
        return now - self.first_failed_at > window_seconds


class LoginRateLimiter:
    """Lock a phone number out of login from one address after repeated failures.

    Failures are counted per (phone, client ip) inside a sliding window that
    starts at the first failure; reaching ``max_attempts`` locks the pair for
    ``lock_seconds``. A successful login clears the count.
    """

    def __init__(
        self,
        *,
        database_path: Path,
        max_attempts: int,
        window_seconds: int,
        lock_seconds: int,
        clock: Clock = system_clock,
    ) -> None:
        apply_migrations(database_path)
        self._connection = sqlite3.connect(str(database_path), check_same_thread=False)
        self._connection.row_factory = sqlite3.Row
        self._lock = Lock()
        self._clock = clock
        self._max_attempts = max(1, int(max_attempts))
        self._window_seconds = max(1, int(window_seconds))
        self._lock_seconds = max(1, int(lock_seconds))

    @staticmethod
    def _key(phone: str, client_ip: str) -> AttemptKey:
        return phone.strip(), client_ip.strip() or "unknown"

    def _load(self, key: AttemptKey) -> AttemptWindow | None:
        row = self._connection.execute(
            "SELECT failed_attempts, first_failed_at, locked_until "
            "FROM auth_login_attempts WHERE phone = ? AND client_ip = ?",
            key,
        ).fetchone()
        if row is None:
            return None
        return AttemptWindow(
            failed_attempts=int(row["failed_attempts"] or 0),
            first_failed_at=int(row["first_failed_at"] or 0),
            locked_until=int(row["locked_until"] or 0),
        )

    def _store(self, key: AttemptKey, window: AttemptWindow, now: int) -> None:
        with self._connection:
            self._connection.execute(
                """
                INSERT INTO auth_login_attempts(
                  phone, client_ip, failed_attempts, first_failed_at, last_failed_at, locked_until
                ) VALUES (?, ?, ?, ?, ?, ?)
                ON CONFLICT(phone, client_ip) DO UPDATE SET
                  failed_attempts = excluded.failed_attempts,
                  first_failed_at = excluded.first_failed_at,
                  last_failed_at = excluded.last_failed_at,
                  locked_until = excluded.locked_until
                """,
                (
                    *key,
                    window.failed_attempts,
                    window.first_failed_at,
                    now,
                    window.locked_until,
                ),
            )

    def _clear(self, key: AttemptKey) -> None:
        with self._connection:
            self._connection.execute(
                "DELETE FROM auth_login_attempts WHERE phone = ? AND client_ip = ?", key
            )

    def assert_allowed(self, *, phone: str, client_ip: str) -> None:
        """Raise 429 with ``Retry-After`` while the pair is locked out."""
        now = self._clock()
        key = self._key(phone, client_ip)
        with self._lock:
            window = self._load(key)
            if window is None:
                return
            if window.locked_at(now):
                retry_after = window.locked_until - now
                raise ApiError(
                    status_code=429,
                    error_code=ApiErrorCode.AUTH_RATE_LIMITED,
                    message=f"Too many login attempts. Retry after {retry_after} seconds.",
                    headers={"Retry-After": str(retry_after)},
                )
            # An expired lock starts a fresh window.
            if window.locked_until or window.stale_at(now, self._window_seconds):
                self._clear(key)

    def record_success(self, *, phone: str, client_ip: str) -> None:
        with self._lock:
            self._clear(self._key(phone, client_ip))

    def record_failure(self, *, phone: str, client_ip: str) -> None:
        """Count a failed login and lock the pair once the threshold is hit."""
        now = self._clock()
        key = self._key(phone, client_ip)
        with self._lock:
            previous = self._load(key)
            if previous is None or previous.stale_at(now, self._window_seconds):
                failed_attempts, first_failed_at = 1, now
            else:
                failed_attempts = previous.failed_attempts + 1
                first_failed_at = previous.first_failed_at
            locked_until = 0
            if failed_attempts >= self._max_attempts:
                locked_until = now + self._lock_seconds
                LOGGER.warning(
                    "login_locked",
                    extra={"phone": mask_phone(key[0]), "reason": f"{failed_attempts} failures"},
                )
            self._store(
                key,
                AttemptWindow(
                    failed_attempts=failed_attempts,
                    first_failed_at=first_failed_at,
                    locked_until=locked_until,
                ),
                now,
            )

    def close(self) -> None:
        with self._lock:
            self._connection.close()
