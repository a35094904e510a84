"""Password hashing primitives backed by bcrypt."""

from __future__ import annotations

import bcrypt

DEFAULT_BCRYPT_ROUNDS = 12

# bcrypt only looks at the first 72 bytes of the secret.
BCRYPT_MAX_BYTES = 72


class PasswordHashError(ValueError):
    """Stored password hash cannot be parsed as a bcrypt hash."""


def _secret_bytes(password: str) -> bytes:
    return password.encode("utf-8")[:BCRYPT_MAX_BYTES]


def hash_password(password: str, rounds: int = DEFAULT_BCRYPT_ROUNDS) -> str:
    """Hash password with bcrypt using a fresh embedded salt."""
    return bcrypt.hashpw(_secret_bytes(password), bcrypt.gensalt(rounds=rounds)).decode(
        "utf-8"
    )


def verify_password(password: str, stored_hash: str) -> bool:
    """Verify password against a stored bcrypt hash.

    Returns ``False`` for a wrong password. A stored value that is not a
    bcrypt hash raises :class:`PasswordHashError` so callers can report it
    as a data problem rather than a failed login.
    """
    if not stored_hash:
        raise PasswordHashError("Stored password hash is empty")
    try:
        return bcrypt.checkpw(_secret_bytes(password), stored_hash.encode("utf-8"))
    except (ValueError, TypeError) as exc:
        raise PasswordHashError("Stored password hash is malformed") from exc
