from __future__ import annotations

import pytest

from karnataka_api.core.security import PasswordHashError, hash_password, verify_password


def test_hash_password_round_trips_and_never_contains_plaintext() -> None:
    hashed = hash_password("pw1", rounds=4)

    assert hashed.startswith("$2b$04$")
    assert "pw1" not in hashed
    assert verify_password("pw1", hashed) is True


def test_hash_password_uses_fresh_salt_each_call() -> None:
    assert hash_password("same", rounds=4) != hash_password("same", rounds=4)


def test_verify_password_returns_false_for_wrong_password() -> None:
    hashed = hash_password("correct horse", rounds=4)

    assert verify_password("wrong", hashed) is False


def test_verify_password_accepts_hashes_from_node_bcrypt() -> None:
    # "$2a$" prefix as written by bcrypt.js with cost 10.
    hashed = hash_password("legacy", rounds=4).replace("$2b$", "$2a$", 1)

    assert verify_password("legacy", hashed) is True


@pytest.mark.parametrize("stored", ["", "plaintext-password", "$2b$10$short"])
def test_verify_password_raises_for_malformed_stored_hash(stored: str) -> None:
    with pytest.raises(PasswordHashError):
        verify_password("anything", stored)
