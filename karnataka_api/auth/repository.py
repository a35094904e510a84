"""Credential store: accounts and refresh token records."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from bson import ObjectId
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from karnataka_api.auth.models import Account, RefreshTokenRecord
from karnataka_api.core.mongo_migrations import (
    CREDENTIALS_COLLECTION,
    REFRESH_TOKENS_COLLECTION,
)
from karnataka_api.core.store import JsonListFile


class DuplicateAccountError(Exception):
    """An account with the given phone already exists."""


def _phone_candidates(phone: str) -> list[Any]:
    # Accounts written by the old backend keep the phone as a number.
    candidates: list[Any] = [phone]
    if phone.isdigit():
        candidates.append(int(phone))
    return candidates


def _account_from_doc(doc: dict[str, Any]) -> Account:
    return Account(
        user_id=str(doc.get("_id") or doc.get("user_id") or ""),
        name=str(doc.get("name") or ""),
        phone=doc.get("phone"),
        password_hash=str(doc.get("password") or ""),
        role=str(doc.get("role") or "User"),
    )


class AccountRepository:
    """Account repository with MongoDB primary and file-store fallback.

    Mongo documents keep the field layout of the ``Cred`` collection
    (``name``, ``phone``, ``password``, ``role``) so existing accounts
    keep working.
    """

    def __init__(self, app_root: Path, db: Database | None = None) -> None:
        """Initialize repository storage backends."""
        fallback_dir = app_root / "runtime" / "auth_store"
        self._accounts_file = JsonListFile(fallback_dir / "accounts.json")
        self._refresh_file = JsonListFile(fallback_dir / "refresh_tokens.json")

        self._mongo_accounts = None
        self._mongo_refresh = None
        if db is not None:
            self._mongo_accounts = db[CREDENTIALS_COLLECTION]
            self._mongo_refresh = db[REFRESH_TOKENS_COLLECTION]

    def find_by_phone(self, phone: str) -> Account | None:
        """Get account by phone number."""
        key = phone.strip()
        if self._mongo_accounts is not None:
            doc = self._mongo_accounts.find_one({"phone": {"$in": _phone_candidates(key)}})
            return _account_from_doc(doc) if doc else None

        for row in self._accounts_file.read():
            if str(row.get("phone", "")).strip() == key:
                return _account_from_doc(row)
        return None

    def create(self, *, name: str, phone: str, password_hash: str, role: str) -> Account:
        """Insert a new account; raise :class:`DuplicateAccountError` if the phone is taken."""
        doc: dict[str, Any] = {
            "name": name,
            "phone": phone,
            "password": password_hash,
            "role": role,
        }
        if self._mongo_accounts is not None:
            if self.find_by_phone(phone) is not None:
                raise DuplicateAccountError(phone)
            try:
                result = self._mongo_accounts.insert_one(doc)
            except DuplicateKeyError as exc:
                raise DuplicateAccountError(phone) from exc
            doc["_id"] = result.inserted_id
            return _account_from_doc(doc)

        with self._accounts_file.lock:
            rows = self._accounts_file.read()
            if any(str(row.get("phone", "")).strip() == phone for row in rows):
                raise DuplicateAccountError(phone)
            doc["user_id"] = str(ObjectId())
            rows.append(doc)
            self._accounts_file.write(rows)
        return _account_from_doc(doc)

    def save_refresh_token(self, record: RefreshTokenRecord) -> None:
        """Save refresh token record for rotation/revocation."""
        doc = record.model_dump()
        if self._mongo_refresh is not None:
            if record.expires_at:
                doc["expires_at_dt"] = datetime.fromtimestamp(
                    record.expires_at, tz=timezone.utc
                )
            self._mongo_refresh.update_one({"jti": record.jti}, {"$set": doc}, upsert=True)
            return

        with self._refresh_file.lock:
            rows = [row for row in self._refresh_file.read() if row.get("jti") != record.jti]
            rows.append(doc)
            self._refresh_file.write(rows)

    def get_refresh_token(self, jti: str) -> RefreshTokenRecord | None:
        """Get refresh token record by jti."""
        if self._mongo_refresh is not None:
            doc = self._mongo_refresh.find_one({"jti": jti}, {"_id": 0, "expires_at_dt": 0})
            return RefreshTokenRecord.model_validate(doc) if doc else None

        for row in self._refresh_file.read():
            if str(row.get("jti", "")) == jti:
                return RefreshTokenRecord.model_validate(row)
        return None

    def revoke_refresh_token(self, jti: str) -> bool:
        """Mark refresh token record as revoked; return whether it was live before."""
        if self._mongo_refresh is not None:
            result = self._mongo_refresh.update_one(
                {"jti": jti, "revoked": False}, {"$set": {"revoked": True}}
            )
            return result.modified_count == 1

        with self._refresh_file.lock:
            rows = self._refresh_file.read()
            was_live = False
            for row in rows:
                if str(row.get("jti", "")) == jti and not row.get("revoked"):
                    row["revoked"] = True
                    was_live = True
            self._refresh_file.write(rows)
        return was_live
