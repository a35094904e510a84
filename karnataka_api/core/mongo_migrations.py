"""Versioned MongoDB index migrations for account and catalog collections."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Callable

import pymongo
from pymongo.errors import PyMongoError

from karnataka_api.core.config import StoreConfig
from karnataka_api.core.logging import CORRELATION_ID_CTX

LOGGER = logging.getLogger(__name__)

MigrationFn = Callable[[Any], None]

CREDENTIALS_COLLECTION = "Cred"
REFRESH_TOKENS_COLLECTION = "auth_refresh_tokens"


def _migration_20241001_01_account_indexes(db: Any) -> None:
    db[CREDENTIALS_COLLECTION].create_index("phone", unique=True)
    db[REFRESH_TOKENS_COLLECTION].create_index("jti", unique=True)
    db[REFRESH_TOKENS_COLLECTION].create_index("user_id")


def _migration_20241001_02_refresh_token_ttl(db: Any) -> None:
    db[REFRESH_TOKENS_COLLECTION].create_index(
        "expires_at_dt",
        expireAfterSeconds=0,
        name="idx_auth_refresh_tokens_expires_at_ttl",
    )


def _migration_20241015_01_catalog_indexes(db: Any) -> None:
    db["places"].create_index("placetitle")
    db["bookings"].create_index("date")
    db["bookings"].create_index("mobileNumber")


MIGRATIONS: list[tuple[str, MigrationFn]] = [
    ("20241001_01_account_indexes", _migration_20241001_01_account_indexes),
    ("20241001_02_refresh_token_ttl", _migration_20241001_02_refresh_token_ttl),
    ("20241015_01_catalog_indexes", _migration_20241015_01_catalog_indexes),
]


def run_mongo_migrations(db: Any) -> list[str]:
    """Apply unapplied migrations to ``db`` and record them."""
    migration_collection = db["schema_migrations"]
    migration_collection.create_index("migration_id", unique=True)

    applied: list[str] = []
    for migration_id, migration_fn in MIGRATIONS:
        if migration_collection.find_one({"migration_id": migration_id}):
            continue
        migration_fn(db)
        migration_collection.insert_one(
            {
                "migration_id": migration_id,
                "applied_at": datetime.now(timezone.utc),
                "correlation_id": CORRELATION_ID_CTX.get(),
            }
        )
        applied.append(migration_id)
    return applied


def apply_mongo_migrations(config: StoreConfig) -> None:
    """Apply MongoDB migrations if a Mongo URI is configured."""
    if not config.mongo_uri:
        return

    client: Any = pymongo.MongoClient(config.mongo_uri, serverSelectionTimeoutMS=3000)
    try:
        client.admin.command("ping")
        applied = run_mongo_migrations(client[config.mongo_db])
        if applied:
            LOGGER.info("mongo_migrations_applied: %s", ", ".join(applied))
    except PyMongoError:
        # Duplicate legacy phones block the unique index; the app still serves.
        LOGGER.warning("mongo_migrations_failed", exc_info=True)
    finally:
        client.close()
