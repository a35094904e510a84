#!/usr/bin/env python3
"""One-shot audit of the ``Cred`` collection before enabling the phone index.

Reports duplicate phone numbers (they make the unique index migration fail)
and stored password values that are not bcrypt hashes (those accounts
cannot log in).
"""

from __future__ import annotations

import argparse
import os
import re
import sys
from collections import Counter
from typing import Any

import pymongo
from dotenv import load_dotenv
from pymongo.errors import PyMongoError

DEFAULT_DB_NAME = "visit_karnataka"
DEFAULT_COLLECTION = "Cred"
MAX_PREVIEW_ITEMS = 10

BCRYPT_HASH_RE = re.compile(r"^\$2[abxy]?\$\d{2}\$[./A-Za-z0-9]{53}$")


def _parse_args() -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Check Cred accounts for duplicate phones and invalid hashes."
    )
    parser.add_argument(
        "--collection",
        default=DEFAULT_COLLECTION,
        help="Accounts collection name.",
    )
    return parser.parse_args()


def _mongo_collection(name: str) -> tuple[Any, Any]:
    """Create Mongo collection object from environment variables."""
    mongo_uri = os.getenv("MONGODB_URI", "").strip()
    mongo_db = os.getenv("MONGODB_DB", DEFAULT_DB_NAME).strip() or DEFAULT_DB_NAME
    if not mongo_uri:
        raise RuntimeError("MONGODB_URI is empty. Set env var before running script.")
    client = pymongo.MongoClient(mongo_uri, serverSelectionTimeoutMS=5000)
    client.admin.command("ping")
    return client, client[mongo_db][name]


def _normalized_phone(value: Any) -> str:
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value if value is not None else "").strip()


def audit(rows: list[dict[str, Any]]) -> dict[str, list[str]]:
    """Return duplicate phones and ids of accounts with unusable hashes."""
    phones = Counter(_normalized_phone(row.get("phone")) for row in rows)
    duplicates = sorted(phone for phone, count in phones.items() if count > 1)
    invalid_hashes = sorted(
        str(row.get("_id"))
        for row in rows
        if not BCRYPT_HASH_RE.match(str(row.get("password") or ""))
    )
    return {"duplicate_phones": duplicates, "invalid_hash_ids": invalid_hashes}


def _print_preview(label: str, items: list[str]) -> None:
    print(f"{label}: {len(items)}")
    if items:
        print(f"  preview: {', '.join(items[:MAX_PREVIEW_ITEMS])}")


def main() -> int:
    """Execute audit flow."""
    load_dotenv()
    args = _parse_args()

    mongo_client = None
    try:
        mongo_client, collection = _mongo_collection(args.collection)
        rows = list(collection.find({}, {"phone": 1, "password": 1}))
        report = audit(rows)
        print(f"Accounts total: {len(rows)}")
        _print_preview("Duplicate phones", report["duplicate_phones"])
        _print_preview("Accounts with invalid password hash", report["invalid_hash_ids"])
        return 1 if any(report.values()) else 0
    except (RuntimeError, PyMongoError) as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 2
    finally:
        if mongo_client is not None:
            mongo_client.close()


if __name__ == "__main__":
    raise SystemExit(main())
