"""MongoDB connection helper and the JSON-file fallback used without Mongo."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from threading import Lock
from typing import Any

import pymongo
from pymongo.database import Database
from pymongo.errors import PyMongoError

from karnataka_api.core.config import StoreConfig

LOGGER = logging.getLogger(__name__)


def connect_mongo_database(config: StoreConfig) -> Database | None:
    """Return the configured Mongo database, or ``None`` to use file storage."""
    if not config.mongo_uri:
        LOGGER.warning("MONGODB_URI is not set. Using local JSON store fallback.")
        return None
    try:
        client: Any = pymongo.MongoClient(config.mongo_uri, serverSelectionTimeoutMS=3000)
        client.admin.command("ping")
    except PyMongoError:
        LOGGER.exception("MongoDB unreachable. Using local JSON store fallback.")
        return None
    LOGGER.info("Using MongoDB database %s", config.mongo_db)
    return client[config.mongo_db]


class JsonListFile:
    """A JSON array of objects on disk, rewritten whole on each change."""

    def __init__(self, path: Path) -> None:
        self._path = path
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self.lock = Lock()

    @property
    def path(self) -> Path:
        return self._path

    def read(self) -> list[dict[str, Any]]:
        """Read rows, treating a missing or corrupted file as empty."""
        if not self._path.exists():
            return []
        try:
            payload = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            LOGGER.warning("Unreadable JSON store %s; treating as empty", self._path)
            return []
        if not isinstance(payload, list):
            return []
        return [row for row in payload if isinstance(row, dict)]

    def write(self, rows: list[dict[str, Any]]) -> None:
        """Persist rows."""
        self._path.write_text(
            json.dumps(rows, ensure_ascii=False, indent=2, default=str), encoding="utf-8"
        )
