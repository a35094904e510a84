from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from bson import ObjectId
from bson.errors import InvalidId
from pymongo import ReturnDocument
from pymongo.database import Database

from karnataka_api.core.store import JsonListFile

LOGGER = logging.getLogger(__name__)


def _object_id(document_id: str) -> ObjectId | None:
    try:
        return ObjectId(document_id)
    except (InvalidId, TypeError):
        return None


def _public(doc: dict[str, Any]) -> dict[str, Any]:
    result = dict(doc)
    result["_id"] = str(result.get("_id") or "")
    return result


class DocumentCollection:
    """CRUD over one collection: MongoDB when available, JSON file otherwise.

    Documents are plain dicts keyed by ``_id``; ids are returned as 24-hex
    strings in both backends.
    """

    def __init__(self, name: str, app_root: Path, db: Database | None = None) -> None:
        self._name = name
        self._collection = db[name] if db is not None else None
        self._fallback = JsonListFile(app_root / "runtime" / "catalog" / f"{name}.json")
        if self._collection is None:
            LOGGER.info("Collection %s using local JSON store", name)

    @property
    def name(self) -> str:
        return self._name

    def insert(self, fields: dict[str, Any]) -> dict[str, Any]:
        doc = {**fields, "_id": ObjectId()}
        if self._collection is not None:
            self._collection.insert_one(doc)
            return _public(doc)

        stored = _public(doc)
        with self._fallback.lock:
            rows = self._fallback.read()
            rows.append(stored)
            self._fallback.write(rows)
        return stored

    def list_all(self) -> list[dict[str, Any]]:
        if self._collection is not None:
            return [_public(doc) for doc in self._collection.find({})]
        return [_public(row) for row in self._fallback.read()]

    def get(self, document_id: str) -> dict[str, Any] | None:
        oid = _object_id(document_id)
        if oid is None:
            return None
        if self._collection is not None:
            doc = self._collection.find_one({"_id": oid})
            return _public(doc) if doc else None

        for row in self._fallback.read():
            if row.get("_id") == document_id:
                return _public(row)
        return None

    def update(self, document_id: str, changes: dict[str, Any]) -> dict[str, Any] | None:
        """Apply ``changes`` and return the updated document."""
        oid = _object_id(document_id)
        if oid is None:
            return None
        changes = {key: value for key, value in changes.items() if key != "_id"}
        if self._collection is not None:
            if not changes:
                return self.get(document_id)
            doc = self._collection.find_one_and_update(
                {"_id": oid},
                {"$set": changes},
                return_document=ReturnDocument.AFTER,
            )
            return _public(doc) if doc else None

        with self._fallback.lock:
            rows = self._fallback.read()
            for row in rows:
                if row.get("_id") == document_id:
                    row.update(changes)
                    self._fallback.write(rows)
                    return _public(row)
        return None

    def delete(self, document_id: str) -> dict[str, Any] | None:
        """Remove a document and return it as it was."""
        oid = _object_id(document_id)
        if oid is None:
            return None
        if self._collection is not None:
            doc = self._collection.find_one_and_delete({"_id": oid})
            return _public(doc) if doc else None

        with self._fallback.lock:
            rows = self._fallback.read()
            remaining = [row for row in rows if row.get("_id") != document_id]
            if len(remaining) == len(rows):
                return None
            deleted = next(row for row in rows if row.get("_id") == document_id)
            self._fallback.write(remaining)
        return _public(deleted)
