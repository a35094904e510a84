from __future__ import annotations

import sqlite3
from pathlib import Path

from karnataka_api.core.migrations import apply_migrations


def test_apply_migrations_creates_login_attempt_tables(tmp_path: Path) -> None:
    db_path = tmp_path / "nested" / "state.db"

    applied = apply_migrations(db_path)

    connection = sqlite3.connect(str(db_path))
    try:
        cursor = connection.cursor()
        tables = {
            row[0]
            for row in cursor.execute(
                "SELECT name FROM sqlite_master WHERE type='table'"
            ).fetchall()
        }

        assert "schema_migrations" in tables
        assert "auth_login_attempts" in tables

        migration_ids = {
            row[0]
            for row in cursor.execute(
                "SELECT migration_id FROM schema_migrations"
            ).fetchall()
        }
        assert "0001_auth_login_attempts.sql" in migration_ids
        assert "0002_auth_login_attempts_lock_index.sql" in migration_ids
        assert sorted(applied) == sorted(migration_ids)
    finally:
        connection.close()


def test_apply_migrations_is_idempotent(tmp_path: Path) -> None:
    db_path = tmp_path / "state.db"

    apply_migrations(db_path)

    assert apply_migrations(db_path) == []
