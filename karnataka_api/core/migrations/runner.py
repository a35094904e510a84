"""SQLite migration runner for runtime state tables (login throttling)."""

from __future__ import annotations

import logging
import sqlite3
from contextlib import closing
from pathlib import Path

LOGGER = logging.getLogger(__name__)

MIGRATIONS_DIR = Path(__file__).resolve().parent / "sql"


def pending_migrations(connection: sqlite3.Connection) -> list[Path]:
    """Return migration files not yet recorded in ``schema_migrations``."""
    applied = {
        row[0]
        for row in connection.execute(
            "SELECT migration_id FROM schema_migrations"
        ).fetchall()
    }
    return [
        path for path in sorted(MIGRATIONS_DIR.glob("*.sql")) if path.name not in applied
    ]


def apply_migrations(database_path: Path) -> list[str]:
    """Apply pending SQL migrations in file-name order; return applied ids."""
    database_path.parent.mkdir(parents=True, exist_ok=True)
    applied_now: list[str] = []
    with closing(sqlite3.connect(str(database_path))) as connection:
        connection.execute(
            """
            CREATE TABLE IF NOT EXISTS schema_migrations (
              migration_id TEXT PRIMARY KEY,
              applied_at INTEGER NOT NULL
            )
            """
        )
        for migration_file in pending_migrations(connection):
            connection.executescript(migration_file.read_text(encoding="utf-8"))
            connection.execute(
                "INSERT INTO schema_migrations(migration_id, applied_at) "
                "VALUES (?, strftime('%s','now'))",
                (migration_file.name,),
            )
            applied_now.append(migration_file.name)
        connection.commit()

    if applied_now:
        LOGGER.info("sqlite_migrations_applied: %s", ", ".join(applied_now))
    return applied_now
