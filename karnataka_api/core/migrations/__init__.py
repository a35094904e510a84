"""SQLite migrations for runtime state tables."""

from karnataka_api.core.migrations.runner import apply_migrations

__all__ = ["apply_migrations"]
