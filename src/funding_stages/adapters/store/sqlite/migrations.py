"""
SQLite schema migrations.
"""

from __future__ import annotations

from funding_stages.adapters.store.sqlite.schema import SCHEMA_VERSION
from funding_stages.observability.logging import get_logger

logger = get_logger(__name__)


async def _apply_schema_migrations(self) -> None:
    """Apply additive schema migrations (safe on existing DBs)."""
    if not self._conn:
        return

    # Databases created before stage descriptions were stored
    cursor = await self._conn.execute("PRAGMA table_info(funding_stages)")
    columns = {row[1] for row in await cursor.fetchall()}  # row[1] = column name

    if "description" not in columns:
        logger.info("Applying schema migration: add funding_stages.description")
        await self._conn.execute(
            "ALTER TABLE funding_stages ADD COLUMN description TEXT NOT NULL DEFAULT ''"
        )
        await self._conn.commit()

    await self._conn.execute(
        "INSERT OR REPLACE INTO schema_info (key, value) VALUES ('schema_version', ?)",
        (str(SCHEMA_VERSION),),
    )
    await self._conn.commit()


async def get_schema_version(self) -> int | None:
    """Schema version recorded in the database (None before initialize)."""
    if not self._conn:
        return None
    cursor = await self._conn.execute("SELECT value FROM schema_info WHERE key = 'schema_version'")
    row = await cursor.fetchone()
    return int(row[0]) if row else None
