"""
SQLite Tracker Store Implementation.

Features:
- WAL mode for concurrent reads
- Automatic schema migrations
- Version-guarded (optimistic) tracker updates
- Tracker, stages and events written in one transaction
"""

from __future__ import annotations

import asyncio
from pathlib import Path

import aiosqlite

from funding_stages.adapters.store.sqlite.events import _insert_event_rows, list_events
from funding_stages.adapters.store.sqlite.migrations import _apply_schema_migrations, get_schema_version
from funding_stages.adapters.store.sqlite.schema import SCHEMA_SQL
from funding_stages.adapters.store.sqlite.trackers import (
    _raise_version_conflict,
    _replace_stage_rows,
    _row_to_stage,
    _stage_to_row,
    create_tracker,
    delete_tracker,
    get_tracker,
    list_owner_ids,
    save_tracker,
)
from funding_stages.config.settings import Settings
from funding_stages.observability.logging import get_logger
from funding_stages.ports.store import TrackerStorePort

logger = get_logger(__name__)

MEMORY_DB = ":memory:"


class SQLiteTrackerStore(TrackerStorePort):
    """
    SQLite-based tracker store.

    A single aiosqlite connection is shared; writes are serialized by
    `_write_lock` so transactions from concurrent callers never interleave.
    """

    def __init__(self, settings: Settings):
        self.settings = settings
        self.db_path = settings.database.path
        self._conn: aiosqlite.Connection | None = None
        self._write_lock = asyncio.Lock()
        self._initialized = False

    async def initialize(self) -> None:
        """Open the database and create/migrate the schema."""
        if self._initialized:
            return

        logger.info(f"Initializing SQLite store: {self.db_path}")

        if self.db_path != MEMORY_DB:
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)

        self._conn = await aiosqlite.connect(self.db_path)

        # WAL is meaningless for in-memory databases
        if self.settings.database.wal_mode and self.db_path != MEMORY_DB:
            await self._conn.execute("PRAGMA journal_mode=WAL")
            await self._conn.execute("PRAGMA synchronous=NORMAL")

        await self._conn.execute(f"PRAGMA busy_timeout={int(self.settings.database.busy_timeout_ms)}")
        await self._conn.execute("PRAGMA foreign_keys=ON")

        await self._conn.executescript(SCHEMA_SQL)
        await self._conn.commit()
        await self._apply_schema_migrations()

        self._initialized = True
        owners = await self.list_owner_ids()
        logger.info(f"SQLite store initialized with {len(owners)} trackers")

    async def close(self) -> None:
        """Close database connection."""
        if not self._initialized:
            return

        async with self._write_lock:
            if self._conn:
                await self._conn.close()
                self._conn = None

        self._initialized = False
        logger.info("SQLite store closed")

    def _require_conn(self) -> None:
        if self._conn is None:
            raise RuntimeError("SQLiteTrackerStore is not initialized")

    _apply_schema_migrations = _apply_schema_migrations
    get_schema_version = get_schema_version

    _row_to_stage = _row_to_stage
    _stage_to_row = _stage_to_row
    _replace_stage_rows = _replace_stage_rows
    _raise_version_conflict = _raise_version_conflict
    _insert_event_rows = _insert_event_rows

    create_tracker = create_tracker
    get_tracker = get_tracker
    save_tracker = save_tracker
    delete_tracker = delete_tracker
    list_owner_ids = list_owner_ids

    list_events = list_events
