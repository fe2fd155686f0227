"""
Unit Tests: SQLiteTrackerStore specifics (files, migrations, corrupt rows).
"""

from __future__ import annotations

import aiosqlite
import pytest

from funding_stages.adapters.store.sqlite import SQLiteTrackerStore
from funding_stages.adapters.store.sqlite.schema import SCHEMA_VERSION
from funding_stages.config.settings import DatabaseSettings, Settings
from funding_stages.domain.errors import CorruptTrackerStateError
from funding_stages.domain.tracker import FundingStageTracker


def file_settings(tmp_path) -> Settings:
    return Settings(testing_mode=True, database=DatabaseSettings(path=str(tmp_path / "db" / "stages.db")))


@pytest.mark.asyncio
class TestSQLiteTrackerStore:
    async def test_tracker_survives_reopen(self, tmp_path, tracker):
        settings = file_settings(tmp_path)

        store = SQLiteTrackerStore(settings)
        await store.initialize()
        tracker.mark_saved(await store.create_tracker(tracker, tracker.pull_events()))
        tracker.complete_stage("pre-seed")
        await store.save_tracker(tracker, 1, tracker.pull_events())
        await store.close()

        reopened = SQLiteTrackerStore(settings)
        await reopened.initialize()
        try:
            loaded = await reopened.get_tracker("startup-1")
            assert loaded.version == 2
            assert loaded.current_stage_id == "seed"
            assert len(await reopened.list_events("startup-1")) == 2
        finally:
            await reopened.close()

    async def test_initialize_creates_parent_directory(self, tmp_path):
        store = SQLiteTrackerStore(file_settings(tmp_path))
        await store.initialize()
        await store.close()

        assert (tmp_path / "db" / "stages.db").exists()

    async def test_schema_version_recorded(self, sqlite_store):
        assert await sqlite_store.get_schema_version() == SCHEMA_VERSION

    async def test_migration_adds_description_column(self, tmp_path):
        settings = file_settings(tmp_path)
        db_file = tmp_path / "db" / "stages.db"
        db_file.parent.mkdir(parents=True)

        async with aiosqlite.connect(db_file) as conn:
            await conn.execute(
                """
                CREATE TABLE funding_stages (
                    owner_id TEXT NOT NULL,
                    position INTEGER NOT NULL,
                    stage_id TEXT NOT NULL,
                    name TEXT NOT NULL,
                    status TEXT NOT NULL,
                    target_amount INTEGER NOT NULL DEFAULT 0,
                    raised_amount INTEGER NOT NULL DEFAULT 0,
                    progress INTEGER NOT NULL DEFAULT 0,
                    completed_on TEXT,
                    PRIMARY KEY (owner_id, stage_id)
                )
                """
            )
            await conn.commit()

        store = SQLiteTrackerStore(settings)
        await store.initialize()
        try:
            cursor = await store._conn.execute("PRAGMA table_info(funding_stages)")
            columns = {row[1] for row in await cursor.fetchall()}
            assert "description" in columns
        finally:
            await store.close()

    async def test_corrupt_statuses_raise_on_load(self, sqlite_store, tracker):
        await sqlite_store.create_tracker(tracker, tracker.pull_events())
        await sqlite_store._conn.execute(
            "UPDATE funding_stages SET status = 'current' WHERE owner_id = ? AND stage_id = 'seed'",
            ("startup-1",),
        )
        await sqlite_store._conn.commit()

        with pytest.raises(CorruptTrackerStateError):
            await sqlite_store.get_tracker("startup-1")

    async def test_unknown_status_value_raises_on_load(self, sqlite_store, tracker):
        await sqlite_store.create_tracker(tracker, tracker.pull_events())
        await sqlite_store._conn.execute(
            "UPDATE funding_stages SET status = 'paused' WHERE owner_id = ? AND stage_id = 'seed'",
            ("startup-1",),
        )
        await sqlite_store._conn.commit()

        with pytest.raises(CorruptTrackerStateError) as exc_info:
            await sqlite_store.get_tracker("startup-1")
        assert exc_info.value.stage_id == "seed"

    async def test_operations_before_initialize_fail(self, settings, seeds):
        store = SQLiteTrackerStore(settings)
        with pytest.raises(RuntimeError):
            await store.create_tracker(FundingStageTracker("x", seeds))
        assert await store.list_events() == []
