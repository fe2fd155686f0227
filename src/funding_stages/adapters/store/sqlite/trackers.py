"""
Tracker CRUD helpers.

Bound onto SQLiteTrackerStore. Every write runs under the store's write
lock and commits (or rolls back) the tracker row, its stage rows and its
events together.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import UTC, date, datetime
from typing import Any

from funding_stages.domain.errors import (
    ConcurrentModificationError,
    CorruptTrackerStateError,
    TrackerAlreadyExistsError,
    TrackerNotFoundError,
)
from funding_stages.domain.events import DomainEvent
from funding_stages.domain.models import FundingStage, StageStatus
from funding_stages.domain.tracker import FundingStageTracker
from funding_stages.observability.logging import LOG_TAG_STORE, get_logger

logger = get_logger(__name__)


def _rows_to_dicts(rows: Sequence[tuple], description: Any) -> list[dict[str, Any]]:
    columns = [col[0] for col in description]
    return [dict(zip(columns, row, strict=False)) for row in rows]


def _row_to_stage(self, data: dict[str, Any]) -> FundingStage:
    """Convert a funding_stages row to a FundingStage."""
    try:
        status = StageStatus(data["status"])
    except ValueError as e:
        raise CorruptTrackerStateError(
            f"Unknown stage status {data['status']!r}",
            owner_id=data["owner_id"],
            stage_id=data["stage_id"],
        ) from e

    return FundingStage(
        id=data["stage_id"],
        name=data["name"],
        status=status,
        target_amount=int(data["target_amount"] or 0),
        raised_amount=int(data["raised_amount"] or 0),
        progress=int(data["progress"] or 0),
        date=date.fromisoformat(data["completed_on"]) if data["completed_on"] else None,
        description=data.get("description") or "",
    )


def _stage_to_row(self, owner_id: str, position: int, stage: FundingStage) -> tuple:
    """Convert a FundingStage to funding_stages column values."""
    return (
        owner_id,
        position,
        stage.id,
        stage.name,
        stage.status.value,
        stage.target_amount,
        stage.raised_amount,
        stage.progress,
        stage.date.isoformat() if stage.date else None,
        stage.description,
    )


async def _replace_stage_rows(self, tracker: FundingStageTracker) -> None:
    await self._conn.execute("DELETE FROM funding_stages WHERE owner_id = ?", (tracker.owner_id,))
    await self._conn.executemany(
        """
        INSERT INTO funding_stages (
            owner_id, position, stage_id, name, status,
            target_amount, raised_amount, progress, completed_on, description
        ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """,
        [
            self._stage_to_row(tracker.owner_id, position, stage)
            for position, stage in enumerate(tracker.stages_for_storage())
        ],
    )


async def create_tracker(
    self,
    tracker: FundingStageTracker,
    events: Sequence[DomainEvent] = (),
) -> int:
    """Insert a new tracker at version 1."""
    self._require_conn()

    async with self._write_lock:
        cursor = await self._conn.execute(
            "SELECT 1 FROM trackers WHERE owner_id = ?", (tracker.owner_id,)
        )
        if await cursor.fetchone():
            raise TrackerAlreadyExistsError(
                f"Tracker for {tracker.owner_id!r} already exists",
                owner_id=tracker.owner_id,
            )

        try:
            await self._conn.execute(
                """
                INSERT INTO trackers (
                    owner_id, selected_stage_id, total_target_amount,
                    total_raised_amount, version, created_at, updated_at
                ) VALUES (?, ?, ?, ?, 1, ?, ?)
                """,
                (
                    tracker.owner_id,
                    tracker.selected_stage_id,
                    tracker.total_target_amount,
                    tracker.total_raised_amount,
                    tracker.created_at.isoformat(),
                    tracker.updated_at.isoformat(),
                ),
            )
            await self._replace_stage_rows(tracker)
            await self._insert_event_rows(events)
            await self._conn.commit()
        except Exception:
            await self._conn.rollback()
            raise

    logger.debug(f"{LOG_TAG_STORE} Created tracker {tracker.owner_id} ({len(events)} events)")
    return 1


async def get_tracker(self, owner_id: str) -> FundingStageTracker | None:
    """Load a tracker with its ordered stages."""
    self._require_conn()

    cursor = await self._conn.execute("SELECT * FROM trackers WHERE owner_id = ?", (owner_id,))
    row = await cursor.fetchone()
    if row is None:
        return None
    data = _rows_to_dicts([row], cursor.description)[0]

    cursor = await self._conn.execute(
        "SELECT * FROM funding_stages WHERE owner_id = ? ORDER BY position",
        (owner_id,),
    )
    stage_rows = _rows_to_dicts(await cursor.fetchall(), cursor.description)
    if not stage_rows:
        raise CorruptTrackerStateError(f"Stored tracker for {owner_id!r} has no stages", owner_id=owner_id)

    return FundingStageTracker.restore(
        owner_id,
        [self._row_to_stage(r) for r in stage_rows],
        selected_stage_id=data["selected_stage_id"],
        total_target_amount=int(data["total_target_amount"] or 0),
        total_raised_amount=int(data["total_raised_amount"] or 0),
        version=int(data["version"]),
        created_at=datetime.fromisoformat(data["created_at"]) if data["created_at"] else None,
        updated_at=datetime.fromisoformat(data["updated_at"]) if data["updated_at"] else None,
    )


async def save_tracker(
    self,
    tracker: FundingStageTracker,
    expected_version: int,
    events: Sequence[DomainEvent] = (),
) -> int:
    """Version-guarded update of the tracker, its stages and its events."""
    self._require_conn()
    new_version = expected_version + 1

    async with self._write_lock:
        try:
            cursor = await self._conn.execute(
                """
                UPDATE trackers
                SET selected_stage_id = ?, total_target_amount = ?, total_raised_amount = ?,
                    version = ?, updated_at = ?
                WHERE owner_id = ? AND version = ?
                """,
                (
                    tracker.selected_stage_id,
                    tracker.total_target_amount,
                    tracker.total_raised_amount,
                    new_version,
                    (tracker.updated_at or datetime.now(UTC)).isoformat(),
                    tracker.owner_id,
                    expected_version,
                ),
            )
            if cursor.rowcount != 1:
                await self._conn.rollback()
                await self._raise_version_conflict(tracker.owner_id, expected_version)

            await self._replace_stage_rows(tracker)
            await self._insert_event_rows(events)
            await self._conn.commit()
        except Exception:
            await self._conn.rollback()
            raise

    logger.debug(f"{LOG_TAG_STORE} Saved tracker {tracker.owner_id} v{new_version} ({len(events)} events)")
    return new_version


async def _raise_version_conflict(self, owner_id: str, expected_version: int) -> None:
    cursor = await self._conn.execute("SELECT version FROM trackers WHERE owner_id = ?", (owner_id,))
    row = await cursor.fetchone()
    if row is None:
        raise TrackerNotFoundError(f"No tracker stored for {owner_id!r}", owner_id=owner_id)
    raise ConcurrentModificationError(
        f"Tracker for {owner_id!r} is at version {row[0]}, expected {expected_version}",
        owner_id=owner_id,
        expected_version=expected_version,
        actual_version=int(row[0]),
    )


async def delete_tracker(self, owner_id: str) -> bool:
    """Delete a tracker, its stages and its events."""
    self._require_conn()

    async with self._write_lock:
        try:
            cursor = await self._conn.execute("DELETE FROM trackers WHERE owner_id = ?", (owner_id,))
            existed = cursor.rowcount > 0
            await self._conn.execute("DELETE FROM funding_stages WHERE owner_id = ?", (owner_id,))
            await self._conn.execute("DELETE FROM tracker_events WHERE owner_id = ?", (owner_id,))
            await self._conn.commit()
        except Exception:
            await self._conn.rollback()
            raise

    if existed:
        logger.info(f"{LOG_TAG_STORE} Deleted tracker {owner_id}")
    return existed


async def list_owner_ids(self) -> list[str]:
    self._require_conn()
    cursor = await self._conn.execute("SELECT owner_id FROM trackers ORDER BY owner_id")
    return [row[0] for row in await cursor.fetchall()]
