"""
In-memory tracker store.

Used by tests and by short-lived tooling. Trackers are stored as copies,
so callers never share mutable state with the store.
"""

from __future__ import annotations

import asyncio
import dataclasses
from collections.abc import Sequence

from funding_stages.domain.errors import (
    ConcurrentModificationError,
    TrackerAlreadyExistsError,
    TrackerNotFoundError,
)
from funding_stages.domain.events import DomainEvent
from funding_stages.domain.tracker import FundingStageTracker
from funding_stages.observability.logging import LOG_TAG_STORE, get_logger
from funding_stages.ports.store import TrackerStorePort

logger = get_logger(__name__)


def _copy_tracker(tracker: FundingStageTracker, version: int | None = None) -> FundingStageTracker:
    return FundingStageTracker.restore(
        tracker.owner_id,
        [dataclasses.replace(stage) for stage in tracker.stages_for_storage()],
        selected_stage_id=tracker.selected_stage_id,
        total_target_amount=tracker.total_target_amount,
        total_raised_amount=tracker.total_raised_amount,
        version=tracker.version if version is None else version,
        created_at=tracker.created_at,
        updated_at=tracker.updated_at,
    )


class InMemoryTrackerStore(TrackerStorePort):
    """Dict-backed TrackerStorePort with the same version semantics as SQLite."""

    def __init__(self) -> None:
        self._trackers: dict[str, FundingStageTracker] = {}
        self._events: list[DomainEvent] = []
        self._lock = asyncio.Lock()

    async def initialize(self) -> None:
        logger.debug(f"{LOG_TAG_STORE} In-memory tracker store ready")

    async def close(self) -> None:
        pass

    async def create_tracker(
        self,
        tracker: FundingStageTracker,
        events: Sequence[DomainEvent] = (),
    ) -> int:
        async with self._lock:
            if tracker.owner_id in self._trackers:
                raise TrackerAlreadyExistsError(
                    f"Tracker for {tracker.owner_id!r} already exists",
                    owner_id=tracker.owner_id,
                )
            self._trackers[tracker.owner_id] = _copy_tracker(tracker, version=1)
            self._events.extend(events)
            return 1

    async def get_tracker(self, owner_id: str) -> FundingStageTracker | None:
        async with self._lock:
            stored = self._trackers.get(owner_id)
            return _copy_tracker(stored) if stored else None

    async def save_tracker(
        self,
        tracker: FundingStageTracker,
        expected_version: int,
        events: Sequence[DomainEvent] = (),
    ) -> int:
        async with self._lock:
            stored = self._trackers.get(tracker.owner_id)
            if stored is None:
                raise TrackerNotFoundError(
                    f"No tracker stored for {tracker.owner_id!r}",
                    owner_id=tracker.owner_id,
                )
            if stored.version != expected_version:
                raise ConcurrentModificationError(
                    f"Tracker for {tracker.owner_id!r} is at version {stored.version}, "
                    f"expected {expected_version}",
                    owner_id=tracker.owner_id,
                    expected_version=expected_version,
                    actual_version=stored.version,
                )
            new_version = expected_version + 1
            self._trackers[tracker.owner_id] = _copy_tracker(tracker, version=new_version)
            self._events.extend(events)
            return new_version

    async def delete_tracker(self, owner_id: str) -> bool:
        async with self._lock:
            existed = self._trackers.pop(owner_id, None) is not None
            self._events = [e for e in self._events if e.owner_id != owner_id]
            return existed

    async def list_owner_ids(self) -> list[str]:
        async with self._lock:
            return sorted(self._trackers)

    async def list_events(
        self,
        owner_id: str | None = None,
        event_type: str | None = None,
        limit: int = 100,
    ) -> list[DomainEvent]:
        async with self._lock:
            matches = [
                e
                for e in self._events
                if (owner_id is None or e.owner_id == owner_id)
                and (event_type is None or e.event_type == event_type)
            ]
        # Newest first; insertion order breaks timestamp ties
        return list(reversed(matches))[:limit]
