"""
Funding Tracker Service.

Persistence boundary around FundingStageTracker:
load -> mutate -> save (version-guarded, with events) -> publish.
"""

from __future__ import annotations

import asyncio
from collections import defaultdict
from collections.abc import Callable, Sequence
from datetime import date
from typing import Any

from funding_stages.config.settings import Settings
from funding_stages.domain.errors import ConcurrentModificationError, TrackerNotFoundError
from funding_stages.domain.events import (
    DomainEvent,
    FundingAmountsUpdated,
    FundraisingCompleted,
    StageCompleted,
    StageProgressUpdated,
    StageSelected,
    TrackerCreated,
)
from funding_stages.domain.models import StageSeed, StageSnapshot, TrackerSnapshot
from funding_stages.domain.tracker import FundingStageTracker
from funding_stages.observability.logging import LOG_TAG_STAGE, get_logger
from funding_stages.ports.event_bus import EventBusPort
from funding_stages.ports.store import TrackerStorePort

logger = get_logger(__name__)


def _describe(event: DomainEvent) -> str:
    """One-line log text for a tracker event."""
    match event:
        case TrackerCreated():
            return (
                f"{event.owner_id}: tracker created with {len(event.stage_ids)} stages, "
                f"current={event.current_stage_id}"
            )
        case StageProgressUpdated():
            return (
                f"{event.owner_id}/{event.stage_id}: progress {event.previous_progress}% -> {event.progress}%, "
                f"raised {event.previous_raised_amount} -> {event.raised_amount}"
            )
        case StageCompleted():
            nxt = event.next_stage_id or "none (fundraising complete)"
            return f"{event.owner_id}/{event.stage_id}: completed on {event.completed_on}, next={nxt}"
        case FundraisingCompleted():
            return f"{event.owner_id}: all stages completed (last={event.last_stage_id})"
        case StageSelected():
            return f"{event.owner_id}: selected {event.stage_id} (was {event.previous_stage_id})"
        case FundingAmountsUpdated():
            return (
                f"{event.owner_id}: totals target={event.total_target_amount} "
                f"raised={event.total_raised_amount}"
            )
    return f"{event.owner_id}: {event.event_type}"


class FundingTrackerService:
    """
    Async application service for funding-stage trackers.

    Mutations for one owner are serialized by a per-owner lock; across
    processes the store's version check rejects stale writes with
    ConcurrentModificationError. Domain errors propagate unchanged and
    leave the stored tracker untouched.
    """

    def __init__(
        self,
        settings: Settings,
        store: TrackerStorePort,
        event_bus: EventBusPort,
    ):
        self.settings = settings
        self.store = store
        self.event_bus = event_bus
        self._locks: defaultdict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def create_tracker(
        self,
        owner_id: str,
        seeds: Sequence[StageSeed] | None = None,
    ) -> TrackerSnapshot:
        """Seed a tracker for an owner (configured default catalog when seeds is None)."""
        if seeds is None:
            seeds = self.settings.tracker.seeds()

        async with self._locks[owner_id]:
            tracker = FundingStageTracker(owner_id, seeds)
            events = tracker.pull_events()
            version = await self.store.create_tracker(tracker, events)
            tracker.mark_saved(version)

        await self._publish(events)
        return tracker.snapshot()

    async def delete_tracker(self, owner_id: str) -> bool:
        async with self._locks[owner_id]:
            return await self.store.delete_tracker(owner_id)

    async def list_owners(self) -> list[str]:
        return await self.store.list_owner_ids()

    # =========================================================================
    # Queries
    # =========================================================================

    async def get_snapshot(self, owner_id: str) -> TrackerSnapshot:
        return (await self._load(owner_id)).snapshot()

    async def list_stages(self, owner_id: str) -> list[StageSnapshot]:
        return (await self._load(owner_id)).list_stages()

    async def get_current_stage(self, owner_id: str) -> StageSnapshot | None:
        return (await self._load(owner_id)).get_current_stage()

    async def get_stage(self, owner_id: str, stage_id: str) -> StageSnapshot:
        return (await self._load(owner_id)).get_stage(stage_id)

    async def milestones(self, owner_id: str) -> list[dict[str, Any]]:
        return (await self._load(owner_id)).milestones()

    async def history(self, owner_id: str, limit: int | None = None) -> list[DomainEvent]:
        """Stored events for an owner, newest first."""
        await self._load(owner_id)
        return await self.store.list_events(
            owner_id=owner_id,
            limit=limit if limit is not None else self.settings.tracker.history_limit,
        )

    # =========================================================================
    # Mutations
    # =========================================================================

    async def update_stage_progress(
        self,
        owner_id: str,
        stage_id: str,
        progress: int,
        raised_amount: int,
    ) -> StageSnapshot:
        tracker = await self._mutate(
            owner_id, lambda t: t.update_stage_progress(stage_id, progress, raised_amount)
        )
        return tracker.get_stage(stage_id)

    async def complete_stage(
        self,
        owner_id: str,
        stage_id: str,
        *,
        on: date | None = None,
    ) -> TrackerSnapshot:
        tracker = await self._mutate(owner_id, lambda t: t.complete_stage(stage_id, on=on))
        return tracker.snapshot()

    async def set_current_stage(self, owner_id: str, stage_id: str) -> StageSnapshot:
        """Select a stage for viewing (no lifecycle change)."""
        tracker = await self._mutate(owner_id, lambda t: t.set_current_stage(stage_id))
        return tracker.get_stage(stage_id)

    select_stage = set_current_stage

    async def update_funding_amounts(
        self,
        owner_id: str,
        total_target: int,
        total_raised: int,
    ) -> TrackerSnapshot:
        tracker = await self._mutate(
            owner_id, lambda t: t.update_funding_amounts(total_target, total_raised)
        )
        return tracker.snapshot()

    async def apply_stage_edit(
        self,
        owner_id: str,
        stage_id: str,
        progress: int,
        raised_amount: int,
        *,
        total_target: int | None = None,
        total_raised: int | None = None,
        auto_complete: bool | None = None,
        on: date | None = None,
    ) -> TrackerSnapshot:
        """Save the stage edit form; auto-completion follows settings unless overridden."""
        if auto_complete is None:
            auto_complete = self.settings.tracker.auto_complete_on_full_progress

        tracker = await self._mutate(
            owner_id,
            lambda t: t.apply_stage_edit(
                stage_id,
                progress,
                raised_amount,
                total_target=total_target,
                total_raised=total_raised,
                auto_complete=auto_complete,
                on=on,
            ),
        )
        return tracker.snapshot()

    # =========================================================================
    # Internals
    # =========================================================================

    async def _load(self, owner_id: str) -> FundingStageTracker:
        tracker = await self.store.get_tracker(owner_id)
        if tracker is None:
            raise TrackerNotFoundError(f"No tracker for {owner_id!r}", owner_id=owner_id)
        return tracker

    async def _mutate(
        self,
        owner_id: str,
        operation: Callable[[FundingStageTracker], Any],
    ) -> FundingStageTracker:
        async with self._locks[owner_id]:
            tracker = await self._load(owner_id)
            expected_version = tracker.version

            operation(tracker)

            events = tracker.pull_events()
            if not events:
                return tracker

            try:
                new_version = await self.store.save_tracker(tracker, expected_version, events)
            except ConcurrentModificationError as e:
                logger.warning(
                    f"Stale write rejected for {owner_id}: {e.message}",
                    extra={"owner_id": owner_id, "error_code": e.error_code},
                )
                raise
            tracker.mark_saved(new_version)

        await self._publish(events)
        return tracker

    async def _publish(self, events: Sequence[DomainEvent]) -> None:
        for event in events:
            logger.info(
                f"{LOG_TAG_STAGE} {_describe(event)}",
                extra={
                    "owner_id": event.owner_id,
                    "stage_id": getattr(event, "stage_id", None),
                    "event_type": event.event_type,
                },
            )
            await self.event_bus.publish(event)
