"""
Funding Stage Tracker.

Owns the ordered stage sequence of one startup and its lifecycle
invariant: stages before the current one are completed, stages after it
are upcoming, and there is exactly one current stage until every stage is
completed (terminal state, no current stage).

The tracker is synchronous and does no I/O. Every mutation either fully
applies or raises before touching state. Events describing each mutation
are buffered and drained by the caller (see `pull_events`).
"""

from __future__ import annotations

import dataclasses
from collections.abc import Sequence
from datetime import UTC, date, datetime
from typing import Any

from funding_stages.domain.errors import (
    CorruptTrackerStateError,
    InvalidStageTransitionError,
    StageNotFoundError,
    ValidationError,
)
from funding_stages.domain.events import (
    DomainEvent,
    FundingAmountsUpdated,
    FundraisingCompleted,
    StageCompleted,
    StageProgressUpdated,
    StageSelected,
    TrackerCreated,
)
from funding_stages.domain.models import (
    FundingStage,
    StageSeed,
    StageSnapshot,
    StageStatus,
    TrackerSnapshot,
)
from funding_stages.domain.rules import (
    RuleResult,
    check_aggregates_reconciled,
    check_positional_order,
    clamp_amount,
    clamp_progress,
    is_full_progress,
    stage_sums,
    validate_seeds,
)


def _today() -> date:
    return datetime.now(UTC).date()


class FundingStageTracker:
    """
    Funding-stage lifecycle state machine for one owner (startup).

    upcoming --(predecessor completes)--> current --(complete_stage)--> completed
    """

    def __init__(self, owner_id: str, seeds: Sequence[StageSeed]):
        if not owner_id or not owner_id.strip():
            raise ValidationError("owner_id is required")
        validate_seeds(seeds)

        stages = [
            FundingStage(
                id=seed.id,
                name=seed.name,
                status=StageStatus.CURRENT if i == 0 else StageStatus.UPCOMING,
                target_amount=seed.target_amount,
                description=seed.description,
            )
            for i, seed in enumerate(seeds)
        ]
        now = datetime.now(UTC)
        self._init_state(
            owner_id=owner_id,
            stages=stages,
            selected_stage_id=stages[0].id,
            total_target_amount=0,
            total_raised_amount=0,
            version=0,
            created_at=now,
            updated_at=now,
        )
        self._emit(
            TrackerCreated(
                stage_ids=tuple(s.id for s in stages),
                current_stage_id=stages[0].id,
            )
        )

    def _init_state(
        self,
        *,
        owner_id: str,
        stages: list[FundingStage],
        selected_stage_id: str,
        total_target_amount: int,
        total_raised_amount: int,
        version: int,
        created_at: datetime,
        updated_at: datetime,
    ) -> None:
        self.owner_id = owner_id
        self._stages = stages
        self._index = {stage.id: i for i, stage in enumerate(stages)}
        self._current_index: int | None = next(
            (i for i, stage in enumerate(stages) if stage.status == StageStatus.CURRENT),
            None,
        )
        self._selected_id = selected_stage_id
        self._total_target_amount = total_target_amount
        self._total_raised_amount = total_raised_amount
        self.version = version
        self.created_at = created_at
        self.updated_at = updated_at
        self._pending_events: list[DomainEvent] = []

    @classmethod
    def restore(
        cls,
        owner_id: str,
        stages: list[FundingStage],
        *,
        selected_stage_id: str | None = None,
        total_target_amount: int = 0,
        total_raised_amount: int = 0,
        version: int = 0,
        created_at: datetime | None = None,
        updated_at: datetime | None = None,
    ) -> FundingStageTracker:
        """
        Rebuild a tracker from persisted state.

        Raises CorruptTrackerStateError if the stored statuses break the
        positional invariant or ids are duplicated.
        """
        result = check_positional_order(s.status for s in stages)
        if not result.passed:
            raise CorruptTrackerStateError(
                f"Stored tracker for {owner_id!r} is inconsistent: {result.reason}",
                owner_id=owner_id,
            )
        ids = [s.id for s in stages]
        if len(set(ids)) != len(ids):
            raise CorruptTrackerStateError(
                f"Stored tracker for {owner_id!r} has duplicate stage ids",
                owner_id=owner_id,
            )
        if selected_stage_id not in ids:
            selected_stage_id = ids[0]

        now = datetime.now(UTC)
        tracker = cls.__new__(cls)
        tracker._init_state(
            owner_id=owner_id,
            stages=list(stages),
            selected_stage_id=selected_stage_id,
            total_target_amount=total_target_amount,
            total_raised_amount=total_raised_amount,
            version=version,
            created_at=created_at or now,
            updated_at=updated_at or now,
        )
        return tracker

    # =========================================================================
    # Queries
    # =========================================================================

    @property
    def current_stage_id(self) -> str | None:
        """Lifecycle-current stage id (None in the terminal state)."""
        if self._current_index is None:
            return None
        return self._stages[self._current_index].id

    @property
    def selected_stage_id(self) -> str:
        """Selected-for-viewing stage id."""
        return self._selected_id

    @property
    def total_target_amount(self) -> int:
        return self._total_target_amount

    @property
    def total_raised_amount(self) -> int:
        return self._total_raised_amount

    @property
    def is_terminal(self) -> bool:
        return self._current_index is None

    def list_stages(self) -> list[StageSnapshot]:
        return [stage.snapshot() for stage in self._stages]

    def get_stage(self, stage_id: str) -> StageSnapshot:
        return self._require(stage_id).snapshot()

    def get_current_stage(self) -> StageSnapshot | None:
        if self._current_index is None:
            return None
        return self._stages[self._current_index].snapshot()

    def get_selected_stage(self) -> StageSnapshot:
        return self._require(self._selected_id).snapshot()

    def snapshot(self) -> TrackerSnapshot:
        return TrackerSnapshot(
            owner_id=self.owner_id,
            stages=tuple(stage.snapshot() for stage in self._stages),
            current_stage_id=self.current_stage_id,
            selected_stage_id=self._selected_id,
            total_target_amount=self._total_target_amount,
            total_raised_amount=self._total_raised_amount,
            version=self.version,
        )

    def stages_for_storage(self) -> list[FundingStage]:
        """Ordered mutable stages, for store adapters only."""
        return self._stages

    def completion_summary(self) -> tuple[int, int]:
        """(completed, total), as shown in the stage header."""
        completed = sum(1 for stage in self._stages if stage.is_completed)
        return completed, len(self._stages)

    def milestones(self) -> list[dict[str, Any]]:
        """Milestone rows for the startup overview."""
        return [
            {
                "stage": stage.name,
                "status": stage.status.value,
                "date": stage.date.isoformat() if stage.date else None,
                "progress": stage.progress,
            }
            for stage in self._stages
        ]

    def stage_sums(self) -> tuple[int, int]:
        return stage_sums(self._stages)

    def aggregates_reconciled(self) -> RuleResult:
        return check_aggregates_reconciled(
            self._stages, self._total_target_amount, self._total_raised_amount
        )

    # =========================================================================
    # Mutations
    # =========================================================================

    def update_stage_progress(self, stage_id: str, progress: int, raised_amount: int) -> StageSnapshot:
        """
        Set a stage's progress and raised amount.

        progress is clamped to [0, 100] and raised_amount to >= 0.
        Status and the aggregate totals are left untouched.
        """
        stage = self._require(stage_id)
        new_progress = clamp_progress(progress)
        new_raised = clamp_amount(raised_amount)

        previous = (stage.progress, stage.raised_amount)
        stage.progress = new_progress
        stage.raised_amount = new_raised
        self._touch()
        self._emit(
            StageProgressUpdated(
                stage_id=stage_id,
                progress=new_progress,
                raised_amount=new_raised,
                previous_progress=previous[0],
                previous_raised_amount=previous[1],
            )
        )
        return stage.snapshot()

    def complete_stage(self, stage_id: str, *, on: date | None = None) -> TrackerSnapshot:
        """
        Complete the lifecycle-current stage and advance to its successor.

        Completing the last stage leaves the tracker with no current stage.
        """
        stage = self._require(stage_id)
        if stage.status != StageStatus.CURRENT:
            raise InvalidStageTransitionError(
                f"Cannot complete stage {stage_id!r}: status is {stage.status.value}, "
                f"current stage is {self.current_stage_id!r}",
                owner_id=self.owner_id,
                stage_id=stage_id,
                status=stage.status.value,
                current_stage_id=self.current_stage_id,
            )

        index = self._index[stage_id]
        completed_on = on or _today()
        stage.status = StageStatus.COMPLETED
        stage.progress = 100
        stage.date = completed_on

        next_stage_id: str | None = None
        if index + 1 < len(self._stages):
            successor = self._stages[index + 1]
            successor.status = StageStatus.CURRENT
            self._current_index = index + 1
            next_stage_id = successor.id
        else:
            self._current_index = None

        self._touch()
        self._emit(
            StageCompleted(
                stage_id=stage_id,
                completed_on=completed_on.isoformat(),
                next_stage_id=next_stage_id,
            )
        )
        if next_stage_id is None:
            self._emit(FundraisingCompleted(last_stage_id=stage_id))
        return self.snapshot()

    def set_current_stage(self, stage_id: str) -> StageSnapshot:
        """
        Change the selected-for-viewing stage.

        View selection only: no stage's lifecycle status changes.
        """
        stage = self._require(stage_id)
        previous = self._selected_id
        if previous != stage_id:
            self._selected_id = stage_id
            self._touch()
            self._emit(StageSelected(stage_id=stage_id, previous_stage_id=previous))
        return stage.snapshot()

    select_stage = set_current_stage

    def update_funding_amounts(self, total_target: int, total_raised: int) -> TrackerSnapshot:
        """
        Set the aggregate totals directly (each clamped to >= 0).

        The totals are not reconciled against per-stage sums.
        """
        self._total_target_amount = clamp_amount(total_target)
        self._total_raised_amount = clamp_amount(total_raised)
        self._touch()
        self._emit(
            FundingAmountsUpdated(
                total_target_amount=self._total_target_amount,
                total_raised_amount=self._total_raised_amount,
            )
        )
        return self.snapshot()

    def apply_stage_edit(
        self,
        stage_id: str,
        progress: int,
        raised_amount: int,
        *,
        total_target: int | None = None,
        total_raised: int | None = None,
        auto_complete: bool = True,
        on: date | None = None,
    ) -> TrackerSnapshot:
        """
        Apply the dashboard's stage edit form.

        Totals first (when given), then progress/raised, then completion
        when progress reached 100 on the lifecycle-current stage. A
        non-current stage is never auto-completed.
        """
        stage = self._require(stage_id)

        if total_target is not None or total_raised is not None:
            self.update_funding_amounts(
                self._total_target_amount if total_target is None else total_target,
                self._total_raised_amount if total_raised is None else total_raised,
            )
        self.update_stage_progress(stage_id, progress, raised_amount)

        if auto_complete and stage.is_current and is_full_progress(stage.progress):
            return self.complete_stage(stage_id, on=on)
        return self.snapshot()

    # =========================================================================
    # Events
    # =========================================================================

    def pull_events(self) -> list[DomainEvent]:
        """Drain buffered events (oldest first)."""
        events, self._pending_events = self._pending_events, []
        return events

    @property
    def has_pending_events(self) -> bool:
        return bool(self._pending_events)

    def mark_saved(self, version: int) -> None:
        """Record the version assigned by the store after a successful save."""
        self.version = version

    # =========================================================================
    # Internals
    # =========================================================================

    def _require(self, stage_id: str) -> FundingStage:
        index = self._index.get(stage_id)
        if index is None:
            raise StageNotFoundError(
                f"Stage {stage_id!r} does not exist",
                owner_id=self.owner_id,
                stage_id=stage_id,
            )
        return self._stages[index]

    def _touch(self) -> None:
        self.updated_at = datetime.now(UTC)

    def _emit(self, event: DomainEvent) -> None:
        # Events are built without an owner; stamp it here.
        if event.owner_id != self.owner_id:
            event = dataclasses.replace(event, owner_id=self.owner_id)
        self._pending_events.append(event)

    def __repr__(self) -> str:
        completed, total = self.completion_summary()
        return (
            f"FundingStageTracker(owner_id={self.owner_id!r}, current={self.current_stage_id!r}, "
            f"completed={completed}/{total}, version={self.version})"
        )
