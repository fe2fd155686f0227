"""
Canonical Domain Models.

Amounts are whole currency units (int). Progress is a manually edited
percentage and is NOT derived from raised/target.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Any

# =============================================================================
# ENUMS
# =============================================================================


class StageStatus(str, Enum):
    """Funding stage lifecycle status."""

    UPCOMING = "upcoming"
    CURRENT = "current"
    COMPLETED = "completed"


# =============================================================================
# VALUE OBJECTS & MODELS
# =============================================================================


@dataclass(frozen=True, slots=True)
class StageSeed:
    """Construction record for one stage of the catalog."""

    id: str
    name: str
    target_amount: int = 0
    description: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> StageSeed:
        """Parse camelCase or snake_case seed dicts."""
        target = data.get("target_amount", data.get("targetAmount", 0))
        return cls(
            id=str(data["id"]),
            name=str(data["name"]),
            target_amount=int(target or 0),
            description=str(data.get("description") or ""),
        )


def _raised_percentage(raised: int, target: int) -> float:
    return raised / (target or 1) * 100


@dataclass(slots=True)
class FundingStage:
    """
    A named phase in a startup's fundraising journey.

    Owned and mutated by FundingStageTracker only.
    """

    id: str
    name: str
    status: StageStatus = StageStatus.UPCOMING
    target_amount: int = 0
    raised_amount: int = 0
    progress: int = 0
    date: date | None = None
    description: str = ""

    @property
    def is_current(self) -> bool:
        return self.status == StageStatus.CURRENT

    @property
    def is_completed(self) -> bool:
        return self.status == StageStatus.COMPLETED

    @property
    def raised_percentage(self) -> float:
        """Raised vs target, unclamped (may exceed 100)."""
        return _raised_percentage(self.raised_amount, self.target_amount)

    def snapshot(self) -> StageSnapshot:
        return StageSnapshot(
            id=self.id,
            name=self.name,
            status=self.status,
            target_amount=self.target_amount,
            raised_amount=self.raised_amount,
            progress=self.progress,
            date=self.date,
            description=self.description,
        )


@dataclass(frozen=True, slots=True)
class StageSnapshot:
    """Immutable point-in-time copy of a FundingStage."""

    id: str
    name: str
    status: StageStatus
    target_amount: int
    raised_amount: int
    progress: int
    date: date | None
    description: str

    @property
    def raised_percentage(self) -> float:
        return _raised_percentage(self.raised_amount, self.target_amount)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "status": self.status.value,
            "target_amount": self.target_amount,
            "raised_amount": self.raised_amount,
            "progress": self.progress,
            "date": self.date.isoformat() if self.date else None,
            "description": self.description,
        }


@dataclass(frozen=True, slots=True)
class TrackerSnapshot:
    """
    Immutable view of a whole tracker.

    Returned by every tracker/service operation so callers never hold a
    reference to mutable tracker state.
    """

    owner_id: str
    stages: tuple[StageSnapshot, ...]
    current_stage_id: str | None
    selected_stage_id: str
    total_target_amount: int
    total_raised_amount: int
    version: int = 0

    @property
    def is_terminal(self) -> bool:
        """All stages completed, no lifecycle-current stage."""
        return self.current_stage_id is None

    @property
    def completed_count(self) -> int:
        return sum(1 for s in self.stages if s.status == StageStatus.COMPLETED)

    @property
    def current_stage(self) -> StageSnapshot | None:
        if self.current_stage_id is None:
            return None
        return self.stage(self.current_stage_id)

    @property
    def selected_stage(self) -> StageSnapshot:
        return self.stage(self.selected_stage_id)

    def stage(self, stage_id: str) -> StageSnapshot:
        for s in self.stages:
            if s.id == stage_id:
                return s
        raise KeyError(stage_id)

    def to_dict(self) -> dict[str, Any]:
        return {
            "owner_id": self.owner_id,
            "stages": [s.to_dict() for s in self.stages],
            "current_stage_id": self.current_stage_id,
            "selected_stage_id": self.selected_stage_id,
            "total_target_amount": self.total_target_amount,
            "total_raised_amount": self.total_raised_amount,
            "version": self.version,
        }
