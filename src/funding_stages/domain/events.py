"""
Domain Events.

Events are immutable records of things that happened to a tracker.
They are used for:
- Audit logging (persisted alongside the tracker)
- Inter-service communication (published on the event bus)
"""

from __future__ import annotations

import dataclasses
import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any


@dataclass(frozen=True, slots=True)
class DomainEvent:
    """Base class for all domain events."""

    owner_id: str = ""
    event_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))

    @property
    def event_type(self) -> str:
        return self.__class__.__name__

    def payload(self) -> dict[str, Any]:
        """Event-specific fields (everything except the envelope)."""
        data = dataclasses.asdict(self)
        for key in ("owner_id", "event_id", "timestamp"):
            data.pop(key, None)
        return data


@dataclass(frozen=True, slots=True)
class TrackerCreated(DomainEvent):
    """Emitted when a tracker is seeded for an owner."""

    stage_ids: tuple[str, ...] = ()
    current_stage_id: str = ""


@dataclass(frozen=True, slots=True)
class StageProgressUpdated(DomainEvent):
    """Emitted on every progress/raised edit (values are post-clamp)."""

    stage_id: str = ""
    progress: int = 0
    raised_amount: int = 0
    previous_progress: int = 0
    previous_raised_amount: int = 0


@dataclass(frozen=True, slots=True)
class StageCompleted(DomainEvent):
    """Emitted when the lifecycle-current stage completes."""

    stage_id: str = ""
    completed_on: str = ""
    next_stage_id: str | None = None


@dataclass(frozen=True, slots=True)
class FundraisingCompleted(DomainEvent):
    """Emitted when the last stage completes (terminal state)."""

    last_stage_id: str = ""


@dataclass(frozen=True, slots=True)
class StageSelected(DomainEvent):
    """Emitted when the selected-for-viewing stage changes."""

    stage_id: str = ""
    previous_stage_id: str = ""


@dataclass(frozen=True, slots=True)
class FundingAmountsUpdated(DomainEvent):
    """Emitted when the aggregate totals are set directly."""

    total_target_amount: int = 0
    total_raised_amount: int = 0


EVENT_TYPES: dict[str, type[DomainEvent]] = {
    cls.__name__: cls
    for cls in (
        TrackerCreated,
        StageProgressUpdated,
        StageCompleted,
        FundraisingCompleted,
        StageSelected,
        FundingAmountsUpdated,
    )
}


def event_from_record(
    event_type: str,
    *,
    owner_id: str,
    event_id: str,
    timestamp: datetime,
    payload: dict[str, Any],
) -> DomainEvent:
    """Rebuild a stored event; unknown types fall back to the base class."""
    cls = EVENT_TYPES.get(event_type, DomainEvent)
    known = {f.name for f in dataclasses.fields(cls)}
    kwargs = {k: v for k, v in payload.items() if k in known}
    if "stage_ids" in kwargs:
        kwargs["stage_ids"] = tuple(kwargs["stage_ids"])
    return cls(owner_id=owner_id, event_id=event_id, timestamp=timestamp, **kwargs)
