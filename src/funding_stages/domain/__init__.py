"""
Domain Layer: funding stages, the lifecycle tracker, rules and events.

This layer has NO external dependencies (no DB types, no settings).
"""

from funding_stages.domain.catalog import DEFAULT_STAGE_CATALOG, slugify_stage_id
from funding_stages.domain.errors import (
    ConcurrentModificationError,
    CorruptTrackerStateError,
    DomainError,
    InvalidStageTransition,
    InvalidStageTransitionError,
    StageNotFound,
    StageNotFoundError,
    TrackerAlreadyExistsError,
    TrackerNotFoundError,
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
from funding_stages.domain.tracker import FundingStageTracker

__all__ = [
    # Enums
    "StageStatus",
    # Models
    "StageSeed",
    "FundingStage",
    "StageSnapshot",
    "TrackerSnapshot",
    "FundingStageTracker",
    # Catalog
    "DEFAULT_STAGE_CATALOG",
    "slugify_stage_id",
    # Events
    "DomainEvent",
    "TrackerCreated",
    "StageProgressUpdated",
    "StageCompleted",
    "FundraisingCompleted",
    "StageSelected",
    "FundingAmountsUpdated",
    # Errors
    "DomainError",
    "ValidationError",
    "StageNotFoundError",
    "StageNotFound",
    "InvalidStageTransitionError",
    "InvalidStageTransition",
    "TrackerNotFoundError",
    "TrackerAlreadyExistsError",
    "ConcurrentModificationError",
    "CorruptTrackerStateError",
]
