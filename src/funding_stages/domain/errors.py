"""
Domain Error Taxonomy.

All domain-specific exceptions with clear categorization.
"""

from __future__ import annotations

from typing import Any


class DomainError(Exception):
    """
    Base class for all domain errors.

    Includes structured error info for logging and debugging.
    """

    error_code: str = "DOMAIN_ERROR"

    def __init__(
        self,
        message: str,
        *,
        owner_id: str | None = None,
        stage_id: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.owner_id = owner_id
        self.stage_id = stage_id
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict for logging."""
        return {
            "error_code": self.error_code,
            "message": self.message,
            "owner_id": self.owner_id,
            "stage_id": self.stage_id,
            "details": self.details,
        }


# =============================================================================
# Validation Errors
# =============================================================================


class ValidationError(DomainError):
    """Invalid input or state."""

    error_code = "VALIDATION_ERROR"


# =============================================================================
# Stage Lifecycle Errors
# =============================================================================


class StageNotFoundError(DomainError):
    """Referenced stage id is not part of the tracker's stage list."""

    error_code = "STAGE_NOT_FOUND"


class InvalidStageTransitionError(DomainError):
    """Attempt to complete a stage that is not the lifecycle-current stage."""

    error_code = "INVALID_STAGE_TRANSITION"

    def __init__(
        self,
        message: str,
        *,
        status: str,
        current_stage_id: str | None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.status = status
        self.current_stage_id = current_stage_id
        self.details["status"] = status
        self.details["current_stage_id"] = current_stage_id


# Short names used throughout the incubator API layer.
StageNotFound = StageNotFoundError
InvalidStageTransition = InvalidStageTransitionError


# =============================================================================
# Tracker / Persistence Errors
# =============================================================================


class TrackerError(DomainError):
    """Base class for tracker lookup and persistence errors."""

    error_code = "TRACKER_ERROR"


class TrackerNotFoundError(TrackerError):
    """No tracker is stored for the owner."""

    error_code = "TRACKER_NOT_FOUND"


class TrackerAlreadyExistsError(TrackerError):
    """A tracker is already stored for the owner."""

    error_code = "TRACKER_ALREADY_EXISTS"


class ConcurrentModificationError(TrackerError):
    """Stored tracker changed since it was loaded (stale version)."""

    error_code = "CONCURRENT_MODIFICATION"

    def __init__(
        self,
        message: str,
        *,
        expected_version: int,
        actual_version: int | None = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.expected_version = expected_version
        self.actual_version = actual_version
        self.details["expected_version"] = expected_version
        self.details["actual_version"] = actual_version


class CorruptTrackerStateError(TrackerError):
    """Persisted stage statuses violate the positional lifecycle invariant."""

    error_code = "CORRUPT_TRACKER_STATE"
