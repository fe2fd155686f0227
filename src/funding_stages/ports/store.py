"""
Tracker Store Port: Abstract interface for tracker persistence.

The tracker defines the transition logic; a store owns durability.
Trackers are keyed by owner (startup) id.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence

from funding_stages.domain.events import DomainEvent
from funding_stages.domain.tracker import FundingStageTracker


class TrackerStorePort(ABC):
    """
    Abstract interface for tracker storage.

    Implementations can be in-memory, SQLite, or any other storage.
    Every write is a single transaction: either the tracker row, all of its
    stage rows and the accompanying events are stored, or nothing is.
    """

    # =========================================================================
    # Lifecycle
    # =========================================================================

    @abstractmethod
    async def initialize(self) -> None:
        """Initialize the store (create tables, etc)."""
        ...

    @abstractmethod
    async def close(self) -> None:
        """Close connections and cleanup."""
        ...

    # =========================================================================
    # Tracker CRUD
    # =========================================================================

    @abstractmethod
    async def create_tracker(
        self,
        tracker: FundingStageTracker,
        events: Sequence[DomainEvent] = (),
    ) -> int:
        """
        Store a new tracker.

        Raises TrackerAlreadyExistsError if the owner already has one.
        Returns the stored version.
        """
        ...

    @abstractmethod
    async def get_tracker(self, owner_id: str) -> FundingStageTracker | None:
        """Load the owner's tracker, or None if none is stored."""
        ...

    @abstractmethod
    async def save_tracker(
        self,
        tracker: FundingStageTracker,
        expected_version: int,
        events: Sequence[DomainEvent] = (),
    ) -> int:
        """
        Persist a mutated tracker.

        Args:
            tracker: The tracker after the mutation.
            expected_version: The version the tracker was loaded at.
            events: Events produced by the mutation (audit trail).

        Raises:
            TrackerNotFoundError: owner has no stored tracker.
            ConcurrentModificationError: stored version != expected_version.

        Returns:
            The new version.
        """
        ...

    @abstractmethod
    async def delete_tracker(self, owner_id: str) -> bool:
        """Delete the owner's tracker and its events. True if one existed."""
        ...

    @abstractmethod
    async def list_owner_ids(self) -> list[str]:
        """All owner ids with a stored tracker, sorted."""
        ...

    # =========================================================================
    # Events (Audit Trail)
    # =========================================================================

    @abstractmethod
    async def list_events(
        self,
        owner_id: str | None = None,
        event_type: str | None = None,
        limit: int = 100,
    ) -> list[DomainEvent]:
        """
        List stored events, newest first, with optional filters.
        """
        ...
