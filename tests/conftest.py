"""
Shared fixtures for funding-stage tests.
"""

from __future__ import annotations

import pytest

from funding_stages.adapters.messaging.event_bus import InMemoryEventBus
from funding_stages.adapters.store.memory import InMemoryTrackerStore
from funding_stages.adapters.store.sqlite import SQLiteTrackerStore
from funding_stages.config.settings import DatabaseSettings, Settings
from funding_stages.domain.models import StageSeed
from funding_stages.domain.tracker import FundingStageTracker
from funding_stages.services.tracker_service import FundingTrackerService


@pytest.fixture
def seeds() -> list[StageSeed]:
    """The three-stage catalog used throughout the lifecycle scenarios."""
    return [
        StageSeed(id="pre-seed", name="Pre-seed", target_amount=250_000, description="Prototype"),
        StageSeed(id="seed", name="Seed", target_amount=1_000_000, description="Traction"),
        StageSeed(id="series-a", name="Series A", target_amount=5_000_000, description="Scale"),
    ]


@pytest.fixture
def tracker(seeds) -> FundingStageTracker:
    return FundingStageTracker("startup-1", seeds)


@pytest.fixture
def settings() -> Settings:
    return Settings(testing_mode=True, database=DatabaseSettings(path=":memory:", wal_mode=False))


@pytest.fixture
async def memory_store():
    store = InMemoryTrackerStore()
    await store.initialize()
    yield store
    await store.close()


@pytest.fixture
async def sqlite_store(settings):
    store = SQLiteTrackerStore(settings)
    await store.initialize()
    yield store
    await store.close()


@pytest.fixture
def event_bus() -> InMemoryEventBus:
    return InMemoryEventBus()


@pytest.fixture
def service(settings, memory_store, event_bus) -> FundingTrackerService:
    return FundingTrackerService(settings, memory_store, event_bus)
