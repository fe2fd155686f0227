"""
Tracker store adapters.
"""

from __future__ import annotations

from funding_stages.adapters.store.memory import InMemoryTrackerStore
from funding_stages.adapters.store.sqlite import SQLiteTrackerStore

__all__ = ["InMemoryTrackerStore", "SQLiteTrackerStore"]
