"""
SQLite tracker store package (facade).
"""

from __future__ import annotations

from funding_stages.adapters.store.sqlite.store import SQLiteTrackerStore

__all__ = ["SQLiteTrackerStore"]
