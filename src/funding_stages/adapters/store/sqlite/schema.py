"""
SQLite schema.
"""

from __future__ import annotations

SCHEMA_VERSION = 1

SCHEMA_SQL = """
-- One row per owner (startup)
CREATE TABLE IF NOT EXISTS trackers (
    owner_id TEXT PRIMARY KEY,
    selected_stage_id TEXT NOT NULL,
    total_target_amount INTEGER NOT NULL DEFAULT 0,
    total_raised_amount INTEGER NOT NULL DEFAULT 0,
    version INTEGER NOT NULL DEFAULT 1,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

-- Ordered stages of each tracker
CREATE TABLE IF NOT EXISTS funding_stages (
    owner_id TEXT NOT NULL REFERENCES trackers(owner_id) ON DELETE CASCADE,
    position INTEGER NOT NULL,
    stage_id TEXT NOT NULL,
    name TEXT NOT NULL,
    status TEXT NOT NULL,
    target_amount INTEGER NOT NULL DEFAULT 0,
    raised_amount INTEGER NOT NULL DEFAULT 0,
    progress INTEGER NOT NULL DEFAULT 0,
    completed_on TEXT,
    description TEXT NOT NULL DEFAULT '',
    PRIMARY KEY (owner_id, stage_id),
    UNIQUE (owner_id, position)
);

-- Audit trail
CREATE TABLE IF NOT EXISTS tracker_events (
    seq INTEGER PRIMARY KEY AUTOINCREMENT,
    event_id TEXT NOT NULL UNIQUE,
    owner_id TEXT NOT NULL,
    event_type TEXT NOT NULL,
    timestamp TEXT NOT NULL,
    payload TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_tracker_events_owner ON tracker_events(owner_id);
CREATE INDEX IF NOT EXISTS idx_tracker_events_type ON tracker_events(event_type);

CREATE TABLE IF NOT EXISTS schema_info (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL
);
"""
