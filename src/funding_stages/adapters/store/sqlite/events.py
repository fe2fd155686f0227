"""
Tracker event storage helpers.
"""

from __future__ import annotations

import json
from collections.abc import Sequence
from datetime import datetime
from typing import Any

from funding_stages.domain.events import DomainEvent, event_from_record
from funding_stages.observability.logging import get_logger

logger = get_logger(__name__)


def _parse_dt(value: str) -> datetime:
    # SQLite stores ISO strings; normalize "Z" to "+00:00" for fromisoformat.
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


async def _insert_event_rows(self, events: Sequence[DomainEvent]) -> None:
    """Insert events inside the caller's transaction."""
    if not events:
        return
    await self._conn.executemany(
        """
        INSERT INTO tracker_events (event_id, owner_id, event_type, timestamp, payload)
        VALUES (?, ?, ?, ?, ?)
        """,
        [
            (
                event.event_id,
                event.owner_id,
                event.event_type,
                event.timestamp.isoformat(),
                json.dumps(event.payload(), default=str),
            )
            for event in events
        ],
    )


async def list_events(
    self,
    owner_id: str | None = None,
    event_type: str | None = None,
    limit: int = 100,
) -> list[DomainEvent]:
    """List events with optional filters, newest first."""
    if not self._conn:
        return []

    conditions: list[str] = []
    params: list[Any] = []

    if owner_id:
        conditions.append("owner_id = ?")
        params.append(owner_id)
    if event_type:
        conditions.append("event_type = ?")
        params.append(event_type)

    where = " AND ".join(conditions) if conditions else "1=1"
    params.append(limit)

    cursor = await self._conn.execute(
        f"""
        SELECT event_id, owner_id, event_type, timestamp, payload
        FROM tracker_events
        WHERE {where}
        ORDER BY seq DESC
        LIMIT ?
        """,
        params,
    )
    rows = await cursor.fetchall()

    events: list[DomainEvent] = []
    for event_id, row_owner_id, row_type, ts_str, payload_str in rows:
        try:
            payload = json.loads(payload_str) if payload_str else {}
        except json.JSONDecodeError:
            logger.warning(f"Unreadable payload for event {event_id} ({row_type})")
            payload = {}

        events.append(
            event_from_record(
                row_type,
                owner_id=row_owner_id,
                event_id=event_id,
                timestamp=_parse_dt(ts_str),
                payload=payload,
            )
        )

    return events
