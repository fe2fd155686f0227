"""
Milestone announcements.

Listens on the event bus and prints a one-line notice when a stage
completes or the last stage closes the fundraising.
"""

from __future__ import annotations

from rich.console import Console

from funding_stages.domain.events import DomainEvent, FundraisingCompleted, StageCompleted
from funding_stages.observability.logging import get_logger
from funding_stages.ports.event_bus import EventBusPort

logger = get_logger(__name__)


class MilestoneAnnouncer:
    """Event-driven milestone notices for the terminal."""

    def __init__(self, event_bus: EventBusPort, console: Console):
        self.event_bus = event_bus
        self.console = console
        self._running = False
        self._handlers = {
            StageCompleted: self._on_stage_completed,
            FundraisingCompleted: self._on_fundraising_completed,
        }

    def start(self) -> None:
        if self._running:
            return
        for event_type in self._handlers:
            self.event_bus.subscribe(event_type, self._handle_event)
        self._running = True

    def stop(self) -> None:
        if not self._running:
            return
        for event_type in self._handlers:
            self.event_bus.unsubscribe(event_type, self._handle_event)
        self._running = False

    async def _handle_event(self, event: DomainEvent) -> None:
        handler = self._handlers.get(type(event))
        if handler:
            await handler(event)

    async def _on_stage_completed(self, event: StageCompleted) -> None:
        line = f"[green]Milestone:[/green] {event.owner_id} completed {event.stage_id} on {event.completed_on}"
        if event.next_stage_id:
            line += f", now raising {event.next_stage_id}"
        self.console.print(line)
        logger.info(f"[STAGE] Announced {event.owner_id}/{event.stage_id} completion")

    async def _on_fundraising_completed(self, event: FundraisingCompleted) -> None:
        self.console.print(f"[bold green]Fundraising complete[/bold green] for {event.owner_id}")
