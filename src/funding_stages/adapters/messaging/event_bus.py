"""
In-Memory Event Bus Implementation.

Simple pub/sub implementation for tracker events.
All handlers are async and exceptions are logged (not propagated).
"""

from __future__ import annotations

import asyncio
import contextlib
from collections import defaultdict
from collections.abc import Awaitable, Callable
from typing import TypeVar

from funding_stages.domain.events import DomainEvent
from funding_stages.observability.logging import get_logger
from funding_stages.ports.event_bus import EventBusPort

logger = get_logger(__name__)

E = TypeVar("E", bound=DomainEvent)
Handler = Callable[[DomainEvent], Awaitable[None]]


class InMemoryEventBus(EventBusPort):
    """
    In-memory async event bus.

    - Handlers subscribe per event class; subclasses of DomainEvent only
      reach handlers registered for their exact class or for DomainEvent
      itself (catch-all).
    - One failing handler does not affect the others.
    - Before start() (or after stop()) events are dispatched inline, so
      short-lived callers such as the CLI need no background task.
    """

    def __init__(self, queue_maxsize: int = 1000):
        self._handlers: dict[type[DomainEvent], set[Handler]] = defaultdict(set)
        self._running = False
        self._queue: asyncio.Queue[DomainEvent] = asyncio.Queue(maxsize=queue_maxsize)
        self._processor_task: asyncio.Task | None = None
        self.published_count = 0
        self.failed_handler_count = 0

    async def start(self) -> None:
        """Start the event bus processor."""
        if self._running:
            return

        self._running = True
        self._processor_task = asyncio.create_task(self._process_events(), name="event_bus_processor")
        logger.debug("Event bus started")

    async def stop(self) -> None:
        """Deliver queued events, then stop the processor."""
        if not self._running:
            return

        # Let the processor deliver everything already queued
        await self._queue.join()
        self._running = False

        if self._processor_task:
            self._processor_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._processor_task
            self._processor_task = None

        logger.debug("Event bus stopped")

    def subscribe(
        self,
        event_type: type[E],
        handler: Callable[[E], Awaitable[None]],
    ) -> None:
        """Subscribe to events of a specific type (DomainEvent = all events)."""
        self._handlers[event_type].add(handler)  # type: ignore[arg-type]
        logger.debug(f"Subscribed to {event_type.__name__}")

    def unsubscribe(
        self,
        event_type: type[E],
        handler: Callable[[E], Awaitable[None]],
    ) -> None:
        """Unsubscribe a handler from an event type."""
        self._handlers[event_type].discard(handler)  # type: ignore[arg-type]

    async def publish(self, event: DomainEvent) -> None:
        """
        Publish an event to all subscribers.

        Events are queued and processed asynchronously while running.
        """
        self.published_count += 1
        if not self._running:
            await self._dispatch(event)
            return

        await self._queue.put(event)

    async def drain(self) -> None:
        """Wait until every queued event has been dispatched."""
        if self._running:
            await self._queue.join()

    def subscriber_count(self, event_type: type[DomainEvent]) -> int:
        """Get number of subscribers for an event type."""
        return len(self._handlers.get(event_type, set()))

    async def _process_events(self) -> None:
        """Background task to process events."""
        while self._running:
            event = await self._queue.get()
            try:
                await self._dispatch(event)
            except Exception as e:
                logger.exception(f"Event processor error: {e}")
            finally:
                self._queue.task_done()

    async def _dispatch(self, event: DomainEvent) -> None:
        """Dispatch event to all registered handlers."""
        handlers = set(self._handlers.get(type(event), set()))
        if type(event) is not DomainEvent:
            handlers |= self._handlers.get(DomainEvent, set())

        if not handlers:
            logger.debug(f"No handlers for {event.event_type}")
            return

        async with asyncio.TaskGroup() as tg:
            for handler in handlers:
                tg.create_task(self._safe_call(handler, event))

    async def _safe_call(self, handler: Handler, event: DomainEvent) -> None:
        """Call handler with exception isolation."""
        try:
            await handler(event)
        except Exception as e:
            self.failed_handler_count += 1
            handler_name = getattr(handler, "__name__", repr(handler))
            logger.exception(f"Handler {handler_name} failed for {event.event_type}: {e}")
