"""
Event Bus Port: publish tracker events to in-process listeners.

The service publishes only after a mutation is stored, so listeners never
see a lifecycle change that was rolled back.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from typing import TypeVar

from funding_stages.domain.events import DomainEvent

E = TypeVar("E", bound=DomainEvent)


class EventBusPort(ABC):
    """
    Pub/sub for DomainEvent instances.

    Subscribing to DomainEvent itself receives every event.
    """

    @abstractmethod
    async def start(self) -> None:
        """Begin background delivery."""

    @abstractmethod
    async def stop(self) -> None:
        """Deliver what is queued, then stop background delivery."""

    @abstractmethod
    def subscribe(self, event_type: type[E], handler: Callable[[E], Awaitable[None]]) -> None: ...

    @abstractmethod
    def unsubscribe(self, event_type: type[E], handler: Callable[[E], Awaitable[None]]) -> None: ...

    @abstractmethod
    async def publish(self, event: DomainEvent) -> None:
        """Hand an event to every handler subscribed to its class (or to DomainEvent)."""

    @abstractmethod
    async def drain(self) -> None:
        """Wait until every published event has reached its handlers."""

    @abstractmethod
    def subscriber_count(self, event_type: type[DomainEvent]) -> int: ...
