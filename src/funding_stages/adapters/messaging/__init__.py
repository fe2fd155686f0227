"""Messaging adapters."""

from funding_stages.adapters.messaging.event_bus import InMemoryEventBus

__all__ = ["InMemoryEventBus"]
