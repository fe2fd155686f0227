"""
Ports: the interfaces the tracker service talks to.

Stores and the event bus are injected as these ABCs; concrete
implementations live under funding_stages.adapters.
"""

from funding_stages.ports.event_bus import EventBusPort
from funding_stages.ports.store import TrackerStorePort

__all__ = ["TrackerStorePort", "EventBusPort"]
