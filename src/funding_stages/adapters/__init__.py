"""
Adapters: Concrete implementations of ports.

This layer contains the infrastructure integrations:
- Storage adapters (in-memory, SQLite)
- Messaging adapters (EventBus)
"""
