"""Credential store — the only path from procedures to persistence.

Learn: Services depend on the UserStore interface, never on a session or
engine. The app picks an implementation at startup and injects it:
SqlUserStore for real databases, InMemoryUserStore for tests and dev.
"""

from userdesk.config import Settings
from userdesk.store.base import UserRecord, UserStore
from userdesk.store.memory import InMemoryUserStore
from userdesk.store.sql import SqlUserStore


def build_store(settings: Settings) -> UserStore:
    """Construct the store client described by settings.database_url."""
    if settings.uses_memory_store:
        return InMemoryUserStore()
    return SqlUserStore.from_settings(settings)


__all__ = [
    "InMemoryUserStore",
    "SqlUserStore",
    "UserRecord",
    "UserStore",
    "build_store",
]
