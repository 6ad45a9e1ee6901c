"""
Store selection.

- STORE_BACKEND=memory forces the in-memory store.
- STORE_BACKEND=sql forces the SQL store (DATABASE_URL required).
- STORE_BACKEND=auto uses SQL when DATABASE_URL is set and reachable, else memory.
"""

import logging
import os

from habitstreak.core.config import settings
from habitstreak.features.store.base import EntityStore
from habitstreak.features.store.memory import InMemoryEntityStore

logger = logging.getLogger("habitstreak")

_store_instance = None


def get_entity_store() -> EntityStore:
    backend = (os.getenv("STORE_BACKEND") or settings.STORE_BACKEND or "auto").lower()
    if backend == "memory":
        return InMemoryEntityStore()

    from habitstreak.core.database import check_connection, create_all_tables, get_database_url
    from habitstreak.features.store.sql import SqlEntityStore

    if backend == "sql":
        create_all_tables()
        return SqlEntityStore()

    if get_database_url():
        if check_connection():
            create_all_tables()
            return SqlEntityStore()
        logger.warning("[store] database unavailable, falling back to in-memory")

    return InMemoryEntityStore()


def get_store() -> EntityStore:
    """Singleton store used by the services."""
    global _store_instance
    if _store_instance is None:
        _store_instance = get_entity_store()
    return _store_instance


def reset_store() -> None:
    """FOR TESTING ONLY - forces re-initialization on next get_store() call."""
    global _store_instance
    _store_instance = None


__all__ = ["EntityStore", "InMemoryEntityStore", "get_entity_store", "get_store", "reset_store"]
