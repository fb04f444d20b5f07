# brandsync/store/__init__.py
"""
Token store module initialization.

Provides the token document models, the storage interface, the SQLite and
in-memory implementations, and the client used by surfaces and the builder.
"""

from typing import Optional

from ..settings import settings
from .models import LegacyFields, TokenDocument
from .storage_interfaces import AbstractTokenStore
from .sqlite_token_store import SQLiteTokenStore, get_sqlite_token_store
from .memory_token_store import InMemoryTokenStore
from .client import TokenStoreClient

_memory_token_store_instance: Optional[InMemoryTokenStore] = None


async def get_token_store() -> AbstractTokenStore:
    """Return the process-wide store selected by ``settings.storage_backend``."""
    global _memory_token_store_instance
    backend = settings.storage_backend.lower()
    if backend == "sqlite":
        return await get_sqlite_token_store()
    if backend == "memory":
        if _memory_token_store_instance is None:
            _memory_token_store_instance = InMemoryTokenStore()
            await _memory_token_store_instance.initialize()
        return _memory_token_store_instance
    raise ValueError(f"Unknown storage backend '{settings.storage_backend}'.")


__all__ = [
    # Data models
    "LegacyFields",
    "TokenDocument",
    # Storage layer abstractions and implementations
    "AbstractTokenStore",
    "SQLiteTokenStore",
    "get_sqlite_token_store",
    "InMemoryTokenStore",
    "get_token_store",
    # Client
    "TokenStoreClient",
]
