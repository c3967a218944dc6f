"""Persistence layer: SQLite connection management and key-value record stores."""

from pesopro.storage.database import CacheDatabase
from pesopro.storage.store import (
    KeyValueStore,
    MemoryKeyValueStore,
    SQLiteKeyValueStore,
    StoredRecord,
)

__all__ = [
    "CacheDatabase",
    "KeyValueStore",
    "MemoryKeyValueStore",
    "SQLiteKeyValueStore",
    "StoredRecord",
]
