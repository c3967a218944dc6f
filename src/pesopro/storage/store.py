"""Key-value stores for whole cache records.

A record is a payload string plus the time it was stored. Both fields are
always written together in a single statement, so readers never observe a
value with a missing or mismatched timestamp.
"""

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timezone

from pesopro.logging import get_logger
from pesopro.storage.database import CacheDatabase

logger = get_logger(__name__)


def to_epoch_ms(moment: datetime) -> int:
    """Convert an aware datetime to UTC epoch milliseconds."""
    return round(moment.timestamp() * 1000)


def from_epoch_ms(value: int) -> datetime:
    """Convert UTC epoch milliseconds to an aware datetime."""
    return datetime.fromtimestamp(value / 1000, tz=timezone.utc)


@dataclass(frozen=True)
class StoredRecord:
    """Raw persisted record: serialized payload and its write time."""

    payload: str
    stored_at: datetime


class KeyValueStore(ABC):
    """Abstract persistent store with get/set/absent semantics."""

    @abstractmethod
    async def get(self, key: str) -> StoredRecord | None:
        """Return the record stored under key, or None if never written."""
        ...

    @abstractmethod
    async def set(self, key: str, payload: str, stored_at: datetime) -> None:
        """Replace the record under key with payload and stored_at together."""
        ...


class SQLiteKeyValueStore(KeyValueStore):
    """KeyValueStore backed by the cache_entries table.

    All SQL access goes through self._database.db (the aiosqlite Connection).
    """

    def __init__(self, database: CacheDatabase) -> None:
        self._database = database

    async def get(self, key: str) -> StoredRecord | None:
        cursor = await self._database.db.execute(
            "SELECT payload, stored_at_ms FROM cache_entries WHERE key = ?",
            (key,),
        )
        row = await cursor.fetchone()
        if row is None:
            return None
        return StoredRecord(payload=row[0], stored_at=from_epoch_ms(row[1]))

    async def set(self, key: str, payload: str, stored_at: datetime) -> None:
        await self._database.db.execute(
            "INSERT OR REPLACE INTO cache_entries (key, payload, stored_at_ms) "
            "VALUES (?, ?, ?)",
            (key, payload, to_epoch_ms(stored_at)),
        )
        await self._database.db.commit()
        logger.debug("cache_entry_written", key=key, bytes=len(payload))


class MemoryKeyValueStore(KeyValueStore):
    """Process-local store, used for ephemeral runs and tests."""

    def __init__(self) -> None:
        self._records: dict[str, StoredRecord] = {}
        self._lock = asyncio.Lock()

    async def get(self, key: str) -> StoredRecord | None:
        async with self._lock:
            return self._records.get(key)

    async def set(self, key: str, payload: str, stored_at: datetime) -> None:
        async with self._lock:
            self._records[key] = StoredRecord(payload=payload, stored_at=stored_at)
