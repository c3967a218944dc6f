"""Generic single-slot cache with a freshness window.

Each TimestampedCache owns exactly one key of a KeyValueStore. The value
and its timestamp are serialized into one record and replaced wholesale on
every store. A store whose timestamp is older than the record already
persisted is rejected, so a slow superseded fetch can never overwrite a
newer result regardless of completion order.
"""

import asyncio
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Generic, TypeVar

from pesopro.logging import get_logger
from pesopro.storage.store import KeyValueStore

logger = get_logger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class CacheEntry(Generic[T]):
    """A decoded cache record."""

    value: T
    stored_at: datetime


class TimestampedCache(Generic[T]):
    """Single-record cache parameterized by value type and freshness window.

    Args:
        store: Persistent key-value store.
        key: The one key this cache owns.
        freshness_window: Maximum age before the record must be refreshed.
        encode: Serializes a value to the payload string.
        decode: Parses a payload string back to a value. May raise
            ValueError, KeyError or TypeError on corrupt payloads.
    """

    def __init__(
        self,
        store: KeyValueStore,
        key: str,
        freshness_window: timedelta,
        encode: Callable[[T], str],
        decode: Callable[[str], T],
    ) -> None:
        self._store = store
        self._key = key
        self._freshness_window = freshness_window
        self._encode = encode
        self._decode = decode
        self._lock = asyncio.Lock()

    @property
    def key(self) -> str:
        return self._key

    @property
    def freshness_window(self) -> timedelta:
        return self._freshness_window

    async def load(self) -> CacheEntry[T] | None:
        """Return the cached entry, or None if never written or unreadable."""
        record = await self._store.get(self._key)
        if record is None:
            return None
        try:
            value = self._decode(record.payload)
        except (ValueError, KeyError, TypeError):
            logger.warning("cache_payload_unreadable", key=self._key, exc_info=True)
            return None
        return CacheEntry(value=value, stored_at=record.stored_at)

    def is_entry_fresh(self, entry: CacheEntry[T] | None, now: datetime) -> bool:
        """True iff entry exists and ``now - stored_at`` is inside the window."""
        if entry is None:
            return False
        return now - entry.stored_at < self._freshness_window

    async def is_fresh(self, now: datetime) -> bool:
        """Load the current record and report whether it is fresh at ``now``."""
        return self.is_entry_fresh(await self.load(), now)

    async def store(self, value: T, now: datetime) -> bool:
        """Replace the record with value stamped ``now``.

        Returns False (and writes nothing) when the persisted record is
        newer than ``now``.
        """
        payload = self._encode(value)
        async with self._lock:
            existing = await self._store.get(self._key)
            if existing is not None and existing.stored_at > now:
                logger.info(
                    "cache_write_superseded",
                    key=self._key,
                    existing_stored_at=existing.stored_at.isoformat(),
                    rejected_stored_at=now.isoformat(),
                )
                return False
            await self._store.set(self._key, payload, now)
        logger.debug("cache_stored", key=self._key, stored_at=now.isoformat())
        return True
