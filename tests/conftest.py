"""Shared test fixtures for the converter service."""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

import pytest

from pesopro.cache.history_cache import HistoryCache
from pesopro.cache.rate_cache import RateCache
from pesopro.config import AppSettings, StorageSettings
from pesopro.models import HistoryPoint, Rate
from pesopro.providers.base import HistoryProvider, RateProvider
from pesopro.storage.store import MemoryKeyValueStore

T0 = datetime(2024, 10, 18, 12, 0, tzinfo=timezone.utc)


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime = T0) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


def _make_history(rates: list[float], end: str = "2024-10-18") -> list[HistoryPoint]:
    """Consecutive daily points ending on ``end``."""
    last = datetime.fromisoformat(end).date()
    return [
        HistoryPoint(
            date=(last - timedelta(days=len(rates) - 1 - i)).isoformat(),
            rate=rate,
        )
        for i, rate in enumerate(rates)
    ]


@pytest.fixture
def make_history():
    """Factory for consecutive daily HistoryPoint series."""
    return _make_history


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def memory_store() -> MemoryKeyValueStore:
    return MemoryKeyValueStore()


@pytest.fixture
def rate_cache(memory_store: MemoryKeyValueStore) -> RateCache:
    return RateCache(memory_store)


@pytest.fixture
def history_cache(memory_store: MemoryKeyValueStore) -> HistoryCache:
    return HistoryCache(memory_store)


@pytest.fixture
def mock_rate_provider() -> AsyncMock:
    """RateProvider returning 19.87 observed at T0."""
    provider = AsyncMock(spec=RateProvider)
    provider.fetch.return_value = Rate(value=19.87, observed_at=T0)
    return provider


@pytest.fixture
def mock_history_provider() -> AsyncMock:
    """HistoryProvider returning three days of rates."""
    provider = AsyncMock(spec=HistoryProvider)
    provider.fetch.return_value = _make_history([19.5, 19.7, 19.6])
    return provider


@pytest.fixture
def mock_settings() -> AppSettings:
    """Return AppSettings with in-memory storage and default converter values."""
    return AppSettings(
        log_level="DEBUG",
        storage=StorageSettings(backend="memory"),
    )
