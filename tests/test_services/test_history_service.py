"""Tests for HistoryService caching and fetch window."""

from datetime import date, timedelta
from unittest.mock import AsyncMock

import pytest

from pesopro.cache.history_cache import HistoryCache
from pesopro.chart.curve import CurveBuilder
from pesopro.exceptions import HistoryUnavailable, ProviderError
from pesopro.models import HistoryPoint
from pesopro.services.history_service import HistoryService, history_window


class TestHistoryWindow:
    def test_fifteen_days_inclusive(self) -> None:
        start, end = history_window(date(2024, 10, 18))
        assert start == date(2024, 10, 3)
        assert end == date(2024, 10, 18)

    def test_crosses_month_boundary(self) -> None:
        start, _ = history_window(date(2024, 3, 5), 15)
        assert start == date(2024, 2, 19)


class TestGetHistory:
    @pytest.mark.asyncio
    async def test_fresh_cache_skips_network(
        self, history_cache: HistoryCache, mock_history_provider: AsyncMock, clock, make_history
    ) -> None:
        await history_cache.store(make_history([19.1, 19.2]), clock.now - timedelta(hours=2))
        service = HistoryService(history_cache, mock_history_provider, clock=clock)

        points = await service.get_history()

        assert [p.rate for p in points] == [19.1, 19.2]
        mock_history_provider.fetch.assert_not_called()

    @pytest.mark.asyncio
    async def test_stale_cache_fetches_trailing_window(
        self, history_cache: HistoryCache, mock_history_provider: AsyncMock, clock, make_history
    ) -> None:
        await history_cache.store(make_history([19.1, 19.2]), clock.now - timedelta(hours=25))
        service = HistoryService(history_cache, mock_history_provider, clock=clock)

        points = await service.get_history()

        mock_history_provider.fetch.assert_awaited_once_with(
            date(2024, 10, 3), date(2024, 10, 18)
        )
        assert [p.rate for p in points] == [19.5, 19.7, 19.6]

        entry = await history_cache.load()
        assert [p.rate for p in entry.value] == [19.5, 19.7, 19.6]
        assert entry.stored_at == clock.now

    @pytest.mark.asyncio
    async def test_explicit_today_sets_range(
        self, history_cache: HistoryCache, mock_history_provider: AsyncMock, clock
    ) -> None:
        service = HistoryService(history_cache, mock_history_provider, clock=clock)

        await service.get_history(today=date(2024, 10, 10))

        mock_history_provider.fetch.assert_awaited_once_with(
            date(2024, 9, 25), date(2024, 10, 10)
        )

    @pytest.mark.asyncio
    async def test_failure_ignores_stale_series(
        self, history_cache: HistoryCache, mock_history_provider: AsyncMock, clock, make_history
    ) -> None:
        await history_cache.store(
            make_history([19.1, 19.2], end="2024-10-15"), clock.now - timedelta(days=3)
        )
        mock_history_provider.fetch.side_effect = ProviderError("HTTP 500")
        service = HistoryService(history_cache, mock_history_provider, clock=clock)

        points = await service.get_history()
        geometry = CurveBuilder().build(points, 19.87, date(2024, 10, 18))

        assert points == []
        assert geometry.series == [HistoryPoint(date="2024-10-18", rate=19.87)]

    @pytest.mark.asyncio
    async def test_failure_without_cache_returns_empty(
        self, history_cache: HistoryCache, mock_history_provider: AsyncMock, clock
    ) -> None:
        mock_history_provider.fetch.side_effect = ProviderError("offline")
        service = HistoryService(history_cache, mock_history_provider, clock=clock)

        assert await service.get_history() == []
        assert await history_cache.load() is None

    @pytest.mark.asyncio
    async def test_empty_result_is_not_stored(
        self, history_cache: HistoryCache, mock_history_provider: AsyncMock, clock
    ) -> None:
        mock_history_provider.fetch.return_value = []
        service = HistoryService(history_cache, mock_history_provider, clock=clock)

        assert await service.get_history() == []
        assert await history_cache.load() is None


class TestFetch:
    @pytest.mark.asyncio
    async def test_provider_error_becomes_history_unavailable(
        self, history_cache: HistoryCache, mock_history_provider: AsyncMock, clock
    ) -> None:
        mock_history_provider.fetch.side_effect = ProviderError("bad gateway")
        service = HistoryService(history_cache, mock_history_provider, clock=clock)

        with pytest.raises(HistoryUnavailable, match="bad gateway"):
            await service.fetch(date(2024, 10, 18))

    @pytest.mark.asyncio
    async def test_empty_result_raises(
        self, history_cache: HistoryCache, mock_history_provider: AsyncMock, clock
    ) -> None:
        mock_history_provider.fetch.return_value = []
        service = HistoryService(history_cache, mock_history_provider, clock=clock)

        with pytest.raises(HistoryUnavailable):
            await service.fetch(date(2024, 10, 18))
