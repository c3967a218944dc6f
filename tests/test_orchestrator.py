"""Tests for the Orchestrator: session start, rate propagation and charting."""

from datetime import date, timedelta
from unittest.mock import AsyncMock

import pytest

from pesopro.cache.history_cache import HistoryCache
from pesopro.cache.rate_cache import RateCache
from pesopro.chart.curve import CurveBuilder
from pesopro.config import AppSettings
from pesopro.exceptions import ProviderError
from pesopro.models import Currency, Rate
from pesopro.orchestrator import Orchestrator
from pesopro.services.history_service import HistoryService
from pesopro.services.rate_service import RateService

TODAY = date(2024, 10, 18)


@pytest.fixture
def orchestrator(
    mock_settings: AppSettings,
    rate_cache: RateCache,
    history_cache: HistoryCache,
    mock_rate_provider: AsyncMock,
    mock_history_provider: AsyncMock,
    clock,
) -> Orchestrator:
    return Orchestrator(
        settings=mock_settings,
        rate_service=RateService(rate_cache, mock_rate_provider, clock=clock),
        history_service=HistoryService(history_cache, mock_history_provider, clock=clock),
        curve_builder=CurveBuilder(),
        today=lambda: TODAY,
    )


class TestStart:
    def test_engine_requires_start(self, orchestrator: Orchestrator) -> None:
        with pytest.raises(RuntimeError, match="start"):
            _ = orchestrator.engine

    @pytest.mark.asyncio
    async def test_session_defaults(self, orchestrator: Orchestrator) -> None:
        await orchestrator.start()

        status = orchestrator.get_status()
        assert status["rate"] == 19.87
        assert status["rate_source"] == "fresh"
        assert status["raw_input"] == "10"
        assert status["active_side"] == "MXN"
        assert status["display"]["MXN"] == "10"
        assert status["display"]["USD"] == "0.5"
        assert status["amounts"]["USD"] == pytest.approx(10 / 19.87)

    @pytest.mark.asyncio
    async def test_fallback_when_nothing_available(
        self, orchestrator: Orchestrator, mock_rate_provider: AsyncMock
    ) -> None:
        mock_rate_provider.fetch.side_effect = ProviderError("offline")

        await orchestrator.start()

        assert orchestrator.engine.rate == 19.50
        assert orchestrator.get_status()["rate_source"] == "fallback"

    @pytest.mark.asyncio
    async def test_stale_then_fresh_rate(
        self, orchestrator: Orchestrator, rate_cache: RateCache, clock
    ) -> None:
        await rate_cache.store(Rate(19.2, clock.now), clock.now - timedelta(hours=6))

        await orchestrator.start()

        assert orchestrator.engine.rate == 19.87
        assert orchestrator.get_status()["rate_source"] == "fresh"


class TestRateUpdates:
    @pytest.mark.asyncio
    async def test_refresh_keeps_edited_input(
        self,
        orchestrator: Orchestrator,
        rate_cache: RateCache,
        mock_rate_provider: AsyncMock,
        clock,
    ) -> None:
        await rate_cache.store(Rate(19.6, clock.now), clock.now - timedelta(hours=1))
        await orchestrator.start()
        mock_rate_provider.fetch.assert_not_called()

        orchestrator.engine.switch_active_side(Currency.USD)
        orchestrator.engine.clear()
        for key in "25":
            orchestrator.engine.append_digit(key)

        mock_rate_provider.fetch.return_value = Rate(20.1, clock.now)
        clock.advance(minutes=5)
        refreshed = await orchestrator.refresh_rate()

        assert refreshed.value == 20.1
        assert orchestrator.engine.rate == 20.1
        assert orchestrator.engine.raw_input == "25"
        assert orchestrator.engine.active_side == Currency.USD
        assert orchestrator.get_status()["display"]["MXN"] == "502.5"

    @pytest.mark.asyncio
    async def test_failed_refresh_leaves_rate(
        self, orchestrator: Orchestrator, mock_rate_provider: AsyncMock
    ) -> None:
        await orchestrator.start()
        mock_rate_provider.fetch.side_effect = ProviderError("timeout")

        assert await orchestrator.refresh_rate() is None
        assert orchestrator.engine.rate == 19.87

    @pytest.mark.asyncio
    async def test_reset_session(self, orchestrator: Orchestrator) -> None:
        await orchestrator.start()
        orchestrator.engine.append_digit("0")

        orchestrator.reset_session()

        assert orchestrator.engine.raw_input == "10"

    @pytest.mark.asyncio
    async def test_quick_table(self, orchestrator: Orchestrator) -> None:
        await orchestrator.start()
        rows = orchestrator.quick_table()
        assert [usd for usd, _ in rows] == [1, 5, 10, 20, 50, 100]
        assert rows[0] == (1, "20")


class TestChart:
    @pytest.mark.asyncio
    async def test_chart_ends_at_live_rate(self, orchestrator: Orchestrator) -> None:
        await orchestrator.start()

        geometry = await orchestrator.chart()

        assert [p.rate for p in geometry.series] == [19.5, 19.7, 19.87]
        assert geometry.active_label == "Live Rate"
        assert geometry.active_rate == 19.87

    @pytest.mark.asyncio
    async def test_chart_without_history(
        self, orchestrator: Orchestrator, mock_history_provider: AsyncMock
    ) -> None:
        mock_history_provider.fetch.side_effect = ProviderError("offline")
        await orchestrator.start()

        geometry = await orchestrator.chart()

        assert len(geometry.series) == 1
        assert geometry.series[0].date == "2024-10-18"
        assert geometry.series[0].rate == 19.87

    @pytest.mark.asyncio
    async def test_chart_at_pointer(
        self, orchestrator: Orchestrator, mock_history_provider: AsyncMock
    ) -> None:
        await orchestrator.start()

        geometry = await orchestrator.chart_at(client_x=150, rect_left=0, rect_width=300)

        assert geometry.active_index == 1
        assert geometry.active_label == "Oct 17"
        assert geometry.active_rate == 19.7
        # History fetched once, then served from the fresh cache
        await orchestrator.chart()
        mock_history_provider.fetch.assert_awaited_once()
