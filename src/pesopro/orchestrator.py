"""Converter orchestrator -- wires rate, history, conversion and chart.

On start:
  1. Load the rate (stale-while-revalidate, fallback when unavailable)
  2. Create the session's ConversionEngine with that rate
  3. Subscribe the engine to later rate updates (background refreshes)

The chart is built on demand: history comes from the 24-hour cache or the
provider, and the live rate always overrides the last point.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import date

from pesopro.chart.curve import ChartGeometry, CurveBuilder
from pesopro.config import AppSettings
from pesopro.conversion.engine import ConversionEngine
from pesopro.conversion.formatting import quick_table
from pesopro.logging import get_logger
from pesopro.models import CachedRate, Currency
from pesopro.services.history_service import HistoryService
from pesopro.services.rate_service import RateService

logger = get_logger(__name__)


class Orchestrator:
    """Owns the converter session and answers UI requests.

    Args:
        settings: Application-wide settings.
        rate_service: Live rate source with caching.
        history_service: Daily series source with caching.
        curve_builder: Chart geometry builder.
        today: Returns the current calendar date (injectable for tests).
    """

    def __init__(
        self,
        settings: AppSettings,
        rate_service: RateService,
        history_service: HistoryService,
        curve_builder: CurveBuilder,
        today: Callable[[], date] = date.today,
    ) -> None:
        self._settings = settings
        self._rate_service = rate_service
        self._history_service = history_service
        self._curve_builder = curve_builder
        self._today = today
        self._engine: ConversionEngine | None = None
        self._rate_service.add_listener(self._on_rate)

    @property
    def engine(self) -> ConversionEngine:
        """The session converter. Raises RuntimeError before start()."""
        if self._engine is None:
            raise RuntimeError("Orchestrator not started. Call start() first.")
        return self._engine

    @property
    def rate(self) -> CachedRate | None:
        return self._rate_service.current

    async def start(self) -> None:
        """Load the rate and open the converter session."""
        served = await self._rate_service.get_rate()
        # The listener may already have created the engine from a stale value
        if self._engine is None:
            self._engine = self._new_engine(served.value)
        logger.info(
            "orchestrator_started",
            rate=served.value,
            source=served.source.value,
        )

    async def stop(self) -> None:
        await self._rate_service.close()
        logger.info("orchestrator_stopped")

    async def refresh_rate(self) -> CachedRate | None:
        """Force a live fetch; the engine picks up a new rate via the listener."""
        return await self._rate_service.refresh()

    def reset_session(self) -> None:
        self.engine.reset()

    async def chart(self, selected_index: int | None = None) -> ChartGeometry:
        """Build the trend chart ending at the current rate."""
        today = self._today()
        history = await self._history_service.get_history(today)
        return self._curve_builder.build(
            history,
            current_rate=self.engine.rate,
            today=today,
            selected_index=selected_index,
        )

    async def chart_at(
        self, client_x: float, rect_left: float, rect_width: float
    ) -> ChartGeometry:
        """Build the chart with the sample under a pointer position highlighted."""
        today = self._today()
        history = await self._history_service.get_history(today)
        # An empty history still charts as one synthesized point
        count = max(len(history), 1)
        index = self._curve_builder.index_at(client_x, rect_left, rect_width, count)
        return self._curve_builder.build(
            history,
            current_rate=self.engine.rate,
            today=today,
            selected_index=index,
        )

    def quick_table(self) -> list[tuple[int, str]]:
        return quick_table(self.engine.rate, self._settings.converter.quick_amounts)

    def get_status(self) -> dict:
        """Rate, session and display state as plain JSON-ready values."""
        current = self._rate_service.current
        engine = self.engine
        amounts = engine.current_amounts()
        display = engine.display()
        return {
            "rate": current.value if current is not None else engine.rate,
            "rate_source": current.source.value if current is not None else None,
            "last_updated": current.observed_at.isoformat() if current is not None else None,
            "inverse_rate_label": display.inverse_rate_label,
            "active_side": engine.active_side.value,
            "raw_input": engine.raw_input,
            "amounts": {
                "USD": amounts.base_amount,
                "MXN": amounts.quote_amount,
            },
            "display": {
                "USD": display.usd,
                "MXN": display.mxn,
            },
        }

    def _new_engine(self, rate: float) -> ConversionEngine:
        converter = self._settings.converter
        return ConversionEngine(
            rate=rate,
            default_input=converter.default_amount,
            default_side=Currency(converter.default_side),
            max_input_length=converter.max_input_length,
        )

    def _on_rate(self, rate: CachedRate) -> None:
        if self._engine is None:
            self._engine = self._new_engine(rate.value)
            return
        if rate.value != self._engine.rate:
            logger.info("converter_rate_updated", old=self._engine.rate, new=rate.value)
            self._engine.set_rate(rate.value)
