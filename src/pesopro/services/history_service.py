"""Trailing daily history with a 24-hour cache.

A failed or empty fetch is never surfaced: it yields an empty list, which
the chart turns into a single live point. A stale cached series is
never served in its place.
"""

from collections.abc import Callable
from datetime import date, datetime, timedelta

from pesopro.cache.history_cache import HistoryCache
from pesopro.exceptions import HistoryUnavailable, ProviderError
from pesopro.logging import get_logger
from pesopro.models import HistoryPoint
from pesopro.providers.base import HistoryProvider
from pesopro.services.rate_service import utc_now

logger = get_logger(__name__)

DEFAULT_LOOKBACK_DAYS = 15


def history_window(today: date, lookback_days: int = DEFAULT_LOOKBACK_DAYS) -> tuple[date, date]:
    """Inclusive calendar range ``[today - lookback_days, today]``."""
    return today - timedelta(days=lookback_days), today


class HistoryService:
    """Serves the cached daily series and refreshes it once stale."""

    def __init__(
        self,
        cache: HistoryCache,
        provider: HistoryProvider,
        lookback_days: int = DEFAULT_LOOKBACK_DAYS,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._cache = cache
        self._provider = provider
        self._lookback_days = lookback_days
        self._clock = clock

    async def get_history(self, today: date | None = None) -> list[HistoryPoint]:
        """Return the series for the trailing window ending ``today``."""
        now = self._clock()
        today = today or now.date()
        entry = await self._cache.load()

        if entry is not None and self._cache.is_entry_fresh(entry, now):
            logger.debug("history_cache_hit", points=len(entry.value))
            return entry.value

        try:
            points = await self.fetch(today)
        except HistoryUnavailable as exc:
            logger.warning("history_unavailable", reason=str(exc))
            return []

        if not await self._cache.store(points, now):
            newer = await self._cache.load()
            if newer is not None:
                return newer.value
        logger.info("history_refreshed", points=len(points))
        return points

    async def fetch(self, today: date) -> list[HistoryPoint]:
        """Fetch the trailing window from the provider.

        Raises:
            HistoryUnavailable: The provider failed or returned no points.
        """
        start, end = history_window(today, self._lookback_days)
        try:
            points = await self._provider.fetch(start, end)
        except ProviderError as exc:
            raise HistoryUnavailable(str(exc)) from exc
        if not points:
            raise HistoryUnavailable(
                f"No history between {start.isoformat()} and {end.isoformat()}"
            )
        return points
