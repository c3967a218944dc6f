"""Live rate acquisition with stale-while-revalidate caching.

Policy on load:
  1. Fresh cache  -> serve it, no network call. With the "always" refresh
     policy a background refresh is also scheduled.
  2. Stale cache  -> publish the stale value immediately, then await a
     fetch. Success replaces it; failure keeps serving the stale value.
  3. No cache     -> await a fetch. Failure raises RateUnavailable, which
     get_rate() turns into the fixed fallback rate.

Every served value is pushed to registered listeners so the converter can
pick up a newer rate without touching the user's in-progress input.
"""

import asyncio
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Literal

from pesopro.cache.rate_cache import RateCache
from pesopro.exceptions import ProviderError, RateUnavailable
from pesopro.logging import get_logger
from pesopro.models import CachedRate, Rate, RateSource
from pesopro.providers.base import RateProvider

logger = get_logger(__name__)

#: Conservative MXN per USD served when no rate has ever been obtained.
DEFAULT_FALLBACK_RATE = 19.50

RateListener = Callable[[CachedRate], None]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class RateService:
    """Serves the best available rate and keeps the rate cache current.

    Args:
        cache: Persistent single-record rate cache.
        provider: Live rate source.
        fallback_rate: Rate served when no cache exists and the fetch fails.
        refresh_policy: "stale_only" (canonical) or "always".
        clock: Returns the current aware UTC datetime.
    """

    def __init__(
        self,
        cache: RateCache,
        provider: RateProvider,
        fallback_rate: float = DEFAULT_FALLBACK_RATE,
        refresh_policy: Literal["stale_only", "always"] = "stale_only",
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._cache = cache
        self._provider = provider
        self._fallback_rate = fallback_rate
        self._refresh_policy = refresh_policy
        self._clock = clock
        self._current: CachedRate | None = None
        self._listeners: list[RateListener] = []
        self._background_task: asyncio.Task | None = None  # type: ignore[type-arg]

    @property
    def current(self) -> CachedRate | None:
        """The most recently served rate, or None before the first load."""
        return self._current

    def add_listener(self, listener: RateListener) -> None:
        """Register a callback invoked with every newly served rate."""
        self._listeners.append(listener)

    async def get_rate(self) -> CachedRate:
        """Load the rate, substituting the fallback constant when unavailable."""
        try:
            return await self.load()
        except RateUnavailable:
            fallback = CachedRate(
                value=self._fallback_rate,
                observed_at=self._clock(),
                source=RateSource.FALLBACK,
            )
            logger.warning("rate_fallback_used", rate=self._fallback_rate)
            return self._publish(fallback)

    async def load(self) -> CachedRate:
        """Apply the stale-while-revalidate policy and return the served rate.

        Raises:
            RateUnavailable: No cached rate exists and the live fetch failed.
        """
        now = self._clock()
        entry = await self._cache.load()

        if entry is not None and self._cache.is_entry_fresh(entry, now):
            logger.info(
                "rate_cache_hit",
                rate=entry.value.value,
                age_seconds=round((now - entry.stored_at).total_seconds()),
            )
            served = self._publish(_from_rate(entry.value, RateSource.CACHE))
            if self._refresh_policy == "always":
                self.schedule_background_refresh()
            return served

        if entry is not None:
            logger.info(
                "rate_cache_stale",
                rate=entry.value.value,
                age_seconds=round((now - entry.stored_at).total_seconds()),
            )
            self._publish(_from_rate(entry.value, RateSource.CACHE))

        refreshed = await self.refresh()
        if refreshed is not None:
            return refreshed
        if self._current is not None and entry is not None:
            return self._current
        raise RateUnavailable("No cached rate and the live fetch failed")

    async def refresh(self) -> CachedRate | None:
        """Fetch, store and publish a fresh rate. Returns None on failure.

        The write is stamped with the fetch start time, so a fetch that
        started earlier but finished later than another is discarded by
        the cache instead of overwriting the newer rate.
        """
        started_at = self._clock()
        try:
            rate = await self._provider.fetch()
        except ProviderError as exc:
            logger.warning("rate_fetch_failed", error=str(exc))
            return None

        if not await self._cache.store(rate, started_at):
            logger.info("rate_fetch_superseded", rate=rate.value)
            newer = await self._cache.load()
            if newer is None:
                return self._current
            return self._publish(_from_rate(newer.value, RateSource.CACHE))

        logger.info(
            "rate_refreshed",
            rate=rate.value,
            observed_at=rate.observed_at.isoformat(),
        )
        return self._publish(_from_rate(rate, RateSource.FRESH))

    def schedule_background_refresh(self) -> None:
        """Start a refresh task unless one is already running."""
        if self._background_task is not None and not self._background_task.done():
            return
        self._background_task = asyncio.create_task(self._background_refresh())

    async def _background_refresh(self) -> None:
        try:
            await self.refresh()
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.warning("rate_background_refresh_error", exc_info=True)

    async def close(self) -> None:
        """Cancel any outstanding background refresh."""
        if self._background_task is not None:
            self._background_task.cancel()
            try:
                await self._background_task
            except asyncio.CancelledError:
                pass
            self._background_task = None

    def _publish(self, rate: CachedRate) -> CachedRate:
        self._current = rate
        for listener in self._listeners:
            listener(rate)
        return rate


def _from_rate(rate: Rate, source: RateSource) -> CachedRate:
    return CachedRate(value=rate.value, observed_at=rate.observed_at, source=source)
