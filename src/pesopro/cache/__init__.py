"""Timestamped single-record caches for the live rate and the daily series."""

from pesopro.cache.history_cache import HistoryCache
from pesopro.cache.rate_cache import RateCache
from pesopro.cache.timestamped import CacheEntry, TimestampedCache

__all__ = ["CacheEntry", "HistoryCache", "RateCache", "TimestampedCache"]
