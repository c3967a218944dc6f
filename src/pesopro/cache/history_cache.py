"""Persistent cache of the trailing daily series (24-hour freshness window)."""

import json
from datetime import timedelta

from pesopro.cache.timestamped import TimestampedCache
from pesopro.models import HistoryPoint
from pesopro.storage.store import KeyValueStore

HISTORY_CACHE_KEY = "history_15d"
HISTORY_FRESHNESS_WINDOW = timedelta(hours=24)


def encode_history(points: list[HistoryPoint]) -> str:
    return json.dumps([{"date": p.date, "rate": p.rate} for p in points])


def decode_history(payload: str) -> list[HistoryPoint]:
    data = json.loads(payload)
    if not isinstance(data, list):
        raise TypeError(f"Expected a list of points, got {type(data).__name__}")
    return [HistoryPoint(date=str(item["date"]), rate=float(item["rate"])) for item in data]


class HistoryCache(TimestampedCache[list[HistoryPoint]]):
    """TimestampedCache holding the ordered HistoryPoint series."""

    def __init__(
        self,
        store: KeyValueStore,
        freshness_window: timedelta = HISTORY_FRESHNESS_WINDOW,
    ) -> None:
        super().__init__(
            store,
            HISTORY_CACHE_KEY,
            freshness_window,
            encode=encode_history,
            decode=decode_history,
        )
