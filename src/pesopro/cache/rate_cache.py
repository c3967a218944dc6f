"""Persistent cache of the single current rate (4-hour freshness window)."""

import json
from datetime import timedelta

from pesopro.cache.timestamped import TimestampedCache
from pesopro.models import Rate
from pesopro.storage.store import KeyValueStore, from_epoch_ms, to_epoch_ms

RATE_CACHE_KEY = "rate"
RATE_FRESHNESS_WINDOW = timedelta(hours=4)


def encode_rate(rate: Rate) -> str:
    return json.dumps(
        {"value": rate.value, "observed_at_ms": to_epoch_ms(rate.observed_at)}
    )


def decode_rate(payload: str) -> Rate:
    data = json.loads(payload)
    return Rate(
        value=float(data["value"]),
        observed_at=from_epoch_ms(int(data["observed_at_ms"])),
    )


class RateCache(TimestampedCache[Rate]):
    """TimestampedCache holding one Rate under the ``rate`` key."""

    def __init__(
        self,
        store: KeyValueStore,
        freshness_window: timedelta = RATE_FRESHNESS_WINDOW,
    ) -> None:
        super().__init__(
            store,
            RATE_CACHE_KEY,
            freshness_window,
            encode=encode_rate,
            decode=decode_rate,
        )
