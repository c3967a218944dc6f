"""Shared data models for the USD/MXN converter.

Rates are plain floats (quote units per one base unit). Timestamps are
timezone-aware UTC datetimes everywhere; storage converts them to epoch
milliseconds.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class Currency(str, Enum):
    """The two currencies of the pair. USD is the base, MXN the quote."""

    USD = "USD"
    MXN = "MXN"


BASE_CURRENCY = Currency.USD
QUOTE_CURRENCY = Currency.MXN


class RateSource(str, Enum):
    """Where a served rate came from."""

    CACHE = "cache"
    FRESH = "fresh"
    FALLBACK = "fallback"


@dataclass(frozen=True)
class Rate:
    """A single observation of the quote-per-base rate."""

    value: float
    observed_at: datetime

    def __post_init__(self) -> None:
        if not self.value > 0:
            raise ValueError(f"Rate must be positive, got {self.value!r}")


@dataclass(frozen=True)
class CachedRate:
    """A rate as served to the caller, tagged with its origin."""

    value: float
    observed_at: datetime
    source: RateSource


@dataclass(frozen=True)
class HistoryPoint:
    """One day of the historical series. ``date`` is an ISO calendar date."""

    date: str
    rate: float


@dataclass(frozen=True)
class AmountPair:
    """The two linked amounts. quote_amount == base_amount * rate."""

    base_amount: float
    quote_amount: float
    active_side: Currency

    def amount_for(self, currency: Currency) -> float:
        return self.base_amount if currency == BASE_CURRENCY else self.quote_amount


@dataclass(frozen=True)
class PlotPoint:
    """Pixel-space chart coordinate."""

    x: float
    y: float
