"""Abstract rate provider interfaces.

The services depend only on these interfaces, keeping provider-specific
URLs and response shapes isolated in the concrete implementations.
Implementations raise ProviderError on any network, HTTP or parse failure.
"""

from abc import ABC, abstractmethod
from datetime import date

from pesopro.models import HistoryPoint, Rate


class RateProvider(ABC):
    """Source of the latest quote-per-base rate."""

    @abstractmethod
    async def fetch(self) -> Rate:
        """Return the latest rate."""
        ...

    @abstractmethod
    async def close(self) -> None:
        """Release HTTP resources."""
        ...


class HistoryProvider(ABC):
    """Source of daily historical rates."""

    @abstractmethod
    async def fetch(self, start: date, end: date) -> list[HistoryPoint]:
        """Return daily points in the inclusive range, ordered by date ascending."""
        ...

    @abstractmethod
    async def close(self) -> None:
        """Release HTTP resources."""
        ...
