"""Rate provider layer -- latest and historical USD/MXN rates via httpx."""

from pesopro.providers.base import HistoryProvider, RateProvider
from pesopro.providers.frankfurter import FrankfurterHistoryProvider
from pesopro.providers.open_er_api import OpenErApiRateProvider

__all__ = [
    "FrankfurterHistoryProvider",
    "HistoryProvider",
    "OpenErApiRateProvider",
    "RateProvider",
]
