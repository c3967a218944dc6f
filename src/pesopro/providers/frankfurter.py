"""Daily USD/MXN history from the Frankfurter API (ECB reference rates, no key).

Range query: GET {base}/{start}..{end}?from=USD&to=MXN
Response shape (abridged):
    {"base": "USD", "start_date": "2024-10-04", "end_date": "2024-10-18",
     "rates": {"2024-10-04": {"MXN": 19.33}, "2024-10-07": {"MXN": 19.41}}}

The ECB publishes no rates on weekends and holidays, so a 15-day window
usually yields about 11 points.
"""

from datetime import date

import httpx

from pesopro.exceptions import ProviderError
from pesopro.logging import get_logger
from pesopro.models import BASE_CURRENCY, QUOTE_CURRENCY, HistoryPoint
from pesopro.providers.base import HistoryProvider
from pesopro.providers.http_client import JsonHttpProvider

logger = get_logger(__name__)

DEFAULT_HISTORY_URL = "https://api.frankfurter.app"


class FrankfurterHistoryProvider(JsonHttpProvider, HistoryProvider):
    """HistoryProvider backed by api.frankfurter.app."""

    def __init__(
        self,
        base_url: str = DEFAULT_HISTORY_URL,
        timeout_seconds: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        super().__init__(timeout_seconds=timeout_seconds, client=client)
        self._base_url = base_url.rstrip("/")

    async def fetch(self, start: date, end: date) -> list[HistoryPoint]:
        url = f"{self._base_url}/{start.isoformat()}..{end.isoformat()}"
        data = await self._get_json(
            url,
            params={"from": BASE_CURRENCY.value, "to": QUOTE_CURRENCY.value},
        )
        rates = data.get("rates") if isinstance(data, dict) else None
        if not isinstance(rates, dict):
            raise ProviderError("History response has no rates mapping")

        points: list[HistoryPoint] = []
        for day, quotes in rates.items():
            raw = quotes.get(QUOTE_CURRENCY.value) if isinstance(quotes, dict) else None
            try:
                value = float(raw)
            except (TypeError, ValueError):
                logger.debug("history_point_skipped", date=day, raw=raw)
                continue
            if value > 0:
                points.append(HistoryPoint(date=day, rate=value))

        # Mapping keys are unique; sort since JSON object order is not a contract
        points.sort(key=lambda p: p.date)
        logger.debug(
            "history_fetched",
            start=start.isoformat(),
            end=end.isoformat(),
            points=len(points),
        )
        return points
