"""Latest USD/MXN rate from the open.er-api.com free endpoint.

Response shape (abridged):
    {"result": "success", "time_last_update_unix": 1729814401,
     "rates": {"USD": 1, "MXN": 19.87, ...}}
"""

from datetime import datetime, timezone

import httpx

from pesopro.exceptions import ProviderError
from pesopro.logging import get_logger
from pesopro.models import QUOTE_CURRENCY, Rate
from pesopro.providers.base import RateProvider
from pesopro.providers.http_client import JsonHttpProvider

logger = get_logger(__name__)

DEFAULT_LATEST_URL = "https://open.er-api.com/v6/latest/USD"


class OpenErApiRateProvider(JsonHttpProvider, RateProvider):
    """RateProvider backed by open.er-api.com."""

    def __init__(
        self,
        url: str = DEFAULT_LATEST_URL,
        timeout_seconds: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        super().__init__(timeout_seconds=timeout_seconds, client=client)
        self._url = url

    async def fetch(self) -> Rate:
        data = await self._get_json(self._url)
        if not isinstance(data, dict) or data.get("result") != "success":
            raise ProviderError(f"Rate API reported failure: {data!r:.200}")

        raw_rate = (data.get("rates") or {}).get(QUOTE_CURRENCY.value)
        try:
            value = float(raw_rate)
        except (TypeError, ValueError) as exc:
            raise ProviderError(f"Missing {QUOTE_CURRENCY.value} rate in response") from exc
        if not value > 0:
            raise ProviderError(f"Non-positive rate in response: {value}")

        updated_unix = data.get("time_last_update_unix")
        if updated_unix:
            observed_at = datetime.fromtimestamp(int(updated_unix), tz=timezone.utc)
        else:
            observed_at = datetime.now(timezone.utc)

        logger.debug("latest_rate_fetched", rate=value, observed_at=observed_at.isoformat())
        return Rate(value=value, observed_at=observed_at)
