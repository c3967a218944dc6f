"""Shared httpx plumbing for the JSON rate providers."""

from typing import Any

import httpx

from pesopro.exceptions import ProviderError
from pesopro.logging import get_logger

logger = get_logger(__name__)


class JsonHttpProvider:
    """Base for providers that GET a JSON document.

    Owns an httpx.AsyncClient unless one is injected, in which case the
    caller is responsible for closing it.
    """

    def __init__(
        self,
        timeout_seconds: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout_seconds)

    async def _get_json(self, url: str, params: dict | None = None) -> Any:
        """GET url and decode the body, wrapping every failure in ProviderError."""
        try:
            response = await self._client.get(url, params=params)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as exc:
            raise ProviderError(
                f"{url} returned HTTP {exc.response.status_code}"
            ) from exc
        except httpx.HTTPError as exc:
            raise ProviderError(f"Request to {url} failed: {exc}") from exc
        except ValueError as exc:
            raise ProviderError(f"Invalid JSON from {url}") from exc

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()
            logger.debug("http_client_closed", provider=type(self).__name__)
