"""Tests for the dashboard routes via FastAPI's TestClient.

Components are built by hand with in-memory storage and mocked providers,
then run through the real lifespan.
"""

from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from pesopro.cache.history_cache import HistoryCache
from pesopro.cache.rate_cache import RateCache
from pesopro.chart.curve import CurveBuilder
from pesopro.config import AppSettings
from pesopro.dashboard.app import create_app
from pesopro.exceptions import ProviderError
from pesopro.main import lifespan
from pesopro.orchestrator import Orchestrator
from pesopro.services.history_service import HistoryService
from pesopro.services.rate_service import RateService
from pesopro.storage.store import MemoryKeyValueStore


def _components(settings: AppSettings, rate_provider, history_provider, clock) -> dict:
    store = MemoryKeyValueStore()
    rate_service = RateService(RateCache(store), rate_provider, clock=clock)
    history_service = HistoryService(HistoryCache(store), history_provider, clock=clock)
    return {
        "database": None,
        "store": store,
        "rate_provider": rate_provider,
        "history_provider": history_provider,
        "rate_service": rate_service,
        "history_service": history_service,
        "curve_builder": CurveBuilder(),
        "orchestrator": Orchestrator(
            settings=settings,
            rate_service=rate_service,
            history_service=history_service,
            curve_builder=CurveBuilder(),
        ),
    }


@pytest.fixture
def client(
    mock_settings: AppSettings,
    mock_rate_provider: AsyncMock,
    mock_history_provider: AsyncMock,
    clock,
):
    app = create_app(lifespan=lifespan)
    app.state.settings = mock_settings
    app.state.components = _components(
        mock_settings, mock_rate_provider, mock_history_provider, clock
    )
    with TestClient(app) as test_client:
        yield test_client


class TestRateEndpoints:
    def test_get_rate(self, client: TestClient) -> None:
        response = client.get("/api/rate")
        assert response.status_code == 200
        body = response.json()
        assert body["base"] == "USD"
        assert body["quote"] == "MXN"
        assert body["rate"] == 19.87
        assert body["source"] == "fresh"

    def test_refresh(self, client: TestClient, mock_rate_provider: AsyncMock) -> None:
        mock_rate_provider.fetch.side_effect = ProviderError("offline")
        response = client.post("/api/rate/refresh")
        assert response.status_code == 200
        assert response.json()["refreshed"] is False
        assert response.json()["rate"] == 19.87


class TestConverterEndpoints:
    def test_initial_state(self, client: TestClient) -> None:
        body = client.get("/api/converter").json()
        assert body["raw_input"] == "10"
        assert body["active_side"] == "MXN"

    def test_keys_delete_clear(self, client: TestClient) -> None:
        client.post("/api/converter/clear")
        body = client.post("/api/converter/keys", json={"keys": "1234."}).json()
        assert body["raw_input"] == "1234."
        assert body["display"]["MXN"] == "1,234."

        body = client.post("/api/converter/delete").json()
        assert body["raw_input"] == "1234"

        body = client.post("/api/converter/clear").json()
        assert body["raw_input"] == "0"

    def test_invalid_key_rejected(self, client: TestClient) -> None:
        response = client.post("/api/converter/keys", json={"keys": "12x"})
        assert response.status_code == 400
        assert "Unsupported key" in response.json()["error"]

    def test_rejected_keys_leave_input_unchanged(self, client: TestClient) -> None:
        client.post("/api/converter/clear")
        response = client.post("/api/converter/keys", json={"keys": "12a"})
        assert response.status_code == 400
        assert client.get("/api/converter").json()["raw_input"] == "0"

    def test_missing_keys_rejected(self, client: TestClient) -> None:
        response = client.post("/api/converter/keys", json={})
        assert response.status_code == 400

    def test_switch_side(self, client: TestClient) -> None:
        body = client.post("/api/converter/side", json={"side": "usd"}).json()
        assert body["active_side"] == "USD"
        assert body["raw_input"] == "0.5032712632"

    def test_unknown_side_rejected(self, client: TestClient) -> None:
        response = client.post("/api/converter/side", json={"side": "EUR"})
        assert response.status_code == 400


class TestChartEndpoints:
    def test_chart(self, client: TestClient) -> None:
        body = client.get("/api/chart").json()
        assert [p["rate"] for p in body["series"]] == [19.5, 19.7, 19.87]
        assert body["active_label"] == "Live Rate"
        assert body["line_path"].startswith("M 15,")
        assert body["area_path"].endswith("Z")

    def test_chart_with_pointer(self, client: TestClient) -> None:
        body = client.get(
            "/api/chart", params={"client_x": 10, "rect_left": 0, "rect_width": 300}
        ).json()
        assert body["active_index"] == 0
        assert body["active_label"] == "Oct 16"

    def test_quick_table(self, client: TestClient) -> None:
        rows = client.get("/api/quick-table").json()
        assert rows[0] == {"usd": 1, "mxn": "20"}
        assert len(rows) == 6


class TestPages:
    def test_index_without_chart(
        self, client: TestClient, mock_history_provider: AsyncMock
    ) -> None:
        response = client.get("/")
        assert response.status_code == 200
        assert "Pesos to Dollar Converter" in response.text
        assert "1 MXN ≈ 0.0503 USD" in response.text
        assert "<svg" not in response.text
        mock_history_provider.fetch.assert_not_called()

    def test_index_with_chart(self, client: TestClient) -> None:
        response = client.get("/", params={"show_chart": "true"})
        assert response.status_code == 200
        assert "<svg" in response.text
        assert "Live Rate" in response.text


class TestActions:
    def test_dot_key(self, client: TestClient) -> None:
        client.post("/actions/clear")
        response = client.post("/actions/key/dot")
        assert response.status_code == 200
        assert "$0." in response.text
        assert client.get("/api/converter").json()["raw_input"] == "0."

    def test_invalid_key_shows_error(self, client: TestClient) -> None:
        response = client.post("/actions/key/x")
        assert response.status_code == 200
        assert "Unsupported key" in response.text

    def test_side_switch(self, client: TestClient) -> None:
        client.post("/actions/side/usd")
        assert client.get("/api/converter").json()["active_side"] == "USD"
