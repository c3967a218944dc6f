"""Entry point for the PesoPro converter service.

Wires all components together and serves the FastAPI app through uvicorn's
programmatic API. Component lifecycle (database connection, initial rate
load, HTTP client cleanup) runs inside FastAPI's lifespan context manager.

Component wiring order (in _build_components):
1. KeyValueStore (SQLite via CacheDatabase, or in-memory)
2. RateCache / HistoryCache
3. RateProvider / HistoryProvider (httpx clients)
4. RateService / HistoryService (refresh policies)
5. CurveBuilder (chart geometry)
6. Orchestrator (converter session)
"""

import asyncio
from contextlib import asynccontextmanager
from datetime import timedelta
from typing import Any

import uvicorn
from fastapi import FastAPI

from pesopro.cache.history_cache import HistoryCache
from pesopro.cache.rate_cache import RateCache
from pesopro.chart.curve import CurveBuilder, Viewport
from pesopro.config import AppSettings
from pesopro.logging import get_logger, setup_logging
from pesopro.orchestrator import Orchestrator
from pesopro.providers.frankfurter import FrankfurterHistoryProvider
from pesopro.providers.open_er_api import OpenErApiRateProvider
from pesopro.services.history_service import HistoryService
from pesopro.services.rate_service import RateService
from pesopro.storage.database import CacheDatabase
from pesopro.storage.store import KeyValueStore, MemoryKeyValueStore, SQLiteKeyValueStore


def _build_store(settings: AppSettings) -> tuple[KeyValueStore, CacheDatabase | None]:
    """Create the key-value store. The database is returned unconnected."""
    if settings.storage.backend == "memory":
        return MemoryKeyValueStore(), None
    database = CacheDatabase(settings.storage.db_path)
    return SQLiteKeyValueStore(database), database


def _build_components(settings: AppSettings) -> dict[str, Any]:
    """Build all components from settings.

    Note: Does NOT connect the database or load the rate -- that happens
    in the lifespan.

    Args:
        settings: Application-wide settings.

    Returns:
        Dict mapping component names to instances.
    """
    store, database = _build_store(settings)

    rate_cache = RateCache(store, timedelta(hours=settings.rate.freshness_hours))
    history_cache = HistoryCache(store, timedelta(hours=settings.history.freshness_hours))

    rate_provider = OpenErApiRateProvider(
        url=settings.rate.api_url,
        timeout_seconds=settings.rate.timeout_seconds,
    )
    history_provider = FrankfurterHistoryProvider(
        base_url=settings.history.api_url,
        timeout_seconds=settings.history.timeout_seconds,
    )

    rate_service = RateService(
        rate_cache,
        rate_provider,
        fallback_rate=settings.rate.fallback_rate,
        refresh_policy=settings.rate.refresh_policy,
    )
    history_service = HistoryService(
        history_cache,
        history_provider,
        lookback_days=settings.history.lookback_days,
    )

    chart = settings.chart
    curve_builder = CurveBuilder(
        Viewport(width=chart.width, height=chart.height, padding=chart.padding),
        smoothing=chart.smoothing,
        interaction_padding=chart.interaction_padding,
    )

    orchestrator = Orchestrator(
        settings=settings,
        rate_service=rate_service,
        history_service=history_service,
        curve_builder=curve_builder,
    )

    return {
        "database": database,
        "store": store,
        "rate_provider": rate_provider,
        "history_provider": history_provider,
        "rate_service": rate_service,
        "history_service": history_service,
        "curve_builder": curve_builder,
        "orchestrator": orchestrator,
    }


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage component lifecycle within the FastAPI application.

    On startup: connects the database, loads the rate and opens the
    converter session, and stores the orchestrator on app.state.

    On shutdown: stops the orchestrator, closes HTTP clients and the
    database.
    """
    logger = get_logger("pesopro.main")
    components = app.state.components

    database: CacheDatabase | None = components["database"]
    if database is not None:
        await database.connect()

    orchestrator: Orchestrator = components["orchestrator"]
    await orchestrator.start()
    app.state.orchestrator = orchestrator

    logger.info("lifespan_started", rate=orchestrator.engine.rate)

    yield

    await orchestrator.stop()
    await components["rate_provider"].close()
    await components["history_provider"].close()
    if database is not None:
        await database.close()

    logger.info("pesopro_stopped")


async def run() -> None:
    """Run the converter service until interrupted."""
    # 1. Load settings
    settings = AppSettings()

    # 2. Setup logging
    setup_logging(settings.log_level, settings.log_format)
    logger = get_logger("pesopro.main")

    # 3. Build all components
    components = _build_components(settings)

    from pesopro.dashboard.app import create_app

    app = create_app(lifespan=lifespan)
    app.state.settings = settings
    app.state.components = components

    logger.info(
        "starting_server",
        host=settings.dashboard.host,
        port=settings.dashboard.port,
        storage=settings.storage.backend,
        refresh_policy=settings.rate.refresh_policy,
    )

    config = uvicorn.Config(
        app,
        host=settings.dashboard.host,
        port=settings.dashboard.port,
        log_level="warning",  # Suppress uvicorn access logs
    )
    server = uvicorn.Server(config)
    await server.serve()


def main() -> None:
    """Synchronous entry point."""
    asyncio.run(run())


if __name__ == "__main__":
    main()
