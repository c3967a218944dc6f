"""FastAPI application factory with Jinja2 templates."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Any

from fastapi import FastAPI
from fastapi.templating import Jinja2Templates

from pesopro.dashboard.routes import actions, api, pages

TEMPLATES_DIR = Path(__file__).parent / "templates"


def _format_rate(value: Any, decimals: int = 4) -> str:
    """Format a rate with a fixed number of decimals."""
    if value is None:
        return "..."
    return f"{float(value):.{decimals}f}"


def _format_timestamp(value: str | None) -> str:
    """ISO timestamp to a short UTC string (e.g., 'Oct 18, 2024 14:05 UTC')."""
    if not value:
        return "..."
    try:
        moment = datetime.fromisoformat(value)
    except ValueError:
        return value
    return moment.strftime("%b %d, %Y %H:%M UTC")


def create_app(lifespan: Any = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        lifespan: Optional async context manager for application lifespan events.
                  Used by main.py to inject startup/shutdown logic.

    Returns:
        Configured FastAPI application with templates and routes.
    """
    app = FastAPI(
        title="PesoPro USD/MXN Converter",
        lifespan=lifespan,
    )

    templates = Jinja2Templates(directory=str(TEMPLATES_DIR))
    templates.env.filters["format_rate"] = _format_rate
    templates.env.filters["format_timestamp"] = _format_timestamp
    app.state.templates = templates

    app.include_router(pages.router)
    app.include_router(api.router, prefix="/api")
    app.include_router(actions.router, prefix="/actions")

    return app
