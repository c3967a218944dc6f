"""Page route serving the converter page with the inline SVG trend chart."""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

log = structlog.get_logger(__name__)

router = APIRouter()


@router.get("/", response_class=HTMLResponse)
async def converter_page(request: Request, show_chart: bool = False) -> HTMLResponse:
    """Main page. The chart is only built (and history only fetched) on request."""
    templates: Jinja2Templates = request.app.state.templates
    orchestrator = request.app.state.orchestrator

    chart = await orchestrator.chart() if show_chart else None

    return templates.TemplateResponse(request, "index.html", {
        "status": orchestrator.get_status(),
        "quick_table": orchestrator.quick_table(),
        "chart": chart,
        "show_chart": show_chart,
    })
