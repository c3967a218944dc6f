"""JSON API endpoints for the rate, the converter session and the trend chart."""

from __future__ import annotations

from typing import Any

import structlog
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from pesopro.chart.curve import ChartGeometry
from pesopro.exceptions import InvalidKeyError
from pesopro.models import Currency

log = structlog.get_logger(__name__)

router = APIRouter()


def _chart_to_dict(geometry: ChartGeometry) -> dict[str, Any]:
    return {
        "series": [{"date": p.date, "rate": p.rate} for p in geometry.series],
        "points": [{"x": p.x, "y": p.y} for p in geometry.points],
        "line_path": geometry.line_path,
        "area_path": geometry.area_path,
        "low": geometry.stats.low,
        "high": geometry.stats.high,
        "trend": geometry.stats.trend,
        "trend_up": geometry.stats.is_up,
        "active_index": geometry.active_index,
        "active_rate": geometry.active_rate,
        "active_label": geometry.active_label,
        "active_point": {"x": geometry.active_point.x, "y": geometry.active_point.y},
        "grid_lines": geometry.grid_lines,
        "viewport": {
            "width": geometry.viewport.width,
            "height": geometry.viewport.height,
            "padding": geometry.viewport.padding,
        },
    }


def _bad_request(message: str) -> JSONResponse:
    return JSONResponse(status_code=400, content={"error": message})


@router.get("/rate")
async def get_rate(request: Request) -> JSONResponse:
    """Current rate, its source and when it was observed."""
    orchestrator = request.app.state.orchestrator
    current = orchestrator.rate
    if current is None:
        return JSONResponse(status_code=503, content={"error": "Rate not loaded yet"})
    return JSONResponse(content={
        "base": Currency.USD.value,
        "quote": Currency.MXN.value,
        "rate": current.value,
        "source": current.source.value,
        "last_updated": current.observed_at.isoformat(),
    })


@router.post("/rate/refresh")
async def refresh_rate(request: Request) -> JSONResponse:
    """Force a live fetch. A failed fetch keeps the rate already served."""
    orchestrator = request.app.state.orchestrator
    refreshed = await orchestrator.refresh_rate()
    if refreshed is None:
        log.info("manual_rate_refresh_failed")
    return JSONResponse(content={
        "refreshed": refreshed is not None,
        **orchestrator.get_status(),
    })


@router.get("/converter")
async def get_converter(request: Request) -> JSONResponse:
    """Converter session state with both display strings."""
    return JSONResponse(content=request.app.state.orchestrator.get_status())


@router.post("/converter/keys")
async def press_keys(request: Request) -> JSONResponse:
    """Apply keypad keys in order. Body: {"keys": "12.5"}."""
    orchestrator = request.app.state.orchestrator
    body = await request.json()
    keys = body.get("keys") if isinstance(body, dict) else None
    if not isinstance(keys, str) or not keys:
        return _bad_request("Body must contain a non-empty 'keys' string")
    try:
        orchestrator.engine.append_keys(keys)
    except InvalidKeyError as e:
        return _bad_request(str(e))
    return JSONResponse(content=orchestrator.get_status())


@router.post("/converter/delete")
async def delete_key(request: Request) -> JSONResponse:
    orchestrator = request.app.state.orchestrator
    orchestrator.engine.delete_last()
    return JSONResponse(content=orchestrator.get_status())


@router.post("/converter/clear")
async def clear_input(request: Request) -> JSONResponse:
    orchestrator = request.app.state.orchestrator
    orchestrator.engine.clear()
    return JSONResponse(content=orchestrator.get_status())


@router.post("/converter/side")
async def switch_side(request: Request) -> JSONResponse:
    """Make USD or MXN the edited side. Body: {"side": "USD"}."""
    orchestrator = request.app.state.orchestrator
    body = await request.json()
    raw_side = body.get("side") if isinstance(body, dict) else None
    try:
        side = Currency(str(raw_side).upper())
    except ValueError:
        return _bad_request(f"Unknown side: {raw_side!r}")
    orchestrator.engine.switch_active_side(side)
    return JSONResponse(content=orchestrator.get_status())


@router.get("/chart")
async def get_chart(
    request: Request,
    client_x: float | None = None,
    rect_left: float = 0.0,
    rect_width: float | None = None,
) -> JSONResponse:
    """Trend chart geometry. Pass client_x/rect_width to highlight a hovered sample."""
    orchestrator = request.app.state.orchestrator
    if client_x is not None and rect_width is not None:
        geometry = await orchestrator.chart_at(client_x, rect_left, rect_width)
    else:
        geometry = await orchestrator.chart()
    return JSONResponse(content=_chart_to_dict(geometry))


@router.get("/quick-table")
async def get_quick_table(request: Request) -> JSONResponse:
    """Whole-peso equivalents of common dollar amounts."""
    orchestrator = request.app.state.orchestrator
    rows = orchestrator.quick_table()
    return JSONResponse(content=[{"usd": usd, "mxn": mxn} for usd, mxn in rows])
