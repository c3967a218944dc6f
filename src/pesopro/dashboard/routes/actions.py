"""POST endpoints for the keypad, returning the updated converter partial (htmx)."""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

from pesopro.exceptions import InvalidKeyError
from pesopro.models import Currency

log = structlog.get_logger(__name__)

router = APIRouter()


def _converter_partial(request: Request, error: str = "") -> HTMLResponse:
    templates: Jinja2Templates = request.app.state.templates
    orchestrator = request.app.state.orchestrator
    return templates.TemplateResponse(request, "partials/converter.html", {
        "status": orchestrator.get_status(),
        "error": error,
    })


@router.post("/key/{key}", response_class=HTMLResponse)
async def press_key(request: Request, key: str) -> HTMLResponse:
    orchestrator = request.app.state.orchestrator
    # "dot" keeps the URL free of a bare "."
    key = "." if key == "dot" else key
    error = ""
    try:
        orchestrator.engine.append_digit(key)
    except InvalidKeyError as e:
        error = str(e)
        log.warning("invalid_keypad_key", key=key)
    return _converter_partial(request, error)


@router.post("/delete", response_class=HTMLResponse)
async def delete_key(request: Request) -> HTMLResponse:
    request.app.state.orchestrator.engine.delete_last()
    return _converter_partial(request)


@router.post("/clear", response_class=HTMLResponse)
async def clear_input(request: Request) -> HTMLResponse:
    request.app.state.orchestrator.engine.clear()
    return _converter_partial(request)


@router.post("/side/{side}", response_class=HTMLResponse)
async def switch_side(request: Request, side: str) -> HTMLResponse:
    try:
        currency = Currency(side.upper())
    except ValueError:
        return _converter_partial(request, f"Unknown side: {side}")
    request.app.state.orchestrator.engine.switch_active_side(currency)
    return _converter_partial(request)
