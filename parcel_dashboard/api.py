"""Same-origin JSON routes that proxy the Parcel API with the session key."""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from .constants import CARRIERS_CACHE_CONTROL
from .context import RequestContext, get_request_context
from .errors import MalformedInput
from .services import fetch_deliveries, load_carriers, register_delivery
from .session import clear_session_cookie, encode_session_cookie

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


async def _read_json_body(request: Request) -> Dict[str, Any]:
    try:
        body = await request.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}


def _acknowledge(set_cookie: str) -> JSONResponse:
    response = JSONResponse({"ok": True})
    response.headers["Cache-Control"] = "no-store"
    response.headers.append("set-cookie", set_cookie)
    return response


@router.get("/deliveries")
def list_deliveries(
    filter_mode: Optional[str] = None,
    ctx: RequestContext = Depends(get_request_context),
) -> JSONResponse:
    payload = fetch_deliveries(ctx, filter_mode)
    return JSONResponse(payload)


@router.post("/add-delivery")
async def add_delivery(
    request: Request, ctx: RequestContext = Depends(get_request_context)
) -> JSONResponse:
    ctx.require_api_key()
    body = await _read_json_body(request)
    payload = await run_in_threadpool(
        register_delivery,
        ctx,
        body.get("trackingNumber"),
        body.get("carrierCode"),
        body.get("title"),
    )
    return JSONResponse(payload)


@router.get("/carriers")
def list_carriers(ctx: RequestContext = Depends(get_request_context)) -> JSONResponse:
    carriers = load_carriers(ctx)
    return JSONResponse(
        {"carriers": [carrier.to_dict() for carrier in carriers]},
        headers={"Cache-Control": CARRIERS_CACHE_CONTROL},
    )


@router.post("/session")
async def create_session(
    request: Request, ctx: RequestContext = Depends(get_request_context)
) -> JSONResponse:
    body = await _read_json_body(request)
    api_key = body.get("apiKey")
    api_key = api_key.strip() if isinstance(api_key, str) else ""
    if not api_key:
        raise MalformedInput("API key is required")
    logger.info("Session created")
    return _acknowledge(encode_session_cookie(api_key, ctx.secure))


@router.delete("/session")
def destroy_session(ctx: RequestContext = Depends(get_request_context)) -> JSONResponse:
    logger.info("Session cleared")
    return _acknowledge(clear_session_cookie(ctx.secure))
