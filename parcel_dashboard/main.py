from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Optional, TypeVar

from fastapi import Depends, FastAPI, Form, Request
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates
from starlette.exceptions import HTTPException as StarletteHTTPException

from .api import router as api_router
from .client import ParcelClient
from .config import load_settings
from .context import RequestContext, get_request_context
from .dashboard import DashboardController, ModalState, SearchState, dashboard_url
from .errors import ParcelError, Unauthenticated
from .i18n import LocaleResolver, encode_lang_cookie
from .services import register_delivery
from .session import clear_session_cookie, encode_session_cookie

BASE_DIR = Path(__file__).resolve().parent
STATIC_DIR = BASE_DIR / "static"

settings = load_settings()


def _log_level(name: str) -> int:
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.INFO


logging.basicConfig(level=_log_level(settings.log_level), format="%(message)s")
logger = logging.getLogger(__name__)

app = FastAPI(title="Parcel Dashboard")
app.state.settings = settings
app.state.parcel_client = ParcelClient(
    settings.api_base_url, timeout=settings.api_timeout
)
app.state.locale_resolver = LocaleResolver(
    settings.supported_locales, settings.default_locale
)

ResponseT = TypeVar("ResponseT", HTMLResponse, RedirectResponse)

app.mount("/static", StaticFiles(directory=STATIC_DIR), name="static")
templates = Jinja2Templates(directory=BASE_DIR / "templates")

app.include_router(api_router)

SIGN_IN_PATH = "/sign-in"


def _finalize_response(
    response: ResponseT,
    *,
    set_cookie: Optional[str] = None,
) -> ResponseT:
    response.headers["Cache-Control"] = "no-store"
    if set_cookie:
        response.headers.append("set-cookie", set_cookie)
    return response


def _redirect(url: str, *, set_cookie: Optional[str] = None) -> RedirectResponse:
    response = RedirectResponse(url=url, status_code=303)
    return _finalize_response(response, set_cookie=set_cookie)


def _redirect_to_sign_in() -> RedirectResponse:
    return _redirect(SIGN_IN_PATH)


def _render(
    request: Request,
    template: str,
    context: Optional[Dict[str, Any]] = None,
    *,
    status_code: int = 200,
) -> HTMLResponse:
    response = templates.TemplateResponse(
        request, template, context or {}, status_code=status_code
    )
    chosen = request.app.state.locale_resolver.query_locale(request)
    return _finalize_response(
        response, set_cookie=encode_lang_cookie(chosen) if chosen else None
    )


def _wants_json(request: Request) -> bool:
    return request.url.path.startswith("/api/")


@app.exception_handler(ParcelError)
async def handle_parcel_error(request: Request, exc: ParcelError):
    logger.warning("%s %s -> %s: %s", request.method, request.url.path, exc.status_code, exc.message)
    if _wants_json(request):
        return JSONResponse(exc.to_dict(), status_code=exc.status_code)
    if isinstance(exc, Unauthenticated):
        return _redirect_to_sign_in()
    return _render(
        request,
        "error.html",
        {"error_code": exc.status_code, "error_message": exc.message},
        status_code=exc.status_code,
    )


@app.exception_handler(StarletteHTTPException)
async def handle_http_exception(request: Request, exc: StarletteHTTPException):
    if _wants_json(request):
        message = "Resource not found" if exc.status_code == 404 else str(exc.detail)
        return JSONResponse({"error": message}, status_code=exc.status_code)
    if exc.status_code == 404:
        return _render(request, "not_found.html", status_code=404)
    return _render(
        request,
        "error.html",
        {"error_code": exc.status_code, "error_message": str(exc.detail)},
        status_code=exc.status_code,
    )


@app.get("/", response_class=HTMLResponse)
async def landing(request: Request, ctx: RequestContext = Depends(get_request_context)):
    return _render(request, "landing.html", {"signed_in": bool(ctx.api_key)})


@app.get(SIGN_IN_PATH, response_class=HTMLResponse)
async def sign_in_page(request: Request):
    return _render(request, "sign_in.html", {"error": None})


@app.post(SIGN_IN_PATH)
async def sign_in(
    request: Request,
    api_key: str = Form(""),
    ctx: RequestContext = Depends(get_request_context),
):
    api_key = api_key.strip()
    if not api_key:
        logger.info("Sign-in rejected: empty API key")
        return _render(
            request, "sign_in.html", {"error": "API key is required"}, status_code=400
        )
    return _redirect(dashboard_url(SearchState()), set_cookie=encode_session_cookie(api_key, ctx.secure))


@app.post("/sign-out")
async def sign_out(ctx: RequestContext = Depends(get_request_context)):
    return _redirect(SIGN_IN_PATH, set_cookie=clear_session_cookie(ctx.secure))


@app.get("/app", response_class=HTMLResponse)
def dashboard(request: Request, ctx: RequestContext = Depends(get_request_context)):
    if not ctx.api_key:
        return _redirect_to_sign_in()

    search = SearchState.from_params(request.query_params)
    modals = ModalState.from_params(request.query_params)
    try:
        view = DashboardController(ctx).load(search, modals)
    except Unauthenticated:
        logger.info("Parcel API rejected the session key; redirecting to sign-in")
        return _redirect_to_sign_in()
    return _render(request, "dashboard.html", {"view": view})


@app.post("/app/add-delivery")
def add_delivery_form(
    request: Request,
    tracking_number: str = Form(""),
    carrier_code: str = Form(""),
    title: str = Form(""),
    mode: str = Form(""),
    group: str = Form(""),
    carrier: str = Form(""),
    status: str = Form(""),
    ctx: RequestContext = Depends(get_request_context),
):
    search = SearchState.from_params(
        {"mode": mode, "group": group, "carrier": carrier, "status": status}
    )
    try:
        register_delivery(ctx, tracking_number, carrier_code, title)
    except Unauthenticated:
        return _redirect_to_sign_in()
    except ParcelError as exc:
        modals = ModalState(add_open=True)
        try:
            view = DashboardController(ctx).load(search, modals, error=exc.message)
        except Unauthenticated:
            return _redirect_to_sign_in()
        view.form = {
            "tracking_number": tracking_number,
            "carrier_code": carrier_code,
            "title": title,
        }
        return _render(
            request, "dashboard.html", {"view": view}, status_code=exc.status_code
        )
    return _redirect(dashboard_url(search))
