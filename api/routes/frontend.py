"""
Frontend HTML routes.

Serves the Jinja2 templates for the country picker, sector dashboards,
the livestock forecast page and the admin panel.  Charts are drawn in the
browser by Chart.js from the page view embedded in each dashboard page.

Routes:
    GET /                                          → index.html (country grid)
    GET /{country}/dashboard                       → country.html (sector cards)
    GET /{country}/dashboard/{sector}              → dashboard.html (overview)
    GET /{country}/dashboard/{sector}/{page}       → dashboard.html
    GET /{country}/dashboard/livestock/forecast-simulation → forecast.html
    GET /signup                                    → signup.html
    GET /admin/login                               → admin_login.html
    GET /admin                                     → admin_home.html
    GET /admin/upload                              → admin_upload.html
    GET /admin/users                               → admin_users.html
    GET /admin/notifications                       → admin_notifications.html

Every page picks its language from ``?lang=`` or Accept-Language and
exposes ``t(key, **params)`` to the template.
"""

import logging
import sqlite3
from functools import partial
from http import HTTPStatus
from pathlib import Path
from typing import Any

from fastapi import APIRouter, Depends, FastAPI, Query, Request
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse
from fastapi.templating import Jinja2Templates
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.auth import current_admin
from api.database import get_data_dir, get_db
from api.routes.reference import country_list
from utils import store
from utils.config import AppConfig, KnownValues
from utils.datasets import country_slug, dataset_files
from utils.errors import DashboardError
from utils.forecast import DEFAULT_YEARS_AHEAD, MAX_YEARS_AHEAD, MIN_YEARS_AHEAD
from utils.formatting import display_country
from utils.i18n import negotiate_locale, translate
from utils.pages import CATALOG, SECTOR_TITLES, get_pages
from utils.signup import GENDERS
from utils.views import build_forecast_view, build_page_view, forecast_metrics

logger = logging.getLogger(__name__)

router = APIRouter(tags=["frontend"])

# Templates instance is set by create_app() after mounting.
_templates: Jinja2Templates | None = None


def set_templates(t: Jinja2Templates) -> None:
    global _templates
    _templates = t


def _tmpl() -> Jinja2Templates:
    if _templates is None:
        raise RuntimeError("Templates not initialised: call set_templates() first")
    return _templates


def _locale(request: Request) -> str:
    return negotiate_locale(
        request.query_params.get("lang"),
        request.headers.get("Accept-Language"),
        AppConfig.from_env().default_locale,
    )


def _render(request: Request, name: str, context: dict[str, Any],
            status_code: int = 200) -> HTMLResponse:
    locale = _locale(request)
    ctx = {
        "locale": locale,
        "locales": KnownValues.LOCALES,
        "t": partial(translate, locale=locale),
        **context,
    }
    return _tmpl().TemplateResponse(request, name, ctx, status_code=status_code)


def _sidebar(sector: str) -> list[dict]:
    return [{"slug": p.slug, "title": p.title} for p in get_pages(sector)]


def _known_country(country: str) -> str:
    """Canonical name for a country URL slug (``burkina-faso``), else 404."""
    wanted = country_slug(country)
    for name in KnownValues.COUNTRIES.values():
        if country_slug(name) == wanted:
            return name
    raise StarletteHTTPException(status_code=404, detail=f"Unknown country: {country}")


# ── Public pages ──────────────────────────────────────────────────────────────

@router.get("/", response_class=HTMLResponse, include_in_schema=False)
def index(request: Request) -> HTMLResponse:
    """Country picker."""
    return _render(request, "index.html", {
        "countries": country_list(),
        "sectors": SECTOR_TITLES,
    })


@router.get("/signup", response_class=HTMLResponse, include_in_schema=False)
def signup(request: Request) -> HTMLResponse:
    """Dashboard user registration form."""
    return _render(request, "signup.html", {
        "countries": sorted(KnownValues.COUNTRIES.values()),
        "genders": GENDERS,
    })


# ── Admin pages (declared before /{country}/... so "admin" is never a country) ─

def _admin_page(request: Request, conn: sqlite3.Connection, name: str,
                context: dict[str, Any]) -> HTMLResponse | RedirectResponse:
    admin = current_admin(request, conn)
    if admin is None:
        return RedirectResponse("/admin/login", status_code=303)
    return _render(request, name, {
        "admin": admin,
        "unread_notifications": store.count_unread_notifications(conn),
        **context,
    })


@router.get("/admin/login", response_class=HTMLResponse, include_in_schema=False)
def admin_login(request: Request) -> HTMLResponse:
    return _render(request, "admin_login.html", {})


@router.get("/admin", response_class=HTMLResponse, include_in_schema=False)
def admin_home(
    request: Request,
    conn: sqlite3.Connection = Depends(get_db),
    data_dir: Path = Depends(get_data_dir),
):
    """Stats and the most recent admin actions."""
    files = dataset_files(data_dir)
    return _admin_page(request, conn, "admin_home.html", {
        "file_count": len(files),
        "last_modified": max((f["modified"] for f in files), default=None),
        "files": files,
        "user_count": store.count_users(conn),
        "logs": store.recent_logs(conn),
    })


@router.get("/admin/upload", response_class=HTMLResponse, include_in_schema=False)
def admin_upload(request: Request, conn: sqlite3.Connection = Depends(get_db)):
    return _admin_page(request, conn, "admin_upload.html", {
        "sheets": KnownValues.UPLOAD_SHEETS,
        "uploads": store.list_uploads(conn)[:20],
        "max_upload_mb": AppConfig.from_env().max_upload_mb,
    })


@router.get("/admin/users", response_class=HTMLResponse, include_in_schema=False)
def admin_users(
    request: Request,
    search: str = Query(""),
    status: str = Query("all", pattern="^(all|active|blocked)$"),
    role: str = Query("all"),
    page: int = Query(1, ge=1),
    conn: sqlite3.Connection = Depends(get_db),
):
    """User table with search, status/role filters and pagination."""
    result = store.list_users(conn, search=search, status=status, role=role, page=page)
    return _admin_page(request, conn, "admin_users.html", {
        "filters": {"search": search, "status": status, "role": role},
        **result,
    })


@router.get("/admin/notifications", response_class=HTMLResponse, include_in_schema=False)
def admin_notifications(
    request: Request,
    filter: str = Query("all", pattern="^(all|unread|info|success|warning|error)$"),
    conn: sqlite3.Connection = Depends(get_db),
):
    return _admin_page(request, conn, "admin_notifications.html", {
        "active_filter": filter,
        "filters": ("all", "unread") + store.NOTIFICATION_TYPES,
        "items": store.list_notifications(conn, filter),
    })


# ── Country dashboards ────────────────────────────────────────────────────────

@router.get("/{country}/dashboard", response_class=HTMLResponse, include_in_schema=False)
def country_home(request: Request, country: str) -> HTMLResponse:
    """Sector cards for one country."""
    name = _known_country(country)
    return _render(request, "country.html", {
        "country": country.lower(),
        "country_name": name,
        "sectors": SECTOR_TITLES,
    })


@router.get(
    "/{country}/dashboard/livestock/forecast-simulation",
    response_class=HTMLResponse,
    include_in_schema=False,
)
def livestock_forecast(
    request: Request,
    country: str,
    metric: str = Query("cattle_head"),
    years_ahead: int = Query(DEFAULT_YEARS_AHEAD, ge=MIN_YEARS_AHEAD, le=MAX_YEARS_AHEAD),
    data_dir: Path = Depends(get_data_dir),
) -> HTMLResponse:
    """Metric select + years slider; the chart refetches /api/v1/forecast."""
    context: dict[str, Any] = {
        "country": country.lower(),
        "country_name": display_country(country),
        "sector": "livestock",
        "sector_title": SECTOR_TITLES["livestock"],
        "page": "forecast-simulation",
        "pages": _sidebar("livestock"),
        "metrics": forecast_metrics("livestock"),
        "metric": metric,
        "years_ahead": years_ahead,
        "min_years": MIN_YEARS_AHEAD,
        "max_years": MAX_YEARS_AHEAD,
        "forecast": None,
        "error": None,
    }
    status_code = 200
    try:
        context["forecast"] = build_forecast_view(country, metric, years_ahead, data_dir=data_dir)
    except DashboardError as exc:
        context["error"] = exc.message
        status_code = exc.status_code
    return _render(request, "forecast.html", context, status_code)


def _dashboard(request: Request, country: str, sector: str, page: str | None,
               year: int | None, data_dir: Path) -> HTMLResponse:
    if sector not in CATALOG:
        raise StarletteHTTPException(status_code=404, detail=f"Unknown sector: {sector}")
    context: dict[str, Any] = {
        "country": country.lower(),
        "country_name": display_country(country),
        "sector": sector,
        "sector_title": SECTOR_TITLES[sector],
        "page": page or "overview",
        "pages": _sidebar(sector),
        "view": None,
        "error": None,
    }
    status_code = 200
    try:
        context["view"] = build_page_view(sector, page, country, year, data_dir=data_dir)
    except DashboardError as exc:
        logger.info("dashboard error sector=%s page=%s country=%s: %s",
                    sector, page, country, exc.message)
        context["error"] = exc.message
        status_code = exc.status_code
    return _render(request, "dashboard.html", context, status_code)


@router.get("/{country}/dashboard/{sector}", response_class=HTMLResponse, include_in_schema=False)
def sector_overview(
    request: Request,
    country: str,
    sector: str,
    year: int | None = Query(None, ge=1900, le=2100),
    data_dir: Path = Depends(get_data_dir),
) -> HTMLResponse:
    return _dashboard(request, country, sector, None, year, data_dir)


@router.get("/{country}/dashboard/{sector}/{page}", response_class=HTMLResponse, include_in_schema=False)
def sector_page(
    request: Request,
    country: str,
    sector: str,
    page: str,
    year: int | None = Query(None, ge=1900, le=2100),
    data_dir: Path = Depends(get_data_dir),
) -> HTMLResponse:
    return _dashboard(request, country, sector, page, year, data_dir)


# ── Error pages ───────────────────────────────────────────────────────────────

def http_error_body(status_code: int, detail: Any) -> dict[str, Any]:
    """JSON body for HTTP errors, matching the domain error shape."""
    try:
        phrase = HTTPStatus(status_code).phrase
    except ValueError:
        phrase = "Error"
    return {"error": phrase, "detail": detail, "status_code": status_code}


def register_error_handlers(app: FastAPI) -> None:
    """Render HTTP errors as error.html for browser pages, JSON for the API."""

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        headers = getattr(exc, "headers", None)
        wants_html = "text/html" in request.headers.get("Accept", "")
        if request.url.path.startswith("/api/") or not wants_html:
            return JSONResponse(
                status_code=exc.status_code,
                content=http_error_body(exc.status_code, exc.detail),
                headers=headers,
            )
        return _render(request, "error.html", {
            "status_code": exc.status_code,
            "detail": exc.detail,
        }, exc.status_code)
