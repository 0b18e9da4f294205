"""
FastAPI application factory.

Usage:
    python -m api.app                    # Dev server on port 8000
    APP_DATA_DIR=/srv/data APP_DB_PATH=/srv/admin.sqlite python -m api.app

OpenAPI docs available at http://localhost:8000/docs after starting.

Proxy-aware client IPs come from TRUSTED_PROXIES; rate limit counters are
evicted periodically; APP_LOG_FORMAT=json switches to structured logs;
CORS origins come from APP_CORS_ORIGINS.
"""

import json
import logging
import time
import uuid
from collections import defaultdict
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates
from starlette.exceptions import HTTPException as StarletteHTTPException

import api.database as _db_mod
from api.database import get_data_dir, get_db_path
from api.routes import admin, dashboard, download, forecast, news, reference
from api.routes import users as user_routes
from api.routes import frontend as frontend_routes
from utils import store
from utils.config import AppConfig
from utils.datasets import dataset_files
from utils.errors import DashboardError
from utils.formatting import format_change, format_value

# ── Configuration ─────────────────────────────────────────────────────────────
_cfg = AppConfig.from_env()

# ── Structured JSON logging ───────────────────────────────────────────────────


class _JsonFormatter(logging.Formatter):
    """Emit log records as newline-delimited JSON."""

    def format(self, record: logging.LogRecord) -> str:
        data: dict = {
            "timestamp": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        # Merge extra fields added via logger.info("...", extra={...})
        for key in ("method", "path", "status", "duration_ms", "client_ip",
                    "request_id"):
            if hasattr(record, key):
                data[key] = getattr(record, key)
        if record.exc_info:
            data["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(data)


_logger = logging.getLogger("ecoagris_api")
_handler = logging.StreamHandler()
if _cfg.log_format == "json":
    _handler.setFormatter(_JsonFormatter())
else:
    _handler.setFormatter(
        logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s")
    )
logging.basicConfig(handlers=[_handler], level=logging.INFO, force=True)

# ── Rate limiting state with memory bounds ────────────────────────────────────
# Keys are path prefixes; the longest matching prefix wins.
_RATE_LIMITS: dict[str, int] = {
    "/api/v1/download": _cfg.rate_limit_download,
    "/api/v1/admin/upload-data": _cfg.rate_limit_upload,
}
_DEFAULT_RATE_LIMIT = _cfg.rate_limit_default
_rate_counters: dict[str, dict[str, list]] = defaultdict(lambda: defaultdict(list))
_MAX_TRACKED_IPS = 10_000
_last_cleanup: float = 0.0
_CLEANUP_INTERVAL = 300.0  # 5 minutes


def _limit_for(path: str) -> tuple[str, int]:
    """Return (bucket, limit) for *path*."""
    best = ""
    for prefix in _RATE_LIMITS:
        if path.startswith(prefix) and len(prefix) > len(best):
            best = prefix
    if best:
        return best, _RATE_LIMITS[best]
    return path, _DEFAULT_RATE_LIMIT


def _cleanup_rate_counters() -> None:
    """Remove stale rate counter entries to bound memory usage."""
    global _last_cleanup
    now = time.time()
    if now - _last_cleanup < _CLEANUP_INTERVAL:
        return
    _last_cleanup = now
    window_start = now - 60.0
    to_delete = []
    for ip, paths in _rate_counters.items():
        for path in list(paths.keys()):
            paths[path] = [t for t in paths[path] if t > window_start]
            if not paths[path]:
                del paths[path]
        if not paths:
            to_delete.append(ip)
    for ip in to_delete:
        del _rate_counters[ip]
    # Still over the cap: evict the IPs with the fewest recent hits
    if len(_rate_counters) > _MAX_TRACKED_IPS:
        excess = len(_rate_counters) - _MAX_TRACKED_IPS
        oldest = sorted(
            _rate_counters.keys(),
            key=lambda ip: sum(len(v) for v in _rate_counters[ip].values()),
        )[:excess]
        for ip in oldest:
            del _rate_counters[ip]


# ── Real client IP (proxy-aware) ──────────────────────────────────────────────

def _get_client_ip(request: Request) -> str:
    """Return the real client IP, respecting X-Forwarded-For from trusted proxies."""
    direct_ip = request.client.host if request.client else "unknown"
    if not _cfg.trusted_proxies:
        return direct_ip
    if direct_ip not in _cfg.trusted_proxies:
        return direct_ip
    xff = request.headers.get("X-Forwarded-For", "")
    if xff:
        # X-Forwarded-For: client, proxy1, proxy2; leftmost is the client
        real_ip = xff.split(",")[0].strip()
        if real_ip:
            return real_ip
    return direct_ip


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create the admin store and warn when the dataset directory is missing."""
    store.init_store(get_db_path())
    data_dir = get_data_dir()
    if not data_dir.is_dir():
        _logger.warning("Dataset directory not found at %s", data_dir)
    yield


def create_app(db_path: Path | None = None, data_dir: Path | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        db_path: Override the admin store path (useful for testing).
        data_dir: Override the dataset directory (useful for testing).

    Returns:
        Configured FastAPI application instance.
    """
    _db_mod.configure(db_path=db_path, data_dir=data_dir)

    app = FastAPI(
        title="ECOAGRIS Statistics API",
        summary="Agricultural, livestock, nutrition, macroeconomic and rice statistics for ECOWAS countries.",
        description=(
            "## ECOAGRIS Statistics API\n\n"
            "Page views, forecasts and exports over simulated yearly datasets "
            "for the 15 ECOWAS member states.\n\n"
            "### Key concepts\n"
            "- **Sector**: agric, livestock, nutrition, macroeconomics-indices or rice.\n"
            "- **Page view**: KPI cards for the selected year plus one series per metric.\n"
            "- **Year** defaults to the latest data year (2025; 2024 for rice).\n\n"
            "### Rate limits\n"
            f"- `/api/v1/download`: {_cfg.rate_limit_download} req/min per IP\n"
            f"- `/api/v1/admin/upload-data`: {_cfg.rate_limit_upload} req/min per IP\n"
            f"- All other endpoints: {_cfg.rate_limit_default} req/min per IP\n\n"
            "Returns `429 Too Many Requests` with `Retry-After: 60` when exceeded."
        ),
        version="1.0.0",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_tags=[
            {"name": "reference", "description": "Countries, sectors, pages and locales."},
            {"name": "dashboard", "description": "Page views behind every dashboard page."},
            {"name": "forecast", "description": "Livestock forecasts and agric growth rates."},
            {"name": "download", "description": "CSV, Excel, PNG and PDF exports."},
            {"name": "news", "description": "Latest ECOWAS agriculture headlines."},
            {"name": "users", "description": "Dashboard user sign-up."},
            {"name": "admin", "description": "Admin sign-in, data upload and user management."},
            {"name": "meta", "description": "Health check."},
        ],
    )

    # ── CORS middleware ───────────────────────────────────────────────────────
    app.add_middleware(
        CORSMiddleware,
        allow_origins=_cfg.cors_origins,
        allow_credentials=False,
        allow_methods=["GET", "POST", "DELETE", "HEAD", "OPTIONS"],
        allow_headers=["*"],
    )

    # ── Request logging + rate limiting middleware ────────────────────────────

    @app.middleware("http")
    async def log_and_rate_limit(request: Request, call_next):
        """Log each request and enforce per-IP rate limits."""
        request_id = str(uuid.uuid4())[:8]
        start = time.monotonic()
        client_ip = _get_client_ip(request)
        path = request.url.path

        _cleanup_rate_counters()

        # Health check bypass: not rate limited
        if path == "/health":
            return await call_next(request)

        bucket, limit = _limit_for(path)
        now = time.time()
        window_start = now - 60.0
        hits = _rate_counters[client_ip][bucket]
        _rate_counters[client_ip][bucket] = [t for t in hits if t > window_start]
        if len(_rate_counters[client_ip][bucket]) >= limit:
            _logger.warning(
                "rate_limited ip=%s path=%s limit=%d", client_ip, path, limit
            )
            return JSONResponse(
                status_code=429,
                content={"error": "Too many requests", "status_code": 429},
                headers={"Retry-After": "60"},
            )
        _rate_counters[client_ip][bucket].append(now)

        response = await call_next(request)
        duration_ms = (time.monotonic() - start) * 1000
        response.headers["X-Request-ID"] = request_id

        if _cfg.log_format == "json":
            _logger.info(
                "request",
                extra={
                    "method": request.method,
                    "path": path,
                    "status": response.status_code,
                    "duration_ms": round(duration_ms, 1),
                    "client_ip": client_ip,
                    "request_id": request_id,
                },
            )
        else:
            _logger.info(
                "method=%s path=%s status=%d duration_ms=%.1f ip=%s rid=%s",
                request.method, path, response.status_code, duration_ms,
                client_ip, request_id,
            )
        if duration_ms > 500:
            _logger.warning(
                "slow_request method=%s path=%s duration_ms=%.1f",
                request.method, path, duration_ms,
            )
        return response

    # ── Content Security Policy + security headers ────────────────────────────

    @app.middleware("http")
    async def security_headers(request: Request, call_next):
        """Add Content-Security-Policy, X-Content-Type-Options, and X-Frame-Options."""
        response = await call_next(request)
        # 'unsafe-inline' is required for the inline <script> blocks in templates.
        response.headers["Content-Security-Policy"] = (
            "default-src 'self'; "
            "script-src 'self' cdn.jsdelivr.net 'unsafe-inline'; "
            "style-src 'self' 'unsafe-inline'; "
            "img-src 'self' data: https:; "
            "font-src 'self'; "
            "connect-src 'self';"
        )
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        return response

    # ── Error handling ────────────────────────────────────────────────────────

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        """Catch unhandled exceptions and return JSON instead of HTML traceback."""
        _logger.exception("unhandled error path=%s", request.url.path)
        return JSONResponse(
            status_code=500,
            content={
                "error": "Internal server error",
                "detail": str(exc),
                "status_code": 500,
            },
        )

    @app.exception_handler(ValueError)
    async def value_error_handler(request: Request, exc: ValueError):
        return JSONResponse(
            status_code=400,
            content={"error": "Bad request", "detail": str(exc), "status_code": 400},
        )

    @app.exception_handler(DashboardError)
    async def dashboard_error_handler(request: Request, exc: DashboardError):
        if exc.status_code >= 500:
            _logger.error("%s path=%s: %s", exc.error, request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content=frontend_routes.http_error_body(exc.status_code, exc.detail),
            headers=getattr(exc, "headers", None),
        )

    # ── Health check ──────────────────────────────────────────────────────────

    @app.get("/health", tags=["meta"], summary="Health check")
    def health():
        """Return 200 OK when the dataset directory and the admin store are reachable."""
        data_dir = get_data_dir()
        db_path = get_db_path()
        if not data_dir.is_dir():
            return JSONResponse(
                status_code=503,
                content={"status": "no_data", "data_dir": str(data_dir)},
            )
        try:
            conn = store.connect(db_path)
            try:
                users = store.count_users(conn)
            finally:
                conn.close()
        except Exception as e:
            return JSONResponse(
                status_code=503,
                content={"status": "degraded", "error": str(e)},
            )
        return {
            "status": "ok",
            "data_dir": str(data_dir),
            "datasets": len(dataset_files(data_dir)),
            "users": users,
        }

    # ── Register routers ──────────────────────────────────────────────────────

    prefix = "/api/v1"
    app.include_router(reference.router, prefix=prefix)
    app.include_router(dashboard.router, prefix=prefix)
    app.include_router(forecast.router,  prefix=prefix)
    app.include_router(download.router,  prefix=prefix)
    app.include_router(news.router,      prefix=prefix)
    app.include_router(user_routes.router, prefix=prefix)
    app.include_router(admin.router,     prefix=prefix)

    # ── Static files + Jinja2 templates ───────────────────────────────────────
    _here = Path(__file__).parent.parent  # project root

    static_dir = _here / "static"
    templates_dir = _here / "templates"

    if static_dir.exists():
        app.mount("/static", StaticFiles(directory=str(static_dir)), name="static")

    if templates_dir.exists():
        templates = Jinja2Templates(directory=str(templates_dir))
        templates.env.filters["fmt_value"] = format_value
        templates.env.filters["fmt_change"] = format_change

        frontend_routes.set_templates(templates)
        app.include_router(frontend_routes.router)

        # HTML error pages for browser requests
        frontend_routes.register_error_handlers(app)

    return app


# Singleton instance for uvicorn
app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "api.app:app",
        host=_cfg.api_host,
        port=_cfg.api_port,
        reload=True,
        log_level="info",
    )
