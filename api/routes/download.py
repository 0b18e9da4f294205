"""
Export endpoints for dashboard and forecast views.

GET /api/v1/download/forecast/{country}?metric=&years_ahead=&fmt=csv|png|pdf
GET /api/v1/download/{sector}/{country}?page=&year=&fmt=csv|xlsx|png|pdf

CSV rows are Year + one column per metric, values formatted by kind
(absent → N/A).  XLSX adds a Metadata sheet.  PNG is a server-rendered
chart; PDF places that chart on an A4 page titled "{Title}: {Country}".
Rendering failures surface as 500 ``{"error": "Export failed"}``.
"""

import logging
from pathlib import Path

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import Response, StreamingResponse

from api.database import get_data_dir
from utils import export
from utils.errors import ExportError
from utils.forecast import DEFAULT_YEARS_AHEAD, MAX_YEARS_AHEAD, MIN_YEARS_AHEAD
from utils.views import build_forecast_view, build_page_view

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/download", tags=["download"])

_MEDIA_TYPES = {
    "csv": "text/csv",
    "xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "png": "image/png",
    "pdf": "application/pdf",
}


def _attachment(content: bytes | str, fmt: str, filename: str,
                extra_headers: dict[str, str] | None = None) -> Response:
    body = content.encode("utf-8") if isinstance(content, str) else content
    return StreamingResponse(
        iter([body]),
        media_type=_MEDIA_TYPES[fmt],
        headers={
            "Content-Disposition": f"attachment; filename={filename}",
            "Content-Length": str(len(body)),
            **(extra_headers or {}),
        },
    )


@router.get("/forecast/{country}", summary="Export a livestock forecast")
def download_forecast(
    country: str,
    metric: str = Query("cattle_head"),
    years_ahead: int = Query(DEFAULT_YEARS_AHEAD, ge=MIN_YEARS_AHEAD, le=MAX_YEARS_AHEAD),
    fmt: str = Query("csv", pattern="^(csv|png|pdf)$", description="Output format"),
    data_dir: Path = Depends(get_data_dir),
) -> Response:
    view = build_forecast_view(country, metric, years_ahead, data_dir=data_dir)
    filename = export.export_filename(country, "forecast", metric, ext=fmt)
    title = f"{view['label']} Forecast"
    try:
        if fmt == "csv":
            content: bytes | str = export.forecast_csv(view)
        else:
            png = export.render_png(title, export.forecast_panels(view))
            content = png if fmt == "png" else export.render_pdf(title, view["country"], png)
    except (ValueError, OSError) as exc:
        logger.exception("forecast export failed country=%s metric=%s", country, metric)
        raise ExportError(str(exc)) from exc
    return _attachment(content, fmt, filename,
                       {"X-Total-Count": str(len(view["points"]))})


@router.get("/{sector}/{country}", summary="Export a dashboard page")
def download_page(
    request: Request,
    sector: str,
    country: str,
    page: str | None = Query(None, description="Page slug; defaults to the overview"),
    year: int | None = Query(None, ge=1900, le=2100),
    fmt: str = Query("csv", pattern="^(csv|xlsx|png|pdf)$", description="Output format"),
    data_dir: Path = Depends(get_data_dir),
) -> Response:
    """Stream the current page view as CSV, Excel, PNG or PDF."""
    view = build_page_view(sector, page, country, year, data_dir=data_dir)
    filename = export.export_filename(country, sector, view["page"], ext=fmt)
    try:
        if fmt == "csv":
            content: bytes | str = export.page_csv(view)
        elif fmt == "xlsx":
            content = export.page_xlsx(view, str(request.url))
        else:
            png = export.render_png(view["title"], export.page_panels(view))
            content = png if fmt == "png" else export.render_pdf(view["title"], view["country"], png)
    except (ValueError, OSError) as exc:
        logger.exception("page export failed sector=%s page=%s", sector, view["page"])
        raise ExportError(str(exc)) from exc
    return _attachment(content, fmt, filename,
                       {"X-Total-Count": str(len(view["years"]))})
