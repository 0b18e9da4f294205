"""Page-view endpoints behind every dashboard page.

GET /api/v1/dashboard/{sector}/{country}          → sector overview
GET /api/v1/dashboard/{sector}/{country}/{page}   → any other page
"""

from pathlib import Path

from fastapi import APIRouter, Depends, Query

from api.database import get_data_dir
from api.models import PageViewOut
from utils.views import build_page_view

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get(
    "/{sector}/{country}",
    response_model=PageViewOut,
    summary="Sector overview page view",
)
def overview_view(
    sector: str,
    country: str,
    year: int | None = Query(None, ge=1900, le=2100, description="Selected year; defaults to the latest"),
    data_dir: Path = Depends(get_data_dir),
) -> dict:
    return build_page_view(sector, None, country, year, data_dir=data_dir)


@router.get(
    "/{sector}/{country}/{page}",
    response_model=PageViewOut,
    summary="Dashboard page view",
    responses={404: {"description": "Unknown page, country without data, or year not available"}},
)
def page_view(
    sector: str,
    country: str,
    page: str,
    year: int | None = Query(None, ge=1900, le=2100, description="Selected year; defaults to the latest"),
    data_dir: Path = Depends(get_data_dir),
) -> dict:
    """Return KPI cards for the selected year and the per-metric year series.

    Cards carry the previous year's value and the percent change (null when
    the previous value is missing or 0).  Data-methodology pages add the
    methodology notes; the agric forecast-simulation page adds growth rates
    and total input usage.
    """
    return build_page_view(sector, page, country, year, data_dir=data_dir)
