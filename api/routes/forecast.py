"""Forecast endpoints.

GET /api/v1/forecast/{country}?metric=cattle_head&years_ahead=5
    Livestock trend projection (linear fit + decadal seasonal term).
GET /api/v1/forecast/{country}/metrics
    Metrics offered by the forecast page select box.
GET /api/v1/forecast/{country}/growth?field=improved_seed_use_pct
    Year-over-year growth of an agric input field.
"""

from pathlib import Path

from fastapi import APIRouter, Depends, Query

from api.database import get_data_dir
from api.models import ForecastOut, GrowthOut
from utils.datasets import load_dataset, require_country
from utils.errors import UnknownPageError
from utils.forecast import DEFAULT_YEARS_AHEAD, MAX_YEARS_AHEAD, MIN_YEARS_AHEAD, growth_rates
from utils.formatting import display_country
from utils.pages import AGRIC_GROWTH_FIELDS
from utils.views import build_forecast_view, forecast_metrics

router = APIRouter(prefix="/forecast", tags=["forecast"])


@router.get("/{country}/metrics", summary="Forecastable metrics")
def list_forecast_metrics(country: str) -> list[dict]:
    return forecast_metrics("livestock")


@router.get(
    "/{country}/growth",
    response_model=GrowthOut,
    summary="Year-over-year growth rates",
)
def growth(
    country: str,
    field: str = Query(..., description="One of improved_seed_use_pct, mechanization_units_per_1000_farms"),
    data_dir: Path = Depends(get_data_dir),
) -> dict:
    if field not in AGRIC_GROWTH_FIELDS:
        raise UnknownPageError(f"Unknown growth field: {field}")
    rows = require_country(load_dataset("agric", data_dir), country)
    return {
        "country": display_country(country),
        "field": field,
        "rates": growth_rates(rows, field),
    }


@router.get(
    "/{country}",
    response_model=ForecastOut,
    summary="Livestock forecast",
)
def forecast(
    country: str,
    metric: str = Query("cattle_head", description="Livestock dataset field"),
    years_ahead: int = Query(
        DEFAULT_YEARS_AHEAD, ge=MIN_YEARS_AHEAD, le=MAX_YEARS_AHEAD,
        description="Years to project (1-10)",
    ),
    data_dir: Path = Depends(get_data_dir),
) -> dict:
    """Return historical points followed by projected points.

    Projection: least-squares line over (year, value) with missing values
    as 0, plus ``0.05 * base * sin(2π * (year mod 10) / 10)``, floored at 0.
    The summary reports latest value, final projected value and growth %.
    """
    return build_forecast_view(country, metric, years_ahead, data_dir=data_dir)
