"""Page-view builders shared by the JSON API, HTML pages and exports.

A page view is the payload behind one dashboard page: KPI cards for the
selected year plus a per-metric year series for the charts.
"""

import logging
from pathlib import Path
from typing import Any, Optional

from utils.datasets import (
    available_years,
    get_spec,
    latest_year,
    load_bundle,
    require_country,
    resolve_methodology,
    select_year,
)
from utils.errors import NoDataError, UnknownPageError
from utils.forecast import (
    DEFAULT_YEARS_AHEAD,
    forecast_summary,
    generate_forecast,
    growth_rates,
    total_input_usage,
)
from utils.formatting import display_country, format_value, pct_change
from utils.pages import (
    AGRIC_GROWTH_FIELDS,
    AGRIC_INPUT_USAGE_FIELDS,
    Page,
    get_metric,
    get_page,
)

logger = logging.getLogger(__name__)


def _cards(page: Page, current: Optional[dict], previous: Optional[dict]) -> list[dict]:
    cards = []
    for metric in page.metrics:
        value = current.get(metric.key) if current else None
        prev = previous.get(metric.key) if previous else None
        cards.append({
            "key": metric.key,
            "label": metric.label,
            "kind": metric.kind,
            "value": value,
            "formatted": format_value(value, metric.kind),
            "previous": prev,
            "change_pct": pct_change(value, prev),
        })
    return cards


def _series(page: Page, rows: list[dict]) -> dict[str, dict]:
    return {
        metric.key: {
            "label": metric.label,
            "kind": metric.kind,
            "chart": metric.chart,
            "points": [{"year": r["year"], "value": r.get(metric.key)} for r in rows],
        }
        for metric in page.metrics
    }


def build_page_view(
    sector: str,
    page: Optional[str],
    country: str,
    year: Optional[int] = None,
    *,
    data_dir: Path,
) -> dict[str, Any]:
    """Assemble the page view for *country* on ``sector/page``.

    *year* defaults to the latest year (data years plus the dataset floor).
    An explicitly requested year with no record is an error; the default
    year may be empty, in which case every card reads N/A.

    Raises:
        UnknownPageError: Sector or page not in the catalog
        DatasetError: Dataset file missing or malformed
        NoDataError: No records for *country*, or none for *year*
    """
    page_def = get_page(sector, page)
    spec = get_spec(page_def.dataset)
    bundle = load_bundle(page_def.dataset, data_dir)
    rows = require_country(bundle["records"], country)
    years = available_years(rows)

    if year is None:
        selected = latest_year(rows, spec.year_floor)
    else:
        selected = year
        if selected not in years:
            raise NoDataError(f"No data for {display_country(country)} in {year}")

    current = select_year(rows, selected)
    previous = select_year(rows, selected - 1)

    view: dict[str, Any] = {
        "country": display_country(country),
        "sector": sector,
        "page": page_def.slug,
        "title": page_def.title,
        "dataset": page_def.dataset,
        "years": years,
        "selected_year": selected,
        "year_explicit": year is not None,
        "cards": _cards(page_def, current, previous),
        "series": _series(page_def, rows),
    }
    if page_def.methodology:
        view["methodology"] = resolve_methodology(bundle["methodology"], rows)
    if sector == "agric" and page_def.slug == "forecast-simulation":
        view["simulation"] = {
            "growth": {f: growth_rates(rows, f) for f in AGRIC_GROWTH_FIELDS},
            "total_input_usage": total_input_usage(current, AGRIC_INPUT_USAGE_FIELDS),
        }
    return view


def build_forecast_view(
    country: str,
    metric: str,
    years_ahead: int = DEFAULT_YEARS_AHEAD,
    *,
    data_dir: Path,
    dataset: str = "livestock",
) -> dict[str, Any]:
    """Historical + projected series for one metric of *dataset*.

    Raises:
        UnknownPageError: *metric* is not a field of *dataset*
        NoDataError: No records for *country*
        ValueError: *years_ahead* outside 1..10
    """
    metric_def = get_metric(dataset, metric)
    rows = require_country(load_bundle(dataset, data_dir)["records"], country)
    points = generate_forecast(rows, metric, years_ahead)
    if not points:
        raise NoDataError(
            f"Not enough history to forecast {metric_def.label} for {display_country(country)}"
        )
    logger.debug("forecast country=%s metric=%s ahead=%d", country, metric, years_ahead)
    return {
        "country": display_country(country),
        "dataset": dataset,
        "metric": metric,
        "label": metric_def.label,
        "kind": metric_def.kind,
        "years_ahead": years_ahead,
        "points": points,
        "summary": forecast_summary(points),
    }


def forecast_metrics(dataset: str = "livestock") -> list[dict]:
    """Metric choices for the forecast page select box."""
    page = get_page(get_spec(dataset).sector, "forecast-simulation")
    if not page.metrics:
        raise UnknownPageError(f"No forecast metrics for {dataset}")
    return [{"key": m.key, "label": m.label, "kind": m.kind} for m in page.metrics]
