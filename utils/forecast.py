"""Trend forecasting and growth rates for the forecast/simulation pages.

The livestock projection is an ordinary least-squares line over
(year, value) with a small decadal sinusoid layered on top, floored at
zero.  The agric simulation page charts year-over-year growth instead.
"""

import math
from typing import Iterable, Optional

from utils.datasets import coerce_number

MIN_YEARS_AHEAD = 1
MAX_YEARS_AHEAD = 10
DEFAULT_YEARS_AHEAD = 5

SEASONAL_AMPLITUDE = 0.05
SEASONAL_PERIOD = 10


def linear_fit(points: list[tuple[float, float]]) -> tuple[float, float]:
    """Least-squares ``(slope, intercept)`` for *points*.

    A degenerate x-variance (every point in the same year) gives slope 0
    and the mean as intercept.
    """
    n = len(points)
    sum_x = sum(x for x, _ in points)
    sum_y = sum(y for _, y in points)
    sum_xy = sum(x * y for x, y in points)
    sum_xx = sum(x * x for x, _ in points)
    denominator = n * sum_xx - sum_x * sum_x
    if denominator == 0:
        return 0.0, sum_y / n
    slope = (n * sum_xy - sum_x * sum_y) / denominator
    intercept = (sum_y - slope * sum_x) / n
    return slope, intercept


def seasonal_adjustment(base: float, year: int) -> float:
    return SEASONAL_AMPLITUDE * base * math.sin(
        2 * math.pi * (year % SEASONAL_PERIOD) / SEASONAL_PERIOD
    )


def generate_forecast(
    history: Iterable[dict], metric: str, years_ahead: int = DEFAULT_YEARS_AHEAD
) -> list[dict]:
    """Historical points followed by *years_ahead* projected points.

    Each point is ``{"year", "value", "type"}`` with type ``historical`` or
    ``forecast``.  Missing historical values count as 0.  Fewer than two
    history records yield an empty list.

    Raises:
        ValueError: If *years_ahead* is outside 1..10
    """
    if not MIN_YEARS_AHEAD <= years_ahead <= MAX_YEARS_AHEAD:
        raise ValueError(
            f"years_ahead must be between {MIN_YEARS_AHEAD} and {MAX_YEARS_AHEAD}"
        )
    rows = sorted(
        (r for r in history if isinstance(r.get("year"), int)),
        key=lambda r: r["year"],
    )
    if len(rows) < 2:
        return []

    points = [(r["year"], coerce_number(r.get(metric)) or 0) for r in rows]
    slope, intercept = linear_fit(points)

    result = [
        {"year": year, "value": value, "type": "historical"}
        for year, value in points
    ]
    last_year = points[-1][0]
    for i in range(1, years_ahead + 1):
        year = last_year + i
        base = slope * year + intercept
        value = max(0.0, base + seasonal_adjustment(base, year))
        result.append({"year": year, "value": value, "type": "forecast"})
    return result


def forecast_summary(points: list[dict]) -> dict:
    """Latest historical value, projected final value and growth %.

    Growth is 0 when the latest historical value is not positive.
    """
    historical = [p for p in points if p["type"] == "historical"]
    projected = [p for p in points if p["type"] == "forecast"]
    latest = historical[-1]["value"] if historical else None
    end = projected[-1]["value"] if projected else None
    if latest is None or end is None or latest <= 0:
        growth = 0.0
    else:
        growth = (end - latest) / latest * 100
    return {
        "latest_year": historical[-1]["year"] if historical else None,
        "latest_value": latest,
        "end_year": projected[-1]["year"] if projected else None,
        "end_value": end,
        "growth_pct": growth,
    }


def growth_rates(records: Iterable[dict], field: str) -> list[dict]:
    """Year-over-year percentage change of *field*, sorted by year.

    The first year, and any change that is not finite (previous value 0 or
    missing), is reported as 0.
    """
    rows = sorted(
        (r for r in records if isinstance(r.get("year"), int)),
        key=lambda r: r["year"],
    )
    result = []
    previous: Optional[float] = None
    for index, row in enumerate(rows):
        current = coerce_number(row.get(field))
        rate = 0.0
        if index > 0:
            try:
                rate = ((current or 0) - (previous or 0)) / (previous or 0) * 100
            except ZeroDivisionError:
                rate = 0.0
            if not math.isfinite(rate):
                rate = 0.0
        result.append({"year": row["year"], "value": rate})
        previous = current
    return result


def total_input_usage(record: Optional[dict], fields: Iterable[str]) -> Optional[float]:
    """Sum of *fields* in *record*; missing fields count as 0."""
    if record is None:
        return None
    return sum(coerce_number(record.get(f)) or 0 for f in fields)
