"""
Tests for utils/forecast.py: least-squares projection, summary, growth rates.
"""
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from utils.forecast import (
    forecast_summary,
    generate_forecast,
    growth_rates,
    linear_fit,
    seasonal_adjustment,
    total_input_usage,
)

HISTORY = [
    {"year": 2021, "cattle_head": 100},
    {"year": 2022, "cattle_head": 110},
    {"year": 2023, "cattle_head": 120},
    {"year": 2024, "cattle_head": 130},
    {"year": 2025, "cattle_head": 140},
]


class TestLinearFit:
    def test_exact_line(self):
        slope, intercept = linear_fit([(0, 1), (1, 3), (2, 5)])
        assert slope == pytest.approx(2.0)
        assert intercept == pytest.approx(1.0)

    def test_same_x_gives_flat_mean(self):
        assert linear_fit([(2020, 4), (2020, 6)]) == (0.0, 5.0)


class TestGenerateForecast:
    def test_history_then_projection(self):
        points = generate_forecast(HISTORY, "cattle_head", 3)
        assert [p["type"] for p in points] == ["historical"] * 5 + ["forecast"] * 3
        assert [p["year"] for p in points[-3:]] == [2026, 2027, 2028]

    def test_historical_values_kept(self):
        points = generate_forecast(HISTORY, "cattle_head", 1)
        assert [p["value"] for p in points[:5]] == [100, 110, 120, 130, 140]

    def test_projection_follows_trend_plus_seasonal(self):
        points = generate_forecast(HISTORY, "cattle_head", 1)
        base = 10 * 2026 - 20110
        assert base == 150
        expected = base + seasonal_adjustment(base, 2026)
        assert points[-1]["value"] == pytest.approx(expected)

    def test_unsorted_history_sorted(self):
        points = generate_forecast(list(reversed(HISTORY)), "cattle_head", 1)
        assert points[0]["year"] == 2021

    def test_missing_values_count_as_zero(self):
        history = [{"year": 2024, "cattle_head": None}, {"year": 2025, "cattle_head": 10}]
        points = generate_forecast(history, "cattle_head", 1)
        assert points[0]["value"] == 0

    def test_never_negative(self):
        history = [{"year": 2024, "m": 100}, {"year": 2025, "m": 1}]
        points = generate_forecast(history, "m", 10)
        assert all(p["value"] >= 0 for p in points)
        assert points[-1]["value"] == 0.0

    def test_too_little_history(self):
        assert generate_forecast(HISTORY[:1], "cattle_head", 5) == []
        assert generate_forecast([], "cattle_head", 5) == []

    @pytest.mark.parametrize("years", [0, 11, -1])
    def test_years_out_of_range(self, years):
        with pytest.raises(ValueError, match="between 1 and 10"):
            generate_forecast(HISTORY, "cattle_head", years)


class TestSummary:
    def test_growth(self):
        points = [
            {"year": 2025, "value": 100, "type": "historical"},
            {"year": 2026, "value": 120, "type": "forecast"},
        ]
        summary = forecast_summary(points)
        assert summary["latest_value"] == 100
        assert summary["end_year"] == 2026
        assert summary["growth_pct"] == pytest.approx(20.0)

    def test_zero_latest_gives_zero_growth(self):
        points = [
            {"year": 2025, "value": 0, "type": "historical"},
            {"year": 2026, "value": 5, "type": "forecast"},
        ]
        assert forecast_summary(points)["growth_pct"] == 0.0

    def test_empty(self):
        summary = forecast_summary([])
        assert summary["latest_value"] is None
        assert summary["growth_pct"] == 0.0


class TestGrowthRates:
    def test_year_over_year(self):
        rates = growth_rates(HISTORY, "cattle_head")
        assert rates[0] == {"year": 2021, "value": 0.0}
        assert rates[1]["value"] == pytest.approx(10.0)

    def test_previous_zero_reports_zero(self):
        rows = [{"year": 2024, "f": 0}, {"year": 2025, "f": 10}]
        assert growth_rates(rows, "f")[1]["value"] == 0.0

    def test_missing_current_is_full_decline(self):
        rows = [{"year": 2024, "f": 10}, {"year": 2025, "f": None}]
        assert growth_rates(rows, "f")[1]["value"] == pytest.approx(-100.0)


class TestTotalInputUsage:
    def test_sum_with_missing(self):
        record = {"a": 1, "b": None, "c": "2"}
        assert total_input_usage(record, ["a", "b", "c", "d"]) == 3

    def test_no_record(self):
        assert total_input_usage(None, ["a"]) is None
