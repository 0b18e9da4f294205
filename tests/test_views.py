"""
Tests for utils/views.py: page views and forecast views over the sample data.
"""
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from utils.errors import DatasetError, NoDataError, UnknownPageError
from utils.views import build_forecast_view, build_page_view, forecast_metrics


def _card(view, key):
    return next(c for c in view["cards"] if c["key"] == key)


class TestPageView:
    def test_default_year_is_latest(self, data_dir):
        view = build_page_view("agric", None, "ghana", data_dir=data_dir)
        assert view["page"] == "overview"
        assert view["selected_year"] == 2025
        assert view["years"] == [2022, 2023, 2024, 2025]
        assert view["country"] == "Ghana"
        assert view["year_explicit"] is False

    def test_cards_with_change(self, data_dir):
        view = build_page_view("agric", None, "ghana", data_dir=data_dir)
        card = _card(view, "credit_access_pct")
        assert card["formatted"] == "27.5%"
        assert card["previous"] == 25.0
        assert card["change_pct"] == pytest.approx(10.0)

    def test_missing_value_card(self, data_dir):
        view = build_page_view("agric", None, "ghana", data_dir=data_dir)
        card = _card(view, "input_subsidy_budget_usd")
        assert card["value"] is None
        assert card["formatted"] == "N/A"
        assert card["change_pct"] is None

    def test_zero_is_a_value(self, data_dir):
        view = build_page_view("agric", None, "ghana", 2024, data_dir=data_dir)
        assert _card(view, "mechanization_units_per_1000_farms")["formatted"] == "0.0"
        assert view["year_explicit"] is True

    def test_series_covers_all_years(self, data_dir):
        view = build_page_view("agric", "supply", "ghana", data_dir=data_dir)
        points = view["series"]["fertilizer_tons"]["points"]
        assert [p["value"] for p in points] == [5000, 5500, 6000, 6500]
        assert view["series"]["fertilizer_tons"]["chart"] == "bar"

    def test_default_year_without_record_reads_na(self, data_dir):
        view = build_page_view("macroeconomics-indices", None, "ghana", data_dir=data_dir)
        assert view["selected_year"] == 2025
        card = _card(view, "population")
        assert card["formatted"] == "N/A"
        assert card["previous"] == 33000000

    def test_rice_floor_year(self, data_dir):
        view = build_page_view("rice", None, "ghana", data_dir=data_dir)
        assert view["selected_year"] == 2024
        assert _card(view, "production_tonnes")["previous"] == 600

    def test_explicit_missing_year(self, data_dir):
        with pytest.raises(NoDataError, match="No data for Ghana in 2019"):
            build_page_view("agric", None, "ghana", 2019, data_dir=data_dir)

    def test_unknown_country(self, data_dir):
        with pytest.raises(NoDataError, match="No data available for togo"):
            build_page_view("agric", None, "togo", data_dir=data_dir)

    def test_unknown_page(self, data_dir):
        with pytest.raises(UnknownPageError):
            build_page_view("agric", "harvest", "ghana", data_dir=data_dir)

    def test_missing_dataset(self, tmp_path):
        with pytest.raises(DatasetError):
            build_page_view("agric", None, "ghana", data_dir=tmp_path)

    def test_slug_country(self, data_dir):
        view = build_page_view("agric", None, "burkina-faso", data_dir=data_dir)
        assert view["years"] == [2025]


class TestSpecialPages:
    def test_file_methodology(self, data_dir):
        view = build_page_view("agric", "data-methodology", "ghana", data_dir=data_dir)
        assert view["methodology"]["simulation_method"] == "Trend + noise"
        assert view["methodology"]["assumptions"] == ["Stable prices", "No policy shocks"]

    def test_record_methodology(self, data_dir):
        view = build_page_view("livestock", "data-methodology", "ghana", data_dir=data_dir)
        assert view["cards"] == []
        assert view["methodology"]["assumptions"][0] == "Herd growth follows FAO trend"

    def test_methodology_absent(self, data_dir):
        view = build_page_view("nutrition", "data-methodology", "ghana", data_dir=data_dir)
        assert view["methodology"] is None

    def test_no_methodology_key_elsewhere(self, data_dir):
        view = build_page_view("agric", "supply", "ghana", data_dir=data_dir)
        assert "methodology" not in view

    def test_agric_simulation(self, data_dir):
        view = build_page_view("agric", "forecast-simulation", "ghana", data_dir=data_dir)
        sim = view["simulation"]
        assert sim["total_input_usage"] == 1300 + 6500 + 260
        seeds = [p["value"] for p in sim["growth"]["improved_seed_use_pct"]]
        assert seeds == pytest.approx([0.0, 20.0, 25.0, 20.0])
        mech = [p["value"] for p in sim["growth"]["mechanization_units_per_1000_farms"]]
        assert mech[2] == pytest.approx(-100.0)
        assert mech[3] == 0.0


class TestForecastView:
    def test_points_and_summary(self, data_dir):
        view = build_forecast_view("ghana", "cattle_head", 3, data_dir=data_dir)
        assert len(view["points"]) == 8
        assert view["summary"]["latest_value"] == 140
        assert view["label"] == "Cattle (head)"

    def test_single_year_history(self, data_dir):
        with pytest.raises(NoDataError, match="Not enough history"):
            build_forecast_view("mali", "cattle_head", data_dir=data_dir)

    def test_unknown_metric(self, data_dir):
        with pytest.raises(UnknownPageError):
            build_forecast_view("ghana", "camels", data_dir=data_dir)

    def test_out_of_range(self, data_dir):
        with pytest.raises(ValueError):
            build_forecast_view("ghana", "cattle_head", 11, data_dir=data_dir)

    def test_metric_choices(self):
        keys = [m["key"] for m in forecast_metrics()]
        assert keys[0] == "cattle_head"
        assert len(keys) == 16
