"""
Tests for the JSON API: reference lists, page views, forecasts, health.

All tests use the TestClient wired to the sample datasets in conftest.py.
"""
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from utils.datasets import get_spec


class TestReference:
    def test_countries(self, client):
        resp = client.get("/api/v1/reference/countries")
        assert resp.status_code == 200
        body = resp.json()
        assert len(body) == 15
        assert {"code": "bf", "name": "Burkina Faso", "slug": "burkina-faso"} in body
        assert resp.headers["Cache-Control"] == "max-age=3600"

    def test_sectors(self, client):
        body = client.get("/api/v1/reference/sectors").json()
        assert [s["key"] for s in body] == [
            "agric", "livestock", "nutrition", "macroeconomics-indices", "rice",
        ]
        rice = body[-1]
        assert [p["slug"] for p in rice["pages"]] == ["overview", "kpi-analysis"]
        assert rice["pages"][0]["metrics"][0]["kind"] == "tons"

    def test_locales(self, client):
        assert client.get("/api/v1/reference/locales").json() == ["en", "fr", "pt"]


class TestPageViewEndpoint:
    def test_overview(self, client):
        resp = client.get("/api/v1/dashboard/agric/ghana")
        assert resp.status_code == 200
        body = resp.json()
        assert body["page"] == "overview"
        assert body["selected_year"] == 2025
        card = next(c for c in body["cards"] if c["key"] == "credit_access_pct")
        assert card["formatted"] == "27.5%"
        assert card["change_pct"] == pytest.approx(10.0)

    def test_page_with_year(self, client):
        body = client.get("/api/v1/dashboard/agric/ghana/supply?year=2023").json()
        assert body["selected_year"] == 2023
        card = next(c for c in body["cards"] if c["key"] == "fertilizer_tons")
        assert card["value"] == 5500
        assert card["previous"] == 5000

    def test_methodology_page(self, client):
        body = client.get("/api/v1/dashboard/agric/ghana/data-methodology").json()
        assert body["methodology"]["data_source"] == "APMD simulated series"

    def test_simulation_page(self, client):
        body = client.get("/api/v1/dashboard/agric/ghana/forecast-simulation").json()
        assert body["simulation"]["total_input_usage"] == 8060
        assert len(body["simulation"]["growth"]["improved_seed_use_pct"]) == 4

    def test_country_case_insensitive(self, client):
        assert client.get("/api/v1/dashboard/livestock/GHANA").status_code == 200

    def test_missing_year(self, client):
        resp = client.get("/api/v1/dashboard/agric/ghana?year=2019")
        assert resp.status_code == 404
        assert resp.json() == {
            "error": "No data",
            "detail": "No data for Ghana in 2019",
            "status_code": 404,
        }

    def test_unknown_country(self, client):
        resp = client.get("/api/v1/dashboard/agric/atlantis")
        assert resp.status_code == 404
        assert resp.json()["detail"] == "No data available for atlantis"

    def test_unknown_sector(self, client):
        resp = client.get("/api/v1/dashboard/fisheries/ghana")
        assert resp.status_code == 404
        assert resp.json()["error"] == "Not found"

    def test_unknown_page(self, client):
        assert client.get("/api/v1/dashboard/rice/ghana/supply").status_code == 404

    def test_year_out_of_range(self, client):
        assert client.get("/api/v1/dashboard/agric/ghana?year=1800").status_code == 422

    def test_missing_dataset_file(self, client, data_dir):
        (data_dir / get_spec("nutrition").path).unlink()
        resp = client.get("/api/v1/dashboard/nutrition/ghana")
        assert resp.status_code == 503
        assert resp.json()["error"] == "Dataset unavailable"

    def test_macro_default_year_reads_na(self, client):
        body = client.get("/api/v1/dashboard/macroeconomics-indices/ghana").json()
        assert body["selected_year"] == 2025
        assert body["cards"][0]["formatted"] == "N/A"


class TestForecastEndpoint:
    def test_forecast(self, client):
        resp = client.get("/api/v1/forecast/ghana?metric=cattle_head&years_ahead=3")
        assert resp.status_code == 200
        body = resp.json()
        assert len(body["points"]) == 8
        assert body["points"][-1]["type"] == "forecast"
        assert body["summary"]["latest_value"] == 140
        assert body["summary"]["end_year"] == 2028

    def test_default_years_ahead(self, client):
        body = client.get("/api/v1/forecast/ghana").json()
        assert body["years_ahead"] == 5
        assert body["metric"] == "cattle_head"

    @pytest.mark.parametrize("years", [0, 11])
    def test_years_out_of_range(self, client, years):
        assert client.get(f"/api/v1/forecast/ghana?years_ahead={years}").status_code == 422

    def test_unknown_metric(self, client):
        assert client.get("/api/v1/forecast/ghana?metric=camels").status_code == 404

    def test_not_enough_history(self, client):
        resp = client.get("/api/v1/forecast/mali")
        assert resp.status_code == 404
        assert "Not enough history" in resp.json()["detail"]

    def test_metrics(self, client):
        body = client.get("/api/v1/forecast/ghana/metrics").json()
        assert body[0] == {"key": "cattle_head", "label": "Cattle (head)", "kind": "number"}

    def test_growth(self, client):
        body = client.get("/api/v1/forecast/ghana/growth?field=improved_seed_use_pct").json()
        assert [r["value"] for r in body["rates"]] == pytest.approx([0.0, 20.0, 25.0, 20.0])

    def test_growth_unknown_field(self, client):
        assert client.get("/api/v1/forecast/ghana/growth?field=cattle_head").status_code == 404

    def test_growth_requires_field(self, client):
        assert client.get("/api/v1/forecast/ghana/growth").status_code == 422


class TestHealth:
    def test_ok(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] == "ok"
        assert body["datasets"] == 5
        assert body["users"] == 0

    def test_no_data_dir(self, db_path, tmp_path):
        from fastapi.testclient import TestClient
        from api.app import create_app
        app = create_app(db_path=db_path, data_dir=tmp_path / "missing")
        resp = TestClient(app, raise_server_exceptions=False).get("/health")
        assert resp.status_code == 503
        assert resp.json()["status"] == "no_data"
