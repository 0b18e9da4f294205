"""
Tests for api/routes/download.py: page and forecast exports.

Verifies each output format, the attachment headers, export failures and
the per-IP download rate limit.
"""
import csv
import io
import sys
from pathlib import Path

import openpyxl

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

import api.app as app_module
from utils import export


class TestPageDownload:
    def test_csv_default(self, client):
        resp = client.get("/api/v1/download/agric/ghana?page=supply")
        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("text/csv")
        assert resp.headers["content-disposition"] == "attachment; filename=ghana_agric_supply.csv"
        assert resp.headers["X-Total-Count"] == "4"
        rows = list(csv.reader(io.StringIO(resp.text)))
        assert rows[0][0] == "Year"
        assert rows[-1][:2] == ["2025", "1,300 t"]

    def test_overview_when_page_omitted(self, client):
        resp = client.get("/api/v1/download/rice/ghana")
        assert resp.headers["content-disposition"].endswith("ghana_rice_overview.csv")

    def test_xlsx(self, client):
        resp = client.get("/api/v1/download/livestock/ghana?page=production&fmt=xlsx")
        assert resp.status_code == 200
        wb = openpyxl.load_workbook(io.BytesIO(resp.content))
        assert wb.sheetnames == ["Metadata", "Data"]
        meta = dict(wb["Metadata"].iter_rows(values_only=True))
        assert meta["Page"] == "livestock/production"
        assert "fmt=xlsx" in meta["URL"]

    def test_png(self, client):
        resp = client.get("/api/v1/download/agric/ghana?page=supply&fmt=png")
        assert resp.status_code == 200
        assert resp.headers["content-type"] == "image/png"
        assert resp.content[:8] == b"\x89PNG\r\n\x1a\n"

    def test_pdf(self, client):
        resp = client.get("/api/v1/download/nutrition/ghana?fmt=pdf")
        assert resp.status_code == 200
        assert resp.headers["content-type"] == "application/pdf"
        assert resp.content.startswith(b"%PDF")

    def test_bad_format(self, client):
        assert client.get("/api/v1/download/agric/ghana?fmt=docx").status_code == 422

    def test_unknown_country(self, client):
        assert client.get("/api/v1/download/agric/atlantis").status_code == 404

    def test_missing_year(self, client):
        assert client.get("/api/v1/download/agric/ghana?year=2019").status_code == 404

    def test_render_failure(self, client, monkeypatch):
        def broken(*args, **kwargs):
            raise ValueError("no backend")

        monkeypatch.setattr(export, "render_png", broken)
        resp = client.get("/api/v1/download/agric/ghana?fmt=png")
        assert resp.status_code == 500
        assert resp.json()["error"] == "Export failed"


class TestForecastDownload:
    def test_csv(self, client):
        resp = client.get("/api/v1/download/forecast/ghana?years_ahead=2")
        assert resp.status_code == 200
        assert resp.headers["content-disposition"].endswith("ghana_forecast_cattle_head.csv")
        rows = list(csv.reader(io.StringIO(resp.text)))
        assert rows[0] == ["Year", "Value", "Type"]
        assert len(rows) == 1 + 5 + 2
        assert resp.headers["X-Total-Count"] == "7"

    def test_pdf(self, client):
        resp = client.get("/api/v1/download/forecast/ghana?metric=milk_production_tons&fmt=pdf")
        assert resp.status_code == 200
        assert resp.content.startswith(b"%PDF")

    def test_xlsx_not_offered(self, client):
        assert client.get("/api/v1/download/forecast/ghana?fmt=xlsx").status_code == 422


class TestDownloadRateLimit:
    def test_limited_per_prefix(self, client, monkeypatch):
        monkeypatch.setitem(app_module._RATE_LIMITS, "/api/v1/download", 2)
        assert client.get("/api/v1/download/rice/ghana").status_code == 200
        assert client.get("/api/v1/download/forecast/ghana").status_code == 200
        resp = client.get("/api/v1/download/agric/ghana")
        assert resp.status_code == 429
        assert resp.headers["Retry-After"] == "60"

    def test_other_paths_unaffected(self, client, monkeypatch):
        monkeypatch.setitem(app_module._RATE_LIMITS, "/api/v1/download", 1)
        client.get("/api/v1/download/rice/ghana")
        assert client.get("/api/v1/reference/locales").status_code == 200
