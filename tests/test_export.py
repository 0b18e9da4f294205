"""
Tests for utils/export.py: CSV/XLSX tables, PNG charts and PDF wrapping.
"""
import csv
import io
import sys
from pathlib import Path

import openpyxl
import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from utils.errors import ExportError
from utils.export import (
    MAX_PANELS,
    export_filename,
    forecast_csv,
    forecast_panels,
    page_csv,
    page_panels,
    page_xlsx,
    render_pdf,
    render_png,
)
from utils.views import build_forecast_view, build_page_view

PNG_MAGIC = b"\x89PNG\r\n\x1a\n"


@pytest.fixture()
def supply_view(data_dir):
    return build_page_view("agric", "supply", "ghana", data_dir=data_dir)


@pytest.fixture()
def forecast_view(data_dir):
    return build_forecast_view("ghana", "cattle_head", 2, data_dir=data_dir)


class TestFilename:
    def test_parts_joined(self):
        assert export_filename("ghana", "agric", "supply", ext="csv") == "ghana_agric_supply.csv"

    def test_unsafe_characters(self):
        assert export_filename("cote d'ivoire", "a/b", ext="pdf") == "cote_d'ivoire_a_b.pdf"


class TestCsv:
    def test_page_csv(self, supply_view):
        rows = list(csv.reader(io.StringIO(page_csv(supply_view))))
        assert rows[0][:3] == ["Year", "Cereal Seeds", "Fertilizer"]
        assert rows[1][:3] == ["2022", "1,000 t", "5,000 t"]
        assert len(rows) == 5

    def test_absent_values_na(self, supply_view):
        rows = list(csv.reader(io.StringIO(page_csv(supply_view))))
        stockouts = rows[0].index("Stockout Days per Year")
        assert {r[stockouts] for r in rows[1:]} == {"N/A"}

    def test_forecast_csv(self, forecast_view):
        rows = list(csv.reader(io.StringIO(forecast_csv(forecast_view))))
        assert rows[0] == ["Year", "Value", "Type"]
        assert rows[1] == ["2021", "100", "historical"]
        assert rows[-1][0] == "2027"
        assert rows[-1][2] == "forecast"


class TestXlsx:
    def test_sheets_and_values(self, supply_view):
        data = page_xlsx(supply_view, "http://testserver/ghana/dashboard/agric/supply")
        wb = openpyxl.load_workbook(io.BytesIO(data))
        assert wb.sheetnames == ["Metadata", "Data"]
        meta = {row[0]: row[1] for row in wb["Metadata"].iter_rows(values_only=True)}
        assert meta["Country"] == "Ghana"
        assert meta["Page"] == "agric/supply"
        assert meta["URL"].endswith("/agric/supply")
        data_rows = list(wb["Data"].iter_rows(values_only=True))
        assert data_rows[0][0] == "Year"
        assert data_rows[1][:3] == (2022, 1000, 5000)


class TestCharts:
    def test_page_panels_capped(self, data_dir):
        view = build_page_view("agric", None, "ghana", data_dir=data_dir)
        panels = page_panels(view)
        assert len(panels) == MAX_PANELS

    def test_page_panels_skip_missing_points(self, supply_view):
        panel = page_panels(supply_view)[0]
        assert panel["lines"][0]["points"][0] == (2022, 1000)

    def test_forecast_panels_join(self, forecast_view):
        historical, projected = forecast_panels(forecast_view)[0]["lines"]
        assert projected["points"][0] == historical["points"][-1]
        assert projected["dashed"] is True

    def test_render_png(self, supply_view):
        png = render_png("Input Supply Chain", page_panels(supply_view))
        assert png.startswith(PNG_MAGIC)

    def test_render_png_forecast(self, forecast_view):
        assert render_png("Forecast", forecast_panels(forecast_view)).startswith(PNG_MAGIC)

    def test_no_panels(self):
        with pytest.raises(ExportError, match="Nothing to chart"):
            render_png("Empty", [])


class TestPdf:
    def test_pdf_bytes(self, supply_view):
        png = render_png("Supply", page_panels(supply_view))
        pdf = render_pdf("Input Supply Chain", "Ghana", png)
        assert pdf.startswith(b"%PDF")

    def test_non_latin_title(self, forecast_view):
        png = render_png("Forecast", forecast_panels(forecast_view))
        assert render_pdf("Prévision ✓", "Côte d'Ivoire", png).startswith(b"%PDF")
