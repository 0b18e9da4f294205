"""Export builders for page and forecast views.

CSV and XLSX carry the series as a Year-by-metric table.  PNG charts are
drawn with matplotlib's object API (no pyplot state, safe in worker
threads); the PDF wraps that PNG on an A4 page with fpdf2.
"""

import csv
import io
import logging
from datetime import datetime, timezone
from typing import Any, Optional

import openpyxl
from fpdf import FPDF
from fpdf.errors import FPDFException
from matplotlib.figure import Figure

from utils.errors import ExportError
from utils.formatting import MISSING, format_value

logger = logging.getLogger(__name__)

SOURCE_NAME = "ECOAGRIS Statistics Dashboard"
MAX_PANELS = 6
PDF_IMAGE_WIDTH_MM = 190

_HISTORICAL_COLOR = "#2e7d32"
_FORECAST_COLOR = "#f9a825"


def export_filename(country: str, *parts: str, ext: str) -> str:
    """``ghana_agric_supply.csv`` style names with unsafe characters removed."""
    stem = "_".join([country, *parts])
    for ch in '<>:"/\\|?* ':
        stem = stem.replace(ch, "_")
    return f"{stem}.{ext}"


def _years(view: dict) -> list[int]:
    years: set[int] = set()
    for series in view["series"].values():
        years.update(p["year"] for p in series["points"])
    return sorted(years)


def _table(view: dict) -> tuple[list[str], list[list[Any]]]:
    """Header and raw-value rows for a page view."""
    keys = list(view["series"])
    header = ["Year"] + [view["series"][k]["label"] for k in keys]
    by_year: dict[int, dict[str, Any]] = {}
    for key in keys:
        for point in view["series"][key]["points"]:
            by_year.setdefault(point["year"], {})[key] = point["value"]
    rows = [
        [year] + [by_year.get(year, {}).get(k) for k in keys]
        for year in _years(view)
    ]
    return header, rows


def page_csv(view: dict) -> str:
    """CSV of a page view; values formatted by kind, absent values ``N/A``."""
    header, rows = _table(view)
    kinds = [s["kind"] for s in view["series"].values()]
    buf = io.StringIO()
    writer = csv.writer(buf)
    writer.writerow(header)
    for row in rows:
        writer.writerow(
            [row[0]] + [format_value(v, k) for v, k in zip(row[1:], kinds)]
        )
    return buf.getvalue()


def forecast_csv(view: dict) -> str:
    """CSV of a forecast view: Year, Value, Type."""
    buf = io.StringIO()
    writer = csv.writer(buf)
    writer.writerow(["Year", "Value", "Type"])
    for point in view["points"]:
        value = point["value"]
        writer.writerow([
            point["year"],
            MISSING if value is None else round(value, 2),
            point["type"],
        ])
    return buf.getvalue()


def page_xlsx(view: dict, export_url: str = "") -> bytes:
    """Workbook with a Metadata sheet and a data sheet of raw values."""
    header, rows = _table(view)
    export_date = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
    wb = openpyxl.Workbook(write_only=True)
    meta_ws = wb.create_sheet("Metadata")
    meta_ws.append(["Source", SOURCE_NAME])
    meta_ws.append(["Country", view["country"]])
    meta_ws.append(["Page", f"{view['sector']}/{view['page']}"])
    meta_ws.append(["Title", view["title"]])
    meta_ws.append(["Export Date", export_date])
    meta_ws.append(["URL", export_url])
    ws = wb.create_sheet("Data")
    ws.append(header)
    for row in rows:
        ws.append(row)
    buf = io.BytesIO()
    wb.save(buf)
    return buf.getvalue()


# ── Charts ────────────────────────────────────────────────────────────────────

def page_panels(view: dict) -> list[dict]:
    """One chart panel per metric, capped at ``MAX_PANELS``."""
    panels = []
    for series in list(view["series"].values())[:MAX_PANELS]:
        points = [(p["year"], p["value"]) for p in series["points"]
                  if p["value"] is not None]
        panels.append({
            "label": series["label"],
            "chart": series["chart"],
            "lines": [{"name": series["label"], "points": points,
                       "color": _HISTORICAL_COLOR}],
        })
    return panels


def forecast_panels(view: dict) -> list[dict]:
    historical = [(p["year"], p["value"]) for p in view["points"]
                  if p["type"] == "historical"]
    projected = [(p["year"], p["value"]) for p in view["points"]
                 if p["type"] == "forecast"]
    if historical and projected:
        # join the two lines at the last observed year
        projected = [historical[-1]] + projected
    return [{
        "label": view["label"],
        "chart": "line",
        "lines": [
            {"name": "Historical", "points": historical, "color": _HISTORICAL_COLOR},
            {"name": "Forecast", "points": projected, "color": _FORECAST_COLOR,
             "dashed": True},
        ],
    }]


def render_png(title: str, panels: list[dict], dpi: int = 120) -> bytes:
    """Render chart panels to a white-background PNG.

    Raises:
        ExportError: If there is nothing to draw or matplotlib fails
    """
    if not panels:
        raise ExportError("Nothing to chart")
    ncols = 1 if len(panels) == 1 else 2
    nrows = (len(panels) + ncols - 1) // ncols
    try:
        fig = Figure(figsize=(6 * ncols, 3.2 * nrows + 0.6), facecolor="white")
        fig.suptitle(title, fontsize=13)
        for index, panel in enumerate(panels):
            ax = fig.add_subplot(nrows, ncols, index + 1)
            ax.set_title(panel["label"], fontsize=10)
            for line in panel["lines"]:
                if not line["points"]:
                    continue
                xs = [p[0] for p in line["points"]]
                ys = [p[1] for p in line["points"]]
                if panel["chart"] == "bar":
                    ax.bar(xs, ys, color=line["color"], label=line["name"])
                else:
                    ax.plot(xs, ys, color=line["color"], label=line["name"],
                            linestyle="--" if line.get("dashed") else "-",
                            marker="o", markersize=3)
            if len(panel["lines"]) > 1:
                ax.legend(fontsize=8)
            ax.grid(True, alpha=0.3)
            ax.tick_params(labelsize=8)
        fig.tight_layout()
        buf = io.BytesIO()
        fig.savefig(buf, format="png", dpi=dpi, facecolor="white")
        return buf.getvalue()
    except (ValueError, RuntimeError, TypeError) as exc:
        logger.exception("chart rendering failed")
        raise ExportError(f"Chart rendering failed: {exc}") from exc


def _png_size(png: bytes) -> tuple[int, int]:
    # IHDR width/height are big-endian uint32 at bytes 16..24
    return int.from_bytes(png[16:20], "big"), int.from_bytes(png[20:24], "big")


def _latin1(text: str) -> str:
    return text.encode("latin-1", "replace").decode("latin-1")


def render_pdf(title: str, country: str, png: bytes,
               export_date: Optional[datetime] = None) -> bytes:
    """A4 PDF with a title line, the export date and the chart image.

    The page is landscape when the image is wider than tall.

    Raises:
        ExportError: If fpdf2 cannot lay out the document
    """
    width_px, height_px = _png_size(png)
    orientation = "L" if width_px > height_px else "P"
    when = (export_date or datetime.now(timezone.utc)).strftime("%Y-%m-%d %H:%M UTC")
    try:
        pdf = FPDF(orientation=orientation, unit="mm", format="A4")
        pdf.set_auto_page_break(auto=False)
        pdf.add_page()
        pdf.set_font("Helvetica", "B", 16)
        pdf.cell(0, 10, _latin1(f"{title}: {country}"), new_x="LMARGIN", new_y="NEXT")
        pdf.set_font("Helvetica", size=10)
        pdf.cell(0, 8, f"Exported {when}", new_x="LMARGIN", new_y="NEXT")
        image_height = PDF_IMAGE_WIDTH_MM * height_px / width_px if width_px else 0
        max_height = pdf.h - pdf.get_y() - 10
        if image_height > max_height:
            image_width = PDF_IMAGE_WIDTH_MM * max_height / image_height
        else:
            image_width = PDF_IMAGE_WIDTH_MM
        pdf.image(io.BytesIO(png), x=10, y=pdf.get_y() + 2, w=image_width)
        return bytes(pdf.output())
    except (FPDFException, RuntimeError, ValueError) as exc:
        logger.exception("pdf rendering failed")
        raise ExportError(f"PDF rendering failed: {exc}") from exc
