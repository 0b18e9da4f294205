"""Shared utilities for the ECOAGRIS statistics dashboard.

Export builders (``utils.export``) and the news client (``utils.news``)
pull in matplotlib/fpdf2 and requests; import them directly where needed.
"""

# Errors
from utils.errors import (
    DashboardError,
    DatasetError,
    NoDataError,
    UnknownPageError,
    ExportError,
    UploadError,
)

# Caching
from utils.cache import TTLCache, FileCache

# Output formatting
from utils.formatting import (
    FORMAT_KINDS,
    format_value,
    pct_change,
    format_change,
    display_country,
)

# Configuration
from utils.config import Config, AppConfig, KnownValues

# Datasets
from utils.datasets import (
    DATASETS,
    DatasetSpec,
    coerce_number,
    load_dataset,
    filter_country,
    available_years,
    latest_year,
    select_year,
)

# Page catalog
from utils.pages import CATALOG, SECTORS, Metric, Page, get_page, get_pages

# Forecasting
from utils.forecast import generate_forecast, forecast_summary, growth_rates

# Validation utilities
from utils.validation import (
    ValidationIssue,
    ValidationResult,
    ValidationRegistry,
    validate_sheet,
)

# Translation
from utils.i18n import translate, negotiate_locale

__all__ = [
    # Errors
    "DashboardError",
    "DatasetError",
    "NoDataError",
    "UnknownPageError",
    "ExportError",
    "UploadError",
    # Caching
    "TTLCache",
    "FileCache",
    # Formatting
    "FORMAT_KINDS",
    "format_value",
    "pct_change",
    "format_change",
    "display_country",
    # Config
    "Config",
    "AppConfig",
    "KnownValues",
    # Datasets
    "DATASETS",
    "DatasetSpec",
    "coerce_number",
    "load_dataset",
    "filter_country",
    "available_years",
    "latest_year",
    "select_year",
    # Pages
    "CATALOG",
    "SECTORS",
    "Metric",
    "Page",
    "get_page",
    "get_pages",
    # Forecast
    "generate_forecast",
    "forecast_summary",
    "growth_rates",
    # Validation
    "ValidationIssue",
    "ValidationResult",
    "ValidationRegistry",
    "validate_sheet",
    # i18n
    "translate",
    "negotiate_locale",
]
