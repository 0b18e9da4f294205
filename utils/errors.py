"""Exception hierarchy for the ECOAGRIS dashboard.

Route handlers raise these and the app-level exception handlers in
``api/app.py`` turn them into ``{"error", "detail", "status_code"}`` bodies.

    DashboardError (base, 500)
    ├── DatasetError       dataset file missing, unreadable or malformed (503)
    ├── NoDataError        filter produced no rows for a country/year (404)
    ├── UnknownPageError   sector/page/metric not in the catalog (404)
    ├── ExportError        CSV/XLSX/PNG/PDF rendering failed (500)
    └── UploadError        admin upload rejected before validation (400)
"""

from __future__ import annotations


class DashboardError(Exception):
    """Base class for all dashboard errors."""

    status_code = 500
    error = "Internal server error"

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)

    def to_dict(self) -> dict:
        return {
            "error": self.error,
            "detail": self.message,
            "status_code": self.status_code,
        }


class DatasetError(DashboardError):
    status_code = 503
    error = "Dataset unavailable"


class NoDataError(DashboardError):
    status_code = 404
    error = "No data"


class UnknownPageError(DashboardError):
    status_code = 404
    error = "Not found"


class ExportError(DashboardError):
    status_code = 500
    error = "Export failed"


class UploadError(DashboardError):
    status_code = 400
    error = "Upload rejected"
