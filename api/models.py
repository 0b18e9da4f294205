"""
Pydantic request/response models for the API.

Optional fields default to None; dataset values are absent when a record
lacks the field.  Field() descriptions and examples feed the OpenAPI docs.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


# ── Reference data models ─────────────────────────────────────────────────────

class CountryOut(BaseModel):
    """An ECOWAS member state."""
    code: str = Field(..., description="ISO 3166-1 alpha-2 code", examples=["gh"])
    name: str = Field(..., description="Country name as used in the datasets", examples=["Ghana"])
    slug: str = Field(..., description="URL form of the name", examples=["ghana"])


class MetricOut(BaseModel):
    key: str = Field(..., description="Dataset field name", examples=["credit_access_pct"])
    label: str = Field(..., description="Display label", examples=["Credit Access"])
    kind: str = Field(..., description="Format kind", examples=["pct"])
    chart: str = Field("line", description="line | bar")


class PageOut(BaseModel):
    """A dashboard page of a sector."""
    slug: str = Field(..., examples=["economic-indicators"])
    title: str = Field(..., examples=["Economic Indicators"])
    dataset: str = Field(..., examples=["agric"])
    metrics: list[MetricOut] = Field(default_factory=list)


class SectorOut(BaseModel):
    key: str = Field(..., examples=["agric"])
    title: str = Field(..., examples=["Agricultural Inputs"])
    pages: list[PageOut] = Field(default_factory=list)


# ── Page view models ──────────────────────────────────────────────────────────

class CardOut(BaseModel):
    """One KPI card for the selected year."""
    key: str
    label: str
    kind: str
    value: float | None = Field(None, description="Raw value; null when absent")
    formatted: str = Field(..., description="Value formatted by kind; N/A when absent", examples=["42.5%"])
    previous: float | None = Field(None, description="Value in the previous year")
    change_pct: float | None = Field(None, description="Percent change vs previous year; null when previous is missing or 0")


class PointOut(BaseModel):
    year: int = Field(..., examples=[2024])
    value: float | None = None


class SeriesOut(BaseModel):
    label: str
    kind: str
    chart: str
    points: list[PointOut]


class MethodologyOut(BaseModel):
    data_source: str | None = None
    simulation_method: str | None = None
    assumptions: list[str] = Field(default_factory=list)


class PageViewOut(BaseModel):
    """Cards and chart series behind one dashboard page."""
    country: str = Field(..., examples=["Ghana"])
    sector: str = Field(..., examples=["agric"])
    page: str = Field(..., examples=["overview"])
    title: str
    dataset: str
    years: list[int]
    selected_year: int = Field(..., examples=[2025])
    year_explicit: bool = Field(False, description="True when the year came from the request")
    cards: list[CardOut]
    series: dict[str, SeriesOut]
    methodology: MethodologyOut | None = None
    simulation: dict[str, Any] | None = Field(
        None, description="Agric forecast-simulation extras: growth rates and total input usage",
    )


class ForecastPointOut(BaseModel):
    year: int
    value: float
    type: str = Field(..., description="historical | forecast")


class ForecastSummaryOut(BaseModel):
    latest_year: int | None = None
    latest_value: float | None = None
    end_year: int | None = None
    end_value: float | None = None
    growth_pct: float = 0.0


class ForecastOut(BaseModel):
    country: str
    dataset: str
    metric: str = Field(..., examples=["cattle_head"])
    label: str
    kind: str
    years_ahead: int = Field(..., ge=1, le=10)
    points: list[ForecastPointOut]
    summary: ForecastSummaryOut


class GrowthOut(BaseModel):
    country: str
    field: str = Field(..., examples=["improved_seed_use_pct"])
    rates: list[PointOut]


# ── News ──────────────────────────────────────────────────────────────────────

class ArticleOut(BaseModel):
    title: str = Field(..., examples=["Untitled"])
    link: str = Field(..., examples=["#"])
    description: str | None = None
    image_url: str | None = None
    pubDate: str | None = None
    source: str | None = None


class NewsOut(BaseModel):
    results: list[ArticleOut]


# ── Admin models ──────────────────────────────────────────────────────────────

class LoginIn(BaseModel):
    email: str = Field(..., min_length=3, examples=["jane@ecoagris.org"])
    password: str = Field(..., min_length=1)


class LoginOut(BaseModel):
    ok: bool = True
    token: str
    admin: dict[str, Any]


class AdminCreateIn(BaseModel):
    name: str = Field("", description="Display name; required")
    email: str = Field(..., examples=["new.admin@ecoagris.org"])
    password: str = Field(..., description="At least 6 characters")


class AdminOut(BaseModel):
    id: int
    email: str
    name: str
    role: str
    created_at: str


class UserOut(BaseModel):
    id: int
    first_name: str
    last_name: str
    email: str
    phone: str | None = None
    gender: str | None = None
    occupation: str | None = None
    country: str | None = None
    role: str
    status: str = Field(..., description="active | blocked")
    created_at: str
    last_active: str | None = None


class SignupIn(BaseModel):
    first_name: str = Field(..., examples=["Awa"])
    last_name: str = Field(..., examples=["Diallo"])
    email: str = Field(..., examples=["awa@example.org"])
    phone: str = Field(..., description="Local or international number", examples=["77 123 45 67"])
    country: str = Field(..., description="ECOWAS country name or ISO code", examples=["Senegal"])
    occupation: str | None = None
    gender: str | None = Field(None, description="male | female | other")


class UserPageOut(BaseModel):
    items: list[UserOut]
    total: int
    page: int
    total_pages: int
    page_size: int


class UploadResultOut(BaseModel):
    sheet: str
    status: str = Field(..., description="success | invalid | skipped | error")
    dataset: str | None = None
    rows: int | None = None
    file: str | None = None
    reason: str | None = None
    errors: list[str] | None = None
    error_count: int | None = None
    failed_checks: list[str] | None = Field(None, description="Names of the row checks that found errors")


class UploadOut(BaseModel):
    ok: bool
    results: list[UploadResultOut] = Field(default_factory=list)
    error: str | None = None


class NotificationOut(BaseModel):
    id: int
    title: str
    message: str
    type: str = Field(..., description="info | success | warning | error")
    read: bool
    link: str | None = None
    created_at: str


class NotificationListOut(BaseModel):
    items: list[NotificationOut]
    unread: int = Field(..., description="Unread count across all notifications")


# ── Error model ───────────────────────────────────────────────────────────────

class ErrorResponse(BaseModel):
    """Standard error envelope returned by all endpoints on failure."""
    error: str = Field(..., description="Short error category", examples=["Not found"])
    detail: Any = Field(None, description="Additional error details")
    status_code: int = Field(..., examples=[404])
