"""
Reference data endpoints.

GET /api/v1/reference/countries  → ECOWAS member states
GET /api/v1/reference/sectors    → sectors with their pages and metrics
GET /api/v1/reference/locales    → supported UI languages
"""

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from api.models import CountryOut, SectorOut
from utils.config import KnownValues
from utils.datasets import country_slug
from utils.pages import CATALOG, SECTOR_TITLES

router = APIRouter(prefix="/reference", tags=["reference"])

_CACHE_HEADER = {"Cache-Control": "max-age=3600"}


def country_list() -> list[dict]:
    return [
        {"code": code, "name": name, "slug": country_slug(name)}
        for code, name in KnownValues.COUNTRIES.items()
    ]


def sector_list() -> list[dict]:
    return [
        {
            "key": sector,
            "title": SECTOR_TITLES[sector],
            "pages": [
                {
                    "slug": p.slug,
                    "title": p.title,
                    "dataset": p.dataset,
                    "metrics": [
                        {"key": m.key, "label": m.label, "kind": m.kind, "chart": m.chart}
                        for m in p.metrics
                    ],
                }
                for p in pages
            ],
        }
        for sector, pages in CATALOG.items()
    ]


@router.get(
    "/countries",
    response_model=list[CountryOut],
    summary="List ECOWAS countries",
)
def list_countries() -> JSONResponse:
    return JSONResponse(content=country_list(), headers=_CACHE_HEADER)


@router.get(
    "/sectors",
    response_model=list[SectorOut],
    summary="List sectors, pages and metrics",
)
def list_sectors() -> JSONResponse:
    """Return the dashboard page catalog."""
    return JSONResponse(content=sector_list(), headers=_CACHE_HEADER)


@router.get("/locales", summary="List supported UI languages")
def list_locales() -> JSONResponse:
    return JSONResponse(content=list(KnownValues.LOCALES), headers=_CACHE_HEADER)
