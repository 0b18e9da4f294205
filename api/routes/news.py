"""GET /api/v1/news: latest ECOWAS agriculture headlines (cached 1 hour)."""

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from api.models import NewsOut
from utils.config import AppConfig
from utils.news import NewsError, fetch_news

router = APIRouter(prefix="/news", tags=["news"])


@router.get(
    "",
    response_model=NewsOut,
    summary="Latest agriculture news",
    responses={500: {"description": "News provider unavailable or not configured"}},
)
def latest_news():
    try:
        articles = fetch_news(AppConfig.from_env().newsdata_api_key)
    except NewsError:
        return JSONResponse(
            status_code=500,
            content={"error": "Failed to fetch news", "results": []},
        )
    return {"results": articles}
