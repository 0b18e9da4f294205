"""Latest ECOWAS agriculture headlines from NewsData.io.

Responses are cached for an hour per process.  Any failure (no key,
network error, non-2xx, bad JSON) raises ``NewsError``; the route turns
that into the ``{"error": "Failed to fetch news", "results": []}`` body.
"""

import logging
from typing import Any, Dict, List

import requests

from utils.cache import TTLCache

logger = logging.getLogger(__name__)

NEWSDATA_URL = "https://newsdata.io/api/1/latest"
NEWS_QUERY = "Ecowas Agriculture News"
NEWS_TTL_SECONDS = 3600
REQUEST_TIMEOUT = 10

_news_cache = TTLCache(maxsize=4, ttl_seconds=NEWS_TTL_SECONDS)


class NewsError(Exception):
    pass


def _map_article(item: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "title": item.get("title") or "Untitled",
        "link": item.get("link") or "#",
        "description": item.get("description"),
        "image_url": item.get("image_url"),
        "pubDate": item.get("pubDate"),
        "source": item.get("source_id"),
    }


def fetch_news(api_key: str, session: Any = requests) -> List[Dict[str, Any]]:
    """Return mapped articles, from cache when fresh.

    Raises:
        NewsError: Missing key or any upstream failure
    """
    if not api_key:
        raise NewsError("NewsData API key is not configured")
    cached = _news_cache.get(NEWS_QUERY)
    if cached is not None:
        return cached
    try:
        resp = session.get(
            NEWSDATA_URL,
            params={"apikey": api_key, "q": NEWS_QUERY},
            headers={"Accept": "application/json"},
            timeout=REQUEST_TIMEOUT,
        )
        resp.raise_for_status()
        payload = resp.json()
    except (requests.RequestException, ValueError) as exc:
        logger.warning("news fetch failed: %s", exc)
        raise NewsError(f"Failed to fetch news: {exc}") from exc
    results = payload.get("results") if isinstance(payload, dict) else None
    articles = [_map_article(i) for i in (results or []) if isinstance(i, dict)]
    _news_cache.set(NEWS_QUERY, articles)
    return articles


def clear_cache() -> None:
    _news_cache.clear()
