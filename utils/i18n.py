"""Locale string lookup for the dashboard UI.

Strings live in ``locales/<lang>.json`` as nested objects and are addressed
with dotted keys (``"errors.no_data"``).  Lookups fall back to English, then
to the key itself.  ``{name}`` placeholders are filled from keyword
arguments; unknown placeholders are left as written.
"""

import json
import logging
import re
import threading
from pathlib import Path
from typing import Any, Optional

logger = logging.getLogger(__name__)

SUPPORTED_LOCALES = ("en", "fr", "pt")
FALLBACK_LOCALE = "en"

_LOCALES_DIR = Path(__file__).resolve().parent.parent / "locales"
_PLACEHOLDER = re.compile(r"\{(\w+)\}")

_catalogs: dict[str, dict] = {}
_lock = threading.Lock()


def set_locales_dir(path: Path) -> None:
    """Point lookups at another locales directory and drop loaded catalogs."""
    global _LOCALES_DIR
    with _lock:
        _LOCALES_DIR = Path(path)
        _catalogs.clear()


def _catalog(locale: str) -> dict:
    with _lock:
        if locale in _catalogs:
            return _catalogs[locale]
        path = _LOCALES_DIR / f"{locale}.json"
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("locale %s unavailable: %s", locale, exc)
            data = {}
        _catalogs[locale] = data if isinstance(data, dict) else {}
        return _catalogs[locale]


def _lookup(catalog: dict, key: str) -> Optional[str]:
    node: Any = catalog
    for part in key.split("."):
        if not isinstance(node, dict) or part not in node:
            return None
        node = node[part]
    return node if isinstance(node, str) else None


def _interpolate(text: str, params: dict) -> str:
    return _PLACEHOLDER.sub(
        lambda m: str(params[m.group(1)]) if m.group(1) in params else m.group(0),
        text,
    )


def normalize_locale(locale: Optional[str]) -> str:
    """Map ``"fr-FR"``, ``"PT"`` etc. to a supported locale, else English."""
    if not locale:
        return FALLBACK_LOCALE
    tag = locale.strip().lower().replace("_", "-").split("-")[0]
    return tag if tag in SUPPORTED_LOCALES else FALLBACK_LOCALE


def translate(key: str, locale: str = FALLBACK_LOCALE, **params: Any) -> str:
    text = _lookup(_catalog(normalize_locale(locale)), key)
    if text is None and locale != FALLBACK_LOCALE:
        text = _lookup(_catalog(FALLBACK_LOCALE), key)
    if text is None:
        return key
    return _interpolate(text, params)


def negotiate_locale(query_lang: Optional[str], accept_language: Optional[str],
                     default: str = FALLBACK_LOCALE) -> str:
    """Pick the UI locale: ``?lang=`` first, then the first Accept-Language tag."""
    if query_lang:
        return normalize_locale(query_lang)
    if accept_language:
        first = accept_language.split(",")[0].split(";")[0]
        return normalize_locale(first)
    return normalize_locale(default)
