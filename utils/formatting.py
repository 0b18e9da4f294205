"""Output formatting utilities for the ECOAGRIS dashboard.

Provides reusable functions for:
- Formatting indicator values by kind (percent, USD, tonnes, hectares...)
- Year-over-year change between two values
- Country display names
"""

from typing import Optional

# Format kind -> (decimals, prefix, suffix)
_KINDS: dict[str, tuple[int, str, str]] = {
    "number": (0, "", ""),
    "pct": (1, "", "%"),
    "pct2": (2, "", "%"),
    "usd": (0, "$", ""),
    "usd_million": (1, "$", "M"),
    "tons": (0, "", " t"),
    "ha": (0, "", " ha"),
    "index": (2, "", ""),
    "decimal": (1, "", ""),
    "kcal": (0, "", " kcal"),
    "grams": (1, "", " g"),
}

FORMAT_KINDS = tuple(_KINDS)

MISSING = "N/A"


def format_value(value: Optional[float], kind: str = "number") -> str:
    """Format an indicator value for display.

    Args:
        value: Numeric value, or None when the record lacks it
        kind: One of ``FORMAT_KINDS``

    Returns:
        Formatted string, or ``"N/A"`` for a missing value

    Examples:
        format_value(1234567, "usd") -> "$1,234,567"
        format_value(42.456, "pct") -> "42.5%"
        format_value(2.5, "usd_million") -> "$2.5M"
        format_value(None, "tons") -> "N/A"

    Raises:
        ValueError: If *kind* is not a known format kind
    """
    if kind not in _KINDS:
        raise ValueError(f"Unknown format kind: {kind!r}")
    if value is None:
        return MISSING
    decimals, prefix, suffix = _KINDS[kind]
    sign = "-" if value < 0 and prefix else ""
    shown = abs(value) if prefix else value
    return f"{sign}{prefix}{shown:,.{decimals}f}{suffix}"


def pct_change(current: Optional[float], previous: Optional[float]) -> Optional[float]:
    """Percentage change from *previous* to *current*.

    Returns None when either value is missing or *previous* is 0.
    """
    if current is None or previous is None or previous == 0:
        return None
    return (current - previous) / previous * 100


def format_change(change: Optional[float]) -> str:
    """Format a percentage change with an explicit sign: ``"+3.2%"``."""
    if change is None:
        return MISSING
    return f"{change:+.1f}%"


def display_country(country: str) -> str:
    """Upper-case the first letter of a URL country slug.

    >>> display_country("ghana")
    'Ghana'
    """
    if not country:
        return country
    return country[0].upper() + country[1:]
