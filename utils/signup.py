"""Dashboard user sign-up: field checks and phone normalisation.

Users register a profile (name, email, phone, country, occupation, gender)
that admins later list, block or delete from the admin panel.
"""

import re
from typing import Optional

from utils.config import KnownValues

GENDERS = ("male", "female", "other")

_PHONE_RE = re.compile(r"^\+\d{1,4}\d{6,}$")
_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def normalize_phone(phone: str, country: str) -> Optional[str]:
    """Strip whitespace and prefix the country dial code when it is missing.

    Returns None when the result is not ``+<code><at least 6 digits>``.
    """
    dial_code = KnownValues.DIAL_CODES.get(country)
    if dial_code is None:
        return None
    number = re.sub(r"\s+", "", phone or "")
    if not number.startswith(dial_code):
        number = f"{dial_code}{number}"
    return number if _PHONE_RE.match(number) else None


def validate_signup(first_name: str, last_name: str, email: str,
                    phone: str, country: str, gender: Optional[str] = None) -> Optional[str]:
    """Return the first problem with a sign-up form, or None."""
    if not (first_name or "").strip() or not (last_name or "").strip():
        return "First and last name are required"
    if not _EMAIL_RE.match((email or "").strip()):
        return "A valid email is required"
    name = KnownValues.country_name(country)
    if name is None:
        return "Invalid country"
    if normalize_phone(phone, name) is None:
        return "Invalid phone number"
    if gender and gender.lower() not in GENDERS:
        return f"Gender must be one of {', '.join(GENDERS)}"
    return None
