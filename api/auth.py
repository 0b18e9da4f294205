"""
Admin authentication: bcrypt password hashes and HS256 session tokens.

The token travels in the ``admin-token`` http-only cookie set at login, or
as ``Authorization: Bearer <token>`` for API clients.
"""

from __future__ import annotations

import sqlite3
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import bcrypt
from fastapi import Depends, HTTPException, Request, status
from jose import JWTError, jwt

from api.database import get_db
from utils import store
from utils.config import AppConfig

_cfg = AppConfig.from_env()

COOKIE_NAME = "admin-token"
TOKEN_ALGORITHM = "HS256"
TOKEN_EXPIRES_DAYS = 7
MIN_PASSWORD_LENGTH = 6


def hash_password(password: str) -> str:
    # bcrypt only looks at the first 72 bytes
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    try:
        return bcrypt.checkpw(plain_password.encode("utf-8"),
                              hashed_password.encode("utf-8"))
    except ValueError:
        return False


def create_token(email: str, secret: Optional[str] = None,
                 expires_days: int = TOKEN_EXPIRES_DAYS) -> str:
    expire = datetime.now(timezone.utc) + timedelta(days=expires_days)
    payload = {"sub": email, "exp": expire}
    return jwt.encode(payload, secret or _cfg.secret_key, algorithm=TOKEN_ALGORITHM)


def decode_token(token: str, secret: Optional[str] = None) -> Optional[dict]:
    try:
        return jwt.decode(token, secret or _cfg.secret_key, algorithms=[TOKEN_ALGORITHM])
    except JWTError:
        return None


def email_domain_allowed(email: str, domain: Optional[str] = None) -> bool:
    """True when *email* ends with ``@<domain>``; an empty domain allows all."""
    domain = _cfg.admin_email_domain if domain is None else domain
    if not domain:
        return True
    return email.strip().lower().endswith("@" + domain.lower())


def validate_new_admin(name: str, email: str, password: str,
                       domain: Optional[str] = None) -> Optional[str]:
    """Return the first problem with a new admin's details, or None."""
    domain = _cfg.admin_email_domain if domain is None else domain
    if not name or not name.strip():
        return "Name is required"
    if not email or "@" not in email:
        return "A valid email is required"
    if not email_domain_allowed(email, domain):
        return f"Email must end with @{domain}"
    if len(password or "") < MIN_PASSWORD_LENGTH:
        return f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
    return None


def authenticate(conn: sqlite3.Connection, email: str,
                 password: str) -> Optional[dict[str, Any]]:
    """Return the admin row when the credentials match, else None."""
    admin = store.get_admin_by_email(conn, email)
    if admin is None or not verify_password(password, admin["password_hash"]):
        return None
    return admin


def _token_from_request(request: Request) -> Optional[str]:
    header = request.headers.get("Authorization", "")
    if header.lower().startswith("bearer "):
        return header[7:].strip() or None
    return request.cookies.get(COOKIE_NAME)


def _admin_for_token(conn: sqlite3.Connection, token: str) -> tuple[Optional[dict], str]:
    claims = decode_token(token)
    if not claims or not claims.get("sub"):
        return None, "Invalid or expired token"
    admin = store.get_admin_by_email(conn, claims["sub"])
    if admin is None:
        return None, "Admin account no longer exists"
    admin.pop("password_hash", None)
    return admin, ""


def current_admin(request: Request, conn: sqlite3.Connection) -> Optional[dict[str, Any]]:
    """The signed-in admin for an HTML page, or None."""
    token = _token_from_request(request)
    if not token:
        return None
    admin, _ = _admin_for_token(conn, token)
    return admin


def require_admin(
    request: Request,
    conn: sqlite3.Connection = Depends(get_db),
) -> dict[str, Any]:
    """FastAPI dependency: the signed-in admin, or HTTP 401."""
    token = _token_from_request(request)
    if not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED,
                            detail="Not authenticated")
    admin, reason = _admin_for_token(conn, token)
    if admin is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=reason)
    return admin
