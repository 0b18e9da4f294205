"""Configuration management for the ECOAGRIS dashboard.

Provides:
- ``Config`` base class with dict/JSON round-tripping
- ``AppConfig`` loaded from environment variables
- ``KnownValues`` with the country list, locales and upload sheet names
"""

import json
import os
from pathlib import Path
from typing import Any, Dict, Optional


class Config:
    """Base configuration class for organizing application settings."""

    def to_dict(self) -> Dict[str, Any]:
        """Return all public attributes as a dictionary."""
        return {k: v for k, v in self.__dict__.items() if not k.startswith("_")}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Config":
        """Create a config and overlay the values from *data*."""
        config = cls()
        for key, value in data.items():
            setattr(config, key, value)
        return config

    def save_json(self, path: Path) -> None:
        """Save configuration to a JSON file."""
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            json.dump(self.to_dict(), f, indent=2, default=str)

    @classmethod
    def load_json(cls, path: Path) -> "Config":
        """Load configuration from a JSON file.

        Raises:
            FileNotFoundError: If file doesn't exist
            json.JSONDecodeError: If file is not valid JSON
        """
        with open(path, "r") as f:
            data = json.load(f)
        return cls.from_dict(data)


class AppConfig(Config):
    """Application-level configuration loaded from environment variables.

    All env vars have defaults so the dashboard runs out of the box.

    Environment variables:
        APP_DATA_DIR: Directory holding the sector JSON datasets (default: data)
        APP_DB_PATH: SQLite admin store (default: ecoagris_admin.sqlite)
        APP_PORT: API server port (default: 8000)
        APP_HOST: API server bind address (default: 127.0.0.1)
        APP_LOG_FORMAT: "text" or "json" (default: text)
        APP_CORS_ORIGINS: Comma-separated allowed origins (default: *)
        RATE_LIMIT_DOWNLOAD: Export requests per minute per IP (default: 20)
        RATE_LIMIT_UPLOAD: Upload requests per minute per IP (default: 5)
        RATE_LIMIT_DEFAULT: Requests per minute for other endpoints (default: 120)
        TRUSTED_PROXIES: Comma-separated proxy IPs trusted for X-Forwarded-For
        APP_SECRET_KEY: Signing key for admin session tokens
        APP_ADMIN_EMAIL_DOMAIN: Domain admins must belong to (default: ecoagris.org;
            empty string disables the check)
        APP_MAX_UPLOAD_MB: Largest accepted upload in megabytes (default: 10)
        APP_DEFAULT_LOCALE: Fallback UI language (default: en)
        NEWSDATA_API_KEY: Key for the NewsData.io news feed
    """

    def __init__(self) -> None:
        super().__init__()
        self.data_dir = Path(os.getenv("APP_DATA_DIR", "data"))
        self.db_path = Path(os.getenv("APP_DB_PATH", "ecoagris_admin.sqlite"))
        self.api_port = int(os.getenv("APP_PORT", "8000"))
        self.api_host = os.getenv("APP_HOST", "127.0.0.1")
        self.log_format = os.getenv("APP_LOG_FORMAT", "text")
        raw_origins = os.getenv("APP_CORS_ORIGINS", "*")
        self.cors_origins: list[str] = (
            ["*"] if raw_origins == "*"
            else [o.strip() for o in raw_origins.split(",") if o.strip()]
        )
        self.rate_limit_download = int(os.getenv("RATE_LIMIT_DOWNLOAD", "20"))
        self.rate_limit_upload = int(os.getenv("RATE_LIMIT_UPLOAD", "5"))
        self.rate_limit_default = int(os.getenv("RATE_LIMIT_DEFAULT", "120"))
        raw_proxies = os.getenv("TRUSTED_PROXIES", "")
        self.trusted_proxies: set[str] = (
            {p.strip() for p in raw_proxies.split(",") if p.strip()}
        )
        self.secret_key = os.getenv("APP_SECRET_KEY", "change-me-in-production")
        self.admin_email_domain = os.getenv("APP_ADMIN_EMAIL_DOMAIN", "ecoagris.org")
        self.max_upload_mb = float(os.getenv("APP_MAX_UPLOAD_MB", "10"))
        self.default_locale = os.getenv("APP_DEFAULT_LOCALE", "en")
        self.newsdata_api_key = os.getenv("NEWSDATA_API_KEY", "")

    @classmethod
    def from_env(cls) -> "AppConfig":
        """Create an AppConfig instance populated from environment variables."""
        return cls()

    @property
    def max_upload_bytes(self) -> int:
        return int(self.max_upload_mb * 1024 * 1024)


class KnownValues:
    """Container for known valid values used across the dashboard."""

    # ECOWAS member states, keyed by ISO alpha-2 code (flag grid order)
    COUNTRIES = {
        "bj": "Benin",
        "bf": "Burkina Faso",
        "cv": "Cabo Verde",
        "ci": "Cote d'Ivoire",
        "gm": "Gambia",
        "gh": "Ghana",
        "gn": "Guinea",
        "gw": "Guinea-Bissau",
        "lr": "Liberia",
        "ml": "Mali",
        "ne": "Niger",
        "ng": "Nigeria",
        "sn": "Senegal",
        "sl": "Sierra Leone",
        "tg": "Togo",
    }

    LOCALES = ("en", "fr", "pt")

    # International dialling prefixes used to normalise sign-up phone numbers
    DIAL_CODES = {
        "Benin": "+229",
        "Burkina Faso": "+226",
        "Cabo Verde": "+238",
        "Cote d'Ivoire": "+225",
        "Gambia": "+220",
        "Ghana": "+233",
        "Guinea": "+224",
        "Guinea-Bissau": "+245",
        "Liberia": "+231",
        "Mali": "+223",
        "Niger": "+227",
        "Nigeria": "+234",
        "Senegal": "+221",
        "Sierra Leone": "+232",
        "Togo": "+228",
    }

    # Upload workbook sheet name -> dataset key
    UPLOAD_SHEETS = {
        "Agric input": "agric",
        "Rice": "rice",
        "Nutrition": "nutrition",
        "Macroeconomics indices": "macro",
        "Livestock": "livestock",
    }

    USER_STATUSES = ("active", "blocked")

    @classmethod
    def country_name(cls, code_or_name: str) -> Optional[str]:
        """Resolve an ISO code or a case-insensitive name to the canonical name."""
        if not code_or_name:
            return None
        value = code_or_name.strip()
        if value.lower() in cls.COUNTRIES:
            return cls.COUNTRIES[value.lower()]
        for name in cls.COUNTRIES.values():
            if name.lower() == value.lower():
                return name
        return None

    @classmethod
    def is_allowed_sheet(cls, sheet_name: str) -> bool:
        return sheet_name in cls.UPLOAD_SHEETS
