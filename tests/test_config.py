"""
Config tests

Tests for AppConfig environment loading, Config JSON round-tripping and
the KnownValues lookups used by the routes and upload handling.
"""
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from utils.config import AppConfig, Config, KnownValues


class TestAppConfig:
    def test_defaults(self, monkeypatch):
        for var in ("APP_DATA_DIR", "APP_DB_PATH", "APP_CORS_ORIGINS",
                    "APP_ADMIN_EMAIL_DOMAIN", "APP_MAX_UPLOAD_MB", "TRUSTED_PROXIES"):
            monkeypatch.delenv(var, raising=False)
        cfg = AppConfig.from_env()
        assert cfg.data_dir == Path("data")
        assert cfg.db_path == Path("ecoagris_admin.sqlite")
        assert cfg.cors_origins == ["*"]
        assert cfg.admin_email_domain == "ecoagris.org"
        assert cfg.trusted_proxies == set()
        assert cfg.max_upload_bytes == 10 * 1024 * 1024

    def test_env_overrides(self, monkeypatch):
        monkeypatch.setenv("APP_CORS_ORIGINS", "https://a.org, https://b.org,")
        monkeypatch.setenv("TRUSTED_PROXIES", "10.0.0.1,10.0.0.2")
        monkeypatch.setenv("APP_ADMIN_EMAIL_DOMAIN", "")
        monkeypatch.setenv("RATE_LIMIT_DOWNLOAD", "3")
        cfg = AppConfig.from_env()
        assert cfg.cors_origins == ["https://a.org", "https://b.org"]
        assert cfg.trusted_proxies == {"10.0.0.1", "10.0.0.2"}
        assert cfg.admin_email_domain == ""
        assert cfg.rate_limit_download == 3

    def test_bad_port(self, monkeypatch):
        monkeypatch.setenv("APP_PORT", "eighty")
        with pytest.raises(ValueError):
            AppConfig.from_env()

    def test_roundtrip_json(self, tmp_path):
        cfg = AppConfig()
        cfg.default_locale = "fr"
        path = tmp_path / "conf" / "app.json"
        cfg.save_json(path)
        loaded = Config.load_json(path)
        assert loaded.default_locale == "fr"
        assert loaded.data_dir == str(cfg.data_dir)


class TestKnownValues:
    def test_fifteen_countries(self):
        assert len(KnownValues.COUNTRIES) == 15

    @pytest.mark.parametrize("value,expected", [
        ("gh", "Ghana"),
        ("GH", "Ghana"),
        ("burkina faso", "Burkina Faso"),
        ("  Mali ", "Mali"),
        ("Atlantis", None),
        ("", None),
    ])
    def test_country_name(self, value, expected):
        assert KnownValues.country_name(value) == expected

    def test_allowed_sheets(self):
        assert KnownValues.is_allowed_sheet("Macroeconomics indices")
        assert not KnownValues.is_allowed_sheet("macroeconomics indices")
