"""
Pytest fixtures for the ECOAGRIS dashboard tests.

Provides a temporary dataset directory holding small versions of the five
sector files, a temporary admin store with one admin account, and a
TestClient wired to both.
"""

import json
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from utils import datasets, store  # noqa: E402

ADMIN_EMAIL = "jane@ecoagris.org"
ADMIN_PASSWORD = "secret123"


# ── Sample data ───────────────────────────────────────────────────────────────

AGRIC_ROWS = [
    {"country": "Ghana", "year": 2022, "cereal_seeds_tons": 1000, "fertilizer_tons": 5000,
     "pesticide_liters": 200, "credit_access_pct": 20.0, "improved_seed_use_pct": 10.0,
     "mechanization_units_per_1000_farms": 2.0, "input_subsidy_budget_usd": 1500000},
    {"country": "Ghana", "year": 2023, "cereal_seeds_tons": 1100, "fertilizer_tons": 5500,
     "pesticide_liters": 220, "credit_access_pct": 22.0, "improved_seed_use_pct": 12.0,
     "mechanization_units_per_1000_farms": 2.5, "input_subsidy_budget_usd": 1600000},
    {"country": "Ghana", "year": 2024, "cereal_seeds_tons": 1200, "fertilizer_tons": 6000,
     "pesticide_liters": 240, "credit_access_pct": 25.0, "improved_seed_use_pct": 15.0,
     "mechanization_units_per_1000_farms": 0, "input_subsidy_budget_usd": 1700000},
    {"country": "Ghana", "year": 2025, "cereal_seeds_tons": 1300, "fertilizer_tons": 6500,
     "pesticide_liters": 260, "credit_access_pct": 27.5, "improved_seed_use_pct": 18.0,
     "mechanization_units_per_1000_farms": 3.0, "input_subsidy_budget_usd": "n/a"},
    {"country": "Burkina Faso", "year": 2025, "cereal_seeds_tons": 900, "fertilizer_tons": 3000,
     "pesticide_liters": 100},
]

AGRIC_METHODOLOGY = {
    "data_source": "APMD simulated series",
    "simulation_method": "Trend + noise",
    "assumptions": ["Stable prices", "No policy shocks"],
}

LIVESTOCK_ROWS = [
    {"country": "Ghana", "year": 2021, "cattle_head": 100, "milk_production_tons": 50,
     "Methodology_Assumptions": '["Herd growth follows FAO trend", "Offtake constant"]'},
    {"country": "Ghana", "year": 2022, "cattle_head": 110, "milk_production_tons": 55},
    {"country": "Ghana", "year": 2023, "cattle_head": 120, "milk_production_tons": 60},
    {"country": "Ghana", "year": 2024, "cattle_head": 130, "milk_production_tons": 65},
    {"country": "Ghana", "year": 2025, "cattle_head": 140, "milk_production_tons": 70},
    {"country": "Mali", "year": 2025, "cattle_head": 900},
]

NUTRITION_ROWS = [
    {"country": "Ghana", "year": 2024, "population": 33000000, "nutrition_data_quality_index": 0.8},
    {"country": "Ghana", "year": 2025, "population": 33800000, "nutrition_data_quality_index": 0.82},
]

MACRO_ROWS = [
    {"country": "Ghana", "year": 2023, "population": 32000000, "gdp_growth_pct": 2.9},
    {"country": "Ghana", "year": 2024, "population": 33000000, "gdp_growth_pct": 3.1},
]

RICE_ROWS = [
    {"Column1": "Ghana", "2022": 500, "2023": 600, "2024": "n/a"},
    {"Column1": "Nigeria", "2023": 8000, "2024": 8500},
    {"Column1": "", "2023": 1},
]


def write_datasets(data_dir: Path) -> Path:
    """Write the sample sector files under *data_dir* and return it."""
    payloads = {
        "agric": {"Simulated_Input_Data": AGRIC_ROWS,
                  "Methodology_Assumptions": AGRIC_METHODOLOGY},
        "livestock": {"Simulated_Livestock_Data": LIVESTOCK_ROWS},
        "nutrition": {"Nutrition_Data": NUTRITION_ROWS},
        "macro": {"Simulated_Macro_Data": MACRO_ROWS},
        "rice": {"Data": RICE_ROWS},
    }
    for key, payload in payloads.items():
        path = data_dir / datasets.DATASETS[key].path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(payload), encoding="utf-8")
    return data_dir


# ── Fixtures ──────────────────────────────────────────────────────────────────

@pytest.fixture(autouse=True)
def _reset_shared_state():
    """Clear module-level caches and rate counters between tests."""
    import api.app as app_module
    from utils import news

    datasets.invalidate()
    news.clear_cache()
    app_module._rate_counters.clear()
    yield
    datasets.invalidate()
    news.clear_cache()
    app_module._rate_counters.clear()


@pytest.fixture()
def data_dir(tmp_path):
    """Temporary dataset directory with all five sector files."""
    return write_datasets(tmp_path / "data")


@pytest.fixture()
def db_path(tmp_path):
    """Initialised, empty admin store."""
    path = tmp_path / "admin.sqlite"
    store.init_store(path)
    return path


@pytest.fixture()
def db(db_path):
    """Open connection to the admin store."""
    conn = store.connect(db_path)
    yield conn
    conn.close()


@pytest.fixture()
def admin_account(db):
    """An admin in the store with a known password."""
    from api.auth import hash_password
    return store.create_admin(db, ADMIN_EMAIL, "Jane Admin", hash_password(ADMIN_PASSWORD))


@pytest.fixture()
def app(db_path, data_dir):
    from api.app import create_app
    return create_app(db_path=db_path, data_dir=data_dir)


@pytest.fixture()
def client(app):
    from fastapi.testclient import TestClient
    return TestClient(app, raise_server_exceptions=False)


@pytest.fixture()
def auth_headers(admin_account):
    """Bearer header for the fixture admin."""
    from api.auth import create_token
    return {"Authorization": f"Bearer {create_token(admin_account['email'])}"}
