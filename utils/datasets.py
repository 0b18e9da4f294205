"""Dataset registry and loader for the simulated ECOWAS statistics files.

Each sector reads one static JSON file under the data directory.  Four are
stored as records (``{root_key: [{country, year, ...}]}``); the rice file is
wide (one row per country with a column per year) and is normalized into
records here so every page sees the same shape.

Parsed files are cached on (mtime, size); an admin upload that rewrites a
file is picked up on the next request.
"""

import json
import logging
import math
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable, Optional

from utils.cache import FileCache
from utils.errors import DatasetError, NoDataError

logger = logging.getLogger(__name__)

RICE_FIRST_YEAR = 2005
RICE_LAST_YEAR = 2024

METHODOLOGY_KEY = "Methodology_Assumptions"


@dataclass(frozen=True)
class DatasetSpec:
    """Where a sector's dataset lives and how it is laid out."""

    key: str
    sector: str
    path: str
    root_key: str
    layout: str = "records"  # "records" | "wide"
    year_floor: int = 2025


DATASETS: dict[str, DatasetSpec] = {
    "agric": DatasetSpec(
        "agric", "agric",
        "agric/APMD_ECOWAS_Input_Simulated_2006_2025.json",
        "Simulated_Input_Data",
    ),
    "livestock": DatasetSpec(
        "livestock", "livestock",
        "livestock/APMD_ECOWAS_Livestock_Simulated_2006_2025.json",
        "Simulated_Livestock_Data",
    ),
    "nutrition": DatasetSpec(
        "nutrition", "nutrition",
        "nutrition/WestAfrica_Nutrition_Simulated_Expanded_2006_2025.json",
        "Nutrition_Data",
    ),
    "macro": DatasetSpec(
        "macro", "macroeconomics-indices",
        "macro/WestAfrica_Macro_Simulated_2006_2025.json",
        "Simulated_Macro_Data",
    ),
    "rice": DatasetSpec(
        "rice", "rice",
        "rice/ecowas_rice_production_2005_2024_simulated.json",
        "Data",
        layout="wide",
        year_floor=RICE_LAST_YEAR,
    ),
}

_file_cache = FileCache()


def get_spec(key: str) -> DatasetSpec:
    """Return the registry entry for *key*.

    Raises:
        DatasetError: If the key is not registered
    """
    try:
        return DATASETS[key]
    except KeyError:
        raise DatasetError(f"Unknown dataset: {key}") from None


def dataset_path(key: str, data_dir: Path) -> Path:
    return Path(data_dir) / get_spec(key).path


def coerce_number(value: Any) -> Optional[float]:
    """Return *value* as an int/float, or None when it is not numeric.

    Booleans, blanks and non-finite values are treated as missing.
    Integral floats stay floats; numeric strings are parsed.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return value if math.isfinite(value) else None
    if isinstance(value, str):
        text = value.strip().replace(",", "")
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
        if not math.isfinite(number):
            return None
        return int(number) if number.is_integer() and "." not in text else number
    return None


def _normalize_record(raw: dict) -> Optional[dict]:
    """Coerce year to int and non-country fields to numbers or None."""
    year = coerce_number(raw.get("year"))
    if year is None:
        return None
    record: dict[str, Any] = {"country": raw.get("country"), "year": int(year)}
    for field, value in raw.items():
        if field in ("country", "year"):
            continue
        if field == METHODOLOGY_KEY:
            record[field] = value
            continue
        record[field] = coerce_number(value)
    return record


def _widen_to_records(rows: Iterable[dict]) -> list[dict]:
    records = []
    for row in rows:
        country = row.get("Column1")
        if not country:
            continue
        for year in range(RICE_FIRST_YEAR, RICE_LAST_YEAR + 1):
            cell = row.get(str(year))
            if isinstance(cell, bool) or not isinstance(cell, (int, float)):
                continue
            records.append({
                "country": country,
                "year": year,
                "production_tonnes": cell,
            })
    return records


def _read_json(path: Path) -> Any:
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except FileNotFoundError:
        raise DatasetError(f"Dataset file not found: {path.name}") from None
    except (OSError, json.JSONDecodeError) as exc:
        raise DatasetError(f"Could not read dataset {path.name}: {exc}") from exc


def parse_dataset(spec: DatasetSpec, payload: Any) -> dict[str, Any]:
    """Turn a decoded JSON payload into ``{records, methodology}``.

    Raises:
        DatasetError: If the root key is missing or is not a list
    """
    methodology = None
    if isinstance(payload, list):
        rows = payload
    elif isinstance(payload, dict):
        rows = payload.get(spec.root_key)
        methodology = payload.get(METHODOLOGY_KEY)
        if not isinstance(methodology, dict):
            methodology = None
    else:
        rows = None
    if not isinstance(rows, list):
        raise DatasetError(
            f"Dataset {spec.key} is malformed: expected a list under {spec.root_key!r}"
        )
    rows = [r for r in rows if isinstance(r, dict)]
    if spec.layout == "wide":
        records = _widen_to_records(rows)
    else:
        records = [r for r in (_normalize_record(raw) for raw in rows) if r]
    return {"records": records, "methodology": methodology}


def load_bundle(key: str, data_dir: Path) -> dict[str, Any]:
    """Load a dataset and its optional methodology block (cached)."""
    spec = get_spec(key)
    path = Path(data_dir) / spec.path
    try:
        return _file_cache.get_or_load(
            path, lambda p: parse_dataset(spec, _read_json(p))
        )
    except FileNotFoundError:
        raise DatasetError(f"Dataset file not found: {path.name}") from None


def load_dataset(key: str, data_dir: Path) -> list[dict]:
    """Return the list of country-year records for dataset *key*.

    Raises:
        DatasetError: Unknown key, or the file is missing or malformed
    """
    return load_bundle(key, data_dir)["records"]


def invalidate(key: Optional[str] = None, data_dir: Optional[Path] = None) -> None:
    """Forget cached parses (one dataset when both args are given)."""
    if key is not None and data_dir is not None:
        _file_cache.invalidate(dataset_path(key, data_dir))
    else:
        _file_cache.invalidate()


# ── Filtering ────────────────────────────────────────────────────────────────

def country_slug(name: str) -> str:
    """URL form of a country name: ``"Burkina Faso"`` -> ``"burkina-faso"``."""
    return name.strip().lower().replace(" ", "-")


def _same_country(record_country: Any, wanted: str) -> bool:
    if not isinstance(record_country, str):
        return False
    a = record_country.strip().lower()
    b = wanted.strip().lower()
    return a == b or country_slug(a) == country_slug(b)


def filter_country(records: Iterable[dict], country: str) -> list[dict]:
    """Records for *country*, matched case-insensitively, sorted by year."""
    rows = [r for r in records if _same_country(r.get("country"), country)]
    return sorted(rows, key=lambda r: r["year"])


def require_country(records: Iterable[dict], country: str) -> list[dict]:
    """Like :func:`filter_country` but raises when nothing matches.

    Raises:
        NoDataError: If no record matches *country*
    """
    rows = filter_country(records, country)
    if not rows:
        raise NoDataError(f"No data available for {country}")
    return rows


def available_years(records: Iterable[dict]) -> list[int]:
    return sorted({r["year"] for r in records if isinstance(r.get("year"), int)})


def latest_year(records: Iterable[dict], floor: int = 2025) -> int:
    """Default selected year: the largest of the data's years and *floor*."""
    return max(available_years(records) + [floor])


def select_year(records: Iterable[dict], year: int) -> Optional[dict]:
    for record in records:
        if record.get("year") == year:
            return record
    return None


def resolve_methodology(
    file_methodology: Optional[dict], country_records: list[dict]
) -> Optional[dict]:
    """Methodology notes for a data-methodology page.

    The file-level ``Methodology_Assumptions`` object wins.  Otherwise the
    first country record carrying its own notes is used; those are a plain
    string or a JSON-encoded list of strings.
    """
    if file_methodology:
        assumptions = file_methodology.get("assumptions") or []
        if isinstance(assumptions, str):
            assumptions = [assumptions]
        return {
            "data_source": file_methodology.get("data_source"),
            "simulation_method": file_methodology.get("simulation_method"),
            "assumptions": [str(a) for a in assumptions],
        }
    for record in country_records:
        notes = record.get(METHODOLOGY_KEY)
        if not notes:
            continue
        if isinstance(notes, list):
            return {"data_source": None, "simulation_method": None,
                    "assumptions": [str(n) for n in notes]}
        text = str(notes).strip()
        try:
            parsed = json.loads(text)
        except ValueError:
            parsed = None
        if isinstance(parsed, list):
            return {"data_source": None, "simulation_method": None,
                    "assumptions": [str(n) for n in parsed]}
        return {"data_source": None, "simulation_method": None,
                "assumptions": [text]}
    return None


def dataset_files(data_dir: Path) -> list[dict]:
    """Registered dataset files present on disk, with size and mtime."""
    files = []
    for spec in DATASETS.values():
        path = Path(data_dir) / spec.path
        if not path.is_file():
            continue
        st = path.stat()
        files.append({
            "dataset": spec.key,
            "file": spec.path,
            "size": st.st_size,
            "modified": datetime.fromtimestamp(st.st_mtime, timezone.utc)
                                .isoformat(timespec="seconds"),
        })
    return files
