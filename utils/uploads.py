"""Admin data upload: read sheets, validate rows, write dataset files.

A workbook sheet is accepted only when its name maps to a dataset.  A sheet
with any row error is reported and left unwritten; a clean sheet replaces
the dataset file atomically (temp file + rename) under its root key.
"""

import io
import json
import logging
import os
import sqlite3
import tempfile
from pathlib import Path
from typing import Any, Dict, List

import openpyxl

from utils import datasets, store
from utils.config import KnownValues
from utils.errors import UploadError
from utils.validation import MAX_REPORTED_ERRORS, coerce_rows, validate_sheet

logger = logging.getLogger(__name__)


def read_workbook(content: bytes) -> List[Dict[str, Any]]:
    """Sheets of an .xlsx file as ``[{name, data: [row dicts]}]``.

    The first row of each sheet is the header; empty cells read as ``""``
    and fully empty rows are dropped.

    Raises:
        UploadError: If the bytes are not a readable workbook
    """
    try:
        wb = openpyxl.load_workbook(io.BytesIO(content), read_only=True, data_only=True)
    except Exception as exc:  # openpyxl raises zipfile/KeyError/InvalidFileException
        raise UploadError(f"Could not read workbook: {exc}") from exc
    sheets = []
    try:
        for ws in wb.worksheets:
            rows = ws.iter_rows(values_only=True)
            header_row = next(rows, None)
            if header_row is None:
                sheets.append({"name": ws.title, "data": []})
                continue
            header = [str(h).strip() if h is not None else "" for h in header_row]
            data = []
            for values in rows:
                if values is None or all(v is None or v == "" for v in values):
                    continue
                row = {}
                for key, value in zip(header, values):
                    if key:
                        row[key] = "" if value is None else value
                data.append(row)
            sheets.append({"name": ws.title, "data": data})
    finally:
        wb.close()
    return sheets


def parse_sheets_field(raw: str) -> List[Dict[str, Any]]:
    """Decode the ``sheets`` form field (JSON ``[{name, data}]``).

    Raises:
        UploadError: If the JSON is invalid or not a list of sheets
    """
    try:
        sheets = json.loads(raw)
    except ValueError as exc:
        raise UploadError(f"Invalid sheets payload: {exc}") from exc
    if not isinstance(sheets, list) or not all(
        isinstance(s, dict) and "name" in s for s in sheets
    ):
        raise UploadError("Invalid sheets payload: expected a list of {name, data}")
    return sheets


def write_dataset_atomic(path: Path, root_key: str, rows: List[Dict[str, Any]]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump({root_key: rows}, f, indent=2, ensure_ascii=False)
        os.replace(tmp, path)
    except BaseException:
        if os.path.exists(tmp):
            os.unlink(tmp)
        raise


def process_sheet(sheet: Dict[str, Any], data_dir: Path, admin_email: str,
                  uploaded_at: str) -> Dict[str, Any]:
    """Validate and write one sheet; returns its result entry."""
    name = str(sheet.get("name", ""))
    if not KnownValues.is_allowed_sheet(name):
        return {"sheet": name, "status": "skipped", "reason": "Not in allowed datasets"}
    key = KnownValues.UPLOAD_SHEETS[name]
    spec = datasets.get_spec(key)
    rows = sheet.get("data") or []
    if not isinstance(rows, list) or not rows:
        return {"sheet": name, "status": "invalid", "dataset": key,
                "errors": ["Empty sheet"]}

    result = validate_sheet(key, rows)
    if not result.is_valid():
        errors = result.error_messages(MAX_REPORTED_ERRORS)
        logger.info("upload sheet=%s invalid errors=%d", name, result.error_count())
        return {"sheet": name, "status": "invalid", "dataset": key,
                "rows": len(rows), "errors": errors,
                "error_count": result.error_count(),
                "failed_checks": result.failed_checks}

    records = coerce_rows(key, rows, admin_email, uploaded_at)
    path = datasets.dataset_path(key, data_dir)
    write_dataset_atomic(path, spec.root_key, records)
    datasets.invalidate(key, data_dir)
    logger.info("upload sheet=%s dataset=%s rows=%d by=%s",
                name, key, len(records), admin_email)
    return {"sheet": name, "status": "success", "dataset": key,
            "rows": len(records), "file": spec.path}


def _notification_type(results: List[Dict[str, Any]]) -> str:
    statuses = {r["status"] for r in results} - {"skipped"}
    if not statuses:
        return "info"
    if statuses == {"success"}:
        return "success"
    return "warning" if "success" in statuses else "error"


def _record_outcome(conn: sqlite3.Connection, filename: str, admin_email: str,
                    results: List[Dict[str, Any]]) -> None:
    summary = ", ".join(f"{r['sheet']}={r['status']}" for r in results) or "no sheets"
    store.log_action(conn, admin_email, "upload-data", f"{filename}: {summary}")
    store.create_notification(
        conn, f"Data upload: {filename}", f"{summary} (by {admin_email})",
        type=_notification_type(results), link="/admin/upload",
    )


def process_upload(sheets: List[Dict[str, Any]], filename: str, data_dir: Path,
                   admin_email: str, conn: sqlite3.Connection) -> List[Dict[str, Any]]:
    """Process every sheet and record the outcome in the admin store.

    Each sheet lands in the upload history as soon as it is handled, so a
    failure on a later sheet still leaves the written ones on record.  The
    admin log entry and notification are written in every case.
    """
    uploaded_at = store.utc_now()
    results: List[Dict[str, Any]] = []
    for sheet in sheets:
        try:
            entry = process_sheet(sheet, data_dir, admin_email, uploaded_at)
        except Exception:
            results.append({"sheet": str(sheet.get("name", "")), "status": "error"})
            _record_outcome(conn, filename, admin_email, results)
            raise
        results.append(entry)
        if entry["status"] != "skipped":
            store.record_upload(conn, filename, entry.get("dataset"),
                                entry.get("rows", 0), entry["status"], admin_email)
    _record_outcome(conn, filename, admin_email, results)
    return results
