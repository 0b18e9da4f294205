"""
Storage locations and connection management for the API.

Provides a get_db() dependency that opens a per-request connection to the
SQLite admin store and closes it after the response is sent, and
get_data_dir() resolving the directory of the sector JSON datasets.  Both
paths are read once from APP_DB_PATH / APP_DATA_DIR and can be overridden
by create_app() for tests.
"""

import os
import sqlite3
from collections.abc import Generator
from pathlib import Path

from fastapi import HTTPException

from utils import store

_DB_PATH: Path = Path(os.getenv("APP_DB_PATH", "ecoagris_admin.sqlite"))
_DATA_DIR: Path = Path(os.getenv("APP_DATA_DIR", "data"))


def get_db_path() -> Path:
    """Return the configured admin store path."""
    return _DB_PATH


def get_data_dir() -> Path:
    """Return the configured dataset directory.

    Also usable as a FastAPI dependency so routes can be pointed at a
    temporary directory with ``app.dependency_overrides``.
    """
    return _DATA_DIR


def configure(db_path: Path | None = None, data_dir: Path | None = None) -> None:
    global _DB_PATH, _DATA_DIR
    if db_path is not None:
        _DB_PATH = Path(db_path)
    if data_dir is not None:
        _DATA_DIR = Path(data_dir)


def get_db() -> Generator[sqlite3.Connection, None, None]:
    """FastAPI dependency: yield an admin store connection, close on exit.

    Raises HTTP 503 when the store file is missing (startup creates it, so
    this only happens if it was removed while running).

    Usage in a route::

        from api.database import get_db
        from fastapi import Depends

        @router.get("/example")
        def example(conn=Depends(get_db)):
            ...
    """
    if not _DB_PATH.exists():
        raise HTTPException(
            status_code=503,
            detail=f"Admin store not found at '{_DB_PATH}'. Restart the server to create it.",
        )
    conn = store.connect(_DB_PATH)
    try:
        yield conn
    finally:
        conn.close()
