"""
SQLite location and connections for the tournament store.

The path is resolved once per call: an explicit set_db_path() wins, then
$TURFKINGS_DB_PATH, then <project>/data/turfkings.db.
"""
from __future__ import annotations

import os
import sqlite3
from pathlib import Path

from .schema import all_schema_sql

DB_PATH_ENV = "TURFKINGS_DB_PATH"

_db_path: Path | None = None


def _project_db_path() -> Path:
    return Path(__file__).resolve().parent.parent.parent / "data" / "turfkings.db"


def set_db_path(path: str | Path) -> None:
    """Pin the tournament DB (tests point this at tmp_path)."""
    global _db_path
    _db_path = Path(path)


def get_db_path() -> Path:
    if _db_path is not None:
        return _db_path
    env = os.environ.get(DB_PATH_ENV)
    return Path(env) if env else _project_db_path()


def _open(path: Path) -> sqlite3.Connection:
    path.parent.mkdir(parents=True, exist_ok=True)
    return sqlite3.connect(str(path))


def get_connection(db_path: str | Path | None = None) -> sqlite3.Connection:
    """
    Open the tournament DB with rows addressable by column name.
    Caller closes it (the API wraps this in db_conn()).
    """
    conn = _open(Path(db_path) if db_path else get_db_path())
    conn.row_factory = sqlite3.Row
    return conn


def init_db(db_path: str | Path | None = None) -> None:
    """Create the snapshot tables if missing. Safe to call on every startup."""
    conn = _open(Path(db_path) if db_path else get_db_path())
    try:
        conn.executescript(all_schema_sql())
        conn.commit()
    finally:
        conn.close()
