"""
FILE: snackboard/core/repository.py
PURPOSE: Local durable storage: JSON records under string keys in SQLite
EXPORTS:
  - get_connection() -> Connection
  - init_database(conn) -> None
  - load_record(key) -> dict | None
  - save_record(record, key) -> None
  - delete_record(key) -> None
  - load_board(store) -> bool
  - LocalPersistence (store subscriber)
DEPENDENCIES:
  - sqlite3 (stdlib)
  - json (stdlib)
  - logging (stdlib)
  - snackboard.config (data directory)
  - snackboard.core.constants (STORAGE_KEY)
NOTES:
  - Database stored at ~/.snackboard/snackboard.db (SNACKBOARD_HOME overrides the directory)
  - Auto-creates directory and schema on first connection
  - One row per key; the board lives under STORAGE_KEY, the auth session under SESSION_KEY
  - A record that fails to parse is logged and treated as missing (never fatal)
"""

import json
import logging
import sqlite3
from datetime import datetime
from typing import TYPE_CHECKING, Any, Dict, Optional

from ..config import get_data_dir
from .constants import STORAGE_KEY

if TYPE_CHECKING:
    from .store import Store

logger = logging.getLogger(__name__)

# Database file location (cross-platform)
DB_DIR = get_data_dir()
DB_PATH = DB_DIR / "snackboard.db"

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS records (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL,
    updated_at TEXT NOT NULL
);
"""


def get_connection() -> sqlite3.Connection:
    """
    Get SQLite connection to the Snackboard database.

    Creates the data directory if it doesn't exist.
    Enables row_factory for dict-like row access.
    Initializes database schema on first connection.
    """
    DB_DIR.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(DB_PATH)
    conn.row_factory = sqlite3.Row

    init_database(conn)

    return conn


def init_database(conn: sqlite3.Connection) -> None:
    """
    Initialize database schema if tables don't exist.

    Safe to call multiple times (uses CREATE TABLE IF NOT EXISTS).
    """
    conn.executescript(SCHEMA_SQL)
    conn.commit()


def load_record(key: str = STORAGE_KEY) -> Optional[Dict[str, Any]]:
    """
    Fetch the record stored under key.

    Returns:
        The decoded dict, or None if missing or unreadable
    """
    conn = get_connection()
    try:
        row = conn.execute("SELECT value FROM records WHERE key = ?", (key,)).fetchone()
    finally:
        conn.close()

    if row is None:
        return None

    try:
        data = json.loads(row["value"])
    except json.JSONDecodeError as e:
        logger.error("Failed to load record %r: %s", key, e)
        return None

    if not isinstance(data, dict):
        logger.error("Failed to load record %r: expected an object, got %s", key, type(data).__name__)
        return None

    return data


def save_record(record: Dict[str, Any], key: str = STORAGE_KEY) -> None:
    """Insert or replace the record stored under key."""
    conn = get_connection()
    now = datetime.now().isoformat()
    try:
        conn.execute(
            """
            INSERT INTO records (key, value, updated_at)
            VALUES (?, ?, ?)
            ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at
            """,
            (key, json.dumps(record), now),
        )
        conn.commit()
    finally:
        conn.close()


def delete_record(key: str = STORAGE_KEY) -> None:
    """Remove the record stored under key (missing key is fine)."""
    conn = get_connection()
    try:
        conn.execute("DELETE FROM records WHERE key = ?", (key,))
        conn.commit()
    finally:
        conn.close()


def load_board(store: "Store", key: str = STORAGE_KEY) -> bool:
    """
    Load the saved board into store.

    Returns:
        True if a record was found and applied, False if the store kept its defaults
    """
    record = load_record(key)
    if record is None:
        return False

    try:
        store.load_local_record(record)
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        logger.error("Failed to load state: %s", e)
        store.load_local_record({})
        return False
    return True


class LocalPersistence:
    """Store subscriber that writes the local record after every change."""

    def __init__(self, store: "Store", key: str = STORAGE_KEY):
        self.store = store
        self.key = key

    def __call__(self, change: str) -> None:
        save_record(self.store.local_record(), self.key)
