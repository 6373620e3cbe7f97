from __future__ import annotations

import json
import sqlite3
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any


def _ensure_utc(dt: datetime) -> datetime:
    """Ensure a datetime is timezone-aware (UTC).

    Timestamps written by older code or by hand may be naive.
    This helper re-attaches UTC when needed.
    """
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


class State:
    """SQLite persistence for named cache records (value + last-updated time).

    Any object with the same ``get_cache`` / ``set_cache`` pair can stand in
    for it, which is how tests supply fixtures.
    """

    def __init__(self, db_path: Path | None = None):
        if db_path is None:
            import config
            db_path = config.STATE_DB

        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._local = threading.local()

        self._init_db()

    def __enter__(self) -> State:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _get_conn(self) -> sqlite3.Connection:
        """Get a thread-local database connection (created once per thread, reused)."""
        conn = getattr(self._local, "conn", None)
        if conn is None:
            conn = sqlite3.connect(self.db_path)
            conn.row_factory = sqlite3.Row
            self._local.conn = conn
        return conn

    def close(self) -> None:
        """Close the current thread's database connection."""
        conn = getattr(self._local, "conn", None)
        if conn is not None:
            conn.close()
            self._local.conn = None

    def _init_db(self) -> None:
        conn = self._get_conn()
        conn.execute("""
            CREATE TABLE IF NOT EXISTS cache (
                name TEXT PRIMARY KEY,
                value_json TEXT,
                last_updated TEXT
            )
        """)
        conn.commit()

    def get_cache(self, name: str) -> tuple[Any, datetime] | None:
        """Return (value, last_updated) for a cache record, or None if never written."""
        conn = self._get_conn()
        cursor = conn.execute(
            "SELECT value_json, last_updated FROM cache WHERE name = ?", (name,)
        )
        row = cursor.fetchone()
        if row is None or row["last_updated"] is None:
            return None
        value = json.loads(row["value_json"])
        return value, _ensure_utc(datetime.fromisoformat(row["last_updated"]))

    def set_cache(self, name: str, value: Any, updated_at: datetime | None = None) -> None:
        """Replace a cache record wholesale. ``value`` must be JSON-serializable."""
        conn = self._get_conn()
        if updated_at is None:
            updated_at = datetime.now(timezone.utc)
        conn.execute("""
            INSERT OR REPLACE INTO cache (name, value_json, last_updated)
            VALUES (?, ?, ?)
        """, (name, json.dumps(value), _ensure_utc(updated_at).isoformat()))
        conn.commit()

