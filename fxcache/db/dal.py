"""Data Access Layer utilities.

Responsibilities
----------------
- Hand out short-lived SQLite connections (row factory, foreign keys, busy timeout).
- Typed accessors for the metadata key/value table.
- The bulk delete of all cached currency data, applied in one transaction.
"""

from __future__ import annotations

import json
from contextlib import contextmanager
from pathlib import Path
import sqlite3
from typing import Any, Dict, Iterator, Optional

UTC_NOW_SQL = "strftime('%Y-%m-%dT%H:%M:%fZ','now')"
BUSY_TIMEOUT_SECONDS = 5.0


class Database:
    def __init__(self, db_path: Path):
        self.db_path = db_path

    # ------------------------------------------------------------------
    # Connection helpers
    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path, timeout=BUSY_TIMEOUT_SECONDS)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys=ON")
        return conn

    @contextmanager
    def session(self) -> Iterator[sqlite3.Connection]:
        """One unit of work: commit on success, rollback on error, always closed."""
        conn = self._connect()
        try:
            with conn:
                yield conn
        finally:
            conn.close()

    # ------------------------------------------------------------------
    # Metadata
    def get_metadata_value(self, key: str) -> Optional[str]:
        with self.session() as conn:
            cur = conn.cursor()
            cur.execute("SELECT value FROM metadata WHERE key=?", (key,))
            row = cur.fetchone()
            return row[0] if row else None

    def set_metadata_value(self, key: str, value: str) -> None:
        with self.session() as conn:
            conn.execute(
                f"""
                INSERT INTO metadata(key, value) VALUES(?, ?)
                ON CONFLICT(key) DO UPDATE SET value=excluded.value,
                    updated_at=({UTC_NOW_SQL})
                """,
                (key, value),
            )

    def delete_metadata_value(self, key: str) -> None:
        with self.session() as conn:
            conn.execute("DELETE FROM metadata WHERE key=?", (key,))

    def get_json_obj(self, key: str) -> Dict[str, Any]:
        val = self.get_metadata_value(key)
        if not val:
            return {}
        try:
            obj = json.loads(val)
        except ValueError:
            return {}
        return obj if isinstance(obj, dict) else {}

    def set_json_obj(self, key: str, obj: Dict[str, Any]) -> None:
        self.set_metadata_value(key, json.dumps(obj, separators=(",", ":")))

    # ------------------------------------------------------------------
    # Bulk delete
    def wipe_local_data(self, metadata_keys: tuple[str, ...] = ()) -> Dict[str, int]:
        """Remove every rate and currency row (plus the given metadata keys).

        Runs in a single transaction: on any failure nothing is removed and the
        error propagates.
        """
        conn = self._connect()
        try:
            cur = conn.cursor()
            cur.execute("BEGIN IMMEDIATE")
            cur.execute("DELETE FROM currency_rates")
            rates_removed = cur.rowcount
            cur.execute("DELETE FROM currencies")
            currencies_removed = cur.rowcount
            for key in metadata_keys:
                cur.execute("DELETE FROM metadata WHERE key=?", (key,))
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()
        return {"rates": rates_removed, "currencies": currencies_removed}
