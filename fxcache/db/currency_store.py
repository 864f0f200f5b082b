"""Currency records keyed by their unique code.

Upserts are idempotent: repeating the same (code, display_name) leaves a single
unchanged row.
"""

from __future__ import annotations

import sqlite3
from typing import Dict, List, Mapping, Optional, Tuple

from fxcache.models.currency import Currency
from .dal import Database, UTC_NOW_SQL


class CurrencyStore:
    def __init__(self, db: Database):
        self.db = db

    @staticmethod
    def _normalise(code: str) -> str:
        code = str(code).strip().upper()
        if not code:
            raise ValueError("currency code must not be empty")
        return code

    @staticmethod
    def _write(cur: sqlite3.Cursor, code: str, display_name: str) -> None:
        cur.execute(
            f"""
            INSERT INTO currencies (code, display_name)
            VALUES (?, ?)
            ON CONFLICT(code) DO UPDATE SET
                display_name = excluded.display_name,
                updated_at = ({UTC_NOW_SQL})
            WHERE currencies.display_name != excluded.display_name
            """,
            (code, display_name),
        )

    def upsert(self, code: str, display_name: str) -> Currency:
        code = self._normalise(code)
        with self.db.session() as conn:
            cur = conn.cursor()
            self._write(cur, code, display_name)
            cur.execute("SELECT * FROM currencies WHERE code = ?", (code,))
            return Currency.from_row(dict(cur.fetchone()))

    def upsert_many(self, entries: Mapping[str, str]) -> Tuple[Dict[str, str], List[str]]:
        """Write every (code, display_name) in a single transaction.

        Blank codes or non-string names are skipped individually. Returns the
        stored {code: display_name} mapping and the skipped raw codes. A
        database error rolls the whole batch back and propagates.
        """
        stored: Dict[str, str] = {}
        skipped: List[str] = []
        with self.db.session() as conn:
            cur = conn.cursor()
            for raw_code, display_name in entries.items():
                try:
                    code = self._normalise(raw_code)
                except ValueError:
                    skipped.append(str(raw_code))
                    continue
                if not isinstance(display_name, str) or not display_name:
                    skipped.append(code)
                    continue
                self._write(cur, code, display_name)
                stored[code] = display_name
        return stored, skipped

    def find_by_code(self, code: str) -> Optional[Currency]:
        with self.db.session() as conn:
            cur = conn.cursor()
            cur.execute(
                "SELECT * FROM currencies WHERE code = ?", (code.strip().upper(),)
            )
            row = cur.fetchone()
            return Currency.from_row(dict(row)) if row else None

    def list_currencies(self) -> List[Currency]:
        with self.db.session() as conn:
            cur = conn.cursor()
            cur.execute("SELECT * FROM currencies ORDER BY code ASC")
            return [Currency.from_row(dict(r)) for r in cur.fetchall()]

    def count(self) -> int:
        with self.db.session() as conn:
            cur = conn.cursor()
            cur.execute("SELECT COUNT(*) FROM currencies")
            row = cur.fetchone()
            return int(row[0] if row and row[0] is not None else 0)
