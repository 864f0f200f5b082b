"""Cached rates keyed by (base currency, second currency).

Both codes must already exist in the currencies table; otherwise the write is
refused with UnknownCurrency. Updates never move an entry back to an older
provider timestamp, so concurrent refreshes of the same pair resolve to the
freshest quote. Missing pairs read as rate 0.0.
"""

from __future__ import annotations

import sqlite3
from typing import Dict, List, Mapping, Optional, Tuple

from fxcache.core.errors import UnknownCurrency
from fxcache.models.rates import RateEntry
from .dal import Database, UTC_NOW_SQL

MISSING_RATE = 0.0

_ENTRY_SELECT = """
SELECT b.code AS base_code, s.code AS second_code, r.rate, r.timestamp
FROM currency_rates r
JOIN currencies b ON b.id = r.base_currency_id
JOIN currencies s ON s.id = r.second_currency_id
"""


class RateStore:
    def __init__(self, db: Database):
        self.db = db

    # Internal --------------------------------------------------
    @staticmethod
    def _resolve_id(cur: sqlite3.Cursor, code: str) -> int:
        cur.execute("SELECT id FROM currencies WHERE code = ?", (code,))
        row = cur.fetchone()
        if not row:
            raise UnknownCurrency(code)
        return int(row[0])

    @classmethod
    def _write(
        cls,
        cur: sqlite3.Cursor,
        base_code: str,
        second_code: str,
        rate: float,
        timestamp: int,
    ) -> bool:
        rate = float(rate)
        if rate <= 0:
            raise ValueError(f"rate for {base_code}/{second_code} must be positive")
        base_id = cls._resolve_id(cur, base_code)
        second_id = cls._resolve_id(cur, second_code)
        cur.execute(
            f"""
            INSERT INTO currency_rates (base_currency_id, second_currency_id, rate, timestamp)
            VALUES (?, ?, ?, ?)
            ON CONFLICT(base_currency_id, second_currency_id) DO UPDATE SET
                rate = excluded.rate,
                timestamp = excluded.timestamp,
                updated_at = ({UTC_NOW_SQL})
            WHERE excluded.timestamp >= currency_rates.timestamp
            """,
            (base_id, second_id, rate, int(timestamp)),
        )
        return cur.rowcount > 0

    # Public API -----------------------------------------------
    def upsert(
        self, base_code: str, second_code: str, rate: float, timestamp: int
    ) -> bool:
        """Insert or update one pair; False when a fresher entry was kept."""
        with self.db.session() as conn:
            return self._write(
                conn.cursor(),
                base_code.strip().upper(),
                second_code.strip().upper(),
                rate,
                timestamp,
            )

    def upsert_many(
        self, base_code: str, rates: Mapping[str, float], timestamp: int
    ) -> Tuple[int, List[str]]:
        """Write every quote for one base in a single transaction.

        Pairs referencing an unknown currency or carrying a non-positive rate are
        skipped individually. Returns (rows written, skipped quote codes).
        """
        base_code = base_code.strip().upper()
        written = 0
        skipped: List[str] = []
        with self.db.session() as conn:
            cur = conn.cursor()
            for quote, rate in rates.items():
                quote = str(quote).strip().upper()
                try:
                    if self._write(cur, base_code, quote, rate, timestamp):
                        written += 1
                except (UnknownCurrency, ValueError, TypeError):
                    skipped.append(quote)
        return written, skipped

    def get_entry(self, base_code: str, second_code: str) -> Optional[RateEntry]:
        with self.db.session() as conn:
            cur = conn.cursor()
            cur.execute(
                _ENTRY_SELECT + " WHERE b.code = ? AND s.code = ?",
                (base_code.strip().upper(), second_code.strip().upper()),
            )
            row = cur.fetchone()
            return RateEntry.from_row(dict(row)) if row else None

    def find_rate(self, base_code: str, second_code: str) -> float:
        """Cached rate for the pair, or 0.0 when nothing is cached."""
        entry = self.get_entry(base_code, second_code)
        return entry.rate if entry else MISSING_RATE

    def list_rates(self, base_code: Optional[str] = None) -> List[RateEntry]:
        sql = _ENTRY_SELECT
        params: List[str] = []
        if base_code:
            sql += " WHERE b.code = ?"
            params.append(base_code.strip().upper())
        sql += " ORDER BY b.code ASC, s.code ASC"
        with self.db.session() as conn:
            cur = conn.cursor()
            cur.execute(sql, params)
            return [RateEntry.from_row(dict(r)) for r in cur.fetchall()]

    def rates_for_base(self, base_code: str) -> Dict[str, float]:
        return {e.second_currency: e.rate for e in self.list_rates(base_code)}

    def count(self) -> int:
        with self.db.session() as conn:
            cur = conn.cursor()
            cur.execute("SELECT COUNT(*) FROM currency_rates")
            row = cur.fetchone()
            return int(row[0] if row and row[0] is not None else 0)
