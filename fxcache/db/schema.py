"""Database schema DDL definitions and initialization utilities.

Tables:
  - currencies: currency codes seen in the provider symbol list
  - currency_rates: cached rate per (base, second) currency pair with provider timestamp
  - metadata: key/value store (schema version, cached currencies list)
"""

from __future__ import annotations
import sqlite3
from typing import Sequence
from pathlib import Path

BASIC_UTC_NOW = "strftime('%Y-%m-%dT%H:%M:%fZ','now')"

CURRENCIES_DDL = f"""
CREATE TABLE IF NOT EXISTS currencies (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    code TEXT NOT NULL UNIQUE, -- 'EUR', 'USD', ...
    display_name TEXT NOT NULL, -- 'USD (United States Dollar)'
    updated_at TEXT NOT NULL DEFAULT ({BASIC_UTC_NOW})
);
"""

CURRENCY_RATES_DDL = f"""
CREATE TABLE IF NOT EXISTS currency_rates (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    base_currency_id INTEGER NOT NULL,
    second_currency_id INTEGER NOT NULL,
    rate REAL NOT NULL CHECK (rate > 0),
    timestamp INTEGER NOT NULL, -- provider reported Unix epoch seconds
    updated_at TEXT NOT NULL DEFAULT ({BASIC_UTC_NOW}),
    UNIQUE(base_currency_id, second_currency_id),
    FOREIGN KEY (base_currency_id) REFERENCES currencies(id) ON DELETE CASCADE,
    FOREIGN KEY (second_currency_id) REFERENCES currencies(id) ON DELETE CASCADE
);
"""

METADATA_DDL = f"""
CREATE TABLE IF NOT EXISTS metadata (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL,
    updated_at TEXT NOT NULL DEFAULT ({BASIC_UTC_NOW})
);
"""

RATES_BASE_INDEX_DDL = (
    "CREATE INDEX IF NOT EXISTS idx_rates_base ON currency_rates(base_currency_id);"
)

DDL_ORDER: Sequence[str] = (
    CURRENCIES_DDL,
    CURRENCY_RATES_DDL,
    METADATA_DDL,
)


def init_db(path: Path) -> None:
    """Create all tables idempotently.

    Parameters
    ----------
    path: Path to SQLite database file.
    """
    conn = sqlite3.connect(path)
    try:
        # Readers keep working while a refresh holds the write lock
        conn.execute("PRAGMA journal_mode=WAL")
        cur = conn.cursor()
        for ddl in DDL_ORDER:
            cur.execute(ddl)
        cur.execute(RATES_BASE_INDEX_DDL)
        conn.commit()
    finally:
        conn.close()
