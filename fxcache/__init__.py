"""FX rates cache: provider client, SQLite stores, refresh manager and conversion."""

__version__ = "0.1.0"
