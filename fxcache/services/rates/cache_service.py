"""Rate cache manager.

Purpose:
    Keep the local currencies and currency_rates tables in sync with the
    provider, and hold the cached currencies list used for picker options.

Design:
    - The currencies list is an explicit CachedCurrencyList (mapping, populated
      flag, refresh time) owned by the manager and mirrored into the metadata
      table so a restarted process reuses it.
    - Not forced + populated -> cached mapping, no network call. The metadata
      blob is re-read first so refreshes and wipes from other processes show up.
    - Forced or empty -> fetch symbols (outside the lock), then upsert every
      currency in one transaction and swap the new cache in under the lock.
      A failed fetch or store error leaves the previous cache untouched and
      returns None.
    - save_rates() walks the requested bases in order; each base is written in
      one transaction before the next is fetched. A failed base is reported in
      the RefreshReport and leaves existing rows alone.
"""

from __future__ import annotations

import logging
import sqlite3
import threading
import time
from dataclasses import asdict, dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional

from fxcache.core.config import get_settings
from fxcache.core.logging import bind_log_context
from fxcache.db.currency_store import CurrencyStore
from fxcache.db.dal import Database
from fxcache.db.migrate import apply_migrations
from fxcache.db.rate_store import RateStore
from fxcache.models.currency import display_name_for
from .base import RateProvider
from .providers import FixerRateProvider

logger = logging.getLogger("fxcache.cache")

CACHE_METADATA_KEY = "currencies_list_cache"
DEFAULT_BASE_CURRENCIES = ("EUR",)


@dataclass
class CachedCurrencyList:
    mapping: Dict[str, str] = field(default_factory=dict)
    populated: bool = False
    refreshed_at: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, obj: Dict[str, Any]) -> "CachedCurrencyList":
        mapping = obj.get("mapping")
        if not isinstance(mapping, dict) or not obj.get("populated"):
            return cls()
        refreshed_at = obj.get("refreshed_at")
        return cls(
            mapping={str(k): str(v) for k, v in mapping.items()},
            populated=True,
            refreshed_at=float(refreshed_at) if refreshed_at is not None else None,
        )


@dataclass
class BaseRefreshOutcome:
    base: str
    success: bool
    effective_base: Optional[str] = None
    timestamp: Optional[int] = None
    updated: int = 0
    skipped: List[str] = field(default_factory=list)
    error: Optional[str] = None


@dataclass
class RefreshReport:
    outcomes: List[BaseRefreshOutcome] = field(default_factory=list)

    @property
    def succeeded(self) -> List[str]:
        return [o.base for o in self.outcomes if o.success]

    @property
    def failed(self) -> List[str]:
        return [o.base for o in self.outcomes if not o.success]

    @property
    def ok(self) -> bool:
        return bool(self.outcomes) and not self.failed

    def to_dict(self) -> Dict[str, Any]:
        return {
            "succeeded": self.succeeded,
            "failed": self.failed,
            "outcomes": [asdict(o) for o in self.outcomes],
        }


class RateCacheManager:
    def __init__(
        self,
        db: Database,
        provider: RateProvider,
        *,
        tracked_codes: Iterable[str] = ("EUR",),
        clock: Callable[[], float] = time.time,
    ):
        self.db = db
        self.provider = provider
        self.currencies = CurrencyStore(db)
        self.rates = RateStore(db)
        self.tracked_codes = [c.upper() for c in tracked_codes]
        self._clock = clock
        self._lock = threading.Lock()
        self._cache = self._load_cache()

    # Internal --------------------------------------------------
    def _load_cache(self) -> CachedCurrencyList:
        return CachedCurrencyList.from_dict(self.db.get_json_obj(CACHE_METADATA_KEY))

    def _persist_cache(self, cache: CachedCurrencyList) -> None:
        self.db.set_json_obj(CACHE_METADATA_KEY, cache.to_dict())
        self._cache = cache

    # Currencies list ------------------------------------------
    @property
    def cache_state(self) -> CachedCurrencyList:
        return CachedCurrencyList(
            dict(self._cache.mapping), self._cache.populated, self._cache.refreshed_at
        )

    def get_currencies_list(self, force_update: bool = False) -> Optional[Dict[str, str]]:
        if not force_update:
            with self._lock:
                # Another process may have refreshed or wiped the shared list.
                try:
                    self._cache = self._load_cache()
                except sqlite3.Error:
                    logger.exception("reading the cached currencies list failed")
                if self._cache.populated:
                    return dict(self._cache.mapping)

        # The provider round trip runs unlocked; readers keep the previous list.
        result = self.provider.fetch_symbols()
        if not result.success:
            logger.error("No updates for currencies list: %s", result.error)
            return None

        entries: Dict[str, str] = {}
        for code, name in result.symbols.items():
            code = str(code).strip().upper()
            valid = bool(code) and isinstance(name, str) and bool(name)
            # the store skips blank codes and empty names
            entries[code] = display_name_for(code, name) if valid else ""
        with self._lock:
            try:
                mapping, skipped = self.currencies.upsert_many(entries)
                self._persist_cache(
                    CachedCurrencyList(
                        mapping=mapping, populated=True, refreshed_at=self._clock()
                    )
                )
            except sqlite3.Error:
                logger.exception("storing the currencies list failed")
                return None
        if skipped:
            logger.warning(
                "%d provider symbols skipped (blank code or name)",
                len(skipped),
                extra={"skipped": skipped[:10]},
            )
        logger.info(
            "currencies list updated (%d codes)",
            len(mapping),
            extra={"updated": len(mapping)},
        )
        return dict(mapping)

    def selected_currencies_list(
        self, codes: Optional[Iterable[str]] = None
    ) -> Dict[str, str]:
        """Cached list restricted to the tracked codes, in tracked order."""
        mapping = self.get_currencies_list() or {}
        wanted = [c.upper() for c in codes] if codes is not None else self.tracked_codes
        return {c: mapping[c] for c in wanted if c in mapping}

    # Rates ----------------------------------------------------
    def _save_base(self, base: str) -> BaseRefreshOutcome:
        result = self.provider.fetch_rates(base)
        if not result.success:
            logger.error("No updates for %s: %s", base, result.error)
            return BaseRefreshOutcome(base=base, success=False, error=result.error)

        timestamp = result.timestamp if result.timestamp is not None else int(self._clock())
        if not result.base_honored:
            logger.warning(
                "rates requested for %s were quoted in %s",
                base,
                result.base,
                extra={"effective_base": result.base},
            )
        try:
            updated, skipped = self.rates.upsert_many(result.base, result.rates, timestamp)
        except sqlite3.Error as e:
            logger.exception("storing rates for %s failed", base)
            return BaseRefreshOutcome(
                base=base, success=False, effective_base=result.base, error=str(e)
            )
        if skipped:
            logger.warning(
                "%d quotes for %s skipped (unknown currency or invalid rate)",
                len(skipped),
                result.base,
                extra={"skipped": skipped[:10]},
            )
        logger.info(
            "Rates have been updated for %s (%d pairs)",
            result.base,
            updated,
            extra={
                "effective_base": result.base,
                "updated": updated,
                "provider_timestamp": timestamp,
            },
        )
        return BaseRefreshOutcome(
            base=base,
            success=True,
            effective_base=result.base,
            timestamp=timestamp,
            updated=updated,
            skipped=skipped,
        )

    def save_rates(self, base_codes: Optional[Iterable[str]] = None) -> RefreshReport:
        bases = list(base_codes) if base_codes is not None else list(DEFAULT_BASE_CURRENCIES)
        report = RefreshReport()
        for base in bases:
            base = base.strip().upper()
            with bind_log_context(base=base):
                report.outcomes.append(self._save_base(base))
        return report

    # Bulk delete ----------------------------------------------
    def clean_local_data(self) -> Dict[str, int]:
        with self._lock:
            counts = self.db.wipe_local_data((CACHE_METADATA_KEY,))
            self._cache = CachedCurrencyList()
        logger.info(
            "local data removed (%d rates, %d currencies)",
            counts["rates"],
            counts["currencies"],
            extra={"removed": counts},
        )
        return counts


def build_rate_cache_manager(settings=None) -> RateCacheManager:
    settings = settings or get_settings()
    apply_migrations(settings.db_path)
    return RateCacheManager(
        Database(settings.db_path),
        FixerRateProvider.from_settings(settings),
        tracked_codes=settings.fixer_currencies_list,
    )
