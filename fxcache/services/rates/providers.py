"""Fixer compatible HTTP provider.

Endpoints:
    - GET {base_uri}/symbols?access_key=...          -> {success, symbols}
    - GET {base_uri}/latest?access_key=...&base=XXX  -> {success, timestamp, base, rates}

In restricted (free tier) mode the base parameter is omitted: the provider
answers with EUR rates whatever base was asked for, and RatesResult.base
reports what was actually returned.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Optional

from fxcache.core.config import Settings
from fxcache.core.errors import FixerError
from fxcache.services.http_client import get_json
from .base import RateProvider, RatesResult, SymbolsResult

logger = logging.getLogger("fxcache.provider")

RESTRICTED_BASE = "EUR"

JsonFetcher = Callable[..., Dict[str, Any]]


def _is_success(payload: Dict[str, Any]) -> bool:
    flag = payload.get("success")
    if isinstance(flag, str):
        return flag.lower() == "true"
    return flag is True


def _provider_error(payload: Dict[str, Any]) -> str:
    err = payload.get("error")
    if isinstance(err, dict):
        return str(err.get("info") or err.get("type") or err.get("code") or err)
    return str(err) if err else "response has no success flag"


class FixerRateProvider(RateProvider):
    def __init__(
        self,
        base_uri: str,
        access_key: str,
        *,
        restricted: bool = True,
        timeout: float = 5.0,
        retries: int = 2,
        fetch_json: Optional[JsonFetcher] = None,
    ):
        self.base_uri = base_uri.rstrip("/")
        self.access_key = access_key
        self.restricted = restricted
        self.timeout = timeout
        self.retries = retries
        self._fetch_json = fetch_json or get_json

    @classmethod
    def from_settings(cls, settings: Settings) -> "FixerRateProvider":
        return cls(
            settings.api_base_uri,
            settings.fixer_api_code,
            restricted=settings.fixer_test_mode,
            timeout=settings.http_timeout_seconds,
            retries=settings.http_retries,
        )

    # Internal --------------------------------------------------
    def _request(self, endpoint: str, **query: Any) -> Dict[str, Any]:
        params: Dict[str, Any] = {"access_key": self.access_key}
        params.update(query)
        return self._fetch_json(
            f"{self.base_uri}{endpoint}",
            params=params,
            timeout=self.timeout,
            retries=self.retries,
        )

    # Public API -----------------------------------------------
    def fetch_symbols(self) -> SymbolsResult:
        try:
            payload = self._request("/symbols")
        except FixerError as e:
            logger.error("symbols request failed: %s", e)
            return SymbolsResult(success=False, error=str(e))
        if not _is_success(payload):
            error = _provider_error(payload)
            logger.error("symbols request rejected: %s", error)
            return SymbolsResult(success=False, error=error)
        symbols = payload.get("symbols")
        if not isinstance(symbols, dict):
            logger.error("symbols response lacks a symbols object")
            return SymbolsResult(success=False, error="missing symbols")
        return SymbolsResult(
            success=True,
            symbols={str(k).upper(): str(v) for k, v in symbols.items()},
        )

    def fetch_rates(self, base_code: str) -> RatesResult:
        base_code = base_code.strip().upper()
        if self.restricted:
            query: Dict[str, Any] = {}
        else:
            query = {"base": base_code}
        try:
            payload = self._request("/latest", **query)
        except FixerError as e:
            logger.error("latest request for %s failed: %s", base_code, e)
            return RatesResult(success=False, error=str(e), requested_base=base_code)
        if not _is_success(payload):
            error = _provider_error(payload)
            logger.error("latest request for %s rejected: %s", base_code, error)
            return RatesResult(success=False, error=error, requested_base=base_code)
        rates = payload.get("rates")
        if not isinstance(rates, dict):
            logger.error("latest response for %s lacks a rates object", base_code)
            return RatesResult(
                success=False, error="missing rates", requested_base=base_code
            )
        default_base = RESTRICTED_BASE if self.restricted else base_code
        effective_base = str(payload.get("base") or default_base).upper()
        if effective_base != base_code:
            logger.warning(
                "provider quoted %s instead of requested base %s",
                effective_base,
                base_code,
            )
        timestamp = payload.get("timestamp")
        return RatesResult(
            success=True,
            requested_base=base_code,
            base=effective_base,
            timestamp=int(timestamp) if isinstance(timestamp, (int, float)) else None,
            rates=dict(rates),
        )
