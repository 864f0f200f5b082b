"""Rate provider abstraction.

Providers never raise into the caller: every fetch returns a ProviderResult
and `success=False` covers transport errors, undecodable bodies and payloads
without a truthy success flag alike.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, Optional


@dataclass(frozen=True)
class ProviderResult:
    success: bool
    error: Optional[str] = None


@dataclass(frozen=True)
class SymbolsResult(ProviderResult):
    symbols: Dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class RatesResult(ProviderResult):
    requested_base: str = "EUR"
    # Base the provider actually quoted against; differs in restricted mode
    base: str = "EUR"
    timestamp: Optional[int] = None
    rates: Dict[str, float] = field(default_factory=dict)

    @property
    def base_honored(self) -> bool:
        return self.base == self.requested_base


class RateProvider(ABC):
    @abstractmethod
    def fetch_symbols(self) -> SymbolsResult:
        """Return every supported code with its full name."""
        raise NotImplementedError

    @abstractmethod
    def fetch_rates(self, base_code: str) -> RatesResult:
        """Return the latest quotes for 1 unit of base_code."""
        raise NotImplementedError
