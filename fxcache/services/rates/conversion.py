"""Currency pair conversion.

Responsibilities:
    - Look the pair up in the rate store (no network access, never blocks on a refresh).
    - Multiply and round once, half-up, to the requested precision.
    - A pair with no cached rate converts to 0.0 for any amount and precision;
      callers check `available` on the detailed result when they need to tell
      the two apart.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from fxcache.services.money import round_half_up

DEFAULT_PRECISION = 6


class SupportsRateLookup(Protocol):
    def find_rate(self, base_code: str, second_code: str) -> float: ...


@dataclass(frozen=True)
class ConversionResult:
    base: str
    second: str
    amount: float
    rate: float
    precision: int
    result: float

    @property
    def available(self) -> bool:
        return self.rate > 0


class ConversionEngine:
    def __init__(self, rate_store: SupportsRateLookup):
        self._rates = rate_store

    def convert_detailed(
        self,
        base_code: str,
        second_code: str,
        amount: float,
        precision: int = DEFAULT_PRECISION,
    ) -> ConversionResult:
        base_code = base_code.strip().upper()
        second_code = second_code.strip().upper()
        rate = self._rates.find_rate(base_code, second_code)
        result = round_half_up(rate * amount, precision) if rate > 0 else 0.0
        return ConversionResult(
            base=base_code,
            second=second_code,
            amount=amount,
            rate=rate,
            precision=precision,
            result=result,
        )

    def convert(
        self,
        base_code: str,
        second_code: str,
        amount: float,
        precision: int = DEFAULT_PRECISION,
    ) -> float:
        return self.convert_detailed(base_code, second_code, amount, precision).result
