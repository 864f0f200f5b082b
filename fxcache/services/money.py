"""Money / rounding helpers.

Centralized so the conversion engine and HTTP endpoints use identical
rounding semantics: half-up (away from zero) on the decimal representation,
so 0.125 rounds to 0.13 and -2.5 to -3.
"""

from __future__ import annotations

import math
from decimal import Decimal, ROUND_HALF_UP, localcontext


def round_half_up(value: float, precision: int = 6) -> float:
    """Round to `precision` decimal places, half away from zero.

    A negative precision rounds left of the decimal point (-2 -> hundreds).
    Non-finite values are returned unchanged.
    """
    if not math.isfinite(value):
        return value
    d = Decimal(str(value))
    quantum = Decimal(1).scaleb(-precision)
    with localcontext() as ctx:
        # digits left of the point, the requested places and one carry digit
        ctx.prec = max(d.adjusted() + precision + 2, 1)
        return float(d.quantize(quantum, rounding=ROUND_HALF_UP))
