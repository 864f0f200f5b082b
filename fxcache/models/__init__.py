"""Pydantic domain models for the FX rates cache."""

from .currency import Currency, CurrencyListOut
from .rates import RateEntry, RateSetIn, RatesRefreshIn, ConversionOut

__all__ = [
    "Currency",
    "CurrencyListOut",
    "RateEntry",
    "RateSetIn",
    "RatesRefreshIn",
    "ConversionOut",
]
