from __future__ import annotations
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator


class RateEntry(BaseModel):
    base_currency: str
    second_currency: str
    rate: float = Field(..., gt=0)
    timestamp: int = Field(..., ge=0)

    @field_validator("base_currency", "second_currency")
    @classmethod
    def upper_code(cls, v: str) -> str:
        return v.strip().upper()

    @classmethod
    def from_row(cls, row: dict) -> "RateEntry":
        return cls(
            base_currency=row["base_code"],
            second_currency=row["second_code"],
            rate=row["rate"],
            timestamp=row["timestamp"],
        )


class RatesRefreshIn(BaseModel):
    bases: List[str] = Field(default_factory=lambda: ["EUR"], min_length=1)

    @field_validator("bases")
    @classmethod
    def upper_codes(cls, v: List[str]) -> List[str]:
        return [c.strip().upper() for c in v]


class ConversionOut(BaseModel):
    base: str
    second: str
    amount: float
    rate: float
    precision: int
    result: float
    available: bool


class RateSetIn(BaseModel):
    rate: float = Field(..., gt=0, description="Units of second currency per 1 base")
    timestamp: Optional[int] = Field(None, ge=0, description="Unix seconds; defaults to now")
