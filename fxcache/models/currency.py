from __future__ import annotations
from typing import Dict, Optional

from pydantic import BaseModel, Field, field_validator


def display_name_for(code: str, full_name: str) -> str:
    """Picker label convention: 'USD (United States Dollar)'."""
    return f"{code} ({full_name})"


class Currency(BaseModel):
    id: Optional[int] = None
    code: str = Field(..., min_length=1, max_length=10)
    display_name: str = Field(..., min_length=1)

    @field_validator("code")
    @classmethod
    def upper_code(cls, v: str) -> str:
        return v.strip().upper()

    @classmethod
    def from_row(cls, row: dict) -> "Currency":
        return cls(id=row["id"], code=row["code"], display_name=row["display_name"])


class CurrencyListOut(BaseModel):
    populated: bool
    refreshed_at: Optional[float] = None
    currencies: Dict[str, str]
