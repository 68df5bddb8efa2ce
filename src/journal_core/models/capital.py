"""Capital records — yearly starting capital, monthly overrides, deposits/withdrawals."""

from __future__ import annotations

import datetime as dt
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from journal_core.errors import InvalidMonthError

MONTH_NAMES = ["Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]
_FULL_MONTH_NAMES = [
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
]


def normalize_month(month: str | int) -> int:
    """Map ``"Mar"``, ``"March"``, ``"mar"`` or ``3`` to the month number 3."""
    if isinstance(month, int):
        if 1 <= month <= 12:
            return month
        raise InvalidMonthError(f"month out of range: {month}")
    key = month.strip().lower()
    for idx, (short, full) in enumerate(zip(MONTH_NAMES, _FULL_MONTH_NAMES), start=1):
        if key in (short.lower(), full.lower()):
            return idx
    if key.isdigit():
        return normalize_month(int(key))
    raise InvalidMonthError(f"invalid month: {month!r}")


def month_name(month: int) -> str:
    """Short month name for a month number (3 -> "Mar")."""
    return MONTH_NAMES[normalize_month(month) - 1]


class YearlyCapital(BaseModel):
    """Capital known at the start of January of ``year``."""

    model_config = ConfigDict(frozen=True)

    year: int
    starting_capital: Decimal
    updated_at: dt.datetime | None = None


class MonthlyCapitalOverride(BaseModel):
    """Explicit starting capital for one month, replacing the rolled-forward value."""

    model_config = ConfigDict(frozen=True)

    year: int
    month: int = Field(ge=1, le=12)
    amount: Decimal
    updated_at: dt.datetime | None = None

    @model_validator(mode="before")
    @classmethod
    def _normalize_month(cls, data):
        if isinstance(data, dict) and isinstance(data.get("month"), str):
            data = {**data, "month": normalize_month(data["month"])}
        return data


class CapitalChange(BaseModel):
    """A deposit (positive) or withdrawal (negative) effective from ``date``.

    Records written by older journal versions carry an unsigned amount plus
    ``type``; the sign is normalised from ``type`` when it is present.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    date: dt.date
    amount: Decimal
    description: str = ""
    type: Literal["deposit", "withdrawal"] | None = None

    @model_validator(mode="before")
    @classmethod
    def _apply_type_sign(cls, data):
        if not isinstance(data, dict) or data.get("type") is None or data.get("amount") is None:
            return data
        magnitude = abs(Decimal(str(data["amount"])))
        signed = -magnitude if data["type"] == "withdrawal" else magnitude
        return {**data, "amount": signed}


class MonthlyTruePortfolio(BaseModel):
    """One month of the True Portfolio series.

    ``opening_capital`` is the baseline (override, yearly capital, or prior
    month's final). ``starting_capital`` adds the month's capital changes and
    ``final_capital`` adds the realized P/L attributed to the month.
    """

    year: int
    month: int
    opening_capital: Decimal
    capital_changes: Decimal = Decimal("0")
    starting_capital: Decimal
    pl: Decimal = Decimal("0")
    final_capital: Decimal
    overridden: bool = False

    @property
    def month_name(self) -> str:
        return month_name(self.month)
