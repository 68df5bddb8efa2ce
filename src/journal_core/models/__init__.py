"""Pydantic domain models."""

from journal_core.models.capital import (
    MONTH_NAMES,
    CapitalChange,
    MonthlyCapitalOverride,
    MonthlyTruePortfolio,
    YearlyCapital,
    month_name,
    normalize_month,
)
from journal_core.models.trade import (
    Direction,
    Fill,
    Lot,
    PositionStatus,
    PriceSource,
    Trade,
    TradeMetrics,
    derive_position_status,
)

__all__ = [
    "MONTH_NAMES",
    "CapitalChange",
    "Direction",
    "Fill",
    "Lot",
    "MonthlyCapitalOverride",
    "MonthlyTruePortfolio",
    "PositionStatus",
    "PriceSource",
    "Trade",
    "TradeMetrics",
    "YearlyCapital",
    "derive_position_status",
    "month_name",
    "normalize_month",
]
