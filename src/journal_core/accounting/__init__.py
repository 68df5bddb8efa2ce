"""Accounting method resolver (cash vs. accrual attribution)."""

from journal_core.accounting.resolver import (
    AccountingMethod,
    PLAttribution,
    accounting_date,
    attribute_realized_pl,
    calculate_trade_pl,
    is_cash_basis,
    realized_pl_by_month,
    realized_pl_for_month,
    trades_for_month,
)

__all__ = [
    "AccountingMethod",
    "PLAttribution",
    "accounting_date",
    "attribute_realized_pl",
    "calculate_trade_pl",
    "is_cash_basis",
    "realized_pl_by_month",
    "realized_pl_for_month",
    "trades_for_month",
]
