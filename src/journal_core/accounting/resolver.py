"""Accounting method resolver — which period a trade's realized P/L belongs to.

Accrual basis books a trade's realized P/L in the month the trade was
entered. Cash basis books each exit's FIFO P/L in the month of that exit, so a
trade exited in stages can contribute to several months. The per-trade total
is identical under both methods.
"""

from __future__ import annotations

import datetime as dt
from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal
from typing import Literal

from journal_core.ledger.lots import build_entry_lots, build_exit_lots, match_fifo
from journal_core.models.capital import normalize_month
from journal_core.models.trade import Trade
from journal_core.pnl.calculator import calc_realized_pl_fifo

AccountingMethod = Literal["cash", "accrual"]

ZERO = Decimal("0")


@dataclass(frozen=True)
class PLAttribution:
    """Realized P/L booked to one date (and hence one month)."""

    trade_id: str
    date: dt.date
    amount: Decimal

    @property
    def period(self) -> tuple[int, int]:
        return (self.date.year, self.date.month)


def is_cash_basis(method: AccountingMethod) -> bool:
    return method == "cash"


def calculate_trade_pl(trade: Trade, use_cash_basis: bool = False) -> Decimal:
    """Total realized FIFO P/L of a trade.

    The accounting method never changes this figure; it is accepted so call
    sites read the same under either method.
    """
    fills = match_fifo(build_entry_lots(trade), build_exit_lots(trade), trade_id=trade.id)
    return calc_realized_pl_fifo(fills, trade.buy_sell)


def attribute_realized_pl(trade: Trade, method: AccountingMethod) -> list[PLAttribution]:
    """Split a trade's realized P/L into dated attributions.

    Raises:
        ExcessExitError: exits exceed entries.
    """
    fills = match_fifo(build_entry_lots(trade), build_exit_lots(trade), trade_id=trade.id)
    if not fills:
        return []
    if not is_cash_basis(method):
        return [PLAttribution(trade.id, trade.date, calc_realized_pl_fifo(fills, trade.buy_sell))]

    by_date: dict[dt.date, Decimal] = defaultdict(lambda: ZERO)
    for fill in fills:
        # An undated exit is booked at the trade date
        booked = fill.exit_date or trade.date
        by_date[booked] += calc_realized_pl_fifo([fill], trade.buy_sell)
    return [PLAttribution(trade.id, d, amount) for d, amount in sorted(by_date.items())]


def accounting_date(trade: Trade, method: AccountingMethod) -> dt.date:
    """Date used to pick the portfolio size for a trade's P/L percentages.

    Accrual: the entry date. Cash: the latest exit date, or the entry date
    while nothing has been exited.
    """
    if not is_cash_basis(method):
        return trade.date
    exit_dates = [lot.date for lot in trade.exits if lot.qty > 0 and lot.date is not None]
    return max(exit_dates) if exit_dates else trade.date


def realized_pl_by_month(
    trades: Iterable[Trade],
    method: AccountingMethod,
) -> dict[tuple[int, int], Decimal]:
    """Realized P/L per (year, month) under the given method."""
    totals: dict[tuple[int, int], Decimal] = defaultdict(lambda: ZERO)
    for trade in trades:
        for attribution in attribute_realized_pl(trade, method):
            totals[attribution.period] += attribution.amount
    return dict(totals)


def realized_pl_for_month(
    trades: Iterable[Trade],
    month: str | int,
    year: int,
    method: AccountingMethod,
) -> Decimal:
    return realized_pl_by_month(trades, method).get((year, normalize_month(month)), ZERO)


def trades_for_month(
    trades: Iterable[Trade],
    month: str | int,
    year: int,
    method: AccountingMethod,
) -> list[Trade]:
    """Trades that book P/L (cash) or were opened (accrual) in the month."""
    period = (year, normalize_month(month))
    if not is_cash_basis(method):
        return [t for t in trades if (t.date.year, t.date.month) == period]
    return [
        t for t in trades
        if any(
            lot.qty > 0 and lot.date is not None and (lot.date.year, lot.date.month) == period
            for lot in t.exits
        )
    ]
