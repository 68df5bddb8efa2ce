"""Risk/heat aggregation — capital at risk and P/L impact as % of portfolio.

Portfolio sizes come from a resolver with the signature
``(month, year) -> Decimal | None`` (normally
:meth:`PortfolioTimeline.portfolio_size_or_none`). Percentages that cannot be
resolved are ``None``; currency figures never depend on a resolver.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from decimal import Decimal

import structlog

from journal_core.errors import PortfolioResolutionError
from journal_core.ledger.lots import build_entry_lots, build_exit_lots, check_exit_qty, open_lots, total_qty
from journal_core.models.trade import Trade
from journal_core.pnl.calculator import calc_avg_entry

log = structlog.get_logger("risk_heat")

ZERO = Decimal("0")
HUNDRED = Decimal("100")

PortfolioSizeResolver = Callable[[int, int], "Decimal | None"]


def effective_stop(trade: Trade) -> Decimal:
    """The stop that would trigger first.

    A trailing stop replaces the initial stop when it is set and tighter:
    higher for a long, lower for a short. 0 when neither is set.
    """
    sl, tsl = trade.sl, trade.tsl
    if not tsl:
        return sl
    if not sl:
        return tsl
    if trade.buy_sell == "Buy":
        return tsl if tsl > sl else sl
    return tsl if tsl < sl else sl


def risk_per_share(trade: Trade, avg_entry: Decimal) -> Decimal:
    """|avg_entry - effective stop|; 0 without a stop."""
    stop = effective_stop(trade)
    if not stop:
        return ZERO
    return abs(avg_entry - stop)


def _resolve_size(
    trade: Trade,
    portfolio_size: Decimal | None,
    get_portfolio_size: PortfolioSizeResolver | None,
) -> Decimal | None:
    size = None
    if get_portfolio_size is not None:
        try:
            size = get_portfolio_size(trade.date.month, trade.date.year)
        except PortfolioResolutionError:
            size = None
    if size is None:
        size = portfolio_size
    if size is None or size <= 0:
        return None
    return size


def calc_trade_open_heat(
    trade: Trade,
    portfolio_size: Decimal | None = None,
    get_portfolio_size: PortfolioSizeResolver | None = None,
) -> Decimal | None:
    """Open risk of one trade as a % of the portfolio at its entry month.

    0 for Closed trades and trades without a stop. ``None`` when the trade
    carries risk but no portfolio size is resolvable.

    Raises:
        ExcessExitError: exits exceed entries.
    """
    entry_lots = build_entry_lots(trade)
    exit_lots = build_exit_lots(trade)
    check_exit_qty(entry_lots, exit_lots, trade.id)
    open_qty = total_qty(open_lots(entry_lots, exit_lots))
    if open_qty <= 0:
        return ZERO

    at_risk = risk_per_share(trade, calc_avg_entry(entry_lots)) * open_qty
    if at_risk == 0:
        return ZERO

    size = _resolve_size(trade, portfolio_size, get_portfolio_size)
    if size is None:
        return None
    return at_risk / size * HUNDRED


def calc_open_heat(
    trades: Iterable[Trade],
    portfolio_size: Decimal | None = None,
    get_portfolio_size: PortfolioSizeResolver | None = None,
) -> Decimal | None:
    """Sum of per-trade open heat: the loss if every stop hit at once.

    Trades whose portfolio size is unresolvable are left out. ``None`` only
    when some trade is at risk and none of them could be resolved.

    Raises:
        ExcessExitError: any trade exits more than it entered.
    """
    total = ZERO
    resolved = unresolved = 0
    for trade in trades:
        heat = calc_trade_open_heat(trade, portfolio_size, get_portfolio_size)
        if heat is None:
            unresolved += 1
            continue
        if heat:
            resolved += 1
        total += heat
    if unresolved:
        log.warning("open_heat_partial", unresolved_trades=unresolved, resolved_trades=resolved)
        if not resolved:
            return None
    return total


def calc_pf_impact(pl: Decimal, portfolio_size: Decimal | None) -> Decimal | None:
    """Realized P/L as a % of portfolio size; ``None`` when size is unknown."""
    if portfolio_size is None or portfolio_size <= 0:
        return None
    return pl / portfolio_size * HUNDRED


def calc_cumm_pf(impacts: Sequence[Decimal | None]) -> list[Decimal]:
    """Running sum of PF impacts, already ordered by closure date.

    An unresolved impact contributes nothing to the running total.
    """
    running = ZERO
    out: list[Decimal] = []
    for impact in impacts:
        if impact is not None:
            running += impact
        out.append(running)
    return out
