"""Journal recalculation — every derived field for a batch of trades.

Portfolio-independent fields come from :func:`compute_trade_metrics`; the
percentage fields use one :class:`PortfolioTimeline` built for the batch:

* ``allocation`` and ``open_heat`` use the portfolio size of the entry month.
* ``pf_impact`` uses the size at the accounting date (entry month under
  accrual, last exit month under cash) and is 0 for Open trades.
* ``cumm_pf`` is the running ``pf_impact`` ordered by closure date.
"""

from __future__ import annotations

import datetime as dt
from collections.abc import Sequence
from decimal import Decimal

import structlog

from journal_core.accounting.resolver import AccountingMethod, accounting_date
from journal_core.ledger.lots import build_entry_lots, build_exit_lots, clamp_exit_lots, total_qty
from journal_core.models.trade import Trade, TradeMetrics
from journal_core.pnl.calculator import (
    ExcessExitPolicy,
    RewardRiskBlend,
    calc_allocation,
    compute_trade_metrics,
)
from journal_core.portfolio.ledger import TruePortfolioLedger
from journal_core.risk.heat import calc_cumm_pf, calc_pf_impact, calc_trade_open_heat

log = structlog.get_logger("journal_recalculate")

ZERO = Decimal("0")


def clamp_trade_exits(trade: Trade) -> Trade:
    """Copy of *trade* with exits capped at the entered quantity."""
    entry_lots = build_entry_lots(trade)
    exit_lots = build_exit_lots(trade)
    entered = total_qty(entry_lots)
    if total_qty(exit_lots) <= entered:
        return trade
    return trade.model_copy(update={"exits": clamp_exit_lots(exit_lots, entered)})


def closure_date(trade: Trade) -> dt.date:
    """Last dated exit, or the entry date while nothing dated has been exited."""
    dates = [lot.date for lot in trade.exits if lot.qty > 0 and lot.date is not None]
    return max(dates) if dates else trade.date


def recalculate_trades(
    trades: Sequence[Trade],
    ledger: TruePortfolioLedger,
    method: AccountingMethod = "accrual",
    *,
    as_of: dt.date | None = None,
    excess_exit_policy: ExcessExitPolicy = "reject",
    reward_risk_blend: RewardRiskBlend = "quantity",
) -> list[TradeMetrics]:
    """Metrics for every trade, in input order.

    Raises:
        ExcessExitError: a trade over-exits and the policy is ``reject``.
    """
    if excess_exit_policy == "clamp":
        trades = [clamp_trade_exits(t) for t in trades]

    timeline = ledger.timeline(trades, method)
    size_at = timeline.portfolio_size_or_none

    computed: list[TradeMetrics] = []
    for trade in trades:
        metrics = compute_trade_metrics(
            trade,
            as_of=as_of,
            excess_exit_policy=excess_exit_policy,
            reward_risk_blend=reward_risk_blend,
        )
        entry_size = size_at(trade.date.month, trade.date.year)
        booked = accounting_date(trade, method)
        if metrics.position_status == "Open":
            pf_impact: Decimal | None = ZERO
        else:
            pf_impact = calc_pf_impact(metrics.pl_rs, size_at(booked.month, booked.year))
        computed.append(metrics.model_copy(update={
            "allocation": calc_allocation(metrics.position_size, entry_size),
            "open_heat": calc_trade_open_heat(trade, entry_size),
            "pf_impact": pf_impact,
        }))

    order = sorted(
        range(len(trades)),
        key=lambda i: (closure_date(trades[i]), trades[i].date, trades[i].trade_no),
    )
    running = calc_cumm_pf([computed[i].pf_impact for i in order])
    for i, cumm in zip(order, running):
        computed[i] = computed[i].model_copy(update={"cumm_pf": cumm})

    log.info("journal_recalculated", trades=len(computed), method=method)
    return computed
