"""Journal statistics over recalculated trades."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from journal_core.metrics.formulas import expectancy, max_drawdown, mean, pct_of, profit_factor, win_rate
from journal_core.models.capital import MonthlyTruePortfolio
from journal_core.models.trade import Trade, TradeMetrics


@dataclass
class JournalStats:
    """Aggregate figures shown above the trade journal."""

    total_trades: int = 0
    wins: int = 0
    losses: int = 0
    open_positions: int = 0
    win_rate: float = 0.0
    gross_pl: float = 0.0
    avg_gain: float = 0.0
    avg_loss: float = 0.0
    avg_pos_move: float = 0.0
    avg_neg_move: float = 0.0
    avg_allocation: float = 0.0
    avg_holding_days: float = 0.0
    avg_reward_risk: float = 0.0
    plan_followed_pct: float = 0.0
    profit_factor: float = 0.0
    expectancy: float = 0.0


def summarize_trades(trades: Sequence[Trade], metrics: Sequence[TradeMetrics]) -> JournalStats:
    """Win/loss statistics from realized P/L.

    *metrics* must be aligned with *trades* (as returned by
    :func:`recalculate_trades`). Realized P/L per trade is the same under
    either accounting method, so the method only matters upstream for the
    percentage fields.
    """
    if len(trades) != len(metrics):
        raise ValueError(f"{len(trades)} trades but {len(metrics)} metrics")
    if not metrics:
        return JournalStats()

    total = len(metrics)
    winners = [m for m in metrics if m.pl_rs > 0]
    losers = [m for m in metrics if m.pl_rs < 0]
    pls = [float(m.pl_rs) for m in metrics]

    return JournalStats(
        total_trades=total,
        wins=len(winners),
        losses=len(losers),
        open_positions=sum(1 for m in metrics if m.position_status != "Closed"),
        win_rate=win_rate(pls),
        gross_pl=float(sum(m.pl_rs for m in metrics)),
        avg_gain=mean([p for p in pls if p > 0]),
        avg_loss=mean([p for p in pls if p < 0]),
        avg_pos_move=mean([float(m.stock_move) for m in winners]),
        avg_neg_move=mean([float(m.stock_move) for m in losers]),
        # Unresolved allocations count as 0, as the journal displays them.
        avg_allocation=sum(float(m.allocation or 0) for m in metrics) / total,
        avg_holding_days=mean([float(m.holding_days) for m in metrics]),
        avg_reward_risk=mean([float(m.reward_risk) for m in metrics]),
        plan_followed_pct=pct_of(sum(1 for t in trades if t.plan_followed), total),
        profit_factor=profit_factor(pls),
        expectancy=expectancy(pls),
    )


def capital_drawdown(months: Sequence[MonthlyTruePortfolio]) -> float:
    """Largest peak-to-trough fall in month-end capital, as a percentage."""
    return max_drawdown([float(m.final_capital) for m in months])
