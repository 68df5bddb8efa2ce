"""P/L calculator — realized/unrealized P/L and per-trade derived fields."""

from journal_core.pnl.calculator import (
    calc_allocation,
    calc_avg_entry,
    calc_avg_exit_price,
    calc_holding_days,
    calc_position_size,
    calc_realised_amount,
    calc_realized_pl_fifo,
    calc_reward_risk,
    calc_sl_percent,
    calc_stock_move,
    calc_unrealized_pl,
    compute_trade_metrics,
    resolve_cmp,
)

__all__ = [
    "calc_allocation",
    "calc_avg_entry",
    "calc_avg_exit_price",
    "calc_holding_days",
    "calc_position_size",
    "calc_realised_amount",
    "calc_realized_pl_fifo",
    "calc_reward_risk",
    "calc_sl_percent",
    "calc_stock_move",
    "calc_unrealized_pl",
    "compute_trade_metrics",
    "resolve_cmp",
]
