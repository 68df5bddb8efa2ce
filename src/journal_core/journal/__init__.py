"""Journal-level operations: record conversion and batch recalculation."""

from journal_core.journal.recalculate import clamp_trade_exits, closure_date, recalculate_trades
from journal_core.journal.records import (
    check_lot_limits,
    metrics_to_record,
    model_to_record,
    trade_from_record,
)

__all__ = [
    "check_lot_limits",
    "clamp_trade_exits",
    "closure_date",
    "metrics_to_record",
    "model_to_record",
    "recalculate_trades",
    "trade_from_record",
]
