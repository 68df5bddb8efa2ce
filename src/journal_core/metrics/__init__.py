"""Journal statistics."""

from journal_core.metrics.formulas import expectancy, max_drawdown, mean, pct_of, profit_factor, win_rate
from journal_core.metrics.summary import JournalStats, capital_drawdown, summarize_trades

__all__ = [
    "JournalStats",
    "capital_drawdown",
    "expectancy",
    "max_drawdown",
    "mean",
    "pct_of",
    "profit_factor",
    "summarize_trades",
    "win_rate",
]
