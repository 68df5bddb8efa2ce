"""Lot ledger — entry/exit lot ordering and FIFO matching."""

from journal_core.ledger.lots import (
    build_entry_lots,
    build_exit_lots,
    check_exit_qty,
    clamp_exit_lots,
    match_fifo,
    open_lots,
    total_qty,
)

__all__ = [
    "build_entry_lots",
    "build_exit_lots",
    "check_exit_qty",
    "clamp_exit_lots",
    "match_fifo",
    "open_lots",
    "total_qty",
]
