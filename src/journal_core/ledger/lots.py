"""Lot ledger — ordered entry/exit lots and FIFO matching. Pure functions."""

from __future__ import annotations

from collections.abc import Sequence
from decimal import Decimal

import structlog

from journal_core.errors import ExcessExitError
from journal_core.models.trade import Fill, Lot, Trade

log = structlog.get_logger("lot_ledger")

ZERO = Decimal("0")


def _sort_key_undated_last(indexed: tuple[int, Lot]) -> tuple[int, object, int]:
    idx, lot = indexed
    if lot.date is None:
        return (1, 0, idx)
    return (0, lot.date.toordinal(), idx)


def build_entry_lots(trade: Trade) -> list[Lot]:
    """Initial entry plus pyramid adds, oldest first.

    Zero-quantity lots are dropped. A pyramid without a date is treated as
    entered on the trade date. Ties keep input order (initial, then pyramids).
    """
    raw = [Lot(qty=trade.initial_qty, price=trade.entry, date=trade.date), *trade.pyramids]
    lots = [
        lot if lot.date is not None else lot.model_copy(update={"date": trade.date})
        for lot in raw
        if lot.qty > 0
    ]
    return [lot for _, lot in sorted(enumerate(lots), key=_sort_key_undated_last)]


def build_exit_lots(trade: Trade) -> list[Lot]:
    """Exit lots oldest first; undated exits sort after dated ones."""
    lots = [lot for lot in trade.exits if lot.qty > 0]
    return [lot for _, lot in sorted(enumerate(lots), key=_sort_key_undated_last)]


def total_qty(lots: Sequence[Lot]) -> Decimal:
    return sum((lot.qty for lot in lots), ZERO)


def check_exit_qty(
    entry_lots: Sequence[Lot],
    exit_lots: Sequence[Lot],
    trade_id: str | None = None,
) -> None:
    """Raise :class:`ExcessExitError` when exits exceed entries."""
    entered = total_qty(entry_lots)
    exited = total_qty(exit_lots)
    if exited > entered:
        log.warning(
            "excess_exit_detected",
            trade_id=trade_id,
            entered_qty=str(entered),
            exited_qty=str(exited),
        )
        raise ExcessExitError(trade_id, entered, exited)


def match_fifo(
    entry_lots: Sequence[Lot],
    exit_lots: Sequence[Lot],
    trade_id: str | None = None,
) -> list[Fill]:
    """Pair exits against entries in chronological entry order.

    Each exit lot is split across as many entry lots as needed. Entry quantity
    left unmatched stays open and produces no fill.

    Raises:
        ExcessExitError: total exit quantity exceeds total entry quantity.
    """
    check_exit_qty(entry_lots, exit_lots, trade_id)

    fills: list[Fill] = []
    remaining = [lot.qty for lot in entry_lots]
    cursor = 0
    for exit_lot in exit_lots:
        to_fill = exit_lot.qty
        while to_fill > 0:
            # Exhausted lots are skipped; the excess check above guarantees
            # an entry lot is always available here.
            while remaining[cursor] <= 0:
                cursor += 1
            entry_lot = entry_lots[cursor]
            qty = min(to_fill, remaining[cursor])
            fills.append(Fill(
                entry_price=entry_lot.price,
                exit_price=exit_lot.price,
                qty=qty,
                entry_date=entry_lot.date,
                exit_date=exit_lot.date,
            ))
            remaining[cursor] -= qty
            to_fill -= qty
    return fills


def clamp_exit_lots(exit_lots: Sequence[Lot], total_entry_qty: Decimal) -> list[Lot]:
    """Cap exits at the entered quantity, trimming the latest exits first."""
    clamped: list[Lot] = []
    budget = total_entry_qty
    for lot in exit_lots:
        if budget <= 0:
            break
        qty = min(lot.qty, budget)
        clamped.append(lot if qty == lot.qty else lot.model_copy(update={"qty": qty}))
        budget -= qty
    return clamped


def open_lots(entry_lots: Sequence[Lot], exit_lots: Sequence[Lot]) -> list[Lot]:
    """Entry lots (or remainders) not consumed by FIFO matching.

    Exits beyond the entered quantity are ignored; callers that must reject
    them call :func:`check_exit_qty` first.
    """
    to_consume = total_qty(exit_lots)
    remaining: list[Lot] = []
    for lot in entry_lots:
        used = min(lot.qty, to_consume)
        to_consume -= used
        if lot.qty - used > 0:
            remaining.append(lot if used == 0 else lot.model_copy(update={"qty": lot.qty - used}))
    return remaining
