"""Tests for the lot ledger and FIFO matching."""

from __future__ import annotations

import datetime as dt
from decimal import Decimal

import pytest

from journal_core.errors import ExcessExitError
from journal_core.ledger import (
    build_entry_lots,
    build_exit_lots,
    check_exit_qty,
    clamp_exit_lots,
    match_fifo,
    open_lots,
    total_qty,
)
from journal_core.models import Lot

from conftest import make_trade

D = Decimal


def _lot(qty, price, day=None):
    return Lot(qty=D(qty), price=D(price), date=dt.date(2024, 1, day) if day else None)


class TestBuildLots:
    def test_entry_lots_sorted_by_date(self):
        trade = make_trade(
            date=dt.date(2024, 1, 5),
            pyramids=[_lot("30", "120", 20), _lot("50", "110", 10)],
        )
        lots = build_entry_lots(trade)
        assert [lot.price for lot in lots] == [D("100"), D("110"), D("120")]

    def test_undated_pyramid_takes_trade_date(self):
        trade = make_trade(date=dt.date(2024, 1, 5), pyramids=[_lot("50", "110")])
        lots = build_entry_lots(trade)
        assert lots[1].date == dt.date(2024, 1, 5)

    def test_same_day_keeps_input_order(self):
        trade = make_trade(date=dt.date(2024, 1, 5), pyramids=[_lot("50", "110", 5)])
        assert [lot.price for lot in build_entry_lots(trade)] == [D("100"), D("110")]

    def test_zero_qty_lots_dropped(self):
        trade = make_trade(pyramids=[_lot("0", "110", 10)], exits=[_lot("0", "120", 12)])
        assert len(build_entry_lots(trade)) == 1
        assert build_exit_lots(trade) == []

    def test_undated_exits_sort_last(self):
        trade = make_trade(exits=[_lot("10", "130"), _lot("20", "120", 15)])
        assert [lot.price for lot in build_exit_lots(trade)] == [D("120"), D("130")]

    def test_total_qty(self):
        assert total_qty([_lot("10", "1"), _lot("2.5", "1")]) == D("12.5")


class TestMatchFifo:
    def test_consumes_oldest_lot_first(self):
        fills = match_fifo([_lot("100", "100", 1), _lot("50", "110", 10)], [_lot("80", "120", 31)])
        assert len(fills) == 1
        assert fills[0].qty == D("80")
        assert fills[0].entry_price == D("100")
        assert fills[0].exit_price == D("120")

    def test_exit_split_across_entry_lots(self):
        fills = match_fifo([_lot("100", "100", 1), _lot("50", "110", 10)], [_lot("120", "120", 31)])
        assert [(f.qty, f.entry_price) for f in fills] == [(D("100"), D("100")), (D("20"), D("110"))]

    def test_multiple_exits(self):
        fills = match_fifo(
            [_lot("100", "100", 1), _lot("50", "110", 10)],
            [_lot("80", "120", 20), _lot("50", "125", 25)],
        )
        assert [(f.qty, f.entry_price, f.exit_price) for f in fills] == [
            (D("80"), D("100"), D("120")),
            (D("20"), D("100"), D("125")),
            (D("30"), D("110"), D("125")),
        ]
        assert fills[2].exit_date == dt.date(2024, 1, 25)

    def test_fill_quantity_conserved(self):
        entries = [_lot("100", "100", 1), _lot("50", "110", 10), _lot("25", "105", 12)]
        exits = [_lot("60", "120", 20), _lot("70", "125", 25), _lot("40", "90", 28)]
        fills = match_fifo(entries, exits)
        assert sum(f.qty for f in fills) == total_qty(exits)

    def test_no_exits_no_fills(self):
        assert match_fifo([_lot("100", "100", 1)], []) == []

    def test_excess_exit_raises(self):
        with pytest.raises(ExcessExitError) as exc_info:
            match_fifo([_lot("100", "100", 1)], [_lot("110", "120", 5)], trade_id="t1")
        assert exc_info.value.excess_qty == D("10")
        assert exc_info.value.trade_id == "t1"


class TestClampAndOpenLots:
    def test_clamp_trims_latest_exits(self):
        clamped = clamp_exit_lots([_lot("100", "120", 5), _lot("80", "125", 6)], D("150"))
        assert [lot.qty for lot in clamped] == [D("100"), D("50")]

    def test_clamp_drops_exits_past_budget(self):
        clamped = clamp_exit_lots([_lot("150", "120", 5), _lot("10", "125", 6)], D("150"))
        assert [lot.qty for lot in clamped] == [D("150")]

    def test_open_lots_after_partial_exit(self):
        remaining = open_lots([_lot("100", "100", 1), _lot("50", "110", 10)], [_lot("80", "120", 31)])
        assert [(lot.qty, lot.price) for lot in remaining] == [(D("20"), D("100")), (D("50"), D("110"))]

    def test_open_lots_fully_closed(self):
        assert open_lots([_lot("100", "100", 1)], [_lot("100", "120", 31)]) == []

    def test_check_exit_qty_accepts_full_exit(self):
        check_exit_qty([_lot("100", "100", 1)], [_lot("100", "120", 31)], trade_id="t1")

    def test_check_exit_qty_rejects_excess(self):
        with pytest.raises(ExcessExitError) as exc_info:
            check_exit_qty([_lot("100", "100", 1)], [_lot("150", "120", 31)], trade_id="t1")
        assert exc_info.value.excess_qty == D("50")
