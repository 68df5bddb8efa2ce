"""Tests for batch journal recalculation."""

from __future__ import annotations

import datetime as dt
from decimal import Decimal

import pytest

from journal_core.errors import ExcessExitError
from journal_core.journal import clamp_trade_exits, closure_date, recalculate_trades
from journal_core.models import Lot, YearlyCapital
from journal_core.portfolio import TruePortfolioLedger

from conftest import make_trade

D = Decimal
AS_OF = dt.date(2024, 3, 1)


@pytest.fixture
def ledger():
    return TruePortfolioLedger(yearly_capitals=[YearlyCapital(year=2024, starting_capital=D("100000"))])


@pytest.fixture
def trades():
    closed = make_trade(
        id="closed",
        trade_no="1",
        date=dt.date(2024, 1, 5),
        sl=D("95"),
        exits=[Lot(qty=D("100"), price=D("110"), date=dt.date(2024, 2, 10))],
    )
    open_ = make_trade(
        id="open",
        trade_no="2",
        date=dt.date(2024, 1, 20),
        entry=D("200"),
        initial_qty=D("50"),
        sl=D("190"),
        cmp=D("210"),
    )
    return [closed, open_]


class TestRecalculateAccrual:
    def test_order_preserved(self, trades, ledger):
        result = recalculate_trades(trades, ledger, "accrual", as_of=AS_OF)
        assert [m.trade_id for m in result] == ["closed", "open"]

    def test_allocation_at_entry_month(self, trades, ledger):
        closed, open_ = recalculate_trades(trades, ledger, "accrual", as_of=AS_OF)
        # January final capital = 100000 + 1000 booked at entry
        assert float(closed.allocation) == pytest.approx(10000 / 101000 * 100)
        assert float(open_.allocation) == pytest.approx(10000 / 101000 * 100)

    def test_pf_impact_and_heat(self, trades, ledger):
        closed, open_ = recalculate_trades(trades, ledger, "accrual", as_of=AS_OF)
        assert float(closed.pf_impact) == pytest.approx(1000 / 101000 * 100)
        assert closed.open_heat == D("0")
        assert open_.pf_impact == D("0")
        assert float(open_.open_heat) == pytest.approx(500 / 101000 * 100)

    def test_cumm_pf_ordered_by_closure(self, trades, ledger):
        closed, open_ = recalculate_trades(trades, ledger, "accrual", as_of=AS_OF)
        assert open_.cumm_pf == D("0")
        assert closed.cumm_pf == closed.pf_impact


class TestRecalculateCash:
    def test_allocation_before_pl_lands(self, trades, ledger):
        closed, _ = recalculate_trades(trades, ledger, "cash", as_of=AS_OF)
        assert closed.allocation == D("10")

    def test_pf_impact_at_exit_month(self, trades, ledger):
        closed, _ = recalculate_trades(trades, ledger, "cash", as_of=AS_OF)
        assert float(closed.pf_impact) == pytest.approx(1000 / 101000 * 100)


class TestRecalculateEdgeCases:
    def test_unresolvable_portfolio(self, trades):
        closed, open_ = recalculate_trades(trades, TruePortfolioLedger(), "accrual", as_of=AS_OF)
        assert closed.allocation is None
        assert closed.pf_impact is None
        assert open_.open_heat is None
        assert closed.pl_rs == D("1000")
        assert closed.cumm_pf == D("0")

    def test_excess_exit_rejected(self, ledger):
        bad = make_trade(exits=[Lot(qty=D("101"), price=D("110"), date=dt.date(2024, 1, 3))])
        with pytest.raises(ExcessExitError):
            recalculate_trades([bad], ledger, "accrual", as_of=AS_OF)

    def test_excess_exit_clamped(self, ledger):
        bad = make_trade(exits=[Lot(qty=D("101"), price=D("110"), date=dt.date(2024, 1, 3))])
        (m,) = recalculate_trades([bad], ledger, "cash", as_of=AS_OF, excess_exit_policy="clamp")
        assert m.position_status == "Closed"
        assert m.pl_rs == D("1000")

    def test_clamp_trade_exits_untouched_when_valid(self, trades):
        assert clamp_trade_exits(trades[0]) is trades[0]

    def test_closure_date(self, trades):
        assert closure_date(trades[0]) == dt.date(2024, 2, 10)
        assert closure_date(trades[1]) == dt.date(2024, 1, 20)
