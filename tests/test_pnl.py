"""Tests for the P/L calculator."""

from __future__ import annotations

import datetime as dt
from decimal import Decimal

import pytest

from journal_core.errors import ExcessExitError, MissingPriceError
from journal_core.models import Fill, Lot
from journal_core.pnl import (
    calc_allocation,
    calc_avg_entry,
    calc_holding_days,
    calc_position_size,
    calc_realized_pl_fifo,
    calc_reward_risk,
    calc_sl_percent,
    calc_stock_move,
    calc_unrealized_pl,
    compute_trade_metrics,
    resolve_cmp,
)

from conftest import make_trade

D = Decimal
AS_OF = dt.date(2024, 3, 1)


# ═══════════════════════════════════════════════════════════════
# Scenario trade: 100 @ 100, pyramid 50 @ 110, exit 80 @ 120
# ═══════════════════════════════════════════════════════════════


class TestScenarioTrade:
    def test_avg_entry(self, scenario_trade):
        m = compute_trade_metrics(scenario_trade, as_of=AS_OF)
        assert float(m.avg_entry) == pytest.approx(103.33, abs=0.01)

    def test_realized_pl_uses_first_lot(self, scenario_trade):
        m = compute_trade_metrics(scenario_trade, as_of=AS_OF)
        assert m.pl_rs == D("1600")

    def test_quantities_and_status(self, scenario_trade):
        m = compute_trade_metrics(scenario_trade, as_of=AS_OF)
        assert m.open_qty == D("70")
        assert m.exited_qty == D("80")
        assert m.total_entry_qty == D("150")
        assert m.position_status == "Partial"
        assert m.open_qty + m.exited_qty == m.total_entry_qty

    def test_position_size_rounded(self, scenario_trade):
        m = compute_trade_metrics(scenario_trade, as_of=AS_OF)
        assert m.position_size == D("15500")

    def test_unrealized_pl(self, scenario_trade):
        m = compute_trade_metrics(scenario_trade, as_of=AS_OF)
        # (130 - 103.333) * 70
        assert float(m.unrealized_pl) == pytest.approx(1866.67, abs=0.01)

    def test_stock_move_blend(self, scenario_trade):
        m = compute_trade_metrics(scenario_trade, as_of=AS_OF)
        # exit leg 16.129% over 80 shares, CMP leg 25.806% over 70 shares
        assert float(m.stock_move) == pytest.approx(20.645, rel=1e-4)

    def test_reward_risk_quantity_blend(self, scenario_trade):
        m = compute_trade_metrics(scenario_trade, as_of=AS_OF)
        # reward (20*80 + 30*70) / 150 = 24.667, risk 5
        assert float(m.reward_risk) == pytest.approx(4.9333, rel=1e-4)

    def test_reward_risk_exited_only(self, scenario_trade):
        m = compute_trade_metrics(scenario_trade, as_of=AS_OF, reward_risk_blend="exited_only")
        assert m.reward_risk == D("4")

    def test_sl_percent(self, scenario_trade):
        m = compute_trade_metrics(scenario_trade, as_of=AS_OF)
        assert m.sl_percent == D("5")

    def test_holding_days_partial_runs_to_today(self, scenario_trade):
        m = compute_trade_metrics(scenario_trade, as_of=AS_OF)
        assert m.holding_days == 60

    def test_realised_amount(self, scenario_trade):
        m = compute_trade_metrics(scenario_trade, as_of=AS_OF)
        assert m.realised_amount == D("9600")

    def test_portfolio_fields_unset(self, scenario_trade):
        m = compute_trade_metrics(scenario_trade, as_of=AS_OF)
        assert m.allocation is None
        assert m.pf_impact is None
        assert m.cumm_pf is None
        assert m.price_missing is False

    def test_input_status_is_ignored(self, scenario_trade):
        trade = scenario_trade.model_copy(update={"position_status": "Closed"})
        assert compute_trade_metrics(trade, as_of=AS_OF).position_status == "Partial"


# ═══════════════════════════════════════════════════════════════
# Trade-level behaviour
# ═══════════════════════════════════════════════════════════════


class TestComputeTradeMetrics:
    def test_closed_trade(self):
        trade = make_trade(exits=[
            Lot(qty=D("60"), price=D("110"), date=dt.date(2024, 1, 11)),
            Lot(qty=D("40"), price=D("90"), date=dt.date(2024, 1, 21)),
        ])
        m = compute_trade_metrics(trade, as_of=AS_OF)
        assert m.position_status == "Closed"
        assert m.pl_rs == D("200")  # 600 - 400
        assert m.unrealized_pl == D("0")
        assert m.holding_days == 20
        assert m.avg_exit_price == D("102")

    def test_open_trade_without_price(self):
        m = compute_trade_metrics(make_trade(), as_of=AS_OF)
        assert m.position_status == "Open"
        assert m.price_missing is True
        assert m.unrealized_pl == D("0")
        assert m.stock_move == D("0")
        assert m.holding_days == 60

    def test_closed_trade_without_price_not_flagged(self):
        trade = make_trade(exits=[Lot(qty=D("100"), price=D("110"), date=dt.date(2024, 1, 11))])
        assert compute_trade_metrics(trade, as_of=AS_OF).price_missing is False

    def test_excess_exit_rejected(self):
        trade = make_trade(exits=[Lot(qty=D("120"), price=D("110"), date=dt.date(2024, 1, 11))])
        with pytest.raises(ExcessExitError):
            compute_trade_metrics(trade, as_of=AS_OF)

    def test_excess_exit_clamped(self):
        trade = make_trade(exits=[
            Lot(qty=D("80"), price=D("110"), date=dt.date(2024, 1, 11)),
            Lot(qty=D("40"), price=D("120"), date=dt.date(2024, 1, 12)),
        ])
        m = compute_trade_metrics(trade, as_of=AS_OF, excess_exit_policy="clamp")
        assert m.position_status == "Closed"
        assert m.exited_qty == D("100")
        assert m.pl_rs == D("1200")  # 80*10 + 20*20

    def test_short_trade(self):
        trade = make_trade(
            buy_sell="Sell",
            entry=D("50"),
            initial_qty=D("200"),
            sl=D("55"),
            cmp=D("45"),
            exits=[Lot(qty=D("100"), price=D("40"), date=dt.date(2024, 1, 15))],
        )
        m = compute_trade_metrics(trade, as_of=AS_OF)
        assert m.pl_rs == D("1000")
        assert m.unrealized_pl == D("500")
        assert m.stock_move > 0


class TestDirectionSymmetry:
    @pytest.mark.parametrize("exit_price", ["90", "100", "115.5"])
    def test_realized_pl_mirrors(self, exit_price):
        exits = [Lot(qty=D("60"), price=D(exit_price), date=dt.date(2024, 1, 9))]
        long_m = compute_trade_metrics(make_trade(buy_sell="Buy", exits=exits), as_of=AS_OF)
        short_m = compute_trade_metrics(make_trade(buy_sell="Sell", exits=exits), as_of=AS_OF)
        assert long_m.pl_rs == -short_m.pl_rs

    def test_unrealized_pl_mirrors(self):
        assert calc_unrealized_pl(D("100"), D("110"), D("10"), "Buy") == D("100")
        assert calc_unrealized_pl(D("100"), D("110"), D("10"), "Sell") == D("-100")


# ═══════════════════════════════════════════════════════════════
# Individual formulas
# ═══════════════════════════════════════════════════════════════


class TestFormulas:
    def test_avg_entry_empty(self):
        assert calc_avg_entry([]) == D("0")

    def test_position_size_half_up(self):
        assert calc_position_size(D("2.5"), D("1")) == D("3")
        assert calc_position_size(D("10.49"), D("1")) == D("10")

    def test_realized_pl_fifo(self):
        fills = [
            Fill(entry_price=D("100"), exit_price=D("120"), qty=D("10")),
            Fill(entry_price=D("110"), exit_price=D("105"), qty=D("4")),
        ]
        assert calc_realized_pl_fifo(fills, "Buy") == D("180")
        assert calc_realized_pl_fifo(fills, "Sell") == D("-180")

    def test_unrealized_zero_when_flat(self):
        assert calc_unrealized_pl(D("100"), D("110"), D("0"), "Buy") == D("0")

    def test_sl_percent_unset(self):
        assert calc_sl_percent(D("0"), D("100")) == D("0")
        assert calc_sl_percent(D("95"), D("0")) == D("0")

    def test_stock_move_partial_without_price_uses_exits(self):
        move = calc_stock_move(D("100"), D("110"), D("0"), D("50"), D("50"), "Partial", "Buy")
        assert move == D("10")

    def test_stock_move_closed_short(self):
        move = calc_stock_move(D("100"), D("90"), D("0"), D("0"), D("10"), "Closed", "Sell")
        assert move == D("10")

    def test_reward_risk_zero_risk(self):
        assert calc_reward_risk(D("100"), D("0"), D("120"), D("0"), D("10"), D("0"), "Open", "Buy") == D("0")

    def test_reward_risk_negative_reward(self):
        assert calc_reward_risk(D("100"), D("95"), D("90"), D("0"), D("10"), D("0"), "Open", "Buy") == D("0")

    def test_reward_risk_short(self):
        # risk 5, reward 50 - 40 = 10
        assert calc_reward_risk(D("50"), D("55"), D("40"), D("0"), D("10"), D("0"), "Open", "Sell") == D("2")

    def test_holding_days_closed_without_dates(self):
        assert calc_holding_days(dt.date(2024, 1, 1), [], "Closed", as_of=AS_OF) == 0

    def test_holding_days_closed_uses_last_exit(self):
        exits = [dt.date(2024, 1, 5), dt.date(2024, 1, 11)]
        assert calc_holding_days(dt.date(2024, 1, 1), exits, "Closed", as_of=AS_OF) == 10

    def test_holding_days_open(self):
        assert calc_holding_days(dt.date(2024, 2, 20), [], "Open", as_of=AS_OF) == 10

    def test_allocation(self):
        assert calc_allocation(D("15500"), D("500000")) == D("3.1")
        assert calc_allocation(D("15500"), None) is None
        assert calc_allocation(D("15500"), D("0")) is None

    def test_resolve_cmp(self):
        assert resolve_cmp(make_trade(cmp=D("101"))) == D("101")
        with pytest.raises(MissingPriceError):
            resolve_cmp(make_trade())
