"""Tests for quote feeds."""

from __future__ import annotations

import datetime as dt
from decimal import Decimal

from journal_core.models import Lot
from journal_core.quotes import Quote, StaticQuoteFeed, apply_quote, refresh_prices

from conftest import make_trade

D = Decimal


class TestStaticQuoteFeed:
    def test_lookup_case_insensitive(self):
        feed = StaticQuoteFeed({"reliance": "2450.5"})
        assert feed.get_quote("RELIANCE") == Quote(price=D("2450.5"))

    def test_missing_or_zero(self):
        feed = StaticQuoteFeed({"TCS": 0})
        assert feed.get_quote("TCS") is None
        assert feed.get_quote("INFY") is None


class TestRefreshPrices:
    def test_apply_quote(self):
        priced = apply_quote(make_trade(), Quote(price=D("105")))
        assert priced.cmp == D("105")
        assert priced.cmp_source == "feed"

    def test_only_open_positions_repriced(self):
        open_ = make_trade(id="open", name="RELIANCE")
        closed = make_trade(
            id="closed",
            name="RELIANCE",
            cmp=D("90"),
            exits=[Lot(qty=D("100"), price=D("110"), date=dt.date(2024, 1, 5))],
        )
        unknown = make_trade(id="unknown", name="XYZ")
        refreshed = refresh_prices([open_, closed, unknown], StaticQuoteFeed({"RELIANCE": 120}))

        assert refreshed[0].cmp == D("120")
        assert refreshed[1] is closed
        assert refreshed[2] is unknown
