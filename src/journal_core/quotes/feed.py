"""Quote feed abstraction — supplies CMP for open positions.

The engine never fetches prices itself; a feed is any object with
``get_quote(symbol)``. Polling cadence and staleness are the caller's
concern.
"""

from __future__ import annotations

import datetime as dt
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from decimal import Decimal
from typing import Protocol

import structlog

from journal_core.ledger.lots import build_entry_lots, build_exit_lots, total_qty
from journal_core.models.trade import Trade

log = structlog.get_logger("quote_feed")


@dataclass(frozen=True)
class Quote:
    """Latest traded price for a symbol."""

    price: Decimal
    ts: dt.datetime | None = None


class QuoteFeed(Protocol):
    def get_quote(self, symbol: str) -> Quote | None: ...


class StaticQuoteFeed:
    """Dict-backed feed, keyed by upper-cased symbol."""

    def __init__(self, prices: Mapping[str, Decimal | int | str] | None = None) -> None:
        self._prices: dict[str, Decimal] = {}
        for symbol, price in (prices or {}).items():
            self.set_price(symbol, price)

    def set_price(self, symbol: str, price: Decimal | int | str) -> None:
        self._prices[symbol.upper()] = Decimal(str(price))

    def get_quote(self, symbol: str) -> Quote | None:
        price = self._prices.get(symbol.upper())
        if price is None or price <= 0:
            return None
        return Quote(price=price)


def apply_quote(trade: Trade, quote: Quote) -> Trade:
    """Copy of *trade* priced at *quote*, marked as feed-sourced."""
    return trade.model_copy(update={"cmp": quote.price, "cmp_source": "feed"})


def _has_open_qty(trade: Trade) -> bool:
    return total_qty(build_entry_lots(trade)) > total_qty(build_exit_lots(trade))


def refresh_prices(trades: Iterable[Trade], feed: QuoteFeed) -> list[Trade]:
    """Re-price Open and Partial trades from *feed*.

    Closed trades and trades the feed has no price for are returned as-is.
    """
    refreshed: list[Trade] = []
    updated = missing = 0
    for trade in trades:
        if not _has_open_qty(trade):
            refreshed.append(trade)
            continue
        quote = feed.get_quote(trade.name)
        if quote is None:
            missing += 1
            log.warning("quote_unavailable", trade_id=trade.id, symbol=trade.name)
            refreshed.append(trade)
            continue
        updated += 1
        refreshed.append(apply_quote(trade, quote))
    log.info("prices_refreshed", updated=updated, missing=missing)
    return refreshed
