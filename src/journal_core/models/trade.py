"""Trade models — journal entries, lots, and engine-derived metrics."""

from __future__ import annotations

import datetime as dt
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

Direction = Literal["Buy", "Sell"]
PositionStatus = Literal["Open", "Partial", "Closed"]
PriceSource = Literal["manual", "feed"]


class Lot(BaseModel):
    """One entry or exit leg: quantity at a price on a date."""

    model_config = ConfigDict(frozen=True)

    qty: Decimal = Decimal("0")
    price: Decimal = Decimal("0")
    date: dt.date | None = None


class Trade(BaseModel):
    """A discretionary equity trade as recorded in the journal.

    The initial entry is ``initial_qty @ entry`` on ``date``; pyramid adds and
    exits are ordered lists of :class:`Lot`. ``position_status`` is accepted
    from callers but never trusted — the engine re-derives it from quantities.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    trade_no: str = ""
    name: str = ""
    setup: str = ""
    date: dt.date
    buy_sell: Direction = "Buy"
    entry: Decimal = Decimal("0")
    initial_qty: Decimal = Decimal("0")
    pyramids: list[Lot] = Field(default_factory=list)
    exits: list[Lot] = Field(default_factory=list)
    sl: Decimal = Decimal("0")
    tsl: Decimal = Decimal("0")
    cmp: Decimal = Decimal("0")
    cmp_source: PriceSource = "manual"
    position_status: PositionStatus | None = None
    plan_followed: bool = False
    notes: str | None = None

    @property
    def sign(self) -> int:
        """+1 for long (Buy), -1 for short (Sell)."""
        return 1 if self.buy_sell == "Buy" else -1


class Fill(BaseModel):
    """A FIFO pairing of (part of) an exit lot against (part of) an entry lot."""

    model_config = ConfigDict(frozen=True)

    entry_price: Decimal
    exit_price: Decimal
    qty: Decimal
    entry_date: dt.date | None = None
    exit_date: dt.date | None = None


class TradeMetrics(BaseModel):
    """Engine-owned derived fields for one trade.

    Percentage fields that depend on portfolio size are ``None`` when no
    starting capital is resolvable for the relevant period.
    """

    trade_id: str
    position_status: PositionStatus
    avg_entry: Decimal = Decimal("0")
    total_entry_qty: Decimal = Decimal("0")
    open_qty: Decimal = Decimal("0")
    exited_qty: Decimal = Decimal("0")
    avg_exit_price: Decimal = Decimal("0")
    position_size: Decimal = Decimal("0")
    allocation: Decimal | None = None
    stock_move: Decimal = Decimal("0")
    sl_percent: Decimal = Decimal("0")
    open_heat: Decimal | None = None
    reward_risk: Decimal = Decimal("0")
    holding_days: int = 0
    realised_amount: Decimal = Decimal("0")
    pl_rs: Decimal = Decimal("0")
    unrealized_pl: Decimal = Decimal("0")
    pf_impact: Decimal | None = None
    cumm_pf: Decimal | None = None
    price_missing: bool = False
    fills: list[Fill] = Field(default_factory=list)


def derive_position_status(total_entry_qty: Decimal, exited_qty: Decimal) -> PositionStatus:
    """Open: no exits; Partial: some exited; Closed: exited covers entries."""
    if exited_qty <= 0:
        return "Open"
    if exited_qty >= total_entry_qty:
        return "Closed"
    return "Partial"
