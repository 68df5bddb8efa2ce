"""P/L calculator — derived trade fields from the lot ledger. Pure functions, no I/O."""

from __future__ import annotations

import datetime as dt
from collections.abc import Sequence
from decimal import ROUND_HALF_UP, Decimal
from typing import Literal

import structlog

from journal_core.errors import MissingPriceError
from journal_core.ledger.lots import (
    build_entry_lots,
    build_exit_lots,
    clamp_exit_lots,
    match_fifo,
    total_qty,
)
from journal_core.models.trade import (
    Direction,
    Fill,
    Lot,
    PositionStatus,
    Trade,
    TradeMetrics,
    derive_position_status,
)

log = structlog.get_logger("pnl_calculator")

ZERO = Decimal("0")
HUNDRED = Decimal("100")

ExcessExitPolicy = Literal["reject", "clamp"]
RewardRiskBlend = Literal["quantity", "exited_only"]


def _sign(direction: Direction) -> int:
    return 1 if direction == "Buy" else -1


def _weighted_price(lots: Sequence[Lot]) -> Decimal:
    qty = total_qty(lots)
    if qty == 0:
        return ZERO
    return sum((lot.price * lot.qty for lot in lots), ZERO) / qty


def calc_avg_entry(entry_lots: Sequence[Lot]) -> Decimal:
    """Quantity-weighted mean entry price (0 with no lots)."""
    return _weighted_price(entry_lots)


def calc_avg_exit_price(exit_lots: Sequence[Lot]) -> Decimal:
    """Quantity-weighted mean exit price (0 with no exits)."""
    return _weighted_price(exit_lots)


def calc_position_size(avg_entry: Decimal, total_entry_qty: Decimal) -> Decimal:
    """avg_entry * qty, rounded half-up to a whole currency unit."""
    return (avg_entry * total_entry_qty).quantize(Decimal("1"), rounding=ROUND_HALF_UP)


def calc_realized_pl_fifo(fills: Sequence[Fill], direction: Direction) -> Decimal:
    """Sum of sign * (exit - entry) * qty over FIFO fills."""
    sign = _sign(direction)
    return sum((sign * (f.exit_price - f.entry_price) * f.qty for f in fills), ZERO)


def calc_unrealized_pl(
    avg_entry: Decimal,
    cmp: Decimal,
    open_qty: Decimal,
    direction: Direction,
) -> Decimal:
    """sign * (cmp - avg_entry) * open_qty; 0 when flat or the price is unset."""
    if open_qty <= 0 or not cmp:
        return ZERO
    return _sign(direction) * (cmp - avg_entry) * open_qty


def resolve_cmp(trade: Trade) -> Decimal:
    """Return the trade's CMP, raising :class:`MissingPriceError` when unset."""
    if not trade.cmp or trade.cmp <= 0:
        raise MissingPriceError(trade.id)
    return trade.cmp


def _move_pct(reference: Decimal, price: Decimal, sign: int) -> Decimal:
    return sign * (price - reference) / reference * HUNDRED


def calc_stock_move(
    avg_entry: Decimal,
    avg_exit_price: Decimal,
    cmp: Decimal,
    open_qty: Decimal,
    exited_qty: Decimal,
    status: PositionStatus,
    direction: Direction,
) -> Decimal:
    """Directional % move from avg entry to the comparison price.

    Open uses CMP, Closed the average exit, Partial a blend weighted by
    exited qty (exit leg) and open qty (CMP leg). A missing CMP drops the
    CMP leg.
    """
    if avg_entry <= 0:
        return ZERO
    sign = _sign(direction)
    if status == "Open":
        return _move_pct(avg_entry, cmp, sign) if cmp else ZERO
    if status == "Closed":
        return _move_pct(avg_entry, avg_exit_price, sign)

    realized_leg = _move_pct(avg_entry, avg_exit_price, sign)
    if not cmp or open_qty <= 0:
        return realized_leg
    unrealized_leg = _move_pct(avg_entry, cmp, sign)
    return (realized_leg * exited_qty + unrealized_leg * open_qty) / (exited_qty + open_qty)


def calc_sl_percent(sl: Decimal, entry: Decimal) -> Decimal:
    """|entry - sl| / entry * 100; 0 when entry or sl is unset."""
    if not entry or not sl:
        return ZERO
    return abs(entry - sl) / entry * HUNDRED


def calc_reward_risk(
    entry: Decimal,
    sl: Decimal,
    cmp: Decimal,
    avg_exit_price: Decimal,
    open_qty: Decimal,
    exited_qty: Decimal,
    status: PositionStatus,
    direction: Direction,
    blend: RewardRiskBlend = "quantity",
) -> Decimal:
    """Reward per share over risk per share (``|entry - sl|``).

    Reward follows the stock-move comparison rule in price terms. Returns 0
    (shown as "-") when risk is zero or reward is not positive.
    """
    risk = abs(entry - sl) if sl else ZERO
    if risk == 0:
        return ZERO
    sign = _sign(direction)

    if status == "Open":
        reward = sign * (cmp - entry) if cmp else ZERO
    elif status == "Closed":
        reward = sign * (avg_exit_price - entry)
    else:
        realized = sign * (avg_exit_price - entry)
        if blend == "exited_only" or not cmp or open_qty <= 0:
            reward = realized
        else:
            unrealized = sign * (cmp - entry)
            reward = (realized * exited_qty + unrealized * open_qty) / (exited_qty + open_qty)

    if reward <= 0:
        return ZERO
    return reward / risk


def calc_holding_days(
    entry_date: dt.date,
    exit_dates: Sequence[dt.date],
    status: PositionStatus,
    as_of: dt.date | None = None,
) -> int:
    """Days held: to the last exit when Closed, to today when Open.

    Partial positions use the most recent of the exit dates and today.
    """
    today = as_of or dt.date.today()
    last_exit = max(exit_dates) if exit_dates else None
    if status == "Closed":
        end = last_exit or entry_date
    elif status == "Open":
        end = today
    else:
        end = max(last_exit, today) if last_exit else today
    return max(0, (end - entry_date).days)


def calc_realised_amount(exited_qty: Decimal, avg_exit_price: Decimal) -> Decimal:
    """Gross proceeds of the exited quantity."""
    return exited_qty * avg_exit_price


def calc_allocation(position_size: Decimal, portfolio_size: Decimal | None) -> Decimal | None:
    """Position size as a % of portfolio; ``None`` without a usable portfolio."""
    if portfolio_size is None or portfolio_size <= 0:
        return None
    return position_size / portfolio_size * HUNDRED


def compute_trade_metrics(
    trade: Trade,
    *,
    as_of: dt.date | None = None,
    excess_exit_policy: ExcessExitPolicy = "reject",
    reward_risk_blend: RewardRiskBlend = "quantity",
) -> TradeMetrics:
    """Derive every portfolio-independent field for one trade.

    ``allocation``, ``open_heat``, ``pf_impact`` and ``cumm_pf`` are left as
    ``None``; they are filled in by the journal recalculation, which knows
    the portfolio series.

    Raises:
        ExcessExitError: exits exceed entries and the policy is ``reject``.
    """
    entry_lots = build_entry_lots(trade)
    exit_lots = build_exit_lots(trade)
    entered = total_qty(entry_lots)
    if excess_exit_policy == "clamp" and total_qty(exit_lots) > entered:
        log.info("exits_clamped", trade_id=trade.id, entered_qty=str(entered))
        exit_lots = clamp_exit_lots(exit_lots, entered)

    fills = match_fifo(entry_lots, exit_lots, trade_id=trade.id)
    exited = total_qty(exit_lots)
    open_qty = entered - exited
    status = derive_position_status(entered, exited)

    avg_entry = calc_avg_entry(entry_lots)
    avg_exit = calc_avg_exit_price(exit_lots)

    price_missing = False
    try:
        cmp = resolve_cmp(trade)
    except MissingPriceError:
        cmp = ZERO
        if open_qty > 0:
            price_missing = True
            log.warning("cmp_missing", trade_id=trade.id, status=status)

    exit_dates = [lot.date for lot in exit_lots if lot.date is not None]

    return TradeMetrics(
        trade_id=trade.id,
        position_status=status,
        avg_entry=avg_entry,
        total_entry_qty=entered,
        open_qty=open_qty,
        exited_qty=exited,
        avg_exit_price=avg_exit,
        position_size=calc_position_size(avg_entry, entered),
        stock_move=calc_stock_move(
            avg_entry, avg_exit, cmp, open_qty, exited, status, trade.buy_sell,
        ),
        sl_percent=calc_sl_percent(trade.sl, trade.entry),
        reward_risk=calc_reward_risk(
            trade.entry, trade.sl, cmp, avg_exit, open_qty, exited, status,
            trade.buy_sell, blend=reward_risk_blend,
        ),
        holding_days=calc_holding_days(trade.date, exit_dates, status, as_of=as_of),
        realised_amount=calc_realised_amount(exited, avg_exit),
        pl_rs=calc_realized_pl_fifo(fills, trade.buy_sell),
        unrealized_pl=calc_unrealized_pl(avg_entry, cmp, open_qty, trade.buy_sell),
        price_missing=price_missing,
        fills=fills,
    )
