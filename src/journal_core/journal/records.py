"""Journal record boundary — flat camelCase records to and from models.

Stored journal records carry fixed slots (``pyramid1Qty``, ``exit3Date``,
...), empty strings for unset dates and ``_cmpAutoFetched`` for prices that
came from a quote feed. Inside the engine a trade holds variable-length lot
lists; the per-trade lot limits are enforced here, at the edge.
"""

from __future__ import annotations

import datetime as dt
from collections.abc import Mapping
from decimal import Decimal, InvalidOperation
from typing import Any

from pydantic import BaseModel
from pydantic.alias_generators import to_camel

from journal_core.config.schema import JournalConfig
from journal_core.errors import LotLimitError
from journal_core.models.trade import Lot, Trade, TradeMetrics

ZERO = Decimal("0")

# Fields copied verbatim (camelCase record key -> Trade field).
_SCALAR_FIELDS = {
    "tradeNo": "trade_no",
    "name": "name",
    "setup": "setup",
    "buySell": "buy_sell",
    "positionStatus": "position_status",
    "notes": "notes",
}
_DECIMAL_FIELDS = {"entry": "entry", "initialQty": "initial_qty", "sl": "sl", "tsl": "tsl", "cmp": "cmp"}


def _decimal(value: Any) -> Decimal:
    if value is None or value == "":
        return ZERO
    try:
        return Decimal(str(value))
    except InvalidOperation as exc:
        raise ValueError(f"not a number: {value!r}") from exc


def _date(value: Any) -> dt.date | None:
    if value is None or value == "":
        return None
    if isinstance(value, dt.datetime):
        return value.date()
    if isinstance(value, dt.date):
        return value
    # Records written by the browser journal carry full ISO timestamps.
    return dt.date.fromisoformat(str(value)[:10])


def _slot_lots(record: Mapping[str, Any], prefix: str) -> list[Lot]:
    lots: list[Lot] = []
    i = 1
    while f"{prefix}{i}Qty" in record or f"{prefix}{i}Price" in record:
        qty = _decimal(record.get(f"{prefix}{i}Qty"))
        if qty > 0:
            lots.append(Lot(
                qty=qty,
                price=_decimal(record.get(f"{prefix}{i}Price")),
                date=_date(record.get(f"{prefix}{i}Date")),
            ))
        i += 1
    return lots


def _list_lots(raw: Any) -> list[Lot]:
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise ValueError(f"expected a list of lots, got {type(raw).__name__}")
    lots = []
    for item in raw:
        if not isinstance(item, Mapping):
            raise ValueError(f"lot must be an object, got {type(item).__name__}")
        qty = _decimal(item.get("qty"))
        if qty > 0:
            lots.append(Lot(qty=qty, price=_decimal(item.get("price")), date=_date(item.get("date"))))
    return lots


def check_lot_limits(trade: Trade, config: JournalConfig | None = None) -> None:
    """Raise :class:`LotLimitError` when *trade* exceeds the configured lot counts.

    The initial entry counts as one entry lot.
    """
    config = config or JournalConfig()
    entries = (1 if trade.initial_qty > 0 else 0) + len(trade.pyramids)
    if entries > config.max_entry_lots:
        raise LotLimitError(
            f"trade {trade.id}: {entries} entry lots exceeds limit of {config.max_entry_lots}"
        )
    if len(trade.exits) > config.max_exit_lots:
        raise LotLimitError(
            f"trade {trade.id}: {len(trade.exits)} exit lots exceeds limit of {config.max_exit_lots}"
        )


def trade_from_record(record: Mapping[str, Any], config: JournalConfig | None = None) -> Trade:
    """Build a :class:`Trade` from a stored journal record.

    Accepts either the slot layout (``pyramid1Qty`` ... ``exit3Date``) or
    explicit ``pyramids``/``exits`` lists of ``{qty, price, date}``.

    Raises:
        LotLimitError: more lots than *config* allows.
        ValueError: a number or date cannot be parsed, or the entry date is missing.
    """
    trade_date = _date(record.get("date"))
    if trade_date is None:
        raise ValueError(f"trade {record.get('id')!r} has no entry date")

    data: dict[str, Any] = {"id": str(record["id"]), "date": trade_date}
    for key, field in _SCALAR_FIELDS.items():
        if record.get(key) not in (None, ""):
            data[field] = record[key]
    for key, field in _DECIMAL_FIELDS.items():
        data[field] = _decimal(record.get(key))

    data["pyramids"] = _list_lots(record["pyramids"]) if "pyramids" in record else _slot_lots(record, "pyramid")
    data["exits"] = _list_lots(record["exits"]) if "exits" in record else _slot_lots(record, "exit")
    data["plan_followed"] = bool(record.get("planFollowed", False))
    data["cmp_source"] = "feed" if record.get("_cmpAutoFetched") else "manual"

    trade = Trade(**data)
    check_lot_limits(trade, config)
    return trade


def _plain(value: Any) -> Any:
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, (dt.date, dt.datetime)):
        return value.isoformat()
    return value


def model_to_record(model: BaseModel, exclude: set[str] | None = None) -> dict[str, Any]:
    """camelCase dict with plain numbers, ready for display."""
    dumped = model.model_dump(exclude=exclude)
    return {to_camel(key): _plain(value) for key, value in dumped.items()}


def metrics_to_record(metrics: TradeMetrics) -> dict[str, Any]:
    """Derived fields as a camelCase record (fills omitted)."""
    return model_to_record(metrics, exclude={"fills"})
