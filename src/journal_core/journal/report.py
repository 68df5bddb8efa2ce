"""Journal report — recalculates a journal file against stored capital records."""

from __future__ import annotations

import datetime as dt
import json
from dataclasses import asdict
from pathlib import Path
from typing import Any

import structlog
from pydantic.alias_generators import to_camel

from journal_core.accounting.resolver import AccountingMethod
from journal_core.config.loader import load_config
from journal_core.config.schema import AppConfig
from journal_core.db.engine import get_session, init_engine
from journal_core.journal.recalculate import clamp_trade_exits, recalculate_trades
from journal_core.journal.records import metrics_to_record, model_to_record, trade_from_record
from journal_core.logging.setup import setup_logging_from_config
from journal_core.metrics.summary import capital_drawdown, summarize_trades
from journal_core.portfolio.book import CapitalBook
from journal_core.risk.heat import calc_open_heat
from journal_core.store.sql import SqlKeyValueStore

log = structlog.get_logger("journal_report")


def build_report(
    records: list[dict[str, Any]],
    book: CapitalBook,
    config: AppConfig,
    method: AccountingMethod | None = None,
    as_of: dt.date | None = None,
) -> dict[str, Any]:
    """Per-trade metrics, open heat, stats and the monthly capital series."""
    method = method or config.accounting.method
    trades = [trade_from_record(r, config.journal) for r in records]
    if config.journal.excess_exit_policy == "clamp":
        trades = [clamp_trade_exits(t) for t in trades]
    ledger = book.snapshot()
    metrics = recalculate_trades(
        trades,
        ledger,
        method,
        as_of=as_of,
        excess_exit_policy=config.journal.excess_exit_policy,
        reward_risk_blend=config.journal.reward_risk_blend,
    )
    timeline = ledger.timeline(trades, method)
    months = timeline.all_months()
    open_heat = calc_open_heat(trades, None, timeline.portfolio_size_or_none)
    stats = summarize_trades(trades, metrics)
    return {
        "accountingMethod": method,
        "trades": [metrics_to_record(m) for m in metrics],
        "openHeat": float(open_heat) if open_heat is not None else None,
        "stats": {to_camel(k): v for k, v in asdict(stats).items()},
        "months": [model_to_record(m) for m in months],
        "capitalDrawdown": capital_drawdown(months),
    }


def main(
    trades_path: str,
    config_path: str | None = None,
    method: AccountingMethod | None = None,
    as_of: dt.date | None = None,
) -> None:
    """Entry point — load config and journal, print the report as JSON."""
    config = load_config(config_path)
    setup_logging_from_config(config.logging)
    records = json.loads(Path(trades_path).read_text())
    init_engine(config.database.url)

    session_gen = get_session()
    session = next(session_gen)
    try:
        report = build_report(records, CapitalBook(SqlKeyValueStore(session)), config, method, as_of)
    finally:
        try:
            next(session_gen)
        except StopIteration:
            pass

    log.info("report_built", trades=len(report["trades"]), method=report["accountingMethod"])
    print(json.dumps(report, indent=2))
