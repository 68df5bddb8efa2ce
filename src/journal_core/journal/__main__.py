"""Allow running the report as: python -m journal_core.journal TRADES.json [--config path]."""

import argparse
import datetime as dt

from journal_core.journal.report import main

parser = argparse.ArgumentParser(description="Trade journal report")
parser.add_argument("trades", help="Path to a JSON list of journal records")
parser.add_argument("--config", default=None, help="Path to config.yaml")
parser.add_argument("--method", choices=["cash", "accrual"], default=None, help="Accounting method")
parser.add_argument("--as-of", type=dt.date.fromisoformat, default=None, help="Valuation date (YYYY-MM-DD)")
args = parser.parse_args()
main(args.trades, config_path=args.config, method=args.method, as_of=args.as_of)
