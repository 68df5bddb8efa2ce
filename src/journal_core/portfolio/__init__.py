"""True Portfolio — capital records and the monthly capital series."""

from journal_core.portfolio.book import CapitalBook
from journal_core.portfolio.ledger import PortfolioTimeline, TruePortfolioLedger

__all__ = ["CapitalBook", "PortfolioTimeline", "TruePortfolioLedger"]
