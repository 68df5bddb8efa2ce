"""Quote feeds for current market prices."""

from journal_core.quotes.feed import Quote, QuoteFeed, StaticQuoteFeed, apply_quote, refresh_prices

__all__ = ["Quote", "QuoteFeed", "StaticQuoteFeed", "apply_quote", "refresh_prices"]
