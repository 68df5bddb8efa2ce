"""Engine exceptions.

Structural errors (lot matching, capital amounts, lot limits) halt the
computation they occur in. ``MissingPriceError`` and
``PortfolioResolutionError`` are degraded by batch callers so that one bad
trade or period never blocks aggregates for the rest of the journal.
"""

from __future__ import annotations

from decimal import Decimal


class JournalError(Exception):
    """Base class for all journal engine errors."""


class ExcessExitError(JournalError):
    """Total exit quantity exceeds total entered quantity for a trade."""

    def __init__(self, trade_id: str | None, entered_qty: Decimal, exited_qty: Decimal) -> None:
        self.trade_id = trade_id
        self.entered_qty = entered_qty
        self.exited_qty = exited_qty
        self.excess_qty = exited_qty - entered_qty
        super().__init__(
            f"trade {trade_id or '?'}: exited {exited_qty} exceeds entered {entered_qty} "
            f"by {self.excess_qty}"
        )


class InvalidCapitalAmountError(JournalError, ValueError):
    """Non-positive amount for a yearly starting capital or monthly override."""

    def __init__(self, amount: Decimal, what: str = "capital") -> None:
        self.amount = amount
        self.what = what
        super().__init__(f"{what} must be positive, got {amount}")


class MissingPriceError(JournalError):
    """CMP is unset or zero for a trade that still has open quantity."""

    def __init__(self, trade_id: str | None) -> None:
        self.trade_id = trade_id
        super().__init__(f"trade {trade_id or '?'} has no current market price")


class PortfolioResolutionError(JournalError):
    """No starting capital is resolvable at or before the requested period."""

    def __init__(self, year: int, month: int | None = None) -> None:
        self.year = year
        self.month = month
        period = f"{year}-{month:02d}" if month is not None else str(year)
        super().__init__(f"no starting capital resolvable for {period}")


class LotLimitError(JournalError, ValueError):
    """A trade carries more entry or exit lots than the journal allows."""


class InvalidMonthError(JournalError, ValueError):
    """Month could not be interpreted as a calendar month."""


class CapitalChangeNotFoundError(JournalError, LookupError):
    """No capital change with the given id exists."""

    def __init__(self, change_id: str) -> None:
        self.change_id = change_id
        super().__init__(f"capital change {change_id!r} not found")
