"""True Portfolio ledger — period-indexed capital from starting capital,
overrides, deposits/withdrawals and realized trading P/L.

The series is computed forward, one month at a time, from January of the
earliest year with a yearly starting capital. A month only ever reads the
months before it, so editing an event in month M cannot change any month
before M.
"""

from __future__ import annotations

import datetime as dt
from collections import defaultdict
from collections.abc import Iterable, Sequence
from decimal import Decimal

import structlog

from journal_core.accounting.resolver import AccountingMethod, realized_pl_by_month
from journal_core.errors import InvalidCapitalAmountError, PortfolioResolutionError
from journal_core.models.capital import (
    CapitalChange,
    MonthlyCapitalOverride,
    MonthlyTruePortfolio,
    YearlyCapital,
    normalize_month,
)
from journal_core.models.trade import Trade

log = structlog.get_logger("true_portfolio")

ZERO = Decimal("0")

Period = tuple[int, int]


def _next_period(period: Period) -> Period:
    year, month = period
    return (year + 1, 1) if month == 12 else (year, month + 1)


def _trade_activity(trades: Iterable[Trade]) -> set[Period]:
    periods: set[Period] = set()
    for trade in trades:
        periods.add((trade.date.year, trade.date.month))
        for lot in trade.exits:
            if lot.qty > 0 and lot.date is not None:
                periods.add((lot.date.year, lot.date.month))
    return periods


class TruePortfolioLedger:
    """Immutable snapshot of capital records.

    Amounts are validated on construction. A ledger never changes after it is
    built and may be shared across threads; each query builds its own
    :class:`PortfolioTimeline`.
    """

    def __init__(
        self,
        yearly_capitals: Iterable[YearlyCapital] = (),
        overrides: Iterable[MonthlyCapitalOverride] = (),
        capital_changes: Iterable[CapitalChange] = (),
    ) -> None:
        self._yearly: dict[int, Decimal] = {}
        for capital in yearly_capitals:
            if capital.starting_capital <= 0:
                raise InvalidCapitalAmountError(capital.starting_capital, "yearly starting capital")
            self._yearly[capital.year] = capital.starting_capital

        self._overrides: dict[Period, Decimal] = {}
        for override in overrides:
            if override.amount <= 0:
                raise InvalidCapitalAmountError(override.amount, "monthly capital override")
            self._overrides[(override.year, override.month)] = override.amount

        self._changes: dict[Period, Decimal] = defaultdict(lambda: ZERO)
        for change in capital_changes:
            self._changes[(change.date.year, change.date.month)] += change.amount

    @property
    def first_year(self) -> int | None:
        return min(self._yearly) if self._yearly else None

    @property
    def yearly_capitals(self) -> dict[int, Decimal]:
        return dict(self._yearly)

    def yearly_starting_capital(self, year: int) -> Decimal | None:
        """Explicit starting capital for ``year``, if one was recorded."""
        return self._yearly.get(year)

    def override_for(self, year: int, month: int) -> Decimal | None:
        return self._overrides.get((year, month))

    def capital_changes_for(self, year: int, month: int) -> Decimal:
        return self._changes.get((year, month), ZERO)

    def data_periods(self) -> set[Period]:
        """Months that carry an override or a capital change."""
        return set(self._overrides) | set(self._changes)

    # ── Timeline ──────────────────────────────────────────────

    def timeline(self, trades: Sequence[Trade] = (), method: AccountingMethod = "accrual") -> "PortfolioTimeline":
        """Month series for a fixed set of trades and accounting method."""
        return PortfolioTimeline(
            self,
            realized_pl_by_month(trades, method),
            _trade_activity(trades),
        )

    # ── Convenience wrappers (one-off queries) ────────────────

    def starting_capital(self, year: int, trades: Sequence[Trade] = (), method: AccountingMethod = "accrual") -> Decimal:
        return self.timeline(trades, method).starting_capital(year)

    def get_monthly_true_portfolio(
        self,
        month: str | int,
        year: int,
        trades: Sequence[Trade] = (),
        method: AccountingMethod = "accrual",
    ) -> MonthlyTruePortfolio:
        return self.timeline(trades, method).month(month, year)

    def get_true_portfolio_size(
        self,
        month: str | int,
        year: int,
        trades: Sequence[Trade] = (),
        method: AccountingMethod = "accrual",
    ) -> Decimal:
        return self.timeline(trades, method).portfolio_size(month, year)

    def get_latest_true_portfolio_size(
        self,
        trades: Sequence[Trade] = (),
        method: AccountingMethod = "accrual",
    ) -> Decimal:
        return self.timeline(trades, method).latest_portfolio_size()

    def get_all_monthly_true_portfolios(
        self,
        trades: Sequence[Trade] = (),
        method: AccountingMethod = "accrual",
    ) -> list[MonthlyTruePortfolio]:
        return self.timeline(trades, method).all_months()


class PortfolioTimeline:
    """Forward-computed, memoized month series over one ledger snapshot.

    The memo lives only as long as the timeline; build a new timeline after
    any change to capital records or trades. Not for use across threads.
    """

    def __init__(
        self,
        ledger: TruePortfolioLedger,
        pl_by_month: dict[Period, Decimal],
        trade_periods: set[Period] | None = None,
    ) -> None:
        self._ledger = ledger
        self._pl = pl_by_month
        self._trade_periods = trade_periods or set()
        self._memo: dict[Period, MonthlyTruePortfolio] = {}
        self._last: Period | None = None

    @property
    def start(self) -> Period | None:
        first = self._ledger.first_year
        return (first, 1) if first is not None else None

    def _compute_through(self, target: Period) -> None:
        start = self.start
        if start is None or target < start:
            raise PortfolioResolutionError(target[0], target[1])
        if self._last is not None and target <= self._last:
            return

        if self._last is None:
            cursor, prev_final = start, None
        else:
            cursor, prev_final = _next_period(self._last), self._memo[self._last].final_capital

        while cursor <= target:
            year, month = cursor
            override = self._ledger.override_for(year, month)
            yearly = self._ledger.yearly_starting_capital(year) if month == 1 else None
            if override is not None:
                opening = override
            elif yearly is not None:
                opening = yearly
            else:
                # prev_final is always set here: the first month is January
                # of a year with an explicit starting capital.
                opening = prev_final

            changes = self._ledger.capital_changes_for(year, month)
            starting = opening + changes
            pl = self._pl.get(cursor, ZERO)
            row = MonthlyTruePortfolio(
                year=year,
                month=month,
                opening_capital=opening,
                capital_changes=changes,
                starting_capital=starting,
                pl=pl,
                final_capital=starting + pl,
                overridden=override is not None,
            )
            self._memo[cursor] = row
            self._last = cursor
            prev_final = row.final_capital
            cursor = _next_period(cursor)

    def month(self, month: str | int, year: int) -> MonthlyTruePortfolio:
        """Capital figures for one month.

        Raises:
            PortfolioResolutionError: the month precedes every yearly capital.
        """
        period = (year, normalize_month(month))
        self._compute_through(period)
        return self._memo[period]

    def starting_capital(self, year: int) -> Decimal:
        """Capital at the start of January: explicit, else prior December's final."""
        explicit = self._ledger.yearly_starting_capital(year)
        if explicit is not None:
            return explicit
        return self.month(12, year - 1).final_capital

    def portfolio_size(self, month: str | int, year: int) -> Decimal:
        """Ending capital for the month — the denominator for % metrics."""
        return self.month(month, year).final_capital

    def portfolio_size_or_none(self, month: str | int, year: int) -> Decimal | None:
        """Like :meth:`portfolio_size` but ``None`` when unresolvable."""
        try:
            return self.portfolio_size(month, year)
        except PortfolioResolutionError:
            log.warning("portfolio_unresolved", year=year, month=month)
            return None

    def size_at(self, date: dt.date) -> Decimal | None:
        return self.portfolio_size_or_none(date.month, date.year)

    def latest_period(self) -> Period:
        """Most recent month with trades, an override, a capital change, or a
        yearly starting capital.

        Raises:
            PortfolioResolutionError: no yearly capital exists at all.
        """
        start = self.start
        if start is None:
            raise PortfolioResolutionError(dt.date.today().year)
        candidates = {start, *((y, 1) for y in self._ledger.yearly_capitals)}
        candidates |= self._trade_periods | self._ledger.data_periods() | set(self._pl)
        return max(p for p in candidates if p >= start)

    def latest_portfolio_size(self) -> Decimal:
        year, month = self.latest_period()
        return self.portfolio_size(month, year)

    def all_months(self) -> list[MonthlyTruePortfolio]:
        """Every month from the first yearly capital through the latest data."""
        if self.start is None:
            return []
        last = self.latest_period()
        self._compute_through(last)
        return [row for period, row in sorted(self._memo.items()) if period <= last]
