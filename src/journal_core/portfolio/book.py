"""CapitalBook — capital records persisted in a key-value store.

Records live under three JSON documents, matching the keys the journal has
always used. Every :meth:`CapitalBook.snapshot` re-reads the store, so a
mutation is visible to the next portfolio computation without invalidation.
"""

from __future__ import annotations

import datetime as dt
import uuid
from decimal import Decimal

import structlog
from pydantic import TypeAdapter

from journal_core.errors import CapitalChangeNotFoundError, InvalidCapitalAmountError
from journal_core.models.capital import (
    CapitalChange,
    MonthlyCapitalOverride,
    YearlyCapital,
    normalize_month,
)
from journal_core.portfolio.ledger import TruePortfolioLedger
from journal_core.store.kv import KeyValueStore

log = structlog.get_logger("capital_book")

YEARLY_KEY = "yearlyStartingCapitals"
OVERRIDES_KEY = "monthlyStartingCapitalOverrides"
CHANGES_KEY = "capitalChanges"

_yearly_adapter = TypeAdapter(list[YearlyCapital])
_overrides_adapter = TypeAdapter(list[MonthlyCapitalOverride])
_changes_adapter = TypeAdapter(list[CapitalChange])


def _to_decimal(value: Decimal | int | float | str) -> Decimal:
    return value if isinstance(value, Decimal) else Decimal(str(value))


def _now() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


class CapitalBook:
    """Create, read, update and delete capital records."""

    def __init__(self, store: KeyValueStore) -> None:
        self.store = store

    # ── Raw document access ───────────────────────────────────

    def _load(self, key: str, adapter: TypeAdapter):
        raw = self.store.get(key)
        if not raw:
            return []
        return adapter.validate_json(raw)

    def _save(self, key: str, adapter: TypeAdapter, records: list) -> None:
        self.store.set(key, adapter.dump_json(records).decode())

    # ── Yearly starting capital ───────────────────────────────

    def yearly_capitals(self) -> list[YearlyCapital]:
        return sorted(self._load(YEARLY_KEY, _yearly_adapter), key=lambda c: c.year)

    def get_yearly_starting_capital(self, year: int) -> Decimal | None:
        for capital in self.yearly_capitals():
            if capital.year == year:
                return capital.starting_capital
        return None

    def set_yearly_starting_capital(self, year: int, amount: Decimal | int | str) -> YearlyCapital:
        """Insert or replace the starting capital for *year*.

        Raises:
            InvalidCapitalAmountError: *amount* is not positive.
        """
        value = _to_decimal(amount)
        if value <= 0:
            raise InvalidCapitalAmountError(value, "yearly starting capital")
        record = YearlyCapital(year=year, starting_capital=value, updated_at=_now())
        others = [c for c in self.yearly_capitals() if c.year != year]
        self._save(YEARLY_KEY, _yearly_adapter, sorted([*others, record], key=lambda c: c.year))
        log.info("yearly_capital_set", year=year, amount=str(value))
        return record

    # ── Monthly overrides ─────────────────────────────────────

    def overrides(self) -> list[MonthlyCapitalOverride]:
        return sorted(
            self._load(OVERRIDES_KEY, _overrides_adapter),
            key=lambda o: (o.year, o.month),
        )

    def get_monthly_override(self, month: str | int, year: int) -> Decimal | None:
        m = normalize_month(month)
        for override in self.overrides():
            if (override.year, override.month) == (year, m):
                return override.amount
        return None

    def set_monthly_override(
        self,
        month: str | int,
        year: int,
        amount: Decimal | int | str,
    ) -> MonthlyCapitalOverride:
        """Insert or replace the starting-capital override for one month.

        Raises:
            InvalidCapitalAmountError: *amount* is not positive.
        """
        m = normalize_month(month)
        value = _to_decimal(amount)
        if value <= 0:
            raise InvalidCapitalAmountError(value, "monthly capital override")
        record = MonthlyCapitalOverride(year=year, month=m, amount=value, updated_at=_now())
        others = [o for o in self.overrides() if (o.year, o.month) != (year, m)]
        self._save(OVERRIDES_KEY, _overrides_adapter, [*others, record])
        log.info("monthly_override_set", year=year, month=m, amount=str(value))
        return record

    def remove_monthly_override(self, month: str | int, year: int) -> bool:
        """Drop the override for one month. Returns False if none existed."""
        m = normalize_month(month)
        current = self.overrides()
        kept = [o for o in current if (o.year, o.month) != (year, m)]
        if len(kept) == len(current):
            return False
        self._save(OVERRIDES_KEY, _overrides_adapter, kept)
        log.info("monthly_override_removed", year=year, month=m)
        return True

    # ── Capital changes ───────────────────────────────────────

    def capital_changes(self) -> list[CapitalChange]:
        return sorted(self._load(CHANGES_KEY, _changes_adapter), key=lambda c: (c.date, c.id))

    def get_capital_change(self, change_id: str) -> CapitalChange:
        for change in self.capital_changes():
            if change.id == change_id:
                return change
        raise CapitalChangeNotFoundError(change_id)

    def add_capital_change(
        self,
        date: dt.date,
        amount: Decimal | int | str,
        description: str = "",
        type: str | None = None,
        change_id: str | None = None,
    ) -> CapitalChange:
        """Record a deposit (positive) or withdrawal (negative).

        When *type* is given the sign of *amount* is taken from it.
        """
        record = CapitalChange(
            id=change_id or uuid.uuid4().hex,
            date=date,
            amount=_to_decimal(amount),
            description=description,
            type=type,
        )
        self._save(CHANGES_KEY, _changes_adapter, [*self.capital_changes(), record])
        log.info(
            "capital_change_added",
            change_id=record.id,
            date=record.date.isoformat(),
            amount=str(record.amount),
        )
        return record

    def update_capital_change(self, change_id: str, **updates) -> CapitalChange:
        """Replace fields of an existing change.

        Raises:
            CapitalChangeNotFoundError: no change has *change_id*.
        """
        current = self.get_capital_change(change_id)
        data = current.model_dump()
        data.update({k: v for k, v in updates.items() if v is not None})
        if "amount" in updates and "type" not in updates:
            # An explicit signed amount wins over the legacy type.
            data["type"] = None
        data["id"] = change_id
        record = CapitalChange.model_validate(data)
        others = [c for c in self.capital_changes() if c.id != change_id]
        self._save(CHANGES_KEY, _changes_adapter, [*others, record])
        log.info("capital_change_updated", change_id=change_id, amount=str(record.amount))
        return record

    def delete_capital_change(self, change_id: str) -> None:
        """Raises :class:`CapitalChangeNotFoundError` when *change_id* is unknown."""
        current = self.capital_changes()
        kept = [c for c in current if c.id != change_id]
        if len(kept) == len(current):
            raise CapitalChangeNotFoundError(change_id)
        self._save(CHANGES_KEY, _changes_adapter, kept)
        log.info("capital_change_deleted", change_id=change_id)

    # ── Snapshot ──────────────────────────────────────────────

    def snapshot(self) -> TruePortfolioLedger:
        """Immutable ledger built from the records currently in the store."""
        return TruePortfolioLedger(
            yearly_capitals=self.yearly_capitals(),
            overrides=self.overrides(),
            capital_changes=self.capital_changes(),
        )
