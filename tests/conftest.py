"""Shared test fixtures."""

import datetime as dt
from decimal import Decimal

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session

import journal_core.db.tables  # noqa: F401  register tables on Base.metadata
from journal_core.db.base import Base
from journal_core.models import Lot, Trade
from journal_core.portfolio import CapitalBook
from journal_core.store import InMemoryStore

D = Decimal


def make_trade(**overrides) -> Trade:
    """Long trade of 100 @ 100 on 2024-01-01 unless overridden."""
    data = {
        "id": "t1",
        "trade_no": "1",
        "name": "RELIANCE",
        "date": dt.date(2024, 1, 1),
        "buy_sell": "Buy",
        "entry": D("100"),
        "initial_qty": D("100"),
    }
    data.update(overrides)
    return Trade(**data)


@pytest.fixture
def db_session():
    """In-memory SQLite session with all tables created."""
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)

    session = Session(engine)
    yield session
    session.close()
    engine.dispose()


@pytest.fixture
def scenario_trade() -> Trade:
    """100 @ 100 (Jan 1), pyramid 50 @ 110 (Jan 10), exit 80 @ 120 (Feb 1)."""
    return make_trade(
        sl=D("95"),
        cmp=D("130"),
        pyramids=[Lot(qty=D("50"), price=D("110"), date=dt.date(2024, 1, 10))],
        exits=[Lot(qty=D("80"), price=D("120"), date=dt.date(2024, 2, 1))],
    )


@pytest.fixture
def book() -> CapitalBook:
    return CapitalBook(InMemoryStore())
