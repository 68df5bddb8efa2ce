"""FastAPI application for the trade journal backend."""

from dataclasses import asdict
import datetime as dt
from decimal import Decimal
from typing import Any, Generator, Literal, Optional

import structlog
from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from sqlalchemy.orm import Session

from journal_core.accounting import AccountingMethod
from journal_core.config.loader import load_config
from journal_core.db.engine import get_session as _get_session, init_engine
from journal_core.errors import (
    CapitalChangeNotFoundError,
    ExcessExitError,
    InvalidCapitalAmountError,
    InvalidMonthError,
    LotLimitError,
    PortfolioResolutionError,
)
from journal_core.journal import clamp_trade_exits, metrics_to_record, model_to_record, recalculate_trades, trade_from_record
from journal_core.metrics import capital_drawdown, summarize_trades
from journal_core.models import Trade
from journal_core.portfolio import CapitalBook
from journal_core.risk import calc_open_heat
from journal_core.store import SqlKeyValueStore

logger = structlog.get_logger()

app = FastAPI(
    title="Trade Journal API",
    description="Trade accounting and True Portfolio capital engine",
    version="0.1.0",
)

# CORS middleware - adjust origins in production
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Load config once at startup
config = load_config("config.yaml")


def get_db() -> Generator[Session, None, None]:
    """Dependency to get DB session."""
    gen = _get_session()
    session = next(gen)
    try:
        yield session
    finally:
        try:
            next(gen)
        except StopIteration:
            pass


def get_book(session: Session = Depends(get_db)) -> CapitalBook:
    """Dependency to get the capital book over the SQL store."""
    return CapitalBook(SqlKeyValueStore(session))


@app.on_event("startup")
async def startup_event():
    """Initialize database engine on startup."""
    init_engine(config.database.url)
    logger.info("Database engine initialized")


# ═══════════════════════════════════════════════════════════════
# Error mapping
# ═══════════════════════════════════════════════════════════════


@app.exception_handler(ExcessExitError)
@app.exception_handler(LotLimitError)
@app.exception_handler(InvalidCapitalAmountError)
@app.exception_handler(InvalidMonthError)
async def unprocessable_handler(request: Request, exc: Exception):
    logger.warning("request_rejected", path=request.url.path, error=str(exc))
    return JSONResponse(status_code=422, content={"detail": str(exc)})


@app.exception_handler(CapitalChangeNotFoundError)
async def not_found_handler(request: Request, exc: CapitalChangeNotFoundError):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.get("/api/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "timestamp": dt.datetime.now(dt.timezone.utc).isoformat()}


# ═══════════════════════════════════════════════════════════════
# Request bodies
# ═══════════════════════════════════════════════════════════════


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TradesRequest(_CamelModel):
    trades: list[dict[str, Any]] = []
    accounting_method: Optional[AccountingMethod] = None
    as_of: Optional[dt.date] = None
    excess_exit_policy: Optional[Literal["reject", "clamp"]] = None


class PortfolioSizeRequest(_CamelModel):
    trades: list[dict[str, Any]] = []
    month: str
    year: int
    accounting_method: Optional[AccountingMethod] = None


class AmountRequest(_CamelModel):
    amount: Decimal


class CreateCapitalChangeRequest(_CamelModel):
    date: dt.date
    amount: Decimal
    description: str = ""
    type: Optional[Literal["deposit", "withdrawal"]] = None


class PatchCapitalChangeRequest(_CamelModel):
    date: Optional[dt.date] = None
    amount: Optional[Decimal] = None
    description: Optional[str] = None
    type: Optional[Literal["deposit", "withdrawal"]] = None


def _parse_trades(records: list[dict[str, Any]]) -> list[Trade]:
    trades = []
    for record in records:
        try:
            trades.append(trade_from_record(record, config.journal))
        except LotLimitError:
            raise
        except (KeyError, ValueError) as exc:
            raise HTTPException(status_code=422, detail=f"invalid trade record: {exc}") from exc
    return trades


def _method(requested: Optional[AccountingMethod]) -> AccountingMethod:
    return requested or config.accounting.method


def _float(value: Optional[Decimal]) -> Optional[float]:
    return float(value) if value is not None else None


# ═══════════════════════════════════════════════════════════════
# Trades
# ═══════════════════════════════════════════════════════════════


@app.post("/api/trades/metrics")
async def trade_metrics(req: TradesRequest, book: CapitalBook = Depends(get_book)):
    """Recalculate every derived field, plus open heat and journal stats."""
    policy = req.excess_exit_policy or config.journal.excess_exit_policy
    trades = _parse_trades(req.trades)
    if policy == "clamp":
        trades = [clamp_trade_exits(t) for t in trades]
    method = _method(req.accounting_method)
    ledger = book.snapshot()
    metrics = recalculate_trades(
        trades,
        ledger,
        method,
        as_of=req.as_of,
        excess_exit_policy=policy,
        reward_risk_blend=config.journal.reward_risk_blend,
    )
    timeline = ledger.timeline(trades, method)
    open_heat = calc_open_heat(trades, None, timeline.portfolio_size_or_none)
    return {
        "accountingMethod": method,
        "trades": [metrics_to_record(m) for m in metrics],
        "openHeat": _float(open_heat),
        "stats": {to_camel(k): v for k, v in asdict(summarize_trades(trades, metrics)).items()},
    }


# ═══════════════════════════════════════════════════════════════
# True Portfolio
# ═══════════════════════════════════════════════════════════════


@app.post("/api/portfolio/monthly")
async def monthly_portfolio(req: TradesRequest, book: CapitalBook = Depends(get_book)):
    """Every month of the True Portfolio series through the latest data."""
    trades = _parse_trades(req.trades)
    if (req.excess_exit_policy or config.journal.excess_exit_policy) == "clamp":
        trades = [clamp_trade_exits(t) for t in trades]
    method = _method(req.accounting_method)
    timeline = book.snapshot().timeline(trades, method)
    months = timeline.all_months()
    latest = None
    if months:
        latest = timeline.latest_portfolio_size()
    return {
        "accountingMethod": method,
        "months": [{**model_to_record(m), "monthName": m.month_name} for m in months],
        "latestPortfolioSize": _float(latest),
        "capitalDrawdown": capital_drawdown(months),
    }


@app.post("/api/portfolio/size")
async def portfolio_size(req: PortfolioSizeRequest, book: CapitalBook = Depends(get_book)):
    """Portfolio size for one month."""
    trades = _parse_trades(req.trades)
    method = _method(req.accounting_method)
    timeline = book.snapshot().timeline(trades, method)
    try:
        size = timeline.portfolio_size(req.month, req.year)
    except PortfolioResolutionError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return {"month": req.month, "year": req.year, "portfolioSize": float(size)}


# ═══════════════════════════════════════════════════════════════
# Capital records
# ═══════════════════════════════════════════════════════════════


@app.get("/api/capital/yearly")
async def list_yearly_capitals(book: CapitalBook = Depends(get_book)):
    return {"yearlyCapitals": [model_to_record(c) for c in book.yearly_capitals()]}


@app.put("/api/capital/yearly/{year}")
async def set_yearly_capital(year: int, req: AmountRequest, book: CapitalBook = Depends(get_book)):
    return model_to_record(book.set_yearly_starting_capital(year, req.amount))


@app.get("/api/capital/overrides")
async def list_overrides(book: CapitalBook = Depends(get_book)):
    return {"overrides": [model_to_record(o) for o in book.overrides()]}


@app.put("/api/capital/overrides/{year}/{month}")
async def set_override(year: int, month: str, req: AmountRequest, book: CapitalBook = Depends(get_book)):
    return model_to_record(book.set_monthly_override(month, year, req.amount))


@app.delete("/api/capital/overrides/{year}/{month}", status_code=204)
async def remove_override(year: int, month: str, book: CapitalBook = Depends(get_book)):
    if not book.remove_monthly_override(month, year):
        raise HTTPException(status_code=404, detail=f"no override for {month} {year}")
    return Response(status_code=204)


@app.get("/api/capital/changes")
async def list_capital_changes(book: CapitalBook = Depends(get_book)):
    return {"changes": [model_to_record(c) for c in book.capital_changes()]}


@app.post("/api/capital/changes", status_code=201)
async def create_capital_change(req: CreateCapitalChangeRequest, book: CapitalBook = Depends(get_book)):
    change = book.add_capital_change(req.date, req.amount, req.description, req.type)
    return model_to_record(change)


@app.put("/api/capital/changes/{change_id}")
async def update_capital_change(
    change_id: str,
    req: PatchCapitalChangeRequest,
    book: CapitalBook = Depends(get_book),
):
    change = book.update_capital_change(change_id, **req.model_dump(exclude_unset=True))
    return model_to_record(change)


@app.delete("/api/capital/changes/{change_id}", status_code=204)
async def delete_capital_change(change_id: str, book: CapitalBook = Depends(get_book)):
    book.delete_capital_change(change_id)
    return Response(status_code=204)
