"""Configuration schema — Pydantic models for config.yaml."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field


class DatabaseConfig(BaseModel):
    url: str = "sqlite:///journal.db"


class LoggingConfig(BaseModel):
    level: str = "INFO"
    format: str = "json"
    quiet: list[str] = Field(default_factory=lambda: ["sqlalchemy.engine", "uvicorn.access"])


class AccountingConfig(BaseModel):
    method: Literal["cash", "accrual"] = "accrual"


class JournalConfig(BaseModel):
    # Lot limits are enforced at the record boundary, not in the ledger
    max_entry_lots: int = Field(default=3, ge=1)
    max_exit_lots: int = Field(default=3, ge=1)
    excess_exit_policy: Literal["reject", "clamp"] = "reject"
    reward_risk_blend: Literal["quantity", "exited_only"] = "quantity"


class ApiConfig(BaseModel):
    host: str = "0.0.0.0"
    port: int = 8000


class AppConfig(BaseModel):
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    accounting: AccountingConfig = Field(default_factory=AccountingConfig)
    journal: JournalConfig = Field(default_factory=JournalConfig)
    api: ApiConfig = Field(default_factory=ApiConfig)
