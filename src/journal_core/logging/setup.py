"""Structured logging setup with structlog.

Engine events carry Decimal amounts and dates; they are rendered as plain
strings (``"1500.00"``, ``"2024-03-01"``) so JSON output stays exact.
"""

from __future__ import annotations

import datetime as dt
import logging
import sys
from collections.abc import Iterable
from decimal import Decimal

import structlog

from journal_core.config.schema import LoggingConfig

DEFAULT_QUIET = ("sqlalchemy.engine", "uvicorn.access")


def render_money_and_dates(logger, method_name, event_dict):
    """Processor: Decimal and date values become their exact string form."""
    for key, value in event_dict.items():
        if isinstance(value, Decimal):
            event_dict[key] = str(value)
        elif isinstance(value, (dt.date, dt.datetime)):
            event_dict[key] = value.isoformat()
    return event_dict


def _renderer(log_format: str) -> structlog.types.Processor:
    if log_format == "console":
        return structlog.dev.ConsoleRenderer()
    return structlog.processors.JSONRenderer()


def setup_logging(
    level: str = "INFO",
    log_format: str = "json",
    quiet: Iterable[str] = DEFAULT_QUIET,
) -> None:
    """Route structlog and stdlib logging through one stderr handler.

    Args:
        level: Root level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_format: "json" for services and the report CLI, "console" locally.
        quiet: stdlib loggers held at WARNING whatever the root level.
    """
    shared: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        render_money_and_dates,
        structlog.processors.format_exc_info,
    ]
    structlog.configure(
        processors=[*shared, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        # Module-level loggers must see a later reconfiguration
        cache_logger_on_first_use=False,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            _renderer(log_format),
        ],
    ))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    for name in quiet:
        logging.getLogger(name).setLevel(logging.WARNING)


def setup_logging_from_config(config: LoggingConfig) -> None:
    """Apply the ``logging`` section of an :class:`AppConfig`."""
    setup_logging(level=config.level, log_format=config.format, quiet=config.quiet)


def get_logger(name: str | None = None, **initial_context) -> structlog.stdlib.BoundLogger:
    """Get a structlog logger, optionally pre-bound with context (e.g. trade_id)."""
    logger = structlog.get_logger(name)
    if initial_context:
        logger = logger.bind(**initial_context)
    return logger
