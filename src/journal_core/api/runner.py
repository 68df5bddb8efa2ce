#!/usr/bin/env python3
"""Journal API server runner (``journal-api``)."""

import argparse

import structlog
import uvicorn

from journal_core.api.app import app, config
from journal_core.logging.setup import setup_logging_from_config

logger = structlog.get_logger("journal_api")


def main(argv=None):
    """Serve the journal API; host and port default to the ``api`` config section."""
    parser = argparse.ArgumentParser(description="Trade journal API server")
    parser.add_argument("--host", default=config.api.host)
    parser.add_argument("--port", type=int, default=config.api.port)
    args = parser.parse_args(argv)

    setup_logging_from_config(config.logging)
    logger.info(
        "journal_api_starting",
        host=args.host,
        port=args.port,
        accounting_method=config.accounting.method,
    )
    # log_config=None keeps uvicorn on the structlog handler
    uvicorn.run(app, host=args.host, port=args.port, log_config=None)


if __name__ == "__main__":
    main()
