"""structlog setup for drivers embedding the pool ledger."""

from __future__ import annotations

import logging

import structlog


def configure_logging(verbose: bool = False) -> None:
    """Configure structlog with console output.

    Ledger events are logged at info, operation internals at debug.

    Args:
        verbose: Emit debug-level events as well
    """
    log_level = logging.DEBUG if verbose else logging.INFO
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
    )
