"""
structlog configuration for the command line.

Library modules only call structlog.get_logger(__name__); nothing is configured
on import, so embedding applications keep control of their own logging.

    LEDGERTX_LOG_LEVEL   level name (default WARNING)
    LEDGERTX_LOG_JSON    "1" for JSON lines instead of console output
"""

import logging
import os
import sys
from typing import Optional

import structlog
from structlog.typing import Processor

LOG_LEVEL_ENV = "LEDGERTX_LOG_LEVEL"
LOG_JSON_ENV = "LEDGERTX_LOG_JSON"
DEFAULT_LOG_LEVEL = "WARNING"


def _get_log_level(level: Optional[str] = None) -> int:
    level_name = (level or os.getenv(LOG_LEVEL_ENV, DEFAULT_LOG_LEVEL)).upper()
    return getattr(logging, level_name, logging.WARNING)


def configure_logging(level: Optional[str] = None, json_output: Optional[bool] = None) -> None:
    """Configure structlog once at CLI startup. Output goes to stderr."""
    if json_output is None:
        json_output = os.getenv(LOG_JSON_ENV, "") == "1"

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if json_output:
        final_processor: Processor = structlog.processors.JSONRenderer()
    else:
        final_processor = structlog.dev.ConsoleRenderer(colors=False)

    structlog.configure(
        processors=shared_processors + [final_processor],
        wrapper_class=structlog.make_filtering_bound_logger(_get_log_level(level)),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )
