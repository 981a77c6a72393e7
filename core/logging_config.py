"""Logging setup shared by the API process.

Feature code logs through stdlib ``logging`` under the ``chat`` hierarchy;
infrastructure adapters use ``structlog`` key/value events. Both end up on
stdout with the same level.
"""
import logging
import sys

import structlog

from core.settings import AppSettings


def configure_logging(settings: AppSettings) -> None:
    level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)

    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    renderer = (
        structlog.processors.JSONRenderer()
        if settings.JSON_LOGS
        else structlog.dev.ConsoleRenderer()
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=True,
    )
