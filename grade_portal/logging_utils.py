"""
Structured logging utilities built on structlog.

The portal runs inside a single Streamlit process, so configuration happens
once at start-up; modules fetch bound loggers via ``create_logger``.
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog
from structlog.contextvars import merge_contextvars
from structlog.typing import Processor

from grade_portal.config import Settings, get_settings


def configure_logging(settings: Settings | None = None) -> None:
    """
    Configure structlog and the standard library root logger.

    Console output is used for local development and tests, JSON output
    for production (or whenever LOG_FORMAT=json).
    """
    settings = settings or get_settings()

    shared: list[Processor] = [
        merge_contextvars,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.add_log_level,
    ]
    if settings.use_json_logs:
        processors = shared + [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors = shared + [
            structlog.dev.set_exc_info,
            structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()),
        ]

    logging.basicConfig(
        format="%(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        force=True,
    )

    structlog.configure(
        processors=processors,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def create_logger(name: str | None = None) -> Any:
    """
    Return a lazy structlog logger, carrying ``logger_name`` when a name is given.

    The logger resolves its configuration on first use, so module-level
    loggers created before ``configure_logging`` still pick it up.
    """
    if name:
        return structlog.get_logger(logger_name=name)
    return structlog.get_logger()
