"""Structured logging for the engine using structlog.

The engine logs sparingly: skipped records and data-quality warnings during
resolution, store retries, strategy selection and report summaries. Host
applications call setup_logging() once; without it structlog's defaults apply.
"""

import logging
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from src.rollcall.config import EngineConfig


def setup_logging(
    config: "EngineConfig | None" = None,
    *,
    json_output: bool | None = None,
    log_level: str | None = None,
) -> None:
    """Configure structlog processors and output format.

    Explicit arguments win over the engine configuration.

    Args:
        config: Engine settings supplying LOG_JSON / LOG_LEVEL (defaults to
            the get_config() singleton).
        json_output: JSON lines (production) instead of console rendering (dev).
        log_level: DEBUG, INFO, WARNING, ERROR or CRITICAL.
    """
    if config is None:
        from src.rollcall.config import get_config

        config = get_config()
    if json_output is None:
        json_output = config.log_json
    level_name = (log_level or config.log_level).upper()
    numeric_level = getattr(logging, level_name, logging.INFO)

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.JSONRenderer() if json_output else structlog.dev.ConsoleRenderer(),
    ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
    )


def log_context(**values):
    """Bind key/values to every log line emitted inside the with-block.

    Example:
        with log_context(report_day="2026-01-11"):
            build_report(...)
    """
    return structlog.contextvars.bound_contextvars(**values)


def get_logger(name: str) -> structlog.BoundLogger:
    """Get a logger bound with the module name (pass __name__)."""
    return structlog.get_logger(name)
