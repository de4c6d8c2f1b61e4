"""Logging utilities for tracelink.

This module provides standalone structlog logger factories that write
JSON-formatted or text-formatted logs to a file or stderr. Each logger is
self-contained and does not modify global structlog configuration.
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from os import getenv
from pathlib import Path
from typing import Literal, cast

import structlog
from structlog.typing import FilteringBoundLogger

from tracelink.config import LoggingConfig

LogFormatType = Literal["json", "text"]


def _resolve_level(configured: str) -> int:
    """TRACELINK_DEBUG wins, then TRACELINK_LOG_LEVEL, then the configured level."""
    if getenv("TRACELINK_DEBUG", None):
        return logging.DEBUG

    level = getenv("TRACELINK_LOG_LEVEL") or configured
    return logging.getLevelNamesMapping().get(level.upper(), logging.INFO)


def _create_logger(
    log_file_path: str | None,
    *,
    log_level: int,
    log_format: LogFormatType = "json",
    max_bytes: int | None = None,
    backup_count: int | None = None,
) -> FilteringBoundLogger:
    """Create a standalone structlog logger.

    Args:
        log_file_path: Path to the log file (opened in append mode), or None
            to write to stderr.
        log_level: Minimum level emitted.
        log_format: Output format, either "json" or "text".
        max_bytes: Maximum size in bytes before rotation. Must be set with
            backup_count for rotation to be enabled.
        backup_count: Number of rotated log files to keep. Must be set with
            max_bytes for rotation to be enabled.

    Returns:
        A configured FilteringBoundLogger instance.
    """

    raw_logger: object
    if log_file_path is None:
        raw_logger = structlog.PrintLoggerFactory(file=sys.stderr)()
    else:
        log_path = Path(log_file_path)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        if max_bytes is not None and backup_count is not None:
            # stdlib logger owns rotation; structlog only formats
            stdlib_logger = logging.getLogger(
                f"tracelink.{log_path.stem}.{id(log_path)}"
            )
            stdlib_logger.handlers.clear()
            stdlib_logger.propagate = False
            stdlib_logger.setLevel(log_level)

            handler = RotatingFileHandler(
                log_path,
                maxBytes=max_bytes,
                backupCount=backup_count,
            )
            handler.setLevel(log_level)
            handler.setFormatter(logging.Formatter("%(message)s"))
            stdlib_logger.addHandler(handler)
            raw_logger = stdlib_logger
        else:
            raw_logger = structlog.WriteLoggerFactory(file=log_path.open("a"))()

    processors: list[structlog.typing.Processor] = [
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if log_format == "json":
        processors.append(structlog.processors.dict_tracebacks)
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=False))

    return cast(
        "FilteringBoundLogger",
        structlog.wrap_logger(
            raw_logger,
            processors=processors,
            wrapper_class=structlog.make_filtering_bound_logger(log_level),
            context_class=dict,
        ),
    )


def create_logger(
    config: LoggingConfig | None = None,
    *,
    component: str = "",
    max_bytes: int | None = None,
    backup_count: int | None = None,
) -> FilteringBoundLogger:
    """Create a logger from the logging configuration section.

    The level is DEBUG when ``TRACELINK_DEBUG`` is set, otherwise
    ``TRACELINK_LOG_LEVEL`` when set, otherwise ``config.level``.

    Args:
        config: Logging configuration. Defaults to ``LoggingConfig()``.
        component: Component name bound to every entry when non-empty.
        max_bytes: Maximum size in bytes before rotation.
        backup_count: Number of rotated log files to keep.

    Returns:
        A FilteringBoundLogger instance.
    """
    settings = config if config is not None else LoggingConfig()
    logger = _create_logger(
        settings.file or None,
        log_level=_resolve_level(settings.level),
        log_format="json" if settings.format == "json" else "text",
        max_bytes=max_bytes,
        backup_count=backup_count,
    )

    if component:
        return logger.bind(component=component)
    return logger


def _drop_event(
    _logger: object, _method_name: str, _event_dict: structlog.typing.EventDict
) -> structlog.typing.EventDict:
    raise structlog.DropEvent


def get_null_logger() -> FilteringBoundLogger:
    """Return a logger that discards every entry.

    Used as the default for components constructed without a logger.
    """
    return cast(
        "FilteringBoundLogger",
        structlog.wrap_logger(
            structlog.ReturnLogger(),
            processors=[_drop_event],
            wrapper_class=structlog.make_filtering_bound_logger(logging.CRITICAL),
            context_class=dict,
        ),
    )
