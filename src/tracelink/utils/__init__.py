"""Shared utilities: logging, author identity, and clock."""

from tracelink.utils._author import AuthorInfo, get_author_info
from tracelink.utils._clock import Clock, utc_now
from tracelink.utils._logging import create_logger, get_null_logger

__all__ = [
    "AuthorInfo",
    "Clock",
    "create_logger",
    "get_author_info",
    "get_null_logger",
    "utc_now",
]
