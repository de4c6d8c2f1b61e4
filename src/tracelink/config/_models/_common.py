"""Enums and source records shared by the config sections and loader."""

from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path
from typing import Any


class LogLevel(StrEnum):
    """Minimum level a component logger emits."""

    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class LogFormat(StrEnum):
    """Log output format values."""

    JSON = "json"
    TEXT = "text"


class ConfigSourceName(StrEnum):
    """Where a config layer came from, highest precedence first."""

    ENV = "env"
    PROJECT = "project"
    DEFAULT = "default"


@dataclass(frozen=True, slots=True)
class ConfigSource:
    """One layer of the merged configuration.

    ``path`` is None for the defaults and the environment. ``exists`` is
    False for a missing project file or an environment with no
    ``TRACELINK_*`` variables.
    """

    name: ConfigSourceName
    path: Path | None
    exists: bool
    values: dict[str, Any]  # pyright: ignore[reportExplicitAny]
