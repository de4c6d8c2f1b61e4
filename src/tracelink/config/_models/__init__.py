"""Configuration models.

This module provides Pydantic models for tracelink configuration sections
and the main Config container class.
"""

from tracelink.config._models._baseline import BaselineConfig
from tracelink.config._models._common import (
    ConfigSource,
    ConfigSourceName,
    LogFormat,
    LogLevel,
)
from tracelink.config._models._config import Config, get_project_config_path
from tracelink.config._models._ids import ArtifactKindConfig, IdsConfig
from tracelink.config._models._logging import LoggingConfig
from tracelink.config._models._sync import SyncConfig

__all__ = [
    "ArtifactKindConfig",
    "BaselineConfig",
    "Config",
    "ConfigSource",
    "ConfigSourceName",
    "IdsConfig",
    "LogFormat",
    "LogLevel",
    "LoggingConfig",
    "SyncConfig",
    "get_project_config_path",
]
