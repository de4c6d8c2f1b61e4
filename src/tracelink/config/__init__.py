"""Tracelink configuration.

This module provides the public API for configuration management,
including loading, validation, and typed access to configuration values.

Example:
    >>> from tracelink.config import Config
    >>> config = Config.load()
    >>> config.ids.kinds["requirement"].prefix
    'REQ'
"""

from tracelink.exceptions import (
    ConfigError,
    ConfigLoadError,
    ConfigValidationError,
)

from ._defaults import DEFAULT_CONFIG
from ._loader import (
    ENV_PREFIX,
    deep_merge,
    parse_env_vars,
    parse_string_value,
    read_toml_file,
    set_nested_key,
)
from ._models import (
    ArtifactKindConfig,
    BaselineConfig,
    Config,
    ConfigSource,
    ConfigSourceName,
    IdsConfig,
    LogFormat,
    LoggingConfig,
    LogLevel,
    SyncConfig,
    get_project_config_path,
)

__all__ = [
    "DEFAULT_CONFIG",
    "ENV_PREFIX",
    "ArtifactKindConfig",
    "BaselineConfig",
    "Config",
    "ConfigError",
    "ConfigLoadError",
    "ConfigSource",
    "ConfigSourceName",
    "ConfigValidationError",
    "IdsConfig",
    "LogFormat",
    "LogLevel",
    "LoggingConfig",
    "SyncConfig",
    "deep_merge",
    "get_project_config_path",
    "parse_env_vars",
    "parse_string_value",
    "read_toml_file",
    "set_nested_key",
]
