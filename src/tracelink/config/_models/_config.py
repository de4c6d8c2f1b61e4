# pyright: reportExplicitAny=false, reportAny=false, reportUnknownVariableType=false, reportUnknownArgumentType=false
"""Configuration container with typed access.

This module provides the main Config class that serves as the primary
interface for accessing tracelink configuration values.
"""

from pathlib import Path
from typing import Any, ClassVar, Self, TypeVar, overload

import tomli_w
from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, ValidationError

from tracelink.config._defaults import DEFAULT_CONFIG
from tracelink.config._loader import (
    copy_value,
    deep_merge,
    parse_env_vars,
    read_toml_file,
)
from tracelink.config._models._baseline import BaselineConfig
from tracelink.config._models._common import ConfigSource, ConfigSourceName
from tracelink.config._models._ids import IdsConfig
from tracelink.config._models._logging import LoggingConfig
from tracelink.config._models._sync import SyncConfig
from tracelink.exceptions import ConfigValidationError

T = TypeVar("T")

CONFIG_DIR_NAME = ".tracelink"
CONFIG_FILE_NAME = "config.toml"


def get_project_config_path(project_root: Path) -> Path:
    """Return the project configuration file path for a workspace root."""
    return project_root / CONFIG_DIR_NAME / CONFIG_FILE_NAME


class Config(BaseModel):
    """Configuration container with typed access.

    Instances are immutable. Use the factory methods rather than the
    constructor so defaults are merged and validation errors are reported
    as ConfigValidationError.

    Example:
        >>> config = Config.from_dict({"ids": {"digits": 4}})
        >>> config.ids.digits
        4
        >>> config.get("sync.remote")
        'origin'
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    ids: IdsConfig = Field(default_factory=IdsConfig)
    sync: SyncConfig = Field(default_factory=SyncConfig)
    baseline: BaselineConfig = Field(default_factory=BaselineConfig)

    _data: dict[str, Any] = PrivateAttr(default_factory=dict)
    _sources: tuple[ConfigSource, ...] = PrivateAttr(default=())

    @classmethod
    def _build(
        cls,
        merged: dict[str, Any],
        sources: tuple[ConfigSource, ...],
        *,
        source: str | None = None,
    ) -> Self:
        """Validate merged data and attach the raw data and sources."""
        try:
            config = cls.model_validate(merged)
        except ValidationError as e:
            error = e.errors()[0]
            key = ".".join(str(part) for part in error["loc"])
            msg = f"Invalid configuration value for {key}: {error['msg']}"
            raise ConfigValidationError(
                msg,
                key=key,
                value=error.get("input"),
                expected=error["msg"],
                source=source,
            ) from e

        config._data = merged
        config._sources = sources
        return config

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Self:
        """Create configuration from a dictionary merged over the defaults.

        Args:
            data: Dictionary of configuration values.

        Returns:
            Configuration object.

        Raises:
            ConfigValidationError: If a value fails validation.
        """
        return cls._build(deep_merge(DEFAULT_CONFIG, data), ())

    @classmethod
    def from_file(cls, path: Path) -> Self:
        """Load configuration from a specific TOML file.

        Args:
            path: Path to the TOML config file.

        Returns:
            Configuration object from the file merged over the defaults.

        Raises:
            FileNotFoundError: If the file does not exist.
            ConfigLoadError: If the file cannot be parsed.
            ConfigValidationError: If validation fails.
        """
        data = read_toml_file(path)
        source = ConfigSource(
            name=ConfigSourceName.PROJECT,
            path=path,
            exists=True,
            values=data,
        )
        return cls._build(
            deep_merge(DEFAULT_CONFIG, data), (source,), source=str(path)
        )

    @classmethod
    def load(
        cls,
        *,
        project_root: Path | None = None,
        include_env: bool = True,
        environ: dict[str, str] | None = None,
    ) -> Self:
        """Load merged configuration from all sources.

        Sources are merged defaults -> project file -> environment. The
        project file lives at ``<project_root>/.tracelink/config.toml`` and
        is optional.

        Args:
            project_root: Workspace root. If None, uses the current directory.
            include_env: Include ``TRACELINK_*`` environment variables.
            environ: Mapping to read instead of ``os.environ``.

        Returns:
            Merged configuration object.

        Raises:
            ConfigLoadError: If the project file cannot be parsed.
            ConfigValidationError: If the merged config fails validation.
        """
        root = project_root if project_root is not None else Path.cwd()
        config_path = get_project_config_path(root)

        default_source = ConfigSource(
            name=ConfigSourceName.DEFAULT,
            path=None,
            exists=True,
            values=copy_value(DEFAULT_CONFIG),
        )
        project_values = read_toml_file(config_path) if config_path.is_file() else {}
        project_source = ConfigSource(
            name=ConfigSourceName.PROJECT,
            path=config_path,
            exists=config_path.is_file(),
            values=project_values,
        )
        env_values = parse_env_vars(environ=environ) if include_env else {}
        env_source = ConfigSource(
            name=ConfigSourceName.ENV,
            path=None,
            exists=bool(env_values),
            values=env_values,
        )

        merged: dict[str, Any] = {}
        for source in (default_source, project_source, env_source):
            if source.values:
                merged = deep_merge(merged, source.values)

        # Highest precedence first, matching ConfigSourceName ordering
        return cls._build(merged, (env_source, project_source, default_source))

    @property
    def sources(self) -> list[ConfigSource]:
        """Return the sources that contributed to this configuration."""
        return list(self._sources)

    @overload
    def get(self, key: str) -> Any: ...

    @overload
    def get(self, key: str, default: T) -> T: ...

    def get(self, key: str, default: Any = None) -> Any:
        """Get a configuration value by dot-notation key.

        Args:
            key: Dot-notation key (e.g., "logging.level").
            default: Default value if key not found.

        Returns:
            The configuration value, or default if not found.
        """
        current: Any = self._data
        for part in key.split("."):
            if not isinstance(current, dict) or part not in current:
                return default
            current = current[part]
        return current

    def to_dict(self) -> dict[str, Any]:
        """Return a deep copy of the merged configuration data."""
        return copy_value(self._data)

    def to_toml(self) -> str:
        """Render the merged configuration as a TOML string."""
        return tomli_w.dumps(self.to_dict())
