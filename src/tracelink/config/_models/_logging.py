"""The ``[logging]`` section."""

from typing import ClassVar

from pydantic import BaseModel, ConfigDict, Field

from tracelink.config._models._common import LogFormat, LogLevel


class LoggingConfig(BaseModel):
    """Where component loggers write and how much.

    ``TRACELINK_DEBUG`` and ``TRACELINK_LOG_LEVEL`` override ``level`` when
    the logger is created.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    level: LogLevel = LogLevel.INFO
    format: LogFormat = LogFormat.JSON
    file: str = Field(default="", description="Log file path; empty for stderr.")
