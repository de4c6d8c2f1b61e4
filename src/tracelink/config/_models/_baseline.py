"""Baseline configuration model."""

from typing import ClassVar

from pydantic import BaseModel, ConfigDict, Field


class BaselineConfig(BaseModel):
    """Baseline snapshot and revision history settings."""

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    history_limit: int = Field(
        default=5,
        ge=1,
        description="Number of commits shown in an artifact's revision history.",
    )
    default_revision: str = Field(
        default="01",
        pattern=r"^\d+$",
        description="Revision reported when a file's revision cannot be parsed.",
    )
