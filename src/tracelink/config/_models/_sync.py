"""Remote counter synchronization configuration."""

from typing import ClassVar

from pydantic import BaseModel, ConfigDict, Field


class SyncConfig(BaseModel):
    """Counter synchronization with a remote peer."""

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    enabled: bool = Field(
        default=False,
        description="Pull and push counters around ID allocation.",
    )
    remote: str = Field(default="origin", description="Remote name or URL.")
    branch: str = Field(default="main", description="Remote branch to sync with.")
