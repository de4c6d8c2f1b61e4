"""Identifier configuration models.

This module provides Pydantic models for the per-kind ID prefix and
counter folder mapping and the numbering format. The built-in kinds have
fixed prefixes and folders, since stored IDs and folders resolve back to
an artifact type through them; added kinds are free-form.
"""

from typing import ClassVar

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ArtifactKindConfig(BaseModel):
    """ID prefix and storage folder for one counter kind."""

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    prefix: str = Field(
        pattern=r"^[A-Z][A-Z0-9]*$",
        description="Uppercase ID prefix, e.g. REQ.",
    )
    folder: str = Field(
        pattern=r"^[a-z][a-z0-9_-]*$",
        description="Folder holding the artifacts and naming the counter file.",
    )


def _default_kinds() -> dict[str, ArtifactKindConfig]:
    return {
        "requirement": ArtifactKindConfig(prefix="REQ", folder="requirements"),
        "useCase": ArtifactKindConfig(prefix="UC", folder="usecases"),
        "testCase": ArtifactKindConfig(prefix="TC", folder="testcases"),
        "information": ArtifactKindConfig(prefix="INFO", folder="information"),
        "risk": ArtifactKindConfig(prefix="RISK", folder="risks"),
        "link": ArtifactKindConfig(prefix="LINK", folder="links"),
        "project": ArtifactKindConfig(prefix="PROJ", folder="projects"),
    }


_FIXED_KINDS = _default_kinds()


class IdsConfig(BaseModel):
    """Identifier allocation configuration."""

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    digits: int = Field(
        default=3,
        ge=1,
        le=8,
        description="Number of digits for identifiers (zero-padded).",
    )
    kinds: dict[str, ArtifactKindConfig] = Field(
        default_factory=_default_kinds,
        description="Counter kind to prefix and folder mapping.",
    )

    @field_validator("kinds")
    @classmethod
    def validate_built_in_kinds(
        cls, kinds: dict[str, ArtifactKindConfig]
    ) -> dict[str, ArtifactKindConfig]:
        for name, fixed in _FIXED_KINDS.items():
            entry = kinds.get(name)
            if entry is not None and entry != fixed:
                msg = (
                    f"Kind '{name}' must keep prefix {fixed.prefix} "
                    f"and folder {fixed.folder}"
                )
                raise ValueError(msg)
        return kinds
