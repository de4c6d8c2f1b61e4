# ruff: noqa: TC003  # datetime and ArtifactType needed at runtime for dataclass fields
"""Baseline records and comparison results."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from types import MappingProxyType
from typing import Any

from tracelink.artifacts import ArtifactType, parse_timestamp
from tracelink.exceptions import StorageParseError
from tracelink.graph import Edge

__all__ = [
    "ArtifactCommit",
    "Baseline",
    "BaselineDiff",
    "GraphComparison",
    "ModifiedArtifact",
    "RevisionEntry",
]


@dataclass(frozen=True, slots=True)
class ArtifactCommit:
    """Commit an artifact file was last changed in when a baseline was taken."""

    commit_hash: str
    type: ArtifactType


@dataclass(frozen=True, slots=True)
class Baseline:
    """Immutable snapshot of a project's artifacts at a point in time.

    Attributes:
        id: Baseline identifier, e.g. ``bl-1700000000000``.
        project_id: Project the baseline belongs to.
        version: Version label, e.g. ``"03"``.
        name: Display name ``[ProjectName] <version>``.
        tag_name: Name of the tag created in the repository.
        description: Human description, also the tag message body.
        timestamp: Creation time.
        commit_hash: HEAD when the baseline was taken.
        artifact_commits: Latest commit per tracked artifact.
        added_artifacts: IDs new since the preceding baseline.
        removed_artifacts: IDs gone since the preceding baseline.
    """

    id: str
    project_id: str
    version: str
    name: str
    tag_name: str
    description: str
    timestamp: datetime
    commit_hash: str | None = None
    artifact_commits: Mapping[str, ArtifactCommit] = field(
        default_factory=lambda: MappingProxyType({})
    )
    added_artifacts: tuple[str, ...] = ()
    removed_artifacts: tuple[str, ...] = ()

    @property
    def path(self) -> str:
        return f"baselines/baseline-{self.id}.json"

    def to_dict(self) -> dict[str, Any]:  # pyright: ignore[reportExplicitAny]
        """Serialize with the on-disk camelCase keys."""
        return {
            "id": self.id,
            "projectId": self.project_id,
            "version": self.version,
            "name": self.name,
            "tagName": self.tag_name,
            "description": self.description,
            "timestamp": int(self.timestamp.timestamp() * 1000),
            "commitHash": self.commit_hash,
            "artifactCommits": {
                artifact_id: {"commitHash": entry.commit_hash, "type": entry.type.value}
                for artifact_id, entry in sorted(self.artifact_commits.items())
            },
            "addedArtifacts": list(self.added_artifacts),
            "removedArtifacts": list(self.removed_artifacts),
        }

    @classmethod
    def from_dict(
        cls,
        data: Mapping[str, Any],  # pyright: ignore[reportExplicitAny]
        *,
        path: str | None = None,
    ) -> "Baseline":
        """Deserialize a baseline record.

        Raises:
            StorageParseError: If required keys are missing or malformed.
        """
        try:
            commits = {
                str(artifact_id): ArtifactCommit(
                    commit_hash=str(entry["commitHash"]),
                    type=ArtifactType(entry["type"]),
                )
                for artifact_id, entry in dict(data.get("artifactCommits", {})).items()
            }
            version = str(data["version"])
            return cls(
                id=str(data["id"]),
                project_id=str(data["projectId"]),
                version=version,
                name=str(data.get("name", version)),
                tag_name=str(data.get("tagName", data.get("name", version))),
                description=str(data.get("description", "")),
                timestamp=parse_timestamp(data.get("timestamp"))
                or datetime.fromtimestamp(0, tz=UTC),
                commit_hash=data.get("commitHash"),
                artifact_commits=MappingProxyType(commits),
                added_artifacts=tuple(data.get("addedArtifacts") or ()),
                removed_artifacts=tuple(data.get("removedArtifacts") or ()),
            )
        except (KeyError, TypeError, ValueError) as e:
            msg = f"Malformed baseline record: {e}"
            raise StorageParseError(
                msg, path=path, content_type="baseline", cause=e
            ) from e


@dataclass(frozen=True, slots=True)
class ModifiedArtifact:
    """An artifact whose commit differs between two baselines."""

    id: str
    type: ArtifactType
    previous_commit: str
    current_commit: str
    previous_revision: str
    current_revision: str


@dataclass(frozen=True, slots=True)
class BaselineDiff:
    """Set difference between two baselines, each part sorted by ID."""

    added: tuple[str, ...] = ()
    removed: tuple[str, ...] = ()
    modified: tuple[ModifiedArtifact, ...] = ()

    @property
    def modified_ids(self) -> tuple[str, ...]:
        return tuple(item.id for item in self.modified)

    @property
    def is_empty(self) -> bool:
        return not (self.added or self.removed or self.modified)


@dataclass(frozen=True, slots=True)
class RevisionEntry:
    """One commit in an artifact file's history."""

    commit: str
    timestamp: datetime
    message: str
    revision: str


@dataclass(frozen=True, slots=True)
class GraphComparison:
    """Differences between two artifact graphs."""

    added_artifacts: tuple[str, ...] = ()
    removed_artifacts: tuple[str, ...] = ()
    added_edges: tuple[Edge, ...] = ()
    removed_edges: tuple[Edge, ...] = ()
