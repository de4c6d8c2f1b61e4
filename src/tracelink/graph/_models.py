# ruff: noqa: TC003  # ArtifactType needed at runtime for dataclass fields
"""Result types for the artifact graph, impact analysis, and gap detection.

All records are frozen; grouping views on ImpactChain are derived from its
node tuple on access rather than stored separately.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from types import MappingProxyType
from typing import Final

from tracelink.artifacts import ArtifactType, LinkType

__all__ = [
    "UNKNOWN_TYPE",
    "ArtifactGap",
    "Direction",
    "Edge",
    "EdgeOrigin",
    "GapKind",
    "GapReport",
    "ImpactChain",
    "ImpactNode",
    "ImpactSummary",
    "TypeCoverage",
    "type_key",
]

UNKNOWN_TYPE: Final = "unknown"


def type_key(artifact_type: ArtifactType | None) -> str:
    """Grouping key for an optional artifact type."""
    return artifact_type.value if artifact_type is not None else UNKNOWN_TYPE


class EdgeOrigin(StrEnum):
    """Physical representation an edge was read from."""

    STANDALONE = "standalone"
    EMBEDDED = "embedded"
    IMPLICIT = "implicit"


class Direction(StrEnum):
    """Traversal direction for impact analysis."""

    UPSTREAM = "upstream"
    DOWNSTREAM = "downstream"
    BOTH = "both"


@dataclass(frozen=True, slots=True)
class Edge:
    """A canonical directed edge.

    Endpoint types are resolved once when the edge enters the graph and
    are None only for IDs with neither a loaded artifact nor a known prefix.

    Attributes:
        source_id: Artifact the edge starts at.
        target_id: Artifact the edge points to; may not exist.
        link_type: Relation from source to target.
        source_type: Resolved type of the source.
        target_type: Resolved type of the target.
        origin: Representation the edge came from.
        link_id: Standalone link ID, None for embedded and implicit edges.
    """

    source_id: str
    target_id: str
    link_type: LinkType
    source_type: ArtifactType | None = None
    target_type: ArtifactType | None = None
    origin: EdgeOrigin = EdgeOrigin.STANDALONE
    link_id: str | None = None

    @property
    def key(self) -> tuple[str, str, LinkType]:
        """Identity used for de-duplication."""
        return (self.source_id, self.target_id, self.link_type)


@dataclass(frozen=True, slots=True)
class ImpactNode:
    """An artifact reached by impact traversal.

    Attributes:
        artifact_id: The reached artifact.
        artifact_type: Its resolved type, if known.
        level: 1-based distance from the source.
        direction: UPSTREAM or DOWNSTREAM, the direction it was first found in.
        link_type: Type of the traversed edge.
        parent_id: Node it was reached from.
    """

    artifact_id: str
    artifact_type: ArtifactType | None
    level: int
    direction: Direction
    link_type: LinkType
    parent_id: str


@dataclass(frozen=True, slots=True)
class ImpactChain:
    """Result of an impact traversal.

    Attributes:
        source_id: Artifact the traversal started from.
        direction: Requested direction.
        max_depth: Requested depth bound; 0 means unlimited.
        nodes: Reached artifacts in discovery order.
    """

    source_id: str
    direction: Direction
    max_depth: int
    nodes: tuple[ImpactNode, ...] = ()

    @property
    def by_level(self) -> Mapping[int, tuple[ImpactNode, ...]]:
        grouped: dict[int, list[ImpactNode]] = {}
        for node in self.nodes:
            grouped.setdefault(node.level, []).append(node)
        return MappingProxyType({k: tuple(v) for k, v in sorted(grouped.items())})

    @property
    def by_type(self) -> Mapping[str, tuple[ImpactNode, ...]]:
        grouped: dict[str, list[ImpactNode]] = {}
        for node in self.nodes:
            grouped.setdefault(type_key(node.artifact_type), []).append(node)
        return MappingProxyType({k: tuple(v) for k, v in grouped.items()})

    @property
    def is_empty(self) -> bool:
        return not self.nodes


@dataclass(frozen=True, slots=True)
class ImpactSummary:
    """Counts over an impact chain."""

    total: int
    upstream: int
    downstream: int
    by_artifact_type: Mapping[str, int] = field(
        default_factory=lambda: MappingProxyType({})
    )
    max_depth: int = 0


class GapKind(StrEnum):
    """Connectivity status, listed in precedence order."""

    ORPHAN_LINK = "orphan_link"
    UNLINKED = "unlinked"
    NO_OUTGOING = "no_outgoing"
    NO_INCOMING = "no_incoming"
    NONE = "none"


@dataclass(frozen=True, slots=True)
class ArtifactGap:
    """Connectivity status of one artifact.

    Attributes:
        artifact_id: The classified artifact.
        artifact_type: Its type.
        kind: Exactly one status.
        incoming: Number of incoming edges.
        outgoing: Number of outgoing edges.
        orphan_targets: Missing target IDs in edge order.
        details: Display text, e.g. ``"→ UC-009, TC-004"`` for orphan links.
    """

    artifact_id: str
    artifact_type: ArtifactType | None
    kind: GapKind
    incoming: int = 0
    outgoing: int = 0
    orphan_targets: tuple[str, ...] = ()
    details: str = ""

    @property
    def has_gap(self) -> bool:
        return self.kind is not GapKind.NONE


@dataclass(frozen=True, slots=True)
class TypeCoverage:
    """Link coverage of one artifact type."""

    artifact_type: str
    total: int
    linked: int
    gaps: int

    @property
    def coverage_percentage(self) -> float:
        """Share of artifacts with at least one edge, 0-100, one decimal."""
        if self.total == 0:
            return 0.0
        return round(self.linked / self.total * 100, 1)


@dataclass(frozen=True, slots=True)
class GapReport:
    """Gap detection over a whole graph.

    Attributes:
        statuses: A status for every artifact, in graph order.
        coverage: Coverage per artifact type.
    """

    statuses: tuple[ArtifactGap, ...]
    coverage: Mapping[str, TypeCoverage] = field(
        default_factory=lambda: MappingProxyType({})
    )

    @property
    def gaps(self) -> tuple[ArtifactGap, ...]:
        """Only the artifacts with an issue."""
        return tuple(status for status in self.statuses if status.has_gap)

    @property
    def by_kind(self) -> Mapping[GapKind, int]:
        counts = dict.fromkeys(GapKind, 0)
        for status in self.statuses:
            counts[status.kind] += 1
        return MappingProxyType(counts)

    def status_of(self, artifact_id: str) -> ArtifactGap | None:
        for status in self.statuses:
            if status.artifact_id == artifact_id:
                return status
        return None
