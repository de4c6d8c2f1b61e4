"""Unified in-memory edge model over artifacts and links.

ArtifactGraph merges the three physical link representations (standalone
link records, arrays embedded in artifact front-matter, and a test case's
legacy ``requirementIds``) into one canonical, de-duplicated edge list
indexed in both directions.
"""

from collections.abc import Iterable, Mapping, Sequence
from types import MappingProxyType
from typing import Final

import rustworkx as rx

from tracelink.artifacts import (
    Artifact,
    ArtifactType,
    IncomingLink,
    Link,
    LinkType,
    Project,
    resolve_artifact_type,
)
from tracelink.graph._models import Edge, EdgeOrigin

__all__ = ["ArtifactGraph"]


class ArtifactGraph:
    """Canonical edge list over a set of artifacts.

    Edges are unique on ``(source_id, target_id, link_type)``, the first
    occurrence winning. Self-loops are dropped. Edges whose target does
    not exist are kept; GapDetector reports them.

    Example:
        >>> graph = ArtifactGraph.build(artifacts, links)
        >>> [e.target_id for e in graph.edges_from("REQ-001")]
        ['UC-001']
    """

    __slots__: Final = (
        "_artifacts",
        "_edges",
        "_incoming",
        "_known_ids",
        "_outgoing",
        "_types",
    )

    _artifacts: dict[str, Artifact]
    _edges: list[Edge]
    _known_ids: frozenset[str]
    _outgoing: dict[str, list[Edge]]
    _incoming: dict[str, list[Edge]]
    _types: dict[str, ArtifactType | None]

    def __init__(
        self,
        artifacts: Iterable[Artifact] = (),
        edges: Iterable[Edge] = (),
        *,
        known_ids: Iterable[str] = (),
    ) -> None:
        """Create a graph from artifacts and already-typed edges.

        ``known_ids`` names artifacts that exist but are not nodes, such as
        members of other projects. Prefer ``build`` for loading from stored
        records.
        """
        self._artifacts = {}
        self._types = {}
        for artifact in artifacts:
            if artifact.id not in self._artifacts:
                self._artifacts[artifact.id] = artifact
                self._types[artifact.id] = artifact.type
        self._known_ids = frozenset(self._artifacts).union(known_ids)

        self._edges = []
        self._outgoing = {}
        self._incoming = {}
        seen: set[tuple[str, str, LinkType]] = set()
        for edge in edges:
            if edge.source_id == edge.target_id or edge.key in seen:
                continue
            seen.add(edge.key)
            self._edges.append(edge)
            self._outgoing.setdefault(edge.source_id, []).append(edge)
            self._incoming.setdefault(edge.target_id, []).append(edge)
            for endpoint, endpoint_type in (
                (edge.source_id, edge.source_type),
                (edge.target_id, edge.target_type),
            ):
                _ = self._types.setdefault(endpoint, endpoint_type)

    @classmethod
    def build(
        cls,
        artifacts: Iterable[Artifact],
        links: Iterable[Link] = (),
        *,
        project: Project | None = None,
    ) -> "ArtifactGraph":
        """Merge stored artifacts and links into a graph.

        Soft-deleted artifacts are excluded. When ``project`` is given,
        nodes are limited to its members and only links that are global or
        scoped to it are visible. Artifacts outside the project still count
        as existing, so edges into other projects are not orphans.

        Edge merge order is standalone, then embedded, then implicit.
        """
        live = [a for a in artifacts if not a.is_deleted]
        nodes = [a for a in live if project is None or project.contains(a.id)]
        types: dict[str, ArtifactType] = {a.id: a.type for a in live}

        def resolve(artifact_id: str) -> ArtifactType | None:
            if artifact_id in types:
                return types[artifact_id]
            return resolve_artifact_type(artifact_id)

        edges: list[Edge] = [
            Edge(
                source_id=link.source_id,
                target_id=link.target_id,
                link_type=link.link_type,
                source_type=resolve(link.source_id),
                target_type=resolve(link.target_id),
                origin=EdgeOrigin.STANDALONE,
                link_id=link.id,
            )
            for link in links
            if project is None or link.visible_in(project.id)
        ]
        edges.extend(
            Edge(
                source_id=artifact.id,
                target_id=embedded.target_id,
                link_type=embedded.link_type,
                source_type=artifact.type,
                target_type=resolve(embedded.target_id),
                origin=EdgeOrigin.EMBEDDED,
            )
            for artifact in nodes
            for embedded in artifact.linked_artifacts
        )
        edges.extend(
            Edge(
                source_id=artifact.id,
                target_id=requirement_id,
                link_type=LinkType.VERIFIES,
                source_type=artifact.type,
                target_type=resolve(requirement_id),
                origin=EdgeOrigin.IMPLICIT,
            )
            for artifact in nodes
            if artifact.type is ArtifactType.TEST_CASE
            for requirement_id in artifact.requirement_ids
        )
        return cls(nodes, edges, known_ids=types)

    # -------------------------------------------------------------------------
    # Nodes
    # -------------------------------------------------------------------------

    @property
    def artifacts(self) -> Mapping[str, Artifact]:
        return MappingProxyType(self._artifacts)

    @property
    def artifact_ids(self) -> tuple[str, ...]:
        return tuple(self._artifacts)

    def has_artifact(self, artifact_id: str) -> bool:
        return artifact_id in self._artifacts

    def exists(self, artifact_id: str) -> bool:
        """Whether the artifact exists, whether or not it is a node."""
        return artifact_id in self._known_ids

    def get_artifact(self, artifact_id: str) -> Artifact | None:
        return self._artifacts.get(artifact_id)

    def artifact_type(self, artifact_id: str) -> ArtifactType | None:
        """Type resolved when the ID entered the graph, None if unknown."""
        return self._types.get(artifact_id)

    def __len__(self) -> int:
        return len(self._artifacts)

    def __contains__(self, artifact_id: object) -> bool:
        return artifact_id in self._artifacts

    # -------------------------------------------------------------------------
    # Edges
    # -------------------------------------------------------------------------

    @property
    def edges(self) -> tuple[Edge, ...]:
        return tuple(self._edges)

    def edges_from(self, artifact_id: str) -> tuple[Edge, ...]:
        """Outgoing edges in insertion order."""
        return tuple(self._outgoing.get(artifact_id, ()))

    def edges_to(self, artifact_id: str) -> tuple[Edge, ...]:
        """Incoming edges in insertion order."""
        return tuple(self._incoming.get(artifact_id, ()))

    def incoming_links(self, artifact_id: str) -> tuple[IncomingLink, ...]:
        """Incoming edges as seen from the target, with inverse types."""
        return tuple(
            IncomingLink(
                link_id=edge.link_id,
                source_id=edge.source_id,
                source_type=edge.source_type,
                link_type=edge.link_type.inverse,
            )
            for edge in self.edges_to(artifact_id)
        )

    def dangling_edges(self) -> tuple[Edge, ...]:
        """Edges whose target does not exist."""
        return tuple(e for e in self._edges if e.target_id not in self._known_ids)

    # -------------------------------------------------------------------------
    # Structure
    # -------------------------------------------------------------------------

    def to_digraph(
        self, link_types: Iterable[LinkType] | None = None
    ) -> tuple["rx.PyDiGraph[str, Edge]", dict[str, int]]:
        """Build a rustworkx digraph over artifacts and edge endpoints.

        Args:
            link_types: Only include edges of these types. None includes all.

        Returns:
            The graph (node payload is the artifact ID, edge payload the
            Edge) and a mapping of artifact ID to node index.
        """
        allowed = frozenset(link_types) if link_types is not None else None
        graph = rx.PyDiGraph(check_cycle=False)
        node_indices: dict[str, int] = {}

        def index_of(artifact_id: str) -> int:
            if artifact_id not in node_indices:
                node_indices[artifact_id] = graph.add_node(artifact_id)
            return node_indices[artifact_id]

        for artifact_id in self._artifacts:
            _ = index_of(artifact_id)
        for edge in self._edges:
            if allowed is None or edge.link_type in allowed:
                _ = graph.add_edge(
                    index_of(edge.source_id), index_of(edge.target_id), edge
                )
        return graph, node_indices

    def find_cycle(
        self, link_types: Iterable[LinkType] | None = None
    ) -> tuple[str, ...]:
        """Return one directed cycle as a closed ID path, or ``()`` if acyclic."""
        graph, _ = self.to_digraph(link_types)
        cycle_edges = rx.digraph_find_cycle(graph)
        if not cycle_edges:
            return ()
        cycle_ids = [graph[source_idx] for source_idx, _ in cycle_edges]
        _, last_target = cycle_edges[-1]
        cycle_ids.append(graph[last_target])
        return tuple(cycle_ids)

    def find_cycles(
        self, link_types: Iterable[LinkType] | None = None
    ) -> list[tuple[str, ...]]:
        """Return every elementary directed cycle as a tuple of IDs."""
        graph, _ = self.to_digraph(link_types)
        cycles = [
            tuple(graph[idx] for idx in cycle) for cycle in rx.simple_cycles(graph)
        ]
        return sorted(cycles)

    def weak_components(self) -> list[frozenset[str]]:
        """Group artifacts by weak connectivity, largest group first."""
        graph, _ = self.to_digraph()
        components = [
            frozenset(
                graph[idx] for idx in component if graph[idx] in self._artifacts
            )
            for component in rx.weakly_connected_components(graph)
        ]
        return sorted(
            (c for c in components if c), key=lambda c: (-len(c), sorted(c)[0])
        )

    def traceability_matrix(
        self, row_ids: Sequence[str], column_ids: Sequence[str] | None = None
    ) -> dict[tuple[str, str], str]:
        """Relation between every ordered pair of distinct IDs.

        A cell holds ``"parent"`` when the row is a parent of the column
        (via ``parent_ids``), ``"child"`` for the reverse, otherwise the
        link type of the first edge between the two in either direction.
        Pairs with no relation are omitted.
        """
        columns = column_ids if column_ids is not None else row_ids
        cells: dict[tuple[str, str], str] = {}
        for row in row_ids:
            row_artifact = self._artifacts.get(row)
            for column in columns:
                if row == column:
                    continue
                column_artifact = self._artifacts.get(column)
                if column_artifact is not None and row in column_artifact.parent_ids:
                    cells[row, column] = "parent"
                elif row_artifact is not None and column in row_artifact.parent_ids:
                    cells[row, column] = "child"
                else:
                    relation = self._relation(row, column)
                    if relation is not None:
                        cells[row, column] = relation.value
        return cells

    def _relation(self, first: str, second: str) -> LinkType | None:
        for edge in self._outgoing.get(first, ()):
            if edge.target_id == second:
                return edge.link_type
        for edge in self._outgoing.get(second, ()):
            if edge.target_id == first:
                return edge.link_type
        return None
