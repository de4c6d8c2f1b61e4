"""Impact analysis: transitive upstream and downstream chains.

All functions are pure. They never mutate their inputs and return frozen
results, so they are safe to call repeatedly on the same snapshot.
"""

from collections import deque
from collections.abc import Iterable
from types import MappingProxyType
from typing import NamedTuple

from tracelink.artifacts import ArtifactType, LinkType
from tracelink.graph._graph import ArtifactGraph
from tracelink.graph._models import (
    Direction,
    Edge,
    ImpactChain,
    ImpactNode,
    ImpactSummary,
    type_key,
)

__all__ = [
    "get_affected_artifact_ids",
    "get_impact_chain",
    "get_impact_summary",
    "get_nodes_at_level",
]


class _Step(NamedTuple):
    artifact_id: str
    artifact_type: ArtifactType | None
    level: int
    direction: Direction
    link_type: LinkType
    parent_id: str


class _Adjacency:
    __slots__ = ("incoming", "outgoing")

    def __init__(self, edges: Iterable[Edge]) -> None:
        self.outgoing: dict[str, list[Edge]] = {}
        self.incoming: dict[str, list[Edge]] = {}
        for edge in edges:
            self.outgoing.setdefault(edge.source_id, []).append(edge)
            self.incoming.setdefault(edge.target_id, []).append(edge)

    def neighbours(
        self, artifact_id: str, direction: Direction, level: int
    ) -> list[_Step]:
        steps: list[_Step] = []
        if direction is Direction.DOWNSTREAM:
            for edge in self.outgoing.get(artifact_id, ()):
                steps.append(
                    _Step(
                        edge.target_id,
                        edge.target_type,
                        level,
                        direction,
                        edge.link_type,
                        artifact_id,
                    )
                )
        else:
            for edge in self.incoming.get(artifact_id, ()):
                steps.append(
                    _Step(
                        edge.source_id,
                        edge.source_type,
                        level,
                        direction,
                        edge.link_type,
                        artifact_id,
                    )
                )
        return steps


def get_impact_chain(
    source_id: str,
    edges: ArtifactGraph | Iterable[Edge],
    direction: Direction = Direction.BOTH,
    max_depth: int = 0,
) -> ImpactChain:
    """Compute the artifacts transitively reachable from ``source_id``.

    Breadth-first: downstream follows ``source -> target`` edges, upstream
    follows them in reverse. In BOTH mode the direct downstream neighbours
    are queued before the upstream ones, and a node keeps the direction it
    was first discovered in; each node is then only expanded further in
    that direction. The source itself is never emitted.

    Args:
        source_id: Artifact to analyze. Unknown IDs yield an empty chain.
        edges: A graph or a canonical edge list.
        direction: UPSTREAM, DOWNSTREAM, or BOTH.
        max_depth: Maximum level to include; 0 means unlimited.

    Returns:
        The chain, with nodes in discovery order.
    """
    edge_list = edges.edges if isinstance(edges, ArtifactGraph) else tuple(edges)
    adjacency = _Adjacency(edge_list)

    visited = {source_id}
    queue: deque[_Step] = deque()
    if direction in (Direction.DOWNSTREAM, Direction.BOTH):
        queue.extend(adjacency.neighbours(source_id, Direction.DOWNSTREAM, 1))
    if direction in (Direction.UPSTREAM, Direction.BOTH):
        queue.extend(adjacency.neighbours(source_id, Direction.UPSTREAM, 1))

    nodes: list[ImpactNode] = []
    while queue:
        step = queue.popleft()
        if step.artifact_id in visited:
            continue
        if max_depth > 0 and step.level > max_depth:
            continue
        visited.add(step.artifact_id)
        nodes.append(
            ImpactNode(
                artifact_id=step.artifact_id,
                artifact_type=step.artifact_type,
                level=step.level,
                direction=step.direction,
                link_type=step.link_type,
                parent_id=step.parent_id,
            )
        )
        queue.extend(
            s
            for s in adjacency.neighbours(
                step.artifact_id, step.direction, step.level + 1
            )
            if s.artifact_id not in visited
        )

    return ImpactChain(
        source_id=source_id,
        direction=direction,
        max_depth=max_depth,
        nodes=tuple(nodes),
    )


def get_impact_summary(chain: ImpactChain) -> ImpactSummary:
    """Summarize a chain: totals per direction and per artifact type."""
    by_type: dict[str, int] = {}
    upstream = 0
    for node in chain.nodes:
        key = type_key(node.artifact_type)
        by_type[key] = by_type.get(key, 0) + 1
        if node.direction is Direction.UPSTREAM:
            upstream += 1
    return ImpactSummary(
        total=len(chain.nodes),
        upstream=upstream,
        downstream=len(chain.nodes) - upstream,
        by_artifact_type=MappingProxyType(by_type),
        max_depth=max((node.level for node in chain.nodes), default=0),
    )


def get_affected_artifact_ids(chain: ImpactChain) -> tuple[str, ...]:
    return tuple(node.artifact_id for node in chain.nodes)


def get_nodes_at_level(chain: ImpactChain, level: int) -> tuple[ImpactNode, ...]:
    return chain.by_level.get(level, ())
