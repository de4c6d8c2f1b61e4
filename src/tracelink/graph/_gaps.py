"""Connectivity gap detection.

Every artifact in a graph gets exactly one status, checked in precedence
order: ``orphan_link`` (an outgoing edge to a missing artifact), then
``unlinked``, ``no_outgoing``, ``no_incoming``, and finally ``none``.
"""

from collections.abc import Iterable
from types import MappingProxyType

from tracelink.artifacts import ArtifactType
from tracelink.graph._graph import ArtifactGraph
from tracelink.graph._models import (
    ArtifactGap,
    GapKind,
    GapReport,
    TypeCoverage,
    type_key,
)

__all__ = ["classify_artifact", "coverage_by_type", "detect_gaps"]


def classify_artifact(graph: ArtifactGraph, artifact_id: str) -> ArtifactGap:
    """Classify one artifact's connectivity."""
    outgoing = graph.edges_from(artifact_id)
    incoming = graph.edges_to(artifact_id)
    orphans = tuple(
        dict.fromkeys(
            e.target_id for e in outgoing if not graph.exists(e.target_id)
        )
    )

    if orphans:
        kind = GapKind.ORPHAN_LINK
    elif not outgoing and not incoming:
        kind = GapKind.UNLINKED
    elif not outgoing:
        kind = GapKind.NO_OUTGOING
    elif not incoming:
        kind = GapKind.NO_INCOMING
    else:
        kind = GapKind.NONE

    return ArtifactGap(
        artifact_id=artifact_id,
        artifact_type=graph.artifact_type(artifact_id),
        kind=kind,
        incoming=len(incoming),
        outgoing=len(outgoing),
        orphan_targets=orphans,
        details=f"→ {', '.join(orphans)}" if orphans else "",
    )


def coverage_by_type(
    graph: ArtifactGraph,
    statuses: Iterable[ArtifactGap],
) -> dict[str, TypeCoverage]:
    """Per-type coverage: how many artifacts take part in at least one edge.

    Every artifact type is reported, including types with no artifacts.
    """
    totals: dict[str, list[int]] = {t.value: [0, 0] for t in ArtifactType}
    for status in statuses:
        if not graph.has_artifact(status.artifact_id):
            continue
        counts = totals.setdefault(type_key(status.artifact_type), [0, 0])
        counts[0] += 1
        if status.incoming or status.outgoing:
            counts[1] += 1
    return {
        key: TypeCoverage(
            artifact_type=key, total=total, linked=linked, gaps=total - linked
        )
        for key, (total, linked) in totals.items()
    }


def detect_gaps(graph: ArtifactGraph) -> GapReport:
    """Classify every artifact in ``graph`` and compute coverage.

    Orphan links are a data-quality finding, never an error.
    """
    statuses = tuple(
        classify_artifact(graph, artifact_id) for artifact_id in graph.artifact_ids
    )
    return GapReport(
        statuses=statuses,
        coverage=MappingProxyType(coverage_by_type(graph, statuses)),
    )
