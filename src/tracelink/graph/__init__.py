"""Artifact graph, impact analysis, and gap detection.

Classes:
    ArtifactGraph: Canonical de-duplicated edge list over artifacts.
    Edge: A typed directed edge with resolved endpoint types.
    ImpactChain: Result of an impact traversal.
    GapReport: Connectivity status of every artifact plus coverage.

Functions:
    get_impact_chain: Breadth-first upstream/downstream reachability.
    detect_gaps: Classify every artifact's connectivity.
"""

from tracelink.graph._gaps import classify_artifact, coverage_by_type, detect_gaps
from tracelink.graph._graph import ArtifactGraph
from tracelink.graph._impact import (
    get_affected_artifact_ids,
    get_impact_chain,
    get_impact_summary,
    get_nodes_at_level,
)
from tracelink.graph._models import (
    UNKNOWN_TYPE,
    ArtifactGap,
    Direction,
    Edge,
    EdgeOrigin,
    GapKind,
    GapReport,
    ImpactChain,
    ImpactNode,
    ImpactSummary,
    TypeCoverage,
    type_key,
)

__all__ = [
    "UNKNOWN_TYPE",
    "ArtifactGap",
    "ArtifactGraph",
    "Direction",
    "Edge",
    "EdgeOrigin",
    "GapKind",
    "GapReport",
    "ImpactChain",
    "ImpactNode",
    "ImpactSummary",
    "TypeCoverage",
    "classify_artifact",
    "coverage_by_type",
    "detect_gaps",
    "get_affected_artifact_ids",
    "get_impact_chain",
    "get_impact_summary",
    "get_nodes_at_level",
    "type_key",
]
