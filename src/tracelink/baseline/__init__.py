"""Baselines: immutable, tagged snapshots of a project's artifacts.

Classes:
    Baseline: Persisted baseline record.
    BaselineManager: Creates, lists, and diffs baselines.
    TagCommitCache: Explicit tag to commit cache owned by the manager.
"""

from tracelink.baseline._cache import TagCommitCache
from tracelink.baseline._manager import (
    BASELINES_FOLDER,
    BaselineManager,
    display_name,
    tag_name_for,
)
from tracelink.baseline._models import (
    ArtifactCommit,
    Baseline,
    BaselineDiff,
    GraphComparison,
    ModifiedArtifact,
    RevisionEntry,
)
from tracelink.baseline._snapshot import compare_graphs, load_graph_at

__all__ = [
    "BASELINES_FOLDER",
    "ArtifactCommit",
    "Baseline",
    "BaselineDiff",
    "BaselineManager",
    "GraphComparison",
    "ModifiedArtifact",
    "RevisionEntry",
    "TagCommitCache",
    "compare_graphs",
    "display_name",
    "load_graph_at",
    "tag_name_for",
]
