"""Artifacts, links, and projects.

Classes:
    Artifact: A tracked engineering artifact.
    ArtifactType: Closed set of artifact kinds with ID prefix and folder.
    Link: Standalone typed link between two artifacts.
    LinkType: Closed set of link relations with inverses.
    Project: Named grouping of artifacts.
    ArtifactStore: Artifact persistence and lifecycle.
    LinkStore: Standalone link persistence.
    ProjectStore: Project persistence and membership.
"""

from tracelink.artifacts._artifact_store import ArtifactStore, CascadeResult
from tracelink.artifacts._link_store import LINKS_FOLDER, LinkStore
from tracelink.artifacts._migration import MigrationReport, migrate_embedded_links
from tracelink.artifacts._models import (
    INITIAL_REVISION,
    Artifact,
    ArtifactLink,
    ArtifactType,
    IncomingLink,
    Link,
    LinkType,
    Project,
    next_revision,
    resolve_artifact_type,
)
from tracelink.artifacts._project_store import PROJECTS_FOLDER, ProjectStore
from tracelink.artifacts._serialize import (
    artifact_from_document,
    artifact_to_document,
    link_from_document,
    link_to_document,
    parse_timestamp,
    project_from_document,
    project_to_document,
    revision_from_document,
)

__all__ = [
    "INITIAL_REVISION",
    "LINKS_FOLDER",
    "PROJECTS_FOLDER",
    "Artifact",
    "ArtifactLink",
    "ArtifactStore",
    "ArtifactType",
    "CascadeResult",
    "IncomingLink",
    "Link",
    "LinkStore",
    "LinkType",
    "MigrationReport",
    "Project",
    "ProjectStore",
    "artifact_from_document",
    "artifact_to_document",
    "link_from_document",
    "link_to_document",
    "migrate_embedded_links",
    "next_revision",
    "parse_timestamp",
    "project_from_document",
    "project_to_document",
    "resolve_artifact_type",
    "revision_from_document",
]
