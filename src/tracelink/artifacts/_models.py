# ruff: noqa: TC003  # datetime needed at runtime for dataclass fields
"""Artifact, link, and project data models.

This module defines the closed artifact-type and link-type variants and
the immutable records persisted in the workspace.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from types import MappingProxyType
from typing import Any, Final

__all__ = [
    "Artifact",
    "ArtifactLink",
    "ArtifactType",
    "IncomingLink",
    "Link",
    "LinkType",
    "Project",
    "next_revision",
    "resolve_artifact_type",
]

INITIAL_REVISION: Final = "01"


class ArtifactType(StrEnum):
    """Kind of tracked engineering artifact.

    The value is the on-disk type name; ``prefix`` and ``folder`` give the
    default ID prefix and storage folder.
    """

    REQUIREMENT = "requirement"
    USE_CASE = "useCase"
    TEST_CASE = "testCase"
    INFORMATION = "information"
    RISK = "risk"

    @property
    def prefix(self) -> str:
        return _ARTIFACT_PREFIXES[self]

    @property
    def folder(self) -> str:
        return _ARTIFACT_FOLDERS[self]

    @classmethod
    def from_prefix(cls, artifact_id: str) -> "ArtifactType | None":
        """Infer the type of an ID from its prefix.

        Only used for IDs whose artifact is not loaded (dangling link
        targets); loaded artifacts carry their type from the folder they
        were read from.
        """
        prefix, sep, _ = artifact_id.partition("-")
        if not sep:
            return None
        return _PREFIX_TO_TYPE.get(prefix.upper())

    @classmethod
    def from_folder(cls, folder: str) -> "ArtifactType | None":
        return _FOLDER_TO_TYPE.get(folder)


_ARTIFACT_PREFIXES: Final = MappingProxyType(
    {
        ArtifactType.REQUIREMENT: "REQ",
        ArtifactType.USE_CASE: "UC",
        ArtifactType.TEST_CASE: "TC",
        ArtifactType.INFORMATION: "INFO",
        ArtifactType.RISK: "RISK",
    }
)

_ARTIFACT_FOLDERS: Final = MappingProxyType(
    {
        ArtifactType.REQUIREMENT: "requirements",
        ArtifactType.USE_CASE: "usecases",
        ArtifactType.TEST_CASE: "testcases",
        ArtifactType.INFORMATION: "information",
        ArtifactType.RISK: "risks",
    }
)

_PREFIX_TO_TYPE: Final = MappingProxyType({v: k for k, v in _ARTIFACT_PREFIXES.items()})
_FOLDER_TO_TYPE: Final = MappingProxyType({v: k for k, v in _ARTIFACT_FOLDERS.items()})


class LinkType(StrEnum):
    """Relation kind of a directed link.

    Every directional type has an inverse seen from the target's side;
    symmetric types are their own inverse.
    """

    PARENT = "parent"
    CHILD = "child"
    DERIVED_FROM = "derived_from"
    DERIVES_TO = "derives_to"
    DEPENDS_ON = "depends_on"
    DEPENDED_ON_BY = "depended_on_by"
    REFINES = "refines"
    REFINED_BY = "refined_by"
    SATISFIES = "satisfies"
    SATISFIED_BY = "satisfied_by"
    VERIFIES = "verifies"
    VERIFIED_BY = "verified_by"
    CONSTRAINS = "constrains"
    CONSTRAINED_BY = "constrained_by"
    REQUIRES = "requires"
    REQUIRED_BY = "required_by"
    CONFLICTS_WITH = "conflicts_with"
    DUPLICATES = "duplicates"
    RELATED_TO = "related_to"

    @property
    def inverse(self) -> "LinkType":
        return _LINK_INVERSE.get(self, self)

    @property
    def is_symmetric(self) -> bool:
        return self in _SYMMETRIC_TYPES

    @property
    def label(self) -> str:
        """Human-readable label, e.g. "Depends on"."""
        if self is LinkType.PARENT:
            return "Parent of"
        if self is LinkType.CHILD:
            return "Child of"
        return self.value.replace("_", " ").capitalize()


_DIRECTIONAL_PAIRS: Final = (
    (LinkType.PARENT, LinkType.CHILD),
    (LinkType.DERIVED_FROM, LinkType.DERIVES_TO),
    (LinkType.DEPENDS_ON, LinkType.DEPENDED_ON_BY),
    (LinkType.REFINES, LinkType.REFINED_BY),
    (LinkType.SATISFIES, LinkType.SATISFIED_BY),
    (LinkType.VERIFIES, LinkType.VERIFIED_BY),
    (LinkType.CONSTRAINS, LinkType.CONSTRAINED_BY),
    (LinkType.REQUIRES, LinkType.REQUIRED_BY),
)

_LINK_INVERSE: Final = MappingProxyType(
    {a: b for a, b in _DIRECTIONAL_PAIRS} | {b: a for a, b in _DIRECTIONAL_PAIRS}
)

_SYMMETRIC_TYPES: Final = frozenset(
    {LinkType.CONFLICTS_WITH, LinkType.DUPLICATES, LinkType.RELATED_TO}
)


def next_revision(revision: str) -> str:
    """Return the revision following ``revision``.

    Revisions are zero-padded to two digits and grow past that as needed
    ("09" -> "10", "99" -> "100"). Unparsable input restarts at "01".
    """
    try:
        current = int(revision)
    except ValueError:
        return INITIAL_REVISION
    return f"{current + 1:02d}"


@dataclass(frozen=True, slots=True)
class ArtifactLink:
    """Link embedded in an artifact's front-matter (legacy representation).

    Attributes:
        target_id: ID of the linked artifact.
        link_type: Relation from the owning artifact to the target.
    """

    target_id: str
    link_type: LinkType


@dataclass(frozen=True, slots=True)
class Artifact:
    """A tracked engineering artifact.

    Attributes:
        id: Type-prefixed identifier, e.g. ``REQ-007``.
        type: Artifact type, taken from the folder the artifact lives in.
        title: Short title.
        revision: Zero-padded revision counter, bumped on content changes.
        status: Workflow status.
        priority: Priority label.
        description: Markdown body.
        parent_ids: IDs of hierarchical parents.
        linked_artifacts: Embedded links (legacy representation).
        requirement_ids: Requirements a test case verifies (legacy implicit
            association, test cases only).
        is_deleted: Soft-delete flag.
        deleted_at: When the artifact was soft-deleted.
        date_created: Creation time.
        last_modified: Last modification time.
        extra: Front-matter keys not modelled above, preserved on save.
    """

    id: str
    type: ArtifactType
    title: str
    revision: str = INITIAL_REVISION
    status: str = "draft"
    priority: str = "medium"
    description: str = ""
    parent_ids: tuple[str, ...] = ()
    linked_artifacts: tuple[ArtifactLink, ...] = ()
    requirement_ids: tuple[str, ...] = ()
    is_deleted: bool = False
    deleted_at: datetime | None = None
    date_created: datetime | None = None
    last_modified: datetime | None = None
    extra: MappingProxyType[str, Any] = field(  # pyright: ignore[reportExplicitAny]
        default_factory=lambda: MappingProxyType({})
    )

    @property
    def path(self) -> str:
        """Workspace-relative path of the artifact file."""
        return f"{self.type.folder}/{self.id}.md"


@dataclass(frozen=True, slots=True)
class Link:
    """Standalone link record stored under ``links/``.

    Attributes:
        id: Link identifier, e.g. ``LINK-001``.
        source_id: Artifact creating the link.
        target_id: Artifact being linked to.
        link_type: Relation from source to target.
        project_ids: Projects the link is visible in; empty means global.
        date_created: Creation time.
        last_modified: Last modification time.
    """

    id: str
    source_id: str
    target_id: str
    link_type: LinkType
    project_ids: tuple[str, ...] = ()
    date_created: datetime | None = None
    last_modified: datetime | None = None

    @property
    def is_global(self) -> bool:
        return not self.project_ids

    def visible_in(self, project_id: str) -> bool:
        """Return True if the link is global or scoped to ``project_id``."""
        return self.is_global or project_id in self.project_ids


@dataclass(frozen=True, slots=True)
class IncomingLink:
    """A link seen from its target's perspective.

    Attributes:
        link_id: ID of the standalone link, None for embedded or implicit edges.
        source_id: Artifact the link comes from.
        source_type: Type of the source artifact, if known.
        link_type: Inverse of the stored link type.
    """

    link_id: str | None
    source_id: str
    source_type: ArtifactType | None
    link_type: LinkType


@dataclass(frozen=True, slots=True)
class Project:
    """A named grouping of artifacts.

    Attributes:
        id: Project identifier, e.g. ``proj-1700000000000``.
        name: Display name, unique case-insensitively.
        description: Free-text description.
        members: Artifact IDs per type.
        is_deleted: Soft-delete flag.
        last_modified: Last modification time.
    """

    id: str
    name: str
    description: str = ""
    members: MappingProxyType[ArtifactType, frozenset[str]] = field(
        default_factory=lambda: MappingProxyType({})
    )
    is_deleted: bool = False
    last_modified: datetime | None = None

    def member_ids(self, artifact_type: ArtifactType | None = None) -> frozenset[str]:
        """Return member IDs of one type, or of all types when None."""
        if artifact_type is not None:
            return self.members.get(artifact_type, frozenset())
        return frozenset().union(*self.members.values())

    def contains(self, artifact_id: str) -> bool:
        return any(artifact_id in ids for ids in self.members.values())


def resolve_artifact_type(artifact_id: str) -> ArtifactType | None:
    """Map an ID prefix to its artifact type, or None for unknown prefixes."""
    return ArtifactType.from_prefix(artifact_id)
