# pyright: reportAny=false, reportExplicitAny=false, reportUnknownVariableType=false, reportUnknownArgumentType=false
"""Front-matter encoding for artifacts, links, and projects.

On disk every record is a Markdown file whose YAML front-matter uses
camelCase keys. Timestamps are written as ISO-8601 strings; on read they
are accepted as datetimes (YAML's own timestamp type), ISO strings, or
millisecond epoch integers.
"""

from collections.abc import Iterable
from datetime import UTC, datetime
from types import MappingProxyType
from typing import Any, Final

from tracelink.artifacts._models import (
    INITIAL_REVISION,
    Artifact,
    ArtifactLink,
    ArtifactType,
    Link,
    LinkType,
    Project,
)
from tracelink.exceptions import (
    ArtifactValidationError,
    InvalidLinkError,
    StorageParseError,
)
from tracelink.fs import parse_frontmatter, render_frontmatter

__all__ = [
    "artifact_from_document",
    "artifact_to_document",
    "link_from_document",
    "link_to_document",
    "parse_timestamp",
    "project_from_document",
    "project_to_document",
    "revision_from_document",
]

_ARTIFACT_KEYS: Final = frozenset(
    {
        "id",
        "title",
        "status",
        "priority",
        "revision",
        "dateCreated",
        "lastModified",
        "isDeleted",
        "deletedAt",
        "parentIds",
        "linkedArtifacts",
        "requirementIds",
        "type",
    }
)


def _membership_key(artifact_type: ArtifactType) -> str:
    return f"{artifact_type.value}Ids"


# -----------------------------------------------------------------------------
# Field helpers
# -----------------------------------------------------------------------------


def parse_timestamp(value: Any) -> datetime | None:
    """Coerce a front-matter timestamp to an aware datetime.

    Naive datetimes are assumed to be UTC. Unrecognized values yield None.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo is not None else value.replace(tzinfo=UTC)
    if isinstance(value, int | float):
        return datetime.fromtimestamp(value / 1000, tz=UTC)
    if isinstance(value, str):
        text = value.strip()
        if text.isdigit():
            return datetime.fromtimestamp(int(text) / 1000, tz=UTC)
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
        return parsed if parsed.tzinfo is not None else parsed.replace(tzinfo=UTC)
    return None


def _format_timestamp(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _id_list(value: Any) -> tuple[str, ...]:
    """Read a list of IDs, accepting the legacy comma-separated form."""
    if value is None:
        return ()
    if isinstance(value, str):
        return tuple(part.strip() for part in value.split(",") if part.strip())
    if isinstance(value, Iterable):
        return tuple(str(item) for item in value if item)
    return ()


def _revision(value: Any) -> str:
    if value is None:
        return INITIAL_REVISION
    if isinstance(value, int):
        return f"{value:02d}"
    return str(value)


def _without_none(data: dict[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in data.items() if value is not None}


# -----------------------------------------------------------------------------
# Artifacts
# -----------------------------------------------------------------------------


def _embedded_links(value: Any, *, artifact_id: str) -> tuple[ArtifactLink, ...]:
    if not value:
        return ()
    if not isinstance(value, list):
        msg = f"linkedArtifacts of {artifact_id} must be a list"
        raise ArtifactValidationError(
            msg, artifact_id=artifact_id, field="linkedArtifacts"
        )

    links: list[ArtifactLink] = []
    for entry in value:
        if not isinstance(entry, dict) or "targetId" not in entry:
            msg = f"Malformed linkedArtifacts entry in {artifact_id}: {entry!r}"
            raise ArtifactValidationError(
                msg, artifact_id=artifact_id, field="linkedArtifacts"
            )
        raw_type = entry.get("type", entry.get("linkType", LinkType.RELATED_TO.value))
        try:
            link_type = LinkType(raw_type)
        except ValueError as e:
            msg = f"Unknown link type {raw_type!r} in {artifact_id}"
            raise ArtifactValidationError(
                msg, artifact_id=artifact_id, field="linkedArtifacts"
            ) from e
        links.append(
            ArtifactLink(target_id=str(entry["targetId"]), link_type=link_type)
        )
    return tuple(links)


def artifact_from_document(
    content: str,
    *,
    artifact_type: ArtifactType,
    path: str | None = None,
) -> Artifact:
    """Decode an artifact file.

    The type is supplied by the caller from the folder the file was read
    from; a ``type`` key in the front-matter is ignored.

    Raises:
        StorageParseError: If the front-matter is malformed.
        ArtifactValidationError: If required fields are missing or invalid.
    """
    data, body = parse_frontmatter(content, path=path)
    artifact_id = data.get("id")
    if not artifact_id:
        msg = f"Artifact file has no id: {path}"
        raise ArtifactValidationError(msg, field="id")
    artifact_id = str(artifact_id)

    return Artifact(
        id=artifact_id,
        type=artifact_type,
        title=str(data.get("title", "")),
        revision=_revision(data.get("revision")),
        status=str(data.get("status", "draft")),
        priority=str(data.get("priority", "medium")),
        description=body.strip(),
        parent_ids=_id_list(data.get("parentIds")),
        linked_artifacts=_embedded_links(
            data.get("linkedArtifacts"), artifact_id=artifact_id
        ),
        requirement_ids=(
            _id_list(data.get("requirementIds"))
            if artifact_type is ArtifactType.TEST_CASE
            else ()
        ),
        is_deleted=bool(data.get("isDeleted", False)),
        deleted_at=parse_timestamp(data.get("deletedAt")),
        date_created=parse_timestamp(data.get("dateCreated")),
        last_modified=parse_timestamp(data.get("lastModified")),
        extra=MappingProxyType(
            {k: v for k, v in data.items() if k not in _ARTIFACT_KEYS}
        ),
    )


def artifact_to_document(artifact: Artifact) -> str:
    """Encode an artifact as a front-matter document."""
    frontmatter: dict[str, Any] = dict(artifact.extra)
    frontmatter.update(
        _without_none(
            {
                "id": artifact.id,
                "title": artifact.title,
                "status": artifact.status,
                "priority": artifact.priority,
                "revision": artifact.revision,
                "dateCreated": _format_timestamp(artifact.date_created),
                "lastModified": _format_timestamp(artifact.last_modified),
                "isDeleted": artifact.is_deleted,
                "deletedAt": _format_timestamp(artifact.deleted_at),
            }
        )
    )
    if artifact.parent_ids:
        frontmatter["parentIds"] = list(artifact.parent_ids)
    if artifact.linked_artifacts:
        frontmatter["linkedArtifacts"] = [
            {"targetId": link.target_id, "type": link.link_type.value}
            for link in artifact.linked_artifacts
        ]
    if artifact.requirement_ids:
        frontmatter["requirementIds"] = list(artifact.requirement_ids)
    return render_frontmatter(frontmatter, artifact.description, path=artifact.path)


def revision_from_document(content: str, *, default: str = INITIAL_REVISION) -> str:
    """Extract the revision of an artifact file, best-effort.

    Any parse failure yields ``default``; historical files are not
    required to be well-formed.
    """
    try:
        data, _ = parse_frontmatter(content)
    except StorageParseError:
        return default
    value = data.get("revision")
    if value is None or isinstance(value, bool):
        return default
    revision = _revision(value)
    return revision if revision.isdigit() else default


# -----------------------------------------------------------------------------
# Links
# -----------------------------------------------------------------------------


def link_from_document(content: str, *, path: str | None = None) -> Link:
    """Decode a standalone link file.

    Raises:
        StorageParseError: If the front-matter is malformed.
        InvalidLinkError: If an endpoint or the type is missing or unknown.
    """
    data, _ = parse_frontmatter(content, path=path)
    source_id = str(data.get("sourceId", ""))
    target_id = str(data.get("targetId", ""))
    raw_type = str(data.get("type", ""))
    link_id = str(data.get("id", ""))

    try:
        link_type = LinkType(raw_type)
    except ValueError as e:
        msg = f"Unknown link type {raw_type!r} in {path or link_id}"
        raise InvalidLinkError(
            msg, source_id=source_id, target_id=target_id, link_type=raw_type
        ) from e

    if not link_id or not source_id or not target_id:
        msg = f"Link file is missing id or endpoints: {path or link_id}"
        raise InvalidLinkError(
            msg, source_id=source_id, target_id=target_id, link_type=raw_type
        )

    return Link(
        id=link_id,
        source_id=source_id,
        target_id=target_id,
        link_type=link_type,
        project_ids=_id_list(data.get("projectIds")),
        date_created=parse_timestamp(data.get("dateCreated")),
        last_modified=parse_timestamp(data.get("lastModified")),
    )


def link_to_document(link: Link) -> str:
    """Encode a standalone link as a front-matter document."""
    frontmatter = _without_none(
        {
            "id": link.id,
            "sourceId": link.source_id,
            "targetId": link.target_id,
            "type": link.link_type.value,
            "projectIds": list(link.project_ids),
            "dateCreated": _format_timestamp(link.date_created),
            "lastModified": _format_timestamp(link.last_modified),
        }
    )
    return render_frontmatter(frontmatter, "", path=f"links/{link.id}.md")


# -----------------------------------------------------------------------------
# Projects
# -----------------------------------------------------------------------------


def project_from_document(content: str, *, path: str | None = None) -> Project:
    """Decode a project file.

    Raises:
        StorageParseError: If the front-matter is malformed.
        ArtifactValidationError: If the id or name is missing.
    """
    data, body = parse_frontmatter(content, path=path)
    project_id = data.get("id")
    name = data.get("name")
    if not project_id or not name:
        msg = f"Project file is missing id or name: {path}"
        raise ArtifactValidationError(msg, field="id" if not project_id else "name")

    members = {
        artifact_type: frozenset(_id_list(data.get(_membership_key(artifact_type))))
        for artifact_type in ArtifactType
    }
    description = data.get("description")
    return Project(
        id=str(project_id),
        name=str(name),
        description=str(description) if description is not None else body.strip(),
        members=MappingProxyType(members),
        is_deleted=bool(data.get("isDeleted", False)),
        last_modified=parse_timestamp(data.get("lastModified")),
    )


def project_to_document(project: Project) -> str:
    """Encode a project as a front-matter document."""
    frontmatter: dict[str, Any] = {
        "id": project.id,
        "name": project.name,
        "description": project.description,
        "isDeleted": project.is_deleted,
    }
    for artifact_type in ArtifactType:
        frontmatter[_membership_key(artifact_type)] = sorted(
            project.member_ids(artifact_type)
        )
    if project.last_modified is not None:
        frontmatter["lastModified"] = _format_timestamp(project.last_modified)
    return render_frontmatter(frontmatter, "", path=f"projects/{project.id}.md")
