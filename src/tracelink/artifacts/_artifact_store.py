"""Artifact persistence and lifecycle.

Artifacts live at ``{folder}/{id}.md``. Every write is followed by a
commit. The lifecycle is create -> update (revision++) -> soft delete ->
restore, with permanent deletion cascading to links, parent references,
and project membership.
"""

from collections.abc import Iterable
from dataclasses import dataclass, replace
from typing import Any, Final

from structlog.typing import FilteringBoundLogger

from tracelink.artifacts._link_store import LinkStore
from tracelink.artifacts._models import (
    Artifact,
    ArtifactLink,
    ArtifactType,
    next_revision,
)
from tracelink.artifacts._project_store import ProjectStore
from tracelink.artifacts._serialize import (
    artifact_from_document,
    artifact_to_document,
)
from tracelink.exceptions import (
    ArtifactNotFoundError,
    ArtifactValidationError,
    StorageParseError,
)
from tracelink.fs import FileSystemProtocol
from tracelink.ids import IdAllocator
from tracelink.repository import RepositoryProtocol
from tracelink.utils import Clock, get_null_logger, utc_now

__all__ = ["ArtifactStore", "CascadeResult"]

_MUTABLE_FIELDS: Final = frozenset(
    {
        "title",
        "status",
        "priority",
        "description",
        "parent_ids",
        "linked_artifacts",
        "requirement_ids",
    }
)
_TUPLE_FIELDS: Final = frozenset({"parent_ids", "linked_artifacts", "requirement_ids"})


@dataclass(frozen=True, slots=True)
class CascadeResult:
    """What a permanent deletion removed or rewrote.

    Attributes:
        artifact_id: The deleted artifact.
        deleted_links: Paths of standalone link files removed.
        updated_artifacts: IDs of artifacts whose references were stripped.
        updated_projects: Paths of project files whose membership changed.
    """

    artifact_id: str
    deleted_links: tuple[str, ...]
    updated_artifacts: tuple[str, ...]
    updated_projects: tuple[str, ...]


def _strip_reference(artifact: Artifact, artifact_id: str) -> Artifact | None:
    """Remove every reference to ``artifact_id``; None if there were none."""
    parent_ids = tuple(i for i in artifact.parent_ids if i != artifact_id)
    linked = tuple(
        link for link in artifact.linked_artifacts if link.target_id != artifact_id
    )
    requirement_ids = tuple(i for i in artifact.requirement_ids if i != artifact_id)
    if (
        len(parent_ids) == len(artifact.parent_ids)
        and len(linked) == len(artifact.linked_artifacts)
        and len(requirement_ids) == len(artifact.requirement_ids)
    ):
        return None
    return replace(
        artifact,
        parent_ids=parent_ids,
        linked_artifacts=linked,
        requirement_ids=requirement_ids,
        revision=next_revision(artifact.revision),
    )


class ArtifactStore:
    """Create, read, update, and delete artifacts.

    The artifact type is always taken from the folder a file lives in.
    Lookups by ID search the type folders rather than parsing the prefix.
    """

    __slots__: Final = ("_allocator", "_clock", "_fs", "_logger", "_repo")

    _fs: FileSystemProtocol
    _repo: RepositoryProtocol
    _allocator: IdAllocator
    _clock: Clock
    _logger: FilteringBoundLogger

    def __init__(
        self,
        fs: FileSystemProtocol,
        repo: RepositoryProtocol,
        allocator: IdAllocator,
        *,
        clock: Clock | None = None,
        logger: FilteringBoundLogger | None = None,
    ) -> None:
        self._fs = fs
        self._repo = repo
        self._allocator = allocator
        self._clock = clock if clock is not None else utc_now
        self._logger = logger if logger is not None else get_null_logger()

    def _save(self, artifact: Artifact) -> str:
        self._fs.mkdir(artifact.type.folder)
        self._fs.write_text(artifact.path, artifact_to_document(artifact))
        return artifact.path

    def _commit(self, paths: Iterable[str], message: str) -> None:
        _ = self._repo.stage(paths)
        _ = self._repo.commit(message)

    def _load(self, path: str, artifact_type: ArtifactType) -> Artifact:
        return artifact_from_document(
            self._fs.read_text(path), artifact_type=artifact_type, path=path
        )

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def list_artifacts(
        self,
        artifact_type: ArtifactType | None = None,
        *,
        include_deleted: bool = False,
    ) -> list[Artifact]:
        """Load artifacts of one type, or of every type when None.

        Files that fail to parse are logged and skipped.
        """
        types = (artifact_type,) if artifact_type is not None else tuple(ArtifactType)
        artifacts: list[Artifact] = []
        for current in types:
            for path in self._fs.list_files(current.folder, suffix=".md"):
                try:
                    artifact = self._load(path, current)
                except (StorageParseError, ArtifactValidationError) as e:
                    self._logger.warning(
                        "Skipping unreadable artifact", path=path, error=str(e)
                    )
                    continue
                if include_deleted or not artifact.is_deleted:
                    artifacts.append(artifact)
        return artifacts

    def _locate(self, artifact_id: str) -> tuple[str, ArtifactType] | None:
        for artifact_type in ArtifactType:
            path = f"{artifact_type.folder}/{artifact_id}.md"
            if self._fs.exists(path):
                return path, artifact_type
        return None

    def exists(self, artifact_id: str) -> bool:
        return self._locate(artifact_id) is not None

    def get(self, artifact_id: str) -> Artifact:
        """Load an artifact, including soft-deleted ones.

        Raises:
            ArtifactNotFoundError: If no artifact has this ID.
        """
        located = self._locate(artifact_id)
        if located is None:
            msg = f"Artifact not found: {artifact_id}"
            raise ArtifactNotFoundError(msg, artifact_id=artifact_id)
        return self._load(*located)

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    @staticmethod
    def _check_fields(
        fields: dict[str, Any],  # pyright: ignore[reportExplicitAny]
        artifact_id: str | None,
    ) -> dict[str, Any]:  # pyright: ignore[reportExplicitAny]
        unknown = set(fields) - _MUTABLE_FIELDS
        if unknown:
            msg = f"Unknown artifact fields: {', '.join(sorted(unknown))}"
            raise ArtifactValidationError(
                msg, artifact_id=artifact_id, field=sorted(unknown)[0]
            )
        checked = dict(fields)
        for name in _TUPLE_FIELDS & set(checked):
            checked[name] = tuple(checked[name])
        for link in checked.get("linked_artifacts", ()):
            if not isinstance(link, ArtifactLink):
                msg = f"linked_artifacts entries must be ArtifactLink, got {link!r}"
                raise ArtifactValidationError(
                    msg, artifact_id=artifact_id, field="linked_artifacts"
                )
        return checked

    def create(
        self,
        artifact_type: ArtifactType,
        title: str,
        **fields: Any,  # pyright: ignore[reportExplicitAny]
    ) -> Artifact:
        """Allocate an ID and commit a new artifact at revision ``01``.

        Raises:
            ArtifactValidationError: If the title is blank or a field is unknown.
        """
        if not title.strip():
            msg = "Artifact title must not be empty"
            raise ArtifactValidationError(msg, field="title")
        checked = self._check_fields(fields, None)
        if artifact_type is not ArtifactType.TEST_CASE:
            _ = checked.pop("requirement_ids", None)

        now = self._clock()
        artifact = Artifact(
            id=self._allocator.get_next_id_with_sync(artifact_type.value),
            type=artifact_type,
            title=title.strip(),
            date_created=now,
            last_modified=now,
            **checked,
        )
        self._commit([self._save(artifact)], f"Create {artifact.id}")
        self._logger.info(
            "artifact_created", artifact_id=artifact.id, type=artifact_type.value
        )
        return artifact

    def update(
        self,
        artifact_id: str,
        **changes: Any,  # pyright: ignore[reportExplicitAny]
    ) -> Artifact:
        """Apply content changes and bump the revision.

        A call that changes nothing leaves the artifact untouched.

        Raises:
            ArtifactNotFoundError: If no artifact has this ID.
            ArtifactValidationError: If a field is unknown.
        """
        artifact = self.get(artifact_id)
        checked = self._check_fields(changes, artifact_id)
        if all(getattr(artifact, name) == value for name, value in checked.items()):
            return artifact

        updated = replace(
            artifact,
            revision=next_revision(artifact.revision),
            last_modified=self._clock(),
            **checked,
        )
        self._commit([self._save(updated)], f"Update {artifact_id}")
        return updated

    def soft_delete(self, artifact_id: str) -> Artifact:
        """Mark an artifact deleted. The revision does not change."""
        artifact = self.get(artifact_id)
        if artifact.is_deleted:
            return artifact
        now = self._clock()
        deleted = replace(artifact, is_deleted=True, deleted_at=now, last_modified=now)
        self._commit([self._save(deleted)], f"Delete {artifact_id}")
        return deleted

    def restore(self, artifact_id: str) -> Artifact:
        """Undo a soft delete. The revision does not change."""
        artifact = self.get(artifact_id)
        if not artifact.is_deleted:
            return artifact
        restored = replace(
            artifact, is_deleted=False, deleted_at=None, last_modified=self._clock()
        )
        self._commit([self._save(restored)], f"Restore {artifact_id}")
        return restored

    def permanent_delete(
        self,
        artifact_id: str,
        *,
        link_store: LinkStore | None = None,
        project_store: ProjectStore | None = None,
    ) -> CascadeResult:
        """Remove an artifact for good and cascade in one commit.

        Standalone links touching the artifact are deleted; references in
        other artifacts' ``parent_ids``, ``linked_artifacts``, and
        ``requirement_ids`` are stripped (bumping their revision); project
        membership is removed. The ID is never reissued.

        Raises:
            ArtifactNotFoundError: If no artifact has this ID.
        """
        artifact = self.get(artifact_id)
        self._fs.delete(artifact.path)
        paths = [artifact.path]

        deleted_links = (
            link_store.delete_links_for_artifact(artifact_id, commit=False)
            if link_store is not None
            else []
        )
        paths.extend(deleted_links)

        now = self._clock()
        updated_ids: list[str] = []
        for other in self.list_artifacts(include_deleted=True):
            stripped = _strip_reference(other, artifact_id)
            if stripped is not None:
                paths.append(self._save(replace(stripped, last_modified=now)))
                updated_ids.append(other.id)

        updated_projects = (
            project_store.remove_from_all(artifact_id, commit=False)
            if project_store is not None
            else []
        )
        paths.extend(updated_projects)

        self._commit(paths, f"Permanently delete {artifact_id}")
        self._logger.info(
            "artifact_purged",
            artifact_id=artifact_id,
            links=len(deleted_links),
            artifacts=len(updated_ids),
            projects=len(updated_projects),
        )
        return CascadeResult(
            artifact_id=artifact_id,
            deleted_links=tuple(deleted_links),
            updated_artifacts=tuple(updated_ids),
            updated_projects=tuple(updated_projects),
        )
