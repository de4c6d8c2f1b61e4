"""Project persistence.

Projects live at ``projects/{id}.md`` and hold per-type membership sets.
Project names are unique, compared case-insensitively.
"""

from dataclasses import replace
from types import MappingProxyType
from typing import Final

from structlog.typing import FilteringBoundLogger

from tracelink.artifacts._models import Artifact, ArtifactType, Project
from tracelink.artifacts._serialize import project_from_document, project_to_document
from tracelink.exceptions import (
    ArtifactValidationError,
    DuplicateProjectError,
    ProjectNotFoundError,
    StorageParseError,
)
from tracelink.fs import FileSystemProtocol
from tracelink.repository import RepositoryProtocol
from tracelink.utils import Clock, get_null_logger, utc_now

__all__ = ["PROJECTS_FOLDER", "ProjectStore"]

PROJECTS_FOLDER: Final = "projects"


class ProjectStore:
    """Create, read, and update projects and their membership."""

    __slots__: Final = ("_clock", "_fs", "_logger", "_repo")

    _fs: FileSystemProtocol
    _repo: RepositoryProtocol
    _clock: Clock
    _logger: FilteringBoundLogger

    def __init__(
        self,
        fs: FileSystemProtocol,
        repo: RepositoryProtocol,
        *,
        clock: Clock | None = None,
        logger: FilteringBoundLogger | None = None,
    ) -> None:
        self._fs = fs
        self._repo = repo
        self._clock = clock if clock is not None else utc_now
        self._logger = logger if logger is not None else get_null_logger()

    @staticmethod
    def path_for(project_id: str) -> str:
        return f"{PROJECTS_FOLDER}/{project_id}.md"

    def _save(self, project: Project) -> str:
        path = self.path_for(project.id)
        self._fs.mkdir(PROJECTS_FOLDER)
        self._fs.write_text(path, project_to_document(project))
        return path

    def _commit(self, paths: list[str], message: str) -> None:
        _ = self._repo.stage(paths)
        _ = self._repo.commit(message)

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def list_projects(self, *, include_deleted: bool = False) -> list[Project]:
        """List projects sorted by name. Unreadable files are skipped."""
        projects: list[Project] = []
        for path in self._fs.list_files(PROJECTS_FOLDER, suffix=".md"):
            try:
                project = project_from_document(self._fs.read_text(path), path=path)
            except (StorageParseError, ArtifactValidationError) as e:
                self._logger.warning(
                    "Skipping unreadable project", path=path, error=str(e)
                )
                continue
            if include_deleted or not project.is_deleted:
                projects.append(project)
        return sorted(projects, key=lambda p: p.name.casefold())

    def get(self, project_id: str) -> Project:
        """Load a project.

        Raises:
            ProjectNotFoundError: If no project has this ID.
        """
        path = self.path_for(project_id)
        if not self._fs.exists(path):
            msg = f"Project not found: {project_id}"
            raise ProjectNotFoundError(msg, project_id=project_id)
        return project_from_document(self._fs.read_text(path), path=path)

    def find_by_name(self, name: str) -> Project | None:
        wanted = name.strip().casefold()
        for project in self.list_projects(include_deleted=True):
            if project.name.casefold() == wanted:
                return project
        return None

    def member_ids(
        self, project_id: str
    ) -> MappingProxyType[ArtifactType, frozenset[str]]:
        """Return the project's member IDs grouped by artifact type."""
        project = self.get(project_id)
        return MappingProxyType({t: project.member_ids(t) for t in ArtifactType})

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    def _ensure_unique_name(self, name: str, *, exclude_id: str | None = None) -> None:
        existing = self.find_by_name(name)
        if existing is not None and existing.id != exclude_id:
            msg = f"A project named {existing.name!r} already exists"
            raise DuplicateProjectError(msg, name=name)

    def _new_id(self) -> str:
        millis = int(self._clock().timestamp() * 1000)
        while self._fs.exists(self.path_for(f"proj-{millis}")):
            millis += 1
        return f"proj-{millis}"

    def create(self, name: str, description: str = "") -> Project:
        """Create and commit a new, empty project.

        Raises:
            ArtifactValidationError: If the name is blank.
            DuplicateProjectError: If the name is already taken.
        """
        name = name.strip()
        if not name:
            msg = "Project name must not be empty"
            raise ArtifactValidationError(msg, field="name")
        self._ensure_unique_name(name)

        project = Project(
            id=self._new_id(),
            name=name,
            description=description,
            members=MappingProxyType({t: frozenset() for t in ArtifactType}),
            last_modified=self._clock(),
        )
        self._commit([self._save(project)], f"Create project {project.name}")
        self._logger.info("project_created", project_id=project.id, name=project.name)
        return project

    def update(
        self,
        project_id: str,
        *,
        name: str | None = None,
        description: str | None = None,
    ) -> Project:
        """Rename a project or change its description."""
        project = self.get(project_id)
        if name is not None:
            name = name.strip()
            if not name:
                msg = "Project name must not be empty"
                raise ArtifactValidationError(msg, field="name")
            self._ensure_unique_name(name, exclude_id=project_id)

        updated = replace(
            project,
            name=name if name is not None else project.name,
            description=(
                description if description is not None else project.description
            ),
            last_modified=self._clock(),
        )
        self._commit([self._save(updated)], f"Update project {updated.name}")
        return updated

    def _with_members(
        self, project: Project, artifact_type: ArtifactType, ids: frozenset[str]
    ) -> Project:
        members = dict(project.members)
        members[artifact_type] = ids
        return replace(
            project, members=MappingProxyType(members), last_modified=self._clock()
        )

    def add_artifact(self, project_id: str, artifact: Artifact) -> Project:
        """Add an artifact to a project's membership. Idempotent."""
        project = self.get(project_id)
        current = project.member_ids(artifact.type)
        if artifact.id in current:
            return project
        updated = self._with_members(project, artifact.type, current | {artifact.id})
        self._commit([self._save(updated)], f"Add {artifact.id} to {project.name}")
        return updated

    def remove_artifact(self, project_id: str, artifact: Artifact) -> Project:
        """Remove an artifact from a project's membership. Idempotent."""
        project = self.get(project_id)
        current = project.member_ids(artifact.type)
        if artifact.id not in current:
            return project
        updated = self._with_members(project, artifact.type, current - {artifact.id})
        self._commit([self._save(updated)], f"Remove {artifact.id} from {project.name}")
        return updated

    def remove_from_all(self, artifact_id: str, *, commit: bool = True) -> list[str]:
        """Strip an artifact from every project's membership.

        Returns:
            Paths of the project files that changed.
        """
        paths: list[str] = []
        for project in self.list_projects(include_deleted=True):
            if not project.contains(artifact_id):
                continue
            members = {t: ids - {artifact_id} for t, ids in project.members.items()}
            updated = replace(
                project, members=MappingProxyType(members), last_modified=self._clock()
            )
            paths.append(self._save(updated))
        if commit and paths:
            self._commit(paths, f"Remove {artifact_id} from projects")
        return paths
