"""Baseline creation, lookup, and comparison.

A baseline records, for every tracked artifact of a project, the latest
commit that touched its file. Baselines are create-only: each one is
written once to ``baselines/baseline-{id}.json``, committed, and tagged.
"""

import re
from types import MappingProxyType
from typing import Final

from structlog.typing import FilteringBoundLogger

from tracelink.artifacts import (
    ArtifactType,
    Project,
    ProjectStore,
    artifact_from_document,
    revision_from_document,
)
from tracelink.baseline._cache import TagCommitCache
from tracelink.baseline._models import (
    ArtifactCommit,
    Baseline,
    BaselineDiff,
    GraphComparison,
    ModifiedArtifact,
    RevisionEntry,
)
from tracelink.baseline._snapshot import compare_graphs, load_graph_at
from tracelink.config import BaselineConfig
from tracelink.exceptions import (
    ArtifactValidationError,
    BaselineNotFoundError,
    DuplicateBaselineError,
    StorageParseError,
)
from tracelink.fs import FileSystemProtocol, dumps_json, loads_json
from tracelink.graph import ArtifactGraph
from tracelink.repository import RepositoryProtocol
from tracelink.utils import Clock, get_null_logger, utc_now

__all__ = ["BASELINES_FOLDER", "BaselineManager", "display_name", "tag_name_for"]

BASELINES_FOLDER: Final = "baselines"
TAG_NAMESPACE: Final = "baselines"

_UNSAFE_REF_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


def display_name(project_name: str, label: str) -> str:
    """Human baseline name, e.g. ``[Braking System] 03``."""
    return f"[{project_name}] {label}"


def tag_name_for(project_id: str, label: str) -> str:
    """Repository tag name for a baseline label.

    Git refs cannot hold spaces or brackets, so the display name lives in
    the tag message and the ref is ``baselines/{project_id}/{label}`` with
    unsafe characters replaced by ``-``.

    Example:
        >>> tag_name_for("proj-1", "Release 1.0 [RC]")
        'baselines/proj-1/Release-1.0-RC'
    """
    safe = _UNSAFE_REF_CHARS.sub("-", label).strip(".-")
    if not safe:
        msg = f"Baseline label has no usable characters: {label!r}"
        raise ValueError(msg)
    return f"{TAG_NAMESPACE}/{project_id}/{safe}"


class BaselineManager:
    """Create and compare project baselines.

    Not safe to call concurrently for the same project: label derivation
    and tag uniqueness are read-then-write.
    """

    __slots__: Final = (
        "_cache",
        "_clock",
        "_config",
        "_fs",
        "_logger",
        "_projects",
        "_repo",
    )

    _fs: FileSystemProtocol
    _repo: RepositoryProtocol
    _projects: ProjectStore
    _config: BaselineConfig
    _clock: Clock
    _logger: FilteringBoundLogger
    _cache: TagCommitCache

    def __init__(
        self,
        fs: FileSystemProtocol,
        repo: RepositoryProtocol,
        project_store: ProjectStore,
        *,
        config: BaselineConfig | None = None,
        clock: Clock | None = None,
        logger: FilteringBoundLogger | None = None,
    ) -> None:
        self._fs = fs
        self._repo = repo
        self._projects = project_store
        self._config = config if config is not None else BaselineConfig()
        self._clock = clock if clock is not None else utc_now
        self._logger = logger if logger is not None else get_null_logger()
        self._cache = TagCommitCache(repo)

    @property
    def cache(self) -> TagCommitCache:
        return self._cache

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def list_baselines(self, project_id: str | None = None) -> list[Baseline]:
        """List baselines, newest first. Unreadable records are skipped."""
        baselines: list[Baseline] = []
        for path in self._fs.list_files(BASELINES_FOLDER, suffix=".json"):
            try:
                baseline = Baseline.from_dict(
                    loads_json(self._fs.read_text(path), path=path), path=path
                )
            except StorageParseError as e:
                self._logger.warning(
                    "Skipping unreadable baseline", path=path, error=str(e)
                )
                continue
            if project_id is None or baseline.project_id == project_id:
                baselines.append(baseline)
        baselines.sort(key=lambda b: (b.timestamp, b.id), reverse=True)
        return baselines

    def get_baseline(self, baseline_id: str) -> Baseline:
        """Load one baseline.

        Raises:
            BaselineNotFoundError: If no record exists for the ID.
        """
        path = f"{BASELINES_FOLDER}/baseline-{baseline_id}.json"
        if not self._fs.exists(path):
            msg = f"Baseline not found: {baseline_id}"
            raise BaselineNotFoundError(msg, baseline_id=baseline_id)
        return Baseline.from_dict(
            loads_json(self._fs.read_text(path), path=path), path=path
        )

    def latest_baseline(self, project_id: str) -> Baseline | None:
        baselines = self.list_baselines(project_id)
        return baselines[0] if baselines else None

    # -------------------------------------------------------------------------
    # Creation
    # -------------------------------------------------------------------------

    def _tracked_commits(self, project: Project) -> dict[str, ArtifactCommit]:
        commits: dict[str, ArtifactCommit] = {}
        for artifact_type in ArtifactType:
            for artifact_id in sorted(project.member_ids(artifact_type)):
                path = f"{artifact_type.folder}/{artifact_id}.md"
                if not self._fs.exists(path):
                    continue
                try:
                    artifact = artifact_from_document(
                        self._fs.read_text(path),
                        artifact_type=artifact_type,
                        path=path,
                    )
                except (StorageParseError, ArtifactValidationError) as e:
                    self._logger.warning(
                        "Skipping unreadable artifact", path=path, error=str(e)
                    )
                    continue
                if artifact.is_deleted:
                    continue
                history = self._repo.get_log(1, path=path)
                if not history:
                    continue
                commits[artifact_id] = ArtifactCommit(
                    commit_hash=history[0].sha, type=artifact_type
                )
        return commits

    def _next_id(self) -> str:
        millis = int(self._clock().timestamp() * 1000)
        while self._fs.exists(f"{BASELINES_FOLDER}/baseline-bl-{millis}.json"):
            millis += 1
        return f"bl-{millis}"

    def create_baseline(
        self,
        project_id: str,
        *,
        version: str | None = None,
        description: str = "",
    ) -> Baseline:
        """Snapshot a project's tracked artifacts and tag HEAD.

        Args:
            project_id: Project to baseline.
            version: Version label; defaults to the number of earlier
                baselines plus one, zero-padded to two digits.
            description: Free text stored in the record and tag message.

        Returns:
            The persisted baseline.

        Raises:
            ProjectNotFoundError: If the project does not exist.
            DuplicateBaselineError: If the label is already used in the
                project's tag namespace.
            StorageIOError: If writing the record fails.
        """
        project = self._projects.get(project_id)
        previous = self.list_baselines(project_id)

        label = (version or "").strip() or f"{len(previous) + 1:02d}"
        name = display_name(project.name, label)
        tag_name = tag_name_for(project.id, label)
        if tag_name in self._cache or any(
            b.version == label or b.tag_name == tag_name for b in previous
        ):
            msg = f"Baseline {name} already exists"
            raise DuplicateBaselineError(msg, tag_name=tag_name)

        artifact_commits = self._tracked_commits(project)
        current_ids = set(artifact_commits)
        if previous:
            previous_ids = set(previous[0].artifact_commits)
            added = tuple(sorted(current_ids - previous_ids))
            removed = tuple(sorted(previous_ids - current_ids))
        else:
            added, removed = (), ()

        baseline = Baseline(
            id=self._next_id(),
            project_id=project.id,
            version=label,
            name=name,
            tag_name=tag_name,
            description=description,
            timestamp=self._clock(),
            commit_hash=self._repo.head(),
            artifact_commits=MappingProxyType(artifact_commits),
            added_artifacts=added,
            removed_artifacts=removed,
        )

        self._fs.mkdir(BASELINES_FOLDER)
        self._fs.write_text(
            baseline.path, dumps_json(baseline.to_dict(), path=baseline.path)
        )
        _ = self._repo.stage([baseline.path])
        _ = self._repo.commit(f"Create baseline {name}")

        message = f"{name}\n\n{description}" if description else name
        _ = self._repo.create_tag(tag_name, message)
        self._cache.invalidate()

        self._logger.info(
            "baseline_created",
            baseline_id=baseline.id,
            project_id=project.id,
            tag=tag_name,
            artifacts=len(artifact_commits),
            added=len(added),
            removed=len(removed),
        )
        return baseline

    # -------------------------------------------------------------------------
    # Comparison
    # -------------------------------------------------------------------------

    def _revision_at(self, path: str, commit: str) -> str:
        default = self._config.default_revision
        try:
            content = self._repo.get_file_at_commit(path, commit)
        except KeyError:
            return default
        if content is None:
            return default
        return revision_from_document(
            content.decode("utf-8", errors="replace"), default=default
        )

    def diff(self, current: Baseline, previous: Baseline | None = None) -> BaselineDiff:
        """Compare two baselines by artifact set and per-artifact commit.

        With no ``previous`` the current baseline is treated as the first:
        every artifact is added and nothing is removed or modified.
        """
        if previous is None:
            return BaselineDiff(added=tuple(sorted(current.artifact_commits)))

        current_ids = set(current.artifact_commits)
        previous_ids = set(previous.artifact_commits)

        modified: list[ModifiedArtifact] = []
        for artifact_id in sorted(current_ids & previous_ids):
            now = current.artifact_commits[artifact_id]
            before = previous.artifact_commits[artifact_id]
            if now.commit_hash == before.commit_hash:
                continue
            path = f"{now.type.folder}/{artifact_id}.md"
            modified.append(
                ModifiedArtifact(
                    id=artifact_id,
                    type=now.type,
                    previous_commit=before.commit_hash,
                    current_commit=now.commit_hash,
                    previous_revision=self._revision_at(path, before.commit_hash),
                    current_revision=self._revision_at(path, now.commit_hash),
                )
            )

        return BaselineDiff(
            added=tuple(sorted(current_ids - previous_ids)),
            removed=tuple(sorted(previous_ids - current_ids)),
            modified=tuple(modified),
        )

    def artifact_history(
        self,
        artifact_id: str,
        *,
        artifact_type: ArtifactType,
        limit: int | None = None,
    ) -> list[RevisionEntry]:
        """Commits that touched an artifact file, newest first, with revisions."""
        path = f"{artifact_type.folder}/{artifact_id}.md"
        n = limit if limit is not None else self._config.history_limit
        return [
            RevisionEntry(
                commit=info.sha,
                timestamp=info.timestamp,
                message=info.subject,
                revision=self._revision_at(path, info.sha),
            )
            for info in self._repo.get_log(n, path=path)
        ]

    # -------------------------------------------------------------------------
    # Historical graphs
    # -------------------------------------------------------------------------

    def load_graph_at(
        self, commit: str, *, project_id: str | None = None
    ) -> ArtifactGraph:
        return load_graph_at(
            self._repo, commit, project_id=project_id, logger=self._logger
        )

    def baseline_graph(self, baseline: Baseline) -> ArtifactGraph:
        """Graph of the baseline's project as of the baseline's commit."""
        if baseline.commit_hash is None:
            return ArtifactGraph()
        return self.load_graph_at(baseline.commit_hash, project_id=baseline.project_id)

    def compare_baseline_graphs(
        self, previous: Baseline, current: Baseline
    ) -> GraphComparison:
        return compare_graphs(
            self.baseline_graph(previous), self.baseline_graph(current)
        )
