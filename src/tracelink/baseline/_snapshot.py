"""Reconstruct and compare artifact graphs at historical commits."""

from structlog.typing import FilteringBoundLogger

from tracelink.artifacts import (
    LINKS_FOLDER,
    PROJECTS_FOLDER,
    Artifact,
    ArtifactType,
    Link,
    artifact_from_document,
    link_from_document,
    project_from_document,
)
from tracelink.baseline._models import GraphComparison
from tracelink.exceptions import (
    ArtifactValidationError,
    InvalidLinkError,
    ProjectNotFoundError,
    StorageParseError,
)
from tracelink.graph import ArtifactGraph
from tracelink.repository import RepositoryProtocol
from tracelink.utils import get_null_logger

__all__ = ["compare_graphs", "load_graph_at"]


def _read(repo: RepositoryProtocol, path: str, commit: str) -> str | None:
    content = repo.get_file_at_commit(path, commit)
    return content.decode("utf-8", errors="replace") if content is not None else None


def load_graph_at(
    repo: RepositoryProtocol,
    commit: str,
    *,
    project_id: str | None = None,
    logger: FilteringBoundLogger | None = None,
) -> ArtifactGraph:
    """Rebuild the artifact graph from the files committed at ``commit``.

    Files that fail to parse are logged and skipped, as with the live
    stores.

    Args:
        repo: Repository to read from.
        commit: Commit SHA.
        project_id: Limit nodes and link scope to this project as it was
            at ``commit``.
        logger: Logger for skipped files.

    Raises:
        KeyError: If the commit does not exist.
        ProjectNotFoundError: If the project file is absent at ``commit``.
    """
    log = logger if logger is not None else get_null_logger()

    artifacts: list[Artifact] = []
    for artifact_type in ArtifactType:
        for path in repo.list_files_at_commit(commit, artifact_type.folder):
            if not path.endswith(".md"):
                continue
            content = _read(repo, path, commit)
            if content is None:
                continue
            try:
                artifacts.append(
                    artifact_from_document(
                        content, artifact_type=artifact_type, path=path
                    )
                )
            except (StorageParseError, ArtifactValidationError) as e:
                log.warning(
                    "Skipping unreadable artifact",
                    path=path,
                    commit=commit,
                    error=str(e),
                )

    links: list[Link] = []
    for path in repo.list_files_at_commit(commit, LINKS_FOLDER):
        content = _read(repo, path, commit) if path.endswith(".md") else None
        if content is None:
            continue
        try:
            links.append(link_from_document(content, path=path))
        except (StorageParseError, InvalidLinkError) as e:
            log.warning(
                "Skipping unreadable link", path=path, commit=commit, error=str(e)
            )

    project = None
    if project_id is not None:
        project_path = f"{PROJECTS_FOLDER}/{project_id}.md"
        content = _read(repo, project_path, commit)
        if content is None:
            msg = f"Project {project_id} not found at commit {commit}"
            raise ProjectNotFoundError(msg, project_id=project_id)
        project = project_from_document(content, path=project_path)

    return ArtifactGraph.build(artifacts, links, project=project)


def compare_graphs(old: ArtifactGraph, new: ArtifactGraph) -> GraphComparison:
    """Artifacts and edges present in only one of two graphs.

    Edges are matched on ``(source, target, type)``; a link that was
    re-recorded in another representation is not a change.
    """
    old_ids = set(old.artifact_ids)
    new_ids = set(new.artifact_ids)
    old_keys = {edge.key for edge in old.edges}
    new_keys = {edge.key for edge in new.edges}
    return GraphComparison(
        added_artifacts=tuple(sorted(new_ids - old_ids)),
        removed_artifacts=tuple(sorted(old_ids - new_ids)),
        added_edges=tuple(e for e in new.edges if e.key not in old_keys),
        removed_edges=tuple(e for e in old.edges if e.key not in new_keys),
    )
