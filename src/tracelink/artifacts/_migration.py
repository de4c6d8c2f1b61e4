"""One-time import of embedded links into the standalone link store."""

from dataclasses import dataclass

from structlog.typing import FilteringBoundLogger

from tracelink.artifacts._artifact_store import ArtifactStore
from tracelink.artifacts._link_store import LinkStore
from tracelink.utils import get_null_logger

__all__ = ["MigrationReport", "migrate_embedded_links"]


@dataclass(frozen=True, slots=True)
class MigrationReport:
    """Outcome of folding embedded links into standalone records.

    Attributes:
        created: IDs of the standalone links created.
        skipped: ``(source, target, type)`` entries that already existed or
            were self-loops.
        cleared: IDs of artifacts whose embedded arrays were emptied.
    """

    created: tuple[str, ...]
    skipped: tuple[tuple[str, str, str], ...]
    cleared: tuple[str, ...]


def migrate_embedded_links(
    artifact_store: ArtifactStore,
    link_store: LinkStore,
    *,
    logger: FilteringBoundLogger | None = None,
) -> MigrationReport:
    """Fold every embedded ``linkedArtifacts`` entry into a standalone Link.

    Entries that duplicate an existing link or point at their own artifact
    are skipped. Each artifact's embedded array is cleared afterwards, so
    running the migration again is a no-op. Migrated links are global.
    """
    log = logger if logger is not None else get_null_logger()
    created: list[str] = []
    skipped: list[tuple[str, str, str]] = []
    cleared: list[str] = []

    for artifact in artifact_store.list_artifacts(include_deleted=True):
        if not artifact.linked_artifacts:
            continue
        for embedded in artifact.linked_artifacts:
            key = (artifact.id, embedded.target_id, embedded.link_type.value)
            if embedded.target_id == artifact.id or link_store.link_exists(
                artifact.id, embedded.target_id, embedded.link_type
            ):
                skipped.append(key)
                continue
            link = link_store.create_link(
                artifact.id, embedded.target_id, embedded.link_type
            )
            created.append(link.id)

        _ = artifact_store.update(artifact.id, linked_artifacts=())
        cleared.append(artifact.id)

    log.info(
        "Embedded links migrated",
        created=len(created),
        skipped=len(skipped),
        cleared=len(cleared),
    )
    return MigrationReport(
        created=tuple(created), skipped=tuple(skipped), cleared=tuple(cleared)
    )
