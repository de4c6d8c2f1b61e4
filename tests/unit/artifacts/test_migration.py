"""Tests for the embedded link migration."""

from unittest.mock import MagicMock

from tracelink.artifacts import (
    ArtifactLink,
    ArtifactStore,
    ArtifactType,
    LinkStore,
    LinkType,
    migrate_embedded_links,
)


def test_folds_embedded_links_into_standalone_links(
    artifact_store: ArtifactStore, link_store: LinkStore
) -> None:
    requirement = artifact_store.create(
        ArtifactType.REQUIREMENT,
        "Stop",
        linked_artifacts=[
            ArtifactLink("UC-001", LinkType.SATISFIES),
            ArtifactLink("RISK-001", LinkType.CONSTRAINED_BY),
        ],
    )
    _ = link_store.create_link(requirement.id, "UC-001", LinkType.SATISFIES)

    report = migrate_embedded_links(artifact_store, link_store)

    assert report.skipped == ((requirement.id, "UC-001", "satisfies"),)
    assert report.cleared == (requirement.id,)
    assert len(report.created) == 1
    migrated = link_store.get(report.created[0])
    assert (migrated.target_id, migrated.link_type) == (
        "RISK-001",
        LinkType.CONSTRAINED_BY,
    )
    assert migrated.is_global is True
    assert artifact_store.get(requirement.id).linked_artifacts == ()


def test_self_references_are_skipped(
    artifact_store: ArtifactStore, link_store: LinkStore
) -> None:
    use_case = artifact_store.create(
        ArtifactType.USE_CASE,
        "Loop",
        linked_artifacts=[ArtifactLink("UC-001", LinkType.RELATED_TO)],
    )

    report = migrate_embedded_links(artifact_store, link_store)

    assert report.created == ()
    assert report.skipped == ((use_case.id, use_case.id, "related_to"),)
    assert link_store.list_links() == []


def test_second_run_is_a_no_op(
    artifact_store: ArtifactStore, link_store: LinkStore
) -> None:
    _ = artifact_store.create(
        ArtifactType.RISK,
        "Fade",
        linked_artifacts=[ArtifactLink("REQ-001", LinkType.CONSTRAINS)],
    )
    first = migrate_embedded_links(artifact_store, link_store)
    logger = MagicMock()

    second = migrate_embedded_links(artifact_store, link_store, logger=logger)

    assert len(first.created) == 1
    assert (second.created, second.skipped, second.cleared) == ((), (), ())
    logger.info.assert_called_once_with(
        "Embedded links migrated", created=0, skipped=0, cleared=0
    )
