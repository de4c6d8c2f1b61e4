"""Tests for historical graph reconstruction."""

from collections.abc import Callable
from unittest.mock import MagicMock

import pytest

from tracelink.artifacts import (
    ArtifactStore,
    ArtifactType,
    LinkStore,
    LinkType,
    ProjectStore,
)
from tracelink.baseline import compare_graphs, load_graph_at
from tracelink.exceptions import ProjectNotFoundError
from tracelink.fs import FakeFileSystem
from tracelink.graph import ArtifactGraph, Edge, EdgeOrigin
from tracelink.repository import FakeRepository


class TestLoadGraphAt:
    def test_reads_files_as_of_commit(
        self,
        artifact_store: ArtifactStore,
        link_store: LinkStore,
        fake_repo: FakeRepository,
    ) -> None:
        requirement = artifact_store.create(ArtifactType.REQUIREMENT, "Stop")
        use_case = artifact_store.create(ArtifactType.USE_CASE, "Brake")
        _ = link_store.create_link(use_case.id, requirement.id, LinkType.SATISFIES)
        snapshot = fake_repo.head()
        assert snapshot is not None
        _ = artifact_store.create(ArtifactType.RISK, "Later")
        _ = artifact_store.update(requirement.id, title="Stop faster")

        graph = load_graph_at(fake_repo, snapshot)

        assert graph.artifact_ids == (requirement.id, use_case.id)
        artifact = graph.get_artifact(requirement.id)
        assert artifact is not None
        assert artifact.title == "Stop"
        assert [e.key for e in graph.edges] == [
            (use_case.id, requirement.id, LinkType.SATISFIES)
        ]

    def test_types_come_from_folders(
        self, fake_fs: FakeFileSystem, fake_repo: FakeRepository
    ) -> None:
        fake_fs.files["risks/ODD-1.md"] = "---\nid: ODD-1\ntitle: Odd\n---\n"
        _ = fake_repo.stage(["risks/ODD-1.md"])
        result = fake_repo.commit("Add odd risk")
        assert result.sha is not None

        graph = load_graph_at(fake_repo, result.sha)

        assert graph.artifact_type("ODD-1") is ArtifactType.RISK

    def test_unreadable_files_are_skipped(
        self, fake_fs: FakeFileSystem, fake_repo: FakeRepository
    ) -> None:
        fake_fs.files["requirements/REQ-001.md"] = "---\nid: [broken\n---\n"
        fake_fs.files["requirements/notes.txt"] = "ignored"
        _ = fake_repo.stage(["requirements/REQ-001.md", "requirements/notes.txt"])
        result = fake_repo.commit("Broken")
        assert result.sha is not None
        logger = MagicMock()

        graph = load_graph_at(fake_repo, result.sha, logger=logger)

        assert len(graph) == 0
        logger.warning.assert_called_once()
        assert logger.warning.call_args.args[0] == "Skipping unreadable artifact"

    def test_project_scope(
        self,
        artifact_store: ArtifactStore,
        link_store: LinkStore,
        project_store: ProjectStore,
        fake_repo: FakeRepository,
    ) -> None:
        member = artifact_store.create(ArtifactType.REQUIREMENT, "In")
        outside = artifact_store.create(ArtifactType.REQUIREMENT, "Out")
        _ = link_store.create_link(member.id, outside.id, LinkType.REFINES)
        project = project_store.create("Brakes")
        _ = project_store.add_artifact(project.id, member)
        head = fake_repo.head()
        assert head is not None

        graph = load_graph_at(fake_repo, head, project_id=project.id)

        assert graph.artifact_ids == (member.id,)
        assert graph.exists(outside.id) is True
        assert graph.dangling_edges() == ()

    def test_project_missing_at_commit(
        self,
        artifact_store: ArtifactStore,
        project_store: ProjectStore,
        fake_repo: FakeRepository,
    ) -> None:
        _ = artifact_store.create(ArtifactType.REQUIREMENT, "Early")
        early = fake_repo.head()
        assert early is not None
        project = project_store.create("Brakes")

        with pytest.raises(ProjectNotFoundError):
            _ = load_graph_at(fake_repo, early, project_id=project.id)

    def test_unknown_commit(self, fake_repo: FakeRepository) -> None:
        with pytest.raises(KeyError):
            _ = load_graph_at(fake_repo, "deadbeef")


class TestCompareGraphs:
    def test_reports_node_and_edge_differences(
        self, make_edge: Callable[..., Edge]
    ) -> None:
        kept = make_edge("REQ-001", "UC-001")
        dropped = make_edge("REQ-002", "UC-001")
        new = make_edge("REQ-003", "UC-001")
        old_graph = ArtifactGraph(edges=[kept, dropped])
        new_graph = ArtifactGraph(edges=[kept, new])

        comparison = compare_graphs(old_graph, new_graph)

        assert comparison.added_edges == (new,)
        assert comparison.removed_edges == (dropped,)

    def test_representation_change_is_not_a_difference(
        self, make_edge: Callable[..., Edge]
    ) -> None:
        standalone = make_edge("REQ-001", "UC-001", link_id="LINK-001")
        embedded = make_edge("REQ-001", "UC-001", origin=EdgeOrigin.EMBEDDED)

        comparison = compare_graphs(
            ArtifactGraph(edges=[standalone]), ArtifactGraph(edges=[embedded])
        )

        assert comparison.added_edges == ()
        assert comparison.removed_edges == ()

    def test_artifact_sets(
        self,
        artifact_store: ArtifactStore,
        fake_repo: FakeRepository,
    ) -> None:
        first = artifact_store.create(ArtifactType.RISK, "One")
        before = fake_repo.head()
        second = artifact_store.create(ArtifactType.RISK, "Two")
        _ = artifact_store.permanent_delete(first.id)
        after = fake_repo.head()
        assert before is not None
        assert after is not None

        comparison = compare_graphs(
            load_graph_at(fake_repo, before), load_graph_at(fake_repo, after)
        )

        assert comparison.added_artifacts == (second.id,)
        assert comparison.removed_artifacts == (first.id,)
