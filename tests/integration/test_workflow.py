"""End-to-end traceability workflows on a real git repository."""

from dataclasses import dataclass
from pathlib import Path

import pytest
from dulwich.repo import Repo

from tests.conftest import GitWorkspace
from tracelink.artifacts import (
    ArtifactStore,
    ArtifactType,
    LinkStore,
    LinkType,
    ProjectStore,
)
from tracelink.baseline import BaselineManager
from tracelink.config import SyncConfig
from tracelink.fs import LocalFileSystem
from tracelink.graph import (
    ArtifactGraph,
    Direction,
    GapKind,
    detect_gaps,
    get_impact_chain,
)
from tracelink.ids import IdAllocator
from tracelink.repository import GitRepository
from tracelink.utils import Clock


@dataclass
class Stores:
    allocator: IdAllocator
    artifacts: ArtifactStore
    links: LinkStore
    projects: ProjectStore
    baselines: BaselineManager


def _stores(
    fs: LocalFileSystem,
    repo: GitRepository,
    clock: Clock,
    sync: SyncConfig | None = None,
) -> Stores:
    allocator = IdAllocator(fs, repo, sync=sync)
    projects = ProjectStore(fs, repo, clock=clock)
    return Stores(
        allocator=allocator,
        artifacts=ArtifactStore(fs, repo, allocator, clock=clock),
        links=LinkStore(fs, repo, allocator, clock=clock),
        projects=projects,
        baselines=BaselineManager(fs, repo, projects, clock=clock),
    )


@pytest.fixture
def stores(git_workspace: GitWorkspace, clock: Clock) -> Stores:
    return _stores(git_workspace.fs, git_workspace.repo, clock)


class TestTraceability:
    def test_links_drive_impact_and_gaps(self, stores: Stores) -> None:
        requirement = stores.artifacts.create(ArtifactType.REQUIREMENT, "Stop")
        use_case = stores.artifacts.create(ArtifactType.USE_CASE, "Brake")
        untraced = stores.artifacts.create(ArtifactType.REQUIREMENT, "Horn")
        _ = stores.links.create_link(
            use_case.id, requirement.id, LinkType.DERIVED_FROM
        )

        graph = ArtifactGraph.build(
            stores.artifacts.list_artifacts(), stores.links.list_links()
        )
        chain = get_impact_chain(requirement.id, graph, Direction.UPSTREAM)
        report = detect_gaps(graph)

        assert [node.artifact_id for node in chain.nodes] == [use_case.id]
        kinds = {status.artifact_id: status.kind for status in report.statuses}
        assert kinds == {
            requirement.id: GapKind.NO_OUTGOING,
            use_case.id: GapKind.NO_INCOMING,
            untraced.id: GapKind.UNLINKED,
        }


class TestBaselines:
    def test_baseline_is_tagged_and_diffed(
        self, git_workspace: GitWorkspace, stores: Stores
    ) -> None:
        project = stores.projects.create("Brakes")
        x = stores.artifacts.create(ArtifactType.REQUIREMENT, "X")
        y = stores.artifacts.create(ArtifactType.REQUIREMENT, "Y")
        for artifact in (x, y):
            _ = stores.projects.add_artifact(project.id, artifact)
        first = stores.baselines.create_baseline(project.id, description="Initial")

        _ = stores.artifacts.update(y.id, title="Y changed")
        z = stores.artifacts.create(ArtifactType.REQUIREMENT, "Z")
        _ = stores.projects.add_artifact(project.id, z)
        _ = stores.projects.remove_artifact(project.id, x)
        second = stores.baselines.create_baseline(project.id)

        tags = {tag.name: tag for tag in git_workspace.repo.list_tags()}
        assert set(tags) == {first.tag_name, second.tag_name}
        assert tags[first.tag_name].message == "[Brakes] 01\n\nInitial"

        diff = stores.baselines.diff(second, first)
        assert diff.added == (z.id,)
        assert diff.removed == (x.id,)
        (modified,) = diff.modified
        assert modified.id == y.id
        assert (modified.previous_revision, modified.current_revision) == (
            "01",
            "02",
        )

    def test_baselines_survive_reopening(
        self, git_workspace: GitWorkspace, stores: Stores, clock: Clock
    ) -> None:
        project = stores.projects.create("Brakes")
        baseline = stores.baselines.create_baseline(project.id)

        with GitRepository(git_workspace.root) as reopened:
            fresh = _stores(LocalFileSystem(reopened.root), reopened, clock)
            assert fresh.baselines.list_baselines(project.id) == [baseline]
            assert fresh.baselines.cache.get(baseline.tag_name) == (
                git_workspace.repo.head()
            )

    def test_graph_at_baseline_ignores_later_work(self, stores: Stores) -> None:
        project = stores.projects.create("Brakes")
        x = stores.artifacts.create(ArtifactType.REQUIREMENT, "X")
        y = stores.artifacts.create(ArtifactType.REQUIREMENT, "Y")
        for artifact in (x, y):
            _ = stores.projects.add_artifact(project.id, artifact)
        _ = stores.links.create_link(x.id, y.id, LinkType.REFINES)
        first = stores.baselines.create_baseline(project.id)

        z = stores.artifacts.create(ArtifactType.REQUIREMENT, "Z")
        _ = stores.projects.add_artifact(project.id, z)
        _ = stores.links.create_link(z.id, y.id, LinkType.REFINES)
        second = stores.baselines.create_baseline(project.id)

        graph = stores.baselines.baseline_graph(first)
        comparison = stores.baselines.compare_baseline_graphs(first, second)

        assert set(graph.artifact_ids) == {x.id, y.id}
        assert [(e.source_id, e.target_id) for e in graph.edges] == [(x.id, y.id)]
        assert comparison.added_artifacts == (z.id,)
        assert comparison.removed_artifacts == ()

    def test_artifact_history(self, stores: Stores) -> None:
        artifact = stores.artifacts.create(ArtifactType.REQUIREMENT, "X")
        _ = stores.artifacts.update(artifact.id, title="X2")

        history = stores.baselines.artifact_history(
            artifact.id, artifact_type=ArtifactType.REQUIREMENT
        )

        assert [entry.revision for entry in history] == ["02", "01"]
        assert history[-1].message == f"Create {artifact.id}"


class TestCounterSync:
    def test_pull_raises_local_counter_and_push_publishes(
        self, git_workspace: GitWorkspace, tmp_path: Path, clock: Clock
    ) -> None:
        remote = tmp_path / "remote.git"
        Repo.init_bare(str(remote), mkdir=True).close()
        sync = SyncConfig(enabled=True, remote=str(remote), branch="main")

        with GitRepository.init(tmp_path / "peer") as peer_repo:
            peer = _stores(LocalFileSystem(peer_repo.root), peer_repo, clock, sync)
            first = peer.links.create_link("REQ-001", "REQ-002", LinkType.REFINES)
            second = peer.links.create_link("REQ-001", "REQ-003", LinkType.REFINES)

        local = _stores(git_workspace.fs, git_workspace.repo, clock, sync)
        third = local.links.create_link("REQ-002", "REQ-003", LinkType.REFINES)

        assert [first.id, second.id] == ["LINK-001", "LINK-002"]
        assert third.id == "LINK-003"

    def test_unreachable_remote_falls_back_to_local_counter(
        self, git_workspace: GitWorkspace, tmp_path: Path, clock: Clock
    ) -> None:
        sync = SyncConfig(enabled=True, remote=str(tmp_path / "missing.git"))
        local = _stores(git_workspace.fs, git_workspace.repo, clock, sync)

        link = local.links.create_link("REQ-001", "REQ-002", LinkType.REFINES)

        assert link.id == "LINK-001"
        assert git_workspace.repo.get_log(1)[0].subject == "Create link LINK-001"
