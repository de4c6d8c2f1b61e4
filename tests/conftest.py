"""Shared test fixtures for tracelink tests."""

from collections.abc import Callable, Iterator
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from pathlib import Path
from types import MappingProxyType

import pytest

from tracelink.artifacts import (
    Artifact,
    ArtifactStore,
    ArtifactType,
    Link,
    LinkStore,
    LinkType,
    Project,
    ProjectStore,
)
from tracelink.baseline import BaselineManager
from tracelink.fs import FakeFileSystem, LocalFileSystem
from tracelink.graph import Edge, EdgeOrigin
from tracelink.ids import IdAllocator
from tracelink.repository import FakeRepository, GitRepository
from tracelink.utils import Clock


@pytest.fixture
def sample_datetime() -> datetime:
    return datetime(2024, 1, 15, 10, 30, 0, tzinfo=UTC)


@pytest.fixture
def clock(sample_datetime: datetime) -> Clock:
    """A clock that advances one second per call."""
    ticks = iter(range(1_000_000))

    def _now() -> datetime:
        return sample_datetime + timedelta(seconds=next(ticks))

    return _now


# =============================================================================
# Fakes
# =============================================================================


@pytest.fixture
def fake_fs() -> FakeFileSystem:
    return FakeFileSystem()


@pytest.fixture
def fake_repo(fake_fs: FakeFileSystem) -> FakeRepository:
    return FakeRepository(workspace=fake_fs)


@pytest.fixture
def allocator(fake_fs: FakeFileSystem, fake_repo: FakeRepository) -> IdAllocator:
    return IdAllocator(fake_fs, fake_repo)


@pytest.fixture
def project_store(
    fake_fs: FakeFileSystem, fake_repo: FakeRepository, clock: Clock
) -> ProjectStore:
    return ProjectStore(fake_fs, fake_repo, clock=clock)


@pytest.fixture
def link_store(
    fake_fs: FakeFileSystem,
    fake_repo: FakeRepository,
    allocator: IdAllocator,
    clock: Clock,
) -> LinkStore:
    return LinkStore(fake_fs, fake_repo, allocator, clock=clock)


@pytest.fixture
def artifact_store(
    fake_fs: FakeFileSystem,
    fake_repo: FakeRepository,
    allocator: IdAllocator,
    clock: Clock,
) -> ArtifactStore:
    return ArtifactStore(fake_fs, fake_repo, allocator, clock=clock)


@pytest.fixture
def baseline_manager(
    fake_fs: FakeFileSystem,
    fake_repo: FakeRepository,
    project_store: ProjectStore,
    clock: Clock,
) -> BaselineManager:
    return BaselineManager(fake_fs, fake_repo, project_store, clock=clock)


# =============================================================================
# Real git workspace
# =============================================================================


@dataclass(frozen=True, slots=True)
class GitWorkspace:
    """A workspace directory backed by a real dulwich repository."""

    root: Path
    fs: LocalFileSystem
    repo: GitRepository


@pytest.fixture
def git_workspace(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> Iterator[GitWorkspace]:
    monkeypatch.setenv("TRACELINK_AUTHOR_NAME", "Test User")
    monkeypatch.setenv("TRACELINK_AUTHOR_EMAIL", "test@example.com")
    root = tmp_path / "workspace"
    repo = GitRepository.init(root)
    try:
        yield GitWorkspace(root=repo.root, fs=LocalFileSystem(repo.root), repo=repo)
    finally:
        repo.close()


# =============================================================================
# Factories
# =============================================================================


@pytest.fixture
def make_artifact(sample_datetime: datetime) -> Callable[..., Artifact]:
    def _make(**overrides: object) -> Artifact:
        defaults: dict[str, object] = {
            "id": "REQ-001",
            "type": ArtifactType.REQUIREMENT,
            "title": "Braking distance",
            "date_created": sample_datetime,
            "last_modified": sample_datetime,
        }
        defaults.update(overrides)
        return Artifact(**defaults)  # pyright: ignore[reportArgumentType]

    return _make


@pytest.fixture
def make_link(sample_datetime: datetime) -> Callable[..., Link]:
    def _make(**overrides: object) -> Link:
        defaults: dict[str, object] = {
            "id": "LINK-001",
            "source_id": "REQ-001",
            "target_id": "UC-001",
            "link_type": LinkType.SATISFIES,
            "date_created": sample_datetime,
            "last_modified": sample_datetime,
        }
        defaults.update(overrides)
        return Link(**defaults)  # pyright: ignore[reportArgumentType]

    return _make


@pytest.fixture
def make_project() -> Callable[..., Project]:
    def _make(
        members: dict[ArtifactType, set[str]] | None = None, **overrides: object
    ) -> Project:
        defaults: dict[str, object] = {
            "id": "proj-1",
            "name": "Braking System",
            "members": MappingProxyType(
                {t: frozenset((members or {}).get(t, ())) for t in ArtifactType}
            ),
        }
        defaults.update(overrides)
        return Project(**defaults)  # pyright: ignore[reportArgumentType]

    return _make


@pytest.fixture
def make_edge() -> Callable[..., Edge]:
    def _make(source_id: str, target_id: str, **overrides: object) -> Edge:
        defaults: dict[str, object] = {
            "source_id": source_id,
            "target_id": target_id,
            "link_type": LinkType.SATISFIES,
            "origin": EdgeOrigin.STANDALONE,
        }
        defaults.update(overrides)
        return Edge(**defaults)  # pyright: ignore[reportArgumentType]

    return _make
