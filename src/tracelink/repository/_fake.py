"""In-memory fake repository for testing.

This module provides FakeRepository, which satisfies RepositoryProtocol
without touching git. Each commit stores a full snapshot of tracked file
contents so history, file-at-commit reads, and tags behave like the real
substrate.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from pathlib import Path, PurePosixPath
from types import TracebackType
from typing import Self

from tracelink.exceptions import RemoteSyncError, RepositoryError
from tracelink.fs._fake import FakeFileSystem
from tracelink.repository._models import CommitInfo, CommitResult, TagInfo

_BASE_TIME = datetime(2024, 1, 1, tzinfo=UTC)


@dataclass(frozen=True, slots=True)
class FakeCommit:
    """A commit recorded by FakeRepository.

    Attributes:
        sha: Synthetic commit SHA.
        message: Commit message.
        files: Full snapshot of tracked files after this commit.
        changed: Paths added, modified, or deleted by this commit.
        parent: Parent SHA, or None for the first commit.
        timestamp: Synthetic commit time.
    """

    sha: str
    message: str
    files: dict[str, bytes]
    changed: frozenset[str]
    parent: str | None
    timestamp: datetime


@dataclass
class FakeRepository:
    """Fake repository for testing.

    Staging copies the current content of each path from ``workspace``;
    a path missing from the workspace is staged as a deletion.

    Attributes:
        workspace: Fake file system the repository tracks.
        commits: Commits oldest first.
        tags: Tags keyed by name.
        staged: Pending changes; None marks a deletion.
        remotes: Remote name to file snapshot used by fetch.
        pushed: Remote names that received a push, in order.
        fail_fetch: When True, fetch raises RemoteSyncError.
        fail_push: When True, push raises RemoteSyncError.
    """

    workspace: FakeFileSystem = field(default_factory=FakeFileSystem)
    commits: list[FakeCommit] = field(default_factory=list)
    tags: dict[str, TagInfo] = field(default_factory=dict)
    staged: dict[str, bytes | None] = field(default_factory=dict)
    remotes: dict[str, dict[str, str]] = field(default_factory=dict)
    pushed: list[str] = field(default_factory=list)
    fail_fetch: bool = False
    fail_push: bool = False
    root_path: Path = field(default_factory=lambda: Path("/fake/workspace"))
    _objects: dict[str, FakeCommit] = field(
        default_factory=dict, init=False, repr=False
    )
    _counter: int = field(default=0, init=False, repr=False)

    @property
    def root(self) -> Path:
        return self.root_path

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()

    def close(self) -> None:
        """No-op for the fake."""

    # ---- Commits ----

    def head(self) -> str | None:
        return self.commits[-1].sha if self.commits else None

    def stage(self, paths: Iterable[str]) -> frozenset[str]:
        staged: set[str] = set()
        for path in paths:
            key = PurePosixPath(path).as_posix().strip("/")
            content = self.workspace.files.get(key)
            self.staged[key] = content.encode("utf-8") if content is not None else None
            staged.add(key)
        return frozenset(staged)

    def commit(self, message: str) -> CommitResult:
        snapshot = dict(self.commits[-1].files) if self.commits else {}
        changed: set[str] = set()
        for path, content in self.staged.items():
            if content is None:
                if snapshot.pop(path, None) is not None:
                    changed.add(path)
            elif snapshot.get(path) != content:
                snapshot[path] = content
                changed.add(path)
        self.staged.clear()

        if not changed:
            return CommitResult(sha=None, files=frozenset(), no_changes=True)

        fake_commit = self._record(message, snapshot, frozenset(changed))
        return CommitResult(
            sha=fake_commit.sha, files=fake_commit.changed, no_changes=False
        )

    def _record(
        self, message: str, files: dict[str, bytes], changed: frozenset[str]
    ) -> FakeCommit:
        self._counter += 1
        fake_commit = FakeCommit(
            sha=f"fake{self._counter:08d}",
            message=message,
            files=files,
            changed=changed,
            parent=self.head(),
            timestamp=_BASE_TIME + timedelta(minutes=self._counter),
        )
        self._objects[fake_commit.sha] = fake_commit
        self.commits.append(fake_commit)
        return fake_commit

    # ---- Tags ----

    def create_tag(self, name: str, message: str) -> TagInfo:
        head = self.head()
        if head is None:
            msg = "Cannot tag an empty repository"
            raise RepositoryError(msg)
        if name in self.tags:
            msg = f"Tag already exists: {name}"
            raise RepositoryError(msg)
        info = TagInfo(
            name=name,
            message=message,
            commit=head,
            timestamp=self._objects[head].timestamp,
        )
        self.tags[name] = info
        return info

    def list_tags(self) -> list[TagInfo]:
        return [self.tags[name] for name in sorted(self.tags)]

    # ---- History ----

    def get_log(self, n: int = 10, *, path: str | None = None) -> list[CommitInfo]:
        entries = [
            c for c in reversed(self.commits) if path is None or path in c.changed
        ]
        return [
            CommitInfo(
                sha=c.sha,
                message=c.message,
                author_name="Fake Author",
                author_email="fake@example.com",
                timestamp=c.timestamp,
                parent_shas=(c.parent,) if c.parent else (),
            )
            for c in entries[:n]
        ]

    def get_file_at_commit(self, path: str, commit: str) -> bytes | None:
        if commit not in self._objects:
            msg = f"Commit not found: {commit}"
            raise KeyError(msg)
        return self._objects[commit].files.get(path)

    def list_files_at_commit(self, commit: str, prefix: str = "") -> list[str]:
        if commit not in self._objects:
            msg = f"Commit not found: {commit}"
            raise KeyError(msg)
        folder = prefix.strip("/")
        return sorted(
            path
            for path in self._objects[commit].files
            if str(PurePosixPath(path).parent) == (folder or ".")
        )

    # ---- Remotes ----

    def fetch(self, remote: str, branch: str) -> str | None:
        if self.fail_fetch or remote not in self.remotes:
            msg = f"Failed to fetch from {remote}"
            raise RemoteSyncError(msg, remote=remote, operation="fetch")

        # Remote state becomes a detached object reachable by SHA only
        self._counter += 1
        remote_commit = FakeCommit(
            sha=f"remote{self._counter:06d}",
            message=f"{remote}/{branch}",
            files={p: c.encode("utf-8") for p, c in self.remotes[remote].items()},
            changed=frozenset(),
            parent=None,
            timestamp=_BASE_TIME + timedelta(minutes=self._counter),
        )
        self._objects[remote_commit.sha] = remote_commit
        return remote_commit.sha

    def push(self, remote: str, branch: str) -> None:
        if self.fail_push:
            msg = f"Failed to push to {remote}"
            raise RemoteSyncError(msg, remote=remote, operation="push")
        head = self.head()
        if head is not None:
            self.remotes[remote] = {
                path: content.decode("utf-8")
                for path, content in self._objects[head].files.items()
            }
        self.pushed.append(f"{remote}/{branch}")
