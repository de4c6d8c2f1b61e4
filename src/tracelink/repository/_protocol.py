"""Repository protocol for type-safe dependency injection.

This module defines a runtime-checkable Protocol that both GitRepository
and FakeRepository satisfy. The stores, the ID allocator, and the baseline
manager depend only on this protocol.
"""

from collections.abc import Iterable
from pathlib import Path
from typing import Protocol, runtime_checkable

from tracelink.repository._models import CommitInfo, CommitResult, TagInfo


@runtime_checkable
class RepositoryProtocol(Protocol):
    """Protocol for the version-control substrate.

    All paths are repository-relative POSIX strings, matching the paths
    used by the file-system protocol.

    Example:
        >>> def save(repo: RepositoryProtocol, path: str, message: str) -> None:
        ...     _ = repo.stage([path])
        ...     _ = repo.commit(message)
    """

    @property
    def root(self) -> Path:
        """Root directory of the working tree."""
        ...

    def close(self) -> None:
        """Release resources held by the repository."""
        ...

    def head(self) -> str | None:
        """Return the HEAD commit SHA, or None for an empty repository."""
        ...

    def stage(self, paths: Iterable[str]) -> frozenset[str]:
        """Stage files for commit.

        Paths that no longer exist in the working tree are staged as
        deletions.

        Raises:
            RepositoryPathViolationError: If any path escapes the repository.
        """
        ...

    def commit(self, message: str) -> CommitResult:
        """Commit the staged changes.

        Returns a result with ``no_changes=True`` when the index matches HEAD.

        Raises:
            RepositoryConflictError: If a concurrent commit is detected.
        """
        ...

    def create_tag(self, name: str, message: str) -> TagInfo:
        """Create an annotated tag on HEAD.

        Raises:
            RepositoryError: If the tag exists or HEAD is missing.
        """
        ...

    def list_tags(self) -> list[TagInfo]:
        """List tags sorted by name."""
        ...

    def get_log(self, n: int = 10, *, path: str | None = None) -> list[CommitInfo]:
        """Get commit history newest first, optionally limited to one path."""
        ...

    def get_file_at_commit(self, path: str, commit: str) -> bytes | None:
        """Return file contents at ``commit``, or None if absent there.

        Raises:
            KeyError: If the commit does not exist.
        """
        ...

    def list_files_at_commit(self, commit: str, prefix: str = "") -> list[str]:
        """List files directly inside folder ``prefix`` at ``commit``."""
        ...

    def fetch(self, remote: str, branch: str) -> str | None:
        """Fetch from a remote and return the remote branch head SHA.

        Returns None when the remote has no such branch.

        Raises:
            RemoteSyncError: If the fetch fails.
        """
        ...

    def push(self, remote: str, branch: str) -> None:
        """Push HEAD to ``branch`` on the remote.

        Raises:
            RemoteSyncError: If the push fails.
        """
        ...
