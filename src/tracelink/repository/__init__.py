"""Version-control substrate.

Classes:
    GitRepository: dulwich-backed repository for a workspace.
    FakeRepository: In-memory repository for tests.
    RepositoryProtocol: Runtime-checkable protocol for dependency injection.

Models:
    CommitResult: Result of commit operations.
    CommitInfo: Metadata about a single commit.
    TagInfo: An annotated tag and its target commit.

Example:
    >>> from tracelink.repository import GitRepository
    >>> with GitRepository() as repo:
    ...     history = repo.get_log(5, path="requirements/REQ-001.md")
"""

from tracelink.repository._fake import FakeCommit, FakeRepository
from tracelink.repository._git import GitRepository
from tracelink.repository._models import CommitInfo, CommitResult, TagInfo
from tracelink.repository._protocol import RepositoryProtocol

__all__ = [
    "CommitInfo",
    "CommitResult",
    "FakeCommit",
    "FakeRepository",
    "GitRepository",
    "RepositoryProtocol",
    "TagInfo",
]
