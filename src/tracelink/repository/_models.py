"""Repository models.

This module defines data structures for commits and tags returned by the
version-control substrate.
"""

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True, slots=True)
class CommitResult:
    """Result of a commit operation.

    Attributes:
        sha: Commit SHA hex string, None if no_changes.
        files: Repository-relative paths included in the commit.
        no_changes: True if nothing was committed.
    """

    sha: str | None
    files: frozenset[str]
    no_changes: bool


@dataclass(frozen=True, slots=True)
class CommitInfo:
    """Information about a single commit.

    Attributes:
        sha: Full 40-character commit SHA hex string.
        message: Complete commit message (subject + body).
        author_name: Author name from commit.
        author_email: Author email from commit.
        timestamp: Commit timestamp with the author's timezone.
        parent_shas: SHA hex strings of parent commits (empty for initial commit).
    """

    sha: str
    message: str
    author_name: str
    author_email: str
    timestamp: datetime
    parent_shas: tuple[str, ...]

    @property
    def subject(self) -> str:
        """Return the first line of the commit message."""
        return self.message.splitlines()[0] if self.message else ""


@dataclass(frozen=True, slots=True)
class TagInfo:
    """An annotated tag and the commit it points to.

    Attributes:
        name: Tag name without the refs/tags/ prefix.
        message: Tag message (human description).
        commit: SHA hex string of the tagged commit.
        timestamp: Tag creation time, or None for lightweight tags.
    """

    name: str
    message: str
    commit: str
    timestamp: datetime | None
