"""Git repository backed by dulwich.

This module provides GitRepository, the production implementation of the
repository protocol. All operations go through dulwich; no git binary is
required.
"""

import stat
from collections.abc import Iterable
from datetime import datetime, timedelta, timezone
from io import BytesIO
from pathlib import Path, PurePosixPath
from types import TracebackType
from typing import Final, Self, cast

from dulwich import porcelain
from dulwich.diff_tree import tree_changes
from dulwich.object_store import tree_lookup_path
from dulwich.objects import Commit, Tag
from dulwich.refs import check_ref_format
from dulwich.repo import Repo

from tracelink.exceptions import (
    RemoteSyncError,
    RepositoryConflictError,
    RepositoryError,
    RepositoryNotInitializedError,
    RepositoryPathViolationError,
)
from tracelink.repository._models import CommitInfo, CommitResult, TagInfo
from tracelink.utils._author import get_author_info

_SHA_HEX_LENGTH: Final = 40
_MIN_SHA_ABBREV_LENGTH: Final = 4

__all__ = ["GitRepository"]


def _to_datetime(timestamp: int, offset_seconds: int) -> datetime:
    """Convert a git timestamp and dulwich timezone offset to a datetime.

    dulwich reports offsets in seconds east of UTC (``+0100`` is 3600).
    """
    return datetime.fromtimestamp(
        timestamp, tz=timezone(timedelta(seconds=offset_seconds))
    )


class GitRepository:
    """Version-control substrate for a tracelink workspace.

    The class implements the context manager protocol; the underlying
    dulwich Repo is closed when the context exits.

    Example:
        >>> with GitRepository.init(Path("/work/project")) as repo:
        ...     _ = repo.stage(["requirements/REQ-001.md"])
        ...     result = repo.commit("Create REQ-001")
    """

    __slots__: Final = ("_repo", "_root")

    _root: Path
    _repo: Repo

    def __init__(self, working_dir: Path | None = None) -> None:
        """Open the repository containing ``working_dir``.

        Args:
            working_dir: Directory to start discovery from. If None, uses the
                current working directory.

        Raises:
            RepositoryNotInitializedError: If no .git directory is found.
        """
        if working_dir is None:
            working_dir = Path.cwd()
        self._root = self._discover_root(working_dir)
        self._repo = Repo(str(self._root))

    @classmethod
    def init(cls, root: Path) -> Self:
        """Create a repository at ``root`` if needed and open it."""
        root.mkdir(parents=True, exist_ok=True)
        if not (root / ".git").exists():
            Repo.init(str(root)).close()
        return cls(root)

    def _discover_root(self, working_dir: Path) -> Path:
        current = working_dir.resolve()
        for candidate in (current, *current.parents):
            if (candidate / ".git").exists():
                return candidate
        msg = f"No git repository found from {working_dir}"
        raise RepositoryNotInitializedError(msg, path=working_dir)

    # =========================================================================
    # Context Manager Protocol
    # =========================================================================

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
        """Close the underlying dulwich Repo."""
        self._repo.close()

    @property
    def root(self) -> Path:
        """Return the resolved working tree root."""
        return self._root

    # =========================================================================
    # Staging and Commit Methods
    # =========================================================================

    def head(self) -> str | None:
        """Return the HEAD commit SHA, or None if no commits exist."""
        try:
            head_bytes: bytes = self._repo.head()
        except KeyError:
            return None
        return head_bytes.decode("ascii")

    def stage(self, paths: Iterable[str]) -> frozenset[str]:
        """Stage files for commit.

        Existing files are added to the index; paths missing from the working
        tree are removed from it, staging their deletion.

        Args:
            paths: Repository-relative paths.

        Returns:
            Frozenset of staged repository-relative paths.

        Raises:
            RepositoryPathViolationError: If any path escapes the repository.
        """
        relative_paths = [self._to_relative_path(p) for p in paths]
        if not relative_paths:
            return frozenset()

        existing = [p for p in relative_paths if (self._root / p).exists()]
        removed = [p for p in relative_paths if not (self._root / p).exists()]

        if existing:
            _ = porcelain.add(self._repo, paths=[str(self._root / p) for p in existing])
        if removed:
            self._remove_from_index(removed)

        return frozenset(relative_paths)

    def commit(self, message: str) -> CommitResult:
        """Commit the staged changes with race detection.

        HEAD is captured before committing and compared with the new commit's
        parent. A mismatch means another process committed in between.

        Args:
            message: Commit message.

        Returns:
            CommitResult with the new SHA and the changed paths.

        Raises:
            RepositoryConflictError: If a concurrent commit is detected. The
                ``details`` attribute names the commit that was written.
        """
        index_tree: bytes = self._repo.open_index().commit(self._repo.object_store)
        head_before = self.head()
        changed = self._changed_paths(self._head_tree(), index_tree)
        if not changed:
            return CommitResult(sha=None, files=frozenset(), no_changes=True)

        author = get_author_info().format_identity().encode()
        commit_sha_bytes: bytes = porcelain.commit(
            self._repo,
            message=message.encode(),
            author=author,
            committer=author,
        )
        commit_sha = commit_sha_bytes.decode("ascii")

        commit_obj = self._repo[commit_sha_bytes]
        parents: list[bytes] = getattr(commit_obj, "parents", [])
        if head_before is not None:
            if not parents or parents[0].decode("ascii") != head_before:
                actual_parent = parents[0].decode("ascii") if parents else "none"
                msg = (
                    f"Concurrent modification detected: expected parent={head_before}, "
                    f"got parent={actual_parent}"
                )
                raise RepositoryConflictError(
                    msg, path=self._root, details=f"Commit SHA: {commit_sha}"
                )
        elif parents:
            msg = "Concurrent modification: expected no parent for initial commit"
            raise RepositoryConflictError(
                msg, path=self._root, details=f"Commit SHA: {commit_sha}"
            )

        return CommitResult(sha=commit_sha, files=changed, no_changes=False)

    # =========================================================================
    # Tag Methods
    # =========================================================================

    def create_tag(self, name: str, message: str) -> TagInfo:
        """Create an annotated tag on HEAD.

        Args:
            name: Tag name (must be a valid git ref component).
            message: Tag message.

        Returns:
            TagInfo describing the new tag.

        Raises:
            RepositoryError: If HEAD is missing, the name is invalid, or the
                tag already exists.
        """
        head = self.head()
        if head is None:
            msg = "Cannot tag an empty repository"
            raise RepositoryError(msg)

        name_bytes = name.encode("utf-8")
        if not check_ref_format(b"tags/" + name_bytes):
            msg = f"Invalid tag name: {name!r}"
            raise RepositoryError(msg)
        if b"refs/tags/" + name_bytes in self._repo.refs:
            msg = f"Tag already exists: {name}"
            raise RepositoryError(msg)

        porcelain.tag_create(
            self._repo,
            name_bytes,
            author=get_author_info().format_identity().encode(),
            message=message.encode("utf-8"),
            annotated=True,
            objectish=head.encode("ascii"),
        )
        tag_sha: bytes = self._repo.refs[b"refs/tags/" + name_bytes]
        return self._tag_info(name_bytes, tag_sha)

    def list_tags(self) -> list[TagInfo]:
        """List all tags sorted by name."""
        tag_refs = cast("dict[bytes, bytes]", self._repo.refs.as_dict(b"refs/tags"))
        return [self._tag_info(name, sha) for name, sha in sorted(tag_refs.items())]

    def _tag_info(self, name: bytes, sha: bytes) -> TagInfo:
        obj = self._repo[sha]
        if isinstance(obj, Tag):
            _, target = obj.object
            return TagInfo(
                name=name.decode("utf-8"),
                message=obj.message.decode("utf-8", errors="replace").strip(),
                commit=target.decode("ascii"),
                timestamp=_to_datetime(obj.tag_time, obj.tag_timezone),
            )
        # Lightweight tag points at the commit directly
        return TagInfo(
            name=name.decode("utf-8"),
            message="",
            commit=sha.decode("ascii"),
            timestamp=None,
        )

    # =========================================================================
    # History Methods
    # =========================================================================

    def get_log(self, n: int = 10, *, path: str | None = None) -> list[CommitInfo]:
        """Get commit history newest first.

        Args:
            n: Maximum number of commits to return.
            path: Limit to commits that changed this repository-relative path.

        Returns:
            List of CommitInfo, empty if the repository has no commits.
        """
        head = self.head()
        if head is None:
            return []

        paths = [self._to_relative_path(path).encode("utf-8")] if path else None
        walker = self._repo.get_walker(
            include=[head.encode("ascii")], paths=paths, max_entries=n
        )
        return [self._commit_to_info(entry.commit) for entry in walker]

    def get_file_at_commit(self, path: str, commit: str) -> bytes | None:
        """Get file contents as they existed at ``commit``.

        Args:
            path: Repository-relative path.
            commit: Commit SHA (full, or abbreviated to at least 4 characters).

        Returns:
            File contents, or None if the file does not exist at that commit.

        Raises:
            KeyError: If the commit is not found or is ambiguous.
        """
        tree_sha = self._commit_tree(commit)
        try:
            mode, blob_sha = tree_lookup_path(
                self._repo.__getitem__, tree_sha, self._to_relative_path(path).encode()
            )
        except KeyError:
            return None
        if stat.S_ISDIR(mode):
            return None

        content: bytes = getattr(self._repo[blob_sha], "data", b"")
        return content

    def list_files_at_commit(self, commit: str, prefix: str = "") -> list[str]:
        """List files directly inside folder ``prefix`` at ``commit``.

        Args:
            commit: Commit SHA.
            prefix: Repository-relative folder; empty for the root.

        Returns:
            Sorted repository-relative file paths.
        """
        tree_sha = self._commit_tree(commit)
        folder = prefix.strip("/")
        if folder:
            try:
                mode, tree_sha = tree_lookup_path(
                    self._repo.__getitem__, tree_sha, folder.encode("utf-8")
                )
            except KeyError:
                return []
            if not stat.S_ISDIR(mode):
                return []

        tree_obj = self._repo[tree_sha]
        files: list[str] = []
        for entry in getattr(tree_obj, "items", list)():
            if stat.S_ISDIR(entry.mode):
                continue
            name = entry.path.decode("utf-8")
            files.append(f"{folder}/{name}" if folder else name)
        return sorted(files)

    # =========================================================================
    # Remote Methods
    # =========================================================================

    def fetch(self, remote: str, branch: str) -> str | None:
        """Fetch from ``remote`` and return the head of ``branch`` there.

        Raises:
            RemoteSyncError: If the fetch fails for any reason.
        """
        try:
            result = porcelain.fetch(
                self._repo, remote_location=remote, errstream=BytesIO()
            )
        except Exception as e:
            msg = f"Failed to fetch from {remote}: {e}"
            raise RemoteSyncError(msg, remote=remote, operation="fetch", cause=e) from e

        refs = cast("dict[bytes, bytes]", getattr(result, "refs", result))
        remote_head = refs.get(f"refs/heads/{branch}".encode())
        return remote_head.decode("ascii") if remote_head else None

    def push(self, remote: str, branch: str) -> None:
        """Push HEAD to ``branch`` on ``remote``.

        Raises:
            RemoteSyncError: If the push fails for any reason.
        """
        refspec = f"HEAD:refs/heads/{branch}".encode()
        try:
            porcelain.push(
                self._repo,
                remote_location=remote,
                refspecs=[refspec],
                outstream=BytesIO(),
                errstream=BytesIO(),
            )
        except Exception as e:
            msg = f"Failed to push to {remote}: {e}"
            raise RemoteSyncError(msg, remote=remote, operation="push", cause=e) from e

    # =========================================================================
    # Private Helper Methods
    # =========================================================================

    def _to_relative_path(self, path: str) -> str:
        """Normalize a repository-relative path, rejecting escapes."""
        candidate = (self._root / PurePosixPath(path)).resolve()
        if not candidate.is_relative_to(self._root):
            msg = f"Path is outside repository scope: {path}"
            raise RepositoryPathViolationError(msg, path=path, root=self._root)
        return candidate.relative_to(self._root).as_posix()

    def _remove_from_index(self, relative_paths: list[str]) -> None:
        index = self._repo.open_index()
        for rel_path in relative_paths:
            path_bytes = rel_path.encode("utf-8")
            if path_bytes in index:
                del index[path_bytes]
        index.write()

    def _head_tree(self) -> bytes | None:
        head = self.head()
        if head is None:
            return None
        tree: bytes = getattr(self._repo[head.encode("ascii")], "tree")
        return tree

    def _changed_paths(self, old_tree: bytes | None, new_tree: bytes) -> frozenset[str]:
        changed: set[str] = set()
        for change in tree_changes(self._repo.object_store, old_tree, new_tree):
            for side in (change.old, change.new):
                if side is not None and side.path is not None:
                    changed.add(side.path.decode("utf-8"))
        return frozenset(changed)

    def _resolve_commit(self, sha: str) -> bytes:
        """Resolve a full or abbreviated SHA to full SHA bytes.

        Raises:
            KeyError: If the SHA is too short, not found, or ambiguous.
        """
        if len(sha) < _MIN_SHA_ABBREV_LENGTH:
            msg = f"SHA too short (minimum {_MIN_SHA_ABBREV_LENGTH} characters): {sha}"
            raise KeyError(msg)

        if len(sha) == _SHA_HEX_LENGTH:
            sha_bytes = sha.lower().encode("ascii")
            if sha_bytes not in self._repo.object_store:
                msg = f"Commit not found: {sha}"
                raise KeyError(msg)
            return sha_bytes

        prefix = sha.lower().encode("ascii")
        matches = [
            obj_sha
            for obj_sha in self._repo.object_store
            if obj_sha.startswith(prefix) and isinstance(self._repo[obj_sha], Commit)
        ]
        if not matches:
            msg = f"Commit not found: {sha}"
            raise KeyError(msg)
        if len(matches) > 1:
            msg = f"Ambiguous SHA prefix: {sha} (matches {len(matches)} commits)"
            raise KeyError(msg)
        return matches[0]

    def _commit_tree(self, commit: str) -> bytes:
        commit_obj = self._repo[self._resolve_commit(commit)]
        if not isinstance(commit_obj, Commit):
            msg = f"Not a commit: {commit}"
            raise KeyError(msg)
        return commit_obj.tree

    def _commit_to_info(self, commit: Commit) -> CommitInfo:
        author_str = commit.author.decode("utf-8", errors="replace")
        if "<" in author_str and author_str.endswith(">"):
            name_part, email_part = author_str.rsplit("<", 1)
            name_part = name_part.strip()
            email_part = email_part.rstrip(">")
        else:
            name_part, email_part = author_str, ""

        return CommitInfo(
            sha=commit.id.decode("ascii"),
            message=commit.message.decode("utf-8", errors="replace"),
            author_name=name_part,
            author_email=email_part,
            timestamp=_to_datetime(commit.author_time, commit.author_timezone),
            parent_shas=tuple(p.decode("ascii") for p in commit.parents),
        )
