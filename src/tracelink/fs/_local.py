"""Local-disk implementation of the file-system protocol."""

import tempfile
from pathlib import Path, PurePosixPath
from typing import Final

from tracelink.exceptions import RepositoryPathViolationError, StorageIOError

__all__ = ["LocalFileSystem"]


class LocalFileSystem:
    """Workspace storage rooted at a directory on disk.

    All write operations use a temporary file in the destination folder
    followed by ``Path.replace`` so a file is either fully written or
    untouched.

    Example:
        >>> fs = LocalFileSystem(Path("/work/project"))
        >>> fs.write_text("counters/requirements.md", "7")
        >>> fs.read_text("counters/requirements.md")
        '7'
    """

    __slots__: Final = ("_root",)

    _root: Path

    def __init__(self, root: Path) -> None:
        """Initialize the file system.

        Args:
            root: Workspace root directory. Created if it does not exist.
        """
        self._root = root.resolve()
        self._root.mkdir(parents=True, exist_ok=True)

    @property
    def root(self) -> Path:
        """Return the resolved workspace root."""
        return self._root

    def resolve(self, path: str) -> Path:
        """Resolve a workspace-relative path to an absolute path.

        Raises:
            RepositoryPathViolationError: If the path escapes the workspace.
        """
        candidate = (self._root / PurePosixPath(path)).resolve()
        if not candidate.is_relative_to(self._root):
            msg = f"Path is outside the workspace: {path}"
            raise RepositoryPathViolationError(msg, path=path, root=self._root)
        return candidate

    def read_text(self, path: str) -> str:
        target = self.resolve(path)
        try:
            return target.read_text(encoding="utf-8")
        except OSError as e:
            msg = f"Failed to read file: {e}"
            raise StorageIOError(msg, path=path, operation="read", cause=e) from e

    def write_text(self, path: str, content: str) -> None:
        target = self.resolve(path)
        _ = target.parent.mkdir(parents=True, exist_ok=True)

        temp_path: Path | None = None
        try:
            with tempfile.NamedTemporaryFile(
                mode="w",
                dir=target.parent,
                delete=False,
                suffix=".tmp",
                encoding="utf-8",
            ) as f:
                _ = f.write(content)
                temp_path = Path(f.name)

            _ = temp_path.replace(target)

        except OSError as e:
            if temp_path is not None:
                temp_path.unlink(missing_ok=True)
            msg = f"Failed to write file: {e}"
            raise StorageIOError(msg, path=path, operation="write", cause=e) from e

    def list_files(self, folder: str, *, suffix: str = "") -> list[str]:
        directory = self.resolve(folder)
        if not directory.is_dir():
            return []

        try:
            entries = [
                entry.relative_to(self._root).as_posix()
                for entry in directory.iterdir()
                if entry.is_file() and entry.name.endswith(suffix)
            ]
        except OSError as e:
            msg = f"Failed to list folder: {e}"
            raise StorageIOError(msg, path=folder, operation="list", cause=e) from e
        return sorted(entries)

    def exists(self, path: str) -> bool:
        return self.resolve(path).exists()

    def mkdir(self, folder: str) -> None:
        self.resolve(folder).mkdir(parents=True, exist_ok=True)

    def delete(self, path: str) -> None:
        try:
            self.resolve(path).unlink(missing_ok=True)
        except OSError as e:
            msg = f"Failed to delete file: {e}"
            raise StorageIOError(msg, path=path, operation="delete", cause=e) from e
