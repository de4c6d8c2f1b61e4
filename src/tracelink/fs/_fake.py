"""In-memory fake file system for testing."""

from dataclasses import dataclass, field
from pathlib import PurePosixPath

from tracelink.exceptions import StorageIOError


@dataclass
class FakeFileSystem:
    """In-memory file system satisfying FileSystemProtocol.

    Files are held in ``files`` keyed by normalized workspace-relative path.
    Folders are implied by file paths plus anything passed to ``mkdir``.

    Attributes:
        files: Mapping of path to text content.
        folders: Explicitly created folders.
        writes: Every path written, in order (for assertions on write counts).
        fail_writes: Paths whose writes raise StorageIOError.
    """

    files: dict[str, str] = field(default_factory=dict)
    folders: set[str] = field(default_factory=set)
    writes: list[str] = field(default_factory=list)
    fail_writes: set[str] = field(default_factory=set)

    @staticmethod
    def _normalize(path: str) -> str:
        return PurePosixPath(path).as_posix().strip("/")

    def read_text(self, path: str) -> str:
        key = self._normalize(path)
        if key not in self.files:
            msg = f"File not found: {path}"
            raise StorageIOError(msg, path=path, operation="read")
        return self.files[key]

    def write_text(self, path: str, content: str) -> None:
        key = self._normalize(path)
        if key in self.fail_writes:
            msg = f"Simulated write failure: {path}"
            raise StorageIOError(msg, path=path, operation="write")
        self.files[key] = content
        self.writes.append(key)

    def list_files(self, folder: str, *, suffix: str = "") -> list[str]:
        prefix = self._normalize(folder)
        return sorted(
            path
            for path in self.files
            if str(PurePosixPath(path).parent) == prefix and path.endswith(suffix)
        )

    def exists(self, path: str) -> bool:
        key = self._normalize(path)
        if key in self.files or key in self.folders:
            return True
        return any(p.startswith(f"{key}/") for p in self.files)

    def mkdir(self, folder: str) -> None:
        self.folders.add(self._normalize(folder))

    def delete(self, path: str) -> None:
        _ = self.files.pop(self._normalize(path), None)
