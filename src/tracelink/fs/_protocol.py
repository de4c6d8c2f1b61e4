"""File-system protocol for workspace storage.

Every component that persists artifacts, links, counters, or baselines
goes through this protocol rather than touching the disk directly, so the
same code runs against a real workspace or an in-memory fake.
"""

from typing import Protocol, runtime_checkable


@runtime_checkable
class FileSystemProtocol(Protocol):
    """Protocol for workspace-relative file operations.

    Paths are POSIX-style strings relative to the workspace root
    (e.g. ``"requirements/REQ-001.md"``).
    """

    def read_text(self, path: str) -> str:
        """Read a file as UTF-8 text.

        Raises:
            StorageIOError: If the file is missing or cannot be read.
        """
        ...

    def write_text(self, path: str, content: str) -> None:
        """Write a file atomically, creating parent folders as needed.

        Raises:
            StorageIOError: If the write fails.
        """
        ...

    def list_files(self, folder: str, *, suffix: str = "") -> list[str]:
        """List files directly inside ``folder``, sorted by path.

        Returns an empty list when the folder does not exist.
        """
        ...

    def exists(self, path: str) -> bool:
        """Return True if a file or folder exists at ``path``."""
        ...

    def mkdir(self, folder: str) -> None:
        """Create ``folder`` and any missing parents."""
        ...

    def delete(self, path: str) -> None:
        """Delete a file. Deleting a missing file is not an error."""
        ...
