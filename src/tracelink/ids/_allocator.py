"""Persisted per-kind ID counters.

Each counter kind has a plain-text file ``counters/{folder}.md`` holding
the last issued number. Allocation is a read-modify-write followed by a
commit of the counter file; there is no internal lock, so callers must
serialize allocations for the same kind.
"""

import re
from collections.abc import Iterable, Mapping
from typing import Final

from structlog.typing import FilteringBoundLogger

from tracelink.config import ArtifactKindConfig, IdsConfig, SyncConfig
from tracelink.exceptions import (
    CounterOverflowError,
    RepositoryError,
    UnknownArtifactTypeError,
)
from tracelink.fs import FileSystemProtocol
from tracelink.repository import RepositoryProtocol
from tracelink.utils import get_null_logger

__all__ = ["COUNTERS_FOLDER", "SYNC_COMMIT_MESSAGE", "IdAllocator"]

COUNTERS_FOLDER: Final = "counters"
SYNC_COMMIT_MESSAGE: Final = "Sync: Update artifact counters"


class IdAllocator:
    """Issues monotonically increasing, type-prefixed identifiers.

    Example:
        >>> allocator = IdAllocator(fs, repo)
        >>> allocator.get_next_id("requirement")
        'REQ-001'
        >>> allocator.get_next_ids("requirement", 2)
        ('REQ-002', 'REQ-003')
    """

    __slots__: Final = ("_config", "_fs", "_logger", "_repo", "_sync")

    _fs: FileSystemProtocol
    _repo: RepositoryProtocol
    _config: IdsConfig
    _sync: SyncConfig
    _logger: FilteringBoundLogger

    def __init__(
        self,
        fs: FileSystemProtocol,
        repo: RepositoryProtocol,
        *,
        config: IdsConfig | None = None,
        sync: SyncConfig | None = None,
        logger: FilteringBoundLogger | None = None,
    ) -> None:
        self._fs = fs
        self._repo = repo
        self._config = config if config is not None else IdsConfig()
        self._sync = sync if sync is not None else SyncConfig()
        self._logger = logger if logger is not None else get_null_logger()

    @property
    def kinds(self) -> tuple[str, ...]:
        """Configured counter kinds."""
        return tuple(self._config.kinds)

    def _kind(self, kind: str) -> ArtifactKindConfig:
        entry = self._config.kinds.get(kind)
        if entry is None:
            msg = f"No ID configuration for kind: {kind}"
            raise UnknownArtifactTypeError(msg, kind=kind, known_kinds=self.kinds)
        return entry

    def counter_path(self, kind: str) -> str:
        """Return the workspace-relative path of a kind's counter file."""
        return f"{COUNTERS_FOLDER}/{self._kind(kind).folder}.md"

    def format_id(self, kind: str, number: int) -> str:
        """Format ``number`` as an ID of ``kind``, e.g. ``REQ-007``.

        Numbers wider than the configured padding are not truncated.
        """
        return f"{self._kind(kind).prefix}-{number:0{self._config.digits}d}"

    # -------------------------------------------------------------------------
    # Counter storage
    # -------------------------------------------------------------------------

    @staticmethod
    def _parse_counter(content: str | bytes | None) -> int:
        if content is None:
            return 0
        text = (
            content.decode("utf-8", errors="replace")
            if isinstance(content, bytes)
            else content
        )
        try:
            value = int(text.strip())
        except ValueError:
            return 0
        return max(value, 0)

    def _read(self, path: str) -> int:
        if not self._fs.exists(path):
            return 0
        return self._parse_counter(self._fs.read_text(path))

    def _write(self, kind: str, path: str, value: int) -> None:
        if value < 0:
            msg = f"Counter for {kind} cannot be negative: {value}"
            raise CounterOverflowError(msg, kind=kind, value=value)
        self._fs.mkdir(COUNTERS_FOLDER)
        self._fs.write_text(path, f"{value}\n")

    def _commit(self, paths: Iterable[str], message: str) -> None:
        _ = self._repo.stage(paths)
        _ = self._repo.commit(message)

    def peek(self, kind: str) -> int:
        """Return the last issued number for ``kind`` without allocating."""
        return self._read(self.counter_path(kind))

    def set_counter(self, kind: str, value: int, *, commit: bool = True) -> None:
        """Overwrite the counter for ``kind``.

        Args:
            kind: Counter kind.
            value: New counter value; must be non-negative.
            commit: Commit the counter file after writing.

        Raises:
            UnknownArtifactTypeError: If ``kind`` is not configured.
            CounterOverflowError: If ``value`` is negative.
        """
        path = self.counter_path(kind)
        self._write(kind, path, value)
        if commit:
            self._commit([path], f"Update {kind} counter")

    # -------------------------------------------------------------------------
    # Allocation
    # -------------------------------------------------------------------------

    def get_next_id(self, kind: str) -> str:
        """Allocate the next ID for ``kind``.

        Raises:
            UnknownArtifactTypeError: If ``kind`` is not configured.
            StorageIOError: If the counter cannot be written.
        """
        return self.get_next_ids(kind, 1)[0]

    def get_next_ids(self, kind: str, count: int) -> tuple[str, ...]:
        """Reserve ``count`` contiguous IDs with a single counter write.

        Returns an empty tuple without touching storage when ``count`` is
        not positive.
        """
        path = self.counter_path(kind)
        if count <= 0:
            return ()

        current = self._read(path)
        last = current + count
        self._write(kind, path, last)
        self._commit([path], f"Update {kind} counter")

        self._logger.info("ids_allocated", kind=kind, first=current + 1, last=last)
        return tuple(self.format_id(kind, n) for n in range(current + 1, last + 1))

    def get_next_id_with_sync(self, kind: str) -> str:
        """Allocate an ID after pulling the remote counter, then push.

        Sync is best-effort: pull and push failures are logged and the
        allocation proceeds with the local counter. A pulled counter only
        ever raises the local value (``max(local, remote)``).
        """
        path = self.counter_path(kind)
        if not self._sync.enabled:
            return self.get_next_id(kind)

        self._pull(kind, path)
        new_id = self.get_next_id(kind)
        self._push()
        return new_id

    def _pull(self, kind: str, path: str) -> None:
        remote, branch = self._sync.remote, self._sync.branch
        try:
            remote_head = self._repo.fetch(remote, branch)
            content = (
                self._repo.get_file_at_commit(path, remote_head)
                if remote_head is not None
                else None
            )
        except (RepositoryError, KeyError) as e:
            self._logger.warning(
                "Failed to pull counters", remote=remote, kind=kind, error=str(e)
            )
            return
        if content is None:
            return

        remote_value = self._parse_counter(content)
        local_value = self._read(path)
        if remote_value > local_value:
            self._write(kind, path, remote_value)
            self._logger.info(
                "counter_pulled", kind=kind, local=local_value, remote=remote_value
            )

    def _push(self) -> None:
        paths = [
            path
            for entry in self._config.kinds.values()
            if self._fs.exists(path := f"{COUNTERS_FOLDER}/{entry.folder}.md")
        ]
        remote, branch = self._sync.remote, self._sync.branch
        try:
            self._commit(paths, SYNC_COMMIT_MESSAGE)
            self._repo.push(remote, branch)
        except RepositoryError as e:
            self._logger.warning("Failed to push counters", remote=remote, error=str(e))

    # -------------------------------------------------------------------------
    # Repair
    # -------------------------------------------------------------------------

    def recalculate_counters(
        self, ids_by_kind: Mapping[str, Iterable[str]]
    ) -> dict[str, int]:
        """Raise counters to the highest numeric suffix observed per kind.

        Used after merging another collaborator's work so the next
        allocation cannot reissue an existing ID. Counters never decrease.

        Args:
            ids_by_kind: Existing IDs grouped by counter kind.

        Returns:
            The resulting counter value per kind.

        Raises:
            UnknownArtifactTypeError: If a kind is not configured.
        """
        for kind in ids_by_kind:
            _ = self._kind(kind)

        results: dict[str, int] = {}
        changed: list[str] = []
        for kind, ids in ids_by_kind.items():
            pattern = re.compile(rf"^{re.escape(self._kind(kind).prefix)}-(\d+)$")
            observed = max(
                (int(m.group(1)) for i in ids if (m := pattern.match(i))), default=0
            )
            path = self.counter_path(kind)
            current = self._read(path)
            if observed > current:
                self._write(kind, path, observed)
                changed.append(path)
            results[kind] = max(observed, current)

        if changed:
            self._commit(changed, "Recalculate counters")
            self._logger.info("counters_recalculated", counters=results)
        return results
