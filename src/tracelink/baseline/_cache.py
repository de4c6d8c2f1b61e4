"""Explicit tag to commit cache."""

from typing import Final

from tracelink.repository import RepositoryProtocol, TagInfo

__all__ = ["TagCommitCache"]


class TagCommitCache:
    """Lazily loaded map of tag name to tagged commit.

    The cache is owned by a BaselineManager and loaded on first use.
    Callers that create or delete tags outside the manager must call
    ``invalidate`` or ``reload``.

    Example:
        >>> cache = TagCommitCache(repo)
        >>> cache.get("baselines/proj-1/01")
        'e83c5163316f89bfbde7d9ab23ca2e25604af290'
    """

    __slots__: Final = ("_repo", "_tags")

    _repo: RepositoryProtocol
    _tags: dict[str, TagInfo] | None

    def __init__(self, repo: RepositoryProtocol) -> None:
        self._repo = repo
        self._tags = None

    @property
    def is_loaded(self) -> bool:
        return self._tags is not None

    def _entries(self) -> dict[str, TagInfo]:
        if self._tags is None:
            self._tags = {tag.name: tag for tag in self._repo.list_tags()}
        return self._tags

    def get(self, tag_name: str) -> str | None:
        """Return the commit a tag points at, or None if there is no such tag."""
        tag = self._entries().get(tag_name)
        return tag.commit if tag is not None else None

    def __contains__(self, tag_name: object) -> bool:
        return tag_name in self._entries()

    def tags_with_details(self) -> list[TagInfo]:
        """All tags with message, timestamp, and commit, sorted by name."""
        return [self._entries()[name] for name in sorted(self._entries())]

    def reload(self) -> None:
        """Re-read tags from the repository now."""
        self._tags = None
        _ = self._entries()

    def invalidate(self) -> None:
        """Drop cached tags; the next access re-reads them."""
        self._tags = None
