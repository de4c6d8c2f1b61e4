"""Standalone link persistence.

Links live at ``links/{id}.md``. This store is the single accessor for
links between artifacts; embedded ``linkedArtifacts`` arrays are folded
into it by the one-time migration importer.
"""

from collections.abc import Iterable
from dataclasses import replace
from typing import Final

from structlog.typing import FilteringBoundLogger

from tracelink.artifacts._models import (
    IncomingLink,
    Link,
    LinkType,
    resolve_artifact_type,
)
from tracelink.artifacts._serialize import link_from_document, link_to_document
from tracelink.exceptions import (
    InvalidLinkError,
    LinkNotFoundError,
    StorageParseError,
)
from tracelink.fs import FileSystemProtocol
from tracelink.ids import IdAllocator
from tracelink.repository import RepositoryProtocol
from tracelink.utils import Clock, get_null_logger, utc_now

__all__ = ["LINKS_FOLDER", "LinkStore"]

LINKS_FOLDER: Final = "links"
LINK_KIND: Final = "link"


class LinkStore:
    """Create, query, and delete standalone links.

    Example:
        >>> store = LinkStore(fs, repo, allocator)
        >>> link = store.create_link("REQ-001", "UC-001", LinkType.SATISFIES)
        >>> [i.link_type for i in store.incoming("UC-001")]
        [<LinkType.SATISFIED_BY: 'satisfied_by'>]
    """

    __slots__: Final = ("_allocator", "_clock", "_fs", "_logger", "_repo")

    _fs: FileSystemProtocol
    _repo: RepositoryProtocol
    _allocator: IdAllocator
    _clock: Clock
    _logger: FilteringBoundLogger

    def __init__(
        self,
        fs: FileSystemProtocol,
        repo: RepositoryProtocol,
        allocator: IdAllocator,
        *,
        clock: Clock | None = None,
        logger: FilteringBoundLogger | None = None,
    ) -> None:
        self._fs = fs
        self._repo = repo
        self._allocator = allocator
        self._clock = clock if clock is not None else utc_now
        self._logger = logger if logger is not None else get_null_logger()

    @staticmethod
    def path_for(link_id: str) -> str:
        return f"{LINKS_FOLDER}/{link_id}.md"

    def _save(self, link: Link) -> str:
        path = self.path_for(link.id)
        self._fs.mkdir(LINKS_FOLDER)
        self._fs.write_text(path, link_to_document(link))
        return path

    def _commit(self, paths: Iterable[str], message: str) -> None:
        _ = self._repo.stage(paths)
        _ = self._repo.commit(message)

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def list_links(self) -> list[Link]:
        """Load every link in ID order. Unreadable files are skipped."""
        links: list[Link] = []
        for path in self._fs.list_files(LINKS_FOLDER, suffix=".md"):
            try:
                links.append(link_from_document(self._fs.read_text(path), path=path))
            except (StorageParseError, InvalidLinkError) as e:
                self._logger.warning(
                    "Skipping unreadable link", path=path, error=str(e)
                )
        return links

    def get(self, link_id: str) -> Link:
        """Load a link.

        Raises:
            LinkNotFoundError: If no link has this ID.
        """
        path = self.path_for(link_id)
        if not self._fs.exists(path):
            msg = f"Link not found: {link_id}"
            raise LinkNotFoundError(msg, link_id=link_id)
        return link_from_document(self._fs.read_text(path), path=path)

    def outgoing(self, artifact_id: str) -> list[Link]:
        return [link for link in self.list_links() if link.source_id == artifact_id]

    def incoming(self, artifact_id: str) -> list[IncomingLink]:
        """Links pointing at ``artifact_id``, typed from the target's side."""
        return [
            IncomingLink(
                link_id=link.id,
                source_id=link.source_id,
                source_type=resolve_artifact_type(link.source_id),
                link_type=link.link_type.inverse,
            )
            for link in self.list_links()
            if link.target_id == artifact_id
        ]

    def link_exists(
        self, source_id: str, target_id: str, link_type: LinkType | None = None
    ) -> bool:
        """Return True if a link from source to target exists.

        When ``link_type`` is None any type matches.
        """
        return any(
            link.source_id == source_id
            and link.target_id == target_id
            and (link_type is None or link.link_type is link_type)
            for link in self.list_links()
        )

    def links_for_project(self, project_id: str) -> list[Link]:
        """Global links plus links scoped to ``project_id``."""
        return [link for link in self.list_links() if link.visible_in(project_id)]

    def global_links(self) -> list[Link]:
        return [link for link in self.list_links() if link.is_global]

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    def _validate(self, source_id: str, target_id: str, link_type: LinkType) -> None:
        if source_id == target_id:
            msg = f"An artifact cannot link to itself: {source_id}"
            raise InvalidLinkError(
                msg, source_id=source_id, target_id=target_id, link_type=link_type
            )
        if self.link_exists(source_id, target_id, link_type):
            msg = f"Link already exists: {source_id} -{link_type}-> {target_id}"
            raise InvalidLinkError(
                msg, source_id=source_id, target_id=target_id, link_type=link_type
            )

    def create_link(
        self,
        source_id: str,
        target_id: str,
        link_type: LinkType,
        *,
        project_ids: Iterable[str] = (),
        commit: bool = True,
    ) -> Link:
        """Create a link, allocating its ID through the sync path.

        Args:
            source_id: Artifact creating the link.
            target_id: Artifact being linked to. It need not exist.
            link_type: Relation from source to target.
            project_ids: Projects the link is visible in; empty means global.
            commit: Commit the link file after writing.

        Raises:
            InvalidLinkError: For a self-loop or a duplicate
                ``(source, target, type)`` link.
        """
        self._validate(source_id, target_id, link_type)
        now = self._clock()
        link = Link(
            id=self._allocator.get_next_id_with_sync(LINK_KIND),
            source_id=source_id,
            target_id=target_id,
            link_type=link_type,
            project_ids=tuple(dict.fromkeys(project_ids)),
            date_created=now,
            last_modified=now,
        )
        path = self._save(link)
        if commit:
            self._commit([path], f"Create link {link.id}")
        return link

    def update(
        self,
        link_id: str,
        *,
        link_type: LinkType | None = None,
        project_ids: Iterable[str] | None = None,
    ) -> Link:
        """Change a link's type or scope.

        Raises:
            LinkNotFoundError: If no link has this ID.
            InvalidLinkError: If the new type duplicates an existing link.
        """
        link = self.get(link_id)
        if link_type is not None and link_type is not link.link_type:
            self._validate(link.source_id, link.target_id, link_type)
        updated = replace(
            link,
            link_type=link_type if link_type is not None else link.link_type,
            project_ids=(
                tuple(dict.fromkeys(project_ids))
                if project_ids is not None
                else link.project_ids
            ),
            last_modified=self._clock(),
        )
        self._commit([self._save(updated)], f"Update link {link_id}")
        return updated

    def delete(self, link_id: str) -> None:
        """Delete a link.

        Raises:
            LinkNotFoundError: If no link has this ID.
        """
        path = self.path_for(link_id)
        if not self._fs.exists(path):
            msg = f"Link not found: {link_id}"
            raise LinkNotFoundError(msg, link_id=link_id)
        self._fs.delete(path)
        self._commit([path], f"Delete link {link_id}")

    def delete_links_for_artifact(
        self, artifact_id: str, *, commit: bool = True
    ) -> list[str]:
        """Delete every link touching ``artifact_id`` in either direction.

        Returns:
            Paths of the deleted link files.
        """
        paths: list[str] = []
        for link in self.list_links():
            if artifact_id in (link.source_id, link.target_id):
                path = self.path_for(link.id)
                self._fs.delete(path)
                paths.append(path)
        if commit and paths:
            self._commit(paths, f"Delete links for {artifact_id}")
        if paths:
            self._logger.info(
                "links_deleted", artifact_id=artifact_id, count=len(paths)
            )
        return paths
