"""Workspace file-system access.

Classes:
    FileSystemProtocol: Runtime-checkable protocol consumed by every store.
    LocalFileSystem: Atomic on-disk implementation rooted at a workspace.
    FakeFileSystem: In-memory implementation for tests.
"""

from tracelink.fs._documents import (
    dumps_json,
    loads_json,
    parse_frontmatter,
    render_frontmatter,
)
from tracelink.fs._fake import FakeFileSystem
from tracelink.fs._local import LocalFileSystem
from tracelink.fs._protocol import FileSystemProtocol

__all__ = [
    "FakeFileSystem",
    "FileSystemProtocol",
    "LocalFileSystem",
    "dumps_json",
    "loads_json",
    "parse_frontmatter",
    "render_frontmatter",
]
