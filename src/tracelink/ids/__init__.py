"""Identifier allocation.

Classes:
    IdAllocator: Issues type-prefixed IDs backed by committed counter files.
"""

from tracelink.ids._allocator import COUNTERS_FOLDER, SYNC_COMMIT_MESSAGE, IdAllocator

__all__ = ["COUNTERS_FOLDER", "SYNC_COMMIT_MESSAGE", "IdAllocator"]
