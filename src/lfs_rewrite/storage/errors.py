"""
Error classes for LFS rewriting.

Provides a small taxonomy separating failures of the local LFS object store
(recoverable per entry) from failures of the git object database (fatal to
the entry being converted).
"""
from __future__ import annotations


class LfsRewriteError(Exception):
    """Base class for all lfs-rewrite errors."""
    pass


class StoreError(LfsRewriteError):
    """
    The LFS object store could not hash or place content.

    Raised when:
    - Streaming content into a temporary file fails (I/O error)
    - Placement fails and the object at the destination has the wrong size
    """
    pass


class StoreSizeMismatch(StoreError):
    """
    Byte count disagrees with the size declared for the content.

    Raised when:
    - The streamed content length differs from the declared blob size
    - An object already at the destination path has a different size
    """

    def __init__(self, message: str, expected: int | None = None, actual: int | None = None):
        super().__init__(message)
        self.expected = expected
        self.actual = actual


class DatabaseError(LfsRewriteError):
    """
    The git object database could not read or insert an object.

    These errors are never recovered by the converter; they propagate to the
    caller of the per-entry and per-tree operations.
    """
    pass


class BlobNotFound(DatabaseError):
    """Requested object id is absent from the object database."""
    pass


__all__ = [
    "LfsRewriteError",
    "StoreError",
    "StoreSizeMismatch",
    "DatabaseError",
    "BlobNotFound",
]
