"""
Fake object database implementation for testing.

This implementation explicitly subclasses ObjectDatabase to ensure interface
changes break CI immediately, preventing silent drift.
"""
from __future__ import annotations

import hashlib
from typing import Dict, List

from lfs_rewrite.storage.base import BlobReader, ContentHandle, ObjectDatabase
from lfs_rewrite.storage.errors import BlobNotFound, DatabaseError

__all__ = ["FakeObjectDatabase", "git_blob_id"]


def git_blob_id(data: bytes) -> ContentHandle:
    """Compute the id git would give a blob with this content."""
    return hashlib.sha1(b"blob %d\x00" % len(data) + data).hexdigest().encode("ascii")


class FakeObjectDatabase(ObjectDatabase):
    """
    In-memory blob store keyed by git blob id.

    This is a test double; not for production use.
    Records every insert so tests can assert on reuse vs re-insert.
    """

    def __init__(self, chunk_size: int = 4) -> None:
        self._blobs: Dict[ContentHandle, bytes] = {}
        self.inserted: List[ContentHandle] = []
        self.fail_inserts = False
        self._chunk_size = chunk_size

    def add(self, data: bytes) -> ContentHandle:
        """Seed content without recording it as an insert (test utility)."""
        content_id = git_blob_id(data)
        self._blobs[content_id] = data
        return content_id

    def open_blob(self, content_id: ContentHandle) -> BlobReader:
        data = self.read_blob(content_id)
        chunks = [data[i:i + self._chunk_size] for i in range(0, len(data), self._chunk_size)]
        return BlobReader(size=len(data), stream=iter(chunks))

    def read_blob(self, content_id: ContentHandle) -> bytes:
        if content_id not in self._blobs:
            raise BlobNotFound(content_id.decode("ascii", "replace"))
        return self._blobs[content_id]

    def insert_blob(self, data: bytes) -> ContentHandle:
        if self.fail_inserts:
            raise DatabaseError("insert failed")
        content_id = self.add(data)
        self.inserted.append(content_id)
        return content_id

    def text(self, content_id: ContentHandle) -> str:
        """Decode a stored blob (test utility)."""
        return self._blobs[content_id].decode("utf-8")
