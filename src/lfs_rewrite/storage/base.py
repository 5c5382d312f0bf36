"""
Storage interfaces for lfs-rewrite.

These protocols define the boundary between the converter and its storage
collaborators (the git object database and the LFS object store), enabling
clean dependency injection and testing with fakes.
"""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import IO, Iterable, Protocol, runtime_checkable

# Type alias for byte streams (file-like or iterable)
ByteStream = IO[bytes] | Iterable[bytes]

# Opaque object database identifier (hex bytes for git)
ContentHandle = bytes


@dataclass(frozen=True)
class StoredStat:
    """
    Metadata for an object placed in the LFS object store.

    Invariants:
    - digest: exactly 64 lowercase hex characters, no 'sha256:' prefix
    - size: exact byte length of the stored file (>= 0)
    """
    digest: str
    size: int
    path: Path


@dataclass(frozen=True)
class BlobReader:
    """A lazily opened blob: its declared size and a stream over its bytes."""
    size: int
    stream: ByteStream


__all__ = ["ByteStream", "ContentHandle", "StoredStat", "BlobReader", "ObjectDatabase", "DigestStore"]


@runtime_checkable
class ObjectDatabase(Protocol):
    """
    Protocol for one worker's object database handles.

    A handle set is never shared between threads; each worker opens its own.
    """

    def open_blob(self, content_id: ContentHandle) -> BlobReader:
        """
        Open a streaming reader for a blob.

        Args:
            content_id: Blob identifier

        Returns:
            BlobReader with the declared size and a byte stream

        Raises:
            BlobNotFound: If the blob does not exist
            DatabaseError: For other read failures
        """
        ...

    def read_blob(self, content_id: ContentHandle) -> bytes:
        """
        Read a whole blob into memory.

        Only used for small blobs such as .gitattributes files.

        Raises:
            BlobNotFound: If the blob does not exist
            DatabaseError: For other read failures
        """
        ...

    def insert_blob(self, data: bytes) -> ContentHandle:
        """
        Insert bytes as a new blob.

        Args:
            data: Blob content

        Returns:
            Identifier of the inserted blob

        Raises:
            DatabaseError: If the insert fails
        """
        ...


@runtime_checkable
class DigestStore(Protocol):
    """Protocol for a content-addressed store keyed by SHA-256 hex digest."""

    def ensure_present(self, stream: ByteStream, expected_size: int) -> str:
        """
        Hash the stream and make sure its content is stored.

        Args:
            stream: Content stream
            expected_size: Declared byte length of the content

        Returns:
            Hex SHA-256 digest of the content

        Raises:
            StoreError: If the content could not be placed
        """
        ...

    def contains(self, digest: str) -> bool:
        """Return True if an object with this digest is present."""
        ...
