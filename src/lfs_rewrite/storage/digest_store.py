"""
Sharded content-addressed store for LFS objects.

Objects live at <root>/<aa>/<bb>/<digest>, where aa and bb are the first two
pairs of hex characters of the SHA-256 digest. Placement streams content into
a private temporary file, then publishes it with an exclusive create so that
concurrent writers (threads or processes) of the same digest never overwrite
each other.
"""
from __future__ import annotations

import hashlib
import logging
import os
import re
import tempfile
from pathlib import Path

from .base import ByteStream, DigestStore, StoredStat
from .errors import StoreError, StoreSizeMismatch

__all__ = ["LocalDigestStore", "shard_path", "CHUNK_SIZE"]

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024  # 1 MiB

_DIGEST_RE = re.compile(r"[a-f0-9]{64}")


def shard_path(root: Path, digest: str) -> Path:
    """
    Return the sharded location of a digest under root.

    Raises:
        ValueError: If digest is not 64 lowercase hex characters
    """
    if not _DIGEST_RE.fullmatch(digest):
        raise ValueError(f"digest must be 64 lowercase hex chars, got '{digest}'")
    return root / digest[0:2] / digest[2:4] / digest


class LocalDigestStore(DigestStore):
    """
    Filesystem-backed LFS object store.

    The store directory may be shared by many workers at once. No in-process
    lock is taken; the only synchronisation is the exclusive create used to
    publish an object.
    """

    def __init__(self, root: Path, *, tmp_dir: Path | None = None, chunk_size: int = CHUNK_SIZE) -> None:
        """
        Args:
            root: Objects directory (usually <git-dir>/lfs/objects)
            tmp_dir: Directory for in-flight writes; must be on the same
                filesystem as root. Defaults to <root>/../tmp.
            chunk_size: Read size used while streaming content
        """
        if chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive, got {chunk_size}")
        self.root = Path(root)
        self.tmp_dir = Path(tmp_dir) if tmp_dir is not None else self.root.parent / "tmp"
        self.chunk_size = chunk_size

    def path_for(self, digest: str) -> Path:
        return shard_path(self.root, digest)

    def contains(self, digest: str) -> bool:
        return self.path_for(digest).is_file()

    def stat(self, digest: str) -> StoredStat:
        """
        Get metadata for a stored object.

        Raises:
            FileNotFoundError: If the object is not present
        """
        path = self.path_for(digest)
        return StoredStat(digest=digest, size=path.stat().st_size, path=path)

    def ensure_present(self, stream: ByteStream, expected_size: int) -> str:
        """
        Stream content into the store and return its digest.

        The content is hashed while it is written to a temporary file, so it
        is never held in memory as a whole. If an object with the same digest
        already exists, the temporary copy is discarded. The temporary file
        is removed before returning, whatever the outcome.

        Args:
            stream: Content stream (file-like with read() or iterable of bytes)
            expected_size: Declared byte length of the content

        Returns:
            Hex SHA-256 digest of the content

        Raises:
            StoreSizeMismatch: If the streamed length differs from expected_size,
                or placement failed and the existing object has another size
            StoreError: If the content could not be written or placed
        """
        try:
            self.tmp_dir.mkdir(parents=True, exist_ok=True)
            fd, temp_name = tempfile.mkstemp(prefix="lfs.tmp.", dir=self.tmp_dir)
        except OSError as e:
            raise StoreError(f"Cannot create temporary file in {self.tmp_dir}: {e}") from e
        temp_path = Path(temp_name)

        try:
            digest, written = self._write_hashed(fd, stream)
            logger.debug(f"{written} bytes copied to {temp_path}")

            if written != expected_size:
                raise StoreSizeMismatch(
                    f"Streamed {written} bytes but expected {expected_size}",
                    expected=expected_size,
                    actual=written,
                )

            self._place(temp_path, digest, expected_size)
            logger.debug(f"{expected_size} bytes stored as {digest}")
            return digest
        finally:
            _remove_quietly(temp_path)

    def _write_hashed(self, fd: int, stream: ByteStream) -> tuple[str, int]:
        """Copy stream into fd while hashing; returns (digest, byte count)."""
        hash_obj = hashlib.sha256()
        written = 0
        try:
            with os.fdopen(fd, "wb") as out:
                for chunk in _iter_chunks(stream, self.chunk_size):
                    hash_obj.update(chunk)
                    out.write(chunk)
                    written += len(chunk)
                out.flush()
                os.fsync(out.fileno())
        except OSError as e:
            raise StoreError(f"Failed to write temporary object: {e}") from e
        return hash_obj.hexdigest(), written

    def _place(self, temp_path: Path, digest: str, expected_size: int) -> None:
        """
        Publish temp_path at the digest's location without overwriting.

        An existing destination is taken as proof of earlier placement. Any
        other failure is recovered only if the destination now holds a file
        of the expected size (another writer won the race).
        """
        dest = self.path_for(digest)
        try:
            dest.parent.mkdir(parents=True, exist_ok=True)
            os.link(temp_path, dest)
        except FileExistsError:
            logger.debug(f"Object {digest} already present, discarding new copy")
        except OSError as e:
            try:
                actual = dest.stat().st_size
            except OSError:
                raise StoreError(f"Failed to place object {digest} at {dest}: {e}") from e
            if actual != expected_size:
                raise StoreSizeMismatch(
                    f"Object at {dest} has size {actual}, expected {expected_size}",
                    expected=expected_size,
                    actual=actual,
                ) from e
            logger.debug(f"Placement of {digest} failed ({e}) but existing object has matching size")


def _iter_chunks(stream: ByteStream, chunk_size: int):
    # Handle file-like objects with read()
    if hasattr(stream, "read"):
        while True:
            chunk = stream.read(chunk_size)
            if not chunk:
                break
            yield chunk
    else:
        for chunk in stream:
            if chunk:
                yield chunk


def _remove_quietly(path: Path) -> None:
    try:
        path.unlink()
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.warning(f"Could not remove temporary file {path}: {e}")
