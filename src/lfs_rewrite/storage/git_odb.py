"""
Git object database adapter backed by dulwich.

A GitObjectDatabase knows where the repository lives; each worker calls
open_handles() to get its own GitHandles (its own dulwich Repo instance),
so handles are never shared across threads.
"""
from __future__ import annotations

import logging
from pathlib import Path

from dulwich.errors import NotGitRepository
from dulwich.file import FileLocked
from dulwich.objects import Blob, Tree
from dulwich.repo import Repo
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from .base import BlobReader, ContentHandle, ObjectDatabase
from .errors import BlobNotFound, DatabaseError

__all__ = ["GitObjectDatabase", "GitHandles"]

logger = logging.getLogger(__name__)

_LOCK_ATTEMPTS = 10


class GitHandles(ObjectDatabase):
    """
    One worker's reader/inserter over a git repository.

    Not thread-safe; use one instance per worker.
    """

    def __init__(self, repo: Repo) -> None:
        self._repo = repo
        self._store = repo.object_store

    def _get(self, content_id: ContentHandle):
        try:
            return self._store[content_id]
        except KeyError:
            raise BlobNotFound(f"Object not found: {content_id.decode('ascii', 'replace')}")
        except Exception as e:
            raise DatabaseError(f"Failed to read object {content_id!r}: {e}") from e

    def _get_blob(self, content_id: ContentHandle) -> Blob:
        obj = self._get(content_id)
        if not isinstance(obj, Blob):
            raise DatabaseError(f"Object {content_id.decode('ascii', 'replace')} is a {obj.type_name.decode()}, not a blob")
        return obj

    def open_blob(self, content_id: ContentHandle) -> BlobReader:
        blob = self._get_blob(content_id)
        return BlobReader(size=blob.raw_length(), stream=iter(blob.chunked))

    def read_blob(self, content_id: ContentHandle) -> bytes:
        return self._get_blob(content_id).data

    def insert_blob(self, data: bytes) -> ContentHandle:
        blob = Blob.from_string(data)
        self._add(blob)
        return blob.id

    def read_tree(self, tree_id: ContentHandle) -> Tree:
        obj = self._get(tree_id)
        if not isinstance(obj, Tree):
            raise DatabaseError(f"Object {tree_id.decode('ascii', 'replace')} is not a tree")
        return obj

    def insert_tree(self, tree: Tree) -> ContentHandle:
        self._add(tree)
        return tree.id

    def _add(self, obj) -> None:
        try:
            self._add_unlocked(obj)
        except FileLocked as e:
            raise DatabaseError(f"Timed out waiting for lock on object {obj.id.decode('ascii')}") from e
        except Exception as e:
            raise DatabaseError(f"Failed to insert {obj.type_name.decode()}: {e}") from e

    @retry(
        stop=stop_after_attempt(_LOCK_ATTEMPTS),
        wait=wait_exponential(multiplier=0.01, max=0.5),
        retry=retry_if_exception_type(FileLocked),
        reraise=True,
    )
    def _add_unlocked(self, obj) -> None:
        try:
            self._store.add_object(obj)
        except FileLocked:
            # Another worker is writing the same loose object
            if obj.id in self._store:
                return
            logger.debug(f"Object {obj.id.decode('ascii')} is locked, retrying")
            raise

    def close(self) -> None:
        self._repo.close()

    def __enter__(self) -> GitHandles:
        return self

    def __exit__(self, *exc) -> None:
        self.close()


class GitObjectDatabase:
    """Entry point for a git repository on disk."""

    def __init__(self, repo_path: Path) -> None:
        """
        Args:
            repo_path: Working tree or bare repository path

        Raises:
            DatabaseError: If repo_path is not a git repository
        """
        self.repo_path = Path(repo_path)
        try:
            with Repo(str(self.repo_path)) as repo:
                self.git_dir = Path(repo.controldir())
        except NotGitRepository as e:
            raise DatabaseError(f"Not a git repository: {repo_path}") from e
        logger.debug(f"Using git directory {self.git_dir}")

    @property
    def default_lfs_objects_dir(self) -> Path:
        return self.git_dir / "lfs" / "objects"

    def open_handles(self) -> GitHandles:
        """Open a fresh handle set; the caller owns it and must close it."""
        return GitHandles(Repo(str(self.repo_path)))

    def resolve_tree(self, ref: str) -> ContentHandle:
        """
        Resolve a ref, commit id or tree id to a tree id.

        Raises:
            BlobNotFound: If the ref does not exist
            DatabaseError: If the ref points at something without a tree
        """
        with Repo(str(self.repo_path)) as repo:
            ref_bytes = ref.encode("utf-8")
            try:
                if ref == "HEAD":
                    obj = repo[repo.head()]
                elif ref_bytes in repo.refs:
                    obj = repo[repo.refs[ref_bytes]]
                elif b"refs/heads/" + ref_bytes in repo.refs:
                    obj = repo[repo.refs[b"refs/heads/" + ref_bytes]]
                else:
                    obj = repo[ref_bytes]
            except KeyError:
                raise BlobNotFound(f"Unknown ref: {ref}")
            if isinstance(obj, Tree):
                return obj.id
            tree_id = getattr(obj, "tree", None)
            if tree_id is None:
                raise DatabaseError(f"{ref} does not point at a commit or tree")
            return tree_id
