"""
Operations Facade - Application service layer.

Provides a clean interface between CLI and the conversion APIs, centralizing
command orchestration and configuration while keeping CLI commands thin and
testable.
"""
from __future__ import annotations

import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from ..converter import LfsBlobConverter
from ..pointer import build_pointer
from ..rewrite import RewriteResult, TreeRewriter
from ..settings import Settings
from ..storage.digest_store import LocalDigestStore
from ..storage.git_odb import GitObjectDatabase


@dataclass(frozen=True)
class OpsConfig:
    """Output policy for Operations."""
    human: bool = True            # Human text output (JSON mode in future)
    verbose: bool = False         # Show detailed output


@dataclass(frozen=True)
class PointerResult:
    """Pointer rendered for a local file."""
    path: Path
    digest: str
    size: int
    pointer: str
    stored: bool


class Operations:
    """
    Application service facade for CLI operations.

    Each method delegates to the converter, rewriter or store while applying
    settings consistently. Exceptions bubble up for central exit-code mapping.
    """

    def __init__(self, config: OpsConfig, settings: Settings, database: Optional[GitObjectDatabase] = None):
        """
        Args:
            config: Output configuration
            settings: Conversion settings
            database: Git repository to operate on (required for convert)
        """
        self.cfg = config
        self.settings = settings
        self.database = database

    def _store(self, git_dir: Optional[Path]) -> LocalDigestStore:
        root = self.settings.resolve_objects_dir(git_dir)
        return LocalDigestStore(root, chunk_size=self.settings.chunk_size)

    def convert(self, ref: str = "HEAD") -> RewriteResult:
        """
        Rewrite the tree of ref, storing matching blobs in the LFS store.

        Args:
            ref: Branch, ref, commit id or tree id

        Returns:
            RewriteResult with the rewritten root tree id
        """
        if self.database is None:
            raise ValueError("convert requires a git repository")

        store = self._store(self.database.git_dir)
        converter = LfsBlobConverter(self.settings.pattern, store)
        rewriter = TreeRewriter(self.database, converter, max_workers=self.settings.max_workers)
        return rewriter.rewrite(self.database.resolve_tree(ref))

    def pointer(self, path: Path, *, store: bool = False) -> PointerResult:
        """
        Render the LFS pointer for a local file, optionally storing the file.

        Without store, the file is only hashed, using a scratch store under
        a temporary directory that is removed afterwards.
        """
        path = Path(path)
        if not path.is_file():
            raise ValueError(f"Not a file: {path}")
        size = path.stat().st_size

        if store:
            if self.database is None and self.settings.objects_dir is None:
                raise ValueError("Storing requires a repository or an objects directory")
            git_dir = self.database.git_dir if self.database is not None else None
            digest_store = self._store(git_dir)
            with open(path, "rb") as f:
                digest = digest_store.ensure_present(f, size)
        else:
            with tempfile.TemporaryDirectory(prefix="lfs-rewrite.") as scratch:
                digest_store = LocalDigestStore(Path(scratch) / "objects", chunk_size=self.settings.chunk_size)
                with open(path, "rb") as f:
                    digest = digest_store.ensure_present(f, size)

        return PointerResult(path=path, digest=digest, size=size, pointer=build_pointer(digest, size), stored=store)
