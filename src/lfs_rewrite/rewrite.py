"""
Whole-tree LFS rewriting.

Applies an LfsBlobConverter to every directory level of one git tree and
writes the rewritten trees back to the object database. Trees are processed
bottom-up in height order: all trees of one height are converted
concurrently on a thread pool, then their parents. Identical subtrees are
converted once.

Each worker thread opens its own object database handles when it starts;
handles are never shared between threads.
"""
from __future__ import annotations

import logging
import stat
import threading
from collections import defaultdict
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from typing import Dict, List

from dulwich.objects import Tree

from .converter import ConversionStats, LfsBlobConverter
from .models import TreeEntry, TreeEntrySet
from .storage.base import ContentHandle
from .storage.git_odb import GitHandles, GitObjectDatabase

__all__ = ["TreeRewriter", "RewriteResult"]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RewriteResult:
    """Outcome of rewriting one root tree."""
    old_tree_id: ContentHandle
    new_tree_id: ContentHandle
    trees_visited: int
    trees_changed: int
    stats: ConversionStats

    @property
    def changed(self) -> bool:
        return self.old_tree_id != self.new_tree_id


class _WorkerContext:
    """Per-thread handle sets opened by the pool initializer."""

    def __init__(self, database: GitObjectDatabase) -> None:
        self._database = database
        self._local = threading.local()
        self._opened: List[GitHandles] = []
        self._lock = threading.Lock()

    def open(self) -> None:
        handles = self._database.open_handles()
        self._local.handles = handles
        with self._lock:
            self._opened.append(handles)

    @property
    def handles(self) -> GitHandles:
        return self._local.handles

    def close(self) -> None:
        with self._lock:
            for handles in self._opened:
                handles.close()
            self._opened.clear()


def _decode_name(name: bytes) -> str:
    return name.decode("utf-8", errors="surrogateescape")


def _encode_name(name: str) -> bytes:
    return name.encode("utf-8", errors="surrogateescape")


class TreeRewriter:
    """Rewrites a git tree with an LFS converter using a pool of workers."""

    def __init__(self, database: GitObjectDatabase, converter: LfsBlobConverter, *, max_workers: int = 4) -> None:
        if max_workers < 1:
            raise ValueError(f"max_workers must be at least 1, got {max_workers}")
        self.database = database
        self.converter = converter
        self.max_workers = max_workers

    def rewrite(self, root_tree_id: ContentHandle) -> RewriteResult:
        """
        Rewrite the tree and all its subtrees.

        Args:
            root_tree_id: Tree to rewrite

        Returns:
            RewriteResult with the id of the rewritten root tree

        Raises:
            DatabaseError: If any tree or blob cannot be read or written
        """
        with self.database.open_handles() as handles:
            trees, heights = self._plan(root_tree_id, handles)

        levels: Dict[int, List[ContentHandle]] = defaultdict(list)
        for tree_id, height in heights.items():
            levels[height].append(tree_id)

        rewritten: Dict[ContentHandle, ContentHandle] = {}
        context = _WorkerContext(self.database)
        try:
            with ThreadPoolExecutor(max_workers=self.max_workers, initializer=context.open) as pool:
                for height in sorted(levels):
                    futures = {
                        pool.submit(self._rewrite_tree, trees[tree_id], rewritten, context): tree_id
                        for tree_id in levels[height]
                    }
                    # Parents only run after every child of this level is recorded
                    for future in as_completed(futures):
                        rewritten[futures[future]] = future.result()
                    logger.debug(f"Rewrote {len(futures)} trees at height {height}")
        finally:
            context.close()

        changed = sum(1 for old, new in rewritten.items() if old != new)
        logger.info(f"Rewrote {len(rewritten)} trees, {changed} changed")
        return RewriteResult(
            old_tree_id=root_tree_id,
            new_tree_id=rewritten[root_tree_id],
            trees_visited=len(rewritten),
            trees_changed=changed,
            stats=self.converter.stats,
        )

    def _plan(self, root_tree_id: ContentHandle, handles: GitHandles):
        """Read every distinct tree below the root and compute its height."""
        trees: Dict[ContentHandle, Tree] = {}
        heights: Dict[ContentHandle, int] = {}
        stack = [(root_tree_id, False)]
        while stack:
            tree_id, children_done = stack.pop()
            if tree_id in heights:
                continue
            if tree_id not in trees:
                trees[tree_id] = handles.read_tree(tree_id)
            subtrees = [item.sha for item in trees[tree_id].iteritems() if stat.S_ISDIR(item.mode)]
            if children_done:
                heights[tree_id] = 1 + max((heights[sha] for sha in subtrees), default=-1)
                continue
            stack.append((tree_id, True))
            stack.extend((sha, False) for sha in subtrees if sha not in heights)
        return trees, heights

    def _rewrite_tree(self, tree: Tree, rewritten: Dict[ContentHandle, ContentHandle], context: _WorkerContext) -> ContentHandle:
        odb = context.handles
        files: List[TreeEntry] = []
        others = []
        for item in tree.iteritems():
            if stat.S_ISDIR(item.mode):
                others.append((item.path, item.mode, rewritten[item.sha]))
            elif stat.S_ISREG(item.mode) or stat.S_ISLNK(item.mode):
                files.append(TreeEntry(_decode_name(item.path), item.mode, item.sha))
            else:
                # Submodules pass through untouched
                others.append((item.path, item.mode, item.sha))

        cleaned = self.converter.apply(TreeEntrySet.of(files), odb)

        new_tree = Tree()
        for path, mode, sha in others:
            new_tree.add(path, mode, sha)
        for entry in cleaned:
            new_tree.add(_encode_name(entry.filename), entry.mode, entry.content_id)

        if new_tree.id == tree.id:
            return tree.id
        return odb.insert_tree(new_tree)
