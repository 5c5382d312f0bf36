"""
LFS blob conversion for one tree level.

LfsBlobConverter replaces the content of every matching file with an LFS
pointer document, stores the original bytes in the LFS object store, and
declares the pattern in the tree's .gitattributes. Conversion is best-effort
per entry: an object store failure leaves the entry as it was, while object
database failures propagate to the caller.

The converter holds no database handles of its own. Callers pass the
handles of the current worker into fix() and apply().
"""
from __future__ import annotations

import logging
import stat
import threading
from dataclasses import dataclass

from .attributes import GITATTRIBUTES, attributes_line, merge_attributes
from .filters import EntryFilter
from .models import REGULAR_FILE, Conversion, Converted, Failed, NotApplicable, TreeEntry, TreeEntrySet
from .pointer import build_pointer
from .storage.base import DigestStore, ObjectDatabase
from .storage.errors import StoreError

__all__ = ["LfsBlobConverter", "ConversionStats"]

logger = logging.getLogger(__name__)


@dataclass
class ConversionStats:
    """Counters shared by all workers using one converter."""
    converted: int = 0
    bytes_stored: int = 0
    failed: int = 0
    attributes_updated: int = 0


class LfsBlobConverter:
    """
    Converts matching blobs of a tree level to LFS pointers.

    Safe to share between worker threads as long as each thread passes its
    own ObjectDatabase handles.
    """

    def __init__(self, pattern: str, store: DigestStore) -> None:
        """
        Args:
            pattern: Glob selecting filenames to convert (e.g. "*.bin")
            store: LFS object store receiving the original content

        Raises:
            ValueError: If pattern is empty or spans several lines
        """
        self.entry_filter = EntryFilter(pattern)
        self.attributes_line = attributes_line(pattern)
        self.store = store
        self.stats = ConversionStats()
        self._stats_lock = threading.Lock()

    def _count(self, **increments: int) -> None:
        with self._stats_lock:
            for name, value in increments.items():
                setattr(self.stats, name, getattr(self.stats, name) + value)

    def convert_entry(self, entry: TreeEntry, odb: ObjectDatabase) -> Conversion:
        """
        Decide and perform storage for one entry.

        Returns:
            Converted with the digest and size when the content was stored,
            NotApplicable when the entry is not a candidate, Failed when the
            object store could not take the content

        Raises:
            DatabaseError: If the blob cannot be read
        """
        if not self.entry_filter.matches(entry.filename):
            return NotApplicable("filename does not match")
        if not stat.S_ISREG(entry.mode):
            return NotApplicable("not a regular file")

        reader = odb.open_blob(entry.content_id)

        logger.debug(f"Storing {entry.filename} ({reader.size} bytes)")
        try:
            digest = self.store.ensure_present(reader.stream, reader.size)
        except StoreError as e:
            logger.warning(f"Leaving {entry.filename} unconverted: {e}")
            self._count(failed=1)
            return Failed(str(e))

        self._count(converted=1, bytes_stored=reader.size)
        return Converted(digest=digest, size=reader.size)

    def fix(self, entry: TreeEntry, odb: ObjectDatabase) -> TreeEntry:
        """
        Convert one entry, returning it unchanged when conversion does not apply.

        Raises:
            DatabaseError: If the blob cannot be read or the pointer inserted
        """
        outcome = self.convert_entry(entry, odb)
        if isinstance(outcome, Converted):
            pointer = build_pointer(outcome.digest, outcome.size)
            return entry.with_content(odb.insert_blob(pointer.encode("utf-8")))
        return entry

    def apply(self, entries: TreeEntrySet, odb: ObjectDatabase) -> TreeEntrySet:
        """
        Convert all entries of one tree level and update its .gitattributes.

        The attributes entry is only touched when at least one entry was
        converted, and never when it is not a regular file (a symlinked
        .gitattributes is kept as it is).

        Raises:
            DatabaseError: On any object database failure
        """
        cleaned = TreeEntrySet.of(self.fix(entry, odb) for entry in entries)
        if cleaned == entries:
            return cleaned

        existing = cleaned.get(GITATTRIBUTES)
        if existing is not None and not stat.S_ISREG(existing.mode):
            logger.warning(f"Not updating {GITATTRIBUTES}: mode {existing.mode:o} is not a regular file")
            return cleaned
        if existing is None:
            attributes_id = odb.insert_blob(merge_attributes(None, self.attributes_line))
            self._count(attributes_updated=1)
        else:
            merged = merge_attributes(odb.read_blob(existing.content_id), self.attributes_line)
            if merged is None:
                attributes_id = existing.content_id
            else:
                attributes_id = odb.insert_blob(merged)
                self._count(attributes_updated=1)

        return cleaned.with_entry(TreeEntry(GITATTRIBUTES, REGULAR_FILE, attributes_id))
