"""
Data model for tree conversion.

TreeEntry and TreeEntrySet describe one directory level of a git tree as the
converter sees it. The conversion outcome types make the per-entry decision
explicit: an entry is either converted, not applicable, or failed.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Iterable, Iterator, Mapping, Optional, Tuple, Union

from .storage.base import ContentHandle

__all__ = [
    "REGULAR_FILE",
    "EXECUTABLE_FILE",
    "SYMLINK",
    "TreeEntry",
    "TreeEntrySet",
    "Converted",
    "NotApplicable",
    "Failed",
    "Conversion",
]

REGULAR_FILE = 0o100644
EXECUTABLE_FILE = 0o100755
SYMLINK = 0o120000


@dataclass(frozen=True, slots=True)
class TreeEntry:
    """One file within a tree snapshot."""
    filename: str
    mode: int
    content_id: ContentHandle

    def with_content(self, content_id: ContentHandle) -> TreeEntry:
        """Return a copy pointing at other content, keeping the file mode."""
        return TreeEntry(self.filename, self.mode, content_id)


@dataclass(frozen=True)
class TreeEntrySet:
    """
    Immutable mapping of filename -> (mode, content_id) for one tree level.

    Equality is structural, so comparing the input and output of a
    conversion tells whether anything changed. Iteration follows insertion
    order; entries added with with_entry() come last.
    """
    entries: Mapping[str, Tuple[int, ContentHandle]] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "entries", MappingProxyType(dict(self.entries)))

    @classmethod
    def of(cls, entries: Iterable[TreeEntry]) -> TreeEntrySet:
        """
        Build a set from entries.

        Raises:
            ValueError: If a filename occurs twice
        """
        mapping = {}
        for entry in entries:
            if entry.filename in mapping:
                raise ValueError(f"Duplicate filename in tree: {entry.filename}")
            mapping[entry.filename] = (entry.mode, entry.content_id)
        return cls(mapping)

    def __iter__(self) -> Iterator[TreeEntry]:
        for filename, (mode, content_id) in self.entries.items():
            yield TreeEntry(filename, mode, content_id)

    def __len__(self) -> int:
        return len(self.entries)

    def __contains__(self, filename: object) -> bool:
        return filename in self.entries

    def get(self, filename: str) -> Optional[TreeEntry]:
        item = self.entries.get(filename)
        if item is None:
            return None
        return TreeEntry(filename, item[0], item[1])

    def with_entry(self, entry: TreeEntry) -> TreeEntrySet:
        """Return a new set with entry added or replaced."""
        mapping = dict(self.entries)
        mapping[entry.filename] = (entry.mode, entry.content_id)
        return TreeEntrySet(mapping)


@dataclass(frozen=True, slots=True)
class Converted:
    """Content was stored; the entry should point at an LFS pointer."""
    digest: str
    size: int

    def __post_init__(self) -> None:
        if not re.fullmatch(r"[a-f0-9]{64}", self.digest):
            raise ValueError("digest must be 64 hex chars")
        if self.size < 0:
            raise ValueError("size must be non-negative")


@dataclass(frozen=True, slots=True)
class NotApplicable:
    """The entry is left alone (filename mismatch, already a pointer)."""
    reason: str


@dataclass(frozen=True, slots=True)
class Failed:
    """Storing the content failed; the entry is left unconverted."""
    reason: str


Conversion = Union[Converted, NotApplicable, Failed]
