"""Filename selection for LFS conversion."""
from __future__ import annotations

from dataclasses import dataclass
from fnmatch import fnmatchcase

__all__ = ["EntryFilter"]


@dataclass(frozen=True)
class EntryFilter:
    """
    Glob match against a tree entry's filename.

    Supports '*', '?' and bracket classes. Matching is case-sensitive and is
    applied to the full filename string given by the caller.
    """
    pattern: str

    def __post_init__(self) -> None:
        if not self.pattern:
            raise ValueError("pattern must not be empty")

    def matches(self, filename: str) -> bool:
        return fnmatchcase(filename, self.pattern)

    __call__ = matches
