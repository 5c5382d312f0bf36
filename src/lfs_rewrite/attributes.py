"""
.gitattributes handling.

The converted tree must declare the LFS filter for the converted pattern. The
declaration is merged into an existing attributes file by literal line match,
so running the conversion twice never duplicates it.
"""
from __future__ import annotations

import re
from typing import Optional

__all__ = ["GITATTRIBUTES", "attributes_line", "merge_attributes"]

GITATTRIBUTES = ".gitattributes"

_LINE_BREAK = re.compile(r"\r\n|\r|\n")


def attributes_line(pattern: str) -> str:
    """
    Build the attributes declaration for an LFS pattern.

    Raises:
        ValueError: If pattern is empty or spans several lines
    """
    if not pattern or "\n" in pattern or "\r" in pattern:
        raise ValueError(f"Invalid attributes pattern: {pattern!r}")
    return f"{pattern} filter=lfs diff=lfs merge=lfs -text"


def merge_attributes(existing: Optional[bytes], line: str) -> Optional[bytes]:
    """
    Merge an attributes line into existing attributes content.

    Existing content is not validated: undecodable bytes are replaced and
    whatever lines result are kept as they are.

    Args:
        existing: Current .gitattributes content, or None if there is none
        line: Declaration to ensure is present

    Returns:
        New content to store, or None if the line is already present and
        the existing blob can be reused
    """
    if existing is None:
        return line.encode("utf-8")

    lines = _LINE_BREAK.split(existing.decode("utf-8", errors="replace"))
    if lines[-1] == "":
        lines.pop()
    if line in lines:
        return None
    return "\n".join(lines + [line]).encode("utf-8")
