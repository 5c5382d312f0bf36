"""
LFS pointer document handling.

A pointer document stands in for large content inside the git tree. It is a
fixed three-line text file naming the pointer format version, the SHA-256 of the
content and its size in bytes:

    version https://git-lfs.github.com/spec/v1
    oid sha256:<64 hex chars>
    size <bytes>
"""
from __future__ import annotations

from pydantic import BaseModel, Field

__all__ = ["LFS_SPEC_VERSION", "PointerFile", "build_pointer", "parse_pointer"]

LFS_SPEC_VERSION = "https://git-lfs.github.com/spec/v1"


class PointerFile(BaseModel):
    """Parsed or to-be-rendered pointer document."""
    version: str = Field(LFS_SPEC_VERSION, description="Pointer spec version URL")
    oid: str = Field(
        pattern=r"^[a-f0-9]{64}$",
        description="Hex-encoded SHA-256 hash of file content, no 'sha256:' prefix"
    )
    size: int = Field(ge=0, description="Size of the original content in bytes")

    def render(self) -> str:
        return (
            f"version {self.version}\n"
            f"oid sha256:{self.oid}\n"
            f"size {self.size}\n"
        )


def build_pointer(digest: str, size: int) -> str:
    """
    Render the pointer document for stored content.

    Args:
        digest: Hex SHA-256 of the content (as returned by the digest store)
        size: Byte length of the original content, never the pointer's own

    Returns:
        Pointer text including the trailing newline
    """
    return (
        f"version {LFS_SPEC_VERSION}\n"
        f"oid sha256:{digest}\n"
        f"size {size}\n"
    )


def parse_pointer(text: str) -> PointerFile:
    """
    Parse and validate a pointer document.

    Raises:
        ValueError: If text is not a well-formed pointer
    """
    fields = {}
    for line in text.splitlines():
        if not line:
            continue
        key, sep, value = line.partition(" ")
        if not sep:
            raise ValueError(f"Malformed pointer line: {line!r}")
        fields[key] = value

    if fields.get("version") != LFS_SPEC_VERSION:
        raise ValueError(f"Unsupported pointer version: {fields.get('version')!r}")

    oid = fields.get("oid", "")
    if not oid.startswith("sha256:"):
        raise ValueError(f"Unsupported pointer oid: {oid!r}")

    try:
        return PointerFile(oid=oid[len("sha256:"):], size=int(fields.get("size", "")))
    except ValueError as e:
        raise ValueError(f"Invalid pointer: {e}") from e
