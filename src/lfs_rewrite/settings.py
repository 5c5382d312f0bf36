"""
Settings and configuration for lfs-rewrite.

Centralizes configuration values and provides validation with fail-fast behavior.
Loads settings from environment variables at construction time.
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

__all__ = ["Settings", "create_settings_from_env"]

DEFAULT_CHUNK_SIZE = 1024 * 1024
DEFAULT_WORKERS = 4


@dataclass(frozen=True)
class Settings:
    """
    Configuration settings for LFS conversion.

    Conversion Settings:
        pattern: Glob selecting filenames to convert (e.g. "*.bin")
        objects_dir: LFS object store root; None means <git-dir>/lfs/objects

    Worker Settings:
        max_workers: Number of threads converting trees concurrently
        chunk_size: Read size used while streaming blob content
    """
    pattern: str
    objects_dir: Optional[Path] = None
    max_workers: int = DEFAULT_WORKERS
    chunk_size: int = DEFAULT_CHUNK_SIZE

    def __post_init__(self):
        """Validate settings on construction."""
        if not self.pattern or not self.pattern.strip():
            raise ValueError("pattern is required")

        # The pattern becomes one line of .gitattributes
        if "\n" in self.pattern or "\r" in self.pattern:
            raise ValueError(f"pattern must be a single line, got {self.pattern!r}")

        if self.max_workers < 1:
            raise ValueError(f"max_workers must be at least 1, got {self.max_workers}")

        if self.chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive, got {self.chunk_size}")

    def resolve_objects_dir(self, git_dir: Optional[Path]) -> Path:
        """Return the configured store root, defaulting under the git directory."""
        if self.objects_dir is not None:
            return Path(self.objects_dir)
        if git_dir is None:
            raise ValueError("No objects directory configured and no git directory to default under")
        return Path(git_dir) / "lfs" / "objects"


def create_settings_from_env(**overrides) -> Settings:
    """
    Load settings from environment variables.

    Environment Variables:
        - LFS_REWRITE_PATTERN (required unless given as override)
        - LFS_REWRITE_OBJECTS_DIR (optional)
        - LFS_REWRITE_WORKERS (default: 4)
        - LFS_REWRITE_CHUNK_SIZE (default: 1048576)

    Args:
        overrides: Explicit values (e.g. from CLI options); None values are
            ignored so the environment or default applies

    Returns:
        Settings object with validated configuration

    Raises:
        ValueError: If configuration is invalid or required values missing

    Note:
        Creates a fresh Settings instance every time (no caching).
    """
    def get_int(key: str, default: int) -> int:
        value = os.getenv(key)
        try:
            return int(value) if value else default
        except ValueError:
            raise ValueError(f"{key} must be an integer, got {value!r}")

    pattern = os.getenv("LFS_REWRITE_PATTERN")
    objects_dir = os.getenv("LFS_REWRITE_OBJECTS_DIR")

    values = {
        "pattern": pattern,
        "objects_dir": Path(objects_dir) if objects_dir else None,
        "max_workers": get_int("LFS_REWRITE_WORKERS", DEFAULT_WORKERS),
        "chunk_size": get_int("LFS_REWRITE_CHUNK_SIZE", DEFAULT_CHUNK_SIZE),
    }
    values.update({key: value for key, value in overrides.items() if value is not None})

    if not values["pattern"]:
        raise ValueError("LFS_REWRITE_PATTERN environment variable or --pattern is required")

    return Settings(**values)
