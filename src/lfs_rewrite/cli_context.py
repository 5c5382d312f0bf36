"""
CLI Context for managing application dependencies.

Provides a clean way to manage CLI-level dependencies like settings and the
git repository, avoiding global state and enabling dependency injection.
"""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .settings import Settings, create_settings_from_env
from .storage.git_odb import GitObjectDatabase


@dataclass
class CLIContext:
    """
    Shared context for CLI commands.

    Settings are resolved once per command (environment plus CLI overrides);
    the repository is opened lazily on first access.
    """
    settings: Settings
    repo_path: Optional[Path] = None
    _database: Optional[GitObjectDatabase] = None

    @classmethod
    def from_env(cls, repo_path: Optional[Path] = None, **overrides) -> CLIContext:
        """
        Create CLI context from environment variables and CLI overrides.

        Raises:
            ValueError: If settings are invalid
        """
        return cls(settings=create_settings_from_env(**overrides), repo_path=repo_path)

    @property
    def database(self) -> Optional[GitObjectDatabase]:
        """
        Get or open the git repository (lazy initialization).

        Returns:
            GitObjectDatabase, or None when no repository path was given
        """
        if self._database is None and self.repo_path is not None:
            self._database = GitObjectDatabase(self.repo_path)
        return self._database
