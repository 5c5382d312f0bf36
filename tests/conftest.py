"""Root pytest configuration for lfs-rewrite tests."""
import pytest
from dulwich.repo import Repo

from lfs_rewrite.settings import Settings
from lfs_rewrite.storage.digest_store import LocalDigestStore
from lfs_rewrite.storage.git_odb import GitObjectDatabase
from tests.fakes.fake_odb import FakeObjectDatabase


# Keep the developer's environment out of settings tests
@pytest.fixture(autouse=True)
def test_env(monkeypatch):
    """Automatically clear lfs-rewrite environment variables."""
    for key in ("LFS_REWRITE_PATTERN", "LFS_REWRITE_OBJECTS_DIR", "LFS_REWRITE_WORKERS", "LFS_REWRITE_CHUNK_SIZE"):
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def settings():
    """Standard test settings."""
    return Settings(pattern="*.bin")


@pytest.fixture
def odb():
    """Standard fake object database."""
    return FakeObjectDatabase()


@pytest.fixture
def store(tmp_path):
    """LFS object store in a temporary directory, with a tiny read size."""
    return LocalDigestStore(tmp_path / "lfs" / "objects", chunk_size=3)


@pytest.fixture
def git_repo(tmp_path):
    """Empty non-bare git repository; yields (path, Repo)."""
    path = tmp_path / "repo"
    path.mkdir()
    repo = Repo.init(str(path))
    yield path, repo
    repo.close()


@pytest.fixture
def database(git_repo):
    """GitObjectDatabase over the git_repo fixture."""
    path, _ = git_repo
    return GitObjectDatabase(path)
