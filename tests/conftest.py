"""Shared test fixtures for fuzzyrepo tests.

Created: 2025-11-20
"""

import pytest
from datetime import datetime, timezone
from pathlib import Path
from unittest.mock import Mock, MagicMock

from fuzzyrepo.config.settings import Settings
from fuzzyrepo.core.auth import GitHubAuth
from fuzzyrepo.core.cache import CachePaths
from fuzzyrepo.core.models import Affiliation

from tests.utils import create_test_repo, make_git_repo


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    """Keep every test away from the real home, config and cache dirs."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(home / ".config"))
    monkeypatch.setenv("XDG_CACHE_HOME", str(home / ".cache"))
    monkeypatch.delenv("FUZZYREPO_CACHE_DIR", raising=False)
    monkeypatch.delenv("GITHUB_TOKEN", raising=False)
    monkeypatch.delenv("NVIM", raising=False)
    return home


@pytest.fixture
def now():
    """Fixed reference time."""
    return datetime(2025, 11, 20, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def cache_dir(tmp_path):
    path = tmp_path / "cache"
    path.mkdir()
    return path


@pytest.fixture
def cache_paths(cache_dir):
    return CachePaths(cache_dir)


@pytest.fixture
def repo_root(tmp_path):
    """Directory holding a few fake git working trees."""
    root = tmp_path / "src"
    root.mkdir()
    make_git_repo(root / "fuzzyrepo", "git@github.com:alice/fuzzyrepo.git")
    make_git_repo(root / "work" / "api", "https://github.com/acme/api.git")
    make_git_repo(root / "scratch", None)
    return root


@pytest.fixture
def settings(repo_root, tmp_path):
    """Settings pointing at the fake repo root."""
    settings = Settings()
    settings.repo_roots = [str(repo_root)]
    settings.clone_root = str(tmp_path / "clones")
    return settings


@pytest.fixture
def mock_github_auth():
    """Mock authenticated GitHubAuth instance."""
    auth = Mock(spec=GitHubAuth)
    auth.get_token.return_value = "ghp_test_token_1234567890"

    mock_client = MagicMock()
    mock_user = MagicMock()
    mock_user.login = "test_user"
    mock_user.name = "Test User"
    mock_client.get_user.return_value = mock_user
    auth.get_github_client.return_value = mock_client

    return auth


@pytest.fixture
def mock_ghapi():
    """Mock GhApi client returning no repositories."""
    api = MagicMock()
    api.repos.list_for_authenticated_user.return_value = []
    api.recv_hdrs = {}
    return api


@pytest.fixture
def sample_repos():
    """Remote repos across all affiliation classes."""
    return [
        create_test_repo("alice/fuzzyrepo", affiliation=Affiliation.OWNER),
        create_test_repo("alice/dotfiles", affiliation=Affiliation.OWNER),
        create_test_repo("bob/shared-lib", affiliation=Affiliation.COLLABORATOR),
        create_test_repo("acme/api", affiliation=Affiliation.ORGANIZATION_MEMBER),
        create_test_repo("acme/web", affiliation=Affiliation.ORGANIZATION_MEMBER),
    ]
