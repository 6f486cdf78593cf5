"""Test utilities and helper functions.

Created: 2025-11-20
"""

from pathlib import Path
from typing import Any, Dict, List, Optional

from fuzzyrepo.core.models import Affiliation, Repository


def create_test_repo(full_name: str, **overrides) -> Repository:
    """Factory for creating test repos with sensible defaults.

    Args:
        full_name: Full name (owner/repo)
        **overrides: Override any default fields

    Returns:
        Repository instance

    Example:
        repo = create_test_repo("alice/tool", exists_local=True, local_path="/src/tool")
    """
    owner, name = full_name.split("/")

    defaults = {
        "owner": owner,
        "name": name,
        "full_name": full_name,
        "ssh_url": f"git@github.com:{full_name}.git",
        "local_path": "",
        "exists_local": False,
        "affiliation": Affiliation.OWNER,
    }
    defaults.update(overrides)

    return Repository(**defaults)


def create_local_repo(full_name: str, local_path: str, **overrides) -> Repository:
    """Repository as the local indexer reports it."""
    overrides.setdefault("affiliation", Affiliation.LOCAL)
    return create_test_repo(full_name, local_path=local_path, exists_local=True, **overrides)


def github_payload(full_name: str, **overrides) -> Dict[str, Any]:
    """GitHub REST repository payload."""
    owner, name = full_name.split("/")
    payload = {
        "name": name,
        "full_name": full_name,
        "owner": {"login": owner},
        "ssh_url": f"git@github.com:{full_name}.git",
        "private": False,
    }
    payload.update(overrides)
    return payload


def make_git_repo(path: Path, origin_url: Optional[str]) -> Path:
    """Create a directory that looks like a git working tree.

    Args:
        path: Working tree directory to create
        origin_url: URL for ``[remote "origin"]``, or None for no remote

    Returns:
        The working tree path
    """
    git_dir = path / ".git"
    git_dir.mkdir(parents=True)

    lines = [
        "[core]",
        "\trepositoryformatversion = 0",
        "\tbare = false",
    ]
    if origin_url is not None:
        lines += [
            '[remote "origin"]',
            f"\turl = {origin_url}",
            "\tfetch = +refs/heads/*:refs/remotes/origin/*",
        ]
    lines += ['[branch "main"]', "\tremote = origin"]
    (git_dir / "config").write_text("\n".join(lines) + "\n")
    return path


def by_key(repos: List[Repository]) -> Dict[str, Repository]:
    """Index repos by identity key."""
    return {repo.key: repo for repo in repos}
