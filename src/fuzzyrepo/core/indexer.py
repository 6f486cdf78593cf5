"""
Local repository indexer.

Walks the configured root directories, finds git working trees and reads
each one's origin URL from ``.git/config``. No git commands are run.

Modified: 2025-11-20
"""

import logging
import os
import re
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Tuple

from fuzzyrepo.core.models import LOCAL_OWNER, Affiliation, Repository

logger = logging.getLogger(__name__)


# Directories never descended into while scanning
SKIP_DIRS = frozenset({"node_modules", "vendor", ".cache"})

_SSH_PATTERN = re.compile(r"^git@github\.com:([^/\s]+)/([^/\s]+?)(?:\.git)?/?$")
_HTTPS_PATTERN = re.compile(r"^https://github\.com/([^/\s]+)/([^/\s]+?)(?:\.git)?/?$")
_ORIGIN_HEADER = re.compile(r'^\[remote\s+"origin"\]$')
_URL_LINE = re.compile(r"^url\s*=\s*(.+)$")


def parse_github_url(url: str) -> Optional[Tuple[str, str]]:
    """
    Extract ``(owner, name)`` from a GitHub remote URL.

    Supports ``git@github.com:OWNER/NAME(.git)`` and
    ``https://github.com/OWNER/NAME(.git)``.

    Returns:
        (owner, name) tuple, or None for non-GitHub / unrecognised URLs
    """
    url = url.strip()
    for pattern in (_SSH_PATTERN, _HTTPS_PATTERN):
        match = pattern.match(url)
        if match:
            return match.group(1), match.group(2)
    return None


def read_origin_url(repo_root: Path) -> Optional[str]:
    """
    Read the ``[remote "origin"]`` url from ``<repo_root>/.git/config``.

    Returns:
        The URL, or None if there is no origin remote

    Raises:
        OSError: If the config file cannot be read
        UnicodeDecodeError: If the config file is not valid UTF-8
    """
    config_path = Path(repo_root) / ".git" / "config"
    in_origin = False

    with open(config_path, "r", encoding="utf-8") as f:
        for raw_line in f:
            line = raw_line.strip()
            if line.startswith("["):
                in_origin = bool(_ORIGIN_HEADER.match(line))
                continue
            if in_origin:
                match = _URL_LINE.match(line)
                if match:
                    return match.group(1).strip()

    return None


def find_git_roots(root: Path) -> Iterator[Path]:
    """
    Yield every directory under ``root`` that contains a ``.git`` directory.

    ``.git`` internals and the directories in SKIP_DIRS are never walked.
    Unreadable directories are logged and skipped.
    """

    def on_error(error: OSError) -> None:
        logger.debug(f"Skipping unreadable path {error.filename}: {error.strerror}")

    for dirpath, dirnames, _ in os.walk(root, onerror=on_error):
        if ".git" in dirnames and os.path.isdir(os.path.join(dirpath, ".git")):
            yield Path(dirpath)

        # Prune in place so os.walk never enters these
        dirnames[:] = [d for d in dirnames if d != ".git" and d not in SKIP_DIRS]


def build_local_repo(repo_root: Path, origin_url: Optional[str]) -> Repository:
    """Create a Repository record for a discovered working tree."""
    parsed = parse_github_url(origin_url) if origin_url else None

    if parsed:
        owner, name = parsed
        ssh_url = f"git@github.com:{owner}/{name}.git"
    else:
        owner, name = LOCAL_OWNER, repo_root.name
        ssh_url = origin_url or ""

    return Repository(
        owner=owner,
        name=name,
        full_name=f"{owner}/{name}",
        ssh_url=ssh_url,
        local_path=str(repo_root),
        exists_local=True,
        affiliation=Affiliation.LOCAL,
    )


def index_local_repos(roots: Iterable[str]) -> List[Repository]:
    """
    Scan root directories for git working trees.

    Args:
        roots: Absolute root directory paths, scanned in order

    Returns:
        One Repository per discovered working tree. If two trees resolve to
        the same identity, the first one found is kept.
    """
    repos: List[Repository] = []
    seen = set()

    for root in roots:
        root_path = Path(root).expanduser()
        if not root_path.is_dir():
            logger.warning(f"Repository root does not exist: {root_path}")
            continue

        for repo_root in find_git_roots(root_path):
            try:
                origin_url = read_origin_url(repo_root)
            except (OSError, UnicodeDecodeError) as e:
                logger.debug(f"Skipping {repo_root}: cannot read git config ({e})")
                continue

            repo = build_local_repo(repo_root, origin_url)
            if repo.key in seen:
                logger.debug(f"Duplicate local clone of {repo.full_name} at {repo_root}, keeping first")
                continue

            seen.add(repo.key)
            repos.append(repo)

    logger.info(f"Indexed {len(repos)} local repositories")
    return repos
