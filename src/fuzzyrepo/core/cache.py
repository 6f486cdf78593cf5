"""
On-disk persistence for the merged repository set, sync metadata and usage.

Plain JSON files under the cache directory, each written atomically. Shared
between the interactive session and the detached sync process; the
filesystem is the only channel between them.

Modified: 2025-11-20
"""

import json
import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from fuzzyrepo.core.exceptions import CorruptCacheError
from fuzzyrepo.core.models import CacheMetadata, Repository, UsageEntry, utcnow
from fuzzyrepo.utils.atomic_write import atomic_write_json

logger = logging.getLogger(__name__)


CACHE_FILENAME = "repos.json"
METADATA_FILENAME = "metadata.json"
USAGE_FILENAME = "usage.json"
LOCK_FILENAME = "sync.lock"


def _read_json(path: Path) -> Optional[Any]:
    """
    Read a JSON file.

    Returns:
        Parsed content, or None if the file does not exist

    Raises:
        CorruptCacheError: If the file exists but is not valid JSON
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            raw = f.read()
    except FileNotFoundError:
        return None

    try:
        return json.loads(raw)
    except json.JSONDecodeError as e:
        raise CorruptCacheError(path, str(e)) from e


class CachePaths:
    """Locations of every file fuzzyrepo keeps in its cache directory."""

    def __init__(self, cache_dir: Path):
        self.cache_dir = Path(cache_dir)

    @property
    def repos(self) -> Path:
        return self.cache_dir / CACHE_FILENAME

    @property
    def metadata(self) -> Path:
        return self.cache_dir / METADATA_FILENAME

    @property
    def usage(self) -> Path:
        return self.cache_dir / USAGE_FILENAME

    @property
    def lock(self) -> Path:
        return self.cache_dir / LOCK_FILENAME

    @property
    def log(self) -> Path:
        return self.cache_dir / "fuzzyrepo.log"


class RepositoryCache:
    """
    JSON array of repository records.

    A missing file is the bootstrap case and loads as an empty list. A file
    that exists but cannot be parsed raises CorruptCacheError; the caller
    decides whether to carry on with an empty set.
    """

    def __init__(self, path: Path):
        self.path = Path(path)

    def load(self) -> List[Repository]:
        """
        Load cached repositories.

        Returns:
            List of Repository objects (empty if no cache yet)

        Raises:
            CorruptCacheError: If the cache file is unparseable
        """
        data = _read_json(self.path)
        if data is None:
            return []
        if not isinstance(data, list):
            raise CorruptCacheError(self.path, "expected a JSON array")

        try:
            return [Repository.from_dict(item) for item in data]
        except (KeyError, TypeError, AttributeError) as e:
            raise CorruptCacheError(self.path, f"bad repository record: {e}") from e

    def save(self, repos: List[Repository]) -> None:
        """
        Atomically replace the cache with ``repos``.

        Records are written sorted by identity key so the file is stable
        across syncs.

        Raises:
            CacheError: If the write fails (previous file stays intact)
        """
        ordered = sorted(repos, key=lambda r: r.key)
        atomic_write_json(self.path, [repo.to_dict() for repo in ordered])
        logger.debug(f"Wrote {len(ordered)} repos to {self.path}")

    def mtime(self) -> Optional[float]:
        """Modification time of the cache file, or None if it does not exist."""
        try:
            return os.stat(self.path).st_mtime
        except OSError:
            return None


class MetadataStore:
    """Last-sync timestamps (``metadata.json``)."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def load(self) -> CacheMetadata:
        """
        Load sync metadata.

        Returns:
            CacheMetadata (all timestamps None if the file does not exist)

        Raises:
            CorruptCacheError: If the file is unparseable
        """
        data = _read_json(self.path)
        if data is None:
            return CacheMetadata()
        if not isinstance(data, dict):
            raise CorruptCacheError(self.path, "expected a JSON object")

        try:
            return CacheMetadata.from_dict(data)
        except (ValueError, OverflowError) as e:
            raise CorruptCacheError(self.path, f"bad timestamp: {e}") from e

    def save(self, meta: CacheMetadata) -> None:
        atomic_write_json(self.path, meta.to_dict())


class UsageStore:
    """
    Per-repository usage counts (``usage.json``), keyed by lower-cased full name.

    Entries are never deleted; stale keys for repos that left the cache are
    simply never looked up.
    """

    def __init__(self, path: Path):
        self.path = Path(path)

    def load(self) -> Dict[str, UsageEntry]:
        """
        Load usage statistics.

        Raises:
            CorruptCacheError: If the file is unparseable
        """
        data = _read_json(self.path)
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise CorruptCacheError(self.path, "expected a JSON object")

        try:
            return {key: UsageEntry.from_dict(entry) for key, entry in data.items()}
        except (ValueError, TypeError, AttributeError, OverflowError) as e:
            raise CorruptCacheError(self.path, f"bad usage entry: {e}") from e

    def save(self, usage: Dict[str, UsageEntry]) -> None:
        atomic_write_json(
            self.path,
            {key: entry.to_dict() for key, entry in sorted(usage.items())},
            mode=0o600,
        )

    def record_usage(self, repo: Repository, now: Optional[datetime] = None) -> Dict[str, UsageEntry]:
        """
        Count one completed action against ``repo`` and persist immediately.

        A corrupt usage file is replaced rather than blocking the action.

        Args:
            repo: Repository the action ran against
            now: Timestamp to record (defaults to current UTC time)

        Returns:
            The updated usage map
        """
        try:
            usage = self.load()
        except CorruptCacheError as e:
            logger.warning(f"Resetting usage statistics: {e}")
            usage = {}

        entry = usage.get(repo.key) or UsageEntry()
        entry.count += 1
        entry.last_used_at = now or utcnow()
        usage[repo.key] = entry

        self.save(usage)
        return usage
