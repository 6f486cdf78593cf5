"""
Background sync scheduling.

Decides at startup whether the local scan and the remote sync are due, runs
the local scan inline, and hands the remote sync to a detached process so
the launcher never waits on the network. The same class also runs the
foreground refresh used by ``fuzzyrepo sync`` and the in-app refresh worker.

Modified: 2025-11-20
"""

import logging
import os
import subprocess
import sys
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from pathlib import Path
from typing import Callable, List, Optional

from fuzzyrepo.config.settings import Settings
from fuzzyrepo.core.cache import CachePaths, MetadataStore, RepositoryCache
from fuzzyrepo.core.exceptions import CorruptCacheError, SyncLockHeldError
from fuzzyrepo.core.github_client import GitHubAPIClient
from fuzzyrepo.core.indexer import index_local_repos
from fuzzyrepo.core.lock import SyncLock
from fuzzyrepo.core.models import CacheMetadata, Repository, utcnow
from fuzzyrepo.core.reconciler import ProgressiveReconciler, merge_repos

logger = logging.getLogger(__name__)


ProgressCallback = Callable[[List[Repository]], None]
ClientFactory = Callable[[], GitHubAPIClient]


@dataclass
class StartupState:
    """What the interactive session starts with."""

    repos: List[Repository] = field(default_factory=list)
    cache_mtime: Optional[float] = None
    sync_in_flight: bool = False
    local_scan_ran: bool = False


class SyncScheduler:
    """
    Runs the indexer, fetcher and reconciler and persists the result.

    Cache and metadata writes only happen after a step succeeded, and the
    metadata timestamp for a step is stamped only after its cache write.
    """

    def __init__(
        self,
        settings: Settings,
        paths: CachePaths,
        client_factory: ClientFactory,
        config_path: Optional[Path] = None,
    ):
        """
        Initialize the scheduler.

        Args:
            settings: Loaded settings (roots, affiliation filter, intervals)
            paths: Cache directory layout
            client_factory: Builds an authenticated GitHubAPIClient on demand,
                so startup never touches the network
            config_path: Explicit config file, handed on to the detached sync
        """
        self.settings = settings
        self.paths = paths
        self.client_factory = client_factory
        self.config_path = config_path

        self.cache = RepositoryCache(paths.repos)
        self.metadata = MetadataStore(paths.metadata)
        self.lock = SyncLock(paths.lock)
        self.rate_limit_status = ""

    def _load_metadata(self) -> CacheMetadata:
        try:
            meta = self.metadata.load()
        except CorruptCacheError as e:
            logger.warning(f"Ignoring corrupt sync metadata: {e}")
            meta = CacheMetadata()

        meta.local_scan_interval = timedelta(hours=self.settings.sync.local_scan_hours)
        meta.remote_sync_interval = timedelta(days=self.settings.sync.remote_sync_days)
        return meta

    def load_cached_repos(self) -> List[Repository]:
        """Load the cache, treating a corrupt file as empty."""
        try:
            return self.cache.load()
        except CorruptCacheError as e:
            logger.warning(f"Starting with an empty repository list: {e}")
            return []

    def startup(self, first_run: bool = False, now: Optional[datetime] = None) -> StartupState:
        """
        Prepare the repository list for an interactive session.

        Args:
            first_run: No config file exists yet; never spawn a sync
            now: Current time (injectable for tests)

        Returns:
            StartupState with the repos to display
        """
        now = now or utcnow()
        repos = self.load_cached_repos()
        meta = self._load_metadata()
        state = StartupState(repos=repos)

        if self.settings.repo_roots and meta.is_local_scan_due(now):
            logger.info("Local scan due, scanning repo roots")
            try:
                state.repos = self.run_local_scan(repos, now=now)
                state.local_scan_ran = True
            except Exception as e:
                logger.error(f"Local scan failed: {e}", exc_info=True)

        if self.lock.is_sync_running():
            state.sync_in_flight = True
        elif meta.is_remote_sync_due(now, cache_empty=not state.repos) and not first_run:
            state.sync_in_flight = self.spawn_detached_sync()

        state.cache_mtime = self.cache.mtime()
        return state

    def run_local_scan(self, existing: List[Repository], now: Optional[datetime] = None) -> List[Repository]:
        """
        Scan repo roots and merge the result into ``existing``.

        Raises:
            CacheError: If the cache cannot be written (metadata untouched)
        """
        local = index_local_repos(self.settings.repo_roots)
        merged = merge_repos(local, existing)
        self.cache.save(merged)

        meta = self._load_metadata()
        meta.mark_local_scan(now)
        self.metadata.save(meta)
        return merged

    def record_clone(self, repo: Repository, path: str) -> None:
        """Mark ``repo`` as cloned at ``path`` in the cache without waiting for the next scan."""
        local = repo.copy(local_path=path, exists_local=True)
        self.cache.save(merge_repos([local], self.load_cached_repos()))

    def run_full_refresh(
        self,
        existing: List[Repository],
        on_progress: Optional[ProgressCallback] = None,
        now: Optional[datetime] = None,
    ) -> List[Repository]:
        """
        Fetch remote repos, rescan local roots and persist the reconciled set.

        Args:
            existing: Currently cached repositories
            on_progress: Called with a full snapshot after every fetched page
            now: Timestamp to record (defaults to current UTC time)

        Returns:
            The final reconciled set

        Raises:
            AuthenticationError, RateLimitExceededError, FetchError: Fetch
                failed; cache and metadata are left untouched
            CacheError: The cache write failed
        """
        local = index_local_repos(self.settings.repo_roots)
        reconciler = ProgressiveReconciler(local, existing)

        client = self.client_factory()
        for batch in client.iter_repo_pages(self.settings.github.affiliation, self.settings.github.page_size):
            snapshot = reconciler.add_remote_batch(batch)
            if on_progress is not None:
                on_progress(snapshot)
        self.rate_limit_status = client.rate_limiter.format_status()

        repos = reconciler.finish()
        self.cache.save(repos)

        meta = self._load_metadata()
        now = now or utcnow()
        meta.mark_remote_sync(now)
        meta.mark_local_scan(now)
        self.metadata.save(meta)

        logger.info(f"Full refresh complete: {len(repos)} repositories ({reconciler.confirmed_count} remote)")
        return repos

    def run_remote_sync(self) -> int:
        """
        Body of the detached sync process.

        Returns:
            Number of repositories in the cache after the sync

        Raises:
            SyncLockHeldError: Another sync is running
        """
        if not self.lock.acquire():
            raise SyncLockHeldError(self.lock.read_pid() or 0)

        try:
            existing = self.load_cached_repos()
            repos = self.run_full_refresh(existing)
        finally:
            self.lock.release()

        return len(repos)

    def sync_command(self) -> List[str]:
        """Command line of the detached sync, carrying the session's config file."""
        argv = [sys.executable, "-m", "fuzzyrepo"]
        if self.config_path is not None:
            argv += ["--config", os.path.abspath(self.config_path)]
        argv.append("--sync-remote")
        return argv

    def spawn_detached_sync(self) -> bool:
        """
        Start ``fuzzyrepo --sync-remote`` in its own session without waiting.

        Returns:
            True if a process was started
        """
        if self.lock.is_sync_running():
            logger.info("Remote sync already running, not spawning another")
            return False

        try:
            subprocess.Popen(
                self.sync_command(),
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                start_new_session=True,
            )
        except OSError as e:
            logger.error(f"Could not start background sync: {e}")
            return False

        logger.info("Spawned background remote sync")
        return True


class CacheWatcher:
    """
    Notices when another process rewrote the cache.

    Polling the file mtime is the only signal the detached sync gives.
    """

    def __init__(self, cache: RepositoryCache, interval: float = 2.0, last_mtime: Optional[float] = None):
        self.cache = cache
        self.interval = interval
        self.last_mtime = last_mtime

    def poll(self) -> Optional[List[Repository]]:
        """
        Check the cache once.

        Returns:
            Freshly loaded repositories if the cache changed since the last
            poll, else None
        """
        mtime = self.cache.mtime()
        if mtime is None:
            return None
        if self.last_mtime is not None and mtime <= self.last_mtime:
            return None

        try:
            repos = self.cache.load()
        except CorruptCacheError as e:
            # Leave last_mtime alone so the next write is picked up
            logger.warning(f"Cache changed but could not be read: {e}")
            return None

        self.last_mtime = mtime
        logger.debug(f"Cache reloaded ({len(repos)} repos)")
        return repos
