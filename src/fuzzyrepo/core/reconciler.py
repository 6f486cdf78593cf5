"""
Repository reconciler (merge engine).

Combines local-scan output with remote listings or the existing cache into
one set keyed by lower-cased ``full_name``.

Local records enrich remote ones and never overwrite them: a repo that is on
GitHub keeps its owner, affiliation and ssh_url when it is also cloned; only
``local_path`` and ``exists_local`` come from the local side. Repos with no
remote counterpart are inserted as-is.

Modified: 2025-11-20
"""

import logging
from typing import Dict, Iterable, List, Set

from fuzzyrepo.core.models import Repository

logger = logging.getLogger(__name__)


def _apply_local(merged: Dict[str, Repository], local: Repository) -> None:
    existing = merged.get(local.key)
    if existing is None:
        merged[local.key] = local.copy()
        return

    existing.local_path = local.local_path
    existing.exists_local = True


def merge_repos(local_repos: Iterable[Repository], base_repos: Iterable[Repository]) -> List[Repository]:
    """
    Merge local repositories into a remote listing (or the existing cache).

    Args:
        local_repos: Output of the local indexer
        base_repos: Remote fetch results, or the cached set for local-only passes

    Returns:
        Merged repositories, one per identity, in unspecified order.
        Inputs are not mutated.
    """
    merged: Dict[str, Repository] = {}
    for repo in base_repos:
        merged[repo.key] = repo.copy()

    for repo in local_repos:
        _apply_local(merged, repo)

    return list(merged.values())


class ProgressiveReconciler:
    """
    Streaming variant of :func:`merge_repos`.

    Seeded with the existing cache plus the local scan, then fed remote
    results one batch at a time. Each batch returns a snapshot of the full
    current set for display. :meth:`finish` drops everything the remote
    stream did not confirm, except purely local repositories.

    Only call :meth:`finish` after the remote stream completed successfully;
    after a failed fetch it would evict every remote repository.
    """

    def __init__(self, local_repos: Iterable[Repository], existing: Iterable[Repository] = ()):
        local_list = list(local_repos)
        self._local_keys: Set[str] = {repo.key for repo in local_list}
        self._confirmed: Set[str] = set()

        # The fresh local scan is authoritative for local state
        base = [repo.copy(local_path="", exists_local=False) for repo in existing]
        self._repos: Dict[str, Repository] = {
            repo.key: repo for repo in merge_repos(local_list, base)
        }

    @property
    def confirmed_count(self) -> int:
        return len(self._confirmed)

    def snapshot(self) -> List[Repository]:
        """Copy of the current set."""
        return [repo.copy() for repo in self._repos.values()]

    def add_remote_batch(self, batch: Iterable[Repository]) -> List[Repository]:
        """
        Merge one page of remote results.

        The first remote confirmation of a key wins, so a repo already seen
        under a higher-priority affiliation keeps that tag. Known local state
        is carried onto the remote record.

        Returns:
            Snapshot of the full current set
        """
        for remote in batch:
            key = remote.key
            if key in self._confirmed:
                continue
            self._confirmed.add(key)

            updated = remote.copy()
            current = self._repos.get(key)
            if current is not None and current.exists_local:
                updated.local_path = current.local_path
                updated.exists_local = True
            self._repos[key] = updated

        return self.snapshot()

    def finish(self) -> List[Repository]:
        """
        Evict entries neither confirmed remotely nor present locally.

        Returns:
            The final reconciled set
        """
        keep = self._confirmed | self._local_keys
        evicted = [key for key in self._repos if key not in keep]
        for key in evicted:
            del self._repos[key]

        if evicted:
            logger.info(f"Evicted {len(evicted)} repositories no longer reported by GitHub")

        return self.snapshot()
