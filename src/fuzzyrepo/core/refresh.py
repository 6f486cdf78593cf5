"""
On-demand refresh worker for the interactive session.

One background asyncio task serves refresh requests. Requests go through a
queue of size one: asking again while a request is pending is dropped, not
blocked. Results flow back to the UI as RefreshEvent objects on a second
queue, so the UI never shares a mutable repository list with the worker.

Modified: 2025-11-20
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from fuzzyrepo.core.models import Repository
from fuzzyrepo.core.scheduler import SyncScheduler

logger = logging.getLogger(__name__)


STARTED = "started"
PROGRESS = "progress"
FINISHED = "finished"
FAILED = "failed"


@dataclass
class RefreshEvent:
    """Progress report from the refresh worker."""

    kind: str
    repos: List[Repository] = field(default_factory=list)
    error: Optional[Exception] = None

    @property
    def done(self) -> bool:
        return self.kind in (FINISHED, FAILED)


class RefreshWorker:
    """Serializes full refreshes off the UI event loop."""

    def __init__(self, scheduler: SyncScheduler, existing: Callable[[], List[Repository]]):
        """
        Args:
            scheduler: Scheduler whose ``run_full_refresh`` does the work
            existing: Returns the repositories to reconcile against at the
                moment a refresh starts
        """
        self.scheduler = scheduler
        self.existing = existing
        self.requests: asyncio.Queue = asyncio.Queue(maxsize=1)
        self.events: asyncio.Queue = asyncio.Queue()
        self.running = False

    def request_refresh(self) -> bool:
        """
        Ask for a refresh without blocking.

        Returns:
            False if a request was already pending and this one was dropped
        """
        try:
            self.requests.put_nowait(True)
        except asyncio.QueueFull:
            logger.debug("Refresh already requested, dropping duplicate")
            return False
        return True

    async def run(self) -> None:
        """Serve requests until cancelled."""
        loop = asyncio.get_running_loop()

        def emit(event: RefreshEvent) -> None:
            loop.call_soon_threadsafe(self.events.put_nowait, event)

        while True:
            await self.requests.get()
            try:
                await self._refresh_once(emit)
            finally:
                self.requests.task_done()

    async def _refresh_once(self, emit: Callable[[RefreshEvent], None]) -> None:
        self.running = True
        self.events.put_nowait(RefreshEvent(STARTED))
        try:
            repos = await asyncio.to_thread(
                self.scheduler.run_full_refresh,
                self.existing(),
                lambda snapshot: emit(RefreshEvent(PROGRESS, repos=snapshot)),
            )
        except Exception as e:
            logger.error(f"Refresh failed: {e}", exc_info=True)
            self.events.put_nowait(RefreshEvent(FAILED, error=e))
        else:
            self.events.put_nowait(RefreshEvent(FINISHED, repos=repos))
        finally:
            self.running = False
