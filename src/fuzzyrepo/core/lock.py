"""
Cross-process sync lock.

A lock file holding the PID of the running sync. There is no real mutex
across processes here: a lock whose PID is no longer alive is stale and
gets removed, so a crashed sync never blocks future ones.

Modified: 2025-11-20
"""

import errno
import logging
import os
from pathlib import Path
from typing import Optional

from fuzzyrepo.core.exceptions import SyncLockHeldError

logger = logging.getLogger(__name__)


def is_process_running(pid: int) -> bool:
    """
    Check whether a process with ``pid`` exists.

    POSIX probes with signal 0. On Windows ``os.kill`` would deliver a real
    signal, so the process is assumed alive.
    """
    if pid <= 0:
        return False
    if os.name == "nt":
        return True

    try:
        os.kill(pid, 0)
    except OSError as e:
        # EPERM: the process exists but belongs to someone else
        return e.errno == errno.EPERM
    return True


def _parse_pid(content: Optional[str]) -> Optional[int]:
    if not content:
        return None
    try:
        return int(content.strip())
    except ValueError:
        return None


class SyncLock:
    """PID lock file guarding the background sync."""

    def __init__(self, path: Path):
        self.path = Path(path)
        self._held = False

    def _read_raw(self) -> Optional[str]:
        try:
            return self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError):
            return ""

    def read_pid(self) -> Optional[int]:
        """PID recorded in the lock file, or None if missing or unreadable."""
        return _parse_pid(self._read_raw())

    def _remove(self) -> None:
        try:
            self.path.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(f"Could not remove lock file {self.path}: {e}")

    def _remove_if_unchanged(self, observed: str) -> bool:
        """
        Unlink the lock file only if it still holds ``observed``.

        Returns:
            False if another process replaced the file in the meantime
        """
        if self._read_raw() != observed:
            return False
        self._remove()
        return True

    def is_sync_running(self) -> bool:
        """
        Check whether another sync holds the lock.

        Invalid or stale lock files are removed as a side effect.
        """
        content = self._read_raw()
        if content is None:
            return False

        pid = _parse_pid(content)
        if pid is None:
            logger.info(f"Removing invalid lock file {self.path}")
        elif not is_process_running(pid):
            logger.info(f"Removing stale lock file {self.path} (pid {pid} is gone)")
        else:
            return True

        if not self._remove_if_unchanged(content):
            # Someone took the lock between our read and the removal
            return self.is_sync_running()
        return False

    def acquire(self) -> bool:
        """
        Take the lock for the current process.

        The PID is written to a private file first and hard-linked into
        place, so the lock file never exists without its PID.

        Returns:
            True if acquired, False if another live sync holds it
        """
        if self.is_sync_running():
            return False

        pid = os.getpid()
        tmp_path = self.path.with_name(f"{self.path.name}.{pid}.tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(str(pid), encoding="utf-8")
            os.link(tmp_path, self.path)
        except FileExistsError:
            # Another process won the race between the check and the link
            return False
        except OSError as e:
            logger.error(f"Could not create lock file {self.path}: {e}")
            return False
        finally:
            try:
                tmp_path.unlink()
            except FileNotFoundError:
                pass

        self._held = True
        logger.debug(f"Sync lock acquired: pid={pid}")
        return True

    def release(self) -> None:
        """Remove the lock file if this instance holds it."""
        if not self._held:
            return
        self._remove()
        self._held = False
        logger.debug("Sync lock released")

    def __enter__(self) -> "SyncLock":
        if not self.acquire():
            raise SyncLockHeldError(self.read_pid() or 0)
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()
