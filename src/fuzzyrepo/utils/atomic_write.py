"""
Atomic file writes (write temp sibling, then rename over the target).

A concurrent reader never sees a partial file, and a crash mid-write leaves
the previous version intact.

Modified: 2025-11-20
"""

import json
import logging
import os
from pathlib import Path
from typing import Any

from fuzzyrepo.core.exceptions import CacheError

logger = logging.getLogger(__name__)


def temp_path_for(path: Path) -> Path:
    """Sibling temp path used while writing ``path``."""
    return path.with_name(path.name + ".tmp")


def atomic_write_text(path: Path, content: str, mode: int = 0o644) -> None:
    """
    Atomically write text content to ``path``.

    Args:
        path: Destination file
        content: Full file contents
        mode: Permission bits for the new file

    Raises:
        CacheError: If the write or the rename fails
    """
    path = Path(path)
    tmp_path = temp_path_for(path)

    try:
        path.parent.mkdir(parents=True, exist_ok=True)

        with open(tmp_path, "w", encoding="utf-8") as tmp_file:
            tmp_file.write(content)
            tmp_file.flush()
            os.fsync(tmp_file.fileno())
        os.chmod(tmp_path, mode)

        # Atomic on POSIX, and replaces an existing file on Windows too
        os.replace(tmp_path, path)

    except OSError as e:
        if tmp_path.exists():
            try:
                tmp_path.unlink()
            except OSError:
                logger.debug(f"Could not remove temp file {tmp_path}")
        raise CacheError(f"Failed to write {path}: {e}") from e


def atomic_write_json(path: Path, data: Any, mode: int = 0o644) -> None:
    """Serialize ``data`` as indented JSON and write it atomically."""
    atomic_write_text(path, json.dumps(data, indent=2) + "\n", mode=mode)
