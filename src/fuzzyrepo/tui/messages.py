"""Custom Textual messages for fuzzyrepo.

Defines custom messages for communication between TUI components.

Modified: 2025-11-20
"""

from typing import List, Optional

from textual.message import Message

from ..core.models import Repository
from ..core.refresh import RefreshEvent


class CacheReloaded(Message):
    """Message sent when another process rewrote the cache."""

    def __init__(self, repos: List[Repository]):
        super().__init__()
        self.repos = repos


class RefreshUpdate(Message):
    """Message carrying one event from the refresh worker."""

    def __init__(self, event: RefreshEvent):
        super().__init__()
        self.event = event


class StatusMessage(Message):
    """Message sent to display a status message."""

    def __init__(self, message: str, duration: int = 3):
        super().__init__()
        self.message = message
        self.duration = duration


class ErrorMessage(Message):
    """Message sent to display an error message."""

    def __init__(self, message: str, error: Optional[Exception] = None):
        super().__init__()
        self.message = message
        self.error = error
