"""
UI state for the fuzzyrepo launcher.

Kept free of Textual so it can be tested without running an app: the mode
state machine, the action the user picked, and the repository list the
session owns.

Modified: 2025-11-20
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from ..config.settings import Settings, apply_config
from ..core.models import Repository, UsageEntry
from ..core.ranking import rank_repos


class UIMode(Enum):
    """What the launcher is showing on top of the result list."""

    BROWSING = "browsing"
    EDITING_CONFIG = "editing_config"
    COMMAND_PALETTE = "command_palette"


class UIEvent(Enum):
    """Inputs that can change the mode."""

    OPEN_CONFIG = "open_config"
    OPEN_PALETTE = "open_palette"
    SAVE_CONFIG = "save_config"
    CANCEL = "cancel"
    RUN_COMMAND = "run_command"


_TRANSITIONS = {
    (UIMode.BROWSING, UIEvent.OPEN_CONFIG): UIMode.EDITING_CONFIG,
    (UIMode.BROWSING, UIEvent.OPEN_PALETTE): UIMode.COMMAND_PALETTE,
    (UIMode.EDITING_CONFIG, UIEvent.SAVE_CONFIG): UIMode.BROWSING,
    (UIMode.EDITING_CONFIG, UIEvent.CANCEL): UIMode.BROWSING,
    (UIMode.COMMAND_PALETTE, UIEvent.RUN_COMMAND): UIMode.BROWSING,
    (UIMode.COMMAND_PALETTE, UIEvent.CANCEL): UIMode.BROWSING,
    # The palette can open the config editor directly
    (UIMode.COMMAND_PALETTE, UIEvent.OPEN_CONFIG): UIMode.EDITING_CONFIG,
}


def transition(mode: UIMode, event: UIEvent) -> UIMode:
    """
    Next mode after ``event``.

    Events that mean nothing in the current mode leave it unchanged.
    """
    return _TRANSITIONS.get((mode, event), mode)


class Action(Enum):
    """What to do with the selected repository once the TUI exits."""

    OPEN = "open"
    COPY_PATH = "copy_path"
    BROWSE = "browse"
    PULL_REQUESTS = "pull_requests"
    CLONE = "clone"

    @property
    def label(self) -> str:
        return _ACTION_LABELS[self]


_ACTION_LABELS = {
    Action.OPEN: "Open in editor",
    Action.COPY_PATH: "Copy local path",
    Action.BROWSE: "Open on GitHub",
    Action.PULL_REQUESTS: "Open pull requests",
    Action.CLONE: "Clone",
}


@dataclass
class Selection:
    """Result of a launcher session."""

    repo: Repository
    action: Action


class RepositoryState:
    """
    The repository list owned by one interactive session.

    Replaced wholesale when the cache is reloaded or a refresh reports
    progress; never shared with the refresh worker.
    """

    def __init__(
        self,
        repos: List[Repository],
        settings: Settings,
        usage: Optional[Dict[str, UsageEntry]] = None,
    ):
        self.repos = list(repos)
        self.settings = settings
        self.usage = usage or {}
        self.query = ""
        self.cursor = 0
        self.visible: List[Repository] = []
        self._recompute()

    def _recompute(self, now: Optional[datetime] = None) -> None:
        shown = apply_config(self.repos, self.settings)
        self.visible = rank_repos(shown, self.query, self.usage, now)
        self.cursor = max(0, min(self.cursor, len(self.visible) - 1))

    def replace(self, repos: List[Repository]) -> None:
        """Swap in a new repository list, keeping the cursor on the same repo if still visible."""
        current = self.selected
        self.repos = list(repos)
        self._recompute()
        if current is not None:
            for i, repo in enumerate(self.visible):
                if repo.key == current.key:
                    self.cursor = i
                    break

    def set_query(self, query: str) -> None:
        """Filter by ``query``; the cursor returns to the best match."""
        self.query = query
        self.cursor = 0
        self._recompute()

    def set_settings(self, settings: Settings) -> None:
        self.settings = settings
        self._recompute()

    def move(self, delta: int) -> None:
        if not self.visible:
            self.cursor = 0
            return
        self.cursor = max(0, min(self.cursor + delta, len(self.visible) - 1))

    @property
    def selected(self) -> Optional[Repository]:
        if 0 <= self.cursor < len(self.visible):
            return self.visible[self.cursor]
        return None

    @property
    def counts(self) -> str:
        return f"{len(self.visible)}/{len(self.repos)}"
