"""Status bar widget for fuzzyrepo.

One line under the results: match counts with a sync marker on the left,
key hints or a timed message in the middle, API quota on the right.

Modified: 2025-11-20
"""

from typing import Optional

from rich.text import Text
from textual.app import ComposeResult
from textual.containers import Horizontal
from textual.timer import Timer
from textual.widget import Widget
from textual.widgets import Static


DEFAULT_HINTS = "enter:open  ctrl+y:copy  ctrl+b:browser  ctrl+p:PRs  ctrl+k:actions  ctrl+r:refresh  ctrl+o:config"


class StatusBar(Widget):
    """Counts, hints and sync state for the launcher."""

    DEFAULT_CSS = """
    StatusBar {
        height: 1;
        dock: bottom;
        background: $panel;
    }

    StatusBar #counts {
        width: auto;
        padding: 0 1;
    }

    StatusBar #message {
        width: 1fr;
        color: $text-muted;
    }

    StatusBar #message.error {
        color: $error;
    }

    StatusBar #quota {
        width: auto;
        padding: 0 1;
        color: $text-muted;
    }
    """

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._hints = DEFAULT_HINTS
        self._message_timer: Optional[Timer] = None
        self.counts_label = Static("", id="counts")
        self.message_label = Static(DEFAULT_HINTS, id="message")
        self.quota_label = Static("", id="quota")

    def compose(self) -> ComposeResult:
        with Horizontal():
            yield self.counts_label
            yield self.message_label
            yield self.quota_label

    def update_context(self, counts: str, syncing: bool = False) -> None:
        """Show ``visible/total`` counts, prefixed with a marker while a sync runs."""
        text = Text()
        if syncing:
            text.append("sync ", style="yellow")
        text.append(counts)
        self.counts_label.update(text)

    def update_status(self, status: str, rate_limit: str = "") -> None:
        """Replace the hints with ``status`` until the next message."""
        self._hints = status
        self._show(status)
        if rate_limit:
            self.quota_label.update(f"API {rate_limit}")

    def show_message(self, message: str, duration: float = 3, error: bool = False) -> None:
        """Show ``message`` for ``duration`` seconds, then restore the hints."""
        self._show(message, error)
        if self._message_timer is not None:
            self._message_timer.stop()
        self._message_timer = self.set_timer(duration, lambda: self._show(self._hints))

    def _show(self, text: str, error: bool = False) -> None:
        self.message_label.set_class(error, "error")
        self.message_label.update(text)
