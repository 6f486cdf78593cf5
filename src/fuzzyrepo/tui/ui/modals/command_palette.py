"""Command palette for fuzzyrepo.

Lists every action available on the highlighted repository plus app
commands. Dismisses with the chosen command id, or None when cancelled.

Modified: 2025-11-20
"""

from typing import List, Tuple

from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Container
from textual.screen import ModalScreen
from textual.widgets import OptionList, Static
from textual.widgets.option_list import Option

from ...state import Action


REFRESH_COMMAND = "refresh"
CONFIG_COMMAND = "config"


def palette_commands() -> List[Tuple[str, str]]:
    """``(command id, label)`` pairs in display order."""
    commands = [(action.value, action.label) for action in Action]
    commands.append((REFRESH_COMMAND, "Refresh from GitHub"))
    commands.append((CONFIG_COMMAND, "Edit configuration"))
    return commands


class CommandPaletteModal(ModalScreen):
    """Modal list of commands."""

    DEFAULT_CSS = """
    CommandPaletteModal {
        align: center middle;
    }

    CommandPaletteModal > Container {
        width: 50;
        height: auto;
        border: thick $primary;
        background: $surface;
        padding: 1 2;
    }

    CommandPaletteModal Static#title {
        text-align: center;
        text-style: bold;
        color: $primary;
        margin-bottom: 1;
    }

    CommandPaletteModal OptionList {
        height: auto;
        max-height: 12;
    }
    """

    BINDINGS = [Binding("escape", "cancel", "Cancel")]

    def __init__(self, repo_name: str = ""):
        super().__init__()
        self.repo_name = repo_name

    def compose(self) -> ComposeResult:
        """Compose the modal layout."""
        with Container():
            yield Static(self.repo_name or "Commands", id="title")
            yield OptionList(*[Option(label, id=command) for command, label in palette_commands()])

    def on_mount(self) -> None:
        self.query_one(OptionList).focus()

    def on_option_list_option_selected(self, event: OptionList.OptionSelected) -> None:
        self.dismiss(event.option.id)

    def action_cancel(self) -> None:
        self.dismiss(None)
