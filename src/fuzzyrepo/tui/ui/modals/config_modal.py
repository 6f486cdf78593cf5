"""Modal dialog for editing the fuzzyrepo configuration.

Edits the settings the launcher uses most: repo roots, clone root, GitHub
affiliation filter, organization allowlist and display toggles. Dismisses
with the saved Settings, or None when cancelled.

Modified: 2025-11-20
"""

import copy
import logging
from pathlib import Path
from typing import Optional

from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Container, Horizontal, Vertical
from textual.screen import ModalScreen
from textual.widgets import Button, Checkbox, Input, Static

from ....config.settings import Settings
from ....core.exceptions import ConfigurationError, CacheError

logger = logging.getLogger(__name__)


def _split_list(value: str) -> list:
    return [part.strip() for part in value.split(",") if part.strip()]


class ConfigModal(ModalScreen):
    """Modal form over the current settings."""

    DEFAULT_CSS = """
    ConfigModal {
        align: center middle;
    }

    ConfigModal > Container {
        width: 70;
        height: auto;
        border: thick $primary;
        background: $surface;
        padding: 1 2;
    }

    ConfigModal Static#title {
        text-align: center;
        text-style: bold;
        color: $primary;
    }

    ConfigModal .label {
        margin-top: 1;
        color: $text-muted;
    }

    ConfigModal Static#error {
        color: $error;
        height: auto;
    }

    ConfigModal Container#buttons {
        height: 3;
        align: center middle;
        margin-top: 1;
    }

    ConfigModal Button {
        margin: 0 1;
    }
    """

    BINDINGS = [Binding("escape", "cancel", "Cancel")]

    def __init__(self, settings: Settings, config_path: Optional[Path] = None):
        super().__init__()
        self.settings = settings
        self.config_path = config_path

    def compose(self) -> ComposeResult:
        """Compose the modal layout."""
        s = self.settings
        with Container():
            yield Static("Configuration", id="title")

            with Vertical():
                yield Static("Repo roots (comma-separated absolute paths):", classes="label")
                yield Input(", ".join(s.repo_roots), id="repo_roots")

                yield Static("Clone root:", classes="label")
                yield Input(s.clone_root, placeholder=s.get_clone_root(), id="clone_root")

                yield Static("GitHub affiliation:", classes="label")
                yield Input(s.github.affiliation, id="affiliation")

                yield Static("Organizations (empty = all):", classes="label")
                yield Input(s.github.orgs, id="orgs")

                yield Checkbox("Show owned", s.display.show_owner, id="show_owner")
                yield Checkbox("Show collaborator", s.display.show_collaborator, id="show_collaborator")
                yield Checkbox("Show organization", s.display.show_org_member, id="show_org_member")
                yield Checkbox("Show local-only", s.display.show_local, id="show_local")

                yield Static("", id="error")

                with Horizontal(id="buttons"):
                    yield Button("Save", variant="primary", id="save")
                    yield Button("Cancel", variant="default", id="cancel")

    def on_mount(self) -> None:
        """Focus the first input when mounted."""
        self.query_one("#repo_roots", Input).focus()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        """Handle button presses."""
        if event.button.id == "save":
            self.save()
        else:
            self.dismiss(None)

    def action_cancel(self) -> None:
        self.dismiss(None)

    def build_settings(self) -> Settings:
        """Settings with the form values applied (the original is left untouched)."""
        settings = copy.deepcopy(self.settings)
        settings.repo_roots = _split_list(self.query_one("#repo_roots", Input).value)
        settings.clone_root = self.query_one("#clone_root", Input).value.strip()
        settings.github.affiliation = self.query_one("#affiliation", Input).value.strip()
        settings.github.orgs = self.query_one("#orgs", Input).value.strip()
        settings.display.show_owner = self.query_one("#show_owner", Checkbox).value
        settings.display.show_collaborator = self.query_one("#show_collaborator", Checkbox).value
        settings.display.show_org_member = self.query_one("#show_org_member", Checkbox).value
        settings.display.show_local = self.query_one("#show_local", Checkbox).value
        return settings

    def save(self) -> None:
        """Validate and write the settings."""
        settings = self.build_settings()
        try:
            settings.validate()
            path = settings.save(self.config_path)
        except (ConfigurationError, CacheError) as e:
            self.query_one("#error", Static).update(str(e))
            return

        logger.info(f"Saved configuration to {path}")
        self.dismiss(settings)
