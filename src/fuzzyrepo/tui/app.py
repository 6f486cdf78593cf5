"""Main fuzzyrepo TUI application.

Search box over the ranked repository list. The app never runs an action
itself: it exits with the chosen Selection and the CLI runs the action once
the terminal is released.

Modified: 2025-11-20
"""

import asyncio
import logging
from pathlib import Path
from typing import Optional

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.widgets import Input

from ..config.settings import Settings
from ..core.cache import UsageStore
from ..core.exceptions import CorruptCacheError
from ..core.refresh import FAILED, FINISHED, PROGRESS, STARTED, RefreshWorker
from ..core.scheduler import CacheWatcher, SyncScheduler

from .messages import CacheReloaded, ErrorMessage, RefreshUpdate, StatusMessage
from .state import Action, RepositoryState, Selection, UIEvent, UIMode, transition
from .ui.modals import CommandPaletteModal, ConfigModal
from .ui.modals.command_palette import CONFIG_COMMAND, REFRESH_COMMAND
from .ui.repo_list import RepoList
from .ui.status_bar import StatusBar


logger = logging.getLogger(__name__)


class FuzzyRepoApp(App):
    """Main application class for fuzzyrepo."""

    TITLE = "fuzzyrepo"
    ENABLE_COMMAND_PALETTE = False

    CSS = """
    #search {
        dock: top;
        margin: 0 1;
    }
    """

    BINDINGS = [
        Binding("escape", "quit", "Quit"),
        Binding("ctrl+c", "quit", "Quit", show=False, priority=True),
        Binding("up", "cursor_up", "Up", show=False, priority=True),
        Binding("down", "cursor_down", "Down", show=False, priority=True),
        Binding("ctrl+k", "command_palette", "Actions", priority=True),
        Binding("ctrl+y", "choose('copy_path')", "Copy path", priority=True),
        Binding("ctrl+b", "choose('browse')", "Browser", priority=True),
        Binding("ctrl+p", "choose('pull_requests')", "PRs", priority=True),
        Binding("ctrl+g", "choose('clone')", "Clone", priority=True),
        Binding("ctrl+r", "refresh", "Refresh", priority=True),
        Binding("ctrl+o", "edit_config", "Config", priority=True),
    ]

    def __init__(
        self,
        settings: Settings,
        scheduler: SyncScheduler,
        usage_store: UsageStore,
        config_path: Optional[Path] = None,
        first_run: bool = False,
    ):
        """Initialize the application.

        Args:
            settings: Loaded settings
            scheduler: Sync scheduler over the cache directory
            usage_store: Usage statistics for ranking
            config_path: Where the config editor saves (default XDG path)
            first_run: No config file exists yet
        """
        super().__init__()

        self.settings = settings
        self.scheduler = scheduler
        self.usage_store = usage_store
        self.config_path = config_path
        self.first_run = first_run

        self.mode = UIMode.BROWSING
        self.state = RepositoryState([], settings)
        self.watcher: Optional[CacheWatcher] = None
        self.refresh_worker: Optional[RefreshWorker] = None
        self.sync_in_flight = False

        # UI components
        self.repo_list: Optional[RepoList] = None
        self.status_bar: Optional[StatusBar] = None

    def compose(self) -> ComposeResult:
        """Create the application layout."""
        yield Input(placeholder="Search repositories", id="search")
        self.repo_list = RepoList(id="results")
        yield self.repo_list
        self.status_bar = StatusBar(id="status-bar")
        yield self.status_bar

    async def on_mount(self) -> None:
        """Load the cache and start background refresh machinery."""
        self.query_one("#search", Input).focus()

        startup = await asyncio.to_thread(self.scheduler.startup, self.first_run)
        self.sync_in_flight = startup.sync_in_flight

        try:
            usage = self.usage_store.load()
        except CorruptCacheError as e:
            logger.warning(f"Ignoring usage statistics: {e}")
            usage = {}

        self.state = RepositoryState(startup.repos, self.settings, usage)
        self.render_results()

        self.watcher = CacheWatcher(
            self.scheduler.cache,
            interval=self.settings.sync.poll_interval,
            last_mtime=startup.cache_mtime,
        )
        self.set_interval(self.watcher.interval, self.poll_cache)

        self.refresh_worker = RefreshWorker(self.scheduler, lambda: list(self.state.repos))
        self.run_worker(self.refresh_worker.run(), name="refresh", exclusive=False)
        self.run_worker(self._forward_refresh_events(), name="refresh-events", exclusive=False)

        if self.first_run:
            # Remote sync waits until the first config is saved
            self.action_edit_config()
        elif not startup.repos:
            self.notify("No repositories cached yet. Press ctrl+r to sync.", timeout=5)

    async def _forward_refresh_events(self) -> None:
        while True:
            event = await self.refresh_worker.events.get()
            self.post_message(RefreshUpdate(event))

    def render_results(self) -> None:
        """Redraw the result list and counts."""
        if self.repo_list:
            self.repo_list.show(self.state.visible, self.state.cursor)
        if self.status_bar:
            self.status_bar.update_context(self.state.counts, syncing=self.sync_in_flight)

    def poll_cache(self) -> None:
        """Reload when the detached sync rewrote the cache."""
        if self.watcher is None:
            return
        repos = self.watcher.poll()
        if repos is not None:
            self.post_message(CacheReloaded(repos))
        elif self.sync_in_flight and not (self.refresh_worker and self.refresh_worker.running):
            self.sync_in_flight = self.scheduler.lock.is_sync_running()
            if not self.sync_in_flight:
                self.render_results()

    def check_action(self, action: str, parameters: tuple) -> Optional[bool]:
        """Only quit is live while a modal owns the keyboard."""
        if self.mode is not UIMode.BROWSING and action != "quit":
            return False
        return True

    # Action handlers

    def action_cursor_up(self) -> None:
        self.state.move(-1)
        self.render_results()

    def action_cursor_down(self) -> None:
        self.state.move(1)
        self.render_results()

    def action_choose(self, action_name: str) -> None:
        """Exit with the highlighted repo and ``action_name``."""
        self.choose(Action(action_name))

    def choose(self, action: Action) -> None:
        repo = self.state.selected
        if repo is None:
            return

        if action is Action.CLONE and repo.exists_local:
            self.post_message(StatusMessage(f"Already cloned at {repo.local_path}"))
            return

        self.exit(Selection(repo=repo, action=action))

    def action_refresh(self) -> None:
        """Queue a full refresh (dropped if one is already queued)."""
        if self.refresh_worker is None:
            return
        if not self.refresh_worker.request_refresh():
            self.post_message(StatusMessage("Refresh already queued"))

    def action_edit_config(self) -> None:
        """Open the config editor."""
        next_mode = transition(self.mode, UIEvent.OPEN_CONFIG)
        if next_mode is self.mode:
            return
        self.mode = next_mode
        self.push_screen(ConfigModal(self.settings, self.config_path), self._on_config_closed)

    def action_command_palette(self) -> None:
        """Open the command palette for the highlighted repo."""
        next_mode = transition(self.mode, UIEvent.OPEN_PALETTE)
        if next_mode is self.mode:
            return
        self.mode = next_mode
        repo = self.state.selected
        self.push_screen(
            CommandPaletteModal(repo.full_name if repo else ""),
            self._on_palette_closed,
        )

    def _on_config_closed(self, settings: Optional[Settings]) -> None:
        if settings is None:
            self.mode = transition(self.mode, UIEvent.CANCEL)
            return

        self.mode = transition(self.mode, UIEvent.SAVE_CONFIG)
        roots_changed = settings.repo_roots != self.settings.repo_roots
        self.settings = settings
        self.scheduler.settings = settings
        self.state.set_settings(settings)

        if roots_changed and settings.repo_roots:
            self.run_worker(self._rescan_local(), name="local-scan", exclusive=False)

        if self.first_run:
            self.first_run = False
            self.sync_in_flight = (
                self.scheduler.lock.is_sync_running() or self.scheduler.spawn_detached_sync()
            )

        self.render_results()
        self.post_message(StatusMessage("Configuration saved"))

    async def _rescan_local(self) -> None:
        """Index the new repo roots without waiting for the next scan interval."""
        try:
            repos = await asyncio.to_thread(self.scheduler.run_local_scan, list(self.state.repos))
        except Exception as e:
            logger.error(f"Local scan after config change failed: {e}", exc_info=True)
            self.post_message(ErrorMessage(f"Local scan failed: {e}", e))
            return

        self.state.replace(repos)
        if self.watcher:
            self.watcher.last_mtime = self.scheduler.cache.mtime()
        self.render_results()

    def _on_palette_closed(self, command: Optional[str]) -> None:
        if command is None:
            self.mode = transition(self.mode, UIEvent.CANCEL)
            return

        if command == CONFIG_COMMAND:
            # Palette hands over straight to the config editor
            self.mode = transition(self.mode, UIEvent.OPEN_CONFIG)
            self.push_screen(ConfigModal(self.settings, self.config_path), self._on_config_closed)
            return

        self.mode = transition(self.mode, UIEvent.RUN_COMMAND)
        if command == REFRESH_COMMAND:
            self.action_refresh()
        else:
            self.choose(Action(command))

    # Input handlers

    def on_input_changed(self, event: Input.Changed) -> None:
        """Re-rank on every keystroke."""
        if event.input.id != "search":
            return
        self.state.set_query(event.value)
        self.render_results()

    def on_input_submitted(self, event: Input.Submitted) -> None:
        """Enter opens the highlighted repo."""
        if event.input.id != "search" or self.mode is not UIMode.BROWSING:
            return
        self.choose(Action.OPEN)

    # Message handlers

    def on_cache_reloaded(self, message: CacheReloaded) -> None:
        """Swap in repos written by another process."""
        self.state.replace(message.repos)
        self.sync_in_flight = self.scheduler.lock.is_sync_running()
        self.render_results()

    def on_refresh_update(self, message: RefreshUpdate) -> None:
        """Apply progress from the refresh worker."""
        event = message.event

        if event.kind == STARTED:
            self.sync_in_flight = True
            if self.status_bar:
                self.status_bar.update_status("Refreshing from GitHub...")
        elif event.kind == PROGRESS:
            self.state.replace(event.repos)
        elif event.kind == FINISHED:
            self.state.replace(event.repos)
            self.sync_in_flight = False
            if self.watcher:
                # Our own write, not another process's
                self.watcher.last_mtime = self.scheduler.cache.mtime()
            if self.status_bar:
                self.status_bar.update_status(
                    f"Synced {len(event.repos)} repositories",
                    self.scheduler.rate_limit_status,
                )
        elif event.kind == FAILED:
            self.sync_in_flight = False
            self.post_message(ErrorMessage(f"Refresh failed: {event.error}", event.error))

        self.render_results()

    def on_status_message(self, message: StatusMessage) -> None:
        """Handle status messages."""
        if self.status_bar:
            self.status_bar.show_message(message.message, duration=message.duration)

    def on_error_message(self, message: ErrorMessage) -> None:
        """Handle error messages."""
        if self.status_bar:
            self.status_bar.show_message(message.message, duration=5, error=True)
        self.notify(message.message, severity="error", timeout=5)


async def run_app(
    settings: Settings,
    scheduler: SyncScheduler,
    usage_store: UsageStore,
    config_path: Optional[Path] = None,
    first_run: bool = False,
) -> Optional[Selection]:
    """Run the fuzzyrepo TUI and return what the user picked (None if they quit)."""
    app = FuzzyRepoApp(
        settings=settings,
        scheduler=scheduler,
        usage_store=usage_store,
        config_path=config_path,
        first_run=first_run,
    )
    return await app.run_async()
