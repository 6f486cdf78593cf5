"""
CLI entry point for fuzzyrepo.

Modified: 2025-11-20
"""

import asyncio
import logging
import os
import sys
from pathlib import Path
from typing import Optional

import click

from fuzzyrepo import __version__
from fuzzyrepo.config.settings import Settings, find_config_file, is_first_run, xdg_config_path
from fuzzyrepo.core.actions import (
    clone_repo,
    copy_to_clipboard,
    ensure_local,
    open_in_browser,
    open_in_editor,
    open_pull_requests,
)
from fuzzyrepo.core.auth import GitHubAuth
from fuzzyrepo.core.cache import CachePaths, UsageStore
from fuzzyrepo.core.exceptions import (
    ActionError,
    AuthenticationError,
    CacheError,
    ConfigurationError,
    CorruptCacheError,
    FuzzyRepoError,
    SyncLockHeldError,
)
from fuzzyrepo.core.github_client import GitHubAPIClient
from fuzzyrepo.core.scheduler import SyncScheduler
from fuzzyrepo.tui.state import Action, Selection

logger = logging.getLogger(__name__)


LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(log_file: Path, verbose: bool = False) -> None:
    """Log to a file; the terminal belongs to the TUI."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format=LOG_FORMAT,
        handlers=[logging.FileHandler(log_file)],
    )


def build_scheduler(settings: Settings, config_path: Optional[Path] = None) -> SyncScheduler:
    """Scheduler over the configured cache dir with a lazily authenticated client."""

    def client_factory() -> GitHubAPIClient:
        auth = GitHubAuth()
        # A bad token surfaces as a 401 on the first page
        auth.authenticate(verify=False)
        return GitHubAPIClient(auth)

    return SyncScheduler(settings, CachePaths(settings.get_cache_dir()), client_factory, config_path)


def run_sync_remote(scheduler: SyncScheduler) -> int:
    """
    Detached sync body.

    Returns:
        Process exit code (0 on success, 1 on any failure)
    """
    try:
        count = scheduler.run_remote_sync()
    except SyncLockHeldError as e:
        click.echo(str(e), err=True)
        return 1
    except FuzzyRepoError as e:
        logger.error(f"Remote sync failed: {e}", exc_info=True)
        click.echo(f"Sync failed: {e}", err=True)
        return 1
    except Exception as e:
        logger.error(f"Unexpected error during remote sync: {e}", exc_info=True)
        click.echo(f"Sync failed: {e}", err=True)
        return 1

    click.echo(f"Synced {count} repositories")
    return 0


def _remember_clone(scheduler: SyncScheduler, repo, path: str) -> None:
    try:
        scheduler.record_clone(repo, path)
    except CacheError as e:
        logger.warning(f"Cloned {repo.full_name} but could not update the cache: {e}")


def run_selection(selection: Selection, settings: Settings, scheduler: SyncScheduler, usage_store: UsageStore) -> None:
    """
    Run the action picked in the TUI and count it as a use.

    Raises:
        ActionError: The action failed (usage is not recorded)
    """
    repo, action = selection.repo, selection.action

    if action is Action.BROWSE:
        open_in_browser(repo)
    elif action is Action.PULL_REQUESTS:
        open_pull_requests(repo)
    elif action is Action.CLONE:
        path = clone_repo(repo, settings)
        _remember_clone(scheduler, repo, path)
        click.echo(f"✓ Cloned into {path}")
    else:
        was_local = repo.exists_local
        path = ensure_local(repo, settings)
        if not was_local:
            _remember_clone(scheduler, repo, path)

        if action is Action.COPY_PATH:
            copy_to_clipboard(path)
            click.echo(f"✓ Copied {path}")
        else:
            open_in_editor(path)

    usage_store.record_usage(repo)


@click.group(invoke_without_command=True)
@click.version_option(version=__version__)
@click.option("--sync-remote", is_flag=True, hidden=True, help="Run the background sync and exit")
@click.option("--verbose", "-v", is_flag=True, help="Debug logging")
@click.option(
    "--config",
    "config_path",
    type=click.Path(path_type=Path, dir_okay=False),
    default=None,
    help="Config file (default: ~/.config/fuzzyrepo/config.yaml)",
)
@click.pass_context
def cli(ctx: click.Context, sync_remote: bool, verbose: bool, config_path: Optional[Path]):
    """fuzzyrepo - fuzzy-find your GitHub and local repositories."""
    try:
        settings = Settings.load(config_path)
    except ConfigurationError as e:
        click.echo(f"✗ Invalid configuration: {e}", err=True)
        sys.exit(1)

    paths = CachePaths(settings.get_cache_dir())
    setup_logging(paths.log, verbose)

    ctx.obj = {"settings": settings, "paths": paths, "config_path": config_path}

    if sync_remote:
        sys.exit(run_sync_remote(build_scheduler(settings, config_path)))

    if ctx.invoked_subcommand is None:
        launch(settings, paths, config_path)


def launch(settings: Settings, paths: CachePaths, config_path: Optional[Path]) -> None:
    """Run the TUI, then the chosen action once the terminal is free."""
    from fuzzyrepo.tui.app import run_app

    scheduler = build_scheduler(settings, config_path)
    usage_store = UsageStore(paths.usage)
    first_run = config_path is None and is_first_run()

    try:
        selection = asyncio.run(
            run_app(settings, scheduler, usage_store, config_path=config_path, first_run=first_run)
        )
    except KeyboardInterrupt:
        return
    except Exception as e:
        logger.error(f"TUI error: {e}", exc_info=True)
        click.echo(f"✗ TUI error: {e}", err=True)
        sys.exit(1)

    if selection is None:
        return

    try:
        run_selection(selection, scheduler.settings, scheduler, usage_store)
    except ActionError as e:
        logger.error(f"Action {selection.action.value} failed on {selection.repo.full_name}: {e}")
        click.echo(f"✗ {e}", err=True)
        sys.exit(1)


@cli.command()
@click.option("--local-only", is_flag=True, help="Only rescan local repo roots")
@click.pass_context
def sync(ctx: click.Context, local_only: bool):
    """Refresh the repository cache in the foreground."""
    settings = ctx.obj["settings"]
    scheduler = build_scheduler(settings, ctx.obj["config_path"])

    try:
        if local_only:
            if not settings.repo_roots:
                click.echo("✗ No repo_roots configured (run 'fuzzyrepo config')", err=True)
                sys.exit(1)
            repos = scheduler.run_local_scan(scheduler.load_cached_repos())
            count = len(repos)
        else:
            count = scheduler.run_remote_sync()
    except FuzzyRepoError as e:
        click.echo(f"✗ Sync failed: {e}", err=True)
        sys.exit(1)

    click.echo(f"✓ Synced {count} repositories")


@cli.command()
@click.option(
    "--token-file",
    type=click.Path(path_type=Path),
    default=None,
    help="Path to token file (default: ~/.config/fuzzyrepo/token.json)",
)
def auth(token_file: Optional[Path]):
    """Store a GitHub Personal Access Token."""
    try:
        github_auth = GitHubAuth(token_file=token_file)
        click.echo("Create a token at https://github.com/settings/tokens (scope: repo, read:org)")
        login = github_auth.prompt_for_pat()
        click.echo(f"✓ Authenticated as {login}")
        click.echo(f"  Token saved to {github_auth.token_file}")
    except AuthenticationError as e:
        click.echo(f"✗ Authentication failed: {e}", err=True)
        sys.exit(1)
    except Exception as e:
        click.echo(f"✗ Unexpected error: {e}", err=True)
        sys.exit(1)


@cli.command()
def logout():
    """Remove the stored token file."""
    try:
        github_auth = GitHubAuth()
        if github_auth.revoke_credentials():
            click.echo("✓ Successfully logged out")
        else:
            click.echo("No stored token to remove")
    except OSError as e:
        click.echo(f"✗ Error during logout: {e}", err=True)
        sys.exit(1)


@cli.command()
@click.pass_context
def status(ctx: click.Context):
    """Show authentication, cache and sync status."""
    settings = ctx.obj["settings"]
    paths = ctx.obj["paths"]
    scheduler = build_scheduler(settings, ctx.obj["config_path"])

    click.echo(f"fuzzyrepo v{__version__}")
    click.echo("\nAuthentication:")

    try:
        github_auth = GitHubAuth()
        github_auth.authenticate(verify=False)
        click.echo(f"  ✓ Token from {github_auth.source}")
    except AuthenticationError:
        click.echo("  ✗ Not authenticated (run 'fuzzyrepo auth' or 'gh auth login')")

    click.echo("\nCache:")
    click.echo(f"  Location: {paths.cache_dir}")
    try:
        repos = scheduler.cache.load()
        local = sum(1 for repo in repos if repo.exists_local)
        click.echo(f"  Repositories: {len(repos)} ({local} cloned locally)")
    except CorruptCacheError as e:
        click.echo(f"  ✗ {e}")

    try:
        meta = scheduler.metadata.load()
        click.echo(f"  Last remote sync: {meta.last_remote_sync.isoformat() if meta.last_remote_sync else 'never'}")
        click.echo(f"  Last local scan: {meta.last_local_scan.isoformat() if meta.last_local_scan else 'never'}")
    except CorruptCacheError as e:
        click.echo(f"  ✗ {e}")

    if scheduler.lock.is_sync_running():
        click.echo(f"  Sync running (pid {scheduler.lock.read_pid()})")
    else:
        click.echo("  No sync running")

    click.echo("\nConfiguration:")
    config_file = ctx.obj["config_path"] or find_config_file()
    if config_file is not None and Path(config_file).exists():
        click.echo(f"  Config file: {config_file}")
    else:
        click.echo("  Using defaults (run 'fuzzyrepo config')")
    click.echo(f"  Repo roots: {', '.join(settings.repo_roots) or '(none)'}")
    click.echo(f"  Affiliation: {settings.github.affiliation}")


@cli.command()
@click.argument("path", required=False)
@click.pass_context
def config(ctx: click.Context, path: Optional[str]):
    """Create a config file with PATH as the repository root."""
    config_file = ctx.obj["config_path"] or find_config_file()
    if config_file is not None and Path(config_file).exists():
        click.echo(f"Config file already exists: {config_file}")
        return

    if not path:
        path = click.prompt("Path to local repositories directory", default="", show_default=False)
    path = path.strip()
    if not path:
        click.echo("✗ Empty path provided", err=True)
        sys.exit(1)

    settings = ctx.obj["settings"]
    settings.repo_roots = [os.path.abspath(os.path.expanduser(path))]

    try:
        settings.validate()
        written = settings.save(ctx.obj["config_path"] or xdg_config_path())
    except FuzzyRepoError as e:
        click.echo(f"✗ Could not write config: {e}", err=True)
        sys.exit(1)

    click.echo(f"✓ Wrote config: {written}")


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
