"""
Actions on the selected repository.

Thin wrappers around the editor, git, the terminal clipboard and the web
browser. All of them run after the TUI has released the terminal.

Modified: 2025-11-20
"""

import base64
import logging
import os
import subprocess
import sys
import webbrowser
from typing import Optional, TextIO

from fuzzyrepo.config.settings import Settings
from fuzzyrepo.core.exceptions import (
    ActionError,
    AlreadyExistsError,
    CloneFailedError,
    InvalidEditorError,
    NoEditorError,
)
from fuzzyrepo.core.models import Repository

logger = logging.getLogger(__name__)


EDITOR_METACHARACTERS = frozenset(";&|$`(){}<>\n\r\\")


def is_valid_editor(editor: str) -> bool:
    """Plain command name or path only: no shell metacharacters, no leading dash."""
    if not editor or editor.startswith("-"):
        return False
    return not any(ch in EDITOR_METACHARACTERS for ch in editor)


def escape_lua_string(value: str) -> str:
    """Escape ``value`` for a double-quoted Lua string literal."""
    replacements = {
        "\\": "\\\\",
        '"': '\\"',
        "'": "\\'",
        "\n": "\\n",
        "\r": "\\r",
        "\t": "\\t",
        "\x00": "\\0",
    }
    return "".join(replacements.get(ch, ch) for ch in value)


def open_in_editor(path: str) -> None:
    """
    Open ``path`` in the user's editor.

    Inside a Neovim terminal (``$NVIM`` set) the path is sent to the parent
    instance; otherwise ``$EDITOR`` runs in the foreground with ``path`` as
    its working directory and ``FUZZYREPO=1`` in its environment.

    Raises:
        NoEditorError: $EDITOR is not set
        InvalidEditorError: $EDITOR contains shell metacharacters
        ActionError: The editor could not be started or exited non-zero
    """
    nvim_addr = os.getenv("NVIM")
    if nvim_addr:
        keys = (
            "<C-\\><C-n>:lua package.loaded['fuzzyrepo']=nil; "
            f"require('fuzzyrepo').open_repo(\"{escape_lua_string(path)}\")<CR>"
        )
        command = ["nvim", "--server", nvim_addr, "--remote-send", keys]
        cwd = None
        env = None
    else:
        editor = os.getenv("EDITOR", "")
        if not editor:
            raise NoEditorError()
        if not is_valid_editor(editor):
            raise InvalidEditorError()
        command = [editor, path]
        cwd = path
        env = {**os.environ, "FUZZYREPO": "1"}

    logger.info(f"Opening {path} with {command[0]}")
    try:
        result = subprocess.run(command, cwd=cwd, env=env)
    except OSError as e:
        raise ActionError(f"Could not start {command[0]}: {e}") from e

    if result.returncode != 0:
        raise ActionError(f"{command[0]} exited with status {result.returncode}")


def osc52_sequence(text: str) -> str:
    """OSC 52 escape sequence that sets the system clipboard to ``text``."""
    encoded = base64.b64encode(text.encode("utf-8")).decode("ascii")
    return f"\033]52;c;{encoded}\a"


def copy_to_clipboard(text: str, stream: Optional[TextIO] = None) -> None:
    """Copy ``text`` via the terminal (works over SSH)."""
    stream = stream or sys.stdout
    stream.write(osc52_sequence(text))
    stream.flush()


def _open_url(url: str) -> None:
    logger.info(f"Opening {url}")
    if not webbrowser.open(url):
        raise ActionError(f"Could not open a browser for {url}")


def open_in_browser(repo: Repository) -> None:
    """Open the repository page on GitHub."""
    _open_url(repo.html_url)


def open_pull_requests(repo: Repository) -> None:
    """Open the repository's pull request list on GitHub."""
    _open_url(repo.pulls_url)


def clone_repo(repo: Repository, settings: Settings) -> str:
    """
    Clone ``repo`` into the directory the settings choose for it.

    Args:
        repo: Repository to clone
        settings: Clone root and clone rules

    Returns:
        Path of the new clone

    Raises:
        AlreadyExistsError: The repo is already local or the destination exists
        CloneFailedError: git clone failed
    """
    if repo.exists_local and repo.local_path:
        raise AlreadyExistsError(repo.local_path)

    dest_path = settings.get_clone_path(repo.full_name, repo.name)
    if os.path.exists(dest_path):
        raise AlreadyExistsError(dest_path)

    try:
        os.makedirs(os.path.dirname(dest_path), mode=0o755, exist_ok=True)
    except OSError as e:
        raise ActionError(f"Cannot create clone directory: {e}") from e

    clone_url = repo.ssh_url or f"git@github.com:{repo.owner}/{repo.name}.git"
    logger.info(f"Cloning {clone_url} into {dest_path}")

    try:
        result = subprocess.run(["git", "clone", clone_url, dest_path])
    except OSError as e:
        raise CloneFailedError(f"git clone failed: {e}") from e

    if result.returncode != 0:
        raise CloneFailedError(f"git clone failed with status {result.returncode}")

    return dest_path


def ensure_local(repo: Repository, settings: Settings) -> str:
    """
    Local path of ``repo``, cloning it first if needed.

    Raises:
        AlreadyExistsError: The clone destination exists but is not the
            recorded local copy
        CloneFailedError: git clone failed
    """
    if repo.exists_local and repo.local_path:
        return repo.local_path
    return clone_repo(repo, settings)
