"""
GitHub token resolution for fuzzyrepo.

Looks for a token in GITHUB_TOKEN, then the GitHub CLI (``gh auth token``),
then a stored token file. Never prompts unless asked to, because the
detached sync process has no terminal.

Modified: 2025-11-20
"""

import getpass
import json
import logging
import os
import shutil
import subprocess
from datetime import datetime
from pathlib import Path
from typing import Optional, Dict, Any

from github import Auth, Github, GithubException

from fuzzyrepo.core.exceptions import AuthenticationError

logger = logging.getLogger(__name__)


class GitHubAuth:
    """
    GitHub authentication manager.

    The token is verified against the API once (PyGithub) and then shared
    with the REST listing client.
    """

    def __init__(self, token_file: Optional[Path] = None):
        """
        Initialize GitHub authentication.

        Args:
            token_file: Path to store/load token (default: ~/.config/fuzzyrepo/token.json)
        """
        if token_file is None:
            token_file = Path.home() / ".config" / "fuzzyrepo" / "token.json"

        self.token_file = token_file
        self.source: Optional[str] = None
        self._token: Optional[str] = None
        self._github_client: Optional[Github] = None

    def authenticate(self, verify: bool = True) -> None:
        """
        Resolve a token.

        Priority:
        1. GITHUB_TOKEN environment variable
        2. GitHub CLI (``gh auth token``)
        3. Stored token file

        Args:
            verify: Check the token against the GitHub API

        Raises:
            AuthenticationError: If no usable token is found
        """
        candidates = (
            ("GITHUB_TOKEN", self._token_from_env),
            ("gh", self._token_from_gh_cli),
            ("token file", self._load_token),
        )

        for source, resolver in candidates:
            token = resolver()
            if not token:
                continue

            self._token = token
            if verify and not self._verify_token():
                raise AuthenticationError(f"Token from {source} is invalid")

            self.source = source
            logger.info(f"Authenticated via {source}")
            return

        raise AuthenticationError(
            "No GitHub token found. Set GITHUB_TOKEN, run 'gh auth login', or run 'fuzzyrepo auth'."
        )

    @staticmethod
    def _token_from_env() -> Optional[str]:
        return os.getenv("GITHUB_TOKEN") or None

    @staticmethod
    def _token_from_gh_cli() -> Optional[str]:
        if shutil.which("gh") is None:
            return None
        try:
            result = subprocess.run(
                ["gh", "auth", "token"],
                capture_output=True,
                text=True,
                timeout=10,
            )
        except (OSError, subprocess.SubprocessError) as e:
            logger.debug(f"gh auth token failed: {e}")
            return None

        if result.returncode != 0:
            return None
        return result.stdout.strip() or None

    def _verify_token(self) -> bool:
        """
        Verify that the current token is valid.

        Returns:
            True if token is valid, False otherwise
        """
        if not self._token:
            return False

        try:
            g = Github(auth=Auth.Token(self._token))
            _ = g.get_user().login  # Force API call
            self._github_client = g
            return True
        except GithubException as e:
            logger.warning(f"Token verification failed: {e}")
            return False

    def _load_token(self) -> Optional[str]:
        """Load token from file, or None if missing/unreadable."""
        try:
            with open(self.token_file, "r") as f:
                data = json.load(f)
        except (FileNotFoundError, json.JSONDecodeError):
            return None
        return data.get("access_token") or None

    def save_token(self, token: str) -> None:
        """
        Save token to file with owner-only permissions.

        Args:
            token: GitHub access token
        """
        data = {
            "access_token": token,
            "created_at": datetime.now().isoformat(),
        }

        self.token_file.parent.mkdir(parents=True, exist_ok=True)
        with open(self.token_file, "w") as f:
            json.dump(data, f, indent=2)

        self.token_file.chmod(0o600)

    def prompt_for_pat(self) -> str:
        """
        Prompt for a Personal Access Token, verify it and store it.

        Returns:
            Authenticated login name

        Raises:
            AuthenticationError: If the token is empty or invalid
        """
        token = getpass.getpass("GitHub Token: ").strip()
        if not token:
            raise AuthenticationError("No token provided")

        self._token = token
        if not self._verify_token():
            raise AuthenticationError("Invalid token")

        self.save_token(token)
        self.source = "token file"
        return self.get_github_client().get_user().login

    def get_github_client(self) -> Github:
        """
        Get authenticated GitHub client (PyGithub).

        Raises:
            AuthenticationError: If not authenticated
        """
        if not self._github_client:
            self._github_client = Github(auth=Auth.Token(self.get_token()))
        return self._github_client

    def get_token(self) -> str:
        """
        Get the current access token.

        Raises:
            AuthenticationError: If not authenticated
        """
        if not self._token:
            raise AuthenticationError("Not authenticated. Run authenticate() first.")
        return self._token

    def revoke_credentials(self) -> bool:
        """
        Delete the stored token file.

        Returns:
            True if a token file was removed
        """
        self._token = None
        self._github_client = None
        if self.token_file.exists():
            self.token_file.unlink()
            return True
        return False

    def get_user_info(self) -> Dict[str, Any]:
        """
        Get authenticated user information.

        Raises:
            AuthenticationError: If not authenticated
        """
        user = self.get_github_client().get_user()
        return {
            "login": user.login,
            "name": user.name,
            "public_repos": user.public_repos,
            "source": self.source,
        }
