"""
Configuration management for fuzzyrepo.

Hierarchical settings loading: defaults → config file → environment variables

Modified: 2025-11-20
"""

import os
import re
import sys
import yaml
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Dict, Any, Optional

from fuzzyrepo.core.exceptions import ConfigurationError
from fuzzyrepo.core.github_client import parse_affiliations
from fuzzyrepo.core.models import Affiliation, Repository
from fuzzyrepo.utils.atomic_write import atomic_write_text


DEFAULT_AFFILIATION = "owner,collaborator,organization_member"


@dataclass
class CloneRule:
    """Regex on ``owner/name`` mapped to a clone directory (first match wins)."""

    pattern: str
    path: str


@dataclass
class GitHubSettings:
    """GitHub listing settings."""

    affiliation: str = DEFAULT_AFFILIATION
    orgs: str = ""  # Comma-separated organization allowlist, empty = all
    page_size: int = 100

    def org_allowlist(self) -> List[str]:
        return [org.strip().lower() for org in self.orgs.split(",") if org.strip()]


@dataclass
class DisplaySettings:
    """Which affiliation classes are shown."""

    show_owner: bool = True
    show_collaborator: bool = True
    show_org_member: bool = True
    show_local: bool = True


@dataclass
class SyncSettings:
    """Refresh cadence."""

    local_scan_hours: float = 24
    remote_sync_days: float = 7
    poll_interval: float = 2.0  # Seconds between cache mtime checks


@dataclass
class Settings:
    """Main settings container."""

    repo_roots: List[str] = field(default_factory=list)
    clone_root: str = ""
    use_clone_rules: bool = False
    clone_rules: List[CloneRule] = field(default_factory=list)
    github: GitHubSettings = field(default_factory=GitHubSettings)
    display: DisplaySettings = field(default_factory=DisplaySettings)
    sync: SyncSettings = field(default_factory=SyncSettings)
    cache_dir: str = ""

    @classmethod
    def from_dict(cls, config_data: Dict[str, Any]) -> "Settings":
        """Build settings from parsed YAML, falling back to defaults per key."""
        settings = cls()

        settings.repo_roots = [str(p) for p in (config_data.get("repo_roots") or [])]
        settings.clone_root = config_data.get("clone_root") or ""
        settings.use_clone_rules = bool(config_data.get("use_clone_rules", False))
        settings.clone_rules = [
            CloneRule(pattern=rule.get("pattern", ""), path=rule.get("path", ""))
            for rule in (config_data.get("clone_rules") or [])
        ]
        settings.cache_dir = config_data.get("cache_dir") or ""

        if "github" in config_data:
            gh = config_data["github"] or {}
            settings.github = GitHubSettings(
                affiliation=gh.get("affiliation", DEFAULT_AFFILIATION),
                orgs=gh.get("orgs") or "",
                page_size=int(gh.get("page_size", 100)),
            )

        if "display" in config_data:
            display = config_data["display"] or {}
            settings.display = DisplaySettings(
                show_owner=display.get("show_owner", True),
                show_collaborator=display.get("show_collaborator", True),
                show_org_member=display.get("show_org_member", True),
                show_local=display.get("show_local", True),
            )

        if "sync" in config_data:
            sync = config_data["sync"] or {}
            settings.sync = SyncSettings(
                local_scan_hours=float(sync.get("local_scan_hours", 24)),
                remote_sync_days=float(sync.get("remote_sync_days", 7)),
                poll_interval=float(sync.get("poll_interval", 2.0)),
            )

        return settings

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> "Settings":
        """
        Load settings from file and environment variables.

        Priority:
        1. Default values (defined in dataclasses)
        2. Config file (XDG config path, then legacy ~/.fuzzyrepo.yaml)
        3. Environment variables (override everything)

        Args:
            config_path: Optional path to config file

        Returns:
            Settings instance

        Raises:
            ConfigurationError: If the file cannot be parsed or is invalid
        """
        if config_path is None:
            config_path = find_config_file()

        settings = cls()
        if config_path is not None and config_path.exists():
            try:
                with open(config_path) as f:
                    config_data = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ConfigurationError(f"Cannot parse config {config_path}: {e}") from e

            if not isinstance(config_data, dict):
                raise ConfigurationError(f"Config {config_path} must be a mapping")

            settings = cls.from_dict(config_data)
            settings.validate()

        cache_dir_env = os.getenv("FUZZYREPO_CACHE_DIR")
        if cache_dir_env:
            settings.cache_dir = cache_dir_env

        return settings

    def validate(self) -> None:
        """
        Check the settings for values the core cannot work with.

        Raises:
            ConfigurationError: On the first invalid value
        """
        parse_affiliations(self.github.affiliation)

        for root in self.repo_roots:
            if not os.path.isabs(root):
                raise ConfigurationError(f"repo_roots must contain absolute paths (got {root!r})")

        if self.clone_root and not os.path.isabs(self.clone_root):
            raise ConfigurationError(f"clone_root must be an absolute path (got {self.clone_root!r})")

        for i, rule in enumerate(self.clone_rules):
            if not rule.pattern:
                raise ConfigurationError(f"clone_rules[{i}]: pattern cannot be empty")
            try:
                re.compile(rule.pattern)
            except re.error as e:
                raise ConfigurationError(f"clone_rules[{i}]: invalid regex {rule.pattern!r}: {e}") from e
            if not rule.path:
                raise ConfigurationError(f"clone_rules[{i}]: path cannot be empty")
            if not os.path.isabs(rule.path):
                raise ConfigurationError(f"clone_rules[{i}]: path must be absolute (got {rule.path!r})")

    def save(self, config_path: Optional[Path] = None) -> Path:
        """Write settings as YAML (atomically) and return the path written."""
        config_path = config_path or xdg_config_path()
        atomic_write_text(config_path, yaml.safe_dump(self.to_dict(), sort_keys=False))
        return config_path

    def to_dict(self) -> Dict[str, Any]:
        """Convert settings to dictionary."""
        data: Dict[str, Any] = {
            "repo_roots": list(self.repo_roots),
            "clone_root": self.clone_root,
            "use_clone_rules": self.use_clone_rules,
            "clone_rules": [{"pattern": r.pattern, "path": r.path} for r in self.clone_rules],
            "github": {
                "affiliation": self.github.affiliation,
                "orgs": self.github.orgs,
                "page_size": self.github.page_size,
            },
            "display": {
                "show_owner": self.display.show_owner,
                "show_collaborator": self.display.show_collaborator,
                "show_org_member": self.display.show_org_member,
                "show_local": self.display.show_local,
            },
            "sync": {
                "local_scan_hours": self.sync.local_scan_hours,
                "remote_sync_days": self.sync.remote_sync_days,
                "poll_interval": self.sync.poll_interval,
            },
        }
        if self.cache_dir:
            data["cache_dir"] = self.cache_dir
        return data

    def get_cache_dir(self) -> Path:
        """Cache directory, creating if needed."""
        if self.cache_dir:
            cache_dir = Path(self.cache_dir).expanduser()
            cache_dir.mkdir(parents=True, exist_ok=True)
            return cache_dir
        return get_cache_dir()

    def get_clone_root(self) -> str:
        """Explicit clone root, else the first repo root, else ~/repos."""
        if self.clone_root:
            return self.clone_root
        if self.repo_roots:
            return self.repo_roots[0]
        return str(Path.home() / "repos")

    def get_clone_path(self, full_name: str, repo_name: str) -> str:
        """
        Destination for cloning ``full_name``.

        With clone rules enabled the first rule whose regex matches
        ``full_name`` decides the directory; otherwise the clone root.
        """
        if self.use_clone_rules:
            for rule in self.clone_rules:
                try:
                    if re.search(rule.pattern, full_name):
                        return os.path.join(rule.path, repo_name)
                except re.error:
                    continue
        return os.path.join(self.get_clone_root(), repo_name)


def apply_config(repos: List[Repository], settings: Settings) -> List[Repository]:
    """
    Filter repositories by the display toggles and organization allowlist.

    Pure function: the UI calls this after every config edit without
    knowing how filtering works.
    """
    shown = {
        Affiliation.OWNER: settings.display.show_owner,
        Affiliation.COLLABORATOR: settings.display.show_collaborator,
        Affiliation.ORGANIZATION_MEMBER: settings.display.show_org_member,
        Affiliation.LOCAL: settings.display.show_local,
    }
    allowlist = settings.github.org_allowlist()

    result = []
    for repo in repos:
        if not shown.get(repo.affiliation, True):
            continue
        if (
            allowlist
            and repo.affiliation is Affiliation.ORGANIZATION_MEMBER
            and repo.owner.lower() not in allowlist
        ):
            continue
        result.append(repo)
    return result


def xdg_config_path() -> Path:
    """Primary config file location."""
    if sys.platform == "win32":
        base = os.getenv("APPDATA") or str(Path.home() / "AppData" / "Roaming")
    else:
        base = os.getenv("XDG_CONFIG_HOME") or str(Path.home() / ".config")
    return Path(base) / "fuzzyrepo" / "config.yaml"


def legacy_config_path() -> Path:
    return Path.home() / ".fuzzyrepo.yaml"


def find_config_file() -> Optional[Path]:
    """First existing config file, or None."""
    for candidate in (xdg_config_path(), legacy_config_path()):
        if candidate.exists():
            return candidate
    return None


def is_first_run() -> bool:
    """True when no config file exists yet."""
    return find_config_file() is None


def get_cache_dir() -> Path:
    """Get cache directory, creating if needed."""
    env_dir = os.getenv("FUZZYREPO_CACHE_DIR")
    if env_dir:
        cache_dir = Path(env_dir)
    else:
        base = os.getenv("XDG_CACHE_HOME") or str(Path.home() / ".cache")
        cache_dir = Path(base) / "fuzzyrepo"
    cache_dir.mkdir(parents=True, exist_ok=True)
    return cache_dir
