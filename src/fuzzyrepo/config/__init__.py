"""
Configuration management for fuzzyrepo.

Handles loading and merging configuration from multiple sources:
- Default settings
- User config file (~/.config/fuzzyrepo/config.yaml)
- Environment variables

Modified: 2025-11-20
"""

from fuzzyrepo.config.settings import (
    Settings,
    CloneRule,
    GitHubSettings,
    DisplaySettings,
    SyncSettings,
    apply_config,
    is_first_run,
    get_cache_dir,
)

__all__ = [
    "Settings",
    "CloneRule",
    "GitHubSettings",
    "DisplaySettings",
    "SyncSettings",
    "apply_config",
    "is_first_run",
    "get_cache_dir",
]
