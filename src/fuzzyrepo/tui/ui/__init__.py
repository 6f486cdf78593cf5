"""
UI components for fuzzyrepo TUI.

Modified: 2025-11-20
"""

__all__ = [
    "repo_list",
    "status_bar",
    "modals",
]
