"""
TUI (Terminal User Interface) for fuzzyrepo.

Textual-based fuzzy finder over the repository cache.

Modified: 2025-11-20
"""

__all__ = ["app", "messages", "state"]
