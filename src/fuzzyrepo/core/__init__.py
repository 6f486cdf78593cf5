"""
Core business logic for fuzzyrepo.

Indexing, fetching, reconciliation, ranking, persistence and sync scheduling.
Everything here is interface-agnostic; the TUI and CLI sit on top of it.

Modified: 2025-11-20
"""

from fuzzyrepo.core.exceptions import (
    FuzzyRepoError,
    AuthenticationError,
    RateLimitExceededError,
    FetchError,
    CacheError,
    CorruptCacheError,
    ConfigurationError,
    SyncLockHeldError,
)

__all__ = [
    "FuzzyRepoError",
    "AuthenticationError",
    "RateLimitExceededError",
    "FetchError",
    "CacheError",
    "CorruptCacheError",
    "ConfigurationError",
    "SyncLockHeldError",
]
