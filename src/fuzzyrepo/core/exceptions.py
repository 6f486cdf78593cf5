"""
Custom exceptions for fuzzyrepo.

Modified: 2025-11-20
"""


class FuzzyRepoError(Exception):
    """Base exception for all fuzzyrepo errors."""

    pass


class AuthenticationError(FuzzyRepoError):
    """Raised when GitHub authentication fails."""

    pass


class RateLimitExceededError(FuzzyRepoError):
    """Raised when GitHub API rate limit is exceeded."""

    def __init__(self, message: str = "GitHub API rate limit exceeded", reset_time: int = 0):
        super().__init__(message)
        self.reset_time = reset_time


class FetchError(FuzzyRepoError):
    """Raised when listing remote repositories fails (network, API error)."""

    pass


class CacheError(FuzzyRepoError):
    """Raised when cache operations fail."""

    pass


class CorruptCacheError(CacheError):
    """Raised when a cache, metadata or usage file exists but cannot be parsed."""

    def __init__(self, path, reason: str):
        super().__init__(f"Corrupt cache file {path}: {reason}")
        self.path = path


class ConfigurationError(FuzzyRepoError):
    """Raised when configuration is invalid or missing."""

    pass


class SyncLockHeldError(FuzzyRepoError):
    """Raised when another sync process already holds the sync lock."""

    def __init__(self, pid: int = 0):
        super().__init__(f"Another sync is already running (pid {pid})" if pid else "Another sync is already running")
        self.pid = pid


class ActionError(FuzzyRepoError):
    """Raised when an action on a repository (open, clone, ...) fails."""

    pass


class NoEditorError(ActionError):
    """Raised when neither $NVIM nor $EDITOR is set."""

    def __init__(self, message: str = "$EDITOR is not set"):
        super().__init__(message)


class InvalidEditorError(ActionError):
    """Raised when $EDITOR contains shell metacharacters."""

    def __init__(self, message: str = "$EDITOR contains invalid characters"):
        super().__init__(message)


class CloneFailedError(ActionError):
    """Raised when git clone exits non-zero."""

    pass


class AlreadyExistsError(ActionError):
    """Raised when the clone destination already exists."""

    def __init__(self, path: str):
        super().__init__(f"Local path already exists: {path}")
        self.path = path
