"""
GitHub rate limit tracking for repository listing.

Modified: 2025-11-20
"""

import logging
from datetime import datetime, timezone
from typing import Mapping, Optional

logger = logging.getLogger(__name__)


class RateLimiter:
    """
    Track GitHub REST quota from response headers.

    Listing repositories costs one request per page; the authenticated
    quota is 5,000 requests/hour. The tracker never sleeps: the listing is
    short and a sync that hits the limit fails and retries next interval.
    """

    def __init__(self, buffer: int = 100):
        """
        Args:
            buffer: Warn once fewer than this many requests remain
        """
        self.buffer = buffer
        self.limit = 5000
        self.remaining: Optional[int] = None
        self.reset_time: Optional[datetime] = None
        self.requests_made = 0

    def track_request(self, headers: Optional[Mapping[str, str]] = None) -> None:
        """
        Count one request and update quota from its response headers.

        Args:
            headers: Response headers (``X-RateLimit-*``), if available
        """
        self.requests_made += 1
        if not headers:
            return

        lowered = {str(k).lower(): v for k, v in headers.items()}
        try:
            if "x-ratelimit-limit" in lowered:
                self.limit = int(lowered["x-ratelimit-limit"])
            if "x-ratelimit-remaining" in lowered:
                self.remaining = int(lowered["x-ratelimit-remaining"])
            if "x-ratelimit-reset" in lowered:
                self.reset_time = datetime.fromtimestamp(
                    int(lowered["x-ratelimit-reset"]), tz=timezone.utc
                )
        except (TypeError, ValueError):
            logger.debug(f"Ignoring malformed rate limit headers: {headers}")
            return

        if self.should_warn():
            logger.warning(f"GitHub rate limit low: {self.remaining}/{self.limit} remaining")

    def should_warn(self) -> bool:
        return self.remaining is not None and self.remaining < self.buffer

    def format_status(self) -> str:
        """Short ``remaining/limit`` string for the status bar, or empty if unknown."""
        if self.remaining is None:
            return ""
        return f"{self.remaining}/{self.limit}"
