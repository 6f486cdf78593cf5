"""
Tests for rate limiter.

Modified: 2025-11-20
"""

import pytest
from datetime import datetime, timezone
from fuzzyrepo.utils.rate_limiter import RateLimiter


class TestRateLimiter:
    """Test RateLimiter class."""

    def test_initialization(self):
        """Test rate limiter initialization."""
        limiter = RateLimiter(buffer=50)

        assert limiter.buffer == 50
        assert limiter.limit == 5000
        assert limiter.remaining is None
        assert limiter.requests_made == 0

    def test_track_request_without_headers(self):
        limiter = RateLimiter()
        limiter.track_request()
        limiter.track_request({})
        assert limiter.requests_made == 2
        assert limiter.remaining is None

    def test_track_request_headers(self):
        """Header names are matched case-insensitively."""
        limiter = RateLimiter()
        limiter.track_request({
            "x-ratelimit-limit": "5000",
            "X-RateLimit-Remaining": "4321",
            "X-RateLimit-Reset": "1763640000",
        })

        assert limiter.remaining == 4321
        assert limiter.limit == 5000
        assert limiter.reset_time == datetime.fromtimestamp(1763640000, tz=timezone.utc)

    def test_malformed_headers_ignored(self):
        limiter = RateLimiter()
        limiter.track_request({"X-RateLimit-Remaining": "lots"})
        assert limiter.requests_made == 1

    def test_should_warn(self):
        """Test warning threshold."""
        limiter = RateLimiter(buffer=100)
        assert not limiter.should_warn()

        limiter.remaining = 150
        assert not limiter.should_warn()

        limiter.remaining = 99
        assert limiter.should_warn()

    def test_warns_in_log(self, caplog):
        limiter = RateLimiter(buffer=100)
        with caplog.at_level("WARNING"):
            limiter.track_request({"X-RateLimit-Remaining": "10"})
        assert "rate limit low" in caplog.text

    def test_format_status(self):
        limiter = RateLimiter()
        assert limiter.format_status() == ""

        limiter.track_request({"X-RateLimit-Remaining": "4500", "X-RateLimit-Limit": "5000"})
        assert limiter.format_status() == "4500/5000"
