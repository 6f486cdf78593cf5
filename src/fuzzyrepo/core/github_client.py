"""
GitHub repository listing.

Pages through ``GET /user/repos`` once per affiliation class and normalizes
results into Repository records. Consumed by the sync scheduler.

Modified: 2025-11-20
"""

import logging
from typing import Iterable, Iterator, List, Optional, Union
from urllib.error import HTTPError, URLError

from ghapi.all import GhApi

from fuzzyrepo.core.auth import GitHubAuth
from fuzzyrepo.core.exceptions import (
    AuthenticationError,
    ConfigurationError,
    FetchError,
    RateLimitExceededError,
)
from fuzzyrepo.core.models import AFFILIATION_PRIORITY, Affiliation, Repository
from fuzzyrepo.utils.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)


def parse_affiliations(value: Union[str, Iterable[str]]) -> List[Affiliation]:
    """
    Parse an affiliation filter into fetch order.

    Args:
        value: Comma-separated string (``"owner,collaborator"``) or iterable

    Returns:
        Unique affiliations sorted by priority (owner, collaborator,
        organization_member), whatever order they were given in

    Raises:
        ConfigurationError: On unknown or empty input
    """
    parts = value.split(",") if isinstance(value, str) else list(value)
    wanted = set()
    for part in parts:
        part = str(part).strip().lower()
        if not part:
            continue
        try:
            affiliation = Affiliation(part)
        except ValueError:
            raise ConfigurationError(f"Unknown GitHub affiliation: {part!r}")
        if affiliation is Affiliation.LOCAL:
            raise ConfigurationError("'local' is not a GitHub affiliation")
        wanted.add(affiliation)

    if not wanted:
        raise ConfigurationError("github.affiliation cannot be empty")

    return [a for a in AFFILIATION_PRIORITY if a in wanted]


def dedupe_repos(repos: Iterable[Repository]) -> List[Repository]:
    """Drop repeated identities, keeping the first occurrence."""
    seen = set()
    result = []
    for repo in repos:
        if repo.key in seen:
            continue
        seen.add(repo.key)
        result.append(repo)
    return result


class GitHubAPIClient:
    """
    Lists the authenticated user's repositories per affiliation class.

    Any failure aborts the whole listing; there is no partial result.
    """

    def __init__(self, auth: GitHubAuth, api: Optional[GhApi] = None, rate_limit_buffer: int = 100):
        """
        Initialize GitHub API client.

        Args:
            auth: Authenticated GitHubAuth instance
            api: Preconfigured GhApi (built from the auth token if omitted)
            rate_limit_buffer: Warn once fewer requests than this remain
        """
        self.auth = auth
        self.api = api if api is not None else GhApi(token=auth.get_token())
        self.rate_limiter = RateLimiter(buffer=rate_limit_buffer)

    def _list_page(self, affiliation: Affiliation, page: int, page_size: int) -> list:
        try:
            batch = self.api.repos.list_for_authenticated_user(
                visibility="all",
                affiliation=affiliation.value,
                per_page=page_size,
                page=page,
            )
        except HTTPError as e:
            if e.code == 401:
                raise AuthenticationError("GitHub authentication failed") from e
            if e.code in (403, 429) and self._is_rate_limited(e):
                raise RateLimitExceededError(f"GitHub API rate limit exceeded: {e}") from e
            raise FetchError(f"GitHub API error listing {affiliation.value} repos: {e}") from e
        except (URLError, OSError) as e:
            raise FetchError(f"Network error listing {affiliation.value} repos: {e}") from e

        self.rate_limiter.track_request(getattr(self.api, "recv_hdrs", None))
        return list(batch or [])

    @staticmethod
    def _is_rate_limited(error: HTTPError) -> bool:
        headers = error.headers or {}
        if str(headers.get("X-RateLimit-Remaining", "")) == "0":
            return True
        return "rate limit" in str(error).lower()

    def _has_next_page(self, batch: list, page_size: int) -> bool:
        if len(batch) < page_size:
            return False
        headers = getattr(self.api, "recv_hdrs", None) or {}
        link = headers.get("Link") or headers.get("link")
        if link is None:
            # No pagination info; a full page may have more behind it
            return True
        return 'rel="next"' in link

    def iter_repo_pages(
        self, affiliations: Union[str, Iterable[str]], page_size: int = 100
    ) -> Iterator[List[Repository]]:
        """
        Yield one batch of repositories per API page.

        Affiliation classes are fetched in priority order regardless of the
        order given.

        Args:
            affiliations: Affiliation filter (comma-separated or iterable)
            page_size: Repositories per page (GitHub caps this at 100)

        Raises:
            AuthenticationError: On 401
            RateLimitExceededError: When the quota is exhausted
            FetchError: On any other API or network failure
        """
        for affiliation in parse_affiliations(affiliations):
            page = 1
            while True:
                batch = self._list_page(affiliation, page, page_size)
                repos = [Repository.from_github_response(item, affiliation) for item in batch]
                logger.debug(f"Fetched {len(repos)} {affiliation.value} repos (page {page})")
                if repos:
                    yield repos

                if not self._has_next_page(batch, page_size):
                    break
                page += 1

    def get_remote_repositories(
        self, affiliations: Union[str, Iterable[str]], page_size: int = 100
    ) -> List[Repository]:
        """
        Fetch every repository for the given affiliations.

        Returns:
            Repositories deduplicated by case-insensitive full name; a repo
            listed under several affiliations keeps the highest-priority tag
        """
        repos: List[Repository] = []
        for batch in self.iter_repo_pages(affiliations, page_size):
            repos.extend(batch)

        result = dedupe_repos(repos)
        logger.info(f"Fetched {len(result)} remote repositories")
        return result
