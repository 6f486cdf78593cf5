"""
Usage ranking and fuzzy search.

Frequency counts with diminishing returns plus a recency term with a 7 day
half-life. The boost orders the empty-query list and is blended into fuzzy
match scores.

Ordering convention: index 0 is the best result for both paths.

Modified: 2025-11-20
"""

import math
from datetime import datetime
from typing import Dict, List, Optional

from fuzzyrepo.core.models import Repository, UsageEntry, utcnow


FREQUENCY_WEIGHT = 1.5
RECENCY_WEIGHT = 2.0
HALF_LIFE_DAYS = 7.0

# How much one unit of usage boost is worth against raw fuzzy score
USAGE_BOOST_FACTOR = 50

# Fuzzy scoring weights, higher total is better
_FIRST_CHAR_BONUS = 10
_BOUNDARY_BONUS = 20
_ADJACENT_BONUS = 5
_LEADING_PENALTY = -5
_MAX_LEADING_PENALTY = -15
_UNMATCHED_PENALTY = -1

_SEPARATORS = frozenset(" /-_.")


def usage_boost(usage: Dict[str, UsageEntry], repo: Repository, now: Optional[datetime] = None) -> float:
    """
    Usage-derived score for ``repo``.

    ``1.5 * log2(1 + count) + 2.0 * 0.5 ** (days_since_last_use / 7)``,
    or 0 if the repo has never been used.
    """
    entry = usage.get(repo.key)
    if entry is None or entry.count <= 0:
        return 0.0

    freq_score = math.log2(1 + entry.count)

    recency_score = 0.0
    if entry.last_used_at is not None:
        now = now or utcnow()
        days_since = max(0.0, (now - entry.last_used_at).total_seconds() / 86400)
        recency_score = math.pow(0.5, days_since / HALF_LIFE_DAYS)

    return FREQUENCY_WEIGHT * freq_score + RECENCY_WEIGHT * recency_score


def sort_by_usage(
    repos: List[Repository], usage: Dict[str, UsageEntry], now: Optional[datetime] = None
) -> List[Repository]:
    """Stable sort by descending usage boost; never-used repos keep their order at the end."""
    now = now or utcnow()
    return sorted(repos, key=lambda repo: usage_boost(usage, repo, now), reverse=True)


def fuzzy_score(query: str, text: str) -> Optional[int]:
    """
    Score ``query`` as a case-insensitive subsequence of ``text``.

    Matches that start the text, follow a separator, or run consecutively
    score higher; unmatched leading characters cost a little.

    Returns:
        Score (higher is better), or None if ``query`` is not a subsequence
    """
    query = query.lower()
    text = text.lower()
    if not query:
        return 0

    score = 0
    pos = 0
    last_match = -1
    first_match = -1

    for ch in query:
        if ch == " ":
            continue
        idx = text.find(ch, pos)
        if idx < 0:
            return None

        if first_match < 0:
            first_match = idx
        if idx == 0:
            score += _FIRST_CHAR_BONUS
        elif text[idx - 1] in _SEPARATORS:
            score += _BOUNDARY_BONUS
        if last_match >= 0 and idx == last_match + 1:
            score += _ADJACENT_BONUS

        last_match = idx
        pos = idx + 1

    if first_match < 0:
        return 0

    score += max(_MAX_LEADING_PENALTY, _LEADING_PENALTY * first_match)
    score += _UNMATCHED_PENALTY * (len(text) - len(query.replace(" ", "")))
    return score


def rank_repos(
    repos: List[Repository],
    query: str,
    usage: Dict[str, UsageEntry],
    now: Optional[datetime] = None,
) -> List[Repository]:
    """
    Filter and order repositories for display.

    An empty query returns every repo ordered by usage. Otherwise only repos
    whose search text matches are returned, ordered by
    ``fuzzy_score + usage_boost * 50``, best first. Ties keep input order.
    """
    query = query.strip()
    now = now or utcnow()
    if not query:
        return sort_by_usage(repos, usage, now)

    scored = []
    for repo in repos:
        score = fuzzy_score(query, repo.search_text)
        if score is None:
            continue
        combined = score + usage_boost(usage, repo, now) * USAGE_BOOST_FACTOR
        scored.append((combined, repo))

    scored.sort(key=lambda item: item[0], reverse=True)
    return [repo for _, repo in scored]
