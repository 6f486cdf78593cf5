"""
Tests for usage ranking and fuzzy search.

Modified: 2025-11-20
"""

import math
import pytest
from datetime import timedelta

from fuzzyrepo.core.models import UsageEntry
from fuzzyrepo.core.ranking import fuzzy_score, rank_repos, sort_by_usage, usage_boost

from tests.utils import create_test_repo


class TestUsageBoost:
    """Test the usage boost formula."""

    def test_no_entry(self, now):
        assert usage_boost({}, create_test_repo("a/b"), now) == 0.0

    def test_zero_count(self, now):
        usage = {"a/b": UsageEntry(count=0, last_used_at=now)}
        assert usage_boost(usage, create_test_repo("a/b"), now) == 0.0

    def test_formula(self, now):
        usage = {"a/b": UsageEntry(count=3, last_used_at=now - timedelta(days=7))}
        expected = 1.5 * math.log2(4) + 2.0 * 0.5
        assert usage_boost(usage, create_test_repo("a/b"), now) == pytest.approx(expected)

    def test_key_is_case_insensitive(self, now):
        usage = {"a/b": UsageEntry(count=1, last_used_at=now)}
        assert usage_boost(usage, create_test_repo("A/B"), now) > 0

    def test_monotonic_in_count(self, now):
        """More uses at the same recency never lowers the boost."""
        repo = create_test_repo("a/b")
        boosts = [
            usage_boost({"a/b": UsageEntry(count=n, last_used_at=now)}, repo, now)
            for n in range(1, 20)
        ]
        assert boosts == sorted(boosts)
        assert boosts[0] < boosts[-1]

    def test_monotonic_in_recency(self, now):
        """More recent use at the same count never lowers the boost."""
        repo = create_test_repo("a/b")
        boosts = [
            usage_boost({"a/b": UsageEntry(count=4, last_used_at=now - timedelta(days=d))}, repo, now)
            for d in range(30, -1, -1)
        ]
        assert boosts == sorted(boosts)
        assert boosts[0] < boosts[-1]


class TestSortByUsage:
    """Test empty-query ordering."""

    def test_most_used_first(self, now):
        repos = [create_test_repo("a/rare"), create_test_repo("a/never"), create_test_repo("a/daily")]
        usage = {
            "a/rare": UsageEntry(count=1, last_used_at=now - timedelta(days=60)),
            "a/daily": UsageEntry(count=40, last_used_at=now),
        }
        ordered = [r.full_name for r in sort_by_usage(repos, usage, now)]
        assert ordered == ["a/daily", "a/rare", "a/never"]

    def test_stable_for_ties(self, now):
        repos = [create_test_repo(f"a/r{i}") for i in range(5)]
        assert sort_by_usage(repos, {}, now) == repos


class TestFuzzyScore:
    """Test fuzzy matching."""

    def test_not_a_subsequence(self):
        assert fuzzy_score("xyz", "alice tool alice/tool") is None

    def test_case_insensitive(self):
        assert fuzzy_score("TOOL", "alice tool alice/tool") is not None

    def test_empty_query(self):
        assert fuzzy_score("", "anything") == 0

    def test_contiguous_beats_scattered(self):
        assert fuzzy_score("api", "api-x") > fuzzy_score("api", "axpxi")

    def test_boundary_beats_middle(self):
        assert fuzzy_score("w", "acme web") > fuzzy_score("w", "acme owl")

    def test_spaces_ignored(self):
        assert fuzzy_score("acme api", "acme api acme/api") is not None


class TestRankRepos:
    """Test combined ranking."""

    def test_empty_query_is_usage_order(self, now):
        repos = [create_test_repo("a/one"), create_test_repo("a/two")]
        usage = {"a/two": UsageEntry(count=2, last_used_at=now)}
        assert [r.name for r in rank_repos(repos, "   ", usage, now)] == ["two", "one"]

    def test_filters_non_matches(self, sample_repos, now):
        names = {r.full_name for r in rank_repos(sample_repos, "acme", {}, now)}
        assert names == {"acme/api", "acme/web"}

    def test_best_match_first(self, sample_repos, now):
        ranked = rank_repos(sample_repos, "dotfiles", {}, now)
        assert ranked[0].full_name == "alice/dotfiles"

    def test_usage_lifts_matches(self, now):
        """Between equal matches, the used one ranks first."""
        repos = [create_test_repo("acme/api"), create_test_repo("acme/app")]
        usage = {"acme/app": UsageEntry(count=5, last_used_at=now)}
        ranked = rank_repos(repos, "acme", usage, now)
        assert [r.full_name for r in ranked] == ["acme/app", "acme/api"]

    def test_no_matches(self, sample_repos, now):
        assert rank_repos(sample_repos, "qqqq", {}, now) == []
