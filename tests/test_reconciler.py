"""
Tests for the repository reconciler.

Modified: 2025-11-20
"""

import pytest

from fuzzyrepo.core.github_client import dedupe_repos
from fuzzyrepo.core.models import Affiliation
from fuzzyrepo.core.reconciler import ProgressiveReconciler, merge_repos

from tests.utils import by_key, create_local_repo, create_test_repo


def _normalized(repos):
    return sorted((r.to_dict() for r in repos), key=lambda d: d["full_name"].lower())


class TestMergeRepos:
    """Test batch merging."""

    def test_idempotent(self, sample_repos):
        """Merging the same local set twice changes nothing."""
        local = [
            create_local_repo("alice/fuzzyrepo", "/src/fuzzyrepo"),
            create_local_repo("local/scratch", "/src/scratch"),
        ]
        once = merge_repos(local, sample_repos)
        twice = merge_repos(local, once)

        assert _normalized(once) == _normalized(twice)

    def test_local_enriches_never_overwrites(self):
        """A local clone of a remote repo keeps the remote identity fields."""
        remote = create_test_repo(
            "acme/api",
            ssh_url="git@github.com:acme/api.git",
            affiliation=Affiliation.ORGANIZATION_MEMBER,
        )
        local = create_local_repo("ACME/api", "/src/work/api", owner="ACME", ssh_url="")

        merged = by_key(merge_repos([local], [remote]))
        repo = merged["acme/api"]

        assert repo.owner == "acme"
        assert repo.full_name == "acme/api"
        assert repo.affiliation is Affiliation.ORGANIZATION_MEMBER
        assert repo.ssh_url == "git@github.com:acme/api.git"
        assert repo.local_path == "/src/work/api"
        assert repo.exists_local is True
        assert repo.search_text == "acme api acme/api"

    def test_local_only_inserted(self, sample_repos):
        local = [create_local_repo("local/scratch", "/src/scratch")]

        merged = by_key(merge_repos(local, sample_repos))

        assert len(merged) == len(sample_repos) + 1
        scratch = merged["local/scratch"]
        assert scratch.exists_local is True
        assert scratch.affiliation is Affiliation.LOCAL

    def test_inputs_not_mutated(self, sample_repos):
        before = _normalized(sample_repos)
        local = [create_local_repo("alice/fuzzyrepo", "/src/fuzzyrepo")]

        merge_repos(local, sample_repos)

        assert _normalized(sample_repos) == before
        assert local[0].affiliation is Affiliation.LOCAL

    def test_empty_inputs(self):
        assert merge_repos([], []) == []

    def test_one_record_per_identity(self, sample_repos):
        local = [
            create_local_repo("alice/fuzzyrepo", "/a"),
            create_local_repo("bob/shared-lib", "/b"),
        ]
        merged = merge_repos(local, sample_repos)
        keys = [r.key for r in merged]
        assert len(keys) == len(set(keys))


class TestPriority:
    """Test affiliation priority across duplicate listings."""

    def test_first_occurrence_keeps_tag(self):
        """owner beats collaborator beats organization_member."""
        listed = [
            create_test_repo("acme/api", affiliation=Affiliation.OWNER),
            create_test_repo("acme/api", affiliation=Affiliation.COLLABORATOR),
            create_test_repo("ACME/API", affiliation=Affiliation.ORGANIZATION_MEMBER),
        ]
        result = dedupe_repos(listed)

        assert len(result) == 1
        assert result[0].affiliation is Affiliation.OWNER

    def test_progressive_first_confirmation_wins(self):
        reconciler = ProgressiveReconciler([])
        reconciler.add_remote_batch([create_test_repo("acme/api", affiliation=Affiliation.COLLABORATOR)])
        snapshot = reconciler.add_remote_batch(
            [create_test_repo("acme/api", affiliation=Affiliation.ORGANIZATION_MEMBER)]
        )

        assert by_key(snapshot)["acme/api"].affiliation is Affiliation.COLLABORATOR


class TestProgressiveReconciler:
    """Test streaming reconciliation."""

    def test_seeded_with_existing_and_local(self, sample_repos):
        local = [create_local_repo("local/scratch", "/src/scratch")]
        reconciler = ProgressiveReconciler(local, sample_repos)

        snapshot = by_key(reconciler.snapshot())
        assert len(snapshot) == len(sample_repos) + 1
        assert reconciler.confirmed_count == 0

    def test_batch_keeps_local_state(self):
        local = [create_local_repo("alice/fuzzyrepo", "/src/fuzzyrepo")]
        reconciler = ProgressiveReconciler(local)

        snapshot = by_key(reconciler.add_remote_batch([
            create_test_repo("alice/fuzzyrepo", affiliation=Affiliation.OWNER),
        ]))

        repo = snapshot["alice/fuzzyrepo"]
        assert repo.affiliation is Affiliation.OWNER
        assert repo.exists_local is True
        assert repo.local_path == "/src/fuzzyrepo"

    def test_stale_local_state_cleared(self):
        """A clone deleted since the last scan is no longer reported local."""
        existing = [create_test_repo("alice/old", local_path="/gone", exists_local=True)]
        reconciler = ProgressiveReconciler([], existing)

        snapshot = by_key(reconciler.add_remote_batch([create_test_repo("alice/old")]))
        assert snapshot["alice/old"].exists_local is False
        assert snapshot["alice/old"].local_path == ""

    def test_eviction(self, sample_repos):
        """Unconfirmed remote repos are dropped; local-only ones survive."""
        local = [
            create_local_repo("local/scratch", "/src/scratch"),
            create_local_repo("alice/fuzzyrepo", "/src/fuzzyrepo"),
        ]
        reconciler = ProgressiveReconciler(local, sample_repos)
        reconciler.add_remote_batch([create_test_repo("alice/dotfiles")])
        reconciler.add_remote_batch([create_test_repo("acme/new-service", affiliation=Affiliation.ORGANIZATION_MEMBER)])

        final = by_key(reconciler.finish())

        assert set(final) == {"alice/dotfiles", "acme/new-service", "local/scratch", "alice/fuzzyrepo"}
        # Still on disk but gone from GitHub: kept, as the local copy
        assert final["alice/fuzzyrepo"].exists_local is True

    def test_snapshots_are_copies(self):
        reconciler = ProgressiveReconciler([create_local_repo("local/x", "/x")])
        snapshot = reconciler.snapshot()
        snapshot[0].local_path = "/mutated"

        assert reconciler.snapshot()[0].local_path == "/x"

    def test_matches_batch_merge(self, sample_repos):
        """Streaming every page then finishing equals merging the full listing."""
        local = [
            create_local_repo("alice/fuzzyrepo", "/src/fuzzyrepo"),
            create_local_repo("local/scratch", "/src/scratch"),
        ]
        reconciler = ProgressiveReconciler(local, [create_test_repo("gone/repo")])
        reconciler.add_remote_batch(sample_repos[:2])
        reconciler.add_remote_batch(sample_repos[2:])

        assert _normalized(reconciler.finish()) == _normalized(merge_repos(local, sample_repos))
