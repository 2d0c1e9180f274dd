"""Unit tests for identifier prefix resolution."""

import random

from tx.core.constants import ResolutionStatus
from tx.tasks import generate_task_id, resolve_prefix


class TestResolvePrefix:
    """Tests for resolve_prefix."""

    def test_unique_prefix_found(self):
        resolution = resolve_prefix("ab", ["abc123", "def456"])
        assert resolution.status == ResolutionStatus.FOUND
        assert resolution.match == "abc123"

    def test_no_match(self):
        resolution = resolve_prefix("zz", ["abc123", "def456"])
        assert resolution.status == ResolutionStatus.NOT_FOUND
        assert resolution.match is None
        assert resolution.matches == ()

    def test_ambiguous_lists_sorted_matches(self):
        resolution = resolve_prefix("a", ["abd", "abc", "xyz"])
        assert resolution.status == ResolutionStatus.AMBIGUOUS
        assert resolution.match is None
        assert resolution.matches == ("abc", "abd")

    def test_case_sensitive(self):
        resolution = resolve_prefix("AB", ["abc123"])
        assert resolution.status == ResolutionStatus.NOT_FOUND

    def test_empty_prefix_matches_everything(self):
        assert resolve_prefix("", ["only"]).found
        assert resolve_prefix("", ["one", "two"]).ambiguous
        assert resolve_prefix("", []).status == ResolutionStatus.NOT_FOUND

    def test_duplicate_candidates_collapse(self):
        resolution = resolve_prefix("ab", ["abc", "abc"])
        assert resolution.found

    def test_full_id_always_resolves_to_itself(self):
        ids = [generate_task_id() for _ in range(50)]
        for task_id in ids:
            resolution = resolve_prefix(task_id, ids)
            assert resolution.found
            assert resolution.match == task_id

    def test_exact_id_wins_over_longer_ids(self):
        resolution = resolve_prefix("ab", ["ab", "abc", "abd"])
        assert resolution.status == ResolutionStatus.FOUND
        assert resolution.match == "ab"
        assert resolve_prefix("a", ["ab", "abc"]).ambiguous

    def test_full_id_resolves_among_varied_lengths(self):
        ids = ["a", "ab", "abc", "abcd", "b"]
        for task_id in ids:
            assert resolve_prefix(task_id, ids).match == task_id

    def test_outcome_independent_of_candidate_order(self):
        ids = ["abc1", "abc2", "abd3", "b"]
        expected = resolve_prefix("ab", ids)
        for _ in range(10):
            shuffled = ids[:]
            random.shuffle(shuffled)
            assert resolve_prefix("ab", shuffled) == expected
