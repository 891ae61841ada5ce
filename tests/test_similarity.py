"""Tests for edit-distance similarity."""

import pytest

from grocery_planner.similarity import best_match, similarity


class TestSimilarity:
    """Tests for similarity()."""

    def test_both_empty_is_identical(self):
        assert similarity("", "") == 1.0

    def test_one_empty_is_zero(self):
        assert similarity("milk", "") == 0.0

    def test_case_insensitive(self):
        assert similarity("MILK", "milk") == 1.0

    def test_known_distance(self):
        """kitten -> sitting is three edits over seven characters."""
        assert similarity("kitten", "sitting") == pytest.approx(1 - 3 / 7)

    def test_symmetric(self):
        assert similarity("bannana", "banana") == similarity("banana", "bannana")

    @pytest.mark.parametrize("a,b", [("eggs", "milk"), ("a", "abcdef"), ("tomato", "tomatoe")])
    def test_bounded(self, a, b):
        assert 0.0 <= similarity(a, b) <= 1.0


class TestBestMatch:
    """Tests for best_match()."""

    def test_picks_closest(self):
        match, score = best_match("bannanas", ["apples", "bananas", "cherries"])
        assert match == "bananas"
        assert score > 0.8

    def test_threshold_is_strict(self):
        match, _ = best_match("abcd", ["abce"], threshold=0.75)
        assert match is None

    def test_first_candidate_wins_ties(self):
        match, _ = best_match("cat", ["bat", "hat"])
        assert match == "bat"

    def test_no_candidates(self):
        assert best_match("milk", []) == (None, 0.0)
