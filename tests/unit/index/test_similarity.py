"""Unit tests for name similarity."""

import pytest

from tx.index import similarity
from tx.index.similarity import tokenize


class TestSimilarity:
    """Tests for similarity scores."""

    def test_case_insensitive_equality(self):
        assert similarity("John", "  john ") == 1.0

    def test_token_subset(self):
        assert similarity("john", "John Smith") == 0.9
        assert similarity("Acme Corp", "acme") == 0.9

    def test_empty(self):
        assert similarity("", "john") == 0.0
        assert similarity("   ", "   ") == 0.0

    def test_unrelated_names_score_low(self):
        assert similarity("Robert", "Bob") < 0.85
        assert similarity("Maria", "John") < 0.5

    def test_typo_scores_high(self):
        assert similarity("Jonathan", "Johnathan") > 0.85

    @pytest.mark.parametrize("a,b", [("JOHN", "john"), ("q4 launch", "launch"), ("", "x")])
    def test_symmetric(self, a, b):
        assert similarity(a, b) == similarity(b, a)

    def test_tokenize(self):
        assert tokenize("John-Paul Smith") == {"john", "paul", "smith"}
