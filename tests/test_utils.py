"""Tests for utility functions."""

import pytest

from asc_mcp.utils import format_date, suggest_similar_strings


class TestSuggestSimilarStrings:
    """Test suggest_similar_strings function."""

    def test_exact_match(self):
        """Test exact match returns highest similarity."""
        candidates = ["list_apps", "get_app", "list_builds", "get_build"]
        suggestions = suggest_similar_strings("get_app", candidates)

        assert suggestions[0] == "get_app"

    def test_typo_correction(self):
        """Test typo correction finds close matches."""
        candidates = ["list_apps", "get_app", "list_builds", "get_build"]
        suggestions = suggest_similar_strings("list_aps", candidates)

        assert "list_apps" in suggestions

    def test_case_insensitive(self):
        """Test matching is case insensitive."""
        suggestions = suggest_similar_strings("list_apps", ["LIST_APPS", "get_build"])

        assert "LIST_APPS" in suggestions

    def test_threshold_filtering(self):
        """Test threshold filters out poor matches."""
        suggestions = suggest_similar_strings("xyz", ["list_apps", "get_build"], threshold=0.8)

        assert suggestions == []

    def test_max_results_limit(self):
        """Test max_results limits number of suggestions."""
        candidates = ["abc", "abd", "abe", "abf", "abg"]
        suggestions = suggest_similar_strings("ab", candidates, max_results=2)

        assert len(suggestions) <= 2

    def test_empty_candidates(self):
        assert suggest_similar_strings("test", []) == []


class TestFormatDate:
    @pytest.mark.parametrize(
        "value,with_time,expected",
        [
            ("2024-03-05T14:07:09-08:00", True, "2024-03-05 14:07"),
            ("2024-03-05T14:07:09-08:00", False, "2024-03-05"),
            ("2024-03-05T14:07:09Z", True, "2024-03-05 14:07"),
            ("2024-03-05", False, "2024-03-05"),
            ("not a date", True, "not a date"),
            ("", True, ""),
            (None, True, ""),
        ],
    )
    def test_format_date(self, value, with_time, expected):
        assert format_date(value, with_time=with_time) == expected
