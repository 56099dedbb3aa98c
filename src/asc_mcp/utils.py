"""Utility functions for suggestions and text formatting."""

from collections.abc import Iterable
from datetime import datetime
from difflib import SequenceMatcher


def suggest_similar_strings(
    target: str,
    candidates: Iterable[str],
    threshold: float = 0.6,
    max_results: int = 3,
) -> list[str]:
    """Suggest similar strings using basic similarity scoring.

    Args:
        target: String to match against.
        candidates: Candidate strings.
        threshold: Minimum similarity threshold (0.0 to 1.0).
        max_results: Maximum number of suggestions to return.

    Returns:
        List of similar strings, sorted by similarity (highest first).
    """
    scored = [
        (candidate, SequenceMatcher(None, target.lower(), candidate.lower()).ratio())
        for candidate in candidates
    ]
    scored = [item for item in scored if item[1] >= threshold]
    scored.sort(key=lambda x: x[1], reverse=True)
    return [s[0] for s in scored[:max_results]]


def format_date(value: str | None, with_time: bool = True) -> str:
    """Render an API timestamp as ``YYYY-MM-DD HH:MM`` (or just the date).

    Unparseable values are returned unchanged.
    """
    if not value:
        return ""
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        return value
    return parsed.strftime("%Y-%m-%d %H:%M" if with_time else "%Y-%m-%d")
