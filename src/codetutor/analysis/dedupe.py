"""Collapse suggestions to one per line."""

from __future__ import annotations

from typing import Iterable

from .models import Suggestion, SuggestionSet


def deduplicate(suggestions: Iterable[Suggestion]) -> SuggestionSet:
    """Keep the suggestion with the longest explanation for each line.

    Ties keep the first one seen. Lines keep the order in which they first
    appeared, and running the result through again returns an equal set.
    """

    best: dict[int, Suggestion] = {}
    for suggestion in suggestions:
        current = best.get(suggestion.line_index)
        if current is None or len(suggestion.explanation) > len(current.explanation):
            best[suggestion.line_index] = suggestion
    return SuggestionSet(best)


__all__ = ["deduplicate"]
