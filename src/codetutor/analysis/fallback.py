"""Heuristic alignment for responses that ignored the ``Line N:`` format."""

from __future__ import annotations

import logging
import re
from typing import Iterable, Pattern, Sequence

from .line_matcher import DEFAULT_PREFIX_LENGTH, find_matching_line
from .models import Suggestion

LOGGER = logging.getLogger(__name__)

DEFAULT_BOILERPLATE_PATTERNS: tuple[str, ...] = (
    r"^here (?:are|is)\b.*\b(?:suggestions?|improvements?|feedback|recommendations?)\b.*[:.]?$",
    r"^i hope (?:this|these|that) helps?\b",
    r"^let me know\b",
    r"^(?:sure|certainly|of course|absolutely)[!.,]?$",
    r"^(?:sure|certainly)[!,.]\s",
    r"^(?:overall|in summary),?\s.*\b(?:looks good|well written|good job)\b",
)

_BLANK_LINE_RE = re.compile(r"(?:\r\n|\r|\n)[ \t]*(?:\r\n|\r|\n)")


def split_paragraphs(response: str | None) -> list[str]:
    """Split ``response`` on blank lines, dropping empty paragraphs."""

    if not response:
        return []
    paragraphs = (chunk.strip() for chunk in _BLANK_LINE_RE.split(response))
    return [paragraph for paragraph in paragraphs if paragraph]


def compile_patterns(patterns: Iterable[str | Pattern[str]]) -> tuple[Pattern[str], ...]:
    compiled: list[Pattern[str]] = []
    for pattern in patterns:
        if isinstance(pattern, re.Pattern):
            compiled.append(pattern)
            continue
        try:
            compiled.append(re.compile(pattern, re.IGNORECASE))
        except re.error as exc:
            LOGGER.warning("Ignoring invalid boilerplate pattern %r: %s", pattern, exc)
    return tuple(compiled)


def is_boilerplate(paragraph: str, patterns: Sequence[Pattern[str]]) -> bool:
    """Return ``True`` for single-line conversational filler."""

    stripped = paragraph.strip()
    if not stripped:
        return True
    if "\n" in stripped or "\r" in stripped:
        return False
    return any(pattern.search(stripped) for pattern in patterns)


class FallbackAligner:
    """Anchors free-form paragraphs to source lines.

    Each kept paragraph is matched by content first (see
    :func:`~codetutor.analysis.line_matcher.find_matching_line`) and otherwise
    placed proportionally: paragraph ``i`` of ``P`` lands on ``floor(L * i / P)``.
    """

    def __init__(
        self,
        *,
        prefix_length: int = DEFAULT_PREFIX_LENGTH,
        boilerplate_patterns: Iterable[str | Pattern[str]] = DEFAULT_BOILERPLATE_PATTERNS,
    ) -> None:
        self.prefix_length = prefix_length
        self._patterns = compile_patterns(boilerplate_patterns)

    def align(self, response: str | None, source_lines: Sequence[str]) -> list[Suggestion]:
        paragraphs = [text for text in split_paragraphs(response) if not is_boilerplate(text, self._patterns)]
        if not paragraphs:
            return []

        line_count = max(1, len(source_lines))
        total = len(paragraphs)
        suggestions: list[Suggestion] = []
        for position, paragraph in enumerate(paragraphs):
            paragraph_lines = paragraph.splitlines()
            line_index = find_matching_line(paragraph_lines, source_lines, prefix_length=self.prefix_length)
            if line_index is None:
                line_index = (line_count * position) // total
            suggestions.append(
                Suggestion(
                    line_index=line_index,
                    message=paragraph_lines[0].strip(),
                    explanation=paragraph,
                )
            )
        LOGGER.debug("Fallback aligned %s paragraphs across %s lines", total, line_count)
        return suggestions


def align_paragraphs(
    response: str | None,
    source_lines: Sequence[str],
    *,
    prefix_length: int = DEFAULT_PREFIX_LENGTH,
    boilerplate_patterns: Iterable[str | Pattern[str]] = DEFAULT_BOILERPLATE_PATTERNS,
) -> list[Suggestion]:
    aligner = FallbackAligner(prefix_length=prefix_length, boilerplate_patterns=boilerplate_patterns)
    return aligner.align(response, source_lines)


__all__ = [
    "DEFAULT_BOILERPLATE_PATTERNS",
    "FallbackAligner",
    "align_paragraphs",
    "compile_patterns",
    "is_boilerplate",
    "split_paragraphs",
]
