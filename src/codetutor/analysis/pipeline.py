"""Facade running raw model text through the extraction pipeline."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Sequence

from ..editor.document_model import SourceBuffer, as_lines
from .dedupe import deduplicate
from .extractor import extract_suggestions
from .fallback import DEFAULT_BOILERPLATE_PATTERNS, FallbackAligner
from .line_matcher import DEFAULT_PREFIX_LENGTH
from .models import SuggestionSet
from .segmenter import segment_response

if TYPE_CHECKING:  # pragma: no cover - import cycle guard
    from ..services.settings import Settings

LOGGER = logging.getLogger(__name__)


def parse_suggestions(
    response: str | None,
    source: SourceBuffer | Sequence[str] | str | None = None,
    *,
    expect_line_numbers: bool = True,
    settings: "Settings | None" = None,
) -> SuggestionSet:
    """Return the suggestions carried by ``response``.

    The format-aware path runs first. When it yields nothing from a non-empty
    response that was asked for line numbers, the fallback aligner anchors
    paragraphs instead. Content problems never raise; the worst case is an
    empty set.
    """

    if not response or not response.strip():
        return SuggestionSet.empty()

    lines = as_lines(source)
    line_count = len(lines) if source is not None else None
    suggestions = extract_suggestions(segment_response(response), line_count=line_count)

    if not suggestions and expect_line_numbers:
        aligner = FallbackAligner(
            prefix_length=settings.match_prefix_length if settings is not None else DEFAULT_PREFIX_LENGTH,
            boilerplate_patterns=(
                settings.boilerplate_patterns if settings is not None else DEFAULT_BOILERPLATE_PATTERNS
            ),
        )
        suggestions = aligner.align(response, lines)
        LOGGER.debug("Primary extraction empty; fallback produced %s suggestions", len(suggestions))

    result = deduplicate(suggestions)
    LOGGER.debug("Parsed %s suggestions (%s unique lines)", len(suggestions), len(result))
    return result


__all__ = ["parse_suggestions"]
