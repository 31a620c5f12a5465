"""Turn marker spans into :class:`Suggestion` records."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Iterable, Optional, Sequence

from ..editor.patches import synthesize_diff
from .models import MarkerSpan, Suggestion

LOGGER = logging.getLogger(__name__)

INLINE_CODE_RE = re.compile(r"^\s*(?P<label>Before|After):\s*`(?P<code>[^`]*)`\s*$")
FENCE_LABEL_RE = re.compile(r"^\s*(?P<label>Before|After):\s*$")
FENCE_RE = re.compile(r"^\s*```")


@dataclass(slots=True)
class _SpanFields:
    before: Optional[list[str]] = None
    after: Optional[list[str]] = None
    explanation_lines: list[str] = field(default_factory=list)

    def record(self, label: str, code: list[str]) -> None:
        # First candidate wins; later ones are still consumed.
        if label == "Before" and self.before is None:
            self.before = code
        elif label == "After" and self.after is None:
            self.after = code


def _closing_fence(lines: Sequence[str], opening: int) -> int | None:
    for index in range(opening + 1, len(lines)):
        if FENCE_RE.match(lines[index]):
            return index
    return None


def _scan_body(lines: Sequence[str]) -> _SpanFields:
    fields = _SpanFields()
    index = 0
    while index < len(lines):
        line = lines[index]
        inline = INLINE_CODE_RE.match(line)
        if inline is not None:
            fields.record(inline.group("label"), [inline.group("code")])
            index += 1
            continue
        label = FENCE_LABEL_RE.match(line)
        if label is not None and index + 1 < len(lines) and FENCE_RE.match(lines[index + 1]):
            closing = _closing_fence(lines, index + 1)
            if closing is not None:
                fields.record(label.group("label"), list(lines[index + 2 : closing]))
                index = closing + 1
                continue
        fields.explanation_lines.append(line)
        index += 1
    return fields


def extract_suggestion(span: MarkerSpan, *, line_count: int | None = None) -> Suggestion | None:
    """Return the suggestion described by ``span`` or ``None`` when it is unusable.

    Spans whose marker number does not parse are discarded. When ``line_count``
    is known the resulting index is clamped into the document.
    """

    if span.line_number is None:
        LOGGER.debug("Discarding span with unparsable line number %r", span.number_text)
        return None

    fields = _scan_body(span.body.splitlines())
    diff = None
    if fields.before is not None and fields.after is not None:
        diff = synthesize_diff(fields.before, fields.after)

    suggestion = Suggestion(
        line_index=span.line_number - 1,
        message=span.title.strip(),
        explanation="\n".join(fields.explanation_lines).strip(),
        diff=diff,
    )
    if line_count is not None:
        suggestion = suggestion.clamped(line_count)
    return suggestion


def extract_suggestions(spans: Iterable[MarkerSpan], *, line_count: int | None = None) -> list[Suggestion]:
    """Extract suggestions from ``spans`` preserving span order."""

    suggestions: list[Suggestion] = []
    for span in spans:
        suggestion = extract_suggestion(span, line_count=line_count)
        if suggestion is not None:
            suggestions.append(suggestion)
    return suggestions


__all__ = ["FENCE_LABEL_RE", "INLINE_CODE_RE", "extract_suggestion", "extract_suggestions"]
