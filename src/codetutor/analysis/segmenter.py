"""Split a raw model response into ``Line N:`` marker spans.

Segmentation runs in two passes: :func:`tokenize` classifies every line as a
marker or plain text, and :func:`segment_response` folds the tokens through a
two-state machine (``preamble`` until the first marker, ``span`` afterwards).
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Iterator

from .models import MarkerSpan

LOGGER = logging.getLogger(__name__)

MARKER_RE = re.compile(r"^Line\s+(?P<number>\d[^:\s]*)\s*:(?P<title>.*)$")
_LEADING_INT_RE = re.compile(r"^\d+")
_LINE_BREAK_RE = re.compile(r"\r\n|\r|\n")


class TokenKind(str, Enum):
    MARKER = "marker"
    TEXT = "text"


@dataclass(slots=True, frozen=True)
class LineToken:
    kind: TokenKind
    text: str
    number_text: str = ""
    title: str = ""


class _State(Enum):
    PREAMBLE = "preamble"
    SPAN = "span"


def parse_line_number(number_text: str) -> int | None:
    """Return the leading integer of a marker's number token.

    ``"3"`` and ``"3-5"`` both parse as ``3``; tokens without leading digits such
    as ``"three"`` return ``None``.
    """

    match = _LEADING_INT_RE.match(number_text)
    if match is None:
        return None
    return int(match.group(0))


def tokenize(response: str) -> Iterator[LineToken]:
    """Yield one token per line of ``response``."""

    for line in _LINE_BREAK_RE.split(response):
        match = MARKER_RE.match(line)
        if match is None:
            yield LineToken(TokenKind.TEXT, line)
        else:
            yield LineToken(
                TokenKind.MARKER,
                line,
                number_text=match.group("number"),
                title=match.group("title").strip(),
            )


def segment_response(response: str | None) -> list[MarkerSpan]:
    """Return the marker spans of ``response`` in order of appearance.

    Text before the first marker belongs to no span. A response without markers
    yields an empty list, which callers treat as a cue for the fallback aligner.
    """

    if not response:
        return []

    spans: list[MarkerSpan] = []
    state = _State.PREAMBLE
    current: LineToken | None = None
    body: list[str] = []

    def flush() -> None:
        if current is None:
            return
        text = "\n".join([current.text, *body]).rstrip()
        spans.append(
            MarkerSpan(
                line_number=parse_line_number(current.number_text),
                title=current.title,
                text=text,
                number_text=current.number_text,
            )
        )

    for token in tokenize(response):
        if token.kind is TokenKind.MARKER:
            flush()
            current = token
            body = []
            state = _State.SPAN
        elif state is _State.SPAN:
            body.append(token.text)

    flush()
    LOGGER.debug("Segmented response into %s marker spans", len(spans))
    return spans


__all__ = [
    "LineToken",
    "MARKER_RE",
    "TokenKind",
    "parse_line_number",
    "segment_response",
    "tokenize",
]
