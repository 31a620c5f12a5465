"""Parser-free detection of the structural block surrounding a line.

The heuristics here are deliberately language-agnostic: a handful of textual
declaration patterns, a running brace balance, and indentation. Results are
proposals shown to the user before anything is committed, so occasional
over- or under-inclusion is tolerated.
"""

from __future__ import annotations

import logging
import re
from typing import Iterator, Protocol, Sequence

from ..core.ranges import LineRange
from .document_model import SourceBuffer, as_lines, leading_indent

LOGGER = logging.getLogger(__name__)

DEFAULT_SCAN_LIMIT = 20

DECLARATION_PATTERNS: tuple[re.Pattern[str], ...] = tuple(
    re.compile(pattern)
    for pattern in (
        r"^(?:async\s+)?(?:function|class|interface|enum|def|fn|func|struct|trait|impl)\b",
        r"^(?:if|for|while|switch|try|do|with)\b",
        r"^(?:public|private|protected|internal|static|async)\s+",
        r"^export\s+",
        r"^import\s+",
        r"^from\s+\S+\s+import\b",
        r"^(?:const|let|var)\s+\w+\s*=\s*(?:async\b|function\b|class\b|\([^)]*\)\s*=>|\w+\s*=>)",
    )
)

CONTINUATION_PATTERNS: tuple[re.Pattern[str], ...] = tuple(
    re.compile(pattern)
    for pattern in (
        r"^(?:else|catch|finally|elif|except)\b",
        r"^\.\w+",
        r"^[|&]{2}",
        r"^(?!//|/\*)[+\-*/%<>=!&|^]+",
        r"^[\]})]",
    )
)

_QUOTES = "\"'`"


def is_declaration(line: str) -> bool:
    """Return ``True`` when ``line`` looks like a block opener."""

    stripped = line.strip()
    return any(pattern.search(stripped) for pattern in DECLARATION_PATTERNS)


def is_continuation(line: str) -> bool:
    """Return ``True`` when ``line`` continues the previous block rather than starting one."""

    stripped = line.strip()
    return any(pattern.search(stripped) for pattern in CONTINUATION_PATTERNS)


def iter_code_chars(line: str) -> Iterator[str]:
    """Yield the characters of ``line`` outside string literals and line comments.

    Both ``//`` and ``#`` start a comment. A ``#`` only counts when it opens the
    line or follows whitespace, so ``this.#field`` stays code.
    """

    quote: str | None = None
    escaped = False
    for index, char in enumerate(line):
        if quote is not None:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == quote:
                quote = None
            continue
        if char in _QUOTES:
            quote = char
            continue
        if char == "/" and line[index + 1 : index + 2] == "/":
            return
        if char == "#" and (index == 0 or line[index - 1].isspace()):
            return
        yield char


class StructuralBlockLocator(Protocol):
    """Strategy that proposes the line range forming one syntactic unit."""

    def locate(self, buffer: SourceBuffer | Sequence[str], cursor_line: int) -> LineRange:
        """Return the inclusive block range around ``cursor_line``."""
        ...

    def block_end(self, buffer: SourceBuffer | Sequence[str], start_line: int) -> int:
        """Return the last line of the block beginning at ``start_line``."""
        ...


class HeuristicBlockLocator:
    """Brace-balance and indentation heuristics behind :class:`StructuralBlockLocator`."""

    def __init__(self, *, scan_limit: int = DEFAULT_SCAN_LIMIT) -> None:
        self.scan_limit = max(0, int(scan_limit))

    def locate(self, buffer: SourceBuffer | Sequence[str], cursor_line: int) -> LineRange:
        lines = as_lines(buffer)
        if not lines:
            return LineRange(0, 0)
        cursor = min(max(0, int(cursor_line)), len(lines) - 1)
        start = self._scan_start(lines, cursor)
        end = max(self.block_end(lines, start), cursor)
        LOGGER.debug("Located block %s-%s around line %s", start, end, cursor)
        return LineRange(start, end)

    def block_end(self, buffer: SourceBuffer | Sequence[str], start_line: int) -> int:
        lines = as_lines(buffer)
        if not lines:
            return 0
        last = len(lines) - 1
        start = min(max(0, int(start_line)), last)
        if self._opens_brace(lines, start):
            end = self._brace_end(lines, start)
        else:
            end = self._indent_end(lines, start)
        if end is None:
            return min(start + self.scan_limit, last)
        return end

    # ------------------------------------------------------------------
    # Backward scan
    # ------------------------------------------------------------------

    def _scan_start(self, lines: Sequence[str], cursor: int) -> int:
        index = cursor
        while index >= 0:
            stripped = lines[index].strip()
            if index != cursor and self._is_statement_boundary(stripped):
                return self._first_code_line(lines, index + 1, cursor)
            if is_declaration(stripped):
                if index == cursor or self._covers(lines, index, cursor):
                    return index
            elif "{" in "".join(iter_code_chars(stripped)):
                declaration = self._declaration_before_brace(lines, index)
                if declaration is not None and self._covers(lines, declaration, cursor):
                    return declaration
                return index
            index -= 1
        return cursor

    @staticmethod
    def _first_code_line(lines: Sequence[str], start: int, cursor: int) -> int:
        for index in range(start, cursor):
            if lines[index].strip():
                return index
        return cursor

    @staticmethod
    def _is_statement_boundary(stripped: str) -> bool:
        if stripped.startswith("}"):
            return True
        return stripped.endswith(";") and "{" not in stripped

    def _declaration_before_brace(self, lines: Sequence[str], brace_line: int) -> int | None:
        index = brace_line
        while index >= 0:
            stripped = lines[index].strip()
            if is_declaration(stripped):
                return index
            if "}" in stripped:
                return None
            index -= 1
        return None

    def _covers(self, lines: Sequence[str], start: int, cursor: int) -> bool:
        return start <= cursor <= self.block_end(lines, start)

    # ------------------------------------------------------------------
    # Forward scan
    # ------------------------------------------------------------------

    def _opens_brace(self, lines: Sequence[str], start: int) -> bool:
        if self._line_balance(lines[start].lstrip().lstrip("}")) > 0:
            return True
        for line in lines[start + 1 :]:
            stripped = line.strip()
            if stripped:
                return stripped.startswith("{")
        return False

    @staticmethod
    def _line_balance(line: str) -> int:
        balance = 0
        for char in iter_code_chars(line):
            if char == "{":
                balance += 1
            elif char == "}":
                balance -= 1
        return balance

    def _brace_end(self, lines: Sequence[str], start: int) -> int | None:
        balance = 0
        opened = False
        for index in range(start, len(lines)):
            text = lines[index]
            if index == start:
                text = text.lstrip().lstrip("}")
            for char in iter_code_chars(text):
                if char == "{":
                    balance += 1
                    opened = True
                elif char == "}":
                    balance -= 1
            if opened and balance <= 0:
                return index
        return None

    def _indent_end(self, lines: Sequence[str], start: int) -> int | None:
        start_indent = leading_indent(lines[start])
        end = start
        for index in range(start + 1, len(lines)):
            line = lines[index]
            stripped = line.strip()
            if not stripped:
                continue
            indent = leading_indent(line)
            if indent > start_indent or (indent == start_indent and is_continuation(stripped)):
                end = index
                continue
            return end
        # Block runs to the end of the buffer.
        return min(end, start + self.scan_limit)


__all__ = [
    "CONTINUATION_PATTERNS",
    "DECLARATION_PATTERNS",
    "DEFAULT_SCAN_LIMIT",
    "HeuristicBlockLocator",
    "StructuralBlockLocator",
    "is_continuation",
    "is_declaration",
    "iter_code_chars",
]
