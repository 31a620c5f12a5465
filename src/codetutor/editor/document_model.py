"""Line-oriented source buffer mutated by the suggestion lifecycle."""

from __future__ import annotations

import hashlib
import re
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator, Optional, Sequence

from ..core.ranges import LineRange

_LINE_BREAK_RE = re.compile(r"\r\n|\r|\n")


def _hash_text(text: str) -> str:
    return hashlib.sha1(text.encode("utf-8")).hexdigest()


def detect_newline(text: str) -> str:
    """Return the dominant newline sequence used by ``text``."""

    if "\r\n" in text:
        return "\r\n"
    if "\n" in text:
        return "\n"
    if "\r" in text:
        return "\r"
    return "\n"


def split_lines(text: str) -> list[str]:
    """Split ``text`` into editor lines; a trailing newline yields a final empty line."""

    return _LINE_BREAK_RE.split(text)


def leading_indent(line: str) -> int:
    """Return the index of the first non-whitespace character (editor semantics)."""

    return len(line) - len(line.lstrip())


class BufferRangeError(IndexError):
    """Raised when a read or replace addresses lines outside the buffer."""

    def __init__(self, message: str, *, start: int | None = None, end: int | None = None, line_count: int = 0) -> None:
        super().__init__(message)
        self.start = start
        self.end = end
        self.line_count = line_count


@dataclass(slots=True)
class BufferVersion:
    """Lightweight metadata describing a buffer snapshot."""

    document_id: str
    version_id: int
    content_hash: str


@dataclass(slots=True)
class SourceBuffer:
    """Mutable, 0-indexed sequence of source lines.

    The buffer always holds at least one line. Text is rendered back with the
    newline style detected when the text was last set.
    """

    lines: list[str] = field(default_factory=lambda: [""])
    newline: str = "\n"
    language: str = "plaintext"
    path: Optional[Path] = None
    document_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    version_id: int = 1
    content_hash: str = field(default_factory=str)

    def __post_init__(self) -> None:
        self.lines = list(self.lines) or [""]
        if not self.content_hash:
            self.content_hash = _hash_text(self.text)

    @classmethod
    def from_text(cls, text: str, **kwargs) -> "SourceBuffer":
        return cls(lines=split_lines(text), newline=detect_newline(text), **kwargs)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @property
    def text(self) -> str:
        return self.newline.join(self.lines)

    @property
    def line_count(self) -> int:
        return len(self.lines)

    @property
    def last_line(self) -> int:
        return len(self.lines) - 1

    def __len__(self) -> int:
        return len(self.lines)

    def __iter__(self) -> Iterator[str]:
        return iter(self.lines)

    def line_at(self, index: int) -> str:
        if not 0 <= index < len(self.lines):
            raise BufferRangeError(
                f"Line {index} is outside the buffer (0-{self.last_line})",
                start=index,
                end=index,
                line_count=len(self.lines),
            )
        return self.lines[index]

    def read_range(self, start: int, end: int) -> list[str]:
        """Return lines ``start..end`` inclusive."""

        self._check_range(start, end)
        return list(self.lines[start : end + 1])

    def read_text(self, start: int, end: int) -> str:
        return self.newline.join(self.read_range(start, end))

    def clamp_line(self, index: int) -> int:
        return min(max(0, int(index)), self.last_line)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def replace_lines(self, start: int, end: int, replacement: Sequence[str] | str) -> LineRange:
        """Atomically replace lines ``start..end`` inclusive.

        Returns the range now occupied by ``replacement``. The range is validated
        before anything is written, so a failing call leaves the buffer untouched.
        """

        self._check_range(start, end)
        new_lines = split_lines(replacement) if isinstance(replacement, str) else list(replacement)
        if not new_lines:
            new_lines = [""]
        self.lines[start : end + 1] = new_lines
        if not self.lines:
            self.lines = [""]
        self._touch()
        return LineRange(start, start + len(new_lines) - 1)

    def set_text(self, text: str) -> None:
        """Replace the whole buffer, adopting the newline style of ``text``.

        Single-line text carries no style and keeps the current one.
        """

        self.lines = split_lines(text) or [""]
        if "\n" in text or "\r" in text:
            self.newline = detect_newline(text)
        self._touch()

    def version_info(self) -> BufferVersion:
        return BufferVersion(
            document_id=self.document_id,
            version_id=self.version_id,
            content_hash=self.content_hash,
        )

    def version_signature(self) -> str:
        info = self.version_info()
        return f"{info.document_id}:{info.version_id}:{info.content_hash}"

    def _touch(self) -> None:
        self.version_id += 1
        self.content_hash = _hash_text(self.text)

    def _check_range(self, start: int, end: int) -> None:
        if start < 0 or end < start or end >= len(self.lines):
            raise BufferRangeError(
                f"Range {start}-{end} is outside the buffer (0-{self.last_line})",
                start=start,
                end=end,
                line_count=len(self.lines),
            )


def as_lines(source: SourceBuffer | Sequence[str] | str | None) -> Sequence[str]:
    """Normalize the accepted source representations into a line sequence."""

    if source is None:
        return ()
    if isinstance(source, SourceBuffer):
        return source.lines
    if isinstance(source, str):
        return split_lines(source)
    return source


__all__ = [
    "BufferRangeError",
    "BufferVersion",
    "SourceBuffer",
    "as_lines",
    "detect_newline",
    "leading_indent",
    "split_lines",
]
