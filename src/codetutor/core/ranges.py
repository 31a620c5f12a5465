"""Structured helpers for representing inclusive line spans."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Iterator


@dataclass(slots=True, frozen=True)
class LineRange(Sequence[int]):
    """Inclusive ``(start_line, end_line)`` pair using 0-based line indices."""

    start: int
    end: int

    def __post_init__(self) -> None:
        start = self._coerce_index(self.start, "start")
        end = self._coerce_index(self.end, "end")
        if end < start:
            start, end = end, start
        object.__setattr__(self, "start", start)
        object.__setattr__(self, "end", end)

    @staticmethod
    def _coerce_index(value: Any, label: str) -> int:
        try:
            number = int(value)
        except (TypeError, ValueError) as exc:
            raise ValueError(f"LineRange {label} must be an integer") from exc
        if number < 0:
            return 0
        return number

    def __len__(self) -> int:
        return 2

    def __getitem__(self, index: int | slice) -> int | tuple[int, ...]:
        if isinstance(index, slice):
            return self.to_tuple()[index]
        if index == 0:
            return self.start
        if index == 1:
            return self.end
        raise IndexError("LineRange index out of range")

    def __iter__(self) -> Iterator[int]:
        yield self.start
        yield self.end

    @property
    def line_count(self) -> int:
        """Return the number of lines covered by the range."""

        return self.end - self.start + 1

    def contains(self, line: int) -> bool:
        return self.start <= line <= self.end

    def to_tuple(self) -> tuple[int, int]:
        return (self.start, self.end)

    def to_dict(self) -> dict[str, int]:
        return {"start_line": self.start, "end_line": self.end}

    def clamp(self, line_count: int) -> "LineRange":
        """Return a copy limited to ``[0, line_count - 1]``."""

        last = max(0, int(line_count) - 1)
        return LineRange(min(self.start, last), min(self.end, last))

    @classmethod
    def from_value(cls, value: Any) -> "LineRange":
        """Coerce tuples, mappings or existing ranges into a :class:`LineRange`."""

        if isinstance(value, LineRange):
            return value
        if isinstance(value, Mapping):
            return cls(value.get("start_line", 0), value.get("end_line", 0))
        if isinstance(value, Sequence) and not isinstance(value, (str, bytes)) and len(value) == 2:
            return cls(value[0], value[1])
        raise ValueError("LineRange values must be a LineRange, mapping, or 2-item sequence")


__all__ = ["LineRange"]
