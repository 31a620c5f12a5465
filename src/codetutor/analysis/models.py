"""Data model for extracted suggestions and analysis requests."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any


@dataclass(slots=True, frozen=True)
class Suggestion:
    """One line-anchored piece of model feedback.

    Instances are immutable; use :meth:`with_line` or :func:`dataclasses.replace`
    to derive updated copies.
    """

    line_index: int
    message: str
    explanation: str = ""
    diff: str | None = None

    def __post_init__(self) -> None:
        try:
            index = int(self.line_index)
        except (TypeError, ValueError) as exc:
            raise ValueError("Suggestion line_index must be an integer") from exc
        object.__setattr__(self, "line_index", max(0, index))
        object.__setattr__(self, "message", str(self.message or ""))
        object.__setattr__(self, "explanation", str(self.explanation or ""))
        if self.diff is not None and not isinstance(self.diff, str):
            object.__setattr__(self, "diff", str(self.diff))

    @property
    def has_diff(self) -> bool:
        return bool(self.diff)

    def with_line(self, line_index: int) -> "Suggestion":
        return replace(self, line_index=line_index)

    def clamped(self, line_count: int) -> "Suggestion":
        """Return a copy whose line index lies inside ``[0, line_count - 1]``."""

        last = max(0, int(line_count) - 1)
        if self.line_index <= last:
            return self
        return self.with_line(last)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "line": self.line_index,
            "message": self.message,
            "explanation": self.explanation,
        }
        if self.diff is not None:
            payload["diff"] = self.diff
        return payload

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Suggestion":
        return cls(
            line_index=data.get("line", 0),
            message=data.get("message") or "",
            explanation=data.get("explanation") or "",
            diff=data.get("diff"),
        )


class SuggestionSet(Mapping[int, Suggestion]):
    """Read-only mapping of line index to its single visible suggestion.

    Iteration follows the order in which lines were first added. A set is built
    wholesale for every analysis response and replaced, never merged.
    """

    __slots__ = ("_entries",)

    def __init__(self, entries: Mapping[int, Suggestion] | Iterable[Suggestion] | None = None) -> None:
        built: dict[int, Suggestion] = {}
        if isinstance(entries, Mapping):
            for key, suggestion in entries.items():
                if int(key) != suggestion.line_index:
                    raise ValueError(
                        f"SuggestionSet key {key} does not match suggestion line {suggestion.line_index}"
                    )
                built[suggestion.line_index] = suggestion
        elif entries is not None:
            for suggestion in entries:
                if suggestion.line_index in built:
                    raise ValueError(f"Duplicate suggestion for line {suggestion.line_index}")
                built[suggestion.line_index] = suggestion
        self._entries = built

    @classmethod
    def empty(cls) -> "SuggestionSet":
        return cls()

    def __getitem__(self, line_index: int) -> Suggestion:
        return self._entries[line_index]

    def __iter__(self) -> Iterator[int]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"SuggestionSet({list(self._entries.values())!r})"

    def suggestions(self) -> list[Suggestion]:
        """Return suggestions in insertion order."""

        return list(self._entries.values())

    def ordered(self) -> list[Suggestion]:
        """Return suggestions sorted by line index."""

        return [self._entries[key] for key in sorted(self._entries)]

    def visible(self, line_count: int) -> list[Suggestion]:
        """Return suggestions that still address a line of a ``line_count``-line document.

        Documents can change between analysis and rendering, so out-of-range
        entries are dropped here rather than at parse time.
        """

        return [suggestion for suggestion in self.ordered() if suggestion.line_index < line_count]

    def to_list(self) -> list[dict[str, Any]]:
        return [suggestion.to_dict() for suggestion in self.ordered()]

    def to_payload(self, *, validate: bool = True) -> dict[str, Any]:
        from .payload import build_payload

        return build_payload(self, validate=validate)


@dataclass(slots=True, frozen=True)
class MarkerSpan:
    """Text belonging to one ``Line N:`` marker, up to the next marker."""

    line_number: int | None
    title: str
    text: str
    number_text: str = ""

    @property
    def body(self) -> str:
        """Return the span text after the marker line."""

        _, _, rest = self.text.partition("\n")
        return rest


class ProficiencyLevel(str, Enum):
    """Audience level requested for the analysis."""

    NOVICE = "novice"
    MEDIUM = "medium"
    EXPERT = "expert"

    @classmethod
    def parse(cls, value: "ProficiencyLevel | str | None") -> "ProficiencyLevel":
        if isinstance(value, ProficiencyLevel):
            return value
        if value is None:
            return cls.MEDIUM
        normalized = str(value).strip().lower()
        normalized = _LEVEL_ALIASES.get(normalized, normalized)
        try:
            return cls(normalized)
        except ValueError as exc:
            choices = ", ".join(level.value for level in cls)
            raise ValueError(f"Unknown proficiency level '{value}' (expected one of: {choices})") from exc


_LEVEL_ALIASES = {
    "beginner": "novice",
    "intermediate": "medium",
    "advanced": "expert",
}


@dataclass(slots=True)
class AnalysisRequest:
    """Request surface handed to the external analysis transport."""

    code: str
    level: ProficiencyLevel = ProficiencyLevel.MEDIUM
    include_line_numbers: bool = True
    language: str | None = None
    file_name: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.level = ProficiencyLevel.parse(self.level)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "code": self.code,
            "level": self.level.value,
            "includeLineNumbers": self.include_line_numbers,
        }
        context = {key: value for key, value in (("language", self.language), ("fileName", self.file_name)) if value}
        if context:
            payload["context"] = context
        return payload

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "AnalysisRequest":
        context = data.get("context") or {}
        return cls(
            code=str(data.get("code") or ""),
            level=data.get("level"),
            include_line_numbers=bool(data.get("includeLineNumbers", data.get("include_line_numbers", True))),
            language=context.get("language"),
            file_name=context.get("fileName"),
        )


__all__ = [
    "AnalysisRequest",
    "MarkerSpan",
    "ProficiencyLevel",
    "Suggestion",
    "SuggestionSet",
]
