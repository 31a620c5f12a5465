"""State carried between a suggestion preview and its resolution."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from ..core.ranges import LineRange


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class LifecycleState(str, Enum):
    """States of the per-buffer preview machine."""

    IDLE = "idle"
    PREVIEWING = "previewing"


@dataclass(slots=True)
class PendingEdit:
    """A previewed suggestion awaiting accept or reject.

    Attributes:
        range: Lines currently holding the proposed code.
        original_range: Lines the original code occupied before the preview.
        original_lines: Snapshot restored on reject.
        proposed_lines: Code written by the preview.
        line_index: Line the suggestion was anchored to.
        query_id: Upstream identifier forwarded with feedback.
        created_at: When the preview was applied.
    """

    range: LineRange
    original_range: LineRange
    original_lines: list[str]
    proposed_lines: list[str]
    line_index: int
    query_id: str | None = None
    created_at: datetime = field(default_factory=_utcnow)

    @property
    def original_text(self) -> str:
        return "\n".join(self.original_lines)

    @property
    def proposed_text(self) -> str:
        return "\n".join(self.proposed_lines)


__all__ = ["LifecycleState", "PendingEdit"]
