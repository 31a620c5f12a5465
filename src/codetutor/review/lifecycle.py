"""Preview/accept/reject state machine over a live source buffer.

Only this controller mutates the buffer. A preview writes the proposed code
over the block anchored at the suggestion's line and remembers the original
lines; accepting forgets them, rejecting writes them back.
"""

from __future__ import annotations

import logging

from ..core.ranges import LineRange
from ..editor.block_locator import HeuristicBlockLocator, StructuralBlockLocator
from ..editor.document_model import BufferRangeError, SourceBuffer, split_lines
from ..editor.patches import proposed_text_from_diff, summarize_patch
from .errors import NoSuggestedCodeFound, PreviewConflictError
from .events import EventBus, SuggestionAccepted, SuggestionPreviewed, SuggestionRejected
from .models import LifecycleState, PendingEdit

LOGGER = logging.getLogger(__name__)

REASON_REJECTED = "rejected"
REASON_DISMISSED = "dismissed"
REASON_SUPERSEDED = "superseded"


class SuggestionLifecycleController:
    """Applies suggestion previews to one buffer, at most one at a time.

    Events Emitted:
        - SuggestionPreviewed: after proposed code is written
        - SuggestionAccepted: when a preview is kept
        - SuggestionRejected: when a preview is reverted (rejected, dismissed
          or superseded by a newer preview)
    """

    def __init__(
        self,
        buffer: SourceBuffer,
        *,
        bus: EventBus | None = None,
        locator: StructuralBlockLocator | None = None,
    ) -> None:
        self._buffer = buffer
        self._bus = bus or EventBus()
        self._locator = locator or HeuristicBlockLocator()
        self._pending: PendingEdit | None = None

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def buffer(self) -> SourceBuffer:
        return self._buffer

    @property
    def bus(self) -> EventBus:
        return self._bus

    @property
    def pending(self) -> PendingEdit | None:
        return self._pending

    @property
    def state(self) -> LifecycleState:
        return LifecycleState.PREVIEWING if self._pending is not None else LifecycleState.IDLE

    def has_pending(self) -> bool:
        return self._pending is not None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def preview(self, line_index: int, diff: str | None, *, query_id: str | None = None) -> PendingEdit:
        """Write the code proposed by ``diff`` over the block at ``line_index``.

        An open preview is rejected first (reason ``"superseded"``).

        Raises:
            NoSuggestedCodeFound: ``diff`` proposes no code; nothing is changed.
            PreviewConflictError: the open preview could not be reverted.
        """

        proposed = proposed_text_from_diff(diff)
        if not proposed.strip():
            LOGGER.debug("Preview at line %s has no proposed code", line_index)
            raise NoSuggestedCodeFound(line_index=line_index)

        if self._pending is not None:
            self._revert(REASON_SUPERSEDED)

        buffer = self._buffer
        anchor = buffer.clamp_line(line_index)
        end = max(anchor, min(self._locator.block_end(buffer, anchor), buffer.last_line))
        original_lines = buffer.read_range(anchor, end)
        proposed_lines = split_lines(proposed)
        applied = buffer.replace_lines(anchor, end, proposed_lines)

        self._pending = PendingEdit(
            range=applied,
            original_range=LineRange(anchor, end),
            original_lines=original_lines,
            proposed_lines=proposed_lines,
            line_index=anchor,
            query_id=query_id,
        )
        LOGGER.debug(
            "Previewing suggestion at line %s: replaced %s-%s with %s line(s) (%s)",
            anchor,
            anchor,
            end,
            len(proposed_lines),
            summarize_patch("\n".join(original_lines), proposed),
        )
        self._bus.publish(
            SuggestionPreviewed(
                document_id=buffer.document_id,
                line_index=anchor,
                range=applied.to_tuple(),
                query_id=query_id,
            )
        )
        return self._pending

    def accept(self) -> PendingEdit | None:
        """Keep the previewed code; returns the resolved edit or ``None``."""

        pending = self._pending
        if pending is None:
            LOGGER.debug("SuggestionLifecycleController.accept: nothing pending")
            return None

        self._pending = None
        LOGGER.debug("Accepted suggestion at line %s (query_id=%s)", pending.line_index, pending.query_id)
        self._bus.publish(
            SuggestionAccepted(
                document_id=self._buffer.document_id,
                line_index=pending.line_index,
                range=pending.range.to_tuple(),
                query_id=pending.query_id,
            )
        )
        return pending

    def reject(self) -> PendingEdit | None:
        """Restore the original code; returns the resolved edit or ``None``."""

        return self._revert(REASON_REJECTED)

    def dismiss(self) -> PendingEdit | None:
        """Treat a closed preview as a rejection."""

        return self._revert(REASON_DISMISSED)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _revert(self, reason: str) -> PendingEdit | None:
        pending = self._pending
        if pending is None:
            LOGGER.debug("SuggestionLifecycleController.%s: nothing pending", reason)
            return None

        start, end = pending.range.start, pending.range.end
        try:
            current = self._buffer.read_range(start, end)
        except BufferRangeError as exc:
            raise PreviewConflictError(
                details={"reason": str(exc)},
                start_line=start,
                end_line=end,
            ) from exc
        if current != pending.proposed_lines:
            raise PreviewConflictError(start_line=start, end_line=end)

        self._buffer.replace_lines(start, end, pending.original_lines)
        self._pending = None
        LOGGER.debug("Reverted suggestion at line %s (%s)", pending.line_index, reason)
        self._bus.publish(
            SuggestionRejected(
                document_id=self._buffer.document_id,
                line_index=pending.line_index,
                range=pending.range.to_tuple(),
                reason=reason,
                query_id=pending.query_id,
            )
        )
        return pending


__all__ = [
    "REASON_DISMISSED",
    "REASON_REJECTED",
    "REASON_SUPERSEDED",
    "SuggestionLifecycleController",
]
