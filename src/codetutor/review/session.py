"""Per-document suggestion sessions and the analysis round-trip.

A :class:`SuggestionWorkspace` owns one :class:`DocumentSession` per open
buffer. Each session holds the current :class:`SuggestionSet` for its buffer
and the lifecycle controller that previews suggestions into it.
:class:`AnalysisCoordinator` sends a buffer to the external transport and
replaces the session's set with whatever the pipeline extracts.
"""

from __future__ import annotations

import logging
from typing import Iterator, Protocol

from ..analysis.models import AnalysisRequest, ProficiencyLevel, Suggestion, SuggestionSet
from ..analysis.pipeline import parse_suggestions
from ..analysis.prompts import build_analysis_prompt
from ..editor.block_locator import HeuristicBlockLocator, StructuralBlockLocator
from ..editor.document_model import SourceBuffer
from ..services.settings import Settings
from .errors import NoSuggestedCodeFound, PreviewConflictError
from .events import AnalysisFailed, EventBus, SuggestionAccepted, SuggestionsCleared, SuggestionsUpdated
from .lifecycle import SuggestionLifecycleController
from .models import PendingEdit

LOGGER = logging.getLogger(__name__)


class AnalysisTransport(Protocol):
    """Sends a prompt to the model provider and returns its raw text."""

    async def complete(self, prompt: str, request: AnalysisRequest) -> str:
        ...


class FeedbackSink(Protocol):
    """Receives helpful/unhelpful signals for an upstream query."""

    def send_feedback(self, query_id: str, positive: bool) -> None:
        ...


class DocumentSession:
    """Suggestion state for a single buffer."""

    def __init__(
        self,
        buffer: SourceBuffer,
        *,
        bus: EventBus,
        locator: StructuralBlockLocator | None = None,
    ) -> None:
        self._buffer = buffer
        self._bus = bus
        self._suggestions = SuggestionSet.empty()
        self._query_id: str | None = None
        self._controller = SuggestionLifecycleController(buffer, bus=bus, locator=locator)

    @property
    def document_id(self) -> str:
        return self._buffer.document_id

    @property
    def buffer(self) -> SourceBuffer:
        return self._buffer

    @property
    def controller(self) -> SuggestionLifecycleController:
        return self._controller

    @property
    def suggestions(self) -> SuggestionSet:
        return self._suggestions

    @property
    def query_id(self) -> str | None:
        return self._query_id

    def visible_suggestions(self) -> list[Suggestion]:
        """Return suggestions that still point inside the buffer."""

        return self._suggestions.visible(self._buffer.line_count)

    def suggestion_at(self, line_index: int) -> Suggestion | None:
        return self._suggestions.get(line_index)

    def replace_suggestions(self, suggestions: SuggestionSet, *, query_id: str | None = None) -> None:
        """Swap in a freshly computed set; nothing from the previous set survives."""

        self._suggestions = suggestions
        self._query_id = query_id
        LOGGER.debug(
            "Document %s now has %s suggestion(s) (query_id=%s)",
            self.document_id,
            len(suggestions),
            query_id,
        )
        self._bus.publish(
            SuggestionsUpdated(document_id=self.document_id, count=len(suggestions), query_id=query_id)
        )

    def clear(self, reason: str = "cleared") -> None:
        """Drop all suggestions, dismissing an open preview first when possible."""

        if self._controller.has_pending():
            try:
                self._controller.dismiss()
            except PreviewConflictError as exc:
                LOGGER.warning("Leaving preview in %s unresolved: %s", self.document_id, exc)
        self._suggestions = SuggestionSet.empty()
        self._query_id = None
        self._bus.publish(SuggestionsCleared(document_id=self.document_id, reason=reason))

    # ------------------------------------------------------------------
    # Preview passthrough
    # ------------------------------------------------------------------

    def preview(self, line_index: int) -> PendingEdit:
        """Preview the suggestion anchored at ``line_index``.

        Raises:
            NoSuggestedCodeFound: no suggestion at that line, or it carries no code.
        """

        suggestion = self._suggestions.get(line_index)
        if suggestion is None:
            raise NoSuggestedCodeFound(
                message=f"No suggestion is anchored at line {line_index}",
                line_index=line_index,
            )
        return self._controller.preview(suggestion.line_index, suggestion.diff, query_id=self._query_id)

    def accept(self) -> PendingEdit | None:
        return self._controller.accept()

    def reject(self) -> PendingEdit | None:
        return self._controller.reject()

    def dismiss(self) -> PendingEdit | None:
        """Revert an open preview the user closed without deciding."""

        return self._controller.dismiss()


class SuggestionWorkspace:
    """Registry of document sessions plus the feature's on/off switch."""

    def __init__(
        self,
        *,
        settings: Settings | None = None,
        bus: EventBus | None = None,
        locator: StructuralBlockLocator | None = None,
    ) -> None:
        self.settings = settings or Settings()
        self.bus = bus or EventBus()
        self._locator = locator or HeuristicBlockLocator(scan_limit=self.settings.block_scan_limit)
        self._sessions: dict[str, DocumentSession] = {}
        self._active = bool(self.settings.enabled)

    @property
    def active(self) -> bool:
        return self._active

    def activate(self) -> None:
        self._active = True
        LOGGER.debug("Suggestion workspace activated")

    def deactivate(self) -> None:
        """Turn the feature off and clear every document's suggestions."""

        self._active = False
        for session in list(self._sessions.values()):
            session.clear("deactivated")
        LOGGER.debug("Suggestion workspace deactivated (%s sessions cleared)", len(self._sessions))

    def open(self, buffer: SourceBuffer) -> DocumentSession:
        """Return the session for ``buffer``, creating it on first use."""

        session = self._sessions.get(buffer.document_id)
        if session is None:
            session = DocumentSession(buffer, bus=self.bus, locator=self._locator)
            self._sessions[buffer.document_id] = session
        return session

    def get(self, document_id: str) -> DocumentSession | None:
        return self._sessions.get(document_id)

    def decorations(self, document_id: str) -> list[Suggestion]:
        """Return the suggestions to render inline for ``document_id``.

        Nothing is rendered while the workspace is inactive or inline
        decorations are switched off; the suggestions stay previewable.
        """

        session = self._sessions.get(document_id)
        if session is None or not self._active or not self.settings.show_inline_decorations:
            return []
        return session.visible_suggestions()

    def close(self, document_id: str) -> None:
        session = self._sessions.pop(document_id, None)
        if session is not None:
            session.clear("closed")

    def __iter__(self) -> Iterator[DocumentSession]:
        return iter(list(self._sessions.values()))

    def __len__(self) -> int:
        return len(self._sessions)


class AnalysisCoordinator:
    """Runs one analysis round-trip for a document session."""

    def __init__(self, workspace: SuggestionWorkspace, transport: AnalysisTransport) -> None:
        self._workspace = workspace
        self._transport = transport

    def build_request(
        self,
        session: DocumentSession,
        *,
        level: ProficiencyLevel | str | None = None,
        include_line_numbers: bool = True,
    ) -> AnalysisRequest:
        buffer = session.buffer
        return AnalysisRequest(
            code=buffer.text,
            level=level if level is not None else self._workspace.settings.level,
            include_line_numbers=include_line_numbers,
            language=buffer.language,
            file_name=buffer.path.name if buffer.path is not None else None,
        )

    async def analyze(
        self,
        session: DocumentSession,
        *,
        level: ProficiencyLevel | str | None = None,
        query_id: str | None = None,
        include_line_numbers: bool = True,
    ) -> SuggestionSet:
        """Ask the transport about ``session``'s buffer and install the result.

        Returns the new set, or the untouched current set when the workspace is
        inactive. Transport failures are published as :class:`AnalysisFailed`
        and re-raised.
        """

        if not self._workspace.active:
            LOGGER.debug("Skipping analysis of %s; workspace inactive", session.document_id)
            return session.suggestions

        request = self.build_request(session, level=level, include_line_numbers=include_line_numbers)
        prompt = build_analysis_prompt(request)
        version = session.buffer.version_id
        try:
            response = await self._transport.complete(prompt, request)
        except Exception as exc:
            LOGGER.warning("Analysis of %s failed: %s", session.document_id, exc)
            self._workspace.bus.publish(AnalysisFailed(document_id=session.document_id, error=str(exc)))
            raise

        if session.buffer.version_id != version:
            LOGGER.debug("Buffer %s changed during analysis; results are clamped to the current text", session.document_id)
        suggestions = parse_suggestions(
            response,
            session.buffer,
            expect_line_numbers=request.include_line_numbers,
            settings=self._workspace.settings,
        )
        session.replace_suggestions(suggestions, query_id=query_id)
        return suggestions

    async def analyze_on_save(self, session: DocumentSession, *, query_id: str | None = None) -> SuggestionSet | None:
        """Run :meth:`analyze` for a saved buffer when analysis-on-save is enabled.

        Returns ``None`` without contacting the transport when the setting is off.
        """

        if not self._workspace.settings.auto_analyze_on_save:
            LOGGER.debug("Analysis on save disabled; ignoring save of %s", session.document_id)
            return None
        return await self.analyze(session, query_id=query_id)


class FeedbackForwarder:
    """Forwards accepted previews to a :class:`FeedbackSink` as positive feedback."""

    def __init__(self, bus: EventBus, sink: FeedbackSink) -> None:
        self._bus = bus
        self._sink = sink
        bus.subscribe(SuggestionAccepted, self._on_accepted)

    def close(self) -> None:
        self._bus.unsubscribe(SuggestionAccepted, self._on_accepted)

    def send(self, query_id: str, positive: bool) -> None:
        LOGGER.debug("Sending %s feedback for query %s", "positive" if positive else "negative", query_id)
        self._sink.send_feedback(query_id, positive)

    def _on_accepted(self, event: SuggestionAccepted) -> None:
        if not event.query_id:
            return
        self.send(event.query_id, True)


__all__ = [
    "AnalysisCoordinator",
    "AnalysisTransport",
    "DocumentSession",
    "FeedbackForwarder",
    "FeedbackSink",
    "SuggestionWorkspace",
]
