"""Tests for document sessions, the workspace and the analysis coordinator."""

from __future__ import annotations

from pathlib import Path

import pytest

from codetutor.analysis.models import ProficiencyLevel, Suggestion, SuggestionSet
from codetutor.editor.document_model import SourceBuffer
from codetutor.review.errors import NoSuggestedCodeFound
from codetutor.review.events import (
    AnalysisFailed,
    EventBus,
    SuggestionRejected,
    SuggestionsCleared,
    SuggestionsUpdated,
)
from codetutor.review.session import AnalysisCoordinator, FeedbackForwarder, SuggestionWorkspace
from codetutor.services.settings import Settings
from tests.helpers import SAMPLE_SOURCE, EventRecorder, RecordingSink, StubTransport

RESPONSE = (
    "Line 2: Use a descriptive name\n"
    "x says nothing about its purpose.\n"
    "Before: `const x = 1;`\n"
    "After: `const count = 1;`\n"
    "Line 40: Past the end\n"
)


@pytest.fixture
def workspace(event_bus: EventBus) -> SuggestionWorkspace:
    return SuggestionWorkspace(settings=Settings(proficiency_level="novice"), bus=event_bus)


@pytest.fixture
def buffer() -> SourceBuffer:
    return SourceBuffer.from_text(SAMPLE_SOURCE, language="javascript", path=Path("greet.js"))


# =============================================================================
# Workspace
# =============================================================================


class TestWorkspace:
    def test_open_reuses_session_per_document(self, workspace: SuggestionWorkspace, buffer: SourceBuffer) -> None:
        session = workspace.open(buffer)

        assert workspace.open(buffer) is session
        assert workspace.get(buffer.document_id) is session
        assert len(workspace) == 1

    def test_replace_suggestions_swaps_the_whole_set(
        self, workspace: SuggestionWorkspace, buffer: SourceBuffer, recorder: EventRecorder
    ) -> None:
        session = workspace.open(buffer)
        session.replace_suggestions(SuggestionSet([Suggestion(0, "a"), Suggestion(3, "b")]))
        session.replace_suggestions(SuggestionSet([Suggestion(5, "c")]), query_id="q-2")

        assert list(session.suggestions) == [5]
        assert session.query_id == "q-2"
        assert [event.count for event in recorder.of_type(SuggestionsUpdated)] == [2, 1]

    def test_visible_suggestions_drop_lines_past_the_buffer(
        self, workspace: SuggestionWorkspace, buffer: SourceBuffer
    ) -> None:
        session = workspace.open(buffer)
        session.replace_suggestions(SuggestionSet([Suggestion(1, "a"), Suggestion(8, "b")]))
        buffer.set_text("one\ntwo")

        assert [s.line_index for s in session.visible_suggestions()] == [1]

    def test_deactivate_clears_suggestions_and_reverts_previews(
        self, workspace: SuggestionWorkspace, buffer: SourceBuffer, recorder: EventRecorder
    ) -> None:
        session = workspace.open(buffer)
        session.replace_suggestions(SuggestionSet([Suggestion(1, "rename", diff="- x\n+ const y = 1;")]))
        session.preview(1)

        workspace.deactivate()

        assert workspace.active is False
        assert len(session.suggestions) == 0
        assert buffer.text == SAMPLE_SOURCE
        assert recorder.of_type(SuggestionsCleared)[0].reason == "deactivated"

    def test_close_forgets_the_session(self, workspace: SuggestionWorkspace, buffer: SourceBuffer) -> None:
        workspace.open(buffer)

        workspace.close(buffer.document_id)

        assert workspace.get(buffer.document_id) is None

    def test_preview_without_suggestion_raises(self, workspace: SuggestionWorkspace, buffer: SourceBuffer) -> None:
        session = workspace.open(buffer)

        with pytest.raises(NoSuggestedCodeFound):
            session.preview(3)

    def test_workspace_starts_inactive_when_disabled(self) -> None:
        assert SuggestionWorkspace(settings=Settings(enabled=False)).active is False

    def test_dismiss_reverts_open_preview(
        self, workspace: SuggestionWorkspace, buffer: SourceBuffer, recorder: EventRecorder
    ) -> None:
        session = workspace.open(buffer)
        session.replace_suggestions(SuggestionSet([Suggestion(1, "rename", diff="- x\n+ const y = 1;")]))
        session.preview(1)

        pending = session.dismiss()

        assert pending is not None
        assert buffer.text == SAMPLE_SOURCE
        assert not session.controller.has_pending()
        assert recorder.of_type(SuggestionRejected)[0].reason == "dismissed"
        assert session.dismiss() is None

    def test_decorations_follow_settings_and_activation(self, buffer: SourceBuffer) -> None:
        settings = Settings()
        workspace = SuggestionWorkspace(settings=settings)
        session = workspace.open(buffer)
        session.replace_suggestions(SuggestionSet([Suggestion(2, "a"), Suggestion(99, "b")]))

        assert [s.line_index for s in workspace.decorations(buffer.document_id)] == [2]

        settings.show_inline_decorations = False
        assert workspace.decorations(buffer.document_id) == []
        assert list(session.suggestions) == [2, 99]

        settings.show_inline_decorations = True
        workspace.deactivate()
        assert workspace.decorations(buffer.document_id) == []
        assert workspace.decorations("missing") == []


# =============================================================================
# Analysis coordinator
# =============================================================================


class TestAnalysisCoordinator:
    @pytest.mark.asyncio
    async def test_analyze_installs_parsed_suggestions(
        self, workspace: SuggestionWorkspace, buffer: SourceBuffer, recorder: EventRecorder
    ) -> None:
        transport = StubTransport(RESPONSE)
        coordinator = AnalysisCoordinator(workspace, transport)
        session = workspace.open(buffer)

        result = await coordinator.analyze(session, query_id="q-1")

        assert result is session.suggestions
        assert list(result) == [1, buffer.last_line]
        assert result[1].diff == "- const x = 1;\n+ const count = 1;"
        assert session.query_id == "q-1"
        [(prompt, request)] = transport.calls
        assert request.level is ProficiencyLevel.NOVICE
        assert request.file_name == "greet.js"
        assert request.language == "javascript"
        assert "novice level programmer" in prompt
        assert recorder.of_type(SuggestionsUpdated)[0].count == 2

    @pytest.mark.asyncio
    async def test_level_override(self, workspace: SuggestionWorkspace, buffer: SourceBuffer) -> None:
        transport = StubTransport("")
        coordinator = AnalysisCoordinator(workspace, transport)

        result = await coordinator.analyze(workspace.open(buffer), level="expert")

        assert len(result) == 0
        assert transport.calls[0][1].level is ProficiencyLevel.EXPERT

    @pytest.mark.asyncio
    async def test_analyze_without_line_numbers(self, workspace: SuggestionWorkspace, buffer: SourceBuffer) -> None:
        transport = StubTransport("Consider adding comments.")

        result = await AnalysisCoordinator(workspace, transport).analyze(
            workspace.open(buffer), include_line_numbers=False
        )

        [(prompt, request)] = transport.calls
        assert request.include_line_numbers is False
        assert request.to_dict()["includeLineNumbers"] is False
        assert "Line X" not in prompt
        assert len(result) == 0

    @pytest.mark.asyncio
    async def test_analyze_on_save_respects_setting(self, buffer: SourceBuffer) -> None:
        settings = Settings()
        workspace = SuggestionWorkspace(settings=settings)
        transport = StubTransport(RESPONSE)
        coordinator = AnalysisCoordinator(workspace, transport)
        session = workspace.open(buffer)

        assert await coordinator.analyze_on_save(session) is None
        assert transport.calls == []

        settings.auto_analyze_on_save = True
        result = await coordinator.analyze_on_save(session, query_id="q-save")

        assert result is not None
        assert list(result) == [1, buffer.last_line]
        assert session.query_id == "q-save"

    @pytest.mark.asyncio
    async def test_inactive_workspace_skips_transport(
        self, workspace: SuggestionWorkspace, buffer: SourceBuffer
    ) -> None:
        transport = StubTransport(RESPONSE)
        session = workspace.open(buffer)
        workspace.deactivate()

        result = await AnalysisCoordinator(workspace, transport).analyze(session)

        assert transport.calls == []
        assert len(result) == 0

    @pytest.mark.asyncio
    async def test_transport_failure_is_published_and_raised(
        self, workspace: SuggestionWorkspace, buffer: SourceBuffer, recorder: EventRecorder
    ) -> None:
        transport = StubTransport(error=ConnectionError("backend down"))
        session = workspace.open(buffer)
        session.replace_suggestions(SuggestionSet([Suggestion(0, "keep")]))

        with pytest.raises(ConnectionError):
            await AnalysisCoordinator(workspace, transport).analyze(session)

        [failure] = recorder.of_type(AnalysisFailed)
        assert failure.error == "backend down"
        assert list(session.suggestions) == [0]

    @pytest.mark.asyncio
    async def test_preview_round_trip_after_analysis(
        self, workspace: SuggestionWorkspace, buffer: SourceBuffer
    ) -> None:
        session = workspace.open(buffer)
        await AnalysisCoordinator(workspace, StubTransport(RESPONSE)).analyze(session, query_id="q-9")

        pending = session.preview(1)
        assert pending.query_id == "q-9"
        assert buffer.lines[1] == "const count = 1;"

        session.reject()
        assert buffer.text == SAMPLE_SOURCE


# =============================================================================
# Feedback
# =============================================================================


class TestFeedbackForwarder:
    def test_accept_sends_positive_feedback(self, workspace: SuggestionWorkspace, buffer: SourceBuffer) -> None:
        sink = RecordingSink()
        forwarder = FeedbackForwarder(workspace.bus, sink)
        session = workspace.open(buffer)
        session.replace_suggestions(SuggestionSet([Suggestion(1, "a", diff="+ const a = 1;")]), query_id="q-3")

        session.preview(1)
        session.accept()

        assert sink.sent == [("q-3", True)]
        forwarder.close()

    def test_reject_and_missing_query_id_send_nothing(
        self, workspace: SuggestionWorkspace, buffer: SourceBuffer
    ) -> None:
        sink = RecordingSink()
        forwarder = FeedbackForwarder(workspace.bus, sink)
        session = workspace.open(buffer)
        session.replace_suggestions(SuggestionSet([Suggestion(1, "a", diff="+ const a = 1;")]))

        session.preview(1)
        session.accept()
        session.preview(1)
        session.reject()

        assert sink.sent == []
        forwarder.close()

    def test_close_unsubscribes(self, event_bus: EventBus) -> None:
        forwarder = FeedbackForwarder(event_bus, RecordingSink())

        forwarder.close()

        assert event_bus.handler_count() == 0
