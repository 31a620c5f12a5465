"""Shared test helpers and stub classes."""

from __future__ import annotations

from typing import Any

from codetutor.analysis.models import AnalysisRequest
from codetutor.review.events import (
    AnalysisFailed,
    Event,
    EventBus,
    SuggestionAccepted,
    SuggestionPreviewed,
    SuggestionRejected,
    SuggestionsCleared,
    SuggestionsUpdated,
)

SAMPLE_SOURCE = """function greet(name) {
  const x = 1;
  if (name) {
    console.log(name);
  }
  return x;
}

const y = 2;"""


class EventRecorder:
    """Collects every suggestion event published on a bus."""

    TYPES = (
        SuggestionPreviewed,
        SuggestionAccepted,
        SuggestionRejected,
        SuggestionsUpdated,
        SuggestionsCleared,
        AnalysisFailed,
    )

    def __init__(self, bus: EventBus) -> None:
        self.events: list[Event] = []
        for event_type in self.TYPES:
            bus.subscribe(event_type, self.events.append)

    def of_type(self, event_type: type[Any]) -> list[Any]:
        return [event for event in self.events if isinstance(event, event_type)]


class StubTransport:
    """Analysis transport returning a canned response and recording prompts."""

    def __init__(self, response: str = "", *, error: Exception | None = None) -> None:
        self.response = response
        self.error = error
        self.calls: list[tuple[str, AnalysisRequest]] = []

    async def complete(self, prompt: str, request: AnalysisRequest) -> str:
        self.calls.append((prompt, request))
        if self.error is not None:
            raise self.error
        return self.response


class RecordingSink:
    """Feedback sink that remembers every signal."""

    def __init__(self) -> None:
        self.sent: list[tuple[str, bool]] = []

    def send_feedback(self, query_id: str, positive: bool) -> None:
        self.sent.append((query_id, positive))
