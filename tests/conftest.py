"""Shared pytest fixtures."""

from __future__ import annotations

import pytest

from codetutor.editor.document_model import SourceBuffer
from codetutor.review.events import EventBus
from tests.helpers import SAMPLE_SOURCE, EventRecorder


@pytest.fixture
def event_bus() -> EventBus:
    return EventBus()


@pytest.fixture
def recorder(event_bus: EventBus) -> EventRecorder:
    return EventRecorder(event_bus)


@pytest.fixture
def sample_buffer() -> SourceBuffer:
    return SourceBuffer.from_text(SAMPLE_SOURCE, language="javascript")
