"""Event bus and the events published by the suggestion lifecycle.

Components observe suggestions without holding references to each other:
the lifecycle controller and the session layer publish, renderers and the
feedback forwarder subscribe.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Callable, DefaultDict, Generic, TypeVar
from weakref import WeakMethod

logger = logging.getLogger(__name__)

E = TypeVar("E", bound="Event")

Handler = Callable[[E], None]


@dataclass(slots=True)
class Event:
    """Base class for bus events; subclasses are slotted dataclasses."""


# =============================================================================
# Suggestion Set Events
# =============================================================================


@dataclass(slots=True)
class SuggestionsUpdated(Event):
    """Emitted when a new analysis replaces a document's suggestion set.

    Attributes:
        document_id: Identifier of the analysed buffer.
        count: Number of suggestions in the new set.
        query_id: Upstream identifier of the analysis, when known.
    """

    document_id: str
    count: int
    query_id: str | None = None


@dataclass(slots=True)
class SuggestionsCleared(Event):
    """Emitted when a document's suggestions are dropped.

    Attributes:
        document_id: Identifier of the buffer.
        reason: ``"cleared"`` for explicit requests, ``"deactivated"`` when the
            workspace shuts the feature off, ``"closed"`` when the document goes away.
    """

    document_id: str
    reason: str = "cleared"


@dataclass(slots=True)
class AnalysisFailed(Event):
    """Emitted when the analysis transport raises."""

    document_id: str
    error: str


# =============================================================================
# Preview Lifecycle Events
# =============================================================================


@dataclass(slots=True)
class SuggestionPreviewed(Event):
    """Emitted after proposed code has been written into the buffer.

    Attributes:
        document_id: Identifier of the buffer.
        line_index: Line the suggestion is anchored to.
        range: Inclusive ``(start_line, end_line)`` now holding the proposal.
        query_id: Upstream identifier used for feedback.
    """

    document_id: str
    line_index: int
    range: tuple[int, int]
    query_id: str | None = None


@dataclass(slots=True)
class SuggestionAccepted(Event):
    """Emitted when a preview is kept."""

    document_id: str
    line_index: int
    range: tuple[int, int]
    query_id: str | None = None


@dataclass(slots=True)
class SuggestionRejected(Event):
    """Emitted when a preview is reverted.

    ``reason`` is ``"rejected"``, ``"dismissed"`` or ``"superseded"`` (a newer
    preview replaced this one).
    """

    document_id: str
    line_index: int
    range: tuple[int, int]
    reason: str = "rejected"
    query_id: str | None = None


class EventBus(Generic[E]):
    """Typed publish/subscribe bus.

    Handlers run synchronously in subscription order. Bound methods are held
    weakly so that subscribers do not outlive their owners; plain functions and
    lambdas are held strongly. A handler that raises is logged and the
    remaining handlers still run.

    The bus is not thread-safe; use it from a single event loop.
    """

    __slots__ = ("_handlers",)

    def __init__(self) -> None:
        self._handlers: DefaultDict[type[Event], list[_HandlerRef]] = defaultdict(list)

    def subscribe(self, event_type: type[E], handler: Handler[E]) -> None:
        """Register ``handler`` for events of exactly ``event_type``."""

        self._handlers[event_type].append(_HandlerRef.create(handler))
        logger.debug("Subscribed handler %s to event type %s", _handler_name(handler), event_type.__name__)

    def unsubscribe(self, event_type: type[E], handler: Handler[E]) -> None:
        """Remove the first registration of ``handler``; unknown handlers are ignored."""

        handlers = self._handlers.get(event_type)
        if not handlers:
            return
        for index, handler_ref in enumerate(handlers):
            if handler_ref.matches(handler):
                handlers.pop(index)
                logger.debug(
                    "Unsubscribed handler %s from event type %s",
                    _handler_name(handler),
                    event_type.__name__,
                )
                return

    def publish(self, event: E) -> None:
        event_type = type(event)
        handlers = self._handlers.get(event_type)
        if not handlers:
            logger.debug("No handlers for event type %s", event_type.__name__)
            return

        logger.debug("Publishing %s to %d handler(s)", event_type.__name__, len(handlers))
        dead: list[_HandlerRef] = []
        # Iterate over a snapshot; handlers may (un)subscribe while running.
        for handler_ref in list(handlers):
            handler = handler_ref.resolve()
            if handler is None:
                dead.append(handler_ref)
                continue
            try:
                handler(event)
            except Exception:
                logger.exception(
                    "Handler %s raised exception for event %s",
                    _handler_name(handler),
                    event_type.__name__,
                )
        for handler_ref in dead:
            if handler_ref in handlers:
                handlers.remove(handler_ref)

    def clear(self) -> None:
        self._handlers.clear()
        logger.debug("Cleared all event handlers")

    def handler_count(self, event_type: type[E] | None = None) -> int:
        """Return the handlers registered for ``event_type``, or all of them."""

        if event_type is not None:
            return len(self._handlers.get(event_type, []))
        return sum(len(handlers) for handlers in self._handlers.values())


class _HandlerRef:
    """Weak reference for bound methods, strong reference for everything else."""

    __slots__ = ("_ref", "_is_weak")

    def __init__(self, handler_ref: WeakMethod | Handler, is_weak: bool) -> None:
        self._ref = handler_ref
        self._is_weak = is_weak

    @classmethod
    def create(cls, handler: Handler) -> "_HandlerRef":
        if hasattr(handler, "__self__") and hasattr(handler, "__func__"):
            try:
                return cls(WeakMethod(handler), is_weak=True)
            except TypeError:
                pass
        return cls(handler, is_weak=False)

    def resolve(self) -> Handler | None:
        if not self._is_weak:
            return self._ref  # type: ignore[return-value]
        return self._ref()  # type: ignore[operator]

    def matches(self, handler: Handler) -> bool:
        resolved = self.resolve()
        return resolved is not None and resolved == handler


def _handler_name(handler: Handler) -> str:
    if hasattr(handler, "__self__") and hasattr(handler, "__func__"):
        return f"{type(handler.__self__).__name__}.{handler.__func__.__name__}"
    return getattr(handler, "__name__", repr(handler))


__all__ = [
    "AnalysisFailed",
    "Event",
    "EventBus",
    "Handler",
    "SuggestionAccepted",
    "SuggestionPreviewed",
    "SuggestionRejected",
    "SuggestionsCleared",
    "SuggestionsUpdated",
]
