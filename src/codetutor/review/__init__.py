"""Previewing, accepting and rejecting suggestions against a live buffer."""

from .errors import ErrorCode, NoSuggestedCodeFound, PayloadValidationError, PreviewConflictError, SuggestionError
from .events import EventBus
from .lifecycle import SuggestionLifecycleController
from .models import LifecycleState, PendingEdit

__all__ = [
    "ErrorCode",
    "EventBus",
    "LifecycleState",
    "NoSuggestedCodeFound",
    "PayloadValidationError",
    "PendingEdit",
    "PreviewConflictError",
    "SuggestionError",
    "SuggestionLifecycleController",
]
