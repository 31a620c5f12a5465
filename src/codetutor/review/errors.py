"""Error types surfaced by the suggestion lifecycle and payload contract.

Parsing never raises for content problems; only lifecycle preconditions and
contract violations end up here.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, ClassVar


# -----------------------------------------------------------------------------
# Error Code Constants
# -----------------------------------------------------------------------------

class ErrorCode:
    """Constants for machine-readable error codes."""

    # Lifecycle errors
    NO_SUGGESTED_CODE = "no_suggested_code"
    PREVIEW_CONFLICT = "preview_conflict"

    # Contract errors
    INVALID_PAYLOAD = "invalid_payload"

    # General errors
    INTERNAL_ERROR = "internal_error"


# -----------------------------------------------------------------------------
# Base Error Class
# -----------------------------------------------------------------------------

@dataclass
class SuggestionError(Exception):
    """Base exception for suggestion lifecycle and contract failures.

    Attributes:
        error_code: Machine-readable error identifier.
        message: Human-readable error description.
        details: Additional structured error information.
        suggestion: Actionable guidance for recovery.
    """

    error_code: str
    message: str
    details: dict[str, Any] = field(default_factory=dict)
    suggestion: str = ""

    severity: ClassVar[str] = "error"

    def __post_init__(self) -> None:
        Exception.__init__(self, self.message)

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "error": self.error_code,
            "message": self.message,
        }
        if self.details:
            result["details"] = dict(self.details)
        if self.suggestion:
            result["suggestion"] = self.suggestion
        return result

    def __str__(self) -> str:
        return f"[{self.error_code}] {self.message}"


# -----------------------------------------------------------------------------
# Lifecycle Errors
# -----------------------------------------------------------------------------

@dataclass
class NoSuggestedCodeFound(SuggestionError):
    """Raised when a preview is requested for a diff that proposes no code."""

    error_code: str = field(default=ErrorCode.NO_SUGGESTED_CODE)
    message: str = field(default="The suggestion does not contain any proposed code")
    details: dict[str, Any] = field(default_factory=dict)
    suggestion: str = field(default="Ask for a suggestion that includes Before/After code")

    line_index: int | None = field(default=None)

    severity: ClassVar[str] = "warning"

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        if self.line_index is not None:
            result["line"] = self.line_index
        return result


@dataclass
class PreviewConflictError(SuggestionError):
    """Raised when previewed lines were edited before the preview was rejected."""

    error_code: str = field(default=ErrorCode.PREVIEW_CONFLICT)
    message: str = field(default="The previewed code was modified and cannot be reverted automatically")
    details: dict[str, Any] = field(default_factory=dict)
    suggestion: str = field(default="Accept the preview or undo the manual edits first")

    start_line: int | None = field(default=None)
    end_line: int | None = field(default=None)

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        if self.start_line is not None:
            result["start_line"] = self.start_line
        if self.end_line is not None:
            result["end_line"] = self.end_line
        return result


# -----------------------------------------------------------------------------
# Contract Errors
# -----------------------------------------------------------------------------

@dataclass
class PayloadValidationError(SuggestionError):
    """Raised when a suggestions payload does not match the published schema."""

    error_code: str = field(default=ErrorCode.INVALID_PAYLOAD)
    message: str = field(default="Suggestions payload failed schema validation")
    details: dict[str, Any] = field(default_factory=dict)
    suggestion: str = field(default="Check the payload against SUGGESTIONS_SCHEMA")

    path: str = field(default="")

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        if self.path:
            result["path"] = self.path
        return result


__all__ = [
    "ErrorCode",
    "NoSuggestedCodeFound",
    "PayloadValidationError",
    "PreviewConflictError",
    "SuggestionError",
]
