"""JSON contract for suggestion payloads exchanged with the backend."""

from __future__ import annotations

import logging
from typing import Any, Mapping

import jsonschema

from ..review.errors import PayloadValidationError
from .models import Suggestion, SuggestionSet

LOGGER = logging.getLogger(__name__)

SUGGESTION_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "line": {"type": "integer", "minimum": 0},
        "message": {"type": "string"},
        "explanation": {"type": "string"},
        "diff": {"type": "string"},
    },
    "required": ["line", "message"],
}

SUGGESTIONS_SCHEMA: dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "type": "object",
    "properties": {
        "suggestions": {
            "type": ["array", "null"],
            "items": SUGGESTION_SCHEMA,
        },
    },
    "required": ["suggestions"],
}

_VALIDATOR = jsonschema.Draft202012Validator(SUGGESTIONS_SCHEMA)


def _format_path(error: jsonschema.ValidationError) -> str:
    return "/".join(str(part) for part in error.absolute_path)


def validate_payload(payload: Any) -> None:
    """Raise :class:`PayloadValidationError` when ``payload`` breaks the schema."""

    error = jsonschema.exceptions.best_match(_VALIDATOR.iter_errors(payload))
    if error is None:
        return
    path = _format_path(error)
    location = f" at '{path}'" if path else ""
    raise PayloadValidationError(
        message=f"Suggestions payload failed schema validation{location}: {error.message}",
        details={"validator": error.validator},
        path=path,
    ) from error


def build_payload(suggestions: SuggestionSet, *, validate: bool = True) -> dict[str, Any]:
    """Return ``{"suggestions": [...]}`` ordered by line."""

    payload = {"suggestions": suggestions.to_list()}
    if validate:
        validate_payload(payload)
    return payload


def suggestions_from_payload(payload: Mapping[str, Any], *, validate: bool = True) -> SuggestionSet:
    """Read a backend payload into a :class:`SuggestionSet`.

    ``"suggestions": null`` is treated as an empty set. Later entries for an
    already-seen line are ignored.
    """

    if validate:
        validate_payload(payload)
    entries = payload.get("suggestions") or []
    seen: dict[int, Suggestion] = {}
    for entry in entries:
        suggestion = Suggestion.from_dict(entry)
        if suggestion.line_index in seen:
            LOGGER.debug("Ignoring duplicate payload entry for line %s", suggestion.line_index)
            continue
        seen[suggestion.line_index] = suggestion
    return SuggestionSet(seen)


__all__ = [
    "SUGGESTIONS_SCHEMA",
    "SUGGESTION_SCHEMA",
    "build_payload",
    "suggestions_from_payload",
    "validate_payload",
]
