"""Turning unstructured model responses into line-anchored suggestions."""

from .models import AnalysisRequest, MarkerSpan, ProficiencyLevel, Suggestion, SuggestionSet
from .payload import build_payload, suggestions_from_payload, validate_payload
from .pipeline import parse_suggestions
from .prompts import build_analysis_prompt

__all__ = [
    "AnalysisRequest",
    "MarkerSpan",
    "ProficiencyLevel",
    "Suggestion",
    "SuggestionSet",
    "build_analysis_prompt",
    "build_payload",
    "parse_suggestions",
    "suggestions_from_payload",
    "validate_payload",
]
