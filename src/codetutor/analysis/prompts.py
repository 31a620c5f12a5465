"""Prompt templates for code analysis requests."""

from __future__ import annotations

from .models import AnalysisRequest, ProficiencyLevel

_LEVEL_GUIDANCE = {
    ProficiencyLevel.NOVICE: (
        "Explain each point in plain language, define any jargon, and prefer small, "
        "self-contained fixes."
    ),
    ProficiencyLevel.MEDIUM: (
        "Assume familiarity with the language basics and focus on readability, "
        "correctness and common idioms."
    ),
    ProficiencyLevel.EXPERT: (
        "Be concise and focus on design, performance and subtle correctness issues."
    ),
}


def number_lines(code: str) -> str:
    """Prefix every line of ``code`` with its 1-based line number."""

    lines = code.splitlines() or [""]
    width = len(str(len(lines)))
    return "\n".join(f"{index:>{width}} | {line}" for index, line in enumerate(lines, start=1))


def build_analysis_prompt(request: AnalysisRequest) -> str:
    """Render the prompt sent to the model for ``request``."""

    level = request.level.value
    sections = [
        f"Analyze the following code for a {level} level programmer and provide suggestions for improvement.",
        _LEVEL_GUIDANCE[request.level],
    ]
    if request.include_line_numbers:
        sections.append(_line_format_section())
    sections.append(_diff_format_section())
    code = number_lines(request.code) if request.include_line_numbers else request.code
    header = "\n".join(sections)
    context = _context_section(request)
    return f"{header}\n{context}\n{code}" if context else f"{header}\n\n{code}"


def _line_format_section() -> str:
    return (
        "Format each suggestion as 'Line X: suggestion text', where X is the line number. "
        "Put any further explanation on the lines that follow."
    )


def _diff_format_section() -> str:
    return (
        "When you propose a concrete change, add one line 'Before: `old code`' and one line "
        "'After: `new code`' using single backticks."
    )


def _context_section(request: AnalysisRequest) -> str:
    details = []
    if request.file_name:
        details.append(f"File: {request.file_name}")
    if request.language:
        details.append(f"Language: {request.language}")
    if not details:
        return ""
    return "\n" + "\n".join(details) + "\n"


__all__ = ["build_analysis_prompt", "number_lines"]
