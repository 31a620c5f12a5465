"""Inline diff synthesis and added-line extraction helpers."""

from __future__ import annotations

from typing import List, Sequence

REMOVED_PREFIX = "- "
ADDED_PREFIX = "+ "


def synthesize_diff(before: Sequence[str] | str, after: Sequence[str] | str) -> str:
    """Render a before/after pair as ``- old`` / ``+ new`` lines.

    Single strings are treated as one line each, so ``synthesize_diff("a = 1", "a = 2")``
    returns ``"- a = 1\\n+ a = 2"``.
    """

    before_lines = [before] if isinstance(before, str) else list(before)
    after_lines = [after] if isinstance(after, str) else list(after)
    rendered = [f"{REMOVED_PREFIX}{line}" for line in before_lines]
    rendered.extend(f"{ADDED_PREFIX}{line}" for line in after_lines)
    return "\n".join(rendered)


def extract_added_lines(diff: str) -> List[str]:
    """Return the ``+`` lines of ``diff`` without their marker.

    ``+++`` file headers are skipped. When every added line uses the synthesized
    ``"+ "`` form the separator space is removed as well; otherwise only the ``+``
    is dropped so unified-diff indentation survives.
    """

    if not diff:
        return []
    added = [line for line in diff.splitlines() if line.startswith("+") and not line.startswith("+++")]
    if not added:
        return []
    if all(line.startswith(ADDED_PREFIX) for line in added):
        return [line[len(ADDED_PREFIX) :] for line in added]
    return [line[1:] for line in added]


def proposed_text_from_diff(diff: str | None) -> str:
    """Return the replacement text a diff proposes.

    Falls back to the whole diff string when no added lines are present. An absent
    diff proposes nothing.
    """

    if not diff:
        return ""
    added = extract_added_lines(diff)
    if added:
        return "\n".join(added)
    return diff.rstrip("\r\n")


def summarize_patch(before: str, after: str) -> str:
    delta = len(after) - len(before)
    if delta == 0:
        return "patch: Δ0"
    sign = "+" if delta > 0 else "-"
    return f"patch: {sign}{abs(delta)} chars"


__all__ = [
    "ADDED_PREFIX",
    "REMOVED_PREFIX",
    "extract_added_lines",
    "proposed_text_from_diff",
    "summarize_patch",
    "synthesize_diff",
]
