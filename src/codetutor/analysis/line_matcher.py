"""Content-based anchoring of free-form text to source lines."""

from __future__ import annotations

from typing import Iterable, Sequence

DEFAULT_PREFIX_LENGTH = 10


def probe_fragments(text_lines: Iterable[str], *, prefix_length: int = DEFAULT_PREFIX_LENGTH) -> list[str]:
    """Return the probe substrings contributed by ``text_lines``.

    Each stripped line at least ``prefix_length`` characters long contributes its
    first ``prefix_length`` characters; shorter lines are too ambiguous to probe.
    """

    size = max(1, int(prefix_length))
    probes: list[str] = []
    for line in text_lines:
        stripped = line.strip()
        if len(stripped) >= size:
            probes.append(stripped[:size])
    return probes


def find_matching_line(
    text_lines: Iterable[str] | str,
    source_lines: Sequence[str],
    *,
    prefix_length: int = DEFAULT_PREFIX_LENGTH,
) -> int | None:
    """Return the index of the first source line containing a probe, else ``None``.

    Probes are tried in the order their lines appear; the first probe with any
    hit decides the anchor.
    """

    if isinstance(text_lines, str):
        text_lines = text_lines.splitlines()
    for probe in probe_fragments(text_lines, prefix_length=prefix_length):
        for index, source_line in enumerate(source_lines):
            if probe in source_line:
                return index
    return None


__all__ = ["DEFAULT_PREFIX_LENGTH", "find_matching_line", "probe_fragments"]
