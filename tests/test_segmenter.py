"""Tests for marker segmentation of raw model responses."""

from __future__ import annotations

import pytest

from codetutor.analysis.segmenter import TokenKind, parse_line_number, segment_response, tokenize


class TestTokenize:
    def test_classifies_marker_and_text_lines(self) -> None:
        tokens = list(tokenize("intro\nLine 2: Rename\nbody"))

        assert [token.kind for token in tokens] == [TokenKind.TEXT, TokenKind.MARKER, TokenKind.TEXT]
        assert tokens[1].number_text == "2"
        assert tokens[1].title == "Rename"

    @pytest.mark.parametrize(
        "line",
        [
            "line 2: lowercase keyword",
            "Lines 2: plural keyword",
            "  Line 2: indented",
            "Line2: no whitespace",
            "Line 2 no colon",
            "Line endings: prefer LF",
            "Line three: spelled out",
        ],
    )
    def test_non_markers(self, line: str) -> None:
        assert [token.kind for token in tokenize(line)] == [TokenKind.TEXT]


class TestParseLineNumber:
    @pytest.mark.parametrize(
        ("text", "expected"),
        [("3", 3), ("12", 12), ("3-5", 3), ("three", None), ("x3", None)],
    )
    def test_leading_integer(self, text: str, expected: int | None) -> None:
        assert parse_line_number(text) == expected


class TestSegmentResponse:
    def test_empty_and_markerless_responses_yield_no_spans(self) -> None:
        assert segment_response("") == []
        assert segment_response(None) == []
        assert segment_response("Just some prose.\n\nMore prose.") == []

    def test_preamble_belongs_to_no_span(self) -> None:
        spans = segment_response("Here are my thoughts:\nLine 1: First\nDetail")

        assert len(spans) == 1
        assert spans[0].line_number == 1
        assert spans[0].title == "First"
        assert "Here are my thoughts" not in spans[0].text
        assert spans[0].body == "Detail"

    def test_spans_run_until_next_marker(self) -> None:
        response = "Line 1: A\none\nLine 4: B\ntwo\nthree\nLine 2: C"

        spans = segment_response(response)

        assert [span.line_number for span in spans] == [1, 4, 2]
        assert [span.title for span in spans] == ["A", "B", "C"]
        assert spans[1].body == "two\nthree"
        assert spans[2].body == ""

    def test_prose_starting_with_line_stays_in_current_span(self) -> None:
        spans = segment_response("Line 3: Fix loop\nLine endings: prefer LF here\nmore text\n")

        assert [span.line_number for span in spans] == [3]
        assert spans[0].body == "Line endings: prefer LF here\nmore text"

    def test_ranged_marker_anchors_to_first_line(self) -> None:
        spans = segment_response("Line 3-5: Extract helper\nbody")

        assert [span.line_number for span in spans] == [3]
        assert spans[0].number_text == "3-5"

    def test_handles_crlf_line_endings(self) -> None:
        spans = segment_response("Line 2: Title\r\nbody\r\n")

        assert spans[0].title == "Title"
        assert spans[0].body == "body"
