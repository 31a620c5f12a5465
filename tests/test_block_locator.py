"""Tests for the heuristic structural block locator."""

from __future__ import annotations

import pytest

from codetutor.core.ranges import LineRange
from codetutor.editor.block_locator import HeuristicBlockLocator, is_continuation, is_declaration, iter_code_chars
from codetutor.editor.document_model import SourceBuffer

JS_SOURCE = [
    "import fs from 'fs';",            # 0
    "",                                # 1
    "function load(path) {",           # 2
    "  const text = fs.read(path);",   # 3
    "  if (!text) {",                  # 4
    "    return null;",                # 5
    "  } else {",                      # 6
    "    log('ok');",                  # 7
    "  }",                             # 8
    "  return text;",                  # 9
    "}",                               # 10
    "",                                # 11
    "const done = true;",              # 12
]

PY_SOURCE = [
    "import os",                       # 0
    "",                                # 1
    "def first(a):",                   # 2
    "    total = a + 1",               # 3
    "",                                # 4
    "    return total",                # 5
    "",                                # 6
    "def second(b):",                  # 7
    "    if b:",                       # 8
    "        return 1",                # 9
    "    else:",                       # 10
    "        return 2",                # 11
    "x = second(1)",                   # 12
]


@pytest.fixture
def locator() -> HeuristicBlockLocator:
    return HeuristicBlockLocator()


class TestPatterns:
    @pytest.mark.parametrize(
        "line",
        [
            "function foo() {",
            "async function foo() {",
            "class Foo:",
            "  def foo(self):",
            "async def foo():",
            "if (x) {",
            "for item in items:",
            "export default foo;",
            "import os",
            "from os import path",
            "const f = (a, b) => a + b;",
            "let g = function () {",
            "public static void main(String[] args) {",
            "fn main() {",
        ],
    )
    def test_declarations(self, line: str) -> None:
        assert is_declaration(line)

    @pytest.mark.parametrize("line", ["x = 1", "return value", "const total = 4;", "// function foo"])
    def test_non_declarations(self, line: str) -> None:
        assert not is_declaration(line)

    @pytest.mark.parametrize("line", ["} else {", "else:", "elif x:", "except ValueError:", ".then(f)", "&& ok", "+ 1", ")"])
    def test_continuations(self, line: str) -> None:
        assert is_continuation(line)

    def test_code_chars_skip_strings_and_comments(self) -> None:
        assert "".join(iter_code_chars("a('{') // }")) == "a() "
        assert "".join(iter_code_chars('s = "\\"{"; {')) == "s = ; {"

    def test_hash_comments_are_skipped(self) -> None:
        assert "".join(iter_code_chars("def f():  # {")) == "def f():  "
        assert "".join(iter_code_chars("# }")) == ""
        assert "".join(iter_code_chars("this.#count {")) == "this.#count {"
        assert "".join(iter_code_chars("s = '#{'")) == "s = "


class TestBraceBlocks:
    def test_cursor_inside_function_selects_whole_function(self, locator: HeuristicBlockLocator) -> None:
        assert locator.locate(JS_SOURCE, 3) == LineRange(2, 10)

    def test_cursor_on_declaration(self, locator: HeuristicBlockLocator) -> None:
        assert locator.locate(JS_SOURCE, 2) == LineRange(2, 10)

    def test_nested_block_containing_cursor(self, locator: HeuristicBlockLocator) -> None:
        assert locator.locate(JS_SOURCE, 5) == LineRange(4, 8)

    def test_else_does_not_close_block(self, locator: HeuristicBlockLocator) -> None:
        assert locator.block_end(JS_SOURCE, 4) == 8

    def test_statement_after_closed_block(self, locator: HeuristicBlockLocator) -> None:
        assert locator.locate(JS_SOURCE, 9) == LineRange(9, 9)

    def test_brace_on_next_line(self, locator: HeuristicBlockLocator) -> None:
        lines = ["function main()", "{", "  return 0;", "}", "var x;"]

        assert locator.locate(lines, 2) == LineRange(0, 3)

    def test_braces_in_strings_are_ignored(self, locator: HeuristicBlockLocator) -> None:
        lines = ["function f() {", "  const s = '}';", "  return s;", "}"]

        assert locator.block_end(lines, 0) == 3

    def test_unbalanced_block_is_capped(self) -> None:
        lines = ["function f() {"] + [f"  step{index}();" for index in range(40)]

        assert HeuristicBlockLocator().block_end(lines, 0) == 20
        assert HeuristicBlockLocator(scan_limit=5).block_end(lines, 0) == 5


class TestIndentBlocks:
    def test_python_function_skips_blank_lines(self, locator: HeuristicBlockLocator) -> None:
        assert locator.locate(PY_SOURCE, 3) == LineRange(2, 5)

    def test_else_continues_block(self, locator: HeuristicBlockLocator) -> None:
        assert locator.locate(PY_SOURCE, 9) == LineRange(8, 11)

    def test_outer_function(self, locator: HeuristicBlockLocator) -> None:
        assert locator.block_end(PY_SOURCE, 7) == 11

    def test_flat_statement_is_its_own_block(self, locator: HeuristicBlockLocator) -> None:
        assert locator.locate(PY_SOURCE, 12) == LineRange(12, 12)

    def test_block_running_to_end_of_buffer(self, locator: HeuristicBlockLocator) -> None:
        lines = ["def f():", "    a = 1", "    b = 2"]

        assert locator.locate(lines, 1) == LineRange(0, 2)

    def test_brace_in_hash_comment_keeps_indent_mode(self, locator: HeuristicBlockLocator) -> None:
        lines = ["def f():  # {", "    return 1", "x = 2"]

        assert locator.block_end(lines, 0) == 1
        assert locator.locate(lines, 1) == LineRange(0, 1)


class TestLocateContract:
    @pytest.mark.parametrize("cursor", range(len(JS_SOURCE)))
    def test_range_contains_cursor_js(self, locator: HeuristicBlockLocator, cursor: int) -> None:
        result = locator.locate(JS_SOURCE, cursor)

        assert result.contains(cursor)
        assert 0 <= result.start <= result.end < len(JS_SOURCE)

    @pytest.mark.parametrize("cursor", range(len(PY_SOURCE)))
    def test_range_contains_cursor_py(self, locator: HeuristicBlockLocator, cursor: int) -> None:
        result = locator.locate(PY_SOURCE, cursor)

        assert result.contains(cursor)
        assert 0 <= result.start <= result.end < len(PY_SOURCE)

    def test_accepts_source_buffer_and_clamps_cursor(self, locator: HeuristicBlockLocator) -> None:
        buffer = SourceBuffer(lines=list(PY_SOURCE))

        assert locator.locate(buffer, 99) == LineRange(12, 12)
        assert locator.locate(buffer, -3).start == 0

    def test_empty_input(self, locator: HeuristicBlockLocator) -> None:
        assert locator.locate([], 4) == LineRange(0, 0)
