"""Tests for word extraction, string detection and enclosing-form detection."""

from __future__ import annotations

import pytest

from hqlcomplete.completion.context import (
    WORD_BOUNDARY_CHARS,
    build_context,
    detect_enclosing_form,
    extract_word,
    is_inside_string,
)
from hqlcomplete.completion.types import EnclosingForm


class TestExtractWord:
    """extract_word: scan left from the cursor to the nearest boundary."""

    def test_word_after_paren(self):
        assert extract_word("(ma", 3) == ("ma", 1)

    def test_empty_at_boundary(self):
        """Cursor right after a boundary yields an empty word at the cursor."""
        assert extract_word("(map ", 5) == ("", 5)

    def test_cursor_mid_word(self):
        """Only the part before the cursor counts."""
        assert extract_word("filter", 3) == ("fil", 0)

    def test_at_sign_is_part_of_word(self):
        assert extract_word("see @src/fi", 11) == ("@src/fi", 4)

    def test_cursor_clamped(self):
        assert extract_word("abc", 99) == ("abc", 0)

    @pytest.mark.parametrize("text", [
        "(let [x 1] (print x))",
        "a, b; 'c' \"d\"",
        "{:k v}\n(fn\t[y])",
    ])
    def test_invariants_hold_for_every_cursor(self, text):
        """start <= cursor, text[start:cursor] == word, no boundary chars in word."""
        for cursor in range(len(text) + 1):
            word, start = extract_word(text, cursor)
            assert start <= cursor
            assert text[start:cursor] == word
            assert not set(word) & WORD_BOUNDARY_CHARS


class TestIsInsideString:
    """is_inside_string: odd count of unescaped double quotes."""

    def test_outside(self):
        assert not is_inside_string('(print "hi")', 12)

    def test_inside(self):
        assert is_inside_string('(print "hi', 10)

    def test_escaped_quote_ignored(self):
        text = '(print "a\\"b'
        assert is_inside_string(text, len(text))


class TestDetectEnclosingForm:
    """detect_enclosing_form: innermost unclosed ( with name and arg index."""

    def test_first_argument(self):
        assert detect_enclosing_form("(forget sq", 10) == EnclosingForm("forget", 0)

    def test_second_argument(self):
        assert detect_enclosing_form("(map fn coll", 12) == EnclosingForm("map", 1)

    def test_nested_group_counts_once(self):
        assert detect_enclosing_form("(let [x 1] ", 11) == EnclosingForm("let", 1)

    def test_innermost_form_wins(self):
        assert detect_enclosing_form("(map (filter ev", 15) == EnclosingForm("filter", 0)

    def test_closed_form_is_not_enclosing(self):
        assert detect_enclosing_form("(inc 1) x", 9) is None

    def test_vector_is_not_a_form(self):
        assert detect_enclosing_form("[a b", 4) is None

    def test_no_name(self):
        assert detect_enclosing_form("( ", 2) is None

    def test_inside_string(self):
        assert detect_enclosing_form('(forget "sq', 11) is None


class TestBuildContext:
    """build_context: snapshot with derived fields and frozen side tables."""

    def test_derived_fields(self):
        ctx = build_context("(forget sq", 10, memory_names=["square"])
        assert ctx.text_before_cursor == "(forget sq"
        assert ctx.current_word == "sq"
        assert ctx.word_start == 8
        assert ctx.enclosing_form == EnclosingForm("forget", 0)
        assert ctx.memory_names == frozenset({"square"})
        assert not ctx.is_inside_string

    def test_signatures_become_tuples(self):
        ctx = build_context("x", 1, signatures={"add": ["a", "b"]})
        assert ctx.signatures["add"] == ("a", "b")

    def test_side_tables_are_read_only(self):
        ctx = build_context("x", 1, docstrings={"x": "doc"})
        with pytest.raises(TypeError):
            ctx.docstrings["y"] = "nope"
