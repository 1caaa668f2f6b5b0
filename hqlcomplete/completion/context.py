"""Context extraction: current word, string state and enclosing form.

Pure functions over (text, cursor). build_context() composes them with the
caller's side tables into the CompletionContext providers consume.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from types import MappingProxyType

from hqlcomplete.completion.types import CompletionContext, EnclosingForm

WORD_BOUNDARY_CHARS = frozenset(" \t\n\r()[]{}\"',;")

OPENERS = "([{"
CLOSERS = ")]}"

_FORM_NAME = re.compile(r"[a-zA-Z_][a-zA-Z0-9_?!-]*")


def extract_word(text: str, cursor: int) -> tuple[str, int]:
    """Return (word, start) for the word ending at cursor.

    start is the first non-boundary index scanning left from cursor, so
    text[start:cursor] == word always holds.
    """
    cursor = max(0, min(cursor, len(text)))
    start = cursor
    while start > 0 and text[start - 1] not in WORD_BOUNDARY_CHARS:
        start -= 1
    return text[start:cursor], start


def is_inside_string(text: str, cursor: int) -> bool:
    """True when an odd number of unescaped double quotes precede cursor."""
    quotes = 0
    i = 0
    while i < cursor:
        ch = text[i]
        if ch == "\\" and i + 1 < cursor:
            i += 2
            continue
        if ch == '"':
            quotes += 1
        i += 1
    return quotes % 2 == 1


def _find_open_paren(before: str) -> int:
    depth = 0
    for i in range(len(before) - 1, -1, -1):
        ch = before[i]
        if ch in CLOSERS:
            depth += 1
        elif ch in OPENERS:
            if depth == 0:
                return i
            depth -= 1
    return -1


def _count_args(section: str) -> int:
    arg_index = 0
    in_word = False
    i = 0
    n = len(section)
    while i < n:
        ch = section[i]
        if ch in " \t\n":
            if in_word:
                arg_index += 1
                in_word = False
        elif ch in OPENERS:
            # A nested group counts as one argument.
            in_word = True
            depth = 1
            i += 1
            while i < n and depth > 0:
                if section[i] in OPENERS:
                    depth += 1
                elif section[i] in CLOSERS:
                    depth -= 1
                i += 1
            continue
        elif ch == '"':
            in_word = True
            i += 1
            while i < n and section[i] != '"':
                if section[i] == "\\":
                    i += 1
                i += 1
        else:
            in_word = True
        i += 1
    return arg_index


def detect_enclosing_form(text: str, cursor: int) -> EnclosingForm | None:
    """Find the innermost unclosed ( form around cursor.

    (forget sq|)   -> EnclosingForm("forget", 0)
    (map fn coll|) -> EnclosingForm("map", 1)
    [a b|]         -> None, only parenthesised forms have a name
    """
    if is_inside_string(text, cursor):
        return None
    before = text[:cursor]
    open_pos = _find_open_paren(before)
    if open_pos == -1 or before[open_pos] != "(":
        return None
    m = _FORM_NAME.match(before, open_pos + 1)
    if m is None:
        return None
    return EnclosingForm(name=m.group(0), arg_index=_count_args(before[m.end():]))


def build_context(
    text: str,
    cursor: int,
    *,
    user_bindings: Iterable[str] = (),
    signatures: Mapping[str, Iterable[str]] | None = None,
    docstrings: Mapping[str, str] | None = None,
    memory_names: Iterable[str] = (),
) -> CompletionContext:
    cursor = max(0, min(cursor, len(text)))
    word, start = extract_word(text, cursor)
    sigs = {name: tuple(params) for name, params in (signatures or {}).items()}
    return CompletionContext(
        text=text,
        cursor_position=cursor,
        text_before_cursor=text[:cursor],
        current_word=word,
        word_start=start,
        user_bindings=frozenset(user_bindings),
        signatures=MappingProxyType(sigs),
        docstrings=MappingProxyType(dict(docstrings or {})),
        memory_names=frozenset(memory_names),
        is_inside_string=is_inside_string(text, cursor),
        enclosing_form=detect_enclosing_form(text, cursor),
    )
