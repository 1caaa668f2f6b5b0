"""Tests for the prompt_toolkit Completer adapter."""

from __future__ import annotations

import pytest
from prompt_toolkit.completion import CompleteEvent
from prompt_toolkit.document import Document

from hqlcomplete.completion.complete import EngineCompleter, insertion_text
from hqlcomplete.completion.index import FileIndexer
from hqlcomplete.completion.items import create_item
from hqlcomplete.completion.providers import (
    CommandProvider,
    FileProvider,
    LanguageRegistry,
    ProviderRegistry,
    SymbolProvider,
)
from hqlcomplete.completion.session import CompletionSession
from hqlcomplete.completion.types import CompletionType

LANG = LanguageRegistry(functions=frozenset({"map", "mapcat"}))


@pytest.fixture
def completer(tmp_path):
    (tmp_path / "src").mkdir()
    (tmp_path / "src" / "file.ts").write_text("")
    registry = ProviderRegistry([
        FileProvider(FileIndexer(tmp_path), debounce_ms=0),
        CommandProvider(),
        SymbolProvider(LANG),
    ])
    return EngineCompleter(CompletionSession(registry))


class TestEngineCompleter:
    def test_symbols(self, completer):
        completions = list(completer.get_completions(Document("(ma", 3), CompleteEvent()))
        assert [c.text for c in completions] == ["map ", "mapcat "]
        assert completions[0].start_position == -2
        assert completions[0].display_text == "ƒ map"
        assert completions[0].display_meta_text == "fn"

    def test_no_provider(self, completer):
        assert list(completer.get_completions(Document("(map ", 5), CompleteEvent())) == []

    def test_commands(self, completer):
        completions = list(completer.get_completions(Document("/cl", 3), CompleteEvent()))
        assert [c.text for c in completions] == ["/clear "]
        assert completions[0].display_meta_text == "Clear the screen"

    @pytest.mark.asyncio
    async def test_files_async(self, completer):
        completions = [
            c async for c in completer.get_completions_async(Document("@src/fi", 7), CompleteEvent())
        ]
        assert completions[0].text == "@src/file.ts "
        assert completions[0].start_position == -7


class TestInsertionText:
    def test_slices_inserted_span(self):
        item = create_item("map", CompletionType.FUNCTION)
        assert insertion_text(item, "(ma)", 3, 1) == "map "

    def test_falls_back_to_label(self):
        """An apply that rewrites outside the span yields the bare label."""
        from hqlcomplete.completion.types import ApplyResult

        item = create_item(
            "map",
            CompletionType.FUNCTION,
            apply_action=lambda action, ctx: ApplyResult(text="other", cursor_position=0),
        )
        assert insertion_text(item, "(ma)", 3, 1) == "map"
