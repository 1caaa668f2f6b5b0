"""Tests for item construction, default apply behavior and ranking."""

from __future__ import annotations

import pytest

from hqlcomplete.completion.items import create_item, item_ids, rank_completions, replace_span
from hqlcomplete.completion.types import (
    ApplyContext,
    CompletionAction,
    CompletionType,
    SideEffectType,
)
from hqlcomplete.exceptions import UnsupportedActionError


class TestDefaultApply:
    """create_item default apply: replace text[anchor:cursor] with the label."""

    def test_replaces_anchor_span(self):
        item = create_item("map", CompletionType.FUNCTION)
        result = item.apply(CompletionAction.SELECT, ApplyContext("(ma x", 3, 1))
        assert result.text == "(map  x"
        assert result.cursor_position == 5
        assert result.close_dropdown
        assert result.side_effect.type == SideEffectType.NONE

    def test_insert_text_without_space(self):
        item = create_item("Map", CompletionType.FUNCTION, insert_text="map", trailing_space=False)
        result = item.apply(CompletionAction.SELECT, ApplyContext("ma", 2, 0))
        assert result.text == "map"
        assert result.cursor_position == 3

    def test_unlisted_action_raises(self):
        item = create_item("map", CompletionType.FUNCTION)
        with pytest.raises(UnsupportedActionError) as exc:
            item.apply(CompletionAction.DRILL, ApplyContext("ma", 2, 0))
        assert exc.value.item_label == "map"
        assert exc.value.action == "DRILL"

    def test_apply_is_pure(self):
        """Same inputs, same result; the context is untouched."""
        item = create_item("map", CompletionType.FUNCTION)
        ctx = ApplyContext("(ma", 3, 1)
        assert item.apply(CompletionAction.SELECT, ctx) == item.apply(CompletionAction.SELECT, ctx)
        assert ctx == ApplyContext("(ma", 3, 1)


class TestRenderSpec:
    def test_default_render_spec(self):
        item = create_item("map", CompletionType.FUNCTION, description="(f coll)", match_indices=[0])
        spec = item.render_spec()
        assert spec.label == "map"
        assert spec.icon == "ƒ"
        assert spec.description == "(f coll)"
        assert spec.match_indices == (0,)


class TestReplaceSpan:
    def test_explicit_cursor_and_keep_open(self):
        result = replace_span(ApplyContext("@sr", 3, 0), "@src/", cursor=1, close_dropdown=False)
        assert result.text == "@src/"
        assert result.cursor_position == 1
        assert not result.close_dropdown


class TestItemIds:
    def test_sequence(self):
        ids = item_ids("file")
        assert [next(ids) for _ in range(3)] == ["file-1", "file-2", "file-3"]


class TestRankCompletions:
    """rank_completions: score desc, type priority, label asc."""

    def _items(self):
        return [
            create_item("zeta", CompletionType.FILE, score=50),
            create_item("beta", CompletionType.FUNCTION, score=100),
            create_item("alpha", CompletionType.FUNCTION, score=100),
            create_item("if", CompletionType.KEYWORD, score=100),
            create_item("mine", CompletionType.VARIABLE, score=110),
        ]

    def test_order(self):
        ranked = rank_completions(self._items())
        assert [i.label for i in ranked] == ["mine", "if", "alpha", "beta", "zeta"]

    def test_does_not_mutate_input(self):
        items = self._items()
        before = list(items)
        rank_completions(items)
        assert items == before

    def test_idempotent(self):
        once = rank_completions(self._items())
        assert rank_completions(once) == once
