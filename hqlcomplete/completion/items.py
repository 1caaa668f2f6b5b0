"""Item construction, default apply/render behavior and ranking."""

from __future__ import annotations

import itertools
from collections.abc import Iterable, Iterator, Mapping
from types import MappingProxyType

from hqlcomplete.completion.types import (
    RENDER_MAX_WIDTH,
    TYPE_ICONS,
    TYPE_PRIORITY,
    ApplyContext,
    ApplyFn,
    ApplyResult,
    CompletionAction,
    CompletionItem,
    CompletionType,
    RenderFn,
    RenderSpec,
    SideEffect,
    NO_SIDE_EFFECT,
)


def item_ids(prefix: str = "item") -> Iterator[str]:
    """Fresh id sequence for one query: prefix-1, prefix-2, ..."""
    return (f"{prefix}-{n}" for n in itertools.count(1))


def replace_span(
    ctx: ApplyContext,
    insert: str,
    *,
    cursor: int | None = None,
    close_dropdown: bool = True,
    side_effect: SideEffect = NO_SIDE_EFFECT,
) -> ApplyResult:
    """Replace text[anchor:cursor] with insert.

    The new cursor defaults to the end of the inserted text.
    """
    before = ctx.text[:ctx.anchor_position]
    after = ctx.text[ctx.cursor_position:]
    return ApplyResult(
        text=before + insert + after,
        cursor_position=ctx.anchor_position + len(insert) if cursor is None else cursor,
        close_dropdown=close_dropdown,
        side_effect=side_effect,
    )


def default_apply(insert_text: str, trailing_space: bool = True) -> ApplyFn:
    suffix = " " if trailing_space else ""

    def apply(action: CompletionAction, ctx: ApplyContext) -> ApplyResult:
        return replace_span(ctx, insert_text + suffix)

    return apply


def default_render(
    label: str,
    type: CompletionType,
    description: str | None = None,
    truncate: str = "end",
    max_width: int = RENDER_MAX_WIDTH["default"],
    type_label: str | None = None,
    match_indices: tuple[int, ...] | None = None,
) -> RenderFn:
    spec = RenderSpec(
        icon=TYPE_ICONS[type],
        label=label,
        truncate=truncate,
        max_width=max_width,
        description=description,
        type_label=type_label,
        match_indices=match_indices,
    )
    return lambda: spec


def create_item(
    label: str,
    type: CompletionType,
    *,
    id: str | None = None,
    score: float = 100,
    description: str | None = None,
    match_indices: Iterable[int] | None = None,
    metadata: Mapping[str, object] | None = None,
    insert_text: str | None = None,
    trailing_space: bool = True,
    available_actions: Iterable[CompletionAction] = (CompletionAction.SELECT,),
    apply_action: ApplyFn | None = None,
    render_spec: RenderFn | None = None,
    truncate: str = "end",
    max_width: int = RENDER_MAX_WIDTH["default"],
    type_label: str | None = None,
) -> CompletionItem:
    """Build a CompletionItem, filling in default apply and render behavior.

    Without apply_action, any action replaces the anchor span with
    insert_text (default: the label) plus an optional trailing space.
    """
    indices = tuple(match_indices) if match_indices is not None else None
    return CompletionItem(
        id=id or f"{type.value}-{label}",
        label=label,
        type=type,
        score=score,
        description=description,
        match_indices=indices,
        metadata=MappingProxyType(dict(metadata or {})),
        available_actions=frozenset(available_actions),
        apply_action=apply_action or default_apply(insert_text or label, trailing_space),
        render_spec=render_spec or default_render(
            label, type, description, truncate, max_width, type_label, indices,
        ),
    )


def _rank_key(item: CompletionItem) -> tuple[float, int, str]:
    return (-item.score, TYPE_PRIORITY[item.type], item.label)


def rank_completions(items: Iterable[CompletionItem]) -> list[CompletionItem]:
    """Score descending, then type priority, then label. Returns a new list."""
    return sorted(items, key=_rank_key)
