"""Dropdown state machine.

reduce(state, action) is the only way a DropdownState changes. It is pure
and total: every action is valid in every state, and out-of-range requests
are no-ops.
"""

from __future__ import annotations

from dataclasses import dataclass, replace

from hqlcomplete.completion.types import CompletionItem, ProviderId


@dataclass(frozen=True)
class DropdownState:
    is_open: bool = False
    items: tuple[CompletionItem, ...] = ()
    selected_index: int = -1
    anchor_position: int = 0
    provider_id: ProviderId | None = None
    is_loading: bool = False
    original_text: str = ""
    original_cursor: int = 0
    show_doc_panel: bool = False


INITIAL_STATE = DropdownState()


@dataclass(frozen=True)
class Open:
    items: tuple[CompletionItem, ...]
    anchor: int
    provider_id: ProviderId
    original_text: str
    original_cursor: int


@dataclass(frozen=True)
class Close:
    pass


@dataclass(frozen=True)
class SetItems:
    items: tuple[CompletionItem, ...]


@dataclass(frozen=True)
class SelectNext:
    pass


@dataclass(frozen=True)
class SelectPrev:
    pass


@dataclass(frozen=True)
class SelectIndex:
    index: int


@dataclass(frozen=True)
class SetLoading:
    loading: bool


@dataclass(frozen=True)
class ToggleDocPanel:
    pass


Action = Open | Close | SetItems | SelectNext | SelectPrev | SelectIndex | SetLoading | ToggleDocPanel


def reduce(state: DropdownState, action: Action) -> DropdownState:
    if isinstance(action, Open):
        items = tuple(action.items)
        if not items:
            return INITIAL_STATE
        return DropdownState(
            is_open=True,
            items=items,
            selected_index=0,
            anchor_position=action.anchor,
            provider_id=action.provider_id,
            original_text=action.original_text,
            original_cursor=action.original_cursor,
            show_doc_panel=state.show_doc_panel,
        )

    if isinstance(action, Close):
        return INITIAL_STATE

    if isinstance(action, SetItems):
        items = tuple(action.items)
        if not items:
            return INITIAL_STATE
        selected = state.selected_index if 0 <= state.selected_index < len(items) else 0
        return replace(state, items=items, selected_index=selected, is_loading=False)

    if isinstance(action, (SelectNext, SelectPrev)):
        count = len(state.items)
        if count == 0:
            return state
        step = 1 if isinstance(action, SelectNext) else -1
        return replace(state, selected_index=(state.selected_index + step) % count)

    if isinstance(action, SelectIndex):
        if not 0 <= action.index < len(state.items):
            return state
        return replace(state, selected_index=action.index)

    if isinstance(action, SetLoading):
        return replace(state, is_loading=action.loading)

    if isinstance(action, ToggleDocPanel):
        return replace(state, show_doc_panel=not state.show_doc_panel)

    raise TypeError(f"unknown dropdown action: {action!r}")


def selected_item(state: DropdownState) -> CompletionItem | None:
    if not state.is_open or not 0 <= state.selected_index < len(state.items):
        return None
    return state.items[state.selected_index]


def is_active(state: DropdownState) -> bool:
    return state.is_open and bool(state.items)
