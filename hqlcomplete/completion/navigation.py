"""Key handling and scroll windowing for the open dropdown.

Keys use prompt_toolkit names (Keys.Up, Keys.Tab, ...); the aliases
prompt_toolkit accepts in key bindings ("tab", "enter", "backspace") work
too. Nothing here mutates state: callers feed new_index back through
SelectIndex and route the action to the selected item.
"""

from __future__ import annotations

from prompt_toolkit.keys import KEY_ALIASES, Keys

from hqlcomplete.completion.types import (
    MAX_VISIBLE_ITEMS,
    NavAction,
    NavigationResult,
    ScrollWindow,
)

NAVIGATION_KEYS = frozenset({
    Keys.Up.value,
    Keys.Down.value,
    Keys.Tab.value,
    Keys.BackTab.value,
    Keys.Enter.value,
    Keys.Escape.value,
})

_DELETE_KEYS = frozenset({Keys.Backspace.value, Keys.Delete.value})


def normalize_key(key: str | Keys) -> str:
    name = key.value if isinstance(key, Keys) else key
    return KEY_ALIASES.get(name, name)


def wrap_index(index: int, count: int) -> int:
    if count == 0:
        return -1
    return index % count


def handle_key(
    key: str | Keys,
    selected_index: int,
    item_count: int,
    is_open: bool,
    shift: bool = False,
) -> NavigationResult:
    """Map a key press to a navigation action and the index it implies.

    A closed or empty dropdown ignores every key.
    """
    if not is_open or item_count == 0:
        return NavigationResult(selected_index, NavAction.NONE)
    name = normalize_key(key)
    if name == Keys.Up.value:
        return NavigationResult(wrap_index(selected_index - 1, item_count), NavAction.NAVIGATE)
    if name == Keys.Down.value:
        return NavigationResult(wrap_index(selected_index + 1, item_count), NavAction.NAVIGATE)
    if name in (Keys.Tab.value, Keys.BackTab.value):
        return NavigationResult(selected_index, NavAction.DRILL)
    if name == Keys.Enter.value:
        return NavigationResult(selected_index, NavAction.SELECT)
    if name == Keys.Escape.value:
        return NavigationResult(-1, NavAction.CANCEL)
    return NavigationResult(selected_index, NavAction.NONE)


def scroll_window(
    selected_index: int,
    item_count: int,
    visible_count: int = MAX_VISIBLE_ITEMS,
) -> ScrollWindow:
    """Visible slice centred on the selection, clamped to the list.

    Once item_count >= visible_count the window always holds exactly
    visible_count rows and contains the selection.
    """
    if item_count <= visible_count:
        return ScrollWindow(0, item_count)
    start = max(0, selected_index - visible_count // 2)
    end = start + visible_count
    if end > item_count:
        end = item_count
        start = max(0, end - visible_count)
    return ScrollWindow(start, end)


def has_items_above(window: ScrollWindow) -> bool:
    return window.start > 0


def has_items_below(window: ScrollWindow, total: int) -> bool:
    return window.end < total


def relative_index(index: int, window: ScrollWindow) -> int:
    if index < window.start or index >= window.end:
        return -1
    return index - window.start


def is_navigation_key(key: str | Keys) -> bool:
    return normalize_key(key) in NAVIGATION_KEYS


def should_close_on_input(key: str | Keys, char: str = "") -> bool:
    """True when a key edits the buffer, which invalidates the open dropdown."""
    if is_navigation_key(key):
        return False
    if len(char) == 1:
        return True
    return normalize_key(key) in _DELETE_KEYS
