"""Paint a DropdownState as prompt_toolkit style tuples.

The dropdown always occupies visible_count item rows plus one help line, so
the prompt never jumps while candidates come and go. Items describe
themselves through render_spec(); nothing here knows about providers.
"""

from __future__ import annotations

from prompt_toolkit.styles import Style

from hqlcomplete.completion.navigation import (
    has_items_above,
    has_items_below,
    relative_index,
    scroll_window,
)
from hqlcomplete.completion.state import DropdownState, selected_item
from hqlcomplete.completion.types import MAX_VISIBLE_ITEMS, HELP_DEFAULT, RenderSpec

Fragments = list[tuple[str, str]]

ELLIPSIS = "…"
MORE_ABOVE = "▲"
MORE_BELOW = "▼"

DROPDOWN_STYLE = Style.from_dict({
    "completion": "",
    "completion.selected": "reverse",
    "completion.match": "bold fg:ansicyan",
    "completion.icon": "fg:ansiblue",
    "completion.meta": "#808080",
    "completion.more": "#808080",
    "completion.help": "#606060 italic",
    "completion.loading": "fg:ansiyellow",
    "completion.doc": "#a8a8a8",
})


def truncate_label(label: str, max_width: int, mode: str = "end") -> str:
    """Shorten label to max_width with an ellipsis.

    "end" keeps the head (identifiers), "start" keeps the tail (file paths,
    where the filename matters most), "none" never truncates.
    """
    if mode == "none" or len(label) <= max_width:
        return label
    if max_width <= 1:
        return ELLIPSIS[:max_width]
    if mode == "start":
        return ELLIPSIS + label[len(label) - (max_width - 1):]
    return label[:max_width - 1] + ELLIPSIS


def _shift_indices(spec: RenderSpec, shown: str) -> set[int]:
    if not spec.match_indices:
        return set()
    if shown == spec.label:
        return set(spec.match_indices)
    if spec.truncate == "start":
        dropped = len(spec.label) - (len(shown) - 1)
        return {i - dropped + 1 for i in spec.match_indices if i >= dropped}
    return {i for i in spec.match_indices if i < len(shown) - 1}


def _label_fragments(spec: RenderSpec, base: str) -> Fragments:
    shown = truncate_label(spec.label, spec.max_width, spec.truncate)
    highlight = _shift_indices(spec, shown)
    if not highlight:
        return [(base, shown)]
    parts: Fragments = []
    run = ""
    run_hit = False
    for i, ch in enumerate(shown):
        hit = i in highlight
        if run and hit != run_hit:
            parts.append((f"{base} class:completion.match" if run_hit else base, run))
            run = ""
        run += ch
        run_hit = hit
    if run:
        parts.append((f"{base} class:completion.match" if run_hit else base, run))
    return parts


def render_row(spec: RenderSpec, selected: bool, width: int) -> Fragments:
    base = "class:completion.selected" if selected else "class:completion"
    marker = "› " if selected else "  "
    parts: Fragments = [(base, marker)]
    if spec.icon:
        parts.append((f"{base} class:completion.icon", spec.icon + " "))
    label = _label_fragments(spec, base)
    parts.extend(label)
    shown_len = sum(len(text) for _, text in label)
    meta = spec.description or spec.type_label
    if meta:
        parts.append((base, " " * max(1, width - shown_len + 1)))
        parts.append((f"{base} class:completion.meta", meta))
    return parts


def render_dropdown(
    state: DropdownState,
    visible_count: int = MAX_VISIBLE_ITEMS,
    help_text: str = HELP_DEFAULT,
) -> Fragments:
    """Render exactly visible_count item rows followed by a help line."""
    items = state.items if state.is_open else ()
    window = scroll_window(state.selected_index, len(items), visible_count)
    specs = [item.render_spec() for item in items[window.start:window.end]]
    width = max(
        (len(truncate_label(s.label, s.max_width, s.truncate)) for s in specs),
        default=0,
    )

    parts: Fragments = []
    for row in range(visible_count):
        if row < len(specs):
            selected = relative_index(state.selected_index, window) == row
            parts.extend(render_row(specs[row], selected, width))
            if row == 0 and has_items_above(window):
                parts.append(("class:completion.more", f" {MORE_ABOVE}"))
            if row == len(specs) - 1 and has_items_below(window, len(items)):
                parts.append(("class:completion.more", f" {MORE_BELOW}"))
        elif row == 0 and state.is_loading:
            parts.append(("class:completion.loading", "  searching" + ELLIPSIS))
        parts.append(("", "\n"))

    parts.append(("class:completion.help", help_text))
    return parts


def render_doc_panel(state: DropdownState) -> Fragments:
    """Extended documentation for the selected item, empty when hidden."""
    if not state.show_doc_panel:
        return []
    item = selected_item(state)
    if item is None:
        return []
    doc = item.render_spec().extended_doc
    if not doc:
        return []
    return [("class:completion.doc", doc)]
