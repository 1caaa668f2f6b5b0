"""Tests for dropdown rendering."""

from __future__ import annotations

from hqlcomplete.completion.items import create_item
from hqlcomplete.completion.render import (
    DROPDOWN_STYLE,
    render_doc_panel,
    render_dropdown,
    render_row,
    truncate_label,
)
from hqlcomplete.completion.state import INITIAL_STATE, Open, SelectIndex, SetLoading, ToggleDocPanel, reduce
from hqlcomplete.completion.types import CompletionType, ProviderId, RenderSpec


def lines(parts):
    return "".join(text for _, text in parts).split("\n")


def state_with(labels, selected=0):
    items = tuple(create_item(label, CompletionType.FUNCTION) for label in labels)
    state = reduce(INITIAL_STATE, Open(items, 0, ProviderId.SYMBOL, "", 0))
    return reduce(state, SelectIndex(selected))


class TestTruncateLabel:
    def test_end(self):
        assert truncate_label("abcdefgh", 5) == "abcd…"

    def test_start_keeps_filename(self):
        assert truncate_label("src/deep/file.ts", 8, "start") == "…file.ts"

    def test_none(self):
        assert truncate_label("abcdefgh", 3, "none") == "abcdefgh"

    def test_fits(self):
        assert truncate_label("abc", 3) == "abc"

    def test_tiny_width(self):
        assert truncate_label("abcdef", 1) == "…"


class TestRenderRow:
    """render_row: marker, icon, highlighted label and meta column."""

    def test_highlights_matches(self):
        spec = RenderSpec(icon="", label="map", match_indices=(0, 1))
        parts = render_row(spec, False, 3)
        assert parts == [
            ("class:completion", "  "),
            ("class:completion class:completion.match", "ma"),
            ("class:completion", "p"),
        ]

    def test_highlight_follows_start_truncation(self):
        spec = RenderSpec(icon="", label="src/deep/file.ts", truncate="start", max_width=8, match_indices=(9, 10))
        parts = render_row(spec, False, 8)
        hits = [text for style, text in parts if "completion.match" in style]
        assert hits == ["fi"]

    def test_selected_marker_and_meta(self):
        spec = RenderSpec(icon="ƒ", label="map", description="(f coll)")
        parts = render_row(spec, True, 6)
        text = "".join(t for _, t in parts)
        assert text.startswith("› ƒ map")
        assert text.endswith("(f coll)")
        assert all(style.startswith("class:completion.selected") for style, _ in parts)


class TestRenderDropdown:
    """render_dropdown: fixed height, scroll indicators and loading row."""

    def test_scenario_fifteen_of_twenty(self):
        state = state_with([f"item{i:02d}" for i in range(20)], selected=15)
        rows = lines(render_dropdown(state, 4, "help"))
        assert len(rows) == 5
        assert "item13" in rows[0] and "▲" in rows[0]
        assert rows[2].startswith("› ") and "item15" in rows[2]
        assert "item16" in rows[3] and "▼" in rows[3]
        assert rows[4] == "help"

    def test_fixed_height_when_short(self):
        rows = lines(render_dropdown(state_with(["a"]), 4))
        assert len(rows) == 5
        assert rows[1:4] == ["", "", ""]

    def test_closed_renders_blank_rows(self):
        rows = lines(render_dropdown(INITIAL_STATE, 4, "help"))
        assert rows == ["", "", "", "", "help"]

    def test_loading_row(self):
        rows = lines(render_dropdown(reduce(INITIAL_STATE, SetLoading(True)), 4))
        assert rows[0] == "  searching…"

    def test_style_defines_classes(self):
        names = {name for name, _ in DROPDOWN_STYLE.style_rules}
        assert "completion.selected" in names
        assert "completion.match" in names


class TestDocPanel:
    def _state(self, doc):
        item = create_item(
            "map",
            CompletionType.FUNCTION,
            render_spec=lambda: RenderSpec(icon="ƒ", label="map", extended_doc=doc),
        )
        return reduce(INITIAL_STATE, Open((item,), 0, ProviderId.SYMBOL, "m", 1))

    def test_hidden_by_default(self):
        assert render_doc_panel(self._state("Apply f.")) == []

    def test_shows_selected_doc(self):
        state = reduce(self._state("Apply f."), ToggleDocPanel())
        assert render_doc_panel(state) == [("class:completion.doc", "Apply f.")]

    def test_no_doc(self):
        assert render_doc_panel(reduce(self._state(None), ToggleDocPanel())) == []
