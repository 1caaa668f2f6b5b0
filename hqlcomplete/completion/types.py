"""Completion records, enums and per-type display tables.

Every provider produces CompletionItems; every consumer (state machine,
render layer, host editor) reads them. Items carry their own behavior:
apply_action turns (action, ApplyContext) into an ApplyResult and
render_spec describes how the item should be painted.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType

from hqlcomplete.exceptions import UnsupportedActionError


class CompletionType(Enum):
    """Kind of candidate, drives icon, label and tie-break priority."""

    KEYWORD = "keyword"
    FUNCTION = "function"
    VARIABLE = "variable"
    MACRO = "macro"
    OPERATOR = "operator"
    FILE = "file"
    DIRECTORY = "directory"
    COMMAND = "command"


class CompletionAction(Enum):
    """What the user asked to do with the selected item.

    DRILL goes deeper (Tab on a directory), SELECT is the smart completion,
    INSERT is plain label insertion.
    """

    DRILL = "DRILL"
    SELECT = "SELECT"
    INSERT = "INSERT"


class SideEffectType(Enum):
    """Closed set of host-visible side effects. Hosts must switch exhaustively."""

    ADD_ATTACHMENT = "ADD_ATTACHMENT"
    ENTER_PLACEHOLDER_MODE = "ENTER_PLACEHOLDER_MODE"
    EXECUTE = "EXECUTE"
    NONE = "NONE"


class ProviderId(Enum):
    SYMBOL = "symbol"
    FILE = "file"
    COMMAND = "command"


class NavAction(Enum):
    """Semantic result of a key press while the dropdown is open."""

    NAVIGATE = "navigate"
    DRILL = "drill"
    SELECT = "select"
    CANCEL = "cancel"
    NONE = "none"


@dataclass(frozen=True)
class SideEffect:
    type: SideEffectType
    path: str | None = None
    params: tuple[str, ...] = ()
    start_pos: int | None = None


NO_SIDE_EFFECT = SideEffect(SideEffectType.NONE)


@dataclass(frozen=True)
class ApplyContext:
    """Buffer snapshot an item is applied against.

    text[anchor_position:cursor_position] is the span being replaced.
    """

    text: str
    cursor_position: int
    anchor_position: int


@dataclass(frozen=True)
class ApplyResult:
    text: str
    cursor_position: int
    close_dropdown: bool = True
    side_effect: SideEffect = NO_SIDE_EFFECT


@dataclass(frozen=True)
class RenderSpec:
    """How to paint one dropdown row. Providers choose; the renderer obeys."""

    icon: str
    label: str
    truncate: str = "end"  # "start" | "end" | "none"
    max_width: int = 40
    description: str | None = None
    type_label: str | None = None
    match_indices: tuple[int, ...] | None = None
    extended_doc: str | None = None


ApplyFn = Callable[[CompletionAction, ApplyContext], ApplyResult]
RenderFn = Callable[[], RenderSpec]


@dataclass(frozen=True)
class CompletionItem:
    """One ranked candidate. Ephemeral: regenerated on every query."""

    id: str
    label: str
    type: CompletionType
    score: float
    apply_action: ApplyFn = field(compare=False, repr=False)
    render_spec: RenderFn = field(compare=False, repr=False)
    available_actions: frozenset[CompletionAction] = frozenset({CompletionAction.SELECT})
    description: str | None = None
    match_indices: tuple[int, ...] | None = None
    metadata: Mapping[str, object] = field(
        default_factory=lambda: MappingProxyType({}), compare=False, repr=False,
    )

    def supports(self, action: CompletionAction) -> bool:
        return action in self.available_actions

    def apply(self, action: CompletionAction, ctx: ApplyContext) -> ApplyResult:
        """Apply action, rejecting actions this item never advertised."""
        if action not in self.available_actions:
            raise UnsupportedActionError(
                f"{self.label!r} does not support {action.value}",
                item_label=self.label,
                action=action.value,
            )
        return self.apply_action(action, ctx)


@dataclass(frozen=True)
class EnclosingForm:
    """The ( form around the cursor: (forget sq|) -> name="forget", arg_index=0."""

    name: str
    arg_index: int


@dataclass(frozen=True)
class CompletionContext:
    """Immutable per-keystroke snapshot handed to providers."""

    text: str
    cursor_position: int
    text_before_cursor: str
    current_word: str
    word_start: int
    user_bindings: frozenset[str] = frozenset()
    signatures: Mapping[str, tuple[str, ...]] = field(
        default_factory=lambda: MappingProxyType({})
    )
    docstrings: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    memory_names: frozenset[str] = frozenset()
    is_inside_string: bool = False
    enclosing_form: EnclosingForm | None = None


@dataclass(frozen=True)
class CompletionResult:
    items: tuple[CompletionItem, ...]
    anchor: int
    is_loading: bool = False


@dataclass(frozen=True)
class ScrollWindow:
    """Visible slice [start, end) of the item list."""

    start: int
    end: int


@dataclass(frozen=True)
class NavigationResult:
    new_index: int
    action: NavAction


# Fixed at 4 so the dropdown never changes height while typing.
MAX_VISIBLE_ITEMS = 4

COMPLETION_DEBOUNCE_MS = 150

ATTACHMENT_PLACEHOLDER = "{{ATTACHMENT}}"

USER_BINDING_SCORE = 110
STDLIB_SCORE = 100
COMMAND_BASE_SCORE = 100

TYPE_ICONS: dict[CompletionType, str] = {
    CompletionType.KEYWORD: "●",
    CompletionType.FUNCTION: "ƒ",
    CompletionType.VARIABLE: "◆",
    CompletionType.MACRO: "λ",
    CompletionType.OPERATOR: "±",
    CompletionType.FILE: "\U0001f4c4",
    CompletionType.DIRECTORY: "\U0001f4c1",
    CompletionType.COMMAND: "",
}

TYPE_LABELS: dict[CompletionType, str] = {
    CompletionType.KEYWORD: "keyword",
    CompletionType.FUNCTION: "fn",
    CompletionType.VARIABLE: "def",
    CompletionType.MACRO: "macro",
    CompletionType.OPERATOR: "op",
    CompletionType.FILE: "file",
    CompletionType.DIRECTORY: "dir",
    CompletionType.COMMAND: "cmd",
}

# Lower sorts first on score ties.
TYPE_PRIORITY: dict[CompletionType, int] = {
    CompletionType.KEYWORD: 1,
    CompletionType.MACRO: 2,
    CompletionType.FUNCTION: 3,
    CompletionType.OPERATOR: 4,
    CompletionType.VARIABLE: 5,
    CompletionType.COMMAND: 6,
    CompletionType.DIRECTORY: 7,
    CompletionType.FILE: 8,
}

RENDER_MAX_WIDTH = {
    "symbol": 16,
    "file": 50,
    "command": 20,
    "default": 40,
}

HELP_SIMPLE = "Tab select • Enter insert • Ctrl+D docs • Esc"
HELP_DRILL = "Tab drill • Enter insert • Ctrl+D docs • Esc"
HELP_COMMAND = "Tab run • Enter insert • Ctrl+D docs • Esc"
HELP_DEFAULT = "↑↓ navigate • Tab drill • Enter select • Esc cancel"

# Forms whose arguments are restricted to one name source.
CONTEXT_AWARE_FORMS: dict[str, str] = {
    "forget": "memory",
    "inspect": "bindings",
    "describe": "functions",
}
