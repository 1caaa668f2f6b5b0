"""Completion providers and the registry that picks one per keystroke.

Precedence is file mentions (@), then slash commands, then identifiers.
Each provider's trigger inspects a different prefix shape, so in practice at
most one matches.
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Protocol, runtime_checkable

from hqlcomplete.completion.attachments import attachment_kind, detect_mime_type
from hqlcomplete.completion.fuzzy import FuzzyMatch, fuzzy_match
from hqlcomplete.completion.index import (
    DEFAULT_MAX_RESULTS,
    FileIndexer,
    FileMatch,
    search_files,
    unescape_shell_path,
)
from hqlcomplete.completion.items import create_item, item_ids, rank_completions, replace_span
from hqlcomplete.completion.types import (
    ATTACHMENT_PLACEHOLDER,
    COMMAND_BASE_SCORE,
    COMPLETION_DEBOUNCE_MS,
    CONTEXT_AWARE_FORMS,
    HELP_COMMAND,
    HELP_DRILL,
    HELP_SIMPLE,
    RENDER_MAX_WIDTH,
    STDLIB_SCORE,
    TYPE_ICONS,
    TYPE_LABELS,
    USER_BINDING_SCORE,
    ApplyContext,
    ApplyFn,
    ApplyResult,
    CompletionAction,
    CompletionContext,
    CompletionItem,
    CompletionResult,
    CompletionType,
    ProviderId,
    RenderSpec,
    SideEffect,
    SideEffectType,
)
from hqlcomplete.config import CompletionConfig


@runtime_checkable
class CompletionProvider(Protocol):
    """A candidate source bound to a trigger condition."""

    id: ProviderId
    is_async: bool
    debounce_ms: int
    help_text: str

    def should_trigger(self, context: CompletionContext) -> bool:
        ...

    def get_completions(self, context: CompletionContext) -> CompletionResult:
        ...

    async def get_completions_async(self, context: CompletionContext) -> CompletionResult:
        ...


# ---------------------------------------------------------------------------
# Triggers and query extraction
# ---------------------------------------------------------------------------


def should_trigger_file_mention(context: CompletionContext) -> bool:
    """@ at the start of input or after whitespace, ( or [."""
    if context.is_inside_string:
        return False
    before = context.text_before_cursor
    at = before.rfind("@")
    if at == -1:
        return False
    return at == 0 or before[at - 1] in " \t(["


def extract_mention_query(context: CompletionContext) -> str | None:
    """Text between the last @ and the cursor, None once the mention has ended.

    Spaces end a relative mention but not an absolute one, which may carry
    escaped spaces from drag-and-drop.
    """
    at = context.text_before_cursor.rfind("@")
    if at == -1:
        return None
    query = context.text[at + 1:context.cursor_position]
    if ")" in query or '"' in query:
        return None
    if not query.startswith(("/", "~")) and " " in query:
        return None
    return query


def should_trigger_command(context: CompletionContext) -> bool:
    stripped = context.text_before_cursor.lstrip()
    return stripped.startswith("/") and " " not in stripped


def extract_command_query(context: CompletionContext) -> str | None:
    stripped = context.text_before_cursor.lstrip()
    if not stripped.startswith("/"):
        return None
    return stripped[1:]


def should_trigger_symbol(context: CompletionContext) -> bool:
    if context.is_inside_string:
        return False
    if should_trigger_file_mention(context) or should_trigger_command(context):
        return False
    if context.current_word:
        return True
    before = context.text_before_cursor
    if not before:
        return False
    if before[-1] in "([":
        return True
    form = context.enclosing_form
    return form is not None and form.name in CONTEXT_AWARE_FORMS


# ---------------------------------------------------------------------------
# Symbols
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class LanguageRegistry:
    """Known library identifiers, split into the sets used for classification.

    Names that are in none of keywords, operators or macros are functions.
    """

    keywords: frozenset[str] = frozenset()
    operators: frozenset[str] = frozenset()
    macros: frozenset[str] = frozenset()
    functions: frozenset[str] = frozenset()

    def identifiers(self) -> list[str]:
        return sorted(self.keywords | self.operators | self.macros | self.functions)

    def classify(self, name: str) -> CompletionType:
        if name in self.keywords:
            return CompletionType.KEYWORD
        if name in self.operators:
            return CompletionType.OPERATOR
        if name in self.macros:
            return CompletionType.MACRO
        return CompletionType.FUNCTION


DEFAULT_LANGUAGE = LanguageRegistry(
    keywords=frozenset({
        "if", "cond", "when", "unless", "do", "loop", "recur", "return",
        "try", "catch", "finally", "throw", "fn", "def", "defn", "let",
        "var", "const", "set!", "class", "enum", "import", "export", "new",
        "quote", "quasiquote", "unquote", "await", "async",
    }),
    operators=frozenset({
        "+", "-", "*", "/", "%", "=", "==", "!=", "<", ">", "<=", ">=",
        "and", "or", "not",
    }),
    macros=frozenset({
        "->", "->>", "as->", "doto", "when-let", "if-let", "for", "while",
        "dotimes", "case", "defmacro",
    }),
    functions=frozenset({
        "map", "filter", "reduce", "first", "rest", "nth", "count", "conj",
        "concat", "range", "take", "drop", "assoc", "dissoc", "get", "keys",
        "vals", "merge", "print", "println", "str", "inc", "dec", "empty?",
        "nil?", "some", "every?", "apply", "partial", "comp", "identity",
        "forget", "inspect", "describe",
    }),
)


def _symbol_apply(
    name: str,
    params: tuple[str, ...],
    type: CompletionType,
) -> ApplyFn:
    is_callable = type in (CompletionType.FUNCTION, CompletionType.MACRO) or bool(params)
    is_variable = type == CompletionType.VARIABLE and not params
    is_form = name in CONTEXT_AWARE_FORMS

    def apply(action: CompletionAction, ctx: ApplyContext) -> ApplyResult:
        has_open = ctx.text[:ctx.anchor_position].rstrip().endswith("(")
        has_close = ctx.text[ctx.cursor_position:].startswith(")")
        open_paren = "" if has_open else "("
        close_paren = "" if has_close else ")"

        if action == CompletionAction.INSERT:
            return replace_span(ctx, name + " ")

        if is_form:
            # Leave the argument slot empty so the dropdown reopens with
            # the form's filtered names.
            return replace_span(ctx, open_paren + name + " ")

        if is_callable and params:
            call = open_paren + name + " " + " ".join(params) + close_paren
            first_param = ctx.anchor_position + len(open_paren) + len(name) + 1
            return replace_span(
                ctx,
                call + ("" if has_close else " "),
                cursor=first_param,
                side_effect=SideEffect(
                    SideEffectType.ENTER_PLACEHOLDER_MODE,
                    params=params,
                    start_pos=first_param,
                ),
            )

        if is_callable:
            return replace_span(ctx, open_paren + name + " ")

        if is_variable:
            return replace_span(
                ctx,
                open_paren + name + close_paren,
                side_effect=SideEffect(SideEffectType.EXECUTE),
            )

        return replace_span(ctx, name + " ")

    return apply


class SymbolProvider:
    """Identifier completion over user bindings and library names.

    User bindings score higher than library names and shadow them. Inside a
    context-aware form such as (forget ...) only the matching name source is
    offered.
    """

    id = ProviderId.SYMBOL
    is_async = False
    debounce_ms = 0
    help_text = HELP_SIMPLE

    def __init__(
        self,
        language: LanguageRegistry = DEFAULT_LANGUAGE,
        *,
        limit_typed: int = 15,
        limit_browse: int = 20,
    ) -> None:
        self.language = language
        self.limit_typed = limit_typed
        self.limit_browse = limit_browse

    def should_trigger(self, context: CompletionContext) -> bool:
        return should_trigger_symbol(context)

    def _allowed_names(self, context: CompletionContext) -> frozenset[str] | None:
        form = context.enclosing_form
        source = CONTEXT_AWARE_FORMS.get(form.name) if form else None
        if source == "memory":
            return context.memory_names
        if source == "bindings":
            return context.user_bindings
        if source == "functions":
            return frozenset(context.signatures)
        return None

    def _make_item(
        self,
        context: CompletionContext,
        item_id: str,
        name: str,
        type: CompletionType,
        base_score: int,
        match: FuzzyMatch | None,
    ) -> CompletionItem:
        params = context.signatures.get(name, ())
        description = f"({' '.join(params)})" if params else None
        indices = match.indices if match else None
        spec = RenderSpec(
            icon=TYPE_ICONS[type],
            label=name,
            truncate="end",
            max_width=RENDER_MAX_WIDTH["symbol"],
            description=description,
            type_label=TYPE_LABELS[type],
            match_indices=indices,
            extended_doc=context.docstrings.get(name),
        )
        return CompletionItem(
            id=item_id,
            label=name,
            type=type,
            score=base_score + (match.score if match else 0),
            description=description,
            match_indices=indices,
            available_actions=frozenset({CompletionAction.SELECT, CompletionAction.INSERT}),
            apply_action=_symbol_apply(name, params, type),
            render_spec=lambda: spec,
        )

    def get_completions(self, context: CompletionContext) -> CompletionResult:
        prefix = context.current_word
        allowed = self._allowed_names(context)
        form = context.enclosing_form
        source = CONTEXT_AWARE_FORMS.get(form.name) if form else None
        ids = item_ids("symbol")
        seen: set[str] = set()
        items: list[CompletionItem] = []

        def candidates() -> Iterable[tuple[str, CompletionType, int]]:
            if source == "memory":
                for name in sorted(context.memory_names):
                    yield name, CompletionType.VARIABLE, USER_BINDING_SCORE
                return
            for name in sorted(context.user_bindings):
                yield name, CompletionType.VARIABLE, USER_BINDING_SCORE
            if source == "bindings":
                return
            for name in self.language.identifiers():
                yield name, self.language.classify(name), STDLIB_SCORE

        for name, type, base in candidates():
            if name in seen:
                continue
            if allowed is not None and name not in allowed:
                continue
            match = fuzzy_match(prefix, name) if prefix else None
            if prefix and match is None:
                continue
            items.append(self._make_item(context, next(ids), name, type, base, match))
            seen.add(name)

        limit = self.limit_typed if prefix else self.limit_browse
        return CompletionResult(
            items=tuple(rank_completions(items)[:limit]),
            anchor=context.word_start,
        )

    async def get_completions_async(self, context: CompletionContext) -> CompletionResult:
        return self.get_completions(context)


# ---------------------------------------------------------------------------
# Files
# ---------------------------------------------------------------------------


def _file_apply(raw_path: str, is_dir: bool, is_media: bool) -> ApplyFn:
    path = unescape_shell_path(raw_path)

    def apply(action: CompletionAction, ctx: ApplyContext) -> ApplyResult:
        if is_dir and action == CompletionAction.DRILL:
            insert = "@" + path + ("" if path.endswith("/") else "/")
            return replace_span(ctx, insert, close_dropdown=False)
        if is_media and action == CompletionAction.SELECT:
            return replace_span(
                ctx,
                ATTACHMENT_PLACEHOLDER + " ",
                side_effect=SideEffect(SideEffectType.ADD_ATTACHMENT, path=path),
            )
        return replace_span(ctx, "@" + path + " ")

    return apply


class FileProvider:
    """@-mention completion over the file index."""

    id = ProviderId.FILE
    is_async = True
    help_text = HELP_DRILL

    def __init__(
        self,
        indexer: FileIndexer | None = None,
        *,
        max_results: int = DEFAULT_MAX_RESULTS,
        debounce_ms: int = COMPLETION_DEBOUNCE_MS,
    ) -> None:
        self.indexer = indexer or FileIndexer()
        self.max_results = max_results
        self.debounce_ms = debounce_ms

    def should_trigger(self, context: CompletionContext) -> bool:
        return should_trigger_file_mention(context)

    def _to_item(self, item_id: str, match: FileMatch) -> CompletionItem:
        is_dir = match.is_directory
        path = unescape_shell_path(match.path)
        kind = None if is_dir else attachment_kind(path)
        is_media = kind is not None
        metadata = {"mime_type": detect_mime_type(path), "attachment_kind": kind.value} if kind else {}
        type = CompletionType.DIRECTORY if is_dir else CompletionType.FILE
        actions = {CompletionAction.SELECT, CompletionAction.INSERT}
        if is_dir:
            actions.add(CompletionAction.DRILL)
        indices = match.match_indices or None
        spec = RenderSpec(
            icon=TYPE_ICONS[type],
            label=match.path,
            truncate="start",
            max_width=RENDER_MAX_WIDTH["file"],
            description=kind.value if kind else None,
            match_indices=indices,
        )
        return CompletionItem(
            id=item_id,
            label=match.path,
            type=type,
            score=match.score,
            description=kind.value if kind else None,
            match_indices=indices,
            metadata=MappingProxyType(metadata),
            available_actions=frozenset(actions),
            apply_action=_file_apply(match.path, is_dir, is_media),
            render_spec=lambda: spec,
        )

    def get_completions(self, context: CompletionContext) -> CompletionResult:
        query = extract_mention_query(context)
        if query is None:
            return CompletionResult(items=(), anchor=context.cursor_position)
        anchor = context.text_before_cursor.rfind("@")
        matches = search_files(query, self.indexer, self.max_results)
        ids = item_ids("file")
        return CompletionResult(
            items=tuple(self._to_item(next(ids), m) for m in matches),
            anchor=anchor,
        )

    async def get_completions_async(self, context: CompletionContext) -> CompletionResult:
        # Directory walks block; keep them off the event loop.
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self.get_completions, context)


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Command:
    name: str
    description: str


COMMAND_CATALOG: tuple[Command, ...] = (
    Command("/help", "Show help"),
    Command("/clear", "Clear the screen"),
    Command("/reset", "Reset the REPL state"),
    Command("/bindings", "List session bindings"),
    Command("/history", "Show input history"),
    Command("/exit", "Exit the REPL"),
    Command("/memory", "Show persisted definitions"),
    Command("/forget", "Remove a persisted definition"),
    Command("/compact", "Compact the conversation"),
    Command("/config", "Show or edit configuration"),
    Command("/resume", "Resume a previous session"),
)


def _command_apply(name: str) -> ApplyFn:
    def apply(action: CompletionAction, ctx: ApplyContext) -> ApplyResult:
        if action == CompletionAction.DRILL:
            return replace_span(ctx, name, side_effect=SideEffect(SideEffectType.EXECUTE))
        return replace_span(ctx, name + " ")

    return apply


class CommandProvider:
    """Slash-command completion over a static catalog, filtered by name prefix."""

    id = ProviderId.COMMAND
    is_async = False
    debounce_ms = 0
    help_text = HELP_COMMAND

    def __init__(self, catalog: Iterable[Command] = COMMAND_CATALOG) -> None:
        self.catalog = tuple(catalog)

    def should_trigger(self, context: CompletionContext) -> bool:
        return should_trigger_command(context)

    def get_completions(self, context: CompletionContext) -> CompletionResult:
        query = extract_command_query(context)
        if query is None:
            return CompletionResult(items=(), anchor=context.cursor_position)
        before = context.text_before_cursor
        anchor = len(before) - len(before.lstrip())
        ids = item_ids("command")
        items = []
        for cmd in self.catalog:
            bare = cmd.name[1:]
            if not bare.lower().startswith(query.lower()):
                continue
            match = fuzzy_match(query, bare)
            # Shift past the leading slash.
            indices = tuple(i + 1 for i in match.indices) if match and match.indices else None
            items.append(create_item(
                cmd.name,
                CompletionType.COMMAND,
                id=next(ids),
                score=COMMAND_BASE_SCORE + (match.score if match else 0),
                description=cmd.description,
                match_indices=indices,
                available_actions=(CompletionAction.SELECT, CompletionAction.DRILL),
                apply_action=_command_apply(cmd.name),
                truncate="none",
                max_width=RENDER_MAX_WIDTH["command"],
            ))
        return CompletionResult(items=tuple(rank_completions(items)), anchor=anchor)

    async def get_completions_async(self, context: CompletionContext) -> CompletionResult:
        return self.get_completions(context)


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


class ProviderRegistry:
    """Ordered providers; the first whose trigger matches is active."""

    def __init__(self, providers: Iterable[CompletionProvider] = ()) -> None:
        self._providers: list[CompletionProvider] = list(providers)

    @property
    def providers(self) -> tuple[CompletionProvider, ...]:
        return tuple(self._providers)

    def register(self, provider: CompletionProvider) -> None:
        self._providers.append(provider)

    def get(self, provider_id: ProviderId) -> CompletionProvider | None:
        for provider in self._providers:
            if provider.id == provider_id:
                return provider
        return None

    def active_provider(self, context: CompletionContext) -> CompletionProvider | None:
        for provider in self._providers:
            if provider.should_trigger(context):
                return provider
        return None


def build_default_registry(
    config: CompletionConfig | None = None,
    *,
    root: Path | None = None,
    language: LanguageRegistry | None = None,
) -> ProviderRegistry:
    """File, command and symbol providers wired from a CompletionConfig."""
    config = config or CompletionConfig()
    indexer = FileIndexer(
        root,
        ttl_seconds=config.index_ttl_seconds,
        max_depth=config.max_depth,
    )
    return ProviderRegistry([
        FileProvider(
            indexer,
            max_results=config.file_max_results,
            debounce_ms=config.debounce_ms,
        ),
        CommandProvider(),
        SymbolProvider(
            language or DEFAULT_LANGUAGE,
            limit_typed=config.symbol_limit_typed,
            limit_browse=config.symbol_limit_browse,
        ),
    ])
