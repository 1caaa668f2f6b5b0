"""Completion engine: providers, dropdown state machine and apply protocol."""

from __future__ import annotations

from hqlcomplete.completion.complete import EngineCompleter
from hqlcomplete.completion.context import build_context, detect_enclosing_form, extract_word, is_inside_string
from hqlcomplete.completion.fuzzy import FuzzyMatch, fuzzy_match, insert_top_k, top_k
from hqlcomplete.completion.index import FileIndex, FileIndexer, FileMatch, search_files
from hqlcomplete.completion.items import create_item, rank_completions
from hqlcomplete.completion.navigation import handle_key, scroll_window
from hqlcomplete.completion.providers import (
    CommandProvider,
    CompletionProvider,
    FileProvider,
    LanguageRegistry,
    ProviderRegistry,
    SymbolProvider,
    build_default_registry,
)
from hqlcomplete.completion.render import render_dropdown, truncate_label
from hqlcomplete.completion.session import CompletionSession
from hqlcomplete.completion.state import INITIAL_STATE, DropdownState, reduce
from hqlcomplete.completion.types import (
    ApplyContext,
    ApplyResult,
    CompletionAction,
    CompletionContext,
    CompletionItem,
    CompletionResult,
    CompletionType,
    NavAction,
    ProviderId,
    RenderSpec,
    ScrollWindow,
    SideEffect,
    SideEffectType,
)

__all__ = [
    # Records
    "ApplyContext",
    "ApplyResult",
    "CompletionAction",
    "CompletionContext",
    "CompletionItem",
    "CompletionResult",
    "CompletionType",
    "NavAction",
    "ProviderId",
    "RenderSpec",
    "ScrollWindow",
    "SideEffect",
    "SideEffectType",
    # Context and matching
    "build_context",
    "detect_enclosing_form",
    "extract_word",
    "is_inside_string",
    "FuzzyMatch",
    "fuzzy_match",
    "insert_top_k",
    "top_k",
    "create_item",
    "rank_completions",
    # Files
    "FileIndex",
    "FileIndexer",
    "FileMatch",
    "search_files",
    # Providers
    "CompletionProvider",
    "SymbolProvider",
    "FileProvider",
    "CommandProvider",
    "LanguageRegistry",
    "ProviderRegistry",
    "build_default_registry",
    # State, navigation, rendering
    "DropdownState",
    "INITIAL_STATE",
    "reduce",
    "handle_key",
    "scroll_window",
    "render_dropdown",
    "truncate_label",
    # Host integration
    "CompletionSession",
    "EngineCompleter",
]
