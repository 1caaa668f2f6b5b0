"""hqlcomplete: completion engine for a line-oriented code REPL."""

from hqlcomplete.completion import (
    CompletionAction,
    CompletionItem,
    CompletionSession,
    CompletionType,
    EngineCompleter,
    SideEffectType,
    build_context,
    build_default_registry,
)
from hqlcomplete.config import CompletionConfig, load_config
from hqlcomplete.exceptions import CompletionError, ConfigError, UnsupportedActionError

__all__ = [
    "CompletionAction",
    "CompletionItem",
    "CompletionSession",
    "CompletionType",
    "EngineCompleter",
    "SideEffectType",
    "build_context",
    "build_default_registry",
    # Config
    "CompletionConfig",
    "load_config",
    # Exceptions
    "CompletionError",
    "ConfigError",
    "UnsupportedActionError",
]
