"""Engine configuration from the [tool.hqlcomplete] table of pyproject.toml."""

from __future__ import annotations

import tomllib
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from hqlcomplete.exceptions import ConfigError

TOOL_KEY = "hqlcomplete"


class CompletionConfig(BaseModel):
    """Tunables for the completion engine.

    Defaults match the stock REPL: a four-row dropdown, 150ms debounce for
    file search and a one-minute file index.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    max_visible_items: int = Field(default=4, gt=0)
    debounce_ms: int = Field(default=150, ge=0)
    index_ttl_seconds: float = Field(default=60.0, gt=0)
    max_depth: int = Field(default=10, gt=0)
    file_max_results: int = Field(default=12, gt=0)
    symbol_limit_typed: int = Field(default=15, gt=0)
    symbol_limit_browse: int = Field(default=20, gt=0)


def read_pyproject(project_root: Path) -> dict:
    path = project_root / "pyproject.toml"
    if not path.exists():
        return {}
    try:
        return tomllib.loads(path.read_text())
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"{path} is not valid TOML: {e}", cause=e)


def load_config(project_root: Path) -> CompletionConfig:
    """Load CompletionConfig from project_root/pyproject.toml, defaults if absent."""
    data = read_pyproject(project_root)
    table = data.get("tool", {}).get(TOOL_KEY, {})
    if not isinstance(table, dict):
        raise ConfigError(f"[tool.{TOOL_KEY}] must be a table")
    try:
        return CompletionConfig.model_validate(table)
    except ValidationError as e:
        raise ConfigError(f"invalid [tool.{TOOL_KEY}] settings: {e}", cause=e)
