"""Tests for CompletionConfig loading from pyproject.toml."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from hqlcomplete.config import CompletionConfig, load_config
from hqlcomplete.exceptions import ConfigError


class TestLoadConfig:
    """load_config reads [tool.hqlcomplete], falling back to defaults."""

    def test_missing_pyproject(self, tmp_path):
        assert load_config(tmp_path) == CompletionConfig()

    def test_missing_table(self, tmp_path):
        (tmp_path / "pyproject.toml").write_text('[project]\nname = "x"\n')
        assert load_config(tmp_path) == CompletionConfig()

    def test_overrides(self, tmp_path):
        (tmp_path / "pyproject.toml").write_text(
            "[tool.hqlcomplete]\ndebounce_ms = 50\nmax_visible_items = 8\n"
        )
        config = load_config(tmp_path)
        assert config.debounce_ms == 50
        assert config.max_visible_items == 8
        assert config.index_ttl_seconds == 60.0

    def test_invalid_toml(self, tmp_path):
        (tmp_path / "pyproject.toml").write_text("[tool.hqlcomplete\n")
        with pytest.raises(ConfigError) as exc:
            load_config(tmp_path)
        assert exc.value.__cause__ is not None

    def test_unknown_key(self, tmp_path):
        (tmp_path / "pyproject.toml").write_text("[tool.hqlcomplete]\nbogus = 1\n")
        with pytest.raises(ConfigError, match="bogus"):
            load_config(tmp_path)

    def test_non_positive_limit(self, tmp_path):
        (tmp_path / "pyproject.toml").write_text("[tool.hqlcomplete]\nfile_max_results = 0\n")
        with pytest.raises(ConfigError):
            load_config(tmp_path)

    def test_not_a_table(self, tmp_path):
        (tmp_path / "pyproject.toml").write_text('[tool]\nhqlcomplete = "on"\n')
        with pytest.raises(ConfigError, match="must be a table"):
            load_config(tmp_path)


class TestCompletionConfig:
    def test_defaults(self):
        config = CompletionConfig()
        assert config.max_visible_items == 4
        assert config.debounce_ms == 150
        assert config.file_max_results == 12
        assert (config.symbol_limit_typed, config.symbol_limit_browse) == (15, 20)

    def test_frozen(self):
        with pytest.raises(ValidationError):
            CompletionConfig().debounce_ms = 1
