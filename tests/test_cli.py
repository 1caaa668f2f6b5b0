"""Tests for the hql-complete CLI."""

from __future__ import annotations

import pytest
from typer.testing import CliRunner

from hqlcomplete.cli import app

runner = CliRunner()


@pytest.fixture
def project(tmp_path):
    (tmp_path / "src").mkdir()
    (tmp_path / "src" / "file.ts").write_text("")
    (tmp_path / "shot.png").write_bytes(b"")
    return tmp_path


class TestComplete:
    def test_symbols(self, project):
        result = runner.invoke(app, ["complete", "(ma", "--root", str(project)])
        assert result.exit_code == 0
        assert "map" in result.output
        assert "symbol @ 1" in result.output

    def test_dropdown_honours_max_visible_items(self, project):
        (project / "pyproject.toml").write_text("[tool.hqlcomplete]\nmax_visible_items = 2\n")
        result = runner.invoke(app, ["complete", "(", "--dropdown", "--root", str(project)])
        assert result.exit_code == 0
        lines = result.output.splitlines()
        assert len(lines) == 3
        assert "▼" in lines[1]

    def test_no_completions(self, project):
        result = runner.invoke(app, ["complete", "(map ", "--root", str(project)])
        assert result.exit_code == 0
        assert "no completions" in result.output

    def test_cursor_out_of_range(self, project):
        result = runner.invoke(app, ["complete", "(ma", "--cursor", "9", "--root", str(project)])
        assert result.exit_code == 2

    def test_bad_config(self, project):
        (project / "pyproject.toml").write_text("[tool.hqlcomplete]\nbogus = 1\n")
        result = runner.invoke(app, ["complete", "(ma", "--root", str(project)])
        assert result.exit_code == 2


class TestFiles:
    def test_search(self, project):
        result = runner.invoke(app, ["files", "src/fi", "--root", str(project)])
        assert result.exit_code == 0
        assert "src/file.ts" in result.output

    def test_no_matches(self, project):
        result = runner.invoke(app, ["files", "zzzz", "--root", str(project), "--refresh"])
        assert result.exit_code == 0
        assert "no matches" in result.output


class TestApply:
    """apply: run a completion and print the resulting edit."""

    def test_command_select(self, project):
        result = runner.invoke(app, ["apply", "/cl", "/clear", "--root", str(project)])
        assert result.exit_code == 0
        assert "text:   '/clear '" in result.output
        assert "cursor: 7" in result.output

    def test_command_drill_executes(self, project):
        result = runner.invoke(app, ["apply", "/cl", "/clear", "-a", "drill", "--root", str(project)])
        assert result.exit_code == 0
        assert "effect: EXECUTE" in result.output

    def test_media_attaches(self, project):
        result = runner.invoke(app, ["apply", "@shot", "shot.png", "--root", str(project)])
        assert result.exit_code == 0
        assert "{{ATTACHMENT}}" in result.output
        assert "effect: ADD_ATTACHMENT shot.png" in result.output
        assert "mime:   image/png" in result.output

    def test_plain_file_has_no_mime(self, project):
        result = runner.invoke(app, ["apply", "@src/fi", "src/file.ts", "--root", str(project)])
        assert result.exit_code == 0
        assert "mime:" not in result.output

    def test_binding_executes(self, project):
        result = runner.invoke(app, ["apply", "answ", "answer", "-b", "answer", "--root", str(project)])
        assert result.exit_code == 0
        assert "text:   '(answer)'" in result.output

    def test_unknown_label(self, project):
        result = runner.invoke(app, ["apply", "/cl", "/nope", "--root", str(project)])
        assert result.exit_code == 1

    def test_unsupported_action(self, project):
        result = runner.invoke(app, ["apply", "/cl", "/clear", "-a", "INSERT", "--root", str(project)])
        assert result.exit_code == 1

    def test_unknown_action(self, project):
        result = runner.invoke(app, ["apply", "/cl", "/clear", "-a", "explode", "--root", str(project)])
        assert result.exit_code == 2
