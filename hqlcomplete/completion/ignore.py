"""Ignore-file handling for the file indexer.

Lines are compiled one at a time with pathspec's gitignore patterns so a
malformed line is skipped without losing the rest of the file. Patterns
apply in file order and the last match wins, so a later `!pattern`
re-includes what an earlier one ignored.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

import pathspec
from pathspec.pattern import RegexPattern

logger = logging.getLogger(__name__)

IGNORE_FILE = ".gitignore"


@dataclass(frozen=True)
class IgnorePattern:
    source: str
    pattern: RegexPattern
    negated: bool
    dir_only: bool

    def matches(self, candidate: str) -> bool:
        return self.pattern.match_file(candidate) is not None


def compile_pattern(line: str) -> IgnorePattern | None:
    """Compile one ignore-file line. None for blanks, comments and bad patterns."""
    raw = line.strip()
    if not raw or raw.startswith("#"):
        return None
    try:
        spec = pathspec.GitIgnoreSpec.from_lines([raw])
    except ValueError as e:
        logger.debug("skipping malformed ignore pattern %r: %s", raw, e)
        return None
    if not spec.patterns or spec.patterns[0].include is None:
        # pathspec discards lines git would ignore, e.g. bad ranges.
        logger.debug("skipping ignore pattern %r: matches nothing", raw)
        return None
    compiled = spec.patterns[0]
    return IgnorePattern(
        source=raw,
        pattern=compiled,
        negated=not compiled.include,
        dir_only=raw.endswith("/"),
    )


def parse_ignore(content: str) -> list[IgnorePattern]:
    patterns = []
    for line in content.splitlines():
        pattern = compile_pattern(line)
        if pattern is not None:
            patterns.append(pattern)
    return patterns


def load_ignore(root: Path) -> list[IgnorePattern]:
    """Read root/.gitignore. A missing or unreadable file means no patterns."""
    path = root / IGNORE_FILE
    try:
        content = path.read_text(errors="replace")
    except OSError:
        return []
    return parse_ignore(content)


def is_ignored(path: str, patterns: list[IgnorePattern], is_dir: bool = False) -> bool:
    """Evaluate patterns against a root-relative, /-separated path.

    Directories are matched with a trailing '/' so directory-only patterns
    such as `build/` apply to them and not to a file named `build`.
    """
    candidate = path + "/" if is_dir and not path.endswith("/") else path
    ignored = False
    for pattern in patterns:
        if pattern.matches(candidate):
            ignored = not pattern.negated
    return ignored
