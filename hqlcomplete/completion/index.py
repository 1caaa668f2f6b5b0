"""File indexer and @-mention file search.

FileIndexer owns one FileIndex snapshot of the working tree. The snapshot is
read-mostly and replaced wholesale when it expires or is invalidated; nothing
mutates a published snapshot, so concurrent readers need no locking.
"""

from __future__ import annotations

import logging
import os
import time
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from hqlcomplete.completion.fuzzy import fuzzy_match, insert_top_k
from hqlcomplete.completion.ignore import IgnorePattern, is_ignored, load_ignore

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 60.0
DEFAULT_MAX_DEPTH = 10
DEFAULT_MAX_RESULTS = 12

SKIP_DIRS = frozenset({
    "node_modules", ".git", "dist", "build", ".cache",
    "coverage", ".next", ".nuxt", "vendor", "__pycache__",
    ".hql", ".deno", "target", ".svn", ".hg", "bower_components",
    ".idea", ".vscode", ".vs", "out", "bin", "obj",
})
SKIP_SUFFIXES = (".min.js", ".map", ".lock", ".d.ts")
SKIP_NAMES = frozenset({"package-lock.json", "yarn.lock"})
ALLOWED_DOTFILES = frozenset({".github"})

# Empty query: browse a handful of each kind.
BROWSE_DIRS = 6
BROWSE_FILES = 6
BROWSE_DIR_SCORE = 100
BROWSE_FILE_SCORE = 50

DIR_TIE_BREAK = 10
EXACT_PATH_SCORE = 1000
PREFIX_SCORE = 100
SUBSTRING_SCORE = 50


@dataclass(frozen=True)
class FileIndex:
    """Sorted root-relative paths. Directory entries keep a trailing '/'."""

    files: tuple[str, ...]
    dirs: tuple[str, ...]
    timestamp: float


@dataclass(frozen=True)
class FileMatch:
    path: str
    is_directory: bool
    score: float
    match_indices: tuple[int, ...] = ()


def should_skip_file(name: str) -> bool:
    return name in SKIP_NAMES or name.endswith(SKIP_SUFFIXES)


def unescape_shell_path(path: str) -> str:
    """Undo shell escaping from drag-and-drop paths: \\<space>, \\', \\", \\\\."""
    out: list[str] = []
    i = 0
    while i < len(path):
        ch = path[i]
        if ch == "\\" and i + 1 < len(path) and path[i + 1] in " '\"\\":
            out.append(path[i + 1])
            i += 2
            continue
        out.append(ch)
        i += 1
    return "".join(out)


def build_index(root: Path, max_depth: int = DEFAULT_MAX_DEPTH) -> FileIndex:
    """Walk root and return a fresh FileIndex.

    Unreadable directories are logged and skipped.
    """
    started = time.monotonic()
    patterns = load_ignore(root)
    files: list[str] = []
    dirs: list[str] = []
    _walk(root, "", 0, max_depth, patterns, files, dirs)
    files.sort()
    dirs.sort()
    logger.debug(
        "indexed %s: %d files, %d dirs in %.1fms",
        root, len(files), len(dirs), (time.monotonic() - started) * 1000,
    )
    return FileIndex(files=tuple(files), dirs=tuple(dirs), timestamp=time.time())


def _walk(
    directory: Path,
    prefix: str,
    depth: int,
    max_depth: int,
    patterns: list[IgnorePattern],
    files: list[str],
    dirs: list[str],
) -> None:
    if depth > max_depth:
        return
    try:
        with os.scandir(directory) as it:
            entries = list(it)
    except OSError as e:
        logger.debug("skipping unreadable directory %s: %s", directory, e)
        return
    for entry in entries:
        name = entry.name
        if name.startswith(".") and name not in ALLOWED_DOTFILES:
            continue
        rel = f"{prefix}/{name}" if prefix else name
        try:
            is_dir = entry.is_dir()
        except OSError:
            continue
        if is_ignored(rel, patterns, is_dir=is_dir):
            continue
        if is_dir:
            if name in SKIP_DIRS:
                continue
            dirs.append(rel + "/")
            _walk(Path(entry.path), rel, depth + 1, max_depth, patterns, files, dirs)
        elif not should_skip_file(name):
            files.append(rel)


class FileIndexer:
    """Caches one FileIndex for a root directory with a time-to-live.

    get() and invalidate() are the only mutators; callers holding an older
    snapshot keep a consistent view.
    """

    def __init__(
        self,
        root: Path | None = None,
        *,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        max_depth: int = DEFAULT_MAX_DEPTH,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.root = Path(root) if root is not None else Path.cwd()
        self.ttl_seconds = ttl_seconds
        self.max_depth = max_depth
        self._clock = clock
        self._snapshot: FileIndex | None = None
        self._built_at = 0.0

    @property
    def snapshot(self) -> FileIndex | None:
        return self._snapshot

    def is_fresh(self) -> bool:
        if self._snapshot is None:
            return False
        return self._clock() - self._built_at < self.ttl_seconds

    def get(self, force_refresh: bool = False) -> FileIndex:
        if not force_refresh and self.is_fresh():
            return self._snapshot
        self._snapshot = build_index(self.root, self.max_depth)
        self._built_at = self._clock()
        return self._snapshot

    def invalidate(self) -> None:
        self._snapshot = None


def _expand_query_path(query: str) -> str:
    path = unescape_shell_path(query)
    if path.startswith("~"):
        path = str(Path.home()) + path[1:]
    return path


def _search_absolute(query: str, max_results: int) -> list[FileMatch]:
    expanded = _expand_query_path(query)
    if os.path.exists(expanded):
        return [FileMatch(expanded, os.path.isdir(expanded), EXACT_PATH_SCORE)]

    parent, _, partial = expanded.rpartition("/")
    parent = parent or "/"
    partial_lower = partial.lower()
    results: list[FileMatch] = []
    try:
        with os.scandir(parent) as it:
            for entry in it:
                name_lower = entry.name.lower()
                if partial and partial_lower not in name_lower:
                    continue
                full = f"/{entry.name}" if parent == "/" else f"{parent}/{entry.name}"
                score = PREFIX_SCORE if name_lower.startswith(partial_lower) else SUBSTRING_SCORE
                results.append(FileMatch(full, entry.is_dir(), score))
    except OSError as e:
        logger.debug("cannot list %s: %s", parent, e)
        return []
    results.sort(key=lambda m: (-m.score, m.path))
    return results[:max_results]


def search_files(
    query: str,
    indexer: FileIndexer,
    max_results: int = DEFAULT_MAX_RESULTS,
) -> list[FileMatch]:
    """Rank indexed paths against query, best first, at most max_results.

    Queries starting with / or ~ bypass the index and look at the filesystem
    directly.
    """
    if query.startswith(("/", "~")):
        return _search_absolute(query, max_results)

    index = indexer.get()
    if not query.strip():
        browse = [FileMatch(d, True, BROWSE_DIR_SCORE) for d in index.dirs[:BROWSE_DIRS]]
        browse += [FileMatch(f, False, BROWSE_FILE_SCORE) for f in index.files[:BROWSE_FILES]]
        return browse[:max_results]

    results: list[FileMatch] = []
    for paths, is_dir in ((index.dirs, True), (index.files, False)):
        for path in paths:
            m = fuzzy_match(query, path)
            if m is None:
                continue
            score = m.score + (DIR_TIE_BREAK if is_dir else 0)
            insert_top_k(
                results, FileMatch(path, is_dir, score, m.indices),
                max_results, lambda r: r.score,
            )
    return results
