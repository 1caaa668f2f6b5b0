"""Subsequence fuzzy matching and bounded top-K selection.

The scoring constants are tuned against real project trees; changing any of
them silently reorders results for file and symbol completion alike.
"""

from __future__ import annotations

import bisect
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import TypeVar

T = TypeVar("T")

BOUNDARY_CHARS = frozenset("/\\-_.")

MATCH_BONUS = 10
CONSECUTIVE_BONUS = 15
BOUNDARY_BONUS = 20
CAMEL_BONUS = 15
CASE_BONUS = 5
LENGTH_PENALTY = 0.5
POSITION_PENALTY = 2
FILENAME_BONUS = 25


@dataclass(frozen=True)
class FuzzyMatch:
    score: float
    indices: tuple[int, ...]


def _is_subsequence(query: str, target: str) -> bool:
    pos = 0
    for ch in query:
        pos = target.find(ch, pos)
        if pos == -1:
            return False
        pos += 1
    return True


def fuzzy_match(query: str, target: str) -> FuzzyMatch | None:
    """Score query against target, None unless query is a subsequence.

    Matching is case-insensitive. The empty query matches everything with
    score 0 and no indices.
    """
    if not query:
        return FuzzyMatch(0, ())
    q_lower = query.lower()
    t_lower = target.lower()
    if not _is_subsequence(q_lower, t_lower):
        return None

    indices: list[int] = []
    score: float = 0
    qi = 0
    last = -1
    run = 0
    for i, ch in enumerate(t_lower):
        if qi == len(q_lower):
            break
        if ch != q_lower[qi]:
            continue
        indices.append(i)
        score += MATCH_BONUS
        if last == i - 1:
            run += 1
            score += run * CONSECUTIVE_BONUS
        else:
            run = 0
        if i == 0 or target[i - 1] in BOUNDARY_CHARS:
            score += BOUNDARY_BONUS
        if i > 0 and target[i].isupper() and target[i - 1].islower():
            score += CAMEL_BONUS
        if query[qi] == target[i]:
            score += CASE_BONUS
        last = i
        qi += 1

    score -= len(target) * LENGTH_PENALTY
    score -= indices[0] * POSITION_PENALTY
    last_slash = target.rfind("/")
    if last_slash != -1 and indices[-1] > last_slash:
        score += FILENAME_BONUS
    return FuzzyMatch(score, tuple(indices))


def insert_top_k(
    results: list[T],
    item: T,
    k: int,
    score: Callable[[T], float],
) -> None:
    """Insert item into results, kept sorted by descending score and len <= k.

    Equal scores keep arrival order, so the outcome matches a stable
    sort-then-truncate of the same stream.
    """
    if k <= 0:
        return
    if len(results) >= k and score(item) <= score(results[-1]):
        return
    bisect.insort_right(results, item, key=lambda r: -score(r))
    if len(results) > k:
        results.pop()


def top_k(items: Iterable[T], k: int, score: Callable[[T], float]) -> list[T]:
    results: list[T] = []
    for item in items:
        insert_top_k(results, item, k, score)
    return results
