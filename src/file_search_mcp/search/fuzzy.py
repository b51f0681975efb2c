"""Approximate file-name ranking backed by rapidfuzz.

A candidate qualifies only when the query's characters appear in it in order,
ignoring case and whitespace, so "usrctrl" finds "UserController.ts" but not
"strings.ts". Qualifying candidates whose basename alone holds the
subsequence rank ahead of those that need directory names, then by
``fuzz.WRatio`` similarity.
"""

from __future__ import annotations

from collections.abc import Iterable

from rapidfuzz import fuzz, utils

DEFAULT_FUZZY_LIMIT = 100


def _needle(query: str) -> str:
    return "".join(query.lower().split())


def is_subsequence(needle: str, haystack: str) -> bool:
    """Return True when every character of needle occurs in haystack in order."""
    remaining = iter(haystack)
    return all(char in remaining for char in needle)


def _score(query: str, relative_path: str) -> float:
    basename = relative_path.rsplit("/", 1)[-1]
    return max(
        fuzz.WRatio(query, relative_path, processor=utils.default_process),
        fuzz.WRatio(query, basename, processor=utils.default_process),
    )


def fuzzy_rank(
    query: str,
    candidates: Iterable[str],
    *,
    limit: int = DEFAULT_FUZZY_LIMIT,
) -> list[str]:
    """Return candidates ranked best-first, ties broken by shorter then lexical path."""
    needle = _needle(query)
    if not needle or limit < 1:
        return []
    scored: list[tuple[bool, float, str]] = []
    for candidate in candidates:
        lowered = candidate.lower()
        if not is_subsequence(needle, lowered):
            continue
        in_basename = is_subsequence(needle, lowered.rsplit("/", 1)[-1])
        scored.append((in_basename, _score(query, candidate), candidate))
    scored.sort(key=lambda item: (not item[0], -item[1], len(item[2]), item[2]))
    return [candidate for _, _, candidate in scored[:limit]]
