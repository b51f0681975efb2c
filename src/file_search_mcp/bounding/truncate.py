"""Size-budget enforcement for search results and rendered trees."""

from __future__ import annotations

import json
from collections.abc import Iterable
from dataclasses import asdict, replace
from typing import cast

from file_search_mcp.bounding.models import BoundedResult, LineMatch, MatchRecord, TreeResult

MAX_TOKENS = 100_000
CHARS_PER_TOKEN = 4
MAX_CHARS = MAX_TOKENS * CHARS_PER_TOKEN
RESERVE_CHARS = 1_000

DEGRADE_MAX_MATCHES = 3
DEGRADE_MAX_CONTENT_CHARS = 200
ELLIPSIS = "..."
TREE_TRUNCATION_MARKER = "... [truncated - too many entries]"


def _compact(value: object) -> object:
    """Drop None-valued fields recursively so absent optionals cost nothing."""
    if isinstance(value, dict):
        return {key: _compact(item) for key, item in value.items() if item is not None}
    if isinstance(value, (list, tuple)):
        return [_compact(item) for item in value]
    return value


def record_to_dict(record: MatchRecord) -> dict[str, object]:
    """Serialize one match record, omitting absent fields."""
    return cast(dict[str, object], _compact(asdict(record)))


def result_to_dict(result: BoundedResult) -> dict[str, object]:
    """Serialize a bounded result in its public shape."""
    return {
        "entries": [record_to_dict(entry) for entry in result.entries],
        "total_match_count": result.total_match_count,
        "was_truncated": result.was_truncated,
        "elapsed_ms": result.elapsed_ms,
        "annotation": result.annotation,
    }


def serialized_size(obj: object) -> int:
    """Return the character length of the compact JSON encoding of obj."""
    return len(json.dumps(obj, ensure_ascii=False, separators=(",", ":")))


def truncate_text(text: str, max_len: int) -> str:
    """Cut text to max_len characters, ending with an ellipsis when shortened."""
    if len(text) <= max_len:
        return text
    if max_len < len(ELLIPSIS):
        return text[: max(0, max_len)]
    return text[: max_len - len(ELLIPSIS)] + ELLIPSIS


def _envelope(annotation: str, elapsed_ms: int) -> dict[str, object]:
    return {
        "entries": [],
        "total_match_count": 0,
        "was_truncated": False,
        "elapsed_ms": elapsed_ms,
        "annotation": annotation,
    }


def _fit_annotation(annotation: str, elapsed_ms: int, limit: int) -> tuple[str, int]:
    """Shorten an oversized annotation until the empty envelope fits the limit."""
    size = serialized_size(_envelope(annotation, elapsed_ms))
    while size > limit and annotation:
        overflow = size - limit
        annotation = truncate_text(annotation, max(0, len(annotation) - overflow - 1))
        size = serialized_size(_envelope(annotation, elapsed_ms))
    return annotation, size


def _clip_content(content: str) -> str:
    if len(content) <= DEGRADE_MAX_CONTENT_CHARS:
        return content
    return content[:DEGRADE_MAX_CONTENT_CHARS] + ELLIPSIS


def _degrade_match(match: LineMatch) -> LineMatch:
    return LineMatch(
        line_number=match.line_number,
        content=_clip_content(match.content),
        context_before=None,
        context_after=None,
    )


def _degrade(record: MatchRecord) -> MatchRecord:
    matches = record.matches
    if matches is not None:
        matches = [_degrade_match(match) for match in matches[:DEGRADE_MAX_MATCHES]]
    return replace(record, matches=matches, preview=None)


def bound_results(
    entries: Iterable[MatchRecord],
    annotation: str,
    elapsed_ms: int,
    *,
    max_chars: int = MAX_CHARS,
    reserve: int = RESERVE_CHARS,
) -> BoundedResult:
    """Select whole entries under the budget, then shrink the tail half if truncated."""
    limit = max(0, max_chars - reserve)
    elapsed = max(0, int(elapsed_ms))
    annotation, running = _fit_annotation(annotation, elapsed, limit)

    accepted: list[MatchRecord] = []
    total_match_count = 0
    was_truncated = False
    for entry in entries:
        cost = serialized_size(record_to_dict(entry))
        if accepted:
            cost += 1
        count = total_match_count + (len(entry.matches) if entry.matches else 1)
        # the envelope was sized with a one-digit count
        if running + cost + len(str(count)) - 1 > limit:
            was_truncated = True
            break
        accepted.append(entry)
        total_match_count = count
        running += cost

    if was_truncated and accepted:
        midpoint = len(accepted) // 2
        for index in range(midpoint, len(accepted)):
            accepted[index] = _degrade(accepted[index])

    return BoundedResult(
        entries=tuple(accepted),
        total_match_count=total_match_count,
        was_truncated=was_truncated,
        elapsed_ms=elapsed,
        annotation=annotation,
    )


def bound_tree_text(
    tree: str,
    total_files: int,
    total_dirs: int,
    annotation: str,
    *,
    max_chars: int = MAX_CHARS,
    reserve: int = RESERVE_CHARS,
) -> TreeResult:
    """Keep whole lines of a rendered tree under the budget left by the annotation."""
    limit = max(0, max_chars - reserve)
    annotation = truncate_text(annotation, max(0, limit - len(TREE_TRUNCATION_MARKER) - 1))
    limit -= len(annotation)
    if len(tree) <= limit:
        return TreeResult(
            tree=tree,
            total_files=total_files,
            total_dirs=total_dirs,
            was_truncated=False,
            annotation=annotation,
        )

    line_limit = limit - len(TREE_TRUNCATION_MARKER) - 1
    kept: list[str] = []
    running = 0
    for line in tree.split("\n"):
        cost = len(line) + (1 if kept else 0)
        if running + cost > line_limit:
            break
        kept.append(line)
        running += cost
    kept.append(TREE_TRUNCATION_MARKER)
    return TreeResult(
        tree="\n".join(kept),
        total_files=total_files,
        total_dirs=total_dirs,
        was_truncated=True,
        annotation=annotation,
    )
