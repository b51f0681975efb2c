"""Typed models for bounded search responses."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class LineMatch:
    """One matching line reported by the content-search engine."""

    line_number: int
    content: str
    context_before: list[str] | None = None
    context_after: list[str] | None = None


@dataclass(slots=True)
class MatchRecord:
    """One file surfaced by a search.

    Only the degrade phase of the truncator trims fields, and it does so on its
    own copy of the record.
    """

    path: str
    size: int | None = None
    size_formatted: str | None = None
    modified: str | None = None
    matches: list[LineMatch] | None = None
    preview: str | None = None


@dataclass(slots=True, frozen=True)
class BoundedResult:
    """Size-bounded response for one search invocation."""

    entries: tuple[MatchRecord, ...]
    total_match_count: int
    was_truncated: bool
    elapsed_ms: int
    annotation: str


@dataclass(slots=True, frozen=True)
class TreeResult:
    """Size-bounded rendering of a directory tree."""

    tree: str
    total_files: int
    total_dirs: int
    was_truncated: bool
    annotation: str
