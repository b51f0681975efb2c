"""Plain-text presentation of bounded results."""

from __future__ import annotations

from file_search_mcp.bounding.models import BoundedResult, TreeResult
from file_search_mcp.bounding.truncate import truncate_text
from file_search_mcp.suggestions import (
    SEARCH_CONTENT,
    analyze_complexity,
    format_suggestions,
    suggest_for_zero_results,
)

MATCH_LINE_CHARS = 150
PREVIEW_LINE_CHARS = 100
PREVIEW_LINES = 5


def format_search_results_text(
    result: BoundedResult,
    *,
    query: str | None = None,
    tool: str | None = None,
) -> str:
    """Render a bounded result, adding suggestions when nothing matched."""
    lines: list[str] = [
        f"Found {result.total_match_count} match(es) in {len(result.entries)} file(s)",
        f"Search time: {result.elapsed_ms}ms",
    ]
    if result.was_truncated:
        lines.append("Results truncated to fit response size limit")
    lines.append("")

    for entry in result.entries:
        lines.append(entry.path)
        if entry.size_formatted:
            lines.append(f"   Size: {entry.size_formatted} | Modified: {entry.modified}")
        for match in entry.matches or []:
            text = truncate_text(match.content.strip(), MATCH_LINE_CHARS)
            lines.append(f"   L{match.line_number}: {text}")
        if entry.preview:
            lines.append("   Preview:")
            for preview_line in entry.preview.split("\n")[:PREVIEW_LINES]:
                lines.append(f"   | {truncate_text(preview_line, PREVIEW_LINE_CHARS)}")
        lines.append("")

    if not result.entries and query is not None and tool is not None:
        lines.append(format_suggestions(suggest_for_zero_results(query, tool)))
    if query is not None and tool == SEARCH_CONTENT:
        report = analyze_complexity(query)
        if report.hints:
            lines.append("")
            lines.append(f"Query complexity: {report.level}")
            lines.extend(f"  - {hint}" for hint in report.hints)
    return "\n".join(lines)


def format_tree_text(result: TreeResult) -> str:
    """Render a bounded tree with its totals line."""
    lines = [result.tree, "", f"{result.total_dirs} directories, {result.total_files} files"]
    if result.was_truncated:
        lines.append("Output truncated to fit response size limit")
    return "\n".join(lines)
