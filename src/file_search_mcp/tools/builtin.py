"""Built-in tool handlers: argument validation and response shaping."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import asdict

from file_search_mcp.bounding import (
    BoundedResult,
    TreeResult,
    format_search_results_text,
    format_tree_text,
)
from file_search_mcp.metrics import JsonlMetricsRecorder
from file_search_mcp.suggestions import FUZZY_FIND, SEARCH_CONTENT, SEARCH_FILES
from file_search_mcp.tools.operations import (
    TREE,
    FuzzyFindRequest,
    SearchContentRequest,
    SearchFilesRequest,
    SearchTools,
    ToolOutcome,
    TreeRequest,
)
from file_search_mcp.tools.registry import ToolDispatchError, ToolHandler, ToolRegistry
from file_search_mcp.traversal import InvalidParameterFormatError

DETAIL_LEVELS = ("minimal", "standard", "full")
MAX_CONTEXT_LINES = 10
MIN_TREE_DEPTH = 1
MAX_TREE_DEPTH = 10
DEFAULT_TREE_DEPTH = 3
MAX_METRICS_LIMIT = 10_000
CACHED_PREFIX = "[cached] "


def register_builtin_tools(
    registry: ToolRegistry,
    tools: SearchTools,
    metrics: JsonlMetricsRecorder,
) -> None:
    """Register the search tools plus cache and metrics introspection."""
    registry.register(
        SEARCH_FILES, _search_files_handler(tools), "Find files by glob pattern."
    )
    registry.register(
        SEARCH_CONTENT, _search_content_handler(tools), "Find text inside files with ripgrep."
    )
    registry.register(FUZZY_FIND, _fuzzy_find_handler(tools), "Find files by approximate name.")
    registry.register(TREE, _tree_handler(tools), "Show directory structure.")
    registry.register("cache_stats", _cache_stats_handler(tools), "Report result cache counters.")
    registry.register(
        "metrics_summary", _metrics_summary_handler(metrics), "Summarize recorded tool calls."
    )


def _required_string(arguments: dict[str, object], tool: str, name: str) -> str:
    value = arguments.get(name)
    if not isinstance(value, str) or not value.strip():
        raise ToolDispatchError.invalid_params(f"{tool} {name} must be a non-empty string.")
    return value


def _optional_string(arguments: dict[str, object], tool: str, name: str) -> str | None:
    value = arguments.get(name)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ToolDispatchError.invalid_params(f"{tool} {name} must be a string.")
    return value


def _path(arguments: dict[str, object], tool: str) -> str:
    value = _optional_string(arguments, tool, "path")
    return value if value else "."


def _bool(arguments: dict[str, object], tool: str, name: str, default: bool) -> bool:
    value = arguments.get(name, default)
    if not isinstance(value, bool):
        raise ToolDispatchError.invalid_params(f"{tool} {name} must be a boolean.")
    return value


def _int_in_range(
    arguments: dict[str, object],
    tool: str,
    name: str,
    low: int,
    high: int,
) -> int | None:
    value = arguments.get(name)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise ToolDispatchError.invalid_params(f"{tool} {name} must be an integer.")
    if value < low or value > high:
        raise ToolDispatchError.invalid_params(f"{tool} {name} must be between {low} and {high}.")
    return value


def _string_list(arguments: dict[str, object], tool: str, name: str) -> tuple[str, ...]:
    value = arguments.get(name)
    if value is None:
        return ()
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ToolDispatchError.invalid_params(f"{tool} {name} must be a list of strings.")
    return tuple(value)


def _detail_level(arguments: dict[str, object], tool: str) -> str:
    value = arguments.get("detail_level", "standard")
    if value not in DETAIL_LEVELS:
        raise ToolDispatchError.invalid_params(
            f"{tool} detail_level must be one of: {', '.join(DETAIL_LEVELS)}."
        )
    return str(value)


def _reasoning(arguments: dict[str, object], tool: str) -> str:
    return _optional_string(arguments, tool, "reasoning") or ""


def _run(call: Callable[[], ToolOutcome]) -> ToolOutcome:
    try:
        return call()
    except InvalidParameterFormatError as error:
        raise ToolDispatchError.invalid_params(str(error)) from error


def _search_response(outcome: ToolOutcome, query: str, tool: str) -> dict[str, object]:
    result = outcome.result
    if not isinstance(result, BoundedResult):
        raise TypeError(f"{tool} produced {type(result).__name__}, expected BoundedResult")
    text = format_search_results_text(result, query=query, tool=tool)
    if outcome.cached:
        text = CACHED_PREFIX + text
    return {
        "text": text,
        "cached": outcome.cached,
        "total_match_count": result.total_match_count,
        "file_count": len(result.entries),
        "was_truncated": result.was_truncated,
        "elapsed_ms": result.elapsed_ms,
        "annotation": result.annotation,
    }


def _search_files_handler(tools: SearchTools) -> ToolHandler:
    def handler(arguments: dict[str, object]) -> dict[str, object]:
        pattern = _required_string(arguments, SEARCH_FILES, "pattern")
        request = SearchFilesRequest(
            reasoning=_reasoning(arguments, SEARCH_FILES),
            pattern=pattern,
            path=_path(arguments, SEARCH_FILES),
            include_hidden=_bool(arguments, SEARCH_FILES, "include_hidden", True),
            ignore_gitignore=_bool(arguments, SEARCH_FILES, "ignore_gitignore", True),
            exclude=_string_list(arguments, SEARCH_FILES, "exclude"),
            detail_level=_detail_level(arguments, SEARCH_FILES),  # type: ignore[arg-type]
            modified_within=_optional_string(arguments, SEARCH_FILES, "modified_within"),
            min_size=_optional_string(arguments, SEARCH_FILES, "min_size"),
        )
        outcome = _run(lambda: tools.search_files(request))
        return _search_response(outcome, pattern, SEARCH_FILES)

    return handler


def _search_content_handler(tools: SearchTools) -> ToolHandler:
    def handler(arguments: dict[str, object]) -> dict[str, object]:
        query = _required_string(arguments, SEARCH_CONTENT, "query")
        request = SearchContentRequest(
            reasoning=_reasoning(arguments, SEARCH_CONTENT),
            query=query,
            path=_path(arguments, SEARCH_CONTENT),
            file_pattern=_optional_string(arguments, SEARCH_CONTENT, "file_pattern") or None,
            include_hidden=_bool(arguments, SEARCH_CONTENT, "include_hidden", True),
            ignore_gitignore=_bool(arguments, SEARCH_CONTENT, "ignore_gitignore", True),
            exclude=_string_list(arguments, SEARCH_CONTENT, "exclude"),
            detail_level=_detail_level(arguments, SEARCH_CONTENT),  # type: ignore[arg-type]
            context_lines=_int_in_range(
                arguments, SEARCH_CONTENT, "context_lines", 0, MAX_CONTEXT_LINES
            ),
        )
        outcome = _run(lambda: tools.search_content(request))
        return _search_response(outcome, query, SEARCH_CONTENT)

    return handler


def _fuzzy_find_handler(tools: SearchTools) -> ToolHandler:
    def handler(arguments: dict[str, object]) -> dict[str, object]:
        query = _required_string(arguments, FUZZY_FIND, "query")
        request = FuzzyFindRequest(
            reasoning=_reasoning(arguments, FUZZY_FIND),
            query=query,
            path=_path(arguments, FUZZY_FIND),
            include_hidden=_bool(arguments, FUZZY_FIND, "include_hidden", True),
            detail_level=_detail_level(arguments, FUZZY_FIND),  # type: ignore[arg-type]
        )
        outcome = _run(lambda: tools.fuzzy_find(request))
        return _search_response(outcome, query, FUZZY_FIND)

    return handler


def _tree_handler(tools: SearchTools) -> ToolHandler:
    def handler(arguments: dict[str, object]) -> dict[str, object]:
        depth = _int_in_range(arguments, TREE, "depth", MIN_TREE_DEPTH, MAX_TREE_DEPTH)
        request = TreeRequest(
            reasoning=_reasoning(arguments, TREE),
            path=_path(arguments, TREE),
            depth=DEFAULT_TREE_DEPTH if depth is None else depth,
            include_hidden=_bool(arguments, TREE, "include_hidden", False),
            dirs_only=_bool(arguments, TREE, "dirs_only", False),
        )
        outcome = _run(lambda: tools.tree(request))
        result = outcome.result
        if not isinstance(result, TreeResult):
            raise TypeError(f"tree produced {type(result).__name__}, expected TreeResult")
        text = format_tree_text(result)
        if outcome.cached:
            text = CACHED_PREFIX + text
        return {
            "text": text,
            "cached": outcome.cached,
            "total_files": result.total_files,
            "total_dirs": result.total_dirs,
            "was_truncated": result.was_truncated,
            "annotation": result.annotation,
        }

    return handler


def _cache_stats_handler(tools: SearchTools) -> ToolHandler:
    def handler(_: dict[str, object]) -> dict[str, object]:
        stats = tools.cache.stats()
        return {
            "stats": asdict(stats),
            "ttl_seconds": tools.cache.ttl_seconds,
            "max_entries": tools.cache.max_entries,
        }

    return handler


def _metrics_summary_handler(metrics: JsonlMetricsRecorder) -> ToolHandler:
    def handler(arguments: dict[str, object]) -> dict[str, object]:
        limit = _int_in_range(arguments, "metrics_summary", "limit", 1, MAX_METRICS_LIMIT)
        summary = metrics.summarize() if limit is None else metrics.summarize(limit)
        return {"enabled": metrics.enabled, "summary": asdict(summary)}

    return handler
