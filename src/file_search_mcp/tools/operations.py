"""Tool-level search operations: cache lookup, matcher call, bounding, metrics."""

from __future__ import annotations

import logging
import os
import subprocess
import time
from collections.abc import Callable
from dataclasses import asdict, dataclass, field, replace
from pathlib import Path
from typing import Literal

from file_search_mcp.bounding import (
    BoundedResult,
    MatchRecord,
    TreeResult,
    bound_results,
    bound_tree_text,
)
from file_search_mcp.cache import QueryCache, cache_key
from file_search_mcp.config import ServerConfig
from file_search_mcp.metrics import JsonlMetricsRecorder, build_event
from file_search_mcp.search import (
    DEFAULT_FUZZY_LIMIT,
    RipgrepError,
    RipgrepOptions,
    fuzzy_rank,
    glob_files,
    read_gitignore,
    search_with_ripgrep,
)
from file_search_mcp.search.ripgrep import Runner
from file_search_mcp.suggestions import (
    FUZZY_FIND,
    SEARCH_CONTENT,
    SEARCH_FILES,
    suggest_context_lines,
)
from file_search_mcp.tools.registry import ToolDispatchError
from file_search_mcp.traversal import (
    create_symlink_tracker,
    format_modified,
    format_size,
    list_directory,
    parse_duration,
    parse_size,
    read_preview,
    stat_path,
)

logger = logging.getLogger(__name__)

DetailLevel = Literal["minimal", "standard", "full"]
CachedValue = BoundedResult | TreeResult

TREE = "tree"

PREVIEW_LINES = 10


@dataclass(slots=True, frozen=True)
class SearchFilesRequest:
    """Arguments of search_files."""

    reasoning: str
    pattern: str
    path: str = "."
    include_hidden: bool = True
    ignore_gitignore: bool = True
    exclude: tuple[str, ...] = field(default_factory=tuple)
    detail_level: DetailLevel = "standard"
    modified_within: str | None = None
    min_size: str | None = None


@dataclass(slots=True, frozen=True)
class SearchContentRequest:
    """Arguments of search_content; context_lines None means pick from the query."""

    reasoning: str
    query: str
    path: str = "."
    file_pattern: str | None = None
    include_hidden: bool = True
    ignore_gitignore: bool = True
    exclude: tuple[str, ...] = field(default_factory=tuple)
    detail_level: DetailLevel = "standard"
    context_lines: int | None = None


@dataclass(slots=True, frozen=True)
class FuzzyFindRequest:
    """Arguments of fuzzy_find."""

    reasoning: str
    query: str
    path: str = "."
    include_hidden: bool = True
    detail_level: DetailLevel = "standard"


@dataclass(slots=True, frozen=True)
class TreeRequest:
    """Arguments of tree."""

    reasoning: str
    path: str = "."
    depth: int = 3
    include_hidden: bool = False
    dirs_only: bool = False


@dataclass(slots=True, frozen=True)
class ToolOutcome:
    """Result of one tool call and whether it came from the cache."""

    result: CachedValue
    cached: bool = False


@dataclass(slots=True)
class _TreeNode:
    name: str
    is_dir: bool
    children: list[_TreeNode] = field(default_factory=list)


class SearchTools:
    """The four search tools over one configured root."""

    def __init__(
        self,
        config: ServerConfig,
        cache: QueryCache[CachedValue],
        metrics: JsonlMetricsRecorder,
        ripgrep_runner: Runner = subprocess.run,
        timer: Callable[[], float] = time.perf_counter,
    ) -> None:
        self._config = config
        self._cache = cache
        self._metrics = metrics
        self._ripgrep_runner = ripgrep_runner
        self._timer = timer

    @property
    def cache(self) -> QueryCache[CachedValue]:
        """Return the injected result cache."""
        return self._cache

    def search_files(self, request: SearchFilesRequest) -> ToolOutcome:
        """Find files by glob pattern with optional age and size filters."""
        params = asdict(request)
        started = self._timer()
        key = cache_key(SEARCH_FILES, params)
        cached = self._cached(key, SEARCH_FILES, params, started)
        if cached is not None:
            return cached

        max_age = parse_duration(request.modified_within) if request.modified_within else None
        min_bytes = parse_size(request.min_size) if request.min_size else None
        base = self._resolve_base(request.path)
        exclude = self._config.search.default_excludes + request.exclude
        if request.ignore_gitignore:
            exclude += read_gitignore(base)
        files = glob_files(
            base,
            request.pattern,
            include_hidden=request.include_hidden,
            exclude=exclude,
            max_files=None,
        )
        now = time.time()
        kept: list[Path] = []
        for file_path in files:
            if max_age is not None or min_bytes is not None:
                stat = stat_path(file_path).value
                if stat is None:
                    continue
                if max_age is not None and now - stat.st_mtime > max_age:
                    continue
                if min_bytes is not None and stat.st_size < min_bytes:
                    continue
            kept.append(file_path)

        max_files = self._config.limits.max_files
        annotation = request.reasoning
        capped = len(kept) > max_files
        if capped:
            annotation = _with_note(
                annotation,
                f"Note: {len(kept)} files matched; only the first {max_files} are listed.",
            )
            kept = kept[:max_files]
        records = [self._file_record(file_path, base, request.detail_level) for file_path in kept]
        result = self._bound(records, annotation, started)
        if capped:
            result = replace(result, was_truncated=True)
        return self._finish(key, SEARCH_FILES, params, started, result)

    def search_content(self, request: SearchContentRequest) -> ToolOutcome:
        """Search file contents with ripgrep."""
        context_lines = request.context_lines
        if context_lines is None:
            context_lines = suggest_context_lines(request.query)
        if request.detail_level == "minimal":
            context_lines = 0
        request = replace(request, context_lines=context_lines)
        params = asdict(request)
        started = self._timer()
        key = cache_key(SEARCH_CONTENT, params)
        cached = self._cached(key, SEARCH_CONTENT, params, started)
        if cached is not None:
            return cached

        base = self._resolve_base(request.path)
        options = RipgrepOptions(
            query=request.query,
            path=str(base),
            file_pattern=request.file_pattern,
            ignore_gitignore=request.ignore_gitignore,
            include_hidden=request.include_hidden,
            exclude=self._config.search.default_excludes + request.exclude,
            context_lines=context_lines,
            max_results=self._config.limits.max_results,
            timeout_seconds=self._config.search.ripgrep_timeout_seconds,
        )
        try:
            matches = search_with_ripgrep(options, runner=self._ripgrep_runner)
        except RipgrepError as error:
            result = self._bound([], _with_note(request.reasoning, f"Error: {error}"), started)
            self._record(SEARCH_CONTENT, params, started, 0, False, error=str(error))
            return ToolOutcome(result=result)

        records = [
            self._content_record(match, base, request.detail_level) for match in matches
        ]
        result = self._bound(records, request.reasoning, started)
        return self._finish(key, SEARCH_CONTENT, params, started, result)

    def fuzzy_find(self, request: FuzzyFindRequest) -> ToolOutcome:
        """Rank files under the base directory by approximate name."""
        params = asdict(request)
        started = self._timer()
        key = cache_key(FUZZY_FIND, params)
        cached = self._cached(key, FUZZY_FIND, params, started)
        if cached is not None:
            return cached

        base = self._resolve_base(request.path)
        files = glob_files(
            base,
            "**/*",
            include_hidden=request.include_hidden,
            exclude=self._config.search.default_excludes,
            max_files=None,
        )
        relative = [file_path.relative_to(base).as_posix() for file_path in files]
        ranked = fuzzy_rank(request.query, relative, limit=DEFAULT_FUZZY_LIMIT)
        records = [
            self._file_record(base / candidate, base, request.detail_level) for candidate in ranked
        ]
        result = self._bound(records, request.reasoning, started)
        return self._finish(key, FUZZY_FIND, params, started, result)

    def tree(self, request: TreeRequest) -> ToolOutcome:
        """Render the directory structure to a bounded depth."""
        params = asdict(request)
        started = self._timer()
        key = cache_key(TREE, params)
        cached = self._cached(key, TREE, params, started)
        if cached is not None:
            return cached

        base = self._resolve_base(request.path)
        tracker = create_symlink_tracker()
        excluded = set(self._config.search.default_excludes)
        counts = {"files": 0, "dirs": 0}

        def build(directory: Path, level: int) -> list[_TreeNode]:
            if level > request.depth:
                return []
            if not tracker.check_and_mark(directory):
                return []
            listing = list_directory(directory)
            if listing.value is None:
                return []
            entries: list[tuple[bool, str, Path]] = []
            for entry in listing.value:
                if not request.include_hidden and entry.name.startswith("."):
                    continue
                try:
                    is_dir = entry.is_dir()
                except OSError:
                    continue
                if is_dir and entry.name in excluded:
                    continue
                if request.dirs_only and not is_dir:
                    continue
                entries.append((is_dir, entry.name, Path(entry.path)))
            entries.sort(key=lambda item: (not item[0], item[1]))
            nodes: list[_TreeNode] = []
            for is_dir, name, full_path in entries:
                if is_dir:
                    counts["dirs"] += 1
                    nodes.append(_TreeNode(name, True, build(full_path, level + 1)))
                else:
                    counts["files"] += 1
                    nodes.append(_TreeNode(name, False))
            return nodes

        nodes = build(base, 1)
        root_name = base.name or str(base)
        text = "\n".join([f"{root_name}/", *_render_tree(nodes, "")])
        result = bound_tree_text(
            text,
            counts["files"],
            counts["dirs"],
            request.reasoning,
            max_chars=self._config.limits.max_chars,
            reserve=self._config.limits.reserve_chars,
        )
        return self._finish(key, TREE, params, started, result)

    def _resolve_base(self, path: str) -> Path:
        candidate = Path(path).expanduser()
        if not candidate.is_absolute():
            candidate = self._config.root / candidate
        resolved = candidate.resolve()
        if not resolved.is_dir():
            raise ToolDispatchError.invalid_params(f"path is not a directory: {path}")
        return resolved

    def _file_record(self, file_path: Path, base: Path, detail_level: DetailLevel) -> MatchRecord:
        record = MatchRecord(path=_relative_to(file_path, base))
        if detail_level == "minimal":
            return record
        self._attach_stat(record, file_path)
        if detail_level == "full":
            preview = read_preview(file_path, PREVIEW_LINES)
            if preview.value:
                record.preview = preview.value
        return record

    def _content_record(
        self, match: MatchRecord, base: Path, detail_level: DetailLevel
    ) -> MatchRecord:
        source = Path(match.path)
        if not source.is_absolute():
            source = base / source
        record = MatchRecord(path=_relative_to(source, base), matches=match.matches)
        if detail_level != "minimal":
            self._attach_stat(record, source)
        return record

    @staticmethod
    def _attach_stat(record: MatchRecord, file_path: Path) -> None:
        stat = stat_path(file_path).value
        if stat is None:
            return
        record.size = stat.st_size
        record.size_formatted = format_size(stat.st_size)
        record.modified = format_modified(stat.st_mtime)

    def _bound(self, records: list[MatchRecord], annotation: str, started: float) -> BoundedResult:
        return bound_results(
            records,
            annotation,
            self._elapsed_ms(started),
            max_chars=self._config.limits.max_chars,
            reserve=self._config.limits.reserve_chars,
        )

    def _cached(
        self, key: str, tool: str, params: dict[str, object], started: float
    ) -> ToolOutcome | None:
        if not self._config.cache.enabled:
            return None
        try:
            value = self._cache.get(key)
        except Exception:
            logger.warning("cache lookup failed for %s", tool, exc_info=True)
            return None
        if value is None:
            return None
        self._record(tool, params, started, _result_count(value), _truncated(value), cached=True)
        return ToolOutcome(result=value, cached=True)

    def _finish(
        self,
        key: str,
        tool: str,
        params: dict[str, object],
        started: float,
        result: CachedValue,
    ) -> ToolOutcome:
        count = _result_count(result)
        if self._config.cache.enabled and count > 0:
            try:
                self._cache.set(key, result)
            except Exception:
                logger.warning("cache store failed for %s", tool, exc_info=True)
        self._record(tool, params, started, count, _truncated(result))
        return ToolOutcome(result=result)

    def _record(
        self,
        tool: str,
        params: dict[str, object],
        started: float,
        result_count: int,
        truncated: bool,
        cached: bool = False,
        error: str | None = None,
    ) -> None:
        event = build_event(
            tool=tool,
            params=params,
            duration_ms=self._elapsed_ms(started),
            result_count=result_count,
            truncated=truncated,
            cached=cached,
            error=error,
        )
        self._metrics.record(event)

    def _elapsed_ms(self, started: float) -> int:
        return max(0, int((self._timer() - started) * 1000))


def _relative_to(path: Path, base: Path) -> str:
    try:
        return path.relative_to(base).as_posix()
    except ValueError:
        return os.fspath(path)


def _with_note(annotation: str, note: str) -> str:
    return f"{annotation}\n\n{note}" if annotation else note


def _result_count(result: CachedValue) -> int:
    if isinstance(result, TreeResult):
        return result.total_files + result.total_dirs
    return len(result.entries)


def _truncated(result: CachedValue) -> bool:
    return result.was_truncated


def _render_tree(nodes: list[_TreeNode], prefix: str) -> list[str]:
    lines: list[str] = []
    for index, node in enumerate(nodes):
        last = index == len(nodes) - 1
        connector = "└── " if last else "├── "
        suffix = "/" if node.is_dir else ""
        lines.append(f"{prefix}{connector}{node.name}{suffix}")
        if node.children:
            lines.extend(_render_tree(node.children, prefix + ("    " if last else "│   ")))
    return lines
