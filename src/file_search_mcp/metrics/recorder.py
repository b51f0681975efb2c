"""JSONL usage metrics for tool calls."""

from __future__ import annotations

import json
import logging
import uuid
from collections import Counter, defaultdict
from dataclasses import asdict, dataclass
from datetime import UTC, datetime
from pathlib import Path

logger = logging.getLogger(__name__)

MAX_STRING_CHARS = 200
MAX_LIST_ITEMS = 10
TOP_ITEMS = 10


@dataclass(slots=True, frozen=True)
class ToolCallEvent:
    """Sanitized record of one tool invocation."""

    timestamp: str
    event_id: str
    tool: str
    params: dict[str, object]
    duration_ms: int
    result_count: int
    truncated: bool
    cached: bool
    error: str | None


@dataclass(slots=True, frozen=True)
class MetricsSummary:
    """Aggregates over recorded tool calls."""

    total_calls: int
    calls_by_tool: dict[str, int]
    avg_duration_by_tool: dict[str, int]
    top_queries: list[dict[str, object]]
    top_patterns: list[dict[str, object]]
    error_rate: float
    truncation_rate: float
    cache_hit_rate: float
    first_call: str | None
    last_call: str | None


def utc_timestamp() -> str:
    """Return an ISO-8601 UTC timestamp."""
    return datetime.now(tz=UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def sanitize_params(params: dict[str, object]) -> dict[str, object]:
    """Drop free-text reasoning and bound the size of stored values."""
    sanitized: dict[str, object] = {}
    for key in sorted(params.keys()):
        if key == "reasoning":
            continue
        value = params[key]
        if isinstance(value, str) and len(value) > MAX_STRING_CHARS:
            sanitized[key] = value[:MAX_STRING_CHARS] + "..."
            continue
        if isinstance(value, (list, tuple)):
            sanitized[key] = list(value[:MAX_LIST_ITEMS])
            continue
        if isinstance(value, (str, int, float, bool)) or value is None:
            sanitized[key] = value
            continue
        sanitized[f"{key}_type"] = type(value).__name__
    return sanitized


def build_event(
    tool: str,
    params: dict[str, object],
    duration_ms: int,
    result_count: int,
    truncated: bool,
    cached: bool = False,
    error: str | None = None,
) -> ToolCallEvent:
    """Create a sanitized event stamped with the current time."""
    return ToolCallEvent(
        timestamp=utc_timestamp(),
        event_id=uuid.uuid4().hex[:12],
        tool=tool,
        params=sanitize_params(params),
        duration_ms=max(0, int(duration_ms)),
        result_count=result_count,
        truncated=truncated,
        cached=cached,
        error=error,
    )


class JsonlMetricsRecorder:
    """Append-only JSONL metrics store whose writes never raise."""

    def __init__(self, path: Path, enabled: bool = True) -> None:
        self._path = path
        self._enabled = enabled

    @property
    def path(self) -> Path:
        """Return on-disk JSONL path."""
        return self._path

    @property
    def enabled(self) -> bool:
        """Return True when events are persisted."""
        return self._enabled

    def record(self, event: ToolCallEvent) -> bool:
        """Append one event; failures are logged and reported as False."""
        if not self._enabled:
            return False
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with self._path.open("a", encoding="utf-8") as handle:
                handle.write(json.dumps(asdict(event), sort_keys=True, default=str))
                handle.write("\n")
        except (OSError, TypeError, ValueError):
            logger.warning("failed to record metrics event for %s", event.tool, exc_info=True)
            return False
        return True

    def read(self, limit: int = 100) -> list[dict[str, object]]:
        """Return the most recent events, oldest first."""
        if limit < 1 or not self._path.exists():
            return []
        entries: list[dict[str, object]] = []
        try:
            with self._path.open("r", encoding="utf-8") as handle:
                for line in handle:
                    stripped = line.strip()
                    if not stripped:
                        continue
                    try:
                        record = json.loads(stripped)
                    except json.JSONDecodeError:
                        continue
                    if isinstance(record, dict):
                        entries.append(record)
        except OSError:
            logger.warning("failed to read metrics from %s", self._path, exc_info=True)
            return []
        return entries[-limit:]

    def summarize(self, limit: int = 10_000) -> MetricsSummary:
        """Aggregate the most recent events."""
        return summarize_events(self.read(limit))


def _top(counter: Counter[str], label: str) -> list[dict[str, object]]:
    ordered = sorted(counter.items(), key=lambda item: (-item[1], item[0]))
    return [{label: key, "count": count} for key, count in ordered[:TOP_ITEMS]]


def summarize_events(events: list[dict[str, object]]) -> MetricsSummary:
    """Compute per-tool counts, average durations and rates."""
    calls_by_tool: Counter[str] = Counter()
    durations: defaultdict[str, list[int]] = defaultdict(list)
    queries: Counter[str] = Counter()
    patterns: Counter[str] = Counter()
    errors = 0
    truncated = 0
    cached = 0
    for event in events:
        tool = str(event.get("tool", "unknown"))
        calls_by_tool[tool] += 1
        duration = event.get("duration_ms")
        if isinstance(duration, int):
            durations[tool].append(duration)
        params = event.get("params")
        if isinstance(params, dict):
            if isinstance(params.get("query"), str):
                queries[params["query"]] += 1
            if isinstance(params.get("pattern"), str):
                patterns[params["pattern"]] += 1
        if event.get("error"):
            errors += 1
        if event.get("truncated") is True:
            truncated += 1
        if event.get("cached") is True:
            cached += 1

    total = len(events)
    timestamps = [str(event["timestamp"]) for event in events if "timestamp" in event]
    return MetricsSummary(
        total_calls=total,
        calls_by_tool=dict(sorted(calls_by_tool.items())),
        avg_duration_by_tool={
            tool: round(sum(values) / len(values)) for tool, values in sorted(durations.items())
        },
        top_queries=_top(queries, "query"),
        top_patterns=_top(patterns, "pattern"),
        error_rate=errors / total if total else 0.0,
        truncation_rate=truncated / total if total else 0.0,
        cache_hit_rate=cached / total if total else 0.0,
        first_call=timestamps[0] if timestamps else None,
        last_call=timestamps[-1] if timestamps else None,
    )
