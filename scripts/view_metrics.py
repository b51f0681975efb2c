#!/usr/bin/env python3
"""Print a summary of recorded file search tool calls."""

from __future__ import annotations

import argparse
import json
import sys
from dataclasses import asdict
from pathlib import Path

from file_search_mcp.config import DATA_DIR_NAME
from file_search_mcp.metrics import JsonlMetricsRecorder, MetricsSummary
from file_search_mcp.server import METRICS_FILE_NAME


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--root", default=".", help="Search root. Defaults to cwd.")
    parser.add_argument(
        "--metrics-file",
        default=None,
        help=f"Metrics JSONL path. Defaults to <root>/{DATA_DIR_NAME}/{METRICS_FILE_NAME}.",
    )
    parser.add_argument(
        "--limit",
        type=int,
        default=10_000,
        help="Number of most recent events to summarize. Default: 10000.",
    )
    parser.add_argument("--json", action="store_true", help="Emit the summary as JSON.")
    return parser.parse_args(argv)


def render_summary(summary: MetricsSummary) -> str:
    """Render a summary as aligned plain text."""
    if summary.total_calls == 0:
        return "No tool calls recorded."
    lines = [
        f"Total calls: {summary.total_calls}",
        f"Period: {summary.first_call} .. {summary.last_call}",
        f"Error rate: {summary.error_rate:.1%}",
        f"Truncation rate: {summary.truncation_rate:.1%}",
        f"Cache hit rate: {summary.cache_hit_rate:.1%}",
        "",
        "Calls by tool:",
    ]
    for tool, count in summary.calls_by_tool.items():
        average = summary.avg_duration_by_tool.get(tool, 0)
        lines.append(f"  {tool:<16} {count:>6}  avg {average}ms")
    if summary.top_queries:
        lines.append("")
        lines.append("Top queries:")
        lines.extend(f"  {item['count']:>4}  {item['query']}" for item in summary.top_queries)
    if summary.top_patterns:
        lines.append("")
        lines.append("Top patterns:")
        lines.extend(f"  {item['count']:>4}  {item['pattern']}" for item in summary.top_patterns)
    return "\n".join(lines)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    if args.metrics_file is not None:
        metrics_path = Path(args.metrics_file)
    else:
        metrics_path = Path(args.root).resolve() / DATA_DIR_NAME / METRICS_FILE_NAME
    if args.limit < 1:
        print("--limit must be >= 1", file=sys.stderr)
        return 2
    summary = JsonlMetricsRecorder(path=metrics_path).summarize(args.limit)
    if args.json:
        print(json.dumps(asdict(summary), indent=2, sort_keys=True))
    else:
        print(render_summary(summary))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
