"""Usage metrics recording."""

from .recorder import (
    JsonlMetricsRecorder,
    MetricsSummary,
    ToolCallEvent,
    build_event,
    sanitize_params,
    summarize_events,
    utc_timestamp,
)

__all__ = [
    "JsonlMetricsRecorder",
    "MetricsSummary",
    "ToolCallEvent",
    "build_event",
    "sanitize_params",
    "summarize_events",
    "utc_timestamp",
]
