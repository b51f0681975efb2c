"""Search tool operations and registrations."""

from .builtin import register_builtin_tools
from .operations import (
    FuzzyFindRequest,
    SearchContentRequest,
    SearchFilesRequest,
    SearchTools,
    ToolOutcome,
    TreeRequest,
)
from .registry import RegisteredTool, ToolDispatchError, ToolHandler, ToolRegistry

__all__ = [
    "FuzzyFindRequest",
    "RegisteredTool",
    "SearchContentRequest",
    "SearchFilesRequest",
    "SearchTools",
    "ToolDispatchError",
    "ToolHandler",
    "ToolOutcome",
    "ToolRegistry",
    "TreeRequest",
    "register_builtin_tools",
]
