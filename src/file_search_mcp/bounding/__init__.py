"""Size-bounded result assembly."""

from .formatting import format_search_results_text, format_tree_text
from .models import BoundedResult, LineMatch, MatchRecord, TreeResult
from .truncate import (
    MAX_CHARS,
    RESERVE_CHARS,
    TREE_TRUNCATION_MARKER,
    bound_results,
    bound_tree_text,
    record_to_dict,
    result_to_dict,
    serialized_size,
    truncate_text,
)

__all__ = [
    "BoundedResult",
    "LineMatch",
    "MAX_CHARS",
    "MatchRecord",
    "RESERVE_CHARS",
    "TREE_TRUNCATION_MARKER",
    "TreeResult",
    "bound_results",
    "bound_tree_text",
    "format_search_results_text",
    "format_tree_text",
    "record_to_dict",
    "result_to_dict",
    "serialized_size",
    "truncate_text",
]
