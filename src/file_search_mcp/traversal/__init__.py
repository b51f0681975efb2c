"""Safe directory traversal primitives."""

from .fs import (
    FsOutcome,
    InvalidParameterFormatError,
    format_modified,
    format_size,
    is_binary_content,
    is_binary_path,
    list_directory,
    parse_duration,
    parse_size,
    read_preview,
    read_text_safe,
    stat_path,
)
from .symlinks import SymlinkTracker, create_symlink_tracker

__all__ = [
    "FsOutcome",
    "InvalidParameterFormatError",
    "SymlinkTracker",
    "create_symlink_tracker",
    "format_modified",
    "format_size",
    "is_binary_content",
    "is_binary_path",
    "list_directory",
    "parse_duration",
    "parse_size",
    "read_preview",
    "read_text_safe",
    "stat_path",
]
