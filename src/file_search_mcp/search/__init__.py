"""Matcher collaborators: glob walk, ripgrep, fuzzy ranking."""

from .fuzzy import DEFAULT_FUZZY_LIMIT, fuzzy_rank
from .glob import expand_braces, glob_files, matches_glob, normalize_glob, read_gitignore
from .ripgrep import (
    RipgrepError,
    RipgrepNotInstalledError,
    RipgrepOptions,
    build_ripgrep_args,
    parse_ripgrep_json,
    search_with_ripgrep,
)

__all__ = [
    "DEFAULT_FUZZY_LIMIT",
    "RipgrepError",
    "RipgrepNotInstalledError",
    "RipgrepOptions",
    "build_ripgrep_args",
    "expand_braces",
    "fuzzy_rank",
    "glob_files",
    "matches_glob",
    "normalize_glob",
    "parse_ripgrep_json",
    "read_gitignore",
    "search_with_ripgrep",
]
