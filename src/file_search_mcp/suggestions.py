"""Query heuristics for zero-result and slow-query outcomes.

Each tool owns an ordered tuple of independent rules. A rule pairs a predicate
over the raw query with a producer of suggestions; every rule whose predicate
holds contributes, in declaration order.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass
from typing import Final, Literal

SuggestionKind = Literal["simplified", "fuzzy-redirect", "alternative", "hint"]
ComplexityLevel = Literal["simple", "moderate", "complex"]

SEARCH_CONTENT: Final = "search_content"
SEARCH_FILES: Final = "search_files"
FUZZY_FIND: Final = "fuzzy_find"

_WILDCARD = ".*"
_ESCAPED_META_PATTERN: Final[re.Pattern[str]] = re.compile(r"\\([.()\[\]{}+*?^$|])")
_FILENAME_PATTERN: Final[re.Pattern[str]] = re.compile(r"\w+\.\w+$")
_TYPE_SUFFIX_PATTERN: Final[re.Pattern[str]] = re.compile(r"\w+(?:Controller|Service|Component)")
_CHAR_CLASS_PATTERN: Final[re.Pattern[str]] = re.compile(r"\[[^\]]+\]")
_GLOB_META = "*?["

EXTENSION_TYPOS: Final[tuple[tuple[str, str], ...]] = (
    (".typescript", ".ts"),
    (".javascript", ".js"),
    (".python", ".py"),
    (".yml", ".yaml"),
    (".yaml", ".yml"),
)

GENERIC_HINT = "No matches found. Try: 1) Broader search terms, 2) Different path, 3) Check spelling"


@dataclass(slots=True, frozen=True)
class Suggestion:
    """One actionable hint for the caller."""

    kind: SuggestionKind
    message: str
    proposed_query: str | None = None


@dataclass(slots=True, frozen=True)
class ComplexityReport:
    """Coarse complexity score of a regex query."""

    level: ComplexityLevel
    hints: tuple[str, ...]


@dataclass(slots=True, frozen=True)
class SuggestionRule:
    """Predicate/producer pair evaluated against a query."""

    name: str
    applies: Callable[[str], bool]
    produce: Callable[[str], list[Suggestion]]


def _alternation_parts(query: str) -> list[str]:
    return [part.strip() for part in query.split("|")]


def _suggest_shortest_alternative(query: str) -> list[Suggestion]:
    parts = _alternation_parts(query)
    # min keeps the first of equally short parts
    shortest = min(parts, key=len)
    output = [
        Suggestion(
            kind="simplified",
            message=f'Try searching for just "{shortest}" instead of the OR pattern',
            proposed_query=shortest,
        )
    ]
    if len(parts) <= 3:
        quoted = ", ".join(f'"{part}"' for part in parts)
        output.append(
            Suggestion(kind="hint", message=f"Consider searching for each term separately: {quoted}")
        )
    return output


def _without_wildcards(query: str) -> str:
    return re.sub(r"\s+", " ", query.replace(_WILDCARD, " ")).strip()


def _has_removable_wildcard(query: str) -> bool:
    if _WILDCARD not in query:
        return False
    simpler = _without_wildcards(query)
    return simpler != query and len(simpler) > 2


def _suggest_without_wildcards(query: str) -> list[Suggestion]:
    simpler = _without_wildcards(query)
    return [
        Suggestion(
            kind="simplified",
            message=f'Try a simpler search without wildcards: "{simpler}"',
            proposed_query=simpler,
        )
    ]


def _suggest_unescaped(query: str) -> list[Suggestion]:
    unescaped = _ESCAPED_META_PATTERN.sub(r"\1", query)
    return [
        Suggestion(
            kind="alternative",
            message=f'If searching for literal text, try: "{unescaped}"',
            proposed_query=unescaped,
        )
    ]


def _has_mixed_case(query: str) -> bool:
    return any(char.isupper() for char in query) and any(char.islower() for char in query)


def _suggest_lowercase(query: str) -> list[Suggestion]:
    lower = query.lower()
    return [
        Suggestion(
            kind="alternative",
            message=(
                "Note: Search is case-sensitive when query has uppercase. "
                f'Try lowercase: "{lower}"'
            ),
            proposed_query=lower,
        )
    ]


def _looks_like_filename(query: str) -> bool:
    return bool(_FILENAME_PATTERN.search(query) or _TYPE_SUFFIX_PATTERN.search(query))


def _suggest_fuzzy_find(_: str) -> list[Suggestion]:
    return [
        Suggestion(
            kind="hint",
            message="If looking for a file by name, try fuzzy_find instead of search_content",
        )
    ]


def _lacks_recursive_marker(pattern: str) -> bool:
    return "**" not in pattern and "/" not in pattern


def _suggest_recursive_hint(_: str) -> list[Suggestion]:
    return [
        Suggestion(
            kind="hint",
            message=(
                "Pattern automatically searches recursively. "
                "Make sure extension is correct (e.g., *.ts, *.py)"
            ),
        )
    ]


def _has_extension_typo(pattern: str) -> bool:
    return any(typo in pattern for typo, _ in EXTENSION_TYPOS)


def _suggest_extension_fixes(pattern: str) -> list[Suggestion]:
    output: list[Suggestion] = []
    for typo, correct in EXTENSION_TYPOS:
        if typo not in pattern:
            continue
        output.append(
            Suggestion(
                kind="alternative",
                message=f'Did you mean "{correct}" instead of "{typo}"?',
                proposed_query=pattern.replace(typo, correct, 1),
            )
        )
    return output


def _is_literal_name(pattern: str) -> bool:
    return bool(pattern) and not any(char in pattern for char in _GLOB_META) and "/" not in pattern


def _suggest_fuzzy_redirect(pattern: str) -> list[Suggestion]:
    return [
        Suggestion(
            kind="fuzzy-redirect",
            message=f'Exact names must match fully. Try fuzzy_find with "{pattern}"',
            proposed_query=pattern,
        )
    ]


def _has_path_segments(query: str) -> bool:
    return "/" in query.strip("/")


def _suggest_last_segment(query: str) -> list[Suggestion]:
    segment = query.strip("/").rsplit("/", 1)[-1]
    return [
        Suggestion(
            kind="fuzzy-redirect",
            message=f'Try only the file name fragment: "{segment}"',
            proposed_query=segment,
        )
    ]


def _has_extension(query: str) -> bool:
    return bool(_FILENAME_PATTERN.search(query))


def _suggest_stem(query: str) -> list[Suggestion]:
    stem = query.rsplit("/", 1)[-1].rsplit(".", 1)[0]
    return [
        Suggestion(
            kind="fuzzy-redirect",
            message=f'Fewer characters match more loosely. Try "{stem}"',
            proposed_query=stem,
        )
    ]


CONTENT_RULES: Final[tuple[SuggestionRule, ...]] = (
    SuggestionRule("alternation", lambda query: "|" in query, _suggest_shortest_alternative),
    SuggestionRule("wildcard", _has_removable_wildcard, _suggest_without_wildcards),
    SuggestionRule(
        "escaped-metachar",
        lambda query: bool(_ESCAPED_META_PATTERN.search(query)),
        _suggest_unescaped,
    ),
    SuggestionRule("mixed-case", _has_mixed_case, _suggest_lowercase),
    SuggestionRule("filename-like", _looks_like_filename, _suggest_fuzzy_find),
)

FILE_RULES: Final[tuple[SuggestionRule, ...]] = (
    SuggestionRule("implicit-recursion", _lacks_recursive_marker, _suggest_recursive_hint),
    SuggestionRule("extension-typo", _has_extension_typo, _suggest_extension_fixes),
    SuggestionRule("literal-name", _is_literal_name, _suggest_fuzzy_redirect),
)

FUZZY_RULES: Final[tuple[SuggestionRule, ...]] = (
    SuggestionRule("path-segments", _has_path_segments, _suggest_last_segment),
    SuggestionRule("extension", _has_extension, _suggest_stem),
)

RULES_BY_TOOL: Final[dict[str, tuple[SuggestionRule, ...]]] = {
    SEARCH_CONTENT: CONTENT_RULES,
    SEARCH_FILES: FILE_RULES,
    FUZZY_FIND: FUZZY_RULES,
}


def suggest_for_zero_results(query: str, tool: str) -> list[Suggestion]:
    """Return every applicable suggestion for a query that matched nothing."""
    suggestions: list[Suggestion] = []
    for rule in RULES_BY_TOOL.get(tool, ()):
        if rule.applies(query):
            suggestions.extend(rule.produce(query))
    if not suggestions:
        suggestions.append(Suggestion(kind="hint", message=GENERIC_HINT))
    return suggestions


def analyze_complexity(query: str) -> ComplexityReport:
    """Score regex complexity from alternations, wildcards, groups and classes."""
    or_count = query.count("|")
    wildcard_count = query.count(_WILDCARD)
    group_count = (query.count("(") + query.count(")")) / 2
    char_class_count = len(_CHAR_CLASS_PATTERN.findall(query))
    total = or_count + wildcard_count + group_count + char_class_count

    hints: list[str] = []
    level: ComplexityLevel
    if total == 0:
        level = "simple"
    elif total <= 3:
        level = "moderate"
    else:
        level = "complex"
        hints.append(
            "Complex regex may be slow. Consider breaking into multiple simpler searches."
        )
    if or_count > 5:
        hints.append(
            f"Query has {or_count} OR alternatives. "
            "Consider searching for the most specific term first."
        )
    if wildcard_count > 2:
        hints.append("Multiple wildcards (.*) can match too broadly. Try more specific patterns.")
    return ComplexityReport(level=level, hints=tuple(hints))


def suggest_context_lines(query: str) -> int:
    """Pick a context window size from the shape of the query."""
    if re.search(r"\b(def|function|class|interface|type|const|let|var)\s+\w+", query):
        return 5
    if re.search(r"\b(import|require|from)\b", query):
        return 1
    if re.search(r"\b(error|exception|throw|catch|log|console)\b", query, re.IGNORECASE):
        return 3
    if re.search(r"\b(config|settings|options|env)\b", query, re.IGNORECASE):
        return 4
    return 2


def format_suggestions(suggestions: list[Suggestion]) -> str:
    """Render suggestions as an indented text block."""
    if not suggestions:
        return ""
    lines = ["", "Suggestions:"]
    for suggestion in suggestions:
        bullet = "  -" if suggestion.kind == "hint" else "  ->"
        lines.append(f"{bullet} {suggestion.message}")
    return "\n".join(lines)
