from __future__ import annotations

from file_search_mcp.suggestions import (
    GENERIC_HINT,
    Suggestion,
    format_suggestions,
    suggest_for_zero_results,
)


def _kinds(suggestions: list[Suggestion]) -> list[str]:
    return [suggestion.kind for suggestion in suggestions]


def test_alternation_proposes_shortest_part_first_on_ties() -> None:
    suggestions = suggest_for_zero_results("abc|xyz|longer", "search_content")

    assert suggestions[0] == Suggestion(
        kind="simplified",
        message='Try searching for just "abc" instead of the OR pattern',
        proposed_query="abc",
    )
    assert suggestions[1].kind == "hint"
    assert '"abc", "xyz", "longer"' in suggestions[1].message


def test_alternation_proposes_the_shortest_part() -> None:
    suggestions = suggest_for_zero_results("foo|barlong|bazz", "search_content")

    assert suggestions[0].kind == "simplified"
    assert suggestions[0].proposed_query == "foo"


def test_many_alternatives_skip_separate_term_hint() -> None:
    suggestions = suggest_for_zero_results("a1|b2|c3|d4", "search_content")

    assert _kinds(suggestions) == ["simplified"]


def test_wildcards_are_removed() -> None:
    suggestions = suggest_for_zero_results("handle.*request", "search_content")

    assert suggestions == [
        Suggestion(
            kind="simplified",
            message='Try a simpler search without wildcards: "handle request"',
            proposed_query="handle request",
        )
    ]


def test_escaped_metacharacters_are_unescaped() -> None:
    suggestions = suggest_for_zero_results(r"foo\(\)", "search_content")

    assert suggestions[0].proposed_query == "foo()"
    assert suggestions[0].kind == "alternative"


def test_mixed_case_and_filename_rules_both_contribute() -> None:
    suggestions = suggest_for_zero_results("UserService", "search_content")

    assert _kinds(suggestions) == ["alternative", "hint"]
    assert suggestions[0].proposed_query == "userservice"
    assert "fuzzy_find" in suggestions[1].message


def test_plain_content_query_gets_generic_hint() -> None:
    suggestions = suggest_for_zero_results("needle", "search_content")

    assert suggestions == [Suggestion(kind="hint", message=GENERIC_HINT)]


def test_file_pattern_extension_typo() -> None:
    suggestions = suggest_for_zero_results("*.typescript", "search_files")

    assert _kinds(suggestions) == ["hint", "alternative"]
    assert suggestions[1].proposed_query == "*.ts"


def test_literal_file_name_redirects_to_fuzzy_find() -> None:
    suggestions = suggest_for_zero_results("src/readme", "search_files")

    assert suggestions == [Suggestion(kind="hint", message=GENERIC_HINT)]

    bare = suggest_for_zero_results("readme", "search_files")
    assert _kinds(bare) == ["hint", "fuzzy-redirect"]
    assert bare[1].proposed_query == "readme"


def test_fuzzy_query_with_path_segments_suggests_last_segment() -> None:
    suggestions = suggest_for_zero_results("src/utils/helpr", "fuzzy_find")

    assert suggestions[0].proposed_query == "helpr"


def test_unknown_tool_falls_back_to_generic_hint() -> None:
    assert suggest_for_zero_results("x", "tree") == [Suggestion(kind="hint", message=GENERIC_HINT)]


def test_format_suggestions_marks_hints_and_proposals() -> None:
    text = format_suggestions(
        [
            Suggestion(kind="hint", message="generic"),
            Suggestion(kind="simplified", message="specific", proposed_query="q"),
        ]
    )

    assert text == "\nSuggestions:\n  - generic\n  -> specific"
    assert format_suggestions([]) == ""


def test_fuzzy_query_with_extension_redirects_to_stem() -> None:
    suggestions = suggest_for_zero_results("src/confg.yaml", "fuzzy_find")

    assert _kinds(suggestions) == ["fuzzy-redirect", "fuzzy-redirect"]
    assert [suggestion.proposed_query for suggestion in suggestions] == ["confg.yaml", "confg"]
