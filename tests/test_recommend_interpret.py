from __future__ import annotations

import pytest

from recommend.interpret import InterpretationError, extract_json_array, interpret
from recommend.models import RepositoryCandidate

CANDIDATES = [
    RepositoryCandidate(
        id="1",
        full_name="acme/widget",
        description="Widgets for everyone",
        stars=500,
        url="https://github.com/acme/widget",
    ),
    RepositoryCandidate(
        id="2",
        full_name="acme/gadget",
        description="Gadget toolkit",
        stars=300,
        url="https://github.com/acme/gadget",
    ),
]


def test_extract_json_array_from_fenced_markdown() -> None:
    text = 'Here you go:\n```json\n[{"name": "acme/widget"}]\n```\nEnjoy!'
    assert extract_json_array(text) == [{"name": "acme/widget"}]


def test_extract_json_array_ignores_think_block() -> None:
    text = "<think>maybe [1, 2</think>\n[\"a\", \"b\"]"
    assert extract_json_array(text) == ["a", "b"]


@pytest.mark.parametrize(
    "text",
    [
        None,
        "",
        "I recommend acme/widget because it is great.",
        "[not json at all]",
        '{"name": "acme/widget"}',
    ],
)
def test_extract_json_array_returns_none_without_valid_array(text) -> None:
    assert extract_json_array(text) is None


def test_interpret_fills_missing_fields_from_matched_candidate() -> None:
    result = interpret('[{"name":"acme/widget","reason":"great docs"}]', CANDIDATES)
    assert len(result) == 1
    rec = result[0]
    assert rec.name == "acme/widget"
    assert rec.reason == "great docs"
    assert rec.description == "Widgets for everyone"
    assert rec.url == "https://github.com/acme/widget"
    assert rec.stars == 500


def test_interpret_prefers_description_from_completion() -> None:
    result = interpret('[{"name":"acme/widget","description":"custom","reason":"r"}]', CANDIDATES)
    assert result[0].description == "custom"


def test_interpret_preserves_completion_order_not_star_order() -> None:
    text = '[{"name":"acme/gadget","reason":"first"},{"name":"acme/widget","reason":"second"}]'
    assert [rec.name for rec in interpret(text, CANDIDATES)] == ["acme/gadget", "acme/widget"]


def test_interpret_keeps_unmatched_names_without_url_or_stars() -> None:
    result = interpret('[{"name":"ghost/repo","description":"made up","reason":"trust me"}]', CANDIDATES)
    assert result[0].name == "ghost/repo"
    assert result[0].url is None
    assert result[0].stars is None
    assert result[0].description == "made up"


def test_interpret_matches_names_exactly() -> None:
    result = interpret('[{"name":"ACME/Widget"}]', CANDIDATES)
    assert result[0].url is None
    assert result[0].reason == ""


def test_interpret_does_not_bound_count() -> None:
    entries = ",".join(f'{{"name":"owner/r{i}","reason":"x"}}' for i in range(5))
    assert len(interpret(f"[{entries}]", CANDIDATES)) == 5


def test_interpret_drops_entries_without_name() -> None:
    result = interpret('[{"reason":"no name"}, "text", {"name":"acme/gadget"}]', CANDIDATES)
    assert [rec.name for rec in result] == ["acme/gadget"]


def test_interpret_fails_without_array() -> None:
    with pytest.raises(InterpretationError):
        interpret("Sorry, I cannot help with that.", CANDIDATES)


def test_interpret_fails_when_no_entry_is_usable() -> None:
    with pytest.raises(InterpretationError):
        interpret("[]", CANDIDATES)
