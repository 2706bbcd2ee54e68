from __future__ import annotations

import recommend.search as search_mod
from config import RecommendSettings
from recommend.deadline import Deadline
from recommend.github import GitHubAPIError
from recommend.models import RepositoryCandidate, UserPreferences
from recommend.search import CandidateSearch, GitHubSearchProvider, extract_language, to_candidate


class _RecordingProvider:
    def __init__(self, result=None, error: Exception | None = None) -> None:
        self.calls: list[tuple[str, dict]] = []
        self._result = result or []
        self._error = error

    def search_repos(self, query, options, deadline=None):  # noqa: ARG002
        self.calls.append((query, dict(options)))
        if self._error is not None:
            raise self._error
        return self._result


def _candidate(name: str, stars: int) -> RepositoryCandidate:
    return RepositoryCandidate(id=name, full_name=name, stars=stars, url=f"https://github.com/{name}")


def test_extract_language_scans_closed_list_case_insensitively() -> None:
    assert extract_language("Best PYTHON web frameworks") == "python"
    assert extract_language("typescript orm") == "typescript"
    assert extract_language("   ") is None


def test_extract_language_uses_substring_match_in_list_order() -> None:
    # "javascript" contains "java"; the earlier list entry wins.
    assert extract_language("javascript bundler") == "javascript"
    assert extract_language("golang cli") == "go"


def test_find_candidates_requests_star_sorted_page_of_ten() -> None:
    provider = _RecordingProvider(result=[_candidate("acme/widget", 10)])
    candidates = CandidateSearch(provider).find_candidates("rust web server")
    assert [item.full_name for item in candidates] == ["acme/widget"]
    query, options = provider.calls[0]
    assert query == "rust web server"
    assert options == {"language": "rust", "sort": "stars", "order": "desc", "per_page": 10}


def test_find_candidates_falls_back_to_first_tech_stack_entry() -> None:
    provider = _RecordingProvider()
    prefs = UserPreferences(tech_stack=["Elixir", "Erlang"], interests=["web"])
    CandidateSearch(provider).find_candidates("state management", prefs)
    assert provider.calls[0][1]["language"] == "Elixir"


def test_find_candidates_query_language_beats_preferences() -> None:
    provider = _RecordingProvider()
    prefs = UserPreferences(tech_stack=["typescript"])
    CandidateSearch(provider).find_candidates("python orm", prefs)
    assert provider.calls[0][1]["language"] == "python"


def test_find_candidates_without_hint_sends_no_language() -> None:
    provider = _RecordingProvider()
    CandidateSearch(provider).find_candidates("state management")
    assert provider.calls[0][1]["language"] is None


def test_find_candidates_degrades_to_empty_on_provider_error() -> None:
    provider = _RecordingProvider(error=GitHubAPIError("GITHUB_HTTP_ERROR", "502 bad gateway"))
    assert CandidateSearch(provider).find_candidates("react") == []


def test_find_candidates_degrades_on_unexpected_error() -> None:
    provider = _RecordingProvider(error=KeyError("items"))
    assert CandidateSearch(provider).find_candidates("react") == []


def test_find_candidates_skips_provider_when_deadline_expired() -> None:
    provider = _RecordingProvider(result=[_candidate("acme/widget", 10)])
    deadline = Deadline.after(5)
    deadline.cancel()
    assert CandidateSearch(provider).find_candidates("react", deadline=deadline) == []
    assert provider.calls == []


def test_to_candidate_normalizes_github_item() -> None:
    candidate = to_candidate(
        {
            "id": 42,
            "full_name": "acme/widget",
            "html_url": "https://github.com/acme/widget",
            "description": "  ",
            "stargazers_count": "1200",
            "forks_count": 7,
            "language": "TypeScript",
            "topics": ["ui", ""],
            "license": {"spdx_id": "MIT"},
            "pushed_at": "2026-01-01T00:00:00Z",
        }
    )
    assert candidate is not None
    assert candidate.id == "42"
    assert candidate.description is None
    assert candidate.stars == 1200
    assert candidate.topics == ["ui"]
    assert candidate.license == "MIT"
    assert to_candidate({"description": "no name"}) is None


def test_github_provider_passes_settings_and_options(monkeypatch) -> None:
    captured: dict[str, object] = {}

    def _fake_search_repositories(query, **kwargs):
        captured["query"] = query
        captured.update(kwargs)
        return (
            [
                {"id": 1, "full_name": "acme/widget", "html_url": "https://github.com/acme/widget", "stargazers_count": 9},
                {"id": 2},
            ],
            {},
        )

    monkeypatch.setattr(search_mod, "search_repositories", _fake_search_repositories)
    settings = RecommendSettings(github_token="tok", search_timeout_seconds=7)
    provider = GitHubSearchProvider(settings)
    result = provider.search_repos("widgets", {"language": "go", "sort": "stars", "order": "desc", "per_page": 10})
    assert [item.full_name for item in result] == ["acme/widget"]
    assert captured["language"] == "go"
    assert captured["token"] == "tok"
    assert captured["timeout"] == 7
    assert captured["per_page"] == 10
