import logging
from typing import Any, Dict, List, Optional, Protocol, TypedDict

from config import RecommendSettings
from observability import get_logger, log_event
from recommend.deadline import Deadline, DeadlineExceeded, timeout_for
from recommend.github import GitHubAPIError, search_repositories
from recommend.models import RepositoryCandidate, UserPreferences
from runtime_metrics import record_counter_metric

LOGGER = get_logger("repofinder.recommend.search")

# Scanned in order; the first substring hit wins.
KNOWN_LANGUAGES = (
    "javascript",
    "typescript",
    "python",
    "java",
    "go",
    "rust",
    "cpp",
    "c",
    "csharp",
    "php",
    "ruby",
    "swift",
    "kotlin",
    "dart",
)

SEARCH_SORT = "stars"
SEARCH_ORDER = "desc"
SEARCH_PER_PAGE = 10


class SearchOptions(TypedDict, total=False):
    language: Optional[str]
    sort: str
    order: str
    per_page: int


class SearchProvider(Protocol):
    def search_repos(
        self,
        query: str,
        options: SearchOptions,
        deadline: Optional[Deadline] = None,
    ) -> List[RepositoryCandidate]: ...


def _to_int(value: Any, default: int = 0) -> int:
    if value is None or value == "":
        return int(default)
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return int(default)


def _normalize_license(value: Any) -> Optional[str]:
    if isinstance(value, dict):
        spdx = value.get("spdx_id")
        if spdx and spdx != "NOASSERTION":
            return str(spdx)
        name = value.get("name")
        return str(name) if name else None
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def to_candidate(item: Dict[str, Any]) -> Optional[RepositoryCandidate]:
    full_name = str(item.get("full_name") or "").strip()
    if not full_name:
        return None
    url = str(item.get("html_url") or "").strip() or f"https://github.com/{full_name}"
    description = str(item.get("description") or "").strip() or None
    language = str(item.get("language") or "").strip() or None
    topics = [str(topic) for topic in (item.get("topics") or []) if str(topic).strip()]
    return RepositoryCandidate(
        id=str(item.get("id") or full_name),
        full_name=full_name,
        description=description,
        stars=_to_int(item.get("stargazers_count")),
        url=url,
        language=language,
        forks=_to_int(item.get("forks_count")),
        topics=topics,
        license=_normalize_license(item.get("license")),
        updated_at=item.get("pushed_at") or item.get("updated_at"),
    )


class GitHubSearchProvider:
    """Search provider backed by the GitHub Search API."""

    def __init__(self, settings: RecommendSettings) -> None:
        self._token = settings.github_token
        self._base_url = settings.github_api_base_url
        self._timeout = settings.search_timeout_seconds

    def search_repos(
        self,
        query: str,
        options: SearchOptions,
        deadline: Optional[Deadline] = None,
    ) -> List[RepositoryCandidate]:
        items, _ = search_repositories(
            query,
            language=options.get("language"),
            sort=options.get("sort", SEARCH_SORT),
            order=options.get("order", SEARCH_ORDER),
            per_page=options.get("per_page", SEARCH_PER_PAGE),
            timeout=timeout_for(deadline, self._timeout),
            token=self._token,
            base_url=self._base_url,
        )
        candidates: List[RepositoryCandidate] = []
        for item in items:
            candidate = to_candidate(item)
            if candidate is not None:
                candidates.append(candidate)
        return candidates


def extract_language(query: str) -> Optional[str]:
    lowered = str(query or "").lower()
    for language in KNOWN_LANGUAGES:
        if language in lowered:
            return language
    return None


def language_hint(query: str, preferences: Optional[UserPreferences] = None) -> Optional[str]:
    language = extract_language(query)
    if language:
        return language
    if preferences and preferences.tech_stack:
        first = str(preferences.tech_stack[0] or "").strip()
        return first or None
    return None


class CandidateSearch:
    def __init__(self, provider: SearchProvider, per_page: int = SEARCH_PER_PAGE) -> None:
        self._provider = provider
        self._per_page = per_page

    def find_candidates(
        self,
        query: str,
        preferences: Optional[UserPreferences] = None,
        deadline: Optional[Deadline] = None,
    ) -> List[RepositoryCandidate]:
        options: SearchOptions = {
            "language": language_hint(query, preferences),
            "sort": SEARCH_SORT,
            "order": SEARCH_ORDER,
            "per_page": self._per_page,
        }
        try:
            if deadline is not None and deadline.expired():
                raise DeadlineExceeded("resolution deadline exceeded before search")
            candidates = list(self._provider.search_repos(query, options, deadline))
        except Exception as exc:  # noqa: BLE001
            self._log_failure(query, options, exc)
            return []
        record_counter_metric(name="recommend.search.candidates", value=len(candidates))
        return candidates

    @staticmethod
    def _log_failure(query: str, options: SearchOptions, exc: Exception) -> None:
        if isinstance(exc, DeadlineExceeded):
            code = "DEADLINE_EXCEEDED"
        elif isinstance(exc, GitHubAPIError) and exc.code == "GITHUB_RATE_LIMIT":
            code = "SEARCH_RATE_LIMITED"
        else:
            code = "SEARCH_FAILED"
        record_counter_metric(name="recommend.search.failed", value=1)
        log_event(
            LOGGER,
            logging.WARNING,
            "recommend.search.failed",
            error_code=code,
            query=query[:120],
            language=options.get("language"),
            exception_type=type(exc).__name__,
            exception_message=str(exc)[:400],
        )
