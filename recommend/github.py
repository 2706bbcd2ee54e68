import json
import time
import urllib.error
import urllib.parse
import urllib.request
from typing import Any, Dict, List, Optional, Tuple

from runtime_metrics import record_counter_metric, record_timing_metric

DEFAULT_API_BASE_URL = "https://api.github.com"
# GitHub rejects search expressions longer than 256 characters with 422.
MAX_ENCODED_QUERY_CHARS = 220


class GitHubAPIError(RuntimeError):
    def __init__(self, code: str, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.message = message


def _trim_search_query(query: str, qualifier: str = "", max_encoded_chars: int = MAX_ENCODED_QUERY_CHARS) -> str:
    """
    Keep the Search API `q` within the length budget.

    Whole words are dropped from the end of the free text until the text plus
    its qualifier (e.g. `language:python`) fits. The qualifier is never cut.
    """

    normalized = " ".join(str(query or "").split())
    suffix = f" {qualifier}" if qualifier else ""
    budget = max(1, max_encoded_chars - len(urllib.parse.quote(suffix)))
    if len(urllib.parse.quote(normalized)) <= budget:
        return f"{normalized}{suffix}".strip()

    kept: List[str] = []
    for token in normalized.split(" "):
        candidate = " ".join(kept + [token])
        if len(urllib.parse.quote(candidate)) > budget:
            break
        kept.append(token)
    trimmed = " ".join(kept)
    if not trimmed:
        # Single oversized token: cut characters instead.
        trimmed = normalized
        while trimmed and len(urllib.parse.quote(trimmed)) > budget:
            trimmed = trimmed[:-1]
    return f"{trimmed.strip()}{suffix}".strip()


def _request_json(url: str, token: Optional[str], timeout: float = 12) -> Dict[str, Any]:
    headers = {
        "Accept": "application/vnd.github+json",
        "User-Agent": "repofinder/0.1",
        "X-GitHub-Api-Version": "2022-11-28",
    }
    if token:
        headers["Authorization"] = f"Bearer {token}"
    request = urllib.request.Request(url, headers=headers)
    started = time.perf_counter()
    try:
        with urllib.request.urlopen(request, timeout=timeout) as resp:  # nosec B310
            raw = resp.read().decode("utf-8", errors="replace")
    except urllib.error.HTTPError as exc:
        detail = exc.read().decode("utf-8", errors="replace") if exc.fp else str(exc)
        record_counter_metric(name="recommend.provider.github.http_error", value=1)
        if exc.code in {403, 429} and "rate limit" in detail.lower():
            raise GitHubAPIError("GITHUB_RATE_LIMIT", detail) from exc
        raise GitHubAPIError("GITHUB_HTTP_ERROR", f"{exc.code} {detail}") from exc
    except Exception as exc:
        record_counter_metric(name="recommend.provider.github.request_failed", value=1)
        raise GitHubAPIError("GITHUB_REQUEST_FAILED", str(exc)) from exc
    try:
        parsed = json.loads(raw)
    except ValueError as exc:
        raise GitHubAPIError("GITHUB_PARSE_FAILED", str(exc)) from exc
    if not isinstance(parsed, dict):
        raise GitHubAPIError("GITHUB_PARSE_FAILED", "response payload is not an object")
    record_timing_metric(
        name="recommend.provider.github.latency_ms",
        duration_ms=int((time.perf_counter() - started) * 1000),
    )
    return dict(parsed)


def search_repositories(
    query: str,
    *,
    language: Optional[str] = None,
    sort: str = "stars",
    order: str = "desc",
    per_page: int = 10,
    page: int = 1,
    timeout: float = 12,
    token: Optional[str] = None,
    base_url: str = DEFAULT_API_BASE_URL,
) -> Tuple[List[Dict[str, Any]], Dict[str, Any]]:
    if not str(query or "").strip():
        return [], {}
    qualifier = f"language:{language.strip()}" if language and language.strip() else ""
    safe_query = _trim_search_query(query, qualifier=qualifier)
    params = urllib.parse.urlencode(
        {
            "q": safe_query,
            "sort": sort,
            "order": order,
            "per_page": int(per_page),
            "page": int(page),
        }
    )
    url = f"{(base_url or DEFAULT_API_BASE_URL).rstrip('/')}/search/repositories?{params}"
    payload = _request_json(url, token, timeout=timeout)
    items = payload.get("items")
    if not isinstance(items, list):
        return [], payload
    return [dict(item) for item in items if isinstance(item, dict)], payload
