import json
import time
import urllib.error
import urllib.request
from typing import Any, Dict, List, Optional, Protocol

from pydantic import ValidationError

from config import RecommendSettings
from recommend.deadline import Deadline, timeout_for
from recommend.models import Recommendation, UserPreferences
from runtime_metrics import record_counter_metric, record_timing_metric


class EnhancedAgentError(RuntimeError):
    pass


class EnhancedAgent(Protocol):
    def is_configured(self) -> bool: ...

    def get_recommendations(
        self,
        query: str,
        preferences: Optional[UserPreferences] = None,
        deadline: Optional[Deadline] = None,
    ) -> List[Recommendation]: ...


class RemoteAgentRecommender:
    """Client for an agent service exposing ``POST /ai/recommendations``."""

    def __init__(self, settings: RecommendSettings) -> None:
        self._base_url = (settings.enhanced_agent_base_url or "").strip().rstrip("/")
        self._api_key = settings.enhanced_agent_api_key
        self._timeout = settings.enhanced_agent_timeout_seconds

    def is_configured(self) -> bool:
        return bool(self._base_url)

    def _request(self, payload: Dict[str, Any], timeout: float) -> Dict[str, Any]:
        headers = {"Content-Type": "application/json", "Accept": "application/json"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"
        request = urllib.request.Request(
            f"{self._base_url}/ai/recommendations",
            data=json.dumps(payload).encode("utf-8"),
            headers=headers,
            method="POST",
        )
        started = time.perf_counter()
        try:
            with urllib.request.urlopen(request, timeout=timeout) as resp:  # nosec B310
                raw = resp.read().decode("utf-8", errors="replace")
        except urllib.error.HTTPError as exc:
            detail = exc.read().decode("utf-8", errors="replace") if exc.fp else str(exc)
            record_counter_metric(name="recommend.enhanced.http_error", value=1)
            raise EnhancedAgentError(f"enhanced agent request failed: {exc.code} {detail[:400]}") from exc
        except Exception as exc:
            record_counter_metric(name="recommend.enhanced.request_failed", value=1)
            raise EnhancedAgentError(f"enhanced agent request failed: {exc}") from exc
        try:
            parsed = json.loads(raw)
        except ValueError as exc:
            raise EnhancedAgentError(f"enhanced agent response parse failed: {exc}") from exc
        if not isinstance(parsed, dict):
            raise EnhancedAgentError("enhanced agent response payload is not a JSON object")
        record_timing_metric(
            name="recommend.enhanced.latency_ms",
            duration_ms=int((time.perf_counter() - started) * 1000),
        )
        return parsed

    def get_recommendations(
        self,
        query: str,
        preferences: Optional[UserPreferences] = None,
        deadline: Optional[Deadline] = None,
    ) -> List[Recommendation]:
        if not self.is_configured():
            raise EnhancedAgentError("enhanced agent base URL is not configured")
        payload: Dict[str, Any] = {
            "query": query,
            "preferences": preferences.model_dump(by_alias=True) if preferences is not None else None,
        }
        response = self._request(payload, timeout_for(deadline, self._timeout))
        items = response.get("recommendations")
        if not isinstance(items, list):
            raise EnhancedAgentError("enhanced agent response missing recommendations")
        try:
            return [Recommendation.model_validate(item) for item in items]
        except ValidationError as exc:
            raise EnhancedAgentError(f"enhanced agent returned malformed recommendations: {exc}") from exc
