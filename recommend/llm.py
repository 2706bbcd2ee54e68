import json
import time
import urllib.error
import urllib.request
from typing import Any, Dict, List, Optional, Sequence

from config import RecommendSettings
from recommend.deadline import Deadline, timeout_for
from recommend.models import PromptMessage
from runtime_metrics import record_counter_metric, record_timing_metric

METRIC_SCOPE = "recommend.llm"
DEFAULT_BASE_URL = "https://api.openai.com/v1"


class CompletionError(RuntimeError):
    pass


def _normalize_base_url(base_url: str) -> str:
    # Used as configured; gateways mount the API under their own prefixes.
    return (base_url or "").strip().rstrip("/") or DEFAULT_BASE_URL


def _usage_count(value: Any) -> int:
    if value is None or value == "":
        return 0
    try:
        return max(0, int(float(value)))
    except (TypeError, ValueError, OverflowError):
        return 0


def _record_usage(parsed: Dict[str, Any]) -> None:
    usage = parsed.get("usage") if isinstance(parsed.get("usage"), dict) else {}
    prompt_tokens = _usage_count(usage.get("prompt_tokens"))
    completion_tokens = _usage_count(usage.get("completion_tokens"))
    total_tokens = _usage_count(usage.get("total_tokens")) or (prompt_tokens + completion_tokens)
    if total_tokens > 0:
        record_counter_metric(name=f"{METRIC_SCOPE}.tokens.total", value=total_tokens)
        record_counter_metric(name=f"{METRIC_SCOPE}.tokens.prompt", value=prompt_tokens)
        record_counter_metric(name=f"{METRIC_SCOPE}.tokens.completion", value=completion_tokens)


def _post(url: str, api_key: str, payload: Dict[str, Any], timeout: float) -> Dict[str, Any]:
    body = json.dumps(payload).encode("utf-8")
    request = urllib.request.Request(
        url,
        data=body,
        headers={
            "Content-Type": "application/json",
            "Authorization": f"Bearer {api_key}",
        },
        method="POST",
    )
    started = time.perf_counter()
    try:
        with urllib.request.urlopen(request, timeout=timeout) as resp:  # nosec B310
            raw = resp.read().decode("utf-8", errors="replace")
    except urllib.error.HTTPError as exc:
        detail = exc.read().decode("utf-8", errors="replace") if exc.fp else str(exc)
        record_counter_metric(name=f"{METRIC_SCOPE}.http_error", value=1)
        raise CompletionError(f"completion request failed: {exc.code} {detail[:400]}") from exc
    except Exception as exc:
        record_counter_metric(name=f"{METRIC_SCOPE}.request_failed", value=1)
        raise CompletionError(f"completion request failed: {exc}") from exc
    try:
        parsed = json.loads(raw)
    except ValueError as exc:
        raise CompletionError(f"completion response parse failed: {exc}") from exc
    if not isinstance(parsed, dict):
        raise CompletionError("completion response payload is not a JSON object")
    record_timing_metric(
        name=f"{METRIC_SCOPE}.latency_ms",
        duration_ms=int((time.perf_counter() - started) * 1000),
    )
    _record_usage(parsed)
    return dict(parsed)


def _extract_content(payload: Dict[str, Any]) -> str:
    choices = payload.get("choices") or []
    if isinstance(choices, list) and choices and isinstance(choices[0], dict):
        message = choices[0].get("message")
        if isinstance(message, dict):
            content = message.get("content")
            if isinstance(content, str) and content.strip():
                return content
            if isinstance(content, list):
                parts: List[str] = []
                for chunk in content:
                    if isinstance(chunk, str) and chunk.strip():
                        parts.append(chunk)
                    elif isinstance(chunk, dict):
                        text = str(chunk.get("text") or "").strip()
                        if text:
                            parts.append(text)
                merged = "\n".join(parts).strip()
                if merged:
                    return merged
    raise CompletionError("completion response missing choices[0].message.content")


class CompletionClient:
    """Single-shot chat completion against an OpenAI compatible endpoint."""

    def __init__(self, settings: RecommendSettings) -> None:
        self._api_key = settings.openai_api_key.strip()
        self._url = f"{_normalize_base_url(settings.openai_base_url)}/chat/completions"
        self._model = settings.openai_model or "gpt-4o-mini"
        self._temperature = settings.temperature
        self._max_tokens = settings.max_tokens
        self._timeout = settings.llm_timeout_seconds

    def is_configured(self) -> bool:
        return bool(self._api_key)

    def build_payload(self, messages: Sequence[PromptMessage]) -> Dict[str, Any]:
        return {
            "model": self._model,
            "messages": [message.model_dump() for message in messages],
            "temperature": self._temperature,
            "max_tokens": self._max_tokens,
        }

    def complete(self, messages: Sequence[PromptMessage], deadline: Optional[Deadline] = None) -> str:
        if not self._api_key:
            raise CompletionError("OPENAI_API_KEY is missing")
        timeout = timeout_for(deadline, self._timeout)
        response = _post(self._url, self._api_key, self.build_payload(messages), timeout)
        return _extract_content(response)
