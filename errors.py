from typing import Dict

ERROR_CODE_MAP: Dict[str, Dict[str, str]] = {
    "SEARCH_FAILED": {
        "message": "Repository search failed",
        "hint": "Check GitHub reachability and GITHUB_TOKEN; results fall back to an empty candidate set.",
    },
    "SEARCH_RATE_LIMITED": {
        "message": "Repository search rate limited",
        "hint": "Configure GITHUB_TOKEN to raise the Search API quota.",
    },
    "COMPLETION_FAILED": {
        "message": "Completion request failed",
        "hint": "Check OPENAI_BASE_URL, OPENAI_API_KEY and model availability.",
    },
    "INTERPRETATION_FAILED": {
        "message": "Completion response could not be interpreted",
        "hint": "The model did not answer with a JSON array; heuristic ranking was used.",
    },
    "CONFIGURATION_ABSENT": {
        "message": "Completion provider not configured",
        "hint": "Set OPENAI_API_KEY to enable AI ranking.",
    },
    "ENHANCED_AGENT_FAILED": {
        "message": "Enhanced agent failed",
        "hint": "Check ENHANCED_AGENT_BASE_URL; the legacy pipeline was used instead.",
    },
    "DEADLINE_EXCEEDED": {
        "message": "Request deadline exceeded",
        "hint": "Raise the caller deadline or provider timeouts.",
    },
    "UNEXPECTED_ERROR": {
        "message": "Unexpected error",
        "hint": "Inspect the structured logs for the trace id.",
    },
}


def explain_error(code: str | None) -> Dict[str, str] | None:
    if not code:
        return None
    return ERROR_CODE_MAP.get(code)
