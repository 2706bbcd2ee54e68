import json
import re
from typing import Any, Dict, List, Optional, Sequence

from recommend.models import Recommendation, RepositoryCandidate

_THINK_BLOCK = re.compile(r"<think>[\s\S]*?</think>", re.IGNORECASE)
_GREEDY_ARRAY = re.compile(r"\[[\s\S]*\]")


class InterpretationError(ValueError):
    pass


def _strip_think_blocks(text: str) -> str:
    return _THINK_BLOCK.sub("", str(text or "")).strip()


def extract_json_array(text: Optional[str]) -> Optional[List[Any]]:
    """Best-effort scrape of a JSON array out of freeform model output.

    Takes everything from the first ``[`` to the last ``]``. Returns ``None``
    when there is no such span or it does not parse as a list.
    """
    raw = _strip_think_blocks(text or "")
    if not raw:
        return None
    match = _GREEDY_ARRAY.search(raw)
    if not match:
        return None
    try:
        parsed = json.loads(match.group(0))
    except ValueError:
        return None
    if not isinstance(parsed, list):
        return None
    return parsed


def _text_field(entry: Dict[str, Any], key: str) -> str:
    value = entry.get(key)
    if value is None:
        return ""
    return str(value).strip()


def _repair(entry: Dict[str, Any], by_name: Dict[str, RepositoryCandidate]) -> Optional[Recommendation]:
    name = entry.get("name")
    if not isinstance(name, str) or not name.strip():
        return None
    candidate = by_name.get(name)
    description = _text_field(entry, "description")
    if not description and candidate is not None:
        description = candidate.description or ""
    return Recommendation(
        name=name,
        description=description,
        reason=_text_field(entry, "reason"),
        url=candidate.url if candidate is not None else None,
        stars=candidate.stars if candidate is not None else None,
    )


def interpret(text: Optional[str], candidates: Sequence[RepositoryCandidate]) -> List[Recommendation]:
    parsed = extract_json_array(text)
    if parsed is None:
        raise InterpretationError("completion text contains no parseable JSON array")
    by_name: Dict[str, RepositoryCandidate] = {}
    for candidate in candidates:
        by_name.setdefault(candidate.full_name, candidate)
    recommendations: List[Recommendation] = []
    for entry in parsed:
        if not isinstance(entry, dict):
            continue
        recommendation = _repair(entry, by_name)
        if recommendation is not None:
            recommendations.append(recommendation)
    if not recommendations:
        raise InterpretationError("JSON array holds no entries with a repository name")
    return recommendations
