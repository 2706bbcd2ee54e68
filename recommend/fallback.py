from typing import List, Sequence

from recommend.models import Recommendation, RepositoryCandidate

FALLBACK_LIMIT = 3


def fallback_reason(stars: int) -> str:
    return f"Popular repository with {stars} stars, actively maintained"


def fallback_rank(candidates: Sequence[RepositoryCandidate]) -> List[Recommendation]:
    """Top candidates in search order (stars descending), never padded."""
    return [
        Recommendation(
            name=candidate.full_name,
            description=candidate.description or "",
            reason=fallback_reason(candidate.stars),
            url=candidate.url,
            stars=candidate.stars,
        )
        for candidate in list(candidates)[:FALLBACK_LIMIT]
    ]
