from typing import List, Optional, Sequence

from recommend.models import PromptMessage, RepositoryCandidate, UserPreferences

# Only the first few candidates go into the prompt so its size stays bounded.
PROMPT_CANDIDATE_LIMIT = 5

_SYSTEM_GUIDANCE = (
    "You are a helpful GitHub repository discovery assistant. "
    "Your job is to recommend the best repositories based on user needs.\n"
    "\n"
    "Guidelines:\n"
    "- Recommend repositories that match the user's tech stack and requirements\n"
    "- Explain why each repository is a good fit\n"
    "- Prioritize well-maintained, popular repositories\n"
    "- Consider the user's experience level"
)

_ANSWER_FORMAT = (
    "Return your recommendations as a JSON array with this format:\n"
    "[\n"
    "  {\n"
    '    "name": "owner/repo-name",\n'
    '    "description": "Brief description",\n'
    '    "reason": "Why this fits the user\'s needs"\n'
    "  }\n"
    "]"
)


def build_system_prompt(preferences: Optional[UserPreferences] = None) -> str:
    sections = [_SYSTEM_GUIDANCE]
    if preferences is not None:
        sections.append(
            "User preferences:\n"
            f"- Tech stack: {', '.join(preferences.tech_stack)}\n"
            f"- Experience level: {preferences.experience_level}\n"
            f"- Interests: {', '.join(preferences.interests)}"
        )
    sections.append(_ANSWER_FORMAT)
    return "\n\n".join(sections)


def _render_candidate(index: int, candidate: RepositoryCandidate) -> str:
    return f"{index}. {candidate.full_name} ({candidate.stars} stars) - {candidate.description or ''}".rstrip()


def build_user_prompt(query: str, candidates: Sequence[RepositoryCandidate]) -> str:
    listing = "\n".join(
        _render_candidate(index, candidate)
        for index, candidate in enumerate(candidates[:PROMPT_CANDIDATE_LIMIT], start=1)
    )
    return (
        f'User query: "{query}"\n'
        "\n"
        "Here are some relevant repositories I found:\n"
        f"{listing}\n"
        "\n"
        "Please analyze these and recommend the top 3 that best match the user's needs. "
        "Explain why each is a good fit."
    )


def build_prompt(
    query: str,
    candidates: Sequence[RepositoryCandidate],
    preferences: Optional[UserPreferences] = None,
) -> List[PromptMessage]:
    return [
        PromptMessage(role="system", content=build_system_prompt(preferences)),
        PromptMessage(role="user", content=build_user_prompt(query, candidates)),
    ]
