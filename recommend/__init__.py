from .deadline import Deadline, DeadlineExceeded
from .enhanced import EnhancedAgent, EnhancedAgentError, RemoteAgentRecommender
from .fallback import fallback_rank
from .interpret import InterpretationError, extract_json_array, interpret
from .llm import CompletionClient, CompletionError
from .models import (
    PromptMessage,
    Recommendation,
    RepositoryCandidate,
    ResolutionResult,
    UserPreferences,
)
from .prompt import build_prompt
from .search import CandidateSearch, GitHubSearchProvider, extract_language
from .service import RecommendationResolver

__all__ = [
    "Deadline",
    "DeadlineExceeded",
    "EnhancedAgent",
    "EnhancedAgentError",
    "RemoteAgentRecommender",
    "fallback_rank",
    "InterpretationError",
    "extract_json_array",
    "interpret",
    "CompletionClient",
    "CompletionError",
    "PromptMessage",
    "Recommendation",
    "RepositoryCandidate",
    "ResolutionResult",
    "UserPreferences",
    "build_prompt",
    "CandidateSearch",
    "GitHubSearchProvider",
    "extract_language",
    "RecommendationResolver",
]
