"""Tiered resolution of a query into at most three repository recommendations.

Tiers run in order and the first one that produces recommendations wins:

* ``enhanced``: the remote agent recommender, when configured;
* ``legacy``: search, prompt, completion, interpretation;
* ``fallback``: the first candidates from the same search, star-sorted.

A tier signals "move on" by raising; the combinator records the error code as
a warning and tries the next tier. Nothing raised by a tier escapes
``resolve``.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence, Tuple

from config import RecommendSettings
from errors import explain_error
from observability import get_logger, log_event
from recommend.deadline import Deadline, DeadlineExceeded
from recommend.enhanced import EnhancedAgent, EnhancedAgentError, RemoteAgentRecommender
from recommend.fallback import fallback_rank
from recommend.interpret import InterpretationError, interpret
from recommend.llm import CompletionClient, CompletionError
from recommend.models import (
    Recommendation,
    RepositoryCandidate,
    ResolutionResult,
    ResolutionTier,
    UserPreferences,
)
from recommend.prompt import build_prompt
from recommend.search import CandidateSearch, GitHubSearchProvider
from runtime_metrics import record_counter_metric, record_timing_metric

LOGGER = get_logger("repofinder.recommend")

MAX_RECOMMENDATIONS = 3


class TierSkipped(Exception):
    """The tier does not apply to this resolution; not an error."""

    def __init__(self, code: Optional[str], message: str = "") -> None:
        super().__init__(message or code or "skipped")
        self.code = code


@dataclass
class _ResolutionState:
    query: str
    preferences: Optional[UserPreferences]
    deadline: Optional[Deadline]
    candidates: Optional[List[RepositoryCandidate]] = None
    warnings: List[str] = field(default_factory=list)


TierStep = Callable[[_ResolutionState], List[Recommendation]]


def _error_code(exc: BaseException) -> Optional[str]:
    if isinstance(exc, TierSkipped):
        return exc.code
    if isinstance(exc, DeadlineExceeded):
        return "DEADLINE_EXCEEDED"
    if isinstance(exc, EnhancedAgentError):
        return "ENHANCED_AGENT_FAILED"
    if isinstance(exc, CompletionError):
        return "COMPLETION_FAILED"
    if isinstance(exc, InterpretationError):
        return "INTERPRETATION_FAILED"
    return "UNEXPECTED_ERROR"


def first_success(
    tiers: Sequence[Tuple[ResolutionTier, TierStep]],
    state: _ResolutionState,
) -> ResolutionResult:
    for tier, step in tiers:
        started = time.perf_counter()
        try:
            recommendations = step(state)
        except Exception as exc:  # noqa: BLE001
            code = _error_code(exc)
            skipped = isinstance(exc, TierSkipped)
            if code and code not in state.warnings:
                state.warnings.append(code)
            record_counter_metric(name=f"recommend.tier.{tier}.{'skipped' if skipped else 'failed'}", value=1)
            hint = explain_error(code) or {}
            log_event(
                LOGGER,
                logging.INFO if skipped else logging.WARNING,
                "recommend.tier.skipped" if skipped else "recommend.tier.failed",
                tier=tier,
                error_code=code,
                hint=hint.get("hint"),
                exception_type=None if skipped else type(exc).__name__,
                exception_message=str(exc)[:400],
            )
            continue
        record_timing_metric(
            name=f"recommend.tier.{tier}.latency_ms",
            duration_ms=int((time.perf_counter() - started) * 1000),
        )
        record_counter_metric(name=f"recommend.tier.{tier}.success", value=1)
        log_event(
            LOGGER,
            logging.INFO,
            "recommend.resolved",
            tier=tier,
            count=min(len(recommendations), MAX_RECOMMENDATIONS),
            warnings=state.warnings,
        )
        return ResolutionResult(
            recommendations=list(recommendations)[:MAX_RECOMMENDATIONS],
            tier=tier,
            warnings=list(state.warnings),
        )
    return ResolutionResult(recommendations=[], tier="fallback", warnings=list(state.warnings))


class RecommendationResolver:
    def __init__(
        self,
        settings: RecommendSettings,
        *,
        search: Optional[CandidateSearch] = None,
        completion: Optional[CompletionClient] = None,
        enhanced: Optional[EnhancedAgent] = None,
    ) -> None:
        self._settings = settings
        self._search = search or CandidateSearch(GitHubSearchProvider(settings), per_page=settings.search_per_page)
        self._completion = completion or CompletionClient(settings)
        self._enhanced = enhanced if enhanced is not None else RemoteAgentRecommender(settings)

    @property
    def ai_configured(self) -> bool:
        return self._settings.ai_configured

    @property
    def enhanced_configured(self) -> bool:
        return self._enhanced.is_configured()

    def resolve(
        self,
        query: str,
        preferences: Optional[UserPreferences] = None,
        deadline: Optional[Deadline] = None,
    ) -> ResolutionResult:
        state = _ResolutionState(query=str(query or "").strip(), preferences=preferences, deadline=deadline)
        return first_success(
            [
                ("enhanced", self._enhanced_tier),
                ("legacy", self._legacy_tier),
                ("fallback", self._fallback_tier),
            ],
            state,
        )

    def _candidates(self, state: _ResolutionState) -> List[RepositoryCandidate]:
        if state.candidates is None:
            state.candidates = self._search.find_candidates(state.query, state.preferences, state.deadline)
            if not state.candidates:
                state.warnings.append("SEARCH_FAILED")
        return state.candidates

    def _enhanced_tier(self, state: _ResolutionState) -> List[Recommendation]:
        if not self._enhanced.is_configured():
            raise TierSkipped(None, "enhanced agent not configured")
        recommendations = self._enhanced.get_recommendations(state.query, state.preferences, state.deadline)
        if not recommendations:
            raise EnhancedAgentError("enhanced agent returned no recommendations")
        return recommendations

    def _legacy_tier(self, state: _ResolutionState) -> List[Recommendation]:
        candidates = self._candidates(state)
        if not self._settings.ai_configured:
            raise TierSkipped("CONFIGURATION_ABSENT")
        if not candidates:
            raise TierSkipped("SEARCH_FAILED", "no candidates to rank")
        messages = build_prompt(state.query, candidates, state.preferences)
        text = self._completion.complete(messages, state.deadline)
        return interpret(text, candidates)

    def _fallback_tier(self, state: _ResolutionState) -> List[Recommendation]:
        return fallback_rank(self._candidates(state))
