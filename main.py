from __future__ import annotations

import logging
import time
import uuid
from typing import Optional

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config import API_HOST, API_PORT, APP_VERSION, CORS_ORIGINS, LOG_LEVEL, load_recommend_settings
from errors import explain_error
from observability import configure_json_logging, get_logger, log_event
from recommend.deadline import Deadline, DeadlineExceeded
from recommend.github import GitHubAPIError
from recommend.models import RecommendationRequest, RepoSearchResponse, ResolutionResult
from recommend.search import SEARCH_ORDER, SEARCH_PER_PAGE, SEARCH_SORT, GitHubSearchProvider
from recommend.service import RecommendationResolver
from runtime_metrics import get_runtime_metrics_snapshot, record_request_metric

configure_json_logging(level=LOG_LEVEL)
APP_LOGGER = get_logger("repofinder.api")

SETTINGS = load_recommend_settings()
RESOLVER = RecommendationResolver(SETTINGS)
SEARCH_PROVIDER = GitHubSearchProvider(SETTINGS)

app = FastAPI(title="RepoFinder", version=APP_VERSION)
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=False,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "X-Trace-Id", "X-Request-Deadline"],
)


def _request_trace_id(request: Request) -> str:
    raw = str(getattr(request.state, "trace_id", "") or "").strip()
    if raw:
        return raw
    return uuid.uuid4().hex


def _request_deadline(request: Request) -> Optional[Deadline]:
    raw = str(request.headers.get("X-Request-Deadline") or "").strip()
    if not raw:
        return None
    try:
        seconds = float(raw)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail="X-Request-Deadline must be a number of seconds") from exc
    if seconds <= 0:
        raise HTTPException(status_code=400, detail="X-Request-Deadline must be positive")
    return Deadline.after(seconds)


@app.middleware("http")
async def request_context_middleware(request: Request, call_next):
    trace_id = str(request.headers.get("X-Trace-Id") or uuid.uuid4().hex).strip()[:64]
    request.state.trace_id = trace_id
    started = time.perf_counter()
    response = await call_next(request)
    duration_ms = int((time.perf_counter() - started) * 1000)
    log_event(
        APP_LOGGER,
        logging.INFO,
        "request.completed",
        trace_id=trace_id,
        method=request.method,
        path=request.url.path,
        status_code=response.status_code,
        duration_ms=duration_ms,
    )
    record_request_metric(path=request.url.path, status_code=response.status_code, duration_ms=duration_ms)
    response.headers["X-Trace-Id"] = trace_id
    return response


@app.exception_handler(GitHubAPIError)
async def github_error_handler(request: Request, exc: GitHubAPIError) -> JSONResponse:
    trace_id = _request_trace_id(request)
    code = "SEARCH_RATE_LIMITED" if exc.code == "GITHUB_RATE_LIMIT" else "SEARCH_FAILED"
    log_event(
        APP_LOGGER,
        logging.WARNING,
        "request.search_failed",
        trace_id=trace_id,
        error_code=code,
        upstream_code=exc.code,
        exception_message=exc.message[:400],
    )
    explained = explain_error(code) or {}
    return JSONResponse(
        status_code=429 if code == "SEARCH_RATE_LIMITED" else 502,
        content={
            "error_code": code,
            "message": explained.get("message", "repository search failed"),
            "hint": explained.get("hint"),
            "trace_id": trace_id,
        },
        headers={"X-Trace-Id": trace_id},
    )


@app.exception_handler(DeadlineExceeded)
async def deadline_error_handler(request: Request, exc: DeadlineExceeded) -> JSONResponse:
    trace_id = _request_trace_id(request)
    return JSONResponse(
        status_code=504,
        content={"error_code": "DEADLINE_EXCEEDED", "message": str(exc), "trace_id": trace_id},
        headers={"X-Trace-Id": trace_id},
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    trace_id = _request_trace_id(request)
    log_event(
        APP_LOGGER,
        logging.ERROR,
        "request.unhandled_exception",
        trace_id=trace_id,
        method=request.method,
        path=request.url.path,
        exception_type=type(exc).__name__,
        exception_message=str(exc),
    )
    return JSONResponse(
        status_code=500,
        content={
            "error_code": "INTERNAL_SERVER_ERROR",
            "message": "internal server error",
            "trace_id": trace_id,
        },
        headers={"X-Trace-Id": trace_id},
    )


@app.get("/api/health")
def health() -> dict:
    return {
        "status": "ok",
        "version": APP_VERSION,
        "api_host": API_HOST,
        "api_port": API_PORT,
        "ai_configured": RESOLVER.ai_configured,
        "enhanced_agent_configured": RESOLVER.enhanced_configured,
    }


@app.get("/metrics/runtime")
def runtime_metrics() -> dict:
    return get_runtime_metrics_snapshot()


# Sync handlers: FastAPI runs them in its threadpool, so the blocking
# provider calls never stall the event loop.
@app.post("/api/ai/recommendations", response_model=ResolutionResult)
def ai_recommendations(payload: RecommendationRequest, request: Request) -> ResolutionResult:
    query = str(payload.query or "").strip()
    if not query:
        raise HTTPException(status_code=400, detail="Query is required")
    deadline = _request_deadline(request)
    result = RESOLVER.resolve(query, payload.preferences, deadline=deadline)
    log_event(
        APP_LOGGER,
        logging.INFO,
        "recommend.request.completed",
        trace_id=_request_trace_id(request),
        tier=result.tier,
        count=len(result.recommendations),
        warnings=result.warnings,
    )
    return result


@app.get("/api/repos/search", response_model=RepoSearchResponse)
def repos_search(
    request: Request,
    q: str = Query(""),
    language: Optional[str] = Query(None),
    sort: str = Query(SEARCH_SORT, pattern="^(stars|updated|forks)$"),
    order: str = Query(SEARCH_ORDER, pattern="^(asc|desc)$"),
    per_page: int = Query(SEARCH_PER_PAGE, ge=1, le=100),
) -> RepoSearchResponse:
    if not q.strip():
        raise HTTPException(status_code=400, detail='Query parameter "q" is required')
    repos = SEARCH_PROVIDER.search_repos(
        q.strip(),
        {"language": language, "sort": sort, "order": order, "per_page": per_page},
        _request_deadline(request),
    )
    return RepoSearchResponse(repos=repos)
