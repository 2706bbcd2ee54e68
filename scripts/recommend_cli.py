#!/usr/bin/env python3
from __future__ import annotations

import argparse
import dataclasses
import json
import sys
from pathlib import Path

ROOT_DIR = Path(__file__).resolve().parent.parent
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from config import load_recommend_settings  # noqa: E402
from observability import configure_json_logging  # noqa: E402
from recommend.deadline import Deadline  # noqa: E402
from recommend.llm import CompletionClient, CompletionError  # noqa: E402
from recommend.models import PromptMessage, UserPreferences  # noqa: E402
from recommend.search import CandidateSearch, GitHubSearchProvider  # noqa: E402
from recommend.service import RecommendationResolver  # noqa: E402


def mask(secret: str) -> str:
    if not secret:
        return ""
    if len(secret) <= 8:
        return "*" * len(secret)
    return f"{secret[:4]}***{secret[-4:]}"


def _preferences(args: argparse.Namespace) -> UserPreferences | None:
    if not (args.tech_stack or args.interests or args.experience):
        return None
    return UserPreferences(
        tech_stack=[item.strip() for item in (args.tech_stack or "").split(",") if item.strip()],
        interests=[item.strip() for item in (args.interests or "").split(",") if item.strip()],
        experience_level=args.experience or "intermediate",
    )


def _deadline(args: argparse.Namespace) -> Deadline | None:
    return Deadline.after(args.deadline) if args.deadline else None


def cmd_resolve(args: argparse.Namespace) -> int:
    settings = load_recommend_settings()
    if args.no_agent:
        settings = dataclasses.replace(settings, enhanced_agent_base_url="")
    resolver = RecommendationResolver(settings)
    result = resolver.resolve(args.query, _preferences(args), deadline=_deadline(args))
    print(json.dumps(result.model_dump(mode="json"), ensure_ascii=False, indent=2))
    return 0


def cmd_search(args: argparse.Namespace) -> int:
    search = CandidateSearch(GitHubSearchProvider(load_recommend_settings()))
    candidates = search.find_candidates(args.query, _preferences(args), deadline=_deadline(args))
    for index, candidate in enumerate(candidates, start=1):
        print(f"{index:>2}. {candidate.full_name} ({candidate.stars} stars) {candidate.url}")
    return 0 if candidates else 1


def cmd_llm_check(args: argparse.Namespace) -> int:
    settings = load_recommend_settings()
    if args.model:
        settings = dataclasses.replace(settings, openai_model=args.model)
    client = CompletionClient(settings)
    if not client.is_configured():
        print("[llm-check] FAILED: OPENAI_API_KEY is missing")
        return 1
    print(
        f"[llm-check] probing base_url={settings.openai_base_url} model={settings.openai_model} "
        f"api_key={mask(settings.openai_api_key)}"
    )
    messages = [
        PromptMessage(role="system", content="Return a one-word response."),
        PromptMessage(role="user", content="ok"),
    ]
    try:
        content = client.complete(messages, deadline=_deadline(args))
    except CompletionError as exc:
        print(f"[llm-check] FAILED: {exc}")
        return 2
    print(f"[llm-check] OK: received content='{content.strip()[:80]}'")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Resolve repository recommendations from the command line.")
    parser.add_argument("--log-level", default="WARNING", help="Structured log level (default WARNING)")
    parser.add_argument("--deadline", type=float, default=0.0, help="Overall time budget in seconds")
    sub = parser.add_subparsers(dest="command", required=True)

    def add_preference_flags(command: argparse.ArgumentParser) -> None:
        command.add_argument("query", help="Free-text query")
        command.add_argument("--tech-stack", default="", help="Comma separated, first entry is the language hint")
        command.add_argument("--interests", default="", help="Comma separated interests")
        command.add_argument("--experience", choices=["beginner", "intermediate", "advanced"], default=None)

    resolve = sub.add_parser("resolve", help="Run the full tiered resolution")
    add_preference_flags(resolve)
    resolve.add_argument("--no-agent", action="store_true", help="Skip the enhanced agent tier")
    resolve.set_defaults(handler=cmd_resolve)

    search = sub.add_parser("search", help="Only run the candidate search")
    add_preference_flags(search)
    search.set_defaults(handler=cmd_search)

    llm_check = sub.add_parser("llm-check", help="Probe completion connectivity")
    llm_check.add_argument("--model", default="", help="Override model name")
    llm_check.set_defaults(handler=cmd_llm_check)
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    configure_json_logging(level=args.log_level)
    return int(args.handler(args))


if __name__ == "__main__":
    raise SystemExit(main())
