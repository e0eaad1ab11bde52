"""One-shot interface: run a single command against the engine, print JSON, exit."""

from __future__ import annotations

import argparse
import asyncio
import json
from pathlib import Path

from search_routing.core.bootstrap import build_engine
from search_routing.core.config import settings
from search_routing.core.logger import logger
from search_routing.orchestrators.search.errors import ConfigurationError
from search_routing.orchestrators.search.models import SearchRequest


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="search-routing", description="Search routing engine")
    parser.add_argument("--config", type=Path, default=None, help="Routing document (YAML/JSON)")
    sub = parser.add_subparsers(dest="command", required=True)

    search = sub.add_parser("search", help="Run one search and print the response")
    search.add_argument("query", nargs="+")
    search.add_argument("--role", default="default")
    search.add_argument("--category", action="append", default=None, dest="categories")
    search.add_argument("--max-results", type=int, default=20)
    search.add_argument("--include-trial", action="store_true")
    search.add_argument("--byok-only", action="store_true")

    sub.add_parser("stats", help="Print usage counters and health records")
    sub.add_parser("probe", help="Run one health probe round and print provider health")
    return parser


async def run_oneshot(args: argparse.Namespace) -> int:
    errors = settings.validate() if args.config is None else []
    if errors:
        for error in errors:
            print(f"Error: {error}")
        return 2

    try:
        engine = build_engine(config_path=args.config)
    except ConfigurationError as e:
        print(f"Error: {e}")
        return 2

    try:
        if args.command == "search":
            query = " ".join(args.query).strip()
            if not query:
                print("Error: query must not be empty")
                return 2
            request = SearchRequest(
                query=query,
                role_id=args.role,
                categories=args.categories,
                max_results=args.max_results,
                include_trial_sources=args.include_trial,
                force_byok_only=args.byok_only,
            )
            response = await engine.search(request)
            print(response.model_dump_json(indent=2))
            return 0 if response.results or not response.errors else 1

        if args.command == "stats":
            print(engine.get_usage_stats().model_dump_json(indent=2))
            return 0

        health = await engine.probe_health()
        print(json.dumps({pid: h.model_dump(mode="json") for pid, h in health.items()}, indent=2))
        return 0
    finally:
        await engine.stop()
        logger.close()


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    return asyncio.run(run_oneshot(args))
