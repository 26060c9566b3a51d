"""
Command-line trigger for the daily digest.

Usage:
    dailyspark-process-all              # aggregate + email every user
    dailyspark-process-all --isolate    # keep going when a user fails
    dailyspark-process-all --user ID    # a single user
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path

from dotenv import load_dotenv

from dailyspark.config import Settings
from dailyspark.curriculum.orchestrator import summarize
from dailyspark.errors import DailySparkError
from dailyspark.observability.logging import configure_logging, get_logger
from dailyspark.services import build_services

logger = get_logger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Send DailySpark topic digests")
    parser.add_argument("--user", help="Process a single user id instead of everyone")
    parser.add_argument(
        "--isolate",
        action="store_true",
        help="Record per-user failures instead of aborting the batch",
    )
    parser.add_argument("--db", help="Override the document store path")
    parser.add_argument("--log-level", help="DEBUG, INFO, WARNING...")
    return parser.parse_args(argv)


async def run(args: argparse.Namespace, settings: Settings) -> dict:
    services = build_services(settings)

    if args.user:
        outcome = await services.topics.aggregate(args.user)
        return {"results": [outcome.to_dict()], "summary": summarize([outcome]).to_dict()}

    outcomes = await services.orchestrator.process_all()
    return {
        "results": [outcome.to_dict() for outcome in outcomes],
        "summary": summarize(outcomes).to_dict(),
    }


def main(argv: list[str] | None = None) -> int:
    load_dotenv()
    args = parse_args(argv)

    settings = Settings.from_env()
    overrides: dict[str, object] = {}
    if args.isolate:
        overrides["isolate_user_failures"] = True
    if args.db:
        overrides["database_path"] = Path(args.db)
    if args.log_level:
        overrides["log_level"] = args.log_level
    if overrides:
        settings = settings.with_overrides(**overrides)
    configure_logging(settings.log_level)

    try:
        report = asyncio.run(run(args, settings))
    except DailySparkError as e:
        logger.error("Digest run failed: %s", e)
        return 1

    json.dump(report, sys.stdout, indent=2)
    sys.stdout.write("\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
