"""Daily generation trigger.

Generates and stores the puzzle for a target date (tomorrow by default).
Skips generation when the store already holds a row for that date.

Usage:
    python scripts/generate_daily.py --date 2025-07-26 --store puzzles.json
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import date, timedelta

DEFAULT_STORE_PATH = "dailycipher-store.json"


def _default_date() -> str:
    return (date.today() + timedelta(days=1)).isoformat()


def main(argv: list[str] | None = None) -> int:
    from dailycipher.config import GeneratorSettings
    from dailycipher.models import GenerationMetrics
    from dailycipher.orchestrator.service import FallbackOrchestrator
    from dailycipher.store import JsonFilePuzzleStore

    parser = argparse.ArgumentParser(description="Generate the daily cipher puzzle.")
    parser.add_argument("--date", default=_default_date(), help="Target date (YYYY-MM-DD)")
    parser.add_argument(
        "--store",
        default=DEFAULT_STORE_PATH,
        help=f"JSON file holding stored puzzles (default: {DEFAULT_STORE_PATH})",
    )
    parser.add_argument("--no-ai", action="store_true", help="Skip the AI tier")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log at DEBUG level")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        date.fromisoformat(args.date)
    except ValueError:
        print(f"Invalid date: {args.date!r}", file=sys.stderr)
        return 2

    settings = GeneratorSettings.from_env()
    if args.no_ai:
        settings = settings.model_copy(update={"ai_enabled": False})

    store = JsonFilePuzzleStore(args.store)
    if store.exists(args.date):
        print(f"Puzzle for {args.date} already exists; nothing to do.")
        return 0

    orchestrator = FallbackOrchestrator.from_settings(settings, store)
    result = orchestrator.generate(args.date, GenerationMetrics())
    store.append(args.date, result.puzzle.to_record())

    print(json.dumps(result.puzzle.to_record(), indent=2))
    print(f"\nsource={result.source.value}  tiers={[t.tier.value for t in result.tiers]}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
