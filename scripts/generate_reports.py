#!/usr/bin/env python3
"""
Generate saved-analysis reports from pre-evaluated games.

Reads a JSON file holding a list of games, where each game is the list of
evaluated positions the orchestrator hands to the report builder:

    [[{"fen": ..., "move": {"san": ..., "uci": ...}, "worker": "cloud",
       "top_lines": [...]}, ...], ...]

Writes report1.json, report2.json, ... with placeholder players. A game
whose report fails is logged and skipped.

Usage:
    python scripts/generate_reports.py evaluations.json --output-dir reports
"""

import argparse
import json
import os
import sys
import time
import traceback
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from review.errors import ReviewError
from review.models import Players, Profile
from review.report import DEFAULT_BUILDER, generate_report, resolve_builder
from review.saved import SavedAnalysis, dump_saved_analysis

PLACEHOLDER_PLAYERS = Players(
    white=Profile(username="White Player", rating="0"),
    black=Profile(username="Black Player", rating="0"),
)


def generate_reports(games: list, output_dir: Path, builder) -> int:
    """
    Build and write one report per game.

    Returns:
        Number of reports written
    """
    output_dir.mkdir(parents=True, exist_ok=True)

    written = 0
    for game_index, positions in enumerate(games, start=1):
        try:
            report = generate_report(positions, builder)
        except ReviewError:
            print(f"Evaluated positions from game {game_index} threw an error.")
            traceback.print_exc()
            continue

        saved = SavedAnalysis(players=PLACEHOLDER_PLAYERS, results=report)
        (output_dir / f"report{game_index}.json").write_text(dump_saved_analysis(saved))
        written += 1
        print(f"Generated report from game {game_index}...")

    return written


def main():
    parser = argparse.ArgumentParser(description="Generate reports from evaluated games")
    parser.add_argument("evaluations", type=Path,
                        help="JSON file containing a list of evaluated games")
    parser.add_argument("--output-dir", "-o", type=Path, default=Path("reports"),
                        help="Directory for reportN.json files (default: reports)")
    parser.add_argument("--report-builder", type=str, default=DEFAULT_BUILDER,
                        help=f"Report builder as module:callable (default: {DEFAULT_BUILDER})")
    args = parser.parse_args()

    try:
        games = json.loads(args.evaluations.read_text())
        builder = resolve_builder(args.report_builder)
    except (OSError, ValueError) as e:
        print(f"Error: {e}")
        sys.exit(1)

    if not isinstance(games, list):
        print("Error: evaluations file must contain a list of games")
        sys.exit(1)

    start = time.time()
    written = generate_reports(games, args.output_dir, builder)
    elapsed = time.time() - start
    print(f"Report generation completed: {written}/{len(games)} games ({elapsed:.2f}s)")


if __name__ == '__main__':
    main()
