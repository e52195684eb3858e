"""
Command-line interface for game review.
"""

import argparse
import sys
from pathlib import Path

from review.config import AnalysisConfig, get_config
from review.engine_manager import init_stockfish
from review.errors import ReviewError
from review.orchestrator import create_orchestrator
from review.progress import ProgressDisplay
from review.report import DEFAULT_BUILDER, resolve_builder
from review.saved import SavedAnalysis, dump_saved_analysis, load_saved_analysis


def print_summary(saved: SavedAnalysis):
    """Print players and accuracies of a finished (or replayed) review."""
    white = saved.players.white
    black = saved.players.black
    accuracies = saved.results.get("accuracies") or {}

    def accuracy(colour: str) -> str:
        value = accuracies.get(colour)
        return f"{value:.1f}%" if isinstance(value, (int, float)) else "-"

    print(f"\n{'='*60}")
    print("GAME REVIEW")
    print(f"{'='*60}")
    print(f"White: {white.username} ({white.rating})  accuracy {accuracy('white')}")
    print(f"Black: {black.username} ({black.rating})  accuracy {accuracy('black')}")

    sources = saved.results.get("sources")
    if isinstance(sources, dict):
        print(f"Positions: {sources.get('cloud', 0)} cloud, {sources.get('local', 0)} local")
    print(f"{'='*60}\n")


def apply_overrides(config: AnalysisConfig, args: argparse.Namespace) -> AnalysisConfig:
    """Apply command-line flags on top of file/environment configuration."""
    overrides = {}
    if args.depth is not None:
        overrides['depth'] = args.depth
    if args.concurrency is not None:
        overrides['concurrency'] = args.concurrency
    if args.no_cloud:
        overrides['cloud_enabled'] = False
    if args.engine:
        overrides['engine_path'] = args.engine
    if args.worker_timeout is not None:
        overrides['worker_timeout'] = args.worker_timeout

    values = {**vars(config), **overrides}
    return AnalysisConfig(**values)


def main():
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        description="Review a chess game: evaluate every position and build a report",
        epilog="Positions are looked up in the lichess cloud first; the rest run on local Stockfish."
    )
    parser.add_argument("pgn", nargs="?", type=Path,
                        help="PGN file of the game to review")
    parser.add_argument("--depth", "-d", type=int, default=None,
                        help="Target search depth, 1-24 (default: from config, 16)")
    parser.add_argument("--concurrency", "-c", type=int, default=None,
                        help="Maximum local engine processes (default: from config, 8)")
    parser.add_argument("--no-cloud", action="store_true",
                        help="Skip cloud lookups and evaluate every position locally")
    parser.add_argument("--engine", type=str, default=None,
                        help="Path to a UCI engine binary (default: STOCKFISH_PATH or installed Stockfish)")
    parser.add_argument("--worker-timeout", type=float, default=None,
                        help="Seconds before a silent engine worker is replaced (0 = never)")
    parser.add_argument("--report-builder", type=str, default=DEFAULT_BUILDER,
                        help=f"Report builder as module:callable (default: {DEFAULT_BUILDER})")
    parser.add_argument("--output", "-o", type=Path, default=None,
                        help="Write the saved analysis JSON to this file")
    parser.add_argument("--load", type=Path, default=None, metavar="FILE",
                        help="Replay a saved analysis instead of evaluating a game")
    parser.add_argument("--config", type=Path, default=None,
                        help="Alternative config.toml")
    parser.add_argument("--init-stockfish", action="store_true",
                        help="Download Stockfish into the engines directory and exit")

    args = parser.parse_args()

    # Handle --init-stockfish
    if args.init_stockfish:
        sys.exit(0 if init_stockfish() else 1)

    # Handle --load (no evaluation at all)
    if args.load:
        try:
            saved = load_saved_analysis(args.load.read_text())
        except (OSError, ReviewError) as e:
            print(f"Error: {e}")
            sys.exit(1)
        print_summary(saved)
        sys.exit(0)

    if not args.pgn:
        parser.error("a PGN file is required (or use --load / --init-stockfish)")

    try:
        pgn = args.pgn.read_text()
    except OSError as e:
        print(f"Error: Cannot read {args.pgn}: {e}")
        sys.exit(1)

    try:
        config = apply_overrides(get_config(args.config), args)
        builder = resolve_builder(args.report_builder)
    except (ValueError, ReviewError) as e:
        print(f"Error: {e}")
        sys.exit(1)

    orchestrator = create_orchestrator(config, report_builder=builder)
    display = ProgressDisplay(target_depth=config.depth, concurrency=config.concurrency)

    print(f"\nReviewing {args.pgn.name} at depth {config.depth} "
          f"({config.concurrency} engine workers, cloud {'on' if config.cloud_enabled else 'off'})")
    display.start()
    try:
        result = orchestrator.run(pgn, config.depth, on_status=print, on_progress=display.update)
    except ReviewError as e:
        display.stop()
        print(f"Error: {e}")
        sys.exit(1)
    except KeyboardInterrupt:
        display.stop()
        print("\nReview interrupted")
        sys.exit(130)
    display.stop()

    saved = SavedAnalysis.from_result(result)
    print_summary(saved)

    if args.output:
        args.output.write_text(dump_saved_analysis(saved))
        print(f"Saved analysis written to {args.output}")
