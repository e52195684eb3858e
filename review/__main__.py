"""
Entry point for running the review package as a module.

Usage:
    python -m review --help
    python -m review game.pgn --depth 16 --output game.json
"""

from review.cli import main

if __name__ == "__main__":
    main()
