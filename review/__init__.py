"""
Chess game review: cloud and local engine evaluation of every position,
handed to a report builder.

Usage:
    python -m review --help
    python -m review game.pgn --depth 16 --concurrency 8
    python -m review --load game.json
"""

from review.constants import (
    MIN_DEPTH,
    MAX_DEPTH,
    DEFAULT_DEPTH,
    DEFAULT_CONCURRENCY,
    CASTLING_FIXES,
    SOURCE_CLOUD,
    SOURCE_LOCAL,
)

__all__ = [
    # Constants
    'MIN_DEPTH',
    'MAX_DEPTH',
    'DEFAULT_DEPTH',
    'DEFAULT_CONCURRENCY',
    'CASTLING_FIXES',
    'SOURCE_CLOUD',
    'SOURCE_LOCAL',
    # Review entry points (import from review.orchestrator when needed)
    # - Orchestrator, create_orchestrator, get_orchestrator
]
