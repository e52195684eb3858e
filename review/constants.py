"""
Constants for game review analysis.
"""

# Target search depth bounds (matches the depth slider range)
MIN_DEPTH = 1
MAX_DEPTH = 24
DEFAULT_DEPTH = 16

# Local engine pool
DEFAULT_CONCURRENCY = 8
TICK_INTERVAL = 0.01  # seconds between scheduler refreshes
WORKER_TIMEOUT = 120.0  # seconds before a silent worker is replaced (0 = never)
MAX_WORKER_RETRIES = 1

# Cloud evaluation lookup
CLOUD_EVAL_URL = "https://lichess.org/api/cloud-eval"
CLOUD_MULTI_PV = 2
CLOUD_TIMEOUT = 10  # seconds per request

# The cloud service reports castling as king-takes-rook; rewrite to king destination
CASTLING_FIXES = {
    "e8h8": "e8g8",
    "e1h1": "e1g1",
    "e8a8": "e8c8",
    "e1a1": "e1c1",
}

# Source tags handed to the report builder
SOURCE_CLOUD = "cloud"
SOURCE_LOCAL = "local"
