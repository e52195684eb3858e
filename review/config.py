"""
Analysis configuration.

Defaults are read from review/config.toml. Environment variables (can be set
in a .env file in the project root):
    STOCKFISH_PATH: Engine binary used for local evaluation
    ENGINES_DIR: Directory searched for an installed Stockfish
    REVIEW_CLOUD_URL: Cloud evaluation endpoint
    REVIEW_CONCURRENCY: Maximum local engine processes
"""

import os
import tomllib
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from review.constants import (
    CLOUD_EVAL_URL,
    CLOUD_MULTI_PV,
    CLOUD_TIMEOUT,
    DEFAULT_CONCURRENCY,
    DEFAULT_DEPTH,
    MAX_DEPTH,
    MAX_WORKER_RETRIES,
    MIN_DEPTH,
    TICK_INTERVAL,
    WORKER_TIMEOUT,
)
from review.errors import InputError

# Load environment variables from .env file in project root
load_dotenv(Path(__file__).parent.parent / '.env')

CONFIG_FILE = Path(__file__).parent / 'config.toml'


@dataclass
class AnalysisConfig:
    """Settings for one review run."""

    # Analysis
    depth: int = DEFAULT_DEPTH
    concurrency: int = DEFAULT_CONCURRENCY
    tick_interval: float = TICK_INTERVAL
    worker_timeout: float = WORKER_TIMEOUT
    max_worker_retries: int = MAX_WORKER_RETRIES

    # Cloud lookup
    cloud_enabled: bool = True
    cloud_url: str = CLOUD_EVAL_URL
    multi_pv: int = CLOUD_MULTI_PV
    cloud_timeout: float = CLOUD_TIMEOUT

    # Local engine
    engine_path: str | None = None
    engine_threads: int = 1
    engine_hash: int = 16

    def __post_init__(self):
        validate_depth(self.depth)
        validate_concurrency(self.concurrency)
        if self.tick_interval <= 0:
            raise ValueError("tick_interval must be positive")
        if self.worker_timeout < 0:
            raise ValueError("worker_timeout must be zero or positive")
        if self.max_worker_retries < 0:
            raise ValueError("max_worker_retries must be zero or positive")
        if self.multi_pv < 2:
            raise ValueError("multi_pv must be at least 2")

    @property
    def uci_options(self) -> dict:
        return {"Threads": self.engine_threads, "Hash": self.engine_hash}

    @classmethod
    def from_dict(cls, data: dict) -> "AnalysisConfig":
        """Build from the nested [analysis]/[cloud]/[engine] tables of config.toml."""
        known = {'analysis', 'cloud', 'engine'}
        unknown = set(data) - known
        if unknown:
            raise ValueError(f"Unknown config sections: {', '.join(sorted(unknown))}")

        analysis = dict(data.get('analysis', {}))
        cloud = data.get('cloud', {})
        engine = data.get('engine', {})

        kwargs = analysis
        for key, field_name in (('enabled', 'cloud_enabled'), ('url', 'cloud_url'),
                                ('multi_pv', 'multi_pv'), ('timeout', 'cloud_timeout')):
            if key in cloud:
                kwargs[field_name] = cloud[key]
        for key, field_name in (('path', 'engine_path'), ('threads', 'engine_threads'),
                                ('hash', 'engine_hash')):
            if key in engine:
                kwargs[field_name] = engine[key]

        if not kwargs.get('engine_path'):
            kwargs['engine_path'] = None

        try:
            return cls(**kwargs)
        except TypeError as e:
            raise ValueError(f"Invalid config: {e}") from e


def validate_depth(depth: int):
    """Raises InputError unless depth is an integer in the supported range."""
    if isinstance(depth, bool) or not isinstance(depth, int) or not MIN_DEPTH <= depth <= MAX_DEPTH:
        raise InputError(f"Depth must be between {MIN_DEPTH} and {MAX_DEPTH}")


def validate_concurrency(concurrency: int):
    if isinstance(concurrency, bool) or not isinstance(concurrency, int) or concurrency < 1:
        raise InputError("Concurrency must be a positive integer")


def load_config(config_file: Path = CONFIG_FILE) -> dict:
    """Load raw configuration from a TOML file."""
    with open(config_file, 'rb') as f:
        return tomllib.load(f)


def get_config(config_file: Path | None = None) -> AnalysisConfig:
    """Load configuration and apply environment overrides."""
    config = AnalysisConfig.from_dict(load_config(config_file or CONFIG_FILE))

    if os.environ.get('STOCKFISH_PATH'):
        config.engine_path = os.environ['STOCKFISH_PATH']
    if os.environ.get('REVIEW_CLOUD_URL'):
        config.cloud_url = os.environ['REVIEW_CLOUD_URL']
    if os.environ.get('REVIEW_CONCURRENCY'):
        try:
            config.concurrency = int(os.environ['REVIEW_CONCURRENCY'])
        except ValueError:
            raise ValueError("REVIEW_CONCURRENCY must be an integer")
        validate_concurrency(config.concurrency)

    return config
