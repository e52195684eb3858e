"""
Cloud evaluation lookup.

Fetches pre-computed multi-PV evaluations for a FEN from the lichess cloud
evaluation API. Every kind of miss (no cached evaluation, network failure,
bad payload, too few lines) comes back as a CloudResult with an error reason
rather than an exception; the caller decides what to do with it.
"""

from dataclasses import dataclass
from enum import Enum

import requests

from review.constants import CASTLING_FIXES, CLOUD_EVAL_URL, CLOUD_MULTI_PV, CLOUD_TIMEOUT
from review.models import EngineLine, Evaluation


class CloudError(Enum):
    NETWORK = "network"
    NOT_FOUND = "not_found"
    MALFORMED = "malformed"
    INSUFFICIENT_LINES = "insufficient_lines"


@dataclass
class CloudResult:
    """Either ranked lines or the reason there are none."""
    lines: list[EngineLine] | None = None
    error: CloudError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def normalise_castling(move_uci: str) -> str:
    """Rewrite king-takes-rook castling moves to the king's destination square."""
    return CASTLING_FIXES.get(move_uci, move_uci)


def parse_cloud_lines(data: dict, depth: int, multi_pv: int = CLOUD_MULTI_PV) -> list[EngineLine]:
    """
    Convert a cloud-eval payload into ranked engine lines.

    Lines are stamped with the requested target depth, not the depth the
    cloud searched to, so they count as fully evaluated for progress.

    Raises:
        ValueError: if the payload does not have the expected shape
    """
    pvs = data.get("pvs") if isinstance(data, dict) else None
    if not isinstance(pvs, list):
        raise ValueError("payload has no pvs list")

    lines = []
    for rank, pv in enumerate(pvs[:multi_pv], 1):
        moves = pv.get("moves")
        if not isinstance(moves, str):
            raise ValueError(f"pv {rank} has no moves")

        if pv.get("cp") is not None:
            evaluation = Evaluation(type="cp", value=int(pv["cp"]))
        elif pv.get("mate") is not None:
            evaluation = Evaluation(type="mate", value=int(pv["mate"]))
        else:
            raise ValueError(f"pv {rank} has no score")

        first_move = moves.split(" ")[0]
        lines.append(EngineLine(
            id=rank,
            depth=depth,
            move_uci=normalise_castling(first_move),
            evaluation=evaluation,
        ))
    return lines


class CloudClient:
    """HTTP client for the cloud evaluation lookup."""

    def __init__(self, base_url: str = CLOUD_EVAL_URL, multi_pv: int = CLOUD_MULTI_PV,
                 timeout: float = CLOUD_TIMEOUT, session: requests.Session = None):
        self.base_url = base_url
        self.multi_pv = multi_pv
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers['Accept'] = 'application/json'

    def fetch(self, fen: str, depth: int) -> CloudResult:
        """
        Look up a cached evaluation for one position.

        Returns a CloudResult with at least two ranked lines, or with the
        reason the lookup is unusable. Never raises for ordinary misses.
        """
        try:
            resp = self.session.get(
                self.base_url,
                params={'fen': fen, 'multiPv': self.multi_pv},
                timeout=self.timeout
            )
        except requests.RequestException:
            return CloudResult(error=CloudError.NETWORK)

        if resp.status_code == 404:
            return CloudResult(error=CloudError.NOT_FOUND)
        if not resp.ok:
            # Rate limiting and server errors are absorbed like network failures
            return CloudResult(error=CloudError.NETWORK)

        try:
            lines = parse_cloud_lines(resp.json(), depth, self.multi_pv)
        except (ValueError, TypeError, AttributeError):
            return CloudResult(error=CloudError.MALFORMED)

        if len(lines) < 2:
            return CloudResult(error=CloudError.INSUFFICIENT_LINES)

        return CloudResult(lines=lines)
