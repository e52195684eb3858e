"""
Data classes shared by the evaluation passes: positions, engine lines and
the per-position evaluation source.
"""

from dataclasses import dataclass, field
from typing import Any, Optional, Union

from review.constants import SOURCE_CLOUD, SOURCE_LOCAL


@dataclass(frozen=True)
class Move:
    """The move that produced a position."""
    san: str
    uci: str

    def to_dict(self) -> dict:
        return {"san": self.san, "uci": self.uci}


@dataclass(frozen=True)
class Evaluation:
    """Engine score from White's point of view."""
    type: str  # "cp" or "mate"
    value: int

    @classmethod
    def from_score(cls, score) -> "Evaluation":
        """Build from a chess.engine.Score (already seen from White's side)."""
        mate = score.mate()
        if mate is not None:
            return cls(type="mate", value=mate)
        return cls(type="cp", value=score.score())

    def to_dict(self) -> dict:
        return {"type": self.type, "value": self.value}


@dataclass(frozen=True)
class EngineLine:
    """One ranked candidate line (id 1 = best)."""
    id: int
    depth: int
    move_uci: str
    evaluation: Evaluation

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "depth": self.depth,
            "move_uci": self.move_uci,
            "evaluation": self.evaluation.to_dict(),
        }


# Evaluation source variants. A position starts Unassigned and is claimed by
# exactly one of the cloud pass or a local worker.

@dataclass(frozen=True)
class Unassigned:
    pass


@dataclass(frozen=True)
class RemoteDone:
    pass


@dataclass(frozen=True)
class LocalHandle:
    worker: Any  # review.engine.EngineWorker or anything with .depth/.start/.stop


@dataclass(frozen=True)
class LocalDone:
    pass


EvaluationSource = Union[Unassigned, RemoteDone, LocalHandle, LocalDone]

UNASSIGNED = Unassigned()
REMOTE_DONE = RemoteDone()
LOCAL_DONE = LocalDone()


@dataclass
class Position:
    """A board state in the game plus its evaluation slot."""
    index: int
    fen: str
    move: Optional[Move] = None  # None for the starting position
    top_lines: list[EngineLine] = field(default_factory=list)
    source: EvaluationSource = UNASSIGNED

    @property
    def evaluated(self) -> bool:
        return bool(self.top_lines)

    @property
    def source_tag(self) -> str:
        """Report tag: cloud if the cloud pass filled it, local otherwise."""
        return SOURCE_CLOUD if isinstance(self.source, RemoteDone) else SOURCE_LOCAL

    def fill(self, lines: list[EngineLine], source: EvaluationSource):
        """Store the final ranked lines. A filled position is never overwritten."""
        if self.top_lines:
            raise ValueError(f"Position {self.index} is already evaluated")
        if not lines:
            raise ValueError(f"No engine lines for position {self.index}")
        self.top_lines = sorted(lines, key=lambda line: line.id)
        self.source = source

    def to_dict(self) -> dict:
        """Evaluated position as handed to the report builder."""
        return {
            "fen": self.fen,
            "move": self.move.to_dict() if self.move else None,
            "worker": self.source_tag,
            "top_lines": [line.to_dict() for line in self.top_lines],
        }


@dataclass
class Profile:
    """A player as named in the game headers."""
    username: str
    rating: str = "?"

    def to_dict(self) -> dict:
        return {"username": self.username, "rating": self.rating}


@dataclass
class Players:
    white: Profile = field(default_factory=lambda: Profile("White"))
    black: Profile = field(default_factory=lambda: Profile("Black"))

    def to_dict(self) -> dict:
        return {"white": self.white.to_dict(), "black": self.black.to_dict()}


@dataclass
class ParsedGame:
    """Output of the PGN position source."""
    players: Players
    positions: list[Position]


@dataclass
class AnalysisResult:
    """A finished review: evaluated positions and the built report."""
    players: Players
    positions: list[Position]
    report: dict
